"""
Node sizing for task boxes, decision diamonds and expansion panels.

Heights are derived from the number of wrapped text lines plus fixed-height
sub-elements (identifier badge, action-type badge row, panel padding). The
layout engine calls these before placing anything, so the numbers here decide
how far each element pushes the rest of the diagram down.
"""

from dataclasses import dataclass
from typing import List, Optional

from .config import DEFAULT_CONFIG, LayoutConfig
from .models import Step
from .text import estimate_width, wrap


@dataclass(frozen=True)
class TaskSize:
    """
    Computed size of a task box.

    Attributes:
        lines: Wrapped step name.
        name_height: Height taken by the wrapped name.
        id_width: Width of the identifier badge.
        height: Box height, never below the configured minimum.
    """

    lines: List[str]
    name_height: float
    id_width: float
    height: float


@dataclass(frozen=True)
class DecisionSize:
    """Wrapped label of a decision diamond and the height it needs."""

    lines: List[str]
    label_height: float


class NodeSizer:
    """
    Computes the size of steps from their text.

    Attributes:
        config: Geometry constants.
    """

    def __init__(self, config: Optional[LayoutConfig] = None):
        self.config = config or DEFAULT_CONFIG

    def id_width(self, step: Step) -> float:
        cfg = self.config
        return estimate_width(step.id, cfg.id_font_size) + cfg.id_badge_pad

    def size_task(self, step: Step, content_width: Optional[float] = None) -> TaskSize:
        """
        Size a task box.

        The identifier badge and, for expandable steps, the expand indicator
        take fixed width; the rest of content_width is the wrapping budget
        for the step name.

        Args:
            step: The step to size.
            content_width: Box width; defaults to the configured step width.

        Returns:
            TaskSize with the wrapped lines and the box height.
        """
        cfg = self.config
        width = cfg.step_w if content_width is None else content_width

        id_w = self.id_width(step)
        indicator_w = cfg.indicator_w if step.has_expansion else 0
        budget = width - id_w - indicator_w - cfg.name_side_pad

        lines = wrap(step.name, budget, cfg.step_font_size)
        name_h = len(lines) * cfg.step_name_line_h
        height = (
            cfg.step_pad_top
            + name_h
            + cfg.step_name_badge_gap
            + cfg.step_badge_row_h
            + cfg.step_pad_bottom
        )
        return TaskSize(
            lines=lines,
            name_height=name_h,
            id_width=id_w,
            height=max(height, cfg.step_min_h),
        )

    def size_decision(self, step: Step) -> DecisionSize:
        """
        Size the label drawn under a decision diamond.

        A resolved decision shows a fixed two-line outcome label instead of
        the wrapped step name.
        """
        cfg = self.config
        lines = wrap(
            step.name, cfg.step_w * cfg.decision_label_ratio, cfg.decision_font_size
        )
        line_count = 2 if step.is_resolved else len(lines)
        label_h = line_count * cfg.decision_line_h + cfg.decision_label_pad
        return DecisionSize(lines=lines, label_height=label_h)

    def wrap_action(self, description: str, content_width: Optional[float] = None) -> List[str]:
        """Wrap a hidden action description as shown in the expansion panel."""
        cfg = self.config
        width = cfg.step_w if content_width is None else content_width
        return wrap(
            description, width - cfg.exp_action_inset, cfg.exp_action_font_size
        )

    def size_expansion(self, step: Step, content_width: Optional[float] = None) -> float:
        """
        Height of the panel revealed when a step is expanded.

        Returns:
            Panel height, or 0 when the step has neither hidden actions nor
            an error loop.
        """
        if not step.has_expansion:
            return 0

        cfg = self.config
        height = cfg.exp_pad_top
        if step.hidden_actions:
            height += cfg.exp_label_h + cfg.exp_label_gap
            for action in step.hidden_actions:
                lines = self.wrap_action(action.description, content_width)
                height += len(lines) * cfg.exp_action_line_h + cfg.exp_action_gap
        if step.error_loop is not None:
            height += cfg.exp_error_gap + cfg.exp_error_h
        height += cfg.exp_pad_bottom
        return height
