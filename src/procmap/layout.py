"""
Layout engine for process maps.

Walks the ordered process description once, keeping a vertical cursor, and
produces absolutely positioned elements: start/end markers, task boxes,
decision diamonds and phase bands. Connectors join consecutive flow elements.

Uses networkx for:
- The flow graph (a path over the non-band elements in flow order)
- Connector enumeration
- Contiguity checks of element runs (used for estimation zones)

Layout is a pure function of (description, expansion state); running it twice
with the same inputs gives equal results.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Container, FrozenSet, Iterable, Iterator, List, Optional, Sequence, Set, Union

import networkx as nx

from .config import DEFAULT_CONFIG, LayoutConfig
from .models import Phase, ProcessDescription, Step
from .sizing import NodeSizer

logger = logging.getLogger(__name__)


class ExpansionState:
    """
    The set of steps currently expanded to show their hidden actions.

    Owned by a rendering session; toggling a member calls for a re-layout.
    Identifiers that match no step are kept but have no effect on layout.
    """

    def __init__(self, step_ids: Iterable[str] = ()):
        self._expanded: Set[str] = set(step_ids)

    def __contains__(self, step_id: object) -> bool:
        return step_id in self._expanded

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._expanded))

    def __len__(self) -> int:
        return len(self._expanded)

    def __repr__(self) -> str:
        return f"ExpansionState({sorted(self._expanded)!r})"

    def toggle(self, step_id: str) -> bool:
        """
        Flip the expansion of a step.

        Returns:
            True if the step is expanded after the call.
        """
        if step_id in self._expanded:
            self._expanded.discard(step_id)
            return False
        self._expanded.add(step_id)
        return True

    def expand(self, step_id: str) -> None:
        self._expanded.add(step_id)

    def collapse(self, step_id: str) -> None:
        self._expanded.discard(step_id)

    def clear(self) -> None:
        self._expanded.clear()

    def snapshot(self) -> FrozenSet[str]:
        return frozenset(self._expanded)


@dataclass(frozen=True)
class MarkerElement:
    """Start or end circle; (x, y) is the centre."""

    kind: str
    x: float
    y: float
    r: float

    @property
    def key(self) -> str:
        return self.kind

    @property
    def top(self) -> float:
        return self.y - self.r

    @property
    def bottom(self) -> float:
        return self.y + self.r

    def shifted(self, dy: float, grow: float = 0) -> "MarkerElement":
        return replace(self, y=self.y + dy)


@dataclass(frozen=True)
class TaskElement:
    """
    A task box; (x, y) is the top-left corner.

    Attributes:
        step: The step drawn in the box.
        phase: Phase owning the step.
        x: Left edge.
        y: Top edge.
        w: Box width.
        h: Box height, excluding the expansion panel.
        lines: Wrapped step name.
        name_height: Height of the wrapped name.
        id_width: Width of the identifier badge.
        expanded: Whether the expansion panel is shown.
        expansion_height: Height of the expansion panel (0 when collapsed).
    """

    step: Step
    phase: Phase
    x: float
    y: float
    w: float
    h: float
    lines: List[str]
    name_height: float
    id_width: float
    expanded: bool = False
    expansion_height: float = 0
    kind: str = field(default="task", init=False)

    @property
    def key(self) -> str:
        return self.step.id

    @property
    def top(self) -> float:
        return self.y

    @property
    def bottom(self) -> float:
        return self.y + self.h + self.expansion_height

    def shifted(self, dy: float, grow: float = 0) -> "TaskElement":
        return replace(self, y=self.y + dy)

    def stretched(self, extra: float) -> "TaskElement":
        return replace(self, h=self.h + extra)


@dataclass(frozen=True)
class DecisionElement:
    """
    A decision diamond; (x, y) is the centre of the diamond.

    stretch is extra room reserved below the diamond by zone reconciliation;
    it is 0 for every freshly computed layout.
    """

    step: Step
    phase: Phase
    x: float
    y: float
    size: float
    label_lines: List[str]
    label_height: float
    stretch: float = 0
    kind: str = field(default="decision", init=False)

    @property
    def key(self) -> str:
        return self.step.id

    @property
    def top(self) -> float:
        return self.y - self.size / 2

    @property
    def bottom(self) -> float:
        # Lower vertex of the diamond, not the end of the label
        return self.y + self.size / 2 + self.stretch

    def shifted(self, dy: float, grow: float = 0) -> "DecisionElement":
        return replace(self, y=self.y + dy)

    def stretched(self, extra: float) -> "DecisionElement":
        return replace(self, stretch=self.stretch + extra)


@dataclass(frozen=True)
class BandElement:
    """Background band of a phase; index is the 1-based phase position."""

    phase: Phase
    index: int
    x: float
    y: float
    w: float
    h: float
    kind: str = field(default="band", init=False)

    @property
    def key(self) -> str:
        return f"band:{self.phase.id}"

    @property
    def label(self) -> str:
        icon = self.phase.icon or str(self.index)
        return f"Phase {icon}: {self.phase.name}"

    @property
    def top(self) -> float:
        return self.y

    @property
    def bottom(self) -> float:
        return self.y + self.h

    def shifted(self, dy: float, grow: float = 0) -> "BandElement":
        return replace(self, y=self.y + dy, h=self.h + grow)


LayoutElement = Union[MarkerElement, TaskElement, DecisionElement, BandElement]
StepElement = Union[TaskElement, DecisionElement]


@dataclass(frozen=True)
class Connector:
    """Vertical arrow from the bottom of one element to the top of the next."""

    source: str
    target: str
    x: float
    y1: float
    y2: float


@dataclass
class ProcessLayout:
    """Result of the layout engine."""

    elements: List[LayoutElement] = field(default_factory=list)
    connectors: List[Connector] = field(default_factory=list)
    width: float = 0
    height: float = 0
    cx: float = 0

    def flow_elements(self) -> List[LayoutElement]:
        """Non-band elements in flow order."""
        return [e for e in self.elements if e.kind != "band"]

    def step_elements(self) -> List[StepElement]:
        return [e for e in self.elements if e.kind in ("task", "decision")]

    def bands(self) -> List[BandElement]:
        return [e for e in self.elements if e.kind == "band"]

    def find(self, key: str) -> Optional[LayoutElement]:
        for element in self.elements:
            if element.key == key:
                return element
        return None

    def with_elements(
        self, elements: List[LayoutElement], height: float
    ) -> "ProcessLayout":
        """Return a copy with new elements and height; connectors are rebuilt."""
        return ProcessLayout(
            elements=elements,
            connectors=build_connectors(elements, self.cx),
            width=self.width,
            height=height,
            cx=self.cx,
        )


def flow_graph(elements: Sequence[LayoutElement]) -> nx.DiGraph:
    """
    Build the flow graph over the non-band elements.

    Nodes are flow positions (0..n-1) carrying the element key, so step ids
    never collide with marker names.
    """
    flow = [e for e in elements if e.kind != "band"]
    graph = nx.path_graph(len(flow), create_using=nx.DiGraph)
    nx.set_node_attributes(graph, {i: e.key for i, e in enumerate(flow)}, "key")
    return graph


def build_connectors(elements: Sequence[LayoutElement], cx: float) -> List[Connector]:
    """Connect every consecutive pair of flow elements."""
    flow = [e for e in elements if e.kind != "band"]
    graph = flow_graph(elements)
    connectors = []
    for source, target in graph.edges():
        a, b = flow[source], flow[target]
        connectors.append(
            Connector(source=a.key, target=b.key, x=cx, y1=a.bottom, y2=b.top)
        )
    return connectors


class LayoutEngine:
    """
    Computes process map layouts.

    Attributes:
        config: Geometry constants.
        sizer: Node sizer sharing the same config.
    """

    def __init__(
        self, config: Optional[LayoutConfig] = None, sizer: Optional[NodeSizer] = None
    ):
        self.config = config or DEFAULT_CONFIG
        self.sizer = sizer or NodeSizer(self.config)

    def layout(
        self,
        description: ProcessDescription,
        expansion: Optional[Container[str]] = None,
    ) -> ProcessLayout:
        """
        Lay out a full process map.

        Args:
            description: The process to draw.
            expansion: Step ids whose hidden actions are shown.

        Returns:
            ProcessLayout with start marker, bands, steps and end marker.
        """
        cfg = self.config
        expanded = expansion if expansion is not None else frozenset()
        cx = cfg.center_x
        elements: List[LayoutElement] = []

        y = cfg.canvas_pad
        elements.append(MarkerElement("start", cx, y + cfg.circle_r, cfg.circle_r))
        y += cfg.circle_r * 2 + cfg.start_gap

        for index, phase in enumerate(description.phases, start=1):
            band_top = y
            band_slot = len(elements)
            y += cfg.phase_label_h + cfg.phase_pad_y

            for step in phase.steps:
                y = self._place_step(elements, phase, step, y, cx, expanded)

            y += cfg.phase_pad_y
            band = BandElement(
                phase=phase,
                index=index,
                x=cfg.canvas_pad,
                y=band_top,
                w=cfg.band_w,
                h=y - band_top,
            )
            elements.insert(band_slot, band)
            y += cfg.phase_gap

        elements.append(MarkerElement("end", cx, y + cfg.circle_r, cfg.circle_r))
        y += cfg.circle_r * 2 + cfg.canvas_pad

        logger.debug(
            "Laid out %d phases into %d elements, height %.1f",
            len(description.phases),
            len(elements),
            y,
        )
        return ProcessLayout(
            elements=elements,
            connectors=build_connectors(elements, cx),
            width=cfg.full_w,
            height=y,
            cx=cx,
        )

    def layout_block(
        self,
        phase: Phase,
        step_ids: Iterable[str],
        expansion: Optional[Container[str]] = None,
    ) -> ProcessLayout:
        """
        Lay out a compact map of selected steps of one phase.

        Used for the small per-block diagrams shown next to estimation
        prompts: no markers, no bands, steps in phase order.

        Args:
            phase: Phase the steps are taken from.
            step_ids: Steps to include; unknown ids are ignored.
            expansion: Step ids whose hidden actions are shown.
        """
        cfg = self.config
        expanded = expansion if expansion is not None else frozenset()
        wanted = set(step_ids)
        left_pad = cfg.block_pad + 8
        cx = left_pad + cfg.step_w / 2
        elements: List[LayoutElement] = []

        y = cfg.block_pad
        for step in phase.steps:
            if step.id in wanted:
                y = self._place_step(elements, phase, step, y, cx, expanded)
        y += cfg.block_pad

        if not elements:
            y = 0

        return ProcessLayout(
            elements=elements,
            connectors=build_connectors(elements, cx),
            width=cfg.step_w + left_pad * 2 + cfg.band_extra,
            height=y,
            cx=cx,
        )

    def _place_step(
        self,
        elements: List[LayoutElement],
        phase: Phase,
        step: Step,
        y: float,
        cx: float,
        expanded: Container[str],
    ) -> float:
        """Append the element for step at cursor y and return the new cursor."""
        cfg = self.config

        if step.is_decision_point:
            dims = self.sizer.size_decision(step)
            elements.append(
                DecisionElement(
                    step=step,
                    phase=phase,
                    x=cx,
                    y=y + cfg.decision_size / 2,
                    size=cfg.decision_size,
                    label_lines=dims.lines,
                    label_height=dims.label_height,
                )
            )
            return y + cfg.decision_size + dims.label_height + cfg.decision_gap

        dims = self.sizer.size_task(step)
        is_expanded = step.has_expansion and step.id in expanded
        exp_h = self.sizer.size_expansion(step) if is_expanded else 0
        elements.append(
            TaskElement(
                step=step,
                phase=phase,
                x=cx - cfg.step_w / 2,
                y=y,
                w=cfg.step_w,
                h=dims.height,
                lines=dims.lines,
                name_height=dims.name_height,
                id_width=dims.id_width,
                expanded=is_expanded,
                expansion_height=exp_h,
            )
        )
        return y + dims.height + exp_h + cfg.step_gap
