"""
Geometry and colour configuration for process maps.

All layout constants live in LayoutConfig so that sizing, layout and the
renderers agree on the same numbers. Theme holds the colours used by the
SVG and PNG renderers.

Classes:
    LayoutConfig: Spacing, sizes and font sizes used by the layout engine.
    Theme: Colour palette shared by the renderers.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class LayoutConfig:
    """
    Geometry constants for the process map layout.

    Attributes:
        canvas_pad: Padding around the whole diagram.
        phase_gap: Vertical gap between two phase bands.
        phase_pad_x: Horizontal padding inside a band.
        phase_pad_y: Vertical padding above and below band content.
        phase_label_h: Height of the band header bar.
        step_w: Width of task boxes (the content width).
        step_min_h: Minimum task box height.
        step_pad_top: Padding above the wrapped step name.
        step_pad_bottom: Padding below the badge row.
        step_name_line_h: Line height of the step name.
        step_badge_row_h: Height reserved for the action-type badge row.
        step_name_badge_gap: Gap between name and badge row.
        step_gap: Vertical gap after a task box.
        step_font_size: Font size of step names.
        id_font_size: Font size of the step identifier badge.
        id_badge_pad: Extra width added to the identifier badge.
        indicator_w: Width reserved for the expand indicator.
        name_side_pad: Horizontal padding subtracted from the name budget.
        decision_size: Width and height of a decision diamond.
        decision_label_ratio: Label wrap width as a fraction of step_w.
        decision_font_size: Font size of decision labels.
        decision_line_h: Line height of decision labels.
        decision_label_pad: Padding added to the decision label height.
        decision_gap: Gap after a decision label.
        circle_r: Radius of the start and end markers.
        start_gap: Gap below the start marker.
        loop_off_x: How far error loops extend right of a task box.
        exp_pad_top: Padding above expansion panel content.
        exp_pad_bottom: Padding below expansion panel content.
        exp_label_h: Height of the "hidden sub-actions" label.
        exp_label_gap: Gap below that label.
        exp_action_line_h: Line height of hidden action descriptions.
        exp_action_gap: Gap after each hidden action.
        exp_action_font_size: Font size of hidden action descriptions.
        exp_action_inset: Width subtracted from step_w to wrap actions.
        exp_error_gap: Gap above the error-loop row.
        exp_error_h: Height of the error-loop row.
        block_pad: Padding of block (mini) layouts.
        zone_w: Extra width for estimation zone brackets.
    """

    canvas_pad: float = 36
    phase_gap: float = 28
    phase_pad_x: float = 22
    phase_pad_y: float = 14
    phase_label_h: float = 34
    step_w: float = 480
    step_min_h: float = 56
    step_pad_top: float = 12
    step_pad_bottom: float = 10
    step_name_line_h: float = 17
    step_badge_row_h: float = 22
    step_name_badge_gap: float = 6
    step_gap: float = 14
    step_font_size: float = 12
    id_font_size: float = 10
    id_badge_pad: float = 14
    indicator_w: float = 40
    name_side_pad: float = 32
    decision_size: float = 50
    decision_label_ratio: float = 0.65
    decision_font_size: float = 10
    decision_line_h: float = 13
    decision_label_pad: float = 4
    decision_gap: float = 10
    circle_r: float = 16
    start_gap: float = 18
    loop_off_x: float = 46
    exp_pad_top: float = 10
    exp_pad_bottom: float = 10
    exp_label_h: float = 16
    exp_label_gap: float = 6
    exp_action_line_h: float = 15
    exp_action_gap: float = 4
    exp_action_font_size: float = 11
    exp_action_inset: float = 50
    exp_error_gap: float = 4
    exp_error_h: float = 18
    block_pad: float = 14
    zone_w: float = 54

    @property
    def phase_inner_w(self) -> float:
        """Width of the band content area."""
        return self.step_w + self.phase_pad_x * 2

    @property
    def band_extra(self) -> float:
        """Extra band width reserved for error loops and their label."""
        return self.loop_off_x + 30

    @property
    def band_w(self) -> float:
        return self.phase_inner_w + self.band_extra

    @property
    def full_w(self) -> float:
        """Total diagram width without the zone column."""
        return self.phase_inner_w + self.canvas_pad * 2 + self.band_extra

    @property
    def center_x(self) -> float:
        """X coordinate of the vertical flow line."""
        return self.canvas_pad + self.phase_pad_x + self.step_w / 2


@dataclass(frozen=True)
class Theme:
    """Colour palette used by the renderers."""

    background: str = "#ffffff"
    line: str = "#bdbdbd"
    line_width: float = 1.4
    arrow: str = "#757575"
    error: str = "#C92A2A"
    start: str = "#2B8A3E"
    end: str = "#C92A2A"
    resolved: str = "#2B8A3E"
    resolved_fill: str = "#ebfbee"
    text: str = "#212529"
    muted_text: str = "#9e9e9e"
    decision_text: str = "#424242"
    action_text: str = "#495057"
    hidden: str = "#E67700"
    hidden_fill: str = "#fff3e0"
    expansion_fill: str = "#fffbf0"
    expansion_border: str = "#f0e6cc"
    badge_fill: str = "#f5f5f5"
    badge_text: str = "#666666"
    font_family: str = "system-ui,sans-serif"


DEFAULT_CONFIG = LayoutConfig()
DEFAULT_THEME = Theme()
