"""
SVG renderer for process map layouts.

Draws a computed ProcessLayout as an SVG document using drawsvg: phase
bands, connector arrows, start/end markers, task boxes (identifier badge,
wrapped name, action-type badges, expand indicator, error loop, expansion
panel), decision diamonds and, optionally, estimation zone brackets.

Every renderer instance owns its id namespace, so several maps (the full
map and any number of block maps) can live on one page without their marker
and filter ids colliding.
"""

import logging
from typing import Mapping, Optional, Sequence, Tuple

import drawsvg as draw

from .config import DEFAULT_CONFIG, DEFAULT_THEME, LayoutConfig, Theme
from .layout import (
    BandElement,
    DecisionElement,
    MarkerElement,
    ProcessLayout,
    TaskElement,
)
from .sizing import NodeSizer
from .text import estimate_width
from .zones import Zone, is_contiguous, zone_extents, zone_letter

logger = logging.getLogger(__name__)


BADGE_H = 18
BADGE_R = 9
BADGE_PAD_X = 7
BADGE_FONT_SIZE = 9
LOOP_R = 14
ARROW_SIZE = 6

STYLE = (
    "<style>"
    ".pm-task{cursor:pointer}"
    ".pm-task:hover>rect:first-child{filter:brightness(.96)}"
    "</style>"
)


def badge_label(action_type: str) -> str:
    """Short badge text: the part after "Category: ", or the whole tag."""
    _, sep, short = action_type.partition(": ")
    return short if sep and short else action_type


class _Markers:
    """Arrow markers and shadow filter of one drawing."""

    def __init__(self, prefix: str, theme: Theme):
        self.arrow = self._arrow(f"{prefix}-arr", theme.arrow)
        self.error_arrow = self._arrow(f"{prefix}-arr-err", theme.error)
        self.shadow = draw.Filter(
            id=f"{prefix}-shd", x="-4%", y="-4%", width="108%", height="112%"
        )
        self.shadow.append(
            draw.FilterItem(
                "feDropShadow", dx=0, dy=1, stdDeviation=2, flood_opacity=0.1
            )
        )

    @staticmethod
    def _arrow(marker_id: str, color: str) -> draw.Marker:
        marker = draw.Marker(
            0,
            0,
            10,
            10,
            scale=ARROW_SIZE / 10,
            orient="auto-start-reverse",
            id=marker_id,
            refX=10,
            refY=5,
        )
        marker.append(draw.Lines(0, 0, 10, 5, 0, 10, close=True, fill=color))
        return marker


class SVGRenderer:
    """
    Renders layouts to SVG.

    Attributes:
        config: Geometry constants (must match the layout engine's).
        theme: Colours.
        id_prefix: Id namespace of full-map drawings.
        action_colors: Optional (background, text) colours per action type.
        last_layout: The layout most recently rendered by this instance.
    """

    def __init__(
        self,
        config: Optional[LayoutConfig] = None,
        theme: Optional[Theme] = None,
        id_prefix: str = "pm",
        action_colors: Optional[Mapping[str, Tuple[str, str]]] = None,
    ):
        self.config = config or DEFAULT_CONFIG
        self.theme = theme or DEFAULT_THEME
        self.id_prefix = id_prefix
        self.action_colors = dict(action_colors or {})
        self.sizer = NodeSizer(self.config)
        self.last_layout: Optional[ProcessLayout] = None
        self._block_counter = 0

    def render(
        self, layout: ProcessLayout, zones: Optional[Sequence[Zone]] = None
    ) -> str:
        """
        Render a full process map.

        Args:
            layout: Layout to draw.
            zones: Estimation zones to bracket on the right, if any.

        Returns:
            The SVG document as a string.
        """
        return self.build(layout, zones).as_svg()

    def render_block(self, layout: ProcessLayout) -> str:
        """Render a block layout under a fresh id namespace."""
        prefix = f"blk{self._block_counter}"
        self._block_counter += 1
        return self.build(layout, id_prefix=prefix).as_svg()

    def build(
        self,
        layout: ProcessLayout,
        zones: Optional[Sequence[Zone]] = None,
        id_prefix: Optional[str] = None,
    ) -> draw.Drawing:
        """Build the drawsvg Drawing for a layout."""
        prefix = id_prefix or self.id_prefix
        width = layout.width + (self.config.zone_w if zones else 0)
        drawing = draw.Drawing(width, layout.height, id_prefix=prefix)
        drawing.append(draw.Raw(STYLE))
        markers = _Markers(prefix, self.theme)

        for band in layout.bands():
            self._draw_band(drawing, band)

        for connector in layout.connectors:
            drawing.append(
                draw.Line(
                    connector.x,
                    connector.y1,
                    connector.x,
                    connector.y2,
                    stroke=self.theme.line,
                    stroke_width=self.theme.line_width,
                    marker_end=markers.arrow,
                )
            )

        for element in layout.flow_elements():
            if isinstance(element, MarkerElement):
                self._draw_marker(drawing, element)
            elif isinstance(element, TaskElement):
                drawing.append(self._task_group(element, markers))
            elif isinstance(element, DecisionElement):
                drawing.append(self._decision_group(element, markers))

        if zones:
            self._draw_zones(drawing, layout, zones)

        self.last_layout = layout
        return drawing

    def _text(
        self, text: str, size: float, x: float, y: float, **kwargs
    ) -> draw.Text:
        kwargs.setdefault("font_family", self.theme.font_family)
        return draw.Text(text, size, x, y, **kwargs)

    def _draw_marker(self, drawing: draw.Drawing, e: MarkerElement) -> None:
        theme = self.theme
        is_end = e.kind == "end"
        color = theme.end if is_end else theme.start
        drawing.append(
            draw.Circle(
                e.x,
                e.y,
                e.r,
                fill=color if is_end else "#fff",
                stroke=color,
                stroke_width=2.5,
            )
        )
        if is_end:
            drawing.append(
                draw.Circle(
                    e.x, e.y, e.r - 4, fill="#fff", stroke=color, stroke_width=1.5
                )
            )
        drawing.append(
            self._text(
                "End" if is_end else "Start",
                10,
                e.x,
                e.y + e.r + 14,
                fill=theme.muted_text,
                text_anchor="middle",
            )
        )

    def _draw_band(self, drawing: draw.Drawing, b: BandElement) -> None:
        cfg = self.config
        color = b.phase.color
        group = draw.Group(class_="pm-band", data_phase_id=b.phase.id)
        group.append(
            draw.Rectangle(
                b.x,
                b.y,
                b.w,
                b.h,
                rx=10,
                fill=color,
                fill_opacity=0.03,
                stroke=color,
                stroke_opacity=0.19,
                stroke_width=1.5,
            )
        )
        group.append(
            draw.Rectangle(b.x, b.y, b.w, cfg.phase_label_h, rx=10, fill=color)
        )
        # Square off the bottom corners of the header
        group.append(
            draw.Rectangle(b.x, b.y + cfg.phase_label_h - 10, b.w, 10, fill=color)
        )
        group.append(
            self._text(
                b.label,
                13,
                b.x + 16,
                b.y + cfg.phase_label_h / 2 + 4,
                fill="#fff",
                font_weight=700,
                dominant_baseline="middle",
            )
        )
        drawing.append(group)

    def _task_group(self, e: TaskElement, markers: _Markers) -> draw.Group:
        cfg = self.config
        step, color = e.step, e.phase.color
        group = draw.Group(
            class_="pm-task", data_step_id=step.id, data_phase_id=e.phase.id
        )

        group.append(
            draw.Rectangle(
                e.x,
                e.y,
                e.w,
                e.h,
                rx=8,
                fill="#fff",
                stroke=color,
                stroke_width=2 if e.expanded else 1.5,
                filter=markers.shadow,
            )
        )

        # Identifier badge
        group.append(
            draw.Rectangle(
                e.x + 10, e.y + 10, e.id_width, 20, rx=4, fill=color, fill_opacity=0.09
            )
        )
        group.append(
            self._text(
                step.id,
                10,
                e.x + 10 + e.id_width / 2,
                e.y + 22,
                fill=color,
                font_weight=700,
                text_anchor="middle",
            )
        )

        # Wrapped name
        name_x = e.x + 10 + e.id_width + 10
        name_y = e.y + cfg.step_pad_top + cfg.step_name_line_h * 0.75
        for i, line in enumerate(e.lines):
            if not line:
                continue
            group.append(
                self._text(
                    line,
                    cfg.step_font_size,
                    name_x,
                    name_y + i * cfg.step_name_line_h,
                    fill=self.theme.text,
                    font_weight=500,
                )
            )

        self._append_badges(group, e)

        if step.has_expansion:
            self._append_indicator(group, e)
        if step.error_loop is not None:
            group.append(self._error_loop(e, markers))
        if e.expanded:
            self._append_expansion(group, e)
        return group

    def _append_badges(self, group: draw.Group, e: TaskElement) -> None:
        cfg = self.config
        badge_y = e.y + cfg.step_pad_top + e.name_height + cfg.step_name_badge_gap
        badge_x = e.x + 10
        for action_type in e.step.action_types:
            fill, text_color = self.action_colors.get(
                action_type, (self.theme.badge_fill, self.theme.badge_text)
            )
            label = badge_label(action_type)
            width = estimate_width(label, BADGE_FONT_SIZE) + BADGE_PAD_X * 2
            group.append(
                draw.Rectangle(
                    badge_x, badge_y, width, BADGE_H, rx=BADGE_R, fill=fill
                )
            )
            group.append(
                self._text(
                    label,
                    BADGE_FONT_SIZE,
                    badge_x + width / 2,
                    badge_y + BADGE_H / 2 + 1,
                    fill=text_color,
                    font_weight=600,
                    text_anchor="middle",
                    dominant_baseline="middle",
                )
            )
            badge_x += width + 4

    def _append_indicator(self, group: draw.Group, e: TaskElement) -> None:
        theme = self.theme
        color = e.phase.color
        x, y = e.x + e.w - 46, e.y + 10
        if e.expanded:
            text, fill, fill_opacity, stroke = "▼", color, 0.09, color
        else:
            count = len(e.step.hidden_actions)
            text, fill, fill_opacity, stroke = (
                f"+{count}",
                theme.hidden_fill,
                1,
                theme.hidden,
            )
        group.append(
            draw.Rectangle(
                x,
                y,
                36,
                20,
                rx=4,
                fill=fill,
                fill_opacity=fill_opacity,
                stroke=stroke,
                stroke_width=0.75,
            )
        )
        group.append(
            self._text(
                text,
                9,
                x + 18,
                y + 12,
                fill=color if e.expanded else theme.hidden,
                font_weight=700,
                text_anchor="middle",
                dominant_baseline="middle",
            )
        )

    def _error_loop(self, e: TaskElement, markers: _Markers) -> draw.Group:
        theme = self.theme
        right = e.x + e.w
        mid = e.y + e.h / 2
        outer = right + self.config.loop_off_x
        top = e.y - 8

        path = draw.Path(
            fill="none",
            stroke=theme.error,
            stroke_width=1.5,
            stroke_dasharray="4,3",
            marker_end=markers.error_arrow,
        )
        path.M(right, mid).L(outer - LOOP_R, mid)
        path.A(LOOP_R, LOOP_R, 0, 0, 0, outer, mid - LOOP_R)
        path.L(outer, top + LOOP_R)
        path.A(LOOP_R, LOOP_R, 0, 0, 0, outer - LOOP_R, top)
        path.L(right + 10, top)

        group = draw.Group(class_="pm-error-loop")
        group.append(path)
        group.append(
            self._text(
                "↻ Retry",
                9,
                outer + 6,
                top + 4,
                fill=theme.error,
                font_weight=600,
                dominant_baseline="middle",
            )
        )
        return group

    def _append_expansion(self, group: draw.Group, e: TaskElement) -> None:
        cfg, theme = self.config, self.theme
        step = e.step
        top = e.y + e.h

        group.append(
            draw.Rectangle(
                e.x + 1,
                top - 1,
                e.w - 2,
                e.expansion_height + 1,
                fill=theme.expansion_fill,
                stroke=theme.expansion_border,
                stroke_width=1,
            )
        )
        group.append(
            draw.Rectangle(
                e.x + 1,
                top,
                3,
                e.expansion_height - 1,
                fill=e.phase.color,
                fill_opacity=0.38,
            )
        )

        y = top + cfg.exp_pad_top
        if step.hidden_actions:
            group.append(
                self._text(
                    "HIDDEN SUB-ACTIONS",
                    10,
                    e.x + 16,
                    y + 10,
                    fill=theme.hidden,
                    font_weight=700,
                    letter_spacing="0.3",
                )
            )
            y += cfg.exp_label_h + cfg.exp_label_gap

            for action in step.hidden_actions:
                group.append(draw.Circle(e.x + 22, y + 6, 2.5, fill=theme.hidden))
                lines = self.sizer.wrap_action(action.description, e.w)
                for i, line in enumerate(lines):
                    group.append(
                        self._text(
                            line,
                            cfg.exp_action_font_size,
                            e.x + 32,
                            y + 10 + i * cfg.exp_action_line_h,
                            fill=theme.action_text,
                        )
                    )
                y += len(lines) * cfg.exp_action_line_h + cfg.exp_action_gap

        if step.error_loop is not None:
            y += cfg.exp_error_gap
            group.append(
                self._text(
                    f"↻ Error loop: {step.error_loop.condition}",
                    11,
                    e.x + 16,
                    y + 10,
                    fill=theme.error,
                    font_weight=500,
                )
            )

    def _decision_group(self, e: DecisionElement, markers: _Markers) -> draw.Group:
        theme = self.theme
        step = e.step
        cx, cy, half = e.x, e.y, e.size / 2
        resolved = step.is_resolved
        color = theme.resolved if resolved else e.phase.color

        group = draw.Group(
            class_="pm-decision", data_step_id=step.id, data_phase_id=e.phase.id
        )
        group.append(
            draw.Lines(
                cx,
                cy - half,
                cx + half,
                cy,
                cx,
                cy + half,
                cx - half,
                cy,
                close=True,
                fill=theme.resolved_fill if resolved else "#fff",
                stroke=color,
                stroke_width=2,
                filter=markers.shadow,
            )
        )
        group.append(
            self._text(
                "✓" if resolved else "?",
                20 if resolved else 18,
                cx,
                cy + 1,
                fill=color,
                font_weight=700,
                text_anchor="middle",
                dominant_baseline="middle",
            )
        )

        label_y = cy + half + 14
        if resolved:
            group.append(
                self._text(
                    "Participants selected:",
                    10,
                    cx,
                    label_y,
                    fill=theme.resolved,
                    font_weight=600,
                    text_anchor="middle",
                )
            )
            group.append(
                self._text(
                    f"“{step.decision_outcome}”",
                    10,
                    cx,
                    label_y + 13,
                    fill=theme.resolved,
                    font_weight=700,
                    font_style="italic",
                    text_anchor="middle",
                )
            )
        else:
            for i, line in enumerate(e.label_lines):
                if not line:
                    continue
                group.append(
                    self._text(
                        line,
                        10,
                        cx,
                        label_y + i * 13,
                        fill=theme.decision_text,
                        font_style="italic",
                        text_anchor="middle",
                    )
                )
        return group

    def _draw_zones(
        self, drawing: draw.Drawing, layout: ProcessLayout, zones: Sequence[Zone]
    ) -> None:
        x = self.config.full_w + 4
        for idx, (zone, extent) in enumerate(zip(zones, zone_extents(layout, zones))):
            if extent is None:
                continue
            if not is_contiguous(layout, zone):
                logger.warning(
                    "Zone %s is not a contiguous run of steps", zone.block_id or idx
                )
            letter = zone_letter(idx)
            stroke = dict(
                stroke=zone.color,
                stroke_width=2.5,
                stroke_linecap="round",
                opacity=0.7,
            )
            top, bottom = extent.top + 2, extent.bottom - 2

            group = draw.Group(class_="pm-zone", data_block_id=zone.block_id)
            group.append(draw.Line(x + 4, top, x + 4, bottom, **stroke))
            group.append(draw.Line(x, top, x + 4, top, **stroke))
            group.append(draw.Line(x, bottom, x + 4, bottom, **stroke))
            group.append(draw.Circle(x + 28, extent.center, 16, fill=zone.color))
            group.append(
                self._text(
                    letter,
                    14,
                    x + 28,
                    extent.center + 1,
                    fill="#fff",
                    font_weight=700,
                    text_anchor="middle",
                    dominant_baseline="middle",
                )
            )
            drawing.append(group)
