"""
PNG renderer for process map layouts.

Rasterizes a computed ProcessLayout with Pillow. The output follows the SVG
renderer's geometry (bands, connectors, markers, task boxes, expansion
panels, decision diamonds and zone brackets) without the interactive parts.
"""

import math
import os
from typing import Dict, Optional, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFont

from .config import DEFAULT_CONFIG, DEFAULT_THEME, LayoutConfig, Theme
from .layout import (
    BandElement,
    Connector,
    DecisionElement,
    MarkerElement,
    ProcessLayout,
    TaskElement,
)
from .sizing import NodeSizer
from .zones import Zone, zone_extents, zone_letter

RGB = Tuple[int, int, int]

FONT_CANDIDATES = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
    "/usr/share/fonts/truetype/freefont/FreeSans.ttf",
    "/System/Library/Fonts/Helvetica.ttc",
    "C:/Windows/Fonts/arial.ttf",
    "DejaVuSans.ttf",
]


def hex_to_rgb(color: str) -> RGB:
    """Convert "#RRGGBB" to an RGB tuple."""
    value = color.lstrip("#")
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


def tint(color: str, alpha: float, background: str = "#ffffff") -> RGB:
    """Blend color over background with the given opacity."""
    fg = hex_to_rgb(color)
    bg = hex_to_rgb(background)
    return tuple(round(b + (f - b) * alpha) for f, b in zip(fg, bg))


class PNGRenderer:
    """Renders process map layouts as PNG images."""

    def __init__(
        self,
        scale: int = 2,
        font_path: Optional[str] = None,
        theme: Optional[Theme] = None,
        config: Optional[LayoutConfig] = None,
    ):
        self.scale = scale
        self.font_path = font_path
        self.config = config or DEFAULT_CONFIG
        self.theme = theme or DEFAULT_THEME
        self.sizer = NodeSizer(self.config)
        self._fonts: Dict[float, ImageFont.ImageFont] = {}

    def _get_font(self, size: float) -> ImageFont.ImageFont:
        """Get a font for rendering text at the given (unscaled) size."""
        if size in self._fonts:
            return self._fonts[size]

        pixel_size = max(1, round(size * self.scale))
        candidates = [self.font_path] if self.font_path else []
        candidates.extend(FONT_CANDIDATES)

        font = None
        for path in candidates:
            if os.path.isabs(path) and not os.path.exists(path):
                continue
            try:
                font = ImageFont.truetype(path, pixel_size)
                break
            except OSError:
                continue

        if font is None:
            font = ImageFont.load_default(size=pixel_size)

        self._fonts[size] = font
        return font

    def _s(self, value: float) -> float:
        return value * self.scale

    def _box(self, x: float, y: float, w: float, h: float) -> Tuple[float, ...]:
        return (self._s(x), self._s(y), self._s(x + w), self._s(y + h))

    def _text(
        self,
        draw: ImageDraw.ImageDraw,
        x: float,
        y: float,
        text: str,
        size: float,
        fill: str,
        anchor: str = "ls",
    ) -> None:
        if text:
            draw.text(
                (self._s(x), self._s(y)),
                text,
                fill=fill,
                font=self._get_font(size),
                anchor=anchor,
            )

    def render(
        self,
        layout: ProcessLayout,
        output_path: str = "process_map.png",
        zones: Optional[Sequence[Zone]] = None,
    ) -> str:
        """
        Render the layout as a PNG image.

        Args:
            layout: Layout to draw.
            output_path: Path to save the PNG file.
            zones: Estimation zones to bracket on the right; the image is
                widened by the config's zone_w when given.

        Returns:
            Path to the saved PNG file.
        """
        width = layout.width + (self.config.zone_w if zones else 0)
        width = max(1, math.ceil(self._s(width)))
        height = max(1, math.ceil(self._s(layout.height)))
        img = Image.new("RGB", (width, height), self.theme.background)
        draw = ImageDraw.Draw(img)

        for band in layout.bands():
            self._draw_band(draw, band)
        for connector in layout.connectors:
            self._draw_connector(draw, connector)
        for element in layout.flow_elements():
            if isinstance(element, MarkerElement):
                self._draw_marker(draw, element)
            elif isinstance(element, TaskElement):
                self._draw_task(draw, element)
            elif isinstance(element, DecisionElement):
                self._draw_decision(draw, element)
        if zones:
            self._draw_zones(draw, layout, zones)

        img.save(output_path, "PNG", dpi=(72 * self.scale, 72 * self.scale))
        return output_path

    def _draw_band(self, draw: ImageDraw.ImageDraw, b: BandElement) -> None:
        label_h = self.config.phase_label_h
        draw.rounded_rectangle(
            self._box(b.x, b.y, b.w, b.h),
            radius=self._s(10),
            fill=tint(b.phase.color, 0.03),
            outline=tint(b.phase.color, 0.19),
            width=max(1, round(self._s(1.5))),
        )
        draw.rounded_rectangle(
            self._box(b.x, b.y, b.w, label_h),
            radius=self._s(10),
            fill=b.phase.color,
            corners=(True, True, False, False),
        )
        self._text(
            draw,
            b.x + 16,
            b.y + label_h / 2 + 4,
            b.label,
            13,
            "#ffffff",
            anchor="lm",
        )

    def _draw_connector(self, draw: ImageDraw.ImageDraw, c: Connector) -> None:
        draw.line(
            [(self._s(c.x), self._s(c.y1)), (self._s(c.x), self._s(c.y2))],
            fill=self.theme.line,
            width=max(1, round(self._s(self.theme.line_width))),
        )
        self._draw_arrowhead(draw, (c.x, c.y1), (c.x, c.y2), self.theme.arrow)

    def _draw_arrowhead(
        self,
        draw: ImageDraw.ImageDraw,
        from_point: Tuple[float, float],
        to_point: Tuple[float, float],
        color: str,
    ) -> None:
        """Draw an arrowhead at the end of a line."""
        x1, y1 = from_point
        x2, y2 = to_point
        arrow_size = 6

        angle = math.atan2(y2 - y1, x2 - x1)
        angle1 = angle + math.pi * 0.8
        angle2 = angle - math.pi * 0.8

        points = [
            (x2, y2),
            (x2 + arrow_size * math.cos(angle1), y2 + arrow_size * math.sin(angle1)),
            (x2 + arrow_size * math.cos(angle2), y2 + arrow_size * math.sin(angle2)),
        ]
        draw.polygon([(self._s(x), self._s(y)) for x, y in points], fill=color)

    def _draw_marker(self, draw: ImageDraw.ImageDraw, e: MarkerElement) -> None:
        is_end = e.kind == "end"
        color = self.theme.end if is_end else self.theme.start
        draw.ellipse(
            self._box(e.x - e.r, e.y - e.r, e.r * 2, e.r * 2),
            fill=color if is_end else "#ffffff",
            outline=color,
            width=max(1, round(self._s(2.5))),
        )
        if is_end:
            inner = e.r - 4
            draw.ellipse(
                self._box(e.x - inner, e.y - inner, inner * 2, inner * 2),
                fill="#ffffff",
                outline=color,
                width=max(1, round(self._s(1.5))),
            )
        self._text(
            draw,
            e.x,
            e.y + e.r + 14,
            "End" if is_end else "Start",
            10,
            self.theme.muted_text,
            anchor="ms",
        )

    def _draw_task(self, draw: ImageDraw.ImageDraw, e: TaskElement) -> None:
        cfg, theme = self.config, self.theme
        color = e.phase.color

        draw.rounded_rectangle(
            self._box(e.x, e.y, e.w, e.h),
            radius=self._s(8),
            fill="#ffffff",
            outline=color,
            width=max(1, round(self._s(2 if e.expanded else 1.5))),
        )
        draw.rounded_rectangle(
            self._box(e.x + 10, e.y + 10, e.id_width, 20),
            radius=self._s(4),
            fill=tint(color, 0.09),
        )
        self._text(
            draw, e.x + 10 + e.id_width / 2, e.y + 22, e.step.id, 10, color, "ms"
        )

        name_x = e.x + 10 + e.id_width + 10
        name_y = e.y + cfg.step_pad_top + cfg.step_name_line_h * 0.75
        for i, line in enumerate(e.lines):
            self._text(
                draw,
                name_x,
                name_y + i * cfg.step_name_line_h,
                line,
                cfg.step_font_size,
                theme.text,
            )

        if e.step.has_expansion:
            label = "▼" if e.expanded else f"+{len(e.step.hidden_actions)}"
            x, y = e.x + e.w - 46, e.y + 10
            draw.rounded_rectangle(
                self._box(x, y, 36, 20),
                radius=self._s(4),
                fill=theme.hidden_fill,
                outline=theme.hidden,
            )
            self._text(draw, x + 18, y + 10, label, 9, theme.hidden, "mm")

        if e.expanded:
            self._draw_expansion(draw, e)

    def _draw_expansion(self, draw: ImageDraw.ImageDraw, e: TaskElement) -> None:
        cfg, theme = self.config, self.theme
        top = e.y + e.h
        draw.rectangle(
            self._box(e.x + 1, top - 1, e.w - 2, e.expansion_height + 1),
            fill=theme.expansion_fill,
            outline=theme.expansion_border,
        )

        y = top + cfg.exp_pad_top
        if e.step.hidden_actions:
            self._text(draw, e.x + 16, y + 10, "HIDDEN SUB-ACTIONS", 10, theme.hidden)
            y += cfg.exp_label_h + cfg.exp_label_gap
            for action in e.step.hidden_actions:
                r = 2.5
                draw.ellipse(
                    self._box(e.x + 22 - r, y + 6 - r, r * 2, r * 2), fill=theme.hidden
                )
                lines = self.sizer.wrap_action(action.description, e.w)
                for i, line in enumerate(lines):
                    self._text(
                        draw,
                        e.x + 32,
                        y + 10 + i * cfg.exp_action_line_h,
                        line,
                        cfg.exp_action_font_size,
                        theme.action_text,
                    )
                y += len(lines) * cfg.exp_action_line_h + cfg.exp_action_gap

        if e.step.error_loop is not None:
            y += cfg.exp_error_gap
            self._text(
                draw,
                e.x + 16,
                y + 10,
                f"Error loop: {e.step.error_loop.condition}",
                11,
                theme.error,
            )

    def _draw_decision(self, draw: ImageDraw.ImageDraw, e: DecisionElement) -> None:
        theme = self.theme
        cx, cy, half = e.x, e.y, e.size / 2
        resolved = e.step.is_resolved
        color = theme.resolved if resolved else e.phase.color

        points = [(cx, cy - half), (cx + half, cy), (cx, cy + half), (cx - half, cy)]
        draw.polygon(
            [(self._s(x), self._s(y)) for x, y in points],
            fill=theme.resolved_fill if resolved else "#ffffff",
            outline=color,
            width=max(1, round(self._s(2))),
        )
        self._text(draw, cx, cy, "✓" if resolved else "?", 18, color, "mm")

        label_y = cy + half + 14
        if resolved:
            lines = ["Participants selected:", f"“{e.step.decision_outcome}”"]
            fill = theme.resolved
        else:
            lines, fill = e.label_lines, theme.decision_text
        for i, line in enumerate(lines):
            self._text(draw, cx, label_y + i * 13, line, 10, fill, "ms")


    def _draw_zones(
        self, draw: ImageDraw.ImageDraw, layout: ProcessLayout, zones: Sequence[Zone]
    ) -> None:
        x = self.config.full_w + 4
        line_w = max(1, round(self._s(2.5)))
        for idx, (zone, extent) in enumerate(zip(zones, zone_extents(layout, zones))):
            if extent is None:
                continue
            color = tint(zone.color, 0.7)
            top, bottom = extent.top + 2, extent.bottom - 2
            bracket = [(x, top), (x + 4, top), (x + 4, bottom), (x, bottom)]
            draw.line(
                [(self._s(px), self._s(py)) for px, py in bracket],
                fill=color,
                width=line_w,
                joint="curve",
            )
            cx, cy = x + 28, extent.center
            draw.ellipse(self._box(cx - 16, cy - 16, 32, 32), fill=zone.color)
            self._text(draw, cx, cy, zone_letter(idx), 14, "#ffffff", "mm")


def render_to_png(
    layout: ProcessLayout,
    output_path: str = "process_map.png",
    zones: Optional[Sequence[Zone]] = None,
    **kwargs,
) -> str:
    """
    Convenience function to render a layout to PNG.

    Args:
        layout: Layout to draw.
        output_path: Path to save the PNG file.
        zones: Estimation zones to bracket.
        **kwargs: Additional parameters for PNGRenderer.

    Returns:
        Path to the saved PNG file.
    """
    renderer = PNGRenderer(**kwargs)
    return renderer.render(layout, output_path, zones)
