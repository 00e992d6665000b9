"""
File export functionality for process maps.

This module handles writing rendered process maps to disk:
- SVG files (.svg) - Vector output from SVGRenderer
- PNG images (.png) - Rasterized output from PNGRenderer

The LayoutExporter class picks the renderer from the requested format and
handles file I/O.
"""

from pathlib import Path
from typing import Optional, Sequence, Union

from .config import LayoutConfig, Theme
from .layout import ProcessLayout
from .png_renderer import PNGRenderer
from .renderer import SVGRenderer
from .zones import Zone

FORMATS = ("svg", "png")


class LayoutExporter:
    """
    Exports process map layouts to files.

    Attributes:
        config: Geometry constants passed to the renderers.
        theme: Colours passed to the renderers.
    """

    def __init__(
        self, config: Optional[LayoutConfig] = None, theme: Optional[Theme] = None
    ):
        self.config = config
        self.theme = theme

    def save_svg(
        self,
        layout: ProcessLayout,
        filename: Union[str, Path],
        zones: Optional[Sequence[Zone]] = None,
    ) -> Path:
        """
        Save a layout as an SVG file.

        Args:
            layout: The layout to render.
            filename: Output filename (should end in .svg).
            zones: Estimation zones to bracket, if any.

        Returns:
            Path of the written file.
        """
        renderer = SVGRenderer(config=self.config, theme=self.theme)
        output_path = Path(filename)
        output_path.write_text(renderer.render(layout, zones), encoding="utf-8")
        return output_path

    def save_png(
        self,
        layout: ProcessLayout,
        filename: Union[str, Path],
        scale: int = 2,
        font_path: Optional[str] = None,
        zones: Optional[Sequence[Zone]] = None,
    ) -> Path:
        """
        Save a layout as a PNG image.

        Args:
            layout: The layout to render.
            filename: Output filename (should end in .png).
            scale: Resolution multiplier (default 2 for retina).
            font_path: TrueType font to use instead of the system defaults.
            zones: Estimation zones to bracket on the right.

        Returns:
            Path of the written file.
        """
        renderer = PNGRenderer(
            scale=scale, font_path=font_path, theme=self.theme, config=self.config
        )
        output_path = Path(filename)
        renderer.render(layout, str(output_path), zones)
        return output_path

    def save(
        self,
        layout: ProcessLayout,
        filename: Union[str, Path],
        fmt: Optional[str] = None,
        zones: Optional[Sequence[Zone]] = None,
    ) -> Path:
        """
        Save a layout, choosing the format from fmt or the file extension.

        Raises:
            ValueError: If the format is not "svg" or "png".
        """
        fmt = (fmt or Path(filename).suffix.lstrip(".")).lower()
        if fmt not in FORMATS:
            raise ValueError(
                f"Unknown export format {fmt!r}; expected one of {', '.join(FORMATS)}"
            )
        if fmt == "png":
            return self.save_png(layout, filename, zones=zones)
        return self.save_svg(layout, filename, zones)
