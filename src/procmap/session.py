"""
Rendering session for an interactive process map.

Combines the layout engine, expansion state, zone reconciliation and the SVG
renderer behind one object, the way a page showing the map uses them: lay
out, render, toggle a step, re-lay out, render again.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from .config import DEFAULT_CONFIG, LayoutConfig
from .export import LayoutExporter
from .layout import ExpansionState, LayoutEngine, ProcessLayout
from .models import ProcessDescription
from .renderer import SVGRenderer
from .zones import Zone, ZoneExtent, reconcile, zone_extents, zones_from_description

logger = logging.getLogger(__name__)


class ProcessMapSession:
    """
    Owns everything needed to draw one process map repeatedly.

    Example:
        >>> session = ProcessMapSession(description)
        >>> svg = session.render_svg()
        >>> session.toggle("S3")
        >>> svg = session.render_svg()

    Attributes:
        description: The process being drawn.
        engine: Layout engine.
        expansion: Steps currently expanded.
        zones: Estimation zones, one per estimation block by default.
        renderer: SVG renderer; keeps its own id namespace.
        last_layout: Layout most recently computed by this session.
    """

    def __init__(
        self,
        description: ProcessDescription,
        config: Optional[LayoutConfig] = None,
        renderer: Optional[SVGRenderer] = None,
        zones: Optional[Sequence[Zone]] = None,
        expanded: Iterable[str] = (),
    ):
        self.description = description
        self.config = config or DEFAULT_CONFIG
        self.engine = LayoutEngine(self.config)
        self.expansion = ExpansionState(expanded)
        self.zones: List[Zone] = (
            list(zones) if zones is not None else zones_from_description(description)
        )
        self.renderer = renderer or SVGRenderer(config=self.config)
        self.zone_min_heights: List[Optional[float]] = []
        self.last_layout: Optional[ProcessLayout] = None

    def layout(self) -> ProcessLayout:
        """Lay out the map for the current expansion and zone minimums."""
        result = self.engine.layout(self.description, self.expansion)
        if self.zone_min_heights:
            result = reconcile(result, self.zones, self.zone_min_heights)
        self.last_layout = result
        return result

    def is_expandable(self, step_id: str) -> bool:
        step = self.description.find_step(step_id)
        return step is not None and step.has_expansion

    def toggle(self, step_id: str) -> ProcessLayout:
        """
        Flip the expansion of a step and lay out again.

        Steps without hidden actions or an error loop are left alone.
        """
        if not self.is_expandable(step_id):
            logger.debug("Step %r has nothing to expand", step_id)
            return self.last_layout or self.layout()
        self.expansion.toggle(step_id)
        return self.layout()

    def set_zone_min_heights(self, heights: Sequence[Optional[float]]) -> ProcessLayout:
        """Store measured card heights per zone and lay out again."""
        self.zone_min_heights = list(heights)
        return self.layout()

    def zone_extents(self) -> List[Optional[ZoneExtent]]:
        layout = self.last_layout or self.layout()
        return zone_extents(layout, self.zones)

    def render_svg(self, with_zones: bool = True) -> str:
        """Lay out and render the full map."""
        return self.renderer.render(self.layout(), self.zones if with_zones else None)

    def render_block(self, phase_id: str, step_ids: Iterable[str]) -> str:
        """
        Render the compact map of some steps of one phase.

        Raises:
            KeyError: If the phase does not exist.
        """
        phase = self.description.find_phase(phase_id)
        if phase is None:
            raise KeyError(f"Unknown phase: {phase_id}")
        layout = self.engine.layout_block(phase, step_ids, self.expansion)
        return self.renderer.render_block(layout)

    def save(
        self,
        filename: Union[str, Path],
        fmt: Optional[str] = None,
        with_zones: bool = True,
    ) -> Path:
        """Lay out and write the map to an SVG or PNG file."""
        exporter = LayoutExporter(config=self.config, theme=self.renderer.theme)
        zones = self.zones if with_zones else None
        return exporter.save(self.layout(), filename, fmt=fmt, zones=zones)
