"""
procmap - Interactive process map diagrams

A Python library for laying out and rendering vertical process maps: phases
of sequential steps drawn as task boxes and decision diamonds, expandable
hidden sub-actions, and estimation zones that can be grown to fit external
content. Also ships the permuted block randomizer used to assign study
participants to the detailed or simple map.

Example:
    >>> from procmap import ProcessMapSession, load_description
    >>> session = ProcessMapSession(load_description("permit.json"))
    >>> svg = session.render_svg()
    >>> session.toggle("S3")
    >>> svg = session.render_svg()

Randomization Example:
    >>> from procmap import Assignment, BlockRandomizer
    >>> randomizer = BlockRandomizer()
    >>> log = []
    >>> log.append(Assignment(randomizer.assign(log)))
"""

from .config import DEFAULT_CONFIG, DEFAULT_THEME, LayoutConfig, Theme
from .export import LayoutExporter
from .layout import (
    BandElement,
    Connector,
    DecisionElement,
    ExpansionState,
    LayoutEngine,
    MarkerElement,
    ProcessLayout,
    TaskElement,
)
from .models import (
    ErrorLoop,
    EstimationBlock,
    HiddenAction,
    Phase,
    ProcessDescription,
    Step,
)
from .parser import ProcessDescriptionError, load_description, parse_description
from .png_renderer import PNGRenderer, render_to_png
from .randomizer import Assignment, BlockRandomizer
from .renderer import SVGRenderer
from .session import ProcessMapSession
from .sizing import NodeSizer
from .text import estimate_width, wrap
from .zones import Zone, ZoneExtent, reconcile, zone_extents, zones_from_description

__version__ = "0.1.0"

__all__ = [
    # Main API
    "ProcessMapSession",
    # Description
    "ProcessDescription",
    "Phase",
    "Step",
    "HiddenAction",
    "ErrorLoop",
    "EstimationBlock",
    "parse_description",
    "load_description",
    "ProcessDescriptionError",
    # Text and sizing
    "estimate_width",
    "wrap",
    "NodeSizer",
    # Layout
    "LayoutConfig",
    "DEFAULT_CONFIG",
    "LayoutEngine",
    "ExpansionState",
    "ProcessLayout",
    "MarkerElement",
    "TaskElement",
    "DecisionElement",
    "BandElement",
    "Connector",
    # Zones
    "Zone",
    "ZoneExtent",
    "zones_from_description",
    "zone_extents",
    "reconcile",
    # Rendering
    "Theme",
    "DEFAULT_THEME",
    "SVGRenderer",
    "PNGRenderer",
    "render_to_png",
    "LayoutExporter",
    # Randomization
    "BlockRandomizer",
    "Assignment",
]
