"""
Estimation zones and zone height reconciliation.

A zone is the contiguous run of step elements belonging to one estimation
block. External content (an estimation card) is drawn next to each zone, and
once the cards have been measured the layout may need to grow so that every
zone is at least as tall as its card. reconcile() does that by adding spacing
inside and below each zone, moving everything further down the diagram.

Classes:
    Zone: Step ids of one estimation block plus display attributes.
    ZoneExtent: Vertical extent of a zone in a computed layout.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import networkx as nx

from .layout import LayoutElement, ProcessLayout, StepElement, flow_graph
from .models import ProcessDescription

logger = logging.getLogger(__name__)

# Spans within this distance of the minimum count as satisfied
SPAN_TOLERANCE = 1e-6

ZONE_LETTERS = "ABCDEFGHIJ"


@dataclass(frozen=True)
class Zone:
    """
    Steps of one estimation block.

    Attributes:
        step_ids: Identifiers of the member steps.
        block_id: Estimation block identifier.
        label: Estimation block label.
        color: Colour of the zone bracket (the phase colour).
    """

    step_ids: frozenset
    block_id: str = ""
    label: str = ""
    color: str = "#1864AB"


def zone_letter(index: int) -> str:
    """Badge text for the zone at index: a letter, then numbers past J."""
    return ZONE_LETTERS[index] if index < len(ZONE_LETTERS) else str(index + 1)


@dataclass(frozen=True)
class ZoneExtent:
    """Where a zone sits in a layout, used to position external cards."""

    top: float
    bottom: float

    @property
    def center(self) -> float:
        return (self.top + self.bottom) / 2

    @property
    def height(self) -> float:
        return self.bottom - self.top


ZoneLike = Union[Zone, Iterable[str]]


def zones_from_description(description: ProcessDescription) -> List[Zone]:
    """One zone per estimation block, in phase then block order."""
    zones = []
    for phase in description.phases:
        for block in phase.estimation_blocks:
            zones.append(
                Zone(
                    step_ids=frozenset(block.steps_included),
                    block_id=block.id,
                    label=block.label,
                    color=phase.color,
                )
            )
    return zones


def _members(zone: ZoneLike) -> frozenset:
    if isinstance(zone, Zone):
        return zone.step_ids
    return frozenset(zone)


def zone_elements(layout: ProcessLayout, zone: ZoneLike) -> List[StepElement]:
    """Step elements of a zone, sorted by their top edge."""
    members = _members(zone)
    found = [e for e in layout.step_elements() if e.key in members]
    return sorted(found, key=lambda e: e.top)


def zone_extents(
    layout: ProcessLayout, zones: Sequence[ZoneLike]
) -> List[Optional[ZoneExtent]]:
    """
    Compute the vertical extent of each zone.

    Returns:
        One entry per zone; None where the zone matches no element.
    """
    extents: List[Optional[ZoneExtent]] = []
    for zone in zones:
        elements = zone_elements(layout, zone)
        if not elements:
            extents.append(None)
            continue
        extents.append(
            ZoneExtent(
                top=min(e.top for e in elements),
                bottom=max(e.bottom for e in elements),
            )
        )
    return extents


def is_contiguous(layout: ProcessLayout, zone: ZoneLike) -> bool:
    """Whether the zone's elements form a single run in flow order."""
    members = _members(zone)
    flow = layout.flow_elements()
    positions = [i for i, e in enumerate(flow) if e.key in members]
    if len(positions) <= 1:
        return bool(positions)
    graph = flow_graph(layout.elements)
    return nx.is_weakly_connected(graph.subgraph(positions))


def _boundaries(
    elements: List[LayoutElement], members: List[StepElement], delta: float
) -> List[Tuple[int, float]]:
    """
    (element index, cumulative shift) pairs for one zone.

    The extra space is spread evenly over the gaps between consecutive zone
    members; everything after the last member moves by the full delta.
    Positions come from flow order, so touching elements are handled the same
    as separated ones.
    """
    keys = {m.key for m in members}
    indices = [
        i
        for i, e in enumerate(elements)
        if e.kind in ("task", "decision") and e.key in keys
    ]
    count = len(indices)
    gap_extra = delta / (count - 1) if count > 1 else 0.0
    boundaries = [(index, (i + 1) * gap_extra) for i, index in enumerate(indices[:-1])]
    boundaries.append((indices[-1], delta))
    return boundaries


def _shift_after(position: int, boundaries: List[Tuple[int, float]]) -> float:
    """Largest cumulative shift of the members at or before position."""
    shift = 0.0
    for index, cumulative in boundaries:
        if index <= position:
            shift = max(shift, cumulative)
    return shift


def _phase_end(elements: List[LayoutElement], band_index: int) -> int:
    """Index of the last element drawn inside the band at band_index."""
    end = band_index
    for k in range(band_index + 1, len(elements)):
        if elements[k].kind in ("band", "end"):
            break
        end = k
    return end


def _apply_boundaries(
    elements: List[LayoutElement], boundaries: List[Tuple[int, float]]
) -> List[LayoutElement]:
    result = []
    for position, element in enumerate(elements):
        if element.kind == "band":
            # Top and bottom edges move independently so the band also grows
            top_shift = _shift_after(position - 1, boundaries)
            bottom_shift = _shift_after(_phase_end(elements, position), boundaries)
            if top_shift or bottom_shift:
                element = element.shifted(top_shift, grow=bottom_shift - top_shift)
        else:
            shift = _shift_after(position - 1, boundaries)
            if shift > 0:
                element = element.shifted(shift)
        result.append(element)
    return result


def reconcile(
    layout: ProcessLayout,
    zones: Sequence[ZoneLike],
    min_heights: Sequence[Optional[float]],
) -> ProcessLayout:
    """
    Grow the layout so every zone spans at least its minimum height.

    Zones are processed in order, each on the layout already shifted by the
    previous ones. The input layout is not modified.

    Args:
        layout: Layout from the layout engine (or a previous reconcile).
        zones: Zones, or plain collections of step ids.
        min_heights: Minimum pixel span per zone; None or <= 0 skips a zone.

    Returns:
        A new layout, or the same layout when every zone already fits.
    """
    if not zones or not min_heights:
        return layout
    if len(zones) != len(min_heights):
        logger.warning(
            "Got %d zones but %d minimum heights; extra entries are ignored",
            len(zones),
            len(min_heights),
        )

    elements: List[LayoutElement] = list(layout.elements)
    height = layout.height
    changed = False

    for index, (zone, required) in enumerate(zip(zones, min_heights)):
        if not required or required <= 0:
            continue

        current = ProcessLayout(elements=elements)
        members = zone_elements(current, zone)
        if not members:
            logger.debug("Zone %d matches no layout element, skipping", index)
            continue

        span = members[-1].bottom - members[0].top
        if span >= required - SPAN_TOLERANCE:
            continue

        delta = required - span
        boundaries = _boundaries(elements, members, delta)
        elements = _apply_boundaries(elements, boundaries)

        if len(members) == 1:
            # A lone member has no inner gap to widen, so it grows itself
            key = members[0].key
            elements = [
                e.stretched(delta)
                if e.kind in ("task", "decision") and e.key == key
                else e
                for e in elements
            ]

        height += delta
        changed = True
        logger.debug("Zone %d grown by %.1fpx to %.1fpx", index, delta, required)

    if not changed:
        return layout
    return layout.with_elements(elements, height)
