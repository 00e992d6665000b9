"""Unit tests for estimation zones and height reconciliation."""

import dataclasses
import logging

import pytest

from procmap import DEFAULT_CONFIG, LayoutEngine, parse_description
from procmap.zones import (
    Zone,
    ZoneExtent,
    is_contiguous,
    reconcile,
    zone_extents,
    zones_from_description,
)


@pytest.fixture
def layout(engine, permit):
    return engine.layout(permit)


@pytest.fixture
def zones(permit):
    return zones_from_description(permit)


def span(layout, zone):
    (extent,) = zone_extents(layout, [zone])
    return extent.height


class TestZoneExtraction:
    """Tests for building zones and their extents."""

    def test_one_zone_per_block(self, zones):
        """Zones follow phases then blocks."""
        assert [z.block_id for z in zones] == ["personal", "assess", "upload"]
        assert zones[0].step_ids == frozenset({"1.1", "1.2", "1.3"})
        assert zones[1].color == "#E67700"

    def test_extents(self, layout, zones):
        """Extent runs from the first member's top to the last member's bottom."""
        extent = zone_extents(layout, zones)[0]
        assert extent.top == layout.find("1.1").top
        assert extent.bottom == layout.find("1.3").bottom
        assert extent.center == pytest.approx((extent.top + extent.bottom) / 2)

    def test_plain_id_collections(self, layout):
        """Zones can be given as plain iterables of step ids."""
        (extent,) = zone_extents(layout, [["2.3"]])
        assert extent == ZoneExtent(layout.find("2.3").top, layout.find("2.3").bottom)

    def test_unmatched_zone(self, layout):
        """A zone with no known step has no extent."""
        assert zone_extents(layout, [Zone(frozenset({"nope"}))]) == [None]

    def test_contiguity(self, layout):
        """Runs of consecutive steps are contiguous, gaps are not."""
        assert is_contiguous(layout, ["1.1", "1.2", "1.3"])
        assert is_contiguous(layout, ["2.3"])
        assert not is_contiguous(layout, ["1.1", "1.3"])
        assert not is_contiguous(layout, ["nope"])


class TestReconcile:
    """Tests for reconcile."""

    def test_grows_multi_member_zone(self, layout, zones):
        """The zone reaches its minimum and the diagram grows by the deficit."""
        current = span(layout, zones[1])
        required = current + 120
        result = reconcile(layout, zones, [None, required, None])

        assert span(result, zones[1]) == pytest.approx(required)
        assert result.height == pytest.approx(layout.height + 120)

    def test_content_above_untouched(self, layout, zones):
        """Elements above the zone keep their positions."""
        required = span(layout, zones[1]) + 80
        result = reconcile(layout, zones, [None, required])
        for key in ("start", "band:details", "1.1", "1.2", "1.3"):
            assert result.find(key) == layout.find(key)
        assert result.find("2.1") == layout.find("2.1")

    def test_content_below_shifted(self, layout, zones):
        """Everything below the zone moves down by the full deficit."""
        required = span(layout, zones[1]) + 80
        result = reconcile(layout, zones, [None, required])
        assert result.find("2.3").top == pytest.approx(layout.find("2.3").top + 80)
        assert result.find("end").top == pytest.approx(layout.find("end").top + 80)

    def test_band_grows_with_zone(self, layout, zones):
        """The enclosing band stretches; its top stays put."""
        required = span(layout, zones[1]) + 80
        result = reconcile(layout, zones, [None, required])
        before, after = layout.find("band:eligibility"), result.find("band:eligibility")
        assert after.top == before.top
        assert after.h == pytest.approx(before.h + 80)

    def test_single_member_zone_stretches_member(self, layout, zones):
        """A lone task grows itself to fill the minimum."""
        required = span(layout, zones[2]) + 50
        result = reconcile(layout, zones, [None, None, required])
        task = result.find("2.3")
        assert task.top == layout.find("2.3").top
        assert task.h == pytest.approx(layout.find("2.3").h + 50)
        assert span(result, zones[2]) == pytest.approx(required)

    def test_idempotent(self, layout, zones):
        """Reconciling an already reconciled layout changes nothing."""
        heights = [span(layout, z) + 40 for z in zones]
        once = reconcile(layout, zones, heights)
        twice = reconcile(once, zones, heights)
        assert twice is once

    def test_satisfied_zones_return_same_layout(self, layout, zones):
        """Minimums already met leave the layout as is."""
        assert reconcile(layout, zones, [10, 10, 10]) is layout

    def test_never_shrinks(self, layout, zones):
        """Reconciliation only adds space."""
        heights = [span(layout, z) + 25 for z in zones]
        result = reconcile(layout, zones, heights)
        assert result.height >= layout.height
        for zone, required in zip(zones, heights):
            assert span(result, zone) >= required - 1e-6

    def test_flow_order_preserved(self, layout, zones):
        """Elements stay in order and connectors still link edges."""
        heights = [span(layout, z) + 60 for z in zones]
        result = reconcile(layout, zones, heights)
        assert [e.key for e in result.elements] == [e.key for e in layout.elements]
        flow = result.flow_elements()
        for connector, (a, b) in zip(result.connectors, zip(flow, flow[1:])):
            assert connector.y1 == a.bottom
            assert connector.y2 == b.top
            assert b.top > a.bottom

    def test_input_not_modified(self, layout, zones, engine, permit):
        """reconcile returns a new layout."""
        reconcile(layout, zones, [500, 500, 500])
        assert layout == engine.layout(permit)

    def test_skips_empty_and_unknown(self, layout):
        """Unknown zones and missing minimums are ignored."""
        assert reconcile(layout, [["nope"]], [300]) is layout
        assert reconcile(layout, [], []) is layout
        assert reconcile(layout, [["1.1"]], [0]) is layout

    def test_length_mismatch_warns(self, layout, zones, caplog):
        """Mismatched zone and height lists are reported."""
        with caplog.at_level(logging.WARNING, logger="procmap.zones"):
            reconcile(layout, zones, [1])
        assert "minimum heights" in caplog.text

    def test_height_grows_by_sum_of_deficits(self, layout, zones):
        """Total height grows by exactly the deficit of every zone."""
        extras = [70, 0, 35]
        heights = [span(layout, z) + extra for z, extra in zip(zones, extras)]
        deficits = [
            max(0.0, required - span(layout, z)) for z, required in zip(zones, heights)
        ]
        result = reconcile(layout, zones, heights)
        assert result.height == pytest.approx(layout.height + sum(deficits))


class TestTouchingSteps:
    """Tests for zones whose members have no gap between them."""

    @pytest.fixture
    def tight_engine(self):
        return LayoutEngine(dataclasses.replace(DEFAULT_CONFIG, step_gap=0))

    @pytest.fixture
    def tight_layout(self, tight_engine):
        description = parse_description(
            {
                "phases": [
                    {
                        "id": "p",
                        "name": "Tight",
                        "steps": [
                            {"id": "A", "name": "First"},
                            {"id": "B", "name": "Second"},
                            {"id": "C", "name": "Third"},
                        ],
                    }
                ]
            }
        )
        return tight_engine.layout(description)

    def test_members_touch(self, tight_layout):
        """With no step gap one box starts where the previous ends."""
        assert tight_layout.find("B").top == tight_layout.find("A").bottom

    def test_zone_reaches_minimum(self, tight_layout):
        """Touching members are still spread apart."""
        deficit = 400 - span(tight_layout, ["A", "B"])
        result = reconcile(tight_layout, [["A", "B"]], [400])
        assert span(result, ["A", "B"]) == pytest.approx(400)
        assert result.find("A") == tight_layout.find("A")
        assert result.find("C").top == pytest.approx(tight_layout.find("C").top + deficit)

    def test_height_and_idempotence(self, tight_layout):
        """Height grows by the deficit once; a second pass changes nothing."""
        deficit = 400 - span(tight_layout, ["A", "B"])
        once = reconcile(tight_layout, [["A", "B"]], [400])
        assert once.height == pytest.approx(tight_layout.height + deficit)
        assert reconcile(once, [["A", "B"]], [400]) is once

    def test_band_grows(self, tight_layout):
        """The band stretches by the deficit."""
        deficit = 400 - span(tight_layout, ["A", "B"])
        result = reconcile(tight_layout, [["A", "B"]], [400])
        assert result.find("band:p").h == pytest.approx(tight_layout.find("band:p").h + deficit)
