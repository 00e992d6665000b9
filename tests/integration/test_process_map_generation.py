"""Integration tests for complete process map generation.

These tests cover end-to-end scenarios based on the bundled permit
procedure: load, lay out, interact, reconcile zones and export.
"""

import pytest

from procmap import (
    LayoutEngine,
    ProcessMapSession,
    SVGRenderer,
    load_description,
    reconcile,
    zone_extents,
    zones_from_description,
)


@pytest.fixture
def description(sample_path):
    return load_description(sample_path)


class TestSampleProcess:
    """Integration tests for the bundled sample."""

    def test_full_pipeline(self, description, tmp_path):
        """Load, render both formats and check the pieces are there."""
        session = ProcessMapSession(description)
        svg = session.render_svg()

        assert "Phase 1: Applicant Details" in svg
        assert "Phase 2: Eligibility Assessment" in svg
        assert "Participants selected:" in svg
        assert svg.count('class="pm-zone"') == 3

        assert session.save(tmp_path / "permit.svg").exists()
        assert session.save(tmp_path / "permit.png").exists()

    def test_every_step_drawn_once(self, description):
        """Each step id appears on exactly one element."""
        layout = LayoutEngine().layout(description)
        keys = [e.key for e in layout.step_elements()]
        assert keys == [step.id for _, step in description.iter_steps()]

    def test_interaction_round_trip(self, description):
        """Expanding every expandable step and collapsing again is lossless."""
        session = ProcessMapSession(description)
        original = session.layout()

        expandable = [s.id for _, s in description.iter_steps() if s.has_expansion]
        for step_id in expandable:
            session.toggle(step_id)
        assert session.last_layout.height > original.height

        for step_id in reversed(expandable):
            session.toggle(step_id)
        assert session.last_layout == original


class TestZoneReconciliation:
    """Integration tests for growing zones to fit estimation cards."""

    def test_cards_taller_than_zones(self, description):
        """Every zone ends up at least as tall as its card."""
        layout = LayoutEngine().layout(description)
        zones = zones_from_description(description)
        cards = [extent.height + 90 for extent in zone_extents(layout, zones)]

        result = reconcile(layout, zones, cards)

        for extent, card in zip(zone_extents(result, zones), cards):
            assert extent.height >= card - 1e-6
        assert result.height == pytest.approx(layout.height + 90 * len(zones))
        assert reconcile(result, zones, cards) is result

    def test_zones_stay_ordered_and_disjoint(self, description):
        """Reconciled zones keep their order without overlapping."""
        layout = LayoutEngine().layout(description)
        zones = zones_from_description(description)
        result = reconcile(layout, zones, [300, 200, 150])
        extents = zone_extents(result, zones)
        for above, below in zip(extents, extents[1:]):
            assert above.bottom < below.top

    def test_reconciled_expanded_render(self, description):
        """Reconciled layouts of expanded maps still render."""
        engine = LayoutEngine()
        layout = engine.layout(description, {"1.3", "2.1"})
        zones = zones_from_description(description)
        result = reconcile(layout, zones, [600, 400, 200])
        svg = SVGRenderer().render(result, zones)
        assert "HIDDEN SUB-ACTIONS" in svg
        assert svg.count('class="pm-zone"') == 3


class TestBlockMaps:
    """Integration tests for per-block mini maps next to the full map."""

    def test_blocks_do_not_collide(self, description):
        """One renderer can draw the full map and every block map."""
        session = ProcessMapSession(description)
        documents = [session.render_svg()]
        for phase in description.phases:
            for block in phase.estimation_blocks:
                documents.append(session.render_block(phase.id, block.steps_included))

        assert len(documents) == 4
        assert 'id="pm-arr"' in documents[0]
        assert 'id="blk0-arr"' in documents[1]
