"""Unit tests for node sizing."""

import dataclasses

import pytest

from procmap.config import DEFAULT_CONFIG
from procmap.models import ErrorLoop, HiddenAction, Step
from procmap.sizing import NodeSizer


class TestSizeTask:
    """Tests for task box sizing."""

    def test_single_line_height(self, sizer):
        """One line of name: padding + line + gap + badge row + padding."""
        size = sizer.size_task(Step(id="1.2", name="Enter the applicant's date of birth"))
        assert size.lines == ["Enter the applicant's date of birth"]
        assert size.name_height == 17
        assert size.height == 12 + 17 + 6 + 22 + 10

    def test_id_width(self, sizer):
        """Badge width follows the id length."""
        size = sizer.size_task(Step(id="1.2", name="x"))
        assert size.id_width == pytest.approx(3 * 10 * 0.57 + 14)

    def test_never_below_minimum(self):
        """Tiny configurations still give the minimum height."""
        config = dataclasses.replace(
            DEFAULT_CONFIG, step_pad_top=0, step_pad_bottom=0, step_badge_row_h=0
        )
        size = NodeSizer(config).size_task(Step(id="A", name="Short"))
        assert size.height == config.step_min_h

    def test_long_name_grows_height(self, sizer):
        """Each extra wrapped line adds one line height."""
        short = sizer.size_task(Step(id="A", name="Read rules"))
        long = sizer.size_task(Step(id="A", name=" ".join(["eligibility"] * 30)))
        assert len(long.lines) > 1
        assert long.height == short.height + (len(long.lines) - 1) * 17

    def test_monotonic_in_name_length(self, sizer):
        """A longer name never gives a shorter box."""
        words = "find the number on the document and enter it in the right format".split()
        heights = [
            sizer.size_task(Step(id="S", name=" ".join(words[:n]))).height
            for n in range(1, len(words) + 1)
        ]
        assert heights == sorted(heights)

    def test_expand_indicator_narrows_budget(self, sizer):
        """Expandable steps reserve room for the indicator."""
        name = "Enter the National ID number in the required format ID-XXXXXX now please"
        plain = sizer.size_task(Step(id="1.3", name=name), content_width=300)
        expandable = sizer.size_task(
            Step(id="1.3", name=name, hidden_actions=[HiddenAction(description="x")]),
            content_width=300,
        )
        assert len(expandable.lines) >= len(plain.lines)


class TestSizeDecision:
    """Tests for decision label sizing."""

    def test_unresolved_label(self, sizer):
        """Label height follows the wrapped name."""
        size = sizer.size_decision(Step(id="D", name="Is the applicant eligible?", is_decision_point=True))
        assert size.lines == ["Is the applicant eligible?"]
        assert size.label_height == 13 + 4

    def test_resolved_uses_two_lines(self, sizer):
        """A resolved decision always reserves two label lines."""
        step = Step(id="D", name="Eligible?", is_decision_point=True, decision_outcome="Yes")
        assert sizer.size_decision(step).label_height == 2 * 13 + 4


class TestSizeExpansion:
    """Tests for expansion panel sizing."""

    def test_no_expansion(self, sizer):
        """Nothing to reveal means no panel."""
        assert sizer.size_expansion(Step(id="A", name="a")) == 0

    def test_hidden_actions_and_error_loop(self, sizer):
        """Label, one line per action and the error row."""
        step = Step(
            id="1.3",
            name="Enter ID",
            hidden_actions=[
                HiddenAction(description="Find the ID number on the license"),
                HiddenAction(description="Understand the required format"),
            ],
            error_loop=ErrorLoop(condition="Format does not match"),
        )
        expected = 10 + (16 + 6) + 2 * (15 + 4) + (4 + 18) + 10
        assert sizer.size_expansion(step) == expected

    def test_error_loop_only(self, sizer):
        """Without hidden actions there is no label."""
        step = Step(id="A", name="a", error_loop=ErrorLoop(condition="Retry"))
        assert sizer.size_expansion(step) == 10 + 4 + 18 + 10

    def test_long_action_wraps(self, sizer):
        """Long action descriptions take several lines."""
        action = HiddenAction(description=" ".join(["cross-reference"] * 20))
        step = Step(id="A", name="a", hidden_actions=[action])
        lines = sizer.wrap_action(action.description)
        assert len(lines) > 1
        assert sizer.size_expansion(step) == 10 + 22 + len(lines) * 15 + 4 + 10
