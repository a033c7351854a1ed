"""Tests for threshold classification and percentage formatting."""

from __future__ import annotations

import pytest

from covreport.analyzers.threshold import (
    Tier,
    badge_color,
    classify,
    colorize_percentage,
    format_percentage,
    round_percentage,
    tier_color,
    tier_marker,
)

# ── classify ─────────────────────────────────────────────────────


class TestClassify:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (0.0, Tier.ERROR),
            (49.99, Tier.ERROR),
            (50.0, Tier.WARNING),
            (79.99, Tier.WARNING),
            (80.0, Tier.OK),
            (100.0, Tier.OK),
        ],
    )
    def test_default_ceilings(self, value: float, expected: Tier) -> None:
        assert classify(value) is expected

    def test_boundaries_are_not_the_lower_tier(self) -> None:
        assert classify(50.0, 80.0, 50.0) is not Tier.ERROR
        assert classify(80.0, 80.0, 50.0) is not Tier.WARNING

    def test_none_is_neutral(self) -> None:
        assert classify(None) is Tier.NEUTRAL
        assert classify(None, 10.0, 5.0) is Tier.NEUTRAL

    def test_custom_ceilings(self) -> None:
        assert classify(60.0, 90.0, 70.0) is Tier.ERROR
        assert classify(75.0, 90.0, 70.0) is Tier.WARNING
        assert classify(95.0, 90.0, 70.0) is Tier.OK

    def test_misconfigured_ceilings_error_wins(self) -> None:
        # error ceiling above warning ceiling: nothing is ever a warning
        assert classify(60.0, 50.0, 70.0) is Tier.ERROR
        assert classify(70.0, 50.0, 70.0) is Tier.OK

    def test_negative_values_classify(self) -> None:
        # Deltas go through the same classifier
        assert classify(-5.0) is Tier.ERROR

    def test_tier_presentation(self) -> None:
        assert tier_color(Tier.OK) == "green"
        assert tier_color(Tier.WARNING) == "yellow"
        assert tier_color(Tier.ERROR) == "red"
        assert tier_color(Tier.NEUTRAL) == "lightgrey"
        assert {tier_marker(t) for t in Tier} == {"🟢", "🟡", "🔴", "⚪"}


# ── Formatting ───────────────────────────────────────────────────


class TestFormatting:
    def test_round_percentage_half_up(self) -> None:
        assert round_percentage(2.675) == 2.68
        assert round_percentage(-2.675) == -2.68
        assert round_percentage(66.66666) == 66.67

    def test_format_percentage(self) -> None:
        assert format_percentage(85.5) == "85.50%"
        assert format_percentage(100.0) == "100.00%"
        assert format_percentage(-5.0) == "-5.00%"
        assert format_percentage(None) == ""

    def test_colorize_percentage(self) -> None:
        assert colorize_percentage(90.0, 80.0, 50.0) == "🟢 90.00%"
        assert colorize_percentage(60.0, 80.0, 50.0) == "🟡 60.00%"
        assert colorize_percentage(40.0, 80.0, 50.0) == "🔴 40.00%"
        assert colorize_percentage(None) == ""

    def test_badge_color(self) -> None:
        assert badge_color(90.0) == "green"
        assert badge_color(65.0, 70.0, 60.0) == "yellow"
        assert badge_color(None) == "lightgrey"
