"""Threshold classification and percentage formatting.

Maps a coverage percentage onto a qualitative tier and renders it for badges
and table cells. The classifier is purely mechanical: misconfigured ceilings
(error above warning) are not rejected, the error ceiling simply wins.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

# ── Constants ────────────────────────────────────────────────────

DEFAULT_WARNING_CEILING = 80.0
DEFAULT_ERROR_CEILING = 50.0

_TWO_PLACES = Decimal("0.01")


class Tier(Enum):
    """Qualitative classification of a coverage percentage."""

    OK = "ok"
    WARNING = "warning"
    ERROR = "error"
    NEUTRAL = "neutral"  # No value, e.g. a file without a baseline


_BADGE_COLORS: dict[Tier, str] = {
    Tier.OK: "green",
    Tier.WARNING: "yellow",
    Tier.ERROR: "red",
    Tier.NEUTRAL: "lightgrey",
}

_MARKERS: dict[Tier, str] = {
    Tier.OK: "🟢",
    Tier.WARNING: "🟡",
    Tier.ERROR: "🔴",
    Tier.NEUTRAL: "⚪",
}


# ── Classification ───────────────────────────────────────────────


def classify(
    value: float | None,
    warning_ceiling: float = DEFAULT_WARNING_CEILING,
    error_ceiling: float = DEFAULT_ERROR_CEILING,
) -> Tier:
    """Classify *value* against the warning and error ceilings.

    Args:
        value: Coverage percentage, or None when there is nothing to classify.
        warning_ceiling: Values below this (and not below the error ceiling)
            are warnings.
        error_ceiling: Values below this are errors.

    Returns:
        The tier for *value*. ``None`` is always ``Tier.NEUTRAL``.
    """
    if value is None:
        return Tier.NEUTRAL
    if value < error_ceiling:
        return Tier.ERROR
    if value < warning_ceiling:
        return Tier.WARNING
    return Tier.OK


def tier_color(tier: Tier) -> str:
    """Return the badge color name for *tier*."""
    return _BADGE_COLORS[tier]


def tier_marker(tier: Tier) -> str:
    """Return the inline marker (emoji) for *tier*."""
    return _MARKERS[tier]


# ── Formatting ───────────────────────────────────────────────────


def round_percentage(value: float) -> float:
    """Round *value* to two decimals, halves away from zero.

    Rounding goes through the shortest decimal repr of the float so that
    ``2.675`` becomes ``2.68`` rather than following binary representation.
    """
    return float(Decimal(repr(value)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


def format_percentage(value: float | None) -> str:
    """Render *value* as ``"12.34%"``; None renders as an empty string."""
    if value is None:
        return ""
    return f"{round_percentage(value):.2f}%"


def colorize_percentage(
    value: float | None,
    warning_ceiling: float = DEFAULT_WARNING_CEILING,
    error_ceiling: float = DEFAULT_ERROR_CEILING,
) -> str:
    """Render *value* prefixed with its tier marker, or blank for None."""
    if value is None:
        return ""
    tier = classify(value, warning_ceiling, error_ceiling)
    return f"{tier_marker(tier)} {format_percentage(value)}"


def badge_color(
    value: float | None,
    warning_ceiling: float = DEFAULT_WARNING_CEILING,
    error_ceiling: float = DEFAULT_ERROR_CEILING,
) -> str:
    """Return the badge color for *value* under the given ceilings."""
    return tier_color(classify(value, warning_ceiling, error_ceiling))
