"""Badge image URL builders."""

from __future__ import annotations

from abc import ABC, abstractmethod
from urllib.parse import quote

SHIELDS_BADGE_URL = "https://img.shields.io/badge"


class BadgeURLBuilder(ABC):
    """Builds the URL of a static badge image."""

    @abstractmethod
    def build(self, label: str, message: str, color: str, *, style: str = "flat") -> str:
        """Return the image URL for a badge.

        Args:
            label: Left-hand text (e.g. "Code Coverage").
            message: Right-hand text (e.g. "81.25%").
            color: Color name for the message side.
            style: Badge style ("flat", "for-the-badge", ...).
        """


def _escape_shields(text: str) -> str:
    """Escape text for a shields.io static badge path segment.

    Dashes and underscores are separators in the path, so literal ones are
    doubled before percent-encoding.
    """
    return quote(text.replace("-", "--").replace("_", "__"), safe="")


class ShieldsBadgeBuilder(BadgeURLBuilder):
    """Static badges served by shields.io."""

    def __init__(self, base_url: str = SHIELDS_BADGE_URL) -> None:
        self._base_url = base_url.rstrip("/")

    def build(self, label: str, message: str, color: str, *, style: str = "flat") -> str:
        path = "-".join(_escape_shields(part) for part in (label, message, color))
        return f"{self._base_url}/{path}?style={quote(style, safe='')}"
