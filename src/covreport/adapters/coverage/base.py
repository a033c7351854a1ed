"""Base classes and data models for coverage report parsers."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from functools import cached_property
from typing import TYPE_CHECKING, Any

from defusedxml import ElementTree
from defusedxml.ElementTree import ParseError as DefusedParseError

if TYPE_CHECKING:
    from pathlib import Path
    from xml.etree.ElementTree import Element as XmlElement

logger = logging.getLogger(__name__)


@dataclass
class ParsedFile:
    """Raw per-file counts as read from a coverage report."""

    path: str
    """File path exactly as the report states it."""

    covered: int = 0
    """Number of covered lines (statements)."""

    total: int = 0
    """Number of coverable lines (statements)."""

    percentage: float | None = None
    """Percentage stated by the report itself, if any (0.0-100.0)."""

    @property
    def coverage_percentage(self) -> float:
        """Return the stated percentage, else covered/total (100.0 when empty)."""
        if self.percentage is not None:
            return self.percentage
        if self.total == 0:
            return 100.0
        return (self.covered / self.total) * 100.0

    def merge(self, other: ParsedFile) -> None:
        """Fold *other* (same path) into this record by summing counts."""
        self.covered += other.covered
        self.total += other.total
        # A stated percentage no longer describes the merged counts
        if self.total:
            self.percentage = None


@dataclass
class ParsedReport:
    """Format-neutral result of parsing a coverage report.

    Every parser (Clover, Cobertura, JaCoCo, coverage.py JSON, LCOV)
    translates its native report into this shape; the loader normalizes it
    into a ``CoverageSnapshot``.
    """

    files: dict[str, ParsedFile] = field(default_factory=dict)
    """Report path to counts, in encounter order."""

    overall_percentage: float | None = None
    """Aggregate percentage from the report's own summary node, if present."""

    source_roots: list[str] = field(default_factory=list)
    """Source roots declared by the report (Cobertura ``<sources>``)."""

    def add_file(self, parsed: ParsedFile) -> None:
        """Add *parsed*, merging with an existing entry for the same path."""
        existing = self.files.get(parsed.path)
        if existing is None:
            self.files[parsed.path] = parsed
        else:
            existing.merge(parsed)


class ReportSource:
    """A coverage report file read into memory, with lazy XML/JSON views."""

    def __init__(self, path: Path, text: str) -> None:
        self.path = path
        self.text = text

    @cached_property
    def xml_root(self) -> XmlElement | None:
        """Return the XML root element, or None when the text is not XML."""
        if not self.text.lstrip().startswith("<"):
            return None
        try:
            root: XmlElement = ElementTree.fromstring(self.text)
        except DefusedParseError as e:
            logger.debug("%s is not well-formed XML: %s", self.path, e)
            return None
        return root

    @cached_property
    def json_data(self) -> Any:
        """Return the decoded JSON document, or None when the text is not JSON."""
        if not self.text.lstrip().startswith("{"):
            return None
        try:
            return json.loads(self.text)
        except json.JSONDecodeError as e:
            logger.debug("%s is not valid JSON: %s", self.path, e)
            return None


class CoverageParser(ABC):
    """Abstract base class for coverage report parsers.

    Each concrete parser recognizes one serialized report format and turns
    it into a ``ParsedReport``.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Format identifier (e.g. 'clover', 'cobertura', 'lcov')."""

    @abstractmethod
    def detect(self, source: ReportSource) -> bool:
        """Return True if *source* is in this parser's format."""

    @abstractmethod
    def parse(self, source: ReportSource) -> ParsedReport:
        """Parse *source* into a ``ParsedReport``."""


# ── Shared XML helpers ───────────────────────────────────────────


def int_attr(element: XmlElement, key: str, default: int = 0) -> int:
    """Read an integer attribute, falling back to *default*."""
    value = element.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def float_attr(element: XmlElement, key: str) -> float | None:
    """Read a float attribute, or None if absent or malformed."""
    value = element.get(key)
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def local_name(elem: XmlElement) -> str:
    """Return the tag name without any XML namespace."""
    return elem.tag.split("}")[-1] if "}" in elem.tag else elem.tag


def find_children(elem: XmlElement, name: str) -> list[XmlElement]:
    """Return the direct children named *name*, ignoring namespaces."""
    return [child for child in elem if local_name(child) == name]


def find_child(elem: XmlElement, name: str) -> XmlElement | None:
    """Return the first direct child named *name*, ignoring namespaces."""
    return next((child for child in elem if local_name(child) == name), None)


def iter_named(elem: XmlElement, name: str) -> list[XmlElement]:
    """Return every descendant named *name* in document order, ignoring namespaces."""
    return [node for node in elem.iter() if node is not elem and local_name(node) == name]
