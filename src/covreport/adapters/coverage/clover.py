"""Clover XML parser.

Clover is produced by PHPUnit, Jest/Istanbul (``clover`` reporter), and
OpenClover. Files sit under ``<project>`` either directly or inside
``<package>`` elements, each carrying a ``<metrics>`` summary.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from covreport.adapters.coverage.base import (
    CoverageParser,
    ParsedFile,
    ParsedReport,
    ReportSource,
    find_child,
    find_children,
    int_attr,
    iter_named,
    local_name,
)

if TYPE_CHECKING:
    from xml.etree.ElementTree import Element as XmlElement

logger = logging.getLogger(__name__)


def _metrics_counts(element: XmlElement) -> tuple[int, int] | None:
    """Return (covered, total) statements from the element's ``<metrics>``."""
    metrics = find_child(element, "metrics")
    if metrics is None:
        return None
    return int_attr(metrics, "coveredstatements"), int_attr(metrics, "statements")


def _line_counts(file_elem: XmlElement) -> tuple[int, int]:
    """Count statement lines directly when a file has no ``<metrics>``."""
    covered = 0
    total = 0
    for line in find_children(file_elem, "line"):
        if line.get("type", "stmt") != "stmt":
            continue
        total += 1
        if int_attr(line, "count") > 0:
            covered += 1
    return covered, total


def _parse_file(file_elem: XmlElement) -> ParsedFile | None:
    path = file_elem.get("path") or file_elem.get("name")
    if not path:
        return None
    counts = _metrics_counts(file_elem) or _line_counts(file_elem)
    return ParsedFile(path=path, covered=counts[0], total=counts[1])


class CloverParser(CoverageParser):
    """Parser for Clover XML reports."""

    @property
    def name(self) -> str:
        return "clover"

    def detect(self, source: ReportSource) -> bool:
        root = source.xml_root
        return (
            root is not None
            and local_name(root) == "coverage"
            and find_child(root, "project") is not None
        )

    def parse(self, source: ReportSource) -> ParsedReport:
        report = ParsedReport()
        root = source.xml_root
        if root is None:
            return report
        project = find_child(root, "project")
        if project is None:
            logger.warning("Clover report %s has no <project> element", source.path)
            return report

        for file_elem in iter_named(project, "file"):
            parsed = _parse_file(file_elem)
            if parsed is not None:
                report.add_file(parsed)

        project_counts = _metrics_counts(project)
        if project_counts is not None:
            covered, total = project_counts
            report.overall_percentage = (covered / total) * 100.0 if total else 100.0

        return report
