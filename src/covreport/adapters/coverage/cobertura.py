"""Cobertura XML parser.

Cobertura is written by coverage.py (``coverage xml``), Coverlet, gcovr,
Istanbul's ``cobertura`` reporter and many others. File names are relative
to the roots listed under ``<sources>``; several ``<class>`` elements may
share a file and are merged.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from covreport.adapters.coverage.base import (
    CoverageParser,
    ParsedFile,
    ParsedReport,
    ReportSource,
    float_attr,
    find_child,
    int_attr,
    local_name,
)

if TYPE_CHECKING:
    from xml.etree.ElementTree import Element as XmlElement

logger = logging.getLogger(__name__)


def _parse_class(class_elem: XmlElement) -> ParsedFile | None:
    """Parse one ``<class>`` element into per-file counts."""
    filename = class_elem.get("filename", "")
    if not filename:
        return None

    covered = 0
    total = 0
    lines_elem = next((c for c in class_elem if local_name(c) == "lines"), None)
    if lines_elem is not None:
        for line in lines_elem:
            if local_name(line) != "line":
                continue
            total += 1
            if int_attr(line, "hits") > 0:
                covered += 1

    percentage = None
    if total == 0:
        line_rate = float_attr(class_elem, "line-rate")
        if line_rate is not None:
            percentage = line_rate * 100.0

    return ParsedFile(path=filename, covered=covered, total=total, percentage=percentage)


class CoberturaParser(CoverageParser):
    """Parser for Cobertura XML reports."""

    @property
    def name(self) -> str:
        return "cobertura"

    def detect(self, source: ReportSource) -> bool:
        root = source.xml_root
        return (
            root is not None
            and local_name(root) == "coverage"
            and find_child(root, "project") is None
        )

    def parse(self, source: ReportSource) -> ParsedReport:
        report = ParsedReport()
        root = source.xml_root
        if root is None:
            return report

        for elem in root.iter():
            tag = local_name(elem)
            if tag == "source" and elem.text and elem.text.strip():
                report.source_roots.append(elem.text.strip())
            elif tag == "class":
                parsed = _parse_class(elem)
                if parsed is not None:
                    report.add_file(parsed)

        line_rate = float_attr(root, "line-rate")
        if line_rate is not None:
            report.overall_percentage = line_rate * 100.0
        else:
            logger.debug("Cobertura report %s has no line-rate; rolling up files", source.path)

        return report
