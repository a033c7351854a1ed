"""JaCoCo XML parser.

JaCoCo is the standard coverage tool for JVM projects (Gradle jacoco
plugin, jacoco-maven-plugin). Per-file data lives in ``<sourcefile>``
elements under each ``<package>``; ``LINE`` counters give the totals.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from covreport.adapters.coverage.base import (
    CoverageParser,
    ParsedFile,
    ParsedReport,
    ReportSource,
    find_children,
    int_attr,
    iter_named,
    local_name,
)

if TYPE_CHECKING:
    from xml.etree.ElementTree import Element as XmlElement

logger = logging.getLogger(__name__)


def _line_counter(element: XmlElement) -> tuple[int, int] | None:
    """Return (covered, total) from the element's direct ``LINE`` counter."""
    for counter in find_children(element, "counter"):
        if counter.get("type") == "LINE":
            covered = int_attr(counter, "covered")
            missed = int_attr(counter, "missed")
            return covered, covered + missed
    return None


def _line_elements(sourcefile: XmlElement) -> tuple[int, int]:
    covered = 0
    total = 0
    for line in find_children(sourcefile, "line"):
        if int_attr(line, "mi") + int_attr(line, "ci") == 0:
            continue
        total += 1
        if int_attr(line, "ci") > 0:
            covered += 1
    return covered, total


def _file_path(package_name: str, source_filename: str) -> str:
    if not package_name:
        return source_filename
    return package_name.replace(".", "/") + "/" + source_filename


class JaCoCoParser(CoverageParser):
    """Parser for JaCoCo XML reports."""

    @property
    def name(self) -> str:
        return "jacoco"

    def detect(self, source: ReportSource) -> bool:
        root = source.xml_root
        return root is not None and local_name(root) == "report"

    def parse(self, source: ReportSource) -> ParsedReport:
        report = ParsedReport()
        root = source.xml_root
        if root is None:
            return report

        for package in iter_named(root, "package"):
            package_name = package.get("name", "")
            for sourcefile in find_children(package, "sourcefile"):
                filename = sourcefile.get("name", "")
                if not filename:
                    continue
                covered, total = _line_counter(sourcefile) or _line_elements(sourcefile)
                report.add_file(
                    ParsedFile(
                        path=_file_path(package_name, filename), covered=covered, total=total
                    )
                )

        totals = _line_counter(root)
        if totals is not None:
            covered, total = totals
            report.overall_percentage = (covered / total) * 100.0 if total else 100.0

        return report
