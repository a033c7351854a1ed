"""Coverage.py JSON parser.

Reads the report written by ``coverage json`` / ``pytest --cov-report=json``::

    {
      "meta": {"version": "7.x.x", "timestamp": "...", "branch_coverage": true},
      "files": {
        "src/example.py": {
          "executed_lines": [1, 2, 5, 6],
          "missing_lines": [3, 4],
          "summary": {"covered_lines": 4, "num_statements": 6, "percent_covered": 66.67}
        }
      },
      "totals": {"covered_lines": 4, "num_statements": 6, "percent_covered": 66.67}
    }
"""

from __future__ import annotations

import logging
from typing import Any

from covreport.adapters.coverage.base import (
    CoverageParser,
    ParsedFile,
    ParsedReport,
    ReportSource,
)

logger = logging.getLogger(__name__)


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _parse_file(file_path: str, data: dict[str, Any]) -> ParsedFile:
    summary = data.get("summary", {})
    if not isinstance(summary, dict):
        summary = {}

    if "num_statements" in summary:
        covered = int(summary.get("covered_lines", 0))
        total = int(summary.get("num_statements", 0))
    else:
        executed = set(data.get("executed_lines", []))
        missing = set(data.get("missing_lines", []))
        covered = len(executed)
        total = len(executed | missing)

    return ParsedFile(
        path=file_path,
        covered=covered,
        total=total,
        percentage=_as_float(summary.get("percent_covered")),
    )


class CoveragePyParser(CoverageParser):
    """Parser for coverage.py JSON reports."""

    @property
    def name(self) -> str:
        return "coverage.py"

    def detect(self, source: ReportSource) -> bool:
        data = source.json_data
        return (
            isinstance(data, dict)
            and isinstance(data.get("files"), dict)
            and ("totals" in data or "meta" in data)
        )

    def parse(self, source: ReportSource) -> ParsedReport:
        report = ParsedReport()
        data = source.json_data
        if not isinstance(data, dict):
            return report

        for file_path, file_data in data.get("files", {}).items():
            if isinstance(file_data, dict):
                report.add_file(_parse_file(file_path, file_data))

        totals = data.get("totals", {})
        if isinstance(totals, dict):
            report.overall_percentage = _as_float(totals.get("percent_covered"))

        return report
