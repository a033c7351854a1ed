"""LCOV tracefile parser.

LCOV ``.info`` files come from lcov/geninfo, ``c8``/Istanbul's ``lcov``
reporter, ``cargo llvm-cov --lcov`` and gcovr. Each record starts with
``SF:<path>`` and ends with ``end_of_record``; ``LF``/``LH`` carry the
line totals, ``DA`` lines are used when those are missing.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from covreport.adapters.coverage.base import (
    CoverageParser,
    ParsedFile,
    ParsedReport,
    ReportSource,
)

logger = logging.getLogger(__name__)

# LCOV record keys
_LCOV_SF = "SF"
_LCOV_DA = "DA"
_LCOV_LF = "LF"
_LCOV_LH = "LH"
_LCOV_END = "end_of_record"
_LCOV_DA_PARTS = 2

_RECORD_START_RE = re.compile(r"^\s*SF:", re.MULTILINE)


@dataclass
class _LcovRecordState:
    path: str | None = None
    da: dict[int, int] = field(default_factory=dict)
    lines_found: int | None = None
    lines_hit: int | None = None

    def to_parsed_file(self) -> ParsedFile | None:
        if self.path is None:
            return None
        if self.lines_found is not None:
            total = self.lines_found
            covered = self.lines_hit or 0
        else:
            total = len(self.da)
            covered = sum(1 for count in self.da.values() if count > 0)
        return ParsedFile(path=self.path, covered=covered, total=total)


def _parse_int(value: str) -> int | None:
    try:
        return int(value.strip())
    except ValueError:
        return None


class LcovParser(CoverageParser):
    """Parser for LCOV tracefiles."""

    @property
    def name(self) -> str:
        return "lcov"

    def detect(self, source: ReportSource) -> bool:
        return bool(_RECORD_START_RE.search(source.text)) and _LCOV_END in source.text

    def parse(self, source: ReportSource) -> ParsedReport:
        report = ParsedReport()
        state = _LcovRecordState()

        for raw_line in source.text.splitlines():
            line = raw_line.strip()
            if not line:
                continue
            if line == _LCOV_END:
                self._flush(report, state)
                state = _LcovRecordState()
                continue

            key, _, value = line.partition(":")
            if key == _LCOV_SF:
                self._flush(report, state)
                state = _LcovRecordState(path=value.strip())
            elif key == _LCOV_DA:
                parts = value.split(",")
                if len(parts) >= _LCOV_DA_PARTS:
                    line_no = _parse_int(parts[0])
                    # Some generators emit fractional or "-" counts
                    count = _parse_int(parts[1].split(".")[0]) or 0
                    if line_no is not None:
                        state.da[line_no] = state.da.get(line_no, 0) + count
            elif key == _LCOV_LF:
                state.lines_found = _parse_int(value)
            elif key == _LCOV_LH:
                state.lines_hit = _parse_int(value)

        self._flush(report, state)
        return report

    def _flush(self, report: ParsedReport, state: _LcovRecordState) -> None:
        parsed = state.to_parsed_file()
        if parsed is not None:
            report.add_file(parsed)
