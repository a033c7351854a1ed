"""Data models shared across covreport."""

from covreport.models.coverage import CoverageSnapshot, FileCoverage
from covreport.models.report import RenderedReport

__all__ = [
    "CoverageSnapshot",
    "FileCoverage",
    "RenderedReport",
]
