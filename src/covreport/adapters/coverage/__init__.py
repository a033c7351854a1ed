"""Coverage report parsers and the snapshot loader."""

from covreport.adapters.coverage.base import (
    CoverageParser,
    ParsedFile,
    ParsedReport,
    ReportSource,
)
from covreport.adapters.coverage.clover import CloverParser
from covreport.adapters.coverage.cobertura import CoberturaParser
from covreport.adapters.coverage.coverage_py import CoveragePyParser
from covreport.adapters.coverage.jacoco import JaCoCoParser
from covreport.adapters.coverage.lcov import LcovParser
from covreport.adapters.coverage.loader import (
    detect_parser,
    file_identity,
    load_coverage,
    normalize_report,
)

__all__ = [
    "CloverParser",
    "CoberturaParser",
    "CoverageParser",
    "CoveragePyParser",
    "JaCoCoParser",
    "LcovParser",
    "ParsedFile",
    "ParsedReport",
    "ReportSource",
    "detect_parser",
    "file_identity",
    "load_coverage",
    "normalize_report",
]
