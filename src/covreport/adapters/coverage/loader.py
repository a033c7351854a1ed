"""Coverage loader: detect a report's format and normalize it into a snapshot.

The loader owns everything between the raw file and ``CoverageSnapshot``:
format detection, making file paths relative to a base path, computing the
identity key of each file, and picking the overall percentage.
"""

from __future__ import annotations

import hashlib
import logging
import posixpath
import re
import time
from pathlib import Path

from covreport.adapters.coverage.base import CoverageParser, ParsedReport, ReportSource
from covreport.adapters.coverage.clover import CloverParser
from covreport.adapters.coverage.cobertura import CoberturaParser
from covreport.adapters.coverage.coverage_py import CoveragePyParser
from covreport.adapters.coverage.jacoco import JaCoCoParser
from covreport.adapters.coverage.lcov import LcovParser
from covreport.models.coverage import CoverageSnapshot, FileCoverage

logger = logging.getLogger(__name__)

_WINDOWS_DRIVE_RE = re.compile(r"^[A-Za-z]:/")

# Clover must be tried before Cobertura: both use a <coverage> root
_PARSERS: tuple[CoverageParser, ...] = (
    CloverParser(),
    CoberturaParser(),
    JaCoCoParser(),
    CoveragePyParser(),
    LcovParser(),
)


def get_parsers() -> tuple[CoverageParser, ...]:
    """Return the registered parsers in detection order."""
    return _PARSERS


def detect_parser(source: ReportSource) -> CoverageParser | None:
    """Return the first parser that recognizes *source*, or None."""
    for parser in _PARSERS:
        if parser.detect(source):
            return parser
    return None


def file_identity(relative_path: str) -> str:
    """Return the stable identity key for a normalized relative path."""
    return hashlib.sha256(relative_path.encode("utf-8")).hexdigest()


def _to_posix(path: str) -> str:
    return path.replace("\\", "/")


def _is_absolute(path: str) -> bool:
    return path.startswith("/") or bool(_WINDOWS_DRIVE_RE.match(path))


def _base_path(report: ParsedReport, workspace: str = "") -> str:
    """Pick the root that file paths are made relative to.

    A declared source root wins. Otherwise the workspace is the root when
    any absolute path sits under it; paths outside it stay absolute. The
    root never depends on which other files a report contains, so head and
    base reports of the same checkout agree on every relative path.
    """
    if report.source_roots:
        return _to_posix(report.source_roots[0]).rstrip("/") or "/"

    root = _to_posix(workspace).rstrip("/")
    if not root:
        return ""
    prefix = root + "/"
    if any(_to_posix(p).startswith(prefix) for p in report.files):
        return root
    return ""


def relative_to_base(path: str, base_path: str) -> str:
    """Make *path* relative to *base_path* using POSIX separators."""
    path = _to_posix(path)
    if base_path:
        prefix = base_path if base_path.endswith("/") else base_path + "/"
        if path.startswith(prefix):
            return posixpath.normpath(path[len(prefix) :])
    if _is_absolute(path):
        return path
    return posixpath.normpath(path)


def normalize_report(
    report: ParsedReport, timestamp: int | None = None, workspace: str = ""
) -> CoverageSnapshot:
    """Normalize a parsed report into a ``CoverageSnapshot``.

    Args:
        report: Parsed report.
        timestamp: Snapshot time in epoch seconds (default: now).
        workspace: Checkout root that absolute file paths are made relative
            to when the report declares no source root.
    """
    base_path = _base_path(report, workspace)
    files: dict[str, FileCoverage] = {}
    covered = 0
    total = 0

    for report_path, parsed in report.files.items():
        relative = relative_to_base(report_path, base_path)
        absolute = posixpath.join(base_path, relative) if base_path else _to_posix(report_path)
        files[file_identity(relative)] = FileCoverage(
            relative_path=relative,
            absolute_path=absolute,
            coverage_percentage=parsed.coverage_percentage,
        )
        covered += parsed.covered
        total += parsed.total

    if report.overall_percentage is not None:
        overall = report.overall_percentage
    elif total:
        overall = (covered / total) * 100.0
    else:
        overall = 100.0

    return CoverageSnapshot(
        overall_percentage=overall,
        timestamp=int(time.time()) if timestamp is None else timestamp,
        base_path=base_path,
        files=files,
    )


def load_coverage(
    path: str | Path, workspace: str | Path | None = None
) -> CoverageSnapshot | None:
    """Load a coverage report file into a ``CoverageSnapshot``.

    Returns None (and logs why) when the file is missing, unreadable, or in
    no recognized format. The caller decides whether that is fatal.

    Args:
        path: Report file.
        workspace: Checkout root for absolute file paths (default: the
            current directory).
    """
    report_path = Path(path)
    if not report_path.is_file():
        logger.warning("Coverage file does not exist: %s", report_path)
        return None

    try:
        text = report_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Failed to read coverage file %s: %s", report_path, e)
        return None

    source = ReportSource(report_path, text)
    parser = detect_parser(source)
    if parser is None:
        logger.error("Unrecognized coverage report format: %s", report_path)
        return None

    logger.info("Parsing %s as %s", report_path, parser.name)
    root = Path.cwd() if workspace is None else Path(workspace)
    snapshot = normalize_report(parser.parse(source), workspace=root.as_posix())
    logger.debug(
        "Loaded %d files from %s (overall %.2f%%)",
        len(snapshot.files),
        report_path,
        snapshot.overall_percentage,
    )
    return snapshot
