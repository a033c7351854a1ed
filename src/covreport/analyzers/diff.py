"""Coverage diff engine: align head and base snapshots and apply failure policies.

Files are joined on their identity key, never on the relative path string,
so a file renamed between runs shows up as new. Failure policies are
fail-at-end: every policy is evaluated, every failure is recorded, and
nothing here raises on a regression.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from covreport.analyzers.threshold import format_percentage, round_percentage

if TYPE_CHECKING:
    from covreport.config import ReportInputs
    from covreport.models.coverage import CoverageSnapshot

logger = logging.getLogger(__name__)


class FailureKind(Enum):
    """Which policy produced a failure signal."""

    FILE_REGRESSION = "file_regression"
    OVERALL_REGRESSION = "overall_regression"
    THRESHOLD = "threshold"


@dataclass
class FailureSignal:
    """A recorded policy failure; the run keeps going after it."""

    kind: FailureKind
    message: str
    magnitude: float
    """Negative delta for regressions, shortfall below threshold otherwise."""

    file_path: str | None = None
    """Relative path of the regressed file (file regressions only)."""


@dataclass
class FileDelta:
    """One row of the comparison: a head file and its baseline, if any."""

    key: str
    relative_path: str
    head_percentage: float
    base_percentage: float | None = None
    delta: float | None = None

    @property
    def is_new(self) -> bool:
        """Return True if the file has no baseline counterpart."""
        return self.base_percentage is None


@dataclass
class DiffResult:
    """Outcome of comparing a head snapshot with an optional baseline."""

    files: list[FileDelta] = field(default_factory=list)
    """Rows in head insertion order."""

    head_overall: float = 0.0
    base_overall: float | None = None
    overall_delta: float | None = None

    failures: list[FailureSignal] = field(default_factory=list)

    @property
    def has_baseline(self) -> bool:
        """Return True if a base snapshot took part in the comparison."""
        return self.base_overall is not None

    @property
    def failed(self) -> bool:
        """Return True if any policy fired."""
        return bool(self.failures)

    @property
    def regressed_files(self) -> list[FileDelta]:
        """Return rows whose coverage decreased against the baseline."""
        return [row for row in self.files if row.delta is not None and row.delta < 0]


class CoverageDiffer:
    """Compares snapshots and evaluates the configured failure policies."""

    def __init__(self, inputs: ReportInputs) -> None:
        self._inputs = inputs

    def diff(self, head: CoverageSnapshot, base: CoverageSnapshot | None = None) -> DiffResult:
        """Compare *head* against *base* and collect failure signals.

        Args:
            head: Snapshot of the pull request head.
            base: Baseline snapshot, or None when no baseline was available.

        Returns:
            DiffResult with per-file rows, overall delta, and failures.
        """
        result = DiffResult(
            files=self._align(head, base),
            head_overall=head.overall_percentage,
        )

        if base is not None:
            result.base_overall = base.overall_percentage
            result.overall_delta = round_percentage(
                head.overall_percentage - base.overall_percentage
            )
            self._check_file_regressions(result)
            self._check_overall_regression(result)

        self._check_threshold(result)

        if result.failures:
            logger.info("%d coverage policy failure(s) recorded", len(result.failures))
        return result

    def _align(self, head: CoverageSnapshot, base: CoverageSnapshot | None) -> list[FileDelta]:
        rows: list[FileDelta] = []
        for key, file in head.files.items():
            row = FileDelta(
                key=key,
                relative_path=file.relative_path,
                head_percentage=file.coverage_percentage,
            )
            base_file = base.get(key) if base is not None else None
            if base_file is not None:
                row.base_percentage = base_file.coverage_percentage
                row.delta = round_percentage(
                    file.coverage_percentage - base_file.coverage_percentage
                )
            rows.append(row)
        return rows

    def _check_file_regressions(self, result: DiffResult) -> None:
        if not self._inputs.fail_on_negative_difference:
            return
        for row in result.files:
            if row.delta is None or row.delta >= 0:
                continue
            result.failures.append(
                FailureSignal(
                    kind=FailureKind.FILE_REGRESSION,
                    message=f"{row.relative_path} coverage difference was "
                    f"{format_percentage(row.delta)}",
                    magnitude=row.delta,
                    file_path=row.relative_path,
                )
            )

    def _check_overall_regression(self, result: DiffResult) -> None:
        if not self._inputs.fail_on_negative_overall_difference:
            return
        delta = result.overall_delta
        if delta is not None and delta < 0:
            result.failures.append(
                FailureSignal(
                    kind=FailureKind.OVERALL_REGRESSION,
                    message=f"Coverage dropped by {format_percentage(delta)}",
                    magnitude=delta,
                )
            )

    def _check_threshold(self, result: DiffResult) -> None:
        threshold = self._inputs.overall_coverage_fail_threshold
        if result.head_overall < threshold:
            result.failures.append(
                FailureSignal(
                    kind=FailureKind.THRESHOLD,
                    message=f"FAIL: Overall coverage of {format_percentage(result.head_overall)} "
                    f"below minimum threshold of {format_percentage(threshold)}",
                    magnitude=round_percentage(result.head_overall - threshold),
                )
            )
