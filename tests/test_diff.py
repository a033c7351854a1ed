"""Tests for the coverage diff engine (analyzers/diff.py)."""

from __future__ import annotations

import pytest

from covreport.adapters.coverage import file_identity
from covreport.analyzers.diff import CoverageDiffer, FailureKind
from covreport.config import ReportInputs
from covreport.models.coverage import CoverageSnapshot, FileCoverage

# ── Helpers ──────────────────────────────────────────────────────


def _snapshot(overall: float, files: dict[str, float]) -> CoverageSnapshot:
    return CoverageSnapshot(
        overall_percentage=overall,
        timestamp=0,
        files={
            file_identity(path): FileCoverage(
                relative_path=path, absolute_path=f"/repo/{path}", coverage_percentage=pct
            )
            for path, pct in files.items()
        },
    )


# ── Alignment ────────────────────────────────────────────────────


class TestAlignment:
    def test_without_baseline(self) -> None:
        head = _snapshot(65.0, {"a.py": 90.0, "b.py": 40.0})
        result = CoverageDiffer(ReportInputs()).diff(head)

        assert not result.has_baseline
        assert result.overall_delta is None
        assert [(r.relative_path, r.head_percentage, r.delta) for r in result.files] == [
            ("a.py", 90.0, None),
            ("b.py", 40.0, None),
        ]
        assert all(row.is_new for row in result.files)
        assert result.failures == []

    def test_new_file_has_no_delta(self) -> None:
        head = _snapshot(80.0, {"a.py": 80.0, "new.py": 10.0})
        base = _snapshot(80.0, {"a.py": 70.0})
        result = CoverageDiffer(ReportInputs(fail_on_negative_difference=True)).diff(head, base)

        rows = {row.relative_path: row for row in result.files}
        assert rows["a.py"].base_percentage == 70.0
        assert rows["a.py"].delta == 10.0
        assert rows["new.py"].base_percentage is None
        assert rows["new.py"].delta is None
        assert result.failures == []

    def test_removed_base_file_is_ignored(self) -> None:
        head = _snapshot(80.0, {"a.py": 80.0})
        base = _snapshot(80.0, {"a.py": 80.0, "gone.py": 0.0})
        result = CoverageDiffer(ReportInputs()).diff(head, base)

        assert [row.relative_path for row in result.files] == ["a.py"]

    def test_delta_is_rounded(self) -> None:
        head = _snapshot(70.0, {"a.py": 66.666666})
        base = _snapshot(70.0, {"a.py": 33.333333})
        result = CoverageDiffer(ReportInputs()).diff(head, base)

        assert result.files[0].delta == 33.33

    def test_zero_baseline_is_a_baseline(self) -> None:
        head = _snapshot(0.0, {"a.py": 10.0})
        base = _snapshot(0.0, {"a.py": 0.0})
        result = CoverageDiffer(ReportInputs()).diff(head, base)

        assert result.has_baseline
        assert result.overall_delta == 0.0
        assert result.files[0].delta == 10.0


# ── Failure policies ─────────────────────────────────────────────


class TestPolicies:
    def test_file_regressions_recorded_for_every_file(self) -> None:
        head = _snapshot(80.0, {"a.py": 70.0, "b.py": 50.0, "c.py": 100.0})
        base = _snapshot(80.0, {"a.py": 75.0, "b.py": 60.0, "c.py": 90.0})
        result = CoverageDiffer(ReportInputs(fail_on_negative_difference=True)).diff(head, base)

        assert [f.message for f in result.failures] == [
            "a.py coverage difference was -5.00%",
            "b.py coverage difference was -10.00%",
        ]
        assert [f.file_path for f in result.failures] == ["a.py", "b.py"]
        assert {f.kind for f in result.failures} == {FailureKind.FILE_REGRESSION}
        assert [row.relative_path for row in result.regressed_files] == ["a.py", "b.py"]

    def test_file_regressions_off_by_default(self) -> None:
        head = _snapshot(80.0, {"a.py": 70.0})
        base = _snapshot(80.0, {"a.py": 75.0})
        result = CoverageDiffer(ReportInputs()).diff(head, base)

        assert not result.failed
        assert len(result.regressed_files) == 1

    def test_overall_regression(self) -> None:
        head = _snapshot(70.0, {"a.py": 70.0})
        base = _snapshot(75.0, {"a.py": 75.0})
        inputs = ReportInputs(fail_on_negative_overall_difference=True)
        result = CoverageDiffer(inputs).diff(head, base)

        assert result.overall_delta == -5.0
        assert [f.message for f in result.failures] == ["Coverage dropped by -5.00%"]
        assert result.failures[0].kind is FailureKind.OVERALL_REGRESSION
        assert result.failures[0].magnitude == -5.0

    def test_overall_gain_does_not_fail(self) -> None:
        head = _snapshot(76.0, {})
        base = _snapshot(75.0, {})
        inputs = ReportInputs(fail_on_negative_overall_difference=True)
        assert not CoverageDiffer(inputs).diff(head, base).failed

    def test_threshold_fires_without_baseline(self) -> None:
        head = _snapshot(40.0, {"a.py": 40.0})
        result = CoverageDiffer(ReportInputs(overall_coverage_fail_threshold=50.0)).diff(head)

        assert result.failed
        (failure,) = result.failures
        assert failure.kind is FailureKind.THRESHOLD
        assert failure.message == (
            "FAIL: Overall coverage of 40.00% below minimum threshold of 50.00%"
        )
        assert failure.magnitude == -10.0

    def test_threshold_boundary_passes(self) -> None:
        head = _snapshot(50.0, {})
        assert not CoverageDiffer(ReportInputs(overall_coverage_fail_threshold=50.0)).diff(
            head
        ).failed

    def test_policies_are_additive(self) -> None:
        head = _snapshot(40.0, {"a.py": 40.0})
        base = _snapshot(60.0, {"a.py": 60.0})
        inputs = ReportInputs(
            overall_coverage_fail_threshold=50.0,
            fail_on_negative_difference=True,
            fail_on_negative_overall_difference=True,
        )
        result = CoverageDiffer(inputs).diff(head, base)

        assert [f.kind for f in result.failures] == [
            FailureKind.FILE_REGRESSION,
            FailureKind.OVERALL_REGRESSION,
            FailureKind.THRESHOLD,
        ]

    @pytest.mark.parametrize("threshold", [0.0, 39.99])
    def test_threshold_not_breached(self, threshold: float) -> None:
        head = _snapshot(40.0, {})
        inputs = ReportInputs(overall_coverage_fail_threshold=threshold)
        assert not CoverageDiffer(inputs).diff(head).failed
