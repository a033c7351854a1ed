"""Tests for the Markdown report renderer (reporters/markdown.py)."""

from __future__ import annotations

import re

import pytest

from covreport.adapters.coverage import file_identity
from covreport.analyzers.diff import CoverageDiffer
from covreport.analyzers.threshold import round_percentage
from covreport.config import ReportInputs
from covreport.models.coverage import CoverageSnapshot, FileCoverage
from covreport.reporters.badge import BadgeURLBuilder
from covreport.reporters.markdown import REPORT_HEADING, markdown_table, render

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


def _render(
    head: CoverageSnapshot, base: CoverageSnapshot | None, inputs: ReportInputs | None = None
) -> str:
    inputs = inputs or ReportInputs()
    diff = CoverageDiffer(inputs).diff(head, base)
    return render(head, base, diff, inputs).text


def _table_rows(text: str, first_header: str) -> list[list[str]]:
    """Parse the Markdown table whose header starts with *first_header*."""
    lines = text.splitlines()
    start = next(i for i, line in enumerate(lines) if line.startswith(f"| {first_header} |"))
    rows = []
    for line in lines[start + 2 :]:
        if not line.startswith("|"):
            break
        cells = re.split(r"(?<!\\)\|", line.strip())[1:-1]
        rows.append([cell.strip().replace("\\|", "|") for cell in cells])
    return rows


class _RecordingBadges(BadgeURLBuilder):
    def __init__(self) -> None:
        self.calls: list[tuple[str, str, str, str]] = []

    def build(self, label: str, message: str, color: str, *, style: str = "flat") -> str:
        self.calls.append((label, message, color, style))
        return f"badge://{label}/{message}/{color}/{style}"


# ── Structure ────────────────────────────────────────────────────


class TestSections:
    def test_section_order_with_everything_enabled(self) -> None:
        head = _snapshot(85.0, {"a.py": 85.0})
        inputs = ReportInputs(badge=True, overall_coverage_fail_threshold=60.0)
        diff = CoverageDiffer(inputs).diff(head)
        report = render(head, None, diff, inputs)

        assert report.sections[0] == f"# {REPORT_HEADING}"
        assert report.sections[1].startswith("![Code Coverage](")
        assert report.sections[2].startswith("|  |  |")
        assert report.sections[3].startswith("| Package | Coverage |")
        assert report.sections[4] == (
            "_Minimum allowed coverage is `60.00%`, this run produced `85.00%`_"
        )
        assert report.text == "\n\n".join(report.sections) + "\n"
        assert report.output_file_path == "code-coverage-results.md"
        assert report.overall_coverage_percentage == 85.0

    def test_optional_sections_disabled(self) -> None:
        head = _snapshot(85.0, {"a.py": 85.0})
        inputs = ReportInputs(report_overall_coverage=False, report_package_coverage=False)
        diff = CoverageDiffer(inputs).diff(head)
        report = render(head, None, diff, inputs)

        assert len(report.sections) == 2
        assert report.sections[0] == "# Code Coverage Report"
        assert report.sections[1].startswith("_Minimum allowed coverage")

    def test_no_badge_by_default(self) -> None:
        assert "![Code Coverage]" not in _render(_snapshot(85.0, {}), None)

    def test_custom_markdown_filename(self) -> None:
        head = _snapshot(85.0, {})
        inputs = ReportInputs(markdown_filename="reports/cov")
        report = render(head, None, CoverageDiffer(inputs).diff(head), inputs)
        assert report.output_file_path == "reports/cov.md"


# ── Per-file table ───────────────────────────────────────────────


class TestPackageTable:
    def test_without_baseline(self) -> None:
        text = _render(_snapshot(65.0, {"fileA.py": 90.0, "fileB.py": 40.0}), None)

        assert "| Package | Coverage |" in text
        assert "Base Coverage" not in text
        assert _table_rows(text, "Package") == [
            ["fileA.py", "🟢 90.00%"],
            ["fileB.py", "🔴 40.00%"],
        ]

    def test_with_baseline(self) -> None:
        head = _snapshot(70.0, {"a.py": 70.0, "new.py": 60.0})
        base = _snapshot(75.0, {"a.py": 75.0})
        text = _render(head, base)

        assert "| Package | Base Coverage | New Coverage | Difference |" in text
        assert _table_rows(text, "Package") == [
            ["a.py", "🟡 75.00%", "🟡 70.00%", "🔴 -5.00%"],
            ["new.py", "", "🟡 60.00%", ""],
        ]

    def test_rows_follow_head_order(self) -> None:
        files = {"z.py": 10.0, "a.py": 20.0, "m.py": 30.0}
        rows = _table_rows(_render(_snapshot(20.0, files), None), "Package")
        assert [row[0] for row in rows] == ["z.py", "a.py", "m.py"]

    def test_custom_thresholds_color_cells(self) -> None:
        inputs = ReportInputs(file_coverage_warning_max=95.0, file_coverage_error_min=90.0)
        text = _render(_snapshot(92.0, {"a.py": 92.0}), None, inputs)
        assert _table_rows(text, "Package") == [["a.py", "🟡 92.00%"]]

    def test_pipe_in_path_is_escaped(self) -> None:
        text = _render(_snapshot(80.0, {"odd|name.py": 80.0}), None)
        assert "odd\\|name.py" in text
        assert _table_rows(text, "Package") == [["odd|name.py", "🟢 80.00%"]]

    @pytest.mark.parametrize(
        "files",
        [
            {"src/a.py": 12.345, "src/b.py": 100.0, "lib/c.py": 0.0},
            {"only.py": 66.666},
        ],
    )
    def test_table_recovers_files_and_percentages(self, files: dict[str, float]) -> None:
        rows = _table_rows(_render(_snapshot(50.0, files), None), "Package")

        recovered = {row[0]: float(row[1].split(" ")[1].rstrip("%")) for row in rows}
        assert recovered == {path: round_percentage(pct) for path, pct in files.items()}


# ── Overall block and badges ─────────────────────────────────────


class TestOverallBlock:
    def test_current_only_without_baseline(self) -> None:
        badges = _RecordingBadges()
        head = _snapshot(72.5, {})
        inputs = ReportInputs()
        render(head, None, CoverageDiffer(inputs).diff(head), inputs, badges)

        assert badges.calls == [("Current", "72.50%", "yellow", "for-the-badge")]

    def test_baseline_and_difference(self) -> None:
        badges = _RecordingBadges()
        head = _snapshot(70.0, {"a.py": 70.0})
        base = _snapshot(75.0, {"a.py": 75.0})
        inputs = ReportInputs(fail_on_negative_overall_difference=True)
        diff = CoverageDiffer(inputs).diff(head, base)
        report = render(head, base, diff, inputs, badges)

        assert badges.calls == [
            ("Current", "70.00%", "yellow", "for-the-badge"),
            ("Baseline", "75.00%", "yellow", "for-the-badge"),
            ("Difference", "-5.00%", "red", "for-the-badge"),
        ]
        block = report.sections[1]
        row = "| Difference | ![Difference](badge://Difference/-5.00%/red/for-the-badge) |"
        assert row in block
        # Failing run still renders the full report
        assert diff.failed
        assert "| Package | Base Coverage | New Coverage | Difference |" in report.text

    def test_coverage_badge_uses_file_thresholds(self) -> None:
        badges = _RecordingBadges()
        head = _snapshot(85.0, {})
        inputs = ReportInputs(
            badge=True, report_overall_coverage=False, file_coverage_warning_max=90.0
        )
        render(head, None, CoverageDiffer(inputs).diff(head), inputs, badges)

        assert badges.calls == [("Code Coverage", "85.00%", "yellow", "flat")]

    def test_default_shields_urls(self) -> None:
        head = _snapshot(70.0, {})
        base = _snapshot(75.0, {})
        text = _render(head, base, ReportInputs(badge=True))

        assert "https://img.shields.io/badge/Code%20Coverage-70.00%25-yellow?style=flat" in text
        assert "https://img.shields.io/badge/Difference---5.00%25-red?style=for-the-badge" in text


class TestMarkdownTable:
    def test_header_separator_and_rows(self) -> None:
        assert markdown_table([["A", "B"], ["1", "2"]]) == "| A | B |\n| --- | --- |\n| 1 | 2 |"

    def test_empty(self) -> None:
        assert markdown_table([]) == ""
