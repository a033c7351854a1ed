"""Markdown coverage report renderer.

Section order is fixed: heading, optional badge, optional overall comparison
block, optional per-file table, then a footnote with the configured minimum
and the achieved overall percentage.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from covreport.analyzers.threshold import (
    badge_color,
    colorize_percentage,
    format_percentage,
    round_percentage,
)
from covreport.models.report import RenderedReport
from covreport.reporters.badge import BadgeURLBuilder, ShieldsBadgeBuilder

if TYPE_CHECKING:
    from covreport.analyzers.diff import DiffResult
    from covreport.config import ReportInputs
    from covreport.models.coverage import CoverageSnapshot

logger = logging.getLogger(__name__)

REPORT_HEADING = "Code Coverage Report"

_HEADERS_NO_BASELINE = ["Package", "Coverage"]
_HEADERS_WITH_BASELINE = ["Package", "Base Coverage", "New Coverage", "Difference"]


def _escape_cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ")


def markdown_table(rows: list[list[str]]) -> str:
    """Render *rows* as a GitHub-flavored Markdown table; the first row is the header."""
    if not rows:
        return ""
    header, *body = rows
    lines = [
        "| " + " | ".join(_escape_cell(cell) for cell in header) + " |",
        "| " + " | ".join("---" for _ in header) + " |",
    ]
    lines.extend("| " + " | ".join(_escape_cell(cell) for cell in row) + " |" for row in body)
    return "\n".join(lines)


class MarkdownReportRenderer:
    """Assembles the coverage report document."""

    def __init__(self, inputs: ReportInputs, badge_builder: BadgeURLBuilder | None = None) -> None:
        self._inputs = inputs
        self._badges = badge_builder or ShieldsBadgeBuilder()

    def render(
        self,
        head: CoverageSnapshot,
        base: CoverageSnapshot | None,
        diff: DiffResult,
    ) -> RenderedReport:
        """Render the report for *head* compared with *base*.

        Args:
            head: Head snapshot.
            base: Baseline snapshot, or None.
            diff: Result of diffing *head* against *base*.

        Returns:
            RenderedReport carrying the document and its structured outputs.
        """
        inputs = self._inputs
        report = RenderedReport(
            output_file_path=inputs.markdown_path,
            overall_coverage_percentage=round_percentage(head.overall_percentage),
        )

        report.add(f"# {REPORT_HEADING}")

        if inputs.badge:
            report.add(self._coverage_badge(head.overall_percentage))

        if inputs.report_overall_coverage:
            base_overall = base.overall_percentage if base is not None else None
            report.add(
                self._overall_block(head.overall_percentage, base_overall, diff.overall_delta)
            )

        if inputs.report_package_coverage:
            report.add(self._package_table(diff))

        report.add(
            f"_Minimum allowed coverage is "
            f"`{format_percentage(inputs.overall_coverage_fail_threshold)}`, "
            f"this run produced `{format_percentage(head.overall_percentage)}`_"
        )

        logger.debug("Rendered report with %d sections", len(report.sections))
        return report

    # ── Sections ─────────────────────────────────────────────────

    def _badge_markdown(
        self, label: str, value: float | None, color: str, *, style: str = "flat"
    ) -> str:
        url = self._badges.build(label, format_percentage(value), color, style=style)
        return f"![{label}]({url})"

    def _coverage_badge(self, overall: float) -> str:
        color = badge_color(
            overall,
            self._inputs.file_coverage_warning_max,
            self._inputs.file_coverage_error_min,
        )
        return self._badge_markdown("Code Coverage", overall, color)

    def _overall_block(
        self, current: float, baseline: float | None, difference: float | None
    ) -> str:
        warning = self._inputs.file_coverage_warning_max
        error = self._inputs.file_coverage_error_min
        rows: list[list[str]] = [
            ["", ""],
            [
                "Current",
                self._badge_markdown(
                    "Current",
                    current,
                    badge_color(current, warning, error),
                    style="for-the-badge",
                ),
            ],
        ]
        if baseline is not None:
            rows.append(
                [
                    "Baseline",
                    self._badge_markdown(
                        "Baseline",
                        baseline,
                        badge_color(baseline, warning, error),
                        style="for-the-badge",
                    ),
                ]
            )
            # A difference is not a coverage percentage: default thresholds apply
            rows.append(
                [
                    "Difference",
                    self._badge_markdown(
                        "Difference",
                        difference,
                        badge_color(difference),
                        style="for-the-badge",
                    ),
                ]
            )
        return markdown_table(rows)

    def _package_table(self, diff: DiffResult) -> str:
        warning = self._inputs.file_coverage_warning_max
        error = self._inputs.file_coverage_error_min

        if not diff.has_baseline:
            rows = [list(_HEADERS_NO_BASELINE)]
            rows.extend(
                [row.relative_path, colorize_percentage(row.head_percentage, warning, error)]
                for row in diff.files
            )
            return markdown_table(rows)

        rows = [list(_HEADERS_WITH_BASELINE)]
        rows.extend(
            [
                row.relative_path,
                colorize_percentage(row.base_percentage, warning, error),
                colorize_percentage(row.head_percentage, warning, error),
                colorize_percentage(row.delta),
            ]
            for row in diff.files
        )
        return markdown_table(rows)


def render(
    head: CoverageSnapshot,
    base: CoverageSnapshot | None,
    diff: DiffResult,
    inputs: ReportInputs,
    badge_builder: BadgeURLBuilder | None = None,
) -> RenderedReport:
    """Render a coverage report with a one-off renderer."""
    return MarkdownReportRenderer(inputs, badge_builder).render(head, base, diff)
