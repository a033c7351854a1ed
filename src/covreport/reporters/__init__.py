"""Reporters for rendering coverage comparisons."""

from __future__ import annotations

from covreport.reporters.badge import BadgeURLBuilder, ShieldsBadgeBuilder
from covreport.reporters.markdown import MarkdownReportRenderer, markdown_table, render
from covreport.reporters.terminal import reporter

__all__ = [
    "BadgeURLBuilder",
    "MarkdownReportRenderer",
    "ShieldsBadgeBuilder",
    "markdown_table",
    "render",
    "reporter",
]
