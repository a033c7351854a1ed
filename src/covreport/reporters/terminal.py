"""Terminal reporter with rich output formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from covreport.analyzers.threshold import Tier, classify, format_percentage

if TYPE_CHECKING:
    from covreport.analyzers.diff import DiffResult
    from covreport.config import ReportInputs

console = Console()

_TIER_STYLES: dict[Tier, str] = {
    Tier.OK: "green",
    Tier.WARNING: "yellow",
    Tier.ERROR: "red",
    Tier.NEUTRAL: "dim",
}


def _styled(value: float | None, warning: float | None = None, error: float | None = None) -> str:
    """Return *value* wrapped in the Rich style of its tier."""
    if value is None:
        return ""
    if warning is None or error is None:
        tier = classify(value)
    else:
        tier = classify(value, warning, error)
    style = _TIER_STYLES[tier]
    return f"[{style}]{format_percentage(value)}[/{style}]"


class CLIReporter:
    """Rich terminal output for coverage comparisons."""

    def __init__(self) -> None:
        """Initialize the CLI reporter."""
        self.console = console

    def print_header(self, title: str) -> None:
        """Print a bold header."""
        self.console.print(f"\n[bold cyan]{title}[/bold cyan]\n")

    def print_success(self, message: str) -> None:
        """Print a success message."""
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str) -> None:
        """Print an error message."""
        self.console.print(f"[red]✗[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def print_info(self, message: str) -> None:
        """Print an info message."""
        self.console.print(f"[dim]{message}[/dim]")

    def print_coverage_comparison(self, diff: DiffResult, inputs: ReportInputs) -> None:
        """Print the per-file comparison table and the overall figures."""
        warning = inputs.file_coverage_warning_max
        error = inputs.file_coverage_error_min

        table = Table(title="Coverage by file", show_lines=False)
        table.add_column("Package", style="cyan")
        if diff.has_baseline:
            table.add_column("Base Coverage", justify="right")
            table.add_column("New Coverage", justify="right")
            table.add_column("Difference", justify="right")
        else:
            table.add_column("Coverage", justify="right")

        for row in diff.files:
            if diff.has_baseline:
                table.add_row(
                    row.relative_path,
                    _styled(row.base_percentage, warning, error),
                    _styled(row.head_percentage, warning, error),
                    _styled(row.delta),
                )
            else:
                table.add_row(row.relative_path, _styled(row.head_percentage, warning, error))

        self.console.print(table)

        overall = f"Overall: {_styled(diff.head_overall, warning, error)}"
        if diff.base_overall is not None:
            overall += (
                f"  (baseline {_styled(diff.base_overall, warning, error)}, "
                f"difference {_styled(diff.overall_delta)})"
            )
        self.console.print(overall)


reporter = CLIReporter()
