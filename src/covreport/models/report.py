"""Rendered report model."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class RenderedReport:
    """A rendered coverage report ready to be persisted.

    The same ``text`` is written to the output file and to the job summary.
    """

    sections: list[str] = field(default_factory=list)
    """Ordered section blocks (heading, badge, overall block, table, footnote)."""

    output_file_path: str = ""
    """Path the report is written to (``<markdown_filename>.md``)."""

    overall_coverage_percentage: float = 0.0
    """Head overall coverage percentage, rounded to two decimals."""

    def add(self, block: str) -> RenderedReport:
        """Append a section block and return self for chaining."""
        self.sections.append(block)
        return self

    @property
    def text(self) -> str:
        """Return the full document with sections separated by blank lines."""
        return "\n\n".join(self.sections) + "\n"
