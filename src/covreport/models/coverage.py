"""Coverage snapshot models."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class FileCoverage:
    """Coverage result for a single source file."""

    relative_path: str
    """Path relative to the snapshot's base path (POSIX separators)."""

    absolute_path: str
    """Path as it appeared in the report, anchored at the base path."""

    coverage_percentage: float
    """Line coverage percentage (0.0 to 100.0)."""


@dataclass
class CoverageSnapshot:
    """One measured coverage run (head or base).

    ``files`` is keyed by the file identity key (a hash of the relative path)
    and keeps the encounter order of the source report.
    """

    overall_percentage: float
    """Overall coverage percentage (0.0 to 100.0), from the report aggregate."""

    timestamp: int
    """Capture time in epoch seconds."""

    base_path: str = ""
    """Root used to make file paths relative."""

    files: dict[str, FileCoverage] = field(default_factory=dict)
    """Identity key to file coverage."""

    def get(self, key: str) -> FileCoverage | None:
        """Return the file stored under *key*, or None."""
        return self.files.get(key)
