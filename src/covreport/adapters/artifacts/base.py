"""Artifact storage interface for baseline coverage reports."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path, PurePath
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import zipfile
    from collections.abc import Sequence

NAME_PLACEHOLDER = "%name%"


class ArtifactError(Exception):
    """Raised when storing or fetching an artifact fails."""


def artifact_name_for(template: str, tag: str) -> str:
    """Derive the artifact name for *tag* (a branch or ref name).

    ``%name%`` in *template* is replaced by *tag*; slashes become dashes
    because artifact names cannot contain them.
    """
    return template.replace(NAME_PLACEHOLDER, tag.replace("/", "-"))


def archive_name(path: str | Path) -> str:
    """Return the name a file is stored under inside an artifact.

    Relative paths are kept as given so the extracted artifact contains the
    original filename; absolute paths keep only their final component.
    """
    pure = PurePath(path)
    if pure.is_absolute():
        return pure.name
    return pure.as_posix()


def write_zip(paths: Sequence[str | Path], archive: zipfile.ZipFile) -> None:
    """Write *paths* into *archive* under their archive names."""
    for path in paths:
        archive.write(Path(path), archive_name(path))


class ArtifactStore(ABC):
    """Opaque blob store for coverage reports, keyed by branch name.

    Implementations upload the raw report files of push-like runs and hand
    back the most recent upload for a branch during pull request runs.
    """

    def __init__(self, artifact_name: str = "coverage-%name%") -> None:
        self._artifact_name = artifact_name

    def artifact_name(self, tag: str) -> str:
        """Return the artifact name used for *tag*."""
        return artifact_name_for(self._artifact_name, tag)

    @abstractmethod
    def store(self, paths: Sequence[str | Path], tag: str) -> None:
        """Upload *paths* as one artifact associated with *tag*.

        Raises:
            ArtifactError: If the upload fails. Push runs exist only to
                publish the baseline, so failures are never swallowed.
        """

    @abstractmethod
    def retrieve(self, tag: str, workflow_names: Sequence[str] | None = None) -> Path | None:
        """Fetch the most recent artifact for *tag*.

        Args:
            tag: Branch name the artifact was stored under.
            workflow_names: Only consider runs of these workflows; None
                searches every workflow.

        Returns:
            Directory the artifact was extracted to, or None when no
            matching artifact exists (first run, new branch).
        """
