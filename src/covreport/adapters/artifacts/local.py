"""Filesystem artifact store for local comparisons and tests."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from covreport.adapters.artifacts.base import ArtifactError, ArtifactStore, archive_name

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)


class LocalArtifactStore(ArtifactStore):
    """Keep each artifact as a directory ``<root>/<artifact name>/``.

    Storing again under the same tag replaces the previous artifact, so the
    directory always holds the most recent upload.
    """

    def __init__(self, root: str | Path, artifact_name: str = "coverage-%name%") -> None:
        super().__init__(artifact_name)
        self.root = Path(root)

    def store(self, paths: Sequence[str | Path], tag: str) -> None:
        target = self.root / self.artifact_name(tag)
        try:
            if target.exists():
                shutil.rmtree(target)
            for path in paths:
                destination = target / archive_name(path)
                destination.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(path, destination)
        except OSError as exc:
            raise ArtifactError(f"Unable to store artifact in {target}: {exc}") from exc
        logger.info("Stored %d file(s) in %s", len(paths), target)

    def retrieve(self, tag: str, workflow_names: Sequence[str] | None = None) -> Path | None:
        if workflow_names:
            logger.debug("Local store ignores workflow filter %s", list(workflow_names))
        target = self.root / self.artifact_name(tag)
        if not target.is_dir():
            logger.info("No stored artifact at %s", target)
            return None
        return target
