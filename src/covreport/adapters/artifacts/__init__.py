"""Artifact stores that carry baseline coverage between runs."""

from __future__ import annotations

from covreport.adapters.artifacts.base import (
    ArtifactError,
    ArtifactStore,
    archive_name,
    artifact_name_for,
)
from covreport.adapters.artifacts.github import ActionsRuntime, GitHubArtifactStore
from covreport.adapters.artifacts.local import LocalArtifactStore

__all__ = [
    "ActionsRuntime",
    "ArtifactError",
    "ArtifactStore",
    "GitHubArtifactStore",
    "LocalArtifactStore",
    "archive_name",
    "artifact_name_for",
]
