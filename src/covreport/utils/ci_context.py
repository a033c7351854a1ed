"""CI context detection utilities."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

# Expected number of parts when splitting "owner/repo"
_OWNER_REPO_PARTS = 2

DEFAULT_API_URL = "https://api.github.com"


class TriggerKind(Enum):
    """Pipeline event that started the run."""

    PULL_REQUEST = "pull_request"
    PUSH = "push"
    SCHEDULE = "schedule"
    WORKFLOW_DISPATCH = "workflow_dispatch"
    OTHER = "other"

    @classmethod
    def from_event_name(cls, event_name: str) -> TriggerKind:
        """Map a ``GITHUB_EVENT_NAME`` value to a trigger kind."""
        for kind in cls:
            if kind.value == event_name and kind is not cls.OTHER:
                return kind
        return cls.OTHER

    @property
    def stores_baseline(self) -> bool:
        """Return True for push-like events that publish the baseline artifact."""
        return self in {TriggerKind.PUSH, TriggerKind.SCHEDULE, TriggerKind.WORKFLOW_DISPATCH}


@dataclass
class CIContext:
    """Detected CI execution context."""

    event_name: str
    """Raw event name (``GITHUB_EVENT_NAME``)."""

    trigger: TriggerKind
    """Event name mapped onto the kinds this tool handles."""

    base_ref: str
    """Target branch of a pull request (empty outside pull requests)."""

    ref_name: str
    """Short name of the branch or tag that triggered the run."""

    repo_owner: str | None
    """Repository owner (org or user)."""

    repo_name: str | None
    """Repository name."""

    run_id: int | None
    """Workflow run id."""

    api_url: str = DEFAULT_API_URL
    """REST API root (differs on GitHub Enterprise Server)."""

    workspace: str = ""
    """Checkout directory (``GITHUB_WORKSPACE``); empty outside Actions."""

    @property
    def repository(self) -> str | None:
        """Return ``owner/repo`` when both parts are known."""
        if self.repo_owner and self.repo_name:
            return f"{self.repo_owner}/{self.repo_name}"
        return None


def detect_ci_context(environ: Mapping[str, str] | None = None) -> CIContext:
    """Detect the GitHub Actions context from environment variables.

    Args:
        environ: Environment to read (default: os.environ).

    Returns:
        CIContext with detected values; missing variables become empty/None.
    """
    env = os.environ if environ is None else environ

    event_name = env.get("GITHUB_EVENT_NAME", "")
    trigger = TriggerKind.from_event_name(event_name)

    repo_full = env.get("GITHUB_REPOSITORY", "")
    repo_parts = repo_full.split("/") if repo_full else []
    repo_owner = repo_parts[0] if len(repo_parts) == _OWNER_REPO_PARTS else None
    repo_name = repo_parts[1] if len(repo_parts) == _OWNER_REPO_PARTS else None

    return CIContext(
        event_name=event_name,
        trigger=trigger,
        base_ref=env.get("GITHUB_BASE_REF", "") if trigger is TriggerKind.PULL_REQUEST else "",
        ref_name=env.get("GITHUB_REF_NAME", ""),
        repo_owner=repo_owner,
        repo_name=repo_name,
        run_id=_parse_int(env.get("GITHUB_RUN_ID")),
        api_url=(env.get("GITHUB_API_URL") or DEFAULT_API_URL).rstrip("/"),
        workspace=env.get("GITHUB_WORKSPACE", ""),
    )


def _parse_int(value: str | None) -> int | None:
    """Parse string to int, return None if invalid."""
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None
