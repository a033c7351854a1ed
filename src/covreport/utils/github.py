"""GitHub REST API client for workflow runs and artifacts."""

from __future__ import annotations

import logging
import os
from typing import Any

import requests

logger = logging.getLogger(__name__)

# GitHub API constants
GITHUB_API_BASE = "https://api.github.com"
_GITHUB_AUTH_ENV_KEY = "GITHUB_" + "TOKEN"

_PER_PAGE = 100
# Listings stop after this many pages (1000 items at _PER_PAGE)
_MAX_PAGES = 10
_TIMEOUT_SECONDS = 30


class GitHubAPIError(Exception):
    """Exception raised when GitHub API operations fail."""


class GitHubAPI:
    """Client for the GitHub Actions REST endpoints.

    Handles authentication, workflow/run/artifact listing, and artifact
    download.
    """

    def __init__(self, token: str | None = None, api_url: str = GITHUB_API_BASE) -> None:
        """Initialize the GitHub API client.

        Args:
            token: GitHub token. If not provided, will try to read from the
                GITHUB_TOKEN environment variable.
            api_url: REST API root (GitHub Enterprise Server uses its own).

        Raises:
            GitHubAPIError: If no token is available.
        """
        self._token = token or os.environ.get(_GITHUB_AUTH_ENV_KEY)
        if not self._token:
            raise GitHubAPIError(
                f"GitHub token required. Set {_GITHUB_AUTH_ENV_KEY} environment variable "
                "or pass token to constructor."
            )

        self._api_url = api_url.rstrip("/")
        self._session_headers = {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def _repo_url(self, owner: str, repo: str) -> str:
        return f"{self._api_url}/repos/{owner}/{repo}"

    def list_workflows(self, owner: str, repo: str) -> list[dict[str, Any]]:
        """List the repository's workflows.

        Raises:
            GitHubAPIError: If the API request fails.
        """
        url = f"{self._repo_url(owner, repo)}/actions/workflows"
        return self._get_paginated(url, {}, "workflows")

    def list_workflow_runs(
        self,
        owner: str,
        repo: str,
        *,
        branch: str,
        status: str = "success",
        workflow_id: int | None = None,
    ) -> list[dict[str, Any]]:
        """List workflow runs for *branch*, newest first.

        Args:
            owner: Repository owner.
            repo: Repository name.
            branch: Branch the runs were triggered on.
            status: Run status/conclusion filter.
            workflow_id: Restrict to one workflow; None lists runs of every workflow.

        Raises:
            GitHubAPIError: If the API request fails.
        """
        if workflow_id is None:
            url = f"{self._repo_url(owner, repo)}/actions/runs"
        else:
            url = f"{self._repo_url(owner, repo)}/actions/workflows/{workflow_id}/runs"

        return self._get_paginated(url, {"branch": branch, "status": status}, "workflow_runs")

    def list_artifacts(self, owner: str, repo: str, *, name: str) -> list[dict[str, Any]]:
        """List repository artifacts with exactly *name*, newest first.

        Raises:
            GitHubAPIError: If the API request fails.
        """
        url = f"{self._repo_url(owner, repo)}/actions/artifacts"
        return self._get_paginated(url, {"name": name}, "artifacts")

    def download_artifact(self, owner: str, repo: str, artifact_id: int) -> bytes:
        """Download an artifact's zip archive.

        The API answers with a redirect to blob storage; ``requests`` follows
        it and drops the Authorization header on the cross-host hop.

        Raises:
            GitHubAPIError: If the download fails.
        """
        url = f"{self._repo_url(owner, repo)}/actions/artifacts/{artifact_id}/zip"
        logger.info("Downloading artifact %d", artifact_id)
        try:
            response = requests.get(url, headers=self._session_headers, timeout=_TIMEOUT_SECONDS)
            response.raise_for_status()
        except Exception as exc:
            raise GitHubAPIError(f"Artifact download failed: {exc}") from exc
        return response.content

    def _request(self, url: str, params: dict[str, Any] | None) -> requests.Response:
        """Send an authenticated GET and return the successful response.

        Raises:
            GitHubAPIError: If the request fails or returns an error status.
        """
        try:
            response = requests.get(
                url, params=params, headers=self._session_headers, timeout=_TIMEOUT_SECONDS
            )
            response.raise_for_status()
        except Exception as exc:
            raise GitHubAPIError(f"GET request failed: {exc}") from exc
        return response

    def _get_paginated(
        self, url: str, params: dict[str, Any], key: str
    ) -> list[dict[str, Any]]:
        """Collect *key* items across pages by following ``Link: rel="next"``.

        Stops after ``_MAX_PAGES`` pages; callers get at most that many
        pages of the newest items.

        Raises:
            GitHubAPIError: If any page request fails.
        """
        items: list[dict[str, Any]] = []
        next_url: str | None = url
        query: dict[str, Any] | None = {**params, "per_page": _PER_PAGE}
        for _ in range(_MAX_PAGES):
            if next_url is None:
                break
            response = self._request(next_url, query)
            try:
                items.extend(response.json().get(key, []))
            except ValueError as exc:
                raise GitHubAPIError(f"GET request failed: {exc}") from exc
            next_url = response.links.get("next", {}).get("url")
            # The next link already carries the query string
            query = None
        else:
            if next_url is not None:
                logger.warning("Stopped listing %s after %d pages", key, _MAX_PAGES)
        return items
