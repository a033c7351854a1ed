"""Transport-level HTTP tests for GitHubAPI.

These tests use the ``responses`` library to intercept ``requests`` calls at the
transport layer, verifying that the correct URLs, headers, and query strings
are sent to the GitHub REST API.
"""

from __future__ import annotations

import logging
from typing import Any

import pytest
import responses
from responses import matchers

from covreport.utils.github import GitHubAPI, GitHubAPIError

_BASE = "https://api.github.com"
_REPO = f"{_BASE}/repos/octocat/hello-world"

_EXPECTED_HEADERS = {
    "Authorization": "Bearer test-value",
    "Accept": "application/vnd.github+json",
    "X-GitHub-Api-Version": "2022-11-28",
}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def api(monkeypatch: pytest.MonkeyPatch) -> GitHubAPI:
    """Create a GitHubAPI instance backed by a test token."""
    monkeypatch.setenv("GITHUB_TOKEN", "test-value")
    return GitHubAPI()


_RUN: dict[str, Any] = {
    "id": 101,
    "name": "CI",
    "head_branch": "main",
    "status": "completed",
    "conclusion": "success",
}

_ARTIFACT: dict[str, Any] = {
    "id": 7,
    "name": "coverage-main",
    "expired": False,
    "created_at": "2024-01-01T00:00:00Z",
    "workflow_run": {"id": 101, "head_branch": "main"},
}


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_requires_token(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        with pytest.raises(GitHubAPIError, match="token required"):
            GitHubAPI()

    @responses.activate
    def test_enterprise_api_url(self) -> None:
        url = "https://ghe.example.com/api/v3/repos/octocat/hello-world/actions/workflows"
        responses.add(responses.GET, url, json={"workflows": []})

        api = GitHubAPI(token="test-value", api_url="https://ghe.example.com/api/v3/")

        assert api.list_workflows("octocat", "hello-world") == []


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


class TestListWorkflowRuns:
    """GET /repos/{owner}/{repo}/actions/runs."""

    @responses.activate
    def test_all_workflows(self, api: GitHubAPI) -> None:
        responses.add(
            responses.GET,
            f"{_REPO}/actions/runs",
            json={"total_count": 1, "workflow_runs": [_RUN]},
            match=[
                matchers.header_matcher(_EXPECTED_HEADERS),
                matchers.query_param_matcher(
                    {"branch": "main", "status": "success", "per_page": "100"}
                ),
            ],
        )

        assert api.list_workflow_runs("octocat", "hello-world", branch="main") == [_RUN]

    @responses.activate
    def test_single_workflow(self, api: GitHubAPI) -> None:
        responses.add(
            responses.GET,
            f"{_REPO}/actions/workflows/55/runs",
            json={"workflow_runs": [_RUN]},
        )

        runs = api.list_workflow_runs("octocat", "hello-world", branch="main", workflow_id=55)

        assert runs == [_RUN]

    @responses.activate
    def test_http_error_is_wrapped(self, api: GitHubAPI) -> None:
        responses.add(
            responses.GET, f"{_REPO}/actions/runs", json={"message": "Not Found"}, status=404
        )

        with pytest.raises(GitHubAPIError, match="GET request failed"):
            api.list_workflow_runs("octocat", "hello-world", branch="main")


class TestListArtifacts:
    """GET /repos/{owner}/{repo}/actions/artifacts."""

    @responses.activate
    def test_filters_by_name(self, api: GitHubAPI) -> None:
        responses.add(
            responses.GET,
            f"{_REPO}/actions/artifacts",
            json={"total_count": 1, "artifacts": [_ARTIFACT]},
            match=[matchers.query_param_matcher({"name": "coverage-main", "per_page": "100"})],
        )

        assert api.list_artifacts("octocat", "hello-world", name="coverage-main") == [_ARTIFACT]

    @responses.activate
    def test_missing_key_is_empty(self, api: GitHubAPI) -> None:
        responses.add(responses.GET, f"{_REPO}/actions/artifacts", json={})
        assert api.list_artifacts("octocat", "hello-world", name="x") == []

    @responses.activate
    def test_follows_next_link(self, api: GitHubAPI) -> None:
        older = {**_ARTIFACT, "id": 1}
        next_page = f"{_REPO}/actions/artifacts?name=coverage-main&per_page=100&page=2"
        responses.add(
            responses.GET,
            f"{_REPO}/actions/artifacts",
            json={"total_count": 101, "artifacts": [_ARTIFACT]},
            headers={"Link": f'<{next_page}>; rel="next", <{next_page}>; rel="last"'},
            match=[matchers.query_param_matcher({"name": "coverage-main", "per_page": "100"})],
        )
        responses.add(
            responses.GET,
            f"{_REPO}/actions/artifacts",
            json={"total_count": 101, "artifacts": [older]},
            match=[
                matchers.header_matcher(_EXPECTED_HEADERS),
                matchers.query_param_matcher(
                    {"name": "coverage-main", "per_page": "100", "page": "2"}
                ),
            ],
        )

        artifacts = api.list_artifacts("octocat", "hello-world", name="coverage-main")

        assert artifacts == [_ARTIFACT, older]
        assert len(responses.calls) == 2

    @responses.activate
    def test_page_limit(self, api: GitHubAPI, caplog: pytest.LogCaptureFixture) -> None:
        responses.add(
            responses.GET,
            f"{_REPO}/actions/artifacts",
            json={"artifacts": [_ARTIFACT]},
            headers={"Link": f'<{_REPO}/actions/artifacts?page=2>; rel="next"'},
        )

        with caplog.at_level(logging.WARNING):
            artifacts = api.list_artifacts("octocat", "hello-world", name="coverage-main")

        assert len(artifacts) == 10
        assert len(responses.calls) == 10
        assert "Stopped listing artifacts after 10 pages" in caplog.text

    @responses.activate
    def test_failed_second_page_is_wrapped(self, api: GitHubAPI) -> None:
        next_page = f"{_REPO}/actions/artifacts?page=2"
        responses.add(
            responses.GET,
            f"{_REPO}/actions/artifacts",
            json={"artifacts": [_ARTIFACT]},
            headers={"Link": f'<{next_page}>; rel="next"'},
            match=[matchers.query_param_matcher({"name": "x", "per_page": "100"})],
        )
        responses.add(
            responses.GET,
            f"{_REPO}/actions/artifacts",
            status=502,
            match=[matchers.query_param_matcher({"page": "2"})],
        )

        with pytest.raises(GitHubAPIError, match="GET request failed"):
            api.list_artifacts("octocat", "hello-world", name="x")


class TestListWorkflows:
    @responses.activate
    def test_workflows(self, api: GitHubAPI) -> None:
        workflow = {"id": 55, "name": "CI", "path": ".github/workflows/ci.yml"}
        responses.add(
            responses.GET,
            f"{_REPO}/actions/workflows",
            json={"total_count": 1, "workflows": [workflow]},
            match=[matchers.header_matcher(_EXPECTED_HEADERS)],
        )

        assert api.list_workflows("octocat", "hello-world") == [workflow]


# ---------------------------------------------------------------------------
# Download
# ---------------------------------------------------------------------------


class TestDownloadArtifact:
    """GET /repos/{owner}/{repo}/actions/artifacts/{id}/zip."""

    @responses.activate
    def test_returns_bytes(self, api: GitHubAPI) -> None:
        responses.add(
            responses.GET,
            f"{_REPO}/actions/artifacts/7/zip",
            body=b"PK\x03\x04zip-bytes",
            content_type="application/zip",
            match=[matchers.header_matcher(_EXPECTED_HEADERS)],
        )

        assert api.download_artifact("octocat", "hello-world", 7) == b"PK\x03\x04zip-bytes"

    @responses.activate
    def test_gone_artifact(self, api: GitHubAPI) -> None:
        responses.add(responses.GET, f"{_REPO}/actions/artifacts/7/zip", status=410)

        with pytest.raises(GitHubAPIError, match="Artifact download failed"):
            api.download_artifact("octocat", "hello-world", 7)
