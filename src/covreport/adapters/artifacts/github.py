"""Artifact store backed by GitHub Actions artifacts.

Uploads go through the Actions results service (the v4 artifact backend the
runner exposes via ``ACTIONS_RESULTS_URL``); lookups and downloads use the
public REST API.
"""

from __future__ import annotations

import base64
import hashlib
import io
import json
import logging
import os
import tempfile
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import requests

from covreport.adapters.artifacts.base import ArtifactError, ArtifactStore, write_zip
from covreport.utils.github import GITHUB_API_BASE, GitHubAPI, GitHubAPIError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

logger = logging.getLogger(__name__)

_ARTIFACT_SERVICE = "twirp/github.actions.results.api.v1.ArtifactService"
_ARTIFACT_VERSION = 4
_RESULTS_SCOPE = "Actions.Results"
_SCOPE_PARTS = 3

_RPC_TIMEOUT_SECONDS = 30
_UPLOAD_TIMEOUT_SECONDS = 300


@dataclass(frozen=True)
class ActionsRuntime:
    """Credentials the runner hands to steps for the results service."""

    results_url: str
    """Root URL of the results service (``ACTIONS_RESULTS_URL``)."""

    runtime_token: str
    """Bearer token for the results service (``ACTIONS_RUNTIME_TOKEN``)."""

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ActionsRuntime | None:
        """Read the runtime credentials, or None when not on an Actions runner."""
        env = os.environ if environ is None else environ
        results_url = env.get("ACTIONS_RESULTS_URL", "")
        runtime_token = env.get("ACTIONS_RUNTIME_TOKEN", "")
        if not results_url or not runtime_token:
            return None
        return cls(results_url=results_url.rstrip("/"), runtime_token=runtime_token)

    def backend_ids(self) -> tuple[str, str]:
        """Return the (workflow run, job run) backend ids from the token's scope claim.

        Raises:
            ArtifactError: If the token is malformed or lacks a results scope.
        """
        try:
            payload_b64 = self.runtime_token.split(".")[1]
            padded = payload_b64 + "=" * (-len(payload_b64) % 4)
            payload = json.loads(base64.urlsafe_b64decode(padded))
        except (IndexError, ValueError) as exc:
            raise ArtifactError("ACTIONS_RUNTIME_TOKEN is not a valid JWT") from exc

        for scope in str(payload.get("scp", "")).split(" "):
            parts = scope.split(":")
            if len(parts) == _SCOPE_PARTS and parts[0] == _RESULTS_SCOPE:
                return parts[1], parts[2]
        raise ArtifactError("Failed to get backend IDs from ACTIONS_RUNTIME_TOKEN")


def _rpc(runtime: ActionsRuntime, method: str, body: dict[str, Any]) -> dict[str, Any]:
    """Call one ArtifactService method on the results service."""
    url = f"{runtime.results_url}/{_ARTIFACT_SERVICE}/{method}"
    try:
        response = requests.post(
            url,
            json=body,
            headers={"Authorization": f"Bearer {runtime.runtime_token}"},
            timeout=_RPC_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        data: dict[str, Any] = response.json()
    except (requests.RequestException, ValueError) as exc:
        raise ArtifactError(f"{method} request failed: {exc}") from exc
    return data


class GitHubArtifactStore(ArtifactStore):
    """Store coverage reports as workflow artifacts of the current repository."""

    def __init__(
        self,
        owner: str,
        repo: str,
        *,
        token: str | None = None,
        api_url: str = GITHUB_API_BASE,
        artifact_name: str = "coverage-%name%",
        runtime: ActionsRuntime | None = None,
    ) -> None:
        super().__init__(artifact_name)
        self._owner = owner
        self._repo = repo
        self._token = token
        self._api_url = api_url
        self._runtime = runtime
        self._api: GitHubAPI | None = None

    @property
    def api(self) -> GitHubAPI:
        """REST client, created on first use so push runs need no token."""
        if self._api is None:
            try:
                self._api = GitHubAPI(token=self._token, api_url=self._api_url)
            except GitHubAPIError as exc:
                raise ArtifactError(str(exc)) from exc
        return self._api

    # ── Upload ───────────────────────────────────────────────────

    def store(self, paths: Sequence[str | Path], tag: str) -> None:
        """Zip *paths* and upload them as this run's artifact for *tag*.

        Raises:
            ArtifactError: If not on an Actions runner or any upload step fails.
        """
        if self._runtime is None:
            raise ArtifactError(
                "ACTIONS_RESULTS_URL and ACTIONS_RUNTIME_TOKEN are required to upload artifacts"
            )

        name = self.artifact_name(tag)
        buffer = io.BytesIO()
        try:
            with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
                write_zip(paths, zf)
        except OSError as exc:
            raise ArtifactError(f"Unable to archive {', '.join(map(str, paths))}: {exc}") from exc
        archive = buffer.getvalue()

        runtime = self._runtime
        run_backend_id, job_backend_id = runtime.backend_ids()
        ids = {
            "workflow_run_backend_id": run_backend_id,
            "workflow_job_run_backend_id": job_backend_id,
        }

        created = _rpc(
            runtime, "CreateArtifact", {**ids, "name": name, "version": _ARTIFACT_VERSION}
        )
        upload_url = created.get("signed_upload_url")
        if not created.get("ok") or not upload_url:
            raise ArtifactError(f"Results service refused to create artifact {name}")

        logger.info("Uploading artifact %s (%d bytes)", name, len(archive))
        try:
            response = requests.put(
                upload_url,
                data=archive,
                headers={"x-ms-blob-type": "BlockBlob", "Content-Type": "application/zip"},
                timeout=_UPLOAD_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise ArtifactError(f"Artifact upload failed: {exc}") from exc

        finalized = _rpc(
            runtime,
            "FinalizeArtifact",
            {
                **ids,
                "name": name,
                "size": str(len(archive)),
                "hash": f"sha256:{hashlib.sha256(archive).hexdigest()}",
            },
        )
        if not finalized.get("ok"):
            raise ArtifactError(f"Results service refused to finalize artifact {name}")
        logger.info("Artifact %s uploaded (id %s)", name, finalized.get("artifact_id"))

    # ── Download ─────────────────────────────────────────────────

    def retrieve(self, tag: str, workflow_names: Sequence[str] | None = None) -> Path | None:
        """Download and extract the newest artifact for *tag*.

        Only artifacts produced by successful runs on *tag* are considered;
        ties on creation time go to the highest artifact id.

        Raises:
            ArtifactError: If the REST API or the extraction fails.
        """
        name = self.artifact_name(tag)
        try:
            run_ids = self._successful_run_ids(tag, workflow_names)
            if not run_ids:
                logger.info("No successful runs found on %s", tag)
                return None

            candidates = [
                artifact
                for artifact in self.api.list_artifacts(self._owner, self._repo, name=name)
                if not artifact.get("expired")
                and (artifact.get("workflow_run") or {}).get("id") in run_ids
            ]
            if not candidates:
                logger.info("No artifact named %s from a successful run on %s", name, tag)
                return None

            latest = max(candidates, key=lambda a: (a.get("created_at") or "", a.get("id", 0)))
            content = self.api.download_artifact(self._owner, self._repo, latest["id"])
        except GitHubAPIError as exc:
            raise ArtifactError(str(exc)) from exc

        target = Path(tempfile.mkdtemp(prefix="covreport-"))
        try:
            with zipfile.ZipFile(io.BytesIO(content)) as zf:
                zf.extractall(target)
        except zipfile.BadZipFile as exc:
            raise ArtifactError(f"Artifact {name} is not a valid zip archive") from exc
        logger.info("Extracted artifact %s (id %s) to %s", name, latest["id"], target)
        return target

    def _successful_run_ids(self, branch: str, workflow_names: Sequence[str] | None) -> set[int]:
        if not workflow_names:
            runs = self.api.list_workflow_runs(self._owner, self._repo, branch=branch)
            return {run["id"] for run in runs}

        wanted = set(workflow_names)
        workflows = [
            workflow
            for workflow in self.api.list_workflows(self._owner, self._repo)
            if workflow.get("name") in wanted
        ]
        missing = wanted - {workflow.get("name") for workflow in workflows}
        for workflow_name in sorted(missing):
            logger.warning("Workflow %r not found in %s/%s", workflow_name, self._owner, self._repo)

        run_ids: set[int] = set()
        for workflow in workflows:
            runs = self.api.list_workflow_runs(
                self._owner, self._repo, branch=branch, workflow_id=workflow["id"]
            )
            run_ids.update(run["id"] for run in runs)
        return run_ids
