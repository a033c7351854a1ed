"""Run orchestration: pick the flow for the triggering event and sequence it.

Pull request runs compare the head report with the baseline artifact of the
target branch; push-like runs publish the report as that baseline; every
other event is a no-op. Problems detected while comparing are collected and
reported at the end so the report is always produced.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from covreport.adapters.artifacts.base import archive_name
from covreport.adapters.coverage.loader import load_coverage
from covreport.analyzers.diff import CoverageDiffer
from covreport.reporters.markdown import MarkdownReportRenderer
from covreport.utils.ci_context import TriggerKind

if TYPE_CHECKING:
    from covreport.adapters.artifacts.base import ArtifactStore
    from covreport.config import ReportInputs
    from covreport.models.coverage import CoverageSnapshot
    from covreport.models.report import RenderedReport
    from covreport.reporters.badge import BadgeURLBuilder
    from covreport.utils.actions import ActionsIO
    from covreport.utils.ci_context import CIContext

logger = logging.getLogger(__name__)


class RunStatus(Enum):
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class RunResult:
    """Terminal outcome of one run."""

    status: RunStatus = RunStatus.SUCCESS
    failures: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    report: RenderedReport | None = None
    """The rendered report (pull request runs only)."""

    @property
    def failed(self) -> bool:
        return self.status is RunStatus.FAILED


class CoverageReportRunner:
    """Executes one pipeline invocation.

    Relative paths (the coverage file and the Markdown output) resolve
    against the working directory, as they do for the workflow step.
    """

    def __init__(
        self,
        inputs: ReportInputs,
        context: CIContext,
        store: ArtifactStore,
        io: ActionsIO,
        badge_builder: BadgeURLBuilder | None = None,
    ) -> None:
        self._inputs = inputs
        self._context = context
        self._store = store
        self._io = io
        self._badge_builder = badge_builder
        self._workspace = context.workspace or None

    def run(self) -> RunResult:
        """Run the flow for the current trigger.

        Never raises: any unexpected exception becomes a single failure.
        """
        result = RunResult()
        try:
            self._run(result)
        except Exception as exc:
            logger.exception("Coverage report run failed")
            self._fail(result, str(exc))
        return result

    def _run(self, result: RunResult) -> None:
        filename = self._inputs.filename
        if not Path(filename).is_file():
            self._fail(result, f"Unable to access {filename}")
            return

        trigger = self._context.trigger
        if trigger is TriggerKind.PULL_REQUEST:
            self._compare(result)
        elif trigger.stores_baseline:
            self._publish()
        else:
            logger.info(
                "Event %r does not store or compare coverage; nothing to do",
                self._context.event_name,
            )

    # ── Push-like events ─────────────────────────────────────────

    def _publish(self) -> None:
        tag = self._context.ref_name
        if not tag:
            raise ValueError("GITHUB_REF_NAME is not set; cannot name the coverage artifact")
        self._store.store([self._inputs.filename], tag)
        logger.info("Stored %s as the baseline for %s", self._inputs.filename, tag)

    # ── Pull requests ────────────────────────────────────────────

    def _compare(self, result: RunResult) -> None:
        inputs = self._inputs
        base_ref = self._context.base_ref

        artifact_dir = None
        if base_ref:
            artifact_dir = self._store.retrieve(base_ref, inputs.artifact_download_workflow_names)

        head = load_coverage(inputs.filename, self._workspace)
        if head is None:
            self._fail(result, f"Unable to process {inputs.filename}")
            return

        base = self._load_baseline(artifact_dir)
        if base is None:
            self._warn(
                result,
                f"{base_ref} is missing {inputs.filename}. See documentation on how to add this",
            )

        diff = CoverageDiffer(inputs).diff(head, base)
        report = MarkdownReportRenderer(inputs, self._badge_builder).render(head, base, diff)
        result.report = report

        # Regressions are reported even when publishing the report fails
        try:
            Path(report.output_file_path).write_text(report.text, encoding="utf-8")
            logger.info("Wrote coverage report to %s", report.output_file_path)
            self._io.append_summary(report.text)
            self._io.set_output("file", report.output_file_path)
            self._io.set_output("coverage", report.overall_coverage_percentage)
        finally:
            for failure in diff.failures:
                self._fail(result, failure.message)

    def _load_baseline(self, artifact_dir: Path | None) -> CoverageSnapshot | None:
        if artifact_dir is None:
            return None
        baseline_path = artifact_dir / archive_name(self._inputs.filename)
        if not baseline_path.is_file():
            logger.info("Artifact %s does not contain %s", artifact_dir, baseline_path.name)
            return None
        return load_coverage(baseline_path, self._workspace)

    # ── Signalling ───────────────────────────────────────────────

    def _warn(self, result: RunResult, message: str) -> None:
        result.warnings.append(message)
        self._io.warning(message)

    def _fail(self, result: RunResult, message: str) -> None:
        result.failures.append(message)
        result.status = RunStatus.FAILED
        self._io.set_failed(message)
