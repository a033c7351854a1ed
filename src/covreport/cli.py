"""covreport CLI: top-level command group."""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler

from covreport import __version__
from covreport.adapters.artifacts import (
    ActionsRuntime,
    ArtifactError,
    GitHubArtifactStore,
    LocalArtifactStore,
    archive_name,
)
from covreport.adapters.coverage import load_coverage
from covreport.analyzers.diff import CoverageDiffer
from covreport.config import ConfigError, ReportInputs, load_inputs, validate_inputs
from covreport.orchestrator import CoverageReportRunner
from covreport.reporters.markdown import render
from covreport.reporters.terminal import reporter
from covreport.utils.actions import ActionsIO
from covreport.utils.ci_context import detect_ci_context

logger = logging.getLogger(__name__)
console = Console()

# Masking thresholds
_MIN_MASKED_VALUE_LENGTH = 8


def _configure_logging(*, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _load_inputs(config_path: str | None, overrides: dict[str, Any] | None = None) -> ReportInputs:
    try:
        return load_inputs(config_path=config_path, overrides=overrides)
    except ConfigError as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e


def _mask_token(value: str) -> str:
    if not value:
        return value
    if len(value) > _MIN_MASKED_VALUE_LENGTH:
        return f"{value[:4]}...{value[-4:]}"
    return "***"


def _inputs_to_dict(inputs: ReportInputs, *, mask: bool) -> dict[str, Any]:
    result = asdict(inputs)
    workflow_names = result["artifact_download_workflow_names"]
    if workflow_names is not None:
        result["artifact_download_workflow_names"] = list(workflow_names)
    if mask:
        result["token"] = _mask_token(result["token"])
    return result


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.version_option(version=__version__, prog_name="covreport")
def cli(*, verbose: bool) -> None:
    """covreport: compare pull request coverage with its base branch."""
    _configure_logging(verbose=verbose)


@cli.command()
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(dir_okay=False),
    help="YAML configuration file (default: .covreport.yml if present).",
)
def run(config_path: str | None) -> None:
    """Run inside a GitHub Actions workflow step.

    On pull requests the coverage report is compared with the baseline
    artifact of the target branch; on push, schedule and workflow_dispatch
    events the report is uploaded as the baseline for the current branch.

    Example:
      covreport run
    """
    inputs = _load_inputs(config_path)
    problems = validate_inputs(inputs)
    if problems:
        for problem in problems:
            reporter.print_error(problem)
        raise click.Abort

    context = detect_ci_context()
    logger.debug("Event %s on %s", context.event_name, context.repository)

    store = GitHubArtifactStore(
        context.repo_owner or "",
        context.repo_name or "",
        token=inputs.token or None,
        api_url=context.api_url,
        artifact_name=inputs.artifact_name,
        runtime=ActionsRuntime.from_env(),
    )
    result = CoverageReportRunner(inputs, context, store, ActionsIO()).run()
    if result.failed:
        sys.exit(1)


@cli.command()
@click.argument("head", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--base",
    "base_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="Baseline coverage report to compare against.",
)
@click.option(
    "--store",
    "store_dir",
    default=None,
    type=click.Path(file_okay=False),
    help="Local artifact directory to read the baseline from (and --save to).",
)
@click.option("--tag", default="main", show_default=True, help="Branch name of the baseline.")
@click.option("--save", is_flag=True, help="Store HEAD in --store as the baseline for --tag.")
@click.option(
    "--markdown",
    "markdown_out",
    default=None,
    type=click.Path(dir_okay=False),
    help="Also write the Markdown report to this file.",
)
@click.option(
    "--fail-under",
    default=None,
    type=float,
    help="Minimum overall coverage (overrides overall_coverage_fail_threshold).",
)
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(dir_okay=False),
    help="YAML configuration file (default: .covreport.yml if present).",
)
def compare(
    head: str,
    base_path: str | None,
    store_dir: str | None,
    tag: str,
    markdown_out: str | None,
    fail_under: float | None,
    config_path: str | None,
    *,
    save: bool,
) -> None:
    """Compare a coverage report with a baseline on the local machine.

    Example:
      covreport compare coverage.xml --base main-coverage.xml
      covreport compare coverage.xml --store .coverage-artifacts --tag main --save
    """
    inputs = _load_inputs(
        config_path,
        overrides={"filename": head, "overall_coverage_fail_threshold": fail_under},
    )
    store = LocalArtifactStore(store_dir, inputs.artifact_name) if store_dir else None

    head_snapshot = load_coverage(head)
    if head_snapshot is None:
        reporter.print_error(f"Unable to process {head}")
        raise click.Abort

    if base_path is None and store is not None:
        artifact_dir = store.retrieve(tag)
        if artifact_dir is not None and (artifact_dir / archive_name(head)).is_file():
            base_path = str(artifact_dir / archive_name(head))

    base_snapshot = None
    if base_path is not None:
        base_snapshot = load_coverage(base_path)
        if base_snapshot is None:
            reporter.print_warning(f"Unable to process baseline {base_path}")
    else:
        reporter.print_warning("No baseline report found; showing head coverage only")

    diff = CoverageDiffer(inputs).diff(head_snapshot, base_snapshot)
    reporter.print_header("Code Coverage Report")
    reporter.print_coverage_comparison(diff, inputs)

    if markdown_out:
        report = render(head_snapshot, base_snapshot, diff, inputs)
        Path(markdown_out).write_text(report.text, encoding="utf-8")
        reporter.print_info(f"Markdown report written to {markdown_out}")

    if save:
        if store is None:
            reporter.print_error("--save requires --store")
            raise click.Abort
        try:
            store.store([head], tag)
        except ArtifactError as e:
            reporter.print_error(str(e))
            raise click.Abort from e
        reporter.print_success(f"Stored {head} as the baseline for {tag}")

    for failure in diff.failures:
        reporter.print_error(failure.message)
    if diff.failed:
        sys.exit(1)
    reporter.print_success("Coverage checks passed")


@cli.group("config")
def config_group() -> None:
    """Inspect the resolved run configuration."""


@config_group.command("show")
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(dir_okay=False),
    help="YAML configuration file (default: .covreport.yml if present).",
)
@click.option("--json-output", "as_json", is_flag=True, help="Output as JSON instead of YAML.")
@click.option("--no-mask", is_flag=True, help="Show the token unmasked (use with caution).")
def config_show(config_path: str | None, *, as_json: bool, no_mask: bool) -> None:
    """Display the resolved configuration with the token masked.

    Example:
      covreport config show
      covreport config show --json-output
    """
    inputs = _load_inputs(config_path)
    config_dict = _inputs_to_dict(inputs, mask=not no_mask)

    if as_json:
        click.echo(json.dumps(config_dict, indent=2))
    else:
        console.print()
        console.print("[bold cyan]Configuration:[/bold cyan]")
        console.print()
        click.echo(yaml.safe_dump(config_dict, sort_keys=False, default_flow_style=False))


@config_group.command("validate")
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(dir_okay=False),
    help="YAML configuration file (default: .covreport.yml if present).",
)
def config_validate(config_path: str | None) -> None:
    """Validate the resolved configuration.

    Example:
      covreport config validate
    """
    inputs = _load_inputs(config_path)
    errors = validate_inputs(inputs)

    if not errors:
        reporter.print_success("Configuration is valid!")
        return

    reporter.print_error(f"Found {len(errors)} configuration error(s):")
    console.print()
    for idx, error in enumerate(errors, start=1):
        console.print(f"  {idx}. [red]{error}[/red]")
    raise click.Abort
