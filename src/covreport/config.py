"""Run configuration from action inputs and an optional ``.covreport.yml``.

Sources, lowest to highest priority:

1. Built-in defaults (``ReportInputs`` field defaults).
2. ``.covreport.yml`` (or an explicit ``--config`` file), with ``${VAR}``
   placeholders resolved from the environment.
3. GitHub Actions inputs (``INPUT_<NAME>`` environment variables).
4. Explicit overrides (CLI options).

The result is an immutable ``ReportInputs`` built once per run.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, fields
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = ".covreport.yml"

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")
_TRUE_VALUES = {"true", "True", "TRUE"}
_FALSE_VALUES = {"false", "False", "FALSE"}
_LIST_SPLIT_RE = re.compile(r"[,\n]")

# Characters GitHub rejects in artifact names
_FORBIDDEN_ARTIFACT_CHARS = set('":<>|*?\\/\r\n')

# Input names that differ from the field names
_INPUT_ALIASES = {"token": "github_token"}

_MAX_PERCENT = 100.0


class ConfigError(ValueError):
    """Raised when an input cannot be converted to its expected type."""


@dataclass(frozen=True)
class ReportInputs:
    """Immutable per-run configuration."""

    token: str = ""
    """GitHub token used to list and download artifacts."""

    filename: str = "coverage.xml"
    """Path of the coverage report to read (and to store as the baseline)."""

    badge: bool = False
    """Include a coverage badge image in the report."""

    overall_coverage_fail_threshold: float = 0.0
    """Fail when overall coverage is below this percentage."""

    file_coverage_error_min: float = 50.0
    """Per-file percentages below this are errors."""

    file_coverage_warning_max: float = 80.0
    """Per-file percentages below this (and not errors) are warnings."""

    fail_on_negative_difference: bool = False
    """Fail when any file's coverage decreased against the baseline."""

    fail_on_negative_overall_difference: bool = False
    """Fail when overall coverage decreased against the baseline."""

    markdown_filename: str = "code-coverage-results"
    """Report basename; ``.md`` is appended."""

    artifact_download_workflow_names: tuple[str, ...] | None = None
    """Workflows to search for the baseline artifact (None searches all)."""

    artifact_name: str = "coverage-%name%"
    """Artifact name template; ``%name%`` is replaced by the branch name."""

    report_overall_coverage: bool = True
    """Render the overall comparison block."""

    report_package_coverage: bool = True
    """Render the per-file table."""

    @property
    def markdown_path(self) -> str:
        """Return the output report path (``<markdown_filename>.md``)."""
        return f"{self.markdown_filename}.md"


# ── Environment placeholder resolution ───────────────────────────


def _resolve_env_vars(value: str, environ: Mapping[str, str]) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_dict(data: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    """Resolve environment placeholders in string and list values."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            result[key] = _resolve_env_vars(value, environ)
        elif isinstance(value, list):
            result[key] = [
                _resolve_env_vars(item, environ) if isinstance(item, str) else item
                for item in value
            ]
        else:
            result[key] = value
    return result


# ── Coercion ─────────────────────────────────────────────────────


def _parse_bool(name: str, value: Any) -> bool:
    """Parse a boolean the way GitHub Actions' ``getBooleanInput`` does."""
    if isinstance(value, bool):
        return value
    text = str(value).strip()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigError(
        f"Input does not meet YAML 1.2 'Core Schema' specification: {name}\n"
        "Support boolean input list: `true | True | TRUE | false | False | FALSE`"
    )


def _parse_float(name: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ConfigError(f"Input {name} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Input {name} must be a number, got {value!r}") from exc


def _parse_list(value: Any) -> tuple[str, ...] | None:
    """Parse a comma/newline separated list; empty means None."""
    if value is None:
        return None
    items = value if isinstance(value, (list, tuple)) else _LIST_SPLIT_RE.split(str(value))
    names = tuple(str(item).strip() for item in items if str(item).strip())
    return names or None


def _coerce(name: str, value: Any) -> Any:
    field_types = {f.name: f.type for f in fields(ReportInputs)}
    field_type = str(field_types[name])
    if field_type == "bool":
        return _parse_bool(name, value)
    if field_type == "float":
        return _parse_float(name, value)
    if name == "artifact_download_workflow_names":
        return _parse_list(value)
    return "" if value is None else str(value).strip()


# ── Sources ──────────────────────────────────────────────────────


def _load_yaml_file(path: Path, environ: Mapping[str, str]) -> dict[str, Any]:
    try:
        parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ConfigError(f"{path} must contain a mapping of input names to values")
    return _resolve_dict(parsed, environ)


def _action_inputs(environ: Mapping[str, str]) -> dict[str, str]:
    """Collect ``INPUT_<NAME>`` values; empty strings count as unset."""
    result: dict[str, str] = {}
    for f in fields(ReportInputs):
        input_name = _INPUT_ALIASES.get(f.name, f.name)
        value = environ.get(f"INPUT_{input_name.upper()}", "")
        if value.strip():
            result[f.name] = value
    return result


def _normalize_keys(raw: dict[str, Any]) -> dict[str, Any]:
    """Map input names (``github_token``, ``file-coverage-error-min``) to fields."""
    known = {f.name for f in fields(ReportInputs)}
    aliases = {alias: name for name, alias in _INPUT_ALIASES.items()}
    result: dict[str, Any] = {}
    for key, value in raw.items():
        name = str(key).replace("-", "_")
        name = aliases.get(name, name)
        if name not in known:
            logger.warning("Ignoring unknown configuration key: %s", key)
            continue
        result[name] = value
    return result


def load_inputs(
    environ: Mapping[str, str] | None = None,
    config_path: str | Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> ReportInputs:
    """Build the run configuration.

    Args:
        environ: Environment to read ``INPUT_*`` values from (default: os.environ).
        config_path: Explicit YAML file. When None, ``.covreport.yml`` in the
            working directory is used if present.
        overrides: Highest-priority values keyed by field name; None values
            are ignored.

    Returns:
        The immutable ``ReportInputs``.

    Raises:
        ConfigError: If a value cannot be converted or the file is malformed.
    """
    env = os.environ if environ is None else environ

    raw: dict[str, Any] = {}
    yaml_path = Path(config_path) if config_path is not None else Path(DEFAULT_CONFIG_FILE)
    if yaml_path.is_file():
        logger.debug("Reading configuration from %s", yaml_path)
        raw.update(_normalize_keys(_load_yaml_file(yaml_path, env)))
    elif config_path is not None:
        raise ConfigError(f"Configuration file not found: {yaml_path}")

    raw.update(_action_inputs(env))
    if overrides:
        raw.update({k: v for k, v in _normalize_keys(dict(overrides)).items() if v is not None})

    values = {name: _coerce(name, value) for name, value in raw.items()}
    if not values.get("token"):
        values["token"] = env.get("GITHUB_TOKEN", "")

    return ReportInputs(**values)


# ── Validation ───────────────────────────────────────────────────


def validate_inputs(inputs: ReportInputs) -> list[str]:
    """Return a list of configuration problems (empty when valid)."""
    errors: list[str] = []

    if not inputs.filename:
        errors.append("filename must not be empty")
    if not inputs.markdown_filename:
        errors.append("markdown_filename must not be empty")

    for name in (
        "overall_coverage_fail_threshold",
        "file_coverage_error_min",
        "file_coverage_warning_max",
    ):
        value = getattr(inputs, name)
        if not 0.0 <= value <= _MAX_PERCENT:
            errors.append(f"{name} must be between 0 and 100, got {value}")

    if inputs.file_coverage_error_min > inputs.file_coverage_warning_max:
        errors.append(
            "file_coverage_error_min "
            f"({inputs.file_coverage_error_min}) is above file_coverage_warning_max "
            f"({inputs.file_coverage_warning_max})"
        )

    if not inputs.artifact_name:
        errors.append("artifact_name must not be empty")
    elif _FORBIDDEN_ARTIFACT_CHARS & set(inputs.artifact_name):
        errors.append(f"artifact_name contains characters GitHub rejects: {inputs.artifact_name!r}")

    return errors
