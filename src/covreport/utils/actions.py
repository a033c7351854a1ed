"""GitHub Actions workflow commands: outputs, job summary, and annotations.

Outputs and the job summary are file based (``$GITHUB_OUTPUT`` and
``$GITHUB_STEP_SUMMARY``); annotations are ``::warning::`` / ``::error::``
lines on stdout.
"""

from __future__ import annotations

import logging
import os
import sys
import uuid
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping
    from typing import TextIO

logger = logging.getLogger(__name__)


def _escape_data(value: str) -> str:
    """Escape an annotation message the way the Actions toolkit does."""
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class ActionsIO:
    """Parameter passing and summary publishing for one Actions step.

    Outputs are also kept in ``outputs`` so callers outside Actions (and
    tests) can read them back.
    """

    def __init__(
        self, environ: Mapping[str, str] | None = None, stream: TextIO | None = None
    ) -> None:
        self._env = os.environ if environ is None else environ
        self._stream = stream
        self.outputs: dict[str, str] = {}
        self.failed = False

    @property
    def _out(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def _command(self, command: str, message: str) -> None:
        self._out.write(f"::{command}::{_escape_data(message)}\n")
        self._out.flush()

    # ── Annotations ──────────────────────────────────────────────

    def debug(self, message: str) -> None:
        """Emit a debug message (visible with step debug logging)."""
        self._command("debug", message)

    def notice(self, message: str) -> None:
        """Emit a notice annotation."""
        self._command("notice", message)

    def warning(self, message: str) -> None:
        """Emit a warning annotation."""
        logger.warning(message)
        self._command("warning", message)

    def error(self, message: str) -> None:
        """Emit an error annotation."""
        logger.error(message)
        self._command("error", message)

    def set_failed(self, message: str) -> None:
        """Record the step as failed and emit *message* as an error."""
        self.failed = True
        self.error(message)

    # ── Outputs ──────────────────────────────────────────────────

    def set_output(self, name: str, value: object) -> None:
        """Set a step output, appending to ``$GITHUB_OUTPUT`` when available."""
        text = str(value)
        self.outputs[name] = text

        output_file = self._env.get("GITHUB_OUTPUT")
        if not output_file:
            logger.debug("GITHUB_OUTPUT is not set; output %s=%s kept in memory", name, text)
            return

        delimiter = f"ghadelimiter_{uuid.uuid4()}"
        with Path(output_file).open("a", encoding="utf-8") as fh:
            fh.write(f"{name}<<{delimiter}\n{text}\n{delimiter}\n")

    # ── Job summary ──────────────────────────────────────────────

    def append_summary(self, markdown: str) -> bool:
        """Append *markdown* to the job summary.

        Returns:
            True if the summary file was written, False outside Actions.
        """
        summary_file = self._env.get("GITHUB_STEP_SUMMARY")
        if not summary_file:
            logger.info("GITHUB_STEP_SUMMARY is not set; skipping job summary")
            return False

        with Path(summary_file).open("a", encoding="utf-8") as fh:
            fh.write(markdown)
        return True
