"""Run external commands in a working directory."""

from __future__ import annotations

import logging
import os
import subprocess

from common.errors import FetchError
from common.logging_utils import extra_context, is_debug_enabled, Timer

logger = logging.getLogger(__name__)


def run_command(working_dir: str, cmd: str, *args: str) -> bytes:
    """Run ``cmd`` with ``args`` in ``working_dir`` and return its stdout.

    Stderr is left to the console.

    Raises:
        FetchError: if the command cannot be started or exits non-zero
    """
    working_dir = os.path.abspath(working_dir)
    invocation = [cmd, *args]
    with Timer() as t:
        try:
            proc = subprocess.run(
                invocation,
                cwd=working_dir,
                stdout=subprocess.PIPE,
                check=False,
            )
        except OSError as exc:
            raise FetchError(f"failed to run '{' '.join(invocation)}': {exc}") from exc
    if is_debug_enabled(logger):
        logger.debug(
            "Command finished",
            extra=extra_context(
                event="exec",
                component="fetch",
                action=cmd,
                outcome=proc.returncode,
                duration_ms=t.duration_ms(),
                target=working_dir,
            ),
        )
    if proc.returncode != 0:
        raise FetchError(
            f"failed to run '{' '.join(invocation)}' in {working_dir}: exit status {proc.returncode}"
        )
    return proc.stdout
