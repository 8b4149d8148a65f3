"""CLI entry point for the propose action: publish requirement upgrades."""

from __future__ import annotations

import logging
import sys
from typing import Any, Optional, TextIO

from cli_inputs import load_inputs, load_options
from constants import Constants, ExitCodes
from remediation.orchestrator import propose

logger = logging.getLogger(__name__)


def run_propose(args: Any, out: Optional[TextIO] = None) -> int:
    """Remediate each consumer with stale requirements and print the outcomes.

    Returns:
        Process exit code; REMEDIATION_FAILED when any consumer failed
    """
    out = out or sys.stdout
    options = load_options(args)
    if not options.token:
        logger.warning(
            "No GitHub token; set %s or pass --token. Remote edits will likely be refused.",
            Constants.ENV_GITHUB_TOKEN,
        )
    modules, graph = load_inputs(args)
    result = propose(modules, graph, options)
    for diag in result.detection.diagnostics:
        logger.warning("%s", diag)

    if not result.outcomes:
        logger.info("no stale requirements to upgrade")
    for outcome in result.outcomes:
        out.write(f"{outcome}\n")
    if result.failed:
        return ExitCodes.REMEDIATION_FAILED.value
    return ExitCodes.SUCCESS.value
