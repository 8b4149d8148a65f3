"""CLI entry point for the show action: print stale requirements."""

from __future__ import annotations

import logging
import sys
from typing import Any, Optional, TextIO

from analysis.stale import PrefixExclusion, filter_findings, find_stale_versions, sort_findings
from cli_inputs import load_inputs, load_options
from constants import ExitCodes

logger = logging.getLogger(__name__)


def run_show(args: Any, out: Optional[TextIO] = None) -> int:
    """Print stale requirements, one per line, sorted by consumer.

    Returns:
        Process exit code
    """
    out = out or sys.stdout
    options = load_options(args)
    modules, graph = load_inputs(args)
    result = find_stale_versions(modules, graph, PrefixExclusion(options.exclude_prefixes))
    for diag in result.diagnostics:
        logger.warning("%s", diag)

    findings = filter_findings(result.findings, modules.main().path, not options.restrict_to_main)
    for finding in sort_findings(findings):
        out.write(f"{finding}\n")
    return ExitCodes.SUCCESS.value
