"""Shared CLI plumbing: logging setup, configuration and graph inputs."""

from __future__ import annotations

import logging
import sys
from typing import Any, Tuple

from common.errors import FetchError, ParseError
from common.logging_utils import configure_logging
from constants import ExitCodes, _load_yaml_config
from fetch import golist
from graph.modgraph import ModGraph
from graph.modules import Modules
from remediation.orchestrator import RemediationOptions

logger = logging.getLogger(__name__)


def setup_logging(args: Any) -> None:
    """Configure logging based on CLI arguments.

    Verbose mode (from the command line or the config file) forces DEBUG;
    otherwise --loglevel wins over REHAB_LOG_LEVEL.

    Args:
        args: Parsed CLI arguments.
    """
    level = "DEBUG" if load_options(args).verbose else getattr(args, "LOG_LEVEL", None)
    configure_logging(level)

    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logging.getLogger().addHandler(file_handler)
        logger.info("Logging to file: %s", log_file)


def load_options(args: Any) -> RemediationOptions:
    """Build options from CLI arguments and the optional YAML config."""
    return RemediationOptions.from_args(args, _load_yaml_config(getattr(args, "CONFIG", None)))


def load_inputs(args: Any) -> Tuple[Modules, ModGraph]:
    """Load the module registry and requirement graph, exiting on failure.

    Saved outputs given with --modules-file/--graph-file are read instead of
    running the go command.
    """
    root = getattr(args, "DIRECTORY", ".")
    try:
        if getattr(args, "MODULES_FILE", None):
            infos = golist.load_modules_file(args.MODULES_FILE)
        else:
            infos = golist.list_modules(root)
        if getattr(args, "GRAPH_FILE", None):
            edges = golist.load_graph_file(args.GRAPH_FILE)
        else:
            edges = golist.list_module_graph(root)
        modules = Modules(infos)
    except (FetchError, ParseError, ValueError) as exc:
        logger.error("error listing modules: %s", exc)
        sys.exit(ExitCodes.FILE_ERROR.value)
    logger.info("loaded %d modules and %d requirements", len(modules), len(edges))
    return modules, ModGraph(edges)
