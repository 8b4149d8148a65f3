"""Argument parsing functionality for rehab."""

import argparse
from typing import List, Optional

from constants import Constants


def _add_common(parser: argparse.ArgumentParser) -> None:
    """Options shared by every action."""
    parser.add_argument("-d", "--directory",
                        dest="DIRECTORY",
                        help="Directory of the main module (default: current directory)",
                        action="store", type=str, default=".")
    parser.add_argument("--modules-file",
                        dest="MODULES_FILE",
                        help="Read 'go list -json -m -u all' output from a file instead of running go",
                        action="store", type=str)
    parser.add_argument("--graph-file",
                        dest="GRAPH_FILE",
                        help="Read 'go mod graph' output from a file instead of running go",
                        action="store", type=str)
    parser.add_argument("-a", "--all",
                        dest="ALL",
                        help="Report stale requirements of every module, not only the main module",
                        action="store_true")
    parser.add_argument("--exclude-prefix",
                        dest="EXCLUDE_PREFIXES",
                        help=("Module path prefix whose requirements are not traversed "
                              f"(repeatable; default: {', '.join(Constants.EXCLUDED_PREFIXES)})"),
                        action="append", type=str)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to YAML configuration file",
                        action="store", type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help=f"Set the logging level (default: ${Constants.ENV_LOG_LEVEL} or WARNING)",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'])
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store", type=str)
    parser.add_argument("-v", "--verbose",
                        dest="VERBOSE",
                        help="Verbose logging (same as --loglevel DEBUG)",
                        action="store_true")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="rehab",
        description=(
            "rehab - find module requirements that differ from the versions "
            "minimal version selection builds with, and propose upgrades"
        ),
        add_help=True,
    )
    subparsers = parser.add_subparsers(dest="action", required=True)

    show = subparsers.add_parser("show", help="List stale requirements")
    _add_common(show)

    propose = subparsers.add_parser(
        "propose", help="Publish manifest upgrades for stale requirements"
    )
    _add_common(propose)
    propose.add_argument("--selected",
                         dest="SELECTED",
                         help="Upgrade to the version the build selects instead of the highest available",
                         action="store_true")
    propose.add_argument("--branch-prefix",
                         dest="BRANCH_PREFIX",
                         help=f"Prefix for pushed branch names (default: {Constants.BRANCH_PREFIX})",
                         action="store", type=str)
    propose.add_argument("--pull",
                         dest="PULL",
                         help="Open a pull request instead of printing a compare link",
                         action="store_true")
    propose.add_argument("--token",
                         dest="TOKEN",
                         help=f"GitHub token (default: ${Constants.ENV_GITHUB_TOKEN})",
                         action="store", type=str)
    propose.add_argument("--workers",
                         dest="WORKERS",
                         help=f"Repositories remediated concurrently (default: {Constants.REMEDIATION_WORKERS})",
                         action="store", type=int)

    return parser.parse_args(argv)
