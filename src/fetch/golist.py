"""Module registry and requirement graph from the go command."""

from __future__ import annotations

import json
import logging
from typing import List

from common.errors import FetchError, ParseError
from constants import Constants
from fetch.exec import run_command
from graph.models import ModuleInfo, RequirementEdge

logger = logging.getLogger(__name__)


def fix_list_json(raw: bytes) -> bytes:
    """Turn `go list -json` output into a JSON array.

    The go command prints a sequence of objects without delimiting commas
    or surrounding brackets.
    """
    raw = raw.strip().replace(b"\n}\n", b"\n},\n")
    if not raw:
        return b"[]"
    return b"[\n" + raw + b"\n]"


def parse_modules(raw: bytes) -> List[ModuleInfo]:
    """Parse `go list -json -m` output; the main module comes first.

    Records without a module path are logged and skipped.

    Raises:
        ParseError: if the output is not the expected JSON
    """
    try:
        records = json.loads(fix_list_json(raw))
    except json.JSONDecodeError as exc:
        raise ParseError(f"failed parsing module information: {exc}") from exc
    if not isinstance(records, list):
        raise ParseError("failed parsing module information: not a list")
    infos = []
    for record in records:
        try:
            infos.append(ModuleInfo.from_dict(record))
        except ParseError as exc:
            logger.warning("skipping module record: %s", exc)
    return infos


def parse_module_graph(raw: bytes) -> List[RequirementEdge]:
    """Parse `go mod graph` output, one edge per line.

    Malformed lines are logged and skipped.
    """
    edges = []
    for line in raw.decode("utf-8", errors="replace").splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            edges.append(RequirementEdge.parse(line))
        except ParseError as exc:
            logger.warning("skipping requirement: %s", exc)
    return edges


def list_modules(root: str) -> List[ModuleInfo]:
    """List the main module at ``root`` and its dependencies, with available updates."""
    raw = run_command(root, Constants.GO_BINARY, "list", "-json", "-m", "-u", "all")
    return parse_modules(raw)


def list_module_graph(root: str) -> List[RequirementEdge]:
    """List the module requirement graph of the module at ``root``."""
    raw = run_command(root, Constants.GO_BINARY, "mod", "graph")
    return parse_module_graph(raw)


def _read(path: str) -> bytes:
    try:
        with open(path, "rb") as fh:
            return fh.read()
    except OSError as exc:
        raise FetchError(f"failed reading {path}: {exc}") from exc


def load_modules_file(path: str) -> List[ModuleInfo]:
    """Read saved `go list -json -m -u all` output."""
    return parse_modules(_read(path))


def load_graph_file(path: str) -> List[RequirementEdge]:
    """Read saved `go mod graph` output."""
    return parse_module_graph(_read(path))
