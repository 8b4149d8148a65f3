"""Stale requirement detection over a module requirement graph.

A requirement is stale when the version a module declares differs from the
version minimal version selection picks when building the main module. The
consuming module's own tests then run against a different version of the
dependency than the one used in production builds.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Iterable, List, Optional, Protocol, Set, Tuple

from common.errors import NotFound
from common.logging_utils import extra_context, is_debug_enabled
from constants import Constants
from graph.modgraph import ModGraph
from graph.models import ModuleVersion
from graph.modules import Modules

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StaleVersion:  # pylint: disable=too-many-instance-attributes
    """A declared requirement that differs from the version the build selects."""
    consumer: ModuleVersion  # the module version requiring an old upstream
    requirement: ModuleVersion  # the upstream module and its declared version
    selected_version: str  # the requirement version selected by MVS
    selected_reason: ModuleVersion  # a module declaring the selected version
    is_transitive: bool  # the requirement is outdated and has stale requirements itself
    highest_version: str  # the highest available version of the requirement

    def __str__(self) -> str:
        via = f" via {self.selected_reason}"
        if not self.selected_reason.path or self.selected_reason == self.consumer:
            via = ""
        if self.is_transitive:
            via += " (has stale transitive requirements)"
        return (
            f"{self.consumer} requires {self.requirement}, "
            f"builds with {self.selected_version}{via} (highest {self.highest_version})"
        )


@dataclass(frozen=True)
class Diagnostic:
    """An item skipped during detection, and why."""
    kind: str  # "module" or "requirement"
    subject: str
    message: str

    def __str__(self) -> str:
        return f"skipped {self.kind} {self.subject}: {self.message}"


@dataclass
class DetectionResult:
    """Findings together with the diagnostics for anything skipped."""
    findings: List[StaleVersion] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)


class TraversalPolicy(Protocol):  # pylint: disable=too-few-public-methods
    """Decides whether the traversal descends into a module's requirements."""

    def should_traverse(self, path: str) -> bool:
        ...


class PrefixExclusion:  # pylint: disable=too-few-public-methods
    """Skip modules under trusted path prefixes; nothing is actionable inside them."""

    def __init__(self, prefixes: Optional[Iterable[str]] = None):
        if prefixes is None:
            prefixes = Constants.EXCLUDED_PREFIXES
        self.prefixes: Tuple[str, ...] = tuple(p for p in prefixes if p)

    def should_traverse(self, path: str) -> bool:
        return not path.startswith(self.prefixes)


class AllowAll:  # pylint: disable=too-few-public-methods
    """Traverse every module."""

    def should_traverse(self, path: str) -> bool:  # pylint: disable=unused-argument
        return True


def find_stale_versions(
    modules: Modules,
    graph: ModGraph,
    policy: Optional[TraversalPolicy] = None,
) -> DetectionResult:
    """Find stale requirements in the graph rooted at the main module.

    The walk is breadth-first over modules, descending only through the
    version of each requirement that minimal version selection picks; older
    declared versions are dead ends. When an outdated module (one with an
    available update) declares a stale requirement, each of its consumers
    also receives a transitive finding suggesting they upgrade it.

    Lookup failures never abort the walk: the node or edge is skipped and a
    Diagnostic recorded.

    Args:
        modules: Module registry containing the main module
        graph: Requirement graph
        policy: Decides which modules are descended into (default: PrefixExclusion())

    Returns:
        DetectionResult with findings (unordered) and diagnostics
    """
    if policy is None:
        policy = PrefixExclusion()
    result = DetectionResult()
    root = modules.main().module_version
    queue: Deque[ModuleVersion] = deque([root])
    visited: Set[str] = {root.path}
    reported: Set[Tuple[str, str]] = set()

    while queue:
        node = queue.popleft()
        _visit(node, modules, graph, policy, queue, visited, reported, result)

    if is_debug_enabled(logger):
        logger.debug(
            "Stale version detection complete",
            extra=extra_context(
                event="function_exit",
                component="stale",
                action="find_stale_versions",
                count=len(result.findings),
                skipped=len(result.diagnostics),
                visited=len(visited),
            ),
        )
    return result


def _visit(  # pylint: disable=too-many-arguments,too-many-locals
    node: ModuleVersion,
    modules: Modules,
    graph: ModGraph,
    policy: TraversalPolicy,
    queue: Deque[ModuleVersion],
    visited: Set[str],
    reported: Set[Tuple[str, str]],
    result: DetectionResult,
) -> None:
    try:
        node_info = modules.for_path(node.path)
    except NotFound as exc:
        _skip(result, "module", str(node), exc)
        return

    node_outdated_with_stale = False
    for req in graph.upstream_of(node.path, node.version):
        key = (req.downstream.path, req.upstream.path)
        if key in reported:
            continue
        try:
            selected, reason = graph.selected_version(req.upstream.path)
            upstream_info = modules.for_path(req.upstream.path)
        except NotFound as exc:
            _skip(result, "requirement", str(req), exc)
            continue

        if req.upstream.version != selected:
            result.findings.append(StaleVersion(
                consumer=req.downstream,
                requirement=req.upstream,
                selected_version=selected,
                selected_reason=reason,
                is_transitive=False,
                highest_version=upstream_info.highest_version,
            ))
            reported.add(key)
            # An outdated module pulling in an old requirement: its consumers
            # are told to upgrade it too.
            if node_info.update is not None:
                node_outdated_with_stale = True
        elif req.upstream.path not in visited and policy.should_traverse(req.upstream.path):
            queue.append(req.upstream)
            visited.add(req.upstream.path)

    if node_outdated_with_stale:
        latest = node_info.update.version  # type: ignore[union-attr]
        for req in graph.downstream_of(node_info.path, node_info.version):
            key = (req.downstream.path, req.upstream.path)
            if key in reported:
                continue
            result.findings.append(StaleVersion(
                consumer=req.downstream,
                requirement=req.upstream,
                selected_version=node_info.version,
                selected_reason=req.downstream,
                is_transitive=True,
                highest_version=latest,
            ))
            reported.add(key)


def _skip(result: DetectionResult, kind: str, subject: str, exc: Exception) -> None:
    result.diagnostics.append(Diagnostic(kind, subject, str(exc)))
    if is_debug_enabled(logger):
        logger.debug(
            "Skipped during traversal",
            extra=extra_context(
                event="decision",
                component="stale",
                action="skip",
                outcome=kind,
                target=subject,
            ),
        )


def filter_findings(
    findings: Iterable[StaleVersion], main_path: str, include_all: bool = False
) -> List[StaleVersion]:
    """Keep findings whose consumer is the main module, or all of them."""
    return [f for f in findings if include_all or f.consumer.path == main_path]


def sort_findings(findings: Iterable[StaleVersion]) -> List[StaleVersion]:
    """Order findings for display: by consumer path, then requirement path."""
    return sorted(findings, key=lambda f: (f.consumer.path, f.requirement.path))
