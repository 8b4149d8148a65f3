"""Remediation of stale requirements: one manifest edit per consuming module.

Findings are grouped by consumer. For each consumer the manifest in its
hosted repository is edited, committed, published on a branch and offered
as a pull request or compare link. Consumers are independent: they touch
different repositories, so they are remediated concurrently, and a failure
for one never stops the others.
"""

from __future__ import annotations

import hashlib
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from analysis.stale import (
    DetectionResult,
    PrefixExclusion,
    StaleVersion,
    TraversalPolicy,
    filter_findings,
    find_stale_versions,
)
from common.errors import ParseError, RehabError, UnsupportedHost, NotFound
from common.logging_utils import extra_context, is_debug_enabled
from constants import Constants, OutcomeStatus
from graph.modgraph import ModGraph
from graph.models import ModuleVersion
from graph.modules import Modules
from remediation.gomod import GoModFile
from repository.github import GitHubRepository
from repository.url_normalize import RepoRef, resolve_module_repo

logger = logging.getLogger(__name__)

UpgradeRequest = Dict[str, List[ModuleVersion]]
RepoOpener = Callable[[RepoRef, Optional[str]], Any]


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


@dataclass
class RemediationOptions:  # pylint: disable=too-many-instance-attributes
    """Configuration for detection filtering and remediation."""

    restrict_to_main: bool = True
    upgrade_to_selected: bool = False  # MVS-selected version instead of highest available
    branch_prefix: str = Constants.BRANCH_PREFIX
    open_pull_request: bool = False  # compare link only, unless set
    token: Optional[str] = None
    verbose: bool = False
    workers: int = Constants.REMEDIATION_WORKERS
    manifest_name: str = Constants.MANIFEST_NAME
    exclude_prefixes: List[str] = field(default_factory=lambda: list(Constants.EXCLUDED_PREFIXES))

    @classmethod
    def from_args(cls, args: Any, file_config: Optional[Mapping[str, Any]] = None) -> "RemediationOptions":
        """Create options from CLI arguments layered over a config file.

        Precedence is CLI, then environment (token only), then the config
        file, then defaults.

        Args:
            args: Parsed CLI arguments namespace.
            file_config: Mapping loaded from the YAML config file.

        Returns:
            RemediationOptions instance.
        """
        cfg = dict(file_config or {})
        opts = cls()
        opts.restrict_to_main = not (
            getattr(args, "ALL", False) or _as_bool(cfg.get("all", not opts.restrict_to_main))
        )
        opts.upgrade_to_selected = getattr(args, "SELECTED", False) or _as_bool(
            cfg.get("upgrade_to_selected", opts.upgrade_to_selected)
        )
        opts.open_pull_request = getattr(args, "PULL", False) or _as_bool(
            cfg.get("open_pull_request", opts.open_pull_request)
        )
        opts.verbose = getattr(args, "VERBOSE", False) or _as_bool(cfg.get("verbose", opts.verbose))
        opts.branch_prefix = (
            getattr(args, "BRANCH_PREFIX", None) or cfg.get("branch_prefix") or opts.branch_prefix
        )
        opts.token = (
            getattr(args, "TOKEN", None)
            or os.environ.get(Constants.ENV_GITHUB_TOKEN)
            or cfg.get("token")
        )
        workers = getattr(args, "WORKERS", None)
        if workers is None:
            workers = cfg.get("workers", opts.workers)
        opts.workers = max(1, int(workers))
        opts.manifest_name = cfg.get("manifest_name") or opts.manifest_name
        excludes = getattr(args, "EXCLUDE_PREFIXES", None) or cfg.get("exclude_prefixes")
        if excludes is not None:
            opts.exclude_prefixes = [str(p) for p in excludes]
        return opts


@dataclass
class RemediationOutcome:
    """What happened for one consuming module."""

    consumer: str
    status: OutcomeStatus
    url: Optional[str] = None
    error: Optional[str] = None

    def __str__(self) -> str:
        if self.status in (OutcomeStatus.PULL, OutcomeStatus.COMPARE):
            return f"{self.consumer}: {self.url}"
        if self.status == OutcomeStatus.NO_CHANGES:
            return f"{self.consumer}: no changes"
        return f"{self.consumer}: {self.status.value} ({self.error})"


@dataclass
class ProposalResult:
    """Outcomes of a remediation run, with the detection that produced them."""

    detection: DetectionResult
    outcomes: List[RemediationOutcome] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return any(o.status == OutcomeStatus.FAILED for o in self.outcomes)


def plan_upgrades(
    findings: Iterable[StaleVersion], main_path: str, options: RemediationOptions
) -> UpgradeRequest:
    """Group findings by consumer path into requirement upgrades.

    The target is the requirement's highest available version, or the
    version MVS already selects when ``upgrade_to_selected`` is set.
    """
    upgrades: UpgradeRequest = {}
    for finding in filter_findings(findings, main_path, not options.restrict_to_main):
        target = finding.selected_version if options.upgrade_to_selected else finding.highest_version
        if not target:
            continue
        reqs = upgrades.setdefault(finding.consumer.path, [])
        if all(r.path != finding.requirement.path for r in reqs):
            reqs.append(ModuleVersion(finding.requirement.path, target))
    return upgrades


def make_transform(reqs: List[ModuleVersion], name: str = Constants.MANIFEST_NAME) -> Callable[[bytes], bytes]:
    """Build a manifest transform applying ``reqs``.

    A requirement that cannot be applied is logged and skipped; only an
    unparseable manifest fails the transform.
    """
    def transform(content: bytes) -> bytes:
        modfile = GoModFile.parse(content, name)
        for req in reqs:
            try:
                modfile.add_require(req.path, req.version)
            except ParseError as exc:
                logger.warning("failed to add requirement %s: %s", req, exc)
        return modfile.format()
    return transform


def branch_name(prefix: str, reqs: Iterable[ModuleVersion]) -> str:
    """Deterministic branch name for a set of requirement upgrades."""
    digest = hashlib.sha1(
        "\n".join(sorted(str(r) for r in reqs)).encode("utf-8")
    ).hexdigest()[:10]
    return f"{prefix}upgrade-{digest}"


def pull_body(consumer: str, reqs: Iterable[ModuleVersion]) -> str:
    lines = [
        f"Upgrades requirements of `{consumer}` to match the versions its consumers build with.",
        "",
    ]
    lines.extend(f"- `{r.path}` to `{r.version}`" for r in reqs)
    return "\n".join(lines) + "\n"


def remediate(
    consumer: str,
    reqs: List[ModuleVersion],
    modules: Modules,
    options: RemediationOptions,
    open_repo: RepoOpener,
) -> RemediationOutcome:
    """Edit, commit, branch and publish one consumer's upgrades.

    Errors are captured in the returned outcome rather than raised.
    """
    try:
        info = modules.for_path(consumer)
        ref = resolve_module_repo(info.path)
    except (NotFound, UnsupportedHost) as exc:
        logger.warning("can't upgrade %s: %s", consumer, exc)
        return RemediationOutcome(consumer, OutcomeStatus.SKIPPED, error=str(exc))

    logger.info("upgrading %s in %s", consumer, ref.full_name)
    try:
        repo = open_repo(ref, options.token)
        manifest = ref.manifest_path(options.manifest_name)
        commit = repo.edit_file(manifest, make_transform(reqs, manifest))
        if commit is None:
            return RemediationOutcome(consumer, OutcomeStatus.NO_CHANGES)
        ref_name = repo.make_branch(commit, branch_name(options.branch_prefix, reqs))
        body = pull_body(consumer, reqs)
        if options.open_pull_request:
            url = repo.make_pull(ref_name, Constants.PULL_TITLE, body)
            return RemediationOutcome(consumer, OutcomeStatus.PULL, url=url)
        url = repo.compare_branch(ref_name, Constants.PULL_TITLE, body)
        return RemediationOutcome(consumer, OutcomeStatus.COMPARE, url=url)
    except RehabError as exc:
        logger.error("failed upgrading %s: %s", consumer, exc)
        return RemediationOutcome(consumer, OutcomeStatus.FAILED, error=str(exc))
    except Exception as exc:  # pylint: disable=broad-exception-caught
        logger.exception("unexpected error upgrading %s", consumer)
        return RemediationOutcome(consumer, OutcomeStatus.FAILED, error=f"{type(exc).__name__}: {exc}")


def propose(
    modules: Modules,
    graph: ModGraph,
    options: Optional[RemediationOptions] = None,
    open_repo: Optional[RepoOpener] = None,
    policy: Optional[TraversalPolicy] = None,
) -> ProposalResult:
    """Detect stale requirements and publish one remediation per consumer.

    Args:
        modules: Module registry
        graph: Requirement graph
        options: Remediation options (defaults to RemediationOptions())
        open_repo: Opens a repository gateway (defaults to GitHubRepository.open)
        policy: Traversal policy (defaults to excluding options.exclude_prefixes)

    Returns:
        ProposalResult with outcomes sorted by consumer path
    """
    options = options or RemediationOptions()
    open_repo = open_repo or GitHubRepository.open
    policy = policy or PrefixExclusion(options.exclude_prefixes)

    detection = find_stale_versions(modules, graph, policy)
    upgrades = plan_upgrades(detection.findings, modules.main().path, options)
    result = ProposalResult(detection=detection)
    if not upgrades:
        return result

    if is_debug_enabled(logger):
        logger.debug(
            "Planned upgrades",
            extra=extra_context(
                event="decision",
                component="orchestrator",
                action="plan_upgrades",
                count=len(upgrades),
            ),
        )

    workers = max(1, min(options.workers, len(upgrades)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [
            pool.submit(remediate, consumer, reqs, modules, options, open_repo)
            for consumer, reqs in upgrades.items()
        ]
        result.outcomes = sorted((f.result() for f in futures), key=lambda o: o.consumer)
    return result
