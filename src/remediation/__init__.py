"""Manifest editing and remediation of stale requirements."""

from .gomod import GoModFile
from .orchestrator import (
    ProposalResult,
    RemediationOptions,
    RemediationOutcome,
    plan_upgrades,
    propose,
)

__all__ = [
    "GoModFile",
    "ProposalResult",
    "RemediationOptions",
    "RemediationOutcome",
    "plan_upgrades",
    "propose",
]
