"""Hosted repository access for remediation."""

from .url_normalize import RepoRef, resolve_module_repo
from .github import GitHubRepository

__all__ = [
    "RepoRef",
    "resolve_module_repo",
    "GitHubRepository",
]
