"""Map module paths to hosted source repositories."""
from __future__ import annotations

import re
from dataclasses import dataclass

from common.errors import UnsupportedHost
from constants import Constants

_GITHUB_RE = re.compile(r"^github\.com/([\w.-]+)/([\w.-]+?)(?:\.git)?(/.*)?$")
_MAJOR_SUFFIX_RE = re.compile(r"(?:^|/)v(?:[2-9]|[1-9]\d+)$")


@dataclass(frozen=True)
class RepoRef:
    """A hosted repository and the module's directory within it."""
    host: str
    owner: str
    repo: str
    subdir: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    def manifest_path(self, name: str = Constants.MANIFEST_NAME) -> str:
        """Path of the module's manifest relative to the repository root.

        A trailing major-version element (``/v2``) names the module version,
        not a directory, so it is dropped.
        """
        subdir = _MAJOR_SUFFIX_RE.sub("", self.subdir)
        if not subdir:
            return name
        return f"{subdir}/{name}"


def resolve_module_repo(module_path: str) -> RepoRef:
    """Resolve a module path to the repository holding its manifest.

    Raises:
        UnsupportedHost: if the path is not on a supported hosting service
    """
    match = _GITHUB_RE.match(module_path)
    if not match:
        raise UnsupportedHost(f"{module_path} isn't a GitHub repo path")
    owner, repo, rest = match.group(1), match.group(2), match.group(3) or ""
    return RepoRef(host="github.com", owner=owner, repo=repo, subdir=rest.strip("/"))
