"""GitHub API client for editing repository files without a working copy.

Edits are made directly against the git object store through the REST
git-data endpoints: fetch the default branch head, its tree and one blob,
then create a replacement tree, a commit, a branch and optionally a pull
request. Steps are strictly sequential and there is no rollback; a failure
after commit creation leaves an unreferenced commit behind, which the host
garbage-collects.
"""
from __future__ import annotations

import base64
import binascii
import logging
import os
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import quote, urlencode

from common.errors import AuthError, RemoteIOError
from common.http_client import get_json, post_json
from constants import Constants
from repository.url_normalize import RepoRef

logger = logging.getLogger(__name__)

Transform = Callable[[bytes], bytes]

_REF_EXISTS = "Reference already exists"
_HEADS = "refs/heads/"


def _message(data: Any) -> str:
    """Extract GitHub's error message (and any detail errors) from a response body."""
    if not isinstance(data, dict):
        return "no response body"
    msg = str(data.get("message") or "unknown error")
    errors = data.get("errors")
    if isinstance(errors, list) and errors:
        details = [
            e.get("message") or e.get("code") or str(e) if isinstance(e, dict) else str(e)
            for e in errors
        ]
        msg = f"{msg} ({'; '.join(details)})"
    return msg


class GitHubRepository:
    """One GitHub repository, with an atomic single-file edit operation.

    Authenticates with a personal access token (defaults to the
    GITHUB_TOKEN environment variable). Write operations answered with
    403 or 404 mean the token lacks push permission and raise AuthError.
    """

    def __init__(
        self,
        ref: RepoRef,
        info: Dict[str, Any],
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        web_url: Optional[str] = None,
    ):
        """Initialize from already-fetched repository metadata.

        Args:
            ref: Repository owner/name
            info: Repository metadata as returned by GET /repos/{owner}/{repo}
            token: GitHub token (defaults to GITHUB_TOKEN env var)
            base_url: API base URL (defaults to Constants.GITHUB_API_BASE)
            web_url: Web base URL used for compare links (defaults to Constants.GITHUB_WEB_BASE)
        """
        self.ref = ref
        self.info = info
        self.token = token or os.environ.get(Constants.ENV_GITHUB_TOKEN)
        self.base_url = (base_url or Constants.GITHUB_API_BASE).rstrip("/")
        self.web_url = (web_url or Constants.GITHUB_WEB_BASE).rstrip("/")

    @classmethod
    def open(
        cls,
        ref: RepoRef,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> "GitHubRepository":
        """Fetch repository metadata and return a client for it.

        Raises:
            AuthError: if the repository is not visible with the token
            RemoteIOError: on any other API failure
        """
        repo = cls(ref, {}, token=token, base_url=base_url)
        status, data = repo._get(repo._repo_url(), "repository")
        if status in (401, 403, 404):
            raise AuthError(f"repository {ref.full_name} not accessible: {_message(data)}")
        repo._check(status, data, (200,), f"fetching repo {ref.full_name}")
        repo.info = data
        return repo

    @property
    def url(self) -> str:
        return self.info.get("html_url") or f"{self.web_url}/{self.ref.full_name}"

    @property
    def default_branch(self) -> str:
        return self.info.get("default_branch") or "main"

    def edit_file(self, name: str, transform: Transform, message: Optional[str] = None) -> Optional[str]:
        """Commit an edit of a single file on top of the default branch head.

        Args:
            name: File path relative to the repository root
            transform: Maps the current content to the new content; may raise
                to abort the edit
            message: Commit message (defaults to Constants.COMMIT_MESSAGE)

        Returns:
            The new commit SHA, or None if the transform left the content unchanged

        Raises:
            RemoteIOError: if the file does not exist or an API call fails
            AuthError: if the token cannot create objects in the repository
        """
        head_sha, tree_sha = self._head()
        entry = self._find_blob(tree_sha, name)
        original = self._read_blob(entry["sha"], name)

        modified = transform(original)
        if modified == original:
            logger.info("%s unchanged in %s, nothing to commit", name, self.url)
            return None

        logger.info("pushing new tree for %s in %s", name, self.url)
        status, data = self._post(self._repo_url("git/trees"), {
            "base_tree": tree_sha,
            "tree": [{
                "path": entry["path"],
                "mode": entry.get("mode", "100644"),
                "type": "blob",
                "content": modified.decode("utf-8"),
            }],
        }, "create tree")
        if status in (403, 404):
            # GitHub answers 404 when the token lacks push permission.
            raise AuthError(f"no permission to create tree in {self.url}: {_message(data)}")
        self._check(status, data, (201,), f"creating tree for {self.url}")
        new_tree = data["sha"]

        status, data = self._post(self._repo_url("git/commits"), {
            "message": message or Constants.COMMIT_MESSAGE,
            "tree": new_tree,
            "parents": [head_sha],
        }, "create commit")
        if status in (403, 404):
            raise AuthError(f"no permission to commit in {self.url}: {_message(data)}")
        self._check(status, data, (201,), f"committing tree {new_tree} for {self.url}")
        logger.info("pushed commit %s to %s", data["sha"], self.url)
        return data["sha"]

    def make_branch(self, commit_sha: str, name: str) -> str:
        """Create a branch at ``commit_sha`` and return its full ref name.

        An existing branch is never moved. If ``name`` is taken the next free
        suffixed name (``name-2``, ``name-3``, ...) is used instead, so the
        returned ref always points at ``commit_sha``.

        Raises:
            AuthError: if the token cannot create refs
            RemoteIOError: on API failure or when no free name is found
        """
        for attempt in range(1, Constants.BRANCH_SUFFIX_ATTEMPTS + 1):
            branch = name if attempt == 1 else f"{name}-{attempt}"
            ref_name = _HEADS + branch
            logger.info("pushing branch %s at %s", ref_name, commit_sha)
            status, data = self._post(
                self._repo_url("git/refs"), {"ref": ref_name, "sha": commit_sha}, "create ref"
            )
            if status == 201:
                return ref_name
            if status == 422 and _message(data).startswith(_REF_EXISTS):
                logger.warning("branch %s already exists in %s", branch, self.url)
                continue
            if status in (403, 404):
                raise AuthError(f"no permission to push {ref_name} to {self.url}: {_message(data)}")
            raise RemoteIOError(
                f"failed to push ref {ref_name} {commit_sha} for {self.url}: HTTP {status} {_message(data)}"
            )
        raise RemoteIOError(
            f"failed to push a branch named {name} for {self.url}: "
            f"{Constants.BRANCH_SUFFIX_ATTEMPTS} names already taken"
        )

    def make_pull(self, ref_name: str, title: str, body: str) -> str:
        """Open a pull request from ``ref_name`` into the default branch.

        Returns:
            The pull request's web URL

        Raises:
            RemoteIOError: on API failure (e.g. no diff, pull already exists)
        """
        head = _branch_of(ref_name)
        logger.info("making pull request for %s on %s", head, self.default_branch)
        status, data = self._post(self._repo_url("pulls"), {
            "title": title,
            "head": head,
            "base": self.default_branch,
            "body": body,
        }, "create pull")
        self._check(status, data, (201,), f"making pull request from {head} for {self.url}")
        return data.get("html_url") or data.get("url", "")

    def compare_branch(self, ref_name: str, title: str, body: str) -> str:
        """Build a link to GitHub's compare view, prefilled to open a pull request.

        Makes no API call.
        """
        query = urlencode({"expand": 1, "title": title, "body": body})
        return (
            f"{self.web_url}/{self.ref.owner}/{self.ref.repo}/compare/"
            f"{quote(self.default_branch)}...{quote(_branch_of(ref_name))}?{query}"
        )

    def _head(self) -> Tuple[str, str]:
        """Return (commit SHA, tree SHA) of the default branch head."""
        branch = self.default_branch
        status, data = self._get(self._repo_url(f"git/ref/heads/{quote(branch)}"), "head ref")
        self._check(status, data, (200,), f"fetching head of {branch} for {self.url}")
        head_sha = data["object"]["sha"]
        status, data = self._get(self._repo_url(f"git/commits/{head_sha}"), "head commit")
        self._check(status, data, (200,), f"fetching commit {head_sha} for {self.url}")
        logger.info("%s head at %s", self.url, head_sha)
        return head_sha, data["tree"]["sha"]

    def _find_blob(self, tree_sha: str, name: str) -> Dict[str, Any]:
        status, data = self._get(self._repo_url(f"git/trees/{tree_sha}?recursive=1"), "tree")
        self._check(status, data, (200,), f"fetching tree {tree_sha} for {self.url}")
        entries: List[Dict[str, Any]] = data.get("tree") or []
        for entry in entries:
            if entry.get("path") == name and entry.get("type") == "blob":
                return entry
        hint = " (tree listing truncated)" if data.get("truncated") else ""
        raise RemoteIOError(f"no file {name} in {self.url}{hint}")

    def _read_blob(self, blob_sha: str, name: str) -> bytes:
        status, data = self._get(self._repo_url(f"git/blobs/{blob_sha}"), "blob")
        self._check(status, data, (200,), f"fetching blob for {name} in {self.url}")
        content = data.get("content") or ""
        if data.get("encoding", "base64") != "base64":
            return content.encode("utf-8")
        try:
            return base64.b64decode(content)
        except (binascii.Error, ValueError) as exc:
            raise RemoteIOError(f"failed decoding {name} content from {self.url}: {exc}") from exc

    def _repo_url(self, suffix: str = "") -> str:
        url = f"{self.base_url}/repos/{self.ref.owner}/{self.ref.repo}"
        return f"{url}/{suffix}" if suffix else url

    def _get_headers(self) -> Dict[str, str]:
        """Get request headers including authorization if token is available."""
        headers = {
            "Accept": Constants.GITHUB_ACCEPT,
            "X-GitHub-Api-Version": Constants.GITHUB_API_VERSION,
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _get(self, url: str, what: str) -> Tuple[int, Any]:
        status, _, data = get_json(url, context=f"github {what}", headers=self._get_headers())
        return status, data

    def _post(self, url: str, payload: Dict[str, Any], what: str) -> Tuple[int, Any]:
        status, _, data = post_json(url, payload, context=f"github {what}", headers=self._get_headers())
        return status, data

    @staticmethod
    def _check(status: int, data: Any, ok: Tuple[int, ...], action: str) -> None:
        if status not in ok or not isinstance(data, dict):
            raise RemoteIOError(f"failed {action}: HTTP {status} {_message(data)}")


def _branch_of(ref_name: str) -> str:
    return ref_name[len(_HEADS):] if ref_name.startswith(_HEADS) else ref_name
