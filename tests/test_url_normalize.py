"""Tests for module path to repository resolution."""

import pytest

from common.errors import UnsupportedHost
from repository.url_normalize import RepoRef, resolve_module_repo


class TestResolveModuleRepo:
    """Test mapping module paths to GitHub repositories."""

    def test_repository_root_module(self):
        ref = resolve_module_repo("github.com/owner/repo")
        assert ref == RepoRef("github.com", "owner", "repo", "")
        assert ref.full_name == "owner/repo"
        assert ref.manifest_path() == "go.mod"

    def test_major_version_suffix_uses_root_manifest(self):
        ref = resolve_module_repo("github.com/owner/repo/v2")
        assert ref.repo == "repo"
        assert ref.manifest_path() == "go.mod"

    def test_nested_module(self):
        ref = resolve_module_repo("github.com/owner/repo/tools/cmd")
        assert ref.subdir == "tools/cmd"
        assert ref.manifest_path() == "tools/cmd/go.mod"

    def test_nested_module_with_major_version(self):
        ref = resolve_module_repo("github.com/owner/repo/sub/v3")
        assert ref.manifest_path() == "sub/go.mod"

    def test_v1_directory_is_kept(self):
        ref = resolve_module_repo("github.com/owner/repo/v1")
        assert ref.manifest_path() == "v1/go.mod"

    def test_dotted_names(self):
        ref = resolve_module_repo("github.com/some-owner/repo.go")
        assert (ref.owner, ref.repo) == ("some-owner", "repo.go")

    @pytest.mark.parametrize("path", ["golang.org/x/text", "github.com/owner", "gitlab.com/o/r"])
    def test_unsupported(self, path):
        with pytest.raises(UnsupportedHost):
            resolve_module_repo(path)
