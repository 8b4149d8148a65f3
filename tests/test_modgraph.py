"""Tests for the module registry and requirement graph."""

import pytest

from common.errors import NotFound
from graph.modgraph import ModGraph
from graph.models import ModuleInfo, ModuleVersion, RequirementEdge
from graph.modules import Modules


def edge(down, up):
    return RequirementEdge(ModuleVersion.parse(down), ModuleVersion.parse(up))


class TestModules:
    """Test registry lookups and main module selection."""

    def test_main_is_flagged_entry(self):
        modules = Modules([
            ModuleInfo("github.com/x/a", "v1.0.0"),
            ModuleInfo("github.com/x/main", main=True),
        ])
        assert modules.main().path == "github.com/x/main"

    def test_main_defaults_to_first(self):
        modules = Modules([ModuleInfo("github.com/x/main"), ModuleInfo("github.com/x/a", "v1.0.0")])
        assert modules.main().path == "github.com/x/main"

    def test_rejects_two_main_modules(self):
        with pytest.raises(ValueError, match="more than one main"):
            Modules([ModuleInfo("a", main=True), ModuleInfo("b", main=True)])

    def test_rejects_empty_registry(self):
        with pytest.raises(ValueError):
            Modules([])

    def test_for_path(self):
        modules = Modules([ModuleInfo("github.com/x/main", main=True), ModuleInfo("github.com/x/a", "v1.0.0")])
        assert modules.for_path("github.com/x/a").version == "v1.0.0"
        assert len(modules) == 2
        assert [m.path for m in modules.all()] == ["github.com/x/main", "github.com/x/a"]

    def test_for_path_missing(self):
        modules = Modules([ModuleInfo("github.com/x/main", main=True)])
        with pytest.raises(NotFound, match="github.com/x/nope"):
            modules.for_path("github.com/x/nope")


class TestModGraph:
    """Test graph queries."""

    def setup_method(self):
        self.edges = [
            edge("main", "a@v1.0.0"),
            edge("a@v1.0.0", "b@v1.0.0"),
            edge("a@v1.1.0", "b@v1.1.0"),
            edge("main", "b@v1.2.0"),
        ]
        self.graph = ModGraph(self.edges)

    def test_copies_edges(self):
        self.edges.append(edge("main", "c@v1.0.0"))
        assert len(self.graph) == 4
        assert self.graph.downstream_of("c") == []

    def test_upstream_of_any_version(self):
        assert len(self.graph.upstream_of("a")) == 2

    def test_upstream_of_version(self):
        assert self.graph.upstream_of("a", "v1.1.0") == [edge("a@v1.1.0", "b@v1.1.0")]

    def test_downstream_of(self):
        assert len(self.graph.downstream_of("b")) == 3
        assert self.graph.downstream_of("b", "v1.2.0") == [edge("main", "b@v1.2.0")]

    def test_selected_version_is_maximum(self):
        version, reason = self.graph.selected_version("b")
        assert version == "v1.2.0"
        assert reason == ModuleVersion("main")

    def test_selected_version_tie_keeps_first_reason(self):
        graph = ModGraph([edge("x@v1.0.0", "c@v1.0.0"), edge("y@v1.0.0", "c@v1.0.0")])
        assert graph.selected_version("c") == ("v1.0.0", ModuleVersion("x", "v1.0.0"))

    def test_selected_version_not_required(self):
        with pytest.raises(NotFound):
            self.graph.selected_version("main")

    def test_edges_returns_copy(self):
        edges = self.graph.edges()
        edges.clear()
        assert len(self.graph.edges()) == 4
