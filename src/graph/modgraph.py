"""Module requirement graph."""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

from common.errors import NotFound
from graph.models import ModuleVersion, RequirementEdge
from graph.versions import compare


class ModGraph:
    """An unordered, read-only collection of requirement edges.

    The supplied edges are copied on construction so later changes to the
    caller's sequence are not observed.
    """

    def __init__(self, edges: Iterable[RequirementEdge]):
        self._edges: Tuple[RequirementEdge, ...] = tuple(edges)
        self._by_downstream: Dict[str, List[RequirementEdge]] = defaultdict(list)
        self._by_upstream: Dict[str, List[RequirementEdge]] = defaultdict(list)
        for e in self._edges:
            self._by_downstream[e.downstream.path].append(e)
            self._by_upstream[e.upstream.path].append(e)

    def __len__(self) -> int:
        return len(self._edges)

    def edges(self) -> List[RequirementEdge]:
        return list(self._edges)

    def upstream_of(self, path: str, version: Optional[str] = None) -> List[RequirementEdge]:
        """Requirements declared by ``path`` (optionally only at ``version``)."""
        return [
            e for e in self._by_downstream.get(path, ())
            if not version or e.downstream.version == version
        ]

    def downstream_of(self, path: str, version: Optional[str] = None) -> List[RequirementEdge]:
        """Edges requiring ``path`` (optionally only at ``version``)."""
        return [
            e for e in self._by_upstream.get(path, ())
            if not version or e.upstream.version == version
        ]

    def selected_version(self, path: str) -> Tuple[str, ModuleVersion]:
        """Return the version minimal version selection picks for ``path``.

        This is the highest version required by any edge, together with one
        downstream module that requires it. Exclusions and replacements are
        not modelled.

        Raises:
            NotFound: if no edge requires ``path``
        """
        result = ""
        reason = ModuleVersion("")
        for e in self._by_upstream.get(path, ()):
            if not result or compare(result, e.upstream.version) < 0:
                result = e.upstream.version
                reason = e.downstream
        if not result:
            raise NotFound(f"no requirements on {path}")
        return result, reason
