"""Module registry: the modules active in a build, keyed by path."""

from __future__ import annotations

from typing import Dict, Iterable, List

from common.errors import NotFound
from graph.models import ModuleInfo


class Modules:
    """A read-only module database.

    The main module is the single entry flagged ``main``; when no entry is
    flagged the first one is taken, matching the build tool's output order.
    """

    def __init__(self, modules: Iterable[ModuleInfo]):
        self._modules: List[ModuleInfo] = list(modules)
        if not self._modules:
            raise ValueError("module registry is empty")
        flagged = [m for m in self._modules if m.main]
        if len(flagged) > 1:
            raise ValueError(
                "module registry has more than one main module: "
                + ", ".join(m.path for m in flagged)
            )
        self._main = flagged[0] if flagged else self._modules[0]
        self._by_path: Dict[str, ModuleInfo] = {}
        for mod in self._modules:
            self._by_path.setdefault(mod.path, mod)

    def __len__(self) -> int:
        return len(self._modules)

    def all(self) -> List[ModuleInfo]:
        return list(self._modules)

    def main(self) -> ModuleInfo:
        return self._main

    def for_path(self, path: str) -> ModuleInfo:
        """Return the registry entry for ``path``.

        Raises:
            NotFound: if no module has that path
        """
        try:
            return self._by_path[path]
        except KeyError:
            raise NotFound(f"no module with path {path}") from None
