"""Data models for modules, module versions and requirement edges."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from common.errors import ParseError


@dataclass(frozen=True)
class ModuleVersion:
    """A module path and version name.

    Identity for traversal purposes is the path; the version is opaque
    except for ordering via graph.versions.compare.
    """
    path: str
    version: str = ""

    def __str__(self) -> str:
        # Same shape as `go mod graph` output.
        if self.version:
            return f"{self.path}@{self.version}"
        return self.path

    @classmethod
    def parse(cls, text: str) -> "ModuleVersion":
        """Parse ``path`` or ``path@version``."""
        parts = text.split("@")
        if len(parts) == 2:
            return cls(parts[0], parts[1])
        if len(parts) == 1:
            return cls(parts[0], "")
        raise ParseError(f"bad module version, too many '@': {text!r}")


@dataclass(frozen=True)
class RequirementEdge:
    """``downstream`` at its version declares a requirement on ``upstream`` at its version."""
    downstream: ModuleVersion  # consumer
    upstream: ModuleVersion  # dependency

    def __str__(self) -> str:
        return f"{self.downstream} {self.upstream}"

    @classmethod
    def parse(cls, line: str) -> "RequirementEdge":
        """Parse one line of `go mod graph` output."""
        hunks = line.split(" ")
        if len(hunks) != 2:
            raise ParseError(f"bad mod graph line: {line!r}")
        return cls(ModuleVersion.parse(hunks[0]), ModuleVersion.parse(hunks[1]))


@dataclass
class ModuleInfo:  # pylint: disable=too-many-instance-attributes
    """One module in the registry, as reported by `go list -m -json`."""
    path: str
    version: str = ""
    versions: List[str] = field(default_factory=list)  # available versions, ascending
    main: bool = False
    indirect: bool = False
    update: Optional["ModuleInfo"] = None  # set iff a newer version exists upstream
    replace: Optional["ModuleInfo"] = None
    time: Optional[str] = None
    go_mod: Optional[str] = None
    go_version: Optional[str] = None
    retracted: Optional[List[str]] = None
    error: Optional[str] = None

    @property
    def module_version(self) -> ModuleVersion:
        return ModuleVersion(self.path, self.version)

    @property
    def highest_version(self) -> str:
        """The newest known release: the available update if any, else the current version."""
        if self.update is not None:
            return self.update.version
        return self.version

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModuleInfo":
        """Build from a `go list -m -json` record.

        Raises:
            ParseError: if the record is not an object or lacks a Path
        """
        if not isinstance(data, dict) or not data.get("Path"):
            raise ParseError(f"module record without Path: {data!r}")
        update = data.get("Update")
        replace = data.get("Replace")
        error = data.get("Error")
        retracted = data.get("Retracted")
        if isinstance(retracted, str):
            retracted = [retracted]
        return cls(
            path=data["Path"],
            version=data.get("Version") or "",
            versions=list(data.get("Versions") or []),
            main=bool(data.get("Main", False)),
            indirect=bool(data.get("Indirect", False)),
            update=cls.from_dict(update) if update else None,
            replace=cls.from_dict(replace) if replace else None,
            time=data.get("Time"),
            go_mod=data.get("GoMod"),
            go_version=data.get("GoVersion"),
            retracted=retracted,
            error=error.get("Err") if isinstance(error, dict) else error,
        )
