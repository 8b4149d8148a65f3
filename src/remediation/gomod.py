"""Minimal go.mod editor that preserves layout and comments.

Only the directives needed to rewrite requirement versions are understood
(``module`` and ``require``, single-line or block form). Every other line is
kept verbatim, so formatting a parsed file without edits reproduces its
input byte for byte.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from common.errors import ParseError
from graph.models import ModuleVersion
from graph.versions import is_valid

logger = logging.getLogger(__name__)

# Leading text up to the version token, the version token, and the rest of the line.
_REQUIRE_LINE = re.compile(r"^(\s*(?:require\s+)?\S+\s+)(\S+)(.*)$")


@dataclass
class _Require:
    index: int  # line number, zero-based
    path: str
    version: str


def _code(line: str) -> str:
    return line.split("//", 1)[0].strip()


def _unquote(token: str) -> str:
    if len(token) >= 2 and token[0] == token[-1] and token[0] in "\"`":
        return token[1:-1]
    return token


class GoModFile:
    """A parsed go.mod file."""

    def __init__(self, lines: List[str], name: str = "go.mod", newline: str = "\n"):
        self.name = name
        self.newline = newline
        self._lines = lines
        self.module_path = ""
        self._requires: List[_Require] = []
        self._block_ends: List[int] = []  # closing-paren line of each require block
        self._index()

    @classmethod
    def parse(cls, data: bytes, name: str = "go.mod") -> "GoModFile":
        """Parse manifest bytes.

        Raises:
            ParseError: if the content is not a well-formed go.mod
        """
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError(f"{name}: not UTF-8: {exc}") from exc
        newline = "\r\n" if "\r\n" in text else "\n"
        return cls(text.split(newline), name=name, newline=newline)

    def _fail(self, index: int, message: str) -> ParseError:
        return ParseError(f"{self.name}:{index + 1}: {message}")

    def _index(self) -> None:  # pylint: disable=too-many-branches
        self.module_path = ""
        self._requires = []
        self._block_ends = []
        block: Optional[str] = None
        block_start = 0
        for i, line in enumerate(self._lines):
            code = _code(line)
            if not code:
                continue
            tokens = code.split()
            if block is not None:
                if code == ")":
                    if block == "require":
                        self._block_ends.append(i)
                    block = None
                elif block == "require":
                    if len(tokens) != 2:
                        raise self._fail(i, f"malformed require line {line.strip()!r}")
                    self._requires.append(_Require(i, _unquote(tokens[0]), tokens[1]))
                continue

            verb = tokens[0]
            if len(tokens) == 2 and tokens[1] == "(":
                block, block_start = verb, i
            elif len(tokens) == 2 and tokens[1] == "()":
                continue
            elif verb == "module":
                if len(tokens) != 2:
                    raise self._fail(i, "usage: module module/path")
                self.module_path = _unquote(tokens[1])
            elif verb == "require":
                if len(tokens) != 3:
                    raise self._fail(i, f"malformed require line {line.strip()!r}")
                self._requires.append(_Require(i, _unquote(tokens[1]), tokens[2]))
        if block is not None:
            raise self._fail(block_start, f"unterminated {block} block")
        if not self.module_path:
            raise ParseError(f"{self.name}: no module directive")

    def requirements(self) -> List[ModuleVersion]:
        return [ModuleVersion(r.path, r.version) for r in self._requires]

    def add_require(self, path: str, version: str) -> bool:
        """Require ``path`` at ``version``, updating existing lines in place.

        Returns True if the file changed.

        Raises:
            ParseError: if ``version`` is not a valid module version
        """
        if not version.startswith("v") or not is_valid(version):
            raise ParseError(f"invalid version {version!r} for {path}")

        existing = [r for r in self._requires if r.path == path]
        if existing:
            changed = False
            for req in existing:
                if req.version == version:
                    continue
                match = _REQUIRE_LINE.match(self._lines[req.index])
                if match is None:
                    raise self._fail(req.index, "cannot rewrite require line")
                self._lines[req.index] = f"{match.group(1)}{version}{match.group(3)}"
                req.version = version
                changed = True
            return changed

        if self._block_ends:
            self._lines.insert(self._block_ends[-1], f"\t{path} {version}")
        elif self._requires:
            self._lines.insert(self._requires[-1].index + 1, f"require {path} {version}")
        else:
            at = len(self._lines)
            if at and self._lines[-1] == "":
                at -= 1  # keep the trailing newline last
            self._lines[at:at] = ["", f"require {path} {version}"]
        self._index()
        return True

    def format(self) -> bytes:
        return self.newline.join(self._lines).encode("utf-8")
