"""Module version ordering built on semantic versioning.

Module versions carry a leading ``v`` (``v1.2.3``), may be pseudo-versions
(``v0.0.0-20200101000000-abcdef123456``) and may carry build metadata such
as ``+incompatible``, which never affects ordering.
"""

import re
from typing import Optional

import semantic_version

_SHORTHAND = re.compile(r"^\d+(\.\d+)?$")


def _parse(version: str) -> Optional[semantic_version.Version]:
    text = version[1:] if version.startswith("v") else version
    if not text:
        return None
    try:
        parsed = semantic_version.Version(text)
    except ValueError:
        if not _SHORTHAND.match(text):
            return None
        # v1 and v1.2 are shorthands for v1.0.0 and v1.2.0
        parsed = semantic_version.Version.coerce(text)
    return parsed.truncate("prerelease")


def is_valid(version: str) -> bool:
    """Return True if ``version`` is a well-formed module version."""
    return _parse(version) is not None


def compare(a: str, b: str) -> int:
    """Compare two module versions, returning -1, 0 or 1.

    Invalid versions order before all valid ones and are equal to each other.
    """
    pa, pb = _parse(a), _parse(b)
    if pa is None and pb is None:
        return 0
    if pa is None:
        return -1
    if pb is None:
        return 1
    if pa < pb:
        return -1
    if pa > pb:
        return 1
    return 0
