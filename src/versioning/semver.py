"""Semantic version grammar and precedence for module versions.

Module versions always carry a leading "v" and allow the shorthand forms
"v1" and "v1.2" (read as v1.0.0 and v1.2.0). Shorthand forms may not carry
a prerelease or build suffix. Precedence follows semver 2.0.0 and ignores
build metadata; the comparison itself is delegated to semantic_version.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Tuple

import semantic_version

from errors import MalformedDataError

_NUM = r"(0|[1-9][0-9]*)"
_IDENT = r"[0-9A-Za-z-]+"
_VERSION_RE = re.compile(
    rf"^v{_NUM}"
    rf"(?:\.{_NUM}"
    rf"(?:\.{_NUM}"
    rf"(?P<pre>-{_IDENT}(?:\.{_IDENT})*)?"
    rf"(?P<build>\+{_IDENT}(?:\.{_IDENT})*)?"
    r")?)?$"
)


@dataclass(frozen=True)
class ParsedVersion:
    """Components of a valid module version."""
    major: int
    minor: int
    patch: int
    prerelease: Tuple[str, ...]
    build: str  # including the leading "+", or ""

    def canonical(self) -> str:
        """Return vMAJOR.MINOR.PATCH[-PRERELEASE] with build metadata dropped."""
        out = f"v{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            out += "-" + ".".join(self.prerelease)
        return out

    def precedence_key(self) -> semantic_version.Version:
        return semantic_version.Version(
            major=self.major,
            minor=self.minor,
            patch=self.patch,
            prerelease=self.prerelease,
            build=(),
        )


def parse(version: Optional[str]) -> Optional[ParsedVersion]:
    """Parse a module version, returning None when it is not valid."""
    if not version:
        return None
    m = _VERSION_RE.match(version)
    if not m:
        return None
    pre = m.group("pre")
    prerelease: Tuple[str, ...] = tuple(pre[1:].split(".")) if pre else ()
    for ident in prerelease:
        # numeric prerelease identifiers must not have leading zeros
        if ident.isdigit() and len(ident) > 1 and ident[0] == "0":
            return None
    return ParsedVersion(
        major=int(m.group(1)),
        minor=int(m.group(2) or 0),
        patch=int(m.group(3) or 0),
        prerelease=prerelease,
        build=m.group("build") or "",
    )


def require(version: Optional[str], **context) -> ParsedVersion:
    """Parse version or raise MalformedDataError naming the offender."""
    parsed = parse(version)
    if parsed is None:
        raise MalformedDataError(
            f"invalid semver version: {version!r}", version=version or "<empty>", **context
        )
    return parsed


def is_valid(version: Optional[str]) -> bool:
    return parse(version) is not None


def canonical(version: str) -> str:
    return require(version).canonical()


def major(version: str) -> str:
    """Return the major component with its prefix, e.g. "v2"."""
    return f"v{require(version).major}"


def prerelease(version: str) -> str:
    """Return the prerelease suffix including its "-", or ""."""
    parsed = require(version)
    return "-" + ".".join(parsed.prerelease) if parsed.prerelease else ""


def build(version: str) -> str:
    """Return the build suffix including its "+", or ""."""
    return require(version).build


def sort_key(version: str) -> semantic_version.Version:
    """Key for sorting version strings by precedence."""
    return require(version).precedence_key()


def compare(a: str, b: str) -> int:
    """Return -1, 0 or +1 as a is lower than, equal to or higher than b."""
    ka, kb = sort_key(a), sort_key(b)
    if ka < kb:
        return -1
    if ka > kb:
        return 1
    return 0
