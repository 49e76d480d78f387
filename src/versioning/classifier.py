"""Version classification used by the diagnostic rules.

Every predicate raises MalformedDataError for an invalid version instead of
answering False, so a bad version can never pass as "not flagged".
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from constants import Constants

from . import semver

# Same shape the toolchain uses to recognise pseudo-versions.
PSEUDO_VERSION_RE = re.compile(
    r"^v[0-9]+\.(0\.0-|\d+\.\d+-([^+]*\.)?0\.)\d{14}-[A-Za-z0-9]+(\+incompatible)?$"
)

V1 = "v1.0.0"


class MajorTier(Enum):
    """Mutually exclusive major-version classes."""
    BEFORE_V1 = "before-v1"
    V1 = "v1"
    V2_PLUS_INCOMPATIBLE = "v2+incompatible"
    V2_PLUS = "v2+"


@dataclass(frozen=True)
class VersionClass:
    """Full classification of one version string."""
    major_tier: MajorTier
    is_prerelease: bool
    is_pseudo_version: bool


def normalize(version: str) -> str:
    """Return the canonical form, keeping a "+incompatible" marker.

    Canonicalization drops build metadata, but the marker changes how the
    version is classified, so it is re-appended.
    """
    parsed = semver.require(version)
    out = parsed.canonical()
    if parsed.build == Constants.INCOMPATIBLE_SUFFIX:
        out += Constants.INCOMPATIBLE_SUFFIX
    return out


def is_incompatible_tagged(version: str) -> bool:
    return semver.require(version).build == Constants.INCOMPATIBLE_SUFFIX


def is_pseudo_version(version: str) -> bool:
    semver.require(version)
    return bool(PSEUDO_VERSION_RE.match(version))


def is_prerelease(version: str) -> bool:
    """Report a prerelease that is not also a pseudo-version."""
    parsed = semver.require(version)
    return bool(parsed.prerelease) and not is_pseudo_version(version)


def is_before_v1(version: str) -> bool:
    """Report if version sorts before v1.0.0 (v0.9.0, v1.0.0-alpha, ...)."""
    return semver.compare(version, V1) < 0


def is_v1(version: str) -> bool:
    if is_before_v1(version):
        return False
    return semver.require(version).major == 1


def is_v2_plus_incompatible(version: str) -> bool:
    """Report a v2+ major carrying "+incompatible".

    v2.0.0-alpha+incompatible counts as a v2 release here.
    """
    return semver.require(version).major >= 2 and is_incompatible_tagged(version)


def major_tier(version: str) -> MajorTier:
    if is_before_v1(version):
        return MajorTier.BEFORE_V1
    if is_v1(version):
        return MajorTier.V1
    if is_v2_plus_incompatible(version):
        return MajorTier.V2_PLUS_INCOMPATIBLE
    return MajorTier.V2_PLUS


def classify(version: str) -> VersionClass:
    return VersionClass(
        major_tier=major_tier(version),
        is_prerelease=is_prerelease(version),
        is_pseudo_version=is_pseudo_version(version),
    )
