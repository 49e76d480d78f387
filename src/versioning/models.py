"""Data models for the resolved build list and manifest directives."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from errors import MalformedDataError


@dataclass(frozen=True)
class ModuleRef:
    """One module at one version; version is None only for the main module."""
    path: str
    version: Optional[str] = None

    def __str__(self) -> str:
        return f"{self.path}@{self.version}" if self.version else self.path

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "version": self.version}


@dataclass(frozen=True)
class ResolvedModule:
    """One entry of the build list.

    version is the version actually selected after replacement.
    """
    path: str
    version: Optional[str]
    is_main: bool = False
    is_indirect: bool = False
    replaced_by: Optional[ModuleRef] = None
    available_update: Optional[str] = None
    manifest_location: Optional[str] = None

    @property
    def ref(self) -> ModuleRef:
        return ModuleRef(self.path, self.version)


@dataclass(frozen=True)
class RequirementEdge:
    """Effective path@version required somewhere in the requirement graph."""
    path: str
    version: str

    @classmethod
    def parse(cls, token: str) -> "RequirementEdge":
        """Parse a "path@version" token."""
        parts = token.split("@")
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise MalformedDataError(f"unexpected requirement: {token!r}")
        return cls(path=parts[0], version=parts[1])

    def __str__(self) -> str:
        return f"{self.path}@{self.version}"


@dataclass(frozen=True)
class Require:
    """A 'require' directive."""
    path: str
    version: str
    indirect: bool = False


@dataclass(frozen=True)
class Replace:
    """A 'replace' directive."""
    old: ModuleRef
    new: ModuleRef

    def __str__(self) -> str:
        return f"{self.old} => {self.new}"


@dataclass(frozen=True)
class ManifestDirectives:
    """Parsed directives of one module manifest."""
    module: Optional[ModuleRef] = None
    require: Tuple[Require, ...] = field(default_factory=tuple)
    exclude: Tuple[ModuleRef, ...] = field(default_factory=tuple)
    replace: Tuple[Replace, ...] = field(default_factory=tuple)
