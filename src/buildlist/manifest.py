"""Manifest accessor: structured directives of one module's go.mod."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from errors import MalformedDataError
from versioning.models import ManifestDirectives, ModuleRef, Replace, Require

from .toolchain import Toolchain

logger = logging.getLogger(__name__)


class ManifestAccessor(ABC):
    """Reads manifests by location without needing an active module."""

    @abstractmethod
    def read_manifest(self, location: str) -> ManifestDirectives:
        """Return the directives of the manifest at location."""


def _ref(data: Optional[Dict[str, Any]]) -> ModuleRef:
    data = data or {}
    return ModuleRef(data.get("Path", ""), data.get("Version") or None)


def directives_from_json(data: Dict[str, Any]) -> ManifestDirectives:
    """Convert 'go mod edit -json' output into ManifestDirectives."""
    if not isinstance(data, dict):
        raise MalformedDataError(f"unexpected 'go mod edit -json' value: {data!r}")
    module = _ref(data["Module"]) if data.get("Module") else None
    require = tuple(
        Require(r.get("Path", ""), r.get("Version", ""), bool(r.get("Indirect", False)))
        for r in data.get("Require") or []
    )
    exclude = tuple(_ref(e) for e in data.get("Exclude") or [])
    replace = tuple(
        Replace(old=_ref(r.get("Old")), new=_ref(r.get("New")))
        for r in data.get("Replace") or []
    )
    return ManifestDirectives(module=module, require=require, exclude=exclude, replace=replace)


class GoModEditAccessor(ManifestAccessor):
    """ManifestAccessor backed by 'go mod edit -json <path/to/go.mod>'."""

    def __init__(self, toolchain: Optional[Toolchain] = None):
        self.toolchain = toolchain or Toolchain()

    def read_manifest(self, location: str) -> ManifestDirectives:
        out = self.toolchain.output(["mod", "edit", "-json", location])
        try:
            data = json.loads(out)
        except json.JSONDecodeError as exc:
            raise MalformedDataError(
                f"error parsing 'go mod edit -json': {exc}", details={"manifest": location}
            ) from exc
        return directives_from_json(data)
