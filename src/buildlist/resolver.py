"""Resolver client: obtains the build list and requirement graph.

The build list is the final set of module versions used by a build, after
minimal version selection, excludes and replacements. The requirement graph
is every requirement edge declared by every participating manifest, with
replacements applied.
"""

from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, List, Optional

from errors import MalformedDataError, ResolutionError
from versioning.models import ModuleRef, RequirementEdge, ResolvedModule

from .toolchain import Toolchain

logger = logging.getLogger(__name__)


class ResolverClient(ABC):
    """Source of resolution data for the current project."""

    @abstractmethod
    def is_inside_project(self) -> bool:
        """Report if the working directory belongs to a module."""

    @abstractmethod
    def resolve_build_list(self, include_upgrade_info: bool = False) -> List[ResolvedModule]:
        """Return the build list in resolver order."""

    @abstractmethod
    def resolve_requirement_graph(self) -> List[RequirementEdge]:
        """Return the flattened requirement edges in resolver order."""

    @abstractmethod
    def check_manifest_current(self) -> bool:
        """Return True if the manifest matches what a full build would produce.

        Raises ResolutionError when the project does not build at all.
        """


def iter_json_stream(text: str) -> Iterator[Dict[str, Any]]:
    """Yield each object of a concatenated JSON object stream."""
    decoder = json.JSONDecoder()
    idx = 0
    end = len(text)
    while True:
        while idx < end and text[idx].isspace():
            idx += 1
        if idx >= end:
            return
        try:
            obj, idx = decoder.raw_decode(text, idx)
        except json.JSONDecodeError as exc:
            raise MalformedDataError(f"error parsing 'go list' json: {exc}") from exc
        if not isinstance(obj, dict):
            raise MalformedDataError(f"unexpected 'go list' json value: {obj!r}")
        yield obj


def module_from_json(data: Dict[str, Any]) -> ResolvedModule:
    """Convert one 'go list -json -m' object into a ResolvedModule."""
    path = data.get("Path")
    if not path:
        raise MalformedDataError(f"module without a path in 'go list' output: {data!r}")
    if data.get("Error"):
        err = data["Error"]
        msg = err.get("Err") if isinstance(err, dict) else str(err)
        raise ResolutionError(f"error loading module: {msg}", path=path)

    version = data.get("Version") or None
    replaced_by = None
    replace = data.get("Replace")
    if replace:
        replaced_by = ModuleRef(replace.get("Path", ""), replace.get("Version") or None)
        # A filesystem replacement has no version; the required one stays selected.
        if replaced_by.version:
            version = replaced_by.version
    update = data.get("Update") or {}

    return ResolvedModule(
        path=path,
        version=version,
        is_main=bool(data.get("Main", False)),
        is_indirect=bool(data.get("Indirect", False)),
        replaced_by=replaced_by,
        available_update=update.get("Version") or None,
        manifest_location=data.get("GoMod") or None,
    )


# Version nodes, not modules, in "go mod graph" output (go 1.21+).
TOOLCHAIN_NODES = frozenset({"go", "toolchain"})


def parse_graph(text: str) -> List[RequirementEdge]:
    """Parse 'go mod graph' output into the required (right-hand) edges.

    The "go" and "toolchain" nodes that newer toolchains add to the graph are
    not modules and are skipped.
    """
    edges: List[RequirementEdge] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        fields = line.split()
        if len(fields) != 2:
            raise MalformedDataError(f"failed to parse line from 'go mod graph': {line!r}")
        edge = RequirementEdge.parse(fields[1])
        if edge.path in TOOLCHAIN_NODES:
            continue
        edges.append(edge)
    return edges


class GoResolverClient(ResolverClient):
    """ResolverClient backed by the go command."""

    def __init__(self, toolchain: Optional[Toolchain] = None, verbose: bool = False):
        self.toolchain = toolchain or Toolchain()
        self.verbose = verbose

    def is_inside_project(self) -> bool:
        gomod = self.toolchain.output(["env", "GOMOD"]).strip()
        # older toolchains print "", newer ones os.devnull
        return gomod not in ("", os.devnull)

    def resolve_build_list(self, include_upgrade_info: bool = False) -> List[ResolvedModule]:
        args = ["list", "-mod=readonly", "-json"]
        if include_upgrade_info:
            args.append("-u")
        args += ["-m", "all"]
        out = self.toolchain.output(args)
        mods = [module_from_json(obj) for obj in iter_json_stream(out)]
        logger.debug("resolved build list with %d modules", len(mods))
        return mods

    def resolve_requirement_graph(self) -> List[RequirementEdge]:
        return parse_graph(self.toolchain.output(["mod", "graph"]))

    def check_manifest_current(self) -> bool:
        # 'go list -mod=readonly -m all' does not complain when an update is
        # needed, but listing packages does.
        constrained = self.toolchain.run(["list", "-mod=readonly", "./..."])
        if constrained.ok:
            return True
        if self.verbose:
            logger.info("error reported when running 'go list -mod=readonly': %s",
                        constrained.output.strip())

        unconstrained = self.toolchain.run(["list", "./..."])
        if not unconstrained.ok:
            raise ResolutionError(
                "error reported when running 'go list'",
                details={"output": unconstrained.output.strip()},
            )
        return False
