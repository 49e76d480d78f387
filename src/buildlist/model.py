"""In-memory build list and requirement graph for one analysis pass."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from errors import MalformedDataError
from versioning.models import RequirementEdge, ResolvedModule


class BuildListModel:
    """Read-only snapshot of the resolved modules and requirement edges.

    Modules keep the order the resolver produced them in.
    """

    def __init__(
        self,
        modules: Iterable[ResolvedModule],
        requirements: Iterable[RequirementEdge] = (),
        *,
        includes_upgrades: bool = False,
    ):
        self._modules: Tuple[ResolvedModule, ...] = tuple(modules)
        self._requirements: Tuple[RequirementEdge, ...] = tuple(requirements)
        self._by_path: Dict[str, ResolvedModule] = {}
        self.includes_upgrades = includes_upgrades

        main: Optional[ResolvedModule] = None
        for mod in self._modules:
            if mod.path in self._by_path:
                raise MalformedDataError(f"duplicate module path in build list: {mod.path}")
            self._by_path[mod.path] = mod
            if mod.is_main:
                if main is not None:
                    raise MalformedDataError(
                        f"multiple main modules in build list: {main.path}, {mod.path}"
                    )
                main = mod
        self._main = main

    def by_path(self, path: str) -> Optional[ResolvedModule]:
        return self._by_path.get(path)

    def all(self) -> Tuple[ResolvedModule, ...]:
        return self._modules

    def main_module(self) -> Optional[ResolvedModule]:
        return self._main

    def filter_main(self, is_main: bool) -> List[ResolvedModule]:
        """Return the modules whose is_main flag equals is_main."""
        return [m for m in self._modules if m.is_main == is_main]

    def requirements(self) -> Tuple[RequirementEdge, ...]:
        return self._requirements

    def selected_versions(self) -> Dict[str, Optional[str]]:
        """Return {path: selected version} for the whole build list."""
        return {m.path: m.version for m in self._modules}

    def __len__(self) -> int:
        return len(self._modules)

    def __repr__(self) -> str:
        return (
            f"BuildListModel(modules={len(self._modules)}, "
            f"requirements={len(self._requirements)}, main={self._main.path if self._main else None})"
        )
