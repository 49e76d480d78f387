"""Shared fixtures and test doubles for the resolver and manifest accessor."""

from typing import Dict, List, Optional

import pytest

from buildlist.manifest import ManifestAccessor
from buildlist.model import BuildListModel
from buildlist.resolver import ResolverClient
from errors import ResolutionError
from versioning.models import ManifestDirectives, ModuleRef, Replace, RequirementEdge, ResolvedModule


class StaticResolverClient(ResolverClient):
    """ResolverClient returning fixed fixtures and recording calls."""

    def __init__(
        self,
        modules: List[ResolvedModule],
        edges: Optional[List[RequirementEdge]] = None,
        inside: bool = True,
        manifest_current: bool = True,
        fail: Optional[Dict[str, Exception]] = None,
    ):
        self.modules = modules
        self.edges = edges or []
        self.inside = inside
        self.manifest_current = manifest_current
        self.fail = fail or {}
        self.calls: List[str] = []

    def _call(self, name):
        self.calls.append(name)
        if name in self.fail:
            raise self.fail[name]

    def is_inside_project(self):
        self._call("is_inside_project")
        return self.inside

    def resolve_build_list(self, include_upgrade_info=False):
        self._call("resolve_build_list")
        if include_upgrade_info:
            return list(self.modules)
        return [
            ResolvedModule(m.path, m.version, m.is_main, m.is_indirect, m.replaced_by, None,
                           m.manifest_location)
            for m in self.modules
        ]

    def resolve_requirement_graph(self):
        self._call("resolve_requirement_graph")
        return list(self.edges)

    def check_manifest_current(self):
        self._call("check_manifest_current")
        return self.manifest_current


class StaticManifestAccessor(ManifestAccessor):
    """ManifestAccessor serving directives from a {location: directives} map."""

    def __init__(self, manifests: Dict[str, ManifestDirectives]):
        self.manifests = manifests
        self.reads: List[str] = []

    def read_manifest(self, location):
        self.reads.append(location)
        if location not in self.manifests:
            raise ResolutionError(f"error invoking 'go mod edit -json': {location}")
        return self.manifests[location]


def mod(path, version=None, main=False, update=None, gomod=None, replaced_by=None):
    """Build a ResolvedModule with a default manifest location."""
    if gomod is None:
        gomod = f"/mods/{path}@{version}/go.mod" if version else f"/work/{path}/go.mod"
    return ResolvedModule(
        path=path,
        version=version,
        is_main=main,
        replaced_by=replaced_by,
        available_update=update,
        manifest_location=gomod,
    )


def edges(*tokens):
    return [RequirementEdge.parse(t) for t in tokens]


@pytest.fixture
def main_module():
    return mod("example.com/app", main=True)


@pytest.fixture
def sample_modules(main_module):
    return [
        main_module,
        mod("example.com/lib", "v1.2.0", update="v1.3.0"),
        mod("example.com/lib/v2", "v2.0.1"),
        mod("golang.org/x/text", "v0.0.0-20170915032832-14c0d48ead0c"),
        mod("rsc.io/quote", "v1.5.2"),
        mod("rsc.io/sampler", "v1.99.99-rc.1"),
    ]


@pytest.fixture
def sample_manifests(main_module, sample_modules):
    manifests = {m.manifest_location: ManifestDirectives(module=m.ref) for m in sample_modules}
    manifests[main_module.manifest_location] = ManifestDirectives(
        module=main_module.ref,
        replace=(Replace(ModuleRef("rsc.io/quote"), ModuleRef("../quote")),),
    )
    return StaticManifestAccessor(manifests)


@pytest.fixture
def sample_model(sample_modules):
    return BuildListModel(
        sample_modules,
        edges("example.com/lib@v1.2.0", "example.com/lib@v1.1.0", "rsc.io/quote@v1.5.2"),
        includes_upgrades=True,
    )
