"""Diagnostic rules over the build list and requirement graph.

Each rule is independent of the others: it reads the model (and, where it
needs to, the resolver or manifest accessor) and returns a RuleResult. Any
error from a collaborator aborts the rule; there are no partial results.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Dict, List, Optional

from buildlist.manifest import ManifestAccessor
from buildlist.model import BuildListModel
from buildlist.resolver import ResolverClient
from constants import RuleIds
from errors import ModvetError, ProjectEnvironmentError, ResolutionError
from versioning import classifier, semver
from versioning.models import ModuleRef

from .findings import RuleResult

logger = logging.getLogger(__name__)

# Semantic import versioning suffix, e.g. the "/v3" in "example.com/mod/v3".
# gopkg.in style ".vN" suffixes are not considered.
MAJOR_SUFFIX_RE = re.compile(r"(?:/v[0-9]+)+$")


def family_key(path: str) -> str:
    """Strip trailing /vN suffixes to get the path shared by all majors."""
    return MAJOR_SUFFIX_RE.sub("", path)


class Rule:
    """Base class for rules."""

    rule_id: RuleIds
    name: str = ""

    def run(self, model: Optional[BuildListModel], verbose: bool = False) -> RuleResult:
        """Run the rule, tagging any error with the rule name."""
        result = RuleResult(self.rule_id.value, self.name)
        try:
            self.check(model, result, verbose)
        except ModvetError as exc:
            exc.with_rule(self.name)
            raise
        return result

    def check(self, model: Optional[BuildListModel], result: RuleResult, verbose: bool) -> None:
        raise NotImplementedError

    def _require_model(self, model: Optional[BuildListModel]) -> BuildListModel:
        if model is None:
            raise ResolutionError("no build list available")
        return model


class ManifestStaleRule(Rule):
    """Report if the current manifest would be updated by a build or list."""

    rule_id = RuleIds.MANIFEST_STALE
    name = "manifeststale"

    def __init__(self, resolver: ResolverClient):
        self.resolver = resolver

    def check(self, model, result, verbose):
        if not self.resolver.check_manifest_current():
            main = model.main_module() if model is not None else None
            modules = (main.ref,) if main is not None else ()
            result.add(
                "the current module's 'go.mod' file would be updated by a 'go build' or "
                "'go list'. Please update prior to using modvet.",
                *modules,
            )


class AvailableUpgradesRule(Rule):
    """Report direct and indirect dependencies with available updates."""

    rule_id = RuleIds.UPGRADES
    name = "upgrades"

    def check(self, model, result, verbose):
        model = self._require_model(model)
        if not model.includes_upgrades:
            raise ResolutionError("build list was resolved without upgrade information")
        for mod in model.all():
            if verbose:
                logger.info("upgrades: module %s: %s", mod.path, mod)
            if mod.available_update:
                result.add(
                    f"dependencies have available updates: {mod.path} "
                    f"{mod.version} -> {mod.available_update}",
                    mod.ref,
                    ModuleRef(mod.path, mod.available_update),
                )


class MultipleMajorVersionsRule(Rule):
    """Report module families present at more than one major version path.

    For example "example.com/bar" and "example.com/bar/v3" in one build.
    """

    rule_id = RuleIds.MULTIPLE_MAJOR
    name = "multiplemajor"

    def check(self, model, result, verbose):
        model = self._require_model(model)
        families: Dict[str, List[ModuleRef]] = {}
        for mod in model.all():
            if verbose:
                logger.info("multiplemajor: module %s: %s", mod.path, mod)
            members = families.setdefault(family_key(mod.path), [])
            if all(m.path != mod.path for m in members):
                members.append(mod.ref)

        for members in families.values():
            if len(members) > 1:
                result.add(
                    "a module has multiple major versions in this build: "
                    + ", ".join(m.path for m in members),
                    *members,
                )


def incompatible_representatives(versions: List[str]) -> List[str]:
    """Pick the versions of one path that may be mutually incompatible.

    versions are normalized, distinct and sorted from highest to lowest.
      - every pre-v1 version is its own representative;
      - the first v1 version stands for the whole v1 line;
      - the first vN+incompatible version stands for its major N.
    Returned in the order encountered.
    """
    reps: List[str] = []
    v1_seen = False
    majors_seen = set()
    for version in versions:
        if classifier.is_before_v1(version):
            reps.append(version)
        elif classifier.is_v1(version):
            if not v1_seen:
                reps.append(version)
                v1_seen = True
        elif classifier.is_v2_plus_incompatible(version):
            major = semver.major(version)
            if major not in majors_seen:
                reps.append(version)
                majors_seen.add(major)
    return reps


class ConflictingRequiresRule(Rule):
    """Report paths required at potentially incompatible versions.

    That is, different v0 versions, a v0 plus a v1 version, or a
    vN+incompatible version plus a v0, v1 or other vN+incompatible version.
    Works on the requirement graph so it sees every requested version, not
    only the selected one.
    """

    rule_id = RuleIds.CONFLICTING_REQUIRES
    name = "conflictingrequires"

    def check(self, model, result, verbose):
        model = self._require_model(model)
        paths: Dict[str, List[str]] = {}
        for edge in model.requirements():
            semver.require(edge.version, path=edge.path)
            version = classifier.normalize(edge.version)
            versions = paths.setdefault(edge.path, [])
            if version not in versions:
                versions.append(version)

        for path, versions in paths.items():
            versions.sort(key=semver.sort_key, reverse=True)
            if verbose:
                logger.info("conflictingrequires: module %r has require versions: %s",
                            path, ", ".join(versions))
            reps = incompatible_representatives(versions)
            if len(reps) > 1:
                reps.reverse()
                result.add(
                    f"module {path!r} was required with potentially incompatible versions: "
                    + ", ".join(reps),
                    *(ModuleRef(path, v) for v in reps),
                )


class ExcludedVersionInUseRule(Rule):
    """Report selected versions that a dependency's manifest excludes.

    The main module's own manifest is not checked; the toolchain keeps it
    consistent with the build list. Manifests are assumed to use canonical
    version strings, so the comparison is exact.
    """

    rule_id = RuleIds.EXCLUDED_VERSION
    name = "excludedversion"

    def __init__(self, manifests: ManifestAccessor):
        self.manifests = manifests

    def check(self, model, result, verbose):
        model = self._require_model(model)
        versions = model.selected_versions()
        for mod in model.filter_main(False):
            if verbose:
                logger.info("excludedversion: module %s: %s", mod.path, mod)
            if not mod.manifest_location:
                raise ResolutionError("no manifest location for module", path=mod.path,
                                      version=mod.version)
            directives = self.manifests.read_manifest(mod.manifest_location)
            for exclude in directives.exclude:
                if exclude.path in versions and versions[exclude.path] == exclude.version:
                    result.add(
                        "a module is using a version excluded by another module. "
                        f"excluded version: {exclude.path} {exclude.version} (excluded by {mod.path})",
                        exclude,
                        mod.ref,
                    )


class _VersionPredicateRule(Rule):
    """Flags every module whose selected version matches a predicate."""

    predicate: Callable[[str], bool]
    label = ""

    def check(self, model, result, verbose):
        model = self._require_model(model)
        for mod in model.all():
            if verbose:
                logger.info("%s: module %s: %s", self.name, mod.path, mod)
            if mod.version is None:
                continue
            semver.require(mod.version, path=mod.path)
            if self.predicate(mod.version):
                result.add(f"a module is using a {self.label}: {mod.path} {mod.version}",
                           mod.ref)


class PrereleaseInUseRule(_VersionPredicateRule):
    """Report prerelease versions in the build, pseudo-versions excepted."""

    rule_id = RuleIds.PRERELEASE
    name = "prerelease"
    label = "prerelease version"
    predicate = staticmethod(classifier.is_prerelease)


class PseudoVersionInUseRule(_VersionPredicateRule):
    """Report pseudo-versions in the build."""

    rule_id = RuleIds.PSEUDO_VERSION
    name = "pseudoversion"
    label = "pseudo-version"
    predicate = staticmethod(classifier.is_pseudo_version)


class ReplaceDirectivesPresentRule(Rule):
    """Report 'replace' directives in the main module's manifest.

    Ineffective replacements are reported too, since the manifest itself is
    what gets checked in.
    """

    rule_id = RuleIds.REPLACE
    name = "replace"

    def __init__(self, manifests: ManifestAccessor):
        self.manifests = manifests

    def check(self, model, result, verbose):
        model = self._require_model(model)
        main = model.main_module()
        if main is None:
            raise ProjectEnvironmentError("no main module in build list")
        if verbose:
            logger.info("replace: module %s: %s", main.path, main)
        if not main.manifest_location:
            raise ResolutionError("no manifest location for main module", path=main.path)
        directives = self.manifests.read_manifest(main.manifest_location)
        for replace in directives.replace:
            result.add(f"the main module has a 'replace' directive: {replace}",
                       replace.old, replace.new)


RuleFactory = Callable[[ResolverClient, ManifestAccessor], Rule]


class RuleRegistry:
    """Registry of the optional checks, keyed by check name."""

    def __init__(self):
        self._factories: Dict[str, RuleFactory] = {
            "upgrades": lambda resolver, manifests: AvailableUpgradesRule(),
            "multiplemajor": lambda resolver, manifests: MultipleMajorVersionsRule(),
            "conflictingrequires": lambda resolver, manifests: ConflictingRequiresRule(),
            "excludedversion": lambda resolver, manifests: ExcludedVersionInUseRule(manifests),
            "prerelease": lambda resolver, manifests: PrereleaseInUseRule(),
            "pseudoversion": lambda resolver, manifests: PseudoVersionInUseRule(),
            "replace": lambda resolver, manifests: ReplaceDirectivesPresentRule(manifests),
        }

    def names(self) -> List[str]:
        return list(self._factories)

    def create(self, name: str, resolver: ResolverClient, manifests: ManifestAccessor) -> Rule:
        """Create a rule by check name.

        Raises:
            ValueError: If no rule is registered under name.
        """
        if name not in self._factories:
            raise ValueError(f"Unknown check: {name}")
        return self._factories[name](resolver, manifests)

    def register(self, name: str, factory: RuleFactory) -> None:
        self._factories[name] = factory


# Global registry instance
rule_registry = RuleRegistry()
