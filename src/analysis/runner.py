"""Analysis runner: orders rule execution and aggregates their results.

- Confirms the working directory is inside a module
- Refuses to go further when the manifest is stale
- Resolves the build list (and requirement graph, when needed) once
- Runs each enabled check in a fixed order, stopping at the first error
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from buildlist.manifest import ManifestAccessor
from buildlist.model import BuildListModel
from buildlist.resolver import ResolverClient
from common.logging_utils import extra_context, is_debug_enabled
from config import AnalysisConfig
from errors import ModvetError, ProjectEnvironmentError, StaleManifestError

from .findings import Finding, RuleResult
from .rules import ManifestStaleRule, RuleRegistry, rule_registry

logger = logging.getLogger(__name__)


@dataclass
class AnalysisReport:
    """Everything one pass produced, including a terminating error."""
    results: List[RuleResult] = field(default_factory=list)
    error: Optional[ModvetError] = None
    cancelled: bool = False

    @property
    def flagged(self) -> bool:
        return any(r.flagged for r in self.results)

    @property
    def findings(self) -> List[Finding]:
        return [f for r in self.results for f in r.findings]

    def to_dict(self) -> Dict[str, Any]:
        err = None
        if self.error is not None:
            err = {
                "type": type(self.error).__name__,
                "message": self.error.message,
                "context": {k: str(v) for k, v in self.error.context().items()},
            }
        return {
            "flagged": self.flagged,
            "cancelled": self.cancelled,
            "rules": [r.to_dict() for r in self.results],
            "error": err,
        }


def load_model(resolver: ResolverClient, config: AnalysisConfig) -> BuildListModel:
    """Resolve the build list, plus the requirement graph only when a check uses it."""
    modules = resolver.resolve_build_list(include_upgrade_info=config.check_upgrades)
    requirements = []
    if config.check_conflicting_requires:
        requirements = resolver.resolve_requirement_graph()
    return BuildListModel(modules, requirements, includes_upgrades=config.check_upgrades)


def run_analysis(
    config: AnalysisConfig,
    resolver: ResolverClient,
    manifests: ManifestAccessor,
    registry: RuleRegistry = rule_registry,
    cancel: Optional[threading.Event] = None,
) -> AnalysisReport:
    """Run one analysis pass.

    Errors end the pass and are returned on the report together with the
    results gathered before them. A set cancel event stops the pass before
    the next rule starts.
    """
    report = AnalysisReport()
    try:
        if not resolver.is_inside_project():
            raise ProjectEnvironmentError(
                "no current 'go.mod' file. please run from within a module with module-mode enabled."
            )

        stale = ManifestStaleRule(resolver).run(None, config.verbose)
        report.results.append(stale)
        if stale.flagged:
            raise StaleManifestError(
                "exiting prior to checking other rules.", rule=ManifestStaleRule.name
            )

        checks = config.enabled_checks()
        if not checks:
            logger.info("No checks enabled.")
            return report

        model = load_model(resolver, config)
        if is_debug_enabled(logger):
            logger.debug(
                "Build list loaded",
                extra=extra_context(
                    event="decision",
                    component="runner",
                    action="load_model",
                    count=len(model),
                ),
            )

        for name in checks:
            if cancel is not None and cancel.is_set():
                logger.warning("Analysis cancelled before check: %s", name)
                report.cancelled = True
                break
            rule = registry.create(name, resolver, manifests)
            result = rule.run(model, config.verbose)
            report.results.append(result)
            logger.debug("check %s finished: %d findings", name, len(result.findings))
    except ModvetError as exc:
        report.error = exc

    return report
