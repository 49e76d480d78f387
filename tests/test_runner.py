"""Tests for the analysis runner."""

import threading

from analysis.runner import run_analysis
from config import CHECK_FIELDS, AnalysisConfig
from conftest import StaticManifestAccessor, StaticResolverClient, edges, mod
from errors import MalformedDataError, ProjectEnvironmentError, ResolutionError, StaleManifestError
from versioning.models import ManifestDirectives


def only(*checks):
    """AnalysisConfig with just the named checks enabled."""
    config = AnalysisConfig()
    for name, attr in CHECK_FIELDS.items():
        setattr(config, attr, name in checks)
    return config


class TestRunAnalysis:
    """Ordering, aggregation and early termination."""

    def test_full_pass(self, sample_modules, sample_manifests):
        resolver = StaticResolverClient(
            sample_modules, edges("A@v0.1.0", "A@v1.0.0", "rsc.io/quote@v1.5.2")
        )
        report = run_analysis(AnalysisConfig(), resolver, sample_manifests)
        assert report.error is None
        assert report.flagged
        assert [r.name for r in report.results] == [
            "manifeststale", "upgrades", "multiplemajor", "conflictingrequires",
            "excludedversion", "prerelease", "pseudoversion", "replace",
        ]
        flagged = {r.name for r in report.results if r.flagged}
        assert flagged == {
            "upgrades", "multiplemajor", "conflictingrequires",
            "prerelease", "pseudoversion", "replace",
        }
        assert resolver.calls == [
            "is_inside_project", "check_manifest_current",
            "resolve_build_list", "resolve_requirement_graph",
        ]

    def test_clean_pass(self, main_module):
        dep = mod("a.example/m", "v1.0.0")
        resolver = StaticResolverClient([main_module, dep], edges("a.example/m@v1.0.0"))
        manifests = StaticManifestAccessor({
            main_module.manifest_location: ManifestDirectives(),
            dep.manifest_location: ManifestDirectives(),
        })
        report = run_analysis(AnalysisConfig(), resolver, manifests)
        assert report.error is None
        assert not report.flagged
        assert report.findings == []

    def test_not_inside_project(self):
        resolver = StaticResolverClient([], inside=False)
        report = run_analysis(AnalysisConfig(), resolver, StaticManifestAccessor({}))
        assert isinstance(report.error, ProjectEnvironmentError)
        assert report.results == []
        assert resolver.calls == ["is_inside_project"]

    def test_stale_manifest_stops_pass(self, sample_modules):
        resolver = StaticResolverClient(sample_modules, manifest_current=False)
        report = run_analysis(AnalysisConfig(), resolver, StaticManifestAccessor({}))
        assert isinstance(report.error, StaleManifestError)
        assert report.flagged
        assert [r.name for r in report.results] == ["manifeststale"]
        assert "resolve_build_list" not in resolver.calls

    def test_error_keeps_prior_findings(self, sample_modules):
        resolver = StaticResolverClient(sample_modules, edges("A@v1.0.0", "A@broken"))
        report = run_analysis(only("upgrades", "conflictingrequires", "prerelease"),
                              resolver, StaticManifestAccessor({}))
        assert isinstance(report.error, MalformedDataError)
        assert report.error.rule == "conflictingrequires"
        assert [r.name for r in report.results] == ["manifeststale", "upgrades"]
        assert report.flagged

    def test_resolution_error_reported(self, sample_modules):
        resolver = StaticResolverClient(
            sample_modules, fail={"resolve_build_list": ResolutionError("error invoking 'go list'")}
        )
        report = run_analysis(AnalysisConfig(), resolver, StaticManifestAccessor({}))
        assert isinstance(report.error, ResolutionError)
        assert [r.name for r in report.results] == ["manifeststale"]

    def test_graph_only_resolved_when_needed(self, sample_modules):
        resolver = StaticResolverClient(sample_modules)
        report = run_analysis(only("prerelease"), resolver, StaticManifestAccessor({}))
        assert report.error is None
        assert "resolve_requirement_graph" not in resolver.calls

    def test_no_checks_enabled(self, sample_modules):
        resolver = StaticResolverClient(sample_modules)
        report = run_analysis(only(), resolver, StaticManifestAccessor({}))
        assert report.error is None
        assert "resolve_build_list" not in resolver.calls

    def test_cancel_before_next_rule(self, sample_modules):
        cancel = threading.Event()
        cancel.set()
        resolver = StaticResolverClient(sample_modules)
        report = run_analysis(AnalysisConfig(), resolver, StaticManifestAccessor({}), cancel=cancel)
        assert report.cancelled
        assert [r.name for r in report.results] == ["manifeststale"]

    def test_report_to_dict(self, sample_modules):
        resolver = StaticResolverClient(sample_modules, edges("A@v1.0.0", "A@broken"))
        report = run_analysis(only("pseudoversion", "conflictingrequires"),
                              resolver, StaticManifestAccessor({}))
        data = report.to_dict()
        assert data["error"]["type"] == "MalformedDataError"
        assert data["error"]["context"]["rule"] == "conflictingrequires"
        assert data["rules"][0]["rule"] == "modvet-001"
