"""Tests for the go-backed resolver client and toolchain wrapper."""

import os
import subprocess
from unittest.mock import patch

import pytest

from buildlist.resolver import GoResolverClient, iter_json_stream, module_from_json, parse_graph
from buildlist.toolchain import Toolchain
from errors import MalformedDataError, ProjectEnvironmentError, ResolutionError

GO_LIST_OUTPUT = """{
        "Path": "github.com/me/hello",
        "Main": true,
        "Dir": "/work/hello",
        "GoMod": "/work/hello/go.mod"
}
{
        "Path": "golang.org/x/text",
        "Version": "v0.0.0-20170915032832-14c0d48ead0c",
        "Indirect": true,
        "GoMod": "/cache/golang.org/x/text@v0.0.0-20170915032832-14c0d48ead0c.mod"
}
{
        "Path": "rsc.io/quote",
        "Version": "v1.5.2",
        "Replace": {
                "Path": "rsc.io/quote",
                "Version": "v1.5.1",
                "GoMod": "/cache/rsc.io/quote@v1.5.1.mod"
        },
        "Update": {
                "Path": "rsc.io/quote",
                "Version": "v1.5.3"
        },
        "GoMod": "/cache/rsc.io/quote@v1.5.1/go.mod"
}
{
        "Path": "rsc.io/sampler",
        "Version": "v1.3.0",
        "Replace": {
                "Path": "../sampler",
                "Dir": "/work/sampler",
                "GoMod": "/work/sampler/go.mod"
        },
        "GoMod": "/work/sampler/go.mod"
}
"""

GO_MOD_GRAPH_OUTPUT = """github.com/me/hello rsc.io/quote@v1.5.2
rsc.io/quote@v1.5.2 rsc.io/sampler@v1.3.0
rsc.io/sampler@v1.3.0 golang.org/x/text@v0.0.0-20170915032832-14c0d48ead0c
"""


def completed(args, returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args, returncode, stdout, stderr)


class TestParsing:
    """Parsing of toolchain output."""

    def test_json_stream(self):
        objs = list(iter_json_stream(GO_LIST_OUTPUT))
        assert [o["Path"] for o in objs] == [
            "github.com/me/hello", "golang.org/x/text", "rsc.io/quote", "rsc.io/sampler",
        ]

    def test_json_stream_empty(self):
        assert list(iter_json_stream("  \n")) == []

    def test_json_stream_malformed(self):
        with pytest.raises(MalformedDataError):
            list(iter_json_stream('{"Path": "a"} {"Path": '))

    def test_module_replacement_selects_replacement_version(self):
        mods = [module_from_json(o) for o in iter_json_stream(GO_LIST_OUTPUT)]
        main, text, quote, sampler = mods
        assert main.is_main and main.version is None
        assert text.is_indirect
        assert quote.version == "v1.5.1"
        assert quote.replaced_by.path == "rsc.io/quote"
        assert quote.available_update == "v1.5.3"
        # directory replacement: required version stays selected
        assert sampler.version == "v1.3.0"
        assert sampler.replaced_by.path == "../sampler"
        assert sampler.replaced_by.version is None
        assert sampler.manifest_location == "/work/sampler/go.mod"

    def test_module_error_is_resolution_error(self):
        with pytest.raises(ResolutionError) as exc:
            module_from_json({"Path": "bad.example/m", "Error": {"Err": "unknown revision"}})
        assert exc.value.path == "bad.example/m"

    def test_graph(self):
        assert [str(e) for e in parse_graph(GO_MOD_GRAPH_OUTPUT)] == [
            "rsc.io/quote@v1.5.2",
            "rsc.io/sampler@v1.3.0",
            "golang.org/x/text@v0.0.0-20170915032832-14c0d48ead0c",
        ]

    def test_graph_skips_go_and_toolchain_nodes(self):
        text = (
            "example.com/m go@1.21\n"
            "go@1.21 toolchain@go1.21\n"
            "example.com/m rsc.io/quote@v1.5.2\n"
        )
        assert [str(e) for e in parse_graph(text)] == ["rsc.io/quote@v1.5.2"]

    @pytest.mark.parametrize("line", [
        "only-one-field",
        "a b@v1.0.0 extra",
        "a b",
        "a b@v1@v2",
    ])
    def test_graph_malformed(self, line):
        with pytest.raises(MalformedDataError):
            parse_graph(line + "\n")


@patch("buildlist.toolchain.subprocess.run")
class TestGoResolverClient:
    """GoResolverClient drives the go command."""

    def test_resolve_build_list_with_upgrades(self, mock_run):
        mock_run.return_value = completed([], stdout=GO_LIST_OUTPUT)
        client = GoResolverClient(Toolchain(workdir="/work/hello"))
        mods = client.resolve_build_list(include_upgrade_info=True)
        assert len(mods) == 4
        args, kwargs = mock_run.call_args
        assert args[0] == ["go", "list", "-mod=readonly", "-json", "-u", "-m", "all"]
        assert kwargs["cwd"] == "/work/hello"

    def test_resolve_build_list_without_upgrades(self, mock_run):
        mock_run.return_value = completed([], stdout=GO_LIST_OUTPUT)
        GoResolverClient().resolve_build_list()
        assert mock_run.call_args[0][0] == ["go", "list", "-mod=readonly", "-json", "-m", "all"]

    def test_resolve_build_list_failure(self, mock_run):
        mock_run.return_value = completed([], returncode=1, stderr="go: boom")
        with pytest.raises(ResolutionError) as exc:
            GoResolverClient().resolve_build_list()
        assert "boom" in str(exc.value)

    def test_requirement_graph(self, mock_run):
        mock_run.return_value = completed([], stdout=GO_MOD_GRAPH_OUTPUT)
        graph = GoResolverClient().resolve_requirement_graph()
        assert len(graph) == 3
        assert mock_run.call_args[0][0] == ["go", "mod", "graph"]

    @pytest.mark.parametrize("gomod,expected", [
        ("/work/hello/go.mod\n", True),
        ("\n", False),
        (os.devnull + "\n", False),
    ])
    def test_is_inside_project(self, mock_run, gomod, expected):
        mock_run.return_value = completed([], stdout=gomod)
        assert GoResolverClient().is_inside_project() is expected

    def test_manifest_current(self, mock_run):
        mock_run.return_value = completed([])
        assert GoResolverClient().check_manifest_current() is True
        assert mock_run.call_count == 1

    def test_manifest_stale(self, mock_run):
        mock_run.side_effect = [
            completed([], returncode=1, stderr="go: updates to go.mod needed"),
            completed([]),
        ]
        assert GoResolverClient(verbose=True).check_manifest_current() is False
        assert mock_run.call_args_list[1][0][0] == ["go", "list", "./..."]

    def test_manifest_check_when_project_does_not_build(self, mock_run):
        mock_run.side_effect = [
            completed([], returncode=1, stderr="syntax error"),
            completed([], returncode=1, stderr="syntax error"),
        ]
        with pytest.raises(ResolutionError) as exc:
            GoResolverClient().check_manifest_current()
        assert "syntax error" in str(exc.value)


@patch("buildlist.toolchain.subprocess.run")
class TestToolchain:
    """Timeouts and missing executables."""

    def test_timeout_is_resolution_error(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(["go"], 5)
        with pytest.raises(ResolutionError) as exc:
            Toolchain(timeout=5).run(["mod", "graph"])
        assert "timed out" in str(exc.value)

    def test_timeout_passed_through(self, mock_run):
        mock_run.return_value = completed([])
        Toolchain(timeout=12).run(["env", "GOMOD"])
        assert mock_run.call_args[1]["timeout"] == 12

    def test_child_runs_in_own_session(self, mock_run):
        mock_run.return_value = completed([])
        Toolchain().run(["mod", "graph"])
        assert mock_run.call_args[1]["start_new_session"] is True

    def test_zero_timeout_means_unbounded(self, mock_run):
        mock_run.return_value = completed([])
        Toolchain(timeout=0).run(["env", "GOMOD"])
        assert mock_run.call_args[1]["timeout"] is None

    def test_missing_binary(self, mock_run):
        mock_run.side_effect = FileNotFoundError("go")
        with pytest.raises(ProjectEnvironmentError):
            Toolchain(binary="go-missing").run(["env", "GOMOD"])
