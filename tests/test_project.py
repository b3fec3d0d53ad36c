"""Tests for project root resolution and the readiness probe."""

import json

import pytest
from conftest import ScriptedRunner, ok

from giant_ai.models import ReadinessState
from giant_ai.project import (
    has_marker_dir,
    is_project_indexed,
    parse_probe_output,
    probe_project_state,
    resolve_project_root,
)


class TestParseProbeOutput:
    def test_not_indexed_sentinel(self):
        assert parse_probe_output(json.dumps({"error": "Project not indexed"})) is False

    def test_other_error_is_not_ready(self):
        assert parse_probe_output(json.dumps({"error": "index corrupted"})) is False

    def test_empty_results_without_error_is_ready(self):
        assert parse_probe_output(json.dumps({"results": []})) is True

    def test_results_without_error_is_ready(self):
        assert parse_probe_output(json.dumps({"results": [{"file": "a.py", "score": 0.9}]})) is True

    @pytest.mark.parametrize("output", ["", "not json", "{", "[1, 2]", "null", '"text"'])
    def test_malformed_output_is_never_ready(self, output):
        assert parse_probe_output(output) is False


class TestResolveProjectRoot:
    @pytest.mark.asyncio
    async def test_uses_git_top_level(self, tmp_path):
        runner = ScriptedRunner({"git": ok("/repos/app\n")})
        root = await resolve_project_root(tmp_path, runner)

        assert str(root) == "/repos/app"
        assert runner.calls == [["git", "rev-parse", "--show-toplevel"]]

    @pytest.mark.asyncio
    async def test_falls_back_on_nonzero_exit(self, tmp_path):
        runner = ScriptedRunner({"git": ok("", "fatal: not a git repository", exit_code=128)})
        assert await resolve_project_root(tmp_path, runner) == tmp_path

    @pytest.mark.asyncio
    async def test_falls_back_on_empty_output(self, tmp_path):
        runner = ScriptedRunner({"git": ok("\n")})
        assert await resolve_project_root(tmp_path, runner) == tmp_path

    @pytest.mark.asyncio
    async def test_falls_back_when_git_missing(self, tmp_path):
        runner = ScriptedRunner({})
        assert await resolve_project_root(tmp_path, runner) == tmp_path


class TestIsProjectIndexed:
    @pytest.mark.asyncio
    async def test_missing_marker_short_circuits(self, bare_project, config):
        runner = ScriptedRunner({"ai-search": ok(json.dumps({"results": []}))})

        assert await is_project_indexed(bare_project, config, runner) is False
        assert runner.calls == []

    @pytest.mark.asyncio
    async def test_probe_arguments(self, project, config):
        runner = ScriptedRunner({"ai-search": ok(json.dumps({"results": []}))})

        assert await is_project_indexed(project, config, runner) is True
        assert runner.calls == [["ai-search", "test", str(project), "1", "json"]]

    @pytest.mark.asyncio
    async def test_sentinel_reports_not_indexed(self, project, config):
        runner = ScriptedRunner({"ai-search": ok(json.dumps({"error": "Project not indexed"}))})
        assert await is_project_indexed(project, config, runner) is False

    @pytest.mark.asyncio
    async def test_missing_search_tool_reports_not_indexed(self, project, config):
        assert await is_project_indexed(project, config, ScriptedRunner({})) is False


class TestProbeProjectState:
    @pytest.mark.asyncio
    async def test_uninitialized(self, bare_project, config):
        runner = ScriptedRunner({"git": ok(f"{bare_project}\n")})
        state = await probe_project_state(config, runner, bare_project)

        assert state.readiness is ReadinessState.UNINITIALIZED
        assert runner.probe_calls() == []

    @pytest.mark.asyncio
    async def test_initialized_unindexed(self, project, config):
        runner = ScriptedRunner(
            {"git": ok(f"{project}\n"), "ai-search": ok(json.dumps({"error": "Project not indexed"}))}
        )
        state = await probe_project_state(config, runner, project)

        assert state.initialized is True
        assert state.indexed is False
        assert state.readiness is ReadinessState.INITIALIZED_UNINDEXED

    @pytest.mark.asyncio
    async def test_ready(self, project, config):
        runner = ScriptedRunner({"git": ok(f"{project}\n"), "ai-search": ok('{"results": []}')})
        state = await probe_project_state(config, runner, project)

        assert state.root == project
        assert state.readiness is ReadinessState.READY

    @pytest.mark.asyncio
    async def test_reprobed_every_call(self, project, config):
        responses = iter([ok('{"results": []}'), ok('{"error": "Project not indexed"}')])
        runner = ScriptedRunner({"git": ok(f"{project}\n"), "ai-search": lambda argv: next(responses)})

        first = await probe_project_state(config, runner, project)
        second = await probe_project_state(config, runner, project)

        assert first.readiness is ReadinessState.READY
        assert second.readiness is ReadinessState.INITIALIZED_UNINDEXED
        assert len(runner.probe_calls()) == 2


def test_has_marker_dir(project, bare_project):
    assert has_marker_dir(project, ".giant-ai") is True
    assert has_marker_dir(bare_project, ".giant-ai") is False
    (bare_project / ".giant-ai").write_text("not a directory")
    assert has_marker_dir(bare_project, ".giant-ai") is False
