"""
Shared test fixtures.

ScriptedRunner stands in for the external toolchain: each executable name
maps to a CommandResult (or a callable producing one), and every call is
recorded so tests can assert on exactly what was spawned.

Markers:
    @pytest.mark.subprocess  - Spawns real processes (needs a POSIX sh)

Run:
    pytest -m "not subprocess"   # skip real-process tests
"""

from __future__ import annotations

import json
import shutil
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Union

import pytest

from giant_ai.errors import ToolUnavailableError
from giant_ai.hosts.capture import CaptureHost
from giant_ai.models import GiantAIConfig
from giant_ai.process import CommandResult

Response = Union[CommandResult, Callable[[List[str]], CommandResult]]


def ok(stdout: str = "", stderr: str = "", exit_code: int = 0) -> CommandResult:
    return CommandResult(exit_code=exit_code, stdout=stdout, stderr=stderr, duration_ms=1)


class ScriptedRunner:
    """Fake process runner keyed by executable name."""

    def __init__(self, responses: Optional[Dict[str, Response]] = None) -> None:
        self.responses: Dict[str, Response] = dict(responses or {})
        self.calls: List[List[str]] = []

    async def __call__(self, argv: Sequence[str], working_directory=None, timeout=None, stdin_text=None):
        argv = [str(a) for a in argv]
        self.calls.append(argv)
        response = self.responses.get(argv[0])
        if response is None:
            raise ToolUnavailableError(argv[0])
        if callable(response):
            return response(argv)
        return response

    def calls_to(self, tool: str) -> List[List[str]]:
        return [call for call in self.calls if call[0] == tool]

    def probe_calls(self) -> List[List[str]]:
        return [call for call in self.calls_to("ai-search") if call[-1] == "json"]

    def search_calls(self) -> List[List[str]]:
        return [call for call in self.calls_to("ai-search") if call[-1] == "text"]


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "subprocess: spawns real processes through /bin/sh")


def pytest_collection_modifyitems(config, items):
    """Auto-skip real-process tests when no POSIX shell is available."""
    if shutil.which("sh"):
        return
    skip_sh = pytest.mark.skip(reason="POSIX sh not available")
    for item in items:
        if "subprocess" in item.keywords:
            item.add_marker(skip_sh)


@pytest.fixture
def config() -> GiantAIConfig:
    return GiantAIConfig()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """An initialized project directory (marker directory present)."""
    root = tmp_path / "project"
    (root / ".giant-ai").mkdir(parents=True)
    return root


@pytest.fixture
def bare_project(tmp_path: Path) -> Path:
    """A project that has never been initialized."""
    root = tmp_path / "bare"
    root.mkdir()
    return root


@pytest.fixture
def host(project: Path) -> CaptureHost:
    return CaptureHost(cwd=project)


def ready_runner(root: Path, search: Response = None, analysis: Response = None) -> ScriptedRunner:
    """Runner for a READY project rooted at ``root``."""
    text_result = search if search is not None else ok("")

    def ai_search(argv: List[str]) -> CommandResult:
        if argv[-1] == "json":
            return ok(json.dumps({"results": [{"file": "src/main.py"}]}))
        return text_result(argv) if callable(text_result) else text_result

    responses: Dict[str, Response] = {
        "git": ok(f"{root}\n"),
        "ai-search": ai_search,
    }
    if analysis is not None:
        responses["ai-search-pipe"] = analysis
    return ScriptedRunner(responses)
