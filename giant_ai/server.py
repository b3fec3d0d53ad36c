from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from giant_ai.config import LOG_LEVEL
from giant_ai.hosts.capture import CaptureHost
from giant_ai.orchestrator import WorkflowOrchestrator
from giant_ai.plugin import setup

try:
    from mcp.server.fastmcp import FastMCP
except ImportError as exc:  # pragma: no cover - dependency is optional at import time
    FastMCP = None
    _IMPORT_ERROR = exc
else:
    _IMPORT_ERROR = None

LOG = logging.getLogger("giant_ai.server")


def _require_server() -> "FastMCP":
    if FastMCP is None:
        raise SystemExit(
            "The mcp package is required to run the server. "
            "Install it with `pip install mcp` or `pip install mcp[cli]`."
        ) from _IMPORT_ERROR
    return FastMCP("giant-ai")


def _validate_required(name: str, value: Optional[str]) -> None:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError(f"Missing required field: {name}")


def _options(provider: Optional[str], limit: Optional[int]) -> Dict[str, Any]:
    opts: Dict[str, Any] = {"auto_setup": False}
    if provider:
        opts["provider"] = provider
    if limit is not None:
        opts["limit"] = limit
    return opts


async def _session(workingDirectory: str, provider: Optional[str], limit: Optional[int]):
    cwd = Path(workingDirectory)
    if not cwd.is_dir():
        raise ValueError(f"Working directory does not exist: {workingDirectory}")
    host = CaptureHost(cwd=cwd)
    orch = await setup(host, opts=_options(provider, limit))
    return host, orch


async def run_tool(action: str, orch: WorkflowOrchestrator, query: str) -> Dict[str, Any]:
    LOG.info("MCP %s request: %r", action, query)
    start = orch.search if action == "search" else orch.analyze
    dispatch = await start(query)
    outcome = await dispatch
    await orch.wait_idle()
    return outcome.model_dump(mode="json")


def build_server() -> "FastMCP":
    server = _require_server()

    @server.tool(
        description="Semantic code search in an indexed project. Returns matching lines and the files they come from."
    )
    async def giant_ai_search(
        query: str,
        workingDirectory: str,
        limit: Optional[int] = None,
    ) -> dict:
        _validate_required("query", query)
        _validate_required("workingDirectory", workingDirectory)
        host, orch = await _session(workingDirectory, None, limit)
        outcome = await run_tool("search", orch, query)
        return {"outcome": outcome, **host.to_dict()}

    @server.tool(
        description="Semantic search followed by AI analysis of the results with the configured provider."
    )
    async def giant_ai_analyze(
        query: str,
        workingDirectory: str,
        provider: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> dict:
        _validate_required("query", query)
        _validate_required("workingDirectory", workingDirectory)
        host, orch = await _session(workingDirectory, provider, limit)
        outcome = await run_tool("analyze", orch, query)
        return {"outcome": outcome, **host.to_dict()}

    @server.tool(
        description="Report whether the project is initialized and indexed, plus the next setup step."
    )
    async def giant_ai_status(workingDirectory: str) -> dict:
        _validate_required("workingDirectory", workingDirectory)
        host, orch = await _session(workingDirectory, None, None)
        report = await orch.status()
        return {"status": report.model_dump(mode="json"), "text": report.render()}

    return server


def main() -> None:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    server = build_server()
    server.run()


if __name__ == "__main__":
    main()
