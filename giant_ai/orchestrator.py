"""
Workflow orchestrator: readiness gate + async dispatch of the external
search and analysis tools.

Every user action follows the same chain:

1. resolve the project root and probe its readiness
2. stop with a remediation hint unless the project is READY
3. start the external tool in a background task and return immediately
4. when the tool exits, route its output to the clipboard, the chat
   integration, or a notification

Usage::

    orch = WorkflowOrchestrator(config, host)
    dispatch = await orch.search("auth")
    outcome = await dispatch
"""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import Awaitable, List, Optional, Set

from giant_ai.errors import ToolUnavailableError
from giant_ai.host import ChatIntegration, EditorHost
from giant_ai.models import (
    DispatchKind,
    DispatchOutcome,
    DispatchStatus,
    GiantAIConfig,
    ProjectState,
    ReadinessState,
    StatusReport,
)
from giant_ai.process import CommandResult, Runner, format_command, run_command, reports_missing_tool
from giant_ai.project import probe_project_state

LOG = logging.getLogger("giant_ai.orchestrator")

NOTIFY_PREFIX = "[Giant AI] "
PREVIEW_LINES = 5

# First file-looking token on a result line: "src/auth.go:12: handleLogin" -> "src/auth.go"
FILE_TOKEN_PATTERN = re.compile(r"(\S+\.[A-Za-z0-9]+)")

Dispatch = Awaitable[DispatchOutcome]


def extract_files(output: str) -> List[str]:
    """Distinct file-like tokens in first-seen order, at most one per line."""
    seen: List[str] = []
    for line in output.splitlines():
        match = FILE_TOKEN_PATTERN.search(line)
        if match and match.group(1) not in seen:
            seen.append(match.group(1))
    return seen


def preview_lines(output: str, limit: int = PREVIEW_LINES) -> List[str]:
    return [line for line in output.split("\n")[:limit] if line.strip()]


class WorkflowOrchestrator:
    """
    Runs search / analyze / status against the external toolchain.

    The config is immutable for the session. The chat integration and the
    availability of the analysis tool are resolved once by setup and passed
    in; nothing is probed per call except project readiness.
    """

    def __init__(
        self,
        config: GiantAIConfig,
        host: EditorHost,
        chat: Optional[ChatIntegration] = None,
        runner: Runner = run_command,
        analysis_available: bool = True,
    ) -> None:
        self.config = config
        self.host = host
        self.chat = chat
        self._runner = runner
        self._analysis_available = analysis_available
        self._pending: Set[asyncio.Future] = set()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _notify(self, message: str, level: int = logging.INFO) -> None:
        self.host.notify(NOTIFY_PREFIX + message, level)

    def _done(self, outcome: DispatchOutcome) -> Dispatch:
        future = asyncio.get_running_loop().create_future()
        future.set_result(outcome)
        return future

    def _spawn(self, coro: Awaitable[DispatchOutcome]) -> Dispatch:
        task = asyncio.ensure_future(coro)
        self._pending.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Future) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            LOG.error("Dispatch failed: %s", exc, exc_info=exc)
            self._notify(f"Error: {exc}", logging.ERROR)

    async def wait_idle(self) -> None:
        """Wait for every in-flight dispatch, including fallbacks they start."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _resolve_query(self, query: Optional[str], prompt: str) -> Optional[str]:
        if query is not None and query.strip():
            return query.strip()
        answer = await self.host.prompt(prompt)
        if answer is None or not answer.strip():
            return None
        return answer.strip()

    async def probe(self) -> ProjectState:
        return await probe_project_state(self.config, self._runner, self.host.cwd())

    async def _ready_root(self) -> Optional[Path]:
        """Project root if READY, else None after warning with the next step."""
        state = await self.probe()
        readiness = state.readiness
        if readiness is ReadinessState.UNINITIALIZED:
            self._notify(
                f"Project not initialized. Run '{self.config.init_command}' to enable Giant AI",
                logging.WARNING,
            )
            return None
        if readiness is ReadinessState.INITIALIZED_UNINDEXED:
            self._notify(
                f"Project not indexed. Run '{self.config.index_command}' to enable semantic search",
                logging.WARNING,
            )
            return None
        return state.root

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search(self, query: Optional[str] = None) -> Dispatch:
        """
        Start a raw semantic search.

        Returns an awaitable for the eventual DispatchOutcome. The external
        process runs in the background; this coroutine only waits for the
        prompt and the readiness probe.
        """
        resolved = await self._resolve_query(query, "Search: ")
        if resolved is None:
            return self._done(DispatchOutcome(kind=DispatchKind.SEARCH, status=DispatchStatus.CANCELLED))

        root = await self._ready_root()
        if root is None:
            return self._done(
                DispatchOutcome(kind=DispatchKind.SEARCH, status=DispatchStatus.BLOCKED, query=resolved)
            )

        self._notify("Searching...")
        return self._spawn(self._run_search(resolved, root))

    async def _run_search(self, query: str, root: Path) -> DispatchOutcome:
        cfg = self.config
        argv = [cfg.search_tool, query, str(root), str(cfg.limit), "text"]
        LOG.info("Dispatching search: %s", format_command(argv))
        try:
            result = await self._runner(argv, root, cfg.dispatch_timeout)
        except ToolUnavailableError as exc:
            self._notify(f"Error: {exc}", logging.ERROR)
            return DispatchOutcome(kind=DispatchKind.SEARCH, status=DispatchStatus.ERROR, query=query, error=str(exc))
        return await self._handle_search_result(query, result)

    async def _handle_search_result(self, query: str, result: CommandResult) -> DispatchOutcome:
        output = result.stdout.rstrip("\n")
        error = self._error_text(result)

        if not output.strip():
            if error:
                self._notify(f"Error: {error}", logging.ERROR)
                return DispatchOutcome(kind=DispatchKind.SEARCH, status=DispatchStatus.ERROR, query=query, error=error)
            self._notify("No results found")
            return DispatchOutcome(kind=DispatchKind.SEARCH, status=DispatchStatus.EMPTY, query=query)

        await self.host.set_clipboard(output)
        line_count = output.count("\n") + 1
        self._notify(f"Results copied to clipboard ({line_count} lines)")

        files = extract_files(output)
        if files:
            self._notify("Found in: " + ", ".join(files))

        if error:
            self._notify(f"Error: {error}", logging.ERROR)

        return DispatchOutcome(
            kind=DispatchKind.SEARCH,
            status=DispatchStatus.COPIED,
            query=query,
            files=files,
            error=error,
        )

    @staticmethod
    def _error_text(result: CommandResult) -> Optional[str]:
        stderr = " ".join(line for line in result.stderr.splitlines() if line.strip())
        if stderr:
            return stderr
        if result.timed_out:
            return "Process timed out"
        return None

    # ------------------------------------------------------------------
    # Analyze
    # ------------------------------------------------------------------

    async def analyze(self, query: Optional[str] = None) -> Dispatch:
        """Start an AI analysis; same contract as search()."""
        resolved = await self._resolve_query(query, "Analyze: ")
        if resolved is None:
            return self._done(DispatchOutcome(kind=DispatchKind.ANALYZE, status=DispatchStatus.CANCELLED))

        root = await self._ready_root()
        if root is None:
            return self._done(
                DispatchOutcome(kind=DispatchKind.ANALYZE, status=DispatchStatus.BLOCKED, query=resolved)
            )

        self._notify(f"Analyzing with {self.config.provider}... (10-30s)")
        return self._spawn(self._run_analysis(resolved, root))

    async def _run_analysis(self, query: str, root: Path) -> DispatchOutcome:
        cfg = self.config
        if not self._analysis_available:
            return await self._fall_back_to_search(query)

        argv = [cfg.analysis_tool, query, str(root), str(cfg.limit), cfg.provider]
        LOG.info("Dispatching analysis: %s", format_command(argv))
        try:
            result = await self._runner(argv, root, cfg.dispatch_timeout)
        except ToolUnavailableError:
            return await self._fall_back_to_search(query)

        if reports_missing_tool(result):
            LOG.info("Analysis tool reported missing binary: %s", result.stderr.strip())
            return await self._fall_back_to_search(query)

        return await self._handle_analysis_result(query, result)

    async def _fall_back_to_search(self, query: str) -> DispatchOutcome:
        self._notify(f"{self.config.analysis_tool} not found, falling back to raw search")
        dispatch = await self.search(query)
        try:
            fallback = await dispatch
        except Exception as exc:  # noqa: BLE001
            # the search task's own done-callback has already notified
            fallback = DispatchOutcome(
                kind=DispatchKind.SEARCH, status=DispatchStatus.ERROR, query=query, error=str(exc)
            )
        return DispatchOutcome(
            kind=DispatchKind.ANALYZE,
            status=DispatchStatus.FALLBACK,
            query=query,
            fallback=fallback,
        )

    async def _handle_analysis_result(self, query: str, result: CommandResult) -> DispatchOutcome:
        text = result.stdout.rstrip("\n")
        error = self._error_text(result)

        if not text.strip():
            if error:
                self._notify(f"Error: {error}", logging.ERROR)
                return DispatchOutcome(kind=DispatchKind.ANALYZE, status=DispatchStatus.ERROR, query=query, error=error)
            self._notify("No analysis generated")
            return DispatchOutcome(kind=DispatchKind.ANALYZE, status=DispatchStatus.EMPTY, query=query)

        if error:
            self._notify(f"Error: {error}", logging.ERROR)

        if self.chat is not None and await self._deliver_to_chat(text):
            self._notify(f"Analysis sent to {self.chat.name}")
            return DispatchOutcome(kind=DispatchKind.ANALYZE, status=DispatchStatus.DELIVERED, query=query, error=error)

        await self.host.set_clipboard(text)
        self._notify("Analysis copied to clipboard - open your AI tool and paste")

        preview = preview_lines(text)
        if preview:
            self.host.echo("\n" + "\n".join(preview) + "\n(Full analysis in clipboard)")

        return DispatchOutcome(
            kind=DispatchKind.ANALYZE,
            status=DispatchStatus.COPIED,
            query=query,
            preview=preview,
            error=error,
        )

    async def _deliver_to_chat(self, text: str) -> bool:
        try:
            return await self.chat.deliver(text)
        except Exception as exc:  # noqa: BLE001
            LOG.error("Chat integration %s failed: %s", self.chat.name, exc, exc_info=True)
            return False

    # ------------------------------------------------------------------
    # Word / selection shortcuts
    # ------------------------------------------------------------------

    async def search_word(self) -> Optional[Dispatch]:
        word = self.host.get_selection_or_word()
        if not word or not word.strip():
            self._notify("No word under cursor")
            return None
        return await self.search(word)

    async def analyze_word(self) -> Optional[Dispatch]:
        word = self.host.get_selection_or_word()
        if not word or not word.strip():
            self._notify("No word under cursor")
            return None
        return await self.analyze(word)

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    async def status_report(self) -> StatusReport:
        state = await self.probe()
        return StatusReport(
            root=state.root,
            initialized=state.initialized,
            indexed=state.indexed,
            provider=self.config.provider,
            chat_name=self.chat.name if self.chat is not None else "Chat",
            chat_available=self.chat is not None,
            keymaps=self.config.keymaps,
            init_command=self.config.init_command,
            index_command=self.config.index_command,
        )

    async def status(self) -> StatusReport:
        report = await self.status_report()
        self.host.echo(report.render())
        return report

    async def greet(self) -> ProjectState:
        """One-shot readiness greeting shown at setup time."""
        state = await self.probe()
        readiness = state.readiness
        if readiness is ReadinessState.READY:
            hint = self.config.keymaps.search_analyze or ":GiantAIAnalyze"
            self._notify(f"Ready! Use {hint} for AI analysis")
        elif readiness is ReadinessState.INITIALIZED_UNINDEXED:
            self._notify(f"Ready! Run '{self.config.index_command}' to enable semantic search")
        else:
            self._notify(f"Ready! Run '{self.config.init_command}' to enable Giant AI features")
        return state
