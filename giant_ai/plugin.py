"""
Composition root: merge configuration, resolve optional collaborators once,
and register commands and keymaps with the host.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from giant_ai.config import build_config
from giant_ai.host import EditorHost, build_chat_integration
from giant_ai.orchestrator import WorkflowOrchestrator
from giant_ai.process import Runner, resolve_tool, run_command

LOG = logging.getLogger("giant_ai.plugin")

KEYMAP_MODES = ("n", "v")


def register(orch: WorkflowOrchestrator) -> None:
    """Register the three user commands and the two selection-or-word keymaps."""
    host = orch.host
    keymaps = orch.config.keymaps

    async def search_command(args: str):
        return await orch.search(args or None)

    async def analyze_command(args: str):
        return await orch.analyze(args or None)

    async def status_command(args: str = ""):
        return await orch.status()

    host.register_command("GiantAISearch", search_command, nargs="?", desc="Giant AI search")
    host.register_command("GiantAIAnalyze", analyze_command, nargs="?", desc="Giant AI analyze")
    host.register_command("GiantAIStatus", status_command, nargs="0", desc="Giant AI status")

    async def search_keymap():
        # falls through to the prompt when there is nothing under the cursor
        return await orch.search(host.get_selection_or_word() or None)

    async def analyze_keymap():
        return await orch.analyze(host.get_selection_or_word() or None)

    if keymaps.search_raw:
        host.register_keymap(KEYMAP_MODES, keymaps.search_raw, search_keymap, desc="Giant AI search")
    if keymaps.search_analyze:
        host.register_keymap(KEYMAP_MODES, keymaps.search_analyze, analyze_keymap, desc="Giant AI analyze")


async def setup(
    host: EditorHost,
    opts: Optional[Mapping[str, Any]] = None,
    chat: Any = None,
    chat_name: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    runner: Runner = run_command,
    check_tools: bool = True,
) -> WorkflowOrchestrator:
    """
    Build the session orchestrator and wire it into the host.

    Args:
        host: Editor or terminal host.
        opts: User overrides, deep-merged over defaults and environment.
        chat: Optional chat integration (see build_chat_integration).
        chat_name: Display name for the chat integration.
        env: Environment mapping for overrides (defaults to os.environ).
        runner: Process runner; replaced in tests.
        check_tools: Resolve the analysis tool on PATH once. When it is
            missing, analyze goes straight to raw search.

    Raises:
        ConfigError: opts could not be merged or validated.
    """
    config = build_config(opts, env)

    analysis_available = True
    if check_tools:
        if resolve_tool(config.search_tool) is None:
            LOG.warning("%s not found on PATH; searches will fail until it is installed", config.search_tool)
        analysis_available = resolve_tool(config.analysis_tool) is not None

    orch = WorkflowOrchestrator(
        config=config,
        host=host,
        chat=build_chat_integration(chat, name=chat_name),
        runner=runner,
        analysis_available=analysis_available,
    )
    register(orch)

    if config.auto_setup:
        await orch.greet()

    LOG.info("giant_ai ready (provider=%s, limit=%s)", config.provider, config.limit)
    return orch
