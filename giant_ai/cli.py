"""
giant-ai CLI - run the search / analyze / status workflow from a shell.

Usage:
    giant-ai search "authentication flow"
    giant-ai analyze "why does login retry twice" --provider openai
    giant-ai status
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import click

from giant_ai.config import LOG_LEVEL
from giant_ai.errors import ConfigError
from giant_ai.hosts.terminal import TerminalHost
from giant_ai.models import DispatchOutcome, DispatchStatus
from giant_ai.plugin import setup

FAILED_STATUSES = {DispatchStatus.ERROR, DispatchStatus.BLOCKED}


def _exit_code(outcome: Optional[DispatchOutcome]) -> int:
    if outcome is None:
        return 1
    while outcome.status is DispatchStatus.FALLBACK and outcome.fallback is not None:
        outcome = outcome.fallback
    return 1 if outcome.status in FAILED_STATUSES else 0


async def _run(ctx_obj: Dict[str, Any], action: str, query: Optional[str] = None) -> int:
    host = TerminalHost(cwd=ctx_obj["cwd"])
    orch = await setup(
        host,
        opts=ctx_obj["opts"],
        chat=ctx_obj["chat"],
    )
    if action == "status":
        report = await orch.status()
        return 0 if report.indexed else 1

    start = orch.search if action == "search" else orch.analyze
    dispatch = await start(query)
    outcome = await dispatch
    await orch.wait_idle()
    return _exit_code(outcome)


def _invoke(ctx: click.Context, action: str, query: Optional[str] = None) -> None:
    try:
        code = asyncio.run(_run(ctx.obj, action, query))
    except ConfigError as exc:
        raise click.UsageError(str(exc)) from exc
    ctx.exit(code)


@click.group()
@click.version_option(version="0.1.0")
@click.option("--provider", "-p", default=None, help="AI provider passed to the analysis tool (default: claude)")
@click.option("--limit", "-n", type=int, default=None, help="Maximum number of search results (default: 5)")
@click.option(
    "--cwd",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Directory to resolve the project from (default: current directory)",
)
@click.option("--chat", default=None, help="Command that receives analysis text on stdin instead of the clipboard")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.pass_context
def cli(
    ctx: click.Context,
    provider: Optional[str],
    limit: Optional[int],
    cwd: Optional[Path],
    chat: Optional[str],
    verbose: bool,
):
    """
    Giant AI - semantic code search and AI analysis for the current project.

    \b
    The project must be initialized and indexed first:
        ai-init-project-smart
        ai-rag index .
    """
    logging.basicConfig(
        level="DEBUG" if verbose else LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    opts: Dict[str, Any] = {"auto_setup": False}
    if provider:
        opts["provider"] = provider
    if limit is not None:
        opts["limit"] = limit
    ctx.obj = {"opts": opts, "cwd": cwd, "chat": chat}


@cli.command()
@click.argument("query", required=False)
@click.pass_context
def search(ctx: click.Context, query: Optional[str]):
    """Raw semantic search; results go to the clipboard."""
    _invoke(ctx, "search", query)


@cli.command()
@click.argument("query", required=False)
@click.pass_context
def analyze(ctx: click.Context, query: Optional[str]):
    """Search plus AI analysis; falls back to raw search if the pipeline is missing."""
    _invoke(ctx, "analyze", query)


@cli.command()
@click.pass_context
def status(ctx: click.Context):
    """Show project readiness and configuration."""
    _invoke(ctx, "status")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
