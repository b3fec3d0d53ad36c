"""
Project state resolution.

Readiness is never cached: every search, analyze, and status call re-probes
the filesystem and the external search tool, so an index built or deleted
outside the editor is picked up on the next command.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional, Union

from giant_ai.errors import ToolUnavailableError
from giant_ai.models import GiantAIConfig, ProjectState
from giant_ai.process import Runner, run_command

LOG = logging.getLogger("giant_ai.project")

NOT_INDEXED_SENTINEL = "Project not indexed"


async def resolve_project_root(
    cwd: Optional[Union[str, Path]] = None,
    runner: Runner = run_command,
) -> Path:
    """Ask git for the repository top level; fall back to the working directory."""
    fallback = Path(cwd) if cwd is not None else Path(os.getcwd())
    try:
        result = await runner(["git", "rev-parse", "--show-toplevel"], fallback)
    except (ToolUnavailableError, ValueError) as exc:
        LOG.debug("git root lookup failed: %s", exc)
        return fallback

    top_level = result.stdout.strip()
    if result.exit_code != 0 or not top_level:
        return fallback
    return Path(top_level)


def has_marker_dir(root: Union[str, Path], marker: str) -> bool:
    return (Path(root) / marker).is_dir()


def parse_probe_output(output: str) -> bool:
    """
    Interpret JSON-mode output of the search tool.

    Returns True only for a JSON object without an ``error`` field. Anything
    else (unparseable output, non-object JSON, the "Project not indexed"
    sentinel or any other error) counts as not indexed.

    An object with no error and zero results is treated as indexed; the
    search tool does not distinguish an empty index from an empty match.
    """
    try:
        parsed = json.loads(output)
    except (json.JSONDecodeError, TypeError):
        LOG.debug("Probe output is not JSON: %r", output[:200] if output else output)
        return False

    if not isinstance(parsed, dict):
        return False

    error = parsed.get("error")
    if error == NOT_INDEXED_SENTINEL:
        return False
    return not error


async def is_project_indexed(
    root: Union[str, Path],
    config: GiantAIConfig,
    runner: Runner = run_command,
) -> bool:
    if not has_marker_dir(root, config.marker_dir):
        return False

    argv = [config.search_tool, config.probe_query, str(root), "1", "json"]
    try:
        result = await runner(argv, root, config.dispatch_timeout)
    except ToolUnavailableError as exc:
        LOG.warning("Readiness probe skipped: %s", exc)
        return False

    return parse_probe_output(result.stdout)


async def probe_project_state(
    config: GiantAIConfig,
    runner: Runner = run_command,
    cwd: Optional[Union[str, Path]] = None,
) -> ProjectState:
    root = await resolve_project_root(cwd, runner)
    initialized = has_marker_dir(root, config.marker_dir)
    indexed = await is_project_indexed(root, config, runner) if initialized else False
    LOG.debug("Project %s: initialized=%s indexed=%s", root, initialized, indexed)
    return ProjectState(root=root, initialized=initialized, indexed=indexed)
