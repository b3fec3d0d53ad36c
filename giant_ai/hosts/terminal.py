from __future__ import annotations

import asyncio
import logging
import shutil
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import click

from giant_ai.errors import ToolUnavailableError
from giant_ai.host import EditorHost
from giant_ai.process import run_command

LOG = logging.getLogger("giant_ai.hosts.terminal")

CLIPBOARD_TIMEOUT = 10.0

# Tried in order; the first one installed wins.
CLIPBOARD_COMMANDS: Sequence[Sequence[str]] = (
    ("wl-copy",),
    ("xclip", "-selection", "clipboard"),
    ("xsel", "--clipboard", "--input"),
    ("pbcopy",),
    ("clip.exe",),
)

LEVEL_COLORS = {
    logging.ERROR: "red",
    logging.WARNING: "yellow",
    logging.INFO: None,
}


def find_clipboard_command() -> Optional[List[str]]:
    for argv in CLIPBOARD_COMMANDS:
        if shutil.which(argv[0]):
            return list(argv)
    return None


class TerminalHost(EditorHost):
    """Host for the command-line entry point: messages on stderr, results on stdout."""

    def __init__(self, cwd: Optional[Path] = None, clipboard_command: Optional[Sequence[str]] = None) -> None:
        self._cwd = Path(cwd) if cwd is not None else None
        self._clipboard_command = list(clipboard_command) if clipboard_command else find_clipboard_command()

    def notify(self, message: str, level: int = logging.INFO) -> None:
        click.secho(message, fg=LEVEL_COLORS.get(level), err=True)

    async def set_clipboard(self, text: str) -> None:
        if self._clipboard_command is None:
            # no clipboard tool: the text is the useful output, so print it
            LOG.info("No clipboard command available; writing result to stdout")
            click.echo(text)
            return
        try:
            result = await run_command(self._clipboard_command, timeout=CLIPBOARD_TIMEOUT, stdin_text=text)
        except (ToolUnavailableError, OSError) as exc:
            LOG.error("Clipboard command %s failed: %s", self._clipboard_command[0], exc)
            click.echo(text)
            return
        if not result.ok:
            LOG.error("Clipboard command %s failed: %s", self._clipboard_command[0], result.stderr.strip())
            click.echo(text)

    def echo(self, text: str) -> None:
        click.echo(text)

    async def prompt(self, prompt: str) -> Optional[str]:
        if not sys.stdin.isatty():
            return None
        try:
            return await asyncio.to_thread(click.prompt, prompt.rstrip(": "), default="", show_default=False)
        except click.Abort:
            return None

    def cwd(self) -> Path:
        return self._cwd if self._cwd is not None else super().cwd()
