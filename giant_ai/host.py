"""
Host and chat-integration interfaces.

The orchestrator never talks to an editor directly. Everything it needs
from its environment (notifications, clipboard, prompts, command and keymap
registration) goes through an EditorHost. Delivery of analysis text to a
chat UI goes through an optional ChatIntegration resolved once by setup.
"""

from __future__ import annotations

import abc
import inspect
import logging
import os
import shlex
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Sequence, Union

from giant_ai.errors import ToolUnavailableError
from giant_ai.process import format_command, resolve_tool, run_command

LOG = logging.getLogger("giant_ai.host")

CommandHandler = Callable[[str], Awaitable[Any]]
KeymapHandler = Callable[[], Awaitable[Any]]


class EditorHost(abc.ABC):
    """Environment the orchestrator runs inside (an editor, a terminal, an MCP call)."""

    @abc.abstractmethod
    def notify(self, message: str, level: int = logging.INFO) -> None:
        """Show a short message. ``level`` uses the logging module's levels."""
        ...

    @abc.abstractmethod
    async def set_clipboard(self, text: str) -> None:
        ...

    @abc.abstractmethod
    def echo(self, text: str) -> None:
        """Print multi-line text to the message area."""
        ...

    @abc.abstractmethod
    async def prompt(self, prompt: str) -> Optional[str]:
        """Ask the user for input. Returns None when the prompt is cancelled."""
        ...

    def get_selection_or_word(self) -> str:
        """Visual selection if there is one, else the word under the cursor."""
        return ""

    def register_command(self, name: str, handler: CommandHandler, nargs: str = "0", desc: str = "") -> None:
        LOG.debug("Host %s ignores command registration: %s", type(self).__name__, name)

    def register_keymap(self, modes: Sequence[str], lhs: str, handler: KeymapHandler, desc: str = "") -> None:
        LOG.debug("Host %s ignores keymap registration: %s", type(self).__name__, lhs)

    def cwd(self) -> Path:
        return Path(os.getcwd())


class ChatIntegration(abc.ABC):
    """A chat UI that can receive analysis text."""

    name: str = "Chat"

    @abc.abstractmethod
    async def deliver(self, text: str) -> bool:
        """Hand text to the chat UI. Returns False if it could not be delivered."""
        ...


class CallableChatIntegration(ChatIntegration):
    """Wraps a plain or async callable, e.g. an editor plugin's ``ask`` function."""

    def __init__(self, func: Callable[[str], Any], name: str = "Chat") -> None:
        self._func = func
        self.name = name

    async def deliver(self, text: str) -> bool:
        result = self._func(text)
        if inspect.isawaitable(result):
            result = await result
        return result is not False


class CommandChatIntegration(ChatIntegration):
    """Pipes analysis text into an external chat command on stdin."""

    def __init__(self, argv: Sequence[str], name: Optional[str] = None, timeout: Optional[float] = None) -> None:
        if not argv:
            raise ValueError("Chat command must not be empty")
        self._argv = list(argv)
        self._timeout = timeout
        self.name = name or Path(self._argv[0]).name

    async def deliver(self, text: str) -> bool:
        try:
            result = await run_command(self._argv, timeout=self._timeout, stdin_text=text)
        except ToolUnavailableError as exc:
            LOG.warning("Chat command unavailable: %s", exc)
            return False
        if not result.ok:
            LOG.warning(
                "Chat command %s exited %s: %s", format_command(self._argv), result.exit_code, result.stderr.strip()
            )
            return False
        return True


def build_chat_integration(
    chat: Union[None, str, Sequence[str], Callable[[str], Any], ChatIntegration],
    name: Optional[str] = None,
) -> Optional[ChatIntegration]:
    """
    Factory: normalize whatever the caller passed into a ChatIntegration.

    Args:
        chat: None (no integration), an existing ChatIntegration, a callable
            taking the text, or a command line (string or argv list) that
            reads the text on stdin.
        name: Display name used in notifications and the status report.

    Returns:
        ChatIntegration instance, or None when no integration is configured
        or the chat command is not installed.
    """
    if chat is None:
        return None
    if isinstance(chat, ChatIntegration):
        return chat
    if callable(chat):
        return CallableChatIntegration(chat, name=name or "Chat")
    if isinstance(chat, str):
        argv = shlex.split(chat)
    else:
        argv = [str(part) for part in chat]

    if not argv:
        return None

    if resolve_tool(argv[0]) is None:
        LOG.info("Chat command %s not installed; analysis will go to the clipboard", argv[0])
        return None
    return CommandChatIntegration(argv, name=name)
