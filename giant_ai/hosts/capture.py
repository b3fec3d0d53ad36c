"""
Host that records everything instead of showing it.

Used by the MCP server, where each tool call returns what a user would have
seen, and by the test-suite.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from giant_ai.host import CommandHandler, EditorHost, KeymapHandler


@dataclass
class Notification:
    message: str
    level: int = logging.INFO

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "level": logging.getLevelName(self.level)}


class CaptureHost(EditorHost):
    """
    In-memory host.

    ``answers`` feeds prompt() in order; once exhausted prompts are treated
    as cancelled. ``word`` is returned as the selection / word under cursor.
    """

    def __init__(
        self,
        cwd: Optional[Path] = None,
        answers: Optional[Sequence[Optional[str]]] = None,
        word: str = "",
    ) -> None:
        self._cwd = Path(cwd) if cwd is not None else None
        self._answers = list(answers or [])
        self.word = word
        self.notifications: List[Notification] = []
        self.clipboard_writes: List[str] = []
        self.echoes: List[str] = []
        self.prompts: List[str] = []
        self.commands: Dict[str, Tuple[CommandHandler, str]] = {}
        self.keymaps: Dict[str, Tuple[Tuple[str, ...], KeymapHandler]] = {}

    def notify(self, message: str, level: int = logging.INFO) -> None:
        self.notifications.append(Notification(message, level))

    async def set_clipboard(self, text: str) -> None:
        self.clipboard_writes.append(text)

    def echo(self, text: str) -> None:
        self.echoes.append(text)

    async def prompt(self, prompt: str) -> Optional[str]:
        self.prompts.append(prompt)
        if not self._answers:
            return None
        return self._answers.pop(0)

    def get_selection_or_word(self) -> str:
        return self.word

    def register_command(self, name: str, handler: CommandHandler, nargs: str = "0", desc: str = "") -> None:
        self.commands[name] = (handler, nargs)

    def register_keymap(self, modes: Sequence[str], lhs: str, handler: KeymapHandler, desc: str = "") -> None:
        self.keymaps[lhs] = (tuple(modes), handler)

    def cwd(self) -> Path:
        return self._cwd if self._cwd is not None else super().cwd()

    @property
    def clipboard(self) -> Optional[str]:
        return self.clipboard_writes[-1] if self.clipboard_writes else None

    def messages(self, level: Optional[int] = None) -> List[str]:
        return [n.message for n in self.notifications if level is None or n.level == level]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "notifications": [n.to_dict() for n in self.notifications],
            "clipboard": self.clipboard,
            "echo": list(self.echoes),
        }
