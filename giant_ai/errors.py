"""Exception types raised by giant_ai.

Only configuration problems propagate to callers. Project-state and
external-process failures are reported through the host as notifications.
"""

from __future__ import annotations


class GiantAIError(Exception):
    """Base class for giant_ai errors."""


class ConfigError(GiantAIError):
    """User-supplied configuration could not be merged or validated."""


class ToolUnavailableError(GiantAIError):
    """An external command-line tool is not installed or not on PATH."""

    def __init__(self, tool: str) -> None:
        super().__init__(f"{tool} not found on PATH")
        self.tool = tool
