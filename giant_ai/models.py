from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class KeymapConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    search_raw: Optional[str] = "<leader>rs"
    search_analyze: Optional[str] = "<leader>ra"

    @field_validator("search_raw", "search_analyze", mode="before")
    @classmethod
    def _false_disables(cls, value):
        # {"keymaps": {"search_raw": False}} turns a binding off
        if value is False or value == "":
            return None
        return value


class GiantAIConfig(BaseModel):
    """Session configuration. Built once by setup and never mutated."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    provider: str = "claude"
    limit: int = Field(default=5, ge=1)
    keymaps: KeymapConfig = KeymapConfig()
    auto_setup: bool = True

    search_tool: str = "ai-search"
    analysis_tool: str = "ai-search-pipe"
    init_command: str = "ai-init-project-smart"
    index_command: str = "ai-rag index ."
    marker_dir: str = ".giant-ai"
    probe_query: str = "test"
    dispatch_timeout: Optional[float] = Field(default=None, gt=0)


class ReadinessState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED_UNINDEXED = "initialized_unindexed"
    READY = "ready"


class ProjectState(BaseModel):
    model_config = ConfigDict(frozen=True)

    root: Path
    initialized: bool
    indexed: bool

    @property
    def readiness(self) -> ReadinessState:
        if not self.initialized:
            return ReadinessState.UNINITIALIZED
        if not self.indexed:
            return ReadinessState.INITIALIZED_UNINDEXED
        return ReadinessState.READY


class DispatchKind(str, Enum):
    SEARCH = "search"
    ANALYZE = "analyze"


class DispatchStatus(str, Enum):
    COPIED = "copied"
    DELIVERED = "delivered"
    EMPTY = "empty"
    ERROR = "error"
    FALLBACK = "fallback"
    BLOCKED = "blocked"
    CANCELLED = "cancelled"


class DispatchOutcome(BaseModel):
    kind: DispatchKind
    status: DispatchStatus
    query: Optional[str] = None
    files: List[str] = Field(default_factory=list)
    preview: List[str] = Field(default_factory=list)
    error: Optional[str] = None
    fallback: Optional[DispatchOutcome] = None


class StatusReport(BaseModel):
    root: Path
    initialized: bool
    indexed: bool
    provider: str
    chat_name: str
    chat_available: bool
    keymaps: KeymapConfig
    init_command: str
    index_command: str

    def render(self) -> str:
        def yes_no(flag: bool) -> str:
            return "Yes" if flag else "No"

        needs_setup = "" if self.indexed else " (requires setup)"
        lines = [
            "Giant AI Status:",
            f"  Project: {self.root}",
            f"  Initialized: {yes_no(self.initialized)}",
            f"  Indexed: {yes_no(self.indexed)}",
            f"  Provider: {self.provider}",
            f"  {self.chat_name}: {yes_no(self.chat_available)}",
            "",
            "Commands:",
            f"  :GiantAISearch [query] - Raw search{needs_setup}",
            f"  :GiantAIAnalyze [query] - AI analysis{needs_setup}",
            "  :GiantAIStatus - This status",
            "",
            "Keymaps:",
            f"  {self.keymaps.search_raw or '(disabled)'} - Search prompt",
            f"  {self.keymaps.search_analyze or '(disabled)'} - Analyze prompt",
        ]

        if not self.initialized:
            lines += [
                "",
                "To enable Giant AI:",
                f"  1. Run: {self.init_command}",
                f"  2. Run: {self.index_command}",
            ]
        elif not self.indexed:
            lines += [
                "",
                "To enable semantic search:",
                f"  Run: {self.index_command}",
            ]

        return "\n".join(lines)
