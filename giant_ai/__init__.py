"""
giant_ai - semantic code search and AI analysis workflow.

Thin orchestration over the external ai-search / ai-search-pipe toolchain:
probe project readiness, dispatch the tools asynchronously, and route their
output to the clipboard or a chat integration.
"""

from giant_ai.config import build_config, deep_merge
from giant_ai.errors import ConfigError, GiantAIError, ToolUnavailableError
from giant_ai.host import ChatIntegration, EditorHost, build_chat_integration
from giant_ai.models import (
    DispatchKind,
    DispatchOutcome,
    DispatchStatus,
    GiantAIConfig,
    KeymapConfig,
    ProjectState,
    ReadinessState,
    StatusReport,
)
from giant_ai.orchestrator import WorkflowOrchestrator
from giant_ai.plugin import register, setup

__version__ = "0.1.0"

__all__ = [
    "ChatIntegration",
    "ConfigError",
    "DispatchKind",
    "DispatchOutcome",
    "DispatchStatus",
    "EditorHost",
    "GiantAIConfig",
    "GiantAIError",
    "KeymapConfig",
    "ProjectState",
    "ReadinessState",
    "StatusReport",
    "ToolUnavailableError",
    "WorkflowOrchestrator",
    "build_chat_integration",
    "build_config",
    "deep_merge",
    "register",
    "setup",
]
