from __future__ import annotations

import copy
import logging
import os
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError

from giant_ai.errors import ConfigError
from giant_ai.models import GiantAIConfig

LOG = logging.getLogger("giant_ai.config")

LOG_LEVEL = os.environ.get("GIANT_AI_LOG_LEVEL", "INFO").upper()

# Environment variable -> config key
ENV_OVERRIDES: Dict[str, str] = {
    "GIANT_AI_PROVIDER": "provider",
    "GIANT_AI_LIMIT": "limit",
    "GIANT_AI_SEARCH_TOOL": "search_tool",
    "GIANT_AI_ANALYSIS_TOOL": "analysis_tool",
    "GIANT_AI_DISPATCH_TIMEOUT": "dispatch_timeout",
}


def default_options() -> Dict[str, Any]:
    return GiantAIConfig().model_dump()


def deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Merge overrides into a copy of base, recursing into nested mappings.

    Values from overrides win. Nested keys are overridden independently, so
    overriding keymaps.search_raw leaves keymaps.search_analyze untouched.
    """
    merged: Dict[str, Any] = copy.deepcopy(dict(base))
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def env_options(env: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    source = os.environ if env is None else env
    options: Dict[str, Any] = {}
    for var, key in ENV_OVERRIDES.items():
        value = source.get(var)
        if value is None or not value.strip():
            continue
        options[key] = value.strip()
    return options


def build_config(
    overrides: Optional[Mapping[str, Any]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> GiantAIConfig:
    """Layer defaults < environment < explicit overrides and validate."""
    if overrides is not None and not isinstance(overrides, Mapping):
        raise ConfigError(f"Options must be a mapping, got {type(overrides).__name__}")

    options = deep_merge(default_options(), env_options(env))
    options = deep_merge(options, overrides or {})

    try:
        config = GiantAIConfig.model_validate(options)
    except ValidationError as exc:
        raise ConfigError(f"Invalid giant_ai configuration: {exc}") from exc

    LOG.debug("Resolved configuration: %s", config.model_dump())
    return config
