"""Environment variable names - centralized, type-safe, no magic strings!

All environment variable access should go through this module.
"""

from __future__ import annotations

import os
from enum import Enum


class EnvVar(str, Enum):
    """All environment variable names read by plangraph."""

    # ================================================================
    # Planning
    # ================================================================
    EXECUTION_MODE = "PLANGRAPH_EXECUTION_MODE"
    CONTENT_TOOLS = "PLANGRAPH_CONTENT_TOOLS"
    CONTENT_FIELDS = "PLANGRAPH_CONTENT_FIELDS"
    CONTENT_GENERATOR_TOOL = "PLANGRAPH_CONTENT_GENERATOR_TOOL"
    AUTO_INSERT_CONTENT = "PLANGRAPH_AUTO_INSERT_CONTENT"

    # ================================================================
    # Execution
    # ================================================================
    MAX_CONCURRENCY = "PLANGRAPH_MAX_CONCURRENCY"

    # ================================================================
    # Logging
    # ================================================================
    LOG_LEVEL = "PLANGRAPH_LOG_LEVEL"
    LOG_FILE = "PLANGRAPH_LOG_FILE"


# ================================================================
# Type-Safe Helper Functions
# ================================================================


def get_env(var: EnvVar, default: str | None = None) -> str | None:
    """Get environment variable value (type-safe).

    Example:
        >>> mode = get_env(EnvVar.EXECUTION_MODE, "sequential")
    """
    return os.getenv(var.value, default)


def get_env_bool(var: EnvVar, default: bool = False) -> bool:
    """Get environment variable as boolean.

    Returns:
        Boolean value (true for "1", "true", "yes", "on", case-insensitive)
    """
    value = get_env(var)
    if value is None:
        return default

    return value.lower() in ("1", "true", "yes", "on")


def get_env_list(
    var: EnvVar, separator: str = ",", default: list[str] | None = None
) -> list[str]:
    """Get environment variable as list of strings.

    Example:
        >>> tools = get_env_list(EnvVar.CONTENT_TOOLS, default=[])
        # "create_note, create_file" -> ["create_note", "create_file"]
    """
    value = get_env(var)
    if value is None:
        return default or []

    return [item.strip() for item in value.split(separator) if item.strip()]
