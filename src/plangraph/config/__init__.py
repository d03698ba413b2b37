"""
Configuration for plangraph.

Pydantic-based settings, defaults, enums and environment variable names.
"""

from plangraph.config.enums import ExecutionMode, LogFormat, StepStatus
from plangraph.config.env_vars import EnvVar
from plangraph.config.logging import get_logger, setup_logging
from plangraph.config.models import PlannerConfig

__all__ = [
    "PlannerConfig",
    # Enums
    "ExecutionMode",
    "LogFormat",
    "StepStatus",
    "EnvVar",
    # Logging
    "setup_logging",
    "get_logger",
]
