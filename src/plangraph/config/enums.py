"""Configuration enums - no magic strings!"""

from __future__ import annotations

from enum import Enum


class StepStatus(str, Enum):
    """Lifecycle of a plan step.

    pending -> executing -> completed | failed, plus the reset
    completed | failed -> pending done by retry. SKIPPED exists for
    display layers only; nothing in plangraph produces it.
    """

    PENDING = "pending"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class ExecutionMode(str, Enum):
    """How a plan is scheduled."""

    SEQUENTIAL = "sequential"
    DAG = "dag"


class LogFormat(str, Enum):
    """Console log formats accepted by setup_logging."""

    SIMPLE = "simple"
    DETAILED = "detailed"
    JSON = "json"
