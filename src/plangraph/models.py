# plangraph/models.py
"""Plan and step models.

A Plan is created once by the planner and then owned by plangraph, which
mutates its steps in place while normalizing and tracking execution.
"""

from __future__ import annotations

import uuid
from typing import Any

from pydantic import BaseModel, Field, model_validator

from plangraph.config.defaults import DEFAULT_PLAN_ID_PREFIX
from plangraph.config.enums import StepStatus


def _new_plan_id() -> str:
    return f"{DEFAULT_PLAN_ID_PREFIX}-{uuid.uuid4().hex[:8]}"


class Step(BaseModel):
    """One planned tool invocation.

    ``input`` values may embed ``{{stepN}}`` or ``{{stepN.path}}`` tokens
    that refer to the output of another step.
    """

    id: str = Field(min_length=1)
    tool: str
    input: dict[str, Any] | None = Field(default_factory=dict)
    dependencies: list[str] = Field(default_factory=list)
    reason: str = ""
    status: StepStatus = StepStatus.PENDING
    result: Any = None
    error: str | None = None
    tool_calls: list[dict[str, Any]] = Field(default_factory=list)
    output_schema: dict[str, Any] | None = None

    def reset(self) -> None:
        """Back to pending, dropping any outcome and tool call records."""
        self.status = StepStatus.PENDING
        self.result = None
        self.error = None
        self.tool_calls = []


class Plan(BaseModel):
    """Ordered collection of steps plus plan-level metadata."""

    id: str = Field(default_factory=_new_plan_id)
    steps: list[Step] = Field(default_factory=list)
    estimated_tokens: int | None = None

    @model_validator(mode="after")
    def _unique_step_ids(self) -> Plan:
        seen: set[str] = set()
        duplicates: list[str] = []
        for step in self.steps:
            if step.id in seen and step.id not in duplicates:
                duplicates.append(step.id)
            seen.add(step.id)
        if duplicates:
            raise ValueError(f"Duplicate step ids: {', '.join(duplicates)}")
        return self

    def step_ids(self) -> list[str]:
        return [step.id for step in self.steps]

    def step_map(self) -> dict[str, Step]:
        return {step.id: step for step in self.steps}

    def get_step(self, step_id: str) -> Step | None:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None

    def index_of(self, step_id: str) -> int:
        """Position of the step in the plan, -1 if absent."""
        for i, step in enumerate(self.steps):
            if step.id == step_id:
                return i
        return -1
