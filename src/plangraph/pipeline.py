# plangraph/pipeline.py
"""Planner output -> executable, displayable plan.

    synthesize content steps -> renumber -> (sequential chain) -> layers
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from plangraph.config.models import PlannerConfig
from plangraph.events import EventEmitter
from plangraph.graph.layers import (
    apply_sequential_dependencies,
    compute_layers,
    find_dangling_dependencies,
)
from plangraph.graph.references import display_dependencies
from plangraph.graph.renumber import renumber_steps
from plangraph.graph.synthesizer import auto_insert_content_steps
from plangraph.models import Plan

logger = logging.getLogger(__name__)


class PreparedPlan(BaseModel):
    """A normalized plan plus what the executor and UI need from it."""

    plan: Plan
    layers: list[list[str]] = Field(default_factory=list)
    display_dependencies: dict[str, list[str]] = Field(default_factory=dict)
    dangling: list[tuple[str, str]] = Field(default_factory=list)
    inserted_step_ids: list[str] = Field(default_factory=list)

    @property
    def layer_count(self) -> int:
        return len(self.layers)

    def layer_of(self, step_id: str) -> int | None:
        for number, layer in enumerate(self.layers):
            if step_id in layer:
                return number
        return None


def prepare_plan(
    plan: Plan,
    config: PlannerConfig | None = None,
    *,
    emitter: EventEmitter | None = None,
) -> PreparedPlan:
    """Normalize ``plan`` in place and compute its layers.

    Raises:
        CyclicDependencyError: the dependency graph has a cycle.
    """
    config = config or PlannerConfig()

    inserted: list[str] = []
    if config.auto_insert_content_steps:
        steps = auto_insert_content_steps(
            plan,
            content_tools=config.content_tools,
            content_fields=config.content_fields,
            generator_tool=config.content_generator_tool,
            emitter=emitter,
        )
        inserted = [step.id for step in steps]

    renumber_steps(plan, emitter=emitter)

    if config.is_sequential:
        apply_sequential_dependencies(plan)

    layers = compute_layers(plan.steps, emitter=emitter, plan_id=plan.id)
    prepared = PreparedPlan(
        plan=plan,
        layers=[[step.id for step in layer] for layer in layers],
        display_dependencies={step.id: display_dependencies(step) for step in plan.steps},
        dangling=[
            (problem.step_id, problem.dependency_id)
            for problem in find_dangling_dependencies(plan.steps)
        ],
        inserted_step_ids=inserted,
    )
    logger.info(
        "Prepared plan %s: %d step(s) in %d layer(s), %s mode",
        plan.id,
        len(plan.steps),
        prepared.layer_count,
        config.execution_mode.value,
    )
    return prepared
