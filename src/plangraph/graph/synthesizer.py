# plangraph/graph/synthesizer.py
"""Insert missing content generation steps ahead of content consumers.

Tools such as create_note need generated text. When a planner schedules
one without a generate_content step upstream, a generator step is
synthesized in front of it and the consumer is rewired to read its
``.content`` output.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from plangraph.config.defaults import (
    DEFAULT_CONTENT_FIELDS,
    DEFAULT_CONTENT_GENERATOR_TOOL,
    DEFAULT_CONTENT_OUTPUT_FIELD,
    DEFAULT_CONTENT_TOOLS,
    STEP_ID_PREFIX,
)
from plangraph.events import EventEmitter, PlanEventType, emit
from plangraph.graph.renumber import renumber_steps
from plangraph.models import Plan, Step

logger = logging.getLogger(__name__)

_STEP_NUMBER_RE = re.compile(rf"{STEP_ID_PREFIX}(\d+)")


def has_prior_content_step(
    plan: Plan,
    step: Step,
    index: int,
    *,
    generator_tool: str = DEFAULT_CONTENT_GENERATOR_TOOL,
) -> bool:
    """True if a content generator already feeds ``step``.

    Either a direct dependency is a generator step, or an earlier step
    is a generator and the consumer either names it as a dependency or
    declares no dependencies at all.
    """
    steps = plan.step_map()
    for dep_id in step.dependencies:
        dep = steps.get(dep_id)
        if dep is not None and dep.tool == generator_tool:
            return True

    for earlier in plan.steps[:index]:
        if earlier.tool != generator_tool:
            continue
        if not step.dependencies or earlier.id in step.dependencies:
            return True

    return False


def next_step_number(steps: Iterable[Step]) -> int:
    """One past the highest ``stepN`` number in use."""
    highest = 0
    for step in steps:
        match = _STEP_NUMBER_RE.search(step.id)
        if match:
            highest = max(highest, int(match.group(1)))
    return highest + 1


def build_content_step(step_id: str, consumer: Step, *, generator_tool: str) -> Step:
    """Generator step inheriting the consumer's dependencies."""
    return Step(
        id=step_id,
        tool=generator_tool,
        input={
            "task": (
                f"Generate content for {consumer.tool} operation "
                "based on previous step results"
            )
        },
        output_schema={
            "type": "object",
            "properties": {DEFAULT_CONTENT_OUTPUT_FIELD: {"type": "string"}},
        },
        dependencies=list(consumer.dependencies),
        reason=f"Generate content before creating file (auto-inserted for {consumer.id})",
    )


def auto_insert_content_steps(
    plan: Plan,
    *,
    content_tools: Iterable[str] = DEFAULT_CONTENT_TOOLS,
    content_fields: Iterable[str] = DEFAULT_CONTENT_FIELDS,
    generator_tool: str = DEFAULT_CONTENT_GENERATOR_TOOL,
    emitter: EventEmitter | None = None,
) -> list[Step]:
    """Give every content consumer an upstream generator step.

    For each consumer lacking one, a generator step is created with the
    consumer's dependencies, the consumer is made to depend on it alone,
    and the consumer's content fields become ``{{<new>.content}}``.
    Insertions are applied after the scan, last position first, and the
    plan is then renumbered.

    Returns:
        The inserted steps (already renumbered), in plan order.
    """
    consumers = set(content_tools)
    fields = tuple(content_fields)
    pending: list[tuple[int, Step]] = []
    next_number = next_step_number(plan.steps)

    for index, step in enumerate(plan.steps):
        if step.tool not in consumers:
            continue
        if has_prior_content_step(plan, step, index, generator_tool=generator_tool):
            logger.debug("Step %s already has a content generator upstream", step.id)
            continue

        new_id = f"{STEP_ID_PREFIX}{next_number}"
        next_number += 1

        generator = build_content_step(new_id, step, generator_tool=generator_tool)
        step.dependencies = [new_id]
        if isinstance(step.input, dict):
            for field in fields:
                if field in step.input:
                    step.input[field] = (
                        "{{" + f"{new_id}.{DEFAULT_CONTENT_OUTPUT_FIELD}" + "}}"
                    )

        pending.append((index, generator))
        logger.debug("Prepared %s to insert before %s", new_id, step.id)

    if not pending:
        return []

    for index, generator in reversed(pending):
        plan.steps.insert(index, generator)
        emit(
            emitter,
            PlanEventType.STEP_INSERTED,
            plan_id=plan.id,
            step_id=generator.id,
            index=index,
            tool=generator.tool,
        )

    logger.info(
        "Auto-inserted %d %s step(s) into plan %s",
        len(pending),
        generator_tool,
        plan.id,
    )

    renumber_steps(plan, emitter=emitter)
    return [generator for _, generator in pending]
