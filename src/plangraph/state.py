# plangraph/state.py
"""Step execution state and retry invalidation.

State machine per step::

    pending -> executing -> completed | failed
    completed | failed -> pending        (retry_from only)

All functions mutate the plan in place and assume the caller serializes
calls against one plan.
"""

from __future__ import annotations

import logging
from typing import Any

from plangraph.config.enums import StepStatus
from plangraph.errors import InvalidTransitionError, StepNotFoundError
from plangraph.events import EventEmitter, PlanEventType, emit
from plangraph.models import Plan, Step

logger = logging.getLogger(__name__)

_TRANSITIONS: dict[StepStatus, frozenset[StepStatus]] = {
    StepStatus.PENDING: frozenset({StepStatus.EXECUTING}),
    StepStatus.EXECUTING: frozenset({StepStatus.COMPLETED, StepStatus.FAILED}),
    StepStatus.COMPLETED: frozenset(),
    StepStatus.FAILED: frozenset(),
    StepStatus.SKIPPED: frozenset(),
}

# Dependents in these states hold results derived from the retried step.
# EXECUTING covers steps left behind by an aborted run.
_RESETTABLE = frozenset({StepStatus.COMPLETED, StepStatus.FAILED, StepStatus.EXECUTING})


def _lookup(
    plan: Plan, step_id: str, emitter: EventEmitter | None, *, strict: bool = False
) -> Step | None:
    step = plan.get_step(step_id)
    if step is not None:
        return step

    error = StepNotFoundError(step_id)
    if strict:
        raise error
    logger.warning("%s (plan %s)", error, plan.id)
    emit(emitter, PlanEventType.STEP_NOT_FOUND, plan_id=plan.id, step_id=step_id, error=error)
    return None


def _transition(
    plan: Plan,
    step_id: str,
    target: StepStatus,
    emitter: EventEmitter | None,
) -> Step | None:
    step = _lookup(plan, step_id, emitter)
    if step is None:
        return None

    current = StepStatus(step.status)
    if target not in _TRANSITIONS[current]:
        raise InvalidTransitionError(step.id, current.value, target.value)

    step.status = target
    emit(
        emitter,
        PlanEventType.STEP_STATUS_CHANGED,
        plan_id=plan.id,
        step_id=step.id,
        previous=current.value,
        status=target.value,
    )
    return step


def mark_executing(
    plan: Plan, step_id: str, *, emitter: EventEmitter | None = None
) -> Step | None:
    """pending -> executing. Returns None for an unknown id."""
    return _transition(plan, step_id, StepStatus.EXECUTING, emitter)


def mark_completed(
    plan: Plan,
    step_id: str,
    result: Any = None,
    *,
    emitter: EventEmitter | None = None,
) -> Step | None:
    """executing -> completed, storing the result."""
    step = _transition(plan, step_id, StepStatus.COMPLETED, emitter)
    if step is not None:
        step.result = result
        step.error = None
    return step


def mark_failed(
    plan: Plan,
    step_id: str,
    error: str,
    *,
    emitter: EventEmitter | None = None,
) -> Step | None:
    """executing -> failed, storing the error message."""
    step = _transition(plan, step_id, StepStatus.FAILED, emitter)
    if step is not None:
        step.error = error
        step.result = None
    return step


def find_dependent_steps(plan: Plan, step_id: str) -> list[Step]:
    """Every step depending on ``step_id`` directly or transitively.

    Each step appears once, in plan order.
    """
    visited: set[str] = {step_id}
    frontier = [step_id]
    while frontier:
        current = frontier.pop(0)
        for step in plan.steps:
            if step.id not in visited and current in step.dependencies:
                visited.add(step.id)
                frontier.append(step.id)
    return [step for step in plan.steps if step.id in visited and step.id != step_id]


def ready_steps(plan: Plan) -> list[Step]:
    """Pending steps whose dependencies have all completed.

    Dependency ids matching no step are ignored, as in layering.
    """
    steps = plan.step_map()
    ready: list[Step] = []
    for step in plan.steps:
        if step.status != StepStatus.PENDING:
            continue
        deps = [steps[d] for d in step.dependencies if d in steps]
        if all(dep.status == StepStatus.COMPLETED for dep in deps):
            ready.append(step)
    return ready


def is_plan_complete(plan: Plan) -> bool:
    return all(step.status == StepStatus.COMPLETED for step in plan.steps)


def retry_from(
    plan: Plan,
    step_id: str,
    *,
    strict: bool = False,
    emitter: EventEmitter | None = None,
) -> list[str]:
    """Reset a step and everything downstream of it for re-execution.

    The target is reset unconditionally. Steps depending on it (directly
    or transitively) are reset only when completed, failed or left
    executing, and the walk continues through them. Pending steps and
    unrelated branches are left alone; each step is visited once.

    Args:
        plan: Plan to mutate.
        step_id: Step to retry.
        strict: Raise StepNotFoundError for an unknown id instead of
            warning and returning an empty list.
        emitter: Optional event sink; one STEP_RESET per reset step.

    Returns:
        Ids of the steps that were reset, target first.
    """
    target = _lookup(plan, step_id, emitter, strict=strict)
    if target is None:
        return []

    reset_ids: list[str] = []

    def _reset(step: Step) -> None:
        previous = StepStatus(step.status)
        step.reset()
        reset_ids.append(step.id)
        emit(
            emitter,
            PlanEventType.STEP_RESET,
            plan_id=plan.id,
            step_id=step.id,
            previous=previous.value,
        )

    _reset(target)

    visited: set[str] = {target.id}
    frontier = [target.id]
    while frontier:
        current = frontier.pop(0)
        for step in plan.steps:
            if step.id in visited or current not in step.dependencies:
                continue
            visited.add(step.id)
            if step.status in _RESETTABLE:
                logger.debug("Resetting dependent step %s (via %s)", step.id, current)
                _reset(step)
                frontier.append(step.id)

    logger.info("Retry from %s reset %d step(s): %s", step_id, len(reset_ids), reset_ids)
    return reset_ids
