# plangraph/graph/renumber.py
"""Dense step renumbering with consistent reference rewriting."""

from __future__ import annotations

import logging

from plangraph.config.defaults import STEP_ID_PREFIX
from plangraph.events import EventEmitter, PlanEventType, emit
from plangraph.graph.references import rewrite_references, rewrite_step_mentions
from plangraph.models import Plan

logger = logging.getLogger(__name__)


def renumber_steps(plan: Plan, *, emitter: EventEmitter | None = None) -> dict[str, str]:
    """Renumber steps to step1..stepN in array order.

    Every dependency list, every ``{{stepN...}}`` token in inputs and every
    ``stepN`` mention in a reason is remapped in a single pass, so a swap
    like step1 <-> step2 is applied exactly once. Dependency ids that are
    not in the map pass through unchanged.

    Returns:
        The old id -> new id map of the ids that changed (empty on no-op).
    """
    id_map: dict[str, str] = {}
    for position, step in enumerate(plan.steps, 1):
        new_id = f"{STEP_ID_PREFIX}{position}"
        if step.id != new_id:
            id_map[step.id] = new_id
            step.id = new_id

    if not id_map:
        return id_map

    logger.debug("Renumbering %d step(s) in plan %s: %s", len(id_map), plan.id, id_map)

    for step in plan.steps:
        step.dependencies = [id_map.get(dep, dep) for dep in step.dependencies]
        if step.input:
            step.input = rewrite_references(step.input, id_map)
        if step.reason:
            step.reason = rewrite_step_mentions(step.reason, id_map)

    emit(emitter, PlanEventType.STEPS_RENUMBERED, plan_id=plan.id, id_map=dict(id_map))
    return id_map
