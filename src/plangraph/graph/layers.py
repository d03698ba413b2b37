# plangraph/graph/layers.py
"""Topological depth and layer computation.

depth(step) = 0 without dependencies, else 1 + max depth of the
dependencies that resolve to steps in the same list. Steps sharing a
depth form a layer: they have no ordering constraint between them and
may run concurrently, while layers run in ascending order.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from plangraph.errors import CyclicDependencyError, DanglingDependencyError
from plangraph.events import EventEmitter, PlanEventType, emit
from plangraph.models import Plan, Step

logger = logging.getLogger(__name__)


def find_dangling_dependencies(steps: Sequence[Step]) -> list[DanglingDependencyError]:
    """One error per (step, dependency id) pair that matches no step."""
    known = {step.id for step in steps}
    dangling: list[DanglingDependencyError] = []
    for step in steps:
        for dep_id in dict.fromkeys(step.dependencies):
            if dep_id not in known:
                dangling.append(DanglingDependencyError(step.id, dep_id))
    return dangling


def compute_depths(
    steps: Sequence[Step],
    *,
    emitter: EventEmitter | None = None,
    plan_id: str | None = None,
) -> dict[str, int]:
    """Memoized longest-path depth of every step.

    Dependency ids that match no step contribute no depth; each is logged
    and emitted as a DANGLING_DEPENDENCY event.

    Raises:
        CyclicDependencyError: a step was reached again while its own
            depth was still being computed.
    """
    by_id = {step.id: step for step in steps}

    for problem in find_dangling_dependencies(steps):
        logger.warning("%s; treating it as satisfied", problem)
        emit(
            emitter,
            PlanEventType.DANGLING_DEPENDENCY,
            plan_id=plan_id,
            step_id=problem.step_id,
            dependency_id=problem.dependency_id,
            error=problem,
        )

    depths: dict[str, int] = {}
    # Explicit stack: long sequential chains exceed the recursion limit.
    for root in steps:
        if root.id in depths:
            continue

        in_progress: dict[str, None] = {root.id: None}  # ordered dependency path
        stack = [(root, iter(root.dependencies))]
        while stack:
            step, remaining = stack[-1]
            for dep_id in remaining:
                if dep_id not in by_id or dep_id in depths:
                    continue
                if dep_id in in_progress:
                    path = list(in_progress)
                    raise CyclicDependencyError(path[path.index(dep_id):] + [dep_id])
                in_progress[dep_id] = None
                dep = by_id[dep_id]
                stack.append((dep, iter(dep.dependencies)))
                break
            else:
                stack.pop()
                del in_progress[step.id]
                dep_depths = [depths[d] for d in step.dependencies if d in by_id]
                depths[step.id] = max(dep_depths) + 1 if dep_depths else 0

    return depths


def compute_layers(
    steps: Sequence[Step],
    *,
    emitter: EventEmitter | None = None,
    plan_id: str | None = None,
) -> list[list[Step]]:
    """Group steps into layers by depth, shallowest first.

    Within a layer steps keep their relative order from ``steps``.

    Raises:
        CyclicDependencyError: the dependency relation has a cycle.
    """
    if not steps:
        return []

    depths = compute_depths(steps, emitter=emitter, plan_id=plan_id)
    layers: list[list[Step]] = [[] for _ in range(max(depths.values()) + 1)]
    for step in steps:
        layers[depths[step.id]].append(step)

    logger.debug(
        "Computed %d layer(s): %s",
        len(layers),
        [[step.id for step in layer] for layer in layers],
    )
    emit(
        emitter,
        PlanEventType.LAYERS_COMPUTED,
        plan_id=plan_id,
        layers=[[step.id for step in layer] for layer in layers],
    )
    return layers


def layer_index(layers: Sequence[Sequence[Step]]) -> dict[str, int]:
    """Step id -> layer number."""
    return {step.id: number for number, layer in enumerate(layers) for step in layer}


def apply_sequential_dependencies(plan: Plan) -> Plan:
    """Chain every step to its predecessor (sequential mode).

    The first step becomes a root and each later step depends only on the
    one before it, so every layer holds exactly one step.
    """
    previous: Step | None = None
    for step in plan.steps:
        step.dependencies = [previous.id] if previous is not None else []
        previous = step
    logger.debug("Applied sequential dependencies to %d step(s)", len(plan.steps))
    return plan
