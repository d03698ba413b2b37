"""Common test fixtures and helpers for plangraph tests."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from plangraph.config.enums import StepStatus
from plangraph.models import Plan, Step


def make_step(
    step_id: str,
    tool: str = "search",
    deps: list[str] | None = None,
    *,
    status: StepStatus = StepStatus.PENDING,
    input: dict[str, Any] | None = None,
    reason: str = "",
    result: Any = None,
) -> Step:
    """Build a step with terse defaults."""
    return Step(
        id=step_id,
        tool=tool,
        dependencies=list(deps or []),
        status=status,
        input={} if input is None else input,
        reason=reason,
        result=result,
    )


def make_plan(*steps: Step, plan_id: str = "test-plan") -> Plan:
    return Plan(id=plan_id, steps=list(steps))


def statuses(plan: Plan) -> dict[str, StepStatus]:
    return {step.id: StepStatus(step.status) for step in plan.steps}


@pytest.fixture
def diamond_plan() -> Plan:
    """A -> B, A -> C, B -> D, C -> D, everything completed."""
    done = StepStatus.COMPLETED
    return make_plan(
        make_step("step1", "init", status=done, result={"value": 1}),
        make_step("step2", "branch_a", ["step1"], status=done, result="a"),
        make_step("step3", "branch_b", ["step1"], status=done, result="b"),
        make_step("step4", "join", ["step2", "step3"], status=done, result="ab"),
        plan_id="diamond",
    )


@pytest.fixture
def recorded_events():
    """An EventEmitter plus the list of events it has delivered."""
    from plangraph.events import EventEmitter

    emitter = EventEmitter()
    events: list = []
    emitter.subscribe(events.append)
    return emitter, events


@pytest.fixture(autouse=True)
def reset_logging():
    """Keep setup_logging calls from leaking handlers across tests."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
    logging.getLogger("plangraph").setLevel(logging.NOTSET)
