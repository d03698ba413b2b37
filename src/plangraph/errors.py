"""Exceptions raised or reported by the plan graph engine.

Only CyclicDependencyError and InvalidTransitionError are raised from the
normal code paths. The others describe recoverable conditions; they are
logged and attached to emitted events so callers can surface them.
"""

from __future__ import annotations


class PlanGraphError(Exception):
    """Base class for plangraph errors."""


class MalformedReferenceError(PlanGraphError):
    """A ``{{...}}`` template token could not be parsed or resolved."""

    def __init__(self, token: str, step_id: str | None = None) -> None:
        self.token = token
        self.step_id = step_id
        where = f" in step '{step_id}'" if step_id else ""
        super().__init__(f"Malformed or unresolvable reference {token!r}{where}")


class DanglingDependencyError(PlanGraphError):
    """A dependency id does not match any step in the plan."""

    def __init__(self, step_id: str, dependency_id: str) -> None:
        self.step_id = step_id
        self.dependency_id = dependency_id
        super().__init__(
            f"Step '{step_id}' depends on unknown step '{dependency_id}'"
        )


class CyclicDependencyError(PlanGraphError):
    """The dependency relation contains a cycle.

    ``cycle`` lists the step ids along the cycle, with the first id
    repeated at the end, e.g. ``["step1", "step2", "step1"]``.
    """

    def __init__(self, cycle: list[str]) -> None:
        self.cycle = list(cycle)
        super().__init__(
            "Cyclic dependency between steps: " + " -> ".join(self.cycle)
        )

    @property
    def step_ids(self) -> list[str]:
        """Distinct step ids on the cycle, in cycle order."""
        return list(dict.fromkeys(self.cycle))


class StepNotFoundError(PlanGraphError):
    """No step with the given id exists in the plan."""

    def __init__(self, step_id: str) -> None:
        self.step_id = step_id
        super().__init__(f"Step '{step_id}' not found in plan")


class InvalidTransitionError(PlanGraphError):
    """A status update that the step state machine does not allow."""

    def __init__(self, step_id: str, current: str, target: str) -> None:
        self.step_id = step_id
        self.current = current
        self.target = target
        super().__init__(
            f"Step '{step_id}' cannot move from '{current}' to '{target}'"
        )
