# plangraph/events.py
"""Structured events emitted by plan graph operations.

Graph and state functions accept an optional EventEmitter and report what
they changed through it. Loggers, UIs and tests subscribe; the core never
calls into them directly.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class PlanEventType(str, Enum):
    """Kinds of events emitted by plangraph."""

    STEP_INSERTED = "step_inserted"
    STEPS_RENUMBERED = "steps_renumbered"
    LAYERS_COMPUTED = "layers_computed"
    STEP_RESET = "step_reset"
    STEP_STATUS_CHANGED = "step_status_changed"
    DANGLING_DEPENDENCY = "dangling_dependency"
    STEP_NOT_FOUND = "step_not_found"


class PlanEvent(BaseModel):
    """A single change or condition reported by the engine."""

    type: PlanEventType
    plan_id: str | None = None
    step_id: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)

    model_config = {"arbitrary_types_allowed": True}


EventCallback = Callable[[PlanEvent], None]
"""Subscriber signature: (event) -> None."""


class EventEmitter:
    """Synchronous fan-out of PlanEvents to subscribers.

    Delivery happens in subscription order on the caller's thread. A
    subscriber that raises is logged and skipped; the others still run.
    """

    def __init__(self) -> None:
        self._subscribers: list[EventCallback] = []

    def subscribe(self, callback: EventCallback) -> Callable[[], None]:
        """Register a callback. Returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            self.unsubscribe(callback)

        return _unsubscribe

    def unsubscribe(self, callback: EventCallback) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def emit(self, event: PlanEvent) -> None:
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception(
                    "Event subscriber %r failed on %s", callback, event.type.value
                )


def emit(
    emitter: EventEmitter | None,
    event_type: PlanEventType,
    *,
    plan_id: str | None = None,
    step_id: str | None = None,
    **data: Any,
) -> None:
    """Emit an event if an emitter was supplied."""
    if emitter is None:
        return
    emitter.emit(
        PlanEvent(type=event_type, plan_id=plan_id, step_id=step_id, data=data)
    )


_WARNING_EVENTS = {PlanEventType.DANGLING_DEPENDENCY, PlanEventType.STEP_NOT_FOUND}


def log_event(event: PlanEvent) -> None:
    """Subscriber that writes events to the ``plangraph.events`` logger."""
    level = logging.WARNING if event.type in _WARNING_EVENTS else logging.DEBUG
    details = {k: v for k, v in event.data.items() if k != "error"}
    if "error" in event.data:
        details["error"] = str(event.data["error"])
    logger.log(
        level,
        "%s plan=%s step=%s %s",
        event.type.value,
        event.plan_id or "-",
        event.step_id or "-",
        details,
    )
