# plangraph/runner.py
"""PlanRunner: drives an external step executor over a prepared plan.

Executes plans layer by layer with:
- Concurrent execution of the ready steps inside a layer (bounded)
- ``{{stepN.path}}`` input resolution from completed steps
- Resume semantics: completed steps are never re-run
- Partial re-execution via retry (invalidates downstream steps first)
- Step callbacks and state events for display layers

The runner performs no tool logic; each step is handed to the injected
StepExecutor. All plan mutations happen on the event loop thread between
awaits, so concurrent steps never interleave their writes.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Coroutine
from typing import Any, Protocol, Union, runtime_checkable

from pydantic import BaseModel, Field

from plangraph.config.enums import StepStatus
from plangraph.config.models import PlannerConfig
from plangraph.events import EventEmitter
from plangraph.graph.layers import compute_layers
from plangraph.graph.references import resolve_references
from plangraph.models import Plan, Step
from plangraph.state import (
    is_plan_complete,
    mark_completed,
    mark_executing,
    mark_failed,
    retry_from,
)

logger = logging.getLogger(__name__)


@runtime_checkable
class StepExecutor(Protocol):
    """Runs one step's tool call. Raising marks the step failed."""

    async def __call__(self, step: Step, resolved_input: dict[str, Any]) -> Any: ...


StepStartCallback = Callable[[Step], Union[None, Coroutine[Any, Any, None]]]
"""Called before a step executes: (step) -> None."""

StepCompleteCallback = Callable[
    ["StepResult"], Union[None, Coroutine[Any, Any, None]]
]
"""Called after a step finishes: (StepResult) -> None."""


class StepResult(BaseModel):
    """Outcome of a single step execution."""

    step_id: str
    tool_name: str
    success: bool
    result: Any = None
    error: str | None = None
    duration: float = 0.0

    model_config = {"arbitrary_types_allowed": True}


class PlanExecutionResult(BaseModel):
    """Outcome of one execute/retry call."""

    plan_id: str
    success: bool
    steps: list[StepResult] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    total_duration: float = 0.0
    error: str | None = None

    model_config = {"arbitrary_types_allowed": True}


class PlanRunner:
    """Layered execution of a plan through an external executor."""

    def __init__(
        self,
        executor: StepExecutor,
        *,
        config: PlannerConfig | None = None,
        emitter: EventEmitter | None = None,
        on_step_start: StepStartCallback | None = None,
        on_step_complete: StepCompleteCallback | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            executor: Async callable running one step's tool.
            config: Planner config; only max_concurrency is used here.
            emitter: Receives status change and reset events.
            on_step_start: Callback(step) before each step (sync or async).
            on_step_complete: Callback(StepResult) after each step.
        """
        self._executor = executor
        self._config = config or PlannerConfig()
        self._emitter = emitter
        self._on_step_start = on_step_start
        self._on_step_complete = on_step_complete

    async def execute(self, plan: Plan) -> PlanExecutionResult:
        """Run every pending step, layer by layer.

        Completed steps are kept as they are. Execution stops after the
        first layer in which a step failed; steps left pending are listed
        in ``skipped``.

        Raises:
            CyclicDependencyError: the plan's dependencies form a cycle.
        """
        start_time = time.perf_counter()
        layers = compute_layers(plan.steps, emitter=self._emitter, plan_id=plan.id)
        logger.info(
            "Executing plan %s: %d steps in %d layers",
            plan.id,
            len(plan.steps),
            len(layers),
        )

        all_results: list[StepResult] = []
        for layer_num, layer in enumerate(layers, 1):
            runnable = [step for step in layer if self._is_runnable(plan, step)]
            if not runnable:
                continue

            logger.debug(
                "Layer %d/%d: %d runnable step(s)", layer_num, len(layers), len(runnable)
            )
            if len(runnable) == 1:
                layer_results = [await self._execute_step(plan, runnable[0])]
            else:
                layer_results = await self._execute_layer(plan, runnable)
            all_results.extend(layer_results)

            failed = [r for r in layer_results if not r.success]
            if failed:
                fail_msgs = "; ".join(f"{r.step_id}: {r.error}" for r in failed)
                return PlanExecutionResult(
                    plan_id=plan.id,
                    success=False,
                    steps=all_results,
                    skipped=_pending_ids(plan),
                    total_duration=time.perf_counter() - start_time,
                    error=f"Layer {layer_num} had failures: {fail_msgs}",
                )

        skipped = _pending_ids(plan)
        error = None
        if not is_plan_complete(plan):
            unfinished = [
                step.id
                for step in plan.steps
                if step.status not in (StepStatus.COMPLETED, StepStatus.PENDING)
            ]
            if unfinished:
                error = f"Steps not completed: {', '.join(unfinished)}"
            else:
                error = f"Steps never became ready: {', '.join(skipped)}"

        return PlanExecutionResult(
            plan_id=plan.id,
            success=error is None,
            steps=all_results,
            skipped=skipped,
            total_duration=time.perf_counter() - start_time,
            error=error,
        )

    async def retry(self, plan: Plan, step_id: str) -> PlanExecutionResult:
        """Invalidate ``step_id`` and its dependents, then resume the plan."""
        reset = retry_from(plan, step_id, emitter=self._emitter)
        if not reset:
            return PlanExecutionResult(
                plan_id=plan.id,
                success=False,
                error=f"Step '{step_id}' not found in plan",
            )
        return await self.execute(plan)

    def _is_runnable(self, plan: Plan, step: Step) -> bool:
        if step.status != StepStatus.PENDING:
            return False
        steps = plan.step_map()
        return all(
            steps[dep].status == StepStatus.COMPLETED
            for dep in step.dependencies
            if dep in steps
        )

    async def _execute_layer(self, plan: Plan, layer: list[Step]) -> list[StepResult]:
        """Execute independent steps concurrently, bounded by a semaphore.

        Every task is awaited to the end; an exception escaping one of
        them becomes a failed StepResult for that step.
        """
        sem = asyncio.Semaphore(self._config.max_concurrency)

        async def _run_with_sem(step: Step) -> StepResult:
            async with sem:
                return await self._execute_step(plan, step)

        tasks = [asyncio.create_task(_run_with_sem(step)) for step in layer]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        step_results: list[StepResult] = []
        for step, result in zip(layer, results):
            if isinstance(result, BaseException):
                logger.error("Step %s task crashed: %r", step.id, result)
                if step.status == StepStatus.EXECUTING:
                    mark_failed(plan, step.id, str(result), emitter=self._emitter)
                step_results.append(
                    StepResult(
                        step_id=step.id,
                        tool_name=step.tool,
                        success=False,
                        error=str(result) or type(result).__name__,
                    )
                )
            else:
                step_results.append(result)
        return step_results

    async def _execute_step(self, plan: Plan, step: Step) -> StepResult:
        """Run one step. The step always leaves ``executing`` before returning.

        A raising ``on_step_start`` fails the step like a raising executor.
        A raising ``on_step_complete`` leaves the step's status alone but
        turns the returned StepResult into a failure.
        """
        mark_executing(plan, step.id, emitter=self._emitter)
        start_time = time.perf_counter()
        try:
            if self._on_step_start:
                await _maybe_await(self._on_step_start(step))
            resolved_input = resolve_references(step.input or {}, plan)
            result = await self._executor(step, resolved_input)
        except asyncio.CancelledError:
            mark_failed(plan, step.id, "cancelled", emitter=self._emitter)
            raise
        except Exception as e:
            logger.warning("Step %s (%s) failed: %s", step.id, step.tool, e)
            mark_failed(plan, step.id, str(e) or type(e).__name__, emitter=self._emitter)
            step_result = StepResult(
                step_id=step.id,
                tool_name=step.tool,
                success=False,
                error=step.error,
            )
        else:
            mark_completed(plan, step.id, result, emitter=self._emitter)
            step_result = StepResult(
                step_id=step.id,
                tool_name=step.tool,
                success=True,
                result=result,
            )

        step_result.duration = time.perf_counter() - start_time
        if self._on_step_complete:
            try:
                await _maybe_await(self._on_step_complete(step_result))
            except Exception as e:
                logger.exception("on_step_complete failed for step %s", step.id)
                step_result.success = False
                step_result.error = f"on_step_complete callback failed: {e}"
        return step_result


def _pending_ids(plan: Plan) -> list[str]:
    return [step.id for step in plan.steps if step.status == StepStatus.PENDING]


async def _maybe_await(result: Any) -> Any:
    """Await a result if it's a coroutine, otherwise return it directly.

    Allows callbacks to be either sync or async functions.
    """
    if asyncio.iscoroutine(result):
        return await result
    return result
