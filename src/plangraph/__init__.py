"""Plan dependency graphs for LLM agent plans.

Takes the flat step list an LLM planner produces and makes it executable:
infers data dependencies from ``{{stepN}}`` references, inserts missing
content generation steps, renumbers steps consistently, layers the graph
for concurrent scheduling and display, and invalidates downstream steps
on retry.

Key components:
- Plan / Step: pydantic models mutated in place
- prepare_plan: synthesis, renumbering, sequential chaining, layering
- compute_layers: memoized topological depth grouping
- retry_from: transitive reset for partial re-execution
- PlanRunner: asyncio adapter driving an external step executor
- render_plan_dag: ASCII DAG for terminal display
"""

from plangraph.config.enums import ExecutionMode, StepStatus
from plangraph.config.models import PlannerConfig
from plangraph.errors import (
    CyclicDependencyError,
    DanglingDependencyError,
    InvalidTransitionError,
    MalformedReferenceError,
    PlanGraphError,
    StepNotFoundError,
)
from plangraph.events import EventEmitter, PlanEvent, PlanEventType, log_event
from plangraph.graph import (
    apply_sequential_dependencies,
    auto_insert_content_steps,
    compute_depths,
    compute_layers,
    display_dependencies,
    extract_data_dependencies,
    renumber_steps,
    resolve_references,
)
from plangraph.models import Plan, Step
from plangraph.pipeline import PreparedPlan, prepare_plan
from plangraph.render import render_plan_dag
from plangraph.runner import PlanExecutionResult, PlanRunner, StepResult
from plangraph.state import (
    find_dependent_steps,
    mark_completed,
    mark_executing,
    mark_failed,
    ready_steps,
    retry_from,
)

__version__ = "0.1.0"

__all__ = [
    "Plan",
    "Step",
    "StepStatus",
    "ExecutionMode",
    "PlannerConfig",
    "PreparedPlan",
    "prepare_plan",
    "apply_sequential_dependencies",
    "auto_insert_content_steps",
    "compute_depths",
    "compute_layers",
    "display_dependencies",
    "extract_data_dependencies",
    "renumber_steps",
    "resolve_references",
    "find_dependent_steps",
    "mark_completed",
    "mark_executing",
    "mark_failed",
    "ready_steps",
    "retry_from",
    "PlanRunner",
    "PlanExecutionResult",
    "StepResult",
    "render_plan_dag",
    "EventEmitter",
    "PlanEvent",
    "PlanEventType",
    "log_event",
    "PlanGraphError",
    "MalformedReferenceError",
    "DanglingDependencyError",
    "CyclicDependencyError",
    "StepNotFoundError",
    "InvalidTransitionError",
]
