# plangraph/render.py
"""ASCII DAG rendering for terminal display."""

from __future__ import annotations

from collections.abc import Sequence

from plangraph.config.defaults import DEFAULT_DAG_TOOL_MAX_CHARS
from plangraph.config.enums import StepStatus
from plangraph.graph.layers import compute_layers
from plangraph.graph.references import display_dependencies
from plangraph.models import Plan, Step

STATUS_GLYPHS: dict[StepStatus, str] = {
    StepStatus.PENDING: "○",
    StepStatus.EXECUTING: "◉",
    StepStatus.COMPLETED: "●",
    StepStatus.FAILED: "✗",
    StepStatus.SKIPPED: "⊘",
}


def render_plan_dag(
    plan: Plan,
    layers: Sequence[Sequence[Step]] | None = None,
    *,
    show_layer_labels: bool = True,
) -> str:
    """Render a plan as an ASCII DAG, one block per layer.

    Each line shows the status glyph, step id, tool and the display
    dependencies. Layers holding several steps get a parallel marker.

    Raises:
        CyclicDependencyError: when ``layers`` is not given and the plan
            has a cycle.
    """
    if not plan.steps:
        return "  (empty plan)"

    if layers is None:
        layers = compute_layers(plan.steps, plan_id=plan.id)

    lines: list[str] = []
    for number, layer in enumerate(layers):
        if number > 0:
            lines.append("")  # Blank line between layers
        if show_layer_labels:
            lines.append(f"  Layer {number}")

        parallel_marker = " ∥" if len(layer) > 1 else ""
        for step in layer:
            glyph = STATUS_GLYPHS.get(StepStatus(step.status), "○")
            tool = step.tool[:DEFAULT_DAG_TOOL_MAX_CHARS]
            deps = display_dependencies(step)
            dep_str = f"  ← after: {', '.join(deps)}" if deps else ""
            lines.append(f"  {glyph} {step.id:<8} [{tool}]{dep_str}{parallel_marker}")

    return "\n".join(lines)
