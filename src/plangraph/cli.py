# plangraph/cli.py
"""Command line tools for inspecting and normalizing plan files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from plangraph.config.defaults import DEFAULT_LOG_LEVEL
from plangraph.config.enums import ExecutionMode, LogFormat
from plangraph.config.env_vars import EnvVar, get_env
from plangraph.config.logging import setup_logging
from plangraph.config.models import PlannerConfig
from plangraph.errors import CyclicDependencyError, StepNotFoundError
from plangraph.events import EventEmitter, log_event
from plangraph.graph.layers import compute_layers
from plangraph.models import Plan
from plangraph.pipeline import prepare_plan
from plangraph.render import render_plan_dag
from plangraph.state import retry_from

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    add_completion=False,
    help="Inspect, normalize and re-plan LLM execution plans.",
)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        get_env(EnvVar.LOG_LEVEL, DEFAULT_LOG_LEVEL),
        "--log-level",
        help="Set log level",
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable verbose logging"),
    quiet: bool = typer.Option(False, "-q", "--quiet", help="Suppress most log output"),
    log_format: LogFormat = typer.Option(
        LogFormat.SIMPLE, "--log-format", help="Console log format"
    ),
    log_file: Optional[str] = typer.Option(
        get_env(EnvVar.LOG_FILE), "--log-file", help="Rotating debug log file"
    ),
) -> None:
    """plangraph - plan dependency graphs for LLM agents."""
    try:
        setup_logging(
            level=log_level,
            quiet=quiet,
            verbose=verbose,
            format_style=log_format.value,
            log_file=log_file,
        )
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--log-level") from e


def _load_plan(path: Path) -> Plan:
    try:
        return Plan.model_validate_json(path.read_text(encoding="utf-8"))
    except OSError as e:
        err_console.print(f"[red]Error:[/red] cannot read {path}: {e}")
        raise typer.Exit(code=1) from e
    except ValidationError as e:
        err_console.print(f"[red]Error:[/red] invalid plan file {path}:\n{escape(str(e))}")
        raise typer.Exit(code=1) from e


def _write_plan(plan: Plan, output: Path | None) -> None:
    payload = plan.model_dump_json(indent=2)
    if output is None:
        typer.echo(payload)
    else:
        output.write_text(payload + "\n", encoding="utf-8")
        err_console.print(f"Wrote {output}")


def _cycle_exit(error: CyclicDependencyError) -> typer.Exit:
    err_console.print(f"[red]Error:[/red] {error}")
    return typer.Exit(code=1)


def _emitter(verbose: bool) -> EventEmitter | None:
    if not verbose:
        return None
    emitter = EventEmitter()
    emitter.subscribe(log_event)
    return emitter


@app.command()
def normalize(
    plan_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Plan JSON file"),
    mode: Optional[ExecutionMode] = typer.Option(
        None, "--mode", help="Execution mode (default from PLANGRAPH_EXECUTION_MODE)"
    ),
    content_steps: bool = typer.Option(
        True,
        "--content-steps/--no-content-steps",
        help="Insert missing content generation steps",
    ),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write plan here"),
    events: bool = typer.Option(False, "--events", help="Log graph events"),
) -> None:
    """Insert content steps, renumber and (in sequential mode) chain steps."""
    overrides: dict[str, object] = {"auto_insert_content_steps": content_steps}
    if mode is not None:
        overrides["execution_mode"] = mode
    try:
        config = PlannerConfig.from_env(**overrides)
    except ValidationError as e:
        err_console.print(f"[red]Error:[/red] invalid configuration:\n{escape(str(e))}")
        raise typer.Exit(code=1) from e

    plan = _load_plan(plan_file)
    try:
        prepared = prepare_plan(plan, config, emitter=_emitter(events))
    except CyclicDependencyError as e:
        raise _cycle_exit(e) from e

    for step_id, dep_id in prepared.dangling:
        err_console.print(
            f"[yellow]Warning:[/yellow] {step_id} depends on unknown step {dep_id}"
        )
    _write_plan(prepared.plan, output)


@app.command()
def layers(
    plan_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Plan JSON file"),
) -> None:
    """Show the execution layers of a plan as given."""
    plan = _load_plan(plan_file)
    try:
        plan_layers = compute_layers(plan.steps, plan_id=plan.id)
    except CyclicDependencyError as e:
        raise _cycle_exit(e) from e

    table = Table(title=f"Plan {plan.id}")
    table.add_column("Layer", justify="right")
    table.add_column("Steps")
    table.add_column("Parallel", justify="center")
    for number, layer in enumerate(plan_layers):
        table.add_row(
            str(number),
            ", ".join(f"{step.id} ({step.tool})" for step in layer),
            "yes" if len(layer) > 1 else "",
        )
    console.print(table)


@app.command()
def render(
    plan_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Plan JSON file"),
    labels: bool = typer.Option(True, "--labels/--no-labels", help="Show layer labels"),
) -> None:
    """Render the plan as an ASCII DAG."""
    plan = _load_plan(plan_file)
    try:
        text = render_plan_dag(plan, show_layer_labels=labels)
    except CyclicDependencyError as e:
        raise _cycle_exit(e) from e
    typer.echo(text)


@app.command()
def retry(
    plan_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Plan JSON file"),
    step_id: str = typer.Argument(..., help="Step to retry"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write plan here"),
) -> None:
    """Reset a step and every step downstream of it to pending."""
    plan = _load_plan(plan_file)
    try:
        reset = retry_from(plan, step_id, strict=True)
    except StepNotFoundError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from e

    err_console.print(f"Reset {len(reset)} step(s): {', '.join(reset)}")
    _write_plan(plan, output)
