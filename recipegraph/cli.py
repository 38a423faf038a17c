"""Typer CLI for recipegraph (validate, layout, next, cook)."""

from __future__ import annotations

import json
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from dotenv import load_dotenv
# load .env immediately so subsequent imports (which read settings at import time)
# pick up values from the .env file
load_dotenv()

# Configure top-level logging early so other modules pick it up.
import logging
from recipegraph.settings import settings

log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
handlers = [logging.StreamHandler()]
if settings.LOG_FILE:
    handlers.append(logging.FileHandler(settings.LOG_FILE))
logging.basicConfig(
    level=log_level,
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    handlers=handlers,
)

from recipegraph.errors import RecipeGraphError, StructuralError
from recipegraph.graph.layout import compute_layout
from recipegraph.graph.model import StepGraph
from recipegraph.models.dto import StepStatus
from recipegraph.models.recipe_schema import Recipe
from recipegraph.orchestrate import run as orchestrator
from recipegraph.session.cooking import CookingSession
from recipegraph.session.notify import ConsoleNotifier
from recipegraph.settings import validate_required

app = typer.Typer(help="Plan and cook recipes whose steps form a dependency graph.")
console = Console()

UNSCHEDULABLE = "This recipe's steps cannot be scheduled"

COOK_HELP = """Commands (STEP is a step id or number):
  done STEP          mark a step finished
  undo STEP          mark a step not finished
  toggle STEP        flip a step between pending and finished
  timer STEP [MIN]   start a countdown (defaults to the step's duration)
  pause STEP | resume STEP | reset STEP
  select STEP        highlight a step
  show               redraw the board
  restart            start over
  quit               leave cooking mode"""


@app.callback()
def main():
    """Check configuration before any command runs."""
    try:
        validate_required()
    except RuntimeError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)


def _load(path: str) -> Recipe:
    try:
        return orchestrator.load_recipe(path)
    except RecipeGraphError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)


def _fail_structural(e: StructuralError) -> None:
    console.print(f"[red]{UNSCHEDULABLE}:[/red] {e}")
    raise typer.Exit(code=1)


def _step_time(step) -> str:
    if step.duration_minutes is None:
        return ""
    text = f"~{step.duration_minutes:g} min"
    if step.is_passive:
        text += " (passive)"
    return text


@app.command()
def validate(path: str):
    """Check that a recipe's steps form a schedulable graph."""
    recipe = _load(path)
    try:
        plan = orchestrator.plan_recipe(recipe)
    except StructuralError as e:
        _fail_structural(e)
    console.print(f"[green]OK[/green] {recipe.title}: {plan['step_count']} steps, depth {plan['depth']}")
    if plan["parallel_starts"] > 1:
        console.print(f"{plan['parallel_starts']} steps can start in parallel.")


@app.command()
def layout(path: str, as_json: bool = typer.Option(False, "--json", help="Print the plan as JSON.")):
    """Show each step's rank and track for a parallel-track drawing."""
    recipe = _load(path)
    try:
        plan = orchestrator.plan_recipe(recipe)
    except StructuralError as e:
        _fail_structural(e)
    if as_json:
        console.print_json(json.dumps(plan))
        return

    graph = StepGraph(recipe)
    placements = compute_layout(graph)
    table = Table(title=recipe.title)
    table.add_column("Rank", justify="right", no_wrap=True)
    table.add_column("Track", justify="right", no_wrap=True)
    table.add_column("Step", no_wrap=True)
    table.add_column("After")
    table.add_column("Instruction")
    table.add_column("Time", no_wrap=True)
    for sid in sorted(placements, key=lambda s: (placements[s].rank, placements[s].track_index)):
        step = graph.step(sid)
        after = ", ".join(graph.label(dep) for dep in step.depends_on)
        table.add_row(
            str(placements[sid].rank),
            str(placements[sid].track_index),
            graph.label(sid),
            after,
            step.text,
            _step_time(step),
        )
    console.print(table)


@app.command("next")
def next_(
    path: str,
    done: Optional[List[str]] = typer.Option(None, "--done", "-d", help="Step id or number already finished."),
):
    """List steps that can start now and what the others are waiting for."""
    recipe = _load(path)
    graph = StepGraph(recipe)
    try:
        graph.validate()
        done_ids = [graph.resolve(ref) for ref in (done or [])]
        result = orchestrator.next_steps(recipe, done_ids)
    except StructuralError as e:
        _fail_structural(e)
    except RecipeGraphError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    console.print(f"[bold]Available now ({len(result['available'])})[/bold]")
    for sid in result["available"]:
        console.print(f"  {graph.label(sid)}: {graph.step(sid).text}")
    if result["blocked"]:
        console.print(f"[bold]Up next ({len(result['blocked'])})[/bold]")
        for sid, waiting in result["blocked"].items():
            labels = ", ".join(graph.label(dep) for dep in waiting)
            console.print(f"  {graph.label(sid)}: {graph.step(sid).text}")
            console.print(f"      [yellow]waiting for: {labels}[/yellow]")


def _render_session(session: CookingSession) -> None:
    graph = session.graph
    snap = session.snapshot()
    console.print(
        f"[bold]{session.recipe.title}[/bold]  {snap.completed_count} / {snap.total_steps} steps"
    )
    console.print(f"[bold green]Available now ({len(snap.available)})[/bold green]")
    if not snap.available and not snap.blocked:
        console.print("  nothing left to do")
    for sid in snap.available:
        step = graph.step(sid)
        marker = ">" if sid == snap.selected_step_id else " "
        extra = _step_time(step)
        timer = snap.timers.get(sid)
        if timer is not None:
            extra = f"{extra} [cyan]{timer.format_remaining()} {timer.state.value}[/cyan]".strip()
        console.print(f" {marker}{graph.label(sid)}: {step.text} {extra}".rstrip())
    if snap.blocked:
        console.print(f"[bold]Up next ({len(snap.blocked)})[/bold]")
        for blocked in snap.blocked:
            labels = ", ".join(graph.label(dep) for dep in blocked.waiting_for)
            console.print(f"  {graph.label(blocked.step_id)}: {blocked.step.text}")
            console.print(f"      [yellow]waiting for: {labels}[/yellow]")
    active = session.active_timers()
    if active:
        console.print("[bold blue]Active timers[/bold blue]")
        for timer in active:
            console.print(f"  {graph.label(timer.step_id)}  {timer.format_remaining()}  {timer.state.value}")


def _run_command(session: CookingSession, line: str) -> bool:
    """Apply one cook-mode command. Returns False when the user wants to leave."""
    parts = line.split()
    if not parts:
        _render_session(session)
        return True
    cmd, args = parts[0].lower(), parts[1:]
    if cmd in ("quit", "exit", "q"):
        return False
    if cmd == "help":
        console.print(COOK_HELP)
        return True
    if cmd == "show":
        _render_session(session)
        return True
    if cmd == "restart":
        session.reset_all()
        _render_session(session)
        return True
    if cmd not in ("done", "undo", "toggle", "timer", "pause", "resume", "reset", "select") or not args:
        console.print(COOK_HELP)
        return True

    step_id = session.graph.resolve(args[0])
    if cmd == "done":
        session.mark_step(step_id, StepStatus.COMPLETED)
    elif cmd == "undo":
        session.mark_step(step_id, StepStatus.PENDING)
    elif cmd == "toggle":
        session.cycle_status(step_id)
    elif cmd == "timer":
        minutes = None
        if len(args) > 1:
            try:
                minutes = float(args[1])
            except ValueError:
                console.print(f"[yellow]Not a number of minutes:[/yellow] {args[1]}")
                return True
        timer = session.start_timer(step_id, minutes)
        console.print(f"Timer started for {session.graph.label(step_id)}: {timer.format_remaining()}")
        return True
    elif cmd == "pause":
        session.pause_timer(step_id)
    elif cmd == "resume":
        session.resume_timer(step_id)
    elif cmd == "reset":
        session.reset_timer(step_id)
    elif cmd == "select":
        session.select_step(step_id)
    _render_session(session)
    return True


@app.command()
def cook(
    path: str,
    tick_seconds: Optional[float] = typer.Option(None, help="Seconds per timer tick (defaults to TICK_SECONDS)."),
):
    """Walk through a recipe interactively with live step timers."""
    if tick_seconds is not None and tick_seconds <= 0:
        console.print(f"[red]Error:[/red] --tick-seconds must be positive, got {tick_seconds:g}")
        raise typer.Exit(code=1)
    recipe = _load(path)
    graph = StepGraph(recipe)
    notifier = ConsoleNotifier(graph, console=console, bell=settings.timer_bell)
    try:
        session = orchestrator.open_session(recipe, notifier, tick_interval=tick_seconds)
    except StructuralError as e:
        _fail_structural(e)

    with session:
        _render_session(session)
        console.print("Type 'help' for commands.")
        while not session.is_session_complete():
            try:
                line = console.input("[bold]cook> [/bold]")
            except (EOFError, KeyboardInterrupt):
                break
            try:
                if not _run_command(session, line):
                    break
            except RecipeGraphError as e:
                console.print(f"[yellow]{e}[/yellow]")
        if session.is_session_complete():
            console.print(f"[bold green]All {len(graph)} steps finished. Enjoy your meal![/bold green]")


if __name__ == "__main__":
    app()
