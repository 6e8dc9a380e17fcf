"""
Typer CLI for the PawCalm progress engine.

Every command reads a JSON export of one animal's training log.

Commands:
    pawcalm snapshot FILE            - Aggregated progress metrics
    pawcalm next-cue FILE            - Pick the next cue to practice
    pawcalm milestones FILE          - Newly unlocked and upcoming milestones
    pawcalm insight FILE --rules R   - First matching insight from a rule set
    pawcalm target --baseline N      - Next absence session target duration

Usage:
    pawcalm snapshot export.json --json
    pawcalm next-cue export.json --seed 7
    pawcalm insight export.json --rules weekly
    pawcalm target --baseline 10 --outcome struggled --outcome great
"""

from __future__ import annotations

import json
import random
import sys
from datetime import datetime
from pathlib import Path

import typer
from loguru import logger
from pydantic import ValidationError
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from pawcalm.config import get_settings
from pawcalm.core.errors import PawCalmError
from pawcalm.core.models import OwnerEnergy, OwnerMood, OwnerState, TrainingHistory
from pawcalm.engine import ProgressEngine
from pawcalm.events.schema import TrainingLog
from pawcalm.milestones.engine import milestone_progress, next_milestones
from pawcalm.progress.snapshot import ProgressSnapshot

app = typer.Typer(
    help="PawCalm: adaptive training progress for dogs with separation anxiety",
    no_args_is_help=True,
)

console = Console()


# ========================================
# Helpers
# ========================================


def _load_history(path: Path, engine: ProgressEngine) -> TrainingHistory:
    try:
        log = TrainingLog.model_validate_json(path.read_text(encoding="utf-8"))
    except OSError as exc:
        rprint(f"[red]✗[/red] Cannot read {path}: {exc}")
        raise typer.Exit(code=1)
    except ValidationError as exc:
        rprint(f"[red]✗[/red] {path} is not a valid training log")
        logger.debug(str(exc))
        raise typer.Exit(code=1)

    history, quarantined = log.to_history(engine.tz)
    for record in quarantined:
        logger.warning(f"Quarantined {record.kind} record: {record.reason}")
    return history


def _parse_now(value: str | None) -> datetime | None:
    if value is None:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        rprint(f"[red]✗[/red] --now must be an ISO-8601 timestamp, got {value!r}")
        raise typer.Exit(code=1)


def _engine(seed: int | None = None) -> ProgressEngine:
    settings = get_settings()
    rng = random.Random(seed) if seed is not None else None
    return ProgressEngine(settings=settings, rng=rng)


def _print_json(data: object) -> None:
    indent = get_settings().export_indent or None
    typer.echo(json.dumps(data, indent=indent, default=str))


def _rate(stat) -> str:
    return "insufficient data" if stat.rate is None else f"{stat.rate:.0%} ({stat.samples})"


def _snapshot_table(snapshot: ProgressSnapshot) -> Table:
    table = Table(title=f"Progress for {snapshot.animal_id}", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Practices", str(snapshot.total_practices))
    table.add_row("Calm rate", f"{snapshot.calm_rate:.0%}")
    table.add_row("Current streak", f"{snapshot.current_streak} days")
    table.add_row("Longest streak", f"{snapshot.longest_streak} days")
    table.add_row("Cues mastered", f"{snapshot.cues_mastered}/{snapshot.total_cues}")
    table.add_row("Calm this week", _rate(snapshot.this_week.calm))
    table.add_row("Calm last week", _rate(snapshot.last_week.calm))
    table.add_row(
        "Best time of day",
        snapshot.best_time_of_day.value if snapshot.best_time_of_day else "-",
    )
    table.add_row("Absence sessions", str(snapshot.total_sessions))
    table.add_row("Longest calm absence", f"{snapshot.longest_calm_absence:g} min")
    if snapshot.undated_practices:
        table.add_row("Undated practices", f"[yellow]{snapshot.undated_practices}[/yellow]")
    return table


# ========================================
# Commands
# ========================================


@app.command("snapshot")
def snapshot_command(
    path: Path = typer.Argument(..., help="Training log JSON export"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw snapshot as JSON"),
    now: str | None = typer.Option(None, "--now", help="Evaluation time (ISO-8601)"),
) -> None:
    """Aggregate the training log into progress metrics."""
    engine = _engine()
    history = _load_history(path, engine)
    try:
        snapshot = engine.snapshot(history, _parse_now(now))
    except PawCalmError as exc:
        rprint(f"[red]✗[/red] {exc}")
        raise typer.Exit(code=1)

    if as_json:
        _print_json(snapshot.to_dict())
        return

    console.print(_snapshot_table(snapshot))
    readiness = engine.mission_readiness(snapshot)
    if readiness.ready:
        rprint("[green]✓[/green] Ready for absence training")
    else:
        rprint(f"  Master {readiness.cues_needed} more cue(s) to unlock absence training")
    rprint(f"  Today's goal: {engine.todays_goal(snapshot)} practices")


@app.command("next-cue")
def next_cue_command(
    path: Path = typer.Argument(..., help="Training log JSON export"),
    cue_id: str | None = typer.Option(None, "--cue", help="Practice this cue if it exists"),
    seed: int | None = typer.Option(None, "--seed", help="Seed for the selection jitter"),
    now: str | None = typer.Option(None, "--now", help="Evaluation time (ISO-8601)"),
) -> None:
    """Pick the next cue to practice."""
    engine = _engine(seed)
    history = _load_history(path, engine)
    cue = engine.next_cue(history, requested_id=cue_id, now=_parse_now(now))
    if cue is None:
        rprint("[yellow]⚠[/yellow] No cues to practice")
        raise typer.Exit(code=1)
    rprint(f"[bold]{cue.name or cue.id}[/bold] ({cue.id}) calm {cue.calm_count}/{cue.total_count}")


@app.command("milestones")
def milestones_command(
    path: Path = typer.Argument(..., help="Training log JSON export"),
    unlocked: list[str] | None = typer.Option(
        None, "--unlocked", help="Milestone ids already unlocked (adds to the export's list)"
    ),
    now: str | None = typer.Option(None, "--now", help="Evaluation time (ISO-8601)"),
) -> None:
    """Show newly unlocked milestones and what comes next."""
    engine = _engine()
    history = _load_history(path, engine)
    already = [*history.unlocked_milestones, *(unlocked or [])]
    try:
        snapshot = engine.snapshot(history, _parse_now(now))
    except PawCalmError as exc:
        rprint(f"[red]✗[/red] {exc}")
        raise typer.Exit(code=1)
    new_unlocks = engine.milestones(snapshot, already)

    if new_unlocks:
        table = Table(title="Newly Unlocked", show_header=True)
        table.add_column("Milestone", style="green")
        for unlock in new_unlocks:
            table.add_row(unlock.milestone_id)
        console.print(table)
    else:
        rprint("No new milestones")

    holding = already + [u.milestone_id for u in new_unlocks]
    upcoming = next_milestones(holding)
    if upcoming:
        rprint("\n[bold]Next up:[/bold]")
        for milestone in upcoming:
            progress = milestone_progress(milestone.id, snapshot)
            suffix = f" {progress.percentage}%" if progress else ""
            rprint(f"  {milestone.id} [dim]({milestone.category.value})[/dim]{suffix}")


@app.command("insight")
def insight_command(
    path: Path = typer.Argument(..., help="Training log JSON export"),
    rules: str = typer.Option(
        ..., "--rules", "-r", help="Rule set: weekly, feedback, owner, prediction, journal"
    ),
    seed: int | None = typer.Option(None, "--seed", help="Seed for prompt variants"),
    now: str | None = typer.Option(None, "--now", help="Evaluation time (ISO-8601)"),
) -> None:
    """Select the first matching insight from a rule set."""
    engine = _engine(seed)
    history = _load_history(path, engine)
    try:
        snapshot = engine.snapshot(history, _parse_now(now))
        payload = engine.insight(rules, snapshot, history)
    except PawCalmError as exc:
        rprint(f"[red]✗[/red] {exc}")
        raise typer.Exit(code=1)

    if payload is None:
        rprint("No insight matched")
        return
    _print_json(payload.to_dict())


@app.command("target")
def target_command(
    baseline: float = typer.Option(..., "--baseline", "-b", help="Current tolerance in minutes"),
    outcomes: list[str] | None = typer.Option(
        None, "--outcome", "-o", help="Recent dog responses, most recent first"
    ),
    mood: OwnerMood | None = typer.Option(None, "--mood", help="Owner mood before the session"),
    energy: OwnerEnergy | None = typer.Option(None, "--energy", help="Owner energy level"),
    as_json: bool = typer.Option(False, "--json", help="Print the full breakdown as JSON"),
) -> None:
    """Compute the next absence session's target duration."""
    engine = _engine()
    owner = OwnerState(mood=mood, energy=energy) if mood or energy else None
    try:
        adjustment = engine.target_duration(baseline, outcomes or [], owner)
    except PawCalmError as exc:
        rprint(f"[red]✗[/red] {exc}")
        raise typer.Exit(code=1)

    if as_json:
        _print_json(adjustment.to_dict())
        return
    rprint(f"Target: [bold]{adjustment.target_minutes}[/bold] min")
    rprint(f"  [dim]{adjustment.rule_id} x{adjustment.trend_multiplier:g}[/dim]")
    if adjustment.owner_rule_id:
        rprint(f"  [dim]{adjustment.owner_rule_id} x{adjustment.owner_multiplier:g}[/dim]")


def main() -> None:
    """Entry point for the CLI."""
    settings = get_settings()
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)
    app()


if __name__ == "__main__":
    main()
