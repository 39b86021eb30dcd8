"""Guided workout command."""

from __future__ import annotations

import dataclasses
import sys
import threading
from datetime import date
from typing import Any, Dict, List, Optional

import typer
from loguru import logger
from rich.panel import Panel
from rich.table import Table

from stride_cli.commands.common import get_state, load_routine_or_exit, print_json_payload
from stride_cli.core.companion import CompanionChannel, InMemoryTransport
from stride_cli.core.cues import EventKind, SessionEvent, VoiceCoach
from stride_cli.core.engine import EmptyRoutineError, SessionEngine, SessionError
from stride_cli.core.models import Phase, SessionRecord
from stride_cli.core.progress import current_streak, today_completed, weekly_progress
from stride_cli.core.runner import Command, SessionRunner, read_commands, run_session
from stride_cli.core.state import CLIState
from stride_cli.core.store import SessionStore, StoreError
from stride_cli.utils.formatting import format_bpm, format_clock, format_ratio
from stride_cli.utils.parsing import RoutineError, parse_indices


def _speaker(state: CLIState):
    def _speak(text: str) -> None:
        if state.plain_output:
            typer.echo(f"voice\t{text}")
        else:
            state.console.print(f"[bold cyan]Coach:[/] {text}")

    return _speak


def _event_printer(state: CLIState, total: int):
    def _print(event: SessionEvent, engine: SessionEngine) -> None:
        if state.json_output:
            return
        kind = event.kind
        if kind == EventKind.EXERCISE_START:
            position = (event.index or 0) + 1
            line = f"[{position}/{total}] {event.exercise_name} ({format_clock(event.seconds)})"
        elif kind == EventKind.EXERCISE_SKIPPED:
            line = f"Skipped {event.exercise_name}"
        elif kind == EventKind.REST_START:
            line = f"Rest {format_clock(event.seconds)}"
        elif kind == EventKind.PAUSED:
            line = "Paused"
        elif kind == EventKind.RESUMED:
            line = "Resumed"
        elif kind == EventKind.POSTURE_ALERT:
            line = f"Posture alert: {event.message}"
        elif kind == EventKind.COMPANION_ENDED:
            line = "Companion ended the workout"
        else:
            return

        if state.plain_output:
            typer.echo(f"{kind.value}\t{line}")
        else:
            state.console.print(line)

    return _print


def _skipper(runner: SessionRunner, positions: List[int]):
    pending = set(positions)

    def _on_event(event: SessionEvent, engine: SessionEngine) -> None:
        if event.kind == EventKind.EXERCISE_START and event.index in pending:
            pending.discard(event.index)
            runner.submit(Command.SKIP)

    return _on_event


def _sync_progress(channel: CompanionChannel, store: Optional[SessionStore]) -> None:
    if store is None:
        return
    try:
        records = store.load()
    except StoreError as exc:
        logger.warning(f"Skipping progress sync: {exc}")
        return
    today = date.today()
    channel.sync_progress(
        streak=current_streak(records, today),
        today_completed=today_completed(records, today),
        weekly_progress=weekly_progress(records, today),
    )


def _summary_payload(record: SessionRecord) -> Dict[str, Any]:
    payload = record.to_dict()
    payload["headline"] = record.headline
    payload["was_successful"] = record.was_successful
    return payload


def _print_summary(state: CLIState, record: SessionRecord) -> None:
    if state.json_output:
        print_json_payload(state, _summary_payload(record))
        return

    if state.plain_output:
        typer.echo(f"status\t{record.status}")
        typer.echo(f"routine\t{record.routine_name}")
        typer.echo(f"completed\t{len(record.completed_indices)}/{record.total_exercises}")
        typer.echo(f"skipped\t{len(record.skipped_indices)}")
        typer.echo(f"elapsed\t{record.total_elapsed}")
        typer.echo(f"completion\t{record.completion_ratio:.2f}")
        return

    table = Table(show_header=False, box=None)
    table.add_row("Exercises", f"{len(record.completed_indices)}/{record.total_exercises} completed")
    table.add_row("Skipped", str(len(record.skipped_indices)))
    table.add_row("Time", format_clock(record.total_elapsed))
    table.add_row("Completion", format_ratio(record.completion_ratio))
    table.add_row("Avg heart rate", format_bpm(record.average_heart_rate))
    state.console.print(Panel(table, title=record.headline, subtitle=record.routine_name))


def run_command(
    ctx: typer.Context,
    routine_key: str = typer.Argument(..., metavar="ROUTINE", help="Built-in routine id/name or JSON/YAML file"),
    rest: Optional[int] = typer.Option(None, min=0, help="Override rest seconds between exercises"),
    tick_seconds: Optional[float] = typer.Option(
        None,
        "--tick",
        min=0.0,
        help="Seconds per countdown tick (0 runs instantly)",
    ),
    skip: Optional[List[int]] = typer.Option(None, "--skip", help="Skip exercise at 0-based position (repeatable)"),
    mute: bool = typer.Option(False, "--mute", help="Disable voice cues"),
    companion: bool = typer.Option(True, "--companion/--no-companion", help="Mirror the session to a companion"),
    save: bool = typer.Option(True, "--save/--no-save", help="Record the completed session in history"),
    controls: Optional[bool] = typer.Option(
        None,
        "--controls/--no-controls",
        help="Read p/r/s/d/q lines from stdin (pause, resume, skip, done, quit); default on for a terminal",
    ),
) -> None:
    """Run a guided routine."""
    state = get_state(ctx)
    session_cfg = state.config.get("session", {})
    companion_cfg = state.config.get("companion", {})
    voice_cfg = state.config.get("voice", {})

    routine = load_routine_or_exit(state, routine_key)
    if rest is not None:
        routine = dataclasses.replace(routine, rest_between_exercises=rest)
    try:
        skip_positions = parse_indices(skip, len(routine.exercises))
    except RoutineError as exc:
        typer.echo(f"Routine error: {exc}")
        raise typer.Exit(code=2)

    channel = CompanionChannel(
        transport=InMemoryTransport(reachable=bool(companion_cfg.get("reachable", True))),
        enabled=companion and bool(companion_cfg.get("enabled", True)),
    )
    voice = VoiceCoach(
        speak=_speaker(state),
        enabled=not mute and not state.json_output and bool(voice_cfg.get("enabled", True)),
    )
    store = SessionStore(state.history_path) if save else None
    engine = SessionEngine(
        voice=voice,
        companion=channel,
        store=store,
        strict=bool(session_cfg.get("strict_transitions", False)),
        end_policy=str(companion_cfg.get("end_policy", "trust_local")),
    )
    runner = SessionRunner(
        engine,
        tick_seconds=tick_seconds if tick_seconds is not None else float(session_cfg.get("tick_seconds", 1.0)),
        companion=channel,
    )
    engine.subscribe(_event_printer(state, len(routine.exercises)))
    engine.subscribe(_skipper(runner, skip_positions))

    use_controls = sys.stdin.isatty() if controls is None else controls
    if use_controls:
        if not state.json_output and not state.plain_output:
            state.console.print("[dim]Controls: p pause, r resume, s skip, d done, q quit (then Enter)[/]")
        threading.Thread(target=read_commands, args=(sys.stdin, runner.submit), daemon=True).start()

    try:
        run_session(runner, routine)
    except KeyboardInterrupt:
        if engine.is_active:
            engine.cancel()
    except EmptyRoutineError as exc:
        typer.echo(f"Routine error: {exc}")
        raise typer.Exit(code=2)
    except StoreError as exc:
        typer.echo(f"History error: {exc}")
        raise typer.Exit(code=1)
    except SessionError as exc:
        typer.echo(f"Session error: {exc}")
        raise typer.Exit(code=1)

    if engine.phase == Phase.CANCELLED or engine.record is None:
        if state.json_output:
            print_json_payload(state, {"status": "cancelled", "routine": routine.name})
        else:
            typer.echo("Workout cancelled; nothing was recorded.")
        return

    _sync_progress(channel, store)
    _print_summary(state, engine.record)
