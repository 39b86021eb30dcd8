"""Shared command helpers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List

import typer

from stride_cli.core.library import find_builtin_routine
from stride_cli.core.models import Routine, SessionRecord
from stride_cli.core.state import CLIState
from stride_cli.core.store import SessionStore, StoreError
from stride_cli.utils.parsing import RoutineError, load_routine_file


def get_state(ctx: typer.Context) -> CLIState:
    """Extract validated CLI state from Typer context."""
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=2)
    return state


def print_json_payload(state: CLIState, payload: Any) -> None:
    """Print JSON payload with plain-mode fallback for piping."""
    if state.plain_output:
        typer.echo(json.dumps(payload, separators=(",", ":")))
        return
    state.console.print_json(data=payload)


def default_rest_seconds(state: CLIState) -> int:
    return int(state.config.get("session", {}).get("rest_seconds", 15))


def resolve_routine(key: str, default_rest: int) -> Routine:
    """Load a routine from a file path, else from the built-in library."""
    path = Path(key).expanduser()
    if path.is_file():
        return load_routine_file(path, default_rest=default_rest)
    routine = find_builtin_routine(key, rest_seconds=default_rest)
    if routine is None:
        raise RoutineError(f"No routine file or built-in routine named '{key}'")
    return routine


def load_routine_or_exit(state: CLIState, key: str) -> Routine:
    try:
        return resolve_routine(key, default_rest_seconds(state))
    except RoutineError as exc:
        typer.echo(f"Routine error: {exc}")
        raise typer.Exit(code=2)


def load_history_or_exit(state: CLIState) -> List[SessionRecord]:
    try:
        return SessionStore(state.history_path).load()
    except StoreError as exc:
        typer.echo(f"History error: {exc}")
        raise typer.Exit(code=1)
