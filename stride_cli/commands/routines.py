"""Routine browsing commands."""

from __future__ import annotations

from typing import Any, Dict

import typer
from rich.table import Table

from stride_cli.commands.common import (
    default_rest_seconds,
    get_state,
    load_routine_or_exit,
    print_json_payload,
)
from stride_cli.core.library import builtin_routines
from stride_cli.core.models import Routine
from stride_cli.utils.formatting import format_category, format_clock, format_difficulty

app = typer.Typer(help="Browse built-in and file-based routines")


def routine_to_dict(routine: Routine) -> Dict[str, Any]:
    return {
        "id": routine.id,
        "name": routine.name,
        "category": routine.category,
        "description": routine.description,
        "rest_between_exercises": routine.rest_between_exercises,
        "estimated_seconds": routine.estimated_seconds,
        "exercises": [
            {
                "id": exercise.id,
                "name": exercise.name,
                "duration": exercise.duration,
                "category": exercise.category,
                "difficulty": exercise.difficulty,
                "first_instruction": exercise.first_instruction,
            }
            for exercise in routine.exercises
        ],
    }


@app.command("list")
def list_command(ctx: typer.Context) -> None:
    """List built-in routines."""
    state = get_state(ctx)
    routines = builtin_routines(rest_seconds=default_rest_seconds(state))

    if state.json_output:
        print_json_payload(state, {"routines": [routine_to_dict(routine) for routine in routines]})
        return

    if state.plain_output:
        for routine in routines:
            typer.echo(f"{routine.id}\t{routine.name}\t{len(routine.exercises)}\t{routine.estimated_seconds}")
        return

    table = Table(title="Routines")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Exercises", justify="right")
    table.add_column("Duration", justify="right")
    for routine in routines:
        table.add_row(
            routine.id,
            routine.name,
            format_category(routine.category),
            str(len(routine.exercises)),
            format_clock(routine.estimated_seconds),
        )
    state.console.print(table)


@app.command("show")
def show_command(
    ctx: typer.Context,
    routine_key: str = typer.Argument(..., metavar="ROUTINE", help="Built-in routine id/name or JSON/YAML file"),
) -> None:
    """Show the exercises of one routine."""
    state = get_state(ctx)
    routine = load_routine_or_exit(state, routine_key)

    if state.json_output:
        print_json_payload(state, routine_to_dict(routine))
        return

    if state.plain_output:
        typer.echo(f"name\t{routine.name}")
        typer.echo(f"rest\t{routine.rest_between_exercises}")
        for index, exercise in enumerate(routine.exercises):
            typer.echo(f"{index}\t{exercise.name}\t{exercise.duration}")
        return

    table = Table(title=routine.name, caption=routine.description or None)
    table.add_column("#", justify="right")
    table.add_column("Exercise")
    table.add_column("Category")
    table.add_column("Level")
    table.add_column("Time", justify="right")
    table.add_column("First step")
    for index, exercise in enumerate(routine.exercises):
        table.add_row(
            str(index),
            exercise.name,
            format_category(exercise.category),
            format_difficulty(exercise.difficulty),
            format_clock(exercise.duration),
            exercise.first_instruction,
        )
    state.console.print(table)
    state.console.print(
        f"Rest {routine.rest_between_exercises}s between exercises, about {format_clock(routine.estimated_seconds)} total"
    )
