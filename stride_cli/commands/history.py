"""Session history commands."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import typer
from rich.table import Table

from stride_cli.commands.common import get_state, load_history_or_exit, print_json_payload
from stride_cli.core.progress import history_stats
from stride_cli.exporters.json_export import write_json, write_records_csv
from stride_cli.utils.formatting import format_clock, format_minutes, format_ratio

app = typer.Typer(help="Completed session history")


@app.command("list")
def list_command(
    ctx: typer.Context,
    limit: int = typer.Option(10, min=1, help="Show the N most recent sessions"),
) -> None:
    """List recent completed sessions."""
    state = get_state(ctx)
    records = load_history_or_exit(state)[-limit:]
    records.reverse()

    if state.json_output:
        print_json_payload(state, {"sessions": [record.to_dict() for record in records]})
        return

    if state.plain_output:
        for record in records:
            typer.echo(
                f"{record.started_at.isoformat()}\t{record.routine_name}\t"
                f"{record.completion_ratio:.2f}\t{record.total_elapsed}"
            )
        return

    if not records:
        state.console.print("No sessions recorded yet.")
        return

    table = Table(title="Recent sessions")
    table.add_column("Date")
    table.add_column("Routine")
    table.add_column("Done", justify="right")
    table.add_column("Time", justify="right")
    table.add_column("Result")
    for record in records:
        table.add_row(
            record.started_at.strftime("%Y-%m-%d %H:%M"),
            record.routine_name,
            f"{len(record.completed_indices)}/{record.total_exercises}",
            format_clock(record.total_elapsed),
            record.headline,
        )
    state.console.print(table)


@app.command("stats")
def stats_command(ctx: typer.Context) -> None:
    """Show streak and totals across all sessions."""
    state = get_state(ctx)
    records = load_history_or_exit(state)
    stats = history_stats(records, date.today())

    if state.json_output:
        print_json_payload(state, stats)
        return

    if state.plain_output:
        for key in ("sessions", "total_seconds", "current_streak", "longest_streak", "successful_sessions"):
            typer.echo(f"{key}\t{stats[key]}")
        typer.echo(f"average_completion\t{stats['average_completion']:.2f}")
        return

    week = " ".join(
        f"[green]{day[:2]}[/]" if done else f"[dim]{day[:2]}[/]"
        for day, done in stats["weekly_progress"].items()
    )
    state.console.print(f"Sessions: {stats['sessions']} ({stats['successful_sessions']} successful)")
    state.console.print(f"Total time: {format_minutes(stats['total_seconds'])}")
    state.console.print(f"Average completion: {format_ratio(stats['average_completion'])}")
    state.console.print(f"Current streak: {stats['current_streak']} day(s), longest {stats['longest_streak']}")
    state.console.print(f"This week: {week}")


@app.command("export")
def export_command(
    ctx: typer.Context,
    output: Path = typer.Argument(..., help="Destination file"),
    output_format: str = typer.Option("csv", "--format", help="Output format: csv|json"),
) -> None:
    """Export session history."""
    state = get_state(ctx)
    if output_format not in {"csv", "json"}:
        raise typer.BadParameter("--format must be csv or json")
    records = load_history_or_exit(state)

    if output_format == "json":
        write_json(output, [record.to_dict() for record in records])
    else:
        write_records_csv(output, records)

    if state.json_output:
        print_json_payload(state, {"status": "exported", "format": output_format, "count": len(records), "path": str(output)})
        return
    typer.echo(f"Exported {len(records)} sessions as {output_format} to {output}")
