"""Configuration commands."""

from __future__ import annotations

import typer

from stride_cli.commands.common import get_state, print_json_payload
from stride_cli.core.config import default_config, resolve_history_file, save_config

app = typer.Typer(help="Inspect and create the config file")


@app.command("show")
def show_command(ctx: typer.Context) -> None:
    """Print the effective configuration."""
    state = get_state(ctx)
    payload = {
        "config_path": str(state.config_path),
        "history_file": str(resolve_history_file(state.config)),
        "config": state.config,
    }

    if state.json_output:
        print_json_payload(state, payload)
        return

    typer.echo(f"config_path\t{payload['config_path']}")
    typer.echo(f"history_file\t{payload['history_file']}")
    for section, values in state.config.items():
        if not isinstance(values, dict):
            continue
        for key, value in values.items():
            typer.echo(f"{section}.{key}\t{value}")


@app.command("init")
def init_command(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config file"),
) -> None:
    """Write a config file populated with defaults."""
    state = get_state(ctx)
    if state.config_path.exists() and not force:
        typer.echo(f"Config file already exists: {state.config_path} (use --force to overwrite)")
        raise typer.Exit(code=1)

    path = save_config(default_config(), state.config_path)
    if state.json_output:
        print_json_payload(state, {"status": "created", "path": str(path)})
        return
    typer.echo(f"Wrote {path}")
