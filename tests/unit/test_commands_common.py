from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import pytest
import typer
from rich.console import Console

from stride_cli.commands.common import (
    default_rest_seconds,
    get_state,
    load_history_or_exit,
    load_routine_or_exit,
    resolve_routine,
)
from stride_cli.core.state import CLIState
from stride_cli.utils.parsing import RoutineError


@dataclass
class FakeContext:
    obj: Any


def _state(config: Dict[str, Any] | None = None) -> CLIState:
    return CLIState(
        json_output=False,
        plain_output=True,
        verbose=False,
        quiet=False,
        config_path=Path("/tmp/config.toml"),
        config=config or {"session": {"rest_seconds": 20}},
        console=Console(record=True),
    )


def test_get_state_returns_cli_state() -> None:
    state = _state()
    assert get_state(FakeContext(obj=state)) is state


def test_get_state_raises_on_invalid_obj() -> None:
    with pytest.raises(typer.Exit):
        get_state(FakeContext(obj={"not": "state"}))


def test_default_rest_seconds_from_config() -> None:
    assert default_rest_seconds(_state()) == 20
    assert default_rest_seconds(_state({"voice": {}})) == 15


def test_resolve_routine_prefers_existing_file(write_temp_json) -> None:
    path = write_temp_json("posture-perfect", {"name": "Local Override", "exercises": ["chin-tucks"]})
    routine = resolve_routine(str(path), default_rest=20)
    assert routine.name == "Local Override"
    assert routine.rest_between_exercises == 20


def test_resolve_routine_builtin_and_missing() -> None:
    assert resolve_routine("evening-wind-down", default_rest=10).rest_between_exercises == 10
    with pytest.raises(RoutineError, match="No routine file or built-in routine"):
        resolve_routine("nowhere", default_rest=10)


def test_load_routine_or_exit_exits_with_code_2() -> None:
    with pytest.raises(typer.Exit) as excinfo:
        load_routine_or_exit(_state(), "nowhere")
    assert excinfo.value.exit_code == 2


def test_load_history_or_exit_exits_with_code_1(monkeypatch: pytest.MonkeyPatch, write_temp_text) -> None:
    monkeypatch.setenv("STRIDE_HISTORY_FILE", str(write_temp_text("sessions.json", "[1,")))
    with pytest.raises(typer.Exit) as excinfo:
        load_history_or_exit(_state())
    assert excinfo.value.exit_code == 1
