from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List

import pytest
from loguru import logger
from typer.testing import CliRunner

from stride_cli.core.companion import CompanionChannel, InMemoryTransport
from stride_cli.core.cues import SessionEvent
from stride_cli.core.models import Exercise, Routine, SessionRecord


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class RecordingVoice:
    def __init__(self) -> None:
        self.events: List[SessionEvent] = []

    def announce(self, event: SessionEvent) -> None:
        self.events.append(event)

    def kinds(self) -> List[str]:
        return [event.kind.value for event in self.events]


class RecordingStore:
    def __init__(self) -> None:
        self.saved: List[SessionRecord] = []

    def save(self, record: SessionRecord) -> None:
        self.saved.append(record)


def make_routine(durations: List[int], rest: int = 15, name: str = "Test Routine") -> Routine:
    exercises = tuple(
        Exercise(
            id=f"ex-{index}",
            name=f"Exercise {index}",
            duration=duration,
            instructions=(f"Step one of exercise {index}", "Step two"),
        )
        for index, duration in enumerate(durations)
    )
    return Routine(id="test-routine", name=name, exercises=exercises, rest_between_exercises=rest)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.setenv("STRIDE_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("STRIDE_CONFIG_FILE", str(tmp_path / "config.toml"))
    monkeypatch.delenv("STRIDE_HISTORY_FILE", raising=False)
    yield
    logger.remove()


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc))


@pytest.fixture()
def voice() -> RecordingVoice:
    return RecordingVoice()


@pytest.fixture()
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture()
def transport() -> InMemoryTransport:
    return InMemoryTransport(reachable=True)


@pytest.fixture()
def channel(transport: InMemoryTransport) -> CompanionChannel:
    return CompanionChannel(transport=transport, clock=lambda: 1700000000.0)


@pytest.fixture()
def two_exercise_routine() -> Routine:
    return make_routine([30, 45], rest=15, name="Two Step")


@pytest.fixture()
def five_exercise_routine() -> Routine:
    return make_routine([30, 45, 60, 45, 60], rest=15, name="Five Step")


@pytest.fixture()
def sample_record_payload() -> Dict[str, Any]:
    return {
        "session_id": "abc123",
        "routine_id": "posture-perfect",
        "routine_name": "Posture Perfect",
        "total_exercises": 3,
        "completed_indices": [0, 2],
        "skipped_indices": [1],
        "total_elapsed": 135,
        "paused_seconds": 10,
        "started_at": "2026-03-02T09:00:00+00:00",
        "ended_at": "2026-03-02T09:02:25+00:00",
        "status": "completed",
        "heart_rate_samples": [
            {"timestamp": "2026-03-02T09:01:00+00:00", "bpm": 80, "source": "watch"},
            {"timestamp": "2026-03-02T09:02:00+00:00", "bpm": 90, "source": "watch"},
        ],
    }


@pytest.fixture()
def write_temp_json(tmp_path: Path):
    def _write(name: str, payload: Any) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(payload, indent=2) + "\n")
        return path

    return _write


@pytest.fixture()
def write_temp_text(tmp_path: Path):
    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.write_text(content.strip() + "\n")
        return path

    return _write


@pytest.fixture()
def routine_factory():
    return make_routine
