from __future__ import annotations

import random
from datetime import datetime, timezone

import pytest

from stride_cli.core.constants import EXERCISE_COMPLETE_PHRASES, HALFWAY_PHRASE
from stride_cli.core.cues import EventKind, SessionEvent, VoiceCoach, render_cue
from stride_cli.core.models import Phase, SessionRecord
from stride_cli.utils.formatting import format_clock, format_spoken_duration


def test_record_from_dict_computes_views(sample_record_payload) -> None:
    record = SessionRecord.from_dict(sample_record_payload)
    assert record.completion_ratio == pytest.approx(2 / 3)
    assert record.was_successful is False
    assert record.headline == "Nice Effort!"
    assert record.average_heart_rate == 85.0
    assert record.max_heart_rate == 90.0
    assert record.min_heart_rate == 80.0
    assert record.started_at == datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def test_record_to_dict_keeps_indices_and_ratio(sample_record_payload) -> None:
    payload = SessionRecord.from_dict(sample_record_payload).to_dict()
    assert payload["completed_indices"] == [0, 2]
    assert payload["skipped_indices"] == [1]
    assert payload["completion_ratio"] == 0.6667
    assert payload["heart_rate_samples"][1]["bpm"] == 90.0


@pytest.mark.parametrize(
    "completed,expected",
    [
        ([0, 1, 2, 3], "Great Workout!"),
        ([0, 1, 2], "Nice Effort!"),
        ([0], "Every Step Counts!"),
    ],
)
def test_headline_thresholds(sample_record_payload, completed, expected) -> None:
    sample_record_payload.update(total_exercises=5, completed_indices=completed, skipped_indices=[])
    assert SessionRecord.from_dict(sample_record_payload).headline == expected


def test_no_heart_rate_samples(sample_record_payload) -> None:
    sample_record_payload["heart_rate_samples"] = []
    record = SessionRecord.from_dict(sample_record_payload)
    assert record.average_heart_rate is None
    assert record.max_heart_rate is None


def test_terminal_phases() -> None:
    assert Phase.COMPLETED.is_terminal
    assert Phase.CANCELLED.is_terminal
    assert not Phase.PAUSED.is_terminal


def test_render_exercise_start_cue() -> None:
    event = SessionEvent(EventKind.EXERCISE_START, index=0, exercise_name="Chair Stand", seconds=45)
    assert render_cue(event) == "Starting Chair Stand. This exercise is 45 seconds."

    longer = SessionEvent(EventKind.EXERCISE_START, index=1, exercise_name="Heel-to-Toe Walk", seconds=120)
    assert render_cue(longer) == "Starting Heel-to-Toe Walk. This exercise is 2 minutes."


def test_render_other_cues() -> None:
    assert render_cue(SessionEvent(EventKind.HALFWAY)) == HALFWAY_PHRASE
    assert render_cue(SessionEvent(EventKind.REST_START, seconds=15)) == "Rest for 15 seconds."
    assert render_cue(SessionEvent(EventKind.EXERCISE_COMPLETE), random.Random(3)) in EXERCISE_COMPLETE_PHRASES
    assert render_cue(SessionEvent(EventKind.TICK)) is None


def test_voice_coach_speaks_only_voice_events() -> None:
    spoken = []
    coach = VoiceCoach(spoken.append, rng=random.Random(1))
    coach.announce(SessionEvent(EventKind.TICK, seconds=4))
    coach.announce(SessionEvent(EventKind.PAUSED))
    coach.announce(SessionEvent(EventKind.HALFWAY))
    assert spoken == [HALFWAY_PHRASE]


def test_muted_voice_coach() -> None:
    spoken = []
    coach = VoiceCoach(spoken.append, enabled=False)
    coach.announce(SessionEvent(EventKind.HALFWAY))
    assert spoken == []


@pytest.mark.parametrize(
    "seconds,expected",
    [(0, "0:00"), (5, "0:05"), (75, "1:15"), (3725, "1:02:05"), (None, "0:00"), (-3, "0:00")],
)
def test_format_clock(seconds, expected) -> None:
    assert format_clock(seconds) == expected


@pytest.mark.parametrize(
    "seconds,expected",
    [(30, "30 seconds"), (60, "1 minute"), (90, "1 minute"), (180, "3 minutes")],
)
def test_format_spoken_duration(seconds, expected) -> None:
    assert format_spoken_duration(seconds) == expected
