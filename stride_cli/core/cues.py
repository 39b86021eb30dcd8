"""Session events emitted by the engine and the voice coach that speaks them."""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from loguru import logger

from stride_cli.core.constants import (
    EXERCISE_COMPLETE_PHRASES,
    HALFWAY_PHRASE,
    WORKOUT_COMPLETE_PHRASE,
)
from stride_cli.utils.formatting import format_spoken_duration


class EventKind(str, Enum):
    EXERCISE_START = "exercise_start"
    HALFWAY = "halfway"
    EXERCISE_COMPLETE = "exercise_complete"
    EXERCISE_SKIPPED = "exercise_skipped"
    REST_START = "rest_start"
    WORKOUT_COMPLETE = "workout_complete"
    PAUSED = "paused"
    RESUMED = "resumed"
    CANCELLED = "cancelled"
    TICK = "tick"
    HEART_RATE = "heart_rate"
    POSTURE_ALERT = "posture_alert"
    COMPANION_ENDED = "companion_ended"


VOICE_EVENTS = {
    EventKind.EXERCISE_START,
    EventKind.HALFWAY,
    EventKind.EXERCISE_COMPLETE,
    EventKind.REST_START,
    EventKind.WORKOUT_COMPLETE,
}


@dataclass(frozen=True)
class SessionEvent:
    """Which event fired and with what parameters."""

    kind: EventKind
    index: Optional[int] = None
    exercise_name: Optional[str] = None
    seconds: Optional[int] = None
    message: Optional[str] = None


def render_cue(event: SessionEvent, rng: Optional[random.Random] = None) -> Optional[str]:
    """Return the spoken line for an event, or None when nothing is said."""
    if event.kind == EventKind.EXERCISE_START:
        duration_text = format_spoken_duration(event.seconds or 0)
        return f"Starting {event.exercise_name}. This exercise is {duration_text}."
    if event.kind == EventKind.HALFWAY:
        return HALFWAY_PHRASE
    if event.kind == EventKind.EXERCISE_COMPLETE:
        return (rng or random).choice(EXERCISE_COMPLETE_PHRASES)
    if event.kind == EventKind.REST_START:
        return f"Rest for {event.seconds} seconds."
    if event.kind == EventKind.WORKOUT_COMPLETE:
        return WORKOUT_COMPLETE_PHRASE
    return None


class VoiceCoach:
    """Turns engine cues into speech through a pluggable ``speak`` callable."""

    def __init__(
        self,
        speak: Callable[[str], None],
        enabled: bool = True,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.speak = speak
        self.enabled = enabled
        self.rng = rng or random.Random()

    def announce(self, event: SessionEvent) -> None:
        if not self.enabled or event.kind not in VOICE_EVENTS:
            return
        text = render_cue(event, self.rng)
        if text:
            logger.debug(f"Voice cue {event.kind.value}: {text}")
            self.speak(text)
