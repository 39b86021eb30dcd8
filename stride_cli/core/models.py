"""Data models shared by the engine, the companion channel and the history store."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from stride_cli.core.constants import (
    DEFAULT_REST_SECONDS,
    HEADLINE_EVERY_STEP,
    HEADLINE_NICE_EFFORT,
    HEADLINE_SUCCESS,
    NICE_EFFORT_RATIO,
    SUCCESSFUL_COMPLETION_RATIO,
)


class Phase(str, Enum):
    """Engine sub-state as seen by the presentation layer."""

    EXERCISING = "exercising"
    RESTING = "resting"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (Phase.COMPLETED, Phase.CANCELLED)


@dataclass(frozen=True)
class Exercise:
    """One timed movement within a routine."""

    id: str
    name: str
    duration: int
    instructions: Tuple[str, ...] = ()
    category: str = "balance"
    difficulty: str = "easy"
    description: str = ""

    @property
    def first_instruction(self) -> str:
        return self.instructions[0] if self.instructions else ""


@dataclass(frozen=True)
class Routine:
    """Ordered template of exercises run as one workout."""

    id: str
    name: str
    exercises: Tuple[Exercise, ...]
    rest_between_exercises: int = DEFAULT_REST_SECONDS
    description: str = ""
    category: str = "balance"

    @property
    def estimated_seconds(self) -> int:
        work = sum(exercise.duration for exercise in self.exercises)
        rest = self.rest_between_exercises * max(len(self.exercises) - 1, 0)
        return work + rest


@dataclass(frozen=True)
class HeartRateSample:
    timestamp: datetime
    bpm: float
    source: str = "watch"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "bpm": self.bpm,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "HeartRateSample":
        return cls(
            timestamp=datetime.fromisoformat(payload["timestamp"]),
            bpm=float(payload["bpm"]),
            source=str(payload.get("source", "watch")),
        )


@dataclass(frozen=True)
class SessionRecord:
    """Immutable summary of a session that reached Completed."""

    session_id: str
    routine_id: str
    routine_name: str
    total_exercises: int
    completed_indices: Tuple[int, ...]
    skipped_indices: Tuple[int, ...]
    total_elapsed: int
    started_at: datetime
    ended_at: datetime
    paused_seconds: int = 0
    heart_rate_samples: Tuple[HeartRateSample, ...] = field(default_factory=tuple)
    status: str = "completed"

    @property
    def completion_ratio(self) -> float:
        if not self.total_exercises:
            return 0.0
        return len(self.completed_indices) / self.total_exercises

    @property
    def was_successful(self) -> bool:
        return self.completion_ratio >= SUCCESSFUL_COMPLETION_RATIO

    @property
    def headline(self) -> str:
        if self.was_successful:
            return HEADLINE_SUCCESS
        if self.completion_ratio >= NICE_EFFORT_RATIO:
            return HEADLINE_NICE_EFFORT
        return HEADLINE_EVERY_STEP

    @property
    def average_heart_rate(self) -> Optional[float]:
        if not self.heart_rate_samples:
            return None
        return sum(sample.bpm for sample in self.heart_rate_samples) / len(self.heart_rate_samples)

    @property
    def max_heart_rate(self) -> Optional[float]:
        if not self.heart_rate_samples:
            return None
        return max(sample.bpm for sample in self.heart_rate_samples)

    @property
    def min_heart_rate(self) -> Optional[float]:
        if not self.heart_rate_samples:
            return None
        return min(sample.bpm for sample in self.heart_rate_samples)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "routine_id": self.routine_id,
            "routine_name": self.routine_name,
            "total_exercises": self.total_exercises,
            "completed_indices": list(self.completed_indices),
            "skipped_indices": list(self.skipped_indices),
            "total_elapsed": self.total_elapsed,
            "paused_seconds": self.paused_seconds,
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat(),
            "completion_ratio": round(self.completion_ratio, 4),
            "status": self.status,
            "heart_rate_samples": [sample.to_dict() for sample in self.heart_rate_samples],
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "SessionRecord":
        return cls(
            session_id=str(payload["session_id"]),
            routine_id=str(payload.get("routine_id", "")),
            routine_name=str(payload.get("routine_name", "")),
            total_exercises=int(payload["total_exercises"]),
            completed_indices=tuple(int(i) for i in payload.get("completed_indices", [])),
            skipped_indices=tuple(int(i) for i in payload.get("skipped_indices", [])),
            total_elapsed=int(payload.get("total_elapsed", 0)),
            paused_seconds=int(payload.get("paused_seconds", 0)),
            started_at=datetime.fromisoformat(payload["started_at"]),
            ended_at=datetime.fromisoformat(payload["ended_at"]),
            heart_rate_samples=tuple(
                HeartRateSample.from_dict(item) for item in payload.get("heart_rate_samples", [])
            ),
            status=str(payload.get("status", "completed")),
        )
