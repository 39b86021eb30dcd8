"""Guided workout session engine.

The engine owns one workout attempt: the exercise snapshot, the current
position, per-exercise and per-rest countdowns, the pause flag and the
completed/skipped bookkeeping. It advances on ``tick()`` (one call per
second, counted, never caught up) and on explicit user commands.

Side effects go to injected collaborators: a voice coach (``announce``), a
companion channel and a history store (``save``). Observers registered with
``subscribe`` receive every :class:`SessionEvent` after the state change it
describes has been applied.

Callers must serialize all mutating calls; see :mod:`stride_cli.core.runner`.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from loguru import logger

from stride_cli.core.constants import END_POLICIES, END_POLICY_TRUST_LOCAL, END_POLICY_TRUST_REMOTE
from stride_cli.core.cues import EventKind, SessionEvent
from stride_cli.core.models import Exercise, HeartRateSample, Phase, Routine, SessionRecord
from stride_cli.utils.formatting import format_clock


class SessionError(RuntimeError):
    """Base class for engine programming errors."""


class EmptyRoutineError(SessionError):
    """Raised when starting a routine with no exercises."""


class SessionTerminatedError(SessionError):
    """Raised for mutating calls after Completed or Cancelled."""


class InvalidTransitionError(SessionError):
    """Raised for commands that do not apply to the current phase."""


Observer = Callable[[SessionEvent, "SessionEngine"], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SessionState:
    """Mutable state of one workout attempt."""

    session_id: str
    routine_id: str
    routine_name: str
    exercises: Tuple[Exercise, ...]
    rest_seconds: int
    started_at: datetime
    current_index: int = 0
    active_phase: Phase = Phase.EXERCISING
    is_paused: bool = False
    exercise_time_remaining: int = 0
    rest_time_remaining: int = 0
    total_elapsed: int = 0
    completed_indices: Set[int] = field(default_factory=set)
    skipped_indices: Set[int] = field(default_factory=set)
    halfway_announced: bool = False
    paused_at: Optional[datetime] = None
    paused_seconds: int = 0
    heart_rate_samples: List[HeartRateSample] = field(default_factory=list)
    ended_at: Optional[datetime] = None

    @property
    def phase(self) -> Phase:
        if self.is_paused and not self.active_phase.is_terminal:
            return Phase.PAUSED
        return self.active_phase

    @property
    def is_terminal(self) -> bool:
        return self.active_phase.is_terminal

    @property
    def current_exercise(self) -> Optional[Exercise]:
        if self.current_index < len(self.exercises):
            return self.exercises[self.current_index]
        return None


class SessionEngine:
    """State machine for a single guided workout session."""

    def __init__(
        self,
        voice: Any = None,
        companion: Any = None,
        store: Any = None,
        clock: Callable[[], datetime] = _utcnow,
        strict: bool = False,
        end_policy: str = END_POLICY_TRUST_LOCAL,
    ) -> None:
        if end_policy not in END_POLICIES:
            raise ValueError(f"Unknown companion end policy: {end_policy}")
        self.voice = voice
        self.companion = companion
        self.store = store
        self.clock = clock
        self.strict = strict
        self.end_policy = end_policy
        self.state: Optional[SessionState] = None
        self.record: Optional[SessionRecord] = None
        self.remote_summary: Optional[Dict[str, Any]] = None
        self._observers: List[Observer] = []

    # Observation

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer and return a callable that removes it."""
        self._observers.append(observer)

        def _unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _unsubscribe

    @property
    def phase(self) -> Optional[Phase]:
        return self.state.phase if self.state else None

    @property
    def is_active(self) -> bool:
        return self.state is not None and not self.state.is_terminal

    @property
    def current_exercise(self) -> Optional[Exercise]:
        return self.state.current_exercise if self.state else None

    @property
    def is_last_exercise(self) -> bool:
        if self.state is None:
            return False
        return self.state.current_index >= len(self.state.exercises) - 1

    @property
    def progress(self) -> float:
        if self.state is None or not self.state.exercises:
            return 0.0
        return len(self.state.completed_indices) / len(self.state.exercises)

    @property
    def formatted_time_remaining(self) -> str:
        if self.state is None:
            return format_clock(0)
        if self.state.active_phase == Phase.RESTING:
            return format_clock(self.state.rest_time_remaining)
        return format_clock(self.state.exercise_time_remaining)

    @property
    def formatted_total_time(self) -> str:
        return format_clock(self.state.total_elapsed if self.state else 0)

    # Commands

    def start(self, routine: Routine) -> SessionState:
        if self.state is not None:
            if self.state.is_terminal:
                raise SessionTerminatedError("Session already finished; create a new engine")
            raise InvalidTransitionError("Session already started")
        if not routine.exercises:
            raise EmptyRoutineError(f"Routine '{routine.name}' has no exercises")

        self.state = SessionState(
            session_id=uuid.uuid4().hex,
            routine_id=routine.id,
            routine_name=routine.name,
            exercises=tuple(routine.exercises),
            rest_seconds=max(int(routine.rest_between_exercises), 0),
            started_at=self.clock(),
        )
        logger.info(f"Starting '{routine.name}' with {len(routine.exercises)} exercises")
        if self.companion is not None:
            self.companion.start_workout(routine.name, [exercise.name for exercise in routine.exercises])
        self._begin_exercise()
        return self.state

    def tick(self) -> None:
        """Advance one second. Late ticks after the session ended are ignored."""
        state = self._state()
        if state.is_terminal or state.is_paused:
            return

        state.total_elapsed += 1
        if state.active_phase == Phase.EXERCISING:
            state.exercise_time_remaining = max(state.exercise_time_remaining - 1, 0)
            exercise = state.exercises[state.current_index]
            halfway = exercise.duration // 2
            if (
                not state.halfway_announced
                and halfway > 0
                and state.exercise_time_remaining <= halfway
            ):
                state.halfway_announced = True
                self._emit(
                    SessionEvent(
                        EventKind.HALFWAY,
                        index=state.current_index,
                        exercise_name=exercise.name,
                        seconds=state.exercise_time_remaining,
                    )
                )
            if state.exercise_time_remaining == 0:
                self._finish_exercise(completed=True)
        else:
            state.rest_time_remaining = max(state.rest_time_remaining - 1, 0)
            if state.rest_time_remaining == 0:
                self._advance()

        if not state.is_terminal:
            self._emit(SessionEvent(EventKind.TICK, index=state.current_index, seconds=state.total_elapsed))

    def pause(self) -> None:
        state = self._require_active()
        if state.is_paused:
            self._reject("Session is already paused")
            return
        state.is_paused = True
        state.paused_at = self.clock()
        logger.debug(f"Paused at exercise {state.current_index}")
        if self.companion is not None:
            self.companion.pause_workout()
        self._emit(SessionEvent(EventKind.PAUSED, index=state.current_index))

    def resume(self) -> None:
        state = self._require_active()
        if not state.is_paused:
            self._reject("Session is not paused")
            return
        self._close_pause(state)
        logger.debug(f"Resumed at exercise {state.current_index}")
        if self.companion is not None:
            self.companion.resume_workout()
        self._emit(SessionEvent(EventKind.RESUMED, index=state.current_index))

    def skip(self) -> None:
        state = self._require_active()
        if state.active_phase != Phase.EXERCISING:
            self._reject("Only an exercise in progress can be skipped")
            return
        self._finish_exercise(completed=False)

    def complete_current(self) -> None:
        """Mark the current exercise done early."""
        state = self._require_active()
        if state.active_phase != Phase.EXERCISING:
            self._reject("Only an exercise in progress can be completed")
            return
        state.exercise_time_remaining = 0
        self._finish_exercise(completed=True)

    def cancel(self) -> None:
        state = self._require_active()
        self._cancel(state, notify_companion=True)

    # Inbound companion traffic

    def record_heart_rate(self, bpm: float) -> None:
        if not self.is_active or self.state is None:
            return
        self.state.heart_rate_samples.append(HeartRateSample(timestamp=self.clock(), bpm=float(bpm)))
        self._emit(SessionEvent(EventKind.HEART_RATE, index=self.state.current_index, seconds=int(round(bpm))))

    def posture_alert(self, message: str) -> None:
        self._emit(SessionEvent(EventKind.POSTURE_ALERT, message=message))

    def companion_ended(self, summary: Optional[Dict[str, Any]] = None) -> None:
        """Companion ended the workout out of band."""
        if not self.is_active or self.state is None:
            return
        self.remote_summary = dict(summary or {})
        logger.info(f"Companion ended the workout (policy {self.end_policy})")
        self._emit(SessionEvent(EventKind.COMPANION_ENDED, index=self.state.current_index))
        if self.end_policy == END_POLICY_TRUST_REMOTE:
            self._cancel(self.state, notify_companion=False)

    # Transitions

    def _begin_exercise(self) -> None:
        state = self._state()
        exercise = state.exercises[state.current_index]
        state.active_phase = Phase.EXERCISING
        state.exercise_time_remaining = exercise.duration
        state.rest_time_remaining = 0
        state.halfway_announced = False
        logger.debug(f"Exercise {state.current_index} '{exercise.name}' for {exercise.duration}s")
        self._emit(
            SessionEvent(
                EventKind.EXERCISE_START,
                index=state.current_index,
                exercise_name=exercise.name,
                seconds=exercise.duration,
            )
        )
        if self.companion is not None:
            self.companion.exercise_changed(exercise.name, exercise.duration, exercise.first_instruction)

    def _finish_exercise(self, completed: bool) -> None:
        state = self._state()
        index = state.current_index
        exercise = state.exercises[index]
        state.exercise_time_remaining = 0
        if completed:
            state.completed_indices.add(index)
            self._emit(SessionEvent(EventKind.EXERCISE_COMPLETE, index=index, exercise_name=exercise.name))
        else:
            state.skipped_indices.add(index)
            self._emit(SessionEvent(EventKind.EXERCISE_SKIPPED, index=index, exercise_name=exercise.name))

        if index >= len(state.exercises) - 1:
            self._complete_workout()
        else:
            self._begin_rest()

    def _begin_rest(self) -> None:
        state = self._state()
        if state.rest_seconds <= 0:
            self._advance()
            return
        state.active_phase = Phase.RESTING
        state.rest_time_remaining = state.rest_seconds
        self._emit(SessionEvent(EventKind.REST_START, index=state.current_index, seconds=state.rest_seconds))

    def _advance(self) -> None:
        state = self._state()
        state.current_index += 1
        if state.current_index >= len(state.exercises):
            self._complete_workout()
            return
        self._begin_exercise()

    def _complete_workout(self) -> None:
        state = self._state()
        state.current_index = len(state.exercises)
        state.active_phase = Phase.COMPLETED
        state.exercise_time_remaining = 0
        state.rest_time_remaining = 0
        self._close_pause(state)
        state.ended_at = self.clock()
        self.record = self._build_record(state)
        logger.info(
            f"Completed '{state.routine_name}': {len(state.completed_indices)}/{len(state.exercises)} "
            f"exercises in {state.total_elapsed}s"
        )
        if self.companion is not None:
            self.companion.end_workout()
        if self.store is not None:
            self.store.save(self.record)
        self._emit(SessionEvent(EventKind.WORKOUT_COMPLETE, seconds=state.total_elapsed))

    def _cancel(self, state: SessionState, notify_companion: bool) -> None:
        state.active_phase = Phase.CANCELLED
        self._close_pause(state)
        state.ended_at = self.clock()
        logger.info(f"Cancelled '{state.routine_name}' at exercise {state.current_index}")
        if notify_companion and self.companion is not None:
            self.companion.end_workout()
        self._emit(SessionEvent(EventKind.CANCELLED, index=state.current_index))

    def _build_record(self, state: SessionState) -> SessionRecord:
        return SessionRecord(
            session_id=state.session_id,
            routine_id=state.routine_id,
            routine_name=state.routine_name,
            total_exercises=len(state.exercises),
            completed_indices=tuple(sorted(state.completed_indices)),
            skipped_indices=tuple(sorted(state.skipped_indices)),
            total_elapsed=state.total_elapsed,
            started_at=state.started_at,
            ended_at=state.ended_at or self.clock(),
            paused_seconds=state.paused_seconds,
            heart_rate_samples=tuple(state.heart_rate_samples),
        )

    # Helpers

    def _close_pause(self, state: SessionState) -> None:
        if state.is_paused and state.paused_at is not None:
            state.paused_seconds += max(int((self.clock() - state.paused_at).total_seconds()), 0)
        state.is_paused = False
        state.paused_at = None

    def _reject(self, reason: str) -> None:
        if self.strict:
            raise InvalidTransitionError(reason)
        logger.debug(f"Ignored command: {reason}")

    def _state(self) -> SessionState:
        if self.state is None:
            raise InvalidTransitionError("No session has been started")
        return self.state

    def _require_active(self) -> SessionState:
        state = self._state()
        if state.is_terminal:
            raise SessionTerminatedError(f"Session is {state.active_phase.value}")
        return state

    def _emit(self, event: SessionEvent) -> None:
        if self.voice is not None:
            try:
                self.voice.announce(event)
            except Exception as exc:
                logger.error(f"Voice cue failed for {event.kind.value}: {exc}")
        for observer in list(self._observers):
            try:
                observer(event, self)
            except Exception as exc:
                logger.error(f"Session observer failed for {event.kind.value}: {exc}")
