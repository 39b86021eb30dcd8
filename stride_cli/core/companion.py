"""Best-effort message channel between the primary device and a companion wearable.

Outbound real-time commands (start, pause, resume, end, exercise change,
posture alert) are tried once and dropped when the companion is unreachable.
Progress sync uses an application-context slot: the newest payload replaces
any payload that has not been delivered yet, and it is flushed when the
companion becomes reachable again.

Nothing here raises into the caller. Transport failures are logged and the
channel moves on.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, List, Optional, Sequence

from loguru import logger

from stride_cli.core.constants import (
    MSG_END_WORKOUT,
    MSG_EXERCISE_CHANGE,
    MSG_HEART_RATE_UPDATE,
    MSG_PAUSE_WORKOUT,
    MSG_POSTURE_ALERT,
    MSG_REQUEST_HEART_RATE,
    MSG_RESUME_WORKOUT,
    MSG_START_WORKOUT,
    MESSAGE_TYPES,
)

Message = Dict[str, Any]
ReplyHandler = Callable[[Message], None]
InboundListener = Callable[[str, Message], None]

INBOUND_WORKOUT_DATA = "workoutData"


class CompanionTransport:
    """Boundary to the platform messaging session.

    Subclasses deliver payloads to the wearable. ``send_message`` and
    ``update_application_context`` may raise; the channel absorbs it.
    """

    @property
    def is_reachable(self) -> bool:
        raise NotImplementedError

    def send_message(self, message: Message, reply_handler: Optional[ReplyHandler] = None) -> None:
        raise NotImplementedError

    def update_application_context(self, context: Message) -> None:
        raise NotImplementedError


class InMemoryTransport(CompanionTransport):
    """Transport that keeps every delivered payload in memory."""

    def __init__(self, reachable: bool = True) -> None:
        self.reachable = reachable
        self.sent: List[Message] = []
        self.contexts: List[Message] = []
        self.heart_rate_reply: Optional[float] = None

    @property
    def is_reachable(self) -> bool:
        return self.reachable

    def send_message(self, message: Message, reply_handler: Optional[ReplyHandler] = None) -> None:
        self.sent.append(dict(message))
        if reply_handler is None:
            return
        if message.get("type") == MSG_REQUEST_HEART_RATE and self.heart_rate_reply is not None:
            reply_handler({"heartRate": self.heart_rate_reply})
        else:
            reply_handler({"received": True})

    def update_application_context(self, context: Message) -> None:
        self.contexts.append(dict(context))

    def sent_types(self) -> List[str]:
        return [str(message.get("type")) for message in self.sent]


class CompanionChannel:
    """Fire-and-forget outbound sends plus inbound dispatch to listeners."""

    def __init__(
        self,
        transport: Optional[CompanionTransport] = None,
        enabled: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.transport = transport
        self.enabled = enabled
        self.clock = clock
        self.current_heart_rate: Optional[float] = None
        self.is_workout_active = False
        self.last_sync: Optional[float] = None
        self._pending_context: Optional[Message] = None
        self._listeners: List[InboundListener] = []

    @property
    def is_reachable(self) -> bool:
        if not self.enabled or self.transport is None:
            return False
        try:
            return bool(self.transport.is_reachable)
        except Exception as exc:
            logger.error(f"Companion reachability check failed: {exc}")
            return False

    @property
    def has_pending_context(self) -> bool:
        return self._pending_context is not None

    def add_listener(self, listener: InboundListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: InboundListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # Outbound

    def send(
        self,
        message_type: str,
        data: Optional[Message] = None,
        reply_handler: Optional[ReplyHandler] = None,
    ) -> bool:
        """Try once to deliver a real-time message. Returns whether it went out."""
        if not self.is_reachable or self.transport is None:
            logger.warning(f"Companion is not reachable, dropping {message_type}")
            return False

        message: Message = dict(data or {})
        message["type"] = message_type
        message["timestamp"] = self.clock()
        try:
            self.transport.send_message(message, reply_handler)
        except Exception as exc:
            logger.error(f"Error sending {message_type} to companion: {exc}")
            return False
        logger.debug(f"Sent {message_type} to companion")
        return True

    def start_workout(self, routine_name: str, exercise_names: Sequence[str]) -> None:
        self.send(
            MSG_START_WORKOUT,
            {
                "routineName": routine_name,
                "exercises": list(exercise_names),
                "startTime": self.clock(),
            },
        )
        self.is_workout_active = True

    def pause_workout(self) -> None:
        self.send(MSG_PAUSE_WORKOUT)

    def resume_workout(self) -> None:
        self.send(MSG_RESUME_WORKOUT)

    def end_workout(self) -> None:
        self.send(MSG_END_WORKOUT)
        self.is_workout_active = False

    def exercise_changed(self, name: str, duration_seconds: int, first_instruction: str) -> None:
        self.send(
            MSG_EXERCISE_CHANGE,
            {
                "exerciseName": name,
                "duration": duration_seconds,
                "instructions": first_instruction,
            },
        )

    def send_posture_alert(self, message: str) -> None:
        self.send(MSG_POSTURE_ALERT, {"message": message, "vibrate": True})

    def request_heart_rate(self) -> None:
        def _on_reply(reply: Message) -> None:
            heart_rate = reply.get("heartRate")
            if isinstance(heart_rate, (int, float)):
                self._set_heart_rate(float(heart_rate))

        self.send(MSG_REQUEST_HEART_RATE, reply_handler=_on_reply)

    def sync_progress(self, streak: int, today_completed: bool, weekly_progress: Dict[str, bool]) -> None:
        """Queue latest progress context; replaces anything not yet delivered."""
        self._pending_context = {
            "streak": streak,
            "todayCompleted": today_completed,
            "weeklyProgress": dict(weekly_progress),
            "lastSync": self.clock(),
        }
        self.flush_context()

    def flush_context(self) -> bool:
        if self._pending_context is None:
            return False
        if not self.is_reachable or self.transport is None:
            logger.debug("Companion unreachable, progress context kept for later delivery")
            return False
        try:
            self.transport.update_application_context(self._pending_context)
        except Exception as exc:
            logger.error(f"Error updating companion application context: {exc}")
            return False
        self._pending_context = None
        self.last_sync = self.clock()
        return True

    def reachability_changed(self) -> None:
        """Called by the transport whenever reachability flips."""
        if self.is_reachable:
            logger.info("Companion reachable")
            self.flush_context()
        else:
            logger.info("Companion unreachable")

    # Inbound

    def receive_message(self, message: Message, reply_handler: Optional[ReplyHandler] = None) -> None:
        message_type = message.get("type")
        if message_type not in MESSAGE_TYPES:
            logger.debug(f"Ignoring companion message of unknown type {message_type!r}")
            return

        if message_type == MSG_HEART_RATE_UPDATE:
            heart_rate = message.get("heartRate")
            if isinstance(heart_rate, (int, float)):
                self._set_heart_rate(float(heart_rate))
        elif message_type == MSG_POSTURE_ALERT:
            alert = message.get("message")
            if isinstance(alert, str):
                self._notify(MSG_POSTURE_ALERT, {"message": alert})
        elif message_type == MSG_END_WORKOUT:
            self.is_workout_active = False
            summary = message.get("summary")
            self._notify(MSG_END_WORKOUT, dict(summary) if isinstance(summary, dict) else {})

        if reply_handler is not None:
            try:
                reply_handler({"received": True})
            except Exception as exc:
                logger.error(f"Companion reply handler failed: {exc}")

    def receive_user_info(self, user_info: Message) -> None:
        workout_data = user_info.get(INBOUND_WORKOUT_DATA)
        if isinstance(workout_data, dict):
            self._notify(INBOUND_WORKOUT_DATA, dict(workout_data))

    def receive_application_context(self, context: Message) -> None:
        heart_rate = context.get("currentHeartRate")
        if isinstance(heart_rate, (int, float)):
            self._set_heart_rate(float(heart_rate))

    def _set_heart_rate(self, bpm: float) -> None:
        self.current_heart_rate = bpm
        self._notify(MSG_HEART_RATE_UPDATE, {"heartRate": bpm})

    def _notify(self, message_type: str, payload: Message) -> None:
        for listener in list(self._listeners):
            try:
                listener(message_type, payload)
            except Exception as exc:
                logger.error(f"Companion listener failed for {message_type}: {exc}")
