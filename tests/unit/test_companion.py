from __future__ import annotations

from typing import Any, Dict, List, Tuple

from loguru import logger

from stride_cli.core.companion import CompanionChannel, InMemoryTransport


def _listen(channel: CompanionChannel) -> List[Tuple[str, Dict[str, Any]]]:
    received: List[Tuple[str, Dict[str, Any]]] = []
    channel.add_listener(lambda message_type, payload: received.append((message_type, payload)))
    return received


def test_send_adds_envelope(channel: CompanionChannel, transport: InMemoryTransport) -> None:
    channel.exercise_changed("Chair Stand", 45, "Sit in a sturdy chair")
    assert transport.sent == [
        {
            "exerciseName": "Chair Stand",
            "duration": 45,
            "instructions": "Sit in a sturdy chair",
            "type": "exerciseChange",
            "timestamp": 1700000000.0,
        }
    ]


def test_unreachable_drops_realtime_messages_and_logs(transport: InMemoryTransport) -> None:
    messages: List[str] = []
    logger.add(lambda message: messages.append(str(message)), level="WARNING")
    transport.reachable = False
    channel = CompanionChannel(transport=transport)

    channel.pause_workout()
    transport.reachable = True
    channel.reachability_changed()

    assert transport.sent == []
    assert any("dropping pauseWorkout" in message for message in messages)


def test_disabled_channel_never_sends(transport: InMemoryTransport) -> None:
    channel = CompanionChannel(transport=transport, enabled=False)
    channel.start_workout("Routine", ["A"])
    assert channel.is_reachable is False
    assert transport.sent == []


def test_start_and_end_track_active_flag(channel: CompanionChannel, transport: InMemoryTransport) -> None:
    channel.start_workout("Posture Perfect", ["Shoulder Rolls", "Chin Tucks"])
    assert channel.is_workout_active is True
    assert transport.sent[0]["routineName"] == "Posture Perfect"
    channel.end_workout()
    assert channel.is_workout_active is False
    assert transport.sent_types() == ["startWorkout", "endWorkout"]


def test_sync_progress_delivers_immediately_when_reachable(
    channel: CompanionChannel, transport: InMemoryTransport
) -> None:
    channel.sync_progress(3, True, {"Monday": True})
    assert transport.contexts == [
        {"streak": 3, "todayCompleted": True, "weeklyProgress": {"Monday": True}, "lastSync": 1700000000.0}
    ]
    assert channel.has_pending_context is False
    assert channel.last_sync == 1700000000.0


def test_sync_progress_latest_wins_while_unreachable(transport: InMemoryTransport) -> None:
    transport.reachable = False
    channel = CompanionChannel(transport=transport, clock=lambda: 1.0)

    channel.sync_progress(1, False, {})
    channel.sync_progress(2, True, {"Tuesday": True})
    assert transport.contexts == []
    assert channel.has_pending_context is True

    transport.reachable = True
    channel.reachability_changed()
    assert len(transport.contexts) == 1
    assert transport.contexts[0]["streak"] == 2
    assert channel.has_pending_context is False


def test_heart_rate_update_is_stored_and_forwarded(channel: CompanionChannel) -> None:
    received = _listen(channel)
    channel.receive_message({"type": "heartRateUpdate", "heartRate": 72.0})
    assert channel.current_heart_rate == 72.0
    assert received == [("heartRateUpdate", {"heartRate": 72.0})]


def test_posture_alert_is_forwarded(channel: CompanionChannel) -> None:
    received = _listen(channel)
    replies: List[Dict[str, Any]] = []
    channel.receive_message({"type": "postureAlert", "message": "Stand tall"}, replies.append)
    assert received == [("postureAlert", {"message": "Stand tall"})]
    assert replies == [{"received": True}]


def test_end_workout_from_companion_clears_active_flag(channel: CompanionChannel) -> None:
    received = _listen(channel)
    channel.start_workout("Routine", ["A"])
    channel.receive_message({"type": "endWorkout", "summary": {"duration": 300}})
    assert channel.is_workout_active is False
    assert received == [("endWorkout", {"duration": 300})]


def test_unknown_inbound_type_is_ignored(channel: CompanionChannel) -> None:
    received = _listen(channel)
    channel.receive_message({"type": "teleport"})
    channel.receive_message({})
    assert received == []


def test_application_context_and_user_info(channel: CompanionChannel) -> None:
    received = _listen(channel)
    channel.receive_application_context({"currentHeartRate": 88})
    channel.receive_user_info({"workoutData": {"steps": 120}})
    assert channel.current_heart_rate == 88.0
    assert received[-1] == ("workoutData", {"steps": 120})


def test_request_heart_rate_uses_reply(channel: CompanionChannel, transport: InMemoryTransport) -> None:
    transport.heart_rate_reply = 95.0
    channel.request_heart_rate()
    assert transport.sent_types() == ["requestHeartRate"]
    assert channel.current_heart_rate == 95.0


def test_failing_listener_does_not_break_dispatch(channel: CompanionChannel) -> None:
    def _boom(message_type: str, payload: Dict[str, Any]) -> None:
        raise RuntimeError("listener bug")

    received = []
    channel.add_listener(_boom)
    channel.add_listener(lambda message_type, payload: received.append(message_type))
    channel.receive_message({"type": "heartRateUpdate", "heartRate": 70})
    assert received == ["heartRateUpdate"]


def test_posture_alert_outbound_vibrates(channel: CompanionChannel, transport: InMemoryTransport) -> None:
    channel.send_posture_alert("Check your posture")
    assert transport.sent[0]["vibrate"] is True
    assert transport.sent[0]["type"] == "postureAlert"
