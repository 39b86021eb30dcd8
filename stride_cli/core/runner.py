"""Single ordered mailbox feeding the session engine.

Three sources produce work for an engine: the one-second clock, user
commands from the presentation layer, and inbound companion messages. The
runner merges them into one ``asyncio.Queue`` and applies them one at a time,
so no two mutations of a session ever interleave.
"""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass
from enum import Enum
from typing import IO, Any, Callable, Dict, List, Optional

from loguru import logger

from stride_cli.core.companion import CompanionChannel
from stride_cli.core.constants import MSG_END_WORKOUT, MSG_HEART_RATE_UPDATE, MSG_POSTURE_ALERT
from stride_cli.core.engine import InvalidTransitionError, SessionEngine, SessionState
from stride_cli.core.models import Routine


class Command(str, Enum):
    TICK = "tick"
    PAUSE = "pause"
    RESUME = "resume"
    SKIP = "skip"
    COMPLETE = "complete"
    CANCEL = "cancel"
    HEART_RATE = "heart_rate"
    POSTURE_ALERT = "posture_alert"
    COMPANION_END = "companion_end"


# Console keys, one per line on stdin.
KEY_COMMANDS: Dict[str, Command] = {
    "p": Command.PAUSE,
    "r": Command.RESUME,
    "s": Command.SKIP,
    "d": Command.COMPLETE,
    "q": Command.CANCEL,
}


@dataclass(frozen=True)
class Envelope:
    command: Command
    payload: Any = None


class SessionRunner:
    """Drives one engine from a ticker task plus externally submitted commands."""

    def __init__(
        self,
        engine: SessionEngine,
        tick_seconds: float = 1.0,
        companion: Optional[CompanionChannel] = None,
    ) -> None:
        self.engine = engine
        self.tick_seconds = max(float(tick_seconds), 0.0)
        self.companion = companion
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._queue: Optional["asyncio.Queue[Envelope]"] = None
        self._backlog: List[Envelope] = []

    def submit(self, command: Command, payload: Any = None) -> None:
        """Enqueue a command. Safe to call from any thread."""
        envelope = Envelope(command, payload)
        if self._loop is None or self._queue is None:
            self._backlog.append(envelope)
            return
        self._loop.call_soon_threadsafe(self._queue.put_nowait, envelope)

    def dispatch(self, envelope: Envelope) -> None:
        engine = self.engine
        command = envelope.command
        if command == Command.TICK:
            engine.tick()
        elif command == Command.PAUSE:
            engine.pause()
        elif command == Command.RESUME:
            engine.resume()
        elif command == Command.SKIP:
            engine.skip()
        elif command == Command.COMPLETE:
            engine.complete_current()
        elif command == Command.CANCEL:
            engine.cancel()
        elif command == Command.HEART_RATE:
            engine.record_heart_rate(float(envelope.payload))
        elif command == Command.POSTURE_ALERT:
            engine.posture_alert(str(envelope.payload))
        elif command == Command.COMPANION_END:
            engine.companion_ended(envelope.payload)

    async def run(self, routine: Routine) -> SessionState:
        """Start ``routine`` and process the mailbox until the session ends."""
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        backlog, self._backlog = self._backlog, []
        for envelope in backlog:
            self._queue.put_nowait(envelope)

        if self.companion is not None:
            self.companion.add_listener(self._on_companion_message)

        ticker: Optional["asyncio.Task[None]"] = None
        try:
            state = self.engine.start(routine)
            ticker = asyncio.create_task(self._ticker())
            while self.engine.is_active:
                envelope = await self._queue.get()
                try:
                    self.dispatch(envelope)
                except InvalidTransitionError as exc:
                    logger.warning(f"Rejected {envelope.command.value}: {exc}")
            dropped = self._queue.qsize()
            if dropped:
                logger.debug(f"Discarding {dropped} command(s) queued after the session ended")
            return state
        finally:
            if ticker is not None:
                ticker.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await ticker
            if self.companion is not None:
                self.companion.remove_listener(self._on_companion_message)
            self._loop = None
            self._queue = None

    async def _ticker(self) -> None:
        while True:
            await asyncio.sleep(self.tick_seconds)
            if self._queue is None:
                return
            self._queue.put_nowait(Envelope(Command.TICK))

    def _on_companion_message(self, message_type: str, payload: Any) -> None:
        if message_type == MSG_HEART_RATE_UPDATE:
            self.submit(Command.HEART_RATE, payload.get("heartRate"))
        elif message_type == MSG_POSTURE_ALERT:
            self.submit(Command.POSTURE_ALERT, payload.get("message", ""))
        elif message_type == MSG_END_WORKOUT:
            self.submit(Command.COMPANION_END, payload)


def run_session(runner: SessionRunner, routine: Routine) -> SessionState:
    """Blocking wrapper around :meth:`SessionRunner.run`."""
    return asyncio.run(runner.run(routine))


def read_commands(stream: IO[str], submit: Callable[[Command], None]) -> None:
    """Submit one command per recognised key line until ``stream`` ends."""
    for line in stream:
        key = line.strip().lower()[:1]
        if not key:
            continue
        command = KEY_COMMANDS.get(key)
        if command is None:
            logger.debug(f"Ignoring unknown control key {key!r}")
            continue
        submit(command)
        if command == Command.CANCEL:
            return
