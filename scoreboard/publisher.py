"""
scoreboard/publisher.py - Fan-out of snapshots to connected displays.

Each subscriber gets its own outbox and sender task, so publishing never
awaits a socket. A slow subscriber only loses its own oldest pending
messages; a broken one is dropped on its first failed send.
"""

import asyncio
import logging
from typing import Any, Protocol

logger = logging.getLogger(__name__)

UPDATE_DISPLAY = "update-display"
UPDATE_HISTORY = "update-history"
TIMER_FINISHED = "timer-finished"


class Socket(Protocol):
    async def accept(self) -> None: ...

    async def send_json(self, data: Any) -> None: ...


class Subscriber:
    """One connected socket with a bounded outbox."""

    def __init__(self, websocket: Socket, role: str = "display", max_pending: int = 64):
        self.websocket = websocket
        self.role = role
        self.outbox: asyncio.Queue[dict] = asyncio.Queue(maxsize=max_pending)
        self.task: asyncio.Task | None = None
        self.dropped = 0

    def offer(self, message: dict) -> None:
        """Queue a message without waiting. Full outbox drops the oldest entry."""
        if self.outbox.full():
            self.outbox.get_nowait()
            self.dropped += 1
            logger.debug(f"Outbox full for {self.role} subscriber, dropped oldest message")
        self.outbox.put_nowait(message)


class BroadcastPublisher:
    """Manages WebSocket subscribers for the live scoreboard."""

    def __init__(self, max_pending: int = 64):
        self._subscribers: list[Subscriber] = []
        self._max_pending = max_pending
        self._dropped_gone = 0

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def dropped_messages(self) -> int:
        """Messages lost to full outboxes since startup, across all subscribers."""
        return self._dropped_gone + sum(sub.dropped for sub in self._subscribers)

    async def connect(self, websocket: Socket, role: str = "display") -> Subscriber:
        await websocket.accept()
        sub = Subscriber(websocket, role, self._max_pending)
        sub.task = asyncio.get_running_loop().create_task(self._pump(sub))
        self._subscribers.append(sub)
        logger.info(f"{role.capitalize()} connected ({len(self._subscribers)} total)")
        return sub

    def disconnect(self, sub: Subscriber) -> None:
        if sub in self._subscribers:
            self._subscribers.remove(sub)
            self._dropped_gone += sub.dropped
            logger.info(f"{sub.role.capitalize()} disconnected ({len(self._subscribers)} total)")
        if sub.task is not None and sub.task is not asyncio.current_task():
            sub.task.cancel()
        sub.task = None

    def broadcast(self, message: dict) -> int:
        """Offer a message to every subscriber. Returns how many were offered."""
        for sub in list(self._subscribers):
            sub.offer(message)
        return len(self._subscribers)

    def send(self, sub: Subscriber, message: dict) -> None:
        """Message for one subscriber only, ordered with its broadcasts."""
        sub.offer(message)

    def publish_state(self, snapshot: dict) -> int:
        return self.broadcast({"type": UPDATE_DISPLAY, "data": snapshot})

    def publish_history(self, records: list[dict]) -> int:
        return self.broadcast({"type": UPDATE_HISTORY, "data": records})

    def publish_timer_finished(self) -> int:
        return self.broadcast({"type": TIMER_FINISHED})

    async def drain(self) -> None:
        """Wait until every outbox is empty. Mostly useful in tests."""
        while any(not sub.outbox.empty() for sub in self._subscribers):
            await asyncio.sleep(0)

    async def close(self) -> None:
        """Stop every sender task."""
        subs = list(self._subscribers)
        for sub in subs:
            task = sub.task
            self.disconnect(sub)
            if task is not None:
                try:
                    await task
                except asyncio.CancelledError:
                    pass

    async def _pump(self, sub: Subscriber) -> None:
        while True:
            message = await sub.outbox.get()
            try:
                await sub.websocket.send_json(message)
            except Exception as e:
                logger.warning(f"Dropping {sub.role} subscriber after failed send: {e}")
                self.disconnect(sub)
                return
