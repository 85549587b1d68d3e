"""Shared test doubles."""

import asyncio

from ringside.config import MatchConfig
from scoreboard.db import MatchHistoryStore
from scoreboard.publisher import BroadcastPublisher
from scoreboard.session import MatchSession


class FakeSocket:
    """Records everything sent to it. Optionally fails or blocks on send."""

    def __init__(self, fail: bool = False, gate: asyncio.Event | None = None):
        self.accepted = False
        self.sent: list[dict] = []
        self.fail = fail
        self.gate = gate

    async def accept(self):
        self.accepted = True

    async def send_json(self, data):
        if self.fail:
            raise ConnectionError("socket gone")
        if self.gate is not None:
            await self.gate.wait()
        self.sent.append(data)

    def types(self) -> list[str]:
        return [m["type"] for m in self.sent]

    def last(self, message_type: str) -> dict:
        return [m for m in self.sent if m["type"] == message_type][-1]


def make_session(round_seconds: int = 60, tick_interval: float = 3600, store=None) -> MatchSession:
    """Session over an in-memory store. Default tick never fires during a test."""
    return MatchSession(
        store or MatchHistoryStore(":memory:"),
        BroadcastPublisher(),
        MatchConfig(round_seconds=round_seconds, tick_interval=tick_interval),
    )
