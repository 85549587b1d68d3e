"""
scoreboard/session.py - The live tournament session.

MatchSession owns every piece of mutable state (clock, match, bracket
queues) plus the lock that serializes command handlers and timer ticks.
The server creates one per process and passes it to every handler.
"""

import asyncio
import logging

from ringside.bracket import BracketQueueManager
from ringside.config import MatchConfig
from ringside.errors import StoreRejected, StoreUnavailable
from ringside.match import MatchOutcome, MatchStateMachine, ScoreAction, Side, ViewMode
from ringside.timer import TimerEngine

from .db import MatchHistoryStore
from .publisher import UPDATE_DISPLAY, UPDATE_HISTORY, BroadcastPublisher, Subscriber

logger = logging.getLogger(__name__)


class MatchSession:
    """One tournament: one clock, one match, one set of queues."""

    def __init__(
        self,
        store: MatchHistoryStore,
        publisher: BroadcastPublisher,
        match_config: MatchConfig | None = None,
        progression: dict[str, str] | None = None,
    ):
        cfg = match_config or MatchConfig()
        self.store = store
        self.publisher = publisher
        self.lock = asyncio.Lock()
        self.timer = TimerEngine(
            self.lock,
            on_tick=self._on_tick,
            on_finished=self._on_timer_finished,
            interval=cfg.tick_interval,
            initial_seconds=cfg.round_seconds,
        )
        self.queues = BracketQueueManager(progression)
        self.machine = MatchStateMachine(
            self.timer,
            self.queues,
            round_seconds=cfg.round_seconds,
            default_phase=cfg.default_phase,
        )

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    def snapshot(self) -> dict:
        return self.machine.snapshot()

    def publish_state(self) -> None:
        self.publisher.publish_state(self.snapshot())

    async def publish_history(self) -> None:
        """Fetch the full history and broadcast it. Waits for the store."""
        records = await asyncio.to_thread(self.store.find_all_ordered_by_created_asc)
        self.publisher.publish_history(records)

    async def handshake(self, sub: Subscriber) -> None:
        """Bring a fresh subscriber up to date: state, then history if shown."""
        async with self.lock:
            self.publisher.send(sub, {"type": UPDATE_DISPLAY, "data": self.snapshot()})
            if self.machine.view_mode is not ViewMode.HISTORY:
                return
            try:
                records = await asyncio.to_thread(self.store.find_all_ordered_by_created_asc)
            except StoreUnavailable as e:
                logger.warning(f"History unavailable for new subscriber: {e.message}")
                self.publisher.send(
                    sub, {"type": "error", "code": e.code, "message": e.message}
                )
                return
            self.publisher.send(sub, {"type": UPDATE_HISTORY, "data": records})

    async def _on_tick(self) -> None:
        self.publish_state()

    async def _on_timer_finished(self) -> None:
        self.publisher.publish_timer_finished()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def start_match(self, name_a: str, name_b: str, phase: str | None = None) -> None:
        async with self.lock:
            self.machine.start(name_a, name_b, phase)
            self.publish_state()

    async def end_match(self) -> MatchOutcome:
        """Finalize the match, persist it and switch displays to history.

        The state broadcast goes out before persistence; if the store fails
        the StoreUnavailable propagates to the caller after that broadcast.
        """
        async with self.lock:
            outcome = self.machine.end()
            self.publish_state()
            record_id = await asyncio.to_thread(self.store.create, outcome)
            logger.info(f"History record {record_id} written ({outcome.phase})")
            await self.publish_history()
            return outcome

    async def pause_match(self) -> None:
        async with self.lock:
            self.timer.pause()
            self.publish_state()

    async def resume_match(self) -> bool:
        async with self.lock:
            resumed = self.timer.resume()
            if resumed:
                self.publish_state()
            return resumed

    async def adjust_time(self, seconds: int) -> None:
        async with self.lock:
            self.timer.adjust(seconds)
            self.publish_state()

    async def next_round(self) -> None:
        async with self.lock:
            self.machine.next_round()
            self.publish_state()

    async def update_score(self, side: Side, action: ScoreAction) -> None:
        async with self.lock:
            self.machine.update_score(side, action)
            self.publish_state()

    async def toggle_view(self) -> ViewMode:
        async with self.lock:
            mode = self.machine.toggle_view()
            self.publish_state()
            if mode is ViewMode.HISTORY:
                await self.publish_history()
            return mode

    async def delete_match(self, match_id: int) -> bool:
        """Remove a history record. Unknown ids are a no-op. Queues are untouched."""
        async with self.lock:
            deleted = True
            try:
                await asyncio.to_thread(self.store.delete, match_id)
                logger.info(f"History record {match_id} deleted")
            except StoreRejected:
                deleted = False
                logger.debug(f"History record {match_id} already gone")
            await self.publish_history()
            return deleted

    async def close(self) -> None:
        await self.timer.close()
