"""
ringside/match.py - Live match data and its transition rules.

MatchStateMachine is the only thing that mutates the match. It drives the
TimerEngine and the BracketQueueManager but knows nothing about transport
or storage: ``end()`` hands back a MatchOutcome and the caller persists it.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum, IntEnum

from .bracket import BracketQueueManager
from .timer import TimerEngine

logger = logging.getLogger(__name__)

DEFAULT_PHASE = "preliminar"
DEFAULT_ROUND_SECONDS = 60

# nameB values that mean "no opponent"
BYE_PLACEHOLDERS = ("", "-")


# ============================================================================
# Data Types
# ============================================================================


class Side(IntEnum):
    """Which fighter a score update targets. Values match the wire protocol."""

    A = 1
    B = 2


class ScoreAction(str, Enum):
    ADD = "add"
    REMOVE = "remove"


class ViewMode(str, Enum):
    """Which screen the displays should render."""

    MATCH = "MATCH"
    HISTORY = "HISTORY"


class MatchStatus(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    ENDED = "ended"


@dataclass
class Scores:
    """Two score slots. Never negative."""

    a: int = 0
    b: int = 0

    def get(self, side: Side) -> int:
        return self.a if side is Side.A else self.b

    def apply(self, side: Side, action: ScoreAction) -> int:
        """Add or remove one point for ``side``. Returns the new score."""
        delta = 1 if action is ScoreAction.ADD else -1
        value = max(0, self.get(side) + delta)
        if side is Side.A:
            self.a = value
        else:
            self.b = value
        return value


@dataclass
class MatchState:
    name_a: str = ""
    name_b: str = ""
    scores: Scores = field(default_factory=Scores)
    round: int = 1
    phase: str = DEFAULT_PHASE

    @property
    def is_bye(self) -> bool:
        return is_bye(self.name_b)

    def to_dict(self) -> dict:
        return {
            "nameA": self.name_a,
            "nameB": self.name_b,
            "scoreA": self.scores.a,
            "scoreB": self.scores.b,
            "round": self.round,
            "phase": self.phase,
        }


@dataclass(frozen=True)
class MatchOutcome:
    """Final values of an ended match, ready to be persisted."""

    name_a: str
    name_b: str
    score_a: int
    score_b: int
    phase: str
    winner: str | None
    promoted_to: str | None = None


def is_bye(name_b: str | None) -> bool:
    """True if the B slot holds no real opponent."""
    return name_b is None or name_b.strip() in BYE_PLACEHOLDERS


def decide_winner(state: MatchState) -> str | None:
    """Winner by bye or strictly higher score. None on a tie."""
    if state.is_bye:
        return state.name_a
    if state.scores.a > state.scores.b:
        return state.name_a
    if state.scores.b > state.scores.a:
        return state.name_b
    return None


# ============================================================================
# State Machine
# ============================================================================


class MatchStateMachine:
    """Holds the current match and applies admin commands to it.

    Callers are expected to hold the session lock around every method.
    """

    def __init__(
        self,
        timer: TimerEngine,
        queues: BracketQueueManager,
        round_seconds: int = DEFAULT_ROUND_SECONDS,
        default_phase: str = DEFAULT_PHASE,
    ):
        self.timer = timer
        self.queues = queues
        self.round_seconds = round_seconds
        self.default_phase = default_phase
        self.state = MatchState(phase=default_phase)
        self.status = MatchStatus.IDLE
        self.view_mode = ViewMode.HISTORY

    def start(self, name_a: str, name_b: str, phase: str | None = None) -> None:
        """Reset the match for two new fighters and start the clock."""
        phase = phase or self.default_phase
        self.state = MatchState(name_a=name_a, name_b=name_b, phase=phase)
        self.status = MatchStatus.ACTIVE
        self.view_mode = ViewMode.MATCH
        self.timer.start(self.round_seconds)
        self.queues.remove(phase, name_a, name_b)
        logger.info(f"Match started: {name_a} vs {name_b or '-'} ({phase})")

    def update_score(self, side: Side, action: ScoreAction) -> int:
        return self.state.scores.apply(side, action)

    def next_round(self) -> int:
        """Advance the round and reset the clock. The clock stays paused."""
        self.state.round += 1
        self.timer.reset(self.round_seconds)
        self.timer.pause()
        return self.state.round

    def end(self) -> MatchOutcome:
        """Stop the clock, settle the winner and promote them.

        Always returns an outcome to persist, including ties.
        """
        self.timer.stop()
        state = self.state
        winner = decide_winner(state)
        promoted_to = None
        if winner:
            promoted_to = self.queues.promote(state.phase, winner)
        self.status = MatchStatus.ENDED
        self.view_mode = ViewMode.HISTORY
        logger.info(
            f"Match ended: {state.name_a} {state.scores.a} x {state.scores.b} "
            f"{state.name_b or '-'} ({state.phase}), winner: {winner or 'none'}"
        )
        return MatchOutcome(
            name_a=state.name_a,
            name_b=state.name_b,
            score_a=state.scores.a,
            score_b=state.scores.b,
            phase=state.phase,
            winner=winner,
            promoted_to=promoted_to,
        )

    def toggle_view(self) -> ViewMode:
        self.view_mode = (
            ViewMode.HISTORY if self.view_mode is ViewMode.MATCH else ViewMode.MATCH
        )
        return self.view_mode

    def snapshot(self) -> dict:
        """Full state for the ``update-display`` broadcast."""
        return {
            "remainingSeconds": self.timer.remaining_seconds,
            **self.state.to_dict(),
            "running": self.timer.running,
            "paused": self.timer.paused,
            "viewMode": self.view_mode.value,
            "queues": self.queues.snapshot(),
        }
