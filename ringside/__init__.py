"""
Ringside - live match timer and scoreboard for single-elimination tournaments

One admin drives the clock and the scores; any number of displays follow
along. Winners queue up automatically for the next bracket phase.
"""

__version__ = "0.1.0"

from .bracket import BracketQueueManager, DEFAULT_PROGRESSION

from .errors import (
    RingsideError,
    ValidationError,
    StoreUnavailable,
    StoreRejected,
)

from .match import (
    # Data types
    Side,
    ScoreAction,
    ViewMode,
    MatchStatus,
    Scores,
    MatchState,
    MatchOutcome,
    # State machine
    MatchStateMachine,
    decide_winner,
    is_bye,
)

from .timer import TimerEngine, TimerState

__all__ = [
    # Version
    "__version__",
    # Bracket
    "BracketQueueManager",
    "DEFAULT_PROGRESSION",
    # Errors
    "RingsideError",
    "ValidationError",
    "StoreUnavailable",
    "StoreRejected",
    # Match
    "Side",
    "ScoreAction",
    "ViewMode",
    "MatchStatus",
    "Scores",
    "MatchState",
    "MatchOutcome",
    "MatchStateMachine",
    "decide_winner",
    "is_bye",
    # Timer
    "TimerEngine",
    "TimerState",
]
