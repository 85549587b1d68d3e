"""
tests/test_match.py - Match state machine tests.

The timer runs with a one-hour tick so nothing fires on its own.
"""

import asyncio
import random

import pytest

from ringside.bracket import BracketQueueManager
from ringside.match import (
    MatchState,
    MatchStateMachine,
    MatchStatus,
    ScoreAction,
    Scores,
    Side,
    ViewMode,
    decide_winner,
    is_bye,
)
from ringside.timer import TimerEngine


async def _noop():
    pass


def _make_machine(round_seconds: int = 60) -> MatchStateMachine:
    timer = TimerEngine(asyncio.Lock(), _noop, _noop, interval=3600, initial_seconds=round_seconds)
    return MatchStateMachine(timer, BracketQueueManager(), round_seconds=round_seconds)


def _run(fn):
    """Run ``fn(machine)`` inside an event loop (the timer needs one)."""

    async def scenario():
        machine = _make_machine()
        try:
            return fn(machine)
        finally:
            await machine.timer.close()

    return asyncio.run(scenario())


# ======================================================================
# Scores
# ======================================================================


class TestScores:
    def test_add_and_remove(self):
        s = Scores()
        s.apply(Side.A, ScoreAction.ADD)
        s.apply(Side.A, ScoreAction.ADD)
        s.apply(Side.B, ScoreAction.ADD)
        s.apply(Side.A, ScoreAction.REMOVE)
        assert (s.a, s.b) == (1, 1)

    def test_remove_clamps_at_zero(self):
        s = Scores()
        assert s.apply(Side.B, ScoreAction.REMOVE) == 0
        assert s.b == 0

    def test_never_negative_for_any_sequence(self):
        rng = random.Random(42)
        s = Scores()
        for _ in range(500):
            s.apply(rng.choice(list(Side)), rng.choice(list(ScoreAction)))
            assert s.a >= 0 and s.b >= 0

    def test_side_values_match_wire(self):
        assert Side(1) is Side.A
        assert Side(2) is Side.B


# ======================================================================
# Winner rules
# ======================================================================


class TestWinner:
    @pytest.mark.parametrize("name_b", ["", "-", None, "  ", " - "])
    def test_bye_detection(self, name_b):
        assert is_bye(name_b)

    def test_real_name_is_not_bye(self):
        assert not is_bye("Bia")

    def test_bye_wins_even_when_behind(self):
        state = MatchState(name_a="Ana", name_b="-", scores=Scores(0, 3))
        assert decide_winner(state) == "Ana"

    def test_higher_score_wins(self):
        assert decide_winner(MatchState("Ana", "Bia", Scores(3, 1))) == "Ana"
        assert decide_winner(MatchState("Ana", "Bia", Scores(0, 2))) == "Bia"

    def test_tie_has_no_winner(self):
        assert decide_winner(MatchState("Ana", "Bia", Scores(2, 2))) is None


# ======================================================================
# Transitions
# ======================================================================


class TestStart:
    def test_initial_state(self):
        machine = _make_machine()
        assert machine.status is MatchStatus.IDLE
        assert machine.view_mode is ViewMode.HISTORY
        assert machine.state.phase == "preliminar"
        assert machine.timer.remaining_seconds == 60

    def test_start_resets_everything(self):
        def fn(m):
            m.start("Ana", "Bia", "quartas")
            m.update_score(Side.A, ScoreAction.ADD)
            m.update_score(Side.B, ScoreAction.ADD)
            m.next_round()
            m.timer.adjust(-40)
            m.start("Caio", "Duda", "semi")
            return m

        m = _run(fn)
        assert m.state.name_a == "Caio"
        assert m.state.name_b == "Duda"
        assert (m.state.scores.a, m.state.scores.b) == (0, 0)
        assert m.state.round == 1
        assert m.state.phase == "semi"
        assert m.timer.remaining_seconds == 60
        assert m.status is MatchStatus.ACTIVE
        assert m.view_mode is ViewMode.MATCH

    def test_start_runs_clock(self):
        def fn(m):
            m.start("Ana", "Bia", "quartas")
            return m.timer.running, m.timer.paused, m.timer.has_live_tick

        assert _run(fn) == (True, False, True)

    def test_missing_phase_uses_default(self):
        m = _run(lambda m: (m.start("Ana", "Bia", None), m)[1])
        assert m.state.phase == "preliminar"

    def test_start_consumes_queue_entries(self):
        def fn(m):
            for name in ["Ana", "Bia", "Caio"]:
                m.queues.promote("quartas", name)
            m.start("Ana", "Bia", "semi")
            return m

        m = _run(fn)
        assert m.queues.queue("semi") == ["Caio"]


class TestRound:
    def test_next_round_pauses_and_resets_clock(self):
        def fn(m):
            m.start("Ana", "Bia", "quartas")
            m.timer.adjust(-25)
            m.next_round()
            return m

        m = _run(fn)
        assert m.state.round == 2
        assert m.timer.remaining_seconds == 60
        assert m.timer.running is False
        assert m.timer.paused is True

    def test_next_round_keeps_scores(self):
        def fn(m):
            m.start("Ana", "Bia", "quartas")
            m.update_score(Side.A, ScoreAction.ADD)
            m.next_round()
            return m

        m = _run(fn)
        assert m.state.scores.a == 1


class TestEnd:
    def test_bye_promotes_name_a(self):
        def fn(m):
            m.start("Ana", "-", "quartas")
            return m.end(), m

        outcome, m = _run(fn)
        assert outcome.winner == "Ana"
        assert outcome.promoted_to == "semi"
        assert m.queues.queue("semi") == ["Ana"]

    def test_tie_promotes_nobody(self):
        def fn(m):
            m.start("Ana", "Bia", "semi")
            m.update_score(Side.A, ScoreAction.ADD)
            m.update_score(Side.B, ScoreAction.ADD)
            return m.end(), m

        outcome, m = _run(fn)
        assert outcome.winner is None
        assert outcome.promoted_to is None
        assert m.queues.snapshot() == {"semi": [], "final": []}
        assert (outcome.score_a, outcome.score_b) == (1, 1)

    def test_semi_winner_goes_to_final(self):
        def fn(m):
            m.start("Ana", "Bia", "semi")
            m.update_score(Side.B, ScoreAction.ADD)
            return m.end(), m

        outcome, m = _run(fn)
        assert outcome.winner == "Bia"
        assert m.queues.queue("final") == ["Bia"]

    def test_final_winner_is_not_queued(self):
        def fn(m):
            m.start("Ana", "Bia", "final")
            m.update_score(Side.A, ScoreAction.ADD)
            return m.end(), m

        outcome, m = _run(fn)
        assert outcome.winner == "Ana"
        assert outcome.promoted_to is None
        assert m.queues.snapshot() == {"semi": [], "final": []}

    def test_end_stops_clock_and_shows_history(self):
        def fn(m):
            m.start("Ana", "Bia", "quartas")
            m.end()
            return m

        m = _run(fn)
        assert m.timer.running is False
        assert not m.timer.has_live_tick
        assert m.view_mode is ViewMode.HISTORY
        assert m.status is MatchStatus.ENDED

    def test_outcome_carries_final_fields(self):
        def fn(m):
            m.start("Ana", "Bia", "quartas")
            for _ in range(3):
                m.update_score(Side.A, ScoreAction.ADD)
            m.update_score(Side.B, ScoreAction.ADD)
            return m.end()

        outcome = _run(fn)
        assert outcome.name_a == "Ana"
        assert outcome.name_b == "Bia"
        assert (outcome.score_a, outcome.score_b) == (3, 1)
        assert outcome.phase == "quartas"


class TestView:
    def test_toggle_flips(self):
        m = _make_machine()
        assert m.toggle_view() is ViewMode.MATCH
        assert m.toggle_view() is ViewMode.HISTORY


class TestSnapshot:
    def test_snapshot_shape(self):
        def fn(m):
            m.start("Ana", "Bia", "quartas")
            m.update_score(Side.A, ScoreAction.ADD)
            return m.snapshot()

        snap = _run(fn)
        assert snap == {
            "remainingSeconds": 60,
            "nameA": "Ana",
            "nameB": "Bia",
            "scoreA": 1,
            "scoreB": 0,
            "round": 1,
            "phase": "quartas",
            "running": True,
            "paused": False,
            "viewMode": "MATCH",
            "queues": {"semi": [], "final": []},
        }
