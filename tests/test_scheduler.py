"""Tests for cribbage/scheduler.py: ordering, scheduled events and halting."""

import random
import threading

import pytest

from cribbage.agents.baseline_strategies import RandomStrategy
from cribbage.config import SchedulerConfig
from cribbage.constants import (
    ActionClaimCribScore,
    ActionClaimHandScore,
    ActionCut,
    ActionDiscard,
    ActionPlay,
    GamePhase,
)
from cribbage.errors import InvariantViolation, RejectReason, SessionHalted
from cribbage.game.engine import CribbageGameState
from cribbage.game.player_state import PegPair
from cribbage.scheduler import InlineTimer, TurnScheduler

from conftest import stack_deck

GO_DECK = stack_deck(
    ["KH", "10C", "9C", "8C", "2S", "3S"],
    ["QH", "10D", "7D", "6D", "4H", "AS"],
    cut="5C",
)
FIFTEEN_DECK = stack_deck(
    ["7H", "2S", "3S", "4S", "QD", "JD"],
    ["8S", "9C", "10C", "KC", "QC", "JC"],
    cut="3H",
)
PLAY_ORDER = ["bob", "alice", "bob", "alice", "bob", "alice", "bob", "alice"]


def _make_scheduler(timer_factory, strategies=None, on_finished=None, **overrides):
    settings = dict(
        turn_timeout_seconds=30.0,
        opponent_think_min_seconds=1.0,
        opponent_think_max_seconds=2.0,
        round_end_delay_seconds=0.0,
    )
    settings.update(overrides)
    game = CribbageGameState.create(
        ["alice", "bob"], human_ids=["alice"] if strategies else ["alice", "bob"]
    )
    return TurnScheduler(
        game,
        config=SchedulerConfig(**settings),
        strategies=strategies,
        timer_factory=timer_factory,
        rng=random.Random(0),
        on_finished=on_finished,
    )


def _submit_ok(scheduler, action):
    result = scheduler.submit(action)
    assert result.accepted, result.message
    return result


def _through_cut(scheduler, deck):
    assert scheduler.start(deck).accepted
    _submit_ok(scheduler, ActionDiscard("bob", (4, 5)))
    _submit_ok(scheduler, ActionDiscard("alice", (4, 5)))
    _submit_ok(scheduler, ActionCut("bob", 0))


def _kinds(scheduler):
    return sorted(event.kind for event in scheduler.pending_events())


# ===== Submission =====


class TestSubmit:
    def test_start_arms_turn_timer(self, timer_factory):
        scheduler = _make_scheduler(timer_factory)
        assert scheduler.start(GO_DECK).accepted
        assert _kinds(scheduler) == ["timeout"]
        (timer,) = timer_factory.live()
        assert timer.delay == 30.0

    def test_rejected_action_keeps_timers(self, timer_factory):
        scheduler = _make_scheduler(timer_factory)
        scheduler.start(GO_DECK)
        (timer,) = timer_factory.live()
        result = scheduler.submit(ActionPlay("bob", 0))
        assert result.reason is RejectReason.INVALID_PHASE
        assert timer_factory.live() == [timer]

    def test_accepted_action_rearms(self, timer_factory):
        scheduler = _make_scheduler(timer_factory)
        scheduler.start(GO_DECK)
        (first,) = timer_factory.live()
        _submit_ok(scheduler, ActionDiscard("alice", (0, 1)))
        assert first.cancelled
        (second,) = timer_factory.live()
        assert second is not first
        assert scheduler.pending_events()[0].version == scheduler.game.version

    def test_zero_timeout_disables_timer(self, timer_factory):
        scheduler = _make_scheduler(timer_factory, turn_timeout_seconds=0)
        scheduler.start(GO_DECK)
        assert scheduler.pending_events() == []
        assert timer_factory.live() == []

    def test_concurrent_submissions_all_applied(self, timer_factory):
        scheduler = _make_scheduler(timer_factory)
        scheduler.start(GO_DECK)
        barrier = threading.Barrier(2)
        results = {}

        def discard(player_id):
            barrier.wait()
            results[player_id] = scheduler.submit(ActionDiscard(player_id, (4, 5)))

        threads = [threading.Thread(target=discard, args=(pid,)) for pid in ("alice", "bob")]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5)

        assert all(result.accepted for result in results.values())
        assert scheduler.game.phase is GamePhase.CUTTING
        assert scheduler.game.version == 3

    def test_snapshot_for_viewer(self, timer_factory):
        scheduler = _make_scheduler(timer_factory)
        scheduler.start(GO_DECK)
        snap = scheduler.snapshot("alice")
        assert snap.viewer_id == "alice"
        assert snap.player("bob").hand == (None,) * 6


# ===== Scheduled Events =====


class TestScheduledEvents:
    def test_timeout_ends_every_pending_turn(self, timer_factory):
        scheduler = _make_scheduler(timer_factory)
        scheduler.start(GO_DECK)
        timer_factory.live()[0].fire()
        game = scheduler.game
        assert game.phase is GamePhase.CUTTING
        assert all(len(p.hand) == 4 for p in game.players)
        assert len(game.crib) == 4
        assert _kinds(scheduler) == ["timeout"]

    def test_stale_timer_does_nothing(self, timer_factory):
        scheduler = _make_scheduler(timer_factory)
        scheduler.start(GO_DECK)
        (stale,) = timer_factory.live()
        _submit_ok(scheduler, ActionDiscard("alice", (0, 1)))
        version = scheduler.game.version

        stale.fire()
        assert scheduler.game.version == version
        assert len(scheduler.game.get_player_hand("bob")) == 6

    def test_event_for_old_version_is_dropped(self, timer_factory):
        """Even a token nobody cancelled is ignored once the version moved on."""
        scheduler = _make_scheduler(timer_factory)
        scheduler.start(GO_DECK)
        (event,) = scheduler.pending_events()
        scheduler.game.discard("alice", (0, 1))  # bypasses the scheduler
        scheduler._enqueue_event(event)
        assert len(scheduler.game.get_player_hand("bob")) == 6

    def test_computer_moves_after_think_delay(self, timer_factory):
        strategies = {"bob": RandomStrategy("bob", random.Random(1))}
        scheduler = _make_scheduler(timer_factory, strategies=strategies)
        scheduler.start(GO_DECK)
        assert _kinds(scheduler) == ["opponent", "timeout"]

        opponent_timer = next(t for t in timer_factory.live() if t.delay <= 2.0)
        assert 1.0 <= opponent_timer.delay <= 2.0
        opponent_timer.fire()

        game = scheduler.game
        assert len(game.get_player_hand("bob")) == 4
        assert len(game.get_player_hand("alice")) == 6
        assert _kinds(scheduler) == ["timeout"]

    def test_failing_computer_move_keeps_queue_running(self, timer_factory):
        class BrokenStrategy(RandomStrategy):
            def choose_action(self, snapshot, legal_actions):
                raise RuntimeError("strategy crashed")

        scheduler = _make_scheduler(
            timer_factory, strategies={"bob": BrokenStrategy("bob", random.Random(1))}
        )
        scheduler.start(GO_DECK)
        opponent_timer = next(t for t in timer_factory.live() if t.delay <= 2.0)
        opponent_timer.fire()

        assert not scheduler.halted
        assert len(scheduler.game.get_player_hand("bob")) == 6
        _submit_ok(scheduler, ActionDiscard("alice", (4, 5)))
        assert _kinds(scheduler) == ["opponent", "timeout"]

    def test_round_end_pause(self, timer_factory):
        scheduler = _make_scheduler(timer_factory, round_end_delay_seconds=5.0)
        _through_cut(scheduler, GO_DECK)
        for player_id in PLAY_ORDER:
            _submit_ok(scheduler, ActionPlay(player_id, 0))
        _submit_ok(scheduler, ActionClaimHandScore("bob"))
        _submit_ok(scheduler, ActionClaimHandScore("alice"))
        _submit_ok(scheduler, ActionClaimCribScore("alice"))

        assert scheduler.game.phase is GamePhase.ROUND_END
        assert _kinds(scheduler) == ["round_end"]
        (timer,) = timer_factory.live()
        assert timer.delay == 5.0
        timer.fire()
        assert scheduler.game.phase is GamePhase.DISCARDING
        assert scheduler.game.round_number == 2

    def test_next_round_without_pause(self, timer_factory):
        scheduler = _make_scheduler(timer_factory)
        _through_cut(scheduler, GO_DECK)
        for player_id in PLAY_ORDER:
            _submit_ok(scheduler, ActionPlay(player_id, 0))
        _submit_ok(scheduler, ActionClaimHandScore("bob"))
        _submit_ok(scheduler, ActionClaimHandScore("alice"))
        _submit_ok(scheduler, ActionClaimCribScore("alice"))
        assert scheduler.game.phase is GamePhase.DISCARDING
        assert scheduler.game.dealer_id == "bob"


# ===== Finish, Halt & Shutdown =====


class TestLifecycle:
    def test_finish_notifies_once_and_clears_timers(self, timer_factory):
        finished = []
        scheduler = _make_scheduler(timer_factory, on_finished=finished.append)
        _through_cut(scheduler, FIFTEEN_DECK)
        scheduler.game.get_player("alice").pegs = PegPair(front=119, back=117)

        _submit_ok(scheduler, ActionPlay("bob", 0))
        _submit_ok(scheduler, ActionPlay("alice", 0))
        assert scheduler.game.is_terminal()
        assert finished == ["alice"]
        assert scheduler.pending_events() == []
        assert timer_factory.live() == []

        result = scheduler.submit(ActionPlay("bob", 0))
        assert result.reason is RejectReason.INVALID_PHASE
        assert finished == ["alice"]

    def test_invariant_violation_halts(self, timer_factory, monkeypatch):
        scheduler = _make_scheduler(timer_factory)
        scheduler.start(GO_DECK)

        def broken():
            raise InvariantViolation("card count")

        monkeypatch.setattr(scheduler.game, "verify_invariants", broken)
        with pytest.raises(InvariantViolation):
            scheduler.submit(ActionDiscard("alice", (0, 1)))
        assert scheduler.halted
        assert timer_factory.live() == []
        with pytest.raises(SessionHalted):
            scheduler.submit(ActionDiscard("bob", (0, 1)))

    def test_shutdown(self, timer_factory):
        scheduler = _make_scheduler(timer_factory)
        scheduler.start(GO_DECK)
        scheduler.shutdown()
        assert timer_factory.live() == []
        with pytest.raises(SessionHalted):
            scheduler.submit(ActionDiscard("bob", (0, 1)))

    def test_inline_timers_play_computer_game_to_the_end(self):
        finished = []
        strategies = {
            "alice": RandomStrategy("alice", random.Random(5)),
            "bob": RandomStrategy("bob", random.Random(6)),
        }
        game = CribbageGameState.create(["alice", "bob"], seed=9)
        scheduler = TurnScheduler(
            game,
            config=SchedulerConfig(
                turn_timeout_seconds=0,
                opponent_think_min_seconds=0,
                opponent_think_max_seconds=0,
            ),
            strategies=strategies,
            timer_factory=InlineTimer,
            rng=random.Random(0),
            on_finished=finished.append,
        )
        scheduler.start()
        assert game.is_terminal()
        assert finished == [game.winner_id]
