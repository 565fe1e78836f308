"""Tests for the computer opponents in cribbage/agents/baseline_strategies.py"""

import random

import pytest

from cribbage.agents.baseline_strategies import (
    ExpectedValueStrategy,
    GreedyStrategy,
    RandomStrategy,
    create_strategy,
    snapshot_legal_actions,
)
from cribbage.card import parse_card, parse_cards
from cribbage.constants import (
    ActionDiscard,
    ActionEndTurn,
    ActionPlay,
    Difficulty,
    GamePhase,
)
from cribbage.game.engine import CribbageGameState
from cribbage.game.player_state import PegPair
from cribbage.game.snapshot import GameSnapshot, PlayerView
from cribbage.scoring import pile_total


def _make_snapshot(
    hand,
    pile=(),
    phase=GamePhase.PLAYING,
    dealer_id="opp",
    version=5,
    viewer_id="me",
) -> GameSnapshot:
    """A hand-built view for 'me' against 'opp' (4 hidden cards)."""
    cards = tuple(parse_cards(hand))
    played = tuple(parse_cards(pile))
    me = PlayerView(
        player_id="me",
        is_human=False,
        is_dealer=dealer_id == "me",
        hand=cards,
        hand_visible=True,
        pegs=PegPair(),
        has_discarded=len(cards) < 6,
        said_go=False,
    )
    opp = PlayerView(
        player_id="opp",
        is_human=True,
        is_dealer=dealer_id == "opp",
        hand=(None,) * 4,
        hand_visible=False,
        pegs=PegPair(),
        has_discarded=True,
        said_go=False,
    )
    return GameSnapshot(
        version=version,
        viewer_id=viewer_id,
        phase=phase,
        round_number=1,
        dealer_id=dealer_id,
        current_actor_id="me",
        pending_actor_ids=("me",),
        players=(opp, me),
        deck_size=40 if phase is GamePhase.DISCARDING else 39,
        cut_card=None if phase is GamePhase.DISCARDING else parse_card("2D"),
        crib=(None,) * (0 if phase is GamePhase.DISCARDING else 4),
        play_pile=played,
        running_total=pile_total(played),
        pegging_limit=31,
        winning_score=120,
        scoring_step=None,
        last_player_id=None,
        winner_id=None,
    )


FIVES_HAND = ["5S", "5H", "5C", "JD", "KS", "2C"]


# ===== Legal Actions from Snapshots =====


class TestSnapshotLegalActions:
    def test_matches_engine_through_a_game(self):
        rng = random.Random(21)
        game = CribbageGameState.create(["a", "b"], seed=21)
        game.start()
        for _ in range(300):
            if game.is_terminal():
                break
            if game.advance():
                continue
            for player_id in ("a", "b"):
                assert snapshot_legal_actions(game.snapshot(player_id), player_id) == (
                    game.legal_actions(player_id)
                )
            actor = game.pending_actors()[0]
            game.apply_action(rng.choice(game.legal_actions(actor)))

    def test_only_for_viewer(self):
        snap = _make_snapshot(["5S", "6H"], viewer_id="opp")
        assert snapshot_legal_actions(snap, "me") == []

    def test_go_when_nothing_fits(self):
        snap = _make_snapshot(["KS", "9H"], pile=["10H", "QC", "5D"])
        assert snapshot_legal_actions(snap, "me") == [ActionEndTurn("me")]


# ===== Base Behaviour =====


class TestBaseStrategy:
    def test_stale_snapshot_ignored(self):
        strategy = RandomStrategy("me", random.Random(0))
        assert strategy.next_action(_make_snapshot(["5S", "6H"], version=7)) is not None
        assert strategy.last_seen_version == 7
        assert strategy.next_action(_make_snapshot(["5S", "6H"], version=3)) is None
        assert strategy.last_seen_version == 7

    def test_single_option_returned_directly(self):
        strategy = GreedyStrategy("me")
        snap = _make_snapshot(["KS", "9H"], pile=["10H", "QC", "5D"])
        assert strategy.next_action(snap) == ActionEndTurn("me")

    def test_wrong_viewer_raises(self):
        strategy = GreedyStrategy("me")
        with pytest.raises(ValueError):
            strategy.next_action(_make_snapshot(["5S"], viewer_id="opp"))

    def test_factory(self):
        assert isinstance(create_strategy("beginner", "x"), RandomStrategy)
        assert isinstance(create_strategy("INTERMEDIATE", "x"), GreedyStrategy)
        assert isinstance(create_strategy(Difficulty.EXPERT, "x"), ExpectedValueStrategy)
        with pytest.raises(ValueError):
            create_strategy("grandmaster", "x")


# ===== Beginner =====


class TestRandomStrategy:
    def test_always_legal(self):
        strategy = RandomStrategy("me", random.Random(4))
        for version in range(20):
            snap = _make_snapshot(FIVES_HAND, phase=GamePhase.DISCARDING, version=version)
            action = strategy.next_action(snap)
            assert action in snapshot_legal_actions(snap, "me")


# ===== Intermediate =====


class TestGreedyStrategy:
    def test_keeps_the_fives(self):
        strategy = GreedyStrategy("me")
        snap = _make_snapshot(FIVES_HAND, phase=GamePhase.DISCARDING)
        action = strategy.next_action(snap)
        assert isinstance(action, ActionDiscard)
        assert set(action.card_indices) <= {3, 4, 5}

    def test_takes_fifteen(self):
        strategy = GreedyStrategy("me")
        snap = _make_snapshot(["2C", "8S"], pile=["7H"])
        assert strategy.next_action(snap) == ActionPlay("me", 1)

    def test_takes_thirty_one(self):
        strategy = GreedyStrategy("me")
        snap = _make_snapshot(["AC", "3S"], pile=["10H", "KC", "8D"])
        assert strategy.next_action(snap) == ActionPlay("me", 1)

    def test_dumps_high_card_on_tie(self):
        strategy = GreedyStrategy("me")
        snap = _make_snapshot(["2C", "9S", "4H"])
        assert strategy.next_action(snap) == ActionPlay("me", 1)


# ===== Expert =====


class TestExpectedValueStrategy:
    def test_keeps_perfect_hand_candidates(self):
        strategy = ExpectedValueStrategy("me")
        snap = _make_snapshot(FIVES_HAND, phase=GamePhase.DISCARDING)
        assert strategy.next_action(snap) == ActionDiscard("me", (4, 5))

    def test_does_not_lead_a_five(self):
        strategy = ExpectedValueStrategy("me")
        snap = _make_snapshot(["5H", "4C", "KD", "9S"])
        assert strategy.next_action(snap) == ActionPlay("me", 1)

    def test_still_takes_fifteen(self):
        strategy = ExpectedValueStrategy("me")
        snap = _make_snapshot(["2C", "8S"], pile=["7H"])
        assert strategy.next_action(snap) == ActionPlay("me", 1)
