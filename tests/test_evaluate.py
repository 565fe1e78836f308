"""Tests for cribbage/evaluate_strategies.py"""

import random
from collections import Counter

from cribbage.agents.baseline_strategies import GreedyStrategy, RandomStrategy
from cribbage.config import Config
from cribbage.evaluate_strategies import EvaluationResult, play_game, run_evaluation


def test_play_game_finishes():
    strategies = {
        "x": GreedyStrategy("x", random.Random(1)),
        "y": RandomStrategy("y", random.Random(2)),
    }
    stats = Counter()
    game = play_game(strategies, dealer_id="y", seed=4, stats=stats)
    assert game.is_terminal()
    assert game.players[0].player_id == "y"
    assert max(p.score for p in game.players) == 120
    assert stats["rejected"] == 0


def test_run_evaluation_counts_every_game():
    result = run_evaluation(
        Config(), "intermediate", "beginner", num_games=4, seed=7, show_progress=False
    )
    assert result.games == 4
    assert result.wins_a + result.wins_b == 4
    assert result.incomplete == 0
    assert result.rejected_actions == 0
    assert len(result.margins) == 4
    assert all(margin != 0 for margin in result.margins)
    assert 0.0 <= result.win_rate_a <= 1.0


def test_run_evaluation_is_reproducible():
    def margins():
        return run_evaluation(
            Config(), "beginner", "beginner", num_games=3, seed=99, show_progress=False
        ).margins

    assert margins() == margins()


def test_result_statistics():
    result = EvaluationResult("a", "b", games=2, wins_a=1, wins_b=1, margins=[10, -4])
    assert result.win_rate_a == 0.5
    assert result.mean_margin == 3.0
    assert result.std_margin == 7.0
    assert EvaluationResult("a", "b").mean_margin == 0.0
