"""Evaluates computer strategies against each other over many full games."""

import logging
import random
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np
from tqdm import tqdm

from .agents.baseline_strategies import BaseStrategy, create_strategy
from .config import Config, RulesConfig
from .game.engine import CribbageGameState

logger = logging.getLogger(__name__)

SEAT_A = "A"
SEAT_B = "B"
MAX_STEPS_PER_GAME = 5000  # Far above any legal game length


@dataclass
class EvaluationResult:
    strategy_a: str
    strategy_b: str
    games: int = 0
    wins_a: int = 0
    wins_b: int = 0
    incomplete: int = 0
    rejected_actions: int = 0
    margins: List[int] = field(default_factory=list)  # A's score minus B's, per finished game
    elapsed_seconds: float = 0.0

    @property
    def win_rate_a(self) -> float:
        finished = self.wins_a + self.wins_b
        return self.wins_a / finished if finished else 0.0

    @property
    def mean_margin(self) -> float:
        return float(np.mean(self.margins)) if self.margins else 0.0

    @property
    def std_margin(self) -> float:
        return float(np.std(self.margins)) if self.margins else 0.0


def play_game(
    strategies: Dict[str, BaseStrategy],
    dealer_id: str,
    rules: Optional[RulesConfig] = None,
    seed: Optional[int] = None,
    stats: Optional[Counter] = None,
) -> CribbageGameState:
    """
    Plays one game to completion directly on the state machine.

    A rejected computer move falls back to ending that player's turn, so a
    faulty strategy cannot stall the game.
    """
    ids = list(strategies)
    order = [dealer_id] + [pid for pid in ids if pid != dealer_id]
    game = CribbageGameState.create(order, rules=rules, seed=seed)
    game.start()

    steps = 0
    while not game.is_terminal() and steps < MAX_STEPS_PER_GAME:
        steps += 1
        if game.advance():
            continue
        pending = game.pending_actors()
        if not pending:
            logger.error("No pending actor in phase %s; abandoning game.", game.phase.value)
            break
        player_id = pending[0]
        action = strategies[player_id].next_action(game.snapshot(player_id))
        result = game.apply_action(action) if action is not None else None
        if result is None or not result.accepted:
            if stats is not None:
                stats["rejected"] += 1
            logger.warning(
                "Move %s by %s not accepted (%s); ending turn instead.",
                action,
                player_id,
                result.reason if result else "no action",
            )
            game.end_turn(player_id)
        game.verify_invariants()
    return game


def run_evaluation(
    config: Config,
    strategy_a: Optional[str] = None,
    strategy_b: Optional[str] = None,
    num_games: Optional[int] = None,
    seed: Optional[int] = None,
    show_progress: bool = True,
) -> EvaluationResult:
    """Plays head-to-head games, alternating the first dealer between seats."""
    eval_cfg = config.evaluation
    name_a = (strategy_a or eval_cfg.strategy_a).lower()
    name_b = (strategy_b or eval_cfg.strategy_b).lower()
    games = num_games if num_games is not None else eval_cfg.num_games
    base_seed = seed if seed is not None else eval_cfg.seed
    master_rng = random.Random(base_seed)

    logger.info("--- Starting Strategy Evaluation ---")
    logger.info("Seat A: %s, Seat B: %s, Games: %d", name_a.upper(), name_b.upper(), games)

    result = EvaluationResult(strategy_a=name_a, strategy_b=name_b)
    stats: Counter = Counter()
    start_time = time.time()

    for game_num in tqdm(
        range(games), desc="Simulating Games", unit="game", disable=not show_progress
    ):
        strategies = {
            SEAT_A: create_strategy(name_a, SEAT_A, random.Random(master_rng.getrandbits(32))),
            SEAT_B: create_strategy(name_b, SEAT_B, random.Random(master_rng.getrandbits(32))),
        }
        dealer = SEAT_A if game_num % 2 == 0 else SEAT_B
        game = play_game(
            strategies,
            dealer,
            rules=config.rules,
            seed=master_rng.getrandbits(32),
            stats=stats,
        )
        result.games += 1
        if not game.is_terminal():
            result.incomplete += 1
            continue
        if game.winner_id == SEAT_A:
            result.wins_a += 1
        else:
            result.wins_b += 1
        result.margins.append(game.get_score(SEAT_A) - game.get_score(SEAT_B))

    result.rejected_actions = stats["rejected"]
    result.elapsed_seconds = time.time() - start_time

    logger.info("--- Evaluation Results ---")
    logger.info(
        "A (%s) wins %d, B (%s) wins %d, incomplete %d; A win rate %.2f%%.",
        name_a,
        result.wins_a,
        name_b,
        result.wins_b,
        result.incomplete,
        result.win_rate_a * 100,
    )
    logger.info(
        "Margin (A - B): mean %.2f, std %.2f. Time: %.2fs.",
        result.mean_margin,
        result.std_margin,
        result.elapsed_seconds,
    )
    return result
