"""
cribbage/scoring.py

Pure scoring functions for cribbage.

Two entry points:
- score_hand: counts a finished 4-card hand (or the crib) together with the cut card.
- score_pegging_play: counts the play pile right after a card has been added.

Nothing in here touches game state; identical inputs always give identical output.
"""

from collections import Counter
from dataclasses import dataclass
from itertools import combinations
from math import prod
from typing import List, Sequence

from .card import Card
from .constants import (
    JACK,
    KEPT_HAND_SIZE,
    MIN_RUN_LENGTH,
    PEGGING_LIMIT,
    PEGGING_SAME_RANK_POINTS,
    Points,
)

FIFTEEN_TOTAL = 15


@dataclass(frozen=True)
class HandScore:
    """Per-category points for a counted hand or crib."""

    fifteens: int = 0
    pairs: int = 0
    runs: int = 0
    flush: int = 0
    nob: int = 0

    @property
    def total(self) -> int:
        return self.fifteens + self.pairs + self.runs + self.flush + self.nob


@dataclass(frozen=True)
class PeggingScore:
    """Per-category points awarded for a single play."""

    fifteen: int = 0
    thirty_one: int = 0
    same_rank: int = 0
    run: int = 0

    @property
    def total(self) -> int:
        return self.fifteen + self.thirty_one + self.same_rank + self.run


def pile_total(cards: Sequence[Card]) -> int:
    """Sum of counting values."""
    return sum(card.value for card in cards)


# --- Hand Scoring ---


def count_fifteens(cards: Sequence[Card]) -> int:
    """
    Number of distinct non-empty subsets whose values sum to 15.

    Every subset size counts, so this is a brute-force enumeration
    (2^5 - 1 = 31 subsets for a hand plus cut card).
    """
    return sum(
        1
        for size in range(1, len(cards) + 1)
        for subset in combinations(cards, size)
        if pile_total(subset) == FIFTEEN_TOTAL
    )


def _score_pairs(cards: Sequence[Card]) -> int:
    rank_counts = Counter(card.rank for card in cards)
    # m cards of one rank form C(m, 2) pairs worth 2 each
    return sum(count * (count - 1) for count in rank_counts.values() if count >= 2)


def _score_runs(cards: Sequence[Card]) -> int:
    """
    Longest run of consecutive rank values among the distinct ranks present.

    Duplicate ranks inside the run multiply it: 3-3-4-5 is a double run
    (2 x 3 = 6), 3-3-3-4-5 a triple run (3 x 3 = 9), 3-3-4-4-5 a double-double
    run (2 x 2 x 3 = 12). Sub-runs of the longest run are never credited.
    """
    multiplicity = Counter(card.rank_value for card in cards)
    ranks = sorted(multiplicity)

    best_run: List[int] = []
    current_run: List[int] = []
    for rank_value in ranks:
        if current_run and rank_value == current_run[-1] + 1:
            current_run.append(rank_value)
        else:
            current_run = [rank_value]
        if len(current_run) > len(best_run):
            best_run = list(current_run)

    if len(best_run) < MIN_RUN_LENGTH:
        return 0
    return len(best_run) * prod(multiplicity[rank_value] for rank_value in best_run)


def _score_flush(hand: Sequence[Card], bonus: Card, is_crib: bool) -> int:
    hand_suits = {card.suit for card in hand}
    if len(hand_suits) != 1:
        return 0
    if bonus.suit in hand_suits:
        return Points.FLUSH_FULL
    # A crib only counts a five-card flush
    return 0 if is_crib else Points.FLUSH_HAND


def _score_nob(hand: Sequence[Card], bonus: Card) -> int:
    has_nob = any(card.rank == JACK and card.suit == bonus.suit for card in hand)
    return Points.NOB if has_nob else 0


def score_hand_breakdown(
    hand: Sequence[Card], bonus: Card, is_crib: bool = False
) -> HandScore:
    """Counts a 4-card hand (or crib) plus the cut card, category by category."""
    if len(hand) != KEPT_HAND_SIZE:
        raise ValueError(
            f"A counted hand must hold exactly {KEPT_HAND_SIZE} cards, got {len(hand)}."
        )
    if bonus is None:
        raise ValueError("A hand cannot be counted without the cut card.")

    all_cards = list(hand) + [bonus]
    return HandScore(
        fifteens=count_fifteens(all_cards) * Points.FIFTEEN,
        pairs=_score_pairs(all_cards),
        runs=_score_runs(all_cards),
        flush=_score_flush(hand, bonus, is_crib),
        nob=_score_nob(hand, bonus),
    )


def score_hand(hand: Sequence[Card], bonus: Card, is_crib: bool = False) -> int:
    """Total points for a 4-card hand (or crib) plus the cut card."""
    return score_hand_breakdown(hand, bonus, is_crib).total


def score_partial(cards: Sequence[Card]) -> int:
    """
    Points a set of cards is already worth before any cut card is known.

    Counts fifteens, pairs and runs; a full-size hand of one suit also counts
    the 4-point flush. Used to rank discards, never to award points.
    """
    points = count_fifteens(cards) * Points.FIFTEEN
    points += _score_pairs(cards) + _score_runs(cards)
    if len(cards) == KEPT_HAND_SIZE and len({card.suit for card in cards}) == 1:
        points += Points.FLUSH_HAND
    return points


# --- Pegging Scoring ---


def _trailing_same_rank(pile: Sequence[Card]) -> int:
    """Number of cards at the end of the pile sharing the last card's rank."""
    if not pile:
        return 0
    last_rank = pile[-1].rank
    count = 0
    for card in reversed(pile):
        if card.rank != last_rank:
            break
        count += 1
    return count


def _is_run(cards: Sequence[Card]) -> bool:
    rank_values = sorted(card.rank_value for card in cards)
    return all(
        later - earlier == 1 for earlier, later in zip(rank_values, rank_values[1:])
    )


def _trailing_run_length(pile: Sequence[Card]) -> int:
    """Longest N >= 3 such that the last N cards form a run in any order."""
    for length in range(len(pile), MIN_RUN_LENGTH - 1, -1):
        if _is_run(pile[-length:]):
            return length
    return 0


def score_pegging_breakdown(
    pile: Sequence[Card], limit: int = PEGGING_LIMIT
) -> PeggingScore:
    """Points earned by the card just added to the pile, category by category."""
    total = pile_total(pile)
    same_rank = _trailing_same_rank(pile)
    return PeggingScore(
        fifteen=Points.FIFTEEN if total == FIFTEEN_TOTAL else 0,
        thirty_one=Points.THIRTY_ONE if total == limit else 0,
        same_rank=PEGGING_SAME_RANK_POINTS.get(same_rank, 0),
        run=_trailing_run_length(pile),
    )


def score_pegging_play(pile: Sequence[Card], limit: int = PEGGING_LIMIT) -> int:
    """
    Points for the last card added to the play pile.

    Fifteen and thirty-one score 2 each; the last-card bonus for 31 is
    awarded separately by the game. Flush and nob never score while pegging.
    """
    return score_pegging_breakdown(pile, limit).total
