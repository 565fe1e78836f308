"""Implements the computer opponent strategies, one per difficulty level."""

import random
import logging
from abc import ABC, abstractmethod
from itertools import combinations
from typing import List, Optional, Sequence, Union

from ..card import Card, create_standard_deck
from ..constants import (
    DEAL_SIZE,
    DISCARD_COUNT,
    GamePhase,
    ScoringStep,
    Difficulty,
    Points,
    GameAction,
    ActionDiscard,
    ActionCut,
    ActionPlay,
    ActionEndTurn,
    ActionClaimHandScore,
    ActionClaimCribScore,
)
from ..game.snapshot import GameSnapshot
from ..scoring import pile_total, score_hand, score_partial, score_pegging_play

logger = logging.getLogger(__name__)

FIFTEEN_TOTAL = 15
TEN_VALUE = 10


def snapshot_legal_actions(snapshot: GameSnapshot, player_id: str) -> List[GameAction]:
    """
    Legal actions for `player_id`, derived from that player's own snapshot.

    Matches CribbageGameState.legal_actions for the viewer; only information
    the viewer is allowed to see is used.
    """
    if snapshot.phase is GamePhase.FINISHED or snapshot.viewer_id != player_id:
        return []
    me = snapshot.player(player_id)

    if snapshot.phase is GamePhase.DISCARDING:
        if me.hand_size != DEAL_SIZE:
            return []
        return [
            ActionDiscard(player_id, pair)
            for pair in combinations(range(me.hand_size), DISCARD_COUNT)
        ]

    if snapshot.current_actor_id != player_id:
        return []

    if snapshot.phase is GamePhase.CUTTING:
        return [ActionCut(player_id, i) for i in range(snapshot.deck_size)]

    if snapshot.phase is GamePhase.PLAYING:
        playable = [
            i
            for i, card in enumerate(me.hand)
            if card is not None
            and snapshot.running_total + card.value <= snapshot.pegging_limit
        ]
        if not playable:
            return [ActionEndTurn(player_id)]
        return [ActionPlay(player_id, i) for i in playable]

    if snapshot.phase is GamePhase.SCORING:
        if snapshot.scoring_step is ScoringStep.DEALER_CRIB:
            return [ActionClaimCribScore(player_id)]
        return [ActionClaimHandScore(player_id)]

    return []


class BaseStrategy(ABC):
    """
    Abstract base class for computer opponents.

    Strategies are pure over the snapshot they are handed: the only state kept
    between calls is the newest snapshot version seen, so a stale snapshot
    delivered late is refused instead of acted on.
    """

    difficulty: Difficulty

    def __init__(self, player_id: str, rng: Optional[random.Random] = None):
        self.player_id = player_id
        self.rng = rng or random.Random()
        self.last_seen_version = -1

    def sync_state(self, snapshot: GameSnapshot) -> bool:
        """Records the snapshot's version. Returns False for a snapshot older than one already seen."""
        if snapshot.version < self.last_seen_version:
            logger.debug(
                "%s ignoring stale snapshot v%d (seen v%d).",
                self.player_id,
                snapshot.version,
                self.last_seen_version,
            )
            return False
        self.last_seen_version = snapshot.version
        return True

    def next_action(self, snapshot: GameSnapshot) -> Optional[GameAction]:
        """Chooses an action for the snapshot, or None when nothing is due."""
        if snapshot.viewer_id != self.player_id:
            raise ValueError(
                f"Strategy for {self.player_id} given a snapshot for {snapshot.viewer_id}."
            )
        if not self.sync_state(snapshot):
            return None
        legal_actions = snapshot_legal_actions(snapshot, self.player_id)
        if not legal_actions:
            return None
        if len(legal_actions) == 1:
            return legal_actions[0]
        action = self.choose_action(snapshot, legal_actions)
        logger.debug(
            "%s (%s) chose %s", self.player_id, self.difficulty.value, action
        )
        return action

    @abstractmethod
    def choose_action(
        self, snapshot: GameSnapshot, legal_actions: List[GameAction]
    ) -> GameAction:
        """Selects one of at least two legal actions."""

    def _hand(self, snapshot: GameSnapshot) -> List[Card]:
        return [card for card in snapshot.player(self.player_id).hand if card is not None]


class RandomStrategy(BaseStrategy):
    """Beginner: uniform over the legal options."""

    difficulty = Difficulty.BEGINNER

    def choose_action(
        self, snapshot: GameSnapshot, legal_actions: List[GameAction]
    ) -> GameAction:
        return self.rng.choice(legal_actions)


class GreedyStrategy(BaseStrategy):
    """
    Intermediate: keeps the four cards already worth the most and pegs for the
    most immediate points, dumping high cards on ties.
    """

    difficulty = Difficulty.INTERMEDIATE

    def choose_action(
        self, snapshot: GameSnapshot, legal_actions: List[GameAction]
    ) -> GameAction:
        first = legal_actions[0]
        hand = self._hand(snapshot)
        if isinstance(first, ActionDiscard):
            return max(
                legal_actions,
                key=lambda a: self.discard_value(snapshot, hand, a.card_indices),
            )
        if isinstance(first, ActionPlay):
            return max(legal_actions, key=lambda a: self.play_value(snapshot, hand, a))
        # Cutting: any offset is as good as another
        return self.rng.choice(legal_actions)

    def discard_value(
        self, snapshot: GameSnapshot, hand: Sequence[Card], indices: Sequence[int]
    ) -> float:
        kept = [card for i, card in enumerate(hand) if i not in indices]
        return score_partial(kept)

    def immediate_points(self, snapshot: GameSnapshot, card: Card) -> int:
        pile = list(snapshot.play_pile) + [card]
        points = score_pegging_play(pile, snapshot.pegging_limit)
        if pile_total(pile) == snapshot.pegging_limit:
            points += Points.LAST_CARD
        return points

    def play_value(self, snapshot: GameSnapshot, hand: Sequence[Card], action: ActionPlay):
        card = hand[action.card_index]
        return (self.immediate_points(snapshot, card), card.value)


class ExpectedValueStrategy(GreedyStrategy):
    """
    Expert: discards by the hand's average value over every cut card it could
    still see, adjusted for who owns the crib, and pegs away from totals that
    hand the opponent an easy 15 or 31.
    """

    difficulty = Difficulty.EXPERT

    CRIB_WEIGHT = 1.0
    HAZARD_PENALTY = 1.0  # new count of 5 or 21: any ten-card scores for the opponent
    SOFT_HAZARD_PENALTY = 0.5  # opponent needs one specific value for 15/31
    PAIR_HAZARD_PENALTY = 0.5

    def discard_value(
        self, snapshot: GameSnapshot, hand: Sequence[Card], indices: Sequence[int]
    ) -> float:
        kept = [card for i, card in enumerate(hand) if i not in indices]
        laid_away = [hand[i] for i in indices]
        seen = set(hand)
        possible_cuts = [card for card in create_standard_deck() if card not in seen]
        hand_ev = sum(score_hand(kept, cut) for cut in possible_cuts) / len(possible_cuts)

        crib_value = score_partial(laid_away)
        if snapshot.dealer_id == self.player_id:
            return hand_ev + self.CRIB_WEIGHT * crib_value
        return hand_ev - self.CRIB_WEIGHT * crib_value

    def play_value(self, snapshot: GameSnapshot, hand: Sequence[Card], action: ActionPlay):
        card = hand[action.card_index]
        points = self.immediate_points(snapshot, card)
        new_total = snapshot.running_total + card.value
        limit = snapshot.pegging_limit

        hazard = 0.0
        if new_total < limit:
            for target in (FIFTEEN_TOTAL, limit):
                gap = target - new_total
                if gap == TEN_VALUE:
                    hazard += self.HAZARD_PENALTY
                elif 1 <= gap < TEN_VALUE:
                    hazard += self.SOFT_HAZARD_PENALTY
            if new_total + card.value <= limit:
                hazard += self.PAIR_HAZARD_PENALTY
        return (points - hazard, card.value)


_STRATEGIES = {
    Difficulty.BEGINNER: RandomStrategy,
    Difficulty.INTERMEDIATE: GreedyStrategy,
    Difficulty.EXPERT: ExpectedValueStrategy,
}


def create_strategy(
    difficulty: Union[Difficulty, str],
    player_id: str,
    rng: Optional[random.Random] = None,
) -> BaseStrategy:
    """Builds the strategy configured for a difficulty level."""
    try:
        level = Difficulty(difficulty.lower() if isinstance(difficulty, str) else difficulty)
    except ValueError:
        raise ValueError(
            f"Unknown difficulty '{difficulty}'. "
            f"Expected one of {[d.value for d in Difficulty]}."
        ) from None
    return _STRATEGIES[level](player_id, rng)
