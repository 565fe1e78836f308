"""
cribbage/game/_pegging_mixin.py

Implements the play ("pegging") phase for the cribbage engine: card plays,
"go" declarations, count resets and the hand-off to scoring once both hands
are empty.
"""

import logging
from typing import TYPE_CHECKING

from .types import ActionResult
from .helpers import is_valid_index
from ..constants import GamePhase, Points
from ..errors import RejectReason
from ..scoring import score_pegging_play

# Use TYPE_CHECKING for CribbageGameState hint to avoid circular import
if TYPE_CHECKING:
    from .engine import CribbageGameState

logger = logging.getLogger(__name__)


class PeggingMixin:
    """Mixin handling the play phase logic for CribbageGameState."""

    def play(self: "CribbageGameState", player_id: str, card_index: int) -> ActionResult:
        """Plays one card onto the pile and scores it."""
        if self.phase is not GamePhase.PLAYING:
            return self._reject(
                RejectReason.INVALID_PHASE, f"Cannot play during {self.phase.value}."
            )
        index = self.index_of(player_id)
        if index is None or index != self.current_actor_index:
            return self._reject(
                RejectReason.NOT_ACTOR, f"It is not {player_id}'s turn to play."
            )
        player = self.players[index]
        if not is_valid_index(card_index, len(player.hand)):
            return self._reject(
                RejectReason.ILLEGAL_INDEX,
                f"Card index {card_index} outside [0, {len(player.hand)}).",
            )
        card = player.hand[card_index]
        limit = self.rules.pegging_limit
        if self.running_total + card.value > limit:
            return self._reject(
                RejectReason.EXCEEDS_LIMIT,
                f"{card} would take the count to {self.running_total + card.value}.",
            )

        player.hand.pop(card_index)
        self.play_pile.append(card)
        self.last_player_index = index
        total = self.running_total
        self._record("card_played", index, card=str(card), running_total=total)
        logger.debug("%s plays %s (count %d).", player_id, card, total)

        points = score_pegging_play(self.play_pile, limit)
        if self._award_points(index, points, "pegging"):
            return self._accept(points=points)

        if total == limit:
            points += Points.LAST_CARD
            if self._award_points(index, Points.LAST_CARD, "last card"):
                return self._accept(points=points)
            self._close_count(award_go=False)
        else:
            self._advance_pegging(index)
        return self._accept(points=points, message=f"Count is {total}.")

    def declare_go(self: "CribbageGameState", player_id: str) -> ActionResult:
        """
        The player stops for the rest of this count.

        A player leading an empty pile cannot pass; their first playable card
        is played for them instead.
        """
        if self.phase is not GamePhase.PLAYING:
            return self._reject(
                RejectReason.INVALID_PHASE, f"Cannot say go during {self.phase.value}."
            )
        index = self.index_of(player_id)
        if index is None or index != self.current_actor_index:
            return self._reject(
                RejectReason.NOT_ACTOR, f"It is not {player_id}'s turn to play."
            )
        if not self.play_pile:
            return self.play(player_id, 0)

        self.go_declared.add(index)
        self._record("go", index, running_total=self.running_total)
        logger.debug("%s says go at %d.", player_id, self.running_total)
        self._advance_pegging(index)
        return self._accept(message="Go.")

    def _advance_pegging(self: "CribbageGameState", index: int):
        """Picks who acts next after `index` played or said go."""
        opponent = 1 - index
        if self.can_continue_count(opponent):
            self.current_actor_index = opponent
        elif self.can_continue_count(index):
            self.current_actor_index = index
        else:
            self._close_count(award_go=True)

    def _close_count(self: "CribbageGameState", award_go: bool):
        """Ends the current count: go point, pile reset, next leader or scoring."""
        if award_go and self.play_pile and self.last_player_index is not None:
            if self._award_points(self.last_player_index, Points.GO, "go"):
                return

        if self.play_pile:
            self.completed_piles.append(list(self.play_pile))
        self.play_pile = []
        self.go_declared = set()
        self._record("count_reset", self.last_player_index)

        if not any(p.hand for p in self.players):
            self._enter_scoring()
            return

        leader = 1 - self.last_player_index if self.last_player_index is not None else (
            self.non_dealer_index
        )
        if not self.players[leader].hand:
            leader = 1 - leader
        self.current_actor_index = leader
        logger.debug("Count reset; %s leads.", self.players[leader].player_id)
