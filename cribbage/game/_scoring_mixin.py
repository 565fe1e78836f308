"""
cribbage/game/_scoring_mixin.py

Implements the counting ("show") phase: hands are restored from the kept
cards and claimed in order, non-dealer hand, dealer hand, then the crib.
"""

import logging
from dataclasses import asdict
from typing import TYPE_CHECKING

from .types import ActionResult
from ..constants import GamePhase, ScoringStep
from ..errors import RejectReason
from ..scoring import score_hand_breakdown

if TYPE_CHECKING:
    from .engine import CribbageGameState

logger = logging.getLogger(__name__)


class ScoringMixin:
    """Mixin handling the SCORING phase for CribbageGameState."""

    def _enter_scoring(self: "CribbageGameState"):
        for player in self.players:
            player.hand = list(player.kept_hand)
        self.completed_piles = []
        self.play_pile = []
        self.scoring_step = ScoringStep.NON_DEALER_HAND
        self.current_actor_index = self.non_dealer_index
        self._set_phase(GamePhase.SCORING)

    def _check_claim(
        self: "CribbageGameState", player_id: str, crib: bool
    ) -> ActionResult:
        """Returns an accepted (unversioned) result when the claim may proceed."""
        if self.phase is not GamePhase.SCORING:
            return self._reject(
                RejectReason.INVALID_PHASE, f"Cannot claim during {self.phase.value}."
            )
        index = self.index_of(player_id)
        if index is None or index != self.current_actor_index:
            return self._reject(
                RejectReason.NOT_ACTOR, f"It is not {player_id}'s turn to count."
            )
        if crib != (self.scoring_step is ScoringStep.DEALER_CRIB):
            expected = "crib" if self.scoring_step is ScoringStep.DEALER_CRIB else "hand"
            return self._reject(
                RejectReason.INVALID_PHASE, f"The {expected} is counted next."
            )
        return ActionResult.ok()

    def claim_hand_score(self: "CribbageGameState", player_id: str) -> ActionResult:
        """Counts the acting player's restored hand with the cut card."""
        check = self._check_claim(player_id, crib=False)
        if not check:
            return check

        index = self.current_actor_index
        breakdown = score_hand_breakdown(self.players[index].hand, self.cut_card)
        self._record("hand_counted", index, **asdict(breakdown), total=breakdown.total)
        logger.debug("%s counts hand: %s", player_id, breakdown)
        if self._award_points(index, breakdown.total, "hand"):
            return self._accept(points=breakdown.total)

        if self.scoring_step is ScoringStep.NON_DEALER_HAND:
            self.scoring_step = ScoringStep.DEALER_HAND
        else:
            self.scoring_step = ScoringStep.DEALER_CRIB
        self.current_actor_index = self.dealer_index
        return self._accept(points=breakdown.total)

    def claim_crib_score(self: "CribbageGameState", player_id: str) -> ActionResult:
        """Counts the crib for the dealer and closes the round."""
        check = self._check_claim(player_id, crib=True)
        if not check:
            return check

        index = self.current_actor_index
        breakdown = score_hand_breakdown(self.crib, self.cut_card, is_crib=True)
        self._record("crib_counted", index, **asdict(breakdown), total=breakdown.total)
        logger.debug("%s counts crib: %s", player_id, breakdown)
        if self._award_points(index, breakdown.total, "crib"):
            return self._accept(points=breakdown.total)

        self.scoring_step = ScoringStep.DONE
        self.current_actor_index = None
        self._set_phase(GamePhase.ROUND_END)
        return self._accept(points=breakdown.total)
