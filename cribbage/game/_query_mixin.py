"""
cribbage/game/_query_mixin.py

Read-only queries, legal action enumeration, snapshots and invariant checks
for CribbageGameState.
"""

import logging
from itertools import combinations
from typing import List, Optional

from ..card import Card
from ..constants import (
    DEAL_SIZE,
    DECK_SIZE,
    DISCARD_COUNT,
    GamePhase,
    ScoringStep,
    GameAction,
    ActionDiscard,
    ActionCut,
    ActionPlay,
    ActionEndTurn,
    ActionClaimHandScore,
    ActionClaimCribScore,
)
from ..errors import InvariantViolation
from ..scoring import pile_total
from .helpers import can_play_any, playable_indices
from .player_state import PlayerState
from .snapshot import GameSnapshot, PlayerView

logger = logging.getLogger(__name__)

# Phases in which both hands are laid open for counting
_OPEN_HAND_PHASES = (GamePhase.SCORING, GamePhase.ROUND_END, GamePhase.FINISHED)


class QueryMixin:
    """Mixin containing query methods and legal action calculation for CribbageGameState."""

    # --- Direct State Queries ---

    def index_of(self, player_id: str) -> Optional[int]:
        """Seat index for a player id, or None if the id is not seated."""
        for index, player in enumerate(self.players):
            if player.player_id == player_id:
                return index
        return None

    def get_player(self, player_id: str) -> PlayerState:
        index = self.index_of(player_id)
        if index is None:
            raise KeyError(f"Unknown player '{player_id}'")
        return self.players[index]

    def get_player_hand(self, player_id: str) -> List[Card]:
        """Get the cards in a player's hand (a copy)."""
        return list(self.get_player(player_id).hand)

    def get_score(self, player_id: str) -> int:
        return self.get_player(player_id).pegs.front

    @property
    def non_dealer_index(self) -> int:
        return 1 - self.dealer_index

    @property
    def dealer_id(self) -> str:
        return self.players[self.dealer_index].player_id

    @property
    def non_dealer_id(self) -> str:
        return self.players[self.non_dealer_index].player_id

    @property
    def current_actor_id(self) -> Optional[str]:
        if self.current_actor_index is None:
            return None
        return self.players[self.current_actor_index].player_id

    @property
    def winner_id(self) -> Optional[str]:
        if self.winner_index is None:
            return None
        return self.players[self.winner_index].player_id

    @property
    def running_total(self) -> int:
        return pile_total(self.play_pile)

    def is_terminal(self) -> bool:
        """Returns True if the game is over."""
        return self.phase is GamePhase.FINISHED

    def can_continue_count(self, index: int) -> bool:
        """True if the seat has not said go and holds a card that fits under the limit."""
        return index not in self.go_declared and can_play_any(
            self.players[index].hand, self.running_total, self.rules.pegging_limit
        )

    def pending_actors(self) -> List[str]:
        """Players the game is waiting on right now."""
        if self.phase is GamePhase.DISCARDING:
            return [p.player_id for p in self.players if len(p.hand) == DEAL_SIZE]
        if self.phase in (GamePhase.CUTTING, GamePhase.PLAYING, GamePhase.SCORING):
            actor = self.current_actor_id
            return [actor] if actor is not None else []
        return []

    # --- Legal Actions ---

    def legal_actions(self, player_id: str) -> List[GameAction]:
        """
        Enumerates the actions the given player may take now.

        During PLAYING an ActionEndTurn ("go") is only listed when no card fits;
        the engine still accepts it otherwise, as the implicit timeout action.
        """
        index = self.index_of(player_id)
        if index is None or self.phase is GamePhase.FINISHED:
            return []
        player = self.players[index]

        if self.phase is GamePhase.DISCARDING:
            if len(player.hand) != DEAL_SIZE:
                return []
            return [
                ActionDiscard(player_id, pair)
                for pair in combinations(range(len(player.hand)), DISCARD_COUNT)
            ]

        if index != self.current_actor_index:
            return []

        if self.phase is GamePhase.CUTTING:
            return [ActionCut(player_id, i) for i in range(len(self.deck))]

        if self.phase is GamePhase.PLAYING:
            playable = playable_indices(
                player.hand, self.running_total, self.rules.pegging_limit
            )
            if not playable:
                return [ActionEndTurn(player_id)]
            return [ActionPlay(player_id, i) for i in playable]

        if self.phase is GamePhase.SCORING:
            if self.scoring_step is ScoringStep.DEALER_CRIB:
                return [ActionClaimCribScore(player_id)]
            return [ActionClaimHandScore(player_id)]

        return []

    # --- Snapshots ---

    def _crib_visible(self) -> bool:
        if self.phase in (GamePhase.ROUND_END, GamePhase.FINISHED):
            return True
        return self.phase is GamePhase.SCORING and self.scoring_step in (
            ScoringStep.DEALER_CRIB,
            ScoringStep.DONE,
        )

    def snapshot(self, viewer_id: Optional[str] = None) -> GameSnapshot:
        """
        Builds an immutable view for one player (or a spectator when viewer_id is None).

        The viewer always sees their own hand; other hands show only a count
        until SCORING restores them for counting.
        """
        views = []
        for index, player in enumerate(self.players):
            visible = player.player_id == viewer_id or self.phase in _OPEN_HAND_PHASES
            hand = tuple(player.hand) if visible else tuple(None for _ in player.hand)
            views.append(
                PlayerView(
                    player_id=player.player_id,
                    is_human=player.is_human,
                    is_dealer=index == self.dealer_index,
                    hand=hand,
                    hand_visible=visible,
                    pegs=player.pegs,
                    has_discarded=bool(player.kept_hand),
                    said_go=index in self.go_declared,
                )
            )

        if self._crib_visible():
            crib = tuple(self.crib)
        else:
            crib = tuple(None for _ in self.crib)

        return GameSnapshot(
            version=self.version,
            viewer_id=viewer_id,
            phase=self.phase,
            round_number=self.round_number,
            dealer_id=self.dealer_id,
            current_actor_id=self.current_actor_id,
            pending_actor_ids=tuple(self.pending_actors()),
            players=tuple(views),
            deck_size=len(self.deck),
            cut_card=self.cut_card,
            crib=crib,
            play_pile=tuple(self.play_pile),
            running_total=self.running_total,
            pegging_limit=self.rules.pegging_limit,
            winning_score=self.rules.winning_score,
            scoring_step=self.scoring_step if self.phase is GamePhase.SCORING else None,
            last_player_id=(
                self.players[self.last_player_index].player_id
                if self.last_player_index is not None
                else None
            ),
            winner_id=self.winner_id,
        )

    # --- Invariants ---

    def all_cards(self) -> List[Card]:
        """Every card the game currently accounts for, wherever it sits."""
        cards: List[Card] = list(self.deck)
        for player in self.players:
            cards.extend(player.hand)
        cards.extend(self.crib)
        cards.extend(self.play_pile)
        for pile in self.completed_piles:
            cards.extend(pile)
        if self.cut_card is not None:
            cards.append(self.cut_card)
        return cards

    def verify_invariants(self):
        """Raises InvariantViolation if the state is internally inconsistent."""
        if self.phase is GamePhase.WAITING:
            return

        cards = self.all_cards()
        if len(cards) != DECK_SIZE or len(set(cards)) != DECK_SIZE:
            logger.critical(
                "Card-count invariant broken: %d cards tracked, %d distinct.",
                len(cards),
                len(set(cards)),
            )
            raise InvariantViolation(
                f"Expected {DECK_SIZE} distinct cards, found {len(cards)} "
                f"({len(set(cards))} distinct)."
            )

        total = self.running_total
        if not 0 <= total <= self.rules.pegging_limit:
            raise InvariantViolation(
                f"Running total {total} outside [0, {self.rules.pegging_limit}]."
            )

        for player in self.players:
            pegs = player.pegs
            if not 0 <= pegs.back <= pegs.front <= self.rules.winning_score:
                raise InvariantViolation(
                    f"Pegs of {player.player_id} out of order: {pegs}."
                )
