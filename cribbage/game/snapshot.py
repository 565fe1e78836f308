"""
cribbage/game/snapshot.py

Immutable, per-viewer views of the game.

Snapshots are built from tuples and frozen dataclasses, so a caller holding
one can never reach back into the authoritative state. Hidden information is
removed at build time: the opponent's held cards are replaced by None
placeholders until hands are laid open for counting, the deck is reduced to
its size, and the crib stays face down until the dealer counts it.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from ..card import Card
from ..constants import GamePhase, ScoringStep
from .player_state import PegPair


@dataclass(frozen=True)
class PlayerView:
    player_id: str
    is_human: bool
    is_dealer: bool
    hand: Tuple[Optional[Card], ...]  # None marks a face-down card
    hand_visible: bool
    pegs: PegPair
    has_discarded: bool
    said_go: bool

    @property
    def hand_size(self) -> int:
        return len(self.hand)

    @property
    def score(self) -> int:
        return self.pegs.front


@dataclass(frozen=True)
class GameSnapshot:
    version: int
    viewer_id: Optional[str]
    phase: GamePhase
    round_number: int
    dealer_id: str
    current_actor_id: Optional[str]
    pending_actor_ids: Tuple[str, ...]
    players: Tuple[PlayerView, ...]
    deck_size: int
    cut_card: Optional[Card]
    crib: Tuple[Optional[Card], ...]
    play_pile: Tuple[Card, ...]
    running_total: int
    pegging_limit: int
    winning_score: int
    scoring_step: Optional[ScoringStep]
    last_player_id: Optional[str]
    winner_id: Optional[str]

    def player(self, player_id: str) -> PlayerView:
        for view in self.players:
            if view.player_id == player_id:
                return view
        raise KeyError(player_id)

    def opponent_of(self, player_id: str) -> PlayerView:
        for view in self.players:
            if view.player_id != player_id:
                return view
        raise KeyError(player_id)

    @property
    def me(self) -> Optional[PlayerView]:
        """The viewer's own seat, or None for a spectator snapshot."""
        if self.viewer_id is None:
            return None
        return self.player(self.viewer_id)

    @property
    def is_finished(self) -> bool:
        return self.phase is GamePhase.FINISHED
