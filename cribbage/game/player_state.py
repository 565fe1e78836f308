"""cribbage/game/player_state.py"""

from dataclasses import dataclass, field
from typing import List, TYPE_CHECKING

# Use TYPE_CHECKING guard for Card import
if TYPE_CHECKING:
    from ..card import Card


@dataclass(frozen=True)
class PegPair:
    """A player's two pegs; only the front peg represents the score."""

    front: int = 0
    back: int = 0

    def advance(self, points: int, limit: int) -> "PegPair":
        """Leapfrog: the back peg jumps past the front, clamped to the finish hole."""
        if points <= 0:
            return self
        return PegPair(front=min(limit, self.front + points), back=self.front)


@dataclass
class PlayerState:
    player_id: str
    is_human: bool = True
    hand: List["Card"] = field(default_factory=list)
    kept_hand: List["Card"] = field(default_factory=list)  # The 4 cards kept for counting
    pegs: PegPair = field(default_factory=PegPair)

    @property
    def score(self) -> int:
        return self.pegs.front
