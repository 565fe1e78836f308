"""cribbage/card.py"""

from dataclasses import dataclass
from typing import ClassVar, Dict, Iterable, List, Optional
import logging
import random

from .constants import (
    ACE,
    JACK,
    QUEEN,
    KING,
    ALL_RANKS_STR,
    ALL_SUITS,
    SUIT_SYMBOLS,
    SUIT_LETTERS,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Card:
    """An immutable playing card with rank, suit, and derived values."""

    rank: str  # e.g., 'A', '10', 'K'
    suit: str  # e.g., 'hearts'

    # Rank order used for runs (A low, K high)
    _rank_order: ClassVar[Dict[str, int]] = {
        rank: position for position, rank in enumerate(ALL_RANKS_STR, start=1)
    }

    def __post_init__(self):
        if self.rank not in ALL_RANKS_STR:
            raise ValueError(f"Invalid card rank: '{self.rank}'")
        if self.suit not in ALL_SUITS:
            raise ValueError(f"Invalid suit '{self.suit}' for rank '{self.rank}'")

    @property
    def value(self) -> int:
        """Counting value: A=1, 2-10 face value, J/Q/K=10."""
        if self.rank == ACE:
            return 1
        if self.rank in (JACK, QUEEN, KING):
            return 10
        return int(self.rank)

    @property
    def rank_value(self) -> int:
        """Position in rank order (A=1 ... K=13), used for runs."""
        return self._rank_order[self.rank]

    @property
    def display_name(self) -> str:
        return f"{self.rank}{SUIT_SYMBOLS[self.suit]}"

    def __str__(self) -> str:
        return self.display_name

    def __repr__(self) -> str:
        return f"Card(rank='{self.rank}', suit='{self.suit}')"


def parse_card(text: str) -> Card:
    """
    Parses short card text such as '5S', '10h', 'JD', 'Q♣' or 'as'.

    The last character is the suit (letter or symbol); the rest is the rank.
    """
    cleaned = text.strip()
    if len(cleaned) < 2:
        raise ValueError(f"Cannot parse card from '{text}'")
    rank_part, suit_part = cleaned[:-1].upper(), cleaned[-1]
    if rank_part == "T":
        rank_part = "10"
    suit = SUIT_LETTERS.get(suit_part.upper())
    if suit is None:
        suit = next(
            (name for name, symbol in SUIT_SYMBOLS.items() if symbol == suit_part),
            None,
        )
    if suit is None:
        raise ValueError(f"Unknown suit '{suit_part}' in card '{text}'")
    return Card(rank_part, suit)


def parse_cards(texts: Iterable[str]) -> List[Card]:
    """Parses several card strings, see parse_card."""
    return [parse_card(text) for text in texts]


# --- Standard Deck Creation ---
def create_standard_deck() -> List[Card]:
    """Creates the ordered 52-card deck (suit-major, A..K within each suit)."""
    return [Card(rank, suit) for suit in ALL_SUITS for rank in ALL_RANKS_STR]


def shuffle_deck(deck: List[Card], rng: Optional[random.Random] = None) -> List[Card]:
    """Returns a shuffled copy of the deck using the given game-local RNG."""
    shuffled = list(deck)
    (rng or random).shuffle(shuffled)
    logger.debug("Shuffled deck of %d cards.", len(shuffled))
    return shuffled


def cards_to_str(cards: Iterable[Card]) -> str:
    """Human-readable, space separated card list."""
    return " ".join(str(card) for card in cards)
