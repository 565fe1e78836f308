"""cribbage/game/helpers.py"""

from typing import Iterable, List, Optional, Sequence

from ..card import Card


def serialize_card(card: Optional[Card]) -> Optional[str]:
    """Serializes a card to string or None."""
    return str(card) if card else None


def serialize_cards(cards: Iterable[Card]) -> List[str]:
    return [str(card) for card in cards]


def can_play_any(hand: Sequence[Card], running_total: int, limit: int) -> bool:
    """True if at least one card in hand fits under the pegging limit."""
    return any(running_total + card.value <= limit for card in hand)


def playable_indices(hand: Sequence[Card], running_total: int, limit: int) -> List[int]:
    """Indices of cards that can be played without exceeding the limit."""
    return [
        index
        for index, card in enumerate(hand)
        if running_total + card.value <= limit
    ]


def is_valid_index(value, size: int) -> bool:
    """True for a plain int in [0, size)."""
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value < size
