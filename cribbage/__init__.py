"""Two-player cribbage rules engine."""

from .card import Card, create_standard_deck, parse_card, parse_cards
from .scoring import score_hand, score_hand_breakdown, score_pegging_play
from .game.engine import CribbageGameState
from .session import SessionRegistry

__all__ = [
    "Card",
    "create_standard_deck",
    "parse_card",
    "parse_cards",
    "score_hand",
    "score_hand_breakdown",
    "score_pegging_play",
    "CribbageGameState",
    "SessionRegistry",
]
