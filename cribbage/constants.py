"""
cribbage/constants.py

Defines core constants, enumerations, and action types for the cribbage engine.

Includes card ranks/suits, scoring values, game phases, opponent difficulty
levels, and structured definitions for every action a player can submit.
"""

import enum
from typing import NamedTuple, Optional, Tuple, Union, TypeAlias, TYPE_CHECKING

# Use TYPE_CHECKING to allow importing Card only for type hints
if TYPE_CHECKING:
    from .card import Card


# Card Ranks (String representation)
ACE = "A"
TWO = "2"
THREE = "3"
FOUR = "4"
FIVE = "5"
SIX = "6"
SEVEN = "7"
EIGHT = "8"
NINE = "9"
TEN = "10"
JACK = "J"
QUEEN = "Q"
KING = "K"

NUMERIC_RANKS_STR = [TWO, THREE, FOUR, FIVE, SIX, SEVEN, EIGHT, NINE, TEN]
FACE_RANKS_STR = [JACK, QUEEN, KING]
ALL_RANKS_STR = [ACE] + NUMERIC_RANKS_STR + FACE_RANKS_STR

# Card Suits (String representation)
HEARTS = "hearts"
DIAMONDS = "diamonds"
CLUBS = "clubs"
SPADES = "spades"
ALL_SUITS = [HEARTS, DIAMONDS, CLUBS, SPADES]

SUIT_SYMBOLS = {HEARTS: "♥", DIAMONDS: "♦", CLUBS: "♣", SPADES: "♠"}
"""Display symbol for each suit, e.g. '5♠'."""

SUIT_LETTERS = {"H": HEARTS, "D": DIAMONDS, "C": CLUBS, "S": SPADES}
"""Single-letter suit aliases accepted when parsing card text."""


# --- Game Constants ---
NUM_PLAYERS = 2
"""Number of seats (cribbage as implemented is strictly head-to-head)."""

DECK_SIZE = 52
DEAL_SIZE = 6
"""Cards dealt to each player at the start of a round."""

DISCARD_COUNT = 2
"""Cards each player must lay away into the crib."""

KEPT_HAND_SIZE = DEAL_SIZE - DISCARD_COUNT
CRIB_SIZE = NUM_PLAYERS * DISCARD_COUNT

PEGGING_LIMIT = 31
WINNING_SCORE = 120
EVENT_HISTORY_LIMIT = 100
"""Maximum number of GameEvents retained by a game (oldest dropped first)."""


# --- Scoring Values ---
class Points:
    """Point values for every scoring combination."""

    FIFTEEN = 2
    THIRTY_ONE = 2
    PAIR = 2
    PAIR_ROYAL = 6  # three of a kind
    DOUBLE_PAIR_ROYAL = 12  # four of a kind
    FLUSH_HAND = 4
    FLUSH_FULL = 5
    NOB = 1
    GO = 1
    LAST_CARD = 1


PEGGING_SAME_RANK_POINTS = {
    2: Points.PAIR,
    3: Points.PAIR_ROYAL,
    4: Points.DOUBLE_PAIR_ROYAL,
}
"""Points for N trailing cards of the same rank in the play pile."""

MIN_RUN_LENGTH = 3


# --- Game Phases ---
class GamePhase(enum.Enum):
    """The turn-phase state machine's states."""

    WAITING = "waiting"
    DISCARDING = "discarding"
    CUTTING = "cutting"
    PLAYING = "playing"
    SCORING = "scoring"
    ROUND_END = "round_end"
    FINISHED = "finished"


class ScoringStep(enum.Enum):
    """Order of the claims made during the SCORING phase."""

    NON_DEALER_HAND = 0
    DEALER_HAND = 1
    DEALER_CRIB = 2
    DONE = 3


class Difficulty(enum.Enum):
    """Closed set of computer-opponent difficulty levels."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    EXPERT = "expert"


# Define CardObject alias using a string forward reference
CardObject: TypeAlias = "Card"
"""Type alias for the Card class, used for clarity in type hints."""


# --- Structured Action Definitions ---
# NamedTuples keep actions hashable and cheap to compare in legal-action sets.


class ActionDiscard(NamedTuple):
    """Action: Lay away two cards from the dealt hand into the crib."""

    actor_id: str
    card_indices: Tuple[int, ...]
    timestamp: Optional[float] = None


class ActionCut(NamedTuple):
    """Action: Cut the remaining deck at an offset, revealing the cut card."""

    actor_id: str
    cut_index: int
    timestamp: Optional[float] = None


class ActionPlay(NamedTuple):
    """Action: Play one card from hand onto the play pile."""

    actor_id: str
    card_index: int
    timestamp: Optional[float] = None


class ActionEndTurn(NamedTuple):
    """Action: End the turn without a card ("go"), also submitted on timeout."""

    actor_id: str
    timestamp: Optional[float] = None


class ActionClaimHandScore(NamedTuple):
    """Action: Count the player's restored hand with the cut card."""

    actor_id: str
    timestamp: Optional[float] = None


class ActionClaimCribScore(NamedTuple):
    """Action: Count the crib (dealer only)."""

    actor_id: str
    timestamp: Optional[float] = None


# Union type for all possible actions
GameAction = Union[
    ActionDiscard,
    ActionCut,
    ActionPlay,
    ActionEndTurn,
    ActionClaimHandScore,
    ActionClaimCribScore,
]
"""A type alias representing any possible action a player can take in the game."""
