"""cribbage/game/engine.py"""

import random
from collections import deque
from typing import Deque, Iterable, List, Optional, Sequence, Set
from dataclasses import dataclass, field
import logging

from .types import ActionResult, GameEvent
from .player_state import PlayerState
from .helpers import is_valid_index, serialize_cards
from ._query_mixin import QueryMixin
from ._pegging_mixin import PeggingMixin
from ._scoring_mixin import ScoringMixin
from ..card import Card, create_standard_deck, shuffle_deck
from ..constants import (
    DEAL_SIZE,
    DECK_SIZE,
    DISCARD_COUNT,
    EVENT_HISTORY_LIMIT,
    KEPT_HAND_SIZE,
    NUM_PLAYERS,
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
from ..config import RulesConfig
from ..errors import RejectReason

logger = logging.getLogger(__name__)


@dataclass
class CribbageGameState(QueryMixin, PeggingMixin, ScoringMixin):
    """
    The authoritative state of a two-player cribbage game.

    Every public operation validates before it mutates: a rejected action
    returns an ActionResult carrying the reason and leaves the state exactly
    as it was. Each accepted action bumps `version` by one.
    """

    # --- Core State Attributes ---
    players: List[PlayerState] = field(default_factory=list)
    deck: List[Card] = field(default_factory=list)
    crib: List[Card] = field(default_factory=list)
    cut_card: Optional[Card] = None
    play_pile: List[Card] = field(default_factory=list)
    completed_piles: List[List[Card]] = field(default_factory=list)
    phase: GamePhase = GamePhase.WAITING
    round_number: int = 0
    dealer_index: int = 0
    current_actor_index: Optional[int] = None
    rules: RulesConfig = field(default_factory=RulesConfig)
    rng: random.Random = field(default_factory=random.Random)
    version: int = 0
    events: Deque[GameEvent] = field(
        default_factory=lambda: deque(maxlen=EVENT_HISTORY_LIMIT)
    )

    # --- Pegging State (Managed primarily by PeggingMixin) ---
    go_declared: Set[int] = field(default_factory=set)
    last_player_index: Optional[int] = None

    # --- Scoring State (Managed primarily by ScoringMixin) ---
    scoring_step: ScoringStep = ScoringStep.NON_DEALER_HAND
    winner_index: Optional[int] = None

    # --- Initialization ---
    def __post_init__(self):
        if len(self.players) != NUM_PLAYERS:
            raise ValueError(
                f"Cribbage needs exactly {NUM_PLAYERS} players, got {len(self.players)}."
            )
        ids = [p.player_id for p in self.players]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Player ids must be distinct: {ids}")

    @classmethod
    def create(
        cls,
        player_ids: Sequence[str],
        human_ids: Iterable[str] = (),
        rules: Optional[RulesConfig] = None,
        seed: Optional[int] = None,
    ) -> "CribbageGameState":
        """Builds a WAITING game. players[0] deals the first round."""
        humans = set(human_ids)
        return cls(
            players=[PlayerState(pid, is_human=pid in humans) for pid in player_ids],
            rules=rules or RulesConfig(),
            rng=random.Random(seed),
        )

    # --- Bookkeeping ---

    def _record(self, kind: str, player_index: Optional[int] = None, **data):
        player_id = (
            self.players[player_index].player_id if player_index is not None else None
        )
        self.events.append(GameEvent(kind=kind, player_id=player_id, data=data))

    def _reject(self, reason: RejectReason, message: str) -> ActionResult:
        logger.debug("Rejected (%s): %s", reason.value, message)
        return ActionResult.reject(reason, message)

    def _accept(self, points: int = 0, message: str = "") -> ActionResult:
        self.version += 1
        return ActionResult.ok(points=points, message=message)

    def _set_phase(self, phase: GamePhase):
        if phase is not self.phase:
            logger.debug("Phase %s -> %s", self.phase.value, phase.value)
            self.phase = phase
            self._record("phase", None, phase=phase.value)

    def _award_points(self, index: int, points: int, reason: str) -> bool:
        """
        Moves the player's front peg. Returns True if the game just finished.

        The peg is clamped to the winning score, and reaching it ends the game
        at once, whatever phase the award happened in.
        """
        if points <= 0:
            return False
        player = self.players[index]
        player.pegs = player.pegs.advance(points, self.rules.winning_score)
        self._record("score", index, points=points, reason=reason, total=player.score)
        logger.debug(
            "%s scores %d for %s (now %d).", player.player_id, points, reason, player.score
        )
        if player.score >= self.rules.winning_score:
            self.winner_index = index
            self.current_actor_index = None
            self._set_phase(GamePhase.FINISHED)
            self._record("game_over", index, scores=[p.score for p in self.players])
            logger.info(
                "Game over: %s wins %s.",
                player.player_id,
                "-".join(str(p.score) for p in self.players),
            )
            return True
        return False

    # --- Dealing ---

    def validate_deck(self, deck: Sequence[Card]) -> List[Card]:
        """Checks a stacked deck: 52 distinct Card objects. Raises ValueError otherwise."""
        cards = list(deck)
        if len(cards) != DECK_SIZE or not all(isinstance(c, Card) for c in cards):
            raise ValueError(f"A stacked deck must hold {DECK_SIZE} Card objects.")
        if len(set(cards)) != DECK_SIZE:
            raise ValueError("A stacked deck must not repeat cards.")
        return cards

    def _deal(self, deck: Optional[Sequence[Card]]):
        """Deals a fresh round. `deck` is dealt from the front; None shuffles a new one."""
        if deck is not None:
            self.deck = self.validate_deck(deck)
        else:
            self.deck = shuffle_deck(create_standard_deck(), self.rng)

        for player in self.players:
            player.hand = []
            player.kept_hand = []
        self.crib = []
        self.cut_card = None
        self.play_pile = []
        self.completed_piles = []
        self.go_declared = set()
        self.last_player_index = None
        self.scoring_step = ScoringStep.NON_DEALER_HAND

        order = [self.non_dealer_index, self.dealer_index]
        for _ in range(DEAL_SIZE):
            for index in order:
                self.players[index].hand.append(self.deck.pop(0))

        self.current_actor_index = self.non_dealer_index
        self._set_phase(GamePhase.DISCARDING)
        self._record(
            "round", self.dealer_index, round_number=self.round_number
        )
        logger.debug(
            "Round %d dealt; dealer %s.", self.round_number, self.dealer_id
        )

    def start(self, deck: Optional[Sequence[Card]] = None) -> ActionResult:
        """WAITING -> DISCARDING. A stacked deck is dealt in order, for tests and replays."""
        if self.phase is not GamePhase.WAITING:
            return self._reject(
                RejectReason.INVALID_PHASE, f"Game already started ({self.phase.value})."
            )
        if deck is not None:
            self.validate_deck(deck)
        self.round_number = 1
        self._deal(deck)
        return self._accept(message="Game started.")

    def start_next_round(self, deck: Optional[Sequence[Card]] = None) -> ActionResult:
        """ROUND_END -> DISCARDING with the deal passing to the other player."""
        if self.phase is not GamePhase.ROUND_END:
            return self._reject(
                RejectReason.INVALID_PHASE,
                f"Next round only follows ROUND_END (now {self.phase.value}).",
            )
        if deck is not None:
            self.validate_deck(deck)
        self.dealer_index = self.non_dealer_index
        self.round_number += 1
        self._deal(deck)
        return self._accept(message=f"Round {self.round_number} dealt.")

    def advance(self) -> bool:
        """Applies automatic transitions. Returns True if anything changed."""
        if self.phase is GamePhase.ROUND_END:
            return self.start_next_round().accepted
        return False

    # --- Discard & Cut ---

    def discard(self, player_id: str, card_indices: Sequence[int]) -> ActionResult:
        """Lays two cards away into the crib. Both players discard independently."""
        if self.phase is not GamePhase.DISCARDING:
            return self._reject(
                RejectReason.INVALID_PHASE, f"Cannot discard during {self.phase.value}."
            )
        index = self.index_of(player_id)
        if index is None:
            return self._reject(RejectReason.NOT_ACTOR, f"Unknown player '{player_id}'.")
        player = self.players[index]
        if len(player.hand) != DEAL_SIZE:
            return self._reject(
                RejectReason.ALREADY_ACTIONED, f"{player_id} has already discarded."
            )

        if not isinstance(card_indices, (list, tuple)):
            return self._reject(
                RejectReason.ILLEGAL_INDEX,
                f"Discard needs a list of card indices, got {card_indices!r}.",
            )
        indices = tuple(card_indices)
        if (
            len(indices) != DISCARD_COUNT
            or len(set(indices)) != DISCARD_COUNT
            or not all(is_valid_index(i, len(player.hand)) for i in indices)
        ):
            return self._reject(
                RejectReason.ILLEGAL_INDEX,
                f"Discard needs {DISCARD_COUNT} distinct indices in range, got {indices}.",
            )

        discarded = [player.hand[i] for i in indices]
        for i in sorted(indices, reverse=True):
            player.hand.pop(i)
        self.crib.extend(discarded)
        player.kept_hand = list(player.hand)
        self._record("discard", index, count=len(discarded))
        logger.debug("%s discards %s.", player_id, serialize_cards(discarded))

        if all(len(p.hand) == KEPT_HAND_SIZE for p in self.players):
            self.current_actor_index = self.non_dealer_index
            self._set_phase(GamePhase.CUTTING)
        return self._accept()

    def cut(self, player_id: str, cut_index: int) -> ActionResult:
        """Reveals the cut card from the remaining deck."""
        if self.phase is not GamePhase.CUTTING:
            return self._reject(
                RejectReason.INVALID_PHASE, f"Cannot cut during {self.phase.value}."
            )
        index = self.index_of(player_id)
        if index is None or index != self.current_actor_index:
            return self._reject(RejectReason.NOT_ACTOR, f"{player_id} may not cut.")
        if not is_valid_index(cut_index, len(self.deck)):
            return self._reject(
                RejectReason.ILLEGAL_INDEX,
                f"Cut index {cut_index} outside [0, {len(self.deck)}).",
            )

        self.cut_card = self.deck.pop(cut_index)
        self.play_pile = []
        self.go_declared = set()
        self.last_player_index = None
        self.current_actor_index = self.non_dealer_index
        self._record("cut", index, card=str(self.cut_card))
        logger.debug("%s cuts %s.", player_id, self.cut_card)
        self._set_phase(GamePhase.PLAYING)
        return self._accept(message=f"Cut card {self.cut_card}.")

    # --- End Turn (explicit or on timeout) ---

    def end_turn(self, player_id: str) -> ActionResult:
        """
        Ends the player's turn with the default move for the phase.

        DISCARDING lays away the last two cards, CUTTING cuts the middle of
        the deck, PLAYING says "go" (a leader with an empty pile must play, so
        their first card goes down instead), SCORING makes the pending claim.
        """
        if self.phase is GamePhase.DISCARDING:
            index = self.index_of(player_id)
            if index is None:
                return self._reject(
                    RejectReason.NOT_ACTOR, f"Unknown player '{player_id}'."
                )
            hand_size = len(self.players[index].hand)
            return self.discard(
                player_id, tuple(range(hand_size - DISCARD_COUNT, hand_size))
            )
        if self.phase is GamePhase.CUTTING:
            return self.cut(player_id, len(self.deck) // 2)
        if self.phase is GamePhase.PLAYING:
            return self.declare_go(player_id)
        if self.phase is GamePhase.SCORING:
            if self.scoring_step is ScoringStep.DEALER_CRIB:
                return self.claim_crib_score(player_id)
            return self.claim_hand_score(player_id)
        return self._reject(
            RejectReason.INVALID_PHASE, f"Nothing to end during {self.phase.value}."
        )

    # --- Dispatch ---

    def apply_action(self, action: GameAction) -> ActionResult:
        """Applies any action type by dispatching to the matching operation."""
        if isinstance(action, ActionDiscard):
            return self.discard(action.actor_id, action.card_indices)
        if isinstance(action, ActionCut):
            return self.cut(action.actor_id, action.cut_index)
        if isinstance(action, ActionPlay):
            return self.play(action.actor_id, action.card_index)
        if isinstance(action, ActionEndTurn):
            return self.end_turn(action.actor_id)
        if isinstance(action, ActionClaimHandScore):
            return self.claim_hand_score(action.actor_id)
        if isinstance(action, ActionClaimCribScore):
            return self.claim_crib_score(action.actor_id)
        logger.warning("Unsupported action type: %s", type(action).__name__)
        return self._reject(
            RejectReason.INVALID_PHASE, f"Unsupported action {type(action).__name__}."
        )
