"""
cribbage/session.py

Session registry: owns every running game together with its scheduler and
computer opponents. The registry is an ordinary object handed to whoever
needs it; there is no module-level instance.
"""

import logging
import random
import threading
import uuid
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Union

from .agents.baseline_strategies import BaseStrategy, create_strategy
from .card import Card
from .config import Config
from .constants import GameAction
from .errors import UnknownSessionError
from .game.engine import CribbageGameState
from .game.snapshot import GameSnapshot
from .game.types import ActionResult
from .hooks import LoggingSessionHooks, SessionHooks, fire_hook
from .scheduler import TimerFactory, TurnScheduler

logger = logging.getLogger(__name__)

DEFAULT_OPPONENT_ID = "computer"


@dataclass
class GameSession:
    session_id: str
    game: CribbageGameState
    scheduler: TurnScheduler
    strategies: Dict[str, BaseStrategy] = field(default_factory=dict)
    ended: bool = False
    winner_id: Optional[str] = None

    @property
    def player_ids(self) -> List[str]:
        return [p.player_id for p in self.game.players]

    @property
    def is_finished(self) -> bool:
        return self.game.is_terminal()

    def submit(self, action: GameAction) -> ActionResult:
        return self.scheduler.submit(action)

    def snapshot(self, viewer_id: Optional[str] = None) -> GameSnapshot:
        return self.scheduler.snapshot(viewer_id)


class SessionRegistry:
    """Creates, looks up and ends game sessions."""

    def __init__(
        self,
        config: Optional[Config] = None,
        hooks: Optional[SessionHooks] = None,
        timer_factory: Optional[TimerFactory] = None,
    ):
        self.config = config or Config()
        self.hooks = hooks or LoggingSessionHooks()
        self.timer_factory = timer_factory
        self._sessions: Dict[str, GameSession] = {}
        # Human player id -> session id, for sessions still in progress
        self._player_sessions: Dict[str, str] = {}
        self._lock = threading.Lock()
        self._opponent_rng = random.Random(self.config.opponent.seed)

    # --- Creation ---

    def create_session(
        self,
        human_id: str,
        opponent_id: str = DEFAULT_OPPONENT_ID,
        difficulty: Optional[str] = None,
        deck: Optional[Sequence[Card]] = None,
        seed: Optional[int] = None,
    ) -> str:
        """Human versus computer. The human deals first."""
        return self.create_match(
            [human_id, opponent_id],
            computer_ids=[opponent_id],
            difficulty=difficulty,
            deck=deck,
            seed=seed,
        )

    def create_match(
        self,
        player_ids: Sequence[str],
        computer_ids: Iterable[str] = (),
        difficulty: Union[str, Dict[str, str], None] = None,
        deck: Optional[Sequence[Card]] = None,
        seed: Optional[int] = None,
    ) -> str:
        """
        Any pairing of human and computer seats. players[0] deals first.

        `difficulty` is one level for every computer seat or a mapping of
        seat id to level; seats left out use opponent.difficulty.

        A human player sits in at most one session in progress; computer seats
        are not tracked, so one computer id can play many sessions at once.

        Returns the new session id once the first hand has been dealt. The ready
        hook fires just before the deal, so it always precedes the ended hook.
        """
        computers = list(computer_ids)
        unknown = [pid for pid in computers if pid not in player_ids]
        if unknown:
            raise ValueError(f"Computer seats {unknown} are not among players {player_ids}.")
        humans = [pid for pid in player_ids if pid not in computers]
        self._check_players_free(humans)

        default_level = self.config.opponent.difficulty
        if isinstance(difficulty, dict):
            levels = {pid: difficulty.get(pid, default_level) for pid in computers}
        else:
            levels = {pid: difficulty or default_level for pid in computers}
        game = CribbageGameState.create(
            player_ids,
            human_ids=humans,
            rules=self.config.rules,
            seed=seed,
        )
        if deck is not None:
            deck = game.validate_deck(deck)
        strategies = {
            pid: create_strategy(
                levels[pid], pid, random.Random(self._opponent_rng.getrandbits(32))
            )
            for pid in computers
        }

        session_id = uuid.uuid4().hex
        scheduler = TurnScheduler(
            game,
            config=self.config.scheduler,
            strategies=strategies,
            timer_factory=self.timer_factory,
            rng=random.Random(self._opponent_rng.getrandbits(32)),
            on_finished=lambda winner: self._on_finished(session_id, winner),
        )
        session = GameSession(session_id, game, scheduler, strategies)
        with self._lock:
            # Checked again under the lock: another thread may have seated them
            busy = [pid for pid in humans if pid in self._player_sessions]
            if busy:
                raise ValueError(f"Players {busy} are already in a session in progress.")
            self._sessions[session_id] = session
            for pid in humans:
                self._player_sessions[pid] = session_id

        logger.info(
            "Session %s created: %s (computer: %s, levels %s).",
            session_id,
            list(player_ids),
            computers or "none",
            levels or "-",
        )
        fire_hook("on_session_ready", self.hooks.on_session_ready, session_id)
        scheduler.start(deck)
        return session_id

    # --- Lookup & Actions ---

    def get(self, session_id: str) -> GameSession:
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise UnknownSessionError(session_id)
        return session

    def session_for_player(self, player_id: str) -> GameSession:
        """The session in progress that a human player sits in."""
        with self._lock:
            session_id = self._player_sessions.get(player_id)
            session = self._sessions.get(session_id) if session_id else None
        if session is None:
            raise UnknownSessionError(f"No session in progress for player '{player_id}'")
        return session

    def snapshot_for_player(self, player_id: str) -> GameSnapshot:
        """That player's own view of their session in progress."""
        return self.session_for_player(player_id).snapshot(player_id)

    def _check_players_free(self, player_ids: Iterable[str]):
        with self._lock:
            busy = [pid for pid in player_ids if pid in self._player_sessions]
        if busy:
            raise ValueError(f"Players {busy} are already in a session in progress.")

    def submit(self, session_id: str, action: GameAction) -> ActionResult:
        return self.get(session_id).submit(action)

    def snapshot(self, session_id: str, viewer_id: Optional[str] = None) -> GameSnapshot:
        return self.get(session_id).snapshot(viewer_id)

    def active_sessions(self) -> List[str]:
        """Ids of registered sessions whose game is still in progress."""
        with self._lock:
            return [
                sid
                for sid, session in self._sessions.items()
                if not session.ended and not session.is_finished
            ]

    # --- Teardown ---

    def end_session(self, session_id: str):
        """Stops the session's timers and removes it from the registry."""
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            raise UnknownSessionError(session_id)
        session.scheduler.shutdown()
        self._mark_ended(session, session.game.winner_id)
        logger.info("Session %s removed.", session_id)

    def _on_finished(self, session_id: str, winner_id: Optional[str]):
        with self._lock:
            session = self._sessions.get(session_id)
        if session is not None:
            self._mark_ended(session, winner_id)

    def _mark_ended(self, session: GameSession, winner_id: Optional[str]):
        with self._lock:
            if session.ended:
                return
            session.ended = True
            session.winner_id = winner_id
            for pid in session.player_ids:
                if self._player_sessions.get(pid) == session.session_id:
                    del self._player_sessions[pid]
        fire_hook(
            "on_session_ended", self.hooks.on_session_ended, session.session_id, winner_id
        )
