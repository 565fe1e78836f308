# cribbage/hooks.py

import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class SessionHooks(ABC):
    """
    Lifecycle callbacks for an external collaborator (matchmaking, storage, UI).

    Each hook fires at most once per session. Exceptions raised by a hook are
    logged and never retried; they do not affect the game.
    """

    @abstractmethod
    def on_session_ready(self, session_id: str):
        """
        Called once the session is registered, right before the first deal.

        Args:
            session_id: The registry key of the new session.
        """
        pass

    @abstractmethod
    def on_session_ended(self, session_id: str, winner_id: Optional[str]):
        """
        Called once when the session finishes or is ended.

        Args:
            session_id: The registry key of the session.
            winner_id: The winning player's id, or None when ended before a winner.
        """
        pass


class LoggingSessionHooks(SessionHooks):
    """Default hooks: report lifecycle events to the cribbage logger."""

    def __init__(self, logger_name: str = "cribbage.sessions"):
        self.logger = logging.getLogger(logger_name)

    def on_session_ready(self, session_id: str):
        self.logger.info("Session %s ready.", session_id)

    def on_session_ended(self, session_id: str, winner_id: Optional[str]):
        self.logger.info("Session %s ended; winner: %s.", session_id, winner_id or "none")


class RecordingSessionHooks(SessionHooks):
    """Keeps every lifecycle call in memory, for the CLI summary and tests."""

    def __init__(self):
        self.ready: List[str] = []
        self.ended: List[tuple] = []

    def on_session_ready(self, session_id: str):
        self.ready.append(session_id)

    def on_session_ended(self, session_id: str, winner_id: Optional[str]):
        self.ended.append((session_id, winner_id))


def fire_hook(name: str, hook: Callable[..., None], *args):
    """Invokes one hook, logging (not propagating) anything it raises."""
    try:
        hook(*args)
    except Exception:  # pylint: disable=broad-except
        logger.exception("Session hook %s failed; not retrying.", name)
