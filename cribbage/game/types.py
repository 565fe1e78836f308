# cribbage/game/types.py
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import time

from ..errors import RejectReason


@dataclass(frozen=True)
class ActionResult:
    """Outcome of an action: accepted, or rejected with a reason and no state change."""

    accepted: bool
    reason: Optional[RejectReason] = None
    message: str = ""
    points: int = 0  # Points scored by the acting player as a direct result

    def __bool__(self) -> bool:
        return self.accepted

    @classmethod
    def ok(cls, points: int = 0, message: str = "") -> "ActionResult":
        return cls(accepted=True, points=points, message=message)

    @classmethod
    def reject(cls, reason: RejectReason, message: str) -> "ActionResult":
        return cls(accepted=False, reason=reason, message=message)


@dataclass(frozen=True)
class GameEvent:
    """A record of something that happened in the game, kept in a bounded history."""

    kind: str  # e.g. 'card_played', 'score', 'go', 'phase'
    player_id: Optional[str]
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)
