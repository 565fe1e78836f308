"""
cribbage/errors.py
Rejection reasons and exceptions for the cribbage engine.

Ordinary rule violations are never raised: they come back as a rejected
ActionResult and leave the game untouched. Exceptions are reserved for
conditions that must stop a session.
"""

import enum


class RejectReason(enum.Enum):
    """Why an action was refused."""

    INVALID_PHASE = "invalid_phase"  # action doesn't match the current phase
    NOT_ACTOR = "not_actor"  # wrong (or unknown) player
    ILLEGAL_INDEX = "illegal_index"  # out-of-range or already-used card reference
    EXCEEDS_LIMIT = "exceeds_limit"  # play would push the running sum past 31
    ALREADY_ACTIONED = "already_actioned"  # second discard from the same player


class CribbageError(Exception):
    """Base class for engine exceptions."""


class InvariantViolation(CribbageError):
    """Internal state is inconsistent (e.g. card-count mismatch). Fatal for the session."""


class SessionHalted(CribbageError):
    """Raised for actions submitted to a session halted by an invariant violation."""


class UnknownSessionError(CribbageError, KeyError):
    """No session is registered under the requested id."""
