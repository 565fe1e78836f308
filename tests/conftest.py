"""
tests/conftest.py

Shared fixtures for all tests.
"""

import sys
from pathlib import Path
from typing import List, Optional, Sequence

import pytest

# Ensure project root is on sys.path
_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from cribbage.card import Card, create_standard_deck, parse_cards  # noqa: E402


def stack_deck(
    non_dealer: Sequence[str], dealer: Sequence[str], cut: Optional[str] = None
) -> List[Card]:
    """
    A 52-card deck that deals the given six cards to each player.

    Cards are dealt from the front, alternating, non-dealer first. When `cut`
    is given it sits on top of the remaining deck, so cutting at index 0
    reveals it.
    """
    pone_cards = parse_cards(non_dealer)
    dealer_cards = parse_cards(dealer)
    dealt: List[Card] = []
    for pone_card, dealer_card in zip(pone_cards, dealer_cards):
        dealt.extend([pone_card, dealer_card])
    top = parse_cards([cut]) if cut else []
    rest = [card for card in create_standard_deck() if card not in dealt and card not in top]
    return dealt + top + rest


class FakeTimer:
    """Timer stand-in: records its callback and only runs when a test fires it."""

    def __init__(self, delay, fn):
        self.delay = delay
        self.fn = fn
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.fn()


class FakeTimerFactory:
    def __init__(self):
        self.timers: List[FakeTimer] = []

    def __call__(self, delay, fn):
        timer = FakeTimer(delay, fn)
        self.timers.append(timer)
        return timer

    def live(self) -> List[FakeTimer]:
        return [t for t in self.timers if t.started and not t.cancelled]


@pytest.fixture
def timer_factory():
    return FakeTimerFactory()
