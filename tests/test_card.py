"""Tests for cribbage/card.py"""

import random

import pytest

from cribbage.card import (
    Card,
    cards_to_str,
    create_standard_deck,
    parse_card,
    parse_cards,
    shuffle_deck,
)
from cribbage.constants import CLUBS, DIAMONDS, HEARTS, SPADES


# ===== Card =====


class TestCard:
    def test_counting_values(self):
        assert Card("A", SPADES).value == 1
        assert Card("7", HEARTS).value == 7
        assert Card("10", CLUBS).value == 10
        for face in ("J", "Q", "K"):
            assert Card(face, DIAMONDS).value == 10

    def test_rank_values_for_runs(self):
        assert Card("A", SPADES).rank_value == 1
        assert Card("10", SPADES).rank_value == 10
        assert Card("J", SPADES).rank_value == 11
        assert Card("K", SPADES).rank_value == 13

    def test_display_name(self):
        assert str(Card("5", SPADES)) == "5♠"
        assert Card("10", HEARTS).display_name == "10♥"

    def test_invalid_rank_or_suit(self):
        with pytest.raises(ValueError):
            Card("1", SPADES)
        with pytest.raises(ValueError):
            Card("5", "stars")

    def test_frozen_and_hashable(self):
        card = Card("Q", CLUBS)
        assert card == Card("Q", CLUBS)
        assert len({card, Card("Q", CLUBS)}) == 1
        with pytest.raises(Exception):
            card.rank = "K"  # type: ignore[misc]


# ===== Parsing =====


class TestParseCard:
    def test_letters_and_symbols(self):
        assert parse_card("5S") == Card("5", SPADES)
        assert parse_card("10h") == Card("10", HEARTS)
        assert parse_card("TD") == Card("10", DIAMONDS)
        assert parse_card("jc") == Card("J", CLUBS)
        assert parse_card("Q♣") == Card("Q", CLUBS)

    def test_parse_many(self):
        assert parse_cards(["AS", "KH"]) == [Card("A", SPADES), Card("K", HEARTS)]

    def test_rejects_garbage(self):
        for text in ("", "5", "5X", "ZZS"):
            with pytest.raises(ValueError):
                parse_card(text)


# ===== Deck =====


class TestDeck:
    def test_standard_deck_has_52_unique_cards(self):
        deck = create_standard_deck()
        assert len(deck) == 52
        assert len(set(deck)) == 52

    def test_shuffle_is_seeded_copy(self):
        deck = create_standard_deck()
        first = shuffle_deck(deck, random.Random(7))
        second = shuffle_deck(deck, random.Random(7))
        assert first == second
        assert deck == create_standard_deck()  # original untouched
        assert sorted(first, key=repr) == sorted(deck, key=repr)

    def test_cards_to_str(self):
        assert cards_to_str(parse_cards(["5S", "JD"])) == "5♠ J♦"
