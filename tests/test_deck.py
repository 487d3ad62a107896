"""
Unit tests for Deck.

Covers building, shuffling, drawing and the magic (infinite) deck.
"""

import logging
import random
from collections import Counter

import pytest

from blackjack_engine import Card, Deck, DeckExhausted, BlackjackError


class TestDeckBuild:
    """Test deck construction."""

    def test_single_deck_has_52_distinct_cards(self):
        deck = Deck(1)
        assert len(deck.draw_pile) == 52
        assert len(set(deck.draw_pile)) == 52
        assert deck.discard_pile == []

    def test_multiple_decks(self):
        """Each face/suit combination appears once per physical deck."""
        deck = Deck(3)
        counts = Counter((c.face, c.suit) for c in deck.draw_pile)
        assert len(deck.draw_pile) == 156
        assert set(counts.values()) == {3}

    @pytest.mark.parametrize("deck_count,magic", [(-2, True), (0, True), (1, False), (4, False)])
    def test_magic_deck_follows_deck_count(self, deck_count, magic):
        assert Deck(deck_count).magic_deck() is magic


class TestDeckDraw:
    """Test drawing from a real deck."""

    def test_draw_moves_last_card_to_discard(self):
        deck = Deck(1)
        expected = deck.draw_pile[-1]
        card = deck.draw()
        assert card is expected
        assert deck.discard_pile == [card]
        assert deck.cards_remaining() == 51

    def test_draw_is_logged(self, caplog):
        caplog.set_level(logging.DEBUG, logger="blackjack_engine")
        deck = Deck(1)
        card = deck.draw()
        assert f"Drew {card.long_name()}: 51 left" in caplog.text

    def test_draw_until_exhausted(self):
        deck = Deck(1)
        for _ in range(52):
            deck.draw()
        with pytest.raises(DeckExhausted):
            deck.draw()

    def test_exhausted_is_an_index_error(self):
        assert issubclass(DeckExhausted, IndexError)
        assert issubclass(DeckExhausted, BlackjackError)

    def test_no_card_in_both_piles(self):
        deck = Deck(2)
        deck.shuffle()
        for _ in range(30):
            deck.draw()
        draw_ids = {id(c) for c in deck.draw_pile}
        discard_ids = {id(c) for c in deck.discard_pile}
        assert not draw_ids & discard_ids
        assert len(deck.draw_pile) + len(deck.discard_pile) == 104


class TestDeckShuffle:
    """Test shuffling."""

    def test_shuffle_returns_discards_to_draw_pile(self):
        deck = Deck(1)
        before = Counter(deck.draw_pile)
        for _ in range(20):
            deck.draw()
        deck.shuffle()
        assert deck.discard_pile == []
        assert Counter(deck.draw_pile) == before

    def test_shuffle_changes_order(self):
        random.seed(42)
        deck = Deck(1)
        ordered = list(deck.draw_pile)
        deck.shuffle()
        assert deck.draw_pile != ordered
        assert sorted(deck.draw_pile, key=ordered.index) == ordered

    def test_shuffle_is_roughly_uniform(self):
        """Each card lands at each position about equally often."""
        random.seed(1234)
        cards = [Card(face, 'Hearts') for face in ('2', '3', '4', '5', '6')]
        trials = 5000
        positions = Counter()
        for _ in range(trials):
            deck = Deck(1)
            deck.draw_pile = list(cards)
            deck.shuffle()
            for index, card in enumerate(deck.draw_pile):
                positions[(card.face, index)] += 1

        expected = trials / len(cards)
        for count in positions.values():
            assert abs(count - expected) < expected * 0.15


class TestMagicDeck:
    """Test the infinite deck."""

    def test_draw_never_touches_piles(self):
        deck = Deck(0)
        for _ in range(200):
            assert isinstance(deck.draw(), Card)
        assert deck.draw_pile == []
        assert deck.discard_pile == []
        assert deck.magic_deck()

    def test_shuffle_is_noop(self):
        deck = Deck(0)
        deck.shuffle()
        assert deck.draw_pile == []
        assert deck.discard_pile == []
