import pytest

import flask_app
from blackjack_engine import Card, Game


def make_cards(*faces, suit='Spades'):
    return [Card(face, suit) for face in faces]


def stack_deck(deck, cards):
    """Put ``cards`` on the draw pile so they come out in the given order."""
    deck.draw_pile = list(reversed(cards))
    deck.discard_pile = []


@pytest.fixture
def rigged_game(monkeypatch):
    """Build a game whose deck deals the given faces in order.

    With one player, new_game() deals player, dealer, player, dealer.
    """
    def build(*faces, player_count=1):
        game = Game(player_count, deck_count=1)
        monkeypatch.setattr(game.deck, "shuffle", lambda: None)
        stack_deck(game.deck, make_cards(*faces))
        return game
    return build


@pytest.fixture
def client(rigged_game):
    game = rigged_game('10', '10', '9', '7', '2', '5')
    game.new_game()
    flask_app.game = game
    flask_app.app.config["TESTING"] = True
    with flask_app.app.test_client() as client:
        yield client
    flask_app.game = None
