import logging
import random
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

SUITS = ['Spades', 'Hearts', 'Clubs', 'Diamonds']
FACES = ['Ace', '2', '3', '4', '5', '6', '7', '8', '9', '10', 'Jack', 'Queen', 'King']
TEN_VALUE_FACES = ['10', 'Jack', 'Queen', 'King']

BLACKJACK = 21
ACE_HIGH = 11
ACE_LOW = 1
DEALER_STANDS_ON = 18
INITIAL_HAND_SIZE = 2


class BlackjackError(Exception):
    pass


class InvalidCardFace(BlackjackError, ValueError):
    pass


class DeckExhausted(BlackjackError, IndexError):
    pass


class UnknownPlayer(BlackjackError, KeyError):
    pass


def random_integer(lower, upper):
    """Inclusive of both lower and upper: random_integer(0, 2) is one of 0, 1, 2."""
    return random.randint(lower, upper)


def random_integer_up_to(upper):
    """Non-inclusive of upper: random_integer_up_to(3) is one of 0, 1, 2."""
    return random_integer(0, upper - 1)


@dataclass(frozen=True)
class Card:
    face: str
    suit: str

    def long_name(self):
        return f"{self.face} of {self.suit}"

    def score(self):
        if self.face == 'Ace':
            return ACE_HIGH
        elif self.face in TEN_VALUE_FACES:
            return 10
        elif self.face in FACES:
            return int(self.face)
        raise InvalidCardFace(f"unknown card face {self.face!r}")

    @classmethod
    def random_card(cls):
        suit = SUITS[random_integer_up_to(len(SUITS))]
        face = FACES[random_integer_up_to(len(FACES))]
        return cls(face, suit)


class Deck:
    """Draw pile plus discard pile built from ``deck_count`` standard decks.

    A deck_count of 0 or less gives a magic deck: cards are generated on
    demand and neither pile is ever used.
    """

    def __init__(self, deck_count=0):
        self.deck_count = deck_count
        self.draw_pile = []
        self.discard_pile = []
        for _ in range(deck_count):
            for suit in SUITS:
                for face in FACES:
                    self.draw_pile.append(Card(face, suit))
        logger.debug("Deck built: deck_count=%s cards=%s", deck_count, len(self.draw_pile))

    def magic_deck(self):
        return self.deck_count <= 0

    def cards_remaining(self):
        return len(self.draw_pile)

    def shuffle(self):
        if self.magic_deck():
            return
        old_pile = self.draw_pile + self.discard_pile
        new_pile = []
        while old_pile:
            index = random_integer_up_to(len(old_pile))
            new_pile.append(old_pile.pop(index))
        self.draw_pile = new_pile
        self.discard_pile = []
        logger.debug("Deck shuffled: %s cards in draw pile", len(self.draw_pile))

    def draw(self):
        if self.magic_deck():
            return Card.random_card()
        if not self.draw_pile:
            raise DeckExhausted(
                f"draw pile empty ({len(self.discard_pile)} cards in discard pile)"
            )
        card = self.draw_pile.pop()
        self.discard_pile.append(card)
        logger.debug("Drew %s: %s left", card.long_name(), len(self.draw_pile))
        return card


class DealOutcome(Enum):
    NORMAL = 'normal'
    BUST = 'bust'
    NATURAL_WIN = 'natural_win'


class HandHolder:
    """A player or the dealer.

    The dealer is a hand holder with ``hides_hand=True``: its hand stays
    hidden until ``show_hand`` is set when the dealer plays.
    """

    def __init__(self, name, id=None, hides_hand=False):
        self.name = name
        self.id = id
        self.hides_hand = hides_hand
        self.show_hand = not hides_hand
        self.hand = []
        self.win_count = 0

    def __repr__(self):
        return f"HandHolder({self.name!r}, id={self.id!r})"

    @property
    def visible(self):
        return not self.hides_hand or self.show_hand

    def deal(self, card):
        self.hand.append(card)
        score = self.score()
        if score > BLACKJACK:
            return DealOutcome.BUST
        if score == BLACKJACK:
            return DealOutcome.NATURAL_WIN
        return DealOutcome.NORMAL

    def score(self):
        scores = [card.score() for card in self.hand]
        while sum(scores) > BLACKJACK and ACE_HIGH in scores:
            scores[scores.index(ACE_HIGH)] = ACE_LOW
        return sum(scores)

    def clear_hand(self):
        self.hand = []

    def won(self):
        self.win_count += 1


class Phase(Enum):
    DEALING = 'dealing'
    ACTING = 'acting'
    DEALER_TURN = 'dealer_turn'
    RESOLVED = 'resolved'


class Game:
    def __init__(self, player_count, deck_count=0):
        if player_count < 1:
            raise ValueError(f"player_count must be at least 1, got {player_count}")
        opening_cards = INITIAL_HAND_SIZE * (player_count + 1)
        if deck_count > 0 and deck_count * len(FACES) * len(SUITS) < opening_cards:
            raise ValueError(
                f"{deck_count} deck(s) cannot deal the opening hands for {player_count} player(s)"
            )
        self._next_player_id = 0
        self.dealer = HandHolder('Dealer', hides_hand=True)
        self.players = [self._new_player() for _ in range(player_count)]
        self.deck = Deck(deck_count)
        self.deck.shuffle()
        self.phase = Phase.DEALING
        self.standing = set()
        self.busted = set()
        self.winners = set()

    def _new_player(self):
        player_id = self._next_player_id
        self._next_player_id += 1
        return HandHolder(f"Player {player_id}", id=player_id)

    def player(self, player_id):
        for player in self.players:
            if player.id == player_id:
                return player
        raise UnknownPlayer(player_id)

    def all_standing(self):
        return all(player in self.standing for player in self.players)

    def new_game(self):
        self.phase = Phase.DEALING
        self.standing = set()
        self.busted = set()
        self.winners = set()
        self.dealer.show_hand = False
        self.dealer.clear_hand()
        for player in self.players:
            player.clear_hand()
        self.deck.shuffle()
        logger.info("New round: %s player(s)", len(self.players))

        for _ in range(INITIAL_HAND_SIZE):
            for player in self.players:
                self._apply(player, player.deal(self._draw()))
            self.dealer.deal(self._draw())

        self.phase = Phase.ACTING
        self._finish_if_all_standing()

    def hit(self, player):
        if self.phase is not Phase.ACTING or player in self.standing:
            return None
        outcome = player.deal(self._draw())
        logger.debug("%s hits: score=%s", player.name, player.score())
        self._apply(player, outcome)
        return outcome

    def stand(self, player):
        self.standing.add(player)
        self._finish_if_all_standing()

    def bust(self, player):
        logger.info("%s busts with %s", player.name, player.score())
        self.standing.add(player)
        self.busted.add(player)
        self._finish_if_all_standing()

    def win(self, player):
        logger.info("%s hits 21", player.name)
        self.standing.add(player)
        self._record_winner(player)
        self._finish_if_all_standing()

    def _draw(self):
        try:
            return self.deck.draw()
        except DeckExhausted:
            self._abandon_round()
            raise

    def _abandon_round(self):
        # Leave the table ready for a new round.
        logger.warning("Deck exhausted, abandoning round")
        self.standing = set(self.players)
        self.dealer.show_hand = True
        self.phase = Phase.RESOLVED

    def _apply(self, player, outcome):
        if outcome is DealOutcome.BUST:
            self.bust(player)
        elif outcome is DealOutcome.NATURAL_WIN:
            self.win(player)

    def _record_winner(self, player):
        if player in self.winners:
            return
        self.winners.add(player)
        player.won()

    def _finish_if_all_standing(self):
        # Forced stands during the deal must not start the dealer early.
        if self.phase is Phase.ACTING and self.all_standing():
            self._dealer_turn()

    def _dealer_turn(self):
        self.phase = Phase.DEALER_TURN
        self.dealer.show_hand = True
        while self.dealer.score() < DEALER_STANDS_ON:
            self.dealer.deal(self._draw())

        dealer_score = self.dealer.score()
        if dealer_score > BLACKJACK:
            floor = 0
            logger.info("Dealer busts with %s", dealer_score)
        else:
            floor = dealer_score
            logger.info("Dealer stands on %s", dealer_score)

        for player in self.players:
            if floor <= player.score() <= BLACKJACK:
                self._record_winner(player)

        self.phase = Phase.RESOLVED
        logger.info("Round resolved: winners=%s", sorted(p.name for p in self.winners))
