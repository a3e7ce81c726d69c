"""
Deck/Draw - Player and antagonist decks.

Two independent decks built from the same 52-card source:
- The player deck (plus injected hallucinations)
- The antagonist (Eco) deck

Each deck has its own draw pile and discard pile. When a draw pile
runs dry it is rebuilt from its own discard pile and shuffled; if both
are empty the draw simply returns fewer cards. Drawing never raises.
"""

from __future__ import annotations
from typing import Callable, Iterable
import logging
import random

from .state import Card

logger = logging.getLogger(__name__)


class Deck:
    """
    One draw pile with its discard pile.

    Cards are drawn from the end of the list (the top of the pile).
    """

    def __init__(self, name: str, cards: Iterable[Card], rng: random.Random):
        self.name = name
        self._rng = rng
        self._draw_pile: list[Card] = list(cards)
        self._discard_pile: list[Card] = []

    def shuffle(self):
        self._rng.shuffle(self._draw_pile)

    def draw(self, count: int = 1) -> list[Card]:
        drawn: list[Card] = []
        for _ in range(max(0, count)):
            if not self._draw_pile:
                self._recycle_discards()
            if not self._draw_pile:
                logger.info("%s deck exhausted: drew %d of %d", self.name, len(drawn), count)
                break
            drawn.append(self._draw_pile.pop())
        return drawn

    def _recycle_discards(self):
        if not self._discard_pile:
            return
        logger.debug("%s deck empty: reshuffling %d discards", self.name, len(self._discard_pile))
        self._draw_pile = self._discard_pile
        self._discard_pile = []
        self.shuffle()

    def discard(self, cards: Iterable[Card]):
        self._discard_pile.extend(cards)

    def add(self, card: Card, shuffle: bool = True):
        """Put a card into the draw pile."""
        self._draw_pile.append(card)
        if shuffle:
            self.shuffle()

    def take_matching(self, predicate: Callable[[Card], bool], count: int) -> list[Card]:
        """Pull up to count matching cards out of the draw pile, top first."""
        taken: list[Card] = []
        for card in reversed(list(self._draw_pile)):
            if len(taken) >= count:
                break
            if predicate(card):
                taken.append(card)
        for card in taken:
            self._draw_pile.remove(card)
        return taken

    @property
    def draw_count(self) -> int:
        return len(self._draw_pile)

    @property
    def discard_count(self) -> int:
        return len(self._discard_pile)

    @property
    def discard_pile(self) -> list[Card]:
        return list(self._discard_pile)

    @property
    def exhausted(self) -> bool:
        return not self._draw_pile and not self._discard_pile


class DeckManager:
    """
    Owns the player deck and the antagonist deck.

    Both decks share the session's seeded RNG stream but never share
    card lists or discard piles.
    """

    def __init__(self, source: list[Card], rng: random.Random):
        self.player = Deck("player", source, rng)
        self.opponent = Deck("eco", source, rng)
        self.player.shuffle()
        self.opponent.shuffle()

    def draw(self, count: int = 1) -> list[Card]:
        return self.player.draw(count)

    def discard(self, cards: Iterable[Card]):
        self.player.discard(cards)

    def draw_opponent(self, count: int = 1) -> list[Card]:
        return self.opponent.draw(count)

    def discard_opponent(self, cards: Iterable[Card]):
        self.opponent.discard(cards)

    def add_to_player_deck(self, card: Card):
        """Insert a card (e.g. a hallucination) and reshuffle the draw pile."""
        self.player.add(card, shuffle=True)

    def take_matching(self, predicate: Callable[[Card], bool], count: int) -> list[Card]:
        return self.player.take_matching(predicate, count)

    @property
    def player_exhausted(self) -> bool:
        return self.player.exhausted

    @property
    def player_count(self) -> int:
        return self.player.draw_count

    @property
    def opponent_count(self) -> int:
        return self.opponent.draw_count
