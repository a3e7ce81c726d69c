"""
Corruption Subsystem - Hallucination cards.

The Eco corrupts the player's deck by shuffling hallucinations into
it. A hallucination never stays in hand: when drawn, its one-shot
effect applies immediately and the card goes to the discard pile.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING
import itertools
import logging
import random

from .state import Card, Suit, PlayerStatus
from .bus import LogCategory

if TYPE_CHECKING:
    from .state import SessionState
    from .deck import DeckManager
    from .bus import GameLog

logger = logging.getLogger(__name__)


class HallucinationEffect(Enum):
    LOSE_SANITY = "lose_sanity"
    DISCARD_HAND = "discard_hand"
    CANNOT_PLAY_SPADES = "cannot_play_spades"


@dataclass(frozen=True, eq=False)
class HallucinationCard(Card):
    """A corruption card. Suit none, value 0."""
    effect: HallucinationEffect = HallucinationEffect.LOSE_SANITY
    description: str = ""

    @property
    def is_hallucination(self) -> bool:
        return True


@dataclass(frozen=True)
class HallucinationTemplate:
    key: str
    effect: HallucinationEffect
    description: str


HALLUCINATIONS = [
    HallucinationTemplate(
        "family",
        HallucinationEffect.LOSE_SANITY,
        "Your family calls to you from the riverbank. You lose 2 COR.",
    ),
    HallucinationTemplate(
        "lighthouse",
        HallucinationEffect.DISCARD_HAND,
        "The lighthouse ignites with your heart. Discard your entire hand.",
    ),
    HallucinationTemplate(
        "footsteps",
        HallucinationEffect.CANNOT_PLAY_SPADES,
        "You hear footsteps behind you. You cannot play Spades this turn.",
    ),
]

SANITY_LOSS = 2


class CorruptionSystem:
    """
    Injects hallucinations into the player deck and applies them.

    Also tracks the hallucination level, which rises by one every
    maintenance phase.
    """

    def __init__(
        self,
        state: SessionState,
        decks: DeckManager,
        rng: random.Random,
        game_log: GameLog | None = None,
        templates: list[HallucinationTemplate] | None = None,
    ):
        self.state = state
        self.decks = decks
        self._rng = rng
        self._log = game_log
        self._templates = templates or HALLUCINATIONS
        self._counter = itertools.count(1)
        self._level = 0

    @property
    def level(self) -> int:
        return self._level

    def increase(self, amount: int = 1):
        self._level += max(0, amount)
        logger.debug("Hallucination level -> %d", self._level)

    def decrease(self, amount: int = 1):
        self._level = max(0, self._level - max(0, amount))
        logger.debug("Hallucination level -> %d", self._level)

    def create(self, template: HallucinationTemplate | None = None) -> HallucinationCard:
        """Build a fresh hallucination with a unique instance id."""
        template = template or self._rng.choice(self._templates)
        return HallucinationCard(
            id=f"hallucination-{template.key}-{next(self._counter)}",
            suit=Suit.NONE,
            rank="hallucination",
            value=0,
            image_file="missing-card.jpg",
            effect=template.effect,
            description=template.description,
        )

    def inject(self, count: int = 1) -> list[HallucinationCard]:
        """Shuffle count random hallucinations into the player deck."""
        injected = []
        for _ in range(max(0, count)):
            card = self.create()
            self.decks.add_to_player_deck(card)
            injected.append(card)
        if injected and self._log:
            noun = "hallucination" if len(injected) == 1 else "hallucinations"
            self._log.eco(f"The Eco corrupts your deck with {len(injected)} {noun}", LogCategory.HALLUCINATION)
        return injected

    def apply(self, card: HallucinationCard):
        """Resolve a drawn hallucination's one-shot effect."""
        if self._log:
            self._log.event(card.description, LogCategory.HALLUCINATION)

        if card.effect == HallucinationEffect.LOSE_SANITY:
            self.state.damage_sanity(SANITY_LOSS)
        elif card.effect == HallucinationEffect.DISCARD_HAND:
            self.decks.discard(self.state.clear_hand())
        elif card.effect == HallucinationEffect.CANNOT_PLAY_SPADES:
            self.state.add_status(PlayerStatus.CANNOT_PLAY_SPADES)
