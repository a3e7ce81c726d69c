"""
Pytest fixtures for Vacio tests.
"""

import random

import pytest

from ..engine_core.state import Card, GamePhase, SessionState
from ..games.default import create_default_scenario, standard_deck
from ..session.manager import GameSession
from ..spec_schema.scenario import Scenario

STANDARD_CARDS = {card.id: card for card in standard_deck()}


class FixedRandom(random.Random):
    """random() always returns `value`; choice() and shuffle() follow it too."""
    value = 0.0

    def random(self):
        return self.value


def card(card_id: str) -> Card:
    """Look up a standard card by id ("AS", "10H", ...)."""
    return STANDARD_CARDS[card_id]


def deal(session: GameSession, *card_ids: str) -> list[Card]:
    """Put cards straight into the hand and open the player phase."""
    cards = [card(card_id) for card_id in card_ids]
    session.state.add_to_hand(cards)
    session.state.set_phase(GamePhase.PLAYER_ACTION)
    return cards


def stack_eco_deck(session: GameSession, *card_ids: str):
    """Put cards on top of the Eco deck; the last id is drawn first."""
    for card_id in card_ids:
        session.decks.opponent.add(card(card_id), shuffle=False)


def stack_player_deck(session: GameSession, *card_ids: str):
    """Put cards on top of the player deck; the last id is drawn first."""
    for card_id in card_ids:
        session.decks.player.take_matching(lambda c, wanted=card_id: c.id == wanted, 1)
        session.decks.player.add(card(card_id), shuffle=False)


@pytest.fixture
def scenario() -> Scenario:
    """The built-in La Caleta scenario."""
    return create_default_scenario()


@pytest.fixture
def session(scenario: Scenario) -> GameSession:
    """A freshly reset session: EVENT phase, empty hand, full resources."""
    return GameSession(scenario, seed=7)


@pytest.fixture
def player_turn(session: GameSession) -> GameSession:
    """A session waiting for player actions with an empty hand."""
    session.state.set_phase(GamePhase.PLAYER_ACTION)
    return session


@pytest.fixture
def started(session: GameSession) -> GameSession:
    """A session run through start_game()."""
    session.turn_manager.start_game()
    return session


@pytest.fixture
def state() -> SessionState:
    """A bare state with default limits."""
    return SessionState(pv=20, sanity=20, pa=2, eco_hp=50)


@pytest.fixture
def fixed_rng():
    """Build a FixedRandom with the given random() value."""
    def make(value: float) -> FixedRandom:
        rng = FixedRandom(1)
        rng.value = value
        return rng
    return make
