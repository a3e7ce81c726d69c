"""
Action Generator - Enumerates the player's legal actions.

Used by:
1. Player policies in headless simulation
2. A UI that wants to grey out impossible actions

Every generated Action passes the dispatcher's validation in the
current state. Composite actions are generated in their "spend every
eligible card" form only.
"""

from __future__ import annotations
from typing import TYPE_CHECKING

from .action import Action
from .state import GamePhase, PlayerStatus, Suit
from .dispatcher import REPAIR_DIVISOR, SEARCH_DIVISOR
from ..spec_schema.effect_dsl import FALLBACK_RULES

if TYPE_CHECKING:
    from ..session.manager import GameSession


class ActionGenerator:
    """Generates legal actions for one session."""

    def __init__(self, session: GameSession):
        self.session = session

    def generate(self) -> list[Action]:
        state = self.session.state
        if state.phase != GamePhase.PLAYER_ACTION:
            return []

        actions: list[Action] = []
        if state.pa >= 1:
            actions.extend(self._play_actions())
            if not self.session.decks.player_exhausted:
                actions.append(Action.draw())
            actions.extend(Action.cycle(card.id) for card in state.hand)
            actions.extend(self._composite_actions())

        # Ending the turn is always available
        actions.append(Action.end_turn())
        return actions

    def _play_actions(self) -> list[Action]:
        state = self.session.state
        engine = self.session.rule_engine
        blocked = state.has_status(PlayerStatus.CANNOT_PLAY_SPADES)
        actions = []
        for card in state.hand:
            if blocked and card.suit == Suit.SPADES:
                continue
            rule = engine.rules.find_player_action(card) if engine.has_rules else None
            if rule is None:
                rule = FALLBACK_RULES.find_player_action(card)
            if rule is None or rule.cost > state.pa:
                continue
            actions.append(Action.play(card.id))
        return actions

    def _composite_actions(self) -> list[Action]:
        state = self.session.state
        actions = []

        clubs = [c for c in state.hand if c.suit == Suit.CLUBS]
        if clubs and len(clubs) <= state.pa and sum(c.value for c in clubs) // REPAIR_DIVISOR >= 1:
            for node in self.session.nodes.eligible_for_repair():
                actions.append(Action.repair(node.id, [c.id for c in clubs]))

        hearts = [c for c in state.hand if c.suit == Suit.HEARTS]
        if hearts:
            actions.append(Action.focus([c.id for c in hearts]))

        diamonds = [c for c in state.hand if c.suit == Suit.DIAMONDS]
        if diamonds and sum(c.value for c in diamonds) // SEARCH_DIVISOR >= 1:
            actions.append(Action.search([c.id for c in diamonds]))
        return actions


def legal_actions(session: GameSession) -> list[Action]:
    """Convenience function to list legal actions."""
    return ActionGenerator(session).generate()
