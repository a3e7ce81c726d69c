"""
Player Policy - Scripted players for headless simulation.

A PlayerPolicy looks at a session and picks one of its legal actions.
Policies stand in for the human player when a scenario is simulated
from the CLI or exercised end to end in tests.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING
import random

from ..engine_core.action import Action, ActionKind
from ..engine_core.state import Suit

if TYPE_CHECKING:
    from ..session.manager import GameSession


@dataclass
class PolicyDecision:
    """
    A decision made by a policy.

    Contains:
    - The action to take
    - Explanation (for logs/debugging)
    """
    action: Action
    explanation: str = ""


class PlayerPolicy(ABC):
    """Abstract base class for player policies."""

    @abstractmethod
    def select_action(self, session: GameSession, legal_actions: list[Action]) -> PolicyDecision:
        """
        Select an action from the legal actions.

        legal_actions always contains end_turn during the player phase.
        """

    def get_name(self) -> str:
        return self.__class__.__name__


class RandomPolicy(PlayerPolicy):
    """
    Random policy - picks uniformly among legal actions.

    Used for:
    - Fuzzing the engine in tests
    - Baseline comparison
    """

    def __init__(self, seed: int | None = None):
        self.rng = random.Random(seed)

    def select_action(self, session: GameSession, legal_actions: list[Action]) -> PolicyDecision:
        if not legal_actions:
            raise ValueError("No legal actions available")
        return PolicyDecision(action=self.rng.choice(legal_actions), explanation="Selected randomly")


class GreedyPolicy(PlayerPolicy):
    """
    Simple heuristic player.

    Priorities:
    1. Focus when sanity is low
    2. Repair a damaged node when Clubs allow it
    3. Expose the Eco with a Club when a Spade is ready to follow
    4. Attack with the highest Spade
    5. Otherwise end the turn
    """

    def __init__(self, low_sanity: float = 0.5):
        self.low_sanity = low_sanity

    def select_action(self, session: GameSession, legal_actions: list[Action]) -> PolicyDecision:
        if not legal_actions:
            raise ValueError("No legal actions available")
        state = session.state
        by_kind: dict[ActionKind, list[Action]] = {}
        for action in legal_actions:
            by_kind.setdefault(action.kind, []).append(action)

        if state.sanity <= state.max_sanity * self.low_sanity and ActionKind.FOCUS in by_kind:
            return PolicyDecision(by_kind[ActionKind.FOCUS][0], "Sanity is low")

        if ActionKind.REPAIR_NODE in by_kind:
            return PolicyDecision(by_kind[ActionKind.REPAIR_NODE][0], "Repairing a node")

        plays = by_kind.get(ActionKind.PLAY_CARD, [])
        hand = {card.id: card for card in state.hand}
        spades = [a for a in plays if hand[a.params["card_id"]].suit == Suit.SPADES]
        clubs = [a for a in plays if hand[a.params["card_id"]].suit == Suit.CLUBS]

        if spades and clubs and not state.is_eco_exposed and state.pa >= 2:
            return PolicyDecision(clubs[0], "Exposing the Eco before attacking")
        if spades:
            best = max(spades, key=lambda a: hand[a.params["card_id"]].value)
            return PolicyDecision(best, "Attacking with the highest Spade")

        return PolicyDecision(Action.end_turn(), "Nothing worth doing")


POLICIES = {
    "random": RandomPolicy,
    "greedy": GreedyPolicy,
}
