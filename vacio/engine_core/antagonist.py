"""
Antagonist Turn Controller - The Eco's turn.

Each Eco turn:
1. Recompute the phase from Eco HP% against the scenario's thresholds
2. Draw one card from the Eco deck (none -> log and end the turn)
3. Reveal it and resolve its attack (scenario rules, then built-in table)
4. Discard it to the Eco discard pile
5. Apply the phase's bonus behaviour

Phases are ranked by severity: the lowest threshold is the top-severity
phase, the highest threshold is the base phase, everything in between
is mid-tier.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING
import logging

from .bus import SignalType, LogCategory
from ..spec_schema.effect_dsl import FALLBACK_RULES

if TYPE_CHECKING:
    from .state import Card
    from ..session.manager import GameSession

logger = logging.getLogger(__name__)

MID_DOUBLE_ATTACK_CHANCE = 0.2
TOP_DAMAGE_MULTIPLIER = 1.5
TOP_NODE_DAMAGE = 2
TOP_HALLUCINATIONS = 2


class Severity(Enum):
    BASE = "base"
    MID = "mid"
    TOP = "top"


@dataclass
class AntagonistPhase:
    """One Eco phase. Active while HP% is at or below its threshold."""
    id: str
    threshold: float
    name: str = ""
    description: str = ""
    corruption_rate: float = 1.0

    @property
    def display_name(self) -> str:
        return self.name or self.id


@dataclass
class EcoTurnResult:
    """What happened during one Eco turn."""
    phase: str
    cards: list[Card] = field(default_factory=list)
    phase_changed: bool = False
    double_attack: bool = False
    hallucinations: int = 0
    node_damaged: str | None = None


class AntagonistController:
    """
    Runs the Eco's turns for one session.

    difficulty scales attack damage and bonus chances; it is applied
    fresh to every attack.
    """

    def __init__(
        self,
        session: GameSession,
        phases: list[AntagonistPhase],
        difficulty: float = 1.0,
        transition_messages: dict[str, str] | None = None,
    ):
        self.session = session
        self.difficulty = difficulty
        self.transition_messages = transition_messages or {}
        # Most severe first; sorted() keeps declaration order on ties
        self._phases = sorted(phases, key=lambda p: p.threshold)
        self._current = self.select_phase(100.0) if self._phases else None

    @property
    def phases(self) -> list[AntagonistPhase]:
        return list(self._phases)

    @property
    def current_phase(self) -> AntagonistPhase | None:
        return self._current

    def select_phase(self, hp_percent: float) -> AntagonistPhase | None:
        """Most severe phase whose threshold is >= hp_percent, else the least severe."""
        if not self._phases:
            return None
        for phase in self._phases:
            if phase.threshold >= hp_percent:
                return phase
        return self._phases[-1]

    def severity(self, phase: AntagonistPhase | None) -> Severity:
        if phase is None or len(self._phases) < 2:
            return Severity.BASE
        if phase is self._phases[0]:
            return Severity.TOP
        if phase is self._phases[-1]:
            return Severity.BASE
        return Severity.MID

    @property
    def damage_multiplier(self) -> float:
        multiplier = self.difficulty
        if self.severity(self._current) == Severity.TOP:
            multiplier *= TOP_DAMAGE_MULTIPLIER
        return multiplier

    @property
    def double_attack_chance(self) -> float:
        return min(1.0, MID_DOUBLE_ATTACK_CHANCE * self.difficulty)

    def corruption_chance(self, phase: AntagonistPhase) -> float:
        return min(1.0, phase.corruption_rate * self.difficulty)

    def update_phase(self) -> bool:
        """Recompute the phase. Returns True only when it actually changed."""
        new_phase = self.select_phase(self.session.state.eco_hp_percent)
        old_phase = self._current
        if new_phase is old_phase:
            return False
        self._current = new_phase
        if new_phase is None:
            return False

        key = f"{old_phase.id}_to_{new_phase.id}" if old_phase else ""
        message = self.transition_messages.get(key) or f"The Eco has transformed into the {new_phase.display_name}!"
        self.session.game_log.eco(message, LogCategory.SPECIAL)
        logger.info("Eco phase %s -> %s", old_phase.id if old_phase else None, new_phase.id)
        return True

    # ------------------------------------------------------------------
    # Turn
    # ------------------------------------------------------------------

    def take_turn(self) -> EcoTurnResult:
        changed = self.update_phase()
        phase = self._current
        result = EcoTurnResult(phase=phase.id if phase else "", phase_changed=changed)
        state = self.session.state
        try:
            card = self._attack_with_next_card()
            if card is None:
                return result
            result.cards.append(card)
            if state.is_game_over:
                return result

            severity = self.severity(phase)
            if severity == Severity.MID:
                self._mid_tier_bonus(phase, result)
            elif severity == Severity.TOP:
                self._top_severity_bonus(result)
            return result
        finally:
            state.eco_revealed_card = None

    def _attack_with_next_card(self) -> Card | None:
        drawn = self.session.decks.draw_opponent(1)
        if not drawn:
            self.session.game_log.eco("The Eco has no cards to play.", LogCategory.INFO)
            return None
        card = drawn[0]
        self._reveal(card)
        self._execute_attack(card)
        self.session.decks.discard_opponent([card])
        self.session.bus.emit(SignalType.ECO_CARD_DISCARDED, card_id=card.id)
        return card

    def _reveal(self, card: Card):
        self.session.state.eco_revealed_card = card
        self.session.bus.emit(SignalType.ECO_CARD_REVEALED, card_id=card.id, suit=card.suit.value, value=card.value)

    def _execute_attack(self, card: Card):
        multiplier = self.damage_multiplier
        self.session.game_log.eco(f"The Eco attacks with the {card}.", LogCategory.ATTACK)
        if self.severity(self._current) == Severity.TOP:
            self.session.game_log.eco("Devastation: damage amplified!", LogCategory.SPECIAL)

        engine = self.session.rule_engine
        if engine.resolve_eco_attack(card, multiplier):
            return
        if engine.has_rules:
            logger.info("No Eco rule matches %s; using built-in attack", card.id)
        engine.resolve_eco_attack(card, multiplier, FALLBACK_RULES)

    def _mid_tier_bonus(self, phase: AntagonistPhase, result: EcoTurnResult):
        rng = self.session.rng
        if rng.random() < self.double_attack_chance:
            self.session.game_log.eco("The Eco performs a frenzied double attack!", LogCategory.SPECIAL)
            result.double_attack = True
            card = self._attack_with_next_card()
            if card is not None:
                result.cards.append(card)
            if self.session.state.is_game_over:
                return

        if rng.random() < self.corruption_chance(phase):
            result.hallucinations += len(self.session.corruption.inject(1))

    def _top_severity_bonus(self, result: EcoTurnResult):
        nodes = self.session.nodes
        standing = nodes.eligible_for_damage()
        if standing:
            node = self.session.rng.choice(standing)
            nodes.deal_damage(node.id, TOP_NODE_DAMAGE)
            result.node_damaged = node.id
            self.session.game_log.eco(f"The Eco lashes out at {node.name}.", LogCategory.NODE_DAMAGE)
        result.hallucinations += len(self.session.corruption.inject(TOP_HALLUCINATIONS))
        self.session.evaluate_game_over()
