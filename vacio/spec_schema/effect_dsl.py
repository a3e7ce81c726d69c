"""
Rule DSL - Condition -> cost -> effect list.

Scenarios describe what cards do with small rule tables:
- Player actions: a condition on the played card, an AP cost, effects
- Eco attacks: a condition on the revealed card, effects
- Events: effects triggered by a drawn event card

Key design decisions:
- Conditions are OR across populated fields (id, suit, color, rank)
- The first matching rule in declaration order wins
- Effect values are either numbers or whitelisted formulas
- The same effect vocabulary serves rules, events and the built-in table
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..engine_core.state import Card


class EffectType(Enum):
    """What an effect does."""
    DEAL_DAMAGE = "DEAL_DAMAGE"
    HEAL_STAT = "HEAL_STAT"
    DRAW_CARDS = "DRAW_CARDS"
    DISCARD_CARDS = "DISCARD_CARDS"
    APPLY_STATUS = "APPLY_STATUS"
    REPAIR_NODE = "REPAIR_NODE"
    DAMAGE_NODE = "DAMAGE_NODE"


class EffectTarget(Enum):
    """Who an effect lands on. RANDOM and CHOICE pick a node."""
    PLAYER = "PLAYER"
    ECO = "ECO"
    RANDOM = "RANDOM"
    CHOICE = "CHOICE"


class TargetStat(Enum):
    HP = "HP"      # Eco health
    PV = "PV"      # Player health
    COR = "COR"    # Player sanity
    PA = "PA"      # Player action points


CRITICAL = "CRITICAL"


@dataclass
class RuleEffect:
    """
    A single effect.

    value is a number or a formula string such as "CARD_VALUE * 2".
    properties carries flags like CRITICAL (adds the critical damage boost).
    """
    type: EffectType
    target: EffectTarget
    value: int | float | str = 0
    target_stat: TargetStat | None = None
    status: str | None = None
    duration: int | None = None
    properties: list[str] = field(default_factory=list)

    @property
    def is_critical(self) -> bool:
        return CRITICAL in self.properties


@dataclass
class RuleCondition:
    """
    Card condition with OR semantics across populated fields.

    A card matches if ANY populated field equals the card's attribute.
    An empty condition matches nothing.
    """
    id: str | None = None
    suit: str | None = None
    color: str | None = None
    rank: str | None = None

    def checks(self) -> list[tuple[str, str]]:
        """Populated fields in evaluation order: id, suit, color, rank."""
        return [
            (name, value)
            for name, value in (
                ("id", self.id),
                ("suit", self.suit),
                ("color", self.color),
                ("rank", self.rank),
            )
            if value
        ]

    def matches(self, card: Card) -> bool:
        for name, wanted in self.checks():
            if name == "id" and card.id == wanted:
                return True
            if name == "suit" and card.suit.value.lower() == wanted.lower():
                return True
            if name == "color" and card.color == wanted.lower():
                return True
            if name == "rank" and card.rank == wanted:
                return True
        return False

    @property
    def field_count(self) -> int:
        return len(self.checks())


@dataclass
class PlayerActionRule:
    condition: RuleCondition
    cost: int = 1
    effects: list[RuleEffect] = field(default_factory=list)
    id: str | None = None
    comment: str = ""


@dataclass
class EcoAttackRule:
    condition: RuleCondition
    effects: list[RuleEffect] = field(default_factory=list)
    comment: str = ""


@dataclass
class GameRules:
    """A scenario's rule table."""
    player_actions: list[PlayerActionRule] = field(default_factory=list)
    eco_attacks: list[EcoAttackRule] = field(default_factory=list)

    def find_player_action(self, card: Card) -> PlayerActionRule | None:
        """First matching rule in declaration order."""
        for rule in self.player_actions:
            if rule.condition.matches(card):
                return rule
        return None

    def find_eco_attack(self, card: Card) -> EcoAttackRule | None:
        for rule in self.eco_attacks:
            if rule.condition.matches(card):
                return rule
        return None


@dataclass
class EventDefinition:
    """Effects triggered when the card with this id is drawn as an event."""
    id: str
    name: str
    flavor: str = ""
    effects: list[RuleEffect] = field(default_factory=list)


def _suit_rule(suit: str, effects: list[RuleEffect], comment: str) -> PlayerActionRule:
    return PlayerActionRule(condition=RuleCondition(suit=suit), cost=1, effects=effects, comment=comment)


FALLBACK_RULES = GameRules(
    player_actions=[
        _suit_rule(
            "Spades",
            [RuleEffect(EffectType.DEAL_DAMAGE, EffectTarget.ECO, "CARD_VALUE",
                        target_stat=TargetStat.HP, properties=[CRITICAL])],
            "attack",
        ),
        _suit_rule(
            "Hearts",
            [RuleEffect(EffectType.HEAL_STAT, EffectTarget.PLAYER, "CARD_VALUE", target_stat=TargetStat.COR)],
            "recover sanity",
        ),
        _suit_rule(
            "Clubs",
            [RuleEffect(EffectType.APPLY_STATUS, EffectTarget.ECO, status="EXPOSED")],
            "expose the Eco",
        ),
        _suit_rule(
            "Diamonds",
            [RuleEffect(EffectType.DRAW_CARDS, EffectTarget.PLAYER, "CARD_VALUE")],
            "draw",
        ),
    ],
    eco_attacks=[
        EcoAttackRule(
            condition=RuleCondition(color="black"),
            effects=[RuleEffect(EffectType.DEAL_DAMAGE, EffectTarget.PLAYER, "CARD_VALUE", target_stat=TargetStat.PV)],
            comment="Spades and Clubs wound the body",
        ),
        EcoAttackRule(
            condition=RuleCondition(color="red"),
            effects=[RuleEffect(EffectType.DEAL_DAMAGE, EffectTarget.PLAYER, "CARD_VALUE", target_stat=TargetStat.COR)],
            comment="Hearts and Diamonds wound the mind",
        ),
    ],
)
