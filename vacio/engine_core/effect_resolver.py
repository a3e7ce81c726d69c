"""
Rule Resolution Engine - Applies rule tables to played and revealed cards.

This module handles:
- Matching a card against a rule table (first declared match wins)
- Cost validation for player actions
- Resolving effect values (numbers or formulas)
- Applying each effect against the session state and the node system

apply_effect() is the only place that knows what an effect does. The
scenario's rule table, the built-in four-suit table and event cards
all run through it.
"""

from __future__ import annotations
from typing import Callable, TYPE_CHECKING
import logging
import math

from .action import ActionResult, ErrorCode
from .bus import LogCategory
from .expression import evaluate_formula
from .nodes import RewardType
from .state import PlayerStatus
from ..spec_schema.effect_dsl import (
    EffectType,
    EffectTarget,
    TargetStat,
    GameRules,
    RuleEffect,
)

if TYPE_CHECKING:
    from .state import Card
    from .nodes import Node
    from ..session.manager import GameSession

logger = logging.getLogger(__name__)


def resolve_value(value: int | float | str, card: Card | None) -> int:
    """Turn an effect value into a non-negative int."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return 0
        return max(0, math.floor(value))
    return evaluate_formula(value, card.value if card else 0)


class RuleEngine:
    """
    Applies rule tables against one session.

    The session provides state, decks, nodes, RNG, game log,
    draw_to_hand() and evaluate_game_over().
    """

    def __init__(self, session: GameSession, rules: GameRules | None = None):
        self.session = session
        self.rules = rules
        self._handlers: dict[EffectType, Callable[[RuleEffect, int, float], None]] = {
            EffectType.DEAL_DAMAGE: self._deal_damage,
            EffectType.HEAL_STAT: self._heal_stat,
            EffectType.DRAW_CARDS: self._draw_cards,
            EffectType.DISCARD_CARDS: self._discard_cards,
            EffectType.APPLY_STATUS: self._apply_status,
            EffectType.REPAIR_NODE: self._repair_node,
            EffectType.DAMAGE_NODE: self._damage_node,
        }

    def load_rules(self, rules: GameRules | None):
        self.rules = rules

    @property
    def has_rules(self) -> bool:
        return self.rules is not None

    # ------------------------------------------------------------------
    # Rule resolution
    # ------------------------------------------------------------------

    def resolve_player_action(self, card: Card, rules: GameRules | None = None) -> ActionResult:
        """
        Resolve a played card against a rule table.

        Uses the loaded scenario rules unless a table is given. The first
        matching rule in declaration order is applied.

        Returns:
            ActionResult; NO_MATCHING_RULE tells the caller to fall back
        """
        table = rules or self.rules
        if table is None:
            return ActionResult.failure("No rule table loaded", ErrorCode.NO_MATCHING_RULE)

        rule = table.find_player_action(card)
        if rule is None:
            return ActionResult.failure(f"No rule matches {card}", ErrorCode.NO_MATCHING_RULE)

        state = self.session.state
        if state.is_game_over:
            return ActionResult.failure("The game is over", ErrorCode.GAME_OVER)
        if state.pa < rule.cost:
            return ActionResult.failure(
                f"Not enough action points ({state.pa}/{rule.cost})",
                ErrorCode.INSUFFICIENT_ACTION_POINTS,
            )

        state.spend_action_points(rule.cost)
        logger.debug("Applying rule %s for %s", rule.id or rule.comment or "<unnamed>", card.id)
        self.apply_effects(rule.effects, card)
        return ActionResult.ok([f"Played {card}"], payload=rule)

    def resolve_eco_attack(
        self,
        card: Card,
        damage_multiplier: float = 1.0,
        rules: GameRules | None = None,
    ) -> bool:
        """Resolve an Eco card. Returns False when no rule matches."""
        table = rules or self.rules
        if table is None:
            return False
        rule = table.find_eco_attack(card)
        if rule is None:
            return False
        self.apply_effects(rule.effects, card, damage_multiplier)
        return True

    def apply_effects(self, effects: list[RuleEffect], card: Card | None, damage_multiplier: float = 1.0):
        for effect in effects:
            if self.session.state.is_game_over:
                logger.debug("Game over: suppressed remaining effects of %s", card.id if card else "event")
                return
            self.apply_effect(effect, card, damage_multiplier)

    def apply_effect(self, effect: RuleEffect, card: Card | None, damage_multiplier: float = 1.0):
        """Apply one effect, then evaluate game over."""
        handler = self._handlers.get(effect.type)
        if handler is None:
            logger.warning("Unknown effect type %s", effect.type)
            return
        value = resolve_value(effect.value, card)
        handler(effect, value, damage_multiplier)
        self.session.evaluate_game_over()

    # ------------------------------------------------------------------
    # Effect handlers
    # ------------------------------------------------------------------

    def _deal_damage(self, effect: RuleEffect, value: int, multiplier: float):
        state = self.session.state
        log = self.session.game_log

        if effect.target == EffectTarget.ECO:
            if effect.target_stat not in (None, TargetStat.HP):
                logger.warning("DEAL_DAMAGE on ECO ignores stat %s", effect.target_stat)
                return
            damage = value
            if effect.is_critical:
                damage += state.critical_damage_boost
                damage += self.session.nodes.reward_total(RewardType.CRITICAL_DAMAGE_BOOST)
            if state.is_eco_exposed:
                damage *= 2
                state.is_eco_exposed = False
                log.system("The Eco is exposed! Damage doubled.", LogCategory.SPECIAL)
            dealt = state.damage_eco(damage)
            log.player(f"You deal {dealt} damage to the Eco.", LogCategory.ATTACK)
            return

        if effect.target == EffectTarget.PLAYER:
            damage = scale_damage(value, multiplier)
            if effect.target_stat == TargetStat.COR:
                state.damage_sanity(damage)
                log.eco(f"You lose {damage} COR.", LogCategory.DAMAGE)
            elif effect.target_stat == TargetStat.PA:
                state.pa = state.pa - damage
                log.eco(f"You lose {damage} PA.", LogCategory.DAMAGE)
            else:
                state.damage_player(damage)
                log.eco(f"You lose {damage} PV.", LogCategory.DAMAGE)
            return

        logger.warning("DEAL_DAMAGE has no meaning for target %s", effect.target.value)

    def _heal_stat(self, effect: RuleEffect, value: int, multiplier: float):
        state = self.session.state
        log = self.session.game_log

        if effect.target == EffectTarget.ECO:
            healed = state.heal_eco(value)
            log.eco(f"The Eco regenerates {healed} HP.", LogCategory.HEAL)
            return
        if effect.target != EffectTarget.PLAYER:
            logger.warning("HEAL_STAT has no meaning for target %s", effect.target.value)
            return

        if effect.target_stat == TargetStat.PV:
            healed = state.heal_player(value)
            log.player(f"You recover {healed} PV.", LogCategory.HEAL)
        elif effect.target_stat == TargetStat.PA:
            before = state.pa
            state.pa = before + value
            log.player(f"You recover {state.pa - before} PA.", LogCategory.HEAL)
        else:
            healed = state.recover_sanity(value)
            log.player(f"You recover {healed} COR.", LogCategory.HEAL)

    def _draw_cards(self, effect: RuleEffect, value: int, multiplier: float):
        log = self.session.game_log
        if value <= 0:
            return
        drawn = self.session.draw_to_hand(value)
        if drawn:
            log.player(f"You draw {len(drawn)} card(s).", LogCategory.SEARCH)
        else:
            log.system("There are no cards left to draw.", LogCategory.INFO)

    def _discard_cards(self, effect: RuleEffect, value: int, multiplier: float):
        state = self.session.state
        hand = state.hand
        count = min(value, len(hand))
        if count <= 0:
            return
        chosen = self.session.rng.sample(hand, count)
        discarded = state.remove_from_hand(chosen)
        self.session.decks.discard(discarded)
        self.session.game_log.system(f"You discard {len(discarded)} card(s).", LogCategory.DISCARD)

    def _apply_status(self, effect: RuleEffect, value: int, multiplier: float):
        state = self.session.state
        status = (effect.status or "").strip()

        if effect.target == EffectTarget.ECO and status.upper() == "EXPOSED":
            state.is_eco_exposed = True
            self.session.game_log.system(
                "The Eco is exposed. The next attack deals double damage.", LogCategory.SPECIAL
            )
            return

        if effect.target == EffectTarget.PLAYER:
            player_status = parse_player_status(status)
            if player_status is not None:
                state.add_status(player_status)
                self.session.game_log.system(f"Status applied: {player_status.value}.", LogCategory.SPECIAL)
                return

        logger.warning("Unsupported status %r for target %s", effect.status, effect.target.value)

    def _repair_node(self, effect: RuleEffect, value: int, multiplier: float):
        nodes = self.session.nodes
        node = self._pick_node(effect, nodes.eligible_for_repair())
        if node is None:
            logger.debug("REPAIR_NODE: no damaged node")
            return
        nodes.repair_node(node.id, value)

    def _damage_node(self, effect: RuleEffect, value: int, multiplier: float):
        nodes = self.session.nodes
        node = self._pick_node(effect, nodes.eligible_for_damage())
        if node is None:
            logger.debug("DAMAGE_NODE: no standing node")
            return
        nodes.deal_damage(node.id, scale_damage(value, multiplier))

    def _pick_node(self, effect: RuleEffect, eligible: list[Node]) -> Node | None:
        """CHOICE uses the selected node when it is eligible; otherwise uniform random."""
        if not eligible:
            return None
        if effect.target == EffectTarget.CHOICE:
            target_id = self.session.state.target_node_id
            for node in eligible:
                if node.id == target_id:
                    return node
        return self.session.rng.choice(eligible)


def scale_damage(value: int, multiplier: float) -> int:
    """Apply a damage multiplier, rounding up."""
    if multiplier == 1.0:
        return value
    return max(0, math.ceil(value * multiplier))


def parse_player_status(raw: str) -> PlayerStatus | None:
    normalized = raw.replace("_", "").lower()
    for status in PlayerStatus:
        if status.value.lower() == normalized or status.name.replace("_", "").lower() == normalized:
            return status
    return None
