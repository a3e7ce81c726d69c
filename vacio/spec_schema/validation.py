"""
Scenario Validation - Semantic checks on a loaded scenario.

Pydantic already guarantees each document's shape. This module checks
what a schema cannot:
1. References are valid (node ids, event card ids)
2. Formulas parse
3. Rule conditions behave as the author probably meant
4. The Eco phase table covers the whole HP range
"""

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path

from .effect_dsl import EffectType, EffectTarget, TargetStat, RuleEffect, RuleCondition
from .scenario import Scenario, ScenarioLoadError, load_scenario
from ..engine_core.expression import FormulaEvaluator
from ..engine_core.state import Suit

STANDARD_DECK_SIZE = 52


@dataclass
class ValidationResult:
    """Result of validation, with errors and warnings."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def validate_scenario(scenario: Scenario) -> ValidationResult:
    """
    Validate a scenario.

    Errors make the scenario unplayable; warnings flag data that will
    run but probably does not do what its author expects.
    """
    errors: list[str] = []
    warnings: list[str] = []

    _check_nodes(scenario, errors, warnings)
    _check_phases(scenario, errors, warnings)
    _check_cards(scenario, errors, warnings)

    if scenario.rules is not None:
        for i, rule in enumerate(scenario.rules.player_actions):
            where = f"playerActions[{i}]"
            _check_condition(rule.condition, where, warnings)
            for j, effect in enumerate(rule.effects):
                _check_effect(effect, f"{where}.effects[{j}]", errors, warnings)
        for i, rule in enumerate(scenario.rules.eco_attacks):
            where = f"ecoAttacks[{i}]"
            _check_condition(rule.condition, where, warnings)
            for j, effect in enumerate(rule.effects):
                _check_effect(effect, f"{where}.effects[{j}]", errors, warnings)

    if scenario.events is not None:
        card_ids = {card.id for card in scenario.cards}
        seen = set()
        for event in scenario.events:
            if event.id in seen:
                warnings.append(f"Event {event.id} is defined twice; the last definition wins")
            seen.add(event.id)
            if event.id not in card_ids:
                warnings.append(f"Event {event.id} does not match any card id")
            for j, effect in enumerate(event.effects):
                _check_effect(effect, f"events[{event.id}].effects[{j}]", errors, warnings)

    return ValidationResult(valid=len(errors) == 0, errors=errors, warnings=warnings)


def validate_scenario_dir(directory: str | Path) -> ValidationResult:
    """Load and validate a scenario directory; load failures become errors."""
    try:
        scenario = load_scenario(directory)
    except ScenarioLoadError as e:
        return ValidationResult(valid=False, errors=[str(e)])
    return validate_scenario(scenario)


def _check_nodes(scenario: Scenario, errors: list[str], warnings: list[str]):
    if not scenario.nodes:
        warnings.append("Scenario has no nodes")
    for node_id, count in Counter(node.id for node in scenario.nodes).items():
        if count > 1:
            errors.append(f"Duplicate node id: {node_id}")


def _check_phases(scenario: Scenario, errors: list[str], warnings: list[str]):
    if not scenario.phases:
        errors.append("Eco has no phases")
        return
    for threshold, count in Counter(p.threshold for p in scenario.phases).items():
        if count > 1:
            warnings.append(f"Several Eco phases share threshold {threshold}; declaration order decides")
    if max(p.threshold for p in scenario.phases) < 100:
        warnings.append("No Eco phase has threshold 100; full HP falls back to the least severe phase")
    phase_ids = {p.id for p in scenario.phases}
    for key in scenario.transition_messages:
        old, sep, new = key.partition("_to_")
        if not sep or old not in phase_ids or new not in phase_ids:
            warnings.append(f"Transition message {key!r} does not name two known phases")


def _check_cards(scenario: Scenario, errors: list[str], warnings: list[str]):
    if len(scenario.cards) != STANDARD_DECK_SIZE:
        warnings.append(f"Deck has {len(scenario.cards)} cards, expected {STANDARD_DECK_SIZE}")
    for card_id, count in Counter(card.id for card in scenario.cards).items():
        if count > 1:
            errors.append(f"Duplicate card id: {card_id}")
    for card in scenario.cards:
        if card.suit == Suit.NONE:
            warnings.append(f"Card {card.id} has no recognised suit")
    if scenario.hand_size > len(scenario.cards):
        errors.append(f"Hand size {scenario.hand_size} exceeds deck size {len(scenario.cards)}")


def _check_condition(condition: RuleCondition, where: str, warnings: list[str]):
    if condition.field_count == 0:
        warnings.append(f"{where}: empty condition never matches")
    elif condition.field_count > 1:
        fields = ", ".join(name for name, _ in condition.checks())
        warnings.append(f"{where}: condition on {fields} matches if ANY field matches")


def _check_effect(effect: RuleEffect, where: str, errors: list[str], warnings: list[str]):
    if isinstance(effect.value, str):
        problem = FormulaEvaluator().check(effect.value)
        if problem:
            errors.append(f"{where}: invalid formula {effect.value!r}: {problem}")

    if effect.type == EffectType.DEAL_DAMAGE:
        if effect.target == EffectTarget.ECO and effect.target_stat not in (None, TargetStat.HP):
            warnings.append(f"{where}: damage to the Eco only affects HP")
        if effect.target in (EffectTarget.RANDOM, EffectTarget.CHOICE):
            warnings.append(f"{where}: DEAL_DAMAGE needs PLAYER or ECO; use DAMAGE_NODE for nodes")
    elif effect.type in (EffectType.DRAW_CARDS, EffectType.DISCARD_CARDS):
        if effect.target != EffectTarget.PLAYER:
            warnings.append(f"{where}: {effect.type.value} only affects the player")
    elif effect.type == EffectType.APPLY_STATUS:
        status = (effect.status or "").upper().replace("_", "")
        if not (effect.target == EffectTarget.ECO and status == "EXPOSED") and not (
            effect.target == EffectTarget.PLAYER and status == "CANNOTPLAYSPADES"
        ):
            warnings.append(f"{where}: unsupported status {effect.status!r}")
