"""
Scenario documents - Pydantic models for the JSON files of a scenario.

A scenario directory holds:
- config.json   initial player stats, Eco HP, difficulty
- nodes.json    facility nodes and their rewards
- eco.json      Eco phases (HP thresholds) and transition messages
- rules.json    optional rule table (absent -> built-in four-suit table)
- events.json   optional event table (list or mapping by card id)
- cards.json    optional 52-card source (absent -> standard deck)

Documents are validated once, at load time, and converted into the
engine's dataclasses (Scenario). A malformed document raises
ScenarioLoadError before any session exists.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union
import json
import logging

from pydantic import BaseModel, Field, ValidationError, model_validator

from .effect_dsl import (
    EffectType,
    EffectTarget,
    TargetStat,
    RuleEffect,
    RuleCondition,
    PlayerActionRule,
    EcoAttackRule,
    GameRules,
    EventDefinition,
)
from ..engine_core.state import Card, Suit
from ..engine_core.nodes import NodeSpec, Reward, RewardType
from ..engine_core.antagonist import AntagonistPhase

logger = logging.getLogger(__name__)


class ScenarioLoadError(Exception):
    """A scenario directory could not be read or failed validation."""

    def __init__(self, message: str, source: str | None = None):
        self.source = source
        super().__init__(f"{source}: {message}" if source else message)


# =============================================================================
# config.json
# =============================================================================

class PlayerStatsModel(BaseModel):
    """Initial player resources. The initial values are also the maxima."""
    pv: int = Field(20, alias="PV", ge=1)
    cor: int = Field(20, alias="COR", ge=1)
    pa: int = Field(2, alias="PA", ge=0)
    hand_size: int = Field(5, alias="handSize", ge=1)

    model_config = {"populate_by_name": True}


class ScenarioConfigModel(BaseModel):
    id: str
    name: str
    description: str = ""
    initial_player_stats: PlayerStatsModel = Field(default_factory=PlayerStatsModel, alias="initialPlayerStats")
    initial_eco_hp: int = Field(50, alias="initialEcoHP", ge=1)
    difficulty: float = Field(1.0, gt=0.0)

    model_config = {"populate_by_name": True}


# =============================================================================
# nodes.json
# =============================================================================

class RewardModel(BaseModel):
    type: RewardType
    amount: int = Field(ge=0)


class NodeModel(BaseModel):
    id: str
    name: str
    description: str = ""
    max_damage: int = Field(alias="maxDamage", ge=1)
    reward: RewardModel

    model_config = {"populate_by_name": True}

    def to_spec(self) -> NodeSpec:
        return NodeSpec(
            id=self.id,
            name=self.name,
            max_damage=self.max_damage,
            reward=Reward(type=self.reward.type, amount=self.reward.amount),
            description=self.description,
        )


# =============================================================================
# eco.json
# =============================================================================

class PhaseModel(BaseModel):
    """One Eco phase. corruptionRate may also sit under behaviorModifiers."""
    threshold: float = Field(ge=0.0, le=100.0)
    name: str = ""
    description: str = ""
    corruption_rate: float = Field(1.0, alias="corruptionRate", ge=0.0)

    model_config = {"populate_by_name": True}

    @model_validator(mode="before")
    @classmethod
    def _lift_behavior_modifiers(cls, data: Any) -> Any:
        if isinstance(data, dict) and "corruptionRate" not in data:
            modifiers = data.get("behaviorModifiers")
            if isinstance(modifiers, dict) and "corruptionRate" in modifiers:
                data = {**data, "corruptionRate": modifiers["corruptionRate"]}
        return data


class EcoModel(BaseModel):
    id: str = "eco"
    name: str = "Eco"
    phases: dict[str, PhaseModel] = Field(default_factory=dict)
    transition_messages: dict[str, str] = Field(default_factory=dict, alias="transitionMessages")

    model_config = {"populate_by_name": True}

    def to_phases(self) -> list[AntagonistPhase]:
        return [
            AntagonistPhase(
                id=phase_id,
                threshold=phase.threshold,
                name=phase.name,
                description=phase.description,
                corruption_rate=phase.corruption_rate,
            )
            for phase_id, phase in self.phases.items()
        ]


# =============================================================================
# rules.json / events.json
# =============================================================================

class ConditionModel(BaseModel):
    id: Optional[str] = None
    suit: Optional[str] = None
    color: Optional[str] = None
    rank: Optional[str] = None

    def to_condition(self) -> RuleCondition:
        return RuleCondition(id=self.id, suit=self.suit, color=self.color, rank=self.rank)


class EffectModel(BaseModel):
    type: EffectType
    target: EffectTarget
    target_stat: Optional[TargetStat] = Field(None, alias="targetStat")
    value: Union[int, float, str] = 0
    status: Optional[str] = None
    duration: Optional[int] = None
    properties: list[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    def to_effect(self) -> RuleEffect:
        return RuleEffect(
            type=self.type,
            target=self.target,
            value=self.value,
            target_stat=self.target_stat,
            status=self.status,
            duration=self.duration,
            properties=list(self.properties),
        )


class PlayerActionRuleModel(BaseModel):
    id: Optional[str] = None
    comment: str = ""
    condition: ConditionModel
    cost: int = Field(1, ge=0)
    effects: list[EffectModel] = Field(default_factory=list)


class EcoAttackRuleModel(BaseModel):
    comment: str = ""
    condition: ConditionModel
    effects: list[EffectModel] = Field(default_factory=list)


class RulesModel(BaseModel):
    player_actions: list[PlayerActionRuleModel] = Field(default_factory=list, alias="playerActions")
    eco_attacks: list[EcoAttackRuleModel] = Field(default_factory=list, alias="ecoAttacks")

    model_config = {"populate_by_name": True}

    def to_rules(self) -> GameRules:
        return GameRules(
            player_actions=[
                PlayerActionRule(
                    condition=rule.condition.to_condition(),
                    cost=rule.cost,
                    effects=[e.to_effect() for e in rule.effects],
                    id=rule.id,
                    comment=rule.comment,
                )
                for rule in self.player_actions
            ],
            eco_attacks=[
                EcoAttackRule(
                    condition=rule.condition.to_condition(),
                    effects=[e.to_effect() for e in rule.effects],
                    comment=rule.comment,
                )
                for rule in self.eco_attacks
            ],
        )


class EventModel(BaseModel):
    """An event. The name may be given as "event" or "name"."""
    id: str
    name: str = Field(alias="event")
    flavor: str = ""
    effects: list[EffectModel] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    @model_validator(mode="before")
    @classmethod
    def _accept_name_key(cls, data: Any) -> Any:
        if isinstance(data, dict) and "event" not in data and "name" in data:
            data = {**data, "event": data["name"]}
        return data

    def to_event(self) -> EventDefinition:
        return EventDefinition(
            id=self.id,
            name=self.name,
            flavor=self.flavor,
            effects=[e.to_effect() for e in self.effects],
        )


def parse_events(raw: Any) -> list[EventModel]:
    """Accept a list of events or a mapping of card id -> event."""
    if isinstance(raw, dict):
        raw = [{**body, "id": card_id} for card_id, body in raw.items()]
    if not isinstance(raw, list):
        raise ScenarioLoadError("events must be a list or a mapping", "events.json")
    return [EventModel.model_validate(item) for item in raw]


# =============================================================================
# cards.json
# =============================================================================

class CardModel(BaseModel):
    id: Optional[str] = None
    suit: str
    rank: str
    value: int = Field(ge=0)
    image_file: str = Field("", alias="imageFile")

    model_config = {"populate_by_name": True}

    def to_card(self) -> Card:
        suit = Suit.parse(self.suit)
        return Card(
            id=self.id or f"{self.rank}{suit.value[0] if suit != Suit.NONE else '?'}",
            suit=suit,
            rank=self.rank,
            value=self.value,
            image_file=self.image_file,
        )


# =============================================================================
# Engine-facing scenario
# =============================================================================

@dataclass
class Scenario:
    """Everything a GameSession needs, already validated."""
    id: str
    name: str
    initial_pv: int
    initial_sanity: int
    initial_pa: int
    hand_size: int
    initial_eco_hp: int
    nodes: list[NodeSpec]
    phases: list[AntagonistPhase]
    cards: list[Card]
    description: str = ""
    difficulty: float = 1.0
    transition_messages: dict[str, str] = field(default_factory=dict)
    rules: GameRules | None = None
    events: list[EventDefinition] | None = None


def build_scenario(
    config: dict[str, Any],
    nodes: list[dict[str, Any]],
    eco: dict[str, Any],
    rules: dict[str, Any] | None = None,
    events: Any = None,
    cards: list[dict[str, Any]] | None = None,
) -> Scenario:
    """
    Validate raw documents and build a Scenario.

    Raises:
        ScenarioLoadError: if any document fails validation
    """
    from ..games.default.cards import standard_deck

    source = "config.json"
    try:
        config_doc = ScenarioConfigModel.model_validate(config)
        source = "nodes.json"
        if not isinstance(nodes, list):
            raise ScenarioLoadError("nodes must be a list", source)
        node_docs = [NodeModel.model_validate(n) for n in nodes]
        source = "eco.json"
        eco_doc = EcoModel.model_validate(eco)
        source = "rules.json"
        rules_doc = RulesModel.model_validate(rules) if rules is not None else None
        source = "events.json"
        event_docs = parse_events(events) if events is not None else None
        source = "cards.json"
        card_docs = [CardModel.model_validate(c) for c in cards] if cards is not None else None
    except ValidationError as e:
        raise ScenarioLoadError(str(e), source) from e

    stats = config_doc.initial_player_stats
    return Scenario(
        id=config_doc.id,
        name=config_doc.name,
        description=config_doc.description,
        initial_pv=stats.pv,
        initial_sanity=stats.cor,
        initial_pa=stats.pa,
        hand_size=stats.hand_size,
        initial_eco_hp=config_doc.initial_eco_hp,
        difficulty=config_doc.difficulty,
        nodes=[n.to_spec() for n in node_docs],
        phases=eco_doc.to_phases(),
        transition_messages=dict(eco_doc.transition_messages),
        rules=rules_doc.to_rules() if rules_doc else None,
        events=[e.to_event() for e in event_docs] if event_docs is not None else None,
        cards=[c.to_card() for c in card_docs] if card_docs is not None else standard_deck(),
    )


def _read_json(path: Path, required: bool) -> Any:
    if not path.exists():
        if required:
            raise ScenarioLoadError("file is missing", path.name)
        logger.info("%s not found; using built-in behaviour", path.name)
        return None
    try:
        with path.open(encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ScenarioLoadError(f"invalid JSON: {e}", path.name) from e
    except OSError as e:
        raise ScenarioLoadError(f"cannot read file: {e}", path.name) from e


def load_scenario(directory: str | Path) -> Scenario:
    """
    Load a scenario directory.

    Raises:
        ScenarioLoadError: missing required file, bad JSON or invalid document
    """
    root = Path(directory)
    if not root.is_dir():
        raise ScenarioLoadError("not a directory", str(root))

    scenario = build_scenario(
        config=_read_json(root / "config.json", required=True),
        nodes=_read_json(root / "nodes.json", required=True),
        eco=_read_json(root / "eco.json", required=True),
        rules=_read_json(root / "rules.json", required=False),
        events=_read_json(root / "events.json", required=False),
        cards=_read_json(root / "cards.json", required=False),
    )
    logger.info("Loaded scenario %s from %s", scenario.id, root)
    return scenario
