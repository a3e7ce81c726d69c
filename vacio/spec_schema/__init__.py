"""
Scenario schema - rule DSL and scenario documents.

The DSL dataclasses are exported here. Document loading lives in
spec_schema.scenario and checks in spec_schema.validation.
"""

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
    FALLBACK_RULES,
)

__all__ = [
    "EffectType",
    "EffectTarget",
    "TargetStat",
    "RuleEffect",
    "RuleCondition",
    "PlayerActionRule",
    "EcoAttackRule",
    "GameRules",
    "EventDefinition",
    "FALLBACK_RULES",
]
