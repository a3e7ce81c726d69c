"""
Tests for the Eco's turn.

Tests:
- Phase selection from HP thresholds
- Transition messages fire once per change
- Mid-tier and top-severity bonus behaviour
- Difficulty scaling of damage and bonus chances
"""

import pytest

from ..engine_core.antagonist import AntagonistController, AntagonistPhase, Severity
from ..spec_schema.effect_dsl import (
    EffectType,
    EffectTarget,
    TargetStat,
    RuleEffect,
    RuleCondition,
    EcoAttackRule,
    GameRules,
)
from ..session import GameSession
from .conftest import stack_eco_deck


class TestPhaseSelection:
    """Most severe phase whose threshold is at or above HP%."""

    def test_thresholds(self, session):
        antagonist = session.antagonist
        assert antagonist.select_phase(100).id == "vigilante"
        assert antagonist.select_phase(61).id == "vigilante"
        assert antagonist.select_phase(60).id == "predador"
        assert antagonist.select_phase(25).id == "devastador"
        assert antagonist.select_phase(24).id == "devastador"
        assert antagonist.select_phase(0).id == "devastador"

    def test_phase_from_state(self, session):
        """12 of 50 HP is 24%."""
        session.state.eco_hp = 12
        session.antagonist.update_phase()
        assert session.antagonist.current_phase.id == "devastador"

    def test_severity(self, session):
        antagonist = session.antagonist
        by_id = {p.id: p for p in antagonist.phases}
        assert antagonist.severity(by_id["vigilante"]) == Severity.BASE
        assert antagonist.severity(by_id["predador"]) == Severity.MID
        assert antagonist.severity(by_id["devastador"]) == Severity.TOP

    def test_single_phase_is_base(self, session):
        controller = AntagonistController(session, [AntagonistPhase("solo", 100)])
        assert controller.severity(controller.current_phase) == Severity.BASE
        assert controller.damage_multiplier == 1.0

    def test_top_phase_multiplier(self, session):
        session.state.eco_hp = 10
        session.antagonist.update_phase()
        assert session.antagonist.damage_multiplier == 1.5


class TestTransitions:
    """Phase change messages."""

    def test_message_logged_once(self, session):
        session.state.eco_hp = 25
        assert session.antagonist.update_phase() is True
        assert session.antagonist.update_phase() is False

        message = "The water boils. The Eco starts to hunt."
        assert session.game_log.messages().count(message) == 1

    def test_default_message_for_unknown_transition(self, session):
        """Skipping straight to the top phase has no scripted message."""
        session.state.eco_hp = 5
        session.antagonist.update_phase()
        assert "The Eco has transformed into the Devastator!" in session.game_log.messages()

    def test_no_message_without_change(self, session):
        before = len(session.game_log.entries)
        session.antagonist.update_phase()
        assert len(session.game_log.entries) == before


class TestEcoTurn:
    """take_turn() in each severity tier."""

    def test_base_turn_attacks_once(self, session):
        stack_eco_deck(session, "5C")
        result = session.antagonist.take_turn()

        assert [c.id for c in result.cards] == ["5C"]
        assert session.state.pv == 15
        assert result.hallucinations == 0
        assert session.decks.opponent.discard_count == 1

    def test_revealed_card_cleared(self, session):
        revealed = []
        session.subscribe(lambda snap: revealed.append(snap.eco_revealed_card))
        stack_eco_deck(session, "5C")

        session.antagonist.take_turn()

        assert "5C" in revealed
        assert session.state.eco_revealed_card is None

    def test_scenario_rule_before_fallback(self, session):
        rules = GameRules(eco_attacks=[
            EcoAttackRule(RuleCondition(suit="Clubs"), effects=[
                RuleEffect(EffectType.DEAL_DAMAGE, EffectTarget.PLAYER, 1, target_stat=TargetStat.COR),
            ]),
        ])
        session.rule_engine.load_rules(rules)
        stack_eco_deck(session, "5C")

        session.antagonist.take_turn()

        assert session.state.sanity == 19
        assert session.state.pv == 20

    def test_empty_eco_deck(self, session):
        session.decks.opponent.take_matching(lambda c: True, 52)
        result = session.antagonist.take_turn()
        assert result.cards == []
        assert "The Eco has no cards to play." in session.game_log.messages()

    def test_mid_tier_double_attack_and_corruption(self, session, fixed_rng):
        """A low roll triggers both mid-tier bonuses."""
        session.rng = fixed_rng(0.0)
        session.state.eco_hp = 25
        stack_eco_deck(session, "2C", "3C")

        result = session.antagonist.take_turn()

        assert result.phase == "predador"
        assert result.double_attack
        assert [c.id for c in result.cards] == ["3C", "2C"]
        assert session.state.pv == 15
        assert result.hallucinations == 1
        assert session.decks.player_count == 53

    def test_mid_tier_high_roll(self, session, fixed_rng):
        """No double attack; a corruption rate of 1.0 still always corrupts."""
        session.rng = fixed_rng(0.99)
        session.state.eco_hp = 25
        stack_eco_deck(session, "3C")

        result = session.antagonist.take_turn()

        assert not result.double_attack
        assert [c.id for c in result.cards] == ["3C"]
        assert result.hallucinations == 1

    def test_corruption_rate_scales_chance(self, session, fixed_rng):
        session.rng = fixed_rng(0.6)
        session.antagonist = AntagonistController(
            session,
            [AntagonistPhase("calm", 100), AntagonistPhase("restless", 80, corruption_rate=0.5),
             AntagonistPhase("wild", 10)],
        )
        session.state.eco_hp = 25
        stack_eco_deck(session, "3C")

        result = session.antagonist.take_turn()

        assert result.phase == "restless"
        assert result.hallucinations == 0

    def test_top_severity_bonus(self, session):
        """Amplified attack, node damage and two hallucinations."""
        session.state.eco_hp = 10
        stack_eco_deck(session, "2C")

        result = session.antagonist.take_turn()

        assert session.state.pv == 17
        assert result.node_damaged is not None
        assert session.nodes.get_node(result.node_damaged).damage == 2
        assert result.hallucinations == 2
        assert session.decks.player_count == 54


class TestDifficulty:
    """Difficulty scales damage and chances, recomputed every turn."""

    def test_double_attack_chance_capped(self, session):
        session.antagonist.difficulty = 2.0
        assert session.antagonist.double_attack_chance == pytest.approx(0.4)
        session.antagonist.difficulty = 6.0
        assert session.antagonist.double_attack_chance == 1.0

    def test_corruption_chance_capped(self, session):
        phase = AntagonistPhase("restless", 80, corruption_rate=0.5)
        session.antagonist.difficulty = 3.0
        assert session.antagonist.corruption_chance(phase) == 1.0

    def test_high_difficulty_always_double_attacks(self, session, fixed_rng):
        """Any roll below 1.0 passes once the chance is capped."""
        session.rng = fixed_rng(0.999)
        session.antagonist.difficulty = 6.0
        session.state.eco_hp = 25
        stack_eco_deck(session, "AC", "AS")

        result = session.antagonist.take_turn()

        assert result.double_attack
        assert [c.id for c in result.cards] == ["AS", "AC"]
        assert session.state.pv == 20 - 6 - 6

    def test_top_phase_scaled_by_difficulty(self, session):
        """2 x (2.0 x 1.5) = 6."""
        session.antagonist.difficulty = 2.0
        session.state.eco_hp = 10
        stack_eco_deck(session, "2C")

        session.antagonist.take_turn()

        assert session.antagonist.damage_multiplier == 3.0
        assert session.state.pv == 14

    def test_scaling_does_not_accumulate(self, session):
        session.antagonist.difficulty = 2.0
        session.state.eco_hp = 10
        stack_eco_deck(session, "2C", "2S")

        session.antagonist.take_turn()
        assert session.state.pv == 14
        session.antagonist.take_turn()
        assert session.state.pv == 8
        assert session.antagonist.damage_multiplier == 3.0

    def test_scenario_difficulty_reaches_controller(self, scenario):
        scenario.difficulty = 1.5
        assert GameSession(scenario, seed=1).antagonist.difficulty == 1.5
