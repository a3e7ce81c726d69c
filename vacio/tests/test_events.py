"""
Tests for event resolution.
"""

import logging

from ..engine_core.event_resolver import EventEngine
from ..engine_core.state import GamePhase
from ..spec_schema.effect_dsl import EffectType, EffectTarget, EventDefinition, RuleEffect
from .conftest import card, stack_player_deck


class TestEventEngine:
    """Lookup and resolution by card id."""

    def test_default_events_loaded(self, session):
        assert session.event_engine.has_events
        assert session.event_engine.get_event("KH").name == "Bells at Dawn"

    def test_resolve_applies_effects(self, session):
        session.state.sanity = 10
        resolution = session.event_engine.resolve_event(card("KH"))
        assert resolution.applied
        assert session.state.sanity == 13
        assert "Event: Bells at Dawn" in session.game_log.messages()

    def test_formula_uses_event_card_value(self, session):
        """The 7 of Spades' event deals floor(7 / 2) PV."""
        session.event_engine.resolve_event(card("7S"))
        assert session.state.pv == 17

    def test_missing_event_is_logged(self, session, caplog):
        with caplog.at_level(logging.WARNING):
            resolution = session.event_engine.resolve_event(card("2H"))
        assert not resolution.applied
        assert "2H" in caplog.text

    def test_no_table(self, session):
        engine = EventEngine(session.rule_engine, session.game_log, None)
        assert not engine.has_events
        assert not engine.resolve_event(card("KH")).applied

    def test_later_definition_replaces_earlier(self, session):
        events = [
            EventDefinition("AS", "First", effects=[RuleEffect(EffectType.HEAL_STAT, EffectTarget.ECO, 1)]),
            EventDefinition("AS", "Second", effects=[RuleEffect(EffectType.HEAL_STAT, EffectTarget.ECO, 1)]),
        ]
        engine = EventEngine(session.rule_engine, session.game_log, events)
        assert engine.get_event("AS").name == "Second"


class TestEventPhase:
    """The turn loop draws the top player card as the event."""

    def test_event_phase_resolves_top_card(self, session):
        stack_player_deck(session, "KH")
        session.state.sanity = 10

        session.turn_manager.advance()

        assert session.state.phase == GamePhase.PLAYER_ACTION
        assert session.state.sanity == 13
        assert card("KH") in session.decks.player.discard_pile

    def test_event_card_without_event_is_discarded(self, session):
        stack_player_deck(session, "2H")
        session.turn_manager.advance()
        assert card("2H") in session.decks.player.discard_pile
        assert card("2H") not in session.state.hand
