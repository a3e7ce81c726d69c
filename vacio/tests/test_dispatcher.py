"""
Tests for the player action dispatcher.

Tests:
- Single-card actions (play, draw, cycle)
- Composite actions (repair, focus, search) are all-or-nothing
- Rejections carry an ErrorCode and a player-facing log line
"""

from ..engine_core.action import Action, ActionKind, ErrorCode, SearchMode
from ..engine_core.bus import SignalType
from ..engine_core.state import Card, GamePhase, PlayerAction, PlayerStatus, Suit
from ..spec_schema.effect_dsl import (
    EffectType,
    EffectTarget,
    RuleEffect,
    RuleCondition,
    PlayerActionRule,
    GameRules,
)
from .conftest import card, deal


def hand_ids(session) -> list[str]:
    return [c.id for c in session.state.hand]


class TestPlayCard:
    """play_card() with the built-in table and scenario rules."""

    def test_spades_attack(self, session):
        """Built-in Spades are critical: value + chapel reward."""
        deal(session, "7S")
        result = session.dispatcher.play_card("7S")

        assert result.success
        assert session.state.eco_hp == 50 - 8
        assert session.state.pa == 1
        assert hand_ids(session) == []
        assert card("7S") in session.decks.player.discard_pile

    def test_hearts_recover_sanity(self, session):
        deal(session, "5H")
        session.state.sanity = 10
        session.dispatcher.play_card("5H")
        assert session.state.sanity == 15

    def test_clubs_expose(self, session):
        deal(session, "2C")
        session.dispatcher.play_card("2C")
        assert session.state.is_eco_exposed

    def test_diamonds_draw(self, session):
        deal(session, "2D")
        session.dispatcher.play_card("2D")
        assert len(session.state.hand) == 2

    def test_scenario_rule_cost(self, session):
        """A matched rule's cost replaces the flat single AP."""
        session.rule_engine.load_rules(GameRules(player_actions=[
            PlayerActionRule(RuleCondition(suit="Spades"), cost=2, effects=[
                RuleEffect(EffectType.DEAL_DAMAGE, EffectTarget.ECO, 1),
            ]),
        ]))
        deal(session, "3S")
        session.dispatcher.play_card("3S")
        assert session.state.pa == 0
        assert session.state.eco_hp == 49

    def test_unaffordable_rule_keeps_card(self, session):
        session.rule_engine.load_rules(GameRules(player_actions=[
            PlayerActionRule(RuleCondition(suit="Spades"), cost=2, effects=[]),
        ]))
        deal(session, "3S")
        session.state.pa = 1

        result = session.dispatcher.play_card("3S")

        assert result.error_code == ErrorCode.INSUFFICIENT_ACTION_POINTS
        assert hand_ids(session) == ["3S"]
        assert session.state.pa == 1

    def test_unmatched_card_uses_builtin_table(self, session):
        session.rule_engine.load_rules(GameRules(player_actions=[
            PlayerActionRule(RuleCondition(suit="Hearts"), effects=[]),
        ]))
        deal(session, "3S")
        session.dispatcher.play_card("3S")
        assert session.state.eco_hp == 50 - 4

    def test_spades_blocked_by_status(self, session):
        deal(session, "3S")
        session.state.add_status(PlayerStatus.CANNOT_PLAY_SPADES)
        result = session.dispatcher.play_card("3S")
        assert result.error_code == ErrorCode.STATUS_BLOCKED
        assert hand_ids(session) == ["3S"]

    def test_no_action_points(self, session):
        deal(session, "3H")
        session.state.pa = 0
        result = session.dispatcher.play_card("3H")
        assert result.error_code == ErrorCode.INSUFFICIENT_ACTION_POINTS
        assert "Not enough action points." in session.game_log.messages()

    def test_card_not_in_hand(self, player_turn):
        result = player_turn.dispatcher.play_card("3H")
        assert result.error_code == ErrorCode.CARD_NOT_IN_HAND

    def test_wrong_phase(self, session):
        session.state.add_to_hand([card("3H")])
        result = session.dispatcher.play_card("3H")
        assert result.error_code == ErrorCode.WRONG_PHASE

    def test_game_over(self, session):
        deal(session, "3H")
        session.state.end_game(victory=False)
        result = session.dispatcher.play_card("3H")
        assert result.error_code == ErrorCode.GAME_OVER

    def test_winning_blow(self, session):
        deal(session, "KS")
        session.state.eco_hp = 5
        session.dispatcher.play_card("KS")
        assert session.state.is_game_over
        assert session.state.victory is True

    def test_signals(self, session):
        deal(session, "7S")
        session.dispatcher.play_card("7S")
        types = [s.type.value for s in session.bus.get_history()]
        assert "card.played" in types
        assert "card.suit_effect" in types

    def test_unplayable_card_stays_in_hand(self, session):
        """A card no rule table matches is rejected without leaving the hand."""
        deal(session)
        odd = Card("X1", Suit.NONE, "X", 3)
        session.state.add_to_hand([odd])
        pa = session.state.pa

        result = session.dispatcher.play_card("X1")

        assert result.error_code == ErrorCode.NO_MATCHING_RULE
        assert session.state.find_in_hand("X1") == odd
        assert session.state.pa == pa
        assert odd not in session.decks.player.discard_pile
        assert session.bus.get_history(SignalType.CARD_PLAYED) == []

    def test_handler_cannot_start_nested_action(self, session):
        """A signal handler calling back into the dispatcher is turned away."""
        deal(session, "5S", "6S")
        session.state.pa = 1
        nested = []
        session.bus.on(
            SignalType.CARD_PLAYED,
            lambda signal: nested.append(session.dispatcher.play_card("6S")),
        )

        result = session.dispatcher.play_card("5S")

        assert result.success
        assert nested[0].error_code == ErrorCode.ACTION_IN_PROGRESS
        assert hand_ids(session) == ["6S"]
        assert session.state.pa == 0

    def test_guard_released_after_action(self, session):
        deal(session, "2H", "3H")
        session.dispatcher.play_card("2H")
        assert session.dispatcher.play_card("3H").success


class TestDrawAndCycle:
    """draw_card() and cycle_card()."""

    def test_draw(self, player_turn):
        result = player_turn.dispatcher.draw_card()
        assert result.success
        assert len(player_turn.state.hand) == 1
        assert player_turn.state.pa == 1

    def test_cycle(self, session):
        deal(session, "3H")
        result = session.dispatcher.cycle_card("3H")
        assert result.success
        assert len(session.state.hand) == 1
        assert card("3H") in session.decks.player.discard_pile
        assert session.state.pa == 1


class TestRepair:
    """repair_node(): Clubs, floor(sum / 5), one AP per card."""

    def test_repair(self, session):
        session.nodes.deal_damage("radio", 3)
        deal(session, "5C", "6C")

        result = session.dispatcher.repair_node("radio", ["5C", "6C"])

        assert result.success
        assert session.nodes.get_node("radio").damage == 1
        assert session.state.pa == 0
        assert hand_ids(session) == []

    def test_mixed_suits_rejected(self, session):
        """A wrong card in the set rejects the whole action."""
        session.nodes.deal_damage("radio", 3)
        deal(session, "5C", "6H")

        result = session.dispatcher.repair_node("radio", ["5C", "6H"])

        assert result.error_code == ErrorCode.INVALID_SUIT
        assert session.nodes.get_node("radio").damage == 3
        assert session.state.pa == 2
        assert hand_ids(session) == ["5C", "6H"]

    def test_intact_node_rejected(self, session):
        deal(session, "5C")
        result = session.dispatcher.repair_node("faro", ["5C"])
        assert result.error_code == ErrorCode.NODE_INTACT

    def test_unknown_node(self, session):
        deal(session, "5C")
        result = session.dispatcher.repair_node("nowhere", ["5C"])
        assert result.error_code == ErrorCode.NODE_NOT_FOUND

    def test_magnitude_too_low(self, session):
        session.nodes.deal_damage("radio", 3)
        deal(session, "2C")
        result = session.dispatcher.repair_node("radio", ["2C"])
        assert result.error_code == ErrorCode.MAGNITUDE_TOO_LOW
        assert session.state.pa == 2

    def test_one_ap_per_card(self, session):
        session.nodes.deal_damage("radio", 3)
        deal(session, "5C", "6C", "7C")
        result = session.dispatcher.repair_node("radio", ["5C", "6C", "7C"])
        assert result.error_code == ErrorCode.INSUFFICIENT_ACTION_POINTS

    def test_no_cards(self, session):
        session.nodes.deal_damage("radio", 3)
        session.state.set_phase(GamePhase.PLAYER_ACTION)
        result = session.dispatcher.repair_node("radio", [])
        assert result.error_code == ErrorCode.NO_CARDS


class TestFocus:
    """focus(): Hearts, sanity floor(sum * 1.5), boost floor(sum / 3)."""

    def test_focus(self, session):
        deal(session, "4H", "5H")
        session.state.sanity = 5

        result = session.dispatcher.focus(["4H", "5H"])

        assert result.success
        assert session.state.sanity == 18
        assert session.state.critical_damage_boost == 3
        assert session.state.pa == 1

    def test_boost_persists_into_attack(self, session):
        deal(session, "4H", "5H", "2S")
        session.dispatcher.focus(["4H", "5H"])
        session.dispatcher.play_card("2S")
        assert session.state.eco_hp == 50 - (2 + 3 + 1)

    def test_wrong_suit(self, session):
        deal(session, "4D")
        result = session.dispatcher.focus(["4D"])
        assert result.error_code == ErrorCode.INVALID_SUIT


class TestSearch:
    """search(): Diamonds, floor(sum / 2) cards."""

    def test_random_search(self, session):
        deal(session, "4D", "6D")
        result = session.dispatcher.search(["4D", "6D"])
        assert result.success
        assert len(session.state.hand) == 5
        assert session.state.pa == 1

    def test_specific_search(self, session):
        """Searching for a suit halves the count."""
        deal(session, "4D", "6D")
        result = session.dispatcher.search(["4D", "6D"], SearchMode.SPECIFIC, Suit.SPADES)
        assert result.success
        assert len(session.state.hand) == 2
        assert all(c.suit == Suit.SPADES for c in session.state.hand)

    def test_specific_search_needs_suit(self, session):
        deal(session, "4D", "6D")
        result = session.dispatcher.search(["4D", "6D"], SearchMode.SPECIFIC)
        assert result.error_code == ErrorCode.INVALID_SUIT
        assert session.state.pa == 2

    def test_magnitude_too_low(self, session):
        deal(session, "AD")
        result = session.dispatcher.search(["AD"])
        assert result.error_code == ErrorCode.MAGNITUDE_TOO_LOW
        assert hand_ids(session) == ["AD"]


class TestSelectionAndDispatch:
    """execute_selection(), dispatch() and end_turn()."""

    def test_execute_selection_focus(self, session):
        cards = deal(session, "4H", "5H")
        for c in cards:
            session.state.select_card(c)
        session.state.set_current_action(PlayerAction.FOCUS)

        result = session.dispatcher.execute_selection()

        assert result.success
        assert session.state.current_action == PlayerAction.NONE
        assert session.state.selected_cards == []

    def test_execute_selection_repair(self, session):
        session.nodes.deal_damage("faro", 2)
        cards = deal(session, "5C")
        session.state.select_card(cards[0])
        session.state.set_current_action(PlayerAction.REPAIR)
        session.state.set_target_node("faro")

        result = session.dispatcher.execute_selection()

        assert result.success
        assert session.nodes.get_node("faro").damage == 1

    def test_execute_without_action(self, player_turn):
        result = player_turn.dispatcher.execute_selection()
        assert result.error_code == ErrorCode.NO_ACTION_SELECTED

    def test_dispatch_bad_params(self, player_turn):
        """Handler errors come back as results."""
        result = player_turn.dispatcher.dispatch(ActionKind.PLAY_CARD)
        assert result.error_code == ErrorCode.HANDLER_ERROR

    def test_execute_action(self, session):
        deal(session, "5H")
        session.state.sanity = 10
        result = session.dispatcher.execute(Action.play("5H"))
        assert result.success
        assert session.state.sanity == 15

    def test_end_turn_runs_to_next_turn(self, session):
        deal(session, "5H")
        result = session.dispatcher.end_turn()
        assert result.success
        assert session.state.turn == 2
        assert session.state.phase == GamePhase.PLAYER_ACTION
        assert session.corruption.level == 1

    def test_end_turn_clears_spade_block(self, session):
        deal(session, "5H")
        session.state.add_status(PlayerStatus.CANNOT_PLAY_SPADES)
        session.dispatcher.end_turn()
        assert not session.state.has_status(PlayerStatus.CANNOT_PLAY_SPADES)
