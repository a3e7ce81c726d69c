"""
Tests for SessionState.

Tests:
- Every numeric resource is clamped
- GAME_OVER latches combat resources
- Subscribers get frozen snapshots and cannot mutate during notification
"""

import pytest
from pydantic import ValidationError

from ..engine_core.state import (
    Card,
    GamePhase,
    PlayerStatus,
    PlayerAction,
    ResourceLimits,
    SessionState,
    StateLockedError,
    Suit,
)
from .conftest import card


class TestClamping:
    """Resources stay inside [0, max]."""

    def test_constructor_clamps(self):
        """Initial values above the limits are clamped."""
        state = SessionState(pv=25, sanity=-3, pa=9, eco_hp=80)
        assert state.pv == 20
        assert state.sanity == 0
        assert state.pa == 2
        assert state.eco_hp == 50

    def test_setters_clamp(self, state):
        """Property setters clamp in both directions."""
        state.pv = -5
        assert state.pv == 0
        state.eco_hp = 500
        assert state.eco_hp == 50
        state.pa = 7
        assert state.pa == 2

    def test_damage_returns_actual_amount(self, state):
        """Overkill damage reports only what was removed."""
        state.pv = 4
        assert state.damage_player(10) == 4
        assert state.pv == 0

    def test_heal_capped_at_configured_max(self):
        """Healing never goes past the scenario's max PV."""
        state = SessionState(pv=10, sanity=10, pa=1, eco_hp=30, limits=ResourceLimits(max_pv=12))
        assert state.heal_player(5) == 2
        assert state.pv == 12

    def test_negative_damage_is_ignored(self, state):
        """Negative amounts never heal through a damage call."""
        state.sanity = 10
        state.damage_sanity(-4)
        assert state.sanity == 10

    def test_spend_action_points(self, state):
        """Spending more AP than available fails without change."""
        assert state.spend_action_points(3) is False
        assert state.pa == 2
        assert state.spend_action_points(2) is True
        assert state.pa == 0

    def test_critical_boost_never_negative(self, state):
        state.critical_damage_boost = -3
        assert state.critical_damage_boost == 0


class TestLimits:
    """Reward bonuses raise the maxima."""

    def test_refresh_adds_bonuses(self, state):
        """Bonuses stack on top of the base limits."""
        state.refresh_limits({"max_sanity": 2, "max_ap": 1, "max_hand_size": 1})
        assert state.max_sanity == 22
        assert state.max_pa == 3
        assert state.max_hand_size == 6
        assert state.max_pv == 20

    def test_losing_bonus_clamps_current_value(self, state):
        """Current sanity drops back when its bonus disappears."""
        state.refresh_limits({"max_sanity": 2})
        state.sanity = 22
        state.refresh_limits({})
        assert state.max_sanity == 20
        assert state.sanity == 20


class TestTerminalLatch:
    """GAME_OVER freezes combat resources."""

    def test_resources_frozen_after_game_over(self, state):
        """No combat resource changes once the game is over."""
        state.end_game(victory=False)
        state.pv = 5
        assert state.damage_eco(10) == 0
        state.is_eco_exposed = True
        state.add_status(PlayerStatus.CANNOT_PLAY_SPADES)
        assert state.pv == 20
        assert state.eco_hp == 50
        assert state.is_eco_exposed is False
        assert not state.has_status(PlayerStatus.CANNOT_PLAY_SPADES)

    def test_cannot_leave_game_over(self, state):
        state.end_game(victory=True)
        state.set_phase(GamePhase.PLAYER_ACTION)
        assert state.phase == GamePhase.GAME_OVER

    def test_first_outcome_wins(self, state):
        """A second end_game() does not flip the outcome."""
        state.end_game(victory=False)
        state.end_game(victory=True)
        assert state.victory is False

    def test_hand_frozen_after_game_over(self, state):
        state.add_to_hand([card("AS")])
        state.end_game(victory=False)
        assert state.clear_hand() == []
        assert [c.id for c in state.hand] == ["AS"]


class TestHandAndSelection:
    """Hand and selection bookkeeping."""

    def test_remove_from_hand_returns_removed(self, state):
        state.add_to_hand([card("AS"), card("2H")])
        removed = state.remove_from_hand([card("2H"), card("KD")])
        assert [c.id for c in removed] == ["2H"]
        assert [c.id for c in state.hand] == ["AS"]

    def test_removing_card_drops_it_from_selection(self, state):
        """A card that leaves the hand cannot stay selected."""
        state.add_to_hand([card("3C"), card("4C")])
        state.select_card(card("3C"))
        state.remove_from_hand([card("3C")])
        assert state.selected_cards == []

    def test_only_hand_cards_can_be_selected(self, state):
        state.select_card(card("9S"))
        assert state.selected_cards == []

    def test_deselect_card(self, state):
        state.add_to_hand([card("3C"), card("4C")])
        state.select_card(card("3C"))
        state.select_card(card("4C"))
        state.deselect_card(card("3C"))
        assert state.selected_cards == [card("4C")]

    def test_clear_selection_resets_everything(self, state):
        state.add_to_hand([card("3C")])
        state.select_card(card("3C"))
        state.set_current_action(PlayerAction.REPAIR)
        state.set_node_selection_mode(True)
        state.set_target_node("faro")
        state.clear_selection()
        assert state.selected_cards == []
        assert state.current_action == PlayerAction.NONE
        assert state.target_node_id is None
        assert state.node_selection_mode is False


class TestSubscribers:
    """Observation through snapshots."""

    def test_subscriber_receives_snapshot(self, state):
        snapshots = []
        state.subscribe(snapshots.append)
        state.pv = 12
        assert len(snapshots) == 1
        assert snapshots[0].pv == 12
        assert snapshots[0].phase == "event"

    def test_unsubscribe(self, state):
        snapshots = []
        unsubscribe = state.subscribe(snapshots.append)
        unsubscribe()
        state.pv = 12
        assert snapshots == []

    def test_snapshot_is_frozen(self, state):
        snapshot = state.snapshot()
        with pytest.raises(ValidationError):
            snapshot.pv = 1

    def test_mutation_during_notify_is_rejected(self, state):
        """A subscriber cannot write back into the state it is observing."""
        seen = []

        def listener(snapshot):
            with pytest.raises(StateLockedError):
                state.pv = 1
            seen.append(snapshot.pv)

        state.subscribe(listener)
        state.pv = 15
        assert seen == [15]
        assert state.pv == 15

    def test_failing_listener_does_not_stop_others(self, state):
        seen = []

        def broken(snapshot):
            raise RuntimeError("boom")

        state.subscribe(broken)
        state.subscribe(seen.append)
        state.sanity = 9
        assert len(seen) == 1


class TestCard:
    """Card identity and derived attributes."""

    def test_identity_is_id(self):
        a = Card(id="AS", suit=Suit.SPADES, rank="A", value=1)
        b = Card(id="AS", suit=Suit.SPADES, rank="A", value=1, image_file="other.png")
        assert a == b
        assert len({a, b}) == 1

    def test_color(self):
        assert card("5H").color == "red"
        assert card("5C").color == "black"

    def test_suit_parse(self):
        assert Suit.parse("spades") == Suit.SPADES
        assert Suit.parse("Joker") == Suit.NONE
        assert Suit.parse(None) == Suit.NONE
