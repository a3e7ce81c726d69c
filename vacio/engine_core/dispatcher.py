"""
Player Action Dispatcher - The human player's turn.

Every action:
- Validates before mutating (all-or-nothing)
- Returns an ActionResult; nothing raises out of dispatch()
- Logs a player-facing line when rejected
- Evaluates game over after touching resources
- Is rejected when started from a handler while another action resolves

Composite actions spend a homogeneous set of cards:
- repair_node: Clubs, magnitude floor(sum / 5), costs one AP per card
- focus: Hearts, sanity floor(sum * 1.5) and critical boost floor(sum / 3)
- search: Diamonds, floor(sum / 2) cards (halved again for a specific suit)
"""

from __future__ import annotations
from typing import Any, Callable, TYPE_CHECKING
import functools
import logging
import math

from .action import Action, ActionResult, ActionKind, ErrorCode, SearchMode
from .bus import SignalType, LogCategory
from .state import GamePhase, PlayerStatus, PlayerAction, Suit
from ..spec_schema.effect_dsl import FALLBACK_RULES

if TYPE_CHECKING:
    from .state import Card
    from ..session.manager import GameSession

logger = logging.getLogger(__name__)

SUIT_EFFECTS = {
    Suit.SPADES: "attack",
    Suit.HEARTS: "defend",
    Suit.CLUBS: "research",
    Suit.DIAMONDS: "resource",
}

REPAIR_DIVISOR = 5
FOCUS_SANITY_FACTOR = 1.5
FOCUS_BOOST_DIVISOR = 3
SEARCH_DIVISOR = 2


def _exclusive(method):
    """Reject an action started while another one is still resolving."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        if self._acting:
            logger.warning("Rejected %s: another action is still resolving", method.__name__)
            return ActionResult.failure(
                f"Cannot {method.__name__} while another action is resolving",
                ErrorCode.ACTION_IN_PROGRESS,
            )
        self._acting = True
        try:
            return method(self, *args, **kwargs)
        finally:
            self._acting = False
    return wrapper


class PlayerActionDispatcher:
    """
    Validates and applies player actions for one session.

    Use the named methods directly, or dispatch() with an ActionKind.
    """

    def __init__(self, session: GameSession):
        self.session = session
        self._acting = False

    def dispatch(self, kind: ActionKind, **params: Any) -> ActionResult:
        handler = self._get_handler(kind)
        if handler is None:
            return ActionResult.failure(f"No handler for action: {kind}", ErrorCode.HANDLER_ERROR)
        try:
            return handler(**params)
        except Exception as e:
            logger.exception("Action %s failed", kind.value)
            return ActionResult.failure(str(e), ErrorCode.HANDLER_ERROR)

    def execute(self, action: Action) -> ActionResult:
        return self.dispatch(action.kind, **action.params)

    def _get_handler(self, kind: ActionKind) -> Callable[..., ActionResult] | None:
        handlers = {
            ActionKind.PLAY_CARD: self.play_card,
            ActionKind.DRAW_CARD: self.draw_card,
            ActionKind.CYCLE_CARD: self.cycle_card,
            ActionKind.REPAIR_NODE: self.repair_node,
            ActionKind.FOCUS: self.focus,
            ActionKind.SEARCH: self.search,
            ActionKind.END_TURN: self.end_turn,
        }
        return handlers.get(kind)

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    def _reject(self, error: str, code: ErrorCode) -> ActionResult:
        self.session.game_log.system(error, LogCategory.INFO)
        return ActionResult.failure(error, code)

    def _check_phase(self) -> ActionResult | None:
        state = self.session.state
        if state.is_game_over:
            return self._reject("The game is over.", ErrorCode.GAME_OVER)
        if state.phase != GamePhase.PLAYER_ACTION:
            return self._reject("You can only act during your turn.", ErrorCode.WRONG_PHASE)
        return None

    def _check_ap(self, needed: int) -> ActionResult | None:
        if self.session.state.pa < needed:
            return self._reject("Not enough action points.", ErrorCode.INSUFFICIENT_ACTION_POINTS)
        return None

    def _cards_from_hand(self, card_ids: list[str], suit: Suit) -> tuple[list[Card], ActionResult | None]:
        if not card_ids:
            return [], self._reject("Select at least one card.", ErrorCode.NO_CARDS)
        state = self.session.state
        cards = []
        for card_id in dict.fromkeys(card_ids):
            card = state.find_in_hand(card_id)
            if card is None:
                return [], self._reject(f"Card {card_id} is not in your hand.", ErrorCode.CARD_NOT_IN_HAND)
            cards.append(card)
        if any(card.suit != suit for card in cards):
            return [], self._reject(f"Only {suit.value} can be used for this action.", ErrorCode.INVALID_SUIT)
        return cards, None

    def _spend_cards(self, cards: list[Card]):
        removed = self.session.state.remove_from_hand(cards)
        self.session.decks.discard(removed)

    # ------------------------------------------------------------------
    # Single-card actions
    # ------------------------------------------------------------------

    @_exclusive
    def play_card(self, card_id: str) -> ActionResult:
        """Play one card: scenario rule first, built-in suit table second."""
        rejected = self._check_phase()
        if rejected:
            return rejected

        state = self.session.state
        card = state.find_in_hand(card_id)
        if card is None:
            return self._reject(f"Card {card_id} is not in your hand.", ErrorCode.CARD_NOT_IN_HAND)
        if card.suit == Suit.SPADES and state.has_status(PlayerStatus.CANNOT_PLAY_SPADES):
            return self._reject("You cannot play Spades this turn.", ErrorCode.STATUS_BLOCKED)

        rejected = self._check_ap(1)
        if rejected:
            return rejected

        engine = self.session.rule_engine
        table = engine.rules if engine.has_rules else None
        rule = table.find_player_action(card) if table is not None else None
        if rule is None:
            if table is not None:
                logger.info("No scenario rule for %s; using built-in table", card.id)
            table = FALLBACK_RULES
            rule = table.find_player_action(card)
        if rule is None:
            return self._reject(f"The {card} cannot be played.", ErrorCode.NO_MATCHING_RULE)
        rejected = self._check_ap(rule.cost)
        if rejected:
            return rejected

        state.remove_from_hand([card])
        self.session.bus.emit(SignalType.CARD_PLAYED, card_id=card.id, suit=card.suit.value, value=card.value)
        effect = SUIT_EFFECTS.get(card.suit)
        if effect:
            self.session.bus.emit(SignalType.SUIT_EFFECT, effect=effect, card_id=card.id)
        self.session.game_log.player(f"You play the {card}.", _category_for(card.suit))

        result = engine.resolve_player_action(card, table)
        self.session.decks.discard([card])
        self.session.evaluate_game_over()
        return result

    @_exclusive
    def draw_card(self) -> ActionResult:
        """Spend 1 AP to draw one card."""
        rejected = self._check_phase() or self._check_ap(1)
        if rejected:
            return rejected
        if self.session.decks.player_exhausted:
            return self._reject("There are no cards left to draw.", ErrorCode.DECK_EMPTY)

        self.session.state.spend_action_points(1)
        drawn = self.session.draw_to_hand(1)
        self.session.game_log.player(f"You draw {len(drawn)} card(s).", LogCategory.DRAW)
        self.session.evaluate_game_over()
        return ActionResult.ok([f"Drew {len(drawn)} card(s)"], payload=drawn)

    @_exclusive
    def cycle_card(self, card_id: str) -> ActionResult:
        """Spend 1 AP to discard a card and draw a replacement."""
        rejected = self._check_phase()
        if rejected:
            return rejected
        card = self.session.state.find_in_hand(card_id)
        if card is None:
            return self._reject(f"Card {card_id} is not in your hand.", ErrorCode.CARD_NOT_IN_HAND)
        rejected = self._check_ap(1)
        if rejected:
            return rejected

        self.session.state.spend_action_points(1)
        self._spend_cards([card])
        drawn = self.session.draw_to_hand(1)
        self.session.game_log.player(f"You discard the {card} and draw a new card.", LogCategory.RESEARCH)
        self.session.evaluate_game_over()
        return ActionResult.ok([f"Cycled {card}"], payload=drawn)

    # ------------------------------------------------------------------
    # Composite actions
    # ------------------------------------------------------------------

    @_exclusive
    def repair_node(self, node_id: str, card_ids: list[str]) -> ActionResult:
        """Spend Clubs to repair a damaged node."""
        rejected = self._check_phase()
        if rejected:
            return rejected
        cards, rejected = self._cards_from_hand(card_ids, Suit.CLUBS)
        if rejected:
            return rejected

        node = self.session.nodes.get_node(node_id)
        if node is None:
            return self._reject(f"Unknown node {node_id}.", ErrorCode.NODE_NOT_FOUND)
        if node.damage <= 0:
            return self._reject(f"{node.name} is already at full integrity.", ErrorCode.NODE_INTACT)
        rejected = self._check_ap(len(cards))
        if rejected:
            return rejected
        amount = sum(card.value for card in cards) // REPAIR_DIVISOR
        if amount < 1:
            return self._reject("Those cards are not enough to repair anything.", ErrorCode.MAGNITUDE_TOO_LOW)

        self.session.state.spend_action_points(len(cards))
        self._spend_cards(cards)
        repaired = self.session.nodes.repair_node(node_id, amount)
        self.session.state.clear_selection()
        self.session.evaluate_game_over()
        return ActionResult.ok([f"Repaired {node.name} by {repaired}"], payload=repaired)

    @_exclusive
    def focus(self, card_ids: list[str]) -> ActionResult:
        """Spend Hearts to recover sanity and build the critical boost."""
        rejected = self._check_phase()
        if rejected:
            return rejected
        cards, rejected = self._cards_from_hand(card_ids, Suit.HEARTS)
        if rejected:
            return rejected
        rejected = self._check_ap(1)
        if rejected:
            return rejected

        total = sum(card.value for card in cards)
        sanity = math.floor(total * FOCUS_SANITY_FACTOR)
        boost = total // FOCUS_BOOST_DIVISOR

        state = self.session.state
        state.spend_action_points(1)
        self._spend_cards(cards)
        recovered = state.recover_sanity(sanity)
        state.critical_damage_boost = state.critical_damage_boost + boost
        self.session.game_log.player(
            f"You focus: +{recovered} COR, critical boost +{boost}.", LogCategory.FOCUS
        )
        state.clear_selection()
        self.session.evaluate_game_over()
        return ActionResult.ok([f"Recovered {recovered} COR", f"Critical boost +{boost}"])

    @_exclusive
    def search(
        self,
        card_ids: list[str],
        mode: SearchMode = SearchMode.RANDOM,
        wanted_suit: Suit | None = None,
    ) -> ActionResult:
        """Spend Diamonds to draw extra cards, random or of one suit."""
        rejected = self._check_phase()
        if rejected:
            return rejected
        cards, rejected = self._cards_from_hand(card_ids, Suit.DIAMONDS)
        if rejected:
            return rejected
        if mode == SearchMode.SPECIFIC and wanted_suit in (None, Suit.NONE):
            return self._reject("Choose a suit to search for.", ErrorCode.INVALID_SUIT)
        rejected = self._check_ap(1)
        if rejected:
            return rejected

        count = sum(card.value for card in cards) // SEARCH_DIVISOR
        if mode == SearchMode.SPECIFIC:
            count //= 2
        if count < 1:
            return self._reject("Those cards are not enough to search.", ErrorCode.MAGNITUDE_TOO_LOW)

        state = self.session.state
        state.spend_action_points(1)
        self._spend_cards(cards)
        if mode == SearchMode.SPECIFIC:
            found = self.session.decks.take_matching(lambda c: c.suit == wanted_suit, count)
            state.add_to_hand(found)
            for card in found:
                self.session.bus.emit(SignalType.CARD_DEALT, card_id=card.id)
            self.session.game_log.player(
                f"You search for {wanted_suit.value} and find {len(found)} card(s).", LogCategory.SEARCH
            )
        else:
            found = self.session.draw_to_hand(count)
            self.session.game_log.player(f"You search and draw {len(found)} card(s).", LogCategory.SEARCH)
        state.clear_selection()
        self.session.evaluate_game_over()
        return ActionResult.ok([f"Found {len(found)} card(s)"], payload=found)

    def execute_selection(self) -> ActionResult:
        """Run the composite action assembled in the selection state."""
        state = self.session.state
        card_ids = [card.id for card in state.selected_cards]
        action = state.current_action
        if action == PlayerAction.REPAIR:
            return self.repair_node(state.target_node_id or "", card_ids)
        if action == PlayerAction.FOCUS:
            return self.focus(card_ids)
        if action == PlayerAction.SEARCH:
            return self.search(card_ids)
        return self._reject("No action selected.", ErrorCode.NO_ACTION_SELECTED)

    @_exclusive
    def end_turn(self) -> ActionResult:
        rejected = self._check_phase()
        if rejected:
            return rejected
        self.session.turn_manager.end_player_turn()
        return ActionResult.ok([f"Turn {self.session.state.turn}"])


def _category_for(suit: Suit) -> LogCategory:
    return {
        Suit.SPADES: LogCategory.ATTACK,
        Suit.HEARTS: LogCategory.DEFEND,
        Suit.CLUBS: LogCategory.RESEARCH,
        Suit.DIAMONDS: LogCategory.SEARCH,
    }.get(suit, LogCategory.INFO)
