"""
Session State - The single source of truth for a running game.

Holds every numeric resource (PV, sanity, action points, Eco HP),
the active phase, the hand and the transient selection state.

Design principles:
- Clamped: every numeric setter keeps its value inside [0, max]
- Terminal: once the phase is GAME_OVER, combat resources stop changing
- Observable: subscribers receive a frozen snapshot after each mutation
- Owned by the engine: the presentation layer only reads and subscribes
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, TYPE_CHECKING
import logging

if TYPE_CHECKING:
    from ..session.schemas import StateSnapshot

logger = logging.getLogger(__name__)


class Suit(Enum):
    """Card suits. NONE is used by injected hallucinations."""
    SPADES = "Spades"
    HEARTS = "Hearts"
    CLUBS = "Clubs"
    DIAMONDS = "Diamonds"
    NONE = "none"

    @classmethod
    def parse(cls, raw: str | None) -> Suit:
        """Map a suit name from a document, case-insensitively."""
        if not raw:
            return cls.NONE
        for suit in cls:
            if suit.value.lower() == raw.strip().lower():
                return suit
        return cls.NONE

    @property
    def color(self) -> str | None:
        if self in (Suit.HEARTS, Suit.DIAMONDS):
            return "red"
        if self in (Suit.SPADES, Suit.CLUBS):
            return "black"
        return None


class GamePhase(Enum):
    """Turn phases. GAME_OVER is terminal."""
    EVENT = "event"
    PLAYER_ACTION = "player_action"
    ECO_ATTACK = "eco_attack"
    MAINTENANCE = "maintenance"
    GAME_OVER = "game_over"


class PlayerStatus(Enum):
    """Status tags that can be attached to the player."""
    CANNOT_PLAY_SPADES = "cannotPlaySpades"


class PlayerAction(Enum):
    """Composite action currently being assembled in the UI."""
    NONE = "none"
    REPAIR = "repair"
    FOCUS = "focus"
    SEARCH = "search"


@dataclass(frozen=True, eq=False)
class Card:
    """
    A playing card.

    Immutable once created; identity is the id, so two Card objects
    with the same id are the same card.
    """
    id: str
    suit: Suit
    rank: str
    value: int
    image_file: str = ""

    @property
    def color(self) -> str | None:
        return self.suit.color

    @property
    def is_hallucination(self) -> bool:
        return False

    def __hash__(self):
        return hash(self.id)

    def __eq__(self, other):
        if not isinstance(other, Card):
            return False
        return self.id == other.id

    def __str__(self) -> str:
        return f"{self.rank} of {self.suit.value}"


class StateLockedError(RuntimeError):
    """Raised when a subscriber tries to mutate state while being notified."""


StateListener = Callable[["StateSnapshot"], None]


@dataclass
class ResourceLimits:
    """Upper bounds for the clamped resources."""
    max_pv: int = 20
    max_sanity: int = 20
    max_pa: int = 2
    max_hand_size: int = 5
    max_eco_hp: int = 50


class SessionState:
    """
    Mutable aggregate of one game's resources.

    Constructed fresh on every reset; never partially torn down.
    All writes go through methods or clamped property setters, and
    each write notifies subscribers synchronously.
    """

    def __init__(
        self,
        pv: int,
        sanity: int,
        pa: int,
        eco_hp: int,
        limits: ResourceLimits | None = None,
        listeners: list[StateListener] | None = None,
    ):
        self.base_limits = limits or ResourceLimits()
        self.limits = ResourceLimits(**vars(self.base_limits))

        self._pv = _clamp(pv, self.limits.max_pv)
        self._sanity = _clamp(sanity, self.limits.max_sanity)
        self._pa = _clamp(pa, self.limits.max_pa)
        self._eco_hp = _clamp(eco_hp, self.limits.max_eco_hp)
        self._hand: list[Card] = []
        self._turn = 1
        self._phase = GamePhase.EVENT
        self._is_eco_exposed = False
        self._victory: bool | None = None
        self._player_status_effects: set[PlayerStatus] = set()
        self._critical_damage_boost = 0
        self._eco_revealed_card: Card | None = None

        # Transient selection state
        self._selected_cards: list[Card] = []
        self._current_action = PlayerAction.NONE
        self._target_node_id: str | None = None
        self._node_selection_mode = False

        # Shared with the owning session so subscriptions survive resets
        self._listeners: list[StateListener] = listeners if listeners is not None else []
        self._notifying = False

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener; returns a function that unsubscribes it."""
        if listener not in self._listeners:
            self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> StateSnapshot:
        """Frozen copy of the current state."""
        from ..session.schemas import StateSnapshot

        return StateSnapshot(
            pv=self._pv,
            max_pv=self.limits.max_pv,
            sanity=self._sanity,
            max_sanity=self.limits.max_sanity,
            pa=self._pa,
            max_pa=self.limits.max_pa,
            eco_hp=self._eco_hp,
            max_eco_hp=self.limits.max_eco_hp,
            max_hand_size=self.limits.max_hand_size,
            hand=[card.id for card in self._hand],
            turn=self._turn,
            phase=self._phase.value,
            is_eco_exposed=self._is_eco_exposed,
            victory=self._victory,
            player_status_effects=sorted(s.value for s in self._player_status_effects),
            critical_damage_boost=self._critical_damage_boost,
            eco_revealed_card=self._eco_revealed_card.id if self._eco_revealed_card else None,
            selected_cards=[card.id for card in self._selected_cards],
            current_action=self._current_action.value,
            target_node_id=self._target_node_id,
        )

    def _notify(self):
        if not self._listeners:
            return
        snapshot = self.snapshot()
        self._notifying = True
        try:
            for listener in list(self._listeners):
                try:
                    listener(snapshot)
                except Exception:
                    logger.exception("State listener %r failed", listener)
        finally:
            self._notifying = False

    def _check_writable(self):
        if self._notifying:
            raise StateLockedError("State cannot be mutated while notifying subscribers")

    def _combat_locked(self, what: str) -> bool:
        """True (and logs) if the terminal latch blocks a combat mutation."""
        self._check_writable()
        if self._phase == GamePhase.GAME_OVER:
            logger.debug("Game over: suppressed change to %s", what)
            return True
        return False

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def pv(self) -> int:
        return self._pv

    @property
    def sanity(self) -> int:
        return self._sanity

    @property
    def pa(self) -> int:
        return self._pa

    @property
    def eco_hp(self) -> int:
        return self._eco_hp

    @property
    def max_pv(self) -> int:
        return self.limits.max_pv

    @property
    def max_sanity(self) -> int:
        return self.limits.max_sanity

    @property
    def max_pa(self) -> int:
        return self.limits.max_pa

    @property
    def max_hand_size(self) -> int:
        return self.limits.max_hand_size

    @property
    def max_eco_hp(self) -> int:
        return self.limits.max_eco_hp

    @property
    def hand(self) -> list[Card]:
        """Copy of the hand; use the hand methods to change it."""
        return list(self._hand)

    @property
    def turn(self) -> int:
        return self._turn

    @property
    def phase(self) -> GamePhase:
        return self._phase

    @property
    def is_eco_exposed(self) -> bool:
        return self._is_eco_exposed

    @property
    def victory(self) -> bool | None:
        return self._victory

    @property
    def is_game_over(self) -> bool:
        return self._phase == GamePhase.GAME_OVER

    @property
    def player_status_effects(self) -> frozenset[PlayerStatus]:
        return frozenset(self._player_status_effects)

    @property
    def critical_damage_boost(self) -> int:
        return self._critical_damage_boost

    @property
    def eco_revealed_card(self) -> Card | None:
        return self._eco_revealed_card

    @property
    def eco_hp_percent(self) -> float:
        if self.limits.max_eco_hp <= 0:
            return 0.0
        return self._eco_hp / self.limits.max_eco_hp * 100

    @property
    def selected_cards(self) -> list[Card]:
        return list(self._selected_cards)

    @property
    def current_action(self) -> PlayerAction:
        return self._current_action

    @property
    def target_node_id(self) -> str | None:
        return self._target_node_id

    @property
    def node_selection_mode(self) -> bool:
        return self._node_selection_mode

    # ------------------------------------------------------------------
    # Clamped setters
    # ------------------------------------------------------------------

    @pv.setter
    def pv(self, value: int):
        if self._combat_locked("pv"):
            return
        self._pv = _clamp(value, self.limits.max_pv)
        self._notify()

    @sanity.setter
    def sanity(self, value: int):
        if self._combat_locked("sanity"):
            return
        self._sanity = _clamp(value, self.limits.max_sanity)
        self._notify()

    @pa.setter
    def pa(self, value: int):
        if self._combat_locked("pa"):
            return
        self._pa = _clamp(value, self.limits.max_pa)
        self._notify()

    @eco_hp.setter
    def eco_hp(self, value: int):
        if self._combat_locked("eco_hp"):
            return
        self._eco_hp = _clamp(value, self.limits.max_eco_hp)
        self._notify()

    @is_eco_exposed.setter
    def is_eco_exposed(self, value: bool):
        if self._combat_locked("is_eco_exposed"):
            return
        self._is_eco_exposed = bool(value)
        self._notify()

    @critical_damage_boost.setter
    def critical_damage_boost(self, value: int):
        if self._combat_locked("critical_damage_boost"):
            return
        self._critical_damage_boost = max(0, int(value))
        self._notify()

    @eco_revealed_card.setter
    def eco_revealed_card(self, card: Card | None):
        self._check_writable()
        self._eco_revealed_card = card
        self._notify()

    # ------------------------------------------------------------------
    # Resource operations
    # ------------------------------------------------------------------

    def spend_action_points(self, amount: int) -> bool:
        """Deduct action points if affordable. Returns False otherwise."""
        if self.is_game_over or self._pa < amount:
            return False
        self.pa = self._pa - amount
        return True

    def damage_player(self, amount: int) -> int:
        """Subtract PV. Returns the damage actually taken."""
        before = self._pv
        self.pv = self._pv - max(0, amount)
        return before - self._pv

    def damage_sanity(self, amount: int) -> int:
        before = self._sanity
        self.sanity = self._sanity - max(0, amount)
        return before - self._sanity

    def damage_eco(self, amount: int) -> int:
        before = self._eco_hp
        self.eco_hp = self._eco_hp - max(0, amount)
        return before - self._eco_hp

    def heal_player(self, amount: int) -> int:
        """Add PV up to the configured maximum. Returns PV recovered."""
        before = self._pv
        self.pv = self._pv + max(0, amount)
        return self._pv - before

    def recover_sanity(self, amount: int) -> int:
        before = self._sanity
        self.sanity = self._sanity + max(0, amount)
        return self._sanity - before

    def heal_eco(self, amount: int) -> int:
        before = self._eco_hp
        self.eco_hp = self._eco_hp + max(0, amount)
        return self._eco_hp - before

    def add_status(self, status: PlayerStatus):
        if self._combat_locked("player_status_effects"):
            return
        if status not in self._player_status_effects:
            self._player_status_effects.add(status)
            self._notify()

    def remove_status(self, status: PlayerStatus):
        if self._combat_locked("player_status_effects"):
            return
        if status in self._player_status_effects:
            self._player_status_effects.discard(status)
            self._notify()

    def has_status(self, status: PlayerStatus) -> bool:
        return status in self._player_status_effects

    def refresh_limits(self, bonuses: dict[str, int] | None = None):
        """
        Recompute maxima as base limits plus reward bonuses.

        Current values are clamped down if a bonus was lost.
        """
        if self._combat_locked("limits"):
            return
        bonuses = bonuses or {}
        self.limits = ResourceLimits(
            max_pv=self.base_limits.max_pv,
            max_sanity=self.base_limits.max_sanity + bonuses.get("max_sanity", 0),
            max_pa=self.base_limits.max_pa + bonuses.get("max_ap", 0),
            max_hand_size=self.base_limits.max_hand_size + bonuses.get("max_hand_size", 0),
            max_eco_hp=self.base_limits.max_eco_hp,
        )
        self._sanity = _clamp(self._sanity, self.limits.max_sanity)
        self._pa = _clamp(self._pa, self.limits.max_pa)
        self._notify()

    # ------------------------------------------------------------------
    # Hand
    # ------------------------------------------------------------------

    def add_to_hand(self, cards: list[Card]):
        if not cards or self._combat_locked("hand"):
            return
        self._hand.extend(cards)
        self._notify()

    def remove_from_hand(self, cards: list[Card]) -> list[Card]:
        """Remove the given cards; returns those that were actually in hand."""
        if not cards or self._combat_locked("hand"):
            return []
        wanted = {card.id for card in cards}
        removed = [c for c in self._hand if c.id in wanted]
        self._hand = [c for c in self._hand if c.id not in wanted]
        self._selected_cards = [c for c in self._selected_cards if c.id not in wanted]
        if removed:
            self._notify()
        return removed

    def clear_hand(self) -> list[Card]:
        """Empty the hand and return what was in it."""
        if self._combat_locked("hand"):
            return []
        removed = self._hand
        self._hand = []
        self._selected_cards = []
        self._notify()
        return removed

    def find_in_hand(self, card_id: str) -> Card | None:
        for card in self._hand:
            if card.id == card_id:
                return card
        return None

    # ------------------------------------------------------------------
    # Phase and turn
    # ------------------------------------------------------------------

    def set_phase(self, phase: GamePhase):
        """Change phase. Leaving GAME_OVER is not possible."""
        self._check_writable()
        if self._phase == GamePhase.GAME_OVER:
            logger.debug("Game over: suppressed phase change to %s", phase.value)
            return
        self._phase = phase
        self._notify()

    def advance_turn(self):
        if self._combat_locked("turn"):
            return
        self._turn += 1
        self._notify()

    def end_game(self, victory: bool):
        """Enter GAME_OVER with the given outcome. Only the first call counts."""
        self._check_writable()
        if self._phase == GamePhase.GAME_OVER:
            return
        self._victory = victory
        self._phase = GamePhase.GAME_OVER
        self._notify()

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select_card(self, card: Card):
        self._check_writable()
        if card in self._hand and card not in self._selected_cards:
            self._selected_cards.append(card)
            self._notify()

    def deselect_card(self, card: Card):
        self._check_writable()
        if card in self._selected_cards:
            self._selected_cards.remove(card)
            self._notify()

    def clear_selection(self):
        self._check_writable()
        self._selected_cards = []
        self._current_action = PlayerAction.NONE
        self._target_node_id = None
        self._node_selection_mode = False
        self._notify()

    def set_current_action(self, action: PlayerAction):
        self._check_writable()
        self._current_action = action
        self._notify()

    def set_node_selection_mode(self, enabled: bool):
        self._check_writable()
        self._node_selection_mode = enabled
        if not enabled:
            self._target_node_id = None
        self._notify()

    def set_target_node(self, node_id: str | None):
        self._check_writable()
        self._target_node_id = node_id
        self._notify()

    def describe(self) -> dict[str, Any]:
        """Short dict for log lines and the CLI."""
        return {
            "turn": self._turn,
            "phase": self._phase.value,
            "pv": f"{self._pv}/{self.limits.max_pv}",
            "sanity": f"{self._sanity}/{self.limits.max_sanity}",
            "pa": f"{self._pa}/{self.limits.max_pa}",
            "eco_hp": f"{self._eco_hp}/{self.limits.max_eco_hp}",
            "hand": len(self._hand),
        }


def _clamp(value: int, maximum: int) -> int:
    return max(0, min(int(value), maximum))
