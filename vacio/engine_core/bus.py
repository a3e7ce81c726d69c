"""
Signal bus - Semantic outputs toward the presentation layer.

The engine never renders or animates anything. It emits signals
(card dealt, node damaged, Eco card revealed...) and the presentation
layer decides how to show them.

Usage:
    bus = SignalBus()
    bus.on(SignalType.NODE_DAMAGED, handler)
    bus.emit(SignalType.NODE_DAMAGED, node_id="faro", amount=2)

Each session owns its own bus. There is no global instance.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Any
import logging

logger = logging.getLogger(__name__)


class SignalType(Enum):
    """Signals the engine can publish."""
    CARD_DEALT = "card.dealt"
    CARD_PLAYED = "card.played"
    SUIT_EFFECT = "card.suit_effect"
    NODE_DAMAGED = "node.damaged"
    NODE_REPAIRED = "node.repaired"
    ECO_CARD_REVEALED = "eco.card_revealed"
    ECO_CARD_DISCARDED = "eco.card_discarded"
    GAME_LOG = "log.message"
    PHASE_CHANGED = "turn.phase_changed"
    GAME_OVER = "game.over"


@dataclass
class Signal:
    """
    Signal payload.

    Attributes:
        type: The signal type
        data: Signal-specific payload
        sequence: Position in the session's signal stream
    """
    type: SignalType
    data: dict[str, Any] = field(default_factory=dict)
    sequence: int = 0

    def __str__(self) -> str:
        return f"[{self.type.value}] {self.data}"


SignalHandler = Callable[[Signal], None]


class SignalBus:
    """
    Synchronous signal bus.

    Handlers run immediately on emit(). A failing handler is logged and
    does not stop the others. Once closed (game over) further signals
    are dropped rather than buffered.
    """

    def __init__(self, history_limit: int = 100):
        self._listeners: dict[SignalType, list[SignalHandler]] = {}
        self._any_listeners: list[SignalHandler] = []
        self._history: list[Signal] = []
        self._history_limit = history_limit
        self._sequence = 0
        self._closed = False

    def on(self, signal_type: SignalType, handler: SignalHandler) -> None:
        """Subscribe to one signal type."""
        handlers = self._listeners.setdefault(signal_type, [])
        if handler not in handlers:
            handlers.append(handler)

    def on_any(self, handler: SignalHandler) -> None:
        """Subscribe to every signal type."""
        if handler not in self._any_listeners:
            self._any_listeners.append(handler)

    def off(self, signal_type: SignalType, handler: SignalHandler) -> None:
        if handler in self._listeners.get(signal_type, []):
            self._listeners[signal_type].remove(handler)

    def emit(self, signal_type: SignalType, **data) -> Signal | None:
        """
        Emit a signal to all subscribers.

        Returns:
            The emitted Signal, or None if the bus is closed
        """
        if self._closed:
            logger.debug("Bus closed: dropped %s", signal_type.value)
            return None

        self._sequence += 1
        signal = Signal(type=signal_type, data=data, sequence=self._sequence)

        self._history.append(signal)
        if len(self._history) > self._history_limit:
            self._history = self._history[-self._history_limit:]

        for handler in list(self._listeners.get(signal_type, [])) + list(self._any_listeners):
            try:
                handler(signal)
            except Exception:
                logger.exception("Signal handler failed for %s", signal_type.value)

        return signal

    def close(self) -> None:
        """Stop delivering signals."""
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def get_history(self, signal_type: SignalType | None = None) -> list[Signal]:
        if signal_type is None:
            return list(self._history)
        return [s for s in self._history if s.type == signal_type]

    def listener_count(self, signal_type: SignalType) -> int:
        return len(self._listeners.get(signal_type, []))


class LogSource(Enum):
    PLAYER = "player"
    ECO = "eco"
    SYSTEM = "system"
    EVENT = "event"


class LogCategory(Enum):
    ATTACK = "attack"
    DEFEND = "defend"
    SEARCH = "search"
    RESEARCH = "research"
    FOCUS = "focus"
    DRAW = "draw"
    DISCARD = "discard"
    DAMAGE = "damage"
    HEAL = "heal"
    SPECIAL = "special"
    NODE_DAMAGE = "node_damage"
    NODE_REPAIR = "node_repair"
    HALLUCINATION = "hallucination"
    INFO = "info"


@dataclass(frozen=True)
class LogEntry:
    """One player-facing game log line."""
    message: str
    source: LogSource
    category: LogCategory
    turn: int = 0


class GameLog:
    """
    Player-facing game log.

    Kept separate from developer logging: these lines are the
    narrative the player reads. Only the most recent entries are kept,
    and each one is mirrored onto the signal bus as GAME_LOG.
    """

    def __init__(self, bus: SignalBus | None = None, limit: int = 30):
        self._bus = bus
        self._limit = limit
        self._entries: list[LogEntry] = []
        self.turn = 0

    def add(
        self,
        message: str,
        source: LogSource = LogSource.SYSTEM,
        category: LogCategory = LogCategory.INFO,
    ) -> LogEntry:
        entry = LogEntry(message=message, source=source, category=category, turn=self.turn)
        self._entries.append(entry)
        if len(self._entries) > self._limit:
            self._entries = self._entries[-self._limit:]
        logger.debug("[%s/%s] %s", source.value, category.value, message)
        if self._bus is not None:
            self._bus.emit(
                SignalType.GAME_LOG,
                message=message,
                source=source.value,
                category=category.value,
                turn=self.turn,
            )
        return entry

    def player(self, message: str, category: LogCategory = LogCategory.INFO) -> LogEntry:
        return self.add(message, LogSource.PLAYER, category)

    def eco(self, message: str, category: LogCategory = LogCategory.ATTACK) -> LogEntry:
        return self.add(message, LogSource.ECO, category)

    def system(self, message: str, category: LogCategory = LogCategory.INFO) -> LogEntry:
        return self.add(message, LogSource.SYSTEM, category)

    def event(self, message: str, category: LogCategory = LogCategory.SPECIAL) -> LogEntry:
        return self.add(message, LogSource.EVENT, category)

    @property
    def entries(self) -> list[LogEntry]:
        return list(self._entries)

    def messages(self) -> list[str]:
        return [e.message for e in self._entries]
