"""
Event Resolution Engine - Effects triggered by drawn event cards.

At the start of each turn the top player card is drawn as an event.
If the scenario defines an event for that card id, its effects run
through the same RuleEngine.apply_effect() as played cards.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING
import logging

from .bus import LogCategory

if TYPE_CHECKING:
    from .state import Card
    from .effect_resolver import RuleEngine
    from .bus import GameLog
    from ..spec_schema.effect_dsl import EventDefinition

logger = logging.getLogger(__name__)


@dataclass
class EventResolution:
    event: EventDefinition | None
    applied: bool


class EventEngine:
    """Looks up and resolves events by card id."""

    def __init__(
        self,
        rule_engine: RuleEngine,
        game_log: GameLog,
        events: list[EventDefinition] | None = None,
    ):
        self.rule_engine = rule_engine
        self.game_log = game_log
        self._events: dict[str, EventDefinition] = {}
        self.load_events(events)

    def load_events(self, events: list[EventDefinition] | None):
        self._events = {event.id: event for event in events or []}

    @property
    def has_events(self) -> bool:
        return bool(self._events)

    def get_event(self, card_id: str) -> EventDefinition | None:
        return self._events.get(card_id)

    def resolve_event(self, card: Card) -> EventResolution:
        if not self._events:
            logger.warning("No event table loaded; card %s has no event", card.id)
            return EventResolution(event=None, applied=False)

        event = self._events.get(card.id)
        if event is None:
            logger.warning("No event defined for card %s", card.id)
            return EventResolution(event=None, applied=False)

        self.game_log.event(f"Event: {event.name}", LogCategory.SPECIAL)
        if event.flavor:
            self.game_log.event(event.flavor, LogCategory.INFO)
        self.rule_engine.apply_effects(event.effects, card)
        return EventResolution(event=event, applied=True)
