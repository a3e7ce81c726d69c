"""
Session Manager - Creates and manages game sessions.

A GameSession is one play-through of a scenario. It owns everything
mutable about that game: the RNG stream, the signal bus, the game log,
the SessionState, both decks, the nodes and the engines. Nothing lives
at module level, so any number of sessions can run side by side.

LIFECYCLE:
1. create_session(scenario, seed) builds a session
2. turn_manager.start_game() resets it and deals the opening hand
3. The presentation layer reads snapshots and calls dispatcher actions
4. Once GAME_OVER, the bus closes and combat resources stop changing
5. end_session() drops it from memory

Subscribers registered on the session survive reset().
"""

from __future__ import annotations
from typing import Callable
import logging
import random
import time
import uuid

from ..engine_core.state import Card, SessionState, ResourceLimits, StateListener
from ..engine_core.bus import SignalBus, SignalType, SignalHandler, GameLog, LogCategory
from ..engine_core.deck import DeckManager
from ..engine_core.nodes import NodeSystem
from ..engine_core.corruption import CorruptionSystem
from ..engine_core.effect_resolver import RuleEngine
from ..engine_core.event_resolver import EventEngine
from ..engine_core.antagonist import AntagonistController
from ..engine_core.dispatcher import PlayerActionDispatcher
from ..spec_schema.scenario import Scenario
from .game_loop import TurnManager
from .schemas import StateSnapshot

logger = logging.getLogger(__name__)


class GameSession:
    """
    An explicit game session.

    Components rebuilt on every reset(): rng, bus, game_log, state,
    decks, nodes, corruption, rule_engine, event_engine, antagonist.
    The dispatcher and turn_manager are created once and always read
    the current components through the session.
    """

    def __init__(self, scenario: Scenario, seed: int | None = None, session_id: str | None = None):
        self.session_id = session_id or str(uuid.uuid4())
        self.scenario = scenario
        self.seed = seed
        self.created_at = time.time()

        self._seed_source = random.Random(seed)
        self._state_listeners: list[StateListener] = []
        self._signal_handlers: list[tuple[SignalType | None, SignalHandler]] = []

        self.dispatcher = PlayerActionDispatcher(self)
        self.turn_manager = TurnManager(self)
        self.reset()

    def reset(self):
        """Replace all game components wholesale."""
        scenario = self.scenario
        self.rng = random.Random(self._seed_source.getrandbits(64))

        self.bus = SignalBus()
        for signal_type, handler in self._signal_handlers:
            if signal_type is None:
                self.bus.on_any(handler)
            else:
                self.bus.on(signal_type, handler)
        self.game_log = GameLog(self.bus)

        self.state = SessionState(
            pv=scenario.initial_pv,
            sanity=scenario.initial_sanity,
            pa=scenario.initial_pa,
            eco_hp=scenario.initial_eco_hp,
            limits=ResourceLimits(
                max_pv=scenario.initial_pv,
                max_sanity=scenario.initial_sanity,
                max_pa=scenario.initial_pa,
                max_hand_size=scenario.hand_size,
                max_eco_hp=scenario.initial_eco_hp,
            ),
            listeners=self._state_listeners,
        )
        self.decks = DeckManager(scenario.cards, self.rng)
        self.nodes = NodeSystem(scenario.nodes, self.bus, self.game_log)
        self.corruption = CorruptionSystem(self.state, self.decks, self.rng, self.game_log)

        self.rule_engine = RuleEngine(self, scenario.rules)
        if scenario.rules is None:
            logger.info("Scenario %s has no rule table; using built-in rules", scenario.id)
        self.event_engine = EventEngine(self.rule_engine, self.game_log, scenario.events)
        if scenario.events is None:
            logger.info("Scenario %s has no event table", scenario.id)
        self.antagonist = AntagonistController(
            self,
            scenario.phases,
            difficulty=scenario.difficulty,
            transition_messages=scenario.transition_messages,
        )
        logger.debug("Session %s reset", self.session_id)

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Be notified with a StateSnapshot after every state mutation."""
        return self.state.subscribe(listener)

    def on_signal(self, signal_type: SignalType | None, handler: SignalHandler):
        """Subscribe to a signal type (None for all). Kept across resets."""
        self._signal_handlers.append((signal_type, handler))
        if signal_type is None:
            self.bus.on_any(handler)
        else:
            self.bus.on(signal_type, handler)

    def snapshot(self) -> StateSnapshot:
        return self.state.snapshot()

    # ------------------------------------------------------------------
    # Shared operations
    # ------------------------------------------------------------------

    def draw_to_hand(self, count: int) -> list[Card]:
        """
        Draw count real cards into the hand.

        Hallucinations drawn on the way resolve immediately, go to the
        discard pile and do not count. Every card in the player's piles
        is looked at most once per call, so a deck of nothing but
        hallucinations cannot loop forever.
        """
        drawn: list[Card] = []
        budget = count + self.decks.player.draw_count + self.decks.player.discard_count
        while len(drawn) < count and budget > 0 and not self.state.is_game_over:
            budget -= 1
            cards = self.decks.draw(1)
            if not cards:
                break
            card = cards[0]
            if card.is_hallucination:
                self.corruption.apply(card)
                self.decks.discard([card])
                self.evaluate_game_over()
                continue
            self.state.add_to_hand([card])
            self.bus.emit(SignalType.CARD_DEALT, card_id=card.id, suit=card.suit.value, value=card.value)
            drawn.append(card)
        return drawn

    def evaluate_game_over(self) -> bool:
        """
        Check loss first, then win. Enters GAME_OVER at most once.

        Returns:
            True if the game is over
        """
        state = self.state
        if state.is_game_over:
            return True

        reason = None
        victory = False
        if state.pv <= 0:
            reason = "Your body gives out."
        elif state.sanity <= 0:
            reason = "Your mind shatters."
        elif self.decks.player_exhausted:
            reason = "There is nothing left to draw."
        elif state.eco_hp <= 0:
            reason = "The Eco falls silent."
            victory = True

        if reason is None:
            return False

        state.end_game(victory)
        logger.info("Session %s over: %s (victory=%s)", self.session_id, reason, victory)
        self.bus.emit(SignalType.PHASE_CHANGED, phase=state.phase.value, turn=state.turn)
        self.bus.emit(SignalType.GAME_OVER, victory=victory, reason=reason, turn=state.turn)
        self.game_log.system(f"{'Victory' if victory else 'Defeat'}: {reason}", LogCategory.SPECIAL)
        self.bus.close()
        return True


class SessionManager:
    """
    Tracks game sessions in memory.

    No persistence: ending a session drops it.
    """

    def __init__(self):
        self._sessions: dict[str, GameSession] = {}

    def create_session(self, scenario: Scenario | None = None, seed: int | None = None) -> GameSession:
        """Create a session for a scenario (the built-in one by default)."""
        if scenario is None:
            from ..games.default import create_default_scenario
            scenario = create_default_scenario()
        session = GameSession(scenario, seed=seed)
        self._sessions[session.session_id] = session
        logger.info("Created session %s for scenario %s", session.session_id, scenario.id)
        return session

    def get_session(self, session_id: str) -> GameSession | None:
        return self._sessions.get(session_id)

    def end_session(self, session_id: str) -> bool:
        """Drop a session. Returns False if it did not exist."""
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.bus.close()
        logger.info("Ended session %s", session_id)
        return True

    def list_active_sessions(self) -> list[str]:
        """IDs of sessions whose game is still running."""
        return [
            sid for sid, session in self._sessions.items()
            if not session.state.is_game_over
        ]
