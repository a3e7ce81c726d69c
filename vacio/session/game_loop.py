"""
Game Loop - The turn cycle.

The loop:
1. EVENT: the top player card is drawn as an event, resolved, discarded
2. PLAYER_ACTION: limits refreshed from node rewards, PA refilled,
   the engine waits for dispatcher actions until end_turn
3. ECO_ATTACK: the antagonist takes its turn
4. MAINTENANCE: hand discarded, hallucination level +1, new hand drawn,
   turn counter advanced
5. Back to EVENT

advance() runs synchronously through every phase that needs no player
input and stops at PLAYER_ACTION or GAME_OVER. Pacing (delays between
phases, animations) belongs to the presentation layer.
"""

from __future__ import annotations
from typing import TYPE_CHECKING
import logging

from ..engine_core.state import GamePhase, PlayerStatus
from ..engine_core.bus import SignalType, LogCategory

if TYPE_CHECKING:
    from .manager import GameSession

logger = logging.getLogger(__name__)


class TurnManager:
    """
    Drives the phase state machine for one session.

    Usage:
        session.turn_manager.start_game()      # stops at PLAYER_ACTION
        session.dispatcher.play_card("AS")
        session.dispatcher.end_turn()          # Eco, maintenance, event
    """

    def __init__(self, session: GameSession):
        self.session = session

    def start_game(self) -> GamePhase:
        """Reset the session, deal the opening hand and run to the first player phase."""
        session = self.session
        session.reset()
        state = session.state
        state.refresh_limits(session.nodes.reward_bonuses())
        session.game_log.turn = state.turn
        session.game_log.system(f"{session.scenario.name}: the game begins.", LogCategory.INFO)
        session.draw_to_hand(state.max_hand_size)
        session.evaluate_game_over()
        return self.advance()

    def advance(self) -> GamePhase:
        """Run phases until the player must act or the game is over."""
        state = self.session.state
        while not state.is_game_over:
            phase = state.phase
            if phase == GamePhase.PLAYER_ACTION:
                break
            if phase == GamePhase.EVENT:
                self._event_phase()
                self._set_phase(GamePhase.PLAYER_ACTION)
                self._begin_player_phase()
            elif phase == GamePhase.ECO_ATTACK:
                self._eco_phase()
                self._set_phase(GamePhase.MAINTENANCE)
            elif phase == GamePhase.MAINTENANCE:
                self._maintenance_phase()
                self._set_phase(GamePhase.EVENT)
        return state.phase

    def end_player_turn(self) -> GamePhase:
        """Close the player phase and run on to the next one."""
        state = self.session.state
        if state.phase != GamePhase.PLAYER_ACTION:
            logger.debug("end_player_turn ignored in phase %s", state.phase.value)
            return state.phase
        state.remove_status(PlayerStatus.CANNOT_PLAY_SPADES)
        state.clear_selection()
        self._set_phase(GamePhase.ECO_ATTACK)
        return self.advance()

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _set_phase(self, phase: GamePhase):
        state = self.session.state
        if state.is_game_over:
            return
        state.set_phase(phase)
        self.session.bus.emit(SignalType.PHASE_CHANGED, phase=phase.value, turn=state.turn)

    def _event_phase(self):
        session = self.session
        cards = session.decks.draw(1)
        if not cards:
            session.game_log.system("No event card could be drawn.", LogCategory.INFO)
            session.evaluate_game_over()
            return

        card = cards[0]
        if card.is_hallucination:
            session.corruption.apply(card)
        elif session.event_engine.has_events:
            session.event_engine.resolve_event(card)
        session.decks.discard([card])
        session.evaluate_game_over()

    def _begin_player_phase(self):
        session = self.session
        state = session.state
        if state.is_game_over:
            return
        state.refresh_limits(session.nodes.reward_bonuses())
        state.pa = state.max_pa
        session.game_log.player(f"Turn {state.turn}: you have {state.pa} PA.", LogCategory.INFO)

    def _eco_phase(self):
        session = self.session
        session.antagonist.take_turn()
        session.evaluate_game_over()

    def _maintenance_phase(self):
        session = self.session
        state = session.state
        session.decks.discard(state.clear_hand())
        session.corruption.increase(1)
        state.refresh_limits(session.nodes.reward_bonuses())
        session.draw_to_hand(state.max_hand_size)
        state.advance_turn()
        session.game_log.turn = state.turn
        session.evaluate_game_over()
