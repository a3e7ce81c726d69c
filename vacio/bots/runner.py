"""
Simulation Runner - Plays a whole game with a PlayerPolicy.

Headless loop:
1. start_game() runs to the first player phase
2. The policy picks from legal_actions() until it ends the turn
3. The turn manager runs the Eco, maintenance and event phases
4. Repeat until GAME_OVER or the turn limit is reached
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
import logging

from ..engine_core.action import ActionKind
from ..engine_core.action_generator import legal_actions
from ..engine_core.state import GamePhase
from .policy import PlayerPolicy

if TYPE_CHECKING:
    from ..session.manager import GameSession

logger = logging.getLogger(__name__)

# Upper bound on actions in one player phase. Every action but end_turn
# spends AP, so this only trips on a misbehaving policy.
MAX_ACTIONS_PER_TURN = 50


@dataclass
class SimulationResult:
    """Outcome of a simulated game."""
    victory: bool | None
    turns: int
    actions: int
    final_pv: int
    final_sanity: int
    final_eco_hp: int
    rejected: list[str] = field(default_factory=list)

    @property
    def finished(self) -> bool:
        return self.victory is not None


def run_simulation(session: GameSession, policy: PlayerPolicy, max_turns: int = 100) -> SimulationResult:
    """
    Play a session to the end with a policy.

    Stops early after max_turns turns; the result then has victory None.
    """
    turn_manager = session.turn_manager
    turn_manager.start_game()
    actions = 0
    rejected: list[str] = []

    while not session.state.is_game_over and session.state.turn <= max_turns:
        state = session.state
        if state.phase != GamePhase.PLAYER_ACTION:
            turn_manager.advance()
            continue

        logger.debug("Turn %d start: %s", state.turn, state.describe())
        for _ in range(MAX_ACTIONS_PER_TURN):
            legal = legal_actions(session)
            if not legal:
                break
            decision = policy.select_action(session, legal)
            logger.debug("Turn %d: %s (%s)", state.turn, decision.action, decision.explanation)
            result = session.dispatcher.execute(decision.action)
            actions += 1
            if not result.success:
                rejected.append(f"{decision.action}: {result.error}")
            if decision.action.kind == ActionKind.END_TURN or session.state.phase != GamePhase.PLAYER_ACTION:
                break
        else:
            logger.warning("%s did not end its turn; forcing end_turn", policy.get_name())
            session.dispatcher.end_turn()

    state = session.state
    logger.info(
        "Simulation with %s finished after %d turns (victory=%s)",
        policy.get_name(), state.turn, state.victory,
    )
    return SimulationResult(
        victory=state.victory,
        turns=state.turn,
        actions=actions,
        final_pv=state.pv,
        final_sanity=state.sanity,
        final_eco_hp=state.eco_hp,
        rejected=rejected,
    )
