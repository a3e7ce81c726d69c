"""
Bots module - Scripted players.

Provides:
- PlayerPolicy: Interface for choosing the player's actions
- RandomPolicy / GreedyPolicy: Built-in policies
- run_simulation: Plays a full game headlessly
"""

from .policy import PlayerPolicy, PolicyDecision, RandomPolicy, GreedyPolicy, POLICIES
from .runner import run_simulation, SimulationResult

__all__ = [
    "PlayerPolicy",
    "PolicyDecision",
    "RandomPolicy",
    "GreedyPolicy",
    "POLICIES",
    "run_simulation",
    "SimulationResult",
]
