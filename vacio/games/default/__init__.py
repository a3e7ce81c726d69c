"""
La Caleta - The built-in scenario.

A fishing village, a lighthouse that should not be lit, and the Eco
waiting under the water. Used when no scenario directory is given.

This module contains:
- The standard 52-card source
- The default scenario (nodes, Eco phases, events)
"""

from .cards import standard_deck, SUIT_LETTERS
from .scenario import create_default_scenario

__all__ = [
    "standard_deck",
    "SUIT_LETTERS",
    "create_default_scenario",
]
