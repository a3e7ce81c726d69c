"""
Vacio - Eco del Vacio turn and combat engine

A rule-driven engine for a solitaire survival card game: the player
and the Eco take turns spending a 52-card deck against health, sanity,
action points, the Eco's HP and the integrity of the village nodes.
The engine provides:
- Session state with clamped resources and a terminal latch
- Data-driven rule tables with a small formula language
- The Eco's phase-based behaviour
- Node damage, repair and rewards
- Headless simulation with scripted player policies
"""

__version__ = "0.1.0"
