"""
Games module - Built-in scenarios.

Each scenario subpackage provides:
- Card source for the decks
- Scenario definition (nodes, Eco phases, rules, events)
"""
