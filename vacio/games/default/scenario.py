"""
La Caleta scenario definition.

Written as the same documents a scenario directory would hold, so the
built-in scenario goes through the same validation as a loaded one.
"""

from __future__ import annotations

from ...spec_schema.scenario import Scenario, build_scenario

CONFIG = {
    "id": "la-caleta",
    "name": "La Caleta",
    "description": "A fishing village at the edge of the void. The lighthouse must stay dark.",
    "initialPlayerStats": {"PV": 20, "COR": 20, "PA": 2, "handSize": 5},
    "initialEcoHP": 50,
    "difficulty": 1.0,
}

NODES = [
    {
        "id": "faro",
        "name": "Lighthouse",
        "description": "Its lamp is the Eco's eye.",
        "maxDamage": 5,
        "reward": {"type": "max_sanity", "amount": 2},
    },
    {
        "id": "generador",
        "name": "Generator",
        "description": "Keeps the village lights on.",
        "maxDamage": 4,
        "reward": {"type": "max_ap", "amount": 1},
    },
    {
        "id": "radio",
        "name": "Radio Station",
        "description": "The last link with the mainland.",
        "maxDamage": 4,
        "reward": {"type": "max_hand_size", "amount": 1},
    },
    {
        "id": "capilla",
        "name": "Chapel",
        "description": "Old bells that still ring true.",
        "maxDamage": 6,
        "reward": {"type": "critical_damage_boost", "amount": 1},
    },
]

ECO = {
    "id": "eco",
    "name": "The Eco",
    "phases": {
        "vigilante": {
            "name": "Watcher",
            "threshold": 100,
            "description": "The Eco watches from under the water.",
            "corruptionRate": 0.5,
        },
        "predador": {
            "name": "Predator",
            "threshold": 60,
            "description": "The Eco hunts.",
            "corruptionRate": 1.0,
        },
        "devastador": {
            "name": "Devastator",
            "threshold": 25,
            "description": "The Eco unleashes its fury.",
            "corruptionRate": 1.5,
        },
    },
    "transitionMessages": {
        "vigilante_to_predador": "The water boils. The Eco starts to hunt.",
        "predador_to_devastador": "The lighthouse flares. The Eco is furious.",
    },
}

EVENTS = [
    {
        "id": "QS",
        "event": "Storm Surge",
        "flavor": "Waves break over the seawall and crash into the generator.",
        "effects": [{"type": "DAMAGE_NODE", "target": "RANDOM", "value": 2}],
    },
    {
        "id": "KH",
        "event": "Bells at Dawn",
        "flavor": "The chapel bells ring on their own. For a moment you remember who you are.",
        "effects": [{"type": "HEAL_STAT", "target": "PLAYER", "targetStat": "COR", "value": 3}],
    },
    {
        "id": "JC",
        "event": "Fishermen's Help",
        "flavor": "The old fishermen bring tools and rope.",
        "effects": [{"type": "REPAIR_NODE", "target": "RANDOM", "value": 2}],
    },
    {
        "id": "AD",
        "event": "Drowned Whispers",
        "flavor": "Voices rise from the nets.",
        "effects": [{"type": "DEAL_DAMAGE", "target": "PLAYER", "targetStat": "COR", "value": 2}],
    },
    {
        "id": "7S",
        "event": "Broken Pier",
        "flavor": "Something under the pier snaps the planks.",
        "effects": [{"type": "DEAL_DAMAGE", "target": "PLAYER", "targetStat": "PV", "value": "floor(CARD_VALUE / 2)"}],
    },
]


def create_default_scenario() -> Scenario:
    """The built-in scenario. Uses the built-in rule table and the standard deck."""
    return build_scenario(config=CONFIG, nodes=NODES, eco=ECO, events=EVENTS)
