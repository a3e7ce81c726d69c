"""
Engine Core - The rule-driven turn and combat engine.

The engine is the runtime that:
1. Holds the session state (clamped resources, phase, hand)
2. Draws from the player and Eco decks
3. Resolves played, revealed and event cards through rule tables
4. Runs the Eco's turn and its phase behaviour
5. Validates and applies player actions

No I/O happens here; outputs leave through the signal bus.
"""

from .state import Card, Suit, GamePhase, PlayerStatus, PlayerAction, SessionState, StateLockedError
from .action import Action, ActionResult, ActionKind, ErrorCode, SearchMode
from .bus import SignalBus, SignalType, Signal, GameLog, LogSource, LogCategory
from .deck import Deck, DeckManager
from .nodes import Node, NodeSpec, NodeStatus, NodeSystem, Reward, RewardType
from .corruption import CorruptionSystem, HallucinationCard, HallucinationEffect
from .expression import FormulaEvaluator, evaluate_formula
from .effect_resolver import RuleEngine
from .event_resolver import EventEngine, EventResolution
from .antagonist import AntagonistController, AntagonistPhase, Severity
from .dispatcher import PlayerActionDispatcher
from .action_generator import ActionGenerator, legal_actions

__all__ = [
    "Card",
    "Suit",
    "GamePhase",
    "PlayerStatus",
    "PlayerAction",
    "SessionState",
    "StateLockedError",
    "Action",
    "ActionResult",
    "ActionKind",
    "ErrorCode",
    "SearchMode",
    "SignalBus",
    "SignalType",
    "Signal",
    "GameLog",
    "LogSource",
    "LogCategory",
    "Deck",
    "DeckManager",
    "Node",
    "NodeSpec",
    "NodeStatus",
    "NodeSystem",
    "Reward",
    "RewardType",
    "CorruptionSystem",
    "HallucinationCard",
    "HallucinationEffect",
    "FormulaEvaluator",
    "evaluate_formula",
    "RuleEngine",
    "EventEngine",
    "EventResolution",
    "AntagonistController",
    "AntagonistPhase",
    "Severity",
    "PlayerActionDispatcher",
    "ActionGenerator",
    "legal_actions",
]
