"""
Action System - Uniform results for every engine operation.

Every player action, rule resolution and node operation returns an
ActionResult instead of raising:
1. success / failure flag
2. A human-readable error and a machine-readable ErrorCode
3. A list of human-readable state changes (for the game log)

Validation happens before mutation, so a failure never leaves
partial changes behind.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Reasons an operation can be rejected."""
    NO_MATCHING_RULE = "no_matching_rule"
    INSUFFICIENT_ACTION_POINTS = "insufficient_action_points"
    WRONG_PHASE = "wrong_phase"
    GAME_OVER = "game_over"
    CARD_NOT_IN_HAND = "card_not_in_hand"
    INVALID_SUIT = "invalid_suit"
    NO_CARDS = "no_cards"
    NODE_NOT_FOUND = "node_not_found"
    NODE_INTACT = "node_intact"
    MAGNITUDE_TOO_LOW = "magnitude_too_low"
    STATUS_BLOCKED = "status_blocked"
    DECK_EMPTY = "deck_empty"
    NO_ACTION_SELECTED = "no_action_selected"
    ACTION_IN_PROGRESS = "action_in_progress"
    HANDLER_ERROR = "handler_error"


class ActionKind(Enum):
    """Player actions the dispatcher understands."""
    PLAY_CARD = "play_card"
    DRAW_CARD = "draw_card"
    CYCLE_CARD = "cycle_card"
    REPAIR_NODE = "repair_node"
    FOCUS = "focus"
    SEARCH = "search"
    END_TURN = "end_turn"


class SearchMode(Enum):
    """How a Diamonds search picks its cards."""
    RANDOM = "random"
    SPECIFIC = "specific"


@dataclass
class Action:
    """
    A fully specified player action.

    params are passed to PlayerActionDispatcher.dispatch() as keywords.
    """
    kind: ActionKind
    params: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def play(cls, card_id: str) -> Action:
        return cls(ActionKind.PLAY_CARD, {"card_id": card_id})

    @classmethod
    def draw(cls) -> Action:
        return cls(ActionKind.DRAW_CARD)

    @classmethod
    def cycle(cls, card_id: str) -> Action:
        return cls(ActionKind.CYCLE_CARD, {"card_id": card_id})

    @classmethod
    def repair(cls, node_id: str, card_ids: list[str]) -> Action:
        return cls(ActionKind.REPAIR_NODE, {"node_id": node_id, "card_ids": list(card_ids)})

    @classmethod
    def focus(cls, card_ids: list[str]) -> Action:
        return cls(ActionKind.FOCUS, {"card_ids": list(card_ids)})

    @classmethod
    def search(cls, card_ids: list[str], mode: SearchMode = SearchMode.RANDOM, wanted_suit: Any = None) -> Action:
        params: dict[str, Any] = {"card_ids": list(card_ids), "mode": mode}
        if wanted_suit is not None:
            params["wanted_suit"] = wanted_suit
        return cls(ActionKind.SEARCH, params)

    @classmethod
    def end_turn(cls) -> Action:
        return cls(ActionKind.END_TURN)

    def __str__(self) -> str:
        args = ", ".join(f"{k}={v.value if isinstance(v, Enum) else v}" for k, v in self.params.items())
        return f"{self.kind.value}({args})"


@dataclass
class ActionResult:
    """
    Result of an engine operation.

    Contains:
    - Whether the operation succeeded
    - Errors (if failed)
    - Human-readable changes (for the game log)
    - Optional payload (e.g. the cards drawn)
    """
    success: bool
    error: str | None = None
    error_code: ErrorCode | None = None
    state_changes: list[str] = field(default_factory=list)
    payload: Any | None = None

    @classmethod
    def failure(cls, error: str, error_code: ErrorCode | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def ok(cls, changes: list[str] | None = None, payload: Any = None) -> ActionResult:
        """Create a success result."""
        return cls(success=True, state_changes=changes or [], payload=payload)
