"""
Snapshot schema handed to state subscribers.

Subscribers never see the live SessionState; they get a frozen
pydantic model they can keep, compare or serialize.
"""

from typing import Optional
from pydantic import BaseModel, Field


class StateSnapshot(BaseModel):
    """Frozen view of a SessionState at one point in time."""
    pv: int
    max_pv: int
    sanity: int
    max_sanity: int
    pa: int
    max_pa: int
    eco_hp: int
    max_eco_hp: int
    max_hand_size: int
    hand: list[str] = Field(default_factory=list, description="card ids in hand order")
    turn: int = 1
    phase: str
    is_eco_exposed: bool = False
    victory: Optional[bool] = None
    player_status_effects: list[str] = Field(default_factory=list)
    critical_damage_boost: int = 0
    eco_revealed_card: Optional[str] = None
    selected_cards: list[str] = Field(default_factory=list)
    current_action: str = "none"
    target_node_id: Optional[str] = None

    model_config = {"frozen": True}
