"""
Node Subsystem - Facility components with damage counters and rewards.

Each node:
- Tracks damage in [0, max_damage]
- Derives its status from damage (stable / unstable / corrupted)
- Collapses permanently the first time it reaches corrupted
- Grants its reward while it is not corrupted
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING
import logging

from .bus import SignalType, LogCategory

if TYPE_CHECKING:
    from .bus import SignalBus, GameLog

logger = logging.getLogger(__name__)


class NodeStatus(Enum):
    STABLE = "stable"
    UNSTABLE = "unstable"
    CORRUPTED = "corrupted"


class RewardType(Enum):
    """Limit a node raises while it stands."""
    MAX_AP = "max_ap"
    MAX_HAND_SIZE = "max_hand_size"
    MAX_SANITY = "max_sanity"
    CRITICAL_DAMAGE_BOOST = "critical_damage_boost"


@dataclass(frozen=True)
class Reward:
    type: RewardType
    amount: int


@dataclass
class Node:
    """
    A facility component.

    Status is computed from damage every time it is read; is_collapsed
    is latched the first time damage reaches max_damage.
    """
    id: str
    name: str
    max_damage: int
    reward: Reward
    description: str = ""
    damage: int = 0
    is_collapsed: bool = False

    @property
    def status(self) -> NodeStatus:
        if self.damage <= 0:
            return NodeStatus.STABLE
        if self.damage >= self.max_damage:
            return NodeStatus.CORRUPTED
        return NodeStatus.UNSTABLE

    @property
    def integrity(self) -> int:
        return self.max_damage - self.damage


@dataclass
class NodeSpec:
    """Static node definition from a scenario."""
    id: str
    name: str
    max_damage: int
    reward: Reward
    description: str = ""


class NodeSystem:
    """
    Fixed set of nodes, rebuilt from the scenario on each reset and
    mutated in place for the rest of the session.
    """

    def __init__(
        self,
        specs: list[NodeSpec],
        bus: SignalBus | None = None,
        game_log: GameLog | None = None,
    ):
        self._specs = list(specs)
        self._bus = bus
        self._log = game_log
        self._nodes: list[Node] = []
        self.reset()

    def reset(self):
        self._nodes = [
            Node(
                id=spec.id,
                name=spec.name,
                max_damage=spec.max_damage,
                reward=spec.reward,
                description=spec.description,
            )
            for spec in self._specs
        ]

    def get_node(self, node_id: str) -> Node | None:
        for node in self._nodes:
            if node.id == node_id:
                return node
        return None

    @property
    def all_nodes(self) -> list[Node]:
        return list(self._nodes)

    def deal_damage(self, node_id: str, amount: int) -> int:
        """
        Damage a node, clamped at max_damage.

        Returns:
            Damage actually applied (0 for unknown nodes)
        """
        node = self.get_node(node_id)
        if node is None:
            logger.warning("deal_damage: unknown node %s", node_id)
            return 0
        before = node.damage
        node.damage = min(node.max_damage, node.damage + max(0, amount))
        applied = node.damage - before
        if applied <= 0:
            return 0

        if self._bus:
            self._bus.emit(SignalType.NODE_DAMAGED, node_id=node.id, amount=applied, damage=node.damage)
        if self._log:
            self._log.eco(f"{node.name} takes {applied} damage ({node.status.value})", LogCategory.NODE_DAMAGE)

        if node.status == NodeStatus.CORRUPTED and not node.is_collapsed:
            node.is_collapsed = True
            logger.info("Node %s collapsed", node.id)
            if self._log:
                self._log.system(f"{node.name} has collapsed", LogCategory.NODE_DAMAGE)
        return applied

    def repair_node(self, node_id: str, amount: int) -> int:
        """
        Repair a node, clamped at 0. Undamaged nodes are left alone.

        Returns:
            Damage actually removed
        """
        node = self.get_node(node_id)
        if node is None or node.damage <= 0:
            return 0
        before = node.damage
        node.damage = max(0, node.damage - max(0, amount))
        repaired = before - node.damage
        if repaired <= 0:
            return 0

        if self._bus:
            self._bus.emit(SignalType.NODE_REPAIRED, node_id=node.id, amount=repaired, damage=node.damage)
        if self._log:
            self._log.player(f"{node.name} repaired by {repaired} ({node.status.value})", LogCategory.NODE_REPAIR)
        return repaired

    def get_active_rewards(self) -> list[Reward]:
        """Rewards of every node that is not corrupted right now."""
        return [node.reward for node in self._nodes if node.status != NodeStatus.CORRUPTED]

    def reward_total(self, reward_type: RewardType) -> int:
        return sum(r.amount for r in self.get_active_rewards() if r.type == reward_type)

    def reward_bonuses(self) -> dict[str, int]:
        """Active reward amounts keyed by reward type value."""
        bonuses: dict[str, int] = {}
        for reward in self.get_active_rewards():
            bonuses[reward.type.value] = bonuses.get(reward.type.value, 0) + reward.amount
        return bonuses

    def eligible_for_repair(self) -> list[Node]:
        return [node for node in self._nodes if node.damage > 0]

    def eligible_for_damage(self) -> list[Node]:
        return [node for node in self._nodes if not node.is_collapsed]
