"""Core client model — thermal grid, navigation, entities and action rules."""

from entropy_sdk.core.entity import Guest, GuestInfo, Player, PlayerInfo
from entropy_sdk.core.grid import Cell, Node, NodeData, NodeID, carnot_efficiency
from entropy_sdk.core.rules import ActionRules

__all__ = [
    "ActionRules",
    "Cell",
    "Guest",
    "GuestInfo",
    "Node",
    "NodeData",
    "NodeID",
    "Player",
    "PlayerInfo",
    "carnot_efficiency",
]
