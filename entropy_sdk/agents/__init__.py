"""Autonomous agents — strategy protocols, behavior driver and basic strategies."""

from entropy_sdk.agents.automove import AutoMovement
from entropy_sdk.agents.driver import BehaviorDriver, drive_all
from entropy_sdk.agents.harvest import Harvester
from entropy_sdk.agents.logic import GuestLogic, PlayerLogic, StopBehavior

__all__ = [
    "AutoMovement",
    "BehaviorDriver",
    "GuestLogic",
    "Harvester",
    "PlayerLogic",
    "StopBehavior",
    "drive_all",
]
