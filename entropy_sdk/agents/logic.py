"""Strategy protocols — pluggable behaviors run by the BehaviorDriver."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from entropy_sdk.client.base import Play, Visit


class StopBehavior(Exception):
    """Raised by a strategy to end its driver loop without failure."""


class GuestLogic(Protocol):
    """Protocol for strategies that drive a single guest.

    ``init`` runs once, then ``tick`` runs until the driver stops. Raising
    StopBehavior ends the loop cleanly; any other exception is fatal.
    """

    async def init(self, guest: Visit) -> None:
        ...

    async def tick(self, guest: Visit) -> None:
        """Perform one step of the behavior.

        Note:
            The driver provides no rate limiting or stop condition beyond
            its own bounds; a strategy that should end must say so.
        """
        ...


class PlayerLogic(Protocol):
    """Protocol for strategies that drive a player session."""

    async def init(self, player: Play) -> None:
        ...

    async def tick(self, player: Play) -> None:
        ...
