"""Spiral movement — walk outward from the start node, clockwise."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import structlog

from entropy_sdk.agents.logic import StopBehavior
from entropy_sdk.core import navi
from entropy_sdk.errors import PreconditionViolation

if TYPE_CHECKING:
    from entropy_sdk.client.base import Visit

logger = structlog.get_logger()


class AutoMovement:
    """Visit every node around the start in a clockwise square spiral.

    Legs go UP, RIGHT, DOWN, LEFT with lengths 1, 1, 2, 2, 3, 3, ...
    With ``max_radius`` set, the walk ends once the next step would leave
    the square of that Chebyshev radius, at which point every node inside
    it has been visited.
    """

    def __init__(self, max_radius: Optional[int] = None) -> None:
        self.max_radius = max_radius
        self.offset: tuple[int, int] = (0, 0)
        self.leg_length = 1
        self.leg_progress = 0
        self.turns = 0

    @property
    def current_direction(self) -> navi.Direction:
        return navi.CLOCKWISE[self.turns % len(navi.CLOCKWISE)]

    async def init(self, guest: Visit) -> None:
        self.offset = (0, 0)
        self.leg_length = 1
        self.leg_progress = 0
        self.turns = 0
        logger.debug("spiral_started", guest_id=guest.guest.id, origin=guest.guest.pos)

    async def tick(self, guest: Visit) -> None:
        if guest.guest.energy < 1:
            raise PreconditionViolation(f"energy not enough: guest {guest.guest.id}")

        direction = self.current_direction
        target = (self.offset[0] + direction[0], self.offset[1] + direction[1])
        if self.max_radius is not None and max(abs(target[0]), abs(target[1])) > self.max_radius:
            raise StopBehavior(f"spiral radius {self.max_radius} covered")

        await guest.walk(direction)
        self.offset = target
        self._advance()

    def _advance(self) -> None:
        self.leg_progress += 1
        if self.leg_progress < self.leg_length:
            return
        self.leg_progress = 0
        self.turns += 1
        # Leg length grows after every second turn
        if self.turns % 2 == 0:
            self.leg_length += 1
