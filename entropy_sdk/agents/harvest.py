"""Sweeping harvester — harvest every cell of the guest's current node."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import structlog

from entropy_sdk.agents.logic import StopBehavior
from entropy_sdk.core.grid import Node

if TYPE_CHECKING:
    from entropy_sdk.client.base import Visit

logger = structlog.get_logger()


class Harvester:
    """Harvest the current node cell by cell.

    Cells already at the guest's temperature are skipped, since harvesting
    them changes nothing. After each full sweep the node is fetched again,
    because other clients may have mined it in the meantime.

    The behavior stops after ``max_sweeps`` sweeps (None sweeps forever), or
    as soon as a whole sweep leaves the guest temperature unchanged.
    """

    def __init__(self, max_sweeps: Optional[int] = 1) -> None:
        self.max_sweeps = max_sweeps
        self.node: Optional[Node] = None
        self.current_index = 0
        self.sweeps = 0
        self.productive = 0

    async def init(self, guest: Visit) -> None:
        self.node = await guest.node()
        self.current_index = 0
        self.sweeps = 0
        self.productive = 0
        logger.debug(
            "harvest_started",
            guest_id=guest.guest.id,
            node_id=self.node.id.as_tuple(),
            cells=len(self.node.data),
        )

    async def tick(self, guest: Visit) -> None:
        if self.node is None:
            raise RuntimeError("Harvester.tick() called before init()")

        while True:
            field = self.node.data
            temperature = guest.guest.temperature
            while self.current_index < len(field) and field[self.current_index].value == temperature:
                self.current_index += 1
            if self.current_index < len(field):
                break
            await self._next_sweep(guest)

        before = guest.guest.temperature
        await guest.harvest(self.current_index)
        if guest.guest.temperature != before:
            self.productive += 1
        self.current_index += 1

    async def _next_sweep(self, guest: Visit) -> None:
        self.sweeps += 1
        logger.debug(
            "harvest_sweep_done",
            guest_id=guest.guest.id,
            sweep=self.sweeps,
            productive=self.productive,
        )
        if self.productive == 0:
            raise StopBehavior("nothing left to harvest")
        if self.max_sweeps is not None and self.sweeps >= self.max_sweeps:
            raise StopBehavior(f"{self.sweeps} sweeps done")

        self.node = await guest.node()
        self.current_index = 0
        self.productive = 0
