"""Behavior driver — the init/tick loop that runs a strategy against a handle.

The loop has no retries and no backoff. The first exception from ``init``
or ``tick`` ends it and propagates to the caller. Bounds are injectable so
callers and tests can stop it: a tick budget, an asyncio.Event, or the
strategy raising StopBehavior.
"""

from __future__ import annotations

import asyncio
from typing import Any, Generic, Iterable, Optional, TypeVar

import structlog

from entropy_sdk.agents.logic import StopBehavior

logger = structlog.get_logger()

H = TypeVar("H")


class BehaviorDriver(Generic[H]):
    """Runs one strategy against one handle.

    Attributes:
        logic: Strategy exposing async ``init(handle)`` and ``tick(handle)``.
        handle: A Visit or Play handle owned by this driver.
        tick_counter: Ticks completed so far.
    """

    def __init__(
        self,
        logic: Any,
        handle: H,
        max_ticks: Optional[int] = None,
        stop_event: Optional[asyncio.Event] = None,
    ) -> None:
        """Initialize the driver.

        Args:
            logic: The strategy to run.
            handle: The capability handle passed to every call.
            max_ticks: Stop after this many completed ticks; None runs forever.
            stop_event: Stop before the next tick once this event is set.
        """
        self.logic = logic
        self.handle = handle
        self.max_ticks = max_ticks
        self.stop_event = stop_event
        self.tick_counter = 0
        self.running = False

    @property
    def name(self) -> str:
        return type(self.logic).__name__

    def _bound_reached(self) -> bool:
        if self.max_ticks is not None and self.tick_counter >= self.max_ticks:
            return True
        return self.stop_event is not None and self.stop_event.is_set()

    async def run(self) -> int:
        """Call ``init`` once, then ``tick`` until a bound or a failure.

        Returns:
            Number of completed ticks.

        Raises:
            Exception: Whatever ``init`` or ``tick`` raised, other than
                StopBehavior.
        """
        self.running = True
        logger.info("driver_started", logic=self.name, max_ticks=self.max_ticks)

        try:
            await self.logic.init(self.handle)

            while self.running and not self._bound_reached():
                await self.logic.tick(self.handle)
                self.tick_counter += 1
                # Let sibling drivers run between ticks
                await asyncio.sleep(0)

        except StopBehavior as stop:
            logger.info(
                "driver_finished",
                logic=self.name,
                ticks=self.tick_counter,
                reason=str(stop) or "strategy_done",
            )
            return self.tick_counter

        except Exception as exc:
            logger.error(
                "driver_failed",
                logic=self.name,
                ticks=self.tick_counter,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise

        finally:
            self.running = False

        logger.info("driver_stopped", logic=self.name, ticks=self.tick_counter)
        return self.tick_counter

    def stop(self) -> None:
        """Stop the loop before its next tick."""
        self.running = False


async def drive_all(drivers: Iterable[BehaviorDriver[Any]]) -> list[int]:
    """Run several drivers concurrently.

    Each driver owns its handle, so their loops never share state. The first
    failure cancels every other driver before it propagates.

    Returns:
        Completed tick counts, in driver order.
    """
    drivers = list(drivers)
    tasks = [asyncio.create_task(driver.run()) for driver in drivers]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for driver in drivers:
            driver.stop()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.warning(
            "drive_all_aborted",
            drivers=[driver.name for driver in drivers],
            ticks=[driver.tick_counter for driver in drivers],
        )
        raise
