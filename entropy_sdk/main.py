"""Entropy client entry point — runs a harvest-then-explore session.

Signs in (registering a fresh player when ENTROPY_PLAYER_ID is unset),
takes the player's first guest (spawning one if needed), harvests its
current node, then walks a spiral around it.

Can be run directly via `python -m entropy_sdk.main`.
"""

from __future__ import annotations

import asyncio
import signal
from typing import Optional

import httpx
import structlog

from entropy_sdk.agents.automove import AutoMovement
from entropy_sdk.agents.driver import BehaviorDriver
from entropy_sdk.agents.harvest import Harvester
from entropy_sdk.client.http import Connection, GuestControl, PlayerControl
from entropy_sdk.config import Settings


def configure_logging(level: str = "info") -> None:
    """Configure structured logging for the process."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(min_level=level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


logger = structlog.get_logger()


class SessionRunner:
    """Manages one client session and its graceful shutdown."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.transport = transport
        self.shutdown_event = asyncio.Event()

    async def _open_player(self, connection: Connection) -> PlayerControl:
        settings = self.settings
        player_id = settings.player_id
        if player_id is None:
            player = await connection.player_register(
                settings.player_name, settings.player_password
            )
            player_id = player.id
        return await connection.play(player_id, settings.player_password)

    async def _open_guest(self, player: PlayerControl) -> GuestControl:
        guests = await player.list_guest()
        guest = guests[0] if guests else await player.spawn_guest()
        return await player.visit(guest.id)

    async def run(self) -> None:
        """Sign in, then drive the harvester and the spiral walker in turn."""

        def handle_shutdown(sig: int) -> None:
            logger.info("shutdown_signal_received", signal=sig)
            self.shutdown_event.set()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, lambda s=sig: handle_shutdown(s))

        try:
            await self._run_session()
        finally:
            for sig in (signal.SIGTERM, signal.SIGINT):
                loop.remove_signal_handler(sig)

    async def _run_session(self) -> None:
        settings = self.settings

        async with Connection.from_settings(settings, self.transport) as connection:
            await connection.ping()
            logger.info("server_reachable", url=settings.server_url)

            player = await self._open_player(connection)
            guest = await self._open_guest(player)

            node = await guest.node()
            hottest_at, hottest = node.data.hottest()
            coldest_at, coldest = node.data.coldest()
            logger.info(
                "session_started",
                player_id=player.player.id,
                guest_id=guest.guest.id,
                node_id=node.id.as_tuple(),
                entropy=round(node.data.entropy(), 4),
                hottest=(hottest_at, hottest.value),
                coldest=(coldest_at, coldest.value),
            )

            for logic in (
                Harvester(max_sweeps=settings.harvest_sweeps),
                AutoMovement(max_radius=settings.spiral_radius),
            ):
                if self.shutdown_event.is_set():
                    break
                driver = BehaviorDriver(
                    logic,
                    guest,
                    max_ticks=settings.max_ticks,
                    stop_event=self.shutdown_event,
                )
                await driver.run()

            logger.info(
                "session_finished",
                guest_id=guest.guest.id,
                pos=guest.guest.pos,
                energy=guest.guest.energy,
                temperature=guest.guest.temperature,
                mismatches=guest.mismatches,
            )


async def main() -> None:
    """Main entry point."""
    settings = Settings()
    configure_logging(settings.log_level)
    runner = SessionRunner(settings)
    try:
        await runner.run()
    except KeyboardInterrupt:
        logger.info("keyboard_interrupt_received")
    except Exception as exc:
        logger.error("fatal_error", error=str(exc), error_type=type(exc).__name__)
        raise


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
