"""HTTP client — httpx adapter for the game server's JSON API.

Implements the capability protocols from ``entropy_sdk.client.base``:
Connection (Access), PlayerControl (Play), GuestControl (Visit) and Map (Guide).
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Iterable, Optional, TypeVar

import httpx
import structlog
from pydantic import TypeAdapter, ValidationError

from entropy_sdk import __version__
from entropy_sdk.config import Settings
from entropy_sdk.core.entity import Guest, GuestInfo, Player, PlayerInfo
from entropy_sdk.core.grid import Node, NodeData, NodeID, NodeIDLike
from entropy_sdk.core.navi import Direction
from entropy_sdk.core.rules import (
    ActionRules,
    check_arrange,
    check_field_index,
    check_walk,
    diff_guest,
    predict_arrange,
    predict_harvest,
    predict_walk,
)
from entropy_sdk.errors import InvariantBreach, TransportFailure

logger = structlog.get_logger()

USER_AGENT = f"entropy-sdk/{__version__}"

T = TypeVar("T")


class Connection:
    """Unauthenticated access to a game server.

    Owns one ``httpx.AsyncClient`` shared by every handle derived from it.
    Use as an async context manager or call ``aclose()`` when done.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        rules: Optional[ActionRules] = None,
        verify_predictions: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the connection.

        Args:
            base_url: Server root, e.g. ``http://127.0.0.1:3333``.
            timeout: Per-request timeout in seconds.
            rules: Action rules used for pre-flight checks and prediction.
            verify_predictions: Compare server answers with predicted outcomes.
            transport: Optional httpx transport override (tests mount a fake server).
        """
        self.base_url = base_url
        self.rules = rules or ActionRules()
        self.verify_predictions = verify_predictions
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"User-Agent": USER_AGENT},
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> Connection:
        return cls(
            settings.server_url,
            timeout=settings.request_timeout_sec,
            rules=ActionRules.from_settings(settings),
            verify_predictions=settings.verify_predictions,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> Connection:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Request plumbing
    # ------------------------------------------------------------------

    async def request(
        self,
        method: str,
        path: str,
        *,
        auth: Optional[httpx.Auth] = None,
        json: Any = None,
    ) -> httpx.Response:
        """Send one request and return the successful response.

        Raises:
            TransportFailure: On network errors or a non-success status.
        """
        try:
            response = await self._client.request(method, path, auth=auth, json=json)
        except httpx.HTTPError as exc:
            logger.error(
                "request_failed",
                method=method,
                path=path,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise TransportFailure(f"{method} {path} failed: {exc}") from exc

        if not response.is_success:
            logger.warning(
                "request_rejected",
                method=method,
                path=path,
                status_code=response.status_code,
            )
            raise TransportFailure(
                f"{method} {path} returned {response.status_code}",
                status_code=response.status_code,
            )

        logger.debug("request_completed", method=method, path=path)
        return response

    async def fetch(
        self,
        model: type[T] | Any,
        method: str,
        path: str,
        *,
        auth: Optional[httpx.Auth] = None,
        json: Any = None,
    ) -> T:
        """Send a request and validate the JSON body against model.

        Raises:
            TransportFailure: On request failure or an unparseable body.
        """
        response = await self.request(method, path, auth=auth, json=json)
        try:
            return TypeAdapter(model).validate_json(response.content)
        except ValidationError as exc:
            logger.error(
                "response_invalid",
                method=method,
                path=path,
                error_count=exc.error_count(),
            )
            raise TransportFailure(
                f"{method} {path} returned an invalid body: {exc}",
                status_code=response.status_code,
            ) from exc

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    async def ping(self) -> None:
        await self.request("GET", "/")

    async def player_info(self, id: int) -> PlayerInfo:
        return await self.fetch(PlayerInfo, "GET", f"/player/{id}")

    async def player_register(self, name: str, password: str) -> Player:
        player = await self.fetch(
            Player,
            "POST",
            "/player/register",
            json={"name": name, "password": password},
        )
        logger.info("player_registered", player_id=player.id, name=player.name)
        return player

    async def player_verify(self, id: int, password: str) -> Player:
        return await self.fetch(
            Player,
            "GET",
            "/player/verify",
            auth=httpx.BasicAuth(str(id), password),
        )

    async def play(self, id: int, password: str) -> PlayerControl:
        player = await self.player_verify(id, password)
        logger.info("player_session_opened", player_id=player.id)
        return PlayerControl(Session(self, player))

    async def guide(self) -> Map:
        return Map(self)


@dataclass(frozen=True)
class Session:
    """Context shared by a player handle and every guest handle it opens."""

    connection: Connection
    player: Player

    @property
    def auth(self) -> httpx.BasicAuth:
        return httpx.BasicAuth(str(self.player.id), self.player.password)

    async def fetch(self, model: type[T] | Any, method: str, path: str, json: Any = None) -> T:
        return await self.connection.fetch(model, method, path, auth=self.auth, json=json)


class PlayerControl:
    """Authenticated player session (Play)."""

    def __init__(self, session: Session) -> None:
        self._session = session

    @property
    def player(self) -> Player:
        return self._session.player

    async def list_guest(self) -> list[Guest]:
        return await self._session.fetch(list[Guest], "GET", "/player/guest")

    async def spawn_guest(self) -> Guest:
        guest = await self._session.fetch(Guest, "GET", "/player/guest/spawn")
        logger.info("guest_spawned", player_id=self.player.id, guest_id=guest.id, pos=guest.pos)
        return guest

    async def visit(self, guest_id: int) -> GuestControl:
        guest = await self._session.fetch(Guest, "GET", f"/guest/{guest_id}")
        return GuestControl(self._session, guest)


class GuestControl:
    """Session bound to one guest (Visit).

    Holds the latest guest snapshot. Every mutating call replaces it with
    the server's answer; ``refresh()`` replaces it without acting. Calls on
    one handle must not overlap.

    Attributes:
        mismatches: Number of server answers that disagreed with the
            predicted outcome.
    """

    def __init__(self, session: Session, guest: Guest) -> None:
        self._session = session
        self._guest = guest
        self._node: Optional[Node] = None
        self.mismatches = 0

    @property
    def guest(self) -> Guest:
        return self._guest

    @property
    def rules(self) -> ActionRules:
        return self._session.connection.rules

    def _known_field(self) -> Optional[NodeData]:
        """Field of the last fetched node, if the guest still stands on it."""
        if self._node is not None and self._node.id == self._guest.node_id:
            return self._node.data
        return None

    def _verify(self, action: str, expected: Optional[Guest], actual: Guest) -> None:
        if expected is None or not self._session.connection.verify_predictions:
            return
        differences = diff_guest(expected, actual)
        if differences:
            self.mismatches += 1
            logger.warning(
                "prediction_mismatch",
                guest_id=actual.id,
                action=action,
                differences={
                    name: {"expected": want, "actual": got}
                    for name, (want, got) in differences.items()
                },
            )

    async def _act(self, action: str, payload: dict[str, Any]) -> Guest:
        return await self._session.fetch(
            Guest, "POST", f"/guest/{action}/{self._guest.id}", json=payload
        )

    async def refresh(self) -> None:
        self._guest = await self._session.fetch(Guest, "GET", f"/guest/{self._guest.id}")

    async def node(self) -> Node:
        self._node = await Map(self._session.connection).get_node(self._guest.pos)
        return self._node

    async def detect(self) -> list[GuestInfo]:
        return await self._session.fetch(
            list[GuestInfo], "GET", f"/guest/detect/{self._guest.id}"
        )

    async def walk(self, to: Direction) -> None:
        to = tuple(to)
        check_walk(self._guest, to, self.rules)
        to = (int(to[0]), int(to[1]))
        expected = predict_walk(self._guest, to, self.rules)

        guest = await self._act("walk", {"to": list(to)})
        self._guest = guest
        self._verify("walk", expected, guest)
        logger.info("guest_walked", guest_id=guest.id, to=to, pos=guest.pos, energy=guest.energy)

    async def harvest(self, at: int) -> None:
        field = self._known_field()
        check_field_index(at, field)
        expected = predict_harvest(self._guest, field[at]) if field is not None else None

        guest = await self._act("harvest", {"at": at})
        self._guest = guest
        self._verify("harvest", expected, guest)
        logger.info("guest_harvested", guest_id=guest.id, at=at, temperature=guest.temperature)

    async def heat(self, at: int, energy: int) -> None:
        check_field_index(at, self._known_field())

        guest = await self._act("heat", {"at": at, "energy": energy})
        self._guest = guest
        logger.info(
            "guest_heated",
            guest_id=guest.id,
            at=at,
            energy=energy,
            temperature=guest.temperature,
        )

    async def arrange(self, transfer_energy: int) -> GuestControl:
        check_arrange(self._guest, transfer_energy)
        expected, transferred = predict_arrange(self._guest, transfer_energy, self.rules)

        new_guest = await self._act("arrange", {"transfer_energy": transfer_energy})
        if new_guest.id == self._guest.id:
            raise InvariantBreach(f"arrange on guest {new_guest.id} returned the same guest")

        # The server's view of both sides is only known after re-reading them
        await self.refresh()
        arranged = GuestControl(self._session, new_guest)
        await arranged.refresh()

        self._verify("arrange", expected, self._guest)
        arranged._verify(
            "arrange",
            arranged.guest.model_copy(update={"energy": transferred}),
            arranged.guest,
        )
        logger.info(
            "guest_arranged",
            guest_id=self._guest.id,
            new_guest_id=arranged.guest.id,
            transfer_energy=transfer_energy,
        )
        return arranged


class Map:
    """Read access to nodes (Guide)."""

    def __init__(self, connection: Connection) -> None:
        self._connection = connection

    async def get_node(self, node_id: NodeIDLike) -> Node:
        node_id = NodeID.of(node_id)
        response = await self._connection.request("GET", f"/node/bytes/{node_id.x}/{node_id.y}")
        node = Node(node_id, NodeData.from_bytes(response.content))
        logger.debug("node_fetched", node_id=node_id.as_tuple(), cells=len(node.data))
        return node

    async def list_nodes(self, ids: Iterable[NodeIDLike]) -> list[Node]:
        return list(await asyncio.gather(*(self.get_node(i) for i in ids)))
