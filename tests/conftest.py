"""Shared fixtures: an in-memory fake game server mounted on httpx.MockTransport."""

from __future__ import annotations

import base64
import json
import re
from typing import Any, AsyncIterator, Callable, Optional

import httpx
import pytest
import pytest_asyncio

from entropy_sdk.client.http import Connection, GuestControl, PlayerControl
from entropy_sdk.core import navi
from entropy_sdk.core.entity import Guest, GuestInfo, Player, PlayerInfo
from entropy_sdk.core.grid import NodeData
from entropy_sdk.core.rules import harvest_temperature

ORIGIN_FIELD = [12, -40, 0, 90, -127, 12, 55, -3]
PASSWORD = "123456"


def default_field(x: int, y: int, size: int = 8) -> list[int]:
    """Deterministic thermal field for nodes the test did not set explicitly."""
    return [((x * 31 + y * 17 + i * 29) % 256) - 128 for i in range(size)]


# ---------------------------------------------------------------------------
# Minimal in-memory fake server
# ---------------------------------------------------------------------------


class FakeGameServer:
    """Minimal game server speaking the JSON routes the HTTP client uses.

    Records every request so tests can assert that pre-flight failures
    never reach the transport.
    """

    def __init__(self, walk_cost: int = 1, spawn_energy: int = 100) -> None:
        self.walk_cost = walk_cost
        self.spawn_energy = spawn_energy
        self.players: dict[int, Player] = {}
        self.guests: dict[int, Guest] = {}
        self.fields: dict[tuple[int, int], list[int]] = {(0, 0): list(ORIGIN_FIELD)}
        self.failing_nodes: set[tuple[int, int]] = set()
        self.requests: list[httpx.Request] = []
        self._next_player_id = 1
        self._next_guest_id = 1
        self._routes: list[tuple[str, re.Pattern[str], Callable[..., httpx.Response]]] = [
            ("GET", re.compile(r"/"), self._ping),
            ("POST", re.compile(r"/player/register"), self._register),
            ("GET", re.compile(r"/player/verify"), self._verify),
            ("GET", re.compile(r"/player/guest"), self._list_guest),
            ("GET", re.compile(r"/player/guest/spawn"), self._spawn),
            ("GET", re.compile(r"/player/(-?\d+)"), self._player_info),
            ("GET", re.compile(r"/guest/detect/(\d+)"), self._detect),
            ("GET", re.compile(r"/guest/(\d+)"), self._get_guest),
            ("POST", re.compile(r"/guest/walk/(\d+)"), self._walk),
            ("POST", re.compile(r"/guest/harvest/(\d+)"), self._harvest),
            ("POST", re.compile(r"/guest/arrange/(\d+)"), self._arrange),
            ("POST", re.compile(r"/guest/heat/(\d+)"), self._heat),
            ("GET", re.compile(r"/node/bytes/(-?\d+)/(-?\d+)"), self._node_bytes),
        ]

    # ------------------------------------------------------------------
    # Test helpers
    # ------------------------------------------------------------------

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]

    def field_at(self, pos: tuple[int, int]) -> list[int]:
        if pos in self.fields:
            return self.fields[pos]
        return default_field(*pos)

    def mutate_guest(self, guest_id: int, **changes: Any) -> Guest:
        """Change a guest as another client would."""
        guest = self.guests[guest_id].model_copy(update=changes)
        self.guests[guest_id] = guest
        return guest

    def add_guest(self, master_id: int, pos: tuple[int, int] = (0, 0), **fields: Any) -> Guest:
        values = {"energy": self.spawn_energy, "temperature": 0, **fields}
        guest = Guest(id=self._next_guest_id, pos=pos, master_id=master_id, **values)
        self._next_guest_id += 1
        self.guests[guest.id] = guest
        return guest

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for method, pattern, route in self._routes:
            match = pattern.fullmatch(request.url.path)
            if match and request.method == method:
                return route(request, *match.groups())
        return httpx.Response(404)

    def _caller(self, request: httpx.Request) -> Optional[Player]:
        header = request.headers.get("Authorization", "")
        if not header.startswith("Basic "):
            return None
        user, _, password = base64.b64decode(header[6:]).decode().partition(":")
        player = self.players.get(int(user))
        if player is None or player.password != password:
            return None
        return player

    def _owned_guest(self, request: httpx.Request, guest_id: str) -> Optional[Guest]:
        player = self._caller(request)
        guest = self.guests.get(int(guest_id))
        if player is None or guest is None or guest.master_id != player.id:
            return None
        return guest

    @staticmethod
    def _json(model: Any) -> httpx.Response:
        if isinstance(model, list):
            return httpx.Response(200, json=[m.model_dump(mode="json") for m in model])
        return httpx.Response(200, json=model.model_dump(mode="json"))

    # ------------------------------------------------------------------
    # Routes
    # ------------------------------------------------------------------

    def _ping(self, request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="entropy")

    def _register(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        player = Player(id=self._next_player_id, name=body["name"], password=body["password"])
        self._next_player_id += 1
        self.players[player.id] = player
        return self._json(player)

    def _verify(self, request: httpx.Request) -> httpx.Response:
        player = self._caller(request)
        return self._json(player) if player else httpx.Response(401)

    def _player_info(self, request: httpx.Request, player_id: str) -> httpx.Response:
        player = self.players.get(int(player_id))
        if player is None:
            return httpx.Response(404)
        return self._json(PlayerInfo(id=player.id, name=player.name))

    def _list_guest(self, request: httpx.Request) -> httpx.Response:
        player = self._caller(request)
        if player is None:
            return httpx.Response(401)
        owned = sorted(
            (g for g in self.guests.values() if g.master_id == player.id),
            key=lambda g: g.id,
        )
        return self._json(owned)

    def _spawn(self, request: httpx.Request) -> httpx.Response:
        player = self._caller(request)
        if player is None:
            return httpx.Response(401)
        return self._json(self.add_guest(player.id))

    def _get_guest(self, request: httpx.Request, guest_id: str) -> httpx.Response:
        guest = self._owned_guest(request, guest_id)
        return self._json(guest) if guest else httpx.Response(404)

    def _detect(self, request: httpx.Request, guest_id: str) -> httpx.Response:
        guest = self._owned_guest(request, guest_id)
        if guest is None:
            return httpx.Response(404)
        around = set(navi.neighbors(guest.pos))
        seen = [
            GuestInfo(id=g.id, temperature=g.temperature, pos=g.pos, master_id=g.master_id)
            for g in self.guests.values()
            if g.id != guest.id and g.node_id in around
        ]
        return self._json(seen)

    def _walk(self, request: httpx.Request, guest_id: str) -> httpx.Response:
        guest = self._owned_guest(request, guest_id)
        if guest is None:
            return httpx.Response(404)
        to = tuple(json.loads(request.content)["to"])
        if not navi.is_allowed(to) or guest.energy < self.walk_cost:
            return httpx.Response(400)
        pos = (guest.pos[0] + to[0], guest.pos[1] + to[1])
        return self._json(self.mutate_guest(guest.id, pos=pos, energy=guest.energy - self.walk_cost))

    def _harvest(self, request: httpx.Request, guest_id: str) -> httpx.Response:
        guest = self._owned_guest(request, guest_id)
        if guest is None:
            return httpx.Response(404)
        at = json.loads(request.content)["at"]
        field = self.field_at(guest.pos)
        if not 0 <= at < len(field):
            return httpx.Response(400)
        temperature = harvest_temperature(guest.temperature, field[at])
        return self._json(self.mutate_guest(guest.id, temperature=temperature))

    def _arrange(self, request: httpx.Request, guest_id: str) -> httpx.Response:
        guest = self._owned_guest(request, guest_id)
        if guest is None:
            return httpx.Response(404)
        k = json.loads(request.content)["transfer_energy"]
        if not 0 <= k <= guest.energy:
            return httpx.Response(400)
        self.mutate_guest(guest.id, energy=guest.energy - k)
        created = self.add_guest(
            guest.master_id, pos=guest.pos, energy=k, temperature=guest.temperature
        )
        return self._json(created)

    def _heat(self, request: httpx.Request, guest_id: str) -> httpx.Response:
        guest = self._owned_guest(request, guest_id)
        if guest is None:
            return httpx.Response(404)
        body = json.loads(request.content)
        field = self.field_at(guest.pos)
        if not 0 <= body["at"] < len(field):
            return httpx.Response(400)
        energy = body["energy"]
        temperature = max(-128, min(127, guest.temperature - energy))
        return self._json(
            self.mutate_guest(guest.id, temperature=temperature, energy=guest.energy - abs(energy))
        )

    def _node_bytes(self, request: httpx.Request, x: str, y: str) -> httpx.Response:
        pos = (int(x), int(y))
        if pos in self.failing_nodes:
            return httpx.Response(500)
        return httpx.Response(200, content=NodeData.from_values(self.field_at(pos)).to_bytes())


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def server() -> FakeGameServer:
    return FakeGameServer()


@pytest_asyncio.fixture
async def connection(server: FakeGameServer) -> AsyncIterator[Connection]:
    async with Connection("http://entropy.test", transport=server.transport()) as conn:
        yield conn


@pytest_asyncio.fixture
async def player(connection: Connection) -> PlayerControl:
    registered = await connection.player_register("测试账号", PASSWORD)
    return await connection.play(registered.id, PASSWORD)


@pytest_asyncio.fixture
async def visit(player: PlayerControl) -> GuestControl:
    guest = await player.spawn_guest()
    return await player.visit(guest.id)
