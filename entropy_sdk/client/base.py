"""Capability interfaces for talking to the game server.

Callers depend on these protocols only. Any transport that satisfies them
(HTTP+JSON in ``entropy_sdk.client.http``, a test double, a binary RPC) is
acceptable. Every method may raise ``EntropyError``.
"""

from __future__ import annotations

from typing import Iterable, Protocol

from entropy_sdk.core.entity import Guest, GuestInfo, Player, PlayerInfo
from entropy_sdk.core.grid import Node, NodeIDLike
from entropy_sdk.core.navi import Direction


class PhantomRead(Protocol):
    """An entity whose authoritative state may change outside this client.

    Mutating calls replace the local snapshot with the server's answer.
    ``refresh()`` replaces it without acting.
    """

    async def refresh(self) -> None:
        """Discard the local snapshot and fetch the authoritative one."""
        ...


class Guide(Protocol):
    """Read access to the map."""

    async def get_node(self, node_id: NodeIDLike) -> Node:
        ...

    async def list_nodes(self, ids: Iterable[NodeIDLike]) -> list[Node]:
        """Fetch several nodes concurrently; fails if any single fetch fails."""
        ...


class Visit(PhantomRead, Protocol):
    """Session bound to one guest."""

    @property
    def guest(self) -> Guest:
        """Latest snapshot of the guest; may be stale."""
        ...

    async def node(self) -> Node:
        """Fetch the node at the guest's current position."""
        ...

    async def detect(self) -> list[GuestInfo]:
        ...

    async def walk(self, to: Direction) -> None:
        ...

    async def harvest(self, at: int) -> None:
        ...

    async def arrange(self, transfer_energy: int) -> Visit:
        """Split off a new guest holding transfer_energy; both sides are refreshed."""
        ...

    async def heat(self, at: int, energy: int) -> None:
        ...


class Play(Protocol):
    """Authenticated player session."""

    @property
    def player(self) -> Player:
        ...

    async def list_guest(self) -> list[Guest]:
        ...

    async def spawn_guest(self) -> Guest:
        ...

    async def visit(self, guest_id: int) -> Visit:
        ...


class Access(Protocol):
    """Unauthenticated entry point to a game server."""

    async def ping(self) -> None:
        ...

    async def player_info(self, id: int) -> PlayerInfo:
        ...

    async def player_register(self, name: str, password: str) -> Player:
        ...

    async def player_verify(self, id: int, password: str) -> Player:
        ...

    async def play(self, id: int, password: str) -> Play:
        """Verify the credentials and open a player session."""
        ...

    async def guide(self) -> Guide:
        ...
