"""Game server access — capability protocols and the HTTP adapter."""

from entropy_sdk.client.base import Access, Guide, PhantomRead, Play, Visit
from entropy_sdk.client.http import Connection, GuestControl, Map, PlayerControl, Session

__all__ = [
    "Access",
    "Connection",
    "Guide",
    "GuestControl",
    "Map",
    "PhantomRead",
    "Play",
    "PlayerControl",
    "Session",
    "Visit",
]
