"""Entity models — players and guests as reported by the game server.

Every model is frozen: a handle replaces its snapshot wholesale on refresh
or after a mutating call, it never edits fields in place.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from entropy_sdk.core.grid import I8_MAX, I8_MIN, I16_MAX, I16_MIN, NodeID


class _Snapshot(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class Player(_Snapshot):
    """Account identity. The password is kept only to re-authenticate."""

    id: int = Field(..., description="Player id, also the Basic auth username")
    name: str = Field(..., description="Display name")
    password: str = Field(..., description="Plain password echoed by the server")

    def info(self) -> PlayerInfo:
        return PlayerInfo(id=self.id, name=self.name)


class PlayerInfo(_Snapshot):
    """Public projection of a Player."""

    id: int
    name: str


class Guest(_Snapshot):
    """A mobile agent owned by a player.

    Attributes:
        id: Guest id.
        energy: Energy budget; every action is checked against its cost.
        pos: Grid position as (x, y).
        temperature: Signed int8 temperature.
        master_id: Id of the owning player.
    """

    id: int
    energy: int = Field(..., description="Energy budget, int64 on the server")
    pos: tuple[int, int] = Field(..., description="Grid position (x, y)")
    temperature: int = Field(..., ge=I8_MIN, le=I8_MAX)
    master_id: int

    @property
    def node_id(self) -> NodeID:
        return NodeID.of(self.pos)


class GuestInfo(_Snapshot):
    """Reduced view of another guest, as returned by detection.

    Has no energy field and a coarsened int16 temperature.
    """

    id: int
    temperature: int = Field(..., ge=I16_MIN, le=I16_MAX)
    pos: tuple[int, int]
    master_id: int
