"""Grid model — thermal cells, node fields and node coordinates.

A node's thermal field travels over the wire as one byte per cell in the
*absolute* encoding (0..255) and is decoded into signed int8 temperatures.
All types here are immutable: a changed field is re-fetched, never patched.
"""

from __future__ import annotations

import math
import struct
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Union

from entropy_sdk.errors import InvariantBreach

I8_MIN, I8_MAX = -128, 127
I16_MIN, I16_MAX = -32768, 32767


def _f32(value: float) -> float:
    """Round a Python float to the nearest IEEE-754 single precision value."""
    return struct.unpack("f", struct.pack("f", value))[0]


# -------------------------------------------------------------------------
# Cell
# -------------------------------------------------------------------------


@dataclass(frozen=True, order=True)
class Cell:
    """A single temperature sample, stored as a signed int8.

    Ordering compares the signed value. The absolute encoding is only used
    on the wire and for Carnot efficiency.
    """

    value: int

    def __post_init__(self) -> None:
        if not I8_MIN <= self.value <= I8_MAX:
            raise InvariantBreach(f"cell temperature {self.value} outside int8 range")

    @classmethod
    def new(cls, value: int) -> Cell:
        return cls(value)

    @classmethod
    def from_absolute(cls, value: int) -> Cell:
        """Decode an absolute (unsigned) byte into a cell.

        Bytes above 127 shift down by 127 and wrap into int8 (255 becomes -128);
        the rest shift down by 127 in the signed domain (0 becomes -127).

        Raises:
            InvariantBreach: If value is not a byte.
        """
        if not 0 <= value <= 255:
            raise InvariantBreach(f"absolute value {value} outside uint8 range")
        if value > 127:
            signed = value - 127
            if signed > I8_MAX:
                signed -= 256
            return cls(signed)
        return cls(value - 127)

    @property
    def temperature(self) -> int:
        return self.value

    def absolute(self) -> int:
        """Encode the cell as an absolute byte; exact inverse of from_absolute."""
        return (self.value + 127) % 256

    def carnot_efficiency(self, other: Cell) -> float:
        """Carnot efficiency between two cells as thermal reservoirs.

        The larger absolute magnitude is the hot reservoir. Computed in float32.
        Two zero reservoirs have efficiency 0.0.
        """
        one, two = self.absolute(), other.absolute()
        hot, cold = (one, two) if one > two else (two, one)
        if hot == 0:
            return 0.0
        return _f32(1.0 - _f32(cold / hot))

    def __int__(self) -> int:
        return self.value


TemperatureLike = Union[Cell, int]


def as_cell(value: TemperatureLike) -> Cell:
    return value if isinstance(value, Cell) else Cell(value)


def carnot_efficiency(a: TemperatureLike, b: TemperatureLike) -> float:
    """Carnot efficiency of two temperatures given as cells or signed ints."""
    return as_cell(a).carnot_efficiency(as_cell(b))


# -------------------------------------------------------------------------
# NodeData
# -------------------------------------------------------------------------


@dataclass(frozen=True)
class NodeData:
    """Thermal field of one node: an ordered, fixed-length sequence of cells."""

    cells: tuple[Cell, ...] = ()

    @classmethod
    def from_values(cls, values: Iterable[int]) -> NodeData:
        return cls(tuple(Cell(v) for v in values))

    @classmethod
    def from_bytes(cls, payload: bytes) -> NodeData:
        """Decode the wire form: one absolute-encoded byte per cell."""
        return cls(tuple(Cell.from_absolute(b) for b in payload))

    def to_bytes(self) -> bytes:
        return bytes(c.absolute() for c in self.cells)

    def values(self) -> list[int]:
        return [c.value for c in self.cells]

    def __len__(self) -> int:
        return len(self.cells)

    def __iter__(self) -> Iterator[Cell]:
        return iter(self.cells)

    def __getitem__(self, index: int) -> Cell:
        return self.cells[index]

    def get(self, index: int) -> Optional[Cell]:
        """Return the cell at index, or None when index is out of range."""
        if 0 <= index < len(self.cells):
            return self.cells[index]
        return None

    def _require_cells(self, operation: str) -> None:
        if not self.cells:
            raise InvariantBreach(f"{operation}() called on an empty node field")

    def hottest(self) -> tuple[int, Cell]:
        """Index and value of the hottest cell; ties keep the earliest index."""
        self._require_cells("hottest")
        i_max, c_max = 0, self.cells[0]
        for i, c in enumerate(self.cells):
            if c > c_max:
                i_max, c_max = i, c
        return i_max, c_max

    def coldest(self) -> tuple[int, Cell]:
        """Index and value of the coldest cell; ties keep the earliest index."""
        self._require_cells("coldest")
        i_min, c_min = 0, self.cells[0]
        for i, c in enumerate(self.cells):
            if c < c_min:
                i_min, c_min = i, c
        return i_min, c_min

    def entropy(self) -> float:
        """Shannon entropy of the field in bits.

        Returns:
            0.0 when every cell holds the same value, log2(len) when all differ.

        Examples:
            >>> NodeData.from_values([1, 1, 1, 1]).entropy()
            0.0
        """
        self._require_cells("entropy")
        total = len(self.cells)
        entropy = 0.0
        for count in Counter(self.cells).values():
            probability = count / total
            entropy -= probability * math.log2(probability)
        # A single distinct value yields -0.0
        return entropy + 0.0


# -------------------------------------------------------------------------
# NodeID / Node
# -------------------------------------------------------------------------


@dataclass(frozen=True, order=True)
class NodeID:
    """Grid coordinate of a node: two int16 values, ordered by x then y."""

    x: int
    y: int

    def __post_init__(self) -> None:
        for axis in (self.x, self.y):
            if not I16_MIN <= axis <= I16_MAX:
                raise InvariantBreach(f"node coordinate {axis} outside int16 range")

    @classmethod
    def of(cls, value: NodeIDLike) -> NodeID:
        """Coerce an ``(x, y)`` pair or NodeID into a NodeID."""
        if isinstance(value, NodeID):
            return value
        x, y = value
        return cls(x, y)

    def as_tuple(self) -> tuple[int, int]:
        return (self.x, self.y)

    def __iter__(self) -> Iterator[int]:
        yield self.x
        yield self.y


NodeIDLike = Union[NodeID, tuple[int, int]]

# Extreme corners, edge middles and origin of the int16 coordinate space.
NodeID.UP_LEFT = NodeID(I16_MIN, I16_MAX)
NodeID.UP_MIDDLE = NodeID(0, I16_MAX)
NodeID.UP_RIGHT = NodeID(I16_MAX, I16_MAX)
NodeID.LEFT_MIDDLE = NodeID(I16_MIN, 0)
NodeID.SITU = NodeID(0, 0)
NodeID.ORIGIN = NodeID(0, 0)
NodeID.RIGHT_MIDDLE = NodeID(I16_MAX, 0)
NodeID.DOWN_LEFT = NodeID(I16_MIN, I16_MIN)
NodeID.DOWN_MIDDLE = NodeID(0, I16_MIN)
NodeID.DOWN_RIGHT = NodeID(I16_MAX, I16_MIN)


@dataclass(frozen=True)
class Node:
    """A node snapshot: its coordinate and its thermal field."""

    id: NodeID
    data: NodeData

    @classmethod
    def from_bytes(cls, node_id: NodeIDLike, payload: bytes) -> Node:
        return cls(NodeID.of(node_id), NodeData.from_bytes(payload))
