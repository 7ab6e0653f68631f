"""Direction vocabulary for grid navigation.

::

            ^ UP
            |
    LEFT <-   -> RIGHT
            |
            v DOWN

Only the four cardinal steps in ALLOWED_NAVI are legal walk inputs. The
diagonals and SITU exist for addressing and detection.
"""

from __future__ import annotations

from typing import Iterable, Optional

from entropy_sdk.core.grid import I16_MAX, I16_MIN, NodeID, NodeIDLike

Direction = tuple[int, int]

SITU: Direction = (0, 0)
UP: Direction = (0, 1)
DOWN: Direction = (0, -1)
LEFT: Direction = (-1, 0)
RIGHT: Direction = (1, 0)

UP_LEFT: Direction = (-1, 1)
UP_RIGHT: Direction = (1, 1)
DOWN_LEFT: Direction = (-1, -1)
DOWN_RIGHT: Direction = (1, -1)

# y
# ^ 0 1 2
# | 3 4 5
# | 6 7 8
# +------> x
INDEXED_NAVI: tuple[Direction, ...] = (
    UP_LEFT,
    UP,
    UP_RIGHT,
    LEFT,
    SITU,
    RIGHT,
    DOWN_LEFT,
    DOWN,
    DOWN_RIGHT,
)

ALLOWED_NAVI: tuple[Direction, ...] = (LEFT, RIGHT, DOWN, UP)

# Clockwise order starting at UP, used by spiral walks
CLOCKWISE: tuple[Direction, ...] = (UP, RIGHT, DOWN, LEFT)


def is_allowed(direction: Direction) -> bool:
    """Whether direction is a legal single walk step."""
    return tuple(direction) in ALLOWED_NAVI


def index_of(direction: Direction) -> int:
    """Slot of direction in INDEXED_NAVI.

    Raises:
        ValueError: If direction is not a unit, diagonal or zero vector.
    """
    return INDEXED_NAVI.index(tuple(direction))


def direction_at(index: int) -> Direction:
    return INDEXED_NAVI[index]


def step(node_id: NodeIDLike, direction: Direction) -> Optional[NodeID]:
    """Node reached from node_id by direction, or None if it leaves int16 space."""
    x, y = node_id
    dx, dy = direction
    nx, ny = x + dx, y + dy
    if not (I16_MIN <= nx <= I16_MAX and I16_MIN <= ny <= I16_MAX):
        return None
    return NodeID(nx, ny)


def neighbors(
    node_id: NodeIDLike,
    directions: Iterable[Direction] = INDEXED_NAVI,
) -> list[NodeID]:
    """Nodes reachable from node_id by each direction, in direction order.

    Targets outside the int16 coordinate space are skipped, so nodes on the
    sentinel edges have fewer neighbors.
    """
    result = []
    for direction in directions:
        target = step(node_id, direction)
        if target is not None:
            result.append(target)
    return result
