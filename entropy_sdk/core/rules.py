"""Action rules — pre-flight checks and deterministic outcome prediction.

The server is authoritative for every guest action. The client reproduces
the rules it can observe so it can reject doomed requests before a round
trip and flag responses that disagree with the expected outcome. Server
formulas the client cannot observe (walk cost, arrange split) are policy
callables on ActionRules so they can be matched against a live server.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional

from entropy_sdk.core import navi
from entropy_sdk.core.entity import Guest
from entropy_sdk.core.grid import I8_MAX, I8_MIN, Cell, NodeData, _f32, as_cell
from entropy_sdk.errors import PreconditionViolation

if TYPE_CHECKING:
    from entropy_sdk.config import Settings

WalkCost = Callable[[Guest, navi.Direction], int]
ArrangeSplit = Callable[[int, int], tuple[int, int]]


def unit_walk_cost(guest: Guest, direction: navi.Direction) -> int:
    return 1


def transfer_split(energy: int, transfer_energy: int) -> tuple[int, int]:
    """Move exactly transfer_energy from the original guest to the new one."""
    return energy - transfer_energy, transfer_energy


@dataclass
class ActionRules:
    """Policy functions for the server-defined parts of the action protocol.

    Attributes:
        walk_cost: Energy a walk step costs, given the guest and direction.
        arrange_split: Maps (energy, transfer_energy) to the energies of the
            original and the newly arranged guest.
    """

    walk_cost: WalkCost = unit_walk_cost
    arrange_split: ArrangeSplit = transfer_split

    @classmethod
    def from_settings(cls, settings: Settings) -> ActionRules:
        cost = settings.walk_energy_cost
        return cls(walk_cost=lambda guest, direction: cost)


# -------------------------------------------------------------------------
# Pre-flight checks
# -------------------------------------------------------------------------


def check_walk(guest: Guest, direction: navi.Direction, rules: ActionRules) -> None:
    """Reject a walk that cannot succeed.

    Raises:
        PreconditionViolation: Direction is not a cardinal step, the guest
            cannot pay the step, or the target leaves the int16 grid.
    """
    if len(direction) != 2 or not all(
        isinstance(axis, int) and not isinstance(axis, bool) for axis in direction
    ):
        raise PreconditionViolation(f"walk direction {direction!r} is not an integer pair")
    if not navi.is_allowed(direction):
        raise PreconditionViolation(f"illegal walk direction {tuple(direction)}")
    cost = rules.walk_cost(guest, direction)
    if guest.energy < cost:
        raise PreconditionViolation(
            f"energy not enough: guest {guest.id} has {guest.energy}, walk costs {cost}"
        )
    if navi.step(guest.pos, direction) is None:
        raise PreconditionViolation(f"walk from {guest.pos} leaves the grid")


def check_field_index(index: int, field: Optional[NodeData] = None) -> None:
    """Reject a negative index, or one past the end of a known field."""
    if index < 0:
        raise PreconditionViolation(f"field index {index} is negative")
    if field is not None and index >= len(field):
        raise PreconditionViolation(
            f"field index {index} out of bounds for a field of {len(field)} cells"
        )


def check_arrange(guest: Guest, transfer_energy: int) -> None:
    if transfer_energy < 0:
        raise PreconditionViolation(f"transfer energy {transfer_energy} is negative")
    if transfer_energy > guest.energy:
        raise PreconditionViolation(
            f"energy not enough: guest {guest.id} has {guest.energy}, "
            f"cannot transfer {transfer_energy}"
        )


# -------------------------------------------------------------------------
# Prediction
# -------------------------------------------------------------------------


def harvest_temperature(temperature: int, cell: Cell | int) -> int:
    """Guest temperature after harvesting a cell.

    The gap between guest and cell is scaled by their Carnot efficiency,
    halved and floored. The guest then moves that far toward the cell,
    never past it.
    """
    target = as_cell(cell).value
    efficiency = Cell(temperature).carnot_efficiency(Cell(target))
    gap = abs(temperature - target)
    delta = int(_f32(efficiency * gap) // 2.0)

    if temperature > target:
        return max(temperature - delta, I8_MIN)
    if temperature < target:
        return min(temperature + delta, I8_MAX)
    return temperature


def predict_walk(guest: Guest, direction: navi.Direction, rules: ActionRules) -> Guest:
    x, y = guest.pos
    dx, dy = direction
    return guest.model_copy(
        update={
            "pos": (x + dx, y + dy),
            "energy": guest.energy - rules.walk_cost(guest, direction),
        }
    )


def predict_harvest(guest: Guest, cell: Cell | int) -> Guest:
    return guest.model_copy(
        update={"temperature": harvest_temperature(guest.temperature, cell)}
    )


def predict_arrange(guest: Guest, transfer_energy: int, rules: ActionRules) -> tuple[Guest, int]:
    """Expected original guest and the energy the new guest should hold."""
    remaining, transferred = rules.arrange_split(guest.energy, transfer_energy)
    return guest.model_copy(update={"energy": remaining}), transferred


def diff_guest(expected: Guest, actual: Guest) -> dict[str, tuple[Any, Any]]:
    """Fields where actual differs from expected, as (expected, actual) pairs."""
    differences = {}
    for name in Guest.model_fields:
        want, got = getattr(expected, name), getattr(actual, name)
        if want != got:
            differences[name] = (want, got)
    return differences
