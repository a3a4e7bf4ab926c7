"""Ship domain model for the broadside engine."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from enum import Enum


@dataclass(frozen=True)
class Coordinate:
    """Immutable board coordinate."""

    row: int
    col: int


class Orientation(Enum):
    """Allowed ship orientations.

    HORIZONTAL ships extend along columns, VERTICAL ships along rows.
    """

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"

    def step(self) -> tuple[int, int]:
        """Return the (row, col) delta between consecutive ship cells."""
        return (0, 1) if self is Orientation.HORIZONTAL else (1, 0)


class ShipType(Enum):
    """Ship classes of the standard fleet."""

    CARRIER = "Carrier"
    BATTLESHIP = "Battleship"
    CRUISER = "Cruiser"
    SUBMARINE = "Submarine"
    DESTROYER = "Destroyer"


class ShipStatus(Enum):
    """Lifecycle of a placed ship. Transitions only move forward."""

    PLACED = "placed"
    DAMAGED = "damaged"
    SUNK = "sunk"


def footprint(row: int, col: int, size: int, orientation: Orientation) -> tuple[Coordinate, ...]:
    """Return the ordered cells a ship of ``size`` covers from its origin."""
    d_row, d_col = orientation.step()
    return tuple(Coordinate(row + d_row * offset, col + d_col * offset) for offset in range(size))


def new_ship_id(ship_type: ShipType) -> str:
    return f"{ship_type.name.lower()}-{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class Ship:
    """A placed ship. Instances are values: damage produces a new Ship."""

    ship_id: str
    ship_type: ShipType
    orientation: Orientation
    coordinates: tuple[Coordinate, ...]
    hits: int = 0
    status: ShipStatus = ShipStatus.PLACED

    @property
    def size(self) -> int:
        return len(self.coordinates)

    @property
    def sunk(self) -> bool:
        return self.status is ShipStatus.SUNK

    @property
    def start(self) -> Coordinate:
        return self.coordinates[0]

    def occupies(self, coord: Coordinate) -> bool:
        return coord in self.coordinates

    def register_hit(self) -> Ship:
        """Return this ship with one more hit, sinking it on the last one."""
        if self.sunk:
            raise ValueError(f"Ship {self.ship_id} is already sunk.")
        hits = self.hits + 1
        status = ShipStatus.SUNK if hits >= self.size else ShipStatus.DAMAGED
        return replace(self, hits=hits, status=status)
