"""Square cell grid shared by the player and opponent boards."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Iterator, Mapping

import numpy as np
import numpy.typing as npt

from broadside.config import BOARD_SIZE, GameConfig, load_game_config

from .ship import Coordinate, Orientation

BoolMask = npt.NDArray[np.bool_]


class CellState(Enum):
    """State of one grid cell as seen by the board owner."""

    EMPTY = "empty"
    SHIP = "ship"
    HIT = "hit"
    MISS = "miss"
    SUNK = "sunk"
    RESTRICTED = "restricted"


# Cells a shot has already resolved; shooting them again is a duplicate.
RESOLVED_STATES = frozenset({CellState.HIT, CellState.MISS, CellState.SUNK})
# Cells a new ship (or its halo) may cover.
OPEN_STATES = frozenset({CellState.EMPTY, CellState.RESTRICTED})


@dataclass(frozen=True)
class Cell:
    row: int
    col: int
    state: CellState = CellState.EMPTY
    ship_id: str | None = None

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.row, self.col)


@dataclass(frozen=True)
class Grid:
    """Immutable square matrix of cells; updates return a new Grid."""

    cells: tuple[tuple[Cell, ...], ...]

    @property
    def size(self) -> int:
        return len(self.cells)

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.size and 0 <= col < self.size

    def cell(self, coord: Coordinate) -> Cell:
        if not self.in_bounds(coord.row, coord.col):
            raise IndexError(f"({coord.row}, {coord.col}) is outside the board.")
        return self.cells[coord.row][coord.col]

    def state_at(self, coord: Coordinate) -> CellState:
        return self.cell(coord).state

    def __iter__(self) -> Iterator[Cell]:
        for row in self.cells:
            yield from row

    def with_cells(self, updates: Mapping[Coordinate, Cell]) -> Grid:
        """Return a copy of this grid with ``updates`` applied."""
        if not updates:
            return self
        rows = [list(row) for row in self.cells]
        for coord, cell in updates.items():
            rows[coord.row][coord.col] = cell
        return Grid(tuple(tuple(row) for row in rows))

    def with_state(self, coords: Iterable[Coordinate], state: CellState) -> Grid:
        """Return a copy with every cell in ``coords`` set to ``state``."""
        return self.with_cells({coord: replace(self.cell(coord), state=state) for coord in coords})

    def mask(self, *states: CellState) -> BoolMask:
        """Boolean array marking the cells currently in any of ``states``."""
        wanted = set(states)
        return np.array(
            [[cell.state in wanted for cell in row] for row in self.cells], dtype=np.bool_
        )

    def coordinates_in(self, *states: CellState) -> list[Coordinate]:
        wanted = set(states)
        return [cell.coordinate for cell in self if cell.state in wanted]

    def count(self, state: CellState) -> int:
        return sum(1 for cell in self if cell.state is state)


def create_empty_grid(size: int = BOARD_SIZE) -> Grid:
    """Allocate a ``size`` x ``size`` grid with every cell EMPTY."""
    return Grid(tuple(tuple(Cell(row, col) for col in range(size)) for row in range(size)))


def halo_box(
    row: int, col: int, size: int, orientation: Orientation, board_size: int
) -> Iterator[Coordinate]:
    """Yield the ship footprint grown by one cell in every direction, clipped to the board."""
    last_row = row + size - 1 if orientation is Orientation.VERTICAL else row
    last_col = col + size - 1 if orientation is Orientation.HORIZONTAL else col
    for r in range(max(0, row - 1), min(board_size - 1, last_row + 1) + 1):
        for c in range(max(0, col - 1), min(board_size - 1, last_col + 1) + 1):
            yield Coordinate(r, c)


def to_board_coord(coord: Coordinate, config: GameConfig | None = None) -> str:
    """Render a coordinate as its board label, e.g. ``Coordinate(1, 7)`` -> ``"B7"``."""
    config = config or load_game_config()
    return f"{config.row_labels[coord.row]}{config.col_labels[coord.col]}"


def from_board_coord(text: str, config: GameConfig | None = None) -> Coordinate | None:
    """Parse a board label such as ``"B7"``; ``None`` when it names no cell."""
    config = config or load_game_config()
    cleaned = text.strip().upper() if text else ""
    if len(cleaned) < 2:
        return None
    rows = [label.upper() for label in config.row_labels]
    row_label, col_label = cleaned[0], cleaned[1:].strip()
    if row_label not in rows or col_label not in config.col_labels:
        return None
    return Coordinate(rows.index(row_label), config.col_labels.index(col_label))
