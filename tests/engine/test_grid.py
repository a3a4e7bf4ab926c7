"""Tests for the Grid model and board labels."""

import pytest

from broadside.config import GameConfig, ShipSpec
from broadside.engine.grid import (
    CellState,
    create_empty_grid,
    from_board_coord,
    halo_box,
    to_board_coord,
)
from broadside.engine.ship import Coordinate, Orientation, ShipType


def test_create_empty_grid() -> None:
    grid = create_empty_grid()
    assert grid.size == 10
    cells = list(grid)
    assert len(cells) == 100
    assert all(cell.state is CellState.EMPTY and cell.ship_id is None for cell in cells)
    assert grid.cell(Coordinate(4, 7)).coordinate == Coordinate(4, 7)


def test_with_state_copies_grid() -> None:
    grid = create_empty_grid(5)
    updated = grid.with_state([Coordinate(1, 1), Coordinate(2, 2)], CellState.MISS)
    assert grid.count(CellState.MISS) == 0
    assert updated.count(CellState.MISS) == 2
    assert updated.state_at(Coordinate(2, 2)) is CellState.MISS


def test_mask_marks_requested_states() -> None:
    grid = create_empty_grid(4).with_state([Coordinate(0, 3)], CellState.HIT)
    grid = grid.with_state([Coordinate(3, 0)], CellState.SUNK)
    mask = grid.mask(CellState.HIT, CellState.SUNK)
    assert mask.shape == (4, 4)
    assert mask.sum() == 2
    assert mask[0, 3] and mask[3, 0]


def test_cell_out_of_bounds_raises() -> None:
    with pytest.raises(IndexError):
        create_empty_grid().cell(Coordinate(10, 0))


def test_halo_box_is_clipped_at_edges() -> None:
    box = set(halo_box(0, 0, 2, Orientation.HORIZONTAL, 10))
    assert box == {Coordinate(r, c) for r in (0, 1) for c in (0, 1, 2)}

    middle = set(halo_box(4, 4, 3, Orientation.VERTICAL, 10))
    assert len(middle) == 5 * 3


def test_board_labels_round_trip_corners() -> None:
    config = GameConfig()
    assert to_board_coord(Coordinate(0, 0), config) == "A0"
    assert to_board_coord(Coordinate(9, 9), config) == "J9"
    assert from_board_coord("b7", config) == Coordinate(1, 7)


@pytest.mark.parametrize("text", ["", "A", "K1", "A10", "Z9", "1A", "A-1"])
def test_from_board_coord_rejects_bad_labels(text: str) -> None:
    assert from_board_coord(text, GameConfig()) is None


def test_labels_for_small_board() -> None:
    config = GameConfig(board_size=5, fleet=(ShipSpec(ship_type=ShipType.DESTROYER, size=2),))
    assert from_board_coord("E4", config) == Coordinate(4, 4)
    assert from_board_coord("F0", config) is None
