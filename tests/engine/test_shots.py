"""Tests for shot resolution."""

import random

import pytest

from broadside.config import DEFAULT_FLEET
from broadside.engine.errors import GridConsistencyError
from broadside.engine.grid import CellState, create_empty_grid
from broadside.engine.placement import generate_ai_fleet, place_ship_on_grid
from broadside.engine.ship import Coordinate, Orientation, ShipType
from broadside.engine.shots import ShotResult, process_shot


def _one_destroyer():
    grid, ship = place_ship_on_grid(
        create_empty_grid(), [], ShipType.DESTROYER, 0, 0, 2, Orientation.HORIZONTAL
    )
    return grid, (ship,)


def test_miss_on_empty_and_restricted_cells() -> None:
    grid, ships = _one_destroyer()
    assert grid.state_at(Coordinate(1, 1)) is CellState.RESTRICTED

    outcome = process_shot(grid, ships, Coordinate(5, 5))
    assert outcome.result is ShotResult.MISS
    assert outcome.grid.state_at(Coordinate(5, 5)) is CellState.MISS

    outcome = process_shot(outcome.grid, outcome.ships, Coordinate(1, 1))
    assert outcome.result is ShotResult.MISS
    assert outcome.grid.state_at(Coordinate(1, 1)) is CellState.MISS
    assert not outcome.all_sunk


def test_hit_then_sink_marks_every_ship_cell_sunk() -> None:
    grid, ships = _one_destroyer()

    first = process_shot(grid, ships, Coordinate(0, 0))
    assert first.result is ShotResult.HIT
    assert first.ship_sunk is None
    assert not first.all_sunk
    assert first.grid.state_at(Coordinate(0, 0)) is CellState.HIT
    assert first.ships[0].hits == 1

    second = process_shot(first.grid, first.ships, Coordinate(0, 1))
    assert second.result is ShotResult.HIT
    assert second.ship_sunk is not None and second.ship_sunk.sunk
    assert second.all_sunk
    assert second.grid.state_at(Coordinate(0, 0)) is CellState.SUNK
    assert second.grid.state_at(Coordinate(0, 1)) is CellState.SUNK


def test_shot_leaves_inputs_untouched() -> None:
    grid, ships = _one_destroyer()
    outcome = process_shot(grid, ships, Coordinate(0, 0))
    assert grid.state_at(Coordinate(0, 0)) is CellState.SHIP
    assert ships[0].hits == 0
    assert outcome.grid is not grid


@pytest.mark.parametrize("target", [Coordinate(0, 0), Coordinate(4, 4)])
def test_second_shot_is_duplicate_without_state_change(target: Coordinate) -> None:
    grid, ships = _one_destroyer()
    first = process_shot(grid, ships, target)
    again = process_shot(first.grid, first.ships, target)
    assert again.result is ShotResult.DUPLICATE
    assert again.grid is first.grid
    assert again.ships == first.ships
    assert not again.all_sunk


def test_shooting_sunk_cell_is_duplicate() -> None:
    grid, ships = _one_destroyer()
    outcome = process_shot(grid, ships, Coordinate(0, 0))
    outcome = process_shot(outcome.grid, outcome.ships, Coordinate(0, 1))
    again = process_shot(outcome.grid, outcome.ships, Coordinate(0, 0))
    assert again.result is ShotResult.DUPLICATE
    assert again.ships[0].hits == 2


def test_out_of_bounds_shot_raises() -> None:
    grid, ships = _one_destroyer()
    with pytest.raises(ValueError):
        process_shot(grid, ships, Coordinate(10, 0))


def test_ship_cell_without_registry_entry_raises() -> None:
    grid, _ = _one_destroyer()
    with pytest.raises(GridConsistencyError):
        process_shot(grid, (), Coordinate(0, 0))


def test_fleet_destroyed_exactly_when_last_ship_sinks() -> None:
    rng = random.Random(11)
    grid, ships = generate_ai_fleet(DEFAULT_FLEET, rng)
    targets = [coord for ship in ships for coord in ship.coordinates]
    rng.shuffle(targets)

    previous_hits = {ship.ship_id: 0 for ship in ships}
    sunk_seen: set[str] = set()
    for index, target in enumerate(targets):
        outcome = process_shot(grid, ships, target)
        grid, ships = outcome.grid, outcome.ships
        assert outcome.result is ShotResult.HIT

        for ship in ships:
            assert ship.hits >= previous_hits[ship.ship_id]
            previous_hits[ship.ship_id] = ship.hits
            if ship.ship_id in sunk_seen:
                assert ship.sunk
                assert all(grid.state_at(c) is CellState.SUNK for c in ship.coordinates)
            if ship.sunk:
                sunk_seen.add(ship.ship_id)

        expected = all(ship.hits == ship.size for ship in ships)
        assert outcome.all_sunk is expected
        assert outcome.all_sunk is (index == len(targets) - 1)
