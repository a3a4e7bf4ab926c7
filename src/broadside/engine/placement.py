"""Ship placement rules and random fleet generation."""

from __future__ import annotations

import logging
import random
from dataclasses import replace
from typing import Sequence

from broadside.config import (
    BOARD_SIZE,
    DEFAULT_FLEET,
    MAX_FLEET_RESTARTS,
    MAX_PLACEMENT_ATTEMPTS,
    ShipSpec,
)
from broadside.telemetry import get_meter, get_tracer

from .errors import FleetGenerationError
from .grid import OPEN_STATES, Cell, CellState, Grid, create_empty_grid, halo_box
from .ship import Coordinate, Orientation, Ship, ShipType, footprint, new_ship_id

logger = logging.getLogger(__name__)
tracer = get_tracer("broadside.engine.placement")
meter = get_meter("broadside.engine.placement")

PLACEMENT_COUNTER = meter.create_counter(
    "broadside_engine_ship_placements",
    unit="1",
    description="Ships written onto a grid",
)

RESTART_COUNTER = meter.create_counter(
    "broadside_engine_fleet_restarts",
    unit="1",
    description="Random fleet layouts abandoned and started over",
)

Fleet = tuple[Ship, ...]


def is_valid_placement(
    grid: Grid, row: int, col: int, size: int, orientation: Orientation
) -> bool:
    """Check bounds and the one-cell spacing rule for a prospective ship.

    The ship must fit on the board, and every cell of its footprint grown by
    one cell in each direction (diagonals included) must be EMPTY or
    RESTRICTED. RESTRICTED cells are shared halo and may overlap.
    """
    if size < 1:
        return False
    cells = footprint(row, col, size, orientation)
    if not all(grid.in_bounds(cell.row, cell.col) for cell in (cells[0], cells[-1])):
        return False
    return all(
        grid.state_at(coord) in OPEN_STATES
        for coord in halo_box(row, col, size, orientation, grid.size)
    )


def place_ship_on_grid(
    grid: Grid,
    ships: Sequence[Ship],
    ship_type: ShipType,
    row: int,
    col: int,
    size: int,
    orientation: Orientation,
) -> tuple[Grid, Ship]:
    """Write a ship and its RESTRICTED halo onto a copy of ``grid``.

    Callers must check ``is_valid_placement`` first; the placement is not
    re-validated here. ``ships`` is the caller's registry and is left
    untouched: appending the returned ship is the caller's job.
    """
    with tracer.start_as_current_span("placement.place_ship") as span:
        span.set_attribute("ship.type", ship_type.name)
        span.set_attribute("ship.size", size)
        span.set_attribute("ship.start.row", row)
        span.set_attribute("ship.start.col", col)
        span.set_attribute("fleet.size", len(ships))

        ship = Ship(
            ship_id=new_ship_id(ship_type),
            ship_type=ship_type,
            orientation=orientation,
            coordinates=footprint(row, col, size, orientation),
        )
        updates: dict[Coordinate, Cell] = {}
        for coord in halo_box(row, col, size, orientation, grid.size):
            cell = grid.cell(coord)
            if cell.state is CellState.EMPTY:
                updates[coord] = replace(cell, state=CellState.RESTRICTED)
        for coord in ship.coordinates:
            updates[coord] = replace(grid.cell(coord), state=CellState.SHIP, ship_id=ship.ship_id)

        PLACEMENT_COUNTER.add(1, attributes={"ship_type": ship_type.name})
        logger.debug(
            "ship_placed",
            extra={
                "ship_id": ship.ship_id,
                "ship_type": ship_type.name,
                "orientation": orientation.name,
                "row": row,
                "col": col,
            },
        )
        return grid.with_cells(updates), ship


def random_orientation(rng: random.Random) -> Orientation:
    return Orientation.VERTICAL if rng.random() > 0.5 else Orientation.HORIZONTAL


def generate_ai_fleet(
    fleet_config: Sequence[ShipSpec] = DEFAULT_FLEET,
    rng: random.Random | None = None,
    *,
    board_size: int = BOARD_SIZE,
    max_attempts: int = MAX_PLACEMENT_ATTEMPTS,
    max_restarts: int = MAX_FLEET_RESTARTS,
) -> tuple[Grid, Fleet]:
    """Randomly lay out a complete fleet that respects the spacing rule.

    Each ship gets up to ``max_attempts`` random origins. When one runs out
    the whole layout starts again from an empty grid; after ``max_restarts``
    restarts a FleetGenerationError is raised.
    """
    rng = rng or random.Random()
    with tracer.start_as_current_span("placement.generate_ai_fleet") as span:
        span.set_attribute("board.size", board_size)
        span.set_attribute("fleet.ships", sum(spec.count for spec in fleet_config))
        for restart in range(max_restarts + 1):
            result = _try_layout(fleet_config, rng, board_size, max_attempts)
            if result is not None:
                span.set_attribute("fleet.restarts", restart)
                logger.debug(
                    "fleet_generated",
                    extra={"restarts": restart, "ships": len(result[1])},
                )
                return result
            RESTART_COUNTER.add(1)
            logger.info("fleet_generation_restart", extra={"restart": restart + 1})

        logger.error(
            "fleet_generation_exhausted",
            extra={"board_size": board_size, "restarts": max_restarts},
        )
        raise FleetGenerationError(
            f"Could not fit the fleet on a {board_size}x{board_size} board "
            f"after {max_restarts} restarts."
        )


def _try_layout(
    fleet_config: Sequence[ShipSpec],
    rng: random.Random,
    board_size: int,
    max_attempts: int,
) -> tuple[Grid, Fleet] | None:
    grid = create_empty_grid(board_size)
    ships: list[Ship] = []
    for spec in fleet_config:
        for _ in range(spec.count):
            for _attempt in range(max_attempts):
                orientation = random_orientation(rng)
                row = rng.randrange(board_size)
                col = rng.randrange(board_size)
                if is_valid_placement(grid, row, col, spec.size, orientation):
                    grid, ship = place_ship_on_grid(
                        grid, ships, spec.ship_type, row, col, spec.size, orientation
                    )
                    ships.append(ship)
                    break
            else:
                logger.debug(
                    "ship_placement_exhausted",
                    extra={"ship_type": spec.ship_type.name, "attempts": max_attempts},
                )
                return None
    return grid, tuple(ships)
