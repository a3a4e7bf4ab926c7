"""Shot resolution against a grid and its ship registry."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from broadside.telemetry import get_meter, get_tracer

from .errors import GridConsistencyError
from .grid import RESOLVED_STATES, CellState, Grid
from .ship import Coordinate, Ship

logger = logging.getLogger(__name__)
tracer = get_tracer("broadside.engine.shots")
meter = get_meter("broadside.engine.shots")

SHOT_COUNTER = meter.create_counter(
    "broadside_engine_shots",
    unit="1",
    description="Shots resolved against a grid",
)


class ShotResult(Enum):
    HIT = "hit"
    MISS = "miss"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class ShotOutcome:
    """What a shot did, plus the grid and registry as they stand afterwards."""

    result: ShotResult
    grid: Grid
    ships: tuple[Ship, ...]
    ship_sunk: Ship | None = None
    all_sunk: bool = False

    @property
    def hit(self) -> bool:
        return self.result is ShotResult.HIT


def process_shot(grid: Grid, ships: Sequence[Ship], target: Coordinate) -> ShotOutcome:
    """Fire at ``target`` and return the outcome; the inputs are not modified.

    Cells that were already shot (HIT, MISS or SUNK) give DUPLICATE with the
    grid unchanged. Sinking the last afloat ship sets ``all_sunk``.
    """
    with tracer.start_as_current_span("shots.process_shot") as span:
        span.set_attribute("shot.row", target.row)
        span.set_attribute("shot.col", target.col)
        if not grid.in_bounds(target.row, target.col):
            logger.error("shot_out_of_bounds", extra={"row": target.row, "col": target.col})
            raise ValueError("Shot out of bounds.")

        registry = tuple(ships)
        cell = grid.cell(target)

        if cell.state in RESOLVED_STATES:
            span.set_attribute("shot.outcome", ShotResult.DUPLICATE.value)
            SHOT_COUNTER.add(1, attributes={"outcome": ShotResult.DUPLICATE.value})
            logger.info("shot_duplicate", extra={"row": target.row, "col": target.col})
            return ShotOutcome(ShotResult.DUPLICATE, grid, registry)

        if cell.state is not CellState.SHIP:
            span.set_attribute("shot.outcome", ShotResult.MISS.value)
            SHOT_COUNTER.add(1, attributes={"outcome": ShotResult.MISS.value})
            logger.info("shot_miss", extra={"row": target.row, "col": target.col})
            return ShotOutcome(ShotResult.MISS, grid.with_state([target], CellState.MISS), registry)

        index = _ship_index(registry, cell.ship_id)
        if index is None:
            logger.error(
                "shot_unknown_ship",
                extra={"row": target.row, "col": target.col, "ship_id": cell.ship_id},
            )
            raise GridConsistencyError(
                f"Cell ({target.row}, {target.col}) belongs to unknown ship {cell.ship_id!r}."
            )

        ship = registry[index].register_hit()
        updated = registry[:index] + (ship,) + registry[index + 1 :]
        span.set_attribute("shot.outcome", ShotResult.HIT.value)
        span.set_attribute("ship.type", ship.ship_type.name)
        SHOT_COUNTER.add(1, attributes={"outcome": ShotResult.HIT.value})

        if not ship.sunk:
            logger.info(
                "shot_hit",
                extra={
                    "row": target.row,
                    "col": target.col,
                    "ship_type": ship.ship_type.name,
                    "hits": ship.hits,
                },
            )
            return ShotOutcome(ShotResult.HIT, grid.with_state([target], CellState.HIT), updated)

        all_sunk = all(other.sunk for other in updated)
        span.set_attribute("ship.sunk", True)
        span.set_attribute("fleet.destroyed", all_sunk)
        logger.info(
            "ship_sunk",
            extra={
                "row": target.row,
                "col": target.col,
                "ship_type": ship.ship_type.name,
                "all_sunk": all_sunk,
            },
        )
        return ShotOutcome(
            ShotResult.HIT,
            grid.with_state(ship.coordinates, CellState.SUNK),
            updated,
            ship_sunk=ship,
            all_sunk=all_sunk,
        )


def _ship_index(ships: tuple[Ship, ...], ship_id: str | None) -> int | None:
    for index, ship in enumerate(ships):
        if ship.ship_id == ship_id:
            return index
    return None
