"""Probability-density targeting for the computer opponent.

Every turn the AI enumerates each legal position of each ship type that is
still afloat and counts, per cell, how many of those positions would cover
it. Positions are illegal when they touch a MISS or SUNK cell or sit next to
a SUNK cell (ships never touch, not even diagonally).

While an unresolved HIT is on the board the AI is in HUNT mode: positions
that explain one or more hits are weighted ``1000 + 100 * hits`` so the
shots that finish off a damaged ship dominate the map. Otherwise it is in
SEARCH mode and every legal position counts once. Nothing is cached between
turns; the mode and the map are derived from the grid alone.
"""

from __future__ import annotations

import logging
import random
from enum import Enum
from typing import Iterable, Sequence

import numpy as np
import numpy.typing as npt

from broadside.config import DEFAULT_FLEET, ShipSpec
from broadside.engine.errors import TargetingError
from broadside.engine.grid import RESOLVED_STATES, BoolMask, CellState, Grid
from broadside.engine.ship import Coordinate, Orientation, ShipType
from broadside.telemetry import get_meter, get_tracer

logger = logging.getLogger(__name__)
tracer = get_tracer("broadside.ai.targeting")
meter = get_meter("broadside.ai.targeting")

MOVE_COUNTER = meter.create_counter(
    "broadside_ai_moves",
    unit="1",
    description="Moves chosen by the targeting AI",
)

HUNT_BASE_WEIGHT = 1000
HUNT_WEIGHT_PER_HIT = 100

DensityMap = npt.NDArray[np.int64]
Window = tuple[int | slice, int | slice]


class TargetingMode(Enum):
    SEARCH = "search"
    HUNT = "hunt"


def targeting_mode(grid: Grid) -> TargetingMode:
    """HUNT while any HIT cell is not yet part of a sunk ship."""
    return TargetingMode.HUNT if grid.count(CellState.HIT) else TargetingMode.SEARCH


def _touching(mask: BoolMask) -> BoolMask:
    """Cells in ``mask`` or 8-adjacent to one."""
    size = mask.shape[0]
    padded = np.pad(mask, 1)
    grown = np.zeros_like(mask)
    for d_row in (-1, 0, 1):
        for d_col in (-1, 0, 1):
            grown |= padded[1 + d_row : 1 + d_row + size, 1 + d_col : 1 + d_col + size]
    return grown


def _window(row: int, col: int, size: int, orientation: Orientation, board_size: int) -> Window | None:
    if orientation is Orientation.HORIZONTAL:
        if col + size > board_size:
            return None
        return row, slice(col, col + size)
    if row + size > board_size:
        return None
    return slice(row, row + size), col


def density_map(
    grid: Grid,
    remaining_types: Iterable[ShipType],
    fleet_config: Sequence[ShipSpec] = DEFAULT_FLEET,
) -> DensityMap:
    """Per-cell weighted count of legal placements of the remaining ships."""
    remaining = set(remaining_types)
    board_size = grid.size
    hits = grid.mask(CellState.HIT)
    blocked = grid.mask(CellState.MISS) | _touching(grid.mask(CellState.SUNK))
    targetable = ~grid.mask(*RESOLVED_STATES)
    hunting = bool(hits.any())

    scores: DensityMap = np.zeros((board_size, board_size), dtype=np.int64)
    for spec in fleet_config:
        if spec.ship_type not in remaining:
            continue
        for orientation in Orientation:
            for row in range(board_size):
                for col in range(board_size):
                    window = _window(row, col, spec.size, orientation, board_size)
                    if window is None or blocked[window].any():
                        continue
                    weight = 1
                    if hunting:
                        covered = int(hits[window].sum())
                        if covered:
                            weight = HUNT_BASE_WEIGHT + HUNT_WEIGHT_PER_HIT * covered
                    scores[window] += weight * targetable[window]
    return scores


def get_best_move(
    grid: Grid,
    remaining_types: Iterable[ShipType],
    fleet_config: Sequence[ShipSpec] = DEFAULT_FLEET,
    rng: random.Random | None = None,
) -> Coordinate:
    """Pick the next cell to shoot on ``grid``.

    Ties for the top score are broken uniformly at random. With no positive
    score anywhere the move is a random unresolved cell; a board without any
    unresolved cell raises TargetingError.
    """
    rng = rng or random.Random()
    with tracer.start_as_current_span("targeting.get_best_move") as span:
        mode = targeting_mode(grid)
        span.set_attribute("ai.mode", mode.value)
        scores = density_map(grid, remaining_types, fleet_config)
        best = int(scores.max()) if scores.size else 0
        span.set_attribute("ai.best_score", best)

        if best > 0:
            candidates = [Coordinate(int(row), int(col)) for row, col in np.argwhere(scores == best)]
            move = rng.choice(candidates)
            fallback = False
        else:
            open_cells = [cell.coordinate for cell in grid if cell.state not in RESOLVED_STATES]
            if not open_cells:
                logger.error("targeting_no_open_cells", extra={"mode": mode.value})
                raise TargetingError("Every cell on the board has already been shot.")
            move = rng.choice(open_cells)
            fallback = True

        span.set_attribute("ai.fallback", fallback)
        MOVE_COUNTER.add(1, attributes={"mode": mode.value, "fallback": fallback})
        logger.debug(
            "ai_move_selected",
            extra={
                "row": move.row,
                "col": move.col,
                "mode": mode.value,
                "score": best,
                "fallback": fallback,
            },
        )
        return move
