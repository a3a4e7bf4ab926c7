"""Turn orchestration for a human-versus-AI match."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum

from broadside.ai.targeting import get_best_move
from broadside.config import GameConfig, load_game_config
from broadside.telemetry import get_meter, get_tracer, record_game_metric

from .grid import RESOLVED_STATES, CellState, Grid, create_empty_grid
from .placement import generate_ai_fleet, is_valid_placement, place_ship_on_grid
from .ship import Coordinate, Orientation, Ship, ShipType
from .shots import ShotOutcome, ShotResult, process_shot

logger = logging.getLogger(__name__)
tracer = get_tracer("broadside.engine.game")
meter = get_meter("broadside.engine.game")

MOVE_COUNTER = meter.create_counter(
    "broadside_engine_moves",
    unit="1",
    description="Number of shots taken in a NavalBattle",
)


class GamePhase(Enum):
    """High-level lifecycle of a match."""

    PLACEMENT = "placement"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class Side(Enum):
    """The two fleets in a match."""

    HUMAN = "human"
    AI = "ai"

    def opponent(self) -> Side:
        return Side.AI if self is Side.HUMAN else Side.HUMAN


@dataclass
class Board:
    """One side's grid and ship registry."""

    grid: Grid
    ships: tuple[Ship, ...] = ()


@dataclass(frozen=True)
class BoardStats:
    """Shots a board has received."""

    hits: int
    misses: int
    sunk_ships: int

    @property
    def total_shots(self) -> int:
        return self.hits + self.misses

    @property
    def accuracy(self) -> int:
        """Hit percentage, rounded to the nearest integer."""
        if not self.total_shots:
            return 0
        return round(self.hits / self.total_shots * 100)


@dataclass(frozen=True)
class GameState:
    """Immutable snapshot of the current match."""

    phase: GamePhase
    current_side: Side
    winner: Side | None
    turn_count: int
    boards: dict[Side, Board]


class NavalBattle:
    """Owns both boards and enforces placement, turn order and victory.

    A hit lets the shooter fire again, a miss passes the turn and a duplicate
    shot is rejected without consuming the turn.
    """

    def __init__(self, config: GameConfig | None = None, rng_seed: int | None = None) -> None:
        self.config = config or load_game_config()
        self._rng = random.Random(rng_seed if rng_seed is not None else self.config.seed)
        self.boards: dict[Side, Board] = {
            side: Board(create_empty_grid(self.config.board_size)) for side in Side
        }
        self.phase: GamePhase = GamePhase.PLACEMENT
        self.current_side: Side = Side.HUMAN
        self.winner: Side | None = None
        self.turn_count = 0

    # -- placement -----------------------------------------------------

    def unplaced_types(self) -> list[ShipType]:
        """Ship types the human still has to place, in manifest order."""
        placed = [ship.ship_type for ship in self.boards[Side.HUMAN].ships]
        missing: list[ShipType] = []
        for spec in self.config.fleet:
            missing.extend([spec.ship_type] * max(0, spec.count - placed.count(spec.ship_type)))
        return missing

    def fleet_complete(self) -> bool:
        return not self.unplaced_types()

    def place_ship(self, ship_type: ShipType, coord: Coordinate, orientation: Orientation) -> bool:
        """Place one of the human's ships; False when the spot is not allowed."""
        self._require_phase(GamePhase.PLACEMENT)
        board = self.boards[Side.HUMAN]
        details = {
            "ship_type": ship_type.name,
            "orientation": orientation.name,
            "row": coord.row,
            "col": coord.col,
        }
        if ship_type not in self.unplaced_types():
            logger.warning("ship_placement_rejected_already_placed", extra=details)
            return False
        size = self.config.spec_for(ship_type).size
        if not is_valid_placement(board.grid, coord.row, coord.col, size, orientation):
            logger.warning("ship_placement_rejected_invalid", extra=details)
            return False
        board.grid, ship = place_ship_on_grid(
            board.grid, board.ships, ship_type, coord.row, coord.col, size, orientation
        )
        board.ships = board.ships + (ship,)
        logger.info("human_ship_placed", extra=details)
        return True

    def place_fleet_randomly(self) -> None:
        """Replace the human fleet with a random legal layout."""
        self._require_phase(GamePhase.PLACEMENT)
        board = self.boards[Side.HUMAN]
        board.grid, board.ships = self._random_fleet()

    def reset_placement(self) -> None:
        self._require_phase(GamePhase.PLACEMENT)
        self.boards[Side.HUMAN] = Board(create_empty_grid(self.config.board_size))

    def start(self, first: Side | None = None) -> Side:
        """Deploy the AI fleet and begin play; returns the side that shoots first."""
        with tracer.start_as_current_span("game.start") as span:
            self._require_phase(GamePhase.PLACEMENT)
            if not self.fleet_complete():
                logger.error(
                    "game_start_rejected_incomplete_fleet",
                    extra={"missing": [ship_type.name for ship_type in self.unplaced_types()]},
                )
                raise RuntimeError("Place every ship before starting the game.")

            ai_board = self.boards[Side.AI]
            ai_board.grid, ai_board.ships = self._random_fleet()
            self.current_side = first or self._rng.choice(list(Side))
            self.phase = GamePhase.IN_PROGRESS
            self.winner = None
            self.turn_count = 0
            span.set_attribute("first_side", self.current_side.value)
            logger.info("game_started", extra={"first_side": self.current_side.value})
            return self.current_side

    # -- play ----------------------------------------------------------

    def fire(self, coord: Coordinate) -> ShotOutcome:
        """The human shoots at the AI fleet."""
        return self._shoot(Side.HUMAN, coord)

    def ai_fire(self) -> tuple[Coordinate, ShotOutcome]:
        """The AI picks a cell on the human board and shoots it."""
        with tracer.start_as_current_span("game.ai_fire"):
            self._require_turn(Side.AI)
            targets = self.remaining_types(Side.HUMAN) or [spec.ship_type for spec in self.config.fleet]
            coord = get_best_move(
                self.boards[Side.HUMAN].grid, targets, self.config.fleet, rng=self._rng
            )
            return coord, self._shoot(Side.AI, coord)

    def _shoot(self, shooter: Side, coord: Coordinate) -> ShotOutcome:
        with tracer.start_as_current_span("game.shoot") as span:
            span.set_attribute("shooter", shooter.value)
            span.set_attribute("row", coord.row)
            span.set_attribute("col", coord.col)
            self._require_turn(shooter)

            target = self.boards[shooter.opponent()]
            outcome = process_shot(target.grid, target.ships, coord)
            MOVE_COUNTER.add(1, attributes={"result": outcome.result.value, "shooter": shooter.value})
            if outcome.result is ShotResult.DUPLICATE:
                return outcome

            target.grid, target.ships = outcome.grid, outcome.ships
            self.turn_count += 1
            if outcome.all_sunk:
                self._finish(shooter)
            elif outcome.result is ShotResult.MISS:
                self.current_side = shooter.opponent()
            span.set_attribute("next_side", self.current_side.value)
            return outcome

    def _finish(self, winner: Side) -> None:
        self.winner = winner
        self.phase = GamePhase.FINISHED
        record_game_metric("broadside_game_completed_total", 1, {"winner": winner.value})
        record_game_metric("broadside_game_turns_total", self.turn_count, {"winner": winner.value})
        logger.info("game_finished", extra={"winner": winner.value, "turns": self.turn_count})

    # -- queries -------------------------------------------------------

    def remaining_types(self, side: Side) -> list[ShipType]:
        """Distinct types of ``side``'s ships that are still afloat."""
        remaining: list[ShipType] = []
        for ship in self.boards[side].ships:
            if not ship.sunk and ship.ship_type not in remaining:
                remaining.append(ship.ship_type)
        return remaining

    def valid_targets(self, shooter: Side) -> list[Coordinate]:
        """Cells on the opposing board that have not been shot yet."""
        if self.phase is not GamePhase.IN_PROGRESS:
            return []
        grid = self.boards[shooter.opponent()].grid
        return [cell.coordinate for cell in grid if cell.state not in RESOLVED_STATES]

    def stats(self, side: Side) -> BoardStats:
        """Summarise the shots ``side``'s board has received."""
        board = self.boards[side]
        return BoardStats(
            hits=board.grid.count(CellState.HIT) + board.grid.count(CellState.SUNK),
            misses=board.grid.count(CellState.MISS),
            sunk_ships=sum(1 for ship in board.ships if ship.sunk),
        )

    def get_state(self) -> GameState:
        return GameState(
            phase=self.phase,
            current_side=self.current_side,
            winner=self.winner,
            turn_count=self.turn_count,
            boards={side: Board(board.grid, board.ships) for side, board in self.boards.items()},
        )

    # -- helpers -------------------------------------------------------

    def _random_fleet(self) -> tuple[Grid, tuple[Ship, ...]]:
        return generate_ai_fleet(
            self.config.fleet,
            self._rng,
            board_size=self.config.board_size,
            max_attempts=self.config.max_placement_attempts,
            max_restarts=self.config.max_fleet_restarts,
        )

    def _require_phase(self, phase: GamePhase) -> None:
        if self.phase is not phase:
            logger.error(
                "action_rejected_wrong_phase",
                extra={"phase": self.phase.value, "required": phase.value},
            )
            raise RuntimeError(f"Game is not in the {phase.value} phase.")

    def _require_turn(self, side: Side) -> None:
        self._require_phase(GamePhase.IN_PROGRESS)
        if side is not self.current_side:
            logger.error(
                "move_rejected_wrong_side",
                extra={"side": side.value, "current": self.current_side.value},
            )
            raise RuntimeError("It is not this side's turn.")
