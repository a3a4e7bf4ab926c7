"""High-level gameplay tests."""

import pytest

from broadside.config import GameConfig, ShipSpec
from broadside.engine.game import GamePhase, NavalBattle, Side
from broadside.engine.grid import CellState
from broadside.engine.ship import Coordinate, Orientation, ShipType
from broadside.engine.shots import ShotResult

SMALL_FLEET = GameConfig(
    fleet=(
        ShipSpec(ship_type=ShipType.CRUISER, size=3),
        ShipSpec(ship_type=ShipType.DESTROYER, size=2),
    )
)


def _started_game(seed: int = 3, first: Side = Side.HUMAN) -> NavalBattle:
    game = NavalBattle(SMALL_FLEET, rng_seed=seed)
    assert game.place_ship(ShipType.CRUISER, Coordinate(0, 0), Orientation.HORIZONTAL)
    assert game.place_ship(ShipType.DESTROYER, Coordinate(5, 5), Orientation.VERTICAL)
    game.start(first=first)
    return game


def _empty_target(game: NavalBattle) -> Coordinate:
    grid = game.boards[Side.AI].grid
    return next(cell.coordinate for cell in grid if cell.state is CellState.EMPTY)


def test_game_flow_until_someone_wins() -> None:
    game = NavalBattle(GameConfig(), rng_seed=42)
    game.place_fleet_randomly()
    game.start()

    shots = 0
    while game.get_state().phase is not GamePhase.FINISHED:
        shots += 1
        assert shots <= 200, "game should end once either side has shot every cell"
        if game.current_side is Side.HUMAN:
            targets = game.valid_targets(Side.HUMAN)
            assert targets, "There should always be a target while the game is running."
            outcome = game.fire(targets[0])
            assert outcome.result is not ShotResult.DUPLICATE
        else:
            coord, outcome = game.ai_fire()
            assert outcome.result is not ShotResult.DUPLICATE

    state = game.get_state()
    assert state.winner in {Side.HUMAN, Side.AI}
    loser = state.winner.opponent()
    assert all(ship.sunk for ship in state.boards[loser].ships)
    assert game.stats(loser).sunk_ships == 5
    assert game.valid_targets(Side.HUMAN) == []


def test_placement_rejects_duplicates_and_illegal_spots() -> None:
    game = NavalBattle(SMALL_FLEET, rng_seed=1)
    assert game.unplaced_types() == [ShipType.CRUISER, ShipType.DESTROYER]
    assert game.place_ship(ShipType.CRUISER, Coordinate(0, 0), Orientation.HORIZONTAL)
    assert not game.place_ship(ShipType.CRUISER, Coordinate(5, 5), Orientation.HORIZONTAL)
    assert not game.place_ship(ShipType.DESTROYER, Coordinate(1, 1), Orientation.HORIZONTAL)
    assert not game.place_ship(ShipType.DESTROYER, Coordinate(9, 9), Orientation.VERTICAL)
    assert game.unplaced_types() == [ShipType.DESTROYER]
    assert not game.fleet_complete()


def test_start_requires_complete_fleet() -> None:
    game = NavalBattle(SMALL_FLEET, rng_seed=1)
    game.place_ship(ShipType.CRUISER, Coordinate(0, 0), Orientation.HORIZONTAL)
    with pytest.raises(RuntimeError):
        game.start()


def test_start_deploys_ai_fleet() -> None:
    game = _started_game()
    assert game.phase is GamePhase.IN_PROGRESS
    assert game.current_side is Side.HUMAN
    ai_ships = game.boards[Side.AI].ships
    assert [ship.ship_type for ship in ai_ships] == [ShipType.CRUISER, ShipType.DESTROYER]
    assert game.boards[Side.AI].grid.count(CellState.SHIP) == 5


def test_fire_requires_game_in_progress() -> None:
    game = NavalBattle(SMALL_FLEET)
    with pytest.raises(RuntimeError):
        game.fire(Coordinate(0, 0))


def test_placement_closed_after_start() -> None:
    game = _started_game()
    with pytest.raises(RuntimeError):
        game.place_fleet_randomly()


def test_miss_passes_turn_and_hit_keeps_it() -> None:
    game = _started_game()
    outcome = game.fire(_empty_target(game))
    assert outcome.result is ShotResult.MISS
    assert game.current_side is Side.AI

    with pytest.raises(RuntimeError):
        game.fire(_empty_target(game))

    game.current_side = Side.HUMAN
    ship = game.boards[Side.AI].ships[0]
    outcome = game.fire(ship.coordinates[0])
    assert outcome.result is ShotResult.HIT
    assert game.current_side is Side.HUMAN


def test_duplicate_shot_does_not_consume_turn() -> None:
    game = _started_game()
    ship = game.boards[Side.AI].ships[0]
    game.fire(ship.coordinates[0])
    turns = game.turn_count
    outcome = game.fire(ship.coordinates[0])
    assert outcome.result is ShotResult.DUPLICATE
    assert game.current_side is Side.HUMAN
    assert game.turn_count == turns


def test_sinking_every_ship_wins() -> None:
    game = _started_game()
    for ship in game.boards[Side.AI].ships:
        for coord in ship.coordinates:
            game.fire(coord)
    assert game.phase is GamePhase.FINISHED
    assert game.winner is Side.HUMAN
    assert game.remaining_types(Side.AI) == []
    with pytest.raises(RuntimeError):
        game.fire(Coordinate(9, 9))


def test_ai_turn_targets_human_board() -> None:
    game = _started_game(first=Side.AI)
    with pytest.raises(RuntimeError):
        game.fire(Coordinate(0, 0))
    coord, outcome = game.ai_fire()
    assert game.boards[Side.HUMAN].grid.state_at(coord) in {
        CellState.HIT,
        CellState.MISS,
        CellState.SUNK,
    }
    if outcome.result is ShotResult.MISS:
        assert game.current_side is Side.HUMAN
    else:
        assert game.current_side is Side.AI


def test_remaining_types_and_stats() -> None:
    game = _started_game()
    cruiser = next(s for s in game.boards[Side.AI].ships if s.ship_type is ShipType.CRUISER)
    for coord in cruiser.coordinates:
        game.fire(coord)
    game.fire(_empty_target(game))

    assert game.remaining_types(Side.AI) == [ShipType.DESTROYER]
    stats = game.stats(Side.AI)
    assert stats.hits == 3
    assert stats.misses == 1
    assert stats.total_shots == 4
    assert stats.sunk_ships == 1
    assert stats.accuracy == 75
    assert game.stats(Side.HUMAN).accuracy == 0


def test_state_snapshot_is_detached() -> None:
    game = _started_game()
    before = game.get_state()
    game.fire(_empty_target(game))
    assert before.turn_count == 0
    assert before.boards[Side.AI].grid.count(CellState.MISS) == 0
    assert game.get_state().boards[Side.AI].grid.count(CellState.MISS) == 1
