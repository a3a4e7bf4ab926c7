"""Command-line driver for playing broadside against the targeting AI."""

from __future__ import annotations

import argparse
from typing import Sequence

from broadside.config import GameConfig, load_game_config
from broadside.engine.game import GamePhase, NavalBattle, Side
from broadside.engine.grid import CellState, Grid, from_board_coord, to_board_coord
from broadside.engine.ship import Coordinate, Orientation, ShipType
from broadside.engine.shots import ShotOutcome, ShotResult
from broadside.telemetry import configure_console_logging, init_telemetry, load_telemetry_config

_SYMBOLS = {
    CellState.HIT: "X",
    CellState.SUNK: "#",
    CellState.MISS: "o",
    CellState.SHIP: "S",
}


def format_grid(grid: Grid, config: GameConfig, show_ships: bool) -> str:
    """Render a grid; hidden boards show only the cells that were shot."""
    header = "    " + " ".join(f"{label:>2}" for label in config.col_labels)
    rows = [header]
    for row in grid.cells:
        symbols = []
        for cell in row:
            symbol = _SYMBOLS.get(cell.state, ".")
            if cell.state is CellState.SHIP and not show_ships:
                symbol = "."
            symbols.append(f"{symbol:>2}")
        rows.append(f"{config.row_labels[row[0].row]} |" + " ".join(symbols))
    return "\n".join(rows)


def parse_coordinate(text: str, config: GameConfig) -> Coordinate:
    coord = from_board_coord(text, config)
    if coord is None:
        first, last = config.row_labels[0], config.row_labels[-1]
        raise ValueError(
            f"Use a row {first}-{last} followed by a column "
            f"{config.col_labels[0]}-{config.col_labels[-1]}, e.g. {first}{config.col_labels[0]}."
        )
    return coord


def parse_orientation(text: str) -> Orientation | None:
    cleaned = text.strip().upper()
    if cleaned in {"H", "HOR", "HORIZONTAL"}:
        return Orientation.HORIZONTAL
    if cleaned in {"V", "VER", "VERTICAL"}:
        return Orientation.VERTICAL
    return None


def describe_shot(shooter: Side, label: str, outcome: ShotOutcome) -> str:
    who = "You" if shooter is Side.HUMAN else "Opponent"
    if outcome.result is ShotResult.MISS:
        return f"{who} shot at {label}: MISS."
    message = f"{who} shot at {label}: HIT!"
    if outcome.ship_sunk is not None:
        owner = "the enemy" if shooter is Side.HUMAN else "your"
        message += f" {owner.capitalize()} {outcome.ship_sunk.ship_type.value} has been sunk!"
    return message


def _prompt_orientation(ship_type: ShipType, size: int) -> Orientation:
    while True:
        raw = input(f"Place your {ship_type.value} (length {size}). Orientation [H/V]: ")
        orientation = parse_orientation(raw)
        if orientation is not None:
            return orientation
        print("Please enter H for horizontal or V for vertical.")


def _manual_ship_placement(game: NavalBattle) -> None:
    config = game.config
    while not game.fleet_complete():
        ship_type = game.unplaced_types()[0]
        print("\nCurrent layout:")
        print(format_grid(game.boards[Side.HUMAN].grid, config, show_ships=True))
        orientation = _prompt_orientation(ship_type, config.spec_for(ship_type).size)
        try:
            start = parse_coordinate(input("Enter starting coordinate (e.g., A0): "), config)
        except ValueError as exc:
            print(f"Invalid coordinate: {exc}")
            continue
        if not game.place_ship(ship_type, start, orientation):
            print("Cannot place a ship there. Check the bounds and the 1-cell spacing rule.")


def _prompt_yes_no(question: str) -> bool:
    while True:
        raw = input(f"{question} [Y/n]: ").strip().lower()
        if raw in {"", "y", "yes"}:
            return True
        if raw in {"n", "no"}:
            return False
        print("Please answer with 'y' or 'n'.")


def _prompt_target(game: NavalBattle) -> Coordinate:
    while True:
        raw = input("Enter target coordinate (e.g., A5) or 'q' to quit: ").strip()
        if raw.lower() == "q":
            raise SystemExit("Goodbye!")
        try:
            return parse_coordinate(raw, game.config)
        except ValueError as exc:
            print(f"Invalid input: {exc}")


def _print_stats(game: NavalBattle) -> None:
    for side, title in ((Side.AI, "Your shots"), (Side.HUMAN, "Opponent shots")):
        stats = game.stats(side)
        print(
            f"{title}: {stats.total_shots} fired, {stats.hits} hits, "
            f"{stats.misses} misses, {stats.sunk_ships} ships sunk, {stats.accuracy}% accuracy"
        )


def play_game(seed: int | None = None, auto_place: bool = False) -> Side | None:
    config = load_game_config()
    print("Welcome to broadside!")
    print("Ships may not overlap or touch, not even diagonally.\n")
    game = NavalBattle(config, rng_seed=seed)

    if auto_place or not _prompt_yes_no("Would you like to place your ships manually?"):
        game.place_fleet_randomly()
        print("\nYour ships have been positioned automatically.")
    else:
        _manual_ship_placement(game)

    first = game.start()
    print("You start first!" if first is Side.HUMAN else "Opponent starts first.")

    while game.phase is GamePhase.IN_PROGRESS:
        if game.current_side is Side.HUMAN:
            print("\nYour Board:")
            print(format_grid(game.boards[Side.HUMAN].grid, config, show_ships=True))
            print("\nEnemy Waters:")
            print(format_grid(game.boards[Side.AI].grid, config, show_ships=False))
            coord = _prompt_target(game)
            outcome = game.fire(coord)
            if outcome.result is ShotResult.DUPLICATE:
                print("You already shot there!")
                continue
            print(describe_shot(Side.HUMAN, to_board_coord(coord, config), outcome))
            if outcome.hit and game.phase is GamePhase.IN_PROGRESS:
                print("Hit! Take another shot.")
        else:
            coord, outcome = game.ai_fire()
            print(describe_shot(Side.AI, to_board_coord(coord, config), outcome))

    print()
    _print_stats(game)
    if game.winner is Side.HUMAN:
        print("\nCONGRATULATIONS! You destroyed all enemy ships.")
    else:
        print("\nGAME OVER. All your ships are destroyed.")
    return game.winner


def main(argv: Sequence[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Play broadside via the CLI.")
    parser.add_argument(
        "--seed", type=int, default=None, help="Optional RNG seed for reproducibility."
    )
    parser.add_argument(
        "--auto-place", action="store_true", help="Skip manual placement of your fleet."
    )
    args = parser.parse_args(argv)

    telemetry = load_telemetry_config()
    configure_console_logging(telemetry.log_level)
    init_telemetry(telemetry)
    play_game(seed=args.seed, auto_place=args.auto_place)


if __name__ == "__main__":
    main()
