"""Command-line front-end for playing Broadside against the computer."""

from __future__ import annotations

import argparse
import random
import sys
from typing import Callable

from broadside.config import MatchConfig
from broadside.engine.board import Board, CellState
from broadside.engine.controller import MatchController, ShipPosition, Side
from broadside.engine.errors import FleetPlacementFailed, ShipAlreadyPlaced
from broadside.engine.instrumented_controller import InstrumentedMatchController
from broadside.engine.opponent import AutonomousOpponent
from broadside.engine.player import Player
from broadside.engine.ship import Coordinate, Orientation, ShipType
from broadside.telemetry import TelemetryConfig, init_telemetry, shutdown_telemetry

ROW_LABELS = "ABCDEFGHIJ"

InputFn = Callable[[str], str]


def _coordinate_from_input(text: str) -> Coordinate:
    cleaned = text.strip().upper()
    if not cleaned:
        raise ValueError("Empty coordinate.")
    if cleaned[0].isalpha():
        if cleaned[0] not in ROW_LABELS:
            raise ValueError("Row must be between A and J.")
        row = ROW_LABELS.index(cleaned[0])
        try:
            col = int(cleaned[1:]) - 1
        except ValueError as exc:
            raise ValueError("Column must be a number between 1 and 10.") from exc
    else:
        parts = cleaned.split()
        if len(parts) != 2:
            raise ValueError("Use formats like A5 or '3 7'.")
        try:
            row, col = map(int, parts)
        except ValueError as exc:
            raise ValueError("Row and column must be numbers.") from exc
    if row not in range(Board.size) or col not in range(Board.size):
        raise ValueError("Coordinates must be within the 10x10 board.")
    return Coordinate(row, col)


def _label(row: int, col: int) -> str:
    return f"{ROW_LABELS[row]}{col + 1}"


def _format_board(board: Board, show_ships: bool) -> str:
    grid = board.grid
    header = "    " + " ".join(f"{col + 1:>2}" for col in range(board.size))
    rows = [header]
    for row in range(board.size):
        symbols = []
        for col in range(board.size):
            state = board.get_cell_state(row, col)
            if state is CellState.HIT:
                symbol = "X"
            elif state is CellState.MISS:
                symbol = "o"
            else:
                symbol = "S" if show_ships and grid[row][col] is not None else "."
            symbols.append(f"{symbol:>2}")
        rows.append(f"{ROW_LABELS[row]} |" + " ".join(symbols))
    return "\n".join(rows)


def _prompt_orientation(ship_type: ShipType, read: InputFn) -> Orientation:
    while True:
        raw = (
            read(
                f"Place your {ship_type.value.title()} (length {ship_type.length}). Orientation [H/V]: "
            )
            .strip()
            .upper()
        )
        if raw in {"H", "HOR", "HORIZONTAL"}:
            return Orientation.HORIZONTAL
        if raw in {"V", "VER", "VERTICAL"}:
            return Orientation.VERTICAL
        print("Please enter H for horizontal or V for vertical.")


def _manual_ship_positions(read: InputFn) -> list[ShipPosition]:
    """Ask for every ship, checking each one against a scratch board."""
    scratch = Board(owner="layout")
    positions: list[ShipPosition] = []
    for ship_type in ShipType:
        while True:
            print("\nCurrent layout:")
            print(_format_board(scratch, show_ships=True))
            orientation = _prompt_orientation(ship_type, read)
            try:
                start = _coordinate_from_input(read("Enter starting coordinate (e.g., A1): "))
            except ValueError as exc:
                print(f"Invalid coordinate: {exc}")
                continue
            if scratch.place_ship(start.row, start.col, ship_type, orientation):
                positions.append(ShipPosition(start.row, start.col, ship_type, orientation))
                break
            print("Ship cannot be placed there (out of bounds or overlaps). Try again.")
    return positions


def _random_ship_positions(rng: random.Random) -> list[ShipPosition]:
    """Lay out a fleet with the computer's placement search and read it back."""
    helper = AutonomousOpponent(Player(Board(owner="layout")), rng)
    if not helper.place_fleet():
        raise FleetPlacementFailed("Could not lay out a random fleet.")
    positions = []
    for ship_type in ShipType:
        cells = helper.board.ship_cells(ship_type)
        horizontal = cells[0].row == cells[1].row
        orientation = Orientation.HORIZONTAL if horizontal else Orientation.VERTICAL
        positions.append(ShipPosition(cells[0].row, cells[0].col, ship_type, orientation))
    return positions


def _prompt_for_attack(controller: MatchController, read: InputFn) -> Coordinate:
    target_board = controller.opponent.board
    while True:
        print("\nYour Board:")
        print(_format_board(controller.human.board, show_ships=True))
        print("\nEnemy Waters:")
        print(_format_board(target_board, show_ships=False))
        raw = read("Enter target coordinate (e.g., A5) or 'q' to quit: ").strip()
        if raw.lower() == "q":
            raise SystemExit("Goodbye!")
        try:
            coord = _coordinate_from_input(raw)
        except ValueError as exc:
            print(f"Invalid input: {exc}")
            continue
        if target_board.get_cell_state(coord.row, coord.col) is not CellState.UNKNOWN:
            print("That cell has already been targeted. Choose another.")
            continue
        return coord


def _describe_shot(controller: MatchController, row: int, col: int, side: Side, is_hit: bool) -> str:
    shooter = "You" if side is Side.OPPONENT else "The computer"
    outcome = "hit" if is_hit else "miss"
    if is_hit:
        ship = controller.player_for(side).board.grid[row][col]
        if ship is not None and ship.is_sunk():
            whose = "the enemy" if side is Side.OPPONENT else "your"
            outcome = f"sank {whose} {ship.name}!"
    return f"{shooter} fired at {_label(row, col)}: {outcome}"


def _prompt_manual_setup(read: InputFn) -> bool:
    while True:
        raw = read("Would you like to place your ships manually? [Y/n]: ").strip().lower()
        if raw in {"", "y", "yes"}:
            return True
        if raw in {"n", "no"}:
            return False
        print("Please answer with 'y' or 'n'.")


def play_game(
    controller: MatchController,
    *,
    auto_place: bool = False,
    rng: random.Random | None = None,
    read: InputFn = input,
) -> Side | None:
    """Run one match in the terminal and return the winner."""
    print("Welcome to Broadside!\n")
    rng = rng or random.Random()

    if not auto_place and _prompt_manual_setup(read):
        positions = _manual_ship_positions(read)
    else:
        positions = _random_ship_positions(rng)
        print("\nYour ships have been positioned automatically.")

    def announce(winner: Side | None) -> None:
        if winner is Side.HUMAN:
            print("\nCongratulations, you won!")
        else:
            print("\nThe computer won this time. Better luck next battle!")

    return controller.play_match(
        lambda: positions,
        lambda: _prompt_for_attack(controller, read),
        announce,
        lambda row, col, side, is_hit: print(_describe_shot(controller, row, col, side, is_hit)),
    )


def _layout_rng(seed: int | None) -> random.Random:
    # Separate stream from the computer fleet when a seed is given.
    return random.Random(None if seed is None else seed + 1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Play Broadside via the CLI.")
    parser.add_argument(
        "--seed", type=int, default=None, help="Optional RNG seed for reproducibility."
    )
    parser.add_argument(
        "--auto-place",
        action="store_true",
        help="Position your fleet randomly instead of placing it by hand.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    init_telemetry(TelemetryConfig.from_env())
    config = MatchConfig.from_env(rng_seed=args.seed)
    controller = InstrumentedMatchController.create(config)
    try:
        play_game(controller, auto_place=args.auto_place, rng=_layout_rng(config.rng_seed))
    except (FleetPlacementFailed, ShipAlreadyPlaced) as exc:
        print(f"Cannot start the match: {exc}", file=sys.stderr)
        return 1
    finally:
        shutdown_telemetry()
    return 0


if __name__ == "__main__":
    sys.exit(main())
