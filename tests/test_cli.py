"""Tests for the command-line front-end."""

import random

import pytest

from broadside import cli
from broadside.config import MatchConfig
from broadside.engine.board import Board
from broadside.engine.controller import MatchController, MatchPhase, ShipPosition, Side
from broadside.engine.errors import FleetPlacementFailed
from broadside.engine.ship import Coordinate, Orientation, ShipType

FAST = dict(ship_poll_interval=0.001, attack_poll_interval=0.001)


def _reader(answers):
    iterator = iter(answers)
    return lambda prompt: next(iterator)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("A5", Coordinate(0, 4)),
        ("j10", Coordinate(9, 9)),
        (" c1 ", Coordinate(2, 0)),
        ("3 7", Coordinate(3, 7)),
    ],
)
def test_coordinate_from_input(text: str, expected: Coordinate) -> None:
    assert cli._coordinate_from_input(text) == expected


@pytest.mark.parametrize("text", ["", "K1", "A11", "A", "1 2 3", "x y", "10 0"])
def test_coordinate_from_input_rejects(text: str) -> None:
    with pytest.raises(ValueError):
        cli._coordinate_from_input(text)


def test_format_board_marks_ships_hits_and_misses() -> None:
    board = Board()
    board.place_ship(0, 0, "destroyer", "horizontal")
    board.receive_attack(0, 0)
    board.receive_attack(1, 1)

    hidden = cli._format_board(board, show_ships=False).splitlines()
    shown = cli._format_board(board, show_ships=True).splitlines()

    assert hidden[1].split("|")[1].split()[:2] == ["X", "."]
    assert shown[1].split("|")[1].split()[:2] == ["X", "S"]
    assert shown[2].split("|")[1].split()[1] == "o"


def test_random_ship_positions_form_a_valid_fleet() -> None:
    positions = cli._random_ship_positions(random.Random(8))
    board = Board()
    for position in positions:
        assert board.place_ship(position.row, position.col, position.ship_type, position.direction)
    assert board.fleet_complete()


def test_manual_ship_positions_retry_until_valid() -> None:
    answers = [
        "H", "A1",
        "V", "C1",
        "H", "F3",
        "diagonal", "V", "H6",
        "H", "J10",
        "H", "nowhere",
        "H", "J8",
    ]
    positions = cli._manual_ship_positions(_reader(answers))

    assert positions == [
        ShipPosition(0, 0, ShipType.CARRIER, Orientation.HORIZONTAL),
        ShipPosition(2, 0, ShipType.BATTLESHIP, Orientation.VERTICAL),
        ShipPosition(5, 2, ShipType.CRUISER, Orientation.HORIZONTAL),
        ShipPosition(7, 5, ShipType.SUBMARINE, Orientation.VERTICAL),
        ShipPosition(9, 7, ShipType.DESTROYER, Orientation.HORIZONTAL),
    ]


def test_play_game_runs_to_completion(capsys: pytest.CaptureFixture[str]) -> None:
    controller = MatchController.create(MatchConfig(rng_seed=4, **FAST))
    labels = [f"{row}{col}" for row in "ABCDEFGHIJ" for col in range(1, 11)]

    winner = cli.play_game(
        controller, auto_place=True, rng=random.Random(5), read=_reader(labels)
    )

    out = capsys.readouterr().out
    assert winner in {Side.HUMAN, Side.OPPONENT}
    assert controller.phase is MatchPhase.FINISHED
    assert "You fired at A1" in out
    assert "The computer fired at" in out
    assert ("you won" in out) or ("computer won" in out)


def test_prompt_for_attack_skips_targeted_cells(capsys: pytest.CaptureFixture[str]) -> None:
    controller = MatchController.create(MatchConfig(rng_seed=1, **FAST))
    controller.opponent.board.receive_attack(0, 0)

    coord = cli._prompt_for_attack(controller, _reader(["A1", "Z9", "B2"]))

    assert coord == Coordinate(1, 1)
    out = capsys.readouterr().out
    assert "already been targeted" in out
    assert "Invalid input" in out


def test_prompt_for_attack_quits() -> None:
    controller = MatchController.create(MatchConfig(**FAST))
    with pytest.raises(SystemExit):
        cli._prompt_for_attack(controller, _reader(["q"]))


def test_main_reports_setup_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "init_telemetry", lambda config: config)
    monkeypatch.setattr(cli, "shutdown_telemetry", lambda: None)

    def broken_game(*args, **kwargs):
        raise FleetPlacementFailed("no room")

    monkeypatch.setattr(cli, "play_game", broken_game)
    assert cli.main(["--seed", "3", "--auto-place"]) == 1


def test_main_passes_seed_to_match_config(monkeypatch: pytest.MonkeyPatch) -> None:
    seen = {}
    monkeypatch.setattr(cli, "init_telemetry", lambda config: config)
    monkeypatch.setattr(cli, "shutdown_telemetry", lambda: None)

    def fake_game(controller, *, auto_place, rng):
        seen["seed"] = controller.config.rng_seed
        seen["auto_place"] = auto_place
        return Side.HUMAN

    monkeypatch.setattr(cli, "play_game", fake_game)
    assert cli.main(["--seed", "9", "--auto-place"]) == 0
    assert seen == {"seed": 9, "auto_place": True}
