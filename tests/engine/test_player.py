"""Tests for the Player façade."""

from unittest.mock import MagicMock

from broadside.engine.board import AttackOutcome, Board
from broadside.engine.player import Player


def test_player_creates_its_own_board() -> None:
    assert isinstance(Player().board, Board)


def test_place_ship_delegates_to_board() -> None:
    board = MagicMock()
    board.place_ship.return_value = True
    player = Player(board)

    assert player.place_ship(1, 2, "cruiser", "vertical") is True
    board.place_ship.assert_called_once_with(1, 2, "cruiser", "vertical")


def test_attack_targets_the_opponents_board() -> None:
    attacker = Player()
    defender = Player()
    defender.place_ship(3, 7, "destroyer", "horizontal")

    assert attacker.attack(defender, 3, 7) is AttackOutcome.HIT
    assert attacker.attack(defender, 0, 0) is AttackOutcome.MISS
    assert attacker.board.landed_attacks == set()
    assert len(defender.board.landed_attacks) == 1
