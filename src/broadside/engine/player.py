"""Player façade binding a board to attack and placement actions."""

from __future__ import annotations

from .board import AttackOutcome, Board
from .ship import Orientation, ShipType


class Player:
    """Owns one board and delegates every action to it.

    The controller talks to players rather than boards directly: a player
    places ships on its own board and fires at the opponent's board.
    """

    def __init__(self, board: Board | None = None) -> None:
        self.board = board if board is not None else Board()

    def place_ship(
        self,
        row: int,
        col: int,
        ship_type: ShipType | str,
        direction: Orientation | str,
    ) -> bool:
        return self.board.place_ship(row, col, ship_type, direction)

    def attack(self, opponent: Player, row: int, col: int) -> AttackOutcome:
        """Fire at the opponent's board."""
        return opponent.board.receive_attack(row, col)
