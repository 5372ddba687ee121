"""Board, fleet and turn engine."""

from .board import BOARD_SIZE, AttackOutcome, Board, CellState
from .controller import MatchController, MatchPhase, MatchState, ShipPosition, Side
from .errors import (
    BroadsideError,
    FleetPlacementFailed,
    InputTimeout,
    InvalidCoordinate,
    InvalidDirection,
    InvalidPlacementMethod,
    InvalidShipType,
    MalformedShipPosition,
    MatchCancelled,
    ShipAlreadyPlaced,
)
from .inputs import InputSlot, wait_for_input
from .opponent import AttackReport, AutonomousOpponent
from .player import Player
from .ship import Coordinate, Orientation, Ship, ShipType

__all__ = [
    "BOARD_SIZE",
    "AttackOutcome",
    "AttackReport",
    "AutonomousOpponent",
    "Board",
    "BroadsideError",
    "CellState",
    "Coordinate",
    "FleetPlacementFailed",
    "InputSlot",
    "InputTimeout",
    "InvalidCoordinate",
    "InvalidDirection",
    "InvalidPlacementMethod",
    "InvalidShipType",
    "MalformedShipPosition",
    "MatchCancelled",
    "MatchController",
    "MatchPhase",
    "MatchState",
    "Orientation",
    "Player",
    "Ship",
    "ShipAlreadyPlaced",
    "ShipPosition",
    "ShipType",
    "wait_for_input",
]
