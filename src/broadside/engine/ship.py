"""Ship domain model for the Broadside engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .errors import InvalidDirection, InvalidShipType

SHIP_LENGTHS: dict[str, int] = {
    "carrier": 5,
    "battleship": 4,
    "cruiser": 3,
    "submarine": 3,
    "destroyer": 2,
}


@dataclass(frozen=True)
class Coordinate:
    """Immutable board coordinate."""

    row: int
    col: int


class Orientation(Enum):
    """Allowed ship orientations."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"

    @classmethod
    def parse(cls, value: Orientation | str) -> Orientation:
        """Resolve an orientation from an enum member or its name."""
        if isinstance(value, Orientation):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidDirection(f"Direction must be 'horizontal' or 'vertical', got {value!r}.")


class ShipType(Enum):
    """The five ship classes making up a fleet, in placement order."""

    CARRIER = "carrier"
    BATTLESHIP = "battleship"
    CRUISER = "cruiser"
    SUBMARINE = "submarine"
    DESTROYER = "destroyer"

    @property
    def length(self) -> int:
        """Return the number of contiguous cells the ship occupies."""
        return SHIP_LENGTHS[self.value]

    @classmethod
    def parse(cls, value: ShipType | str) -> ShipType:
        """Resolve a ship type from an enum member or a case-insensitive name."""
        if isinstance(value, ShipType):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidShipType(f"Invalid ship type: {value!r}.")


class Ship:
    """A single vessel. Its type is fixed; only the hit counter changes."""

    __slots__ = ("_ship_type", "_hit_count")

    def __init__(self, ship_type: ShipType | str, hit_count: int = 0) -> None:
        if hit_count < 0:
            raise ValueError("hit_count cannot be negative.")
        self._ship_type = ShipType.parse(ship_type)
        self._hit_count = hit_count

    def __repr__(self) -> str:
        return f"Ship(ship_type={self._ship_type!r}, hit_count={self._hit_count})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Ship):
            return NotImplemented
        return (self._ship_type, self._hit_count) == (other._ship_type, other._hit_count)

    __hash__ = None  # type: ignore[assignment]

    @property
    def ship_type(self) -> ShipType:
        return self._ship_type

    @property
    def hit_count(self) -> int:
        return self._hit_count

    @property
    def length(self) -> int:
        return self._ship_type.length

    @property
    def name(self) -> str:
        return self._ship_type.value

    def hit(self) -> None:
        """Register one hit on the ship."""
        self._hit_count += 1

    def is_sunk(self) -> bool:
        """Return True once the ship has taken as many hits as it is long."""
        return self._hit_count >= self.length

    def clone(self) -> Ship:
        """Return an independent copy so callers cannot mutate board state."""
        return Ship(self._ship_type, self._hit_count)
