"""Single-side board management for the Broadside engine."""

from __future__ import annotations

import logging
from enum import Enum

from broadside.telemetry import get_meter, get_tracer

from .errors import InvalidCoordinate, InvalidDirection, InvalidShipType, ShipAlreadyPlaced
from .ship import Coordinate, Orientation, Ship, ShipType

logger = logging.getLogger(__name__)
tracer = get_tracer("broadside.engine.board")
meter = get_meter("broadside.engine.board")

BOARD_SIZE = 10

PLACEMENT_COUNTER = meter.create_counter(
    "broadside_engine_ship_placements",
    unit="1",
    description="Number of attempted ship placements",
)

ATTACK_COUNTER = meter.create_counter(
    "broadside_engine_attacks",
    unit="1",
    description="Attacks received by a board",
)


class AttackOutcome(Enum):
    """Result of an attack. REPEAT marks a cell that was already attacked."""

    HIT = "hit"
    MISS = "miss"
    REPEAT = "repeat"

    @property
    def is_hit(self) -> bool:
        return self is AttackOutcome.HIT


class CellState(Enum):
    """State of a board cell from the perspective of attacks taken."""

    UNKNOWN = "unknown"
    MISS = "miss"
    HIT = "hit"


class Board:
    """A 10×10 grid owning one side's ship placements and attack history.

    Cells hold the ``ShipType`` of the occupying ship, which indexes into the
    ship registry, so every cell of a ship shares one hit counter. Public
    accessors hand out copies; the live grid and registry never leave the board.
    """

    size: int = BOARD_SIZE

    def __init__(self, owner: str = "unknown") -> None:
        self.owner = owner
        self._cells: list[list[ShipType | None]] = []
        self._ships: dict[ShipType, Ship] = {}
        self._placements: dict[ShipType, tuple[Coordinate, ...]] = {}
        self._missed: set[Coordinate] = set()
        self._landed: set[Coordinate] = set()
        self._clear()

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def is_valid_coordinate(self, row: object, col: object) -> bool:
        """Check whether both indices are integers inside the board boundaries."""
        for value in (row, col):
            if isinstance(value, bool) or not isinstance(value, int):
                return False
            if not 0 <= value < self.size:
                return False
        return True

    def _require_coordinate(self, row: object, col: object) -> Coordinate:
        if not self.is_valid_coordinate(row, col):
            logger.error(
                "coordinate_out_of_bounds",
                extra={"row": row, "col": col, "owner": self.owner},
            )
            raise InvalidCoordinate(f"Coordinate ({row!r}, {col!r}) is outside the board.")
        return Coordinate(row, col)  # type: ignore[arg-type]

    def verify_ship_placement(
        self, row: int, col: int, ship_type: ShipType, orientation: Orientation
    ) -> bool:
        """Return True if the ship fits on the board without touching another ship."""
        if orientation is Orientation.HORIZONTAL:
            space_left = self.size - col
        else:
            space_left = self.size - row
        if ship_type.length > space_left:
            return False
        return all(
            self._cells[coord.row][coord.col] is None
            for coord in self._footprint(row, col, ship_type.length, orientation)
        )

    @staticmethod
    def _footprint(
        row: int, col: int, length: int, orientation: Orientation
    ) -> tuple[Coordinate, ...]:
        if orientation is Orientation.HORIZONTAL:
            return tuple(Coordinate(row, col + offset) for offset in range(length))
        return tuple(Coordinate(row + offset, col) for offset in range(length))

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def place_ship(
        self,
        row: int,
        col: int,
        ship_type: ShipType | str,
        direction: Orientation | str,
    ) -> bool:
        """Place a ship starting at (row, col).

        Returns False when the ship overlaps another or runs off the board.
        Malformed input raises instead.
        """
        with tracer.start_as_current_span("board.place_ship") as span:
            span.set_attribute("board.owner", self.owner)
            start = self._require_coordinate(row, col)
            try:
                resolved_type = ShipType.parse(ship_type)
                orientation = Orientation.parse(direction)
            except (InvalidShipType, InvalidDirection) as exc:
                logger.error(
                    "ship_placement_invalid",
                    extra={"owner": self.owner, "reason": str(exc)},
                )
                raise
            span.set_attribute("ship.type", resolved_type.value)
            span.set_attribute("ship.length", resolved_type.length)
            span.set_attribute("ship.start.row", start.row)
            span.set_attribute("ship.start.col", start.col)

            if resolved_type in self._ships:
                logger.error(
                    "ship_already_placed",
                    extra={"owner": self.owner, "ship_type": resolved_type.value},
                )
                raise ShipAlreadyPlaced(f"A {resolved_type.value} is already on the board.")

            if not self.verify_ship_placement(start.row, start.col, resolved_type, orientation):
                PLACEMENT_COUNTER.add(1, attributes={"result": "capacity", "owner": self.owner})
                logger.debug(
                    "ship_placement_rejected",
                    extra={
                        "owner": self.owner,
                        "ship_type": resolved_type.value,
                        "orientation": orientation.value,
                        "row": start.row,
                        "col": start.col,
                    },
                )
                span.set_attribute("placement.result", "capacity")
                return False

            footprint = self._footprint(start.row, start.col, resolved_type.length, orientation)
            for coord in footprint:
                self._cells[coord.row][coord.col] = resolved_type
            self._ships[resolved_type] = Ship(resolved_type)
            self._placements[resolved_type] = footprint

            PLACEMENT_COUNTER.add(1, attributes={"result": "success", "owner": self.owner})
            span.set_attribute("placement.result", "success")
            logger.info(
                "ship_placed",
                extra={
                    "owner": self.owner,
                    "ship_type": resolved_type.value,
                    "orientation": orientation.value,
                    "row": start.row,
                    "col": start.col,
                },
            )
            return True

    def receive_attack(self, row: int, col: int) -> AttackOutcome:
        """Register an attack at this board and return its outcome.

        A cell is resolved at most once; attacking it again returns
        ``AttackOutcome.REPEAT`` and changes nothing.
        """
        with tracer.start_as_current_span("board.receive_attack") as span:
            span.set_attribute("board.owner", self.owner)
            coord = self._require_coordinate(row, col)
            span.set_attribute("attack.row", coord.row)
            span.set_attribute("attack.col", coord.col)

            if coord in self._missed or coord in self._landed:
                span.set_attribute("attack.outcome", AttackOutcome.REPEAT.value)
                ATTACK_COUNTER.add(1, attributes={"outcome": "repeat", "owner": self.owner})
                logger.info(
                    "attack_repeated",
                    extra={"row": coord.row, "col": coord.col, "owner": self.owner},
                )
                return AttackOutcome.REPEAT

            occupant = self._cells[coord.row][coord.col]
            if occupant is not None:
                ship = self._ships[occupant]
                ship.hit()
                self._landed.add(coord)
                span.set_attribute("attack.outcome", AttackOutcome.HIT.value)
                ATTACK_COUNTER.add(1, attributes={"outcome": "hit", "owner": self.owner})
                logger.info(
                    "attack_landed",
                    extra={
                        "row": coord.row,
                        "col": coord.col,
                        "ship_type": occupant.value,
                        "sunk": ship.is_sunk(),
                        "owner": self.owner,
                    },
                )
                return AttackOutcome.HIT

            self._missed.add(coord)
            span.set_attribute("attack.outcome", AttackOutcome.MISS.value)
            ATTACK_COUNTER.add(1, attributes={"outcome": "miss", "owner": self.owner})
            logger.info(
                "attack_missed", extra={"row": coord.row, "col": coord.col, "owner": self.owner}
            )
            return AttackOutcome.MISS

    def reset(self) -> None:
        """Return the board to its empty state."""
        self._clear()
        logger.debug("board_reset", extra={"owner": self.owner})

    def _clear(self) -> None:
        self._cells = [[None] * self.size for _ in range(self.size)]
        self._ships.clear()
        self._placements.clear()
        self._missed.clear()
        self._landed.clear()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def report_ship_status(self) -> bool:
        """Return True if ships have been placed and every one of them is sunk."""
        if not self._ships:
            return False
        return all(ship.is_sunk() for ship in self._ships.values())

    def fleet_complete(self) -> bool:
        """Return True once one ship of every type is on the board."""
        return len(self._ships) == len(ShipType)

    def get_ship_at(self, row: int, col: int) -> Ship | None:
        """Return the live ship occupying a cell. Engine use only."""
        coord = self._require_coordinate(row, col)
        occupant = self._cells[coord.row][coord.col]
        return self._ships[occupant] if occupant is not None else None

    def get_cell_state(self, row: int, col: int) -> CellState:
        coord = self._require_coordinate(row, col)
        if coord in self._landed:
            return CellState.HIT
        if coord in self._missed:
            return CellState.MISS
        return CellState.UNKNOWN

    def ship_cells(self, ship_type: ShipType | str) -> list[Coordinate]:
        """Return the ordered cells a placed ship occupies, or an empty list."""
        return list(self._placements.get(ShipType.parse(ship_type), ()))

    @property
    def grid(self) -> list[list[Ship | None]]:
        """Snapshot of the grid. Cells of one ship share one cloned Ship."""
        clones = {ship_type: ship.clone() for ship_type, ship in self._ships.items()}
        return [
            [clones[cell] if cell is not None else None for cell in row] for row in self._cells
        ]

    @property
    def ships(self) -> dict[ShipType, Ship]:
        return {ship_type: ship.clone() for ship_type, ship in self._ships.items()}

    @property
    def missed_attacks(self) -> set[Coordinate]:
        return set(self._missed)

    @property
    def landed_attacks(self) -> set[Coordinate]:
        return set(self._landed)
