"""Computer-controlled opponent: random fleet placement and random targeting."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Callable

from broadside.telemetry import get_meter, get_tracer

from .board import AttackOutcome, Board
from .errors import InvalidPlacementMethod
from .player import Player
from .ship import Coordinate, Orientation, ShipType

logger = logging.getLogger(__name__)
tracer = get_tracer("broadside.engine.opponent")
meter = get_meter("broadside.engine.opponent")

FLEET_ATTEMPT_COUNTER = meter.create_counter(
    "broadside_opponent_fleet_attempts",
    unit="1",
    description="Whole-fleet placement attempts made by the opponent",
)


@dataclass(frozen=True)
class AttackReport:
    """Where the opponent fired and what happened."""

    row: int
    col: int
    outcome: AttackOutcome

    @property
    def is_hit(self) -> bool:
        return self.outcome.is_hit


def _attempt_limit(name: str, value: int | None, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"{name} must be a positive integer, got {value!r}.")
    return value


class AutonomousOpponent:
    """Wraps a Player and drives it without human input.

    Fleet placement is a guess-and-check search: each ship gets up to
    ``max_ship_attempts`` random draws, and a fleet that cannot be completed
    is thrown away and restarted, up to ``max_fleet_attempts`` times.
    """

    MAX_FLEET_ATTEMPTS = 100
    MAX_SHIP_ATTEMPTS = 100

    def __init__(
        self,
        player: Player,
        rng: random.Random | None = None,
        *,
        max_fleet_attempts: int | None = None,
        max_ship_attempts: int | None = None,
        remember_attacks: bool = True,
    ) -> None:
        self.player = player
        self._rng = rng if rng is not None else random.Random()
        self.max_fleet_attempts = _attempt_limit(
            "max_fleet_attempts", max_fleet_attempts, self.MAX_FLEET_ATTEMPTS
        )
        self.max_ship_attempts = _attempt_limit(
            "max_ship_attempts", max_ship_attempts, self.MAX_SHIP_ATTEMPTS
        )
        self.remember_attacks = remember_attacks
        self._fired: set[Coordinate] = set()

    @property
    def board(self) -> Board:
        return self.player.board

    def reset(self) -> None:
        """Forget previous targets so a new match starts from scratch."""
        self._fired.clear()

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------
    def place_ships(self, method: str = "random") -> bool:
        """Place the fleet with the named strategy."""
        strategies: dict[str, Callable[[], bool]] = {"random": self.place_fleet}
        strategy = strategies.get(method.strip().lower()) if isinstance(method, str) else None
        if strategy is None:
            logger.error("placement_method_invalid", extra={"method": method})
            raise InvalidPlacementMethod(f"Invalid placement method: {method!r}.")
        return strategy()

    def place_fleet(self) -> bool:
        """Place one ship of every type, or leave the board empty and return False."""
        with tracer.start_as_current_span("opponent.place_fleet") as span:
            for attempt in range(1, self.max_fleet_attempts + 1):
                self.board.reset()
                FLEET_ATTEMPT_COUNTER.add(1, attributes={"owner": self.board.owner})
                if all(self.place_one_ship(ship_type) for ship_type in ShipType):
                    span.set_attribute("fleet.attempts", attempt)
                    span.set_attribute("fleet.placed", True)
                    logger.info(
                        "fleet_placed",
                        extra={"owner": self.board.owner, "attempts": attempt},
                    )
                    return True
                logger.debug(
                    "fleet_attempt_discarded",
                    extra={"owner": self.board.owner, "attempt": attempt},
                )

            self.board.reset()
            span.set_attribute("fleet.attempts", self.max_fleet_attempts)
            span.set_attribute("fleet.placed", False)
            logger.error(
                "fleet_placement_failed",
                extra={"owner": self.board.owner, "attempts": self.max_fleet_attempts},
            )
            return False

    def place_one_ship(self, ship_type: ShipType) -> bool:
        """Try random positions for one ship until it fits or attempts run out."""
        size = self.board.size
        for attempt in range(1, self.max_ship_attempts + 1):
            row = self._rng.randrange(size)
            col = self._rng.randrange(size)
            orientation = self._rng.choice(list(Orientation))
            if self.player.place_ship(row, col, ship_type, orientation):
                logger.debug(
                    "random_ship_placed",
                    extra={
                        "ship_type": ship_type.value,
                        "attempts": attempt,
                        "owner": self.board.owner,
                    },
                )
                return True
        return False

    # ------------------------------------------------------------------
    # Targeting
    # ------------------------------------------------------------------
    def attack(self, opponent: Player) -> AttackReport:
        """Fire at a random cell of the opponent's board."""
        target = self._choose_target(opponent.board.size)
        outcome = self.player.attack(opponent, target.row, target.col)
        return AttackReport(target.row, target.col, outcome)

    def _choose_target(self, size: int) -> Coordinate:
        if self.remember_attacks:
            remaining = [
                Coordinate(row, col)
                for row in range(size)
                for col in range(size)
                if Coordinate(row, col) not in self._fired
            ]
            if remaining:
                target = self._rng.choice(remaining)
                self._fired.add(target)
                return target
        return Coordinate(self._rng.randrange(size), self._rng.randrange(size))
