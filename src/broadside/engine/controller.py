"""Match controller sequencing setup and turns between a human and the computer."""

from __future__ import annotations

import logging
import random
import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ClassVar

from broadside.config import MatchConfig
from broadside.telemetry import get_meter, get_tracer

from .board import AttackOutcome, Board
from .errors import BroadsideError, FleetPlacementFailed, MalformedShipPosition
from .inputs import wait_for_input
from .opponent import AutonomousOpponent
from .player import Player
from .ship import Coordinate, Orientation, Ship, ShipType

logger = logging.getLogger(__name__)
tracer = get_tracer("broadside.engine.controller")
meter = get_meter("broadside.engine.controller")

SHOT_COUNTER = meter.create_counter(
    "broadside_engine_shots",
    unit="1",
    description="Shots fired during matches",
)

ROUND_COUNTER = meter.create_counter(
    "broadside_engine_rounds",
    unit="1",
    description="Rounds played during matches",
)

DEFAULT_ATTACK = Coordinate(0, 0)


class MatchPhase(Enum):
    """High-level lifecycle of a match."""

    AWAITING_SETUP = "awaiting_setup"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class Side(Enum):
    """The two sides of a match."""

    HUMAN = "human"
    OPPONENT = "opponent"

    def opponent(self) -> Side:
        """Return the opposing side."""
        return Side.OPPONENT if self is Side.HUMAN else Side.HUMAN


@dataclass(frozen=True)
class ShipPosition:
    """One human placement request."""

    REQUIRED_KEYS: ClassVar[tuple[str, ...]] = ("row", "col", "ship_type", "direction")

    row: int
    col: int
    ship_type: ShipType | str
    direction: Orientation | str

    @classmethod
    def from_record(cls, record: Any) -> ShipPosition:
        """Accept a ShipPosition or a mapping carrying every required key."""
        if isinstance(record, ShipPosition):
            return record
        if isinstance(record, Mapping) and all(key in record for key in cls.REQUIRED_KEYS):
            return cls(**{key: record[key] for key in cls.REQUIRED_KEYS})
        raise MalformedShipPosition(f"Ship position has invalid keys: {record!r}.")


@dataclass(frozen=True)
class BoardSnapshot:
    """Copy of one side's board for state queries."""

    ships: dict[ShipType, Ship]
    missed_attacks: frozenset[Coordinate]
    landed_attacks: frozenset[Coordinate]


@dataclass(frozen=True)
class MatchState:
    """Immutable snapshot of the current match."""

    phase: MatchPhase
    current_turn: Side
    winner: Side | None
    rounds_played: int
    boards: dict[Side, BoardSnapshot]


ShipPositionsProvider = Callable[[], "Sequence[ShipPosition | Mapping[str, Any]] | None"]
AttackProvider = Callable[[], Any]
CellOutcomeSink = Callable[[int, int, Side, bool], None]
WinnerSink = Callable[["Side | None"], None]


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def coerce_attack(value: Any) -> Coordinate | None:
    """Turn a provider value into a Coordinate, or None if it is not ready."""
    if isinstance(value, Coordinate):
        return value
    if isinstance(value, Mapping):
        row, col = value.get("row"), value.get("col")
    elif isinstance(value, (tuple, list)) and len(value) == 2:
        row, col = value
    else:
        return None
    if _is_index(row) and _is_index(col):
        return Coordinate(row, col)
    return None


class MatchController:
    """Coordinates setup and strict turn alternation between the two sides.

    The human always fires first in a round. Input arrives through the
    provider callables handed to ``setup_game`` and ``play_round``; outcomes
    leave through the ``notify_cell_outcome`` and ``announce_winner`` sinks.
    """

    def __init__(
        self,
        human: Player,
        opponent: AutonomousOpponent,
        config: MatchConfig | None = None,
    ) -> None:
        self.human = human
        self.opponent = opponent
        self.config = config or MatchConfig()
        self.phase: MatchPhase = MatchPhase.AWAITING_SETUP
        self.current_turn: Side = Side.HUMAN
        self.winner: Side | None = None
        self.rounds_played = 0
        self._stop = threading.Event()

    @classmethod
    def create(cls, config: MatchConfig | None = None) -> MatchController:
        """Build a controller with fresh boards for both sides."""
        resolved = config or MatchConfig()
        human = Player(Board(owner=Side.HUMAN.value))
        opponent = AutonomousOpponent(
            Player(Board(owner=Side.OPPONENT.value)),
            random.Random(resolved.rng_seed),
            max_fleet_attempts=resolved.max_fleet_attempts,
            max_ship_attempts=resolved.max_ship_attempts,
        )
        return cls(human, opponent, resolved)

    @property
    def game_over(self) -> bool:
        return self.phase is MatchPhase.FINISHED

    def player_for(self, side: Side) -> Player:
        return self.human if side is Side.HUMAN else self.opponent.player

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def reset(self) -> None:
        """Return the controller and both boards to their initial state."""
        self.phase = MatchPhase.AWAITING_SETUP
        self.current_turn = Side.HUMAN
        self.winner = None
        self.rounds_played = 0
        self._stop.clear()
        self.human.board.reset()
        self.opponent.board.reset()
        self.opponent.reset()
        logger.debug("match_reset")

    def stop(self) -> None:
        """Interrupt any pending input wait with ``MatchCancelled``."""
        self._stop.set()

    def setup_game(self, provide_human_ship_positions: ShipPositionsProvider) -> None:
        """Reset, place the human fleet from the provider, then the computer fleet."""
        with tracer.start_as_current_span("match.setup_game") as span:
            self.reset()
            positions = wait_for_input(
                provide_human_ship_positions,
                lambda value: value is not None and len(value) >= len(ShipType),
                poll_interval=self.config.ship_poll_interval,
                timeout=self.config.input_timeout,
                stop=self._stop,
            )
            try:
                self.place_human_ships(positions)
                self.place_opponent_ships("random")
            except BroadsideError:
                self.human.board.reset()
                self.opponent.board.reset()
                span.set_attribute("setup.result", "failed")
                raise

            self.phase = MatchPhase.IN_PROGRESS
            span.set_attribute("setup.result", "success")
            logger.info(
                "match_setup_complete",
                extra={"phase": self.phase.value, "current_turn": self.current_turn.value},
            )

    def place_human_ships(self, positions: Sequence[Any]) -> None:
        """Apply every human placement; all records are validated before any is placed."""
        records = [ShipPosition.from_record(record) for record in positions]
        for record in records:
            placed = self.human.place_ship(record.row, record.col, record.ship_type, record.direction)
            if not placed:
                ship_name = ShipType.parse(record.ship_type).value
                logger.error(
                    "human_ship_does_not_fit",
                    extra={"ship_type": ship_name, "row": record.row, "col": record.col},
                )
                raise FleetPlacementFailed(
                    f"The {ship_name} at ({record.row}, {record.col}) does not fit."
                )
        if not self.human.board.fleet_complete():
            raise FleetPlacementFailed("The human fleet is missing ships.")

    def place_opponent_ships(self, method: str = "random") -> None:
        if not self.opponent.place_ships(method):
            raise FleetPlacementFailed(
                f"Computer fleet could not be placed after "
                f"{self.opponent.max_fleet_attempts} attempts."
            )

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------
    def play_round(
        self,
        provide_human_attack: AttackProvider | None = None,
        notify_cell_outcome: CellOutcomeSink | None = None,
    ) -> None:
        """Play one human shot and, unless that ends the match, one computer shot."""
        if self.is_game_over():
            return
        if self.phase is not MatchPhase.IN_PROGRESS:
            logger.error("round_rejected_match_not_started", extra={"phase": self.phase.value})
            raise RuntimeError("Match has not been set up.")

        with tracer.start_as_current_span("match.play_round") as span:
            target = self._next_human_attack(provide_human_attack)
            self.rounds_played += 1
            span.set_attribute("round", self.rounds_played)
            ROUND_COUNTER.add(1)

            self.take_turn(target.row, target.col, notify_cell_outcome)
            if self.is_game_over():
                span.set_attribute("match.winner", self.winner.value)  # type: ignore[union-attr]
                return

            self.take_turn(notify_cell_outcome=notify_cell_outcome)
            if self.is_game_over():
                span.set_attribute("match.winner", self.winner.value)  # type: ignore[union-attr]

    def take_turn(
        self,
        row: int | None = None,
        col: int | None = None,
        notify_cell_outcome: CellOutcomeSink | None = None,
    ) -> AttackOutcome | None:
        """Fire one shot for the side whose turn it is, then pass the turn."""
        if self.game_over:
            return None

        shooter = self.current_turn
        target_side = shooter.opponent()
        if shooter is Side.HUMAN:
            if row is None or col is None:
                row, col = DEFAULT_ATTACK.row, DEFAULT_ATTACK.col
            outcome = self.human.attack(self.opponent.player, row, col)
        else:
            report = self.opponent.attack(self.human)
            row, col, outcome = report.row, report.col, report.outcome

        SHOT_COUNTER.add(1, attributes={"result": outcome.value, "side": shooter.value})
        logger.info(
            "shot_fired",
            extra={"side": shooter.value, "row": row, "col": col, "outcome": outcome.value},
        )
        # A repeat leaves the cell as it was, so there is nothing to redraw.
        if notify_cell_outcome is not None and outcome is not AttackOutcome.REPEAT:
            notify_cell_outcome(row, col, target_side, outcome.is_hit)

        self.current_turn = target_side
        return outcome

    def _next_human_attack(self, provider: AttackProvider | None) -> Coordinate:
        if provider is None:
            return DEFAULT_ATTACK
        value = wait_for_input(
            provider,
            lambda candidate: coerce_attack(candidate) is not None,
            poll_interval=self.config.attack_poll_interval,
            timeout=self.config.input_timeout,
            stop=self._stop,
        )
        return coerce_attack(value)  # type: ignore[return-value]

    def is_game_over(self) -> bool:
        """Check both fleets, finishing the match once either is sunk."""
        opponent_sunk = self.opponent.board.report_ship_status()
        human_sunk = self.human.board.report_ship_status()
        if self.phase is not MatchPhase.FINISHED and (opponent_sunk or human_sunk):
            self.phase = MatchPhase.FINISHED
            self.winner = Side.HUMAN if opponent_sunk else Side.OPPONENT
            logger.info(
                "match_finished",
                extra={"winner": self.winner.value, "rounds": self.rounds_played},
            )
        return self.phase is MatchPhase.FINISHED

    def play_match(
        self,
        provide_human_ship_positions: ShipPositionsProvider,
        provide_human_attack: AttackProvider | None = None,
        announce_winner: WinnerSink | None = None,
        notify_cell_outcome: CellOutcomeSink | None = None,
    ) -> Side | None:
        """Set up, play rounds until a fleet is sunk, then report the winner."""
        self.setup_game(provide_human_ship_positions)
        while not self.is_game_over():
            self.play_round(provide_human_attack, notify_cell_outcome)
        if announce_winner is not None:
            announce_winner(self.winner)
        return self.winner

    def get_state(self) -> MatchState:
        """Return an immutable view of the current match."""
        boards = {
            side: BoardSnapshot(
                ships=self.player_for(side).board.ships,
                missed_attacks=frozenset(self.player_for(side).board.missed_attacks),
                landed_attacks=frozenset(self.player_for(side).board.landed_attacks),
            )
            for side in Side
        }
        return MatchState(
            phase=self.phase,
            current_turn=self.current_turn,
            winner=self.winner,
            rounds_played=self.rounds_played,
            boards=boards,
        )
