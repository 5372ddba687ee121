"""Instrumented match controller with telemetry hooks."""

from __future__ import annotations

import time

from broadside.engine.board import AttackOutcome
from broadside.engine.controller import (
    AttackProvider,
    CellOutcomeSink,
    MatchController,
    MatchPhase,
    ShipPositionsProvider,
)
from broadside.engine.errors import InputTimeout, MatchCancelled
from broadside.telemetry import get_logger, get_tracer, record_game_metric


class InstrumentedMatchController(MatchController):
    """Wraps MatchController with a match-level span, metrics, and logging."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._logger = get_logger("broadside.engine")
        self._tracer = get_tracer("broadside.engine")
        self._match_span_cm = None
        self._match_span = None
        self._match_start_time: float | None = None
        self._match_id_counter = 0

    def setup_game(self, provide_human_ship_positions: ShipPositionsProvider) -> None:
        self._start_match_span()
        with self._tracer.start_as_current_span("broadside.engine.setup_game") as span:
            self._logger.info("Match setup started")
            try:
                super().setup_game(provide_human_ship_positions)
            except Exception as exc:
                span.record_exception(exc)
                span.set_attribute("error", True)
                record_game_metric(
                    "broadside_match_setup_failed_total", 1, {"reason": type(exc).__name__}
                )
                self._logger.error("Match setup failed: %s", exc)
                self._close_match_span()
                raise
            human_ships = len(self.human.board.ships)
            opponent_ships = len(self.opponent.board.ships)
            span.set_attribute("human_ships", human_ships)
            span.set_attribute("opponent_ships", opponent_ships)
            record_game_metric(
                "broadside_match_setup_total",
                1,
                {"human_ships": human_ships, "opponent_ships": opponent_ships},
            )
            self._logger.info("Match setup finished")

    def play_round(
        self,
        provide_human_attack: AttackProvider | None = None,
        notify_cell_outcome: CellOutcomeSink | None = None,
    ) -> None:
        try:
            super().play_round(provide_human_attack, notify_cell_outcome)
        except (InputTimeout, MatchCancelled) as exc:
            if self._match_span is not None:
                self._match_span.record_exception(exc)
                self._match_span.set_attribute("abandoned", True)
            record_game_metric(
                "broadside_match_abandoned_total", 1, {"reason": type(exc).__name__}
            )
            self._logger.warning("Match abandoned after %d rounds: %s", self.rounds_played, exc)
            self._close_match_span()
            raise

    def take_turn(
        self,
        row: int | None = None,
        col: int | None = None,
        notify_cell_outcome: CellOutcomeSink | None = None,
    ) -> AttackOutcome | None:
        shooter = self.current_turn
        with self._tracer.start_as_current_span("broadside.engine.take_turn") as span:
            span.set_attribute("match.id", self._match_id_counter)
            span.set_attribute("side", shooter.name)

            outcome = super().take_turn(row, col, notify_cell_outcome)
            if outcome is None:
                return None

            span.set_attribute("shot_outcome", outcome.name)
            span.set_attribute("hit", outcome.is_hit)
            record_game_metric("broadside_shots_total", 1, {"side": shooter.name})
            record_game_metric(
                "broadside_shots_by_result_total",
                1,
                {"side": shooter.name, "result": outcome.value},
            )
            self._logger.info("take_turn side=%s outcome=%s", shooter.name, outcome.name)
            return outcome

    def is_game_over(self) -> bool:
        was_finished = self.phase is MatchPhase.FINISHED
        finished = super().is_game_over()
        if finished and not was_finished:
            self._finish_match()
        return finished

    def _start_match_span(self) -> None:
        self._close_match_span()
        self._match_start_time = time.perf_counter()
        self._match_id_counter += 1
        self._match_span_cm = self._tracer.start_as_current_span("broadside.engine.match")
        self._match_span = self._match_span_cm.__enter__()
        self._match_span.set_attribute("match.id", self._match_id_counter)

    def _finish_match(self) -> None:
        duration = (time.perf_counter() - self._match_start_time) if self._match_start_time else 0.0
        total_shots = sum(
            len(board.missed_attacks) + len(board.landed_attacks)
            for board in (self.human.board, self.opponent.board)
        )
        winner = self.winner.name if self.winner else "unknown"

        record_game_metric("broadside_match_completed_total", 1, {"winner": winner})
        record_game_metric("broadside_match_duration_seconds", duration, {"winner": winner})

        with self._tracer.start_as_current_span("broadside.engine.match_complete") as span:
            span.set_attribute("match.id", self._match_id_counter)
            span.set_attribute("winner", winner)
            span.set_attribute("rounds", self.rounds_played)
            span.set_attribute("shots", total_shots)
            span.set_attribute("duration_ms", duration * 1000)

        if self._match_span is not None:
            self._match_span.set_attribute("winner", winner)
            self._match_span.set_attribute("rounds", self.rounds_played)
            self._match_span.set_attribute("duration_ms", duration * 1000)

        self._logger.info(
            "Match finished. Winner=%s rounds=%d shots=%d duration_s=%.3f",
            winner,
            self.rounds_played,
            total_shots,
            duration,
        )
        self._close_match_span()

    def _close_match_span(self) -> None:
        if self._match_span_cm is not None:
            self._match_span_cm.__exit__(None, None, None)
            self._match_span_cm = None
            self._match_span = None
