"""High-level match tests."""

import threading

import pytest

from broadside.config import MatchConfig
from broadside.engine.board import AttackOutcome, CellState
from broadside.engine.controller import (
    MatchController,
    MatchPhase,
    ShipPosition,
    Side,
    coerce_attack,
)
from broadside.engine.errors import (
    FleetPlacementFailed,
    InputTimeout,
    InvalidPlacementMethod,
    MalformedShipPosition,
    MatchCancelled,
    ShipAlreadyPlaced,
)
from broadside.engine.inputs import InputSlot
from broadside.engine.opponent import AutonomousOpponent
from broadside.engine.player import Player
from broadside.engine.ship import Coordinate, ShipType

FAST = dict(ship_poll_interval=0.001, attack_poll_interval=0.001)


@pytest.fixture
def controller() -> MatchController:
    return MatchController.create(MatchConfig(rng_seed=42, **FAST))


def _opponent_cells(controller: MatchController) -> list[Coordinate]:
    board = controller.opponent.board
    return [coord for ship_type in ShipType for coord in board.ship_cells(ship_type)]


def _all_cells() -> list[tuple[int, int]]:
    return [(row, col) for row in range(10) for col in range(10)]


def test_controller_starts_awaiting_setup(controller: MatchController) -> None:
    assert controller.phase is MatchPhase.AWAITING_SETUP
    assert controller.current_turn is Side.HUMAN
    assert controller.winner is None
    assert not controller.game_over
    assert controller.human.board.owner == "human"
    assert controller.opponent.board.owner == "opponent"


def test_setup_game_places_both_fleets(controller, human_fleet) -> None:
    controller.setup_game(lambda: human_fleet)

    assert controller.phase is MatchPhase.IN_PROGRESS
    assert controller.human.board.fleet_complete()
    assert controller.opponent.board.fleet_complete()
    assert controller.human.board.ship_cells("carrier") == [Coordinate(0, c) for c in range(5)]


def test_setup_game_waits_for_five_positions(controller, human_fleet) -> None:
    recorded: list[ShipPosition] = []
    pending = list(human_fleet)

    def provider():
        if pending:
            recorded.append(pending.pop(0))
        return list(recorded)

    controller.setup_game(provider)
    assert controller.phase is MatchPhase.IN_PROGRESS
    assert len(recorded) == 5


def test_setup_game_accepts_mapping_records(controller, human_fleet) -> None:
    records = [
        {
            "row": p.row,
            "col": p.col,
            "ship_type": p.ship_type,
            "direction": p.direction,
        }
        for p in human_fleet
    ]
    controller.setup_game(lambda: records)
    assert controller.human.board.fleet_complete()


def test_malformed_record_aborts_setup(controller, human_fleet) -> None:
    records = list(human_fleet[:4]) + [{"row": 9, "col": 7, "ship_type": "destroyer"}]
    with pytest.raises(MalformedShipPosition):
        controller.setup_game(lambda: records)
    assert controller.phase is MatchPhase.AWAITING_SETUP
    assert controller.human.board.ships == {}
    assert controller.opponent.board.ships == {}


def test_human_ship_that_does_not_fit_aborts_setup(controller, human_fleet) -> None:
    records = list(human_fleet[:4]) + [ShipPosition(9, 9, "destroyer", "horizontal")]
    with pytest.raises(FleetPlacementFailed):
        controller.setup_game(lambda: records)
    assert controller.phase is MatchPhase.AWAITING_SETUP
    assert controller.human.board.ships == {}


def test_duplicate_ship_type_aborts_setup(controller, human_fleet) -> None:
    records = list(human_fleet[:4]) + [ShipPosition(9, 0, "carrier", "horizontal")]
    with pytest.raises(ShipAlreadyPlaced):
        controller.setup_game(lambda: records)
    assert controller.human.board.ships == {}


def test_opponent_placement_failure_is_fatal(human_fleet, scripted_random) -> None:
    opponent = AutonomousOpponent(
        Player(), scripted_random(default=9), max_fleet_attempts=2, max_ship_attempts=2
    )
    controller = MatchController(Player(), opponent, MatchConfig(**FAST))

    with pytest.raises(FleetPlacementFailed):
        controller.setup_game(lambda: human_fleet)
    assert controller.phase is MatchPhase.AWAITING_SETUP
    assert controller.opponent.board.ships == {}
    assert controller.human.board.ships == {}


def test_unknown_opponent_placement_method(controller) -> None:
    with pytest.raises(InvalidPlacementMethod):
        controller.place_opponent_ships("by_hand")


def test_play_round_requires_setup(controller) -> None:
    with pytest.raises(RuntimeError):
        controller.play_round()


def test_round_is_one_shot_each(controller, human_fleet) -> None:
    controller.setup_game(lambda: human_fleet)
    target = _opponent_cells(controller)[0]
    notifications: list[tuple[int, int, Side, bool]] = []

    controller.play_round(
        lambda: {"row": target.row, "col": target.col},
        lambda row, col, side, hit: notifications.append((row, col, side, hit)),
    )

    assert notifications[0] == (target.row, target.col, Side.OPPONENT, True)
    assert notifications[1][2] is Side.HUMAN
    assert len(notifications) == 2
    assert controller.current_turn is Side.HUMAN
    assert controller.rounds_played == 1
    assert len(controller.human.board.missed_attacks | controller.human.board.landed_attacks) == 1


def test_round_without_provider_fires_at_origin(controller, human_fleet) -> None:
    controller.setup_game(lambda: human_fleet)
    controller.play_round()
    fired = controller.opponent.board.missed_attacks | controller.opponent.board.landed_attacks
    assert fired == {Coordinate(0, 0)}


def test_round_accepts_an_input_slot(controller, human_fleet) -> None:
    controller.setup_game(lambda: human_fleet)
    slot: InputSlot[Coordinate] = InputSlot()
    slot.offer(Coordinate(4, 4))
    controller.play_round(slot)
    assert controller.opponent.board.get_cell_state(4, 4).value in {"hit", "miss"}


def test_human_sinking_last_ship_ends_round_early(controller, human_fleet) -> None:
    controller.setup_game(lambda: human_fleet)
    cells = _opponent_cells(controller)
    for coord in cells[:-1]:
        assert controller.opponent.board.receive_attack(coord.row, coord.col) is AttackOutcome.HIT
    last = cells[-1]
    notifications: list[Side] = []

    controller.play_round(lambda: (last.row, last.col), lambda r, c, side, hit: notifications.append(side))

    assert notifications == [Side.OPPONENT]
    assert controller.phase is MatchPhase.FINISHED
    assert controller.winner is Side.HUMAN
    assert controller.human.board.missed_attacks == set()
    assert controller.human.board.landed_attacks == set()

    controller.play_round(lambda: (0, 0), lambda r, c, side, hit: notifications.append(side))
    assert notifications == [Side.OPPONENT]


def test_opponent_wins_when_human_fleet_sunk(controller, human_fleet) -> None:
    controller.setup_game(lambda: human_fleet)
    for ship_type in ShipType:
        for coord in controller.human.board.ship_cells(ship_type):
            controller.human.board.receive_attack(coord.row, coord.col)
    assert controller.is_game_over() is True
    assert controller.winner is Side.OPPONENT


def test_repeated_hit_is_not_reported_again(controller, human_fleet) -> None:
    controller.setup_game(lambda: human_fleet)
    target = _opponent_cells(controller)[0]
    notifications: list[tuple[int, int, Side, bool]] = []

    def sink(row: int, col: int, side: Side, hit: bool) -> None:
        notifications.append((row, col, side, hit))

    controller.play_round(lambda: (target.row, target.col), sink)
    controller.play_round(lambda: (target.row, target.col), sink)

    assert [n for n in notifications if n[2] is Side.OPPONENT] == [
        (target.row, target.col, Side.OPPONENT, True)
    ]
    assert [n[2] for n in notifications] == [Side.OPPONENT, Side.HUMAN, Side.HUMAN]
    assert controller.opponent.board.get_cell_state(target.row, target.col) is CellState.HIT
    assert controller.rounds_played == 2

    assert controller.take_turn(target.row, target.col, sink) is AttackOutcome.REPEAT
    assert controller.current_turn is Side.OPPONENT
    assert len(notifications) == 3


def test_attack_wait_timeout_does_not_count_a_round(human_fleet) -> None:
    controller = MatchController.create(MatchConfig(rng_seed=42, input_timeout=0.01, **FAST))
    controller.setup_game(lambda: human_fleet)

    with pytest.raises(InputTimeout):
        controller.play_round(lambda: None)

    assert controller.rounds_played == 0
    assert controller.get_state().rounds_played == 0
    assert controller.current_turn is Side.HUMAN
    assert controller.phase is MatchPhase.IN_PROGRESS
    assert controller.opponent.board.missed_attacks == set()
    assert controller.opponent.board.landed_attacks == set()


def test_stop_cancels_pending_attack(controller, human_fleet) -> None:
    controller.setup_game(lambda: human_fleet)
    timer = threading.Timer(0.05, controller.stop)
    timer.start()
    try:
        with pytest.raises(MatchCancelled):
            controller.play_round(lambda: None)
    finally:
        timer.cancel()

    assert controller.rounds_played == 0
    assert controller.current_turn is Side.HUMAN
    assert controller.human.board.missed_attacks == set()
    assert controller.human.board.landed_attacks == set()


def test_full_match_finishes_within_board_area(controller, human_fleet) -> None:
    targets = iter(_all_cells())
    announced: list[Side | None] = []

    winner = controller.play_match(
        lambda: human_fleet,
        lambda: next(targets),
        announced.append,
    )

    assert controller.phase is MatchPhase.FINISHED
    assert winner in {Side.HUMAN, Side.OPPONENT}
    assert announced == [winner]
    assert controller.rounds_played <= 100


def test_full_match_with_fallback_attack_is_won_by_opponent(controller, human_fleet) -> None:
    winner = controller.play_match(lambda: human_fleet)
    assert winner is Side.OPPONENT
    assert controller.rounds_played <= 100
    assert controller.human.board.report_ship_status()


def test_reset_restores_initial_state(controller, human_fleet) -> None:
    controller.play_match(lambda: human_fleet)
    controller.reset()

    assert controller.phase is MatchPhase.AWAITING_SETUP
    assert controller.current_turn is Side.HUMAN
    assert controller.winner is None
    assert controller.rounds_played == 0
    for side in Side:
        board = controller.player_for(side).board
        assert board.ships == {}
        assert board.missed_attacks == set()
        assert board.landed_attacks == set()


def test_match_can_be_replayed(controller, human_fleet) -> None:
    first = controller.play_match(lambda: human_fleet)
    second = controller.play_match(lambda: human_fleet)
    assert first is not None and second is not None
    assert controller.phase is MatchPhase.FINISHED


def test_stop_cancels_pending_setup(controller) -> None:
    timer = threading.Timer(0.05, controller.stop)
    timer.start()
    try:
        with pytest.raises(MatchCancelled):
            controller.setup_game(lambda: [])
    finally:
        timer.cancel()
    assert controller.phase is MatchPhase.AWAITING_SETUP


def test_get_state_snapshot(controller, human_fleet) -> None:
    controller.setup_game(lambda: human_fleet)
    controller.play_round(lambda: (9, 9))
    state = controller.get_state()

    assert state.phase is MatchPhase.IN_PROGRESS
    assert state.current_turn is Side.HUMAN
    assert state.rounds_played == 1
    opponent_view = state.boards[Side.OPPONENT]
    assert Coordinate(9, 9) in opponent_view.missed_attacks | opponent_view.landed_attacks
    assert set(state.boards[Side.HUMAN].ships) == set(ShipType)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (Coordinate(1, 2), Coordinate(1, 2)),
        ({"row": 3, "col": 4}, Coordinate(3, 4)),
        ((5, 6), Coordinate(5, 6)),
        (None, None),
        ({"row": 3}, None),
        ({"row": True, "col": 1}, None),
        ((1.0, 2), None),
        ("A5", None),
    ],
)
def test_coerce_attack(value, expected) -> None:
    assert coerce_attack(value) == expected
