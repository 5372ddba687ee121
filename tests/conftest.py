"""Shared test fixtures."""

from __future__ import annotations

from typing import Sequence, TypeVar

import pytest

from broadside.engine.controller import ShipPosition

T = TypeVar("T")


class ScriptedRandom:
    """Stand-in for random.Random that replays a fixed script.

    ``randrange`` pops scripted integers and falls back to ``default`` once the
    script is exhausted; ``choice`` always picks the first element.
    """

    def __init__(self, values: Sequence[int] = (), default: int = 0) -> None:
        self.values = list(values)
        self.default = default
        self.randrange_calls: list[int] = []

    def randrange(self, stop: int) -> int:
        self.randrange_calls.append(stop)
        if self.values:
            return self.values.pop(0)
        return self.default

    def choice(self, seq: Sequence[T]) -> T:
        return seq[0]


@pytest.fixture
def human_fleet() -> list[ShipPosition]:
    return [
        ShipPosition(0, 0, "carrier", "horizontal"),
        ShipPosition(2, 0, "battleship", "vertical"),
        ShipPosition(5, 2, "cruiser", "horizontal"),
        ShipPosition(7, 5, "submarine", "vertical"),
        ShipPosition(9, 7, "destroyer", "horizontal"),
    ]


@pytest.fixture
def scripted_random() -> type[ScriptedRandom]:
    return ScriptedRandom
