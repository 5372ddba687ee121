"""Bridges between the synchronous engine and externally driven input."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Generic, TypeVar

from .errors import InputTimeout, MatchCancelled

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InputSlot(Generic[T]):
    """Single-shot mailbox a presentation layer fills and the engine drains.

    ``offer`` stores a value and wakes any waiter; ``take`` blocks until a
    value is present and removes it. Calling the slot pops the pending value
    without blocking, so a slot also works as a polled provider.
    """

    def __init__(self) -> None:
        self._condition = threading.Condition()
        self._value: T | None = None
        self._ready = False

    def offer(self, value: T) -> None:
        with self._condition:
            self._value = value
            self._ready = True
            self._condition.notify_all()

    def take(
        self, timeout: float | None = None, stop: threading.Event | None = None
    ) -> T:
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._condition:
            while not self._ready:
                if stop is not None and stop.is_set():
                    raise MatchCancelled("Match stopped while waiting for input.")
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    raise InputTimeout("Timed out waiting for input.")
                # Wake periodically so a stop request is noticed.
                wait_for = 0.1 if stop is not None else remaining
                if remaining is not None and wait_for is not None:
                    wait_for = min(wait_for, remaining)
                self._condition.wait(wait_for)
            return self._pop()

    def clear(self) -> None:
        with self._condition:
            self._value = None
            self._ready = False

    def __call__(self) -> T | None:
        with self._condition:
            if not self._ready:
                return None
            return self._pop()

    def _pop(self) -> T:
        value = self._value
        self._value = None
        self._ready = False
        return value  # type: ignore[return-value]


def wait_for_input(
    provider: Callable[[], T | None],
    is_ready: Callable[[T | None], bool],
    *,
    poll_interval: float,
    timeout: float | None = None,
    stop: threading.Event | None = None,
) -> T:
    """Return the provider's value once ``is_ready`` accepts it.

    An ``InputSlot`` is waited on directly. Any other callable is polled,
    sleeping on ``stop`` between polls so that stopping the match ends the wait.
    """
    stop = stop if stop is not None else threading.Event()
    deadline = None if timeout is None else time.monotonic() + timeout
    if isinstance(provider, InputSlot):
        while True:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            value = provider.take(timeout=remaining, stop=stop)
            if is_ready(value):
                return value
            logger.debug("input_rejected", extra={"value": repr(value)})

    while True:
        value = provider()
        if is_ready(value):
            return value  # type: ignore[return-value]
        if deadline is not None and time.monotonic() >= deadline:
            raise InputTimeout("Timed out waiting for input.")
        if stop.wait(poll_interval):
            raise MatchCancelled("Match stopped while waiting for input.")
