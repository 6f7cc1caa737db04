from __future__ import annotations
from threading import Lock


class SharedCounter:
    """Process-wide integer owned by the app and handed to the router.

    Only the read-modify-write runs under the lock. Callers that want to
    simulate latency must do it before or after ``increment_and_get``.
    """

    def __init__(self, initial: int = 0):
        if initial < 0:
            raise ValueError("counter cannot start below zero")
        self._lock = Lock()
        self._value = initial

    def increment_and_get(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value
