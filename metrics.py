from __future__ import annotations
from threading import Lock
from typing import Dict


class Metrics:
    """Request counters for one app instance, served at ``GET /metrics``."""

    NAMES = ("requests_total", "errors_total", "upstream_failures_total")

    def __init__(self):
        self._lock = Lock()
        self._counts: Dict[str, int] = dict.fromkeys(self.NAMES, 0)

    def incr(self, name: str) -> None:
        with self._lock:
            self._counts[name] += 1

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counts)
