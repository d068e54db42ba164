"""
Scan debouncing.

Handheld scanners and camera detectors can report one physical scan several
times in quick succession. A ScanDebouncer forwards the first signal and
drops anything that arrives less than window_ms after the last signal it
*accepted*, whatever the code. Dropped signals do not extend the window.

The HTTP layer keeps one debouncer per (org_id, station) in a
DebouncerRegistry stored on the Flask app.
"""
from __future__ import annotations

import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, TypeVar

DEFAULT_WINDOW_MS = 500
DEFAULT_MAX_STATIONS = 1024
MAX_STATION_LENGTH = 64

T = TypeVar("T")


@dataclass(frozen=True)
class ScanSignal:
    at_ms: int
    code: str


def should_accept(last_accepted_at: int | None, at_ms: int, window_ms: int) -> bool:
    if last_accepted_at is None:
        return True
    return at_ms - last_accepted_at >= window_ms


class ScanDebouncer:
    def __init__(self, window_ms: int = DEFAULT_WINDOW_MS):
        self.window_ms = window_ms
        self.last_accepted_at: int | None = None

    def offer(self, signal: ScanSignal) -> bool:
        """Record and report whether a signal passes the window."""
        if not should_accept(self.last_accepted_at, signal.at_ms, self.window_ms):
            return False
        self.last_accepted_at = signal.at_ms
        return True

    def feed(self, signal: ScanSignal, on_accept: Callable[[str], T]) -> T | None:
        """Call on_accept(code) for accepted signals; None when suppressed."""
        if not self.offer(signal):
            return None
        return on_accept(signal.code)

    def reset(self) -> None:
        self.last_accepted_at = None


class DebouncerRegistry:
    """
    One debouncer per (org_id, station). Shared across request threads.

    Holds at most max_stations debouncers; the least recently used one is
    dropped to make room. A dropped station simply starts a fresh window.
    """

    def __init__(self, window_ms: int = DEFAULT_WINDOW_MS, max_stations: int = DEFAULT_MAX_STATIONS):
        self.window_ms = window_ms
        self.max_stations = max_stations
        self._debouncers: OrderedDict[tuple[int, str], ScanDebouncer] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._debouncers)

    def get(self, org_id: int, station: str) -> ScanDebouncer:
        key = (org_id, station)
        with self._lock:
            debouncer = self._debouncers.get(key)
            if debouncer is None:
                debouncer = ScanDebouncer(self.window_ms)
                self._debouncers[key] = debouncer
                while len(self._debouncers) > self.max_stations:
                    self._debouncers.popitem(last=False)
            else:
                self._debouncers.move_to_end(key)
            return debouncer

    def offer(self, org_id: int, station: str, signal: ScanSignal) -> bool:
        debouncer = self.get(org_id, station)
        with self._lock:
            return debouncer.offer(signal)

    def clear(self) -> None:
        with self._lock:
            self._debouncers.clear()
