"""Objects a caller can block on until a result is handed over."""

from __future__ import annotations

import threading
from typing import Any, Callable


class WaitObject:
    """Holds one result; waiters block until it is set or their timeout passes."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._data: Any = None

    def update(self, data: Any) -> None:
        """Store ``data`` and wake every waiter."""
        with self._lock:
            self._data = data
            self._done.set()

    def get(self) -> Any:
        with self._lock:
            return self._data

    def wait(self, timeout: float | None = None) -> Any:
        """Block until updated and return the data; return None on timeout."""
        if not self._done.wait(timeout):
            with self._lock:
                if not self._done.is_set():
                    self._data = None
                    return None
        return self.get()


class WaitObjects:
    """Wait objects keyed by message id."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._waiters: dict[int, WaitObject] = {}

    def add_waiter(self, msgid: int) -> WaitObject:
        """Register and return a fresh wait object for ``msgid``."""
        waiter = WaitObject()
        with self._lock:
            self._waiters[msgid] = waiter
        return waiter

    def _find(self, msgid: int) -> WaitObject | None:
        with self._lock:
            return self._waiters.get(msgid)

    def update(self, msgid: int, data: Any) -> None:
        """Hand ``data`` to the waiter for ``msgid``, if there is one."""
        waiter = self._find(msgid)
        if waiter is not None:
            waiter.update(data)

    def pop_data(self, msgid: int) -> Any:
        """Remove the waiter for ``msgid`` and return its data, or None."""
        with self._lock:
            waiter = self._waiters.pop(msgid, None)
        return None if waiter is None else waiter.get()

    def wait(self, msgid: int, timeout: float | None = None) -> Any:
        """Block on the waiter for ``msgid``; return None at once if there is none."""
        waiter = self._find(msgid)
        if waiter is None:
            return None
        return waiter.wait(timeout)


class SyncTimer:
    """Calls ``action`` every ``interval`` seconds on a background thread."""

    def __init__(self, interval: float, action: Callable[[], Any]) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self.action = action
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError("timer already running")
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="sync-timer", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.action()

    def stop(self) -> None:
        """Stop ticking and wait for the background thread to finish."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def __enter__(self) -> SyncTimer:
        self.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.stop()