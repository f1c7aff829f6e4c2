"""Named stream buffers that fan items out to their listeners."""

from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Protocol

_log = logging.getLogger(__name__)


class Counter:
    """A thread-safe counter with one value per channel label."""

    def __init__(self, name: str, help: str) -> None:
        self.name = name
        self.help = help
        self._lock = threading.Lock()
        self._values: dict[str, int] = {}

    def inc(self, channel: str) -> None:
        with self._lock:
            self._values[channel] = self._values.get(channel, 0) + 1

    def value(self, channel: str) -> int:
        with self._lock:
            return self._values.get(channel, 0)


PRODUCED = Counter("sstreamer_received_msgs_total", "The total number of received messages.")
CONSUMED = Counter("sstreamer_sent_msgs_total", "The total number of sent messages.")


class Comparable(Protocol):
    """A state that can tell whether it equals another state."""

    def equals(self, other: Any) -> bool: ...


class StreamListener(Protocol):
    """Receives every item a buffer hands out."""

    def notify(self, item: Any) -> None: ...


class DefaultStreamBuffer:
    """A bounded queue whose items all reach every listener, in order."""

    def __init__(self, name: str, length: int) -> None:
        if length < 1:
            raise ValueError("length of a default stream buffer must be >= 1")
        self.name = name
        self.listeners: list[StreamListener] = []
        self._items: queue.Queue[Any] = queue.Queue(maxsize=length)

    def add(self, item: Any) -> None:
        """Queue ``item``, waiting while the buffer is full."""
        self._items.put(item)
        PRODUCED.inc(self.name)

    def register_listener(self, listener: StreamListener) -> None:
        self.listeners.append(listener)

    def serve(self) -> None:
        """Run forever, handing each queued item to every listener."""
        while True:
            item = self._items.get()
            for listener in self.listeners:
                listener.notify(item)
            CONSUMED.inc(self.name)


class StaticStreamBuffer:
    """Holds a state; listeners hear only about states that differ from the last."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.state: Comparable | None = None
        self.listeners: list[StreamListener] = []
        self._items: queue.Queue[Comparable] = queue.Queue(maxsize=1)

    def add(self, item: Any) -> None:
        """Queue a new state; raise TypeError if it cannot be compared."""
        if not callable(getattr(item, "equals", None)):
            raise TypeError(f"non comparable object got on channel {self.name!r}")
        self._items.put(item)
        PRODUCED.inc(self.name)

    def register_listener(self, listener: StreamListener) -> None:
        self.listeners.append(listener)

    def serve(self) -> None:
        """Run forever, passing on each state unless it repeats the current one."""
        while True:
            item = self._items.get()
            CONSUMED.inc(self.name)
            if self.state is not None and self.state.equals(item):
                _log.warning("duplicate state got on channel %s", self.name)
                continue
            self.state = item
            for listener in self.listeners:
                listener.notify(item)