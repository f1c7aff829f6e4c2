"""Stream controllers that decide when an actor is fed from its inputs."""

from __future__ import annotations

import logging
import queue
import random
import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Protocol

_log = logging.getLogger(__name__)


class Actor(Protocol):
    """Something that takes the data a controller releases."""

    def consume(self, data: Any) -> None: ...


class StreamController(Protocol):
    """What a consumer's controller offers to the streamer."""

    actor: Actor

    def get_listener(self, name: str) -> "Listener": ...

    def notify(self, name: str, data: Any) -> None: ...

    def serve(self) -> None: ...

    def generate_dot_label(self) -> str: ...


@dataclass(frozen=True)
class Aggregated:
    """An item tagged with the name of the input it came from."""

    name: str
    data: Any


class Listener:
    """Forwards items from one named input to a controller."""

    def __init__(self, name: str, controller: StreamController) -> None:
        self.name = name
        self.controller = controller

    def notify(self, item: Any) -> None:
        self.controller.notify(self.name, item)


class _Inbox:
    """Named one-item slots; a put waits until the slot has been taken."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._slots: dict[str, deque[Any]] = {}

    def add(self, name: str) -> None:
        with self._cond:
            self._slots[name] = deque()

    def put(self, name: str, item: Any) -> None:
        with self._cond:
            slot = self._slots.get(name)
            if slot is None:
                raise KeyError(f"no input named {name!r}")
            self._cond.wait_for(lambda: not slot)
            slot.append(item)
            self._cond.notify_all()

    def take(self, names: Iterable[str]) -> tuple[str, Any]:
        """Wait until one of ``names`` holds an item and take it."""
        names = list(names)
        with self._cond:
            self._cond.wait_for(lambda: any(self._slots[n] for n in names))
            ready = [n for n in names if self._slots[n]]
            name = random.choice(ready)
            item = self._slots[name].popleft()
            self._cond.notify_all()
            return name, item


def _join_names(names: Iterable[str], separator: str) -> str:
    names = list(names)
    if not names:
        raise ValueError("the controller has no inputs")
    return separator.join(names)


class Conjunctions:
    """Feeds the actor once every input has delivered a new item."""

    def __init__(self, actor: Actor) -> None:
        self.actor = actor
        self._indices: dict[str, int] = {}
        self._inbox = _Inbox()

    def get_listener(self, name: str) -> Listener:
        self._indices[name] = len(self._indices)
        self._inbox.add(name)
        return Listener(name, self)

    def notify(self, name: str, data: Any) -> None:
        self._inbox.put(name, data)

    def serve(self) -> None:
        """Run forever, handing the actor one item from each input per round."""
        if not self._indices:
            raise ValueError("the controller has no inputs")
        names = sorted(self._indices, key=self._indices.__getitem__)
        values: list[Any] = [None] * len(names)
        while True:
            for name in names:
                _, data = self._inbox.take((name,))
                _log.debug("got trigger on channel %s", name)
                values[self._indices[name]] = data
            _log.debug("all the prerequisites met")
            self.actor.consume(list(values))

    def generate_dot_label(self) -> str:
        return _join_names(self._indices, " AND ")


class Disjunctions:
    """Feeds the actor each item from any input, tagged with its input name."""

    def __init__(self, actor: Actor, buf_size: int) -> None:
        self.actor = actor
        self._names: list[str] = []
        self._aggregated: queue.Queue[Aggregated] = queue.Queue(maxsize=max(buf_size, 1))

    def get_listener(self, name: str) -> Listener:
        if name not in self._names:
            self._names.append(name)
        return Listener(name, self)

    def notify(self, name: str, data: Any) -> None:
        if name not in self._names:
            raise KeyError(f"no input named {name!r}")
        self._aggregated.put(Aggregated(name, data))

    def serve(self) -> None:
        """Run forever, handing each tagged item to the actor."""
        while True:
            aggregated = self._aggregated.get()
            _log.debug("new item on channel %s", aggregated.name)
            self.actor.consume(aggregated)

    def generate_dot_label(self) -> str:
        return _join_names(self._names, " OR ")


class CustomizableController:
    """Feeds the actor whenever a predicate accepts the latest input values.

    An input whose item made the predicate fail is not read again until the
    predicate passes or every input has been set aside.
    """

    def __init__(self, actor: Actor, passable: Callable[[list[Any]], bool]) -> None:
        self.actor = actor
        self.passable = passable
        self._indices: dict[str, int] = {}
        self._inbox = _Inbox()

    def get_listener(self, name: str) -> Listener:
        self._indices[name] = len(self._indices)
        self._inbox.add(name)
        return Listener(name, self)

    def notify(self, name: str, data: Any) -> None:
        self._inbox.put(name, data)

    def serve(self) -> None:
        """Run forever, testing each new item against the predicate."""
        if not self._indices:
            raise ValueError("the controller has no inputs")
        names = sorted(self._indices, key=self._indices.__getitem__)
        values: list[Any] = [None] * len(names)
        active = set(names)
        while True:
            name, data = self._inbox.take(n for n in names if n in active)
            values[self._indices[name]] = data
            if self.passable(list(values)):
                _log.debug("passable combination")
                active = set(names)
                self.actor.consume(list(values))
            else:
                _log.debug("check failed, closing channel %s", name)
                active.discard(name)
                if not active:
                    _log.warning("no more active channel")
                    active = set(names)

    def generate_dot_label(self) -> str:
        func_name = getattr(self.passable, "__qualname__", None) or repr(self.passable)
        names = sorted(self._indices, key=self._indices.__getitem__)
        return f"{func_name}({_join_names(names, ', ')})"


class ShortCircuitActor:
    """Passes what it consumes straight on to another consumer's controller."""

    def __init__(self, consumer: Any, name: str) -> None:
        self.consumer = consumer
        self.name = name
        self._incoming: queue.Queue[Any] = queue.Queue(maxsize=1)

    def consume(self, data: Any) -> None:
        self._incoming.put(data)

    def serve(self) -> None:
        """Run forever, forwarding each item under this actor's name."""
        while True:
            item = self._incoming.get()
            self.consumer.controller.notify(self.name, Aggregated(self.name, item))