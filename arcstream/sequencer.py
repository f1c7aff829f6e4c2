"""Buffers messages until their filter lets them through."""

from __future__ import annotations

from functools import cmp_to_key
from typing import Any, Iterable

from arcstream.filters import SequenceError, SequenceFilter


def remove_nones(values: Iterable[Any]) -> list[Any]:
    """Return the values that are not None, in their original order."""
    return [value for value in values if value is not None]


class Sequencer:
    """Holds back messages a filter rejects and retries them when its state changes."""

    def __init__(self, filter: SequenceFilter | None) -> None:
        self.buffer: list[Any] = []
        self.filter = filter

    def offer(self, msg: Any) -> list[Any]:
        """Offer ``msg`` and return every message released as a result."""
        if self.filter is None or not self.filter.check(msg):
            return [msg]

        new_msg, passed, changed = self.filter.filter(msg)

        if new_msg is not None and not changed:
            if passed:
                return [new_msg]
            self.buffer.append(new_msg)
            return []

        if changed and (new_msg is None) != passed:
            released = [] if new_msg is None else [new_msg]
            released.extend(self._retry_cached())
            return released

        raise SequenceError(
            f"invalid filter result: message={new_msg!r}, passed={passed}, changed={changed}"
        )

    def _retry_cached(self) -> list[Any]:
        released = []
        kept = []
        for item in self.buffer:
            if item is None:
                continue
            new_msg, passed, _ = self.filter.filter(item)
            if new_msg is not None and passed:
                released.append(new_msg)
            else:
                kept.append(item)
        self.buffer = kept
        return released

    def to_buffer(self, msg: Any) -> None:
        """Add ``msg`` to the buffer, keeping it stably ordered by the filter."""
        self.buffer.append(msg)
        less = self.filter.less

        def compare(lhs: Any, rhs: Any) -> int:
            if less(lhs, rhs):
                return -1
            if less(rhs, lhs):
                return 1
            return 0

        self.buffer.sort(key=cmp_to_key(compare))


class Sequencers:
    """A chain of sequencers; what one releases is offered to the next."""

    def __init__(self, sequencers: Iterable[Sequencer]) -> None:
        self.sequencers = list(sequencers)
        if not self.sequencers:
            raise ValueError("at least one sequencer is required")

    def offer(self, msg: Any) -> list[Any]:
        first, *rest = self.sequencers
        released = first.offer(msg)
        for sequencer in rest:
            released = [out for item in released for out in sequencer.offer(item)]
        return released

    def batch_offer(self, msgs: Iterable[Any]) -> list[Any]:
        return [out for msg in msgs for out in self.offer(msg)]