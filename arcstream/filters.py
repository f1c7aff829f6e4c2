"""Message filters that decide when a sequencer may release a message."""

from __future__ import annotations

from typing import Any, Protocol


class SequenceError(Exception):
    """Raised when a message arrives that breaks the expected sequence."""


class Message(Protocol):
    """A message carrying a name and the height it belongs to."""

    @property
    def name(self) -> str: ...

    @property
    def height(self) -> int: ...


class SequenceFilter(Protocol):
    """What a sequencer needs from a filter."""

    def check(self, msg: Any) -> bool: ...

    def less(self, lhs: Any, rhs: Any) -> bool: ...

    def filter(self, msg: Any) -> tuple[Any, bool, bool]: ...


class HeightFilter:
    """Releases messages of the current height; a signal message advances it."""

    def __init__(self, names: list[str], signal_msg: str, height: int) -> None:
        self.height = height
        self.whitelist = list(names)
        self.signal_msg = signal_msg

    def less(self, lhs: Message, rhs: Message) -> bool:
        return lhs.height < rhs.height

    def check(self, msg: Message) -> bool:
        """Tell whether the filter handles ``msg``; raise on an impossible height."""
        if not self.whitelist:
            return True

        is_signal = msg.name == self.signal_msg
        if self.height > msg.height or (
            is_signal
            and (self.height == msg.height or self.height + 1 < msg.height)
        ):
            raise SequenceError(
                f"wrong height {msg.height} for {msg.name!r} at height {self.height}"
            )

        return msg.name in self.whitelist or is_signal

    def filter(self, msg: Message) -> tuple[Message, bool, bool]:
        """Return ``(message, passed, state_changed)``."""
        if msg.name == self.signal_msg:
            if self.height + 1 == msg.height:
                self.height = msg.height
                # The signal is forwarded as downstream consumers may need it.
                return msg, True, True
            raise SequenceError(
                f"duplicate signal message {msg.name!r} at height {msg.height}"
            )
        return msg, self.height == msg.height, False


class OrderFilter:
    """Releases whitelisted messages in the order the whitelist names them."""

    def __init__(self, names: list[str], height: int) -> None:
        self.height = height
        self.cursor = 0
        self.whitelist = list(names)
        self.slots: list[Any] = [None] * len(self.whitelist)

    def less(self, lhs: Message, rhs: Message) -> bool:
        return lhs.height < rhs.height

    def check(self, msg: Message) -> bool:
        """Tell whether the filter handles ``msg``; raise on a stale height."""
        if not self.whitelist:
            return True

        if self.height > msg.height:
            raise SequenceError(
                f"wrong message height {msg.height} for {msg.name!r}"
            )
        return msg.name in self.whitelist

    def filter(self, msg: Message) -> tuple[Message, bool, bool]:
        """Slot ``msg`` in and return the message due next, if it is there."""
        self.slots[self._find(msg)] = msg

        due = self.slots[self.cursor]
        if due is not None:
            self.cursor = (self.cursor + 1) % len(self.slots)
            return due, True, True
        return msg, False, False

    def _find(self, msg: Message) -> int:
        try:
            return self.whitelist.index(msg.name)
        except ValueError:
            raise SequenceError(f"message {msg.name!r} is not in the order list") from None