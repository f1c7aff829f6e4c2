"""Splitting payloads into broker-sized frames and joining them back.

Two frame layouts are supported. Both start with a one-byte version followed
by a 64-bit message id and two 32-bit counters, all little-endian:

* ``KafkaMessage``: version, uuid, total parts, part index, then the data
  (17 header bytes).
* ``PackageHeader``: the same fields plus the total frame size as a fourth
  32-bit field (21 header bytes).
"""

from __future__ import annotations

import math
import secrets
import struct
from dataclasses import dataclass
from typing import Iterable

KAFKA_VERSION = 0

KAFKA_HEADER_SIZE = 1 + 8 + 4 + 4
KAFKA_PACKAGE_MAX_SIZE = 512 * 1024

KAFKA_HEADER_LENGTH = 1 + 8 + 4 + 4 + 4
KAFKA_PACKAGE_LENGTH = 999000

_MESSAGE_HEADER = struct.Struct("<BQII")
_PACKAGE_HEADER = struct.Struct("<BQIII")


class FramingError(Exception):
    """Raised when a frame cannot be decoded or a set of frames is inconsistent."""


@dataclass(frozen=True)
class KafkaMessage:
    """One part of a payload split across several broker messages."""

    uuid: int
    total: int
    serial_id: int
    data: bytes = b""
    version: int = KAFKA_VERSION

    def encode(self) -> bytes:
        """The wire form: the 17-byte header followed by the data."""
        header = _MESSAGE_HEADER.pack(self.version, self.uuid, self.total, self.serial_id)
        return header + bytes(self.data)

    @classmethod
    def decode(cls, data: bytes) -> KafkaMessage:
        """Parse a frame produced by :meth:`encode`."""
        data = bytes(data)
        if len(data) < KAFKA_HEADER_SIZE:
            raise FramingError(
                f"frame too short: {len(data)} bytes, need at least {KAFKA_HEADER_SIZE}"
            )
        version, uuid, total, serial_id = _MESSAGE_HEADER.unpack_from(data)
        return cls(
            uuid=uuid,
            total=total,
            serial_id=serial_id,
            data=data[KAFKA_HEADER_SIZE:],
            version=version,
        )


def split_payload(data: bytes, max_size: int, uuid: int | None = None) -> list[KafkaMessage]:
    """Cut ``data`` into parts of at most ``max_size`` bytes sharing one id.

    A fresh random 64-bit id is used when ``uuid`` is not given.
    """
    if max_size < 1:
        raise ValueError("max_size must be >= 1")
    data = bytes(data)
    if uuid is None:
        uuid = secrets.randbits(64)
    count = math.ceil(len(data) / max_size)
    return [
        KafkaMessage(
            uuid=uuid,
            total=count,
            serial_id=index,
            data=data[index * max_size : (index + 1) * max_size],
        )
        for index in range(count)
    ]


def join_payload(buffer: Iterable[KafkaMessage]) -> bytes | None:
    """Join the parts of one payload, or return None while parts are missing."""
    parts = list(buffer)
    if not parts:
        raise FramingError("no parts to join")
    total = parts[0].total
    if len(parts) > total:
        raise FramingError(f"decoding buffer overflowed: {len(parts)} parts, expected {total}")
    if len(parts) < total:
        return None
    ordered = sorted(parts, key=lambda part: part.serial_id)
    return b"".join(part.data for part in ordered)


class Reassembler:
    """Collects frames per message id and yields each payload once complete."""

    def __init__(self) -> None:
        self._buffers: dict[int, list[KafkaMessage]] = {}

    @property
    def pending(self) -> int:
        """The number of payloads still waiting for parts."""
        return len(self._buffers)

    def feed(self, data: bytes) -> bytes | None:
        """Take one encoded frame; return the whole payload once it is complete."""
        part = KafkaMessage.decode(data)
        parts = self._buffers.setdefault(part.uuid, [])
        parts.append(part)
        payload = join_payload(parts)
        if payload is not None:
            del self._buffers[part.uuid]
        return payload


@dataclass
class PackageHeader:
    """Header of a frame that also records the size of the whole frame."""

    uuid: int = 0
    sub_package_nums: int = 0
    sub_package_index: int = 0
    total_size: int = 0
    version: int = KAFKA_VERSION

    def encode(self, data: bytes) -> bytes:
        """Prefix ``data`` with this header, setting ``total_size`` to the frame length."""
        data = bytes(data)
        self.total_size = KAFKA_HEADER_LENGTH + len(data)
        header = _PACKAGE_HEADER.pack(
            KAFKA_VERSION,
            self.uuid,
            self.sub_package_nums,
            self.sub_package_index,
            self.total_size,
        )
        return header + data

    @classmethod
    def decode(cls, data: bytes) -> tuple[PackageHeader, bytes]:
        """Split a frame into its header and payload, checking version and size."""
        data = bytes(data)
        if len(data) < KAFKA_HEADER_LENGTH:
            raise FramingError(
                f"received raw data too short, data length must be at least {KAFKA_HEADER_LENGTH}"
            )
        if data[0] != KAFKA_VERSION:
            raise FramingError(f"protocol version error, expected {KAFKA_VERSION}, got {data[0]}")
        version, uuid, nums, index, total_size = _PACKAGE_HEADER.unpack_from(data)
        if total_size != len(data):
            raise FramingError(f"frame size mismatch: header says {total_size}, got {len(data)}")
        header = cls(
            uuid=uuid,
            sub_package_nums=nums,
            sub_package_index=index,
            total_size=total_size,
            version=version,
        )
        return header, data[KAFKA_HEADER_LENGTH:]


def split_package(data: bytes) -> list[bytes]:
    """Cut ``data`` into chunks that fit a package together with its header."""
    data = bytes(data)
    chunk = KAFKA_PACKAGE_LENGTH - KAFKA_HEADER_LENGTH
    return [data[start : start + chunk] for start in range(0, len(data), chunk)]