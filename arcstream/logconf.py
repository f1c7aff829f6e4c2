"""Logging configuration read from a TOML file."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any


def _option(key: str, kind: type, default: Any) -> Any:
    return field(default=default, metadata={"key": key, "type": kind})


def _section(key: str, kind: type) -> Any:
    return field(default_factory=kind, metadata={"key": key, "section": kind})


@dataclass
class ConsoleConfig:
    """Whether log entries also go to standard output."""

    system_out: bool = _option("SystemOut", bool, False)


@dataclass
class LocalFileConfig:
    """Settings for the rolling log file."""

    save_file: bool = _option("SaveFile", bool, False)
    max_size: int = _option("MaxSize", int, 0)
    max_backups: int = _option("MaxBackups", int, 0)
    max_age: int = _option("MaxAge", int, 0)
    compress: bool = _option("Compress", bool, False)
    ignored: str = _option("Ignored", str, "")

    @property
    def ignored_sources(self) -> list[str]:
        """The comma-separated ``ignored`` sources as a list."""
        return self.ignored.split(",")


@dataclass
class LogConfig:
    """The whole logging configuration."""

    level: str = _option("Level", str, "")
    console: ConsoleConfig = _section("Console", ConsoleConfig)
    local_file: LocalFileConfig = _section("LocalFile", LocalFileConfig)
    version: str = _option("Version", str, "")


def _matches(value: Any, kind: type) -> bool:
    if kind is int:
        return isinstance(value, int) and not isinstance(value, bool)
    return isinstance(value, kind)


def _build(cls: type, table: dict[str, Any], where: str) -> Any:
    lowered = {str(key).lower(): value for key, value in table.items()}
    values: dict[str, Any] = {}
    for spec in fields(cls):
        key = spec.metadata["key"]
        if key.lower() not in lowered:
            continue
        value = lowered[key.lower()]
        nested = spec.metadata.get("section")
        if nested is not None:
            if not isinstance(value, dict):
                raise ValueError(f"{where}{key} must be a table")
            values[spec.name] = _build(nested, value, f"{where}{key}.")
            continue
        kind = spec.metadata["type"]
        if not _matches(value, kind):
            raise ValueError(
                f"{where}{key} must be of type {kind.__name__}, got {type(value).__name__}"
            )
        values[spec.name] = value
    return cls(**values)


def load_config(path: str | Path) -> LogConfig:
    """Read a logging configuration; keys match field names case-insensitively."""
    with open(path, "rb") as handle:
        table = tomllib.load(handle)
    return _build(LogConfig, table, "")