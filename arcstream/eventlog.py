"""Structured event logging with JSON output and a rolling log file."""

from __future__ import annotations

import gzip
import json
import logging
import os
import secrets
import shutil
import sys
import time
from datetime import datetime
from enum import StrEnum
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, Protocol

from arcstream.logconf import LogConfig, load_config


class LogLevel(StrEnum):
    DEBUG = "debug"
    INFO = "info"
    CHECKPOINT = "checkpoint"
    ERROR = "error"
    PANIC = "panic"
    EXECUTING_DEBUG = "executing_debug"


class LogType(StrEnum):
    MSG = "msg"
    ACT = "act"
    INLOG = "inlog"


class LogPanic(Exception):
    """Raised after an entry is logged at panic level or at an unknown level."""


class LogHeader(Protocol):
    """A message that identifies itself by height, round and id."""

    height: int
    round: int
    msgid: int


_ENTRY_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.EXECUTING_DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.CHECKPOINT: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}

_CONFIG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "panic": logging.CRITICAL,
}

_LEVEL_NAMES = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "PANIC",
}

_DEFAULT_MAX_SIZE_MB = 100
_UNLIMITED_BACKUPS = 1000


class EventLogger:
    """Writes log entries tagged with thread, source, height and ids."""

    def __init__(
        self, logger: logging.Logger | None = None, ignored_sources: Iterable[str] = ()
    ) -> None:
        self.logger = logger if logger is not None else logging.getLogger("arcstream")
        self.ignored_sources = set(ignored_sources)

    def new_log_id(self) -> int:
        """A fresh non-zero 64-bit id."""
        return secrets.randbits(64) or 1

    def for_thread(self, work_thread_name: str) -> LogWrapper:
        return LogWrapper(self, work_thread_name)

    def _should_log(self, source: str) -> bool:
        return not any(part in self.ignored_sources for part in source.split(","))

    def add_log(
        self,
        logid: int,
        level: str,
        source: str,
        workthreadname: str,
        info: str,
        log_type: str,
        height: int,
        round: int,
        refid: int,
        data_size: int,
        **kwargs: Any,
    ) -> int:
        """Log one entry and return its id; a zero ``logid`` gets a fresh one."""
        if not logid:
            logid = self.new_log_id()
        if not self._should_log(source):
            return logid

        entry_fields = {
            **kwargs,
            "WorkThreadName": workthreadname,
            "Source": source,
            "LogId": logid,
            "LogType": str(log_type),
            "Height": height,
            "Round": round,
            "RefId": refid,
            "DataSize": data_size,
        }
        py_level = _ENTRY_LEVELS.get(level)
        if py_level is None:
            self.logger.critical(info, extra={"fields": entry_fields})
            raise LogPanic(info)
        self.logger.log(py_level, info, extra={"fields": entry_fields})
        return logid


class LogWrapper:
    """An event logger bound to one work thread."""

    def __init__(self, logger: EventLogger, work_thread_name: str) -> None:
        self.logger = logger
        self.work_thread_name = work_thread_name

    def _add(self, source: str, level: str, header: LogHeader, info: str, **kwargs: Any) -> int:
        return self.logger.add_log(
            0, level, source, self.work_thread_name, info, LogType.INLOG,
            header.height, header.round, header.msgid, 0, **kwargs,
        )

    def log(self, level: str, header: LogHeader, info: str, **kwargs: Any) -> int:
        return self._add("custom", level, header, info, **kwargs)

    def check_point(self, level: str, header: LogHeader, info: str, **kwargs: Any) -> int:
        return self._add("checkpoint", level, header, info, **kwargs)


class _JsonFormatter(logging.Formatter):
    def __init__(self, static_fields: dict[str, Any]) -> None:
        super().__init__()
        self.static_fields = static_fields

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S.%f")
        entry: dict[str, Any] = {
            "T": stamp,
            "L": _LEVEL_NAMES.get(record.levelno, record.levelname),
            "M": record.getMessage(),
            **self.static_fields,
            **getattr(record, "fields", {}),
        }
        if record.exc_info:
            entry["S"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _gzip_rotate(source: str, dest: str) -> None:
    with open(source, "rb") as src, gzip.open(dest, "wb") as dst:
        shutil.copyfileobj(src, dst)
    os.remove(source)


class _RollingFileHandler(RotatingFileHandler):
    """A size-rotated file that can compress and expire its backups."""

    def __init__(
        self, filename: str, max_size_mb: int, max_backups: int, max_age_days: int, compress: bool
    ) -> None:
        super().__init__(
            filename,
            maxBytes=(max_size_mb or _DEFAULT_MAX_SIZE_MB) * 1024 * 1024,
            backupCount=max_backups if max_backups > 0 else _UNLIMITED_BACKUPS,
            encoding="utf-8",
        )
        self.max_age_days = max_age_days
        if compress:
            self.namer = lambda name: name + ".gz"
            self.rotator = _gzip_rotate

    def doRollover(self) -> None:
        super().doRollover()
        if self.max_age_days <= 0:
            return
        cutoff = time.time() - self.max_age_days * 86400
        base = Path(self.baseFilename)
        for backup in base.parent.glob(base.name + ".*"):
            if backup.stat().st_mtime < cutoff:
                backup.unlink(missing_ok=True)


def new_logger(
    config: LogConfig, logfile: str, svcname: str, nodename: str, nodeid: int
) -> logging.Logger:
    """Build a JSON logger writing to stdout and/or a rolling file per ``config``."""
    logger = logging.Logger(f"arcstream.{svcname}")
    logger.setLevel(_CONFIG_LEVELS.get(config.level, logging.INFO))
    logger.propagate = False
    formatter = _JsonFormatter(
        {
            "ServiceName": svcname,
            "ClusterName": nodename,
            "ClusterId": nodeid,
            "SystemVersion": config.version,
        }
    )

    handlers: list[logging.Handler] = []
    if config.console.system_out:
        handlers.append(logging.StreamHandler(sys.stdout))
    if config.local_file.save_file:
        local = config.local_file
        handlers.append(
            _RollingFileHandler(logfile, local.max_size, local.max_backups, local.max_age, local.compress)
        )
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    if not handlers:
        logger.addHandler(logging.NullHandler())
    return logger


def init_log_system(
    logfile: str, logcfg: str | Path, svcname: str, nodeid: int, nodename: str
) -> EventLogger:
    """Load the configuration at ``logcfg`` and build an event logger from it."""
    config = load_config(logcfg)
    logger = new_logger(config, logfile, svcname, nodename, nodeid)
    return EventLogger(logger, config.local_file.ignored_sources)


def init_log(
    root_dir: str | Path, logname: str, logcfg: str | Path, svcname: str, nodename: str, nodeid: int
) -> EventLogger:
    """Set up logging into ``<root_dir>/log/<logname>``."""
    log_dir = Path(root_dir) / "log"
    log_dir.mkdir(parents=True, exist_ok=True)
    logfile = log_dir / logname
    logfile.touch(exist_ok=True)
    return init_log_system(str(logfile.resolve()), logcfg, svcname, nodeid, nodename)