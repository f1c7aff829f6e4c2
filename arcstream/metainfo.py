"""Records which messages each work thread sends and receives."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class MetaInfoItem:
    """The message names one work thread receives and delivers."""

    receptive_msgs: list[str] = field(default_factory=list)
    deliverable_msgs: list[str] = field(default_factory=list)


class MetaInfos:
    """Message names per work thread, kept in first-seen order."""

    def __init__(self) -> None:
        self.items: dict[str, MetaInfoItem] = {}
        self._lock = threading.Lock()

    @property
    def work_threads(self) -> list[str]:
        return list(self.items)

    def add(self, workthread: str, msgname: str, is_send: bool) -> None:
        """Record that ``workthread`` sends or receives ``msgname``."""
        with self._lock:
            item = self.items.setdefault(workthread, MetaInfoItem())
            names = item.deliverable_msgs if is_send else item.receptive_msgs
            if msgname not in names:
                names.append(msgname)

    def render(self, servicename: str) -> str:
        """One tab-separated line per message: service, thread, message, direction."""
        with self._lock:
            lines = []
            for thread, item in self.items.items():
                lines.extend(
                    f"{servicename}\t{thread}\t{msg}\tsend\n" for msg in item.deliverable_msgs
                )
                lines.extend(
                    f"{servicename}\t{thread}\t{msg}\treceive\n" for msg in item.receptive_msgs
                )
            return "".join(lines)

    def write_file(self, servicename: str, directory: str | Path) -> Path:
        """Write the rendered table to ``<directory>/<servicename>.conf``."""
        path = Path(directory) / f"{servicename}.conf"
        path.write_text(self.render(servicename), encoding="utf-8")
        return path