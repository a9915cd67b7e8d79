"""Append-only, timestamped log shown to the user while a run is in progress."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable


logger = logging.getLogger(__name__)


class RunLog:
    """Ordered list of ``[HH:MM:SS] message`` entries for a single run.

    Every entry is also forwarded to the module logger at the given level, and
    to ``on_entry`` when one is set (the CLI uses that to echo the log live).
    """

    def __init__(
        self,
        on_entry: Callable[[str], None] | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._entries: list[str] = []
        self._on_entry = on_entry
        self._clock = clock

    def add(self, message: str, level: int = logging.INFO) -> str:
        entry = f"[{self._clock().strftime('%H:%M:%S')}] {message}"
        self._entries.append(entry)
        logger.log(level, message)
        if self._on_entry is not None:
            self._on_entry(entry)
        return entry

    def warning(self, message: str) -> str:
        return self.add(message, logging.WARNING)

    @property
    def entries(self) -> list[str]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(list(self._entries))
