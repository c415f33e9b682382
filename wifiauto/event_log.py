"""
Diagnostic event log for wifiauto.

Append-only text file of ``"<timestamp> <message>"`` lines, truncated once it
grows past a size bound. Appending never raises: a broken log must not break
an automation cycle.
"""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Callable, List, Union

from .constants import EVENT_LOG_MAX_BYTES, EVENT_LOG_TIME_FORMAT
from .log import LogComponent, get_logger

logger = get_logger(LogComponent.EVENTLOG)


class EventLog:
    """Bounded ring log on disk."""

    def __init__(
        self,
        path: Union[str, Path],
        max_bytes: int = EVENT_LOG_MAX_BYTES,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._path = Path(path)
        self._max_bytes = max_bytes
        self._clock = clock
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def append(self, message: str) -> None:
        """Append an entry to the event log."""
        now = time.strftime(EVENT_LOG_TIME_FORMAT, time.localtime(self._clock()))
        line = f"{now} {message}\n"
        try:
            with self._lock:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with open(self._path, "a", encoding="utf-8", errors="replace") as f:
                    f.write(line)
                if self._path.stat().st_size > self._max_bytes:
                    self._truncate()
        except OSError as exc:
            logger.warning(f"Unable to append to event log {self._path}: {exc}")

    def read_all(self) -> List[str]:
        """Read all entries, oldest first."""
        with self._lock:
            if not self._path.exists():
                return []
            with open(self._path, "r", encoding="utf-8") as f:
                return [line.rstrip("\n") for line in f if line.strip()]

    def reset(self) -> None:
        """Reset event log: all entries are cleared."""
        with self._lock:
            self._truncate()

    def _truncate(self) -> None:
        logger.info("Resetting event log")
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "w", encoding="utf-8"):
            pass
