"""Diagnostics buffer and debugging information utility functions."""

import sys
import time
import platform
import threading
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional

import httpx
import selenium

from ..constants import DIAGNOSTICS_CAPACITY


@dataclass(frozen=True)
class DiagnosticEntry:
    timestamp: float
    source: str
    message: str
    level: str = "INFO"

    def format(self) -> str:
        stamp = time.strftime("%H:%M:%S", time.localtime(self.timestamp))
        return f"[{stamp}] [{self.level.lower()}] [{self.source}] {self.message}"


class DiagnosticsBuffer:
    """
    Process-wide accumulator of session-emitted events (console output,
    network failures, API responses).

    Retention policy: a capped ring. Once `capacity` entries are held, each
    new entry evicts the oldest one.

    Read policy: snapshot() never clears. Clearing happens only through
    clear() (the console_logs tool's `clear` flag, or a browser session reset).

    All methods take an internal lock, so producers running in driver worker
    threads can append while the event loop reads.
    """

    def __init__(self, capacity: int = DIAGNOSTICS_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._entries: Deque[DiagnosticEntry] = deque(maxlen=capacity)
        self._lock = threading.Lock()
        self._dropped = 0

    def record(self, entry: DiagnosticEntry) -> None:
        with self._lock:
            if len(self._entries) == self.capacity:
                self._dropped += 1
            self._entries.append(entry)

    def add(self, source: str, message: str, level: str = "INFO", timestamp: Optional[float] = None) -> DiagnosticEntry:
        entry = DiagnosticEntry(
            timestamp=time.time() if timestamp is None else timestamp,
            source=source,
            message=message,
            level=level,
        )
        self.record(entry)
        return entry

    def snapshot(self) -> List[DiagnosticEntry]:
        with self._lock:
            return list(self._entries)

    def drain(self) -> List[DiagnosticEntry]:
        """Return the current contents and clear the buffer atomically."""
        with self._lock:
            entries = list(self._entries)
            self._entries.clear()
            return entries

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._dropped = 0
            return count

    @property
    def dropped(self) -> int:
        """Entries evicted by the ring since the last clear."""
        with self._lock:
            return self._dropped

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def collect_diagnostics(
    config: Optional[dict] = None,
    exc: Optional[BaseException] = None,
    driver=None,
) -> str:
    """
    Collect diagnostic information about the browser, driver, and environment.

    Args:
        config: Configuration dictionary from get_env_config()
        exc: Exception that occurred (can be None)
        driver: Selenium WebDriver instance (can be None)

    Returns:
        str: Formatted diagnostic information
    """
    config = config or {}
    parts = [
        f"OS                : {platform.system()} {platform.release()}",
        f"Python            : {sys.version.split()[0]}",
        f"Selenium          : {getattr(selenium, '__version__', '?')}",
        f"httpx             : {getattr(httpx, '__version__', '?')}",
        f"Chrome binary     : {config.get('chrome_path') or '<selenium manager>'}",
        f"Headless          : {config.get('headless')}",
        f"Proxy             : {config.get('proxy') or '<none>'}",
        f"Driver initialized: {driver is not None}",
    ]

    if driver is not None:
        cap = getattr(driver, "capabilities", None) or {}
        parts.append(f"Browser version   : {cap.get('browserVersion') or '<unknown>'}")
        chrome_cap = cap.get("chrome") or {}
        parts.append(f"Driver version    : {chrome_cap.get('chromedriverVersion') or '<unknown>'}")

    if exc is not None:
        parts += [
            "---- ERROR ----",
            f"Error type        : {type(exc).__name__}",
            f"Error message     : {exc}",
        ]

    return "\n".join(parts)


__all__ = ["DiagnosticEntry", "DiagnosticsBuffer", "collect_diagnostics"]
