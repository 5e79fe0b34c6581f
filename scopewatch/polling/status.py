"""Last-known poll status per platform."""

import threading
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Mapping, Optional


@dataclass(frozen=True)
class PollerStatus:
    """Outcome of the most recent cycle for one platform."""

    platform: str
    started_at: datetime
    duration: float = 0.0
    success: bool = False
    skipped: bool = False
    programs_polled: int = 0
    error: Optional[str] = None


class PollerStatusRegistry:
    """Thread-safe record of the latest PollerStatus per platform.

    Construct one per process and share it between the scheduler and
    whatever reports status.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._statuses: dict[str, PollerStatus] = {}

    def record(self, status: PollerStatus) -> None:
        with self._lock:
            self._statuses[status.platform] = status

    def mark_skipped(self, platform: str, reason: Optional[str] = None) -> PollerStatus:
        """Record that a platform was not polled this cycle.

        Counters from the previous status are kept so the last successful
        figures stay visible.
        """
        now = datetime.now(timezone.utc)
        with self._lock:
            previous = self._statuses.get(platform)
            if previous is None:
                status = PollerStatus(platform=platform, started_at=now, skipped=True, error=reason)
            else:
                status = replace(previous, started_at=now, duration=0.0, skipped=True, error=reason)
            self._statuses[platform] = status
        return status

    def get(self, platform: str) -> Optional[PollerStatus]:
        with self._lock:
            return self._statuses.get(platform)

    def snapshot(self) -> Mapping[str, PollerStatus]:
        """Immutable copy of every platform's status."""
        with self._lock:
            return MappingProxyType(dict(self._statuses))

    def clear(self) -> None:
        with self._lock:
            self._statuses.clear()
