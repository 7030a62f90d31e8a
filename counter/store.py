"""
In-memory visitor counter state.

One VisitorStore per process, created at startup and handed to the HTTP
server. All state lives here and resets on restart.

Writers serialise on a lock and publish a fresh frozen VisitorRecord, so
a snapshot is never half-updated and never changes after it is returned.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable


def _local_now() -> datetime:
    return datetime.now().astimezone()


@dataclass(frozen=True)
class VisitorRecord:
    """Point-in-time view of the counter."""

    count: int
    last_visit: datetime
    ip: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "last_visit": self.last_visit.isoformat(),
            "ip": self.ip,
        }


class VisitorStore:
    """Owns the single VisitorRecord and serialises updates to it."""

    def __init__(self, clock: Callable[[], datetime] | None = None):
        self._clock = clock or _local_now
        self._lock = threading.Lock()
        self._record = VisitorRecord(count=0, last_visit=self._clock(), ip="")

    def snapshot(self) -> VisitorRecord:
        with self._lock:
            return self._record

    def record_visit(self, ip: str) -> VisitorRecord:
        """Count one visit from ``ip``. Returns the post-increment record."""
        with self._lock:
            record = VisitorRecord(
                count=self._record.count + 1,
                last_visit=self._clock(),
                ip=ip,
            )
            self._record = record
            return record
