import threading
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class EventStats:
    """
    Process-wide webhook counters.

    Created once at application startup and shared by reference with the
    webhook route. Every read and update goes through a single lock, so the
    counter and the timestamp always move together.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events_processed = 0
        self._last_event_at: Optional[datetime] = None

    def record_event(self, at: Optional[datetime] = None) -> int:
        """Count one handled event and return the new total."""
        when = at or datetime.now(timezone.utc)
        with self._lock:
            self._events_processed += 1
            if self._last_event_at is None or when > self._last_event_at:
                self._last_event_at = when
            return self._events_processed

    @property
    def events_processed(self) -> int:
        with self._lock:
            return self._events_processed

    @property
    def last_event_at(self) -> Optional[datetime]:
        with self._lock:
            return self._last_event_at

    def snapshot(self) -> Dict[str, Any]:
        """Status document: ``last_event_at`` only appears once an event was seen."""
        with self._lock:
            status: Dict[str, Any] = {"events_processed": self._events_processed}
            if self._last_event_at is not None:
                status["last_event_at"] = self._last_event_at.strftime("%Y-%m-%dT%H:%M:%SZ")
            return status
