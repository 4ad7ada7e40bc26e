"""Health reporting and status types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import threading
import time
from typing import Dict


class AdapterState(str, Enum):
    """Health state of a scraped target/module pair."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    FAILED = "failed"


@dataclass(frozen=True)
class HealthEvent:
    """Outcome of one scrape, emitted by the HTTP layer."""

    component: str
    status: AdapterState
    details: Dict[str, object] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)


class HealthReporter:
    """
    Aggregates scrape outcomes and exposes them to the health endpoint.

    Follows Observer pattern: the request handler emits events, the reporter
    keeps the latest one per component.
    """

    def __init__(self) -> None:
        """Initialize reporter with empty state."""
        self._events: Dict[str, HealthEvent] = {}
        self._lock = threading.Lock()

    def emit(self, event: HealthEvent) -> None:
        """Record a new health event, replacing the component's previous one."""
        with self._lock:
            self._events[event.component] = event

    def snapshot(self) -> Dict[str, object]:
        """Return current health snapshot."""
        with self._lock:
            events = dict(self._events)

        overall = AdapterState.HEALTHY
        if any(event.status is not AdapterState.HEALTHY for event in events.values()):
            overall = AdapterState.DEGRADED

        return {
            "status": overall.value,
            "scrapes": {
                component: {
                    "status": event.status.value,
                    "timestamp": event.timestamp,
                    **event.details,
                }
                for component, event in events.items()
            },
        }
