"""
Event Log

Bounded, append-only record of everything that happens during a run.
When full, the oldest entries are dropped. Append order is the only
ordering guarantee.
"""

from __future__ import annotations
import logging
from collections import Counter, deque
from typing import Callable, Dict, List, Optional

from .models import EventType, EventSeverity, SimulationEvent


class EventLog:
    """Ring buffer of SimulationEvents with sequential ids."""

    def __init__(self, clock: Callable[[], float], capacity: int = 1000):
        self._clock = clock
        self.capacity = capacity
        self._events: deque = deque(maxlen=capacity)
        self._counter = 0
        self.logger = logging.getLogger(__name__)

    def append(
        self,
        event_type: EventType,
        node_id: str,
        message: str,
        severity: EventSeverity = EventSeverity.INFO,
    ) -> SimulationEvent:
        self._counter += 1
        event = SimulationEvent(
            id=f"evt_{self._counter:06d}",
            timestamp=self._clock(),
            type=event_type,
            node_id=node_id,
            message=message,
            severity=severity,
        )
        self._events.append(event)
        self.logger.debug(f"[{event.type.value}] {message}")
        return event

    def clear(self) -> None:
        self._events.clear()

    def events(self) -> List[SimulationEvent]:
        return list(self._events)

    def recent(self, count: int = 10) -> List[SimulationEvent]:
        if count <= 0:
            return []
        return list(self._events)[-count:]

    def of_type(self, event_type: EventType, node_id: Optional[str] = None) -> List[SimulationEvent]:
        return [
            e for e in self._events
            if e.type == event_type and (node_id is None or e.node_id == node_id)
        ]

    def counts_by_type(self) -> Dict[str, int]:
        return dict(Counter(e.type.value for e in self._events))

    def __len__(self) -> int:
        return len(self._events)
