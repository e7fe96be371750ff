"""
Auto-Recovery Scheduler

Two independent recovery mechanisms, both evaluated once per tick:

    - One-shot timers registered when a failure/degradation is injected
      with a duration. Kept in a min-heap keyed by fire time.
    - Probabilistic self-heal of nodes that have been down longer than a
      threshold.

Both call HealthStore.recover, which is idempotent, so double firing is
harmless.
"""

from __future__ import annotations
import heapq
import logging
import random
from typing import Callable, List, Optional, Tuple

from .health_store import HealthStore


class RecoveryScheduler:

    def __init__(
        self,
        store: HealthStore,
        clock: Callable[[], float],
        rng: Optional[random.Random] = None,
        threshold: float = 30.0,
        probability: float = 0.7,
        auto_recovery_enabled: bool = True,
    ):
        self.store = store
        self._clock = clock
        self._rng = rng or random.Random()
        self.threshold = threshold
        self.probability = probability
        self.auto_recovery_enabled = auto_recovery_enabled
        self._timers: List[Tuple[float, int, str]] = []
        self._seq = 0
        self.logger = logging.getLogger(__name__)

    # =========================================================================
    # One-shot timers
    # =========================================================================

    def schedule(self, node_id: str, delay: float) -> float:
        """Recover ``node_id`` once ``delay`` simulated seconds have passed."""
        fire_time = self._clock() + delay
        self._seq += 1
        heapq.heappush(self._timers, (fire_time, self._seq, node_id))
        self.logger.debug(f"Recovery of '{node_id}' scheduled at t={fire_time}")
        return fire_time

    def pending(self) -> List[Tuple[float, str]]:
        return [(t, node_id) for t, _, node_id in sorted(self._timers)]

    def clear(self) -> None:
        self._timers.clear()

    def fire_due(self) -> List[str]:
        """Fire every timer whose time has come. Returns the recovered ids."""
        now = self._clock()
        recovered = []
        while self._timers and self._timers[0][0] <= now:
            _, _, node_id = heapq.heappop(self._timers)
            if self.store.recover(node_id, reason="scheduled recovery"):
                recovered.append(node_id)
        return recovered

    # =========================================================================
    # Probabilistic self-heal
    # =========================================================================

    def auto_recover(self) -> List[str]:
        """Attempt recovery of nodes down for longer than the threshold."""
        if not self.auto_recovery_enabled:
            return []
        now = self._clock()
        recovered = []
        for node_id, record in self.store.records.items():
            if not record.is_down or now - record.last_checked <= self.threshold:
                continue
            if self._rng.random() < self.probability:
                if self.store.recover(node_id, reason="auto-recovery"):
                    recovered.append(node_id)
                    self.logger.info(f"Auto-recovery successful for '{node_id}'")
        return recovered

    def evaluate(self) -> List[str]:
        """Tick step: scheduled timers first, then self-heal."""
        return self.fire_due() + self.auto_recover()
