"""
Telemetry Synthesizer

Derives synthetic per-node metrics from current health. Values are drawn
from fixed bands with an injected random source, then shaped by status:

    down      rps, latency, cpu -> 0; error rate -> 100%
    degraded  rps * h; latency and error rate * (2 - h); cpu * 1.5
              (h = health / 100)

Percentiles are derived from p50 (p95 = 1.5x, p99 = 2x) so that
p50 <= p95 <= p99 holds for every sample.
"""

from __future__ import annotations
import random
import statistics
from collections import deque
from typing import Any, Deque, Dict, List, Optional

from .models import LatencyStats, NodeStatus, TelemetrySample


# (low, high) sampling bands for healthy nodes
RPS_BAND = (100.0, 200.0)
LATENCY_P50_BAND = (50.0, 100.0)   # ms
ERROR_RATE_BAND = (0.1, 0.5)       # percent
CPU_BAND = (30.0, 60.0)            # percent
MEMORY_BAND = (512.0, 1024.0)      # MB

P95_FACTOR = 1.5
P99_FACTOR = 2.0
AVG_FACTOR = 1.2
DEGRADED_CPU_FACTOR = 1.5


class TelemetrySynthesizer:
    """Pure function of (health, status) plus a seedable random source."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def _sample(self, band) -> float:
        low, high = band
        return low + self._rng.random() * (high - low)

    def synthesize(
        self,
        node_id: str,
        health: int,
        status: NodeStatus,
        timestamp: float = 0.0,
    ) -> TelemetrySample:
        rps = self._sample(RPS_BAND)
        latency = self._sample(LATENCY_P50_BAND)
        error_rate = self._sample(ERROR_RATE_BAND)
        cpu = self._sample(CPU_BAND)
        memory = self._sample(MEMORY_BAND)

        health_factor = max(0, min(100, health)) / 100
        if status == NodeStatus.DOWN:
            rps = 0.0
            latency = 0.0
            error_rate = 100.0
            cpu = 0.0
        elif status == NodeStatus.DEGRADED:
            rps *= health_factor
            latency *= 2 - health_factor
            error_rate *= 2 - health_factor
            cpu *= DEGRADED_CPU_FACTOR

        return TelemetrySample(
            node_id=node_id,
            timestamp=timestamp,
            rps=round(rps),
            latency=LatencyStats(
                p50=round(latency),
                p95=round(latency * P95_FACTOR),
                p99=round(latency * P99_FACTOR),
                avg=round(latency * AVG_FACTOR),
            ),
            error_rate=round(error_rate, 2),
            cpu=round(cpu),
            memory=round(memory),
            connections={
                "active": round(rps / 10),
                "idle": round(rps / 20),
                "failed": round(error_rate / 100 * rps),
            },
            traffic={
                "inbound": round(rps * 0.001, 3),
                "outbound": round(rps * 0.0008, 3),
            },
        )


class TelemetryHistory:
    """Most recent ``size`` samples per node; older samples fall off."""

    def __init__(self, size: int = 100):
        self.size = size
        self._samples: Dict[str, Deque[TelemetrySample]] = {}

    def record(self, sample: TelemetrySample) -> None:
        history = self._samples.get(sample.node_id)
        if history is None:
            history = self._samples[sample.node_id] = deque(maxlen=self.size)
        history.append(sample)

    def get(self, node_id: str, limit: Optional[int] = None) -> List[TelemetrySample]:
        samples = list(self._samples.get(node_id, ()))
        if limit is not None:
            samples = samples[-limit:] if limit > 0 else []
        return samples

    def latest(self, node_id: str) -> Optional[TelemetrySample]:
        history = self._samples.get(node_id)
        return history[-1] if history else None

    def clear(self) -> None:
        self._samples.clear()

    def summary(self, node_id: str) -> Dict[str, Any]:
        """Aggregate view over the retained window for one node."""
        samples = self.get(node_id)
        if not samples:
            return {"samples": 0}
        return {
            "samples": len(samples),
            "rps_mean": round(statistics.mean(s.rps for s in samples), 2),
            "p99_mean": round(statistics.mean(s.latency.p99 for s in samples), 2),
            "p99_max": max(s.latency.p99 for s in samples),
            "error_rate_mean": round(statistics.mean(s.error_rate for s in samples), 2),
            "cpu_max": max(s.cpu for s in samples),
        }
