"""
Simulation Engine

Owns one simulation run over a DependencyGraph: health state, event log,
telemetry history, recovery timers and the clock. Every public operation
holds a re-entrant lock, so ticks driven by a background task never
interleave with externally injected failures.

Tick Order:
    0. Due scenario actions
    1. Telemetry for every node
    2. Cascade re-check for every node down at the start of the step
    3. Recovery timers, then probabilistic auto-recovery
    4. SLA checks against the latest telemetry
"""

from __future__ import annotations
import copy
import logging
import random
import threading
from typing import Any, Dict, List, Optional, Union

from twinsim.config.settings import SimulationConfig, SLATargets
from .blast_radius import BlastRadiusCalculator
from .clock import SimulationClock
from .event_log import EventLog
from .graph import DependencyGraph
from .health_store import HealthStore
from .models import (
    BlastRadiusResult,
    ClockState,
    EventSeverity,
    EventType,
    HealthRecord,
    Incident,
    NodeStatus,
    SimulationEvent,
    TelemetrySample,
)
from .propagation import FailurePropagator
from .recovery import RecoveryScheduler
from .scenario import Scenario, ScenarioAction
from .sla_monitor import SLAMonitor
from .telemetry import TelemetryHistory, TelemetrySynthesizer

ENGINE_NODE_ID = "simulation"


class SimulationEngine:
    """
    Digital-twin failure simulation over one dependency graph.

    Example:
        >>> engine = SimulationEngine(DependencyGraph.from_dict(data))
        >>> engine.start()
        >>> engine.fail_node("db", duration=30)
        >>> engine.advance(60)
        >>> engine.get_health_state("api").status
    """

    def __init__(
        self,
        graph: DependencyGraph,
        config: Optional[SimulationConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        self.graph = graph
        self.config = copy.deepcopy(config) if config is not None else SimulationConfig()
        self.config.validate()
        self.rng = rng or random.Random(self.config.seed)
        self.logger = logging.getLogger(__name__)
        self._lock = threading.RLock()

        self.clock = SimulationClock(self.config.tick_interval)
        self.event_log = EventLog(self.clock, capacity=self.config.event_log_capacity)
        self.store = HealthStore(self.event_log, self.clock, sla_targets=self.config.sla_for)
        self.propagator = FailurePropagator(graph, self.store, self.event_log)
        self.scheduler = RecoveryScheduler(
            self.store,
            self.clock,
            rng=self.rng,
            threshold=self.config.auto_recovery_threshold,
            probability=self.config.auto_recovery_probability,
            auto_recovery_enabled=self.config.auto_recovery_enabled,
        )
        self.store.scheduler = self.scheduler
        if self.config.cascade_enabled:
            self.store.propagator = self.propagator

        self.synthesizer = TelemetrySynthesizer(self.rng)
        self.telemetry = TelemetryHistory(self.config.telemetry_history_size)
        self.sla_monitor = SLAMonitor(self.event_log)
        self.blast_radius = BlastRadiusCalculator(graph, self.config.minutes_per_hop)

        # (fire_time, action) pairs, kept sorted by fire time
        self._pending_actions: List[tuple] = []

        self.store.initialize(graph)
        self.logger.info(
            f"Simulation engine ready: {len(graph)} nodes, "
            f"{sum(1 for _ in graph.dependencies())} dependencies"
        )

    # =========================================================================
    # Control surface
    # =========================================================================

    def start(self) -> bool:
        with self._lock:
            if not self.clock.start():
                return False
            self.event_log.append(
                EventType.SIMULATION_STARTED, ENGINE_NODE_ID, "Simulation started"
            )
            self.logger.info(f"Simulation started at t={self.clock.now}")
            return True

    def pause(self) -> bool:
        with self._lock:
            if not self.clock.pause():
                return False
            self.event_log.append(
                EventType.SIMULATION_PAUSED, ENGINE_NODE_ID, "Simulation paused"
            )
            self.logger.info(f"Simulation paused at t={self.clock.now}")
            return True

    def stop(self) -> None:
        """Stop and discard all run state; the log restarts with the stop event."""
        with self._lock:
            self._reset_state()
            self.clock.stop()
            self.event_log.append(
                EventType.SIMULATION_STOPPED, ENGINE_NODE_ID, "Simulation stopped"
            )
            self.logger.info("Simulation stopped")

    def reset(self) -> None:
        """Return to the freshly-constructed state without logging anything."""
        with self._lock:
            self._reset_state()
            self.clock.stop()
            self.logger.info("Simulation reset")

    def _reset_state(self) -> None:
        self.clock.reset()
        self.scheduler.clear()
        self.telemetry.clear()
        self.event_log.clear()
        self._pending_actions.clear()
        self.store.initialize(self.graph)

    def fail_node(self, node_id: str, duration: Optional[float] = None) -> Optional[Incident]:
        with self._lock:
            return self.store.fail(node_id, duration)

    def degrade_node(
        self, node_id: str, level: float, duration: Optional[float] = None
    ) -> Optional[Incident]:
        with self._lock:
            return self.store.degrade(node_id, level, duration)

    def recover_node(self, node_id: str) -> bool:
        with self._lock:
            return self.store.recover(node_id)

    def calculate_blast_radius(self, node_id: str) -> BlastRadiusResult:
        with self._lock:
            return self.blast_radius.calculate(node_id)

    def define_sla(self, node_id: str, targets: Union[SLATargets, Dict[str, Any]]) -> bool:
        """
        Set per-node SLA targets.

        Missing keys in a dict fall back to the configured defaults.

        Returns:
            False for unknown nodes
        """
        with self._lock:
            record = self.store.get(node_id)
            if record is None:
                return False
            if not isinstance(targets, SLATargets):
                targets = SLATargets.from_dict(targets, base=self.config.default_sla)
            self.config.sla_overrides[node_id] = targets
            record.sla.targets = targets
            self.logger.debug(f"SLA for '{node_id}' set to {targets.to_dict()}")
            return True

    def load_scenario(self, scenario: Scenario) -> int:
        """
        Queue a scenario's actions relative to the current simulated time.

        Returns:
            Number of actions queued
        """
        with self._lock:
            offset = self.clock.now
            for action in scenario.actions:
                self._pending_actions.append((offset + action.time, action))
            self._pending_actions.sort(key=lambda entry: entry[0])
            self.logger.info(
                f"Scenario '{scenario.name}' loaded: {len(scenario.actions)} action(s)"
            )
            return len(scenario.actions)

    # =========================================================================
    # Ticking
    # =========================================================================

    def tick(self) -> bool:
        """Run one tick. Returns False (and does nothing) unless running."""
        with self._lock:
            if not self.clock.is_running:
                return False

            now = self.clock.advance()
            self._apply_due_actions(now)

            if self.config.telemetry_enabled:
                for node_id, record in self.store.records.items():
                    self.telemetry.record(
                        self.synthesizer.synthesize(node_id, record.health, record.status, now)
                    )

            if self.config.cascade_enabled:
                down = [node_id for node_id, record in self.store.records.items() if record.is_down]
                for node_id in down:
                    self.propagator.propagate(node_id)

            self.scheduler.evaluate()

            for node_id, record in self.store.records.items():
                latest = self.telemetry.latest(node_id)
                if latest is None:
                    continue
                self.sla_monitor.check(node_id, self.config.sla_for(node_id), latest, record)

            return True

    def advance(self, ticks: int = 1) -> int:
        """
        Run up to ``ticks`` ticks, stopping early if the clock leaves running.

        Returns:
            Number of ticks actually run
        """
        done = 0
        for _ in range(max(0, ticks)):
            if not self.tick():
                break
            done += 1
        return done

    def _apply_due_actions(self, now: float) -> None:
        while self._pending_actions and self._pending_actions[0][0] <= now:
            _, action = self._pending_actions.pop(0)
            self._apply_action(action)

    def _apply_action(self, action: ScenarioAction) -> None:
        self.logger.debug(f"Scenario action at t={self.clock.now}: {action.to_dict()}")
        if action.type == "fail":
            self.store.fail(action.target, action.duration)
        elif action.type == "degrade":
            self.store.degrade(action.target, action.level, action.duration)
        elif action.type == "recover":
            self.store.recover(action.target, reason="scenario")

    # =========================================================================
    # Observers
    # =========================================================================

    def has_node(self, node_id: str) -> bool:
        return node_id in self.graph

    def is_active(self) -> bool:
        return self.clock.is_running

    @property
    def state(self) -> ClockState:
        return self.clock.state

    def get_health_state(self, node_id: str) -> Optional[HealthRecord]:
        with self._lock:
            return self.store.get(node_id)

    def get_all_health_states(self) -> Dict[str, HealthRecord]:
        with self._lock:
            return dict(self.store.records)

    def get_telemetry(self, node_id: str, limit: Optional[int] = None) -> List[TelemetrySample]:
        with self._lock:
            return self.telemetry.get(node_id, limit)

    def get_events(self) -> List[SimulationEvent]:
        with self._lock:
            return self.event_log.events()

    def get_recent_events(self, count: int = 10) -> List[SimulationEvent]:
        with self._lock:
            return self.event_log.recent(count)

    def pending_actions(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(action.to_dict(), fire_time=t) for t, action in self._pending_actions]

    def summary(self) -> Dict[str, Any]:
        """Aggregate view of the run: status counts, incidents and SLA."""
        with self._lock:
            records = self.store.records.values()
            by_status = {status.value: 0 for status in NodeStatus}
            for record in records:
                by_status[record.status.value] += 1
            return {
                "state": self.clock.state.value,
                "tick": self.clock.tick_count,
                "time": self.clock.now,
                "nodes": len(self.store.records),
                "by_status": by_status,
                "open_incidents": sum(len(r.open_incidents) for r in records),
                "sla_violations": sorted(r.node_id for r in records if not r.sla.compliant),
                "events": self.event_log.counts_by_type(),
                "pending_actions": len(self._pending_actions),
            }
