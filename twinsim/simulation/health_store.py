"""
Health Store

Per-node health records and the only code paths that write them:
fail, degrade, recover and apply_impact (the latter used by cascade
propagation). Operations on unknown node ids are silent no-ops.
"""

from __future__ import annotations
import logging
from typing import Callable, Dict, Optional, TYPE_CHECKING

from twinsim.config.settings import SLATargets
from .event_log import EventLog
from .graph import DependencyGraph
from .models import (
    EventType,
    EventSeverity,
    HealthRecord,
    Incident,
    IncidentSeverity,
    IncidentType,
    SLAMetrics,
)

if TYPE_CHECKING:
    from .propagation import FailurePropagator
    from .recovery import RecoveryScheduler


class HealthStore:
    """
    Mutable simulation state: one HealthRecord per graph node.

    ``propagator`` and ``scheduler`` are wired by the engine. When set,
    fail/degrade hand newly-down nodes to the propagator and register
    duration-bound recoveries with the scheduler.
    """

    def __init__(
        self,
        event_log: EventLog,
        clock: Callable[[], float],
        sla_targets: Optional[Callable[[str], SLATargets]] = None,
    ):
        self.event_log = event_log
        self._clock = clock
        self._sla_targets = sla_targets or (lambda node_id: SLATargets())
        self.records: Dict[str, HealthRecord] = {}
        self.propagator: Optional[FailurePropagator] = None
        self.scheduler: Optional[RecoveryScheduler] = None
        self._incident_counter = 0
        self.logger = logging.getLogger(__name__)

    def initialize(self, graph: DependencyGraph) -> None:
        """Create a full-health record for every node, discarding the old ones."""
        now = self._clock()
        self.records = {
            node_id: HealthRecord(
                node_id=node_id,
                last_checked=now,
                sla=SLAMetrics(targets=self._sla_targets(node_id)),
            )
            for node_id in graph.node_ids
        }

    def get(self, node_id: str) -> Optional[HealthRecord]:
        return self.records.get(node_id)

    def __contains__(self, node_id: str) -> bool:
        return node_id in self.records

    # =========================================================================
    # Mutations
    # =========================================================================

    def fail(self, node_id: str, duration: Optional[float] = None) -> Optional[Incident]:
        """
        Take a node down completely.

        Args:
            node_id: Node to fail
            duration: Seconds after which the node recovers on its own

        Returns:
            The new Incident, or None for unknown or already-down nodes
        """
        record = self.records.get(node_id)
        if record is None or record.is_down:
            return None

        now = self._clock()
        record.set_health(0, now)
        incident = self._open_incident(
            record, IncidentType.FAILURE, IncidentSeverity.CRITICAL, "Node failed"
        )
        self.event_log.append(
            EventType.NODE_FAILED, node_id, f"Node {node_id} failed", EventSeverity.ERROR
        )
        self.logger.info(f"Injected failure into '{node_id}'")

        self._schedule_recovery(node_id, duration)
        if self.propagator is not None:
            self.propagator.propagate(node_id)
        return incident

    def degrade(self, node_id: str, level: float, duration: Optional[float] = None) -> Optional[Incident]:
        """
        Set a node's health to ``level`` (clamped to [0, 100]).

        Returns:
            The new Incident, or None for unknown nodes
        """
        record = self.records.get(node_id)
        if record is None:
            return None

        now = self._clock()
        health = record.set_health(level, now)
        severity = IncidentSeverity.HIGH if health < 30 else IncidentSeverity.MEDIUM
        incident = self._open_incident(
            record, IncidentType.DEGRADATION, severity, f"Node degraded to {health}% health"
        )
        self.event_log.append(
            EventType.NODE_DEGRADED,
            node_id,
            f"Node {node_id} degraded to {health}%",
            EventSeverity.WARNING,
        )
        self.logger.info(f"Degraded '{node_id}' to {health}%")

        self._schedule_recovery(node_id, duration)
        if self.propagator is not None:
            self.propagator.propagate(node_id)
        return incident

    def recover(self, node_id: str, reason: Optional[str] = None) -> bool:
        """
        Restore a node to full health and resolve its open incidents.

        Recovery is local: dependents degraded by this node's failure keep
        their reduced health. A node already at full health with no open
        incidents is left untouched and no event is logged.

        Returns:
            True if the node changed
        """
        record = self.records.get(node_id)
        if record is None:
            return False
        open_incidents = record.open_incidents
        if record.health == 100 and not open_incidents:
            return False

        now = self._clock()
        record.set_health(100, now)
        for incident in open_incidents:
            incident.resolve(now)

        message = f"Node {node_id} recovered"
        if reason:
            message = f"{message} ({reason})"
        self.event_log.append(EventType.NODE_RECOVERED, node_id, message, EventSeverity.INFO)
        self.logger.debug(message)
        return True

    def apply_impact(self, node_id: str, delta: int) -> Optional[int]:
        """
        Reduce a node's health by ``delta``, flooring at 0.

        Returns:
            The new health if it strictly decreased, else None
        """
        record = self.records.get(node_id)
        if record is None:
            return None
        new_health = max(0, record.health - delta)
        if new_health >= record.health:
            return None
        return record.set_health(new_health, self._clock())

    # =========================================================================
    # Internal
    # =========================================================================

    def _open_incident(
        self,
        record: HealthRecord,
        incident_type: IncidentType,
        severity: IncidentSeverity,
        message: str,
    ) -> Incident:
        self._incident_counter += 1
        incident = Incident(
            id=f"inc_{self._incident_counter:06d}",
            node_id=record.node_id,
            type=incident_type,
            timestamp=record.last_checked,
            severity=severity,
            message=message,
        )
        record.incidents.append(incident)
        return incident

    def _schedule_recovery(self, node_id: str, duration: Optional[float]) -> None:
        if duration and duration > 0 and self.scheduler is not None:
            self.scheduler.schedule(node_id, duration)
