"""
Failure Propagation

Cascade Rules:
    - Only a node at 0 health propagates.
    - Every outgoing edge reduces the target's health by a fixed delta
      (critical=100, high=70, medium=40, low=20), floored at 0.
    - A target that reaches exactly 0 propagates in turn.
    - Deltas from several failing upstreams add up; there is no
      "worst of" clamp across sources.

Cycles terminate because a node at 0 yields no further decrease; the
per-call visited set additionally keeps a node from being entered twice
in one pass.
"""

from __future__ import annotations
import logging
from typing import Dict, List, Optional, Set

from .event_log import EventLog
from .graph import DependencyGraph
from .health_store import HealthStore
from .models import Criticality, EventType, EventSeverity


HEALTH_IMPACT: Dict[Criticality, int] = {
    Criticality.CRITICAL: 100,
    Criticality.HIGH: 70,
    Criticality.MEDIUM: 40,
    Criticality.LOW: 20,
}


class FailurePropagator:
    """
    Walks outgoing dependency edges from a failed node and reduces
    downstream health according to edge criticality.

    Example:
        >>> propagator = FailurePropagator(graph, store, event_log)
        >>> store.propagator = propagator
        >>> store.fail("db")   # cascades into everything depending on db
    """

    def __init__(self, graph: DependencyGraph, store: HealthStore, event_log: EventLog):
        self.graph = graph
        self.store = store
        self.event_log = event_log
        self.logger = logging.getLogger(__name__)

    def propagate(self, failed_node_id: str, visited: Optional[Set[str]] = None) -> List[str]:
        """
        Propagate the failure of ``failed_node_id`` downstream.

        Args:
            failed_node_id: Node whose health reached 0
            visited: Nodes already entered in this pass (internal)

        Returns:
            Ids of nodes whose health decreased, in cascade order
        """
        record = self.store.get(failed_node_id)
        if record is None or record.health > 0:
            return []

        if visited is None:
            visited = set()
        visited.add(failed_node_id)

        affected = []
        for dep in self.graph.outgoing(failed_node_id):
            new_health = self.store.apply_impact(dep.target, HEALTH_IMPACT[dep.criticality])
            if new_health is None:
                continue

            affected.append(dep.target)
            self.event_log.append(
                EventType.CASCADE_STARTED,
                dep.target,
                f"Node {dep.target} affected by failure of {failed_node_id}. Health: {new_health}%",
                EventSeverity.ERROR if new_health == 0 else EventSeverity.WARNING,
            )
            self.logger.debug(
                f"Cascade {failed_node_id} -> {dep.target} ({dep.criticality.value}): {new_health}%"
            )

            if new_health == 0 and dep.target not in visited:
                affected.extend(self.propagate(dep.target, visited))

        return affected
