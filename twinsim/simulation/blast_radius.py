"""
Blast Radius Calculator

Breadth-first traversal from a failure epicenter along severe
(critical/high) dependency edges only. This is narrower than
raw reachability: medium/low edges still take part in real propagation but
do not extend the blast radius.

    radius              = deepest hop reached
    critical_path       = longest branch (first found wins on ties)
    estimated_downtime  = radius * minutes_per_hop
"""

from __future__ import annotations
import logging
from collections import deque
from typing import Deque, Dict, List, Set, Tuple

from .graph import DependencyGraph
from .models import BlastRadiusResult


class BlastRadiusCalculator:
    """Read-only blast radius analysis over a DependencyGraph."""

    def __init__(self, graph: DependencyGraph, minutes_per_hop: int = 5):
        self.graph = graph
        self.minutes_per_hop = minutes_per_hop
        self.logger = logging.getLogger(__name__)

    def calculate(self, epicenter_id: str) -> BlastRadiusResult:
        if epicenter_id not in self.graph:
            self.logger.debug(f"Blast radius requested for unknown node '{epicenter_id}'")
            return BlastRadiusResult(epicenter=epicenter_id)

        affected: List[str] = []
        connections: List[str] = []
        seen_connections: Set[str] = set()
        visited: Set[str] = set()
        depths: Dict[str, int] = {}
        critical_path: List[str] = [epicenter_id]

        queue: Deque[Tuple[str, int, List[str]]] = deque([(epicenter_id, 0, [epicenter_id])])
        while queue:
            node_id, depth, path = queue.popleft()
            if node_id in visited:
                continue
            visited.add(node_id)
            affected.append(node_id)
            depths[node_id] = depth

            for dep in self.graph.outgoing(node_id):
                if dep.id not in seen_connections:
                    seen_connections.add(dep.id)
                    connections.append(dep.id)

                if not dep.is_severe or dep.target in visited:
                    continue
                branch = path + [dep.target]
                if len(branch) > len(critical_path):
                    critical_path = branch
                queue.append((dep.target, depth + 1, branch))

        radius = max(depths.values())
        return BlastRadiusResult(
            epicenter=epicenter_id,
            radius=radius,
            affected_nodes=affected,
            affected_connections=connections,
            critical_path=critical_path,
            estimated_downtime=radius * self.minutes_per_hop,
            services_impacted=len(affected),
        )
