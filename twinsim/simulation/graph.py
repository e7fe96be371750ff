"""
Dependency Graph

Read-only view of the architecture graph for one simulation run.
An edge ``source -> target`` means *target depends on source*: when the
source fails, the target's health is reduced by the edge criticality.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Dict, List, Iterator, Optional

import networkx as nx

from twinsim.core.models import GraphData
from .models import Criticality


# Default criticality inferred from the edge type tag when none is given.
TYPE_CRITICALITY: Dict[str, Criticality] = {
    "database": Criticality.CRITICAL,
    "cache": Criticality.MEDIUM,
    "queue": Criticality.LOW,
}


@dataclass(frozen=True)
class Dependency:
    """A resolved dependency edge."""
    id: str
    source: str
    target: str
    criticality: Criticality
    edge_type: Optional[str] = None

    @property
    def is_severe(self) -> bool:
        return self.criticality in (Criticality.CRITICAL, Criticality.HIGH)


def resolve_criticality(criticality: Optional[str], edge_type: Optional[str]) -> Criticality:
    """Explicit criticality, else a default from the edge type, else medium."""
    explicit = Criticality.parse(criticality)
    if explicit is not None:
        return explicit
    if edge_type:
        return TYPE_CRITICALITY.get(str(edge_type).lower(), Criticality.MEDIUM)
    return Criticality.MEDIUM


class DependencyGraph:
    """
    Directed multigraph of components keyed by node id.

    Nodes and edges live in a networkx ``MultiDiGraph`` so parallel edges
    between the same pair survive and cycles are representable. The graph
    is never mutated after construction.
    """

    def __init__(self, graph_data: Optional[GraphData] = None):
        self.logger = logging.getLogger(__name__)
        self.graph = nx.MultiDiGraph()
        if graph_data is not None:
            self._load(graph_data)

    def _load(self, graph_data: GraphData) -> None:
        for comp in graph_data.components:
            self.graph.add_node(comp.id, type=comp.component_type, name=comp.name)

        for edge in graph_data.edges:
            if edge.source_id not in self.graph or edge.target_id not in self.graph:
                self.logger.warning(
                    f"Edge '{edge.id}' references unknown node(s) "
                    f"{edge.source_id} -> {edge.target_id}, skipping."
                )
                continue
            dep = Dependency(
                id=edge.id,
                source=edge.source_id,
                target=edge.target_id,
                criticality=resolve_criticality(edge.criticality, edge.edge_type),
                edge_type=edge.edge_type,
            )
            self.graph.add_edge(dep.source, dep.target, key=dep.id, dependency=dep)

        cycles = self.find_cycles(limit=10)
        if cycles:
            self.logger.info(f"Graph contains dependency cycles, e.g. {' -> '.join(cycles[0])}")

    @classmethod
    def from_dict(cls, data: Dict) -> DependencyGraph:
        return cls(GraphData.from_dict(data))

    # =========================================================================
    # Queries
    # =========================================================================

    def __contains__(self, node_id: str) -> bool:
        return node_id in self.graph

    def __len__(self) -> int:
        return self.graph.number_of_nodes()

    @property
    def node_ids(self) -> List[str]:
        return list(self.graph.nodes)

    def node_type(self, node_id: str) -> Optional[str]:
        if node_id not in self.graph:
            return None
        return self.graph.nodes[node_id].get("type")

    def dependencies(self) -> Iterator[Dependency]:
        for _, _, data in self.graph.edges(data=True):
            yield data["dependency"]

    def outgoing(self, node_id: str) -> List[Dependency]:
        """Edges leaving ``node_id`` (its dependents), in insertion order."""
        if node_id not in self.graph:
            return []
        return [data["dependency"] for _, _, data in self.graph.out_edges(node_id, data=True)]

    def incoming(self, node_id: str) -> List[Dependency]:
        if node_id not in self.graph:
            return []
        return [data["dependency"] for _, _, data in self.graph.in_edges(node_id, data=True)]

    def find_cycles(self, limit: int = 100) -> List[List[str]]:
        """Up to ``limit`` elementary dependency cycles."""
        cycles = []
        for cycle in nx.simple_cycles(nx.DiGraph(self.graph)):
            cycles.append(cycle)
            if len(cycles) >= limit:
                break
        return cycles
