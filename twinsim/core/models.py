"""
Core Value Objects

Graph snapshot handed to the simulation engine by the editor/import layer.
A snapshot is immutable for the duration of a run; structural edits require
stopping the engine and building a new one.
"""
from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Any, Optional

logger = logging.getLogger(__name__)

# Keys that are lifted out of an edge payload; everything else lands in properties.
_EDGE_KEYS = ("id", "source", "target", "criticality", "type", "data")


@dataclass
class ComponentData:
    """A component (vertex) of the architecture graph."""
    id: str
    component_type: str = "service"
    properties: Dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.properties.get("name", self.properties.get("label", self.id))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.component_type,
            **self.properties,
        }


@dataclass
class EdgeData:
    """A dependency edge: ``target`` depends on the health of ``source``."""
    source_id: str
    target_id: str
    criticality: Optional[str] = None
    edge_type: Optional[str] = None
    id: str = ""
    properties: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.id:
            self.id = f"{self.source_id}->{self.target_id}"

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "id": self.id,
            "source": self.source_id,
            "target": self.target_id,
            **self.properties,
        }
        if self.criticality:
            result["criticality"] = self.criticality
        if self.edge_type:
            result["type"] = self.edge_type
        return result


@dataclass
class GraphData:
    """A complete graph snapshot with components and edges."""
    components: List[ComponentData] = field(default_factory=list)
    edges: List[EdgeData] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [c.to_dict() for c in self.components],
            "edges": [e.to_dict() for e in self.edges],
        }

    def get_component(self, component_id: str) -> Optional[ComponentData]:
        for comp in self.components:
            if comp.id == component_id:
                return comp
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> GraphData:
        """
        Build a snapshot from a dictionary.

        Accepts both the flat form::

            {"nodes": [{"id": "api", "type": "service"}],
             "edges": [{"source": "db", "target": "api", "criticality": "critical"}]}

        and the editor form where edge attributes sit under ``data``::

            {"edges": [{"id": "e1", "source": "db", "target": "api",
                        "data": {"criticality": "high", "type": "database"}}]}

        ``components`` is accepted as an alias for ``nodes``.
        """
        if not isinstance(data, dict):
            raise ValueError("Graph data must be a mapping with 'nodes' and 'edges'")

        graph = cls()
        for item in data.get("nodes", data.get("components", [])):
            comp_id = item.get("id")
            if not comp_id:
                raise ValueError(f"Graph node without an id: {item!r}")
            props = {k: v for k, v in item.items() if k not in ("id", "type", "data")}
            props.update(item.get("data") or {})
            graph.components.append(ComponentData(
                id=str(comp_id),
                component_type=item.get("type", "service"),
                properties=props,
            ))

        for item in data.get("edges", []):
            source = item.get("source") or item.get("from")
            target = item.get("target") or item.get("to")
            if not source or not target:
                raise ValueError(f"Graph edge without source/target: {item!r}")
            extra = item.get("data")
            if extra:
                # editor form: the top-level type is a render hint
                criticality = extra.get("criticality", item.get("criticality"))
                edge_type = extra.get("type")
            else:
                criticality = item.get("criticality")
                edge_type = item.get("type")
            graph.edges.append(EdgeData(
                source_id=str(source),
                target_id=str(target),
                criticality=criticality,
                edge_type=edge_type,
                id=str(item.get("id", "")),
                properties={k: v for k, v in item.items() if k not in _EDGE_KEYS and k not in ("from", "to")},
            ))

        logger.info(f"Loaded graph: {len(graph.components)} nodes, {len(graph.edges)} edges")
        return graph

    @classmethod
    def from_json(cls, path: str | Path) -> GraphData:
        """Load a snapshot from a JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls.from_dict(data)
