"""
Test Configuration and Fixtures
================================

Shared pytest fixtures for the simulation engine, CLI and API tests.

Usage:
    pytest tests/                    # Run all tests
    pytest tests/ -v                 # Verbose output
    pytest tests/ -k "blast"         # Run only blast radius tests
"""

import json
import random
import sys
from pathlib import Path
from typing import Any, Dict

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from twinsim.config import SimulationConfig
from twinsim.simulation import DependencyGraph, SimulationEngine


# =============================================================================
# Graph Fixtures
# =============================================================================

@pytest.fixture
def chain_graph_data() -> Dict[str, Any]:
    """db -> api -> web critical chain, plus a low-criticality cache edge."""
    return {
        "nodes": [
            {"id": "db", "type": "database"},
            {"id": "api", "type": "service"},
            {"id": "web", "type": "frontend"},
            {"id": "cache", "type": "cache"},
        ],
        "edges": [
            {"source": "db", "target": "api", "criticality": "critical"},
            {"source": "api", "target": "web", "criticality": "critical"},
            {"source": "db", "target": "cache", "criticality": "low"},
        ],
    }


@pytest.fixture
def blast_graph_data() -> Dict[str, Any]:
    """A -> B -> C critical, A -> D low."""
    return {
        "nodes": [{"id": n} for n in ("A", "B", "C", "D")],
        "edges": [
            {"source": "A", "target": "B", "criticality": "critical"},
            {"source": "B", "target": "C", "criticality": "critical"},
            {"source": "A", "target": "D", "criticality": "low"},
        ],
    }


@pytest.fixture
def cycle_graph_data() -> Dict[str, Any]:
    """A -> B -> C -> A, all critical."""
    return {
        "nodes": [{"id": n} for n in ("A", "B", "C")],
        "edges": [
            {"source": "A", "target": "B", "criticality": "critical"},
            {"source": "B", "target": "C", "criticality": "critical"},
            {"source": "C", "target": "A", "criticality": "critical"},
        ],
    }


@pytest.fixture
def chain_graph(chain_graph_data) -> DependencyGraph:
    return DependencyGraph.from_dict(chain_graph_data)


# =============================================================================
# Engine Fixtures
# =============================================================================

@pytest.fixture
def make_engine():
    """Factory: seeded engine over a graph dict with config overrides."""

    def _make(graph_data: Dict[str, Any], seed: int = 42, **overrides) -> SimulationEngine:
        config = SimulationConfig.from_dict(overrides)
        return SimulationEngine(
            DependencyGraph.from_dict(graph_data), config, rng=random.Random(seed)
        )

    return _make


@pytest.fixture
def engine(make_engine, chain_graph_data) -> SimulationEngine:
    return make_engine(chain_graph_data)


@pytest.fixture
def graph_file(tmp_path, chain_graph_data) -> Path:
    path = tmp_path / "graph.json"
    path.write_text(json.dumps(chain_graph_data))
    return path
