"""
Simulation Module for Digital-Twin Failure Analysis
===================================================

Failure injection, cascade propagation and blast-radius analysis over an
architecture dependency graph, with synthetic telemetry and SLA checks:

- SimulationEngine: owns one run and exposes the control/observer surface
- DependencyGraph: read-only networkx view of the architecture
- BlastRadiusCalculator: severe-edge impact analysis
- Scenario: time-scripted injections replayed by the engine

Usage:
    from twinsim.simulation import DependencyGraph, SimulationEngine

    graph = DependencyGraph.from_dict(data)
    engine = SimulationEngine(graph)
    engine.start()
    engine.fail_node("db")
    engine.advance(10)
    print(engine.summary())
"""

from .models import (
    # Enums
    Criticality,
    NodeStatus,
    IncidentType,
    IncidentSeverity,
    EventType,
    EventSeverity,
    ClockState,

    # Data classes
    SLAMetrics,
    Incident,
    HealthRecord,
    LatencyStats,
    TelemetrySample,
    SimulationEvent,
    BlastRadiusResult,
)

from .graph import DependencyGraph, Dependency, resolve_criticality
from .event_log import EventLog
from .health_store import HealthStore
from .propagation import FailurePropagator, HEALTH_IMPACT
from .blast_radius import BlastRadiusCalculator
from .telemetry import TelemetrySynthesizer, TelemetryHistory
from .sla_monitor import SLAMonitor
from .recovery import RecoveryScheduler
from .clock import SimulationClock
from .scenario import Scenario, ScenarioAction, load_scenario
from .engine import SimulationEngine

__all__ = [
    "Criticality",
    "NodeStatus",
    "IncidentType",
    "IncidentSeverity",
    "EventType",
    "EventSeverity",
    "ClockState",
    "SLAMetrics",
    "Incident",
    "HealthRecord",
    "LatencyStats",
    "TelemetrySample",
    "SimulationEvent",
    "BlastRadiusResult",
    "DependencyGraph",
    "Dependency",
    "resolve_criticality",
    "EventLog",
    "HealthStore",
    "FailurePropagator",
    "HEALTH_IMPACT",
    "BlastRadiusCalculator",
    "TelemetrySynthesizer",
    "TelemetryHistory",
    "SLAMonitor",
    "RecoveryScheduler",
    "SimulationClock",
    "Scenario",
    "ScenarioAction",
    "load_scenario",
    "SimulationEngine",
]
