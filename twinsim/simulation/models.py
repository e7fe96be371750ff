from __future__ import annotations
import math
from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional
from enum import Enum

from twinsim.config.settings import SLATargets


# =============================================================================
# Enums
# =============================================================================

class Criticality(Enum):
    """Weight of a dependency edge; controls cascade severity."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional[Criticality]:
        if value is None or value == "":
            return None
        if isinstance(value, Criticality):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(
                f"Unknown criticality '{value}'. Must be one of: "
                f"{', '.join(c.value for c in cls)}"
            ) from None


class NodeStatus(Enum):
    """Health status tag, always derived from the numeric health."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    DOWN = "down"

    @classmethod
    def from_health(cls, health: int) -> NodeStatus:
        if health <= 0:
            return cls.DOWN
        if health < 50:
            return cls.DEGRADED
        return cls.HEALTHY


class IncidentType(Enum):
    FAILURE = "failure"
    DEGRADATION = "degradation"


class IncidentSeverity(Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class EventType(Enum):
    """Types of entries in the simulation event log."""
    SIMULATION_STARTED = "simulation-started"
    SIMULATION_PAUSED = "simulation-paused"
    SIMULATION_STOPPED = "simulation-stopped"
    NODE_FAILED = "node-failed"
    NODE_DEGRADED = "node-degraded"
    NODE_RECOVERED = "node-recovered"
    CASCADE_STARTED = "cascade-started"
    SLA_VIOLATED = "sla-violated"


class EventSeverity(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ClockState(Enum):
    STOPPED = "stopped"
    RUNNING = "running"
    PAUSED = "paused"


# =============================================================================
# Health
# =============================================================================

@dataclass
class SLAMetrics:
    """Current SLA snapshot of a node: targets, actuals and compliance."""
    targets: SLATargets = field(default_factory=SLATargets)
    availability_actual: float = 100.0
    latency_actual: float = 50.0
    error_rate_actual: float = 0.1
    compliant: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "availability_target": self.targets.availability,
            "availability_actual": self.availability_actual,
            "latency_target": self.targets.latency,
            "latency_actual": self.latency_actual,
            "error_rate_target": self.targets.error_rate,
            "error_rate_actual": self.error_rate_actual,
            "compliant": self.compliant,
        }


@dataclass
class Incident:
    """A failure or degradation injected into a node."""
    id: str
    node_id: str
    type: IncidentType
    timestamp: float
    severity: IncidentSeverity
    message: str
    resolved: bool = False
    resolved_at: Optional[float] = None

    def resolve(self, when: float) -> bool:
        """Mark resolved; only the first call has an effect."""
        if self.resolved:
            return False
        self.resolved = True
        self.resolved_at = when
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "node_id": self.node_id,
            "type": self.type.value,
            "timestamp": self.timestamp,
            "severity": self.severity.value,
            "message": self.message,
            "resolved": self.resolved,
            "resolved_at": self.resolved_at,
        }


@dataclass
class HealthRecord:
    """
    Mutable per-node health state.

    ``status`` is a view over ``health`` and cannot be assigned. Writes to
    ``health`` go through :meth:`set_health`, which clamps to [0, 100].
    """
    node_id: str
    health: int = 100
    last_checked: float = 0.0
    incidents: List[Incident] = field(default_factory=list)
    sla: SLAMetrics = field(default_factory=SLAMetrics)

    @property
    def status(self) -> NodeStatus:
        return NodeStatus.from_health(self.health)

    @property
    def is_down(self) -> bool:
        return self.health == 0

    @property
    def open_incidents(self) -> List[Incident]:
        return [i for i in self.incidents if not i.resolved]

    def set_health(self, value: float, when: float) -> int:
        value = 0.0 if math.isnan(value) else max(0.0, min(100.0, float(value)))
        self.health = int(round(value))
        self.last_checked = when
        return self.health

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_id": self.node_id,
            "health": self.health,
            "status": self.status.value,
            "last_checked": self.last_checked,
            "incidents": [i.to_dict() for i in self.incidents],
            "sla": self.sla.to_dict(),
        }


# =============================================================================
# Telemetry
# =============================================================================

@dataclass
class LatencyStats:
    p50: int
    p95: int
    p99: int
    avg: int

    def to_dict(self) -> Dict[str, int]:
        return {"p50": self.p50, "p95": self.p95, "p99": self.p99, "avg": self.avg}


@dataclass
class TelemetrySample:
    """Synthetic metrics for one node at one tick."""
    node_id: str
    timestamp: float
    rps: int
    latency: LatencyStats
    error_rate: float   # percent
    cpu: int            # percent
    memory: int         # MB
    connections: Dict[str, int] = field(default_factory=dict)
    traffic: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_id": self.node_id,
            "timestamp": self.timestamp,
            "rps": self.rps,
            "latency": self.latency.to_dict(),
            "error_rate": self.error_rate,
            "cpu": self.cpu,
            "memory": self.memory,
            "connections": dict(self.connections),
            "traffic": dict(self.traffic),
        }


# =============================================================================
# Events & Results
# =============================================================================

@dataclass(frozen=True)
class SimulationEvent:
    """An immutable event log entry."""
    id: str
    timestamp: float
    type: EventType
    node_id: str
    message: str
    severity: EventSeverity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "type": self.type.value,
            "node_id": self.node_id,
            "message": self.message,
            "severity": self.severity.value,
        }


@dataclass
class BlastRadiusResult:
    """Blast radius of a failure epicenter. Computed on demand, never cached."""
    epicenter: str
    radius: int = 0
    affected_nodes: List[str] = field(default_factory=list)
    affected_connections: List[str] = field(default_factory=list)
    critical_path: List[str] = field(default_factory=list)
    estimated_downtime: int = 0  # minutes
    services_impacted: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "epicenter": self.epicenter,
            "radius": self.radius,
            "affected_nodes": list(self.affected_nodes),
            "affected_connections": list(self.affected_connections),
            "critical_path": list(self.critical_path),
            "estimated_downtime": self.estimated_downtime,
            "services_impacted": self.services_impacted,
        }
