"""
Simulation Settings

Engine tuning (SimulationConfig, loadable from YAML) and process-level
settings read from the environment.
"""

from __future__ import annotations
import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, Optional

import yaml

logger = logging.getLogger(__name__)


@dataclass
class SLATargets:
    """Thresholds a node's live telemetry is checked against."""
    availability: float = 99.9   # percent
    latency: float = 200.0       # ms, compared with p99
    error_rate: float = 1.0      # percent

    def to_dict(self) -> Dict[str, float]:
        return {
            "availability": self.availability,
            "latency": self.latency,
            "error_rate": self.error_rate,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base: Optional[SLATargets] = None) -> SLATargets:
        base = base or cls()
        targets = cls(
            availability=float(data.get("availability", base.availability)),
            latency=float(data.get("latency", base.latency)),
            error_rate=float(data.get("error_rate", base.error_rate)),
        )
        if not 0 <= targets.availability <= 100:
            raise ValueError(f"SLA availability must be within [0, 100], got {targets.availability}")
        if targets.latency < 0 or targets.error_rate < 0:
            raise ValueError("SLA latency and error_rate targets must be non-negative")
        return targets


@dataclass
class SimulationConfig:
    """
    Tuning knobs for a simulation run.

    Defaults: one tick per simulated second, 30 s self-heal threshold at
    70% success, 100 telemetry samples and 1000 events retained, 5 minutes
    of downtime per blast-radius hop.
    """
    tick_interval: float = 1.0
    speed: float = 1.0
    cascade_enabled: bool = True
    telemetry_enabled: bool = True
    auto_recovery_enabled: bool = True
    auto_recovery_threshold: float = 30.0
    auto_recovery_probability: float = 0.7
    telemetry_history_size: int = 100
    event_log_capacity: int = 1000
    minutes_per_hop: int = 5
    seed: Optional[int] = None
    default_sla: SLATargets = field(default_factory=SLATargets)
    sla_overrides: Dict[str, SLATargets] = field(default_factory=dict)

    def sla_for(self, node_id: str) -> SLATargets:
        return self.sla_overrides.get(node_id, self.default_sla)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tick_interval": self.tick_interval,
            "speed": self.speed,
            "cascade_enabled": self.cascade_enabled,
            "telemetry_enabled": self.telemetry_enabled,
            "auto_recovery_enabled": self.auto_recovery_enabled,
            "auto_recovery_threshold": self.auto_recovery_threshold,
            "auto_recovery_probability": self.auto_recovery_probability,
            "telemetry_history_size": self.telemetry_history_size,
            "event_log_capacity": self.event_log_capacity,
            "minutes_per_hop": self.minutes_per_hop,
            "seed": self.seed,
            "default_sla": self.default_sla.to_dict(),
            "sla_overrides": {k: v.to_dict() for k, v in self.sla_overrides.items()},
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> SimulationConfig:
        """
        Build a config from a (possibly partial) mapping.

        Raises:
            ValueError: on unknown keys or out-of-range values
        """
        data = dict(data or {})
        known = set(cls.__dataclass_fields__)
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown simulation config keys: {', '.join(sorted(unknown))}")

        default_sla = SLATargets.from_dict(data.pop("default_sla", None) or {})
        overrides = {
            str(node_id): SLATargets.from_dict(targets or {}, base=default_sla)
            for node_id, targets in (data.pop("sla_overrides", None) or {}).items()
        }

        config = cls(default_sla=default_sla, sla_overrides=overrides, **data)
        config.validate()
        return config

    def validate(self) -> None:
        if self.tick_interval <= 0:
            raise ValueError(f"tick_interval must be positive, got {self.tick_interval}")
        if self.speed <= 0:
            raise ValueError(f"speed must be positive, got {self.speed}")
        if not 0.0 <= self.auto_recovery_probability <= 1.0:
            raise ValueError(
                f"auto_recovery_probability must be within [0, 1], got {self.auto_recovery_probability}"
            )
        if self.auto_recovery_threshold < 0:
            raise ValueError("auto_recovery_threshold must be non-negative")
        if self.telemetry_history_size < 1 or self.event_log_capacity < 1:
            raise ValueError("telemetry_history_size and event_log_capacity must be at least 1")
        if self.minutes_per_hop < 0:
            raise ValueError("minutes_per_hop must be non-negative")


def load_config(path: str | Path) -> SimulationConfig:
    """
    Load a SimulationConfig from a YAML file.

    The keys may sit at the top level or under a ``simulation:`` section.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    section = data.get("simulation", data)
    logger.info(f"Loaded simulation config from {path}")
    return SimulationConfig.from_dict(section)


@dataclass
class Settings:
    """Process settings from environment."""

    config_path: Optional[str] = None
    seed: Optional[int] = None
    autotick: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        seed = os.getenv("TWINSIM_SEED")
        return cls(
            config_path=os.getenv("TWINSIM_CONFIG") or None,
            seed=int(seed) if seed else None,
            autotick=os.getenv("TWINSIM_AUTOTICK", "true").lower() in ("1", "true", "yes"),
            log_level=os.getenv("TWINSIM_LOG_LEVEL", "INFO").upper(),
        )

    def simulation_config(self) -> SimulationConfig:
        """Resolve the SimulationConfig these settings point at."""
        config = load_config(self.config_path) if self.config_path else SimulationConfig()
        if self.seed is not None:
            config.seed = self.seed
        return config
