"""
Scenarios

A scenario is a time-scripted list of fail/degrade/recover actions that
the engine replays as simulated time passes. Scenarios are plain YAML:

    name: database-outage
    description: Primary database fails, cache degrades
    duration: 120
    actions:
      - {time: 5, type: fail, target: db, duration: 60}
      - {time: 10, type: degrade, target: cache, level: 40}
      - {time: 90, type: recover, target: cache}
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

ACTION_TYPES = ("fail", "degrade", "recover")


@dataclass
class ScenarioAction:
    """One injection at a point in simulated time (seconds from load)."""
    time: float
    type: str
    target: str
    level: Optional[float] = None
    duration: Optional[float] = None

    def __post_init__(self):
        if self.type not in ACTION_TYPES:
            raise ValueError(
                f"Unknown scenario action type '{self.type}'. "
                f"Must be one of: {', '.join(ACTION_TYPES)}"
            )
        if self.type == "degrade" and self.level is None:
            raise ValueError(f"Degrade action on '{self.target}' requires a level")
        if self.time < 0:
            raise ValueError(f"Scenario action time must be non-negative, got {self.time}")

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"time": self.time, "type": self.type, "target": self.target}
        if self.level is not None:
            result["level"] = self.level
        if self.duration is not None:
            result["duration"] = self.duration
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ScenarioAction:
        if not isinstance(data, dict):
            raise ValueError(f"Scenario action must be a mapping, got {type(data).__name__}")
        missing = [key for key in ("time", "type", "target") if key not in data]
        if missing:
            raise ValueError(f"Scenario action missing required field(s): {', '.join(missing)}")
        level = data.get("level")
        duration = data.get("duration")
        return cls(
            time=float(data["time"]),
            type=str(data["type"]).lower(),
            target=str(data["target"]),
            level=float(level) if level is not None else None,
            duration=float(duration) if duration is not None else None,
        )


@dataclass
class Scenario:
    name: str
    description: str = ""
    duration: Optional[float] = None
    actions: List[ScenarioAction] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "duration": self.duration,
            "actions": [a.to_dict() for a in self.actions],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Scenario:
        if not isinstance(data, dict):
            raise ValueError("Scenario must be a mapping")
        actions = data.get("actions") or []
        if not isinstance(actions, list):
            raise ValueError("Scenario 'actions' must be a list")
        duration = data.get("duration")
        return cls(
            name=str(data.get("name", "scenario")),
            description=str(data.get("description", "")),
            duration=float(duration) if duration is not None else None,
            actions=[ScenarioAction.from_dict(a) for a in actions],
        )


def load_scenario(path: str | Path) -> Scenario:
    """Load a Scenario from a YAML file."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    scenario = Scenario.from_dict(data or {})
    logger.info(f"Loaded scenario '{scenario.name}' with {len(scenario.actions)} action(s) from {path}")
    return scenario
