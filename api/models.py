"""
Pydantic models for API requests and responses.
"""

from pydantic import BaseModel, Field
from typing import Dict, Any, List, Optional


class CreateSimulationRequest(BaseModel):
    graph: Dict[str, Any] = Field(..., description="Graph with 'nodes' and 'edges'")
    config: Optional[Dict[str, Any]] = Field(
        default=None, description="SimulationConfig overrides (same keys as the YAML config)"
    )


class FailNodeRequest(BaseModel):
    duration: Optional[float] = Field(
        default=None, gt=0, description="Seconds until automatic recovery"
    )


class DegradeNodeRequest(BaseModel):
    level: float = Field(..., description="Target health; clamped to [0, 100]")
    duration: Optional[float] = Field(
        default=None, gt=0, description="Seconds until automatic recovery"
    )


class SLARequest(BaseModel):
    availability: Optional[float] = Field(default=None, description="Minimum health (%)")
    latency: Optional[float] = Field(default=None, description="Maximum p99 latency (ms)")
    error_rate: Optional[float] = Field(default=None, description="Maximum error rate (%)")

    def targets(self) -> Dict[str, float]:
        return {k: v for k, v in self.model_dump().items() if v is not None}


class ScenarioActionModel(BaseModel):
    time: float = Field(..., ge=0, description="Seconds after the scenario is loaded")
    type: str = Field(..., description="fail, degrade or recover")
    target: str
    level: Optional[float] = None
    duration: Optional[float] = None


class ScenarioRequest(BaseModel):
    name: str = "scenario"
    description: str = ""
    duration: Optional[float] = None
    actions: List[ScenarioActionModel] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    version: str
    simulations: int
