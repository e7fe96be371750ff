"""
Simulation endpoints: lifecycle, failure injection and observers.

Control calls on unknown nodes are accepted no-ops, mirroring the engine.
Reads on unknown nodes answer 404.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Dict, Any, Optional
import logging

from api.dependencies import EngineRegistry, get_engine, get_registry
from api.models import (
    CreateSimulationRequest,
    DegradeNodeRequest,
    FailNodeRequest,
    ScenarioRequest,
    SLARequest,
)
from twinsim.simulation import Scenario, SimulationEngine

router = APIRouter(prefix="/api/v1/simulations", tags=["simulation"])
logger = logging.getLogger(__name__)


def _require_node(engine: SimulationEngine, node_id: str) -> None:
    if not engine.has_node(node_id):
        raise HTTPException(status_code=404, detail=f"Node '{node_id}' not found")


def _state(engine: SimulationEngine) -> Dict[str, Any]:
    return {"state": engine.state.value, "tick": engine.clock.tick_count, "time": engine.clock.now}


# ============================================================================
# Lifecycle
# ============================================================================

@router.post("", response_model=Dict[str, Any], status_code=201)
async def create_simulation(
    request: CreateSimulationRequest,
    registry: EngineRegistry = Depends(get_registry),
):
    """Create a simulation from a graph and optional config overrides."""
    try:
        sid = registry.create(request.graph, request.config)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    engine = registry.get(sid)
    return {
        "success": True,
        "simulation_id": sid,
        "nodes": len(engine.graph),
        "config": engine.config.to_dict(),
    }


@router.delete("/{sid}", response_model=Dict[str, Any])
async def delete_simulation(sid: str, registry: EngineRegistry = Depends(get_registry)):
    if not registry.delete(sid):
        raise HTTPException(status_code=404, detail=f"Simulation '{sid}' not found")
    return {"success": True, "simulation_id": sid}


@router.post("/{sid}/start", response_model=Dict[str, Any])
async def start_simulation(
    sid: str,
    engine: SimulationEngine = Depends(get_engine),
    registry: EngineRegistry = Depends(get_registry),
):
    changed = engine.start()
    autotick = registry.ensure_autotick(sid) if engine.is_active() else False
    return {"success": True, "changed": changed, "autotick": autotick, **_state(engine)}


@router.post("/{sid}/pause", response_model=Dict[str, Any])
async def pause_simulation(engine: SimulationEngine = Depends(get_engine)):
    changed = engine.pause()
    return {"success": True, "changed": changed, **_state(engine)}


@router.post("/{sid}/stop", response_model=Dict[str, Any])
async def stop_simulation(
    sid: str,
    engine: SimulationEngine = Depends(get_engine),
    registry: EngineRegistry = Depends(get_registry),
):
    registry.cancel_autotick(sid)
    engine.stop()
    return {"success": True, **_state(engine)}


@router.post("/{sid}/reset", response_model=Dict[str, Any])
async def reset_simulation(
    sid: str,
    engine: SimulationEngine = Depends(get_engine),
    registry: EngineRegistry = Depends(get_registry),
):
    registry.cancel_autotick(sid)
    engine.reset()
    return {"success": True, **_state(engine)}


@router.post("/{sid}/tick", response_model=Dict[str, Any])
async def tick_simulation(
    count: int = Query(1, ge=1, le=10000, description="Ticks to run"),
    engine: SimulationEngine = Depends(get_engine),
):
    """Advance a running simulation manually. Returns how many ticks ran."""
    ticks = engine.advance(count)
    return {"success": True, "ticks": ticks, **_state(engine)}


@router.post("/{sid}/scenario", response_model=Dict[str, Any])
async def load_scenario(request: ScenarioRequest, engine: SimulationEngine = Depends(get_engine)):
    try:
        scenario = Scenario.from_dict(request.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    queued = engine.load_scenario(scenario)
    return {"success": True, "queued": queued, "pending": engine.pending_actions()}


# ============================================================================
# Failure injection
# ============================================================================

@router.post("/{sid}/nodes/{node_id}/fail", response_model=Dict[str, Any])
async def fail_node(
    node_id: str,
    request: Optional[FailNodeRequest] = None,
    engine: SimulationEngine = Depends(get_engine),
):
    duration = request.duration if request else None
    incident = engine.fail_node(node_id, duration)
    logger.info(f"API fail {node_id} (duration={duration})")
    return {"success": True, "incident": incident.to_dict() if incident else None}


@router.post("/{sid}/nodes/{node_id}/degrade", response_model=Dict[str, Any])
async def degrade_node(
    node_id: str,
    request: DegradeNodeRequest,
    engine: SimulationEngine = Depends(get_engine),
):
    incident = engine.degrade_node(node_id, request.level, request.duration)
    return {"success": True, "incident": incident.to_dict() if incident else None}


@router.post("/{sid}/nodes/{node_id}/recover", response_model=Dict[str, Any])
async def recover_node(node_id: str, engine: SimulationEngine = Depends(get_engine)):
    return {"success": True, "recovered": engine.recover_node(node_id)}


@router.put("/{sid}/nodes/{node_id}/sla", response_model=Dict[str, Any])
async def define_sla(
    node_id: str,
    request: SLARequest,
    engine: SimulationEngine = Depends(get_engine),
):
    _require_node(engine, node_id)
    try:
        engine.define_sla(node_id, request.targets())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "sla": engine.get_health_state(node_id).sla.to_dict()}


# ============================================================================
# Observers
# ============================================================================

@router.get("/{sid}/health", response_model=Dict[str, Any])
async def get_all_health(engine: SimulationEngine = Depends(get_engine)):
    states = engine.get_all_health_states()
    return {
        "success": True,
        "health": {node_id: record.to_dict() for node_id, record in states.items()},
    }


@router.get("/{sid}/health/{node_id}", response_model=Dict[str, Any])
async def get_node_health(node_id: str, engine: SimulationEngine = Depends(get_engine)):
    record = engine.get_health_state(node_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Node '{node_id}' not found")
    return {"success": True, "health": record.to_dict()}


@router.get("/{sid}/telemetry/{node_id}", response_model=Dict[str, Any])
async def get_telemetry(
    node_id: str,
    limit: Optional[int] = Query(None, ge=1, description="Most recent N samples"),
    engine: SimulationEngine = Depends(get_engine),
):
    _require_node(engine, node_id)
    samples = engine.get_telemetry(node_id, limit)
    return {
        "success": True,
        "node_id": node_id,
        "samples": [s.to_dict() for s in samples],
        "summary": engine.telemetry.summary(node_id),
    }


@router.get("/{sid}/events", response_model=Dict[str, Any])
async def get_events(
    recent: Optional[int] = Query(None, ge=1, description="Only the most recent N events"),
    engine: SimulationEngine = Depends(get_engine),
):
    events = engine.get_recent_events(recent) if recent else engine.get_events()
    return {"success": True, "count": len(events), "events": [e.to_dict() for e in events]}


@router.get("/{sid}/blast-radius/{node_id}", response_model=Dict[str, Any])
async def get_blast_radius(node_id: str, engine: SimulationEngine = Depends(get_engine)):
    _require_node(engine, node_id)
    return {"success": True, "result": engine.calculate_blast_radius(node_id).to_dict()}


@router.get("/{sid}/summary", response_model=Dict[str, Any])
async def get_summary(
    sid: str,
    engine: SimulationEngine = Depends(get_engine),
    registry: EngineRegistry = Depends(get_registry),
):
    return {"success": True, "summary": engine.summary(), "autotick": registry.is_autoticking(sid)}
