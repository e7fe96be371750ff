"""
Health check endpoints.
"""

from fastapi import APIRouter, Depends
from typing import Dict, Any
from datetime import datetime, timezone

from api.dependencies import EngineRegistry, get_registry
from api.models import HealthResponse
from twinsim import __version__

router = APIRouter()


@router.get("/", response_model=Dict[str, Any])
async def root():
    """Root endpoint - API information"""
    return {
        "name": "Digital-Twin Simulation API",
        "version": __version__,
        "status": "running",
        "endpoints": {
            "health": "/health",
            "simulations": "/api/v1/simulations",
            "node_health": "/api/v1/simulations/{sid}/health",
            "telemetry": "/api/v1/simulations/{sid}/telemetry/{node_id}",
            "events": "/api/v1/simulations/{sid}/events",
            "blast_radius": "/api/v1/simulations/{sid}/blast-radius/{node_id}",
            "summary": "/api/v1/simulations/{sid}/summary",
        },
    }


@router.get("/health", response_model=HealthResponse)
async def health_check(registry: EngineRegistry = Depends(get_registry)):
    """Liveness probe."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=__version__,
        simulations=len(registry.engines),
    )
