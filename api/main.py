"""
Digital-Twin Simulation API

FastAPI application exposing simulation lifecycle, failure injection,
health/telemetry/event observers and blast-radius analysis.
"""

from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.dependencies import EngineRegistry
from api.routers import health, simulation
from twinsim import __version__
from twinsim.config import Settings

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the API. Settings default to the environment."""
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Simulation API starting (autotick={settings.autotick})")
        yield
        await app.state.registry.shutdown()

    app = FastAPI(
        title="Digital-Twin Simulation API",
        description="Failure injection, cascade propagation and blast-radius analysis",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.registry = EngineRegistry(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(simulation.router)
    return app


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


# ============================================================================
# Main
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    env = Settings.from_env()
    _configure_logging(env.log_level)
    uvicorn.run(create_app(env), host="0.0.0.0", port=8000)
