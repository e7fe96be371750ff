"""
FastAPI dependency injection for API routes.

Provides:
  - ``EngineRegistry``: in-memory map of simulation id -> SimulationEngine,
    plus the background autotick tasks of running simulations
  - ``get_registry`` / ``get_engine`` dependencies resolving them from
    ``app.state``
"""

import asyncio
import logging
import uuid
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request

from twinsim.config import Settings, SimulationConfig
from twinsim.simulation import DependencyGraph, SimulationEngine

logger = logging.getLogger(__name__)


class EngineRegistry:
    """Live simulations of one API process. Nothing is persisted."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.engines: Dict[str, SimulationEngine] = {}
        self._tasks: Dict[str, asyncio.Task] = {}

    def create(self, graph: Dict[str, Any], config: Optional[Dict[str, Any]] = None) -> str:
        base = self.settings.simulation_config()
        if config:
            merged = base.to_dict()
            merged.update(config)
            base = SimulationConfig.from_dict(merged)
        engine = SimulationEngine(DependencyGraph.from_dict(graph), base)
        sid = uuid.uuid4().hex[:12]
        self.engines[sid] = engine
        logger.info(f"Created simulation {sid} ({len(engine.graph)} nodes)")
        return sid

    def get(self, sid: str) -> Optional[SimulationEngine]:
        return self.engines.get(sid)

    def delete(self, sid: str) -> bool:
        self.cancel_autotick(sid)
        engine = self.engines.pop(sid, None)
        if engine is None:
            return False
        logger.info(f"Deleted simulation {sid}")
        return True

    # ── Autotick ─────────────────────────────────────────────────────────

    def ensure_autotick(self, sid: str) -> bool:
        """Start the background ticker for ``sid`` unless one is already alive."""
        if not self.settings.autotick:
            return False
        task = self._tasks.get(sid)
        if task is not None and not task.done():
            return False
        self._tasks[sid] = asyncio.create_task(self._run(sid))
        return True

    def autotick_task(self, sid: str) -> Optional[asyncio.Task]:
        return self._tasks.get(sid)

    def is_autoticking(self, sid: str) -> bool:
        task = self._tasks.get(sid)
        return task is not None and not task.done()

    def cancel_autotick(self, sid: str) -> None:
        task = self._tasks.pop(sid, None)
        if task is not None and not task.done():
            task.cancel()

    async def _run(self, sid: str) -> None:
        engine = self.engines.get(sid)
        if engine is None:
            return
        interval = engine.config.tick_interval / engine.config.speed
        while engine.is_active():
            await asyncio.sleep(interval)
            if sid not in self.engines:
                break
            engine.tick()
        logger.debug(f"Autotick for {sid} finished at t={engine.clock.now}")

    async def shutdown(self) -> None:
        tasks = [t for t in self._tasks.values() if not t.done()]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()


# ── Dependencies ─────────────────────────────────────────────────────────

def get_registry(request: Request) -> EngineRegistry:
    return request.app.state.registry


def get_engine(sid: str, registry: EngineRegistry = Depends(get_registry)) -> SimulationEngine:
    """Resolve the ``sid`` path parameter or answer 404."""
    engine = registry.get(sid)
    if engine is None:
        raise HTTPException(status_code=404, detail=f"Simulation '{sid}' not found")
    return engine
