"""
Simulation Clock

Run-state machine and simulated time. The clock only knows about time;
the engine decides what happens inside a tick.

    stopped --start--> running --pause--> paused --start--> running
       ^                  |                  |
       +------stop--------+-------stop-------+
"""

from __future__ import annotations
import logging

from .models import ClockState


class SimulationClock:
    """Simulated seconds since the run started, advanced in fixed steps."""

    def __init__(self, tick_interval: float = 1.0):
        self.tick_interval = tick_interval
        self.state = ClockState.STOPPED
        self.now = 0.0
        self.tick_count = 0
        self.logger = logging.getLogger(__name__)

    def __call__(self) -> float:
        return self.now

    @property
    def is_running(self) -> bool:
        return self.state == ClockState.RUNNING

    def start(self) -> bool:
        """Enter ``running``. Returns False if already running."""
        if self.state == ClockState.RUNNING:
            return False
        self.state = ClockState.RUNNING
        return True

    def pause(self) -> bool:
        """Enter ``paused`` from ``running``. Returns False otherwise."""
        if self.state != ClockState.RUNNING:
            return False
        self.state = ClockState.PAUSED
        return True

    def stop(self) -> None:
        self.state = ClockState.STOPPED
        self.reset()

    def reset(self) -> None:
        """Rewind simulated time without touching the run state."""
        self.now = 0.0
        self.tick_count = 0

    def advance(self) -> float:
        self.tick_count += 1
        # Recomputed from the count so repeated float addition cannot drift.
        self.now = round(self.tick_count * self.tick_interval, 6)
        return self.now
