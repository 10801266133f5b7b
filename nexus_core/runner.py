"""
Cooperative asyncio driver for a `Simulation`.

Stepped mode sleeps `step_delay_ms` between phase transitions; turbo mode
sleeps one rendering frame between training batches. Everything runs on the
event loop thread, so the simulation needs no locking. Pausing cancels the
pending sleep, and a loop whose captured generation is stale exits without
touching the simulation.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Optional

from .enums import SpeedMode
from .simulation import Simulation

logger = logging.getLogger(__name__)

FrameCallback = Callable[[Simulation], Any]


class SimulationRunner:
    """
    Background task that keeps a `Simulation` moving while it is playing.

    - start(): mark the simulation as playing and spawn the loop
    - pause(): stop playing and cancel the pending tick
    - restart(): respawn after an edit that bumped the generation
    """

    def __init__(self, sim: Simulation, on_frame: FrameCallback | None = None):
        self.sim = sim
        self.on_frame = on_frame
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start playing. Must be called from a running event loop."""
        self.sim.play()
        self._spawn()

    def pause(self) -> None:
        self.sim.pause()
        self.cancel()

    def toggle(self) -> bool:
        if self.sim.playing:
            self.pause()
        else:
            self.start()
        return self.sim.playing

    def restart(self) -> None:
        """Respawn the loop for the current generation if still playing."""
        if self.sim.playing:
            self._spawn()
        else:
            self.cancel()

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def _spawn(self) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._loop(self.sim.generation))

    def _delay(self) -> float:
        if self.sim.speed_mode == SpeedMode.TURBO:
            return float(self.sim.config.frame_interval)
        return self.sim.step_delay_ms / 1000.0

    def _current(self, generation: int) -> bool:
        return self.sim.playing and self.sim.generation == generation

    async def _loop(self, generation: int) -> None:
        sim = self.sim
        while self._current(generation):
            await asyncio.sleep(self._delay())
            if not self._current(generation):
                break
            if sim.speed_mode == SpeedMode.TURBO:
                sim.turbo_frame()
            else:
                sim.tick()
            if self.on_frame is not None:
                result = self.on_frame(sim)
                if inspect.isawaitable(result):
                    await result
        logger.debug("Runner loop for generation %d finished", generation)
