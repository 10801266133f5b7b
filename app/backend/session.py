from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional, Set

from nexus_core.runner import SimulationRunner
from nexus_core.simulation import Simulation
from nexus_core.tutor import TutorService, request_explanation
from nexus_view.controller import InteractionController
from nexus_view.models.camera import ProjectionMode, ViewPreset
from nexus_view.models.items import item_to_dict


class SimulationSession:
    """
    One shared sandbox session served over HTTP and websockets.

    - frame(): stats, scheduler state, camera and the depth-sorted render list
    - control(): play/pause/step/reset/randomize and speed settings
    - camera(), architecture(), edit(): interaction controller entry points
    - subscribe(): returns an asyncio.Queue receiving frames
    """

    def __init__(self, sim: Simulation | None = None, tutor: TutorService | None = None) -> None:
        self.sim = sim or Simulation()
        self.tutor = tutor
        self.runner = SimulationRunner(self.sim, on_frame=self._on_frame)
        self.controller = InteractionController(self.sim, on_rebuild=self.runner.cancel)
        self._lock = asyncio.Lock()
        self._subscribers: Set[asyncio.Queue] = set()

    # --- views -------------------------------------------------------------
    def frame(self) -> Dict[str, Any]:
        sim = self.sim
        return {
            "stats": sim.stats(),
            "phase": sim.state.phase.name,
            "activeLayer": sim.state.active_layer,
            "playing": sim.playing,
            "speedMode": sim.speed_mode.name,
            "inputs": list(sim.inputs),
            "targets": list(sim.targets),
            "camera": self.controller.camera.to_dict(),
            "history": sim.history.as_dicts(),
            "items": [item_to_dict(item) for item in self.controller.scene()],
        }

    async def explain(self) -> str:
        return await request_explanation(self.tutor, self.sim.context())

    # --- pubsub ------------------------------------------------------------
    def subscribe(self) -> asyncio.Queue:
        q: asyncio.Queue = asyncio.Queue(maxsize=32)
        self._subscribers.add(q)
        return q

    def unsubscribe(self, q: asyncio.Queue) -> None:
        self._subscribers.discard(q)

    async def _broadcast(self) -> None:
        if not self._subscribers:
            return
        frame = self.frame()
        for q in list(self._subscribers):
            try:
                q.put_nowait(frame)
            except asyncio.QueueFull:
                # slow consumer; it picks up the next frame
                pass

    async def _on_frame(self, sim: Simulation) -> None:
        await self._broadcast()

    # --- commands ----------------------------------------------------------
    async def control(self, cmd: str, value: Optional[float] = None) -> bool:
        async with self._lock:
            sim = self.sim
            if cmd == "play":
                self.runner.start()
            elif cmd == "pause":
                self.runner.pause()
            elif cmd == "toggle":
                self.runner.toggle()
            elif cmd == "step":
                sim.tick()
            elif cmd == "turbo_frame":
                sim.turbo_frame()
            elif cmd == "reset":
                self.runner.cancel()
                sim.reset()
            elif cmd == "randomize":
                self.runner.cancel()
                sim.randomize()
            elif cmd == "speed" and value is not None:
                sim.set_speed(value)
                self.runner.restart()
            elif cmd == "learning_rate" and value is not None:
                sim.set_learning_rate(value)
            else:
                return False
        await self._broadcast()
        return True

    async def camera(
        self,
        op: str,
        dx: float = 0.0,
        dy: float = 0.0,
        preset: Optional[ViewPreset] = None,
        mode: Optional[ProjectionMode] = None,
    ) -> bool:
        async with self._lock:
            ctl = self.controller
            if op == "orbit":
                ctl.orbit(dx, dy)
            elif op == "pan":
                ctl.pan(dx, dy)
            elif op == "zoom":
                ctl.wheel(dy)
            elif op == "preset" and preset is not None:
                ctl.apply_preset(preset)
            elif op == "projection" and mode is not None:
                ctl.set_projection(mode)
            elif op == "reset":
                ctl.reset_view()
            else:
                return False
        await self._broadcast()
        return True

    async def architecture(self, op: str, layer: int = 0, axis: str = "rows") -> bool:
        async with self._lock:
            ctl = self.controller
            if op == "grow":
                changed = ctl.modify_layer(layer, axis, 1)
            elif op == "shrink":
                changed = ctl.modify_layer(layer, axis, -1)
            elif op == "add_layer":
                changed = ctl.add_layer()
            elif op == "remove_layer":
                changed = ctl.remove_layer()
            elif op == "cycle_activation":
                changed = ctl.cycle_activation(layer) is not None
            else:
                return False
        await self._broadcast()
        return changed

    async def edit(self, kind: str, value: float, index: int = 0, layer: int = 0) -> bool:
        async with self._lock:
            ctl = self.controller
            if kind == "input":
                ctl.set_input(index, value)
            elif kind == "target":
                ctl.set_target(index, value)
            elif kind == "bias":
                if not ctl.set_hidden_bias(layer, value):
                    return False
            else:
                return False
        await self._broadcast()
        return True
