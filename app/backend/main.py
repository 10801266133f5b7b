from __future__ import annotations

import asyncio
from typing import Literal, Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field

from nexus_view.models.camera import ProjectionMode, ViewPreset

from .session import SimulationSession


app = FastAPI(title="Neural Architect API", version="0.1.0")

# Allow local dev frontends
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

session = SimulationSession()


class ControlRequest(BaseModel):
    cmd: Literal["play", "pause", "toggle", "step", "turbo_frame", "reset", "randomize", "speed", "learning_rate"]
    value: Optional[float] = None


class CameraRequest(BaseModel):
    op: Literal["orbit", "pan", "zoom", "preset", "projection", "reset"]
    dx: float = 0.0
    dy: float = 0.0
    preset: Optional[ViewPreset] = None
    mode: Optional[ProjectionMode] = None


class ArchitectureRequest(BaseModel):
    op: Literal["grow", "shrink", "add_layer", "remove_layer", "cycle_activation"]
    layer: int = Field(default=0, ge=0)
    axis: Literal["rows", "cols"] = "rows"


class EditRequest(BaseModel):
    kind: Literal["input", "target", "bias"]
    value: float
    index: int = Field(default=0, ge=0)
    layer: int = Field(default=0, ge=0)


@app.get("/nexus/scene")
async def get_scene():
    return JSONResponse(jsonable_encoder(session.frame()))


@app.get("/nexus/stats")
async def get_stats():
    return JSONResponse(jsonable_encoder(session.sim.stats()))


@app.get("/nexus/explain")
async def get_explanation():
    return {"text": await session.explain()}


@app.post("/nexus/control")
async def post_control(body: ControlRequest):
    ok = await session.control(body.cmd, body.value)
    return {"ok": ok, "stats": session.sim.stats()}


@app.post("/nexus/camera")
async def post_camera(body: CameraRequest):
    ok = await session.camera(body.op, dx=body.dx, dy=body.dy, preset=body.preset, mode=body.mode)
    return {"ok": ok, "camera": session.controller.camera.to_dict()}


@app.post("/nexus/architecture")
async def post_architecture(body: ArchitectureRequest):
    if body.layer >= session.sim.num_layers:
        return {"ok": False, "structure": session.sim.stats()["structure"]}
    changed = await session.architecture(body.op, layer=body.layer, axis=body.axis)
    return {"ok": changed, "structure": session.sim.stats()["structure"]}


@app.post("/nexus/edit")
async def post_edit(body: EditRequest):
    if body.kind == "input" and body.index >= len(session.sim.inputs):
        return {"ok": False}
    if body.kind == "target" and body.index >= len(session.sim.targets):
        return {"ok": False}
    ok = await session.edit(body.kind, body.value, index=body.index, layer=body.layer)
    return {"ok": ok, "loss": session.sim.loss}


def converged_now(was_optimized: bool, frame: dict) -> bool:
    """True only for the frame on which the network first reports convergence."""
    return bool(frame["stats"]["optimized"]) and not was_optimized


@app.websocket("/nexus/stream")
async def ws_stream(ws: WebSocket):
    await ws.accept()

    q = session.subscribe()
    try:
        # Immediately push current frame to client
        first = session.frame()
        was_optimized = bool(first["stats"]["optimized"])
        await ws.send_json({"type": "frame", **jsonable_encoder(first)})

        while True:
            try:
                frame = await q.get()
            except asyncio.CancelledError:
                break

            await ws.send_json({"type": "frame", **jsonable_encoder(frame)})

            if converged_now(was_optimized, frame):
                await ws.send_json({"type": "done", "reason": "converged"})
            was_optimized = bool(frame["stats"]["optimized"])
    except WebSocketDisconnect:
        pass
    finally:
        session.unsubscribe(q)


@app.get("/")
async def root():
    return {"service": "neural-architect", "status": "ok"}
