#!/usr/bin/env python3
"""
Neural Architect CLI

Usage modes:
- Default run: compile YAML (or the default 2x1-2x2-3x1-1x1 network), train, print stats or write JSON
- Scene: dump the depth-sorted render list for a camera as JSON, or draw it to PNG
- Utility: list sample architectures, show version, dry-run compile only
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from glob import glob
from pathlib import Path
from typing import Any, Dict, List

from nexus_core import Simulation, __version__
from nexus_core.compiler import build_simulation, compile_from_file
from nexus_core.config import SimulatorConfig
from nexus_core.enums import SpeedMode
from nexus_core.errors import NexusError
from nexus_core.tutor import request_explanation
from nexus_view import Camera, ProjectionMode, ViewPreset, build_simulation_scene
from nexus_view.controller import InteractionController
from nexus_view.models.items import item_to_dict


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="Train a Neural Architect network from YAML and dump stats or a rendered scene",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # Utilities / meta
    p.add_argument("--version", action="store_true", help="Print version and exit")
    p.add_argument("-v", "--verbose", action="count", default=0, help="Increase verbosity (-v, -vv)")
    p.add_argument("--list-scenes", action="store_true", help="List bundled sample YAML architectures and exit")

    # Primary input
    p.add_argument("yaml", nargs="?", help="Path to YAML architecture (default network when omitted)")

    # Execution
    p.add_argument("--epochs", type=int, default=100, help="Training steps to run (stops early on convergence)")
    p.add_argument("--stepped", action="store_true", help="Walk every forward/backward phase instead of turbo batches")
    p.add_argument("--dry-run", action="store_true", help="Compile only; do not train")
    p.add_argument("--out", type=str, default="", help="Optional output JSON file path")
    p.add_argument("--explain", action="store_true", help="Include the tutor explanation (offline fallback text)")

    # Simulator overrides
    p.add_argument("--lr", type=float, default=None, help="Learning rate")
    p.add_argument("--seed", type=int, default=None, help="Seed for weight initialization (overrides the YAML seed)")

    # Scene output
    p.add_argument("--scene", action="store_true", help="Emit the render list instead of the training summary")
    p.add_argument("--png", type=str, default="", help="Draw the final scene to a PNG file")
    p.add_argument("--yaw", type=float, default=None, help="Camera yaw in degrees")
    p.add_argument("--pitch", type=float, default=None, help="Camera pitch in degrees")
    p.add_argument("--zoom", type=float, default=None, help="Camera zoom")
    p.add_argument("--preset", choices=[v.value for v in ViewPreset], default=None, help="Orthographic view preset")
    p.add_argument("--ortho", action="store_true", help="Use orthographic projection")

    return p.parse_args(argv)


def setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def find_sample_scenes() -> List[str]:
    here = Path(__file__).resolve()
    repo_root = here.parent.parent
    seen = set()
    result = []
    for base in [repo_root, here.parent]:
        for c in sorted(glob(str(base / "*.yaml"))) + sorted(glob(str(base / "scripts" / "*.yaml"))):
            if c not in seen:
                seen.add(c)
                result.append(c)
    return result


def load_simulation(args: argparse.Namespace) -> Simulation:
    if args.yaml:
        logging.info("Compiling architecture from %s", args.yaml)
        spec = compile_from_file(args.yaml)
        if args.seed is not None:
            spec.config = replace(spec.config, seed=args.seed)
        sim = build_simulation(spec)
    else:
        sim = Simulation(config=SimulatorConfig(seed=args.seed))
    if args.lr is not None:
        sim.set_learning_rate(args.lr)
    return sim


def train(sim: Simulation, epochs: int, stepped: bool) -> None:
    """Run until `epochs` training steps completed or the network converged."""
    if not stepped:
        sim.set_speed(0)
    while sim.epoch < epochs and not sim.optimized:
        if sim.speed_mode == SpeedMode.TURBO:
            sim.turbo_frame(min(sim.config.turbo_batch, epochs - sim.epoch))
        else:
            sim.tick()
    logging.info("Stopped at epoch %d, loss %.6f", sim.epoch, sim.loss)


def build_camera(args: argparse.Namespace, controller: InteractionController) -> Camera:
    cam = controller.camera
    if args.preset:
        controller.apply_preset(ViewPreset(args.preset))
    else:
        if args.yaw is not None:
            cam.yaw = args.yaw
        if args.pitch is not None:
            cam.pitch = args.pitch
        if args.ortho:
            controller.set_projection(ProjectionMode.ORTHOGRAPHIC)
    if args.zoom is not None:
        cam.zoom = args.zoom
    return controller.camera


def main(argv: List[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose)

    if args.version:
        print(__version__)
        return 0

    if args.list_scenes:
        print(json.dumps(find_sample_scenes(), indent=2))
        return 0

    try:
        sim = load_simulation(args)
    except NexusError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if args.dry_run:
        minimal = {"structure": sim.stats()["structure"], "layer_sizes": sim.layer_sizes}
        _emit(minimal, args.out)
        return 0

    train(sim, args.epochs, args.stepped)

    controller = InteractionController(sim)
    camera = build_camera(args, controller)
    items = build_simulation_scene(sim, camera, controller.view)

    if args.png:
        from viz.surface import save_scene_png

        logging.info("Drawing scene to %s", args.png)
        save_scene_png(items, args.png)

    if args.scene:
        payload: Dict[str, Any] = {
            "camera": camera.to_dict(),
            "items": [item_to_dict(item) for item in items],
        }
    else:
        payload = {
            "stats": sim.stats(),
            "outputs": [float(v) for v in sim.network.output],
            "targets": list(sim.targets),
            "history": sim.history.as_dicts(),
        }
    if args.explain:
        payload["explanation"] = asyncio.run(request_explanation(None, sim.context()))

    _emit(payload, args.out)
    return 0


def _emit(payload: Dict[str, Any], out: str) -> None:
    if out:
        with open(out, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
    else:
        print(json.dumps(payload, indent=2))


if __name__ == "__main__":
    raise SystemExit(main())
