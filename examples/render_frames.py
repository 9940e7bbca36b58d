#!/usr/bin/env python3
"""Render a demo scene headlessly and report convergence.

Draws a number of frames of a static scene and prints, every few frames,
how much the running mean moved since the previous report.

Usage:
    python -m examples.render_frames [--side 256] [--frames 64] [--scene spheres]
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

_project_root = Path(__file__).parent.parent
if str(_project_root / "src") not in sys.path:
    sys.path.insert(0, str(_project_root / "src"))

import taichi as ti  # noqa: E402

logger = logging.getLogger("skytracer.examples.render_frames")


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render frames of a demo scene and report convergence.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--side", type=int, default=256, help="Image side in pixels (default: 256)")
    parser.add_argument("--frames", type=int, default=64, help="Frames to accumulate (default: 64)")
    parser.add_argument(
        "--report-every",
        type=int,
        default=8,
        help="Frames between convergence reports (default: 8)",
    )
    parser.add_argument(
        "--scene",
        choices=("spheres", "triangles"),
        default="spheres",
        help="Demo scene to render (default: spheres)",
    )
    parser.add_argument("--cpu", action="store_true", help="Force the CPU backend")
    return parser.parse_args()


def render_frames(side: int, frames: int, report_every: int, scene: str) -> float:
    """Accumulate frames and log the change of the mean between reports.

    Returns:
        The last reported RMSE between successive reports.
    """
    # Lazy imports to allow Taichi initialization first
    from skytracer.core.progressive import Tracer
    from skytracer.preview.presenter import FrameBuffer, compute_rmse
    from skytracer.scene.demo import construct_scene, construct_triangle_scene

    provider = construct_scene if scene == "spheres" else construct_triangle_scene
    tracer = Tracer(side, provider)
    frame = FrameBuffer(side)

    start = time.perf_counter()
    previous = tracer.get_accumulated_numpy()
    delta = 0.0
    for i in range(frames):
        tracer.draw(0.0, frame.buffer)
        if (i + 1) % report_every == 0 or i + 1 == frames:
            current = tracer.get_accumulated_numpy()
            delta = compute_rmse(previous, current)
            previous = current
            fps = (i + 1) / (time.perf_counter() - start)
            logger.info("frame %d: change %.5f (%.1f frames/s)", tracer.frames, delta, fps)

    mean = frame.as_array()[:, :, :3].mean(axis=(0, 1))
    logger.info("mean RGB of final frame: %.1f %.1f %.1f", *mean)
    return delta


def main() -> int:
    """Main entry point."""
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(name)s %(levelname)s: %(message)s")

    if args.cpu:
        ti.init(arch=ti.cpu)
    else:
        try:
            ti.init(arch=ti.gpu)
        except Exception:
            logger.warning("GPU backend unavailable, falling back to CPU")
            ti.init(arch=ti.cpu)

    try:
        render_frames(args.side, args.frames, args.report_every, args.scene)
    except ValueError as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
