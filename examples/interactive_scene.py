#!/usr/bin/env python3
"""Show the progressive renderer converging in a Taichi GGUI window.

Usage:
    python -m examples.interactive_scene [--side 512] [--scene spheres|triangles]

Controls:
    - Escape or closing the window exits.
    - R clears the accumulated image.

With --animate the scene time follows the wall clock and the accumulation
restarts every frame, so moving cameras stay sharp instead of smearing.
"""

from __future__ import annotations

import argparse
import logging
import platform
import sys
import time
from pathlib import Path

# Ensure the project root is in the Python path for direct execution
_project_root = Path(__file__).parent.parent
if str(_project_root / "src") not in sys.path:
    sys.path.insert(0, str(_project_root / "src"))

import taichi as ti  # noqa: E402

logger = logging.getLogger("skytracer.examples.interactive")

# Lower bound on frame duration so the window stays responsive on fast GPUs
MIN_FRAME_SECONDS = 1.0 / 120.0


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Interactive progressive path tracer.")
    parser.add_argument("--side", type=int, default=512, help="Image side in pixels (default: 512)")
    parser.add_argument(
        "--scene",
        choices=("spheres", "triangles"),
        default="spheres",
        help="Demo scene to render (default: spheres)",
    )
    parser.add_argument("--bounces", type=int, default=5, help="Bounce limit (default: 5)")
    parser.add_argument("--animate", action="store_true", help="Advance scene time with the clock")
    parser.add_argument("--verbose", action="store_true", help="Log every frame")
    return parser.parse_args()


def initialize_taichi() -> str:
    """Initialize Taichi with the best available backend.

    Returns:
        Name of the backend being used.
    """
    if platform.system() == "Darwin":
        try:
            ti.init(arch=ti.metal, random_seed=int(time.time()))
            return "Metal (GPU)"
        except Exception:
            logger.warning("Metal backend unavailable, trying generic GPU")

    try:
        ti.init(arch=ti.gpu, random_seed=int(time.time()))
        return "GPU"
    except Exception:
        logger.warning("GPU backend unavailable, falling back to CPU")

    ti.init(arch=ti.cpu, random_seed=int(time.time()))
    return "CPU"


def main() -> int:
    """Main entry point for the interactive renderer.

    Returns:
        Exit code (0 for success).
    """
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    backend = initialize_taichi()
    logger.info("Taichi backend: %s", backend)

    # Import after Taichi initialization
    from skytracer.core.config import RenderSettings
    from skytracer.core.progressive import Tracer
    from skytracer.preview.presenter import FrameBuffer
    from skytracer.scene.demo import construct_scene, construct_triangle_scene

    provider = construct_scene if args.scene == "spheres" else construct_triangle_scene
    tracer = Tracer(args.side, provider, RenderSettings(side=args.side, bounce_limit=args.bounces))
    frame = FrameBuffer(args.side)

    window = ti.ui.Window("skytracer", (args.side, args.side), vsync=False)
    canvas = window.get_canvas()
    display = ti.Vector.field(3, dtype=ti.f32, shape=(args.side, args.side))

    start = time.perf_counter()
    while window.running:
        frame_start = time.perf_counter()

        if window.get_event(ti.ui.PRESS):
            if window.event.key == ti.ui.ESCAPE:
                break
            if window.event.key == "r":
                tracer.reset()

        scene_time = 0.0
        if args.animate:
            scene_time = frame_start - start
            tracer.reset()

        tracer.draw(scene_time, frame.buffer)
        display.from_numpy(frame.to_canvas_image())
        canvas.set_image(display)
        window.show()

        elapsed = time.perf_counter() - frame_start
        if elapsed < MIN_FRAME_SECONDS:
            time.sleep(MIN_FRAME_SECONDS - elapsed)

    logger.info("Closed after %d accumulated frames", tracer.frames)
    return 0


if __name__ == "__main__":
    sys.exit(main())
