"""Progressive per-pixel accumulation and the draw entry point.

Every frame traces one jittered camera path per pixel and folds it into a
running mean:

    new_avg = (old_avg * frames + sample) / (frames + 1)

The pixel loop is the outermost loop of a Taichi kernel, so Taichi spreads
it across all CPU threads (or GPU lanes) and joins before the kernel
returns. Each pixel reads the previous frame's mean from one buffer and
writes the new mean to the other; the buffers swap roles once the frame is
complete. No pixel ever reads a value written during the same frame, so the
parallel stage needs no locking.

The accumulation buffers and the scene table are module-level Taichi
fields, so only one Tracer should be drawing at a time.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from skytracer.core.progressive import Tracer
    >>> from skytracer.scene.demo import construct_scene
    >>> tracer = Tracer(256, construct_scene)
    >>> pixels = bytearray(256 * 256 * 4)
    >>> tracer.draw(0.0, pixels)
"""

import dataclasses
import logging
from collections.abc import Sequence
from typing import Any

import numpy as np
import numpy.typing as npt
import taichi as ti

from skytracer.camera.pinhole import get_ray, get_ray_jittered, setup_camera
from skytracer.core.color import quantize_color
from skytracer.core.config import MAX_SIDE, RenderSettings, apply_settings
from skytracer.core.integrator import cast_ray, sanitize
from skytracer.core.ray import vec4
from skytracer.scene.intersection import load_objects
from skytracer.scene.objects import SceneProvider, SceneSnapshot

logger = logging.getLogger(__name__)

# =============================================================================
# Accumulation Buffers
# =============================================================================

# Running means indexed by pixel p = row * side + col
_accum_a = ti.Vector.field(4, dtype=ti.f32, shape=MAX_SIDE * MAX_SIDE)
_accum_b = ti.Vector.field(4, dtype=ti.f32, shape=MAX_SIDE * MAX_SIDE)


# =============================================================================
# Kernels
# =============================================================================


@ti.kernel
def _accumulate_frame(
    side: ti.i32,
    frames: ti.i32,
    bounces: ti.i32,
    src: ti.template(),
    dst: ti.template(),
):
    """Trace one sample per pixel and blend it into the running mean.

    Args:
        side: Image side length in pixels.
        frames: Number of frames already in src.
        bounces: Bounce limit for every path.
        src: Means of the previous frame (read only).
        dst: Receives the updated means.
    """
    n = ti.cast(frames, ti.f32)
    for p in range(side * side):
        row = p // side
        col = p % side
        ray = get_ray_jittered(row, col, side)
        sample = sanitize(cast_ray(ray, bounces))
        dst[p] = (src[p] * n + sample) / (n + 1.0)


@ti.kernel
def _quantize_frame(side: ti.i32, src: ti.template(), out: ti.types.ndarray(dtype=ti.u8, ndim=2)):
    for p in range(side * side):
        rgba = quantize_color(src[p])
        for c in ti.static(range(4)):
            out[p, c] = rgba[c]


@ti.kernel
def _sample_uv(u: ti.f32, v: ti.f32, bounces: ti.i32) -> vec4:
    return sanitize(cast_ray(get_ray(u, v), bounces))


# =============================================================================
# Tracer
# =============================================================================


class Tracer:
    """Progressive renderer for a square image.

    The tracer owns the frame counter and decides which accumulation buffer
    holds the current mean. A scene provider supplies the camera and objects
    for each frame.

    Attributes:
        side: Image side length in pixels.
        settings: Settings applied before every frame.
    """

    def __init__(
        self,
        side: int,
        scene_provider: SceneProvider,
        settings: RenderSettings | None = None,
    ) -> None:
        """Create a tracer with cleared accumulation buffers.

        Args:
            side: Image side length in pixels.
            scene_provider: Callable returning (camera, objects) for a time.
            settings: Render settings; side is overridden by the argument.

        Raises:
            ValueError: If the settings (including side) are invalid.
        """
        self.settings = dataclasses.replace(settings or RenderSettings(), side=side)
        apply_settings(self.settings)
        self.side = side
        self._provider = scene_provider
        self._front = _accum_a
        self._back = _accum_b
        self._frames = 0
        self._snapshot: SceneSnapshot | None = None
        self.reset()
        logger.info(
            "Created %dx%d tracer with bounce limit %d",
            side,
            side,
            self.settings.bounce_limit,
        )

    @property
    def frames(self) -> int:
        """Number of frames folded into the running mean."""
        return self._frames

    @property
    def snapshot(self) -> SceneSnapshot | None:
        """Scene used by the most recent frame, or None before the first draw."""
        return self._snapshot

    def reset(self) -> None:
        """Clear the accumulation buffers and the frame counter."""
        self._front.fill(0.0)
        self._back.fill(0.0)
        self._frames = 0
        logger.debug("Accumulation reset")

    def _check_buffer(self, out_buffer: Any) -> npt.NDArray[np.uint8]:
        view = memoryview(out_buffer)
        if view.readonly:
            raise TypeError("Output buffer must be writable")
        expected = self.side * self.side * 4
        if view.nbytes != expected:
            raise ValueError(
                f"Output buffer holds {view.nbytes} bytes, expected {expected} "
                f"({self.side}x{self.side} RGBA8)"
            )
        return np.frombuffer(out_buffer, dtype=np.uint8).reshape(self.side * self.side, 4)

    def _load_snapshot(self, time: float) -> None:
        camera, objects = self._provider(time)
        snapshot = SceneSnapshot(camera=camera, objects=tuple(objects))
        load_objects(snapshot.objects)
        setup_camera(snapshot.camera)
        self._snapshot = snapshot

    def draw(self, time: float, out_buffer: Any) -> None:
        """Render one frame and write the quantized mean into out_buffer.

        The scene provider is queried once for time, every pixel receives
        one new sample, the frame counter advances and the whole image is
        written to out_buffer as row-major RGBA8.

        Args:
            time: Animation time passed to the scene provider.
            out_buffer: Writable bytes-like object of exactly
                side * side * 4 bytes. It is overwritten, never resized.

        Raises:
            ValueError: If out_buffer has the wrong length.
            TypeError: If out_buffer is read-only.
        """
        target = self._check_buffer(out_buffer)

        apply_settings(self.settings)
        self._load_snapshot(time)

        _accumulate_frame(self.side, self._frames, self.settings.bounce_limit, self._front, self._back)
        self._front, self._back = self._back, self._front
        self._frames += 1

        _quantize_frame(self.side, self._front, target)
        logger.debug("Frame %d drawn at t=%.3f", self._frames, time)

    def get_accumulated_numpy(self) -> npt.NDArray[np.float32]:
        """Get the running mean as an array of shape (side, side, 4)."""
        count = self.side * self.side
        return self._front.to_numpy()[:count].reshape(self.side, self.side, 4)

    def get_pixel_color(self, u: float, v: float) -> tuple[float, float, float, float]:
        """Trace one path through normalized image coordinates (u, v).

        Uses the scene and camera of the most recent frame.

        Args:
            u: Column coordinate in [-1, 1].
            v: Row coordinate in [-1, 1].

        Returns:
            The radiance sample as an (r, g, b, a) tuple.

        Raises:
            RuntimeError: If no frame has been drawn yet.
        """
        if self._snapshot is None:
            raise RuntimeError("No scene loaded. Call draw() first.")
        apply_settings(self.settings)
        color = _sample_uv(u, v, self.settings.bounce_limit)
        return (float(color[0]), float(color[1]), float(color[2]), float(color[3]))

    def render(self, times: Sequence[float], out_buffer: Any) -> None:
        """Draw one frame per entry of times into the same buffer."""
        for time in times:
            self.draw(time, out_buffer)

    def __repr__(self) -> str:
        return f"Tracer(side={self.side}, frames={self.frames})"
