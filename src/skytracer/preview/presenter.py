"""Presentation buffer shared between the tracer and a display.

The tracer writes each frame as row-major RGBA8 into a flat byte buffer of
side * side * 4 bytes. ``FrameBuffer`` owns such a buffer and offers the
array views a display or a test needs. Opening windows is left to the
caller (see ``examples/interactive_scene.py`` for a Taichi GGUI loop).

Example:
    >>> from skytracer.preview.presenter import FrameBuffer
    >>> frame = FrameBuffer(256)
    >>> tracer.draw(0.0, frame.buffer)
    >>> image = frame.as_array()  # (256, 256, 4) uint8
"""

from __future__ import annotations

import numpy as np
import numpy.typing as npt


class FrameBuffer:
    """A mutable RGBA8 pixel buffer for a square image.

    Attributes:
        side: Image side length in pixels.
        buffer: The raw bytes, row-major, four bytes per pixel.
    """

    def __init__(self, side: int) -> None:
        if side < 1:
            raise ValueError(f"Image side must be positive, got {side}")
        self.side = side
        self.buffer = bytearray(side * side * 4)

    def __len__(self) -> int:
        return len(self.buffer)

    def as_array(self) -> npt.NDArray[np.uint8]:
        """View the buffer as an array of shape (side, side, 4).

        The view shares memory with the buffer, so it reflects later draws.
        """
        return np.frombuffer(self.buffer, dtype=np.uint8).reshape(self.side, self.side, 4)

    def pixel(self, row: int, col: int) -> tuple[int, int, int, int]:
        """Return the RGBA8 value of one pixel."""
        offset = (row * self.side + col) * 4
        r, g, b, a = self.buffer[offset : offset + 4]
        return (r, g, b, a)

    def to_canvas_image(self) -> npt.NDArray[np.float32]:
        """Convert to the float RGB layout expected by a GGUI canvas.

        GGUI indexes images as (x, y) with y pointing up, so rows are
        flipped and the axes transposed.

        Returns:
            Array of shape (side, side, 3) with values in [0, 1].
        """
        rgb = self.as_array()[:, :, :3].astype(np.float32) / 255.0
        return np.ascontiguousarray(np.transpose(rgb[::-1], (1, 0, 2)))

    def clear(self) -> None:
        """Set every byte to zero."""
        self.buffer[:] = bytes(len(self.buffer))


def compute_rmse(
    image_a: npt.NDArray[np.generic],
    image_b: npt.NDArray[np.generic],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
