"""Presentation helpers.

Components:
    presenter: RGBA8 frame buffer and image comparison

The renderer core never opens windows; it only fills a FrameBuffer.
"""

from skytracer.preview.presenter import FrameBuffer, compute_rmse

__all__ = [
    "FrameBuffer",
    "compute_rmse",
]
