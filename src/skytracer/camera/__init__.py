"""Camera module for view and primary ray generation.

Camera responsibilities:
    - Hold the per-frame pose (position, forward, image-plane basis)
    - Map normalized coordinates (u, v) in [-1, 1]^2 to world-space rays
    - Apply sub-pixel jitter for stochastic anti-aliasing
"""

from .pinhole import (
    Camera,
    get_camera_info,
    get_ray,
    get_ray_jittered,
    pixel_to_ndc,
    setup_camera,
)

__all__ = [
    "Camera",
    "setup_camera",
    "get_ray",
    "get_ray_jittered",
    "pixel_to_ndc",
    "get_camera_info",
]
