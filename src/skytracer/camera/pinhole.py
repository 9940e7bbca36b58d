"""Pinhole camera mapping image-plane coordinates to rays.

The camera is described by its position, a forward vector and two basis
vectors spanning the image plane. A normalized image coordinate (u, v) in
[-1, 1]^2 maps to the ray from the camera position along

    normalize(forward + u * basis1 + v * basis2)

so the lengths of the basis vectors relative to forward set the field of
view (unit-length basis vectors and forward give 90 degrees).

The pixel mapping used by the renderer drives u from the pixel column and
v from the pixel row, matching the row-major layout of the presentation
buffer.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from skytracer.camera.pinhole import Camera, setup_camera
    >>> camera = Camera.look_at((5.0, 0.0, 0.0), (0.0, 0.0, 0.0), up=(0.0, 0.0, 1.0))
    >>> setup_camera(camera)
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from skytracer.core.ray import Ray, make_ray

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass(frozen=True)
class Camera:
    """Camera pose for one frame.

    Attributes:
        position: Camera position in world space (x, y, z).
        forward: Viewing direction; the image centre looks along it.
        basis1: Image-plane vector scaled by the column coordinate u.
        basis2: Image-plane vector scaled by the row coordinate v.
    """

    position: tuple[float, float, float]
    forward: tuple[float, float, float]
    basis1: tuple[float, float, float]
    basis2: tuple[float, float, float]

    @classmethod
    def look_at(
        cls,
        position: tuple[float, float, float],
        target: tuple[float, float, float],
        up: tuple[float, float, float] = (0.0, 0.0, 1.0),
        fov: float = 90.0,
    ) -> "Camera":
        """Build a camera at position looking toward target.

        basis1 points screen-right and basis2 screen-down, so increasing
        columns move right and increasing rows move down the image.

        Args:
            position: Camera position.
            target: Point the image centre looks at.
            up: World up direction (must not be parallel to the view).
            fov: Full field of view in degrees across the image side.

        Returns:
            The constructed Camera.

        Raises:
            ValueError: If position equals target or up is parallel to the view.
        """
        eye = np.array(position, dtype=np.float64)
        forward = np.array(target, dtype=np.float64) - eye
        forward_len = np.linalg.norm(forward)
        if forward_len < 1e-12:
            raise ValueError("Camera position and target must differ")
        forward = forward / forward_len

        right = np.cross(forward, np.array(up, dtype=np.float64))
        right_len = np.linalg.norm(right)
        if right_len < 1e-12:
            raise ValueError("Up vector must not be parallel to the view direction")
        right = right / right_len
        down = np.cross(forward, right)

        scale = math.tan(math.radians(fov) / 2.0)
        return cls(
            position=tuple(float(c) for c in eye),
            forward=tuple(float(c) for c in forward),
            basis1=tuple(float(c) for c in right * scale),
            basis2=tuple(float(c) for c in down * scale),
        )


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_position = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_forward = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_basis1 = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_basis2 = ti.Vector.field(3, dtype=ti.f32, shape=())


def setup_camera(camera: Camera) -> None:
    """Upload a camera for use by get_ray inside kernels.

    Args:
        camera: The camera for the frame about to be rendered.
    """
    _camera_position[None] = list(camera.position)
    _camera_forward[None] = list(camera.forward)
    _camera_basis1[None] = list(camera.basis1)
    _camera_basis2[None] = list(camera.basis2)


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def get_ray(u: ti.f32, v: ti.f32) -> Ray:
    """Generate the ray through normalized image coordinates (u, v).

    Args:
        u: Column coordinate in [-1, 1].
        v: Row coordinate in [-1, 1].

    Returns:
        A ray from the camera position with unit direction
        forward + u * basis1 + v * basis2.
    """
    direction = tm.normalize(
        _camera_forward[None] + u * _camera_basis1[None] + v * _camera_basis2[None]
    )
    return make_ray(_camera_position[None], direction)


@ti.func
def pixel_to_ndc(row: ti.f32, col: ti.f32, side: ti.i32):
    """Map (possibly fractional) pixel coordinates to (u, v).

    Pixel side/2 maps to 0, pixel 0 maps to -1 and pixel side maps to 1.

    Returns:
        Tuple (u, v) where u comes from the column and v from the row.
    """
    half = ti.cast(side, ti.f32) / 2.0
    return (col - half) / half, (row - half) / half


@ti.func
def get_ray_jittered(row: ti.i32, col: ti.i32, side: ti.i32) -> Ray:
    """Generate a ray through a pixel with random sub-pixel jitter.

    Both coordinates receive an independent offset in [-0.5, 0.5) so that
    accumulated frames anti-alias edges.

    Args:
        row: Pixel row (0 = top).
        col: Pixel column (0 = left).
        side: Image side length in pixels.

    Returns:
        The jittered camera ray.
    """
    jitter_row = ti.cast(row, ti.f32) + ti.random(ti.f32) - 0.5
    jitter_col = ti.cast(col, ti.f32) + ti.random(ti.f32) - 0.5
    u, v = pixel_to_ndc(jitter_row, jitter_col, side)
    return get_ray(u, v)


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get the uploaded camera state for debugging.

    Returns:
        Dictionary with position, forward, basis1 and basis2.
    """
    fields = {
        "position": _camera_position,
        "forward": _camera_forward,
        "basis1": _camera_basis1,
        "basis2": _camera_basis2,
    }
    info = {}
    for name, field in fields.items():
        value = field[None]
        info[name] = (float(value[0]), float(value[1]), float(value[2]))
    return info
