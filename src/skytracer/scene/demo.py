"""Demo scene providers.

Two ready-made scene providers for trying the renderer:

- ``construct_scene``: a purple ground sphere carrying red, green and blue
  metallic spheres, lit by the sky and a huge white emissive sphere off to
  the side.
- ``construct_triangle_scene``: a red sphere in front of a magenta wall
  made of two triangles, with the camera orbiting the sphere over time.

Both are deterministic in ``t``.

Example:
    >>> from skytracer.core.progressive import Tracer
    >>> from skytracer.scene.demo import construct_scene
    >>> tracer = Tracer(256, construct_scene)
"""

from __future__ import annotations

import math

import numpy as np

from skytracer.camera.pinhole import Camera
from skytracer.core.color import BLACK, BLUE, GREEN, MAGENTA, PURPLE, RED, WHITE
from skytracer.materials.metallic import Material
from skytracer.scene.objects import Object3d, SphereObject, TriangleObject

# =============================================================================
# Sphere Scene
# =============================================================================


def construct_camera() -> Camera:
    """Camera high above the ground sphere, looking back at the origin."""
    position = np.array([2.4, 0.0, 12.0])
    forward = -position / np.linalg.norm(position)
    basis1 = np.array([0.0, 1.0, 0.0])
    basis2 = np.cross(forward, basis1)
    basis2 = basis2 / np.linalg.norm(basis2)
    return Camera(
        position=tuple(float(c) for c in position),
        forward=tuple(float(c) for c in forward),
        basis1=tuple(float(c) for c in basis1),
        basis2=tuple(float(c) for c in basis2),
    )


def construct_objects() -> list[Object3d]:
    """Ground, three metallic spheres and one emitter."""
    return [
        SphereObject(
            center=(0.0, 0.0, -100.0),
            radius=100.0,
            material=Material(albedo=PURPLE, metallicity=0.3),
        ),
        SphereObject(
            center=(0.0, 0.0, 3.0),
            radius=3.0,
            material=Material(albedo=RED, metallicity=1.0),
        ),
        SphereObject(
            center=(5.0, -1.0, 2.0),
            radius=2.0,
            material=Material(albedo=GREEN, metallicity=1.0),
        ),
        SphereObject(
            center=(8.0, -1.5, 1.0),
            radius=1.0,
            material=Material(albedo=BLUE, metallicity=0.5),
        ),
        SphereObject(
            center=(100.0, -100.0, 0.0),
            radius=100.0,
            material=Material(
                albedo=BLACK,
                metallicity=0.0,
                emission_strength=1.0,
                emission_color=WHITE,
            ),
        ),
    ]


def construct_scene(t: float) -> tuple[Camera, list[Object3d]]:
    """Scene provider for the sphere scene; static over time."""
    return construct_camera(), construct_objects()


# =============================================================================
# Triangle Scene
# =============================================================================

ORBIT_RADIUS = 6.0
ORBIT_HEIGHT = 3.0


def construct_triangle_scene(t: float) -> tuple[Camera, list[Object3d]]:
    """Scene provider for the wall-and-sphere scene.

    The camera circles the z axis at radius ORBIT_RADIUS, one radian per
    unit of t, starting from (6, 0, 3) at t = 0.
    """
    position = (ORBIT_RADIUS * math.cos(t), ORBIT_RADIUS * math.sin(t), ORBIT_HEIGHT)
    camera = Camera.look_at(position, (0.0, 0.0, 0.0), up=(0.0, 0.0, 1.0))

    wall = Material(albedo=MAGENTA)
    objects: list[Object3d] = [
        TriangleObject(v0=(5.0, -5.0, -1.0), v1=(5.0, 5.0, -1.0), v2=(-5.0, 5.0, -1.0), material=wall),
        TriangleObject(v0=(5.0, -5.0, -1.0), v1=(-5.0, 5.0, -1.0), v2=(-5.0, -5.0, -1.0), material=wall),
        SphereObject(center=(0.0, 0.0, 0.0), radius=1.0, material=Material(albedo=RED)),
    ]
    return camera, objects
