"""Scene description types.

These are the plain Python values a scene provider returns: a camera and a
sequence of objects, each a sphere or a triangle carrying a material. The
renderer uploads one snapshot per frame into the kernel-side object table
(see ``skytracer.scene.intersection``) and never mutates it while pixels
are being evaluated.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol, Union

from skytracer.camera.pinhole import Camera
from skytracer.materials.metallic import Material

Vec3 = tuple[float, float, float]


@dataclass(frozen=True)
class SphereObject:
    """A sphere in the scene.

    Attributes:
        center: The center of the sphere.
        radius: The radius of the sphere (positive).
        material: Surface material.
    """

    center: Vec3
    radius: float
    material: Material = field(default_factory=Material)

    def __post_init__(self) -> None:
        if self.radius <= 0.0:
            raise ValueError(f"Sphere radius must be positive, got {self.radius}")


@dataclass(frozen=True)
class TriangleObject:
    """A triangle in the scene.

    The face normal follows the right-hand rule over (v0, v1, v2). Zero-area
    triangles are accepted but never hit.

    Attributes:
        v0: First vertex.
        v1: Second vertex.
        v2: Third vertex.
        material: Surface material.
    """

    v0: Vec3
    v1: Vec3
    v2: Vec3
    material: Material = field(default_factory=Material)


Object3d = Union[SphereObject, TriangleObject]


@dataclass(frozen=True)
class SceneSnapshot:
    """Camera and objects for one frame.

    Attributes:
        camera: The camera pose.
        objects: The objects, in scan order.
    """

    camera: Camera
    objects: tuple[Object3d, ...]


class SceneProvider(Protocol):
    """Builds the scene for a given animation time.

    Implementations must be deterministic in ``time``.
    """

    def __call__(self, time: float) -> tuple[Camera, Sequence[Object3d]]: ...
