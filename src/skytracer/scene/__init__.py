"""Scene module.

Components:
    objects: Scene description types (spheres, triangles, snapshots) and
        the scene provider protocol
    intersection: Kernel-side object table, per-object dispatch and
        nearest-hit / shadow queries
    demo: Example scene providers

Note: intersection declares Taichi fields and is not imported here.
Import it directly with ``from skytracer.scene.intersection import ...``.
"""

from .objects import Object3d, SceneProvider, SceneSnapshot, SphereObject, TriangleObject

__all__ = [
    "Object3d",
    "SceneProvider",
    "SceneSnapshot",
    "SphereObject",
    "TriangleObject",
]
