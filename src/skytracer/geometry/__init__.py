"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive with robust ray-sphere intersection
    triangle: Triangle primitive with plane + edge-distance containment test

Every primitive offers the same query set as Taichi functions:
    get_t(origin, direction, shape) -> first positive distance or -1
    intersects(origin, direction, shape) -> 1 / 0, consistent with get_t
    normal(shape, point) -> outward unit normal
"""

from .sphere import NO_HIT, Sphere, sphere_get_t, sphere_intersects, sphere_normal, sphere_roots
from .triangle import (
    Triangle,
    triangle_edge_distances,
    triangle_get_t,
    triangle_intersects,
    triangle_normal,
    triangle_plane_normal,
)

__all__ = [
    "NO_HIT",
    "Sphere",
    "sphere_get_t",
    "sphere_intersects",
    "sphere_normal",
    "sphere_roots",
    "Triangle",
    "triangle_edge_distances",
    "triangle_get_t",
    "triangle_intersects",
    "triangle_normal",
    "triangle_plane_normal",
]
