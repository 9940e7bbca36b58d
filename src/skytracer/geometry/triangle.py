"""Triangle primitive with ray-triangle intersection.

A triangle is given by three vertices v0, v1, v2. Its face normal is
normalize(cross(v1 - v0, v2 - v0)), following the right-hand rule over the
vertex order.

Ray-triangle intersection works in two steps:
1. Intersect the ray with the triangle's plane. Rays parallel to the plane
   and hits behind the origin are rejected.
2. Check the hit point against each edge with a same-side test. The cross
   product of the edge with the vector to the point, projected on the unit
   face normal and divided by the edge length, is the point's signed
   distance from that edge within the plane (positive on the inner side).
   A point is inside when every distance is at least -tolerance. The
   tolerance is a world-space distance, so it covers rounding error at an
   edge equally for small and large triangles.

A zero-area triangle has a zero normal, so every ray counts as parallel to
it and it is never hit.
"""

import taichi as ti
import taichi.math as tm

from skytracer.core.ray import vec3

# Hit distance reported when a ray misses
NO_HIT = -1.0


@ti.dataclass
class Triangle:
    """A triangle defined by its three vertices.

    Attributes:
        v0: First vertex (vec3).
        v1: Second vertex (vec3).
        v2: Third vertex (vec3).
    """

    v0: vec3
    v1: vec3
    v2: vec3


@ti.func
def triangle_plane_normal(tri: Triangle) -> vec3:
    """Unnormalized plane normal cross(v1 - v0, v2 - v0)."""
    return tm.cross(tri.v1 - tri.v0, tri.v2 - tri.v0)


@ti.func
def triangle_normal(tri: Triangle) -> vec3:
    """Unit face normal, constant over the triangle."""
    return tm.normalize(triangle_plane_normal(tri))


@ti.func
def _edge_distance(a: vec3, b: vec3, point: vec3, unit_normal: vec3) -> ti.f32:
    edge = b - a
    return tm.dot(tm.cross(edge, point - a), unit_normal) / tm.length(edge)


@ti.func
def triangle_edge_distances(tri: Triangle, point: vec3):
    """Signed distances of an in-plane point from the three edges.

    Args:
        tri: The triangle (non-degenerate).
        point: A point in the triangle's plane.

    Returns:
        Tuple (d01, d12, d20) for the edges v0-v1, v1-v2 and v2-v0. Each is
        positive on the side of its edge that faces the interior.
    """
    n = triangle_normal(tri)
    d01 = _edge_distance(tri.v0, tri.v1, point, n)
    d12 = _edge_distance(tri.v1, tri.v2, point, n)
    d20 = _edge_distance(tri.v2, tri.v0, point, n)
    return d01, d12, d20


@ti.func
def triangle_get_t(
    ray_origin: vec3,
    ray_direction: vec3,
    tri: Triangle,
    tolerance: ti.f32,
) -> ti.f32:
    """Return the hit distance along the ray, or NO_HIT.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray.
        tri: The triangle to test.
        tolerance: Distance past an edge that still counts as a hit.

    Returns:
        The positive distance to the hit point, or NO_HIT when the ray is
        parallel to the plane, the plane lies behind the ray, or the plane
        hit falls outside the triangle.
    """
    n = triangle_plane_normal(tri)
    denom = tm.dot(n, ray_direction)

    t = NO_HIT
    if denom != 0.0:
        plane_t = tm.dot(tri.v0 - ray_origin, n) / denom
        if plane_t > 0.0:
            hit_point = ray_origin + plane_t * ray_direction
            d01, d12, d20 = triangle_edge_distances(tri, hit_point)
            if d01 >= -tolerance and d12 >= -tolerance and d20 >= -tolerance:
                t = plane_t
    return t


@ti.func
def triangle_intersects(
    ray_origin: vec3,
    ray_direction: vec3,
    tri: Triangle,
    tolerance: ti.f32,
) -> ti.i32:
    """Return 1 if the ray hits the triangle at a positive distance."""
    return ti.cast(triangle_get_t(ray_origin, ray_direction, tri, tolerance) > 0.0, ti.i32)
