"""Path tracing integrator.

Light transport follows a fixed number of bounces. At each surface the
path picks up the surface's emission and is tinted by its albedo; the
bounce direction blends mirror reflection and random diffuse scattering by
metallicity. Written recursively the estimator is

    cast_ray(ray, 0) = emission + direct_sun
    cast_ray(ray, n) = emission + albedo * cast_ray(next_ray, n - 1)

and a ray that hits nothing returns the sky colour at any depth.

Taichi functions cannot recurse, so ``cast_ray`` unrolls the recursion into
a loop that carries the product of albedos seen so far (the throughput).
The result is the same value:

    e0 + a0 * (e1 + a1 * (... + a(n-1) * (e_n + direct_n)))

Lighting model:
    The sky is the only non-emissive light. Escaped rays return it, and the
    last vertex of a path closes with one shadow ray toward the sun, worth
    sky * albedo * max(0, n . l) when unoccluded. Emissive surfaces add
    their emission wherever a path touches them.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from skytracer.core.integrator import trace
    >>> from skytracer.scene.intersection import load_objects
    >>> from skytracer.scene.objects import SphereObject
    >>> load_objects([SphereObject(center=(0.0, 0.0, 0.0), radius=1.0)])
    >>> trace((5.0, 0.0, 0.0), (-1.0, 0.0, 0.0), bounces=0)
"""

import math

import taichi as ti
import taichi.math as tm

from skytracer.core.config import get_active_settings, sky_color, to_light_direction
from skytracer.core.ray import Ray, make_ray, vec4
from skytracer.materials.metallic import MaterialRecord, emitted
from skytracer.scene.intersection import (
    facing_normal,
    intersect_scene,
    intersect_scene_any,
    object_get_mat,
    object_get_norm,
    object_next_ray_at,
    surface_point,
)

# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def direct_sun(idx: ti.i32, ray: Ray, t: ti.f32, material: MaterialRecord) -> vec4:
    """Close a path at its last vertex with one shadow ray toward the sun.

    Args:
        idx: The object hit by ray.
        ray: The ray arriving at the vertex.
        t: Hit distance along ray.
        material: Material of the hit object.

    Returns:
        sky * albedo * max(0, n . l) when the sun is visible, zero otherwise.
    """
    point = surface_point(ray, t)
    normal = facing_normal(object_get_norm(idx, point), ray.direction)
    to_light = to_light_direction()

    result = vec4(0.0, 0.0, 0.0, 0.0)
    if intersect_scene_any(make_ray(point, to_light)) == 0:
        cosine = tm.max(0.0, tm.dot(normal, to_light))
        result = sky_color() * material.albedo * cosine
    return result


@ti.func
def cast_ray(ray: Ray, bounces: ti.i32) -> vec4:
    """Estimate the radiance arriving along a ray.

    Args:
        ray: The ray to trace (unit direction).
        bounces: Number of bounces still allowed; 0 closes the path at the
            first hit with the direct sun term.

    Returns:
        The radiance estimate as an RGBA colour (unbounded).
    """
    radiance = vec4(0.0, 0.0, 0.0, 0.0)
    throughput = vec4(1.0, 1.0, 1.0, 1.0)
    current = ray

    # Active flag for path continuation (no early exit from ti.func loops)
    active = 1

    for depth in range(bounces + 1):
        if active == 1:
            idx, t = intersect_scene(current)

            if idx < 0:
                radiance += throughput * sky_color()
                active = 0
            else:
                material = object_get_mat(idx)
                radiance += throughput * emitted(material)

                if depth == bounces:
                    radiance += throughput * direct_sun(idx, current, t, material)
                    active = 0
                else:
                    current = object_next_ray_at(idx, current, t)
                    throughput *= material.albedo

    return radiance


@ti.func
def sanitize(color: vec4) -> vec4:
    """Replace NaN or infinite channels with zero.

    Keeps a single degenerate sample from poisoning a running mean forever.
    """
    result = color
    for c in ti.static(range(4)):
        if tm.isnan(result[c]) or tm.isinf(result[c]):
            result[c] = 0.0
    return result


# =============================================================================
# Kernels
# =============================================================================


@ti.kernel
def _trace_single(
    ox: ti.f32,
    oy: ti.f32,
    oz: ti.f32,
    dx: ti.f32,
    dy: ti.f32,
    dz: ti.f32,
    bounces: ti.i32,
) -> vec4:
    ray = make_ray(tm.vec3(ox, oy, oz), tm.normalize(tm.vec3(dx, dy, dz)))
    return cast_ray(ray, bounces)


@ti.kernel
def _nearest_hit(ox: ti.f32, oy: ti.f32, oz: ti.f32, dx: ti.f32, dy: ti.f32, dz: ti.f32) -> tm.vec2:
    ray = make_ray(tm.vec3(ox, oy, oz), tm.normalize(tm.vec3(dx, dy, dz)))
    idx, t = intersect_scene(ray)
    return tm.vec2(ti.cast(idx, ti.f32), t)


# =============================================================================
# Public API
# =============================================================================


def _checked_direction(direction: tuple[float, float, float]) -> tuple[float, float, float]:
    if math.hypot(*direction) < 1e-12:
        raise ValueError("Ray direction must not be a zero vector")
    return direction


def trace(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    bounces: int | None = None,
) -> tuple[float, float, float, float]:
    """Trace one ray through the loaded scene.

    Useful for testing and for probing a scene outside the frame loop. The
    direction is normalized before tracing.

    Args:
        origin: Ray origin.
        direction: Ray direction (any non-zero length).
        bounces: Bounce limit; defaults to the active settings' limit.

    Returns:
        The radiance estimate as an (r, g, b, a) tuple.

    Raises:
        ValueError: If direction is zero or bounces is negative.
    """
    settings = get_active_settings()
    if bounces is None:
        bounces = settings.bounce_limit
    if bounces < 0:
        raise ValueError(f"Bounce limit must be non-negative, got {bounces}")
    dx, dy, dz = _checked_direction(direction)

    color = _trace_single(origin[0], origin[1], origin[2], dx, dy, dz, bounces)
    return (float(color[0]), float(color[1]), float(color[2]), float(color[3]))


def nearest_hit(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
) -> tuple[int, float]:
    """Find the nearest object hit by a ray.

    Returns:
        Tuple (index, t); (-1, -1.0) when the ray hits nothing.
    """
    get_active_settings()
    dx, dy, dz = _checked_direction(direction)
    result = _nearest_hit(origin[0], origin[1], origin[2], dx, dy, dz)
    return int(round(float(result[0]))), float(result[1])
