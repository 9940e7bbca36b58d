"""Ray data structure and vector utilities for the path tracer.

This module provides the Ray dataclass, vector/colour type aliases and the
random direction sampling used for diffuse bounces. All functions are Taichi
functions meant to be called from inside kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from skytracer.core.ray import Ray, ray_at, vec3
    >>> # Inside a kernel:
    >>> # ray = Ray(origin=vec3(0.0), direction=vec3(0.0, 0.0, -1.0))
    >>> # point = ray_at(ray, 5.0)
"""

import taichi as ti
import taichi.math as tm

# Type aliases for 3D vectors and RGBA colours
vec3 = tm.vec3
vec4 = tm.vec4


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction of the ray (vec3). Unit length by
            convention; every ray built by the renderer is normalized.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The mirrored direction, incident - 2 (incident . normal) normal.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_unit_vector() -> vec3:
    """Generate a random unit vector uniformly distributed on the sphere.

    Three independent standard-normal draws form an isotropic Gaussian
    vector; normalizing it gives a uniform direction without rejection.
    Taichi keeps a separate random state per thread, so concurrent pixel
    evaluations never share generator state.

    Returns:
        A random unit vector.
    """
    p = vec3(ti.randn(ti.f32), ti.randn(ti.f32), ti.randn(ti.f32))
    return tm.normalize(p)


@ti.func
def random_on_hemisphere(normal: vec3) -> vec3:
    """Generate a random unit vector on the hemisphere around a normal.

    A uniform direction is drawn on the whole sphere and flipped when it
    points into the surface.

    Args:
        normal: The surface normal defining the hemisphere orientation.

    Returns:
        A random unit vector with non-negative dot product against normal.
    """
    on_sphere = random_unit_vector()
    result = on_sphere
    if tm.dot(on_sphere, normal) < 0.0:
        result = -on_sphere
    return result
