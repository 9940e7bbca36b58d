"""Sphere primitive with robust ray-sphere intersection.

The hit distance solves |O + tD - C|^2 = r^2 with the numerically stable
quadratic formula (Ray Tracing Gems, chapter 7), which avoids catastrophic
cancellation when b^2 is close to 4ac.

``sphere_get_t`` and ``sphere_intersects`` share one computation so that a
reported hit always comes with a finite, positive distance.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from skytracer.geometry.sphere import Sphere, sphere_get_t
    >>> # Inside a kernel:
    >>> # t = sphere_get_t(origin, direction, Sphere(center=vec3(0.0), radius=1.0))
"""

import taichi as ti
import taichi.math as tm

from skytracer.core.ray import vec3

# Hit distance reported when a ray misses
NO_HIT = -1.0


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    radius: ti.f32


@ti.func
def _solve_quadratic_robust(h: ti.f32, a: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Solve a*t^2 + 2*h*t + c = 0 using a numerically stable method.

    Args:
        h: Half of the linear coefficient.
        a: Quadratic coefficient.
        c: Constant term.
        sqrt_d: Square root of the discriminant (h^2 - a*c).

    Returns:
        Tuple of (t0, t1) where t0 <= t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant))
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0

    if ti.abs(q) < 1e-10:
        # Tangent ray through the center plane: fall back to the plain formula
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def sphere_roots(ray_origin: vec3, ray_direction: vec3, sphere: Sphere):
    """Compute both intersection parameters of a ray with a sphere.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray.
        sphere: The sphere to test.

    Returns:
        Tuple (has_roots, t0, t1) with t0 <= t1. has_roots is 0 when the
        discriminant is negative, in which case t0 and t1 are meaningless.
    """
    oc = ray_origin - sphere.center
    a = tm.dot(ray_direction, ray_direction)
    h = tm.dot(ray_direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = h * h - a * c

    has_roots = 0
    t0 = 0.0
    t1 = 0.0
    if discriminant >= 0.0:
        has_roots = 1
        t0, t1 = _solve_quadratic_robust(h, a, c, ti.sqrt(discriminant))
    return has_roots, t0, t1


@ti.func
def sphere_get_t(ray_origin: vec3, ray_direction: vec3, sphere: Sphere) -> ti.f32:
    """Return the first positive hit distance, or NO_HIT.

    A ray starting outside the sphere gets the near root; a ray starting
    inside gets the far (only positive) root.
    """
    has_roots, t0, t1 = sphere_roots(ray_origin, ray_direction, sphere)
    t = NO_HIT
    if has_roots == 1:
        if t0 > 0.0:
            t = t0
        elif t1 > 0.0:
            t = t1
    return t


@ti.func
def sphere_intersects(ray_origin: vec3, ray_direction: vec3, sphere: Sphere) -> ti.i32:
    """Return 1 if the ray hits the sphere at a positive distance."""
    return ti.cast(sphere_get_t(ray_origin, ray_direction, sphere) > 0.0, ti.i32)


@ti.func
def sphere_normal(sphere: Sphere, point: vec3) -> vec3:
    """Outward unit normal at a point on the sphere surface."""
    return tm.normalize(point - sphere.center)
