"""Scene-level object table and per-object queries.

The current frame's objects live in Taichi fields using a structure-of-
arrays layout. A unified object table maps each object index to a kind tag
(sphere or triangle) and an index into the kind-specific arrays, so the
integrator can query any object through one operation set without knowing
its shape:

    object_intersects(i, ray)   -> 1 / 0
    object_get_t(i, ray)        -> first positive distance or -1
    object_get_mat(i)           -> MaterialRecord
    object_get_norm(i, point)   -> outward unit normal
    object_get_next_ray(i, ray) -> bounce ray

Objects are scanned linearly in upload order; there is no acceleration
structure.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from skytracer.scene.intersection import load_objects
    >>> from skytracer.scene.objects import SphereObject
    >>> load_objects([SphereObject(center=(0.0, 0.0, 0.0), radius=1.0)])
"""

import logging
from collections.abc import Sequence
from enum import IntEnum

import numpy as np
import taichi as ti
import taichi.math as tm

from skytracer.core.config import edge_tolerance, ray_epsilon
from skytracer.core.ray import Ray, make_ray, vec3
from skytracer.geometry.sphere import NO_HIT, Sphere, sphere_get_t, sphere_normal
from skytracer.geometry.triangle import Triangle, triangle_get_t
from skytracer.materials.metallic import Material, MaterialRecord, scatter_direction
from skytracer.scene.objects import Object3d, SphereObject, TriangleObject

logger = logging.getLogger(__name__)


class ObjectKind(IntEnum):
    """Kind tag stored per object for dispatch inside kernels."""

    SPHERE = 0
    TRIANGLE = 1


# Maximum number of objects in one scene snapshot
MAX_OBJECTS = 1024

# Unified object table
object_kinds = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
object_type_indices = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
num_objects = ti.field(dtype=ti.i32, shape=())

# Per-object material
material_albedos = ti.Vector.field(4, dtype=ti.f32, shape=MAX_OBJECTS)
material_metallicities = ti.field(dtype=ti.f32, shape=MAX_OBJECTS)
material_emission_strengths = ti.field(dtype=ti.f32, shape=MAX_OBJECTS)
material_emission_colors = ti.Vector.field(4, dtype=ti.f32, shape=MAX_OBJECTS)

# Sphere storage
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_OBJECTS)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_OBJECTS)

# Triangle storage; normals are precomputed at upload
triangle_v0 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_OBJECTS)
triangle_v1 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_OBJECTS)
triangle_v2 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_OBJECTS)
triangle_normals = ti.Vector.field(3, dtype=ti.f32, shape=MAX_OBJECTS)


# =============================================================================
# Upload (Python side)
# =============================================================================


def clear_scene() -> None:
    """Remove all objects from the scene.

    The field data is left in place and overwritten by the next upload.
    """
    num_objects[None] = 0


def _face_normal(v0: np.ndarray, v1: np.ndarray, v2: np.ndarray) -> list[float]:
    n = np.cross(v1 - v0, v2 - v0)
    length = np.linalg.norm(n)
    if length > 1e-12:
        n = n / length
    return [float(c) for c in n]


def _store_material(idx: int, material: Material) -> None:
    material_albedos[idx] = list(material.albedo.as_tuple())
    material_metallicities[idx] = material.metallicity
    material_emission_strengths[idx] = material.emission_strength
    material_emission_colors[idx] = list(material.emission_color.as_tuple())


def load_objects(objects: Sequence[Object3d]) -> None:
    """Replace the scene with a new snapshot of objects.

    Objects keep their sequence order, which is also the scan order used to
    break exact distance ties. The whole sequence is checked before any
    field is written, so a rejected upload leaves the previous scene intact.

    Args:
        objects: The spheres and triangles of the new scene.

    Raises:
        RuntimeError: If more than MAX_OBJECTS objects are given.
        TypeError: If an element is neither a SphereObject nor a TriangleObject.
    """
    if len(objects) > MAX_OBJECTS:
        raise RuntimeError(f"Maximum number of objects ({MAX_OBJECTS}) exceeded")
    for obj in objects:
        if not isinstance(obj, (SphereObject, TriangleObject)):
            raise TypeError(f"Unsupported scene object: {type(obj).__name__}")

    sphere_count = 0
    triangle_count = 0
    for idx, obj in enumerate(objects):
        if isinstance(obj, SphereObject):
            object_kinds[idx] = int(ObjectKind.SPHERE)
            object_type_indices[idx] = sphere_count
            sphere_centers[sphere_count] = list(obj.center)
            sphere_radii[sphere_count] = obj.radius
            sphere_count += 1
        else:
            v0 = np.array(obj.v0, dtype=np.float64)
            v1 = np.array(obj.v1, dtype=np.float64)
            v2 = np.array(obj.v2, dtype=np.float64)
            object_kinds[idx] = int(ObjectKind.TRIANGLE)
            object_type_indices[idx] = triangle_count
            triangle_v0[triangle_count] = list(obj.v0)
            triangle_v1[triangle_count] = list(obj.v1)
            triangle_v2[triangle_count] = list(obj.v2)
            triangle_normals[triangle_count] = _face_normal(v0, v1, v2)
            triangle_count += 1
        _store_material(idx, obj.material)

    num_objects[None] = len(objects)
    logger.debug(
        "Loaded scene with %d spheres and %d triangles", sphere_count, triangle_count
    )


def get_object_count() -> int:
    """Get the number of objects in the scene."""
    return int(num_objects[None])


# =============================================================================
# Per-Object Queries (kernel side)
# =============================================================================


@ti.func
def _sphere_at(type_index: ti.i32) -> Sphere:
    return Sphere(center=sphere_centers[type_index], radius=sphere_radii[type_index])


@ti.func
def _triangle_at(type_index: ti.i32) -> Triangle:
    return Triangle(
        v0=triangle_v0[type_index],
        v1=triangle_v1[type_index],
        v2=triangle_v2[type_index],
    )


@ti.func
def object_get_t(idx: ti.i32, ray: Ray) -> ti.f32:
    """Return the first positive hit distance of a ray with object idx, or -1."""
    type_index = object_type_indices[idx]
    t = NO_HIT
    if object_kinds[idx] == int(ObjectKind.SPHERE):
        t = sphere_get_t(ray.origin, ray.direction, _sphere_at(type_index))
    else:
        t = triangle_get_t(ray.origin, ray.direction, _triangle_at(type_index), edge_tolerance())
    return t


@ti.func
def object_intersects(idx: ti.i32, ray: Ray) -> ti.i32:
    """Return 1 if the ray hits object idx at a positive distance."""
    return ti.cast(object_get_t(idx, ray) > 0.0, ti.i32)


@ti.func
def object_get_mat(idx: ti.i32) -> MaterialRecord:
    """Return a copy of the material of object idx."""
    return MaterialRecord(
        albedo=material_albedos[idx],
        metallicity=material_metallicities[idx],
        emission_strength=material_emission_strengths[idx],
        emission_color=material_emission_colors[idx],
    )


@ti.func
def object_get_norm(idx: ti.i32, point: vec3) -> vec3:
    """Outward unit normal of object idx at a surface point.

    Spheres use the radial direction; triangles return their precomputed
    face normal regardless of the point.
    """
    type_index = object_type_indices[idx]
    normal = vec3(0.0, 0.0, 0.0)
    if object_kinds[idx] == int(ObjectKind.SPHERE):
        normal = sphere_normal(_sphere_at(type_index), point)
    else:
        normal = triangle_normals[type_index]
    return normal


@ti.func
def facing_normal(normal: vec3, direction: vec3) -> vec3:
    """Flip a normal so it faces against the incoming direction.

    Rays that reach a surface from its back side (inside a sphere, behind a
    triangle) bounce and shade on the side they arrived from.
    """
    result = normal
    if tm.dot(normal, direction) > 0.0:
        result = -normal
    return result


@ti.func
def surface_point(ray: Ray, t: ti.f32) -> vec3:
    """Hit point backed off by the ray epsilon along the incoming ray."""
    return ray.origin + (t - ray_epsilon()) * ray.direction


@ti.func
def object_next_ray_at(idx: ti.i32, ray: Ray, t: ti.f32) -> Ray:
    """Spawn the bounce ray for a known hit distance t.

    Args:
        idx: The object that was hit.
        ray: The incoming ray.
        t: Hit distance of ray with object idx.

    Returns:
        A ray starting just before the hit point whose direction blends the
        mirror reflection and a random hemisphere direction by the
        material's metallicity.
    """
    point = surface_point(ray, t)
    normal = facing_normal(object_get_norm(idx, point), ray.direction)
    direction = scatter_direction(object_get_mat(idx), ray.direction, normal)
    return make_ray(point, direction)


@ti.func
def object_get_next_ray(idx: ti.i32, ray: Ray) -> Ray:
    """Spawn the bounce ray for a ray hitting object idx."""
    return object_next_ray_at(idx, ray, object_get_t(idx, ray))


# =============================================================================
# Scene Queries
# =============================================================================


@ti.func
def intersect_scene(ray: Ray):
    """Find the nearest object hit by a ray.

    Every object is tested; among those reporting a hit the smallest
    distance wins, with exact ties going to the earliest object.

    Args:
        ray: The ray to trace.

    Returns:
        Tuple (index, t). index is -1 and t is -1.0 when nothing is hit.
    """
    closest_index = -1
    closest_t = NO_HIT
    for i in range(num_objects[None]):
        t = object_get_t(i, ray)
        if t > 0.0:
            if closest_index < 0 or t < closest_t:
                closest_index = i
                closest_t = t
    return closest_index, closest_t


@ti.func
def intersect_scene_any(ray: Ray) -> ti.i32:
    """Return 1 if the ray hits any object (shadow ray query)."""
    hit_any = 0
    for i in range(num_objects[None]):
        if hit_any == 0:
            if object_intersects(i, ray) == 1:
                hit_any = 1
    return hit_any
