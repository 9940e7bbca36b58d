"""Core rendering module.

Components:
    ray: Ray data structure, vector aliases and random direction sampling
    color: RGBA colour type, palette and 8-bit quantization
    config: Render settings and their kernel-visible fields
    integrator: Recursive light transport (sky + emission path tracing)
    progressive: Per-pixel parallel accumulation and the draw entry point

The integrator walks each camera path for a fixed number of bounces,
multiplying the carried throughput by the albedo at every surface and
adding emitted radiance along the way. The progressive renderer folds one
such sample per pixel per frame into a running mean.
"""

from .color import Color, quantize_color, rgba8
from .ray import (
    Ray,
    make_ray,
    random_on_hemisphere,
    random_unit_vector,
    ray_at,
    reflect,
    vec3,
    vec4,
)

# Note: config, integrator and progressive are NOT imported here; they declare
# Taichi fields and pull in the scene modules. Import them directly, e.g.
#   from skytracer.core.progressive import Tracer

__all__ = [
    "Color",
    "Ray",
    "make_ray",
    "quantize_color",
    "random_on_hemisphere",
    "random_unit_vector",
    "ray_at",
    "reflect",
    "rgba8",
    "vec3",
    "vec4",
]
