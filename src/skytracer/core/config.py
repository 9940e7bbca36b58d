"""Render settings and their kernel-visible state.

The renderer consumes a handful of constants: image side length, bounce
limit, the self-intersection epsilon, the triangle edge tolerance, the sky
colour and the sun direction. ``RenderSettings`` groups them with their
defaults; ``apply_settings`` copies the runtime-tunable values into 0-d
Taichi fields that the geometry and integrator functions read.

Example:
    >>> from skytracer.core.config import RenderSettings, apply_settings
    >>> settings = RenderSettings(side=256, bounce_limit=3)
    >>> apply_settings(settings)
"""

import math
from dataclasses import dataclass

import taichi as ti

from skytracer.core.color import SKYBLUE, Color
from skytracer.core.ray import vec3, vec4

# Largest supported image side (accumulation buffers are preallocated to it)
MAX_SIDE = 1024

DEFAULT_SIDE = 512
DEFAULT_BOUNCE_LIMIT = 5
DEFAULT_RAY_EPSILON = 1e-3
DEFAULT_EDGE_TOLERANCE = 1e-2
DEFAULT_SUN_DIRECTION = (0.1, 0.1, -1.0)


@dataclass(frozen=True)
class RenderSettings:
    """Configuration consumed by the renderer.

    Attributes:
        side: Image side length in pixels (the image is side x side).
        bounce_limit: Number of bounces before a path is closed with the
            direct sun term.
        ray_epsilon: Distance a spawned ray backs off from the surface it
            leaves.
        edge_tolerance: Distance (world units) a hit may fall outside a
            triangle edge and still count.
        sky_color: Radiance of the sky, returned by rays that escape.
        sun_direction: Direction the sunlight travels (toward the scene).
    """

    side: int = DEFAULT_SIDE
    bounce_limit: int = DEFAULT_BOUNCE_LIMIT
    ray_epsilon: float = DEFAULT_RAY_EPSILON
    edge_tolerance: float = DEFAULT_EDGE_TOLERANCE
    sky_color: Color = SKYBLUE
    sun_direction: tuple[float, float, float] = DEFAULT_SUN_DIRECTION

    def validate(self) -> None:
        """Check the settings for values the renderer cannot use.

        Raises:
            ValueError: If any setting is out of range.
        """
        if self.side < 1 or self.side > MAX_SIDE:
            raise ValueError(f"Image side {self.side} is outside [1, {MAX_SIDE}]")
        if self.bounce_limit < 0:
            raise ValueError(f"Bounce limit must be non-negative, got {self.bounce_limit}")
        if self.ray_epsilon <= 0.0:
            raise ValueError(f"Ray epsilon must be positive, got {self.ray_epsilon}")
        if self.edge_tolerance < 0.0:
            raise ValueError(f"Edge tolerance must be non-negative, got {self.edge_tolerance}")
        if math.hypot(*self.sun_direction) < 1e-8:
            raise ValueError("Sun direction must not be a zero vector")


# =============================================================================
# Taichi Fields for Settings (kernel-accessible)
# =============================================================================

_ray_epsilon = ti.field(dtype=ti.f32, shape=())
_edge_tolerance = ti.field(dtype=ti.f32, shape=())
_sky_color = ti.Vector.field(4, dtype=ti.f32, shape=())
_to_light = ti.Vector.field(3, dtype=ti.f32, shape=())

_active_settings: RenderSettings | None = None


def apply_settings(settings: RenderSettings) -> None:
    """Validate settings and upload them for use inside kernels.

    Args:
        settings: The settings to activate.

    Raises:
        ValueError: If the settings fail validation.
    """
    global _active_settings
    settings.validate()

    sx, sy, sz = settings.sun_direction
    norm = math.sqrt(sx * sx + sy * sy + sz * sz)

    _ray_epsilon[None] = settings.ray_epsilon
    _edge_tolerance[None] = settings.edge_tolerance
    _sky_color[None] = list(settings.sky_color.as_tuple())
    # Shading needs the direction toward the light, opposite to its travel
    _to_light[None] = [-sx / norm, -sy / norm, -sz / norm]
    _active_settings = settings


def get_active_settings() -> RenderSettings:
    """Return the active settings, applying the defaults on first use."""
    if _active_settings is None:
        settings = RenderSettings()
        apply_settings(settings)
        return settings
    return _active_settings


def get_settings_info() -> dict[str, object]:
    """Read the uploaded settings back from the Taichi fields.

    Returns:
        Dictionary with ray_epsilon, edge_tolerance, sky_color and to_light.
    """
    sky = _sky_color[None]
    to_light = _to_light[None]
    return {
        "ray_epsilon": float(_ray_epsilon[None]),
        "edge_tolerance": float(_edge_tolerance[None]),
        "sky_color": tuple(float(sky[i]) for i in range(4)),
        "to_light": tuple(float(to_light[i]) for i in range(3)),
    }


@ti.func
def ray_epsilon() -> ti.f32:
    """Self-intersection offset for spawned rays."""
    return _ray_epsilon[None]


@ti.func
def edge_tolerance() -> ti.f32:
    """Slack for the triangle containment test."""
    return _edge_tolerance[None]


@ti.func
def sky_color() -> vec4:
    """Radiance returned by rays that leave the scene."""
    return _sky_color[None]


@ti.func
def to_light_direction() -> vec3:
    """Unit direction from a surface point toward the sun."""
    return _to_light[None]
