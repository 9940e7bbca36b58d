"""Albedo / metallicity / emission material model.

A single material type covers every surface in the scene:

- albedo tints (and absorbs) light reflected at each bounce;
- metallicity blends the bounce direction between the perfect mirror
  reflection (1.0) and a uniformly random direction in the hemisphere
  around the normal (0.0);
- emission makes the surface a light source, so lights are ordinary
  geometry rather than a separate list.

The reflection formula is R = I - 2(I . N)N. The bounce direction is

    normalize(m * R + (1 - m) * random_on_hemisphere(N))

Example:
    >>> from skytracer.core.color import BLACK, RED, WHITE
    >>> from skytracer.materials.metallic import Material
    >>> red_plastic = Material(albedo=RED, metallicity=0.2)
    >>> lamp = Material(albedo=BLACK, emission_strength=4.0, emission_color=WHITE)
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from skytracer.core.color import BLACK, WHITE, Color
from skytracer.core.ray import random_on_hemisphere, reflect, vec3, vec4


@dataclass(frozen=True)
class Material:
    """Surface material for scene authoring.

    Attributes:
        albedo: Fraction of incoming light reflected per channel, in [0, 1].
        metallicity: Mirror/diffuse blend weight in [0, 1].
        emission_strength: Scale applied to emission_color, >= 0.
        emission_color: Colour of the emitted light.

    Raises:
        ValueError: If any parameter is out of range.
    """

    albedo: Color = WHITE
    metallicity: float = 0.0
    emission_strength: float = 0.0
    emission_color: Color = BLACK

    def __post_init__(self) -> None:
        for i, component in enumerate(self.albedo.as_tuple()):
            if component < 0.0 or component > 1.0:
                raise ValueError(
                    f"Albedo component {i} = {component} is outside [0, 1]. "
                    "This would violate energy conservation."
                )
        if self.metallicity < 0.0 or self.metallicity > 1.0:
            raise ValueError(
                f"Metallicity = {self.metallicity} is outside [0, 1]. "
                "Metallicity must be between 0 (diffuse) and 1 (mirror)."
            )
        if self.emission_strength < 0.0:
            raise ValueError(
                f"Emission strength must be non-negative, got {self.emission_strength}"
            )

    @property
    def is_emissive(self) -> bool:
        """Whether the surface emits any light."""
        return self.emission_strength > 0.0 and any(
            c > 0.0 for c in self.emission_color.as_tuple()
        )

    def emitted(self) -> Color:
        """Radiance emitted by the surface (emission_color * strength)."""
        return self.emission_color * self.emission_strength


@ti.dataclass
class MaterialRecord:
    """Kernel-side copy of a Material.

    Attributes:
        albedo: Reflectance per RGBA channel.
        metallicity: Mirror/diffuse blend weight.
        emission_strength: Emission scale.
        emission_color: Emission colour.
    """

    albedo: vec4
    metallicity: ti.f32
    emission_strength: ti.f32
    emission_color: vec4


@ti.func
def emitted(material: MaterialRecord) -> vec4:
    """Radiance emitted by a surface with this material."""
    return material.emission_color * material.emission_strength


@ti.func
def scatter_direction(material: MaterialRecord, incident_direction: vec3, normal: vec3) -> vec3:
    """Sample the bounce direction for this material.

    Args:
        material: The surface material.
        incident_direction: The incoming ray direction (normalized).
        normal: Unit surface normal facing the incoming ray.

    Returns:
        The normalized blend of the mirror reflection and a random
        direction in the hemisphere around the normal.
    """
    reflected = reflect(incident_direction, normal)
    diffuse = random_on_hemisphere(normal)
    m = material.metallicity
    return tm.normalize(m * reflected + (1.0 - m) * diffuse)
