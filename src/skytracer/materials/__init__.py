"""Materials module.

Components:
    metallic: Albedo / metallicity / emission material shared by every
        primitive, with the mirror/diffuse bounce sampler

Light sources are emissive materials on ordinary geometry; there is no
separate light list.
"""

from .metallic import Material, MaterialRecord, emitted, scatter_direction

__all__ = [
    "Material",
    "MaterialRecord",
    "emitted",
    "scatter_direction",
]
