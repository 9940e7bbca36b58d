"""RGBA colour type, palette and 8-bit quantization.

Colours use normalized channels: 1.0 is full intensity. During light
transport values are unbounded (emitters push radiance above 1.0); they are
only clamped when quantized to 8 bits for presentation.

The Python-side ``Color`` is used for scene authoring. Inside kernels colours
are plain ``vec4`` values and ``quantize_color`` performs the same rounding
as ``Color.to_u8``.
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from skytracer.core.ray import vec4

# Four unsigned bytes, one RGBA8 pixel
rgba8 = ti.types.vector(4, ti.u8)


@dataclass(frozen=True)
class Color:
    """An RGBA colour with floating-point channels.

    Attributes:
        r: Red channel.
        g: Green channel.
        b: Blue channel.
        a: Alpha channel.
    """

    r: float
    g: float
    b: float
    a: float = 1.0

    @classmethod
    def from_u8(cls, r: int, g: int, b: int, a: int = 255) -> "Color":
        """Build a colour from 8-bit channel values."""
        return cls(r / 255.0, g / 255.0, b / 255.0, a / 255.0)

    def __add__(self, other: "Color") -> "Color":
        return Color(self.r + other.r, self.g + other.g, self.b + other.b, self.a + other.a)

    def __mul__(self, other: "Color | float") -> "Color":
        if isinstance(other, Color):
            return Color(self.r * other.r, self.g * other.g, self.b * other.b, self.a * other.a)
        return Color(self.r * other, self.g * other, self.b * other, self.a * other)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> "Color":
        return Color(self.r / scalar, self.g / scalar, self.b / scalar, self.a / scalar)

    def as_tuple(self) -> tuple[float, float, float, float]:
        """Return the channels as an (r, g, b, a) tuple."""
        return (self.r, self.g, self.b, self.a)

    def as_vec4(self) -> vec4:
        """Return the colour as a Taichi vec4."""
        return vec4(self.r, self.g, self.b, self.a)

    def to_u8(self) -> tuple[int, int, int, int]:
        """Quantize to 8-bit RGBA.

        Each channel is scaled by 255, clamped to [0, 255] and truncated.
        """
        return tuple(int(max(0.0, min(255.0, c * 255.0))) for c in self.as_tuple())


@ti.func
def quantize_color(color: vec4) -> rgba8:
    """Quantize a linear colour to 8-bit RGBA inside a kernel.

    Args:
        color: The colour to quantize (unbounded channels).

    Returns:
        The clamped and truncated RGBA8 value.
    """
    return ti.cast(tm.clamp(color * 255.0, 0.0, 255.0), ti.u8)


# =============================================================================
# Palette
# =============================================================================

LIGHTGRAY = Color.from_u8(200, 200, 200)
GRAY = Color.from_u8(130, 130, 130)
DARKGRAY = Color.from_u8(80, 80, 80)
YELLOW = Color.from_u8(253, 249, 0)
GOLD = Color.from_u8(255, 203, 0)
ORANGE = Color.from_u8(255, 161, 0)
PINK = Color.from_u8(255, 109, 194)
RED = Color.from_u8(230, 41, 55)
MAROON = Color.from_u8(190, 33, 55)
GREEN = Color.from_u8(0, 228, 48)
LIME = Color.from_u8(0, 158, 47)
DARKGREEN = Color.from_u8(0, 117, 44)
SKYBLUE = Color.from_u8(102, 191, 255)
BLUE = Color.from_u8(0, 121, 241)
DARKBLUE = Color.from_u8(0, 82, 172)
PURPLE = Color.from_u8(200, 122, 255)
VIOLET = Color.from_u8(135, 60, 190)
DARKPURPLE = Color.from_u8(112, 31, 126)
BEIGE = Color.from_u8(211, 176, 131)
BROWN = Color.from_u8(127, 106, 79)
DARKBROWN = Color.from_u8(76, 63, 47)
WHITE = Color.from_u8(255, 255, 255)
BLACK = Color.from_u8(0, 0, 0)
BLANK = Color.from_u8(0, 0, 0, 0)
MAGENTA = Color.from_u8(255, 0, 255)
RAYWHITE = Color.from_u8(245, 245, 245)
