"""Built-in tint color selectors.

A *color selector* maps the composition's :class:`SpriteRandom` to an ``RGB``
triple. The composer awaits ``get_color`` after it has drawn the frame index,
so any draws a selector makes come second in the seed's draw sequence.

Contract (``ColorSelector``):

* ``get_color`` is a coroutine so selectors may consult slow sources.
* Must be a pure function of the draws it makes on ``rng`` (no other
  randomness), otherwise sprites stop being reproducible.
* Channels should be integers in [0, 255]; the tinter clamps anything else.
"""

import colorsys
from dataclasses import dataclass
from typing import Dict, Iterable, Protocol, runtime_checkable

from pyrsistent import pvector
from pyrsistent.typing import PVector

from avatar_sprite.rng import SpriteRandom
from avatar_sprite.types import RGB
from avatar_sprite.utils.image import clamp_channel


@runtime_checkable
class ColorSelector(Protocol):
    async def get_color(self, rng: SpriteRandom) -> RGB: ...


@dataclass(frozen=True)
class FixedColorSelector:
    """Always returns ``color``; makes no draws."""

    color: RGB

    async def get_color(self, rng: SpriteRandom) -> RGB:
        return self.color


@dataclass(frozen=True)
class HueColorSelector:
    """Random hue with saturation/value drawn from bounded ranges.

    Makes exactly three draws (hue, saturation, value), in that order.
    """

    min_saturation: float = 0.6
    max_saturation: float = 0.9
    min_value: float = 0.7
    max_value: float = 0.95

    def __post_init__(self) -> None:
        for lo, hi, name in (
            (self.min_saturation, self.max_saturation, "saturation"),
            (self.min_value, self.max_value, "value"),
        ):
            if not 0.0 <= lo <= hi <= 1.0:
                raise ValueError(f"Invalid {name} range: [{lo}, {hi}]")

    async def get_color(self, rng: SpriteRandom) -> RGB:
        h = rng.random()
        s = self.min_saturation + (self.max_saturation - self.min_saturation) * rng.random()
        v = self.min_value + (self.max_value - self.min_value) * rng.random()
        r, g, b = colorsys.hsv_to_rgb(h, s, v)
        return clamp_channel(r * 255), clamp_channel(g * 255), clamp_channel(b * 255)


class PaletteColorSelector:
    """Uniform pick from a fixed palette; makes one draw."""

    palette: PVector[RGB]

    def __init__(self, palette: Iterable[RGB]):
        self.palette = pvector(tuple(color) for color in palette)
        if len(self.palette) == 0:
            raise ValueError("Palette must contain at least one color")

    async def get_color(self, rng: SpriteRandom) -> RGB:
        return self.palette[rng.natural(0, len(self.palette) - 1)]


DEFAULT_PALETTE: PVector[RGB] = pvector(
    [
        (231, 76, 60),
        (230, 126, 34),
        (241, 196, 15),
        (46, 204, 113),
        (26, 188, 156),
        (52, 152, 219),
        (155, 89, 182),
        (236, 240, 241),
    ]
)


COLOR_SELECTOR_REGISTRY: Dict[str, ColorSelector] = {
    "hue": HueColorSelector(),
    "palette": PaletteColorSelector(DEFAULT_PALETTE),
}
"""Registry of built-in color selector names to instances."""
