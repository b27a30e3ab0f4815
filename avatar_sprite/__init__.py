"""avatar_sprite
=================================

Deterministic avatar sprites cut from a horizontal sprite sheet and tinted
from a seed (typically a user identifier). The same seed always yields the
same pixels.

Typical use::

    from avatar_sprite import SheetConfig, SpriteComposer

    composer = SpriteComposer(SheetConfig("faces.png", frame_size=20))
    await composer.load()
    sprite = await composer.compose("user-42")  # PIL RGBA image

The pieces, leaf first:

* :func:`avatar_sprite.utils.image.tint_image` - in-place luminosity tint.
* :class:`avatar_sprite.loader.FrameSheetLoader` - loads the sheet once and
  counts its frames.
* :class:`avatar_sprite.composer.SpriteComposer` - draws frame and color from
  the seed's RNG and caches the result per seed.
"""

from .colors import (
    COLOR_SELECTOR_REGISTRY,
    ColorSelector,
    FixedColorSelector,
    HueColorSelector,
    PaletteColorSelector,
)
from .composer import SpriteComposer
from .config import SheetConfig
from .errors import (
    ComposeError,
    LoadError,
    NotReadyError,
    SpriteError,
    TintComputationError,
)
from .loader import FrameSheetLoader, LoadedSheet
from .rng import SpriteRandom
from .types import RGB, LoadState, Seed

__all__ = [
    "COLOR_SELECTOR_REGISTRY",
    "ColorSelector",
    "ComposeError",
    "FixedColorSelector",
    "FrameSheetLoader",
    "HueColorSelector",
    "LoadError",
    "LoadState",
    "LoadedSheet",
    "NotReadyError",
    "PaletteColorSelector",
    "RGB",
    "Seed",
    "SheetConfig",
    "SpriteComposer",
    "SpriteError",
    "SpriteRandom",
    "TintComputationError",
]
