"""Seeded sprite composition.

:class:`SpriteComposer` turns a seed into a ``frame_size x frame_size`` RGBA
sprite. The draws made for a seed always happen in the same order:

1. ``rng.bool(likelihood=tint_likelihood)``: tint at all? If not, the blank
   surface is the result and nothing else is drawn.
2. ``rng.natural(0, frame_count - 1)``: which frame of the sheet to use.
3. Whatever the color selector draws to pick the tint color.

The finished surface is cached per composer under its seed. A cached seed is
answered without creating an RNG or touching the sheet, and the cached image
object is returned as-is, so callers must copy it before mutating.
"""

import logging
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional

from PIL import Image
from pyrsistent import pmap
from pyrsistent.typing import PMap

from avatar_sprite.colors import ColorSelector, HueColorSelector
from avatar_sprite.config import SheetConfig
from avatar_sprite.errors import NotReadyError
from avatar_sprite.loader import FrameSheetLoader, LoadedSheet
from avatar_sprite.rng import RngFactory, SpriteRandom
from avatar_sprite.types import ImageLoaderFn, Seed
from avatar_sprite.utils.image import blank_surface, draw_frame, tint_image

logger = logging.getLogger(__name__)


class SpriteComposer:
    config: SheetConfig
    color_selector: ColorSelector
    rng_factory: RngFactory
    loader: FrameSheetLoader

    def __init__(
        self,
        config: SheetConfig,
        color_selector: Optional[ColorSelector] = None,
        rng_factory: RngFactory = SpriteRandom,
        loader: Optional[FrameSheetLoader] = None,
        image_loader: Optional[ImageLoaderFn] = None,
    ):
        if loader is not None and loader.config != config:
            raise ValueError("loader was built for a different SheetConfig")
        self.config = config
        self.color_selector = color_selector or HueColorSelector()
        self.rng_factory = rng_factory
        self.loader = loader or FrameSheetLoader(config, image_loader=image_loader)
        self._cache: Dict[Seed, Image.Image] = {}

    @property
    def cache(self) -> Mapping[Seed, Image.Image]:
        """Read-only view of the seed -> sprite cache."""
        return MappingProxyType(self._cache)

    async def load(self) -> LoadedSheet:
        """Load the sheet (see :meth:`FrameSheetLoader.load`)."""
        return await self.loader.load()

    async def compose(self, seed: Seed) -> Image.Image:
        """Return the sprite for ``seed``, composing it on first request.

        Raises:
            NotReadyError: The sheet has not finished loading successfully.
            TintComputationError: The color selector returned an unusable color.
        """
        sheet = self.loader.sheet
        if sheet is None or not self.loader.ready:
            raise NotReadyError(
                f"Sprite sheet not loaded (state: {self.loader.state})"
            )

        cached = self._cache.get(seed)
        if cached is not None:
            logger.debug("Sprite cache hit for seed %r", seed)
            return cached

        size = self.config.frame_size
        surface = blank_surface(size)
        rng = self.rng_factory(seed)

        if rng.bool(likelihood=self.config.tint_likelihood):
            index = rng.natural(0, sheet.frame_count - 1)
            color = await self.color_selector.get_color(rng)
            logger.debug("Seed %r: frame %d, tint %s", seed, index, color)
            draw_frame(surface, sheet.image, index, size)
            tint_image(surface, color)
        else:
            logger.debug("Seed %r: left blank", seed)

        # Another compose of the same seed may have finished while we awaited
        # the color; keep whichever landed first.
        return self._cache.setdefault(seed, surface)

    async def compose_many(self, seeds: Iterable[Seed]) -> PMap[Seed, Image.Image]:
        """Compose each seed in turn and return the sprites keyed by seed."""
        sprites: Dict[Seed, Image.Image] = {}
        for seed in seeds:
            sprites[seed] = await self.compose(seed)
        return pmap(sprites)
