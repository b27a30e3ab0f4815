"""Common type aliases and enumerations.

``ColorFn``-style collaborators and sheet sources are the main extension
points: the composer only needs an object that yields an ``RGB`` triple from
a :class:`~avatar_sprite.rng.SpriteRandom`, and an async callable that turns a
``SheetSource`` into a Pillow image.
"""

from enum import StrEnum, auto
from pathlib import Path
from typing import IO, Awaitable, Callable, Tuple, Union, TYPE_CHECKING


# Forward declaration to avoid importing Pillow at type-alias time
if TYPE_CHECKING:
    from PIL.Image import Image

RGB = Tuple[int, int, int]

Seed = Union[int, str]
"""Opaque composition input; every randomized choice derives from it."""

SheetSource = Union[str, Path, bytes, IO[bytes]]

ImageLoaderFn = Callable[[SheetSource], Awaitable["Image"]]


class LoadState(StrEnum):
    """Lifecycle of a frame sheet (``UNLOADED -> LOADING -> READY | FAILED``)."""

    UNLOADED = auto()
    LOADING = auto()
    READY = auto()
    FAILED = auto()
