"""One-shot asynchronous sprite sheet loading.

:class:`FrameSheetLoader` moves through ``UNLOADED -> LOADING -> READY`` or
``FAILED`` exactly once. The first :meth:`FrameSheetLoader.load` call starts a
single fetch task; every other caller, whether it arrives while loading or
long after, awaits that same task and therefore sees the same sheet or the
same :class:`~avatar_sprite.errors.LoadError`. Failures are never retried.
"""

import asyncio
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from PIL import Image

from avatar_sprite.config import SheetConfig
from avatar_sprite.errors import LoadError
from avatar_sprite.types import ImageLoaderFn, LoadState, SheetSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadedSheet:
    """A decoded sheet plus the number of whole frames it holds.

    Attributes:
        image: RGBA sheet image. Treated as read-only once loaded.
        frame_count: ``image.width // frame_size``; always at least 1.
    """

    image: Image.Image
    frame_count: int

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height


def describe_source(source: SheetSource) -> str:
    if isinstance(source, (str, Path)):
        return str(source)
    if isinstance(source, bytes):
        return f"<{len(source)} bytes>"
    return getattr(source, "name", None) or repr(source)


def _open_rgba(source: SheetSource) -> Image.Image:
    fp = io.BytesIO(source) if isinstance(source, bytes) else source
    with Image.open(fp) as image:
        # convert() forces the decode and returns a detached copy
        return image.convert("RGBA")


async def open_image(source: SheetSource) -> Image.Image:
    """Default image loader: decode ``source`` with Pillow off the event loop."""
    return await asyncio.to_thread(_open_rgba, source)


def count_frames(image: Image.Image, frame_size: int) -> int:
    """Number of whole ``frame_size`` frames laid out horizontally in ``image``."""
    return image.width // frame_size


class FrameSheetLoader:
    config: SheetConfig
    image_loader: ImageLoaderFn

    def __init__(
        self,
        config: SheetConfig,
        image_loader: Optional[ImageLoaderFn] = None,
    ):
        self.config = config
        self.image_loader = image_loader or open_image
        self._state = LoadState.UNLOADED
        self._task: Optional["asyncio.Task[LoadedSheet]"] = None
        self._sheet: Optional[LoadedSheet] = None
        self._error: Optional[LoadError] = None

    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def ready(self) -> bool:
        return self._state == LoadState.READY

    @property
    def sheet(self) -> Optional[LoadedSheet]:
        return self._sheet

    @property
    def frame_count(self) -> Optional[int]:
        """Frames in the sheet, or ``None`` until loading succeeded."""
        return self._sheet.frame_count if self._sheet is not None else None

    @property
    def error(self) -> Optional[LoadError]:
        return self._error

    async def load(self) -> LoadedSheet:
        """Load the sheet, or join/replay the load already started.

        Raises:
            LoadError: The sheet could not be decoded or holds no whole frame.
        """
        if self._task is None:
            self._state = LoadState.LOADING
            logger.debug(
                "Loading sprite sheet %s", describe_source(self.config.source)
            )
            self._task = asyncio.ensure_future(self._fetch())
        elif self._state == LoadState.FAILED and self._error is not None:
            # Drop frames left by earlier raises so repeated calls stay shallow
            raise self._error.with_traceback(None)
        # A cancelled caller must not cancel the fetch the others are waiting on
        return await asyncio.shield(self._task)

    async def _fetch(self) -> LoadedSheet:
        source = self.config.source
        try:
            image = await self.image_loader(source)
            sheet = self._to_sheet(image)
        except LoadError as e:
            self._fail(e)
            raise
        except (OSError, ValueError) as e:
            error = LoadError(
                f"Could not load sprite sheet {describe_source(source)}: {e}"
            )
            self._fail(error)
            raise error from e
        except Exception as e:
            error = LoadError(
                f"Unexpected failure loading sprite sheet "
                f"{describe_source(source)}: {e!r}"
            )
            self._fail(error)
            raise error from e

        self._sheet = sheet
        self._state = LoadState.READY
        logger.info(
            "Sprite sheet %s ready: %dx%d, %d frame(s) of %dpx",
            describe_source(source),
            sheet.width,
            sheet.height,
            sheet.frame_count,
            self.config.frame_size,
        )
        return sheet

    def _to_sheet(self, image: Image.Image) -> LoadedSheet:
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        frame_count = count_frames(image, self.config.frame_size)
        if frame_count < 1:
            raise LoadError(
                f"Sprite sheet is {image.width}px wide, "
                f"narrower than one {self.config.frame_size}px frame"
            )
        return LoadedSheet(image=image, frame_count=frame_count)

    def _fail(self, error: LoadError) -> None:
        self._error = error
        self._state = LoadState.FAILED
        logger.warning("%s", error)
