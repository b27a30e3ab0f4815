import math
import numpy as np
import numpy.typing as npt
from PIL import Image
from typing import Sequence

from avatar_sprite.errors import TintComputationError
from avatar_sprite.types import RGB

# Type aliases for clarity
FloatArray = npt.NDArray[np.float64]
UInt8Array = npt.NDArray[np.uint8]
BoolArray = npt.NDArray[np.bool_]

TRANSPARENT = (0, 0, 0, 0)


def blank_surface(size: int) -> Image.Image:
    """Return a fully transparent ``size x size`` RGBA surface."""
    return Image.new("RGBA", (size, size), TRANSPARENT)


def frame_box(index: int, size: int) -> tuple[int, int, int, int]:
    """Crop box of frame ``index`` in a horizontal sheet of ``size`` frames."""
    x0 = index * size
    return (x0, 0, x0 + size, size)


def draw_frame(
    surface: Image.Image, sheet: Image.Image, index: int, size: int
) -> Image.Image:
    """Copy frame ``index`` of ``sheet`` onto ``surface`` at the origin.

    Equivalent to drawing the whole sheet shifted left by ``index * size``;
    anything outside the sheet (e.g. a sheet shorter than one frame) stays
    transparent.
    """
    surface.paste(sheet.crop(frame_box(index, size)), (0, 0))
    return surface


def _coerce_color(color: Sequence[float]) -> FloatArray:
    if len(color) != 3:
        raise TintComputationError(f"Tint color must have 3 channels, got {color!r}")
    try:
        channels = np.array([float(c) for c in color], dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise TintComputationError(f"Tint color is not numeric: {color!r}") from e
    if not np.all(np.isfinite(channels)):
        raise TintComputationError(f"Tint color is not finite: {color!r}")
    return channels


def tint_array(arr: UInt8Array, color: Sequence[float]) -> UInt8Array:
    """
    Luminosity-weighted tint of an ``(H, W, 4)`` RGBA array.

    For every pixel with alpha > 0 and each RGB channel::

        out = round((in - c) * (in / 255) + c)

    Dark channels move almost fully to ``c`` while bright ones keep most of
    their value, so shading survives the recolor. Rounding is half-up and the
    result is clamped to [0, 255]. Alpha and fully transparent pixels are
    returned untouched.
    """
    target = _coerce_color(color)
    out: UInt8Array = arr.copy()
    visible: BoolArray = arr[..., 3] > 0

    channels: FloatArray = arr[..., :3].astype(np.float64)
    # Same operation order as the formula above
    blended: FloatArray = (channels - target) * (channels / 255.0) + target
    rounded: FloatArray = np.floor(blended + 0.5)
    if not np.all(np.isfinite(rounded)):
        raise TintComputationError("Tint produced non-finite channel values")

    clamped: UInt8Array = np.clip(rounded, 0, 255).astype(np.uint8)
    out[..., :3][visible] = clamped[visible]
    return out


def tint_image(surface: Image.Image, color: RGB) -> None:
    """Tint ``surface`` in place (see :func:`tint_array`)."""
    if surface.mode != "RGBA":
        raise TintComputationError(f"Expected an RGBA surface, got {surface.mode}")
    arr: UInt8Array = np.array(surface, dtype=np.uint8)
    surface.paste(Image.fromarray(tint_array(arr, color)), (0, 0))


def upscale(image: Image.Image, scale: int) -> Image.Image:
    """Nearest-neighbour enlargement, keeping pixel art crisp."""
    if scale < 1:
        raise ValueError(f"scale must be positive, got {scale}")
    if scale == 1:
        return image.copy()
    width, height = image.size
    return image.resize((width * scale, height * scale), Image.Resampling.NEAREST)


def surfaces_equal(a: Image.Image, b: Image.Image) -> bool:
    """Byte-wise comparison of two surfaces (mode, size and pixels)."""
    return a.mode == b.mode and a.size == b.size and a.tobytes() == b.tobytes()


def clamp_channel(value: float) -> int:
    """Half-up round and clamp a single channel value to [0, 255]."""
    if not math.isfinite(value):
        raise TintComputationError(f"Channel value is not finite: {value!r}")
    return max(0, min(255, math.floor(value + 0.5)))
