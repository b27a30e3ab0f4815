"""Sheet configuration.

``SheetConfig`` is an immutable value object owned by a composer for its
whole lifetime. Only the source is required; frame size and tint likelihood
fall back to the defaults below and can be overridden from the environment
with :meth:`SheetConfig.from_env`.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from avatar_sprite.types import SheetSource


DEFAULT_FRAME_SIZE = 20
DEFAULT_TINT_LIKELIHOOD = 100

ENV_FRAME_SIZE = "AVATAR_SPRITE_FRAME_SIZE"
ENV_TINT_LIKELIHOOD = "AVATAR_SPRITE_TINT_LIKELIHOOD"


@dataclass(frozen=True)
class SheetConfig:
    """Where to find the sheet and how to cut and tint it.

    Attributes:
        source: Path, raw bytes or binary file object of the sprite sheet.
        frame_size: Edge length in pixels of one square frame.
        tint_likelihood: Percent chance (0-100) that a seed gets a tinted
            frame at all; otherwise the sprite stays blank.
    """

    source: SheetSource
    frame_size: int = DEFAULT_FRAME_SIZE
    tint_likelihood: int = DEFAULT_TINT_LIKELIHOOD

    def __post_init__(self) -> None:
        if self.frame_size < 1:
            raise ValueError(f"frame_size must be positive, got {self.frame_size}")
        if not 0 <= self.tint_likelihood <= 100:
            raise ValueError(
                f"tint_likelihood must be within [0, 100], got {self.tint_likelihood}"
            )

    @classmethod
    def from_env(
        cls,
        source: SheetSource,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "SheetConfig":
        """Build a config, reading size/likelihood overrides from ``environ``."""
        env = os.environ if environ is None else environ
        return cls(
            source=source,
            frame_size=int(env.get(ENV_FRAME_SIZE, DEFAULT_FRAME_SIZE)),
            tint_likelihood=int(env.get(ENV_TINT_LIKELIHOOD, DEFAULT_TINT_LIKELIHOOD)),
        )
