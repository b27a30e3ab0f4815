"""Exception hierarchy.

All errors are raised from the coroutine whose call triggered them, so a
caller awaiting ``load()`` or ``compose()`` sees them directly. Nothing in
the package retries; callers decide on their own retry policy.
"""


class SpriteError(Exception):
    """Base class for every error raised by ``avatar_sprite``."""


class LoadError(SpriteError):
    """The sheet could not be loaded; cached and re-raised on later loads."""


class ComposeError(SpriteError):
    """Base class for failures while composing a sprite."""


class NotReadyError(ComposeError):
    """Composition was attempted before the sheet finished loading."""


class TintComputationError(ComposeError):
    """Per-pixel tint arithmetic produced an unusable value."""
