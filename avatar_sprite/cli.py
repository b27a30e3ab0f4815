"""Command line entry point: write seeded sprites from a sheet to PNG files.

Example::

    avatar-sprite faces.png --seed alice --seed bob --out avatars/ --scale 8
"""

import argparse
import asyncio
import hashlib
import logging
import os
import re
import sys
from typing import List, Mapping, Optional, Sequence

from avatar_sprite.colors import COLOR_SELECTOR_REGISTRY
from avatar_sprite.composer import SpriteComposer
from avatar_sprite.config import (
    DEFAULT_FRAME_SIZE,
    DEFAULT_TINT_LIKELIHOOD,
    ENV_FRAME_SIZE,
    ENV_TINT_LIKELIHOOD,
    SheetConfig,
)
from avatar_sprite.errors import SpriteError
from avatar_sprite.types import Seed
from avatar_sprite.utils.image import upscale

logger = logging.getLogger(__name__)

SAFE_NAME = re.compile(r"[A-Za-z0-9_-][A-Za-z0-9._-]{0,99}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="avatar-sprite",
        description="Compose deterministic tinted avatar sprites from a sprite sheet.",
    )
    parser.add_argument("sheet", help="Path to the horizontal sprite sheet image.")
    parser.add_argument(
        "--seed",
        dest="seeds",
        action="append",
        required=True,
        help="Seed to compose; repeat for several sprites.",
    )
    parser.add_argument(
        "--int-seeds",
        action="store_true",
        help="Interpret seeds as integers instead of strings.",
    )
    parser.add_argument("--out", default=".", help="Output directory for PNG files.")
    parser.add_argument(
        "--frame-size",
        type=int,
        default=None,
        help=f"Frame edge in pixels (default: ${ENV_FRAME_SIZE} or {DEFAULT_FRAME_SIZE}).",
    )
    parser.add_argument(
        "--likelihood",
        type=int,
        default=None,
        help=(
            "Percent chance a seed is tinted "
            f"(default: ${ENV_TINT_LIKELIHOOD} or {DEFAULT_TINT_LIKELIHOOD})."
        ),
    )
    parser.add_argument(
        "--color",
        choices=sorted(COLOR_SELECTOR_REGISTRY),
        default="hue",
        help="Tint color selector.",
    )
    parser.add_argument(
        "--scale", type=int, default=1, help="Nearest-neighbour upscale factor."
    )
    parser.add_argument("--log-level", default=os.getenv("LOG_LEVEL", "WARNING"))
    return parser


def make_config(
    args: argparse.Namespace, environ: Optional[Mapping[str, str]] = None
) -> SheetConfig:
    env = dict(os.environ if environ is None else environ)
    # Flags win; their env keys are never parsed
    if args.frame_size is not None:
        env[ENV_FRAME_SIZE] = str(args.frame_size)
    if args.likelihood is not None:
        env[ENV_TINT_LIKELIHOOD] = str(args.likelihood)
    return SheetConfig.from_env(args.sheet, env)


def seed_filename(seed: Seed) -> str:
    """PNG file name for ``seed`` that cannot leave the output directory.

    Plain seeds keep their own name; anything else (path separators, leading
    dots, spaces, non-ASCII) is replaced by a digest of the seed.
    """
    name = str(seed)
    if SAFE_NAME.fullmatch(name):
        return f"{name}.png"
    return f"seed-{hashlib.sha256(name.encode('utf-8')).hexdigest()[:16]}.png"


def parse_seeds(raw: Sequence[str], as_int: bool) -> List[Seed]:
    if not as_int:
        return list(raw)
    try:
        return [int(seed) for seed in raw]
    except ValueError as e:
        raise SystemExit(f"avatar-sprite: --int-seeds given a non-integer seed: {e}")


async def write_sprites(
    composer: SpriteComposer, seeds: Sequence[Seed], out_dir: str, scale: int
) -> List[str]:
    await composer.load()
    os.makedirs(out_dir, exist_ok=True)
    paths: List[str] = []
    for seed in seeds:
        sprite = await composer.compose(seed)
        path = os.path.join(out_dir, seed_filename(seed))
        upscale(sprite, scale).save(path)
        logger.info("Wrote %s", path)
        paths.append(path)
    return paths


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper())

    try:
        config = make_config(args)
    except ValueError as e:
        print(f"avatar-sprite: {e}", file=sys.stderr)
        return 2

    composer = SpriteComposer(config, color_selector=COLOR_SELECTOR_REGISTRY[args.color])
    seeds = parse_seeds(args.seeds, args.int_seeds)
    try:
        paths = asyncio.run(write_sprites(composer, seeds, args.out, args.scale))
    except (SpriteError, OSError, ValueError) as e:
        print(f"avatar-sprite: {e}", file=sys.stderr)
        return 1

    for path in paths:
        print(path)
    return 0
