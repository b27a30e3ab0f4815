import asyncio
import os
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import streamlit as st
from PIL import Image

from avatar_sprite.colors import COLOR_SELECTOR_REGISTRY
from avatar_sprite.composer import SpriteComposer
from avatar_sprite.config import DEFAULT_FRAME_SIZE, DEFAULT_TINT_LIKELIHOOD, SheetConfig
from avatar_sprite.errors import SpriteError
from avatar_sprite.utils.image import upscale

st.set_page_config(layout="wide", page_title="Avatar Sprites")
st.markdown(
    """
    <style>
        header, footer, #MainMenu { visibility: hidden; }
        .stMainBlockContainer {
            padding-top: 0;
            padding-bottom: 0;
        }
    </style>
""",
    unsafe_allow_html=True,
)


@dataclass(frozen=True)
class PreviewConfig:
    sheet_path: str
    frame_size: int
    tint_likelihood: int
    color: str
    seeds: List[str]
    scale: int
    columns: int


def set_default_config() -> None:
    if "preview_config" not in st.session_state:
        st.session_state["preview_config"] = PreviewConfig(
            sheet_path=os.getenv("AVATAR_SPRITE_SHEET", "assets/sheet.png"),
            frame_size=DEFAULT_FRAME_SIZE,
            tint_likelihood=DEFAULT_TINT_LIKELIHOOD,
            color="hue",
            seeds=[f"user-{i}" for i in range(12)],
            scale=6,
            columns=6,
        )


def get_config_from_widgets() -> PreviewConfig:
    config: PreviewConfig = st.session_state["preview_config"]

    st.subheader("Sheet")
    sheet_path: str = st.text_input("Sheet path", config.sheet_path, key="sheet_path")
    frame_size: int = st.number_input(
        "Frame size (px)", min_value=1, value=config.frame_size, key="frame_size"
    )

    st.subheader("Tint")
    tint_likelihood: int = st.slider(
        "Tint likelihood (%)", 0, 100, config.tint_likelihood, key="tint_likelihood"
    )
    color_names = sorted(COLOR_SELECTOR_REGISTRY)
    color: str = st.selectbox(
        "Color selector",
        color_names,
        index=color_names.index(config.color),
        key="color",
    )

    st.subheader("Seeds & Layout")
    raw_seeds: str = st.text_area(
        "Seeds (one per line)", "\n".join(config.seeds), key="seeds"
    )
    scale: int = st.slider("Scale", 1, 16, config.scale, key="scale")
    columns: int = st.slider("Columns", 1, 12, config.columns, key="columns")

    return PreviewConfig(
        sheet_path=sheet_path,
        frame_size=int(frame_size),
        tint_likelihood=tint_likelihood,
        color=color,
        seeds=[line.strip() for line in raw_seeds.splitlines() if line.strip()],
        scale=scale,
        columns=columns,
    )


ComposerKey = Tuple[SheetConfig, str]


def get_composer(config: PreviewConfig) -> Tuple[ComposerKey, SpriteComposer]:
    """Reuse one composer per sheet config and color across reruns.

    Keeps the decoded sheet and the per-seed cache alive between widget edits.
    """
    sheet_config = SheetConfig(
        source=config.sheet_path,
        frame_size=config.frame_size,
        tint_likelihood=config.tint_likelihood,
    )
    key: ComposerKey = (sheet_config, config.color)
    composers: Dict[ComposerKey, SpriteComposer] = st.session_state.setdefault(
        "composers", {}
    )
    if key not in composers:
        composers[key] = SpriteComposer(
            sheet_config, color_selector=COLOR_SELECTOR_REGISTRY[config.color]
        )
    return key, composers[key]


async def compose_all(
    composer: SpriteComposer, seeds: List[str]
) -> List[Image.Image]:
    await composer.load()
    sprites = await composer.compose_many(seeds)
    return [sprites[seed] for seed in seeds]


def render_sprites(config: PreviewConfig) -> Optional[List[Image.Image]]:
    key, composer = get_composer(config)
    try:
        return asyncio.run(compose_all(composer, config.seeds))
    except SpriteError as e:
        # Failed loads are cached by the composer; forget it so a fixed sheet reloads
        st.session_state["composers"].pop(key, None)
        st.error(f"Could not compose sprites: {e}")
        return None


# --------- Main App ---------

set_default_config()

with st.sidebar:
    preview_config = get_config_from_widgets()
    st.session_state["preview_config"] = preview_config

sprites = render_sprites(preview_config)
if sprites is not None:
    cols = st.columns(preview_config.columns)
    for i, (seed, sprite) in enumerate(zip(preview_config.seeds, sprites)):
        with cols[i % preview_config.columns]:
            st.image(upscale(sprite, preview_config.scale), caption=seed)
