import asyncio
from typing import List

import numpy as np
import pytest
from PIL import Image

from avatar_sprite.colors import (
    DEFAULT_PALETTE,
    FixedColorSelector,
    HueColorSelector,
    PaletteColorSelector,
)
from avatar_sprite.composer import SpriteComposer
from avatar_sprite.config import SheetConfig
from avatar_sprite.errors import LoadError, NotReadyError, TintComputationError
from avatar_sprite.loader import FrameSheetLoader
from avatar_sprite.rng import SpriteRandom
from avatar_sprite.types import RGB, Seed
from avatar_sprite.utils.image import blank_surface, frame_box, surfaces_equal, tint_array
from tests.test_utils import (
    CountingImageLoader,
    RecordingRngFactory,
    ScriptedRandom,
    make_sheet,
    run,
)

SEEDS: List[Seed] = [0, 1, 2, 3, 99, "alice", "bob", "carol", "user-1234"]


def make_composer(
    frame_count: int = 5,
    frame_size: int = 20,
    tint_likelihood: int = 100,
    **kwargs,
) -> SpriteComposer:
    sheet = make_sheet(frame_count, frame_size)
    config = SheetConfig("sheet", frame_size=frame_size, tint_likelihood=tint_likelihood)
    return SpriteComposer(config, image_loader=CountingImageLoader(sheet), **kwargs)


def expected_sprite(
    sheet: Image.Image, index: int, frame_size: int, color: RGB
) -> Image.Image:
    frame = np.array(sheet.crop(frame_box(index, frame_size)), dtype=np.uint8)
    return Image.fromarray(tint_array(frame, color))


def compose_loaded(composer: SpriteComposer, seed: Seed) -> Image.Image:
    async def scenario() -> Image.Image:
        await composer.load()
        return await composer.compose(seed)

    return run(scenario())


# --- Readiness ---


def test_compose_before_load_fails() -> None:
    composer = make_composer()
    with pytest.raises(NotReadyError):
        run(composer.compose("alice"))
    assert len(composer.cache) == 0


def test_compose_while_loading_fails() -> None:
    sheet = make_sheet()
    image_loader = CountingImageLoader(sheet)
    composer = SpriteComposer(SheetConfig("sheet"), image_loader=image_loader)

    async def scenario() -> Image.Image:
        image_loader.gate = asyncio.Event()
        loading = asyncio.ensure_future(composer.load())
        await asyncio.sleep(0)
        with pytest.raises(NotReadyError):
            await composer.compose("alice")
        image_loader.gate.set()
        await loading
        return await composer.compose("alice")

    assert run(scenario()).size == (20, 20)


def test_compose_after_failed_load_fails() -> None:
    composer = SpriteComposer(
        SheetConfig("sheet"), image_loader=CountingImageLoader(error=OSError("gone"))
    )

    async def scenario() -> None:
        with pytest.raises(LoadError):
            await composer.load()
        with pytest.raises(NotReadyError):
            await composer.compose("alice")

    run(scenario())
    assert len(composer.cache) == 0


# --- Composition ---


def test_example_scenario() -> None:
    """20px frames on a 100px sheet: 5 frames, always tinted, cached."""
    rngs = RecordingRngFactory()
    composer = make_composer(
        frame_count=5,
        frame_size=20,
        rng_factory=rngs,
        color_selector=FixedColorSelector((200, 10, 10)),
    )

    async def scenario() -> List[Image.Image]:
        await composer.load()
        return [await composer.compose("S"), await composer.compose("S")]

    first, second = run(scenario())
    assert composer.loader.frame_count == 5
    assert first.size == (20, 20) and first.mode == "RGBA"
    assert second is first

    assert len(rngs.created) == 1
    rng = rngs.created[0]
    assert rng.calls[0] == ("bool", 100, True)
    assert rng.calls[1][:3] == ("natural", 0, 4)
    assert len(rng.calls) == 2
    assert rng.floats == 2

    index = rng.calls[1][3]
    sheet = composer.loader.sheet
    assert sheet is not None
    assert surfaces_equal(first, expected_sprite(sheet.image, index, 20, (200, 10, 10)))


def test_frame_index_drawn_before_color() -> None:
    rngs = RecordingRngFactory()
    composer = make_composer(
        rng_factory=rngs, color_selector=PaletteColorSelector(DEFAULT_PALETTE)
    )
    compose_loaded(composer, "alice")
    calls = rngs.created[0].calls
    assert [call[:3] for call in calls] == [
        ("bool", 100, True),
        ("natural", 0, 4),
        ("natural", 0, len(DEFAULT_PALETTE) - 1),
    ]


@pytest.mark.parametrize("seed", SEEDS)
def test_output_matches_independent_replay(seed: Seed) -> None:
    selector = HueColorSelector()
    composer = make_composer(color_selector=selector)
    sprite = compose_loaded(composer, seed)

    rng = SpriteRandom(seed)
    assert rng.bool(likelihood=100)
    index = rng.natural(0, 4)
    color = run(selector.get_color(rng))
    sheet = composer.loader.sheet
    assert sheet is not None
    assert surfaces_equal(sprite, expected_sprite(sheet.image, index, 20, color))


@pytest.mark.parametrize("seed", SEEDS)
def test_deterministic_across_composers(seed: Seed) -> None:
    a = compose_loaded(make_composer(), seed)
    b = compose_loaded(make_composer(), seed)
    assert a is not b
    assert surfaces_equal(a, b)


def test_scripted_draws_pick_last_frame() -> None:
    composer = make_composer(
        rng_factory=lambda seed: ScriptedRandom(seed, [0.0, 0.99]),
        color_selector=FixedColorSelector((0, 128, 255)),
    )
    sprite = compose_loaded(composer, 1)
    sheet = composer.loader.sheet
    assert sheet is not None
    assert surfaces_equal(sprite, expected_sprite(sheet.image, 4, 20, (0, 128, 255)))
    assert not surfaces_equal(
        sprite, expected_sprite(sheet.image, 3, 20, (0, 128, 255))
    )


@pytest.mark.parametrize("seed", SEEDS)
def test_single_frame_sheet_always_uses_frame_zero(seed: Seed) -> None:
    rngs = RecordingRngFactory()
    composer = make_composer(frame_count=1, rng_factory=rngs)
    compose_loaded(composer, seed)
    assert rngs.created[0].calls[1] == ("natural", 0, 0, 0)


def test_frame_index_stays_in_bounds() -> None:
    rngs = RecordingRngFactory()
    composer = make_composer(frame_count=3, frame_size=10, rng_factory=rngs)

    async def scenario() -> None:
        await composer.load()
        for seed in range(100):
            await composer.compose(seed)

    run(scenario())
    indices = [rng.calls[1][3] for rng in rngs.created]
    assert len(indices) == 100
    assert set(indices) <= {0, 1, 2}


def test_alpha_preserved_and_transparent_pixels_untouched() -> None:
    composer = make_composer(color_selector=FixedColorSelector((255, 0, 0)))
    sprite = compose_loaded(composer, "alpha")
    arr = np.array(sprite)
    # make_sheet hides the top quarter rows of every frame
    assert np.all(arr[:5, :, 3] == 0)
    assert np.all(arr[5:, :, 3] == 255)
    sheet = composer.loader.sheet
    assert sheet is not None
    source = np.array(sheet.image)
    assert any(np.array_equal(arr[:5], source[:5, x : x + 20]) for x in range(0, 100, 20))


# --- Tint skip ---


@pytest.mark.parametrize("seed", SEEDS)
def test_zero_likelihood_yields_blank_surface(seed: Seed) -> None:
    rngs = RecordingRngFactory()
    composer = make_composer(tint_likelihood=0, rng_factory=rngs)
    sprite = compose_loaded(composer, seed)
    assert surfaces_equal(sprite, blank_surface(20))
    rng = rngs.created[0]
    assert rng.calls == [("bool", 0, False)]
    assert rng.floats == 1
    assert composer.cache[seed] is sprite


def test_skipped_seed_never_consults_color_selector() -> None:
    class ExplodingSelector:
        async def get_color(self, rng: SpriteRandom) -> RGB:
            raise AssertionError("color selector must not be called")

    composer = make_composer(tint_likelihood=0, color_selector=ExplodingSelector())
    assert surfaces_equal(compose_loaded(composer, "x"), blank_surface(20))


# --- Cache ---


def test_cache_is_per_seed_and_per_composer() -> None:
    rngs = RecordingRngFactory()
    composer = make_composer(rng_factory=rngs)
    other = make_composer()

    async def scenario() -> None:
        await composer.load()
        await other.load()
        for seed in (1, "1", 2, 1, "1"):
            await composer.compose(seed)
        await other.compose(1)

    run(scenario())
    assert set(composer.cache) == {1, "1", 2}
    assert len(rngs.created) == 3
    assert set(other.cache) == {1}
    assert other.cache[1] is not composer.cache[1]


def test_cache_view_is_read_only() -> None:
    composer = make_composer()
    compose_loaded(composer, "a")
    with pytest.raises(TypeError):
        composer.cache["b"] = blank_surface(20)  # type: ignore[index]


def test_same_seed_in_flight_keeps_first_result() -> None:
    class SlowSelector:
        async def get_color(self, rng: SpriteRandom) -> RGB:
            await asyncio.sleep(0)
            return (10, 20, 30)

    composer = make_composer(color_selector=SlowSelector())

    async def scenario() -> List[Image.Image]:
        await composer.load()
        return list(await asyncio.gather(composer.compose("x"), composer.compose("x")))

    a, b = run(scenario())
    assert a is b
    assert composer.cache["x"] is a


def test_tint_failure_is_raised_and_not_cached() -> None:
    composer = make_composer(
        color_selector=FixedColorSelector((float("nan"), 0, 0))  # type: ignore[arg-type]
    )
    with pytest.raises(TintComputationError):
        compose_loaded(composer, "bad")
    assert "bad" not in composer.cache


def test_compose_many() -> None:
    composer = make_composer()

    async def scenario():
        await composer.load()
        return await composer.compose_many(["a", "b", "a"])

    sprites = run(scenario())
    assert set(sprites) == {"a", "b"}
    assert sprites["a"] is composer.cache["a"]


def test_loader_must_match_config() -> None:
    loader = FrameSheetLoader(SheetConfig("one.png"))
    with pytest.raises(ValueError):
        SpriteComposer(SheetConfig("two.png"), loader=loader)
    composer = SpriteComposer(SheetConfig("one.png"), loader=loader)
    assert composer.loader is loader
