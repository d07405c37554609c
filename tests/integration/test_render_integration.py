import threading
from dataclasses import replace
from typing import List

import numpy as np
import pytest
from PIL import Image

from sprite_composer.assets import ImageCache
from sprite_composer.components import SpriteTrim
from sprite_composer.errors import LoadFailure
from sprite_composer.renderer import Compositor, draw_order, render
from sprite_composer.types import AutoPositionMode
from tests.test_utils import cell_color, images_for, make_config, make_part, make_sheet, make_sheet_image, pixel

TRANSPARENT = (0, 0, 0, 0)

HEAD = make_sheet("head.png", size=(8, 8), grid=(2, 2))
BODY = make_sheet("body.png", size=(8, 8), grid=(2, 2))


def test_draws_selected_sprite_at_resolved_position() -> None:
    config = make_config([make_part("head", [HEAD], x=4, y=2)])
    out = render(config, {"head": 1}, images_for(HEAD))
    assert out.size == (32, 32)
    assert pixel(out, 4, 2) == cell_color(1)
    assert pixel(out, 11, 9) == cell_color(1)
    assert pixel(out, 3, 2) == TRANSPARENT
    assert pixel(out, 12, 2) == TRANSPARENT


def test_z_index_orders_draws_ascending() -> None:
    parts = [
        make_part("top", [BODY], z_index=5, x=0, y=0),
        make_part("bottom", [HEAD], z_index=-1, x=0, y=0),
    ]
    out = render(make_config(parts), {"top": 0, "bottom": 0}, images_for(HEAD, BODY))
    assert pixel(out, 0, 0) == cell_color(0 + 7)  # BODY is the second sheet in images_for


def test_equal_z_index_keeps_declaration_order() -> None:
    parts = [
        make_part("first", [HEAD], x=0, y=0),
        make_part("second", [BODY], x=0, y=0),
    ]
    out = render(make_config(parts), {"first": 0, "second": 0}, images_for(HEAD, BODY))
    assert pixel(out, 0, 0) == cell_color(7)

    swapped = [parts[1], parts[0]]
    out = render(make_config(swapped), {"first": 0, "second": 0}, images_for(HEAD, BODY))
    assert pixel(out, 0, 0) == cell_color(0)


def test_draw_order_is_stable_sort_of_enabled_parts() -> None:
    parts = [
        make_part("a", z_index=1),
        make_part("b", z_index=0),
        make_part("c", z_index=1),
        replace(make_part("d", z_index=0), enabled=False),
        make_part("e", z_index=0),
    ]
    assert [p.category for p in draw_order(tuple(parts))] == ["b", "e", "a", "c"]


def test_auto_positioned_body_sits_under_trimmed_head() -> None:
    head_sheet = make_sheet("h.png", size=(95, 95), grid=(1, 1), trim=SpriteTrim(bottom=35))
    body_sheet = make_sheet("b.png", size=(95, 95), grid=(1, 1))
    parts = [
        make_part("body", [body_sheet], relative_to="head", mode=AutoPositionMode.BELOW),
        make_part("head", [head_sheet], y=40),
    ]
    config = make_config(parts, width=200, height=200)
    out = render(config, {"head": 0, "body": 0}, images_for(head_sheet, body_sheet))
    cx = 100
    assert pixel(out, cx, 39) == TRANSPARENT
    assert pixel(out, cx, 40) == cell_color(0)
    assert pixel(out, cx, 99) == cell_color(0)
    assert pixel(out, cx, 100) == cell_color(7)
    assert pixel(out, cx, 194) == cell_color(7)
    assert pixel(out, cx, 195) == TRANSPARENT


def test_unselected_optional_part_needs_no_image() -> None:
    parts = [make_part("head", [HEAD], x=0, y=0), replace(make_part("body", [BODY]), optional=True)]
    out = render(make_config(parts), {"head": 0, "body": None}, images_for(HEAD))
    assert pixel(out, 0, 0) == cell_color(0)


def test_out_of_range_selection_is_skipped_silently() -> None:
    parts = [make_part("head", [HEAD], x=0, y=0)]
    out = render(make_config(parts), {"head": 99}, {})
    assert np.array(out)[..., 3].max() == 0


def test_missing_image_aborts_before_touching_target() -> None:
    parts = [make_part("head", [HEAD]), make_part("body", [BODY])]
    target = Image.new("RGBA", (32, 32), (255, 0, 0, 255))
    with pytest.raises(LoadFailure) as excinfo:
        render(make_config(parts), {"head": 0, "body": 0}, images_for(HEAD), target)
    assert excinfo.value.url == "body.png"
    assert pixel(target, 5, 5) == (255, 0, 0, 255)


def test_target_is_cleared_and_mutated_in_place() -> None:
    target = Image.new("RGBA", (32, 32), (255, 0, 0, 255))
    config = make_config([make_part("head", [HEAD], x=0, y=0)])
    out = render(config, {"head": 0}, images_for(HEAD), target)
    assert out is target
    assert pixel(target, 0, 0) == cell_color(0)
    assert pixel(target, 20, 20) == TRANSPARENT


def test_background_color_fills_before_drawing() -> None:
    config = make_config([make_part("head", [HEAD], x=0, y=0)], background_color="#0000ff")
    out = render(config, {"head": 0}, images_for(HEAD))
    assert pixel(out, 0, 0) == cell_color(0)
    assert pixel(out, 31, 31) == (0, 0, 255, 255)


def test_sprites_are_clipped_at_canvas_edges() -> None:
    parts = [make_part("head", [HEAD], x=-4, y=-4), make_part("body", [BODY], x=28, y=28)]
    out = render(make_config(parts), {"head": 3, "body": 0}, images_for(HEAD, BODY))
    assert pixel(out, 0, 0) == cell_color(3)
    assert pixel(out, 3, 3) == cell_color(3)
    assert pixel(out, 4, 4) == TRANSPARENT
    assert pixel(out, 31, 31) == cell_color(7)


@pytest.mark.parametrize("scale", [2, 3])
def test_pixel_scale_equals_nearest_neighbour_upscale(scale: int) -> None:
    head_sheet = make_sheet("h.png", size=(9, 7), grid=(2, 1), trim=SpriteTrim(top=1, bottom=2, left=3))
    body_sheet = make_sheet("b.png", size=(5, 6), grid=(1, 1))
    parts = [
        make_part("head", [head_sheet], anchor_y="center"),
        make_part("body", [body_sheet], relative_to="head", mode=AutoPositionMode.RIGHT, gap=1),
    ]
    images = images_for(head_sheet, body_sheet)
    selection = {"head": 1, "body": 0}

    base = np.array(render(make_config(parts, width=25, height=21), selection, images))
    scaled = np.array(
        render(make_config(parts, width=25 * scale, height=21 * scale, pixel_scale=scale), selection, images)
    )
    expected = base.repeat(scale, axis=0).repeat(scale, axis=1)
    assert scaled.shape == expected.shape
    assert np.array_equal(scaled, expected)


def test_disabled_auto_positioning_feature_uses_anchors() -> None:
    parts = [
        make_part("head", [HEAD], x=0, y=10),
        make_part("body", [BODY], relative_to="head", anchor_x="left"),
    ]
    config = make_config(parts, auto_positioning=False)
    out = render(config, {"head": 0, "body": 0}, images_for(HEAD, BODY))
    assert pixel(out, 0, 0) == cell_color(7)
    assert pixel(out, 0, 10) == cell_color(0)


def test_cycle_still_renders_every_part() -> None:
    parts = [
        make_part("a", [HEAD], relative_to="b"),
        make_part("b", [BODY], relative_to="a"),
    ]
    out = render(make_config(parts), {"a": 0, "b": 0}, images_for(HEAD, BODY))
    colors = {tuple(c) for c in np.array(out).reshape(-1, 4).tolist()}
    assert cell_color(0) in colors
    assert cell_color(7) in colors


# --- Image cache ---


def counting_loader(sheets: dict, calls: List[str]):
    lock = threading.Lock()

    def load(url: str) -> Image.Image:
        with lock:
            calls.append(url)
        return sheets[url]

    return load


def test_cache_loads_each_url_once_across_renders() -> None:
    calls: List[str] = []
    parts = [make_part("head", [HEAD], x=0, y=0), make_part("hat", [HEAD], x=8, y=0)]
    with ImageCache(loader=counting_loader(images_for(HEAD), calls)) as cache:
        first = render(make_config(parts), {"head": 0, "hat": 1}, cache)
        second = render(make_config(parts), {"head": 2, "hat": 3}, cache)
        assert calls == ["head.png"]
        assert pixel(first, 8, 0) == cell_color(1)
        assert pixel(second, 8, 0) == cell_color(3)


def test_cache_failure_aborts_frame() -> None:
    def loader(url: str) -> Image.Image:
        raise FileNotFoundError(url)

    with ImageCache(loader=loader) as cache:
        with pytest.raises(LoadFailure):
            render(make_config([make_part("head", [HEAD])]), {"head": 0}, cache)
        assert "head.png" not in cache


def test_compositor_binds_config_and_cache() -> None:
    calls: List[str] = []
    config = make_config([make_part("head", [HEAD], x=0, y=0), make_part("body", [BODY])])
    compositor = Compositor(config, ImageCache(loader=counting_loader(images_for(HEAD, BODY), calls)))
    try:
        compositor.preload({"head": 0})
        assert calls == ["head.png"]
        out = compositor.render({"head": 0, "body": None})
        assert pixel(out, 0, 0) == cell_color(0)
        assert calls == ["head.png"]
    finally:
        compositor.close()


def test_images_can_be_seeded_into_cache() -> None:
    cache = ImageCache(loader=lambda url: pytest.fail(f"unexpected load of {url}"))
    try:
        cache.put(HEAD.url, make_sheet_image(HEAD).convert("RGB"))
        out = render(make_config([make_part("head", [HEAD], x=0, y=0)]), {"head": 0}, cache)
        assert pixel(out, 0, 0) == cell_color(0)
    finally:
        cache.close()


def test_duplicate_category_draws_first_declared_part_once() -> None:
    parts = [
        make_part("head", [HEAD], x=0, y=0),
        make_part("head", [BODY], x=16, y=16, z_index=3),
    ]
    out = render(make_config(parts), {"head": 1}, images_for(HEAD))
    assert pixel(out, 0, 0) == cell_color(1)
    assert pixel(out, 16, 16) == TRANSPARENT
    assert np.array(out)[..., 3].astype(bool).sum() == 64
