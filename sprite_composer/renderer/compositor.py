"""Deterministic compositing of the selected parts.

A render pass:

1. Keeps the first declared part of each category and resolves the active
   sprite of every enabled one from the selection.
2. Makes sure every sheet backing those sprites is loaded; any failure aborts
   the frame before the target is touched.
3. Orders the parts by ``z_index`` (stable, so ties keep declaration order).
4. Resolves positions in unscaled canvas units (target size / pixel scale).
5. Clears the target, fills the background colour if one is configured, and
   draws each sprite at its native size onto an unscaled layer that is
   nearest-neighbour upscaled by the pixel scale and composited onto the
   target.

Nothing is retained between passes except the caller's :class:`ImageCache`.
"""

import logging
import math
from typing import Any, List, Mapping, Optional, Tuple, Union

from PIL import Image

from sprite_composer.assets import ImageCache
from sprite_composer.components import AvatarConfig, Part, Sprite
from sprite_composer.errors import LoadFailure
from sprite_composer.systems.positioning import PositionMap, resolve_positions
from sprite_composer.systems.selection import required_sheet_urls, select_sprites, sheet_urls, unique_parts
from sprite_composer.types import Category

log = logging.getLogger(__name__)

ImageSource = Union[ImageCache, Mapping[str, Image.Image]]

TRANSPARENT = (0, 0, 0, 0)


def draw_order(parts: Tuple[Part, ...]) -> List[Part]:
    """Enabled parts sorted ascending by ``z_index``; ties keep declaration order."""
    return sorted((part for part in parts if part.enabled), key=lambda part: part.z_index)


def _to_pixel(value: float) -> int:
    # Nearest-neighbour sampling of a fractional offset snaps half-pixels down.
    return math.ceil(value - 0.5)


def _acquire(images: ImageSource, urls: Tuple[str, ...]) -> Mapping[str, Image.Image]:
    if isinstance(images, ImageCache):
        return images.ensure(urls)
    missing = [url for url in urls if url not in images]
    if missing:
        raise LoadFailure(missing[0], "image not loaded")
    return {url: images[url] for url in urls}


def draw_sprite(layer: Image.Image, sheet_image: Image.Image, sprite: Sprite, x: float, y: float) -> None:
    """Composite one sprite cell onto ``layer`` with its top-left at ``(x, y)``.

    Parts of the cell that fall outside the layer are clipped.
    """
    left, top = _to_pixel(x), _to_pixel(y)
    src_left, src_top, src_right, src_bottom = sprite.source_box
    if left < 0:
        src_left -= left
        left = 0
    if top < 0:
        src_top -= top
        top = 0
    src_right = min(src_right, src_left + max(layer.width - left, 0))
    src_bottom = min(src_bottom, src_top + max(layer.height - top, 0))
    if src_right <= src_left or src_bottom <= src_top:
        return
    cell = sheet_image.crop((src_left, src_top, src_right, src_bottom))
    layer.alpha_composite(cell, (left, top))


def _clear(target: Image.Image, background_color: Optional[str]) -> None:
    target.paste(TRANSPARENT, (0, 0) + target.size)
    if background_color is not None:
        target.paste(Image.new("RGBA", target.size, background_color), (0, 0))


def render(
    config: AvatarConfig,
    selection: Mapping[Category, Any],
    images: ImageSource,
    target: Optional[Image.Image] = None,
) -> Image.Image:
    """Render one frame onto ``target``.

    Args:
        config (AvatarConfig): Fully populated configuration.
        selection (Mapping[Category, Any]): Selection value per category, as
            ``SelectionValue`` variants or their raw JSON-like form.
        images (ImageSource): An :class:`ImageCache` (missing sheets are loaded
            in parallel) or a plain ``url -> image`` mapping.
        target (Optional[Image.Image]): RGBA surface to draw on; mutated in
            place. A new ``config.width x config.height`` surface is created
            when omitted.

    Returns:
        Image.Image: The target surface.

    Raises:
        LoadFailure: If a sheet required by the frame cannot be acquired. The
            target is left untouched.
        InvalidDescriptor: If a selected part's sheet descriptor is malformed.
    """
    parts = unique_parts(config.parts)
    ordered = draw_order(parts)
    active = select_sprites(ordered, selection)

    sheets = _acquire(images, sheet_urls(parts, active))

    if target is None:
        target = Image.new("RGBA", (config.width, config.height), TRANSPARENT)

    scale = config.pixel_scale
    canvas_width, canvas_height = target.width / scale, target.height / scale
    positions: PositionMap = resolve_positions(
        [part for part in ordered if part.category in active],
        {category: chosen.sprite for category, chosen in active.items()},
        canvas_width,
        canvas_height,
        use_auto_position=config.features.auto_positioning,
    )

    _clear(target, config.export.background_color)

    layer = Image.new("RGBA", (math.ceil(canvas_width), math.ceil(canvas_height)), TRANSPARENT)
    drawn = 0
    for part in ordered:
        chosen = active.get(part.category)
        position = positions.get(part.category)
        if chosen is None or position is None:
            continue
        draw_sprite(layer, sheets[chosen.sheet.url], chosen.sprite, position.x, position.y)
        drawn += 1

    if scale != 1:
        layer = layer.resize(
            (round(layer.width * scale), round(layer.height * scale)),
            Image.Resampling.NEAREST,
        )
    target.alpha_composite(layer.crop((0, 0) + target.size))

    log.debug("Rendered %d/%d parts at pixel scale %s", drawn, len(parts), scale)
    return target


class Compositor:
    """Bound renderer for one configuration and its image cache.

    Attributes:
        config: Configuration rendered on every call.
        cache: Image cache owned by the embedding component.
    """

    config: AvatarConfig
    cache: ImageCache

    def __init__(self, config: AvatarConfig, cache: Optional[ImageCache] = None):
        self.config = config
        self.cache = cache if cache is not None else ImageCache()

    def preload(self, selection: Mapping[Category, Any]) -> None:
        """Load the sheets a selection needs without drawing."""
        self.cache.ensure(required_sheet_urls(self.config.parts, selection))

    def render(self, selection: Mapping[Category, Any], target: Optional[Image.Image] = None) -> Image.Image:
        return render(self.config, selection, self.cache, target)

    def close(self) -> None:
        self.cache.close()
