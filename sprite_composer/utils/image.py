"""Pixel-level helpers for sprite sheets.

``measure_trim`` derives a :class:`SpriteTrim` from a sheet's alpha channel so
authors do not have to measure transparent padding by hand. The trim is shared
by every cell of a sheet, so it is the tightest box containing the visible
pixels of *all* cells.
"""

from typing import Optional, Tuple

import numpy as np
import numpy.typing as npt
from PIL import Image

from sprite_composer.components import SpriteSheet, SpriteTrim
from sprite_composer.systems.slicing import slice_sheet

UInt8Array = npt.NDArray[np.uint8]
BoolArray = npt.NDArray[np.bool_]

# (left, top, right, bottom), right/bottom exclusive
Bounds = Tuple[int, int, int, int]


def alpha_mask(image: Image.Image, threshold: int = 0) -> BoolArray:
    """Boolean mask of pixels whose alpha exceeds ``threshold``."""
    if image.mode != "RGBA":
        image = image.convert("RGBA")
    arr: UInt8Array = np.array(image, dtype=np.uint8)
    return arr[..., 3] > threshold


def content_bounds(image: Image.Image, threshold: int = 0) -> Optional[Bounds]:
    """Bounding box of the visible pixels, or ``None`` for a blank image."""
    mask = alpha_mask(image, threshold)
    rows = np.flatnonzero(mask.any(axis=1))
    cols = np.flatnonzero(mask.any(axis=0))
    if rows.size == 0 or cols.size == 0:
        return None
    return int(cols[0]), int(rows[0]), int(cols[-1]) + 1, int(rows[-1]) + 1


def measure_trim(sheet_image: Image.Image, sheet: SpriteSheet, threshold: int = 0) -> SpriteTrim:
    """Measure the padding shared by every cell of ``sheet``.

    Args:
        sheet_image (Image.Image): The loaded sheet.
        sheet (SpriteSheet): Its grid descriptor (any existing trim is ignored).
        threshold (int): Alpha values at or below this count as transparent.

    Returns:
        SpriteTrim: Zero trim when every cell is blank.
    """
    union: Optional[Bounds] = None
    for sprite in slice_sheet(sheet):
        bounds = content_bounds(sheet_image.crop(sprite.source_box), threshold)
        if bounds is None:
            continue
        if union is None:
            union = bounds
        else:
            union = (
                min(union[0], bounds[0]),
                min(union[1], bounds[1]),
                max(union[2], bounds[2]),
                max(union[3], bounds[3]),
            )
    if union is None:
        return SpriteTrim()
    left, top, right, bottom = union
    return SpriteTrim(
        top=top,
        bottom=sheet.sprite_height - bottom,
        left=left,
        right=sheet.sprite_width - right,
    )
