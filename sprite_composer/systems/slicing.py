"""Sprite sheet slicing.

Turns a :class:`SpriteSheet` grid descriptor into the ordered tuple of
:class:`Sprite` rectangles it describes. Cells are numbered row-major, so the
sprite at ``index`` sits in column ``index % columns`` and row
``index // columns``. Spacing is the gap between cells, added after every
cell except conceptually the last one in a row/column.
"""

from functools import lru_cache
from typing import Tuple

from sprite_composer.components import Sprite, SpriteSheet
from sprite_composer.errors import InvalidDescriptor


def _validate(sheet: SpriteSheet) -> None:
    if sheet.columns <= 0 or sheet.rows <= 0:
        raise InvalidDescriptor(
            f"Sprite sheet {sheet.url!r} needs columns and rows >= 1, "
            f"got {sheet.columns}x{sheet.rows}"
        )
    if sheet.sprite_width <= 0 or sheet.sprite_height <= 0:
        raise InvalidDescriptor(
            f"Sprite sheet {sheet.url!r} has non-positive sprite size "
            f"{sheet.sprite_width}x{sheet.sprite_height}"
        )
    if sheet.spacing_x < 0 or sheet.spacing_y < 0:
        raise InvalidDescriptor(
            f"Sprite sheet {sheet.url!r} has negative spacing "
            f"({sheet.spacing_x}, {sheet.spacing_y})"
        )


def sprite_at(sheet: SpriteSheet, index: int) -> Sprite:
    """Compute a single sprite without slicing the whole sheet.

    Args:
        sheet (SpriteSheet): Grid descriptor.
        index (int): Row-major cell index.

    Returns:
        Sprite: The cell rectangle and its content box.

    Raises:
        InvalidDescriptor: If the descriptor is malformed.
        IndexError: If ``index`` is outside ``[0, columns * rows)``.
    """
    _validate(sheet)
    if not 0 <= index < sheet.count:
        raise IndexError(f"Sprite index {index} out of range for {sheet.count} cells")

    row, col = divmod(index, sheet.columns)
    x = col * (sheet.sprite_width + sheet.spacing_x)
    y = row * (sheet.sprite_height + sheet.spacing_y)

    trim = sheet.trim
    if trim is None:
        return Sprite(index=index, x=x, y=y, width=sheet.sprite_width, height=sheet.sprite_height)

    return Sprite(
        index=index,
        x=x,
        y=y,
        width=sheet.sprite_width,
        height=sheet.sprite_height,
        content_width=sheet.sprite_width - trim.left - trim.right,
        content_height=sheet.sprite_height - trim.top - trim.bottom,
        content_offset_x=trim.left,
        content_offset_y=trim.top,
    )


@lru_cache(maxsize=256)
def slice_sheet(sheet: SpriteSheet) -> Tuple[Sprite, ...]:
    """Slice a sheet into its sprites.

    The result depends only on the (immutable, hashable) descriptor, so it is
    memoized; a changed descriptor is a different key and is sliced afresh.

    Args:
        sheet (SpriteSheet): Grid descriptor.

    Returns:
        Tuple[Sprite, ...]: ``columns * rows`` sprites ordered by index.

    Raises:
        InvalidDescriptor: If ``columns`` or ``rows`` is not positive, the
            sprite size is not positive, or spacing is negative.
    """
    _validate(sheet)
    return tuple(sprite_at(sheet, index) for index in range(sheet.count))
