"""Sprite sheet components.

A ``SpriteSheet`` describes a regular grid of equally sized cells inside one
backing image. Slicing it (see :mod:`sprite_composer.systems.slicing`) yields
``Sprite`` records: the source rectangle of each cell plus, when the sheet
declares a ``SpriteTrim``, the content box that excludes transparent padding.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class SpriteTrim:
    """Transparent padding inside every cell of a sheet, in pixels.

    Attributes:
        top: Padding above the visible content.
        bottom: Padding below the visible content.
        left: Padding left of the visible content.
        right: Padding right of the visible content.
    """

    top: int = 0
    bottom: int = 0
    left: int = 0
    right: int = 0


@dataclass(frozen=True)
class SpriteSheet:
    """Grid descriptor for a single sprite sheet image.

    ``spacing_x`` / ``spacing_y`` are the gap *between* neighbouring cells, not
    padding around the sheet: the first cell always starts at ``(0, 0)``.

    Attributes:
        url: Source reference of the backing image (path, ``data:`` or HTTP URL).
        sprite_width: Width of every cell.
        sprite_height: Height of every cell.
        columns: Number of cells per row.
        rows: Number of rows.
        spacing_x: Horizontal gap between cells.
        spacing_y: Vertical gap between cells.
        trim: Optional content padding shared by all cells.
    """

    url: str
    sprite_width: int
    sprite_height: int
    columns: int
    rows: int
    spacing_x: int = 0
    spacing_y: int = 0
    trim: Optional[SpriteTrim] = None

    @property
    def count(self) -> int:
        return self.columns * self.rows


@dataclass(frozen=True)
class Sprite:
    """One cell of a sliced sheet.

    Content fields are ``None`` when the sheet has no trim; use
    :attr:`content_box` to read the effective content box in either case.

    Attributes:
        index: Row-major index (``row * columns + col``).
        x: Left edge of the cell inside the sheet image.
        y: Top edge of the cell inside the sheet image.
        width: Cell width.
        height: Cell height.
        content_width: Visible content width.
        content_height: Visible content height.
        content_offset_x: Offset of the content box from the cell's left edge.
        content_offset_y: Offset of the content box from the cell's top edge.
    """

    index: int
    x: int
    y: int
    width: int
    height: int
    content_width: Optional[int] = None
    content_height: Optional[int] = None
    content_offset_x: Optional[int] = None
    content_offset_y: Optional[int] = None

    @property
    def content_box(self) -> Tuple[int, int, int, int]:
        """``(offset_x, offset_y, width, height)`` of the visible content."""
        return (
            self.content_offset_x if self.content_offset_x is not None else 0,
            self.content_offset_y if self.content_offset_y is not None else 0,
            self.content_width if self.content_width is not None else self.width,
            self.content_height if self.content_height is not None else self.height,
        )

    @property
    def source_box(self) -> Tuple[int, int, int, int]:
        """Pillow crop box ``(left, upper, right, lower)`` inside the sheet."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)
