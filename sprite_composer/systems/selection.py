"""Active sprite selection.

Maps each enabled part plus its selection value to the sprite (and sheet) that
will be drawn this frame. Anything that cannot be resolved (no value, an
invalid shape, a missing sheet, an out-of-range index) is treated the same
way as "no selection": the part is left out of the result. Nothing here
raises except slicing a malformed sheet descriptor.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from pyrsistent import pmap
from pyrsistent.typing import PMap

from sprite_composer.components import (
    IndexedSelection,
    Part,
    SingleSelection,
    Sprite,
    SpriteSheet,
    parse_selection_value,
)
from sprite_composer.systems.slicing import slice_sheet
from sprite_composer.types import Category


@dataclass(frozen=True)
class ActiveSprite:
    """The sprite a part draws this frame and the sheet it comes from."""

    sheet: SpriteSheet
    sprite: Sprite


def active_sprite(part: Part, value: Any) -> Optional[ActiveSprite]:
    """Resolve one part's selection value.

    Args:
        part (Part): Part configuration.
        value (Any): A ``SelectionValue`` or its raw JSON-like form.

    Returns:
        Optional[ActiveSprite]: ``None`` when the part contributes nothing.
    """
    if not part.enabled:
        return None

    selected = parse_selection_value(value)
    if isinstance(selected, IndexedSelection):
        sheet_index, sprite_index = selected.sheet_index, selected.sprite_index
    elif isinstance(selected, SingleSelection):
        sheet_index, sprite_index = 0, selected.index
    else:
        return None

    if sheet_index >= len(part.sheets):
        return None
    sheet = part.sheets[sheet_index]
    sprites = slice_sheet(sheet)
    if sprite_index >= len(sprites):
        return None
    return ActiveSprite(sheet=sheet, sprite=sprites[sprite_index])


def unique_parts(parts: Iterable[Part]) -> Tuple[Part, ...]:
    """Parts in declaration order with repeated categories dropped.

    The first declared part of a category is the only one selected, positioned
    and drawn.
    """
    seen: Dict[Category, Part] = {}
    for part in parts:
        seen.setdefault(part.category, part)
    return tuple(seen.values())


def select_sprites(
    parts: Iterable[Part], selection: Mapping[Category, Any]
) -> PMap[Category, ActiveSprite]:
    """Resolve the active sprite of every part that has one this frame."""
    active: Dict[Category, ActiveSprite] = {}
    for part in unique_parts(parts):
        chosen = active_sprite(part, selection.get(part.category))
        if chosen is not None:
            active[part.category] = chosen
    return pmap(active)


def sheet_urls(parts: Iterable[Part], active: Mapping[Category, ActiveSprite]) -> Tuple[str, ...]:
    """URLs backing ``active``, in part declaration order, duplicates removed."""
    urls: Dict[str, None] = {}
    for part in parts:
        chosen = active.get(part.category)
        if chosen is not None:
            urls.setdefault(chosen.sheet.url)
    return tuple(urls)


def required_sheet_urls(
    parts: Iterable[Part], selection: Mapping[Category, Any]
) -> Tuple[str, ...]:
    """URLs that must be loaded before the frame can be drawn.

    Only sheets backing a currently enabled, currently selected part are
    required. Order follows part declaration order with duplicates removed.
    """
    parts = unique_parts(parts)
    return sheet_urls(parts, select_sprites(parts, selection))
