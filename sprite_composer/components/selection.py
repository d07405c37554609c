"""Per-category selection values.

Hosts describe what to draw with a mapping ``category -> value`` where the
value is one of three variants:

* :class:`NoSelection`: the category contributes nothing this frame.
* :class:`SingleSelection`: a sprite index into the part's first sheet.
* :class:`IndexedSelection`: an explicit ``(sheet_index, sprite_index)`` pair
  for multi-sheet parts.

``parse_selection_value`` maps JSON-shaped input onto the variants. Shapes it
does not recognise become ``NoSelection``, which is exactly how an explicit
``None`` behaves.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Union

from pyrsistent import pmap
from pyrsistent.typing import PMap

from sprite_composer.types import Category


@dataclass(frozen=True)
class NoSelection:
    pass


@dataclass(frozen=True)
class SingleSelection:
    index: int


@dataclass(frozen=True)
class IndexedSelection:
    sheet_index: int
    sprite_index: int


SelectionValue = Union[NoSelection, SingleSelection, IndexedSelection]
Selection = PMap[Category, SelectionValue]

NO_SELECTION = NoSelection()


def _is_index(value: Any) -> bool:
    # bool is an int subclass; True/False are not indices.
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def parse_selection_value(raw: Any) -> SelectionValue:
    """Convert a raw (JSON-like) selection value into its variant."""
    if isinstance(raw, (NoSelection, SingleSelection, IndexedSelection)):
        return raw
    if _is_index(raw):
        return SingleSelection(raw)
    if isinstance(raw, Mapping):
        sheet_index = raw.get("sheetIndex")
        sprite_index = raw.get("spriteIndex")
        if _is_index(sheet_index) and _is_index(sprite_index):
            return IndexedSelection(sheet_index, sprite_index)
    return NO_SELECTION


def parse_selection(raw: Mapping[Category, Any]) -> Selection:
    """Convert a whole ``category -> raw value`` mapping."""
    return pmap({category: parse_selection_value(value) for category, value in raw.items()})


def selection_value_to_raw(value: SelectionValue) -> Any:
    """Inverse of :func:`parse_selection_value` for serialization."""
    if isinstance(value, SingleSelection):
        return value.index
    if isinstance(value, IndexedSelection):
        return {"sheetIndex": value.sheet_index, "spriteIndex": value.sprite_index}
    return None
