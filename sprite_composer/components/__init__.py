"""sprite_composer.components
=================================

Aggregate import surface for the value objects the engine works on.

Every component is a frozen ``@dataclass``; collections inside them are tuples
or ``pyrsistent`` maps so a configuration can be shared freely between render
calls without defensive copies::

    from sprite_composer.components import Part, SpriteSheet, AutoPosition

Behavior lives in :mod:`sprite_composer.systems` and
:mod:`sprite_composer.renderer`.
"""

from .config import AvatarConfig, ExportConfig, FeatureFlags, UploadConfig
from .part import AutoPosition, Part, PartPosition
from .selection import (
    NO_SELECTION,
    IndexedSelection,
    NoSelection,
    Selection,
    SelectionValue,
    SingleSelection,
    parse_selection,
    parse_selection_value,
)
from .sheet import Sprite, SpriteSheet, SpriteTrim

__all__ = [
    # Config
    "AvatarConfig",
    "ExportConfig",
    "FeatureFlags",
    "UploadConfig",
    # Parts
    "AutoPosition",
    "Part",
    "PartPosition",
    # Selection
    "NO_SELECTION",
    "IndexedSelection",
    "NoSelection",
    "Selection",
    "SelectionValue",
    "SingleSelection",
    "parse_selection",
    "parse_selection_value",
    # Sheets
    "Sprite",
    "SpriteSheet",
    "SpriteTrim",
]
