"""Compose a raster image from independently authored sprite-sheet parts.

The three public operations are::

    from sprite_composer import slice_sheet, resolve_positions, render

* :func:`slice_sheet`: grid descriptor to sprite rectangles.
* :func:`resolve_positions`: dependency-aware layout of active sprites.
* :func:`render`: deterministic z-ordered composite onto a Pillow surface.

Configurations are built from JSON documents with
:func:`sprite_composer.convert.config_from_dict` /
:func:`sprite_composer.convert.config_from_json`.
"""

from sprite_composer.assets import ImageCache, load_image
from sprite_composer.convert import config_from_dict, config_from_json, config_to_dict, config_to_json
from sprite_composer.renderer import Compositor, export_bytes, export_data_url, render, scale_image
from sprite_composer.systems.positioning import Point, PositionMap, resolve_positions
from sprite_composer.systems.slicing import slice_sheet

__all__ = [
    "Compositor",
    "ImageCache",
    "Point",
    "PositionMap",
    "config_from_dict",
    "config_from_json",
    "config_to_dict",
    "config_to_json",
    "export_bytes",
    "export_data_url",
    "load_image",
    "render",
    "resolve_positions",
    "scale_image",
    "slice_sheet",
]
