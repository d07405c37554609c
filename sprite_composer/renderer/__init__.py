"""Rendering subpackage.

Turns a configuration plus a selection into a raster:

* :mod:`sprite_composer.renderer.compositor`: deterministic z-ordered
  compositing with a uniform nearest-neighbour pixel scale.
* :mod:`sprite_composer.renderer.export`: scaling and encoding of the
  finished raster (PNG / JPEG / WebP bytes or ``data:`` URLs).

Both are Pillow based and keep no state between calls.
"""

from .compositor import Compositor, draw_order, draw_sprite, render
from .export import export_bytes, export_data_url, scale_image

__all__ = [
    "Compositor",
    "draw_order",
    "draw_sprite",
    "render",
    "export_bytes",
    "export_data_url",
    "scale_image",
]
