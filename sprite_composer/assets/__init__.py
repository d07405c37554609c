"""Image acquisition: the URL-keyed :class:`ImageCache` and :func:`load_image`."""

from .cache import ImageCache, load_image

__all__ = ["ImageCache", "load_image"]
