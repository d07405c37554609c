"""Common type aliases and enumerations.

Enumerations are ``StrEnum`` so they serialize to the same lowercase strings
used in configuration documents (``"center"``, ``"below"``, ``"png"`` ...).
"""

from enum import StrEnum
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from PIL import Image

Category = str
"""Stable key identifying a logical part (``"head"``, ``"body"`` ...)."""

ImageLoader = Callable[[str], "Image.Image"]


class AnchorX(StrEnum):
    """Horizontal canvas anchor used when no explicit or relative x is known."""

    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class AnchorY(StrEnum):
    """Vertical canvas anchor used when no explicit or relative y is known."""

    TOP = "top"
    CENTER = "center"
    BOTTOM = "bottom"


class AutoPositionMode(StrEnum):
    """Placement of a part relative to the part it depends on."""

    ABOVE = "above"
    BELOW = "below"
    LEFT = "left"
    RIGHT = "right"
    CENTER = "center"


class AvatarMode(StrEnum):
    FULL = "full"
    TORSO = "torso"


class Preset(StrEnum):
    """Preset styles bundling feature flags and enabled categories."""

    PROFILE_EDITOR = "profile-editor"
    CHARACTER_MAKER = "character-maker"
    RPG_AVATAR = "rpg-avatar"
    CUSTOM = "custom"


class ExportFormat(StrEnum):
    PNG = "png"
    JPEG = "jpeg"
    WEBP = "webp"


class UploadMethod(StrEnum):
    POST = "POST"
    PUT = "PUT"
