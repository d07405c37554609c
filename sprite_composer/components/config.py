"""Top-level configuration components.

``AvatarConfig`` is the fully populated, immutable form of a configuration
document. Building one from a document (see :mod:`sprite_composer.convert`)
is the single place where defaults are merged; the core never checks for
missing optional fields.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

from pyrsistent import pmap
from pyrsistent.typing import PMap

from sprite_composer.components.part import Part
from sprite_composer.types import AvatarMode, Category, ExportFormat, Preset, UploadMethod

DEFAULT_EXPORT_QUALITY = 0.92
DEFAULT_UPLOAD_FIELD = "avatar"


@dataclass(frozen=True)
class ExportConfig:
    """Options passed through to the export collaborator.

    Attributes:
        format: Output encoding.
        quality: Lossy quality in ``[0, 1]`` (JPEG / WebP only).
        background_color: Fill colour (any Pillow colour string); ``None``
            keeps transparency where the format allows it.
        scale: Integer nearest-neighbour upscale applied on export.
    """

    format: ExportFormat = ExportFormat.PNG
    quality: float = DEFAULT_EXPORT_QUALITY
    background_color: Optional[str] = None
    scale: int = 1


@dataclass(frozen=True)
class UploadConfig:
    """Options passed through to the upload collaborator."""

    endpoint: str
    method: UploadMethod = UploadMethod.POST
    headers: PMap[str, str] = field(default_factory=pmap)
    field_name: str = DEFAULT_UPLOAD_FIELD
    additional_data: PMap[str, str] = field(default_factory=pmap)


@dataclass(frozen=True)
class FeatureFlags:
    """Host feature switches.

    Only ``auto_positioning`` affects rendering: when off, auto-position specs
    are ignored and every part is placed by its explicit / anchor rules.
    """

    allow_toggle: bool = True
    multiple_sheets: bool = True
    show_labels: bool = True
    allow_config_export: bool = True
    auto_positioning: bool = True


@dataclass(frozen=True)
class AvatarConfig:
    """Complete compositor configuration.

    Attributes:
        width: Target surface width in final (scaled) pixels.
        height: Target surface height in final (scaled) pixels.
        parts: Parts in declaration order.
        pixel_scale: Uniform nearest-neighbour draw scale.
        mode: Rendering mode carried for hosts.
        preset: Preset the flags / enabled parts were derived from.
        features: Feature flags.
        export: Export collaborator options; ``background_color`` also fills
            the target before drawing.
        upload: Upload collaborator options, if any.
    """

    width: int
    height: int
    parts: Tuple[Part, ...] = ()
    pixel_scale: float = 1
    mode: AvatarMode = AvatarMode.FULL
    preset: Optional[Preset] = None
    features: FeatureFlags = field(default_factory=FeatureFlags)
    export: ExportConfig = field(default_factory=ExportConfig)
    upload: Optional[UploadConfig] = None

    @property
    def canvas_size(self) -> Tuple[float, float]:
        """Canvas size in unscaled units, the space positions are resolved in."""
        return (self.width / self.pixel_scale, self.height / self.pixel_scale)

    def part(self, category: Category) -> Optional[Part]:
        for part in self.parts:
            if part.category == category:
                return part
        return None
