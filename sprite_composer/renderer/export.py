"""Export collaborator: scaling and encoding of a finished raster.

Scaling is always nearest-neighbour pixel duplication so upscaled pixel art
keeps crisp edges; encoding maps :class:`ExportConfig` onto Pillow's writers.
"""

import base64
import io
import logging
from typing import Optional

from PIL import Image

from sprite_composer.components import ExportConfig
from sprite_composer.errors import ExportFailure
from sprite_composer.types import ExportFormat

log = logging.getLogger(__name__)

MIME_TYPES = {
    ExportFormat.PNG: "image/png",
    ExportFormat.JPEG: "image/jpeg",
    ExportFormat.WEBP: "image/webp",
}

_PIL_FORMATS = {
    ExportFormat.PNG: "PNG",
    ExportFormat.JPEG: "JPEG",
    ExportFormat.WEBP: "WEBP",
}

# JPEG has no alpha channel; transparent areas need a solid colour.
_JPEG_FALLBACK_BACKGROUND = "white"


def scale_image(image: Image.Image, scale: int) -> Image.Image:
    """Duplicate every pixel into a ``scale x scale`` block.

    Raises:
        ExportFailure: If ``scale`` is not an integer >= 1.
    """
    if isinstance(scale, bool) or not isinstance(scale, int) or scale < 1:
        raise ExportFailure(f"Export scale must be an integer >= 1, got {scale!r}")
    if scale == 1:
        return image.copy()
    width, height = image.size
    return image.resize((width * scale, height * scale), Image.Resampling.NEAREST)


def flatten(image: Image.Image, background_color: str) -> Image.Image:
    """Composite ``image`` over a solid background colour."""
    try:
        base = Image.new("RGBA", image.size, background_color)
    except ValueError as e:
        raise ExportFailure(f"Invalid background color {background_color!r}") from e
    base.alpha_composite(image.convert("RGBA"))
    return base


def prepare_image(image: Image.Image, config: ExportConfig) -> Image.Image:
    """Apply scale and background without encoding."""
    out = scale_image(image.convert("RGBA"), config.scale)
    background: Optional[str] = config.background_color
    if config.format == ExportFormat.JPEG and background is None:
        background = _JPEG_FALLBACK_BACKGROUND
    if background is not None:
        out = flatten(out, background)
    if config.format == ExportFormat.JPEG:
        out = out.convert("RGB")
    return out


def export_bytes(image: Image.Image, config: Optional[ExportConfig] = None) -> bytes:
    """Encode ``image`` according to ``config``.

    Raises:
        ExportFailure: On invalid options or an encoder error.
    """
    config = config or ExportConfig()
    if not 0 <= config.quality <= 1:
        raise ExportFailure(f"Export quality must be within [0, 1], got {config.quality}")

    out = prepare_image(image, config)
    params = {}
    if config.format in (ExportFormat.JPEG, ExportFormat.WEBP):
        params["quality"] = int(round(config.quality * 100))

    buffer = io.BytesIO()
    try:
        out.save(buffer, format=_PIL_FORMATS[config.format], **params)
    except (OSError, KeyError, ValueError) as e:
        raise ExportFailure(f"Failed to encode image as {config.format}: {e}") from e
    data = buffer.getvalue()
    log.debug("Exported %s image %sx%s (%d bytes)", config.format, *out.size, len(data))
    return data


def export_data_url(image: Image.Image, config: Optional[ExportConfig] = None) -> str:
    """Encode ``image`` as a ``data:`` URL."""
    config = config or ExportConfig()
    payload = base64.b64encode(export_bytes(image, config)).decode("ascii")
    return f"data:{MIME_TYPES[config.format]};base64,{payload}"
