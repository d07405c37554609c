"""Configuration documents <-> immutable configuration values.

The external configuration format is a plain JSON document with camelCase
keys (``width``, ``height``, ``pixelScale``, ``parts``, ``exportConfig``,
``uploadConfig`` ...). :func:`config_from_dict` is the single defaults-merging
step: every optional field is filled in here so the core never has to check
for missing values. :func:`config_to_dict` emits the same shape, and the pair
round-trips without loss::

    config_from_dict(config_to_dict(config)) == config
"""

from __future__ import annotations

import json
from enum import StrEnum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar, Union

from pyrsistent import pmap

from sprite_composer.components import (
    AutoPosition,
    AvatarConfig,
    ExportConfig,
    FeatureFlags,
    Part,
    PartPosition,
    SpriteSheet,
    SpriteTrim,
    UploadConfig,
)
from sprite_composer.components.config import DEFAULT_EXPORT_QUALITY, DEFAULT_UPLOAD_FIELD
from sprite_composer.errors import InvalidConfig
from sprite_composer.presets import preset_features
from sprite_composer.types import (
    AnchorX,
    AnchorY,
    AutoPositionMode,
    AvatarMode,
    ExportFormat,
    Preset,
    UploadMethod,
)

E = TypeVar("E", bound=StrEnum)
Number = Union[int, float]

_MISSING = object()


# -------- Field readers --------


def _get(doc: Mapping[str, Any], key: str, where: str, default: Any = _MISSING) -> Any:
    if key in doc and doc[key] is not None:
        return doc[key]
    if default is _MISSING:
        raise InvalidConfig(f"{where}: missing required field {key!r}")
    return default


def _number(value: Any, where: str) -> Number:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidConfig(f"{where}: expected a number, got {value!r}")
    return value


def _int(value: Any, where: str) -> int:
    number = _number(value, where)
    if isinstance(number, float):
        if not number.is_integer():
            raise InvalidConfig(f"{where}: expected an integer, got {value!r}")
        return int(number)
    return number


def _str(value: Any, where: str) -> str:
    if not isinstance(value, str):
        raise InvalidConfig(f"{where}: expected a string, got {value!r}")
    return value


def _bool(value: Any, where: str) -> bool:
    if not isinstance(value, bool):
        raise InvalidConfig(f"{where}: expected a boolean, got {value!r}")
    return value


def _enum(enum_type: Type[E], value: Any, where: str) -> E:
    try:
        return enum_type(value)
    except ValueError as e:
        choices = ", ".join(member.value for member in enum_type)
        raise InvalidConfig(f"{where}: {value!r} is not one of {choices}") from e


def _mapping(value: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise InvalidConfig(f"{where}: expected an object, got {type(value).__name__}")
    return value


def _string_map(value: Any, where: str) -> Dict[str, str]:
    return {str(k): _str(v, f"{where}.{k}") for k, v in _mapping(value, where).items()}


# -------- Parsing --------


def trim_from_dict(doc: Mapping[str, Any], where: str = "trim") -> SpriteTrim:
    doc = _mapping(doc, where)
    return SpriteTrim(
        top=_int(_get(doc, "top", where, 0), f"{where}.top"),
        bottom=_int(_get(doc, "bottom", where, 0), f"{where}.bottom"),
        left=_int(_get(doc, "left", where, 0), f"{where}.left"),
        right=_int(_get(doc, "right", where, 0), f"{where}.right"),
    )


def sheet_from_dict(doc: Mapping[str, Any], where: str = "spriteSheet") -> SpriteSheet:
    doc = _mapping(doc, where)
    trim = doc.get("trim")
    return SpriteSheet(
        url=_str(_get(doc, "url", where), f"{where}.url"),
        sprite_width=_int(_get(doc, "spriteWidth", where), f"{where}.spriteWidth"),
        sprite_height=_int(_get(doc, "spriteHeight", where), f"{where}.spriteHeight"),
        columns=_int(_get(doc, "columns", where), f"{where}.columns"),
        rows=_int(_get(doc, "rows", where), f"{where}.rows"),
        spacing_x=_int(_get(doc, "spacingX", where, 0), f"{where}.spacingX"),
        spacing_y=_int(_get(doc, "spacingY", where, 0), f"{where}.spacingY"),
        trim=trim_from_dict(trim, f"{where}.trim") if trim is not None else None,
    )


def _optional_number(doc: Mapping[str, Any], key: str, where: str) -> Optional[Number]:
    value = doc.get(key)
    return None if value is None else _number(value, f"{where}.{key}")


def position_from_dict(doc: Mapping[str, Any], where: str = "position") -> PartPosition:
    doc = _mapping(doc, where)
    return PartPosition(
        x=_optional_number(doc, "x", where),
        y=_optional_number(doc, "y", where),
        offset_x=_number(_get(doc, "offsetX", where, 0), f"{where}.offsetX"),
        offset_y=_number(_get(doc, "offsetY", where, 0), f"{where}.offsetY"),
        anchor_x=_enum(AnchorX, _get(doc, "anchorX", where, AnchorX.CENTER), f"{where}.anchorX"),
        anchor_y=_enum(AnchorY, _get(doc, "anchorY", where, AnchorY.TOP), f"{where}.anchorY"),
    )


def auto_position_from_dict(doc: Mapping[str, Any], where: str = "autoPosition") -> AutoPosition:
    doc = _mapping(doc, where)
    relative_to = doc.get("relativeTo")
    # "position" is the legacy key for the mode.
    mode = doc.get("mode", doc.get("position"))
    return AutoPosition(
        relative_to=_str(relative_to, f"{where}.relativeTo") if relative_to is not None else None,
        mode=_enum(AutoPositionMode, mode if mode is not None else AutoPositionMode.BELOW, f"{where}.mode"),
        gap=_number(_get(doc, "gap", where, 0), f"{where}.gap"),
    )


def part_from_dict(doc: Mapping[str, Any], where: str = "part") -> Part:
    doc = _mapping(doc, where)
    category = _str(_get(doc, "category", where), f"{where}.category")
    where = f"parts[{category!r}]"

    sheets: List[SpriteSheet] = []
    if doc.get("spriteSheet") is not None:
        sheets.append(sheet_from_dict(doc["spriteSheet"], f"{where}.spriteSheet"))
    raw_sheets = doc.get("spriteSheets")
    if raw_sheets is not None:
        if not isinstance(raw_sheets, list):
            raise InvalidConfig(f"{where}.spriteSheets: expected a list")
        sheets.extend(
            sheet_from_dict(sheet, f"{where}.spriteSheets[{i}]") for i, sheet in enumerate(raw_sheets)
        )

    position = doc.get("position")
    auto_position = doc.get("autoPosition")
    label = doc.get("label")
    return Part(
        category=category,
        sheets=tuple(sheets),
        z_index=_int(_get(doc, "zIndex", where, 0), f"{where}.zIndex"),
        position=position_from_dict(position, f"{where}.position") if position is not None else PartPosition(),
        auto_position=(
            auto_position_from_dict(auto_position, f"{where}.autoPosition")
            if auto_position is not None
            else None
        ),
        optional=_bool(_get(doc, "optional", where, False), f"{where}.optional"),
        enabled=_bool(_get(doc, "enabled", where, True), f"{where}.enabled"),
        label=_str(label, f"{where}.label") if label is not None else None,
    )


def features_from_dict(doc: Mapping[str, Any], base: Optional[FeatureFlags] = None) -> FeatureFlags:
    """Merge a (possibly partial) feature flag object over ``base``."""
    doc = _mapping(doc, "features")
    base = base or FeatureFlags()
    return FeatureFlags(
        allow_toggle=_bool(doc.get("allowToggle", base.allow_toggle), "features.allowToggle"),
        multiple_sheets=_bool(doc.get("multipleSheets", base.multiple_sheets), "features.multipleSheets"),
        show_labels=_bool(doc.get("showLabels", base.show_labels), "features.showLabels"),
        allow_config_export=_bool(
            doc.get("allowConfigExport", base.allow_config_export), "features.allowConfigExport"
        ),
        auto_positioning=_bool(doc.get("autoPositioning", base.auto_positioning), "features.autoPositioning"),
    )


def export_from_dict(doc: Mapping[str, Any]) -> ExportConfig:
    where = "exportConfig"
    doc = _mapping(doc, where)
    background = doc.get("backgroundColor")
    return ExportConfig(
        format=_enum(ExportFormat, _get(doc, "format", where, ExportFormat.PNG), f"{where}.format"),
        quality=_number(_get(doc, "quality", where, DEFAULT_EXPORT_QUALITY), f"{where}.quality"),
        background_color=_str(background, f"{where}.backgroundColor") if background is not None else None,
        scale=_int(_get(doc, "scale", where, 1), f"{where}.scale"),
    )


def upload_from_dict(doc: Mapping[str, Any]) -> UploadConfig:
    where = "uploadConfig"
    doc = _mapping(doc, where)
    return UploadConfig(
        endpoint=_str(_get(doc, "endpoint", where), f"{where}.endpoint"),
        method=_enum(UploadMethod, _get(doc, "method", where, UploadMethod.POST), f"{where}.method"),
        headers=pmap(_string_map(_get(doc, "headers", where, {}), f"{where}.headers")),
        field_name=_str(_get(doc, "fieldName", where, DEFAULT_UPLOAD_FIELD), f"{where}.fieldName"),
        additional_data=pmap(
            _string_map(_get(doc, "additionalData", where, {}), f"{where}.additionalData")
        ),
    )


def config_from_dict(doc: Mapping[str, Any]) -> AvatarConfig:
    """Build a fully populated :class:`AvatarConfig` from a document.

    Feature flags start from the preset's defaults when ``preset`` is set;
    flags present in ``features`` win over them.

    Raises:
        InvalidConfig: On missing required fields or values of the wrong type.
    """
    doc = _mapping(doc, "config")
    where = "config"
    width = _int(_get(doc, "width", where), "width")
    height = _int(_get(doc, "height", where), "height")
    if width <= 0 or height <= 0:
        raise InvalidConfig(f"Canvas size must be positive, got {width}x{height}")

    pixel_scale = _number(_get(doc, "pixelScale", where, 1), "pixelScale")
    if pixel_scale <= 0:
        raise InvalidConfig(f"pixelScale must be positive, got {pixel_scale}")

    raw_parts = _get(doc, "parts", where)
    if not isinstance(raw_parts, list):
        raise InvalidConfig("parts: expected a list")
    parts = tuple(part_from_dict(part, f"parts[{i}]") for i, part in enumerate(raw_parts))

    raw_preset = doc.get("preset")
    preset = _enum(Preset, raw_preset, "preset") if raw_preset is not None else None
    base = preset_features(preset) if preset is not None else FeatureFlags()
    features = doc.get("features")
    export = doc.get("exportConfig")
    upload = doc.get("uploadConfig")
    return AvatarConfig(
        width=width,
        height=height,
        parts=parts,
        pixel_scale=pixel_scale,
        mode=_enum(AvatarMode, _get(doc, "mode", where, AvatarMode.FULL), "mode"),
        preset=preset,
        features=features_from_dict(features, base) if features is not None else base,
        export=export_from_dict(export) if export is not None else ExportConfig(),
        upload=upload_from_dict(upload) if upload is not None else None,
    )


# -------- Serialization --------


def _drop_none(doc: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in doc.items() if value is not None}


def sheet_to_dict(sheet: SpriteSheet) -> Dict[str, Any]:
    doc: Dict[str, Any] = {
        "url": sheet.url,
        "spriteWidth": sheet.sprite_width,
        "spriteHeight": sheet.sprite_height,
        "columns": sheet.columns,
        "rows": sheet.rows,
        "spacingX": sheet.spacing_x,
        "spacingY": sheet.spacing_y,
    }
    if sheet.trim is not None:
        doc["trim"] = {
            "top": sheet.trim.top,
            "bottom": sheet.trim.bottom,
            "left": sheet.trim.left,
            "right": sheet.trim.right,
        }
    return doc


def part_to_dict(part: Part) -> Dict[str, Any]:
    doc: Dict[str, Any] = {"category": part.category}
    if len(part.sheets) == 1:
        doc["spriteSheet"] = sheet_to_dict(part.sheets[0])
    else:
        doc["spriteSheets"] = [sheet_to_dict(sheet) for sheet in part.sheets]
    doc["zIndex"] = part.z_index
    position = part.position
    doc["position"] = _drop_none(
        {
            "x": position.x,
            "y": position.y,
            "offsetX": position.offset_x,
            "offsetY": position.offset_y,
            "anchorX": position.anchor_x.value,
            "anchorY": position.anchor_y.value,
        }
    )
    if part.auto_position is not None:
        doc["autoPosition"] = _drop_none(
            {
                "relativeTo": part.auto_position.relative_to,
                "mode": part.auto_position.mode.value,
                "gap": part.auto_position.gap,
            }
        )
    doc["optional"] = part.optional
    doc["enabled"] = part.enabled
    if part.label is not None:
        doc["label"] = part.label
    return doc


def config_to_dict(config: AvatarConfig) -> Dict[str, Any]:
    """Serialize a configuration to a JSON-compatible document."""
    features = config.features
    export = config.export
    doc: Dict[str, Any] = {
        "width": config.width,
        "height": config.height,
        "pixelScale": config.pixel_scale,
        "mode": config.mode.value,
        "parts": [part_to_dict(part) for part in config.parts],
        "features": {
            "allowToggle": features.allow_toggle,
            "multipleSheets": features.multiple_sheets,
            "showLabels": features.show_labels,
            "allowConfigExport": features.allow_config_export,
            "autoPositioning": features.auto_positioning,
        },
        "exportConfig": _drop_none(
            {
                "format": export.format.value,
                "quality": export.quality,
                "backgroundColor": export.background_color,
                "scale": export.scale,
            }
        ),
    }
    if config.preset is not None:
        doc["preset"] = config.preset.value
    if config.upload is not None:
        upload = config.upload
        doc["uploadConfig"] = {
            "endpoint": upload.endpoint,
            "method": upload.method.value,
            "headers": dict(upload.headers),
            "fieldName": upload.field_name,
            "additionalData": dict(upload.additional_data),
        }
    return doc


# -------- JSON / files --------


def config_to_json(config: AvatarConfig, indent: Optional[int] = 2) -> str:
    return json.dumps(config_to_dict(config), indent=indent)


def config_from_json(text: str) -> AvatarConfig:
    """Parse a JSON configuration document.

    Raises:
        InvalidConfig: If ``text`` is not valid JSON or not a valid document.
    """
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidConfig(f"Invalid configuration JSON: {e}") from e
    return config_from_dict(doc)


def save_config(config: AvatarConfig, path: Union[str, Path]) -> None:
    Path(path).write_text(config_to_json(config), encoding="utf-8")


def load_config(path: Union[str, Path]) -> AvatarConfig:
    return config_from_json(Path(path).read_text(encoding="utf-8"))
