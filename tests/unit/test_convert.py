import json
from pathlib import Path
from typing import Any, Dict

import pytest
from pyrsistent import pmap

from sprite_composer.components import (
    AutoPosition,
    AvatarConfig,
    ExportConfig,
    FeatureFlags,
    Part,
    PartPosition,
    SpriteTrim,
    UploadConfig,
)
from sprite_composer.convert import (
    config_from_dict,
    config_from_json,
    config_to_dict,
    config_to_json,
    load_config,
    part_from_dict,
    save_config,
)
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
from tests.test_utils import make_sheet


def minimal_doc() -> Dict[str, Any]:
    return {
        "width": 128,
        "height": 128,
        "parts": [
            {
                "category": "head",
                "spriteSheet": {
                    "url": "head.png",
                    "spriteWidth": 95,
                    "spriteHeight": 95,
                    "columns": 10,
                    "rows": 10,
                },
            }
        ],
    }


def full_config() -> AvatarConfig:
    head_sheet = make_sheet("head.png", size=(95, 95), grid=(10, 10), spacing=(5, 5), trim=SpriteTrim(bottom=35))
    return AvatarConfig(
        width=190,
        height=190,
        pixel_scale=2,
        mode=AvatarMode.TORSO,
        preset=Preset.CHARACTER_MAKER,
        parts=(
            Part(
                category="head",
                sheets=(head_sheet,),
                z_index=2,
                position=PartPosition(y=10, offset_x=-1.5, anchor_x=AnchorX.LEFT, anchor_y=AnchorY.CENTER),
                label="Head",
            ),
            Part(
                category="body",
                sheets=(make_sheet("body_a.png"), make_sheet("body_b.png", grid=(3, 1))),
                auto_position=AutoPosition(relative_to="head", mode=AutoPositionMode.BELOW, gap=-2),
                optional=True,
            ),
            Part(category="border", sheets=(make_sheet("border.png"),), z_index=10, enabled=False),
        ),
        features=FeatureFlags(show_labels=False, auto_positioning=False),
        export=ExportConfig(format=ExportFormat.WEBP, quality=0.5, background_color="#123456", scale=3),
        upload=UploadConfig(
            endpoint="https://example.test/avatar",
            method=UploadMethod.PUT,
            headers=pmap({"Authorization": "Bearer x"}),
            field_name="image",
            additional_data=pmap({"user": "42"}),
        ),
    )


def test_minimal_document_gets_every_default() -> None:
    config = config_from_dict(minimal_doc())
    assert config.pixel_scale == 1
    assert config.mode == AvatarMode.FULL
    assert config.preset is None
    assert config.features == FeatureFlags()
    assert config.export == ExportConfig()
    assert config.upload is None
    (head,) = config.parts
    assert head.z_index == 0
    assert head.position == PartPosition()
    assert head.auto_position is None
    assert head.enabled and not head.optional
    (sheet,) = head.sheets
    assert (sheet.spacing_x, sheet.spacing_y, sheet.trim) == (0, 0, None)


def test_round_trip_preserves_configuration() -> None:
    config = full_config()
    assert config_from_dict(config_to_dict(config)) == config


def test_json_round_trip_preserves_configuration() -> None:
    config = full_config()
    text = config_to_json(config)
    assert json.loads(text)["parts"][1]["autoPosition"] == {"relativeTo": "head", "mode": "below", "gap": -2}
    assert config_from_json(text) == config


def test_single_sheet_written_as_sprite_sheet() -> None:
    doc = config_to_dict(full_config())
    assert "spriteSheet" in doc["parts"][0] and "spriteSheets" not in doc["parts"][0]
    assert len(doc["parts"][1]["spriteSheets"]) == 2


def test_sprite_sheet_and_sprite_sheets_are_concatenated() -> None:
    doc = minimal_doc()["parts"][0]
    doc["spriteSheets"] = [dict(doc["spriteSheet"], url="extra.png")]
    part = part_from_dict(doc)
    assert [sheet.url for sheet in part.sheets] == ["head.png", "extra.png"]


def test_legacy_position_key_is_read_as_mode() -> None:
    part = part_from_dict(
        {"category": "hat", "autoPosition": {"relativeTo": "head", "position": "above", "gap": 3}}
    )
    assert part.auto_position == AutoPosition("head", AutoPositionMode.ABOVE, 3)


def test_partial_features_merge_over_defaults() -> None:
    doc = minimal_doc()
    doc["features"] = {"autoPositioning": False}
    assert config_from_dict(doc).features == FeatureFlags(auto_positioning=False)


def test_preset_defaults_fill_flags_the_document_omits() -> None:
    doc = minimal_doc()
    doc["preset"] = "profile-editor"
    doc["features"] = {"showLabels": False}
    features = config_from_dict(doc).features
    assert not features.show_labels
    assert not features.multiple_sheets
    assert not features.allow_config_export
    assert features.auto_positioning


def test_preset_without_features_uses_preset_flags() -> None:
    doc = minimal_doc()
    doc["preset"] = "rpg-avatar"
    assert config_from_dict(doc).features == preset_features(Preset.RPG_AVATAR)


def test_integral_floats_are_accepted_for_integer_fields() -> None:
    doc = minimal_doc()
    doc["parts"][0]["spriteSheet"]["columns"] = 10.0
    assert config_from_dict(doc).parts[0].sheets[0].columns == 10


@pytest.mark.parametrize(
    "mutate,message",
    [
        (lambda d: d.pop("width"), "width"),
        (lambda d: d.update(height=0), "positive"),
        (lambda d: d.update(pixelScale=-1), "pixelScale"),
        (lambda d: d.update(parts={}), "parts"),
        (lambda d: d["parts"][0].pop("category"), "category"),
        (lambda d: d["parts"][0]["spriteSheet"].pop("url"), "url"),
        (lambda d: d["parts"][0]["spriteSheet"].update(rows="ten"), "rows"),
        (lambda d: d["parts"][0]["spriteSheet"].update(columns=2.5), "columns"),
        (lambda d: d["parts"][0].update(enabled="yes"), "enabled"),
        (lambda d: d["parts"][0].update(position={"anchorX": "middle"}), "anchorX"),
        (lambda d: d.update(exportConfig={"format": "gif"}), "format"),
        (lambda d: d.update(uploadConfig={"method": "POST"}), "endpoint"),
        (lambda d: d.update(mode="half"), "mode"),
    ],
)
def test_invalid_documents_raise_with_field_context(mutate, message: str) -> None:
    doc = minimal_doc()
    mutate(doc)
    with pytest.raises(InvalidConfig, match=message):
        config_from_dict(doc)


def test_invalid_json_raises_invalid_config() -> None:
    with pytest.raises(InvalidConfig):
        config_from_json("{not json")


def test_invalid_config_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        config_from_dict({"height": 1, "parts": []})


def test_save_and_load_config(tmp_path: Path) -> None:
    path = tmp_path / "avatar.json"
    config = full_config()
    save_config(config, path)
    assert json.loads(path.read_text(encoding="utf-8"))["preset"] == "character-maker"
    assert load_config(path) == config
