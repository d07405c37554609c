"""Preset styles.

A preset bundles a set of default feature flags with the part categories it
enables. Applying one is part of the defaults-merging step that runs before
rendering; explicit flags in a configuration always win over the preset's.
"""

from dataclasses import fields, replace
from typing import Dict, FrozenSet, Optional

from sprite_composer.components import AvatarConfig, FeatureFlags
from sprite_composer.types import Preset

PRESET_FEATURES: Dict[Preset, FeatureFlags] = {
    Preset.PROFILE_EDITOR: FeatureFlags(
        allow_toggle=True,
        multiple_sheets=False,
        show_labels=True,
        allow_config_export=False,
        auto_positioning=True,
    ),
    Preset.CHARACTER_MAKER: FeatureFlags(
        allow_toggle=True,
        multiple_sheets=True,
        show_labels=True,
        allow_config_export=True,
        auto_positioning=True,
    ),
    Preset.RPG_AVATAR: FeatureFlags(
        allow_toggle=True,
        multiple_sheets=True,
        show_labels=False,
        allow_config_export=False,
        auto_positioning=True,
    ),
    Preset.CUSTOM: FeatureFlags(),
}

PRESET_CATEGORIES: Dict[Preset, FrozenSet[str]] = {
    Preset.PROFILE_EDITOR: frozenset({"head", "face", "border"}),
    Preset.CHARACTER_MAKER: frozenset({"head", "body", "face", "cosmetic", "border"}),
    Preset.RPG_AVATAR: frozenset({"head", "body", "cosmetic"}),
}


def preset_features(preset: Preset) -> FeatureFlags:
    """Default feature flags of ``preset``."""
    return PRESET_FEATURES.get(preset, FeatureFlags())


def apply_preset(
    config: AvatarConfig, preset: Preset, overrides: Optional[Dict[str, bool]] = None
) -> AvatarConfig:
    """Return ``config`` tagged with ``preset`` and its feature flags.

    ``config.features`` is fully populated, so it cannot tell which flags were
    set on purpose; those have to be passed as ``overrides``. Documents merge
    preset defaults under their own ``features`` in
    :func:`sprite_composer.convert.config_from_dict`.

    Args:
        config (AvatarConfig): Configuration to update.
        preset (Preset): Preset to apply.
        overrides (Optional[Dict[str, bool]]): Flags (by ``FeatureFlags``
            field name) the configuration sets explicitly; they win over the
            preset's defaults.

    Returns:
        AvatarConfig: A new configuration; ``config`` is unchanged.
    """
    features = preset_features(preset)
    if overrides:
        known = {f.name for f in fields(FeatureFlags)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"Unknown feature flags: {sorted(unknown)}")
        features = replace(features, **overrides)
    return replace(config, preset=preset, features=features)


def filter_parts_by_preset(config: AvatarConfig) -> AvatarConfig:
    """Enable exactly the parts belonging to the configuration's preset.

    Configurations without a preset, or with ``Preset.CUSTOM``, are returned
    unchanged.
    """
    if config.preset is None or config.preset == Preset.CUSTOM:
        return config
    categories = PRESET_CATEGORIES[config.preset]
    parts = tuple(replace(part, enabled=part.category in categories) for part in config.parts)
    return replace(config, parts=parts)
