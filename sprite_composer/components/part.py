"""Part components.

A ``Part`` is one independently authored layer of the composite (head, body,
border ...). Its on-canvas position comes from, in priority order, explicit
coordinates in ``PartPosition``, a dependency on another part expressed by
``AutoPosition``, or the canvas anchors in ``PartPosition``. Offsets are added
last in every case.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

from sprite_composer.components.sheet import SpriteSheet
from sprite_composer.types import AnchorX, AnchorY, AutoPositionMode, Category


@dataclass(frozen=True)
class PartPosition:
    """Explicit placement knobs.

    Attributes:
        x: Explicit x in unscaled canvas units; wins over every other rule.
        y: Explicit y in unscaled canvas units; wins over every other rule.
        offset_x: Added to the final x.
        offset_y: Added to the final y.
        anchor_x: Canvas anchor when x is neither explicit nor relative.
        anchor_y: Canvas anchor when y is neither explicit nor relative.
    """

    x: Optional[float] = None
    y: Optional[float] = None
    offset_x: float = 0
    offset_y: float = 0
    anchor_x: AnchorX = AnchorX.CENTER
    anchor_y: AnchorY = AnchorY.TOP


@dataclass(frozen=True)
class AutoPosition:
    """Placement relative to another part's resolved position.

    Attributes:
        relative_to: Category of the target part. An unknown or absent target
            is not an error; the part falls back to anchor positioning.
        mode: Side of the target to place this part on.
        gap: Distance between the two content boxes along the mode's axis.
    """

    relative_to: Optional[Category] = None
    mode: AutoPositionMode = AutoPositionMode.BELOW
    gap: float = 0


@dataclass(frozen=True)
class Part:
    """Configuration of one part category.

    Attributes:
        category: Unique key within a configuration.
        sheets: One or more sprite sheets; plain selections use ``sheets[0]``.
        z_index: Layer order, higher draws on top; ties keep declaration order.
        position: Explicit / anchor placement.
        auto_position: Optional dependency on another part.
        optional: Whether the part may be left unselected.
        enabled: Disabled parts are never selected, loaded or drawn.
        label: Display label for hosts.
    """

    category: Category
    sheets: Tuple[SpriteSheet, ...] = ()
    z_index: int = 0
    position: PartPosition = field(default_factory=PartPosition)
    auto_position: Optional[AutoPosition] = None
    optional: bool = False
    enabled: bool = True
    label: Optional[str] = None

    @property
    def depends_on(self) -> Optional[Category]:
        if self.auto_position is None:
            return None
        return self.auto_position.relative_to
