"""Dependency-aware part positioning.

Every part with an active sprite gets an ``(x, y)`` in unscaled canvas units.
Per axis the first applicable rule wins:

1. An explicit coordinate from ``PartPosition``.
2. Auto-positioning against the resolved target part. The math uses both
   sprites' *content* boxes so transparent padding never affects alignment;
   the axis not driven by the mode is centred on the target's content box.
3. The canvas anchor (``anchor_x`` / ``anchor_y``) applied to the full sprite
   box.

``offset_x`` / ``offset_y`` are added last.

Dependencies form a graph ``part -> relative_to``. The resolver walks it
depth-first with an explicit stack and a tri-state mark per category, so a
target is always placed before its dependents regardless of declaration
order. When the walk reaches a category that is still in progress it has found
a cycle: that occurrence is placed without its auto-position setting, a warning is
logged, and the walk carries on. Any cycle shape therefore terminates and every
part in it gets a position.
"""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, Iterable, List, Mapping, Optional

from pyrsistent import pmap
from pyrsistent.typing import PMap

from sprite_composer.components import Part, Sprite
from sprite_composer.types import AnchorX, AnchorY, AutoPositionMode, Category

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Point:
    """Resolved top-left corner of a part's sprite, in unscaled canvas units."""

    x: float
    y: float


PositionMap = PMap[Category, Point]


@dataclass(frozen=True)
class _Anchor:
    """A resolved target: its position and sprite."""

    position: Point
    sprite: Sprite


class _Mark(Enum):
    IN_PROGRESS = auto()
    DONE = auto()


def _anchor_x(part: Part, sprite: Sprite, canvas_width: float) -> float:
    anchor = part.position.anchor_x
    if anchor == AnchorX.LEFT:
        return 0
    if anchor == AnchorX.RIGHT:
        return canvas_width - sprite.width
    return (canvas_width - sprite.width) / 2


def _anchor_y(part: Part, sprite: Sprite, canvas_height: float) -> float:
    anchor = part.position.anchor_y
    if anchor == AnchorY.TOP:
        return 0
    if anchor == AnchorY.BOTTOM:
        return canvas_height - sprite.height
    return (canvas_height - sprite.height) / 2


def _relative_x(mode: AutoPositionMode, target: _Anchor, sprite: Sprite, gap: float) -> float:
    t_off, _, t_width, _ = target.sprite.content_box
    s_off, _, s_width, _ = sprite.content_box
    tx = target.position.x
    if mode == AutoPositionMode.LEFT:
        return tx + t_off - s_width - s_off - gap
    if mode == AutoPositionMode.RIGHT:
        return tx + t_off + t_width - s_off + gap
    # above / below / center: centre on the target's content box
    return tx + t_off + (t_width - s_width) / 2 - s_off


def _relative_y(mode: AutoPositionMode, target: _Anchor, sprite: Sprite, gap: float) -> float:
    _, t_off, _, t_height = target.sprite.content_box
    _, s_off, _, s_height = sprite.content_box
    ty = target.position.y
    if mode == AutoPositionMode.ABOVE:
        return ty + t_off - s_height - s_off - gap
    if mode == AutoPositionMode.BELOW:
        return ty + t_off + t_height - s_off + gap
    # left / right / center: centre on the target's content box
    return ty + t_off + (t_height - s_height) / 2 - s_off


def calculate_part_position(
    part: Part,
    sprite: Sprite,
    canvas_width: float,
    canvas_height: float,
    relative_position: Optional[Point] = None,
    relative_sprite: Optional[Sprite] = None,
) -> Point:
    """Place a single part.

    Args:
        part (Part): Part configuration.
        sprite (Sprite): The part's active sprite.
        canvas_width (float): Unscaled canvas width.
        canvas_height (float): Unscaled canvas height.
        relative_position (Optional[Point]): Resolved position of the part's
            auto-position target. Auto-positioning only applies when both this
            and ``relative_sprite`` are given.
        relative_sprite (Optional[Sprite]): Active sprite of the target.

    Returns:
        Point: The part's top-left corner including offsets.
    """
    explicit = part.position
    auto_position = part.auto_position
    target: Optional[_Anchor] = None
    if auto_position is not None and relative_position is not None and relative_sprite is not None:
        target = _Anchor(relative_position, relative_sprite)

    if explicit.x is not None:
        x = explicit.x
    elif target is not None:
        x = _relative_x(auto_position.mode, target, sprite, auto_position.gap)
    else:
        x = _anchor_x(part, sprite, canvas_width)

    if explicit.y is not None:
        y = explicit.y
    elif target is not None:
        y = _relative_y(auto_position.mode, target, sprite, auto_position.gap)
    else:
        y = _anchor_y(part, sprite, canvas_height)

    return Point(x + explicit.offset_x, y + explicit.offset_y)


def _dependency_edges(
    parts: Mapping[Category, Part], sprites: Mapping[Category, Sprite], use_auto_position: bool
) -> Dict[Category, Category]:
    """``part -> relative_to`` for every target that is present this frame."""
    edges: Dict[Category, Category] = {}
    if not use_auto_position:
        return edges
    for category, part in parts.items():
        target = part.depends_on
        if target is not None and target in parts and target in sprites:
            edges[category] = target
    return edges


def resolve_positions(
    parts: Iterable[Part],
    sprites: Mapping[Category, Sprite],
    canvas_width: float,
    canvas_height: float,
    use_auto_position: bool = True,
) -> PositionMap:
    """Resolve the position of every part that has an active sprite.

    Args:
        parts (Iterable[Part]): Part configurations. Parts without an entry in
            ``sprites`` are ignored and absent from the result.
        sprites (Mapping[Category, Sprite]): Active sprite per category.
        canvas_width (float): Unscaled canvas width.
        canvas_height (float): Unscaled canvas height.
        use_auto_position (bool): When False every auto-position setting is
            ignored and parts fall back to explicit / anchor placement.

    Returns:
        PositionMap: A fresh immutable ``category -> Point`` map. The result is
            independent of the order of ``parts`` for acyclic dependencies and
            identical for identical inputs.
    """
    by_category: Dict[Category, Part] = {}
    for part in parts:
        if part.category in sprites:
            by_category.setdefault(part.category, part)

    edges = _dependency_edges(by_category, sprites, use_auto_position)
    marks: Dict[Category, _Mark] = {}
    positions: Dict[Category, Point] = {}

    def place(category: Category, with_dependency: bool) -> None:
        part = by_category[category]
        target = edges.get(category) if with_dependency else None
        if target is not None and target in positions:
            positions[category] = calculate_part_position(
                part,
                sprites[category],
                canvas_width,
                canvas_height,
                positions[target],
                sprites[target],
            )
        else:
            positions[category] = calculate_part_position(
                part, sprites[category], canvas_width, canvas_height
            )
        marks[category] = _Mark.DONE

    for root in by_category:
        if marks.get(root) is _Mark.DONE:
            continue
        stack: List[Category] = [root]
        while stack:
            category = stack[-1]
            mark = marks.get(category)
            if mark is _Mark.DONE:
                stack.pop()
                continue
            if mark is None:
                marks[category] = _Mark.IN_PROGRESS
                target = edges.get(category)
                if target is not None:
                    target_mark = marks.get(target)
                    if target_mark is _Mark.IN_PROGRESS:
                        log.warning(
                            "Circular dependency detected for part %r; "
                            "ignoring its auto-positioning to break the cycle",
                            target,
                        )
                        place(target, with_dependency=False)
                        continue
                    if target_mark is None:
                        stack.append(target)
                        continue
            place(category, with_dependency=True)
            stack.pop()

    return pmap(positions)
