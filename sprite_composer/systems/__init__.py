"""Pure functions over the component value objects.

* :mod:`.slicing`: sprite sheet grid descriptor to sprite rectangles.
* :mod:`.selection`: per-category selection to active sprite.
* :mod:`.positioning`: dependency-aware layout of the active sprites.

None of these functions perform I/O or keep state between calls.
"""
