"""Grid helpers shared by the board, the probability engine and the hint engine."""

from typing import Dict, Tuple

Coord = Tuple[int, int]
Neighborhoods = Dict[Coord, Tuple[Coord, ...]]

# (width, height) -> {(x, y): ((nx, ny), ...)}; immutable once built.
_NEIGHBORHOODS_CACHE: Dict[Tuple[int, int], Neighborhoods] = {}


def get_neighborhoods(width: int, height: int) -> Neighborhoods:
    """
    Return the 8-connected neighbor coordinates of every cell in a grid.

    The table for a given size is built once and shared; callers must treat
    it as read-only.

    Args:
        width: Grid width (number of columns). Must be positive.
        height: Grid height (number of rows). Must be positive.

    Returns:
        Mapping from each cell (x, y) to its boundary-clipped neighbors,
        listed row by row.

    Raises:
        ValueError: If width or height is non-positive.
    """
    if width <= 0 or height <= 0:
        raise ValueError("width and height must be positive.")

    key = (width, height)
    cached = _NEIGHBORHOODS_CACHE.get(key)
    if cached is not None:
        return cached

    neighborhoods: Neighborhoods = {}
    for y in range(height):
        for x in range(width):
            neighborhoods[(x, y)] = tuple(
                (x + dx, y + dy)
                for dy in (-1, 0, 1)
                for dx in (-1, 0, 1)
                if (dx or dy) and 0 <= x + dx < width and 0 <= y + dy < height
            )

    _NEIGHBORHOODS_CACHE[key] = neighborhoods
    return neighborhoods


def row_major_key(cell: Coord) -> Tuple[int, int]:
    """Sort key placing cells top-left first, row by row."""
    x, y = cell
    return (y, x)


def clamp_probability(value: float) -> float:
    """Clamp a probability estimate into [0, 1]."""
    return min(1.0, max(0.0, value))
