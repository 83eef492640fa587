"""
Line Chart Scaling

Scales a value series into a fixed viewbox for polyline rendering.
SVG y grows downwards, so the largest value maps to the top padding
and the smallest to the bottom padding.
"""

from typing import Sequence


def polyline_points(
    values: Sequence[float],
    width: float = 320,
    height: float = 90,
    padding: float = 10,
) -> list[tuple[float, float]]:
    """
    Map values to (x, y) viewbox coordinates.

    x is spread evenly over the padded width; a single value is
    centred. A flat series (zero range) is drawn along the bottom.
    """
    if not values:
        return []

    max_val = max(values)
    min_val = min(values)
    value_range = (max_val - min_val) or 1

    inner_width = width - 2 * padding
    inner_height = height - 2 * padding
    count = len(values)

    points = []
    for index, value in enumerate(values):
        if count == 1:
            x = padding + inner_width / 2
        else:
            x = padding + (index / (count - 1)) * inner_width
        norm = (value - min_val) / value_range
        y = height - padding - norm * inner_height
        points.append((x, y))

    return points


def polyline_string(points: Sequence[tuple[float, float]]) -> str:
    """Render points as an SVG polyline "points" attribute."""
    return " ".join(f"{x:g},{y:g}" for x, y in points)
