"""
Label placement

House numbers are anchored at the polygon's pole of inaccessibility, the
interior point farthest from the outline.
"""

from typing import List, Optional, Tuple

from shapely.geometry import Polygon
from shapely.ops import polylabel

Point = Tuple[float, float]


def label_anchor(points: List[Point], tolerance: float = 0.01) -> Optional[Point]:
    """
    Anchor point for a label inside a polygon outline.

    Args:
        points: Outline in pixel coordinates (closing point optional)
        tolerance: Search precision in pixels

    Returns:
        (x, y) anchor, or None when the outline encloses no area
    """
    if len(points) < 3:
        return None

    polygon = Polygon(points)
    if not polygon.is_valid:
        polygon = polygon.buffer(0)
    if polygon.is_empty or polygon.area == 0:
        return None
    if polygon.geom_type == "MultiPolygon":
        polygon = max(polygon.geoms, key=lambda g: g.area)

    anchor = polylabel(polygon, tolerance=tolerance)
    return anchor.x, anchor.y
