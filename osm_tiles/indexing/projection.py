"""
Web-mercator projection and tile lookup

Geographic coordinates are first normalized to the unit square (longitude in
[0, 1), latitude unbounded near the poles) and then scaled to the pixel plane
of a zoom level: tile_size * 2^zoom pixels per edge.
"""

import math
from typing import Tuple

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1


def normalize(lat: float, lon: float) -> Tuple[float, float]:
    """
    Project lat/lon (degrees) onto the unit plane.

    Latitudes at or beyond +/-90 produce inf/NaN; they are not guarded.
    """
    lat_rad = math.radians(lat)
    lon_rad = math.radians(lon)
    x = lon_rad + math.pi
    tangent = math.tan(math.pi / 4 + lat_rad / 2)
    if tangent > 0:
        y = math.pi - math.log(tangent)
    elif tangent == 0:
        y = math.inf
    else:
        y = math.nan
    return x / (2 * math.pi), y / (2 * math.pi)


def plane_size(zoom: int, tile_size: int) -> float:
    """Edge length of the pixel plane at a zoom level"""
    return float(tile_size * (1 << zoom))


def scale(normalized: Tuple[float, float], zoom: int, tile_size: int) -> Tuple[float, float]:
    """Scale a normalized coordinate to pixels at a zoom level"""
    size = plane_size(zoom, tile_size)
    return normalized[0] * size, normalized[1] * size


def project(lat: float, lon: float, zoom: int, tile_size: int = 256) -> Tuple[float, float]:
    """Project lat/lon (degrees) to pixel coordinates at a zoom level"""
    return scale(normalize(lat, lon), zoom, tile_size)


def _truncate(value: float) -> int:
    # Saturating float -> int32, truncating toward zero; NaN maps to 0
    if math.isnan(value):
        return 0
    if value >= INT32_MAX:
        return INT32_MAX
    if value <= INT32_MIN:
        return INT32_MIN
    return int(value)


def locate(px: float, py: float, tile_size: int = 256) -> Tuple[int, int]:
    """
    Tile containing a pixel coordinate.

    Division truncates toward zero, so -0.5 tiles maps to tile 0, not -1.
    """
    return _truncate(px / tile_size), _truncate(py / tile_size)
