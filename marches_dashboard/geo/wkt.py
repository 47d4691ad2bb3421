"""
WKT helpers for record coordinates.

The backend stores a record's location as a `POINT(longitude latitude)`
string in the `geom` field.
"""

from typing import Optional, Tuple

from shapely import wkt
from shapely.errors import ShapelyError
from shapely.geometry import Point


def point_wkt(latitude: float, longitude: float) -> str:
    """Format a coordinate pair as the backend's WKT point (x = longitude)."""
    return Point(float(longitude), float(latitude)).wkt


def parse_point(text: str) -> Optional[Tuple[float, float]]:
    """
    Parse a WKT point into (lat, lng).

    Returns None for blank input; raises ValueError for anything that is not
    a point.
    """
    if not text or not text.strip():
        return None
    try:
        geom = wkt.loads(text)
    except ShapelyError as e:
        raise ValueError(f"Invalid WKT point: {text!r}") from e
    if geom.geom_type != "Point" or geom.is_empty:
        raise ValueError(f"Expected a POINT, got {geom.geom_type}")
    return (geom.y, geom.x)
