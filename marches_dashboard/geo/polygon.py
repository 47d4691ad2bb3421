"""
Polygon search over located records.

A candidate is first rejected by the polygon's axis-aligned bounding box and
only then tested for exact containment. Both tests include the boundary, so
a marker on a vertex or an edge is never kept by one and dropped by the other.
"""

from typing import Iterable, List, Sequence, Tuple

from shapely.geometry import Point, Polygon, shape


# (min_lng, min_lat, max_lng, max_lat), the order shapely returns
Bounds = Tuple[float, float, float, float]


def build_polygon(vertices: Sequence[Tuple[float, float]]) -> Polygon:
    """
    Build a polygon from map vertices given as (lat, lng).

    The ring is closed automatically.
    """
    points = [(float(lng), float(lat)) for lat, lng in vertices]
    if len(set(points)) < 3:
        raise ValueError("A search polygon needs at least three distinct vertices")
    return Polygon(points)


def polygon_from_geojson(geojson: dict) -> Polygon:
    """Accept a GeoJSON Polygon geometry or a Feature wrapping one."""
    geometry = geojson.get("geometry", geojson)
    geom = shape(geometry)
    if geom.geom_type != "Polygon":
        raise ValueError(f"Expected a Polygon, got {geom.geom_type}")
    return geom


def in_bounds(latitude: float, longitude: float, bounds: Bounds) -> bool:
    """Inclusive bounding box test."""
    min_lng, min_lat, max_lng, max_lat = bounds
    return min_lng <= longitude <= max_lng and min_lat <= latitude <= max_lat


def contains_point(polygon: Polygon, latitude: float, longitude: float) -> bool:
    """Exact containment, boundary included."""
    return polygon.covers(Point(longitude, latitude))


def records_in_polygon(records: Iterable, polygon: Polygon) -> List:
    """
    Return the records whose coordinates fall inside the polygon.

    Records without both coordinates are skipped. Input order is preserved.
    """
    bounds = polygon.bounds
    inside = []
    for record in records:
        lat = getattr(record, "latitude", None)
        lng = getattr(record, "longitude", None)
        if lat is None or lng is None:
            continue
        if not in_bounds(lat, lng, bounds):
            continue
        if contains_point(polygon, lat, lng):
            inside.append(record)
    return inside
