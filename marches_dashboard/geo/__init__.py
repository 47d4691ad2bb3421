"""Spatial helpers: WKT points, polygon search, marker clustering."""

from marches_dashboard.geo.wkt import point_wkt, parse_point
from marches_dashboard.geo.polygon import (
    build_polygon,
    polygon_from_geojson,
    in_bounds,
    contains_point,
    records_in_polygon,
)
from marches_dashboard.geo.clustering import (
    Cluster,
    cluster_markers,
    cluster_size_class,
    marker_color,
    project,
)

__all__ = [
    "point_wkt",
    "parse_point",
    "build_polygon",
    "polygon_from_geojson",
    "in_bounds",
    "contains_point",
    "records_in_polygon",
    "Cluster",
    "cluster_markers",
    "cluster_size_class",
    "marker_color",
    "project",
]
