"""
Marker clustering for the map view.

Markers are grouped greedily in Web-Mercator pixel space at the current zoom:
a marker joins the first cluster whose anchor lies within the radius,
otherwise it starts a new cluster.
"""

import math
from dataclasses import dataclass, field
from typing import Iterable, List, Tuple

from marches_dashboard.config import DEFAULT_SETTINGS


TILE_SIZE = 256
MAX_LATITUDE = 85.0511287798  # Web-Mercator limit


# Marker colours by organization type, first match wins
ORGANIZATION_COLORS = (
    ("Commune", "green"),
    ("Région", "orange"),
    ("Préfecture", "red"),
    ("Ministère", "purple"),
    ("Établissement", "cadetblue"),
)
DEFAULT_MARKER_COLOR = "green"


def marker_color(organization: str) -> str:
    """Colour of a record marker, from its organization name."""
    for keyword, color in ORGANIZATION_COLORS:
        if keyword in (organization or ""):
            return color
    return DEFAULT_MARKER_COLOR


def cluster_size_class(
    count: int,
    small_below: int = DEFAULT_SETTINGS.cluster_small_below,
    large_above: int = DEFAULT_SETTINGS.cluster_large_above,
) -> str:
    """Visual weight of a cluster: small (<10), medium (10-50), large (>50)."""
    if count < small_below:
        return "small"
    if count > large_above:
        return "large"
    return "medium"


def project(latitude: float, longitude: float, zoom: int) -> Tuple[float, float]:
    """Project a coordinate to global pixel space at the given zoom."""
    scale = TILE_SIZE * (2 ** zoom)
    lat = max(min(latitude, MAX_LATITUDE), -MAX_LATITUDE)
    sin_lat = math.sin(math.radians(lat))
    x = (longitude + 180.0) / 360.0 * scale
    y = (0.5 - math.log((1 + sin_lat) / (1 - sin_lat)) / (4 * math.pi)) * scale
    return (x, y)


@dataclass
class Cluster:
    """A group of nearby markers."""

    anchor: Tuple[float, float]  # Pixel position of the first member
    members: list = field(default_factory=list)
    small_below: int = DEFAULT_SETTINGS.cluster_small_below
    large_above: int = DEFAULT_SETTINGS.cluster_large_above

    @property
    def count(self) -> int:
        return len(self.members)

    @property
    def size_class(self) -> str:
        return cluster_size_class(self.count, self.small_below, self.large_above)

    @property
    def center(self) -> Tuple[float, float]:
        """Mean (lat, lng) of the members."""
        lat = sum(m.latitude for m in self.members) / self.count
        lng = sum(m.longitude for m in self.members) / self.count
        return (lat, lng)


def cluster_markers(
    records: Iterable,
    zoom: int,
    radius: int = DEFAULT_SETTINGS.max_cluster_radius,
    small_below: int = DEFAULT_SETTINGS.cluster_small_below,
    large_above: int = DEFAULT_SETTINGS.cluster_large_above,
) -> List[Cluster]:
    """
    Group located records into clusters at the given zoom.

    Records without coordinates are ignored. A lone marker is a cluster of one.
    """
    clusters: List[Cluster] = []
    for record in records:
        if getattr(record, "latitude", None) is None or getattr(record, "longitude", None) is None:
            continue
        px, py = project(record.latitude, record.longitude, zoom)
        for cluster in clusters:
            ax, ay = cluster.anchor
            if math.hypot(px - ax, py - ay) <= radius:
                cluster.members.append(record)
                break
        else:
            clusters.append(Cluster((px, py), [record], small_below, large_above))
    return clusters
