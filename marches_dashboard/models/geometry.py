"""
Geometry data model.

A geometry is a GeoJSON point, line or polygon drawn for a record, distinct
from the record's single point coordinate.
"""

from dataclasses import dataclass, field
from typing import Optional


GEOMETRY_TYPES = ("Point", "LineString", "Polygon")


@dataclass
class Geometry:
    """Spatial shape attached to a record."""

    record_id: int
    geometry: dict = field(default_factory=dict)
    id: Optional[int] = None
    created_at: str = ""

    @property
    def geometry_type(self) -> str:
        return self.geometry.get("type", "")

    @classmethod
    def from_api(cls, data: dict) -> "Geometry":
        return cls(
            id=data.get("id"),
            record_id=int(data["marche_id"]),
            geometry=data.get("geometry") or {},
            created_at=data.get("created_at") or "",
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "marche_id": self.record_id,
            "geometry": self.geometry,
            "created_at": self.created_at,
        }
