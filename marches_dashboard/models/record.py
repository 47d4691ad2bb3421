"""
Public procurement record ("marché") data model.

Records are always fetched fresh from the API; nothing here is cached.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from marches_dashboard.errors import ValidationError
from marches_dashboard.geo.wkt import parse_point, point_wkt


@dataclass
class Record:
    """
    A procurement record as returned by the /marches endpoints.

    Attribute names are English; the backend uses the French field names
    listed in from_api().
    """

    id: int
    reference: str = ""  # num_marche
    subject: str = ""  # objet
    year: Optional[int] = None  # annee
    box_number: str = ""  # num_boite
    organization: str = ""  # organisme
    community_type: str = ""  # type_communaute_publique
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    created_at: str = ""

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def position(self) -> Optional[tuple]:
        """(lat, lng) or None when the record is not located."""
        if not self.has_coordinates:
            return None
        return (self.latitude, self.longitude)

    @classmethod
    def from_api(cls, data: dict) -> "Record":
        latitude = _optional_float(data.get("latitude"))
        longitude = _optional_float(data.get("longitude"))
        if latitude is None and longitude is None:
            latitude, longitude = _geom_position(data.get("geom"))
        return cls(
            id=int(data["id"]),
            reference=data.get("num_marche") or "",
            subject=data.get("objet") or "",
            year=_optional_int(data.get("annee")),
            box_number=data.get("num_boite") or "",
            organization=data.get("organisme") or "",
            community_type=data.get("type_communaute_publique") or "",
            latitude=latitude,
            longitude=longitude,
            created_at=data.get("created_at") or "",
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "num_marche": self.reference,
            "objet": self.subject,
            "annee": self.year,
            "num_boite": self.box_number,
            "organisme": self.organization,
            "type_communaute_publique": self.community_type,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "created_at": self.created_at,
        }


@dataclass
class RecordDraft:
    """Field values of the add/edit record form, before submission."""

    reference: str = ""
    subject: str = ""
    year: Optional[int] = None
    box_number: str = ""
    organization: str = ""
    community_type: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @classmethod
    def from_record(cls, record: Record) -> "RecordDraft":
        return cls(
            reference=record.reference,
            subject=record.subject,
            year=record.year,
            box_number=record.box_number,
            organization=record.organization,
            community_type=record.community_type,
            latitude=record.latitude,
            longitude=record.longitude,
        )

    def apply_wkt(self, text: str) -> None:
        """Take the coordinates from a typed `POINT(lng lat)`; blank clears them."""
        try:
            position = parse_point(text)
        except ValueError as e:
            raise ValidationError(str(e), field="geom") from e
        self.latitude, self.longitude = position or (None, None)

    def to_payload(self) -> dict:
        """Body for POST /marches/add and PUT /marches/{id}."""
        geom = None
        if self.latitude is not None and self.longitude is not None:
            geom = point_wkt(self.latitude, self.longitude)
        return {
            "num_marche": self.reference,
            "objet": self.subject,
            "annee": self.year,
            "num_boite": self.box_number,
            "organisme": self.organization,
            "type_communaute_publique": self.community_type,
            "geom": geom,
        }

    def to_dict(self) -> dict:
        return {
            "reference": self.reference,
            "subject": self.subject,
            "year": self.year,
            "box_number": self.box_number,
            "organization": self.organization,
            "community_type": self.community_type,
            "latitude": self.latitude,
            "longitude": self.longitude,
        }


def _optional_float(value) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


def _optional_int(value) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def _geom_position(geom) -> Tuple[Optional[float], Optional[float]]:
    """(lat, lng) from the `geom` WKT column; unreadable values count as unlocated."""
    if not isinstance(geom, str):
        return None, None
    try:
        return parse_point(geom) or (None, None)
    except ValueError:
        return None, None
