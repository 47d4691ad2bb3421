"""Geometry endpoints (/marche-geometries)."""

from typing import List

from marches_dashboard.errors import ServerRejectedError
from marches_dashboard.models import Geometry


class GeometriesApi:
    """Endpoints for shapes drawn on the map."""

    def __init__(self, client):
        self.client = client

    async def create(self, record_id: int, geometry: dict) -> Geometry:
        data = await self.client.post(
            "/marche-geometries/add",
            json={"marche_id": record_id, "geometry": geometry},
        )
        if not data:
            raise ServerRejectedError(200, "Empty response while saving the geometry")
        return self._parse(data, record_id)

    async def for_record(self, record_id: int) -> List[Geometry]:
        data = await self.client.get(f"/marche-geometries/{record_id}")
        return [self._parse(g, record_id) for g in (data or [])]

    @staticmethod
    def _parse(data, record_id: int) -> Geometry:
        """Decode one geometry; the backend may omit marche_id in its answer."""
        try:
            return Geometry.from_api({"marche_id": record_id, **data})
        except (KeyError, TypeError, ValueError) as e:
            raise ServerRejectedError(200, f"Unreadable geometry in the response: {e}") from e
