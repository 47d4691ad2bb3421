"""
Record endpoints (/marches).

List with pagination and filters, get by id, create, update, delete.
"""

from dataclasses import dataclass, fields
from typing import Dict, Optional, Union

from marches_dashboard.models import Page, Record, RecordDraft


@dataclass
class RecordFilters:
    """Search filters of the record list; blank values are not sent."""

    reference: str = ""  # num_marche
    subject: str = ""  # objet (substring)
    organization: str = ""  # organisme (substring)
    year: str = ""  # annee, ignored unless numeric
    box_number: str = ""  # num_boite
    community_type: str = ""  # type (substring of type_communaute_publique)

    # Query parameter name of each field
    PARAMS = {
        "reference": "num_marche",
        "subject": "objet",
        "organization": "organisme",
        "year": "annee",
        "box_number": "num_boite",
        "community_type": "type",
    }

    def to_params(self) -> Dict[str, Union[str, int]]:
        params: Dict[str, Union[str, int]] = {}
        for f in fields(self):
            value = str(getattr(self, f.name) or "").strip()
            if not value:
                continue
            if f.name == "year":
                try:
                    params["annee"] = int(value)
                except ValueError:
                    continue
            else:
                params[self.PARAMS[f.name]] = value
        return params

    def is_empty(self) -> bool:
        return not self.to_params()

    def clear(self) -> None:
        for f in fields(self):
            setattr(self, f.name, "")


class RecordsApi:
    """Endpoints for procurement records."""

    def __init__(self, client):
        self.client = client

    async def list(
        self,
        page: int = 1,
        limit: int = 25,
        filters: Optional[RecordFilters] = None,
    ) -> Page:
        params = {"page": page, "limit": limit}
        if filters:
            params.update(filters.to_params())
        data = await self.client.get("/marches", **params)
        # Older backends answer with a bare list
        if isinstance(data, list):
            data = {"data": data, "page": 1, "totalPages": 1, "totalItems": len(data)}
        return Page.from_response(data or {}, Record.from_api, limit=limit)

    async def get(self, record_id: int) -> Record:
        data = await self.client.get(f"/marches/{record_id}")
        return Record.from_api(data)

    async def create(self, draft: RecordDraft) -> Optional[dict]:
        return await self.client.post("/marches/add", json=draft.to_payload())

    async def update(self, record_id: int, draft: RecordDraft) -> Optional[dict]:
        return await self.client.put(f"/marches/{record_id}", json=draft.to_payload())

    async def delete(self, record_id: int) -> None:
        await self.client.delete(f"/marches/{record_id}")
