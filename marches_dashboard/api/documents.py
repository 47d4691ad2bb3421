"""
Document hierarchy endpoints (/docs) and piece endpoints (/pieces).
"""

from pathlib import Path
from typing import List, Optional

import aiohttp

from marches_dashboard.models import DocumentNode, Piece


class DocumentsApi:
    """Endpoints for document nodes ("dossiers")."""

    def __init__(self, client):
        self.client = client

    async def tree(self, record_id: int) -> List[DocumentNode]:
        """Flat node list of a record's hierarchy."""
        data = await self.client.get(f"/docs/tree/{record_id}")
        return [DocumentNode.from_api(d) for d in (data or [])]

    async def create(self, record_id: int, name: str, parent_id: Optional[int] = None) -> Optional[dict]:
        return await self.client.post(
            "/docs",
            json={"nom": name, "id_parent": parent_id, "marche_id": record_id},
        )

    async def rename(self, node_id: int, name: str) -> Optional[dict]:
        return await self.client.put(f"/docs/{node_id}", json={"nom": name})

    async def delete(self, node_id: int) -> None:
        await self.client.delete(f"/docs/{node_id}")

    async def count(self) -> int:
        data = await self.client.get("/docs/count")
        return int((data or {}).get("total") or 0)


class PiecesApi:
    """Endpoints for file attachments ("pièces")."""

    def __init__(self, client):
        self.client = client

    async def for_record(self, record_id: int) -> List[Piece]:
        data = await self.client.get(f"/pieces/marche/{record_id}")
        return [Piece.from_api(p) for p in (data or [])]

    async def upload(
        self,
        node_id: int,
        file_path: Path,
        description: str = "",
        piece_type: str = "originale",
        count: int = 1,
    ) -> Optional[dict]:
        """Multipart upload of one file into a folder."""
        file_path = Path(file_path)
        with open(file_path, "rb") as fh:
            form = aiohttp.FormData()
            form.add_field("file", fh, filename=file_path.name)
            form.add_field("hierarchie_id", str(node_id))
            form.add_field("description", description)
            form.add_field("type_piece", piece_type)
            form.add_field("nombre_pieces", str(count))
            return await self.client.post("/pieces/upload", data=form)

    async def update(
        self,
        piece_id: int,
        description: str,
        piece_type: str,
        count: int,
    ) -> Optional[dict]:
        return await self.client.put(
            f"/pieces/{piece_id}",
            json={"description": description, "type_piece": piece_type, "nombre_pieces": count},
        )

    async def delete(self, piece_id: int) -> None:
        await self.client.delete(f"/pieces/{piece_id}")

    async def count(self) -> int:
        data = await self.client.get("/pieces/count")
        return int((data or {}).get("total") or 0)

    async def download(self, piece: Piece, dest_dir: Path) -> Optional[Path]:
        """
        Save a piece's file under dest_dir.

        Returns:
            Path of the written file, or None when the piece has no file
        """
        url = piece.resolve_url(self.client.api_base)
        if not url:
            return None
        content = await self.client.download(url)
        dest_dir = Path(dest_dir)
        dest_dir.mkdir(parents=True, exist_ok=True)
        target = dest_dir / (piece.name or Path(piece.file_path).name)
        target.write_bytes(content)
        return target
