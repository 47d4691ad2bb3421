"""
Document hierarchy data models.

Contains dataclasses for document nodes ("dossiers"), the file attachments
they own ("pièces"), and the derived tree view built from both.
"""

from dataclasses import dataclass, field
from typing import List, Optional


PIECE_TYPES = ("originale", "copie")


@dataclass
class DocumentNode:
    """
    A folder-like node in a record's document hierarchy.

    A node with a null parent is a root. Parent ids are not checked by the
    backend, so the flat list may reference missing parents or loop.
    """

    id: int
    name: str = ""  # nom
    parent_id: Optional[int] = None  # id_parent
    record_id: Optional[int] = None  # marche_id

    @classmethod
    def from_api(cls, data: dict) -> "DocumentNode":
        parent = data.get("id_parent")
        record = data.get("marche_id")
        return cls(
            id=int(data["id"]),
            name=data.get("nom") or "",
            parent_id=int(parent) if parent is not None else None,
            record_id=int(record) if record is not None else None,
        )


@dataclass
class Piece:
    """A file attachment owned by exactly one document node."""

    id: int
    name: str = ""  # nom
    file_path: str = ""  # fichier_path
    piece_type: str = "originale"  # type_piece
    description: str = ""
    count: int = 1  # nombre_pieces
    created_at: str = ""
    node_id: Optional[int] = None  # hierarchie_id

    @classmethod
    def from_api(cls, data: dict) -> "Piece":
        node = data.get("hierarchie_id")
        return cls(
            id=int(data["id"]),
            name=data.get("nom") or "",
            file_path=data.get("fichier_path") or "",
            piece_type=data.get("type_piece") or "originale",
            description=data.get("description") or "",
            count=int(data.get("nombre_pieces") or 1),
            created_at=data.get("created_at") or "",
            node_id=int(node) if node is not None else None,
        )

    def resolve_url(self, api_base: str) -> Optional[str]:
        """
        Absolute URL of the stored file.

        Absolute paths are kept as is; server-relative ones are resolved
        against the API base.
        """
        if not self.file_path:
            return None
        if self.file_path.startswith("http"):
            return self.file_path
        return f"{api_base.rstrip('/')}{self.file_path}"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "nom": self.name,
            "fichier_path": self.file_path,
            "type_piece": self.piece_type,
            "description": self.description,
            "nombre_pieces": self.count,
            "created_at": self.created_at,
            "hierarchie_id": self.node_id,
        }


@dataclass
class TreeNode:
    """
    View of a document node with its direct children and owned pieces.

    Derived, never stored: rebuilt from the flat lists on every fetch.
    """

    node: DocumentNode
    children: List["TreeNode"] = field(default_factory=list)
    pieces: List[Piece] = field(default_factory=list)

    @property
    def id(self) -> int:
        return self.node.id

    @property
    def name(self) -> str:
        return self.node.name

    def to_dict(self) -> dict:
        return {
            "id": self.node.id,
            "nom": self.node.name,
            "id_parent": self.node.parent_id,
            "marche_id": self.node.record_id,
            "children": [c.to_dict() for c in self.children],
            "pieces": [p.to_dict() for p in self.pieces],
        }
