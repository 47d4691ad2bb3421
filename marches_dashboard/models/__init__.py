"""Data models for the marchés dashboard."""

from marches_dashboard.models.record import Record, RecordDraft
from marches_dashboard.models.documents import DocumentNode, Piece, TreeNode, PIECE_TYPES
from marches_dashboard.models.geometry import Geometry, GEOMETRY_TYPES
from marches_dashboard.models.pagination import Page, paginate
from marches_dashboard.models.user import User

__all__ = [
    "Record",
    "RecordDraft",
    "DocumentNode",
    "Piece",
    "TreeNode",
    "PIECE_TYPES",
    "Geometry",
    "GEOMETRY_TYPES",
    "Page",
    "paginate",
    "User",
]
