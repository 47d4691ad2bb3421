"""
Document browser of one record: folder tree, pieces, preview and dialogs.
"""

import logging
from pathlib import Path
from typing import List, Optional, Set, Tuple

from marches_dashboard.config import DashboardSettings, DEFAULT_SETTINGS
from marches_dashboard.errors import DashboardError, InvalidTransitionError, user_message
from marches_dashboard.models import Piece, TreeNode
from marches_dashboard.sync.commands import CommandResult
from marches_dashboard.sync.stores import DocumentTreeStore
from marches_dashboard.tree import count_pieces, filter_tree, iter_nodes
from marches_dashboard.ui.dialogs import (
    CreateFolderDialog,
    DeleteFolderDialog,
    DeletePieceDialog,
    DialogCoordinator,
    DialogKind,
    EditPieceDialog,
    PreviewFileDialog,
    RenameFolderDialog,
    UploadPieceDialog,
)
from marches_dashboard.ui.notifier import Notifier

logger = logging.getLogger(__name__)


SUCCESS_MESSAGES = {
    DialogKind.CREATE_FOLDER: "Folder created",
    DialogKind.RENAME_FOLDER: "Folder renamed",
    DialogKind.DELETE_FOLDER: "Folder deleted",
    DialogKind.UPLOAD_PIECE: "File uploaded",
    DialogKind.EDIT_PIECE: "Piece updated",
    DialogKind.DELETE_PIECE: "Piece deleted",
}


def piece_count_label(node: TreeNode) -> str:
    return f"{count_pieces(node)} pièce(s)"


class DocumentBrowser:
    """View state of the documents page of one record."""

    def __init__(
        self,
        api,
        record_id: int,
        notifier: Optional[Notifier] = None,
        settings: DashboardSettings = DEFAULT_SETTINGS,
    ):
        self.api = api
        self.record_id = record_id
        self.settings = settings
        self.notifier = notifier or Notifier(settings.banner_duration)
        self.store = DocumentTreeStore(api, record_id)
        self.dialogs = DialogCoordinator(api, record_id)
        self.open_folders: Set[int] = set()
        self.query = ""
        self.selected_piece_id: Optional[int] = None

    async def load(self) -> None:
        await self.store.fetch()
        # Folders that disappeared stay closed if they come back
        known = {n.id for n in self.store.nodes}
        self.open_folders &= known

    @property
    def error(self) -> Optional[str]:
        return self.store.error

    # ------------------------------------------------------------------
    # Tree view
    # ------------------------------------------------------------------

    @property
    def roots(self) -> List[TreeNode]:
        """Visible forest, narrowed by the search query."""
        return filter_tree(self.store.roots, self.query)

    def set_query(self, query: str) -> None:
        self.query = query

    def is_expanded(self, node_id: int) -> bool:
        # Search results are shown fully expanded
        return bool(self.query.strip()) or node_id in self.open_folders

    def toggle(self, node_id: int) -> bool:
        """Open or close a folder; returns the new expanded state."""
        if node_id in self.open_folders:
            self.open_folders.discard(node_id)
            return False
        self.open_folders.add(node_id)
        return True

    def expand(self, node_id: Optional[int]) -> None:
        if node_id is not None:
            self.open_folders.add(node_id)

    def folder_options(self) -> List[Tuple[int, str]]:
        """(id, "Parent / Child") pairs for the upload destination picker."""
        options = []
        forest = self.store.forest
        for node in iter_nodes(self.store.roots):
            names = [a.name for a in reversed(forest.ancestors(node.id))] if forest else []
            options.append((node.id, " / ".join(names + [node.name])))
        return options

    # ------------------------------------------------------------------
    # Pieces
    # ------------------------------------------------------------------

    def select_piece(self, piece_id: Optional[int]) -> Optional[Piece]:
        if piece_id is None:
            self.selected_piece_id = None
            return None
        piece = self._piece(piece_id)
        self.selected_piece_id = piece.id
        return piece

    @property
    def selected_piece(self) -> Optional[Piece]:
        if self.selected_piece_id is None:
            return None
        return self.store.piece(self.selected_piece_id)

    def preview(self, piece_id: int) -> PreviewFileDialog:
        """Open the preview of a piece's file."""
        piece = self.select_piece(piece_id)
        dialog = PreviewFileDialog(piece=piece, url=piece.resolve_url(self.settings.api_base))
        return self.dialogs.open(dialog)

    async def download(self, piece_id: int, dest_dir: Path) -> Optional[Path]:
        """
        Save a piece's file locally.

        Returns:
            Written path, or None when the piece has no file or the download
            failed (an alert is raised)
        """
        piece = self._piece(piece_id)
        try:
            target = await self.api.pieces.download(piece, dest_dir)
        except DashboardError as e:
            logger.error(f"Download of piece {piece_id} failed: {e}")
            self.notifier.alert(user_message(e, "Failed to download the file"))
            return None
        if target is None:
            self.notifier.alert("This piece has no file attached")
        return target

    def _piece(self, piece_id: int) -> Piece:
        piece = self.store.piece(piece_id)
        if piece is None:
            raise InvalidTransitionError(f"Unknown piece {piece_id}")
        return piece

    def _node(self, node_id: int):
        node = self.store.node(node_id)
        if node is None:
            raise InvalidTransitionError(f"Unknown folder {node_id}")
        return node

    # ------------------------------------------------------------------
    # Dialogs
    # ------------------------------------------------------------------

    def open_create_folder(self, parent_id: Optional[int] = None) -> CreateFolderDialog:
        if parent_id is not None:
            self._node(parent_id)
        return self.dialogs.open(CreateFolderDialog(parent_id=parent_id))

    def open_rename_folder(self, node_id: int) -> RenameFolderDialog:
        return self.dialogs.open(RenameFolderDialog.for_node(self._node(node_id)))

    def open_delete_folder(self, node_id: int) -> DeleteFolderDialog:
        return self.dialogs.open(DeleteFolderDialog.for_node(self._node(node_id)))

    def open_upload(self, node_id: Optional[int] = None) -> UploadPieceDialog:
        return self.dialogs.open(UploadPieceDialog(node_id=node_id))

    def open_edit_piece(self, piece_id: int) -> EditPieceDialog:
        return self.dialogs.open(EditPieceDialog.for_piece(self._piece(piece_id)))

    def open_delete_piece(self, piece_id: int) -> DeletePieceDialog:
        return self.dialogs.open(DeletePieceDialog.for_piece(self._piece(piece_id)))

    def cancel(self, kind: DialogKind) -> None:
        self.dialogs.cancel(kind)

    async def confirm(self, kind: DialogKind) -> CommandResult:
        """Submit a dialog, then reload the whole tree."""
        dialog = self.dialogs.get(kind)

        def succeeded(_value):
            if isinstance(dialog, CreateFolderDialog):
                self.expand(dialog.parent_id)
            if isinstance(dialog, DeletePieceDialog) and self.selected_piece_id == dialog.piece_id:
                self.selected_piece_id = None
            self.notifier.banner(SUCCESS_MESSAGES[kind])

        return await self.dialogs.confirm(kind, refetch=self.load, on_success=succeeded)
