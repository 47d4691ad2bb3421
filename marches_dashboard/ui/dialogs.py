"""
Modal dialogs of the document browser.

Every dialog kind is a dataclass holding its own input and lifecycle state:

    closed -> open -> confirmed | cancelled -> closed

Confirming runs exactly one mutation through a Command. On success the
caller's collection is re-fetched and the dialog closes; on failure the
server message is stored on the dialog, which stays open with its input
intact.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, ClassVar, Dict, List, Optional

from marches_dashboard.errors import (
    DialogAlreadyOpenError,
    InvalidTransitionError,
    ValidationError,
)
from marches_dashboard.models import DocumentNode, Piece, PIECE_TYPES
from marches_dashboard.sync.commands import Command, CommandResult

logger = logging.getLogger(__name__)


class DialogKind(str, Enum):
    CREATE_FOLDER = "create-folder"
    RENAME_FOLDER = "rename-folder"
    DELETE_FOLDER = "delete-folder"
    UPLOAD_PIECE = "upload-piece"
    EDIT_PIECE = "edit-piece"
    DELETE_PIECE = "delete-piece"
    PREVIEW_FILE = "preview-file"


class DialogState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


def _check_piece_fields(piece_type: str, count: int) -> None:
    if piece_type not in PIECE_TYPES:
        raise ValidationError(f"Piece type must be one of {', '.join(PIECE_TYPES)}", field="type_piece")
    if count < 1:
        raise ValidationError("Number of pieces must be at least 1", field="nombre_pieces")


@dataclass
class Dialog:
    """Lifecycle shared by every dialog kind."""

    kind: ClassVar[DialogKind]
    failure_message: ClassVar[str] = "The operation failed"

    state: DialogState = DialogState.CLOSED
    error: Optional[str] = None

    def validate(self) -> None:
        """Raise ValidationError when the input cannot be submitted."""

    async def mutate(self, api, record_id: int) -> Any:
        raise InvalidTransitionError(f"The {self.kind.value} dialog has nothing to confirm")


@dataclass
class CreateFolderDialog(Dialog):
    kind: ClassVar[DialogKind] = DialogKind.CREATE_FOLDER
    failure_message: ClassVar[str] = "Failed to create the folder"

    parent_id: Optional[int] = None
    name: str = ""

    def validate(self) -> None:
        if not self.name.strip():
            raise ValidationError("Folder name is required", field="nom")

    async def mutate(self, api, record_id: int) -> Any:
        return await api.documents.create(record_id, self.name.strip(), self.parent_id)


@dataclass
class RenameFolderDialog(Dialog):
    kind: ClassVar[DialogKind] = DialogKind.RENAME_FOLDER
    failure_message: ClassVar[str] = "Failed to rename the folder"

    node_id: int = 0
    name: str = ""

    @classmethod
    def for_node(cls, node: DocumentNode) -> "RenameFolderDialog":
        return cls(node_id=node.id, name=node.name)

    def validate(self) -> None:
        if not self.name.strip():
            raise ValidationError("Folder name is required", field="nom")

    async def mutate(self, api, record_id: int) -> Any:
        return await api.documents.rename(self.node_id, self.name.strip())


@dataclass
class DeleteFolderDialog(Dialog):
    kind: ClassVar[DialogKind] = DialogKind.DELETE_FOLDER
    failure_message: ClassVar[str] = "Failed to delete the folder"

    node_id: int = 0
    name: str = ""

    @classmethod
    def for_node(cls, node: DocumentNode) -> "DeleteFolderDialog":
        return cls(node_id=node.id, name=node.name)

    async def mutate(self, api, record_id: int) -> Any:
        return await api.documents.delete(self.node_id)


@dataclass
class UploadPieceDialog(Dialog):
    kind: ClassVar[DialogKind] = DialogKind.UPLOAD_PIECE
    failure_message: ClassVar[str] = "Failed to upload the file"

    node_id: Optional[int] = None
    file_path: Optional[Path] = None
    description: str = ""
    piece_type: str = "originale"
    count: int = 1

    def validate(self) -> None:
        if self.file_path is None:
            raise ValidationError("Choose a file to upload", field="file")
        if self.node_id is None:
            raise ValidationError("Choose a destination folder", field="hierarchie_id")
        if not Path(self.file_path).is_file():
            raise ValidationError(f"File not found: {self.file_path}", field="file")
        _check_piece_fields(self.piece_type, self.count)

    async def mutate(self, api, record_id: int) -> Any:
        return await api.pieces.upload(
            self.node_id,
            Path(self.file_path),
            description=self.description,
            piece_type=self.piece_type,
            count=self.count,
        )


@dataclass
class EditPieceDialog(Dialog):
    kind: ClassVar[DialogKind] = DialogKind.EDIT_PIECE
    failure_message: ClassVar[str] = "Failed to update the piece"

    piece_id: int = 0
    description: str = ""
    piece_type: str = "originale"
    count: int = 1

    @classmethod
    def for_piece(cls, piece: Piece) -> "EditPieceDialog":
        return cls(
            piece_id=piece.id,
            description=piece.description,
            piece_type=piece.piece_type,
            count=piece.count,
        )

    def validate(self) -> None:
        _check_piece_fields(self.piece_type, self.count)

    async def mutate(self, api, record_id: int) -> Any:
        return await api.pieces.update(self.piece_id, self.description, self.piece_type, self.count)


@dataclass
class DeletePieceDialog(Dialog):
    kind: ClassVar[DialogKind] = DialogKind.DELETE_PIECE
    failure_message: ClassVar[str] = "Failed to delete the piece"

    piece_id: int = 0
    name: str = ""

    @classmethod
    def for_piece(cls, piece: Piece) -> "DeletePieceDialog":
        return cls(piece_id=piece.id, name=piece.name)

    async def mutate(self, api, record_id: int) -> Any:
        return await api.pieces.delete(self.piece_id)


@dataclass
class PreviewFileDialog(Dialog):
    kind: ClassVar[DialogKind] = DialogKind.PREVIEW_FILE

    piece: Optional[Piece] = None
    url: Optional[str] = None


class DialogCoordinator:
    """
    Stack of open dialogs for one page.

    Different kinds may be open together; the stack order is the z-order.
    """

    def __init__(self, api, record_id: int):
        self.api = api
        self.record_id = record_id
        self.stack: List[Dialog] = []

    def open(self, dialog: Dialog) -> Dialog:
        if self.is_open(dialog.kind):
            raise DialogAlreadyOpenError(f"A {dialog.kind.value} dialog is already open")
        dialog.state = DialogState.OPEN
        dialog.error = None
        self.stack.append(dialog)
        logger.debug(f"Opened {dialog.kind.value} dialog")
        return dialog

    def is_open(self, kind: DialogKind) -> bool:
        return self.get(kind) is not None

    def get(self, kind: DialogKind) -> Optional[Dialog]:
        for dialog in self.stack:
            if dialog.kind == kind:
                return dialog
        return None

    @property
    def top(self) -> Optional[Dialog]:
        return self.stack[-1] if self.stack else None

    def _require(self, kind: DialogKind) -> Dialog:
        dialog = self.get(kind)
        if dialog is None:
            raise InvalidTransitionError(f"No {kind.value} dialog is open")
        return dialog

    def _close(self, dialog: Dialog) -> None:
        if dialog in self.stack:
            self.stack.remove(dialog)
        dialog.state = DialogState.CLOSED

    def cancel(self, kind: DialogKind) -> None:
        """Close a dialog without any call."""
        dialog = self._require(kind)
        dialog.state = DialogState.CANCELLED
        self._close(dialog)

    close = cancel

    async def confirm(
        self,
        kind: DialogKind,
        refetch: Optional[Callable[[], Awaitable[Any]]] = None,
        on_success: Optional[Callable[[Any], None]] = None,
    ) -> CommandResult:
        """
        Submit the open dialog of `kind`.

        Validation failures and server errors are stored on the dialog, which
        stays open.
        """
        dialog = self._require(kind)
        if dialog.kind == DialogKind.PREVIEW_FILE:
            raise InvalidTransitionError("The preview dialog has nothing to confirm")

        try:
            dialog.validate()
        except ValidationError as e:
            dialog.error = str(e)
            return CommandResult(ok=False, error=e, message=str(e))

        dialog.state = DialogState.CONFIRMED
        dialog.error = None

        def succeeded(value):
            self._close(dialog)
            if on_success:
                on_success(value)

        def failed(message: str):
            dialog.error = message
            dialog.state = DialogState.OPEN

        command = Command(
            label=f"{kind.value} (record {self.record_id})",
            execute=lambda: dialog.mutate(self.api, self.record_id),
            refetch=refetch,
            on_success=succeeded,
            on_failure=failed,
            failure_message=dialog.failure_message,
        )
        try:
            return await command.run()
        finally:
            # A confirmed dialog that was neither closed nor failed goes back to open
            if dialog.state == DialogState.CONFIRMED and dialog in self.stack:
                dialog.state = DialogState.OPEN

    def states(self) -> Dict[str, str]:
        return {d.kind.value: d.state.value for d in self.stack}
