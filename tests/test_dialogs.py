import pytest

from marches_dashboard.errors import DialogAlreadyOpenError, InvalidTransitionError
from marches_dashboard.ui.browser import DocumentBrowser
from marches_dashboard.ui.dialogs import DialogKind, DialogState


@pytest.fixture
async def browser(api, settings):
    b = DocumentBrowser(api, 1, settings=settings)
    await b.load()
    return b


def tree_fetches(backend):
    return backend.requests.count("GET /docs/tree/1")


class TestLifecycle:
    async def test_open_seeds_defaults(self, browser):
        create = browser.open_create_folder(parent_id=1)
        assert create.state == DialogState.OPEN
        assert create.name == ""
        assert create.parent_id == 1

        rename = browser.open_rename_folder(2)
        assert rename.name == "Contrats"

        edit = browser.open_edit_piece(11)
        assert (edit.description, edit.piece_type, edit.count) == ("", "copie", 3)

        upload = browser.open_upload()
        assert (upload.piece_type, upload.count, upload.file_path) == ("originale", 1, None)

    async def test_same_kind_cannot_open_twice(self, browser):
        browser.open_create_folder()
        with pytest.raises(DialogAlreadyOpenError):
            browser.open_create_folder(parent_id=1)

    async def test_different_kinds_stack_in_open_order(self, browser):
        browser.open_create_folder()
        browser.open_delete_folder(3)
        assert browser.dialogs.top.kind == DialogKind.DELETE_FOLDER
        assert browser.dialogs.states() == {"create-folder": "open", "delete-folder": "open"}

    async def test_cancel_makes_no_call(self, browser, backend):
        before = list(backend.requests)
        dialog = browser.open_delete_folder(3)
        browser.cancel(DialogKind.DELETE_FOLDER)
        assert dialog.state == DialogState.CLOSED
        assert not browser.dialogs.is_open(DialogKind.DELETE_FOLDER)
        assert backend.requests == before

    async def test_confirm_unknown_dialog(self, browser):
        with pytest.raises(InvalidTransitionError):
            await browser.confirm(DialogKind.RENAME_FOLDER)


class TestFolders:
    async def test_create_folder_refetches_and_expands_parent(self, browser, backend):
        fetches = tree_fetches(backend)
        dialog = browser.open_create_folder(parent_id=3)
        dialog.name = "  Coupes  "

        result = await browser.confirm(DialogKind.CREATE_FOLDER)
        assert result.ok
        assert backend.nodes[-1]["nom"] == "Coupes"
        assert backend.nodes[-1]["id_parent"] == 3
        assert tree_fetches(backend) == fetches + 1
        assert dialog.state == DialogState.CLOSED
        assert browser.is_expanded(3)
        assert [c.name for c in browser.roots[1].children] == ["Coupes"]

    async def test_blank_name_is_rejected_before_any_call(self, browser, backend):
        dialog = browser.open_create_folder()
        dialog.name = "   "
        result = await browser.confirm(DialogKind.CREATE_FOLDER)
        assert not result.ok
        assert dialog.error == "Folder name is required"
        assert dialog.state == DialogState.OPEN
        assert "POST /docs" not in backend.requests

    async def test_failure_keeps_dialog_open_with_input(self, browser, backend):
        backend.fail.add("PUT /docs/2")
        dialog = browser.open_rename_folder(2)
        dialog.name = "Contrats signés"
        result = await browser.confirm(DialogKind.RENAME_FOLDER)
        assert not result.ok
        assert dialog.error == "Erreur serveur"
        assert dialog.state == DialogState.OPEN
        assert dialog.name == "Contrats signés"
        assert browser.dialogs.get(DialogKind.RENAME_FOLDER) is dialog

    async def test_gateway_error_page_keeps_dialog_open(self, browser, backend):
        backend.canned["PUT /docs/1"] = (502, "application/json", "<html>Bad Gateway</html>")
        fetches = tree_fetches(backend)
        dialog = browser.open_rename_folder(1)
        dialog.name = "Administratif"
        result = await browser.confirm(DialogKind.RENAME_FOLDER)
        assert not result.ok
        assert dialog.state == DialogState.OPEN
        assert dialog.error == "Failed to rename the folder"
        assert tree_fetches(backend) == fetches + 1

    async def test_delete_folder(self, browser, backend):
        browser.open_delete_folder(3)
        result = await browser.confirm(DialogKind.DELETE_FOLDER)
        assert result.ok
        assert [n.id for n in browser.roots] == [1]

    async def test_folder_options_show_paths(self, browser):
        assert browser.folder_options() == [
            (1, "Dossier administratif"),
            (2, "Dossier administratif / Contrats"),
            (3, "Plans"),
        ]

    async def test_toggle_and_search(self, browser):
        assert browser.toggle(1) is True
        assert browser.is_expanded(1)
        assert browser.toggle(1) is False

        browser.set_query("contrat")
        assert [n.id for n in browser.roots] == [1]
        assert [p.id for p in browser.roots[0].children[0].pieces] == [10]
        assert browser.is_expanded(2)


class TestPieces:
    async def test_upload_needs_a_file_and_a_folder(self, browser, tmp_path):
        dialog = browser.open_upload()
        result = await browser.confirm(DialogKind.UPLOAD_PIECE)
        assert dialog.error == "Choose a file to upload"

        dialog.file_path = tmp_path / "scan.pdf"
        result = await browser.confirm(DialogKind.UPLOAD_PIECE)
        assert not result.ok
        assert dialog.error == "Choose a destination folder"

    async def test_upload(self, browser, backend, tmp_path):
        source = tmp_path / "scan.pdf"
        source.write_bytes(b"scan")
        dialog = browser.open_upload(node_id=3)
        dialog.file_path = source
        dialog.count = 2
        result = await browser.confirm(DialogKind.UPLOAD_PIECE)
        assert result.ok
        assert [p.name for p in browser.roots[1].pieces] == ["plan.png", "scan.pdf"]
        assert browser.notifier.visible_banners[-1].message == "File uploaded"

    async def test_edit_piece_validates_count_and_type(self, browser, backend):
        dialog = browser.open_edit_piece(10)
        dialog.count = 0
        await browser.confirm(DialogKind.EDIT_PIECE)
        assert dialog.error == "Number of pieces must be at least 1"

        dialog.count = 1
        dialog.piece_type = "scan"
        await browser.confirm(DialogKind.EDIT_PIECE)
        assert "originale" in dialog.error
        assert not any(r.startswith("PUT /pieces") for r in backend.requests)

        dialog.piece_type = "copie"
        result = await browser.confirm(DialogKind.EDIT_PIECE)
        assert result.ok
        assert browser.store.piece(10).piece_type == "copie"

    async def test_delete_piece_goes_through_confirmation(self, browser, backend):
        browser.select_piece(10)
        dialog = browser.open_delete_piece(10)
        assert dialog.name == "contrat.pdf"
        assert "DELETE /pieces/10" not in backend.requests

        result = await browser.confirm(DialogKind.DELETE_PIECE)
        assert result.ok
        assert browser.store.piece(10) is None
        assert browser.selected_piece is None

    async def test_preview_has_nothing_to_confirm(self, browser, settings):
        dialog = browser.preview(11)
        assert dialog.url == f"{settings.api_base}/uploads/plan.png"
        assert browser.selected_piece.id == 11
        with pytest.raises(InvalidTransitionError):
            await browser.confirm(DialogKind.PREVIEW_FILE)
        browser.cancel(DialogKind.PREVIEW_FILE)
        assert browser.dialogs.top is None

    async def test_download(self, browser, tmp_path):
        target = await browser.download(10, tmp_path)
        assert target == tmp_path / "contrat.pdf"
        assert target.read_bytes() == b"content of contrat.pdf"
