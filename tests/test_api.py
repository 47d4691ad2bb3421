from dataclasses import replace

import pytest

from marches_dashboard.api import ApiClient, RecordFilters, build_url
from marches_dashboard.errors import (
    AuthenticationRequiredError,
    NetworkUnreachableError,
    ServerRejectedError,
    user_message,
)
from marches_dashboard.models import RecordDraft


def test_build_url_joins_slashes():
    assert build_url("http://api:5001/", "/marches") == "http://api:5001/marches"
    assert build_url("http://api:5001", "marches") == "http://api:5001/marches"


async def test_list_second_page(api):
    page = await api.records.list(page=2, limit=25)
    assert [r.id for r in page.items] == [26, 27, 28, 29, 30]
    assert page.total_pages == 2
    assert page.total_items == 30


async def test_list_sends_filters(api, backend):
    page = await api.records.list(filters=RecordFilters(organization="région", year="2020"))
    assert page.items
    assert all(r.organization.startswith("Région") and r.year == 2020 for r in page.items)


async def test_get_missing_record_surfaces_server_message(api):
    with pytest.raises(ServerRejectedError) as exc:
        await api.records.get(999)
    assert exc.value.status == 404
    assert user_message(exc.value, "fallback") == "Marché introuvable"


async def test_server_error_message_is_surfaced(api, backend):
    backend.fail.add("GET /docs/count")
    with pytest.raises(ServerRejectedError) as exc:
        await api.documents.count()
    assert user_message(exc.value, "Failed to count") == "Erreur serveur"


async def test_gateway_page_labelled_as_json(api, backend):
    backend.canned["PUT /docs/1"] = (502, "application/json", "<html>Bad Gateway</html>")
    with pytest.raises(ServerRejectedError) as exc:
        await api.documents.rename(1, "Nouveau nom")
    assert exc.value.status == 502
    assert user_message(exc.value, "Failed to rename") == "Failed to rename"


async def test_malformed_success_body(api, backend):
    backend.canned["GET /docs/count"] = (200, "application/json", "{not json")
    with pytest.raises(ServerRejectedError):
        await api.documents.count()


async def test_create_record_posts_wkt(api, backend):
    await api.records.create(RecordDraft(reference="M-100", subject="Pont", year=2024, latitude=34.0, longitude=-5.0))
    created = backend.records[31]
    assert created["num_marche"] == "M-100"
    assert created["geom"] == "POINT (-5 34)"


async def test_document_endpoints(api, backend):
    nodes = await api.documents.tree(1)
    assert [n.id for n in nodes] == [1, 2, 3]
    await api.documents.create(1, "Factures", parent_id=1)
    assert backend.nodes[-1] == {"id": 4, "nom": "Factures", "id_parent": 1, "marche_id": 1}
    await api.documents.rename(4, "Factures 2024")
    assert backend.nodes[-1]["nom"] == "Factures 2024"
    assert await api.documents.delete(4) is None
    assert await api.documents.count() == 3


async def test_upload_is_multipart(api, backend, tmp_path):
    source = tmp_path / "devis.pdf"
    source.write_bytes(b"%PDF-1.4 devis")
    await api.pieces.upload(2, source, description="Devis", piece_type="copie", count=2)
    piece = backend.pieces[-1]
    assert piece["nom"] == "devis.pdf"
    assert piece["hierarchie_id"] == 2
    assert piece["type_piece"] == "copie"
    assert piece["nombre_pieces"] == 2
    assert backend.uploads == [b"%PDF-1.4 devis"]


async def test_download_piece(api, tmp_path):
    pieces = await api.pieces.for_record(1)
    target = await api.pieces.download(pieces[0], tmp_path / "out")
    assert target.read_bytes() == b"content of contrat.pdf"


async def test_geometry_roundtrip(api):
    polygon = {"type": "Polygon", "coordinates": [[[0, 0], [1, 0], [1, 1], [0, 0]]]}
    saved = await api.geometries.create(3, polygon)
    assert saved.record_id == 3
    assert [g.geometry_type for g in await api.geometries.for_record(3)] == ["Polygon"]


async def test_login_sets_token_cookie(api):
    token = await api.auth.login("amina@example.org", "secret")
    assert token == "session-token"
    user = await api.auth.current_user()
    assert user.display_name == "Amina Benali"

    await api.auth.logout()
    assert api.token is None
    with pytest.raises(AuthenticationRequiredError):
        await api.auth.current_user()


async def test_login_with_bad_password(api):
    with pytest.raises(AuthenticationRequiredError) as exc:
        await api.auth.login("amina@example.org", "wrong")
    assert exc.value.server_message == "Identifiants invalides"


async def test_restored_token_is_sent(settings, backend):
    backend.require_auth = True
    async with ApiClient(settings, token="session-token") as client:
        page = await client.records.list()
    assert page.total_items == 30


async def test_unreachable_backend(base_settings):
    settings = replace(base_settings, api_base="http://127.0.0.1:1", request_timeout=5)
    async with ApiClient(settings) as client:
        with pytest.raises(NetworkUnreachableError) as exc:
            await client.records.list()
    assert "http://127.0.0.1:1" in str(exc.value)
    assert user_message(exc.value, "fallback") == str(exc.value)


async def test_saved_geometry_without_record_id_in_answer(api, backend):
    line = {"type": "LineString", "coordinates": [[-5.0, 34.0], [-5.1, 34.1]]}
    backend.canned["POST /marche-geometries/add"] = (
        201, "application/json", '{"id": 7, "geometry": {"type": "LineString", "coordinates": []}}'
    )
    saved = await api.geometries.create(4, line)
    assert (saved.id, saved.record_id) == (7, 4)


async def test_unreadable_geometry_is_rejected(api, backend):
    backend.canned["POST /marche-geometries/add"] = (201, "application/json", '"ok"')
    with pytest.raises(ServerRejectedError):
        await api.geometries.create(4, {"type": "Point", "coordinates": [0, 0]})
