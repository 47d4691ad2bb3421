"""Shared fixtures: an in-process fake of the dashboard backend."""

import math
from dataclasses import replace

import pytest
from aiohttp import web

from marches_dashboard.api import ApiClient
from marches_dashboard.config import DashboardSettings
from marches_dashboard.models import DocumentNode, Piece, Record


def make_record(i: int) -> dict:
    located = i % 2 == 1
    return {
        "id": i,
        "num_marche": f"M-{i:03d}",
        "objet": f"Travaux lot {i}",
        "annee": 2020 + i % 3,
        "num_boite": f"B{i}",
        "organisme": "Commune de Fès" if i % 3 else "Région Fès-Meknès",
        "type_communaute_publique": "Commune" if i % 3 else "Région",
        "latitude": 34.0 + i * 0.001 if located else None,
        "longitude": -5.0 if located else None,
        "created_at": "2024-01-01T00:00:00Z",
    }


class FakeBackend:
    """In-memory state and aiohttp routes mimicking the REST API."""

    def __init__(self, record_count: int = 30):
        self.records = {i: make_record(i) for i in range(1, record_count + 1)}
        self.nodes = [
            {"id": 1, "nom": "Dossier administratif", "id_parent": None, "marche_id": 1},
            {"id": 2, "nom": "Contrats", "id_parent": 1, "marche_id": 1},
            {"id": 3, "nom": "Plans", "id_parent": None, "marche_id": 1},
        ]
        self.pieces = [
            {"id": 10, "nom": "contrat.pdf", "fichier_path": "/uploads/contrat.pdf",
             "type_piece": "originale", "description": "Contrat signé", "nombre_pieces": 1,
             "created_at": "", "hierarchie_id": 2},
            {"id": 11, "nom": "plan.png", "fichier_path": "/uploads/plan.png",
             "type_piece": "copie", "description": "", "nombre_pieces": 3,
             "created_at": "", "hierarchie_id": 3},
        ]
        self.geometries = []
        self.requests = []
        self.uploads = []
        self.fail = set()  # "METHOD /path" keys answered with HTTP 500
        self.canned = {}  # "METHOD /path" -> (status, content type, raw body)
        self.require_auth = False
        self.token = "session-token"

    def _next_id(self, items) -> int:
        return max([x["id"] for x in items] or [0]) + 1

    @web.middleware
    async def middleware(self, request, handler):
        key = f"{request.method} {request.path}"
        self.requests.append(key)
        if key in self.fail:
            return web.json_response({"message": "Erreur serveur"}, status=500)
        if key in self.canned:
            status, content_type, text = self.canned[key]
            return web.Response(status=status, text=text, content_type=content_type)
        if self.require_auth and request.cookies.get("token") != self.token:
            return web.json_response({"message": "Non authentifié"}, status=401)
        return await handler(request)

    def make_app(self) -> web.Application:
        app = web.Application(middlewares=[self.middleware])
        app.router.add_get("/marches", self.list_records)
        app.router.add_post("/marches/add", self.create_record)
        app.router.add_get("/marches/{id}", self.get_record)
        app.router.add_put("/marches/{id}", self.update_record)
        app.router.add_delete("/marches/{id}", self.delete_record)
        app.router.add_get("/docs/count", self.count_docs)
        app.router.add_get("/docs/tree/{id}", self.doc_tree)
        app.router.add_post("/docs", self.create_doc)
        app.router.add_put("/docs/{id}", self.rename_doc)
        app.router.add_delete("/docs/{id}", self.delete_doc)
        app.router.add_get("/pieces/count", self.count_pieces)
        app.router.add_get("/pieces/marche/{id}", self.record_pieces)
        app.router.add_post("/pieces/upload", self.upload_piece)
        app.router.add_put("/pieces/{id}", self.update_piece)
        app.router.add_delete("/pieces/{id}", self.delete_piece)
        app.router.add_post("/marche-geometries/add", self.add_geometry)
        app.router.add_get("/marche-geometries/{id}", self.record_geometries)
        app.router.add_post("/auth/login", self.login)
        app.router.add_post("/auth/logout", self.logout)
        app.router.add_get("/auth/currentUser", self.current_user)
        app.router.add_post("/auth/register", self.register)
        app.router.add_get("/uploads/{name}", self.serve_file)
        return app

    # Records

    async def list_records(self, request):
        q = request.query
        page = int(q.get("page", 1))
        limit = int(q.get("limit", 25))
        rows = sorted(self.records.values(), key=lambda r: r["id"])
        if q.get("num_marche"):
            rows = [r for r in rows if q["num_marche"].lower() in r["num_marche"].lower()]
        if q.get("objet"):
            rows = [r for r in rows if q["objet"].lower() in r["objet"].lower()]
        if q.get("organisme"):
            rows = [r for r in rows if q["organisme"].lower() in r["organisme"].lower()]
        if q.get("annee"):
            rows = [r for r in rows if r["annee"] == int(q["annee"])]
        total = len(rows)
        start = (page - 1) * limit
        return web.json_response({
            "data": rows[start:start + limit],
            "page": page,
            "limit": limit,
            "totalPages": max(1, math.ceil(total / limit)),
            "totalItems": total,
        })

    async def get_record(self, request):
        record = self.records.get(int(request.match_info["id"]))
        if record is None:
            return web.json_response({"message": "Marché introuvable"}, status=404)
        return web.json_response(record)

    async def create_record(self, request):
        body = await request.json()
        new_id = self._next_id(list(self.records.values()))
        self.records[new_id] = dict(body, id=new_id)
        return web.json_response(self.records[new_id], status=201)

    async def update_record(self, request):
        record_id = int(request.match_info["id"])
        self.records[record_id].update(await request.json())
        return web.json_response(self.records[record_id])

    async def delete_record(self, request):
        self.records.pop(int(request.match_info["id"]), None)
        return web.json_response({"message": "Marché supprimé"})

    # Documents

    async def count_docs(self, request):
        return web.json_response({"total": len(self.nodes)})

    async def doc_tree(self, request):
        record_id = int(request.match_info["id"])
        return web.json_response([n for n in self.nodes if n["marche_id"] == record_id])

    async def create_doc(self, request):
        body = await request.json()
        node = {"id": self._next_id(self.nodes), **body}
        self.nodes.append(node)
        return web.json_response(node, status=201)

    async def rename_doc(self, request):
        node_id = int(request.match_info["id"])
        body = await request.json()
        for n in self.nodes:
            if n["id"] == node_id:
                n["nom"] = body["nom"]
                return web.json_response(n)
        return web.json_response({"message": "Dossier introuvable"}, status=404)

    async def delete_doc(self, request):
        node_id = int(request.match_info["id"])
        self.nodes = [n for n in self.nodes if n["id"] != node_id]
        return web.Response(status=204)

    # Pieces

    async def count_pieces(self, request):
        return web.json_response({"total": len(self.pieces)})

    async def record_pieces(self, request):
        record_id = int(request.match_info["id"])
        owned = {n["id"] for n in self.nodes if n["marche_id"] == record_id}
        return web.json_response([p for p in self.pieces if p["hierarchie_id"] in owned])

    async def upload_piece(self, request):
        form = await request.post()
        upload = form["file"]
        piece = {
            "id": self._next_id(self.pieces),
            "nom": upload.filename,
            "fichier_path": f"/uploads/{upload.filename}",
            "type_piece": form["type_piece"],
            "description": form["description"],
            "nombre_pieces": int(form["nombre_pieces"]),
            "created_at": "",
            "hierarchie_id": int(form["hierarchie_id"]),
        }
        self.uploads.append(upload.file.read())
        self.pieces.append(piece)
        return web.json_response(piece, status=201)

    async def update_piece(self, request):
        piece_id = int(request.match_info["id"])
        body = await request.json()
        for p in self.pieces:
            if p["id"] == piece_id:
                p.update(body)
                return web.json_response(p)
        return web.json_response({"message": "Pièce introuvable"}, status=404)

    async def delete_piece(self, request):
        piece_id = int(request.match_info["id"])
        self.pieces = [p for p in self.pieces if p["id"] != piece_id]
        return web.json_response({"message": "Pièce supprimée"})

    async def serve_file(self, request):
        return web.Response(body=f"content of {request.match_info['name']}".encode())

    # Geometries

    async def add_geometry(self, request):
        body = await request.json()
        geometry = {"id": len(self.geometries) + 1, "created_at": "", **body}
        self.geometries.append(geometry)
        return web.json_response(geometry, status=201)

    async def record_geometries(self, request):
        record_id = int(request.match_info["id"])
        return web.json_response([g for g in self.geometries if g["marche_id"] == record_id])

    # Auth

    async def login(self, request):
        body = await request.json()
        if body.get("password") != "secret":
            return web.json_response({"message": "Identifiants invalides"}, status=401)
        resp = web.json_response({"message": "Connexion réussie"})
        resp.set_cookie("token", self.token)
        return resp

    async def logout(self, request):
        resp = web.json_response({"message": "Déconnecté"})
        resp.del_cookie("token")
        return resp

    async def current_user(self, request):
        if request.cookies.get("token") != self.token:
            return web.json_response({"message": "Non authentifié"}, status=401)
        return web.json_response(
            {"user": {"id": 1, "name": "Amina", "last_name": "Benali", "email": "amina@example.org"}}
        )

    async def register(self, request):
        return web.json_response({"message": "Utilisateur créé"}, status=201)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
async def server(aiohttp_server, backend):
    return await aiohttp_server(backend.make_app())


@pytest.fixture
def base_settings(tmp_path):
    return DashboardSettings(
        state_dir=tmp_path / "state",
        banner_duration=0.05,
        navigation_delay=0.01,
    )


@pytest.fixture
def settings(server, base_settings):
    return replace(base_settings, api_base=str(server.make_url("/")).rstrip("/"))


@pytest.fixture
async def api(settings):
    async with ApiClient(settings) as client:
        yield client


# Plain model fixtures for tests that need no server

@pytest.fixture
def records():
    return [Record.from_api(make_record(i)) for i in range(1, 31)]


@pytest.fixture
def nodes():
    return [
        DocumentNode(1, "Root A"),
        DocumentNode(2, "Child A1", parent_id=1),
        DocumentNode(3, "Grandchild A1a", parent_id=2),
        DocumentNode(4, "Root B", parent_id=0),
        DocumentNode(5, "Orphan", parent_id=99),
        DocumentNode(6, "Under orphan", parent_id=5),
    ]


@pytest.fixture
def pieces():
    return [
        Piece(100, "a1.pdf", node_id=2),
        Piece(101, "a1a.pdf", node_id=3),
        Piece(102, "b.pdf", node_id=4),
        Piece(103, "lost.pdf", node_id=5),
    ]


