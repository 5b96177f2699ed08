import sys
from pathlib import Path

import yaml
from fastapi.testclient import TestClient

# pylint: disable=wrong-import-position, import-outside-toplevel

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from config import config  # noqa: E402
from main import app  # noqa: E402
from routes import slugs as slugs_route  # noqa: E402
from slugs import GenerationExhausted, validate_slug  # noqa: E402
from store import write_store  # noqa: E402
from conftest import OPAQUE_ID  # noqa: E402


def test_normalize_and_validate(store_path):
    with TestClient(app) as client:
        normalized = client.get("/api/slugs/normalize", params={"text": "Café Central!"})
        short = client.get("/api/slugs/validate", params={"slug": "ab"})
        valid = client.get("/api/slugs/validate", params={"slug": "abc"})
    assert normalized.json()["slug"] == "cafe-central"
    assert short.json()["is_valid"] is False
    assert short.json()["error"] == "TOO_SHORT"
    assert short.json()["message"]
    assert valid.json() == {
        "slug": "abc",
        "is_valid": True,
        "error": None,
        "message": None,
    }


def test_suggestions(store_path):
    with TestClient(app) as client:
        response = client.get(
            "/api/slugs/suggestions", params={"name": "La Casa del Sabor"}
        )
    assert response.status_code == 200
    assert response.json()["suggestions"][0] == "la-casa-del-sabor"


def test_availability(store_path):
    with TestClient(app) as client:
        taken = client.get("/api/slugs/available", params={"slug": "pizza"})
        own = client.get(
            "/api/slugs/available",
            params={"slug": "pizza", "restaurant_id": OPAQUE_ID},
        )
        reserved = client.get("/api/slugs/available", params={"slug": "admin"})
    assert taken.json()["available"] is False
    assert own.json()["available"] is True
    assert reserved.json()["available"] is False
    assert reserved.json()["error"] == "RESERVED"


def test_update_slug_normalizes_and_keeps_old_slug_working(store_path):
    with TestClient(app) as client:
        response = client.put("/api/restaurants/cafe1/slug", json={"slug": "El Café"})
        old = client.get("/cafe-central?mesa=1", follow_redirects=False)
        new = client.get("/el-cafe")
    assert response.status_code == 200
    assert response.json() == {
        "id": "cafe1",
        "slug": "el-cafe",
        "path": "/el-cafe",
        "url": "http://testserver/el-cafe",
    }
    assert old.status_code == 308
    assert old.headers["location"] == "/el-cafe?mesa=1"
    assert new.json()["restaurant"]["id"] == "cafe1"

    data = yaml.safe_load(store_path.read_text(encoding="utf-8"))
    assert data["slug_registry"]["el-cafe"]["restaurant_id"] == "cafe1"
    assert "cafe-central" in data["slug_registry"]


def test_update_slug_rejects_invalid(store_path):
    with TestClient(app) as client:
        response = client.put("/api/restaurants/cafe1/slug", json={"slug": "Admin"})
    assert response.status_code == 422
    assert response.json()["detail"]["error"] == "RESERVED"
    assert response.json()["detail"]["slug"] == "admin"


def test_update_slug_conflict_and_missing(store_path):
    with TestClient(app) as client:
        conflict = client.put(
            "/api/restaurants/hidden1/slug", json={"slug": "cafe-central"}
        )
        missing = client.put("/api/restaurants/nope/slug", json={"slug": "whatever"})
    assert conflict.status_code == 409
    assert missing.status_code == 404


def test_update_slug_requires_api_key_when_configured(store_path, monkeypatch):
    monkeypatch.setattr(config, "API_KEY", "secret")
    with TestClient(app) as client:
        denied = client.put("/api/restaurants/cafe1/slug", json={"slug": "el-cafe"})
        allowed = client.put(
            "/api/restaurants/cafe1/slug",
            json={"slug": "el-cafe"},
            headers={"X-API-Key": "secret"},
        )
    assert denied.status_code == 401
    assert allowed.status_code == 200


def test_generate_slug_skips_taken_candidates(store_path):
    with TestClient(app) as client:
        response = client.post("/api/restaurants/noslug1/slug/generate")
        missing = client.post("/api/restaurants/nope/slug/generate")
    assert response.status_code == 200
    assert response.json()["slug"] == "pizza-2"
    assert missing.status_code == 404


def test_generate_slug_exhausted(store_path, monkeypatch):
    async def exhausted(text, exists):
        raise GenerationExhausted("pizza")

    monkeypatch.setattr(slugs_route, "generate_unique_slug", exhausted)
    with TestClient(app) as client:
        response = client.post("/api/restaurants/noslug1/slug/generate")
    assert response.status_code == 500


def test_links(store_path):
    params = {"menu_slug": "almuerzo", "mesa": "3", "lang": "en"}
    with TestClient(app) as client:
        response = client.get("/api/restaurants/cafe1/links", params=params)
        plain = client.get("/api/restaurants/noslug1/links")
    assert response.status_code == 200
    assert response.json() == {
        "path": "/cafe-central/almuerzo?mesa=3&lang=en",
        "url": "http://testserver/cafe-central/almuerzo?mesa=3&lang=en",
        "share": "http://testserver/cafe-central/almuerzo?lang=en",
        "qr": "http://testserver/cafe-central/almuerzo?mesa=3",
    }
    assert plain.json()["path"] == "/r/noslug1"


def test_generate_slug_for_long_name_stays_within_limit(monkeypatch, tmp_path):
    long_slug = "a" * 50
    path = tmp_path / "store.yaml"
    write_store(
        {
            "restaurants": [
                {
                    "id": "x1",
                    "name": long_slug,
                    "slug": long_slug,
                    "normalized_slug": long_slug,
                    "is_public": True,
                },
                {"id": "x2", "name": long_slug, "is_public": True},
            ],
            "menus": [],
            "slug_registry": {long_slug: {"restaurant_id": "x1"}},
        },
        path,
    )
    monkeypatch.setattr(config, "STORE_PATH", path)
    monkeypatch.setattr(config, "API_KEY", "")
    monkeypatch.setattr(config, "PUBLIC_ORIGIN", "http://testserver")
    with TestClient(app) as client:
        response = client.post("/api/restaurants/x2/slug/generate")
    assert response.status_code == 200
    slug = response.json()["slug"]
    assert slug == "a" * 48 + "-1"
    assert validate_slug(slug).is_valid is True
