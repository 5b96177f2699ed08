import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from config import config
from store import write_store

OPAQUE_ID = "Jl3VJXhpF2JjU7baOb5h"


@pytest.fixture
def store_path(monkeypatch, tmp_path: Path) -> Path:
    """Point the app at a seeded YAML store."""
    path = tmp_path / "store.yaml"
    write_store(
        {
            "restaurants": [
                {
                    "id": "cafe1",
                    "name": "Café Central",
                    "slug": "cafe-central",
                    "normalized_slug": "cafe-central",
                    "is_public": True,
                },
                {
                    "id": OPAQUE_ID,
                    "name": "Pizza!",
                    "slug": "pizza",
                    "normalized_slug": "pizza",
                    "is_public": True,
                },
                {
                    "id": "hidden1",
                    "name": "Hidden Place",
                    "slug": "hidden-place",
                    "normalized_slug": "hidden-place",
                    "is_public": False,
                },
                {"id": "noslug1", "name": "Pizza!", "is_public": True},
            ],
            "menus": [
                {"id": "m1", "restaurant_id": "cafe1", "slug": "almuerzo"},
            ],
            "slug_registry": {
                "cafe-central": {"restaurant_id": "cafe1"},
                "pizza": {"restaurant_id": OPAQUE_ID},
                "pizza-1": {"restaurant_id": "someone-else"},
            },
        },
        path,
    )
    monkeypatch.setattr(config, "STORE_PATH", path)
    monkeypatch.setattr(config, "API_KEY", "")
    monkeypatch.setattr(config, "REDIRECT_STATUS", 308)
    monkeypatch.setattr(config, "PUBLIC_ORIGIN", "http://testserver")
    monkeypatch.setattr(config, "SUBDOMAIN_ALIASES", {})
    return path
