import asyncio
import sys
from pathlib import Path

import yaml

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from scripts.fix_slugs import verify_and_fix_all_slugs
from store import YamlMenuStore, read_store, write_store


def _seed(path: Path) -> None:
    write_store(
        {
            "restaurants": [
                {"id": "a", "name": "Café Central", "is_public": True},
                {
                    "id": "b",
                    "name": "Pizza",
                    "slug": "pizza",
                    "normalized_slug": "pizza",
                    "is_public": True,
                },
                {
                    "id": "c",
                    "name": "Tacos",
                    "slug": "tacos",
                    "normalized_slug": "tacos",
                    "is_public": False,
                },
            ],
            "menus": [],
            "slug_registry": {"tacos": {"restaurant_id": "someone-else"}},
        },
        path,
    )


def test_fix_assigns_and_registers(tmp_path: Path):
    path = tmp_path / "store.yaml"
    _seed(path)
    report = asyncio.run(verify_and_fix_all_slugs(YamlMenuStore(path)))

    assert report.checked == 3
    assert report.slugs_assigned == 1
    assert report.registry_created == 1
    assert report.not_public == ["c"]
    assert len(report.errors) == 1
    assert report.errors[0]["restaurant"] == "c"

    data = read_store(path)
    first = data["restaurants"][0]
    assert first["slug"] == "cafe-central"
    assert first["normalized_slug"] == "cafe-central"
    assert data["slug_registry"]["cafe-central"]["restaurant_id"] == "a"
    assert data["slug_registry"]["pizza"]["restaurant_id"] == "b"
    # Conflicting entries are reported, not rewritten.
    assert data["slug_registry"]["tacos"]["restaurant_id"] == "someone-else"


def test_dry_run_leaves_store_untouched(tmp_path: Path):
    path = tmp_path / "store.yaml"
    _seed(path)
    before = path.read_text(encoding="utf-8")
    report = asyncio.run(verify_and_fix_all_slugs(YamlMenuStore(path), dry_run=True))
    assert report.slugs_assigned == 1
    assert report.registry_created == 1
    assert path.read_text(encoding="utf-8") == before
    assert "slug" not in yaml.safe_load(before)["restaurants"][0]
