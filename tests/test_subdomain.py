import asyncio
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from config import config
from store import StoreError
import subdomain


class _Store:
    def __init__(self, restaurants=None, fail=False):
        self.restaurants = restaurants or {}
        self.fail = fail
        self.lookups = []

    async def fetch_target_by_slug(self, slug):
        self.lookups.append(slug)
        if self.fail:
            raise StoreError("offline")
        return self.restaurants.get(slug)


@pytest.fixture(autouse=True)
def _settings(monkeypatch):
    monkeypatch.setattr(config, "MAIN_SUBDOMAIN", "mi-menu-komin")
    monkeypatch.setattr(config, "PUBLIC_ORIGIN", "https://menus.example.com")
    monkeypatch.setattr(
        config,
        "SUBDOMAIN_ALIASES",
        {"heladeria-pistacho.web.app": "heladeria-pistacho"},
    )


@pytest.mark.parametrize(
    "host, expected",
    [
        ("pizzeria.menus.example.com", "pizzeria"),
        ("Pizzeria.Menus.Example.com:8443", "pizzeria"),
        ("heladeria-pistacho.web.app", "heladeria-pistacho"),
        ("www.menus.example.com", None),
        ("mi-menu-komin.web.app", None),
        ("example.com", None),
        ("localhost:8000", None),
        ("testserver", None),
        ("", None),
    ],
)
def test_subdomain_slug(host, expected):
    assert subdomain.subdomain_slug(host) == expected


def test_resolve_host_known_restaurant():
    store = _Store({"pizzeria": {"id": "abc123", "slug": "pizzeria"}})
    target = asyncio.run(subdomain.resolve_host("pizzeria.example.com", store))
    assert target == "/r/abc123"


def test_resolve_host_unknown_goes_home():
    store = _Store()
    target = asyncio.run(subdomain.resolve_host("ghost.example.com", store))
    assert target == "https://menus.example.com/"


def test_resolve_host_store_failure_goes_home():
    store = _Store(fail=True)
    target = asyncio.run(subdomain.resolve_host("pizzeria.example.com", store))
    assert target == "https://menus.example.com/"


def test_resolve_host_ignores_app_hosts():
    store = _Store()
    assert asyncio.run(subdomain.resolve_host("www.example.com", store)) is None
    assert store.lookups == []
