"""YAML-backed document store for restaurants, menus and the slug registry."""

# pylint: disable=duplicate-code

from __future__ import annotations

import asyncio
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from config import config
from utils.logging import configure_logger

STORE_FILE = Path(config.STORE_PATH)

LOG_FILE = Path(config.LOG_DIR) / "store.log"
logger = configure_logger(__name__, LOG_FILE)

Document = Dict[str, Any]

COLLECTIONS = ("restaurants", "menus")

# Serializes read-modify-write cycles on the YAML file.
_WRITE_LOCK = threading.Lock()


class StoreError(Exception):
    """The store could not be read or written."""


class SlugConflict(ValueError):
    """The slug is registered to another restaurant."""

    def __init__(self, slug: str, owner_id: str):
        super().__init__(f"Slug {slug!r} is already used by another restaurant")
        self.slug = slug
        self.owner_id = owner_id


class RestaurantNotFound(LookupError):
    """No restaurant exists with the requested id."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _empty() -> Dict[str, Any]:
    return {"restaurants": [], "menus": [], "slug_registry": {}}


def read_store(path: Path = STORE_FILE) -> Dict[str, Any]:
    """Return the whole store document, empty collections when missing."""
    path = Path(path)
    if not path.exists():
        logger.info("%s does not exist", path)
        return _empty()
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise StoreError(f"Could not read {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise StoreError(f"{path} does not contain a mapping")
    for name in COLLECTIONS:
        data[name] = list(data.get(name) or [])
    data["slug_registry"] = dict(data.get("slug_registry") or {})
    return data


def write_store(data: Dict[str, Any], path: Path = STORE_FILE) -> None:
    """Write the whole store document to YAML."""
    path = Path(path).expanduser()
    logger.info(
        "Writing %d restaurants and %d menus to %s",
        len(data.get("restaurants", [])),
        len(data.get("menus", [])),
        path,
    )
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as handle:
            yaml.dump(data, handle, sort_keys=False, allow_unicode=True)
    except (OSError, yaml.YAMLError) as exc:
        raise StoreError(f"Could not write {path}: {exc}") from exc


def _find_restaurant(data: Dict[str, Any], restaurant_id: str) -> Optional[Document]:
    for restaurant in data["restaurants"]:
        if str(restaurant.get("id")) == restaurant_id:
            return restaurant
    return None


class YamlMenuStore:
    """Async lookups and slug updates over a single YAML document.

    Blocking file access runs in a worker thread so the event loop stays free.
    """

    def __init__(self, path: Path | str = STORE_FILE):
        self.path = Path(path)

    def load(self) -> Dict[str, Any]:
        return read_store(self.path)

    def save(self, data: Dict[str, Any]) -> None:
        write_store(data, self.path)

    async def fetch_target_by_id(self, restaurant_id: str) -> Optional[Document]:
        """Return the restaurant with ``restaurant_id`` regardless of visibility."""
        data = await asyncio.to_thread(self.load)
        restaurant = _find_restaurant(data, restaurant_id)
        return dict(restaurant) if restaurant else None

    async def fetch_target_by_slug(self, slug: str) -> Optional[Document]:
        """Return the public restaurant using ``slug`` now or in the past."""
        data = await asyncio.to_thread(self.load)
        for restaurant in data["restaurants"]:
            if restaurant.get("slug") == slug and restaurant.get("is_public"):
                return dict(restaurant)

        entry = data["slug_registry"].get(slug)
        if not entry:
            return None
        restaurant = _find_restaurant(data, str(entry.get("restaurant_id")))
        if restaurant and restaurant.get("is_public"):
            logger.info("Slug %s resolved through the registry", slug)
            return dict(restaurant)
        return None

    async def fetch_child_by_slug(
        self, parent_id: str, slug: str
    ) -> Optional[Document]:
        """Return the non-deleted menu of ``parent_id`` with ``slug``."""
        data = await asyncio.to_thread(self.load)
        for menu in data["menus"]:
            if (
                str(menu.get("restaurant_id")) == parent_id
                and menu.get("slug") == slug
                and not menu.get("deleted", False)
            ):
                return dict(menu)
        return None

    async def exists_slug(self, candidate: str, exclude_id: str | None = None) -> bool:
        """Return True when ``candidate`` is taken by a restaurant other than
        ``exclude_id``, currently or through the registry."""
        data = await asyncio.to_thread(self.load)
        for restaurant in data["restaurants"]:
            if str(restaurant.get("id")) == exclude_id:
                continue
            if candidate in (restaurant.get("slug"), restaurant.get("normalized_slug")):
                return True
        entry = data["slug_registry"].get(candidate)
        return bool(entry) and str(entry.get("restaurant_id")) != exclude_id

    async def list_restaurants(self) -> List[Document]:
        data = await asyncio.to_thread(self.load)
        return [dict(restaurant) for restaurant in data["restaurants"]]

    async def list_menus(self, restaurant_id: str) -> List[Document]:
        data = await asyncio.to_thread(self.load)
        return [
            dict(menu)
            for menu in data["menus"]
            if str(menu.get("restaurant_id")) == restaurant_id
            and not menu.get("deleted", False)
        ]

    async def registry_entry(self, slug: str) -> Optional[Document]:
        data = await asyncio.to_thread(self.load)
        entry = data["slug_registry"].get(slug)
        return dict(entry) if entry else None

    async def set_restaurant_slug(self, restaurant_id: str, slug: str) -> Document:
        """Make ``slug`` the current slug of ``restaurant_id``.

        Older registry entries are kept so previous slugs still resolve.
        """
        return await asyncio.to_thread(self._set_restaurant_slug, restaurant_id, slug)

    def _set_restaurant_slug(self, restaurant_id: str, slug: str) -> Document:
        with _WRITE_LOCK:
            return self._apply_restaurant_slug(restaurant_id, slug)

    def _apply_restaurant_slug(self, restaurant_id: str, slug: str) -> Document:
        data = self.load()
        restaurant = _find_restaurant(data, restaurant_id)
        if restaurant is None:
            raise RestaurantNotFound(restaurant_id)

        for other in data["restaurants"]:
            if other is not restaurant and slug in (
                other.get("slug"),
                other.get("normalized_slug"),
            ):
                raise SlugConflict(slug, str(other.get("id")))
        registry = data["slug_registry"]
        entry = registry.get(slug)
        if entry and str(entry.get("restaurant_id")) != restaurant_id:
            raise SlugConflict(slug, str(entry.get("restaurant_id")))

        now = _now()
        previous = restaurant.get("slug")
        restaurant["slug"] = slug
        restaurant["normalized_slug"] = slug
        restaurant["updated_at"] = now
        registry[slug] = {
            "restaurant_id": restaurant_id,
            "created_at": (entry or {}).get("created_at", now),
            "updated_at": now,
        }
        if previous and previous != slug and previous not in registry:
            registry[previous] = {
                "restaurant_id": restaurant_id,
                "created_at": now,
                "updated_at": now,
            }
        self.save(data)
        logger.info(
            "Restaurant %s slug changed from %s to %s", restaurant_id, previous, slug
        )
        return dict(restaurant)

    async def register_slug(self, restaurant_id: str, slug: str) -> None:
        """Add a registry entry for ``slug`` without touching the restaurant."""
        await asyncio.to_thread(self._register_slug, restaurant_id, slug)

    def _register_slug(self, restaurant_id: str, slug: str) -> None:
        with _WRITE_LOCK:
            self._apply_registration(restaurant_id, slug)

    def _apply_registration(self, restaurant_id: str, slug: str) -> None:
        data = self.load()
        entry = data["slug_registry"].get(slug)
        if entry and str(entry.get("restaurant_id")) != restaurant_id:
            raise SlugConflict(slug, str(entry.get("restaurant_id")))
        now = _now()
        data["slug_registry"][slug] = {
            "restaurant_id": restaurant_id,
            "created_at": (entry or {}).get("created_at", now),
            "updated_at": now,
        }
        self.save(data)


def get_store() -> YamlMenuStore:
    """Return a store bound to the configured ``STORE_PATH``."""
    return YamlMenuStore(Path(config.STORE_PATH))
