"""Build and inspect public menu links."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional
from urllib.parse import parse_qs, urlencode, urlsplit

from config import config


def public_menu_url(
    restaurant: Mapping[str, Any],
    menu: Optional[Mapping[str, Any]] = None,
    params: Optional[Mapping[str, Any]] = None,
) -> str:
    """Return the public path for a restaurant and optional menu.

    Restaurants without a slug fall back to ``/r/<id>``. ``mesa`` comes first
    in the query, ``lang`` is dropped when it is the default language and any
    other truthy parameter is appended as given.
    """

    if not restaurant:
        raise ValueError("restaurant is required")

    slug = restaurant.get("slug")
    base = f"/{slug}" if slug else f"/r/{restaurant.get('id')}"
    menu_slug = menu.get("slug") if menu else None
    path = f"{base}/{menu_slug}" if menu_slug else base

    params = params or {}
    query: Dict[str, Any] = {}
    if params.get("mesa"):
        query["mesa"] = params["mesa"]
    lang = params.get("lang")
    if lang and lang != config.DEFAULT_LANG:
        query["lang"] = lang
    for key, value in params.items():
        if key not in ("mesa", "lang") and value:
            query[key] = value

    return f"{path}?{urlencode(query)}" if query else path


def full_public_menu_url(
    restaurant: Mapping[str, Any],
    menu: Optional[Mapping[str, Any]] = None,
    params: Optional[Mapping[str, Any]] = None,
    origin: Optional[str] = None,
) -> str:
    base = (origin or config.PUBLIC_ORIGIN).rstrip("/")
    return base + public_menu_url(restaurant, menu, params)


def table_qr_url(
    restaurant: Mapping[str, Any],
    table_number,
    menu: Optional[Mapping[str, Any]] = None,
) -> str:
    """Return the URL encoded in a table's QR code."""
    return full_public_menu_url(restaurant, menu, {"mesa": table_number})


def social_share_url(
    restaurant: Mapping[str, Any],
    menu: Optional[Mapping[str, Any]] = None,
    lang: Optional[str] = None,
) -> str:
    params = {"lang": lang} if lang and lang != config.DEFAULT_LANG else {}
    return full_public_menu_url(restaurant, menu, params)


def is_canonical_url(
    current_path: str,
    restaurant: Mapping[str, Any],
    menu: Optional[Mapping[str, Any]] = None,
) -> bool:
    """Return True when ``current_path`` (query ignored) is the canonical path."""
    return current_path.split("?", 1)[0] == public_menu_url(restaurant, menu)


def canonical_url(
    current_url: str,
    restaurant: Mapping[str, Any],
    menu: Optional[Mapping[str, Any]] = None,
) -> str:
    """Return the canonical URL for ``current_url``, keeping its query string.

    Relative input returns the bare canonical path.
    """
    parts = urlsplit(current_url or "")
    canonical_path = public_menu_url(restaurant, menu)
    if not (parts.scheme and parts.netloc):
        return canonical_path
    query = f"?{parts.query}" if parts.query else ""
    return f"{parts.scheme}://{parts.netloc}{canonical_path}{query}"


def parse_menu_url(url: str) -> Dict[str, Optional[str]]:
    """Extract the table number and language from a menu URL."""
    params = parse_qs(urlsplit(url or "").query)
    mesa = params.get("mesa", [None])[0]
    lang = params.get("lang", [None])[0] or config.DEFAULT_LANG
    return {"mesa": mesa, "lang": lang}
