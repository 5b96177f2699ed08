"""Map tenant subdomains to public menu paths."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from config import config
from store import StoreError
from utils.logging import configure_logger

LOG_FILE = Path(config.LOG_DIR) / "subdomain.log"
logger = configure_logger(__name__, LOG_FILE)


def subdomain_slug(host: str) -> Optional[str]:
    """Return the restaurant slug a host points at, or None for app hosts."""

    hostname = (host or "").split(":", 1)[0].strip().lower().rstrip(".")
    if not hostname:
        return None
    alias = config.SUBDOMAIN_ALIASES.get(hostname)
    if alias:
        return alias

    labels = hostname.split(".")
    if len(labels) <= 2 or labels[0] == "www":
        return None
    if labels[0] == config.MAIN_SUBDOMAIN:
        return None
    return labels[0]


async def resolve_host(host: str, store) -> Optional[str]:
    """Return the path to redirect a tenant host to, or None when not handled.

    A known restaurant goes to its ``/r/<id>`` page. A missing restaurant or a
    store failure sends the visitor to the root of ``PUBLIC_ORIGIN``.
    """

    slug = subdomain_slug(host)
    if slug is None:
        return None
    home = f"{config.PUBLIC_ORIGIN.rstrip('/')}/"
    logger.info("Subdomain lookup host=%s slug=%s", host, slug)
    try:
        restaurant = await store.fetch_target_by_slug(slug)
    except StoreError as exc:
        logger.error("Subdomain lookup failed for %s: %s", host, exc)
        return home
    if not restaurant:
        logger.info("No restaurant for subdomain %s", slug)
        return home
    return f"/r/{restaurant['id']}"
