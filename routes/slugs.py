"""API routes for slug validation, suggestions, links and slug updates."""

# pylint: disable=duplicate-code

from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from config import config
from links import full_public_menu_url, public_menu_url, social_share_url, table_qr_url
from slugs import (
    GenerationExhausted,
    generate_slug_suggestions,
    generate_unique_slug,
    normalize_slug,
    validate_slug,
)
from store import RestaurantNotFound, SlugConflict, StoreError, get_store
from utils.auth import enforce_api_key
from utils.logging import configure_logger

router = APIRouter(prefix="/api")

LOG_FILE = Path(config.LOG_DIR) / "slugs.log"
logger = configure_logger(__name__, LOG_FILE)


class SlugUpdateRequest(BaseModel):
    """Payload schema for changing a restaurant slug."""

    slug: str = Field(..., min_length=1)


def _validation_payload(slug: str) -> dict:
    result = validate_slug(slug)
    return {
        "slug": slug,
        "is_valid": result.is_valid,
        "error": result.error.value if result.error else None,
        "message": result.message,
    }


def _store_unavailable(exc: StoreError) -> HTTPException:
    logger.error("Store failure: %s", exc)
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Store unavailable, please retry.",
    )


def _slug_response(restaurant: dict) -> dict:
    return {
        "id": restaurant["id"],
        "slug": restaurant["slug"],
        "path": public_menu_url(restaurant),
        "url": full_public_menu_url(restaurant),
    }


@router.get("/slugs/normalize")
def normalize_endpoint(text: str = Query("")):
    """Return the canonical slug for arbitrary text."""
    logger.info("GET /api/slugs/normalize")
    return {"text": text, "slug": normalize_slug(text)}


@router.get("/slugs/validate")
def validate_endpoint(slug: str = Query("")):
    """Validate a candidate slug without touching the store."""
    logger.info("GET /api/slugs/validate slug_length=%s", len(slug))
    return _validation_payload(slug)


@router.get("/slugs/suggestions")
def suggestions_endpoint(name: str = Query(..., min_length=1)):
    """Return valid slug suggestions for a restaurant name."""
    logger.info("GET /api/slugs/suggestions")
    return {"name": name, "suggestions": generate_slug_suggestions(name)}


@router.get("/slugs/available")
async def availability_endpoint(
    slug: str = Query(...), restaurant_id: Optional[str] = Query(None)
):
    """Validate a slug and report whether another restaurant holds it."""
    logger.info("GET /api/slugs/available slug=%s", slug)
    payload = _validation_payload(slug)
    if not payload["is_valid"]:
        payload["available"] = False
        return payload
    try:
        taken = await get_store().exists_slug(slug, exclude_id=restaurant_id)
    except StoreError as exc:
        raise _store_unavailable(exc) from exc
    payload["available"] = not taken
    return payload


@router.put("/restaurants/{restaurant_id}/slug")
async def update_slug(
    restaurant_id: str,
    payload: SlugUpdateRequest,
    _: None = Depends(enforce_api_key),
):
    """Normalize, validate and assign a new slug to a restaurant."""
    slug = normalize_slug(payload.slug)
    logger.info("PUT /api/restaurants/%s/slug slug=%s", restaurant_id, slug)
    result = validate_slug(slug)
    if not result.is_valid:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "slug": slug,
                "error": result.error.value,
                "message": result.message,
            },
        )
    try:
        restaurant = await get_store().set_restaurant_slug(restaurant_id, slug)
    except RestaurantNotFound as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Restaurant not found"
        ) from exc
    except SlugConflict as exc:
        logger.warning("Slug %s already taken by %s", slug, exc.owner_id)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail=str(exc)
        ) from exc
    except StoreError as exc:
        raise _store_unavailable(exc) from exc
    return _slug_response(restaurant)


@router.post("/restaurants/{restaurant_id}/slug/generate")
async def generate_slug(restaurant_id: str, _: None = Depends(enforce_api_key)):
    """Derive a unique slug from the restaurant name and assign it."""
    logger.info("POST /api/restaurants/%s/slug/generate", restaurant_id)
    store = get_store()
    try:
        restaurant = await store.fetch_target_by_id(restaurant_id)
        if restaurant is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Restaurant not found"
            )

        async def exists(candidate: str) -> bool:
            return await store.exists_slug(candidate, exclude_id=restaurant_id)

        slug = await generate_unique_slug(restaurant.get("name", ""), exists)
        restaurant = await store.set_restaurant_slug(restaurant_id, slug)
    except GenerationExhausted as exc:
        logger.error("Slug generation exhausted for %s: %s", restaurant_id, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc
    except SlugConflict as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail=str(exc)
        ) from exc
    except StoreError as exc:
        raise _store_unavailable(exc) from exc
    return _slug_response(restaurant)


@router.get("/restaurants/{restaurant_id}/links")
async def restaurant_links(
    restaurant_id: str,
    menu_slug: Optional[str] = Query(None),
    mesa: Optional[str] = Query(None),
    lang: Optional[str] = Query(None),
):
    """Return the public, QR and share links for a restaurant."""
    logger.info("GET /api/restaurants/%s/links", restaurant_id)
    store = get_store()
    try:
        restaurant = await store.fetch_target_by_id(restaurant_id)
        menu = None
        if restaurant and menu_slug:
            menu = await store.fetch_child_by_slug(restaurant_id, menu_slug)
    except StoreError as exc:
        raise _store_unavailable(exc) from exc
    if restaurant is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Restaurant not found"
        )
    if menu_slug and menu is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Menu not found")

    response = {
        "path": public_menu_url(restaurant, menu, {"mesa": mesa, "lang": lang}),
        "url": full_public_menu_url(restaurant, menu, {"mesa": mesa, "lang": lang}),
        "share": social_share_url(restaurant, menu, lang),
    }
    if mesa:
        response["qr"] = table_qr_url(restaurant, mesa, menu)
    return response
