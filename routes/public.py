"""Public menu routes resolved by slug or legacy id."""

# pylint: disable=duplicate-code

from pathlib import Path
from typing import List

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import RedirectResponse

from config import config
from links import full_public_menu_url
from resolver import (
    Found,
    NotFound,
    Redirect,
    ResolutionOutcome,
    ResolutionSession,
    TransientError,
)
from store import get_store
from utils.logging import configure_logger

router = APIRouter()

LOG_FILE = Path(config.LOG_DIR) / "public.log"
logger = configure_logger(__name__, LOG_FILE)

RETRY_AFTER_SECONDS = "5"


def _render(outcome: ResolutionOutcome):
    if isinstance(outcome, Redirect):
        return RedirectResponse(outcome.path, status_code=config.REDIRECT_STATUS)
    if isinstance(outcome, Found):
        return {
            "restaurant": outcome.target,
            "menu": outcome.child,
            "canonical_url": full_public_menu_url(outcome.target, outcome.child),
        }
    if isinstance(outcome, NotFound):
        detail = "Menu not found" if outcome.reason == "menu" else "Restaurant not found"
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
    if isinstance(outcome, TransientError):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="The menu could not be loaded right now. Please try again.",
            headers={"Retry-After": RETRY_AFTER_SECONDS},
        )
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Unexpected resolution outcome",
    )


async def _resolve(request: Request, segments: List[str]):
    logger.info("GET %s", request.url.path)
    session = ResolutionSession(get_store(), segments, request.url.query)
    try:
        outcome = await session.run()
    finally:
        session.close()
    if outcome is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Request cancelled",
        )
    return _render(outcome)


@router.get("/r/{restaurant_id}")
async def public_menu_by_id(restaurant_id: str, request: Request):
    """Return a public restaurant by its permanent id."""
    return await _resolve(request, ["r", restaurant_id])


@router.get("/r/{restaurant_id}/{menu_slug}")
async def public_menu_by_id_and_menu(
    restaurant_id: str, menu_slug: str, request: Request
):
    """Return a menu of a public restaurant addressed by id."""
    return await _resolve(request, ["r", restaurant_id, menu_slug])


@router.get("/{restaurant_slug}")
async def public_menu_by_slug(restaurant_slug: str, request: Request):
    """Return a public restaurant, redirecting to its canonical slug."""
    return await _resolve(request, [restaurant_slug])


@router.get("/{restaurant_slug}/{menu_slug}")
async def public_menu_by_slugs(restaurant_slug: str, menu_slug: str, request: Request):
    """Return a restaurant menu, redirecting to canonical slugs."""
    return await _resolve(request, [restaurant_slug, menu_slug])
