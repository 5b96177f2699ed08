"""FastAPI application entrypoint."""

# pylint: disable=duplicate-code

import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse

from routes import public, slugs
from config import config
from store import get_store
from subdomain import resolve_host

LOG_FILE = Path(config.LOG_DIR) / "server.log"
LOG_FILE.parent.mkdir(parents=True, exist_ok=True)

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.FileHandler(LOG_FILE, encoding="utf-8")
    formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)

logger.info("Initializing FastAPI app")
app = FastAPI()


@app.middleware("http")
async def subdomain_redirect(request: Request, call_next):
    """Send visitors of a tenant subdomain root to that tenant's menu."""
    if request.url.path == "/":
        target = await resolve_host(request.headers.get("host", ""), get_store())
        if target is not None:
            return RedirectResponse(target, status_code=config.REDIRECT_STATUS)
    return await call_next(request)


# API routes first so the catch-all slug routes never shadow them.
app.include_router(slugs.router)
app.include_router(public.router)
logger.info("Routers registered")
