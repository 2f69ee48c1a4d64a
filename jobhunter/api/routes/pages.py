"""
Page gate in front of the built single-page app.

Protected pages bounce anonymous browsers to the landing page, the auth page
bounces signed-in browsers home, and every other path gets the SPA shell.
"""
import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse, JSONResponse, RedirectResponse

from jobhunter.core import config
from jobhunter.core.auth_dependency import optional_session_user
from jobhunter.db.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Pages"], include_in_schema=False)

PROTECTED_PREFIXES = (
    "/search",
    "/applications",
    "/analytics",
    "/settings",
    "/subscribe",
    "/upgrade",
    "/results",
)
AUTH_PAGE = "/auth"
LANDING_PAGE = "/"


def is_protected(path: str) -> bool:
    return any(path == p or path.startswith(p + "/") for p in PROTECTED_PREFIXES)


def spa_shell(static_dir: Optional[str] = None):
    index = Path(static_dir or config.STATIC_DIR) / "index.html"
    if not index.is_file():
        logger.warning(f"SPA shell not found at {index}")
        return JSONResponse(status_code=404, content={"error": "Client build not found"})
    return FileResponse(index, media_type="text/html")


@router.get("/{full_path:path}")
def serve_page(full_path: str, user: Optional[User] = Depends(optional_session_user)):
    path = "/" + full_path.strip("/")

    if path == "/api" or path.startswith("/api/"):
        return JSONResponse(status_code=404, content={"error": "Not found"})

    if is_protected(path) and user is None:
        return RedirectResponse(LANDING_PAGE, status_code=302)

    if path == AUTH_PAGE and user is not None:
        return RedirectResponse(LANDING_PAGE, status_code=302)

    static_file = Path(config.STATIC_DIR) / full_path
    if full_path and static_file.is_file() and Path(config.STATIC_DIR).resolve() in static_file.resolve().parents:
        return FileResponse(static_file)

    return spa_shell()
