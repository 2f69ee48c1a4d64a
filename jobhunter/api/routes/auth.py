import logging
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.orm import Session

from jobhunter.core import config
from jobhunter.core.auth_dependency import get_session_token, require_session
from jobhunter.core.errors import AppError, InternalError, Unauthenticated
from jobhunter.core.rate_limit import rate_limited
from jobhunter.core.security import (
    create_oauth_state,
    new_oauth_nonce,
    safe_return_path,
    state_matches_browser,
    verify_identity_token,
    verify_oauth_state,
)
from jobhunter.core.session_store import SessionStore, get_session_store
from jobhunter.db.models.user import User
from jobhunter.db.session import get_db
from jobhunter.schemas.auth import IdentityCallbackRequest, IdentityCallbackResponse, UserResponse
from jobhunter.services.auth_service import complete_external_login
from jobhunter.services.google_oauth import GoogleOAuthClient, get_google_client
from jobhunter.services.subscription_service import TIER_PRO, effective_tier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

GOOGLE_FLOW_PATH = "/api/auth/google"


def set_session_cookie(response: Response, sid: str) -> None:
    response.set_cookie(
        key=config.SESSION_COOKIE_NAME,
        value=sid,
        max_age=config.SESSION_TTL_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=config.SESSION_COOKIE_SECURE,
        samesite="none" if config.SESSION_COOKIE_SECURE else "lax",
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=config.SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=config.SESSION_COOKIE_SECURE,
        samesite="none" if config.SESSION_COOKIE_SECURE else "lax",
    )


def set_state_cookie(response: Response, nonce: str) -> None:
    response.set_cookie(
        key=config.OAUTH_STATE_COOKIE_NAME,
        value=nonce,
        max_age=config.OAUTH_STATE_TTL_MINUTES * 60,
        httponly=True,
        secure=config.SESSION_COOKIE_SECURE,
        samesite="lax",
        path=GOOGLE_FLOW_PATH,
    )


def redirect_clearing_state(url: str) -> RedirectResponse:
    response = RedirectResponse(url, status_code=302)
    response.delete_cookie(
        key=config.OAUTH_STATE_COOKIE_NAME,
        path=GOOGLE_FLOW_PATH,
        httponly=True,
        secure=config.SESSION_COOKIE_SECURE,
        samesite="lax",
    )
    return response


# ✅ BEGIN GOOGLE SIGN-IN
@router.api_route("/google", methods=["GET", "POST"])
def google_login(
    return_to: str = "/",
    google: GoogleOAuthClient = Depends(get_google_client),
):
    nonce = new_oauth_nonce()
    state = create_oauth_state(safe_return_path(return_to), nonce)
    response = RedirectResponse(google.authorization_url(state), status_code=302)
    set_state_cookie(response, nonce)
    return response


# ✅ FINISH GOOGLE SIGN-IN
@router.get("/google/callback")
async def google_callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
    google: GoogleOAuthClient = Depends(get_google_client),
):
    if error:
        logger.warning(f"Google sign-in declined: {error}")
        return redirect_clearing_state(f"/?error={quote(error)}")

    claims = verify_oauth_state(state)
    if claims is None or not code:
        return redirect_clearing_state("/?error=invalid_state")
    if not state_matches_browser(claims, request.cookies.get(config.OAUTH_STATE_COOKIE_NAME)):
        logger.warning("Google callback state was not issued to this browser")
        return redirect_clearing_state("/?error=invalid_state")

    try:
        profile = await google.fetch_profile(code)
        user = complete_external_login(db, profile.get("id") or profile.get("sub"), profile.get("email"), profile)
    except AppError as e:
        logger.error(f"Google sign-in failed: {e.message}")
        return redirect_clearing_state("/?error=auth_failed")

    record = store.create(user.id)
    target = safe_return_path(claims.get("return_to"))
    target = "/?auth=success" if target == "/" else target
    response = redirect_clearing_state(target)
    set_session_cookie(response, record.sid)
    logger.info(f"User signed in with Google: user_id={user.id}")
    return response


# ✅ IDENTITY-PROVIDER CALLBACK
@router.post(
    "/callback",
    response_model=IdentityCallbackResponse,
    dependencies=[Depends(rate_limited("auth_callback", max_requests=20, window_seconds=60))],
)
def identity_callback(
    payload: IdentityCallbackRequest,
    response: Response,
    db: Session = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
):
    """Sign in from a signed identity token; identity and email come only from its claims."""
    claims = verify_identity_token(payload.token)
    if claims is None:
        raise Unauthenticated("Invalid identity token")

    user = complete_external_login(db, claims["sub"], claims["email"], claims.get("user_metadata") or {})
    record = store.create(user.id)
    set_session_cookie(response, record.sid)
    return IdentityCallbackResponse(success=True, user_id=user.id)


# ✅ LOGOUT (idempotent)
@router.post("/logout")
def logout(request: Request, store: SessionStore = Depends(get_session_store)):
    token = get_session_token(request)
    if token:
        try:
            store.destroy(token)
        except Exception as e:
            logger.error(f"Failed to destroy session: {e}", exc_info=True)
            raise InternalError("Failed to logout")

    response = JSONResponse({"success": True})
    clear_session_cookie(response)
    return response


# ✅ CURRENT USER
@router.get("/user")
def current_user(user: User = Depends(require_session)):
    body = UserResponse.model_validate(user)
    # Lapsed Pro reads as free
    body.subscription_tier = effective_tier(user)
    body.is_pro = body.subscription_tier == TIER_PRO
    return body.model_dump(by_alias=True, mode="json")
