"""
Signed tokens used by the sign-in flows.

The ``state`` parameter sent to Google is a short-lived JWT carrying a nonce
that is also set as a cookie in the browser that started the flow, so the
callback rejects forged, replayed or cross-browser redirects. Identity tokens
posted to the identity callback are JWTs signed with a secret shared with the
identity provider.
"""
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError

from jobhunter.core import config

logger = logging.getLogger(__name__)


def new_oauth_nonce() -> str:
    return secrets.token_urlsafe(16)


def create_oauth_state(
    return_to: str = "/",
    nonce: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=config.OAUTH_STATE_TTL_MINUTES)
    )
    payload = {
        "nonce": nonce or new_oauth_nonce(),
        "return_to": return_to,
        "exp": expire,
    }
    return jwt.encode(payload, config.SECRET_KEY, algorithm=config.ALGORITHM)


def verify_oauth_state(state: Optional[str]) -> Optional[dict]:
    """Decode a state token; returns None when missing, tampered or expired."""
    if not state:
        return None
    try:
        return jwt.decode(state, config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except JWTError as e:
        logger.warning(f"Rejected OAuth state: {e}")
        return None


def state_matches_browser(claims: Optional[dict], nonce_cookie: Optional[str]) -> bool:
    """True when the state's nonce equals the one stored in this browser's cookie."""
    expected = (claims or {}).get("nonce")
    if not expected or not nonce_cookie:
        return False
    return secrets.compare_digest(str(expected), nonce_cookie)


def verify_identity_token(token: Optional[str]) -> Optional[dict]:
    """
    Decode an identity token from the identity provider.

    The token must be signed with IDENTITY_TOKEN_SECRET, carry the configured
    audience, an expiry, ``sub`` and ``email``. Returns the claims, or None
    when the token is missing, forged, expired or the secret is not configured.
    """
    if not token or not config.IDENTITY_TOKEN_SECRET:
        return None
    try:
        claims = jwt.decode(
            token,
            config.IDENTITY_TOKEN_SECRET,
            algorithms=[config.ALGORITHM],
            audience=config.IDENTITY_TOKEN_AUDIENCE,
            options={"require_exp": True},
        )
    except JWTError as e:
        logger.warning(f"Rejected identity token: {e}")
        return None
    if not claims.get("sub") or not claims.get("email"):
        logger.warning("Rejected identity token without sub or email")
        return None
    return claims


def safe_return_path(path: Optional[str]) -> str:
    """Only allow same-site relative redirect targets."""
    if not path or not path.startswith("/") or path.startswith("//"):
        return "/"
    return path
