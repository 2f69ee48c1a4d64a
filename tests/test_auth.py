"""
Tests for external login, the session gate, logout and the Google OAuth round trip.
"""
from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from jose import jwt

from jobhunter.core import config
from jobhunter.core.errors import ValidationError
from jobhunter.core.security import create_oauth_state
from jobhunter.core.timeutils import utcnow
from jobhunter.db.models.payment_order import PaymentOrder
from jobhunter.db.models.user import User
from jobhunter.main import app
from jobhunter.services.auth_service import complete_external_login
from jobhunter.services.google_oauth import (
    GOOGLE_TOKEN_URL,
    GOOGLE_USERINFO_URL,
    GoogleOAuthClient,
    get_google_client,
)


def test_external_login_creates_then_refreshes_same_user(db):
    first = complete_external_login(db, "u1", "Jane@Example.com", {"given_name": "Jane", "picture": "a.png"})
    second = complete_external_login(db, "u1", "jane@example.com", {"given_name": "Janet", "picture": "b.png"})

    assert first.id == second.id == "u1"
    assert db.query(User).count() == 1
    assert second.email == "jane@example.com"
    assert second.first_name == "Janet"
    assert second.profile_image_url == "b.png"
    assert second.subscription_tier == "free"


def test_external_login_accepts_oidc_style_metadata(db):
    user = complete_external_login(db, "u2", "sam@example.com", {
        "first_name": "Sam", "last_name": "Lee", "avatar_url": "https://img/sam.png",
    })
    assert (user.first_name, user.last_name, user.profile_image_url) == ("Sam", "Lee", "https://img/sam.png")


@pytest.mark.parametrize("identity_id,email", [(None, "a@example.com"), ("u1", None), ("", "")])
def test_external_login_requires_id_and_email(db, identity_id, email):
    with pytest.raises(ValidationError):
        complete_external_login(db, identity_id, email, {})
    assert db.query(User).count() == 0


def test_external_login_rejects_email_bound_to_other_identity(db):
    complete_external_login(db, "u1", "shared@example.com", {})
    with pytest.raises(ValidationError, match="already linked"):
        complete_external_login(db, "u2", "shared@example.com", {})
    assert db.query(User).count() == 1


def identity_token(secret: str = "idp-shared-secret", **overrides) -> str:
    claims = {
        "sub": "g-42",
        "email": "new.user@example.com",
        "aud": "jobhunter-api",
        "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
        "user_metadata": {"given_name": "New", "family_name": "User"},
    }
    claims.update(overrides)
    return jwt.encode(claims, secret, algorithm="HS256")


@pytest.fixture
def identity_secret(monkeypatch):
    monkeypatch.setattr(config, "IDENTITY_TOKEN_SECRET", "idp-shared-secret")
    return "idp-shared-secret"


def test_identity_callback_sets_session_cookie(client, identity_secret):
    response = client.post("/api/auth/callback", json={"token": identity_token()})
    assert response.status_code == 200
    assert response.json() == {"success": True, "userId": "g-42"}
    assert config.SESSION_COOKIE_NAME in response.cookies

    me = client.get("/api/auth/user")
    assert me.status_code == 200
    body = me.json()
    assert body["id"] == "g-42"
    assert body["firstName"] == "New"
    assert body["subscriptionTier"] == "free"


def test_identity_callback_ignores_unsigned_identity(client, db, test_user, identity_secret):
    response = client.post("/api/auth/callback", json={
        "userId": test_user.id,
        "email": "attacker@example.com",
    })

    assert response.status_code == 401
    assert config.SESSION_COOKIE_NAME not in response.cookies
    db.expire_all()
    assert db.query(User).filter(User.id == test_user.id).one().email == "jane.doe@example.com"
    assert client.get("/api/auth/user").status_code == 401


@pytest.mark.parametrize("token", [
    identity_token(secret="someone-elses-secret", sub="google-108234"),
    identity_token(aud="another-app"),
    identity_token(exp=datetime.now(timezone.utc) - timedelta(minutes=1)),
    identity_token(email=None),
    "not-a-token",
])
def test_identity_callback_rejects_unverifiable_tokens(client, db, identity_secret, token):
    response = client.post("/api/auth/callback", json={"token": token})
    assert response.status_code == 401
    assert config.SESSION_COOKIE_NAME not in response.cookies
    assert db.query(User).count() == 0


def test_identity_callback_disabled_without_secret(client, db, monkeypatch):
    monkeypatch.setattr(config, "IDENTITY_TOKEN_SECRET", None)
    response = client.post("/api/auth/callback", json={"token": identity_token()})
    assert response.status_code == 401
    assert db.query(User).count() == 0


def test_identity_callback_requires_token(client):
    response = client.post("/api/auth/callback", json={})
    assert response.status_code == 401
    assert "error" in response.json()


def test_current_user_reports_lapsed_pro_as_free(auth_client, db, test_user):
    test_user.subscription_tier = "pro"
    test_user.subscription_expires_at = utcnow() - timedelta(days=1)
    db.commit()

    body = auth_client.get("/api/auth/user").json()
    assert body["subscriptionTier"] == "free"
    assert body["isPro"] is False


def test_current_user_requires_session(client):
    response = client.get("/api/auth/user")
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}


def test_unknown_session_token_is_rejected(client):
    client.cookies.set(config.SESSION_COOKIE_NAME, "not-a-session")
    assert client.get("/api/auth/user").status_code == 401


def test_gated_endpoint_has_no_side_effect_when_unauthenticated(client, db, test_user):
    response = client.post("/api/create-subscription", json={"currency": "USD"})
    assert response.status_code == 401
    assert db.query(PaymentOrder).count() == 0


def test_session_for_deleted_user_is_destroyed(auth_client, db, store, test_user):
    sid = auth_client.cookies.get(config.SESSION_COOKIE_NAME)
    db.delete(test_user)
    db.commit()

    assert auth_client.get("/api/auth/user").status_code == 401
    assert store.get(sid) is None


def test_session_lookup_extends_expiry(auth_client, store):
    sid = auth_client.cookies.get(config.SESSION_COOKIE_NAME)
    store.get(sid).expires_at = utcnow() + timedelta(minutes=5)

    assert auth_client.get("/api/auth/user").status_code == 200
    assert store.get(sid).expires_at > utcnow() + timedelta(days=config.SESSION_TTL_DAYS - 1)


def test_logout_destroys_session(auth_client, store):
    sid = auth_client.cookies.get(config.SESSION_COOKIE_NAME)
    response = auth_client.post("/api/auth/logout")
    assert response.status_code == 200
    assert response.json() == {"success": True}
    assert store.get(sid) is None


def test_logout_without_session_succeeds(client):
    response = client.post("/api/auth/logout")
    assert response.status_code == 200
    assert response.json() == {"success": True}


def test_logout_with_expired_session_succeeds(client, store, test_user):
    record = store.create(test_user.id)
    record.expires_at = utcnow() - timedelta(seconds=1)
    client.cookies.set(config.SESSION_COOKIE_NAME, record.sid)

    response = client.post("/api/auth/logout")
    assert response.status_code == 200
    assert response.json() == {"success": True}


def test_logout_store_failure_is_internal_error(client, store, test_user, monkeypatch):
    record = store.create(test_user.id)
    client.cookies.set(config.SESSION_COOKIE_NAME, record.sid)

    def broken_destroy(sid):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(store, "destroy", broken_destroy)
    response = client.post("/api/auth/logout")
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to logout"}


# ============================================
# Google OAuth
# ============================================

def google_transport(profile: dict, token_status: int = 200) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == GOOGLE_TOKEN_URL:
            if token_status != 200:
                return httpx.Response(token_status, json={"error": "invalid_grant"})
            return httpx.Response(200, json={"access_token": "ya29.token"})
        if str(request.url) == GOOGLE_USERINFO_URL:
            assert request.headers["Authorization"] == "Bearer ya29.token"
            return httpx.Response(200, json=profile)
        return httpx.Response(404)
    return httpx.MockTransport(handler)


@pytest.fixture
def google_client(client):
    def install(profile: dict, token_status: int = 200):
        google = GoogleOAuthClient(
            "client-id",
            "client-secret",
            "https://jobhunter.test/api/auth/google/callback",
            http_client=httpx.AsyncClient(transport=google_transport(profile, token_status)),
        )
        app.dependency_overrides[get_google_client] = lambda: google
        return google
    return install


def start_google_login(client) -> str:
    """Begin sign-in in this browser and return the state sent to Google."""
    response = client.get("/api/auth/google", follow_redirects=False)
    return parse_qs(urlparse(response.headers["location"]).query)["state"][0]


def clears_state_cookie(response) -> bool:
    return any(
        header.startswith(config.OAUTH_STATE_COOKIE_NAME + "=") and "Max-Age=0" in header
        for header in response.headers.get_list("set-cookie")
    )


def test_google_login_redirects_to_consent_screen(client, google_client):
    google_client({})
    response = client.get("/api/auth/google", follow_redirects=False)

    assert response.status_code == 302
    location = urlparse(response.headers["location"])
    assert location.netloc == "accounts.google.com"
    params = parse_qs(location.query)
    assert params["redirect_uri"] == ["https://jobhunter.test/api/auth/google/callback"]
    assert params["state"][0]
    state_cookie = response.headers["set-cookie"]
    assert state_cookie.startswith(config.OAUTH_STATE_COOKIE_NAME + "=")
    assert "HttpOnly" in state_cookie
    assert "Path=/api/auth/google" in state_cookie


def test_google_callback_creates_user_and_session(client, db, google_client):
    google_client({"id": "g-900", "email": "oauth@example.com", "given_name": "Olu", "picture": "p.png"})
    state = start_google_login(client)

    response = client.get(
        "/api/auth/google/callback",
        params={"code": "auth-code", "state": state},
        follow_redirects=False,
    )

    assert response.status_code == 302
    assert response.headers["location"] == "/?auth=success"
    assert config.SESSION_COOKIE_NAME in response.cookies
    assert clears_state_cookie(response)
    assert db.query(User).filter(User.id == "g-900").count() == 1
    assert client.get("/api/auth/user").json()["email"] == "oauth@example.com"


def test_google_callback_rejects_bad_state(client, db, google_client):
    google_client({"id": "g-900", "email": "oauth@example.com"})
    start_google_login(client)
    response = client.get(
        "/api/auth/google/callback",
        params={"code": "auth-code", "state": "forged"},
        follow_redirects=False,
    )
    assert response.headers["location"] == "/?error=invalid_state"
    assert db.query(User).count() == 0


def test_google_callback_rejects_state_from_another_browser(client, db, google_client):
    google_client({"id": "g-900", "email": "oauth@example.com"})
    foreign_state = create_oauth_state("/", "nonce-of-another-browser")

    without_cookie = client.get(
        "/api/auth/google/callback",
        params={"code": "auth-code", "state": foreign_state},
        follow_redirects=False,
    )
    assert without_cookie.headers["location"] == "/?error=invalid_state"

    start_google_login(client)
    with_own_cookie = client.get(
        "/api/auth/google/callback",
        params={"code": "auth-code", "state": foreign_state},
        follow_redirects=False,
    )
    assert with_own_cookie.headers["location"] == "/?error=invalid_state"
    assert config.SESSION_COOKIE_NAME not in with_own_cookie.cookies
    assert db.query(User).count() == 0


def test_google_callback_token_failure_redirects_with_error(client, db, google_client):
    google_client({}, token_status=400)
    state = start_google_login(client)
    response = client.get(
        "/api/auth/google/callback",
        params={"code": "bad-code", "state": state},
        follow_redirects=False,
    )
    assert response.headers["location"] == "/?error=auth_failed"
    assert db.query(User).count() == 0
