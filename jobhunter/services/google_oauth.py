"""
Google OAuth 2.0 authorization-code flow.
"""
import logging
from typing import Optional
from urllib.parse import urlencode

import httpx

from jobhunter.core import config
from jobhunter.core.errors import GatewayError, ValidationError

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"


class GoogleOAuthClient:
    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        redirect_uri: str,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self._http = http_client

    def _client(self) -> httpx.AsyncClient:
        return self._http or httpx.AsyncClient(timeout=config.HTTP_TIMEOUT_SECONDS)

    def authorization_url(self, state: str) -> str:
        if not self.client_id:
            raise ValidationError("Google sign-in is not configured")
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": "openid email profile",
            "access_type": "offline",
            "prompt": "consent",
            "state": state,
        }
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    async def fetch_profile(self, code: str) -> dict:
        """Exchange an authorization code and return the userinfo profile."""
        client = self._client()
        try:
            token_response = await client.post(GOOGLE_TOKEN_URL, data={
                "code": code,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "redirect_uri": self.redirect_uri,
                "grant_type": "authorization_code",
            })
            if token_response.status_code >= 400:
                logger.error(f"Google token exchange failed: status={token_response.status_code}")
                raise GatewayError("Google", token_response.status_code, token_response.text)
            access_token = token_response.json().get("access_token")

            profile_response = await client.get(
                GOOGLE_USERINFO_URL,
                headers={"Authorization": f"Bearer {access_token}"},
            )
            if profile_response.status_code >= 400:
                logger.error(f"Google userinfo failed: status={profile_response.status_code}")
                raise GatewayError("Google", profile_response.status_code, profile_response.text)
            return profile_response.json()
        finally:
            if self._http is None:
                await client.aclose()


def get_google_client() -> GoogleOAuthClient:
    """Dependency: Google client with the callback under PUBLIC_BASE_URL."""
    base_url = config.require_public_base_url()
    return GoogleOAuthClient(
        config.GOOGLE_CLIENT_ID,
        config.GOOGLE_CLIENT_SECRET,
        f"{base_url}/api/auth/google/callback",
    )
