"""Google OAuth 2.0 authorization-code client."""
import logging
from typing import Optional
from urllib.parse import urlencode

import httpx

from closecircle.domain.common.errors import UpstreamError, ValidationError
from closecircle.domain.identity.models import FederatedProfile
from closecircle.settings import settings

logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
SERVICE = "google oauth"


class GoogleOAuthClient:
    """Builds the consent URL and turns a callback code into a verified profile."""

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        redirect_uri: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 15.0,
    ):
        self.client_id = client_id or settings.google_client_id
        self.client_secret = client_secret or settings.google_client_secret
        self.redirect_uri = redirect_uri or settings.google_redirect_uri
        self.transport = transport
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def authorization_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": "openid email profile",
            "state": state,
            "prompt": "select_account",
        }
        return f"{AUTHORIZE_URL}?{urlencode(params)}"

    async def fetch_profile(self, code: str) -> FederatedProfile:
        """Exchange the authorization code and read the user's profile."""
        if not self.configured:
            raise UpstreamError(SERVICE, "not configured")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                token_response = await client.post(
                    TOKEN_URL,
                    data={
                        "code": code,
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "redirect_uri": self.redirect_uri,
                        "grant_type": "authorization_code",
                    },
                )
                if token_response.status_code == 400:
                    raise ValidationError("Invalid or expired authorization code")
                token_response.raise_for_status()
                access_token = token_response.json().get("access_token")
                if not access_token:
                    raise UpstreamError(SERVICE, "token response missing access_token")

                info_response = await client.get(
                    USERINFO_URL, headers={"Authorization": f"Bearer {access_token}"}
                )
                info_response.raise_for_status()
                info = info_response.json()
        except httpx.HTTPError as e:
            logger.error(f"Google OAuth exchange failed: {e}")
            raise UpstreamError(SERVICE, "code exchange failed") from e
        except ValueError as e:
            logger.error("Google OAuth returned invalid JSON: %s", e)
            raise UpstreamError(SERVICE, "invalid response") from e

        if not info.get("email") or info.get("email_verified") is False:
            raise ValidationError("Google account has no verified email")
        return FederatedProfile(
            provider="google",
            subject=str(info.get("sub", "")),
            email=info["email"],
            display_name=info.get("name"),
            picture=info.get("picture"),
        )
