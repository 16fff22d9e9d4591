"""
Google OAuth2 authorization-code flow
authorize URL -> code -> access token -> profile (id + primary e-mail)
"""
import logging
from typing import Optional
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel

from formic.config.settings import settings
from formic.utils.errors import AuthProviderError

logger = logging.getLogger(__name__)


class GoogleProfile(BaseModel):
    id: str
    email: str


class GoogleAuthService:
    """Talks to Google's OAuth endpoints for one callback URL"""

    def __init__(
        self,
        redirect_uri: str,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        timeout: float = 30,
    ):
        self.redirect_uri = redirect_uri
        self.client_id = client_id or settings.GOOGLE_CLIENT_ID
        self.client_secret = client_secret or settings.GOOGLE_CLIENT_SECRET
        self.timeout = timeout

    def authorization_url(self, state: str = "") -> str:
        query = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(settings.GOOGLE_SCOPES),
            "state": state,
        }
        return f"{settings.GOOGLE_AUTH_URL}?{urlencode(query)}"

    async def exchange_code(self, code: str) -> str:
        """Trade the authorization code for an access token"""
        payload = {
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.redirect_uri,
            "grant_type": "authorization_code",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(settings.GOOGLE_TOKEN_URL, data=payload)
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("❌ Token exchange failed: %s", e)
            raise AuthProviderError("Token exchange failed") from e

        access_token = data.get("access_token") if isinstance(data, dict) else None
        if not access_token:
            raise AuthProviderError("No access token in token response")
        return access_token

    async def fetch_profile(self, access_token: str) -> GoogleProfile:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(
                    settings.GOOGLE_PROFILE_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("❌ Profile fetch failed: %s", e)
            raise AuthProviderError("Profile fetch failed") from e

        return parse_profile(data)

    async def authenticate(self, code: str) -> GoogleProfile:
        access_token = await self.exchange_code(code)
        return await self.fetch_profile(access_token)


def _first_email(addresses) -> Optional[str]:
    if not isinstance(addresses, list) or not addresses:
        return None
    first = addresses[0]
    if not isinstance(first, dict):
        return None
    value = first.get("value")
    return value if isinstance(value, str) and value else None


def parse_profile(data) -> GoogleProfile:
    """
    Pull the opaque profile id and the first listed e-mail out of a profile
    document. Handles both the legacy {"id", "emails": [{"value"}]} shape and
    the People API {"resourceName", "emailAddresses": [{"value"}]} shape.
    """
    if not isinstance(data, dict):
        raise AuthProviderError("Malformed profile")

    if "emails" in data:
        email = _first_email(data.get("emails"))
    else:
        email = _first_email(data.get("emailAddresses"))
    if email is None:
        raise AuthProviderError("Profile has no e-mail address")

    profile_id = data.get("id")
    if not profile_id:
        resource_name = data.get("resourceName") or ""
        profile_id = resource_name.split("/", 1)[-1] if resource_name else None
    if not profile_id or not isinstance(profile_id, str):
        raise AuthProviderError("Profile has no id")

    return GoogleProfile(id=profile_id, email=email)
