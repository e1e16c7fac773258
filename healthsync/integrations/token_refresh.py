"""
Keeps a user's Google access token usable for Calendar API calls.

The stored token is refreshed ahead of time when it is missing or expires
within the refresh window, and once more if Google still answers 401.
Refreshed tokens are written back to the credential store.
"""
from datetime import timedelta
from typing import Any, Optional

import httpx

from healthsync.core.exceptions import ConfigurationError, CredentialNotFoundError, UpstreamServiceError
from healthsync.core.http_client import get_http_client
from healthsync.core.logging_config import log_error, log_info, log_warning
from healthsync.core.time_utils import expires_at_from_now, expires_within
from healthsync.integrations import google
from healthsync.integrations.apps import ProviderApps, resolve_provider_app
from healthsync.models.enums import OAuthProvider, ServiceName
from healthsync.services.credential_store import CredentialStore, DecryptedCredential

REFRESH_WINDOW = timedelta(minutes=5)
AUTHORIZATION_EXPIRED = "Google authorization expired. Please reconnect Google Calendar."


class GoogleTokenManager:
    """Loads, refreshes and uses one user's Google credential."""

    def __init__(self, store: CredentialStore, user_id: str, apps: ProviderApps):
        self.store = store
        self.user_id = user_id
        self.apps = apps

    def _load(self) -> DecryptedCredential:
        credential = self.store.load_secrets(self.user_id, ServiceName.GOOGLE)
        if credential is None:
            raise CredentialNotFoundError(ServiceName.GOOGLE.value)
        return credential

    async def refresh(self, credential: DecryptedCredential) -> Optional[str]:
        """
        Exchange the stored refresh token for a new access token.

        Returns the new access token, or None when refreshing is impossible or
        was rejected. A 400 from Google means the refresh token is dead, so the
        stored access token is cleared.
        """
        if not credential.refresh_token:
            log_warning("Google refresh skipped: no refresh token stored", user_id=self.user_id)
            return None

        app = resolve_provider_app(OAuthProvider.GOOGLE, self.apps, credential)
        if app is None:
            raise ConfigurationError("Google OAuth client credentials are not configured")

        try:
            tokens = await google.refresh_access_token(app, credential.refresh_token)
        except UpstreamServiceError as e:
            log_warning(f"Google token refresh failed: {e}", user_id=self.user_id, status_code=e.status_code)
            if e.status_code == 400:
                self.store.clear_access_token(self.user_id, ServiceName.GOOGLE)
            return None

        self.store.save_tokens(
            self.user_id,
            ServiceName.GOOGLE,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            expires_at=expires_at_from_now(tokens.expires_in),
        )
        log_info("Google access token refreshed", user_id=self.user_id)
        return tokens.access_token

    async def get_valid_access_token(self) -> str:
        credential = self._load()
        if credential.access_token and not expires_within(credential.expires_at, REFRESH_WINDOW):
            return credential.access_token

        access_token = await self.refresh(credential)
        if not access_token:
            raise UpstreamServiceError(AUTHORIZATION_EXPIRED, status_code=401)
        return access_token

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """
        Call a Google API with a bearer token.

        A 401 answer triggers one refresh and one reissue of the same call.
        """
        access_token = await self.get_valid_access_token()
        response = await self._send(method, url, access_token, **kwargs)
        if response.status_code != 401:
            return response

        log_warning("Google API answered 401; refreshing token once", user_id=self.user_id)
        access_token = await self.refresh(self._load())
        if not access_token:
            raise UpstreamServiceError(AUTHORIZATION_EXPIRED, status_code=401)

        response = await self._send(method, url, access_token, **kwargs)
        if response.status_code == 401:
            raise UpstreamServiceError(AUTHORIZATION_EXPIRED, status_code=401)
        return response

    async def _send(self, method: str, url: str, access_token: str, **kwargs: Any) -> httpx.Response:
        headers = dict(kwargs.pop("headers", None) or {})
        headers["Authorization"] = f"Bearer {access_token}"
        client = await get_http_client()
        try:
            return await client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            log_error(e, user_id=self.user_id, action="google_api_request")
            raise UpstreamServiceError(f"Could not reach Google Calendar: {e}") from e
