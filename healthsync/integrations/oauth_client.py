"""
OAuth 2.0 client sessions for the provider modules.

Each provider call opens a short-lived authlib ``AsyncOAuth2Client`` bound to
one app registration. Providers differ only in how the client authenticates
at the token endpoint:

- ``client_secret_post``: credentials in the form body (Google, Alexa)
- ``client_secret_basic``: HTTP Basic header (Fitbit)

Every token request is a single POST; any non-2xx answer is raised as
:class:`UpstreamServiceError` carrying the provider status.
"""
from typing import Any, Callable, Optional

import httpx
from authlib.integrations.base_client import OAuthError
from authlib.integrations.httpx_client import AsyncOAuth2Client
from pydantic import ValidationError as PydanticValidationError

from healthsync.core.config import settings
from healthsync.core.exceptions import UpstreamServiceError
from healthsync.core.http_client import is_success, user_agent
from healthsync.core.logging_config import log_error, log_warning
from healthsync.integrations.apps import ProviderApp
from healthsync.integrations.schemas import TokenSet

CLIENT_SECRET_POST = "client_secret_post"
CLIENT_SECRET_BASIC = "client_secret_basic"


def oauth_session(
    app: ProviderApp,
    token_auth_method: str = CLIENT_SECRET_POST,
    scope: Optional[str] = None,
) -> AsyncOAuth2Client:
    """Create a client for ``app``. Use it as an async context manager."""
    return AsyncOAuth2Client(
        client_id=app.client_id,
        client_secret=app.client_secret,
        token_endpoint_auth_method=token_auth_method,
        scope=scope,
        redirect_uri=app.redirect_uri,
        timeout=settings.http_timeout_seconds,
        headers={"User-Agent": user_agent()},
    )


async def create_authorization_url(app: ProviderApp, url: str, state: str, **params: Any) -> str:
    async with oauth_session(app, scope=app.scopes) as client:
        authorization_url, _ = client.create_authorization_url(url, state=state, **params)
    return authorization_url


def _reject_non_2xx(provider: str, grant_type: str) -> Callable[[httpx.Response], httpx.Response]:
    def hook(response: httpx.Response) -> httpx.Response:
        if not is_success(response.status_code):
            log_warning(
                f"{provider} token endpoint rejected the request",
                status_code=response.status_code,
                grant_type=grant_type,
            )
            raise UpstreamServiceError(
                f"{response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                details=response.text,
            )
        return response
    return hook


async def _token_request(provider: str, grant_type: str, client: AsyncOAuth2Client, call) -> TokenSet:
    hook = _reject_non_2xx(provider, grant_type)
    client.register_compliance_hook("access_token_response", hook)
    client.register_compliance_hook("refresh_token_response", hook)

    try:
        token = await call(client)
    except httpx.HTTPError as e:
        log_error(e, provider=provider, action="token_request")
        raise UpstreamServiceError(f"Could not reach {provider} token endpoint: {e}") from e
    except OAuthError as e:
        log_warning(f"{provider} token endpoint returned an OAuth error: {e.error}", grant_type=grant_type)
        raise UpstreamServiceError(f"{provider} token endpoint returned {e.error}", details=e.description) from e
    except (ValueError, TypeError) as e:
        log_error(e, provider=provider, action="token_parse")
        raise UpstreamServiceError(f"{provider} token endpoint returned an unreadable response") from e

    try:
        return TokenSet.model_validate(dict(token))
    except PydanticValidationError as e:
        log_error(e, provider=provider, action="token_parse")
        raise UpstreamServiceError(f"{provider} token endpoint returned an unreadable response") from e


async def fetch_token(
    provider: str,
    app: ProviderApp,
    token_url: str,
    code: str,
    token_auth_method: str = CLIENT_SECRET_POST,
    **params: Any,
) -> TokenSet:
    """
    Exchange an authorization code.

    Raises:
        UpstreamServiceError: On a network error, a non-2xx answer, or an
            unreadable body. ``status_code`` carries the provider status when
            there was one.
    """
    async with oauth_session(app, token_auth_method) as client:
        return await _token_request(
            provider,
            "authorization_code",
            client,
            lambda c: c.fetch_token(token_url, grant_type="authorization_code", code=code, **params),
        )


async def exchange_refresh_token(
    provider: str,
    app: ProviderApp,
    token_url: str,
    refresh_token: str,
    token_auth_method: str = CLIENT_SECRET_POST,
) -> TokenSet:
    """
    Exchange a refresh token. The answer keeps ``refresh_token`` when the
    provider did not rotate it.
    """
    async with oauth_session(app, token_auth_method) as client:
        return await _token_request(
            provider,
            "refresh_token",
            client,
            lambda c: c.refresh_token(token_url, refresh_token=refresh_token),
        )
