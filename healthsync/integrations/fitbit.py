"""
Fitbit OAuth provider.

Fitbit authenticates token requests with HTTP Basic client credentials
(``client_secret_basic``). The client secret never travels in the form body.

API Documentation: https://dev.fitbit.com/build/reference/web-api/authorization/
"""
from typing import Optional

import httpx

from healthsync.core.http_client import get_http_client
from healthsync.core.exceptions import UpstreamServiceError
from healthsync.core.logging_config import log_error, log_info, log_warning
from healthsync.integrations.apps import ProviderApp
from healthsync.integrations.oauth_client import (
    CLIENT_SECRET_BASIC,
    create_authorization_url,
    exchange_refresh_token,
    fetch_token,
)
from healthsync.integrations.schemas import ConnectionTestResult, ConnectionCheck, TokenSet

DISPLAY_NAME = "Fitbit"
AUTHORIZE_URL = "https://www.fitbit.com/oauth2/authorize"
TOKEN_URL = "https://api.fitbit.com/oauth2/token"
PROFILE_URL = "https://api.fitbit.com/1/user/-/profile.json"


async def build_authorization_url(app: ProviderApp, state: str) -> str:
    return await create_authorization_url(app, AUTHORIZE_URL, state)


async def exchange_code(app: ProviderApp, code: str) -> TokenSet:
    return await fetch_token("fitbit", app, TOKEN_URL, code, CLIENT_SECRET_BASIC, client_id=app.client_id)


async def refresh_access_token(app: ProviderApp, refresh_token: str) -> TokenSet:
    return await exchange_refresh_token("fitbit", app, TOKEN_URL, refresh_token, CLIENT_SECRET_BASIC)


async def _fetch_profile(access_token: str) -> httpx.Response:
    client = await get_http_client()
    return await client.get(
        PROFILE_URL,
        headers={"Authorization": f"Bearer {access_token}"},
    )


def _profile_data(response: httpx.Response) -> dict:
    user = response.json().get("user", {})
    return {
        "user": user.get("displayName"),
        "memberSince": user.get("memberSince"),
    }


async def check_connection(credential, app: Optional[ProviderApp] = None) -> ConnectionCheck:
    """
    Check the Fitbit profile endpoint.

    An expired access token triggers exactly one refresh attempt when a
    refresh token is stored. The refreshed token set is handed back to the
    caller, which decides whether to persist it.
    """
    if not credential.access_token:
        return ConnectionCheck(result=ConnectionTestResult(
            success=False,
            message="No access token found for Fitbit. Please complete the OAuth flow first.",
        ))

    try:
        response = await _fetch_profile(credential.access_token)
    except httpx.HTTPError as e:
        log_error(e, provider="fitbit", action="connection_test")
        return ConnectionCheck(result=ConnectionTestResult(success=False, message=f"Connection test failed: {e}"))

    if response.status_code == 200:
        log_info("Fitbit connection test succeeded")
        return ConnectionCheck(result=ConnectionTestResult(
            success=True,
            message="Fitbit connection successful",
            data=_profile_data(response),
        ))

    if response.status_code == 401:
        if not credential.refresh_token:
            return ConnectionCheck(result=ConnectionTestResult(
                success=False,
                message="Access token expired and no refresh token available. Please re-authorize the app.",
            ))
        return await _refresh_and_report(credential.refresh_token, app)

    return ConnectionCheck(result=ConnectionTestResult(
        success=False,
        message=f"Fitbit API error: {response.status_code} {response.reason_phrase}",
    ))


async def _refresh_and_report(refresh_token: str, app: Optional[ProviderApp]) -> ConnectionCheck:
    failed = ConnectionCheck(result=ConnectionTestResult(
        success=False,
        message="Access token expired and refresh failed. Please re-authorize the app.",
    ))
    if app is None:
        log_warning("Fitbit refresh skipped: no client credentials configured")
        return failed

    try:
        tokens = await refresh_access_token(app, refresh_token)
    except UpstreamServiceError as e:
        log_warning(f"Fitbit token refresh failed: {e}", status_code=e.status_code)
        return failed

    log_info("Fitbit token refreshed during connection test")
    return ConnectionCheck(
        result=ConnectionTestResult(success=True, message="Token refreshed and connection successful"),
        refreshed_tokens=tokens,
    )
