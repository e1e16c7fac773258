"""
Google Calendar OAuth provider.

Client credentials travel in the token request body. ``access_type=offline``
together with ``prompt=consent`` makes Google return a refresh token on every
authorization, not only the first one.

API Documentation: https://developers.google.com/identity/protocols/oauth2/web-server
"""
import httpx

from healthsync.core.http_client import get_http_client
from healthsync.core.logging_config import log_error, log_info
from healthsync.integrations.apps import ProviderApp
from healthsync.integrations.oauth_client import create_authorization_url, exchange_refresh_token, fetch_token
from healthsync.integrations.schemas import ConnectionTestResult, ConnectionCheck, TokenSet

DISPLAY_NAME = "Google Calendar"
AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
CALENDAR_API_BASE = "https://www.googleapis.com/calendar/v3"
CALENDAR_LIST_URL = f"{CALENDAR_API_BASE}/users/me/calendarList"
PRIMARY_EVENTS_URL = f"{CALENDAR_API_BASE}/calendars/primary/events"


async def build_authorization_url(app: ProviderApp, state: str) -> str:
    return await create_authorization_url(app, AUTHORIZE_URL, state, access_type="offline", prompt="consent")


async def exchange_code(app: ProviderApp, code: str) -> TokenSet:
    return await fetch_token("google", app, TOKEN_URL, code)


async def refresh_access_token(app: ProviderApp, refresh_token: str) -> TokenSet:
    return await exchange_refresh_token("google", app, TOKEN_URL, refresh_token)


async def check_connection(credential, app=None) -> ConnectionCheck:
    """
    Check the calendar list with the stored access token.

    A 401 is reported as-is; the check never refreshes Google tokens.
    """
    if not credential.access_token:
        return ConnectionCheck(result=ConnectionTestResult(
            success=False,
            message="No access token found for Google Calendar. Please complete the OAuth flow first.",
        ))

    client = await get_http_client()
    try:
        response = await client.get(
            CALENDAR_LIST_URL,
            headers={"Authorization": f"Bearer {credential.access_token}"},
        )
    except httpx.HTTPError as e:
        log_error(e, provider="google", action="connection_test")
        return ConnectionCheck(result=ConnectionTestResult(success=False, message=f"Connection test failed: {e}"))

    if response.status_code == 200:
        items = response.json().get("items", [])
        primary = next((item for item in items if item.get("primary")), None)
        log_info("Google Calendar connection test succeeded", calendars=len(items))
        return ConnectionCheck(result=ConnectionTestResult(
            success=True,
            message="Google Calendar connection successful",
            data={
                "calendarsCount": len(items),
                "primaryCalendar": primary.get("summary") if primary else None,
            },
        ))

    if response.status_code == 401:
        return ConnectionCheck(result=ConnectionTestResult(
            success=False,
            message="Access token expired. Please re-authorize Google Calendar access.",
        ))

    return ConnectionCheck(result=ConnectionTestResult(
        success=False,
        message=f"Google Calendar API error: {response.status_code} {response.reason_phrase}",
    ))
