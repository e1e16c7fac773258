"""
FastAPI router for OAuth and connection-test endpoints.

Endpoints:
- POST /oauth/{provider}/start: Build the provider authorization URL
- GET /oauth/{provider}/callback: Provider redirect target; answers with HTML
- POST /connections/test: Check a provider with the stored credential

Authentication:
- start and connections/test require a bearer token
- callback is authenticated by the signed state parameter
"""
from typing import Optional

from fastapi import APIRouter, Body, Query, status
from fastapi.responses import HTMLResponse

from healthsync.api.dependencies import CurrentUser, DbSession, ProviderAppsDep
from healthsync.integrations.pages import render_callback_page
from healthsync.integrations.schemas import ConnectionTestRequest, ConnectionTestResult, OAuthStartResponse
from healthsync.integrations.service import complete_oauth_callback, run_connection_test, start_oauth
from healthsync.models.enums import OAuthProvider

router = APIRouter(tags=["integrations"])


@router.post(
    "/oauth/{provider}/start",
    response_model=OAuthStartResponse,
    status_code=status.HTTP_200_OK,
    responses={
        400: {"description": "Provider app registration missing"},
        401: {"description": "Not authenticated"},
    },
)
async def oauth_start(
    provider: OAuthProvider,
    current_user: CurrentUser,
    session: DbSession,
    apps: ProviderAppsDep,
) -> OAuthStartResponse:
    """
    Start an OAuth authorization.

    Returns the URL the client should open (usually in a popup).
    """
    return await start_oauth(session, current_user, provider, apps)


@router.get(
    "/oauth/{provider}/callback",
    response_class=HTMLResponse,
    status_code=status.HTTP_200_OK,
)
async def oauth_callback(
    provider: OAuthProvider,
    session: DbSession,
    apps: ProviderAppsDep,
    code: Optional[str] = Query(default=None),
    state: Optional[str] = Query(default=None),
    error: Optional[str] = Query(default=None),
) -> HTMLResponse:
    page = await complete_oauth_callback(
        session,
        provider,
        apps,
        code=code,
        state=state,
        error=error,
    )
    return HTMLResponse(content=render_callback_page(provider, page))


@router.post(
    "/connections/test",
    response_model=ConnectionTestResult,
    status_code=status.HTTP_200_OK,
    responses={
        400: {"description": "Service name missing"},
        401: {"description": "Not authenticated"},
        404: {"description": "No configuration stored for the service"},
    },
)
async def test_api_connection(
    current_user: CurrentUser,
    session: DbSession,
    apps: ProviderAppsDep,
    request: Optional[ConnectionTestRequest] = Body(default=None),
) -> ConnectionTestResult:
    """
    Test a stored integration.

    Every check outcome, including provider failures, is answered with 200;
    ``success`` tells the client whether the connection works.
    """
    return await run_connection_test(session, current_user, request.service if request else None, apps)
