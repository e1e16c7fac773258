"""
Pytest fixtures shared across the unit, integration and CLI suites.

The environment is fixed before any healthsync module is imported so the
module-level settings and engine point at an in-memory SQLite database.
"""
from __future__ import annotations

import os

os.environ["ENVIRONMENT"] = "test"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only-32-chars"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RUN_MIGRATIONS_ON_STARTUP"] = "false"
os.environ["LOG_TO_FILE"] = "false"
os.environ["PUBLIC_BASE_URL"] = "https://healthsync.test"
os.environ["GOOGLE_CLIENT_ID"] = "google-client-id"
os.environ["GOOGLE_CLIENT_SECRET"] = "google-client-secret"
os.environ["ALEXA_CLIENT_ID"] = "alexa-client-id"
os.environ["ALEXA_CLIENT_SECRET"] = "alexa-client-secret"
for _name in (
    "POSTGRES_URL",
    "JWT_SECRET",
    "JWT_AUDIENCE",
    "FRONTEND_URL",
    "FITBIT_CLIENT_ID",
    "FITBIT_CLIENT_SECRET",
    "CONNECTION_TEST_PERSIST_REFRESH",
):
    os.environ.pop(_name, None)

from contextlib import ExitStack  # noqa: E402
from functools import partial  # noqa: E402
from typing import Dict, Iterator  # noqa: E402
from unittest.mock import AsyncMock, patch  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
from authlib.integrations.httpx_client import AsyncOAuth2Client  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel  # noqa: E402

import healthsync.models  # noqa: E402,F401
from healthsync.core.database import engine, get_session  # noqa: E402
from healthsync.core.encryption import reset_key_cache  # noqa: E402
from healthsync.core.security import create_access_token  # noqa: E402
from healthsync.main import app  # noqa: E402
from healthsync.schemas.auth import AuthenticatedUser  # noqa: E402
from tests.lib import FakeTokenEndpoint  # noqa: E402

TEST_USER_ID = "user-1"
OTHER_USER_ID = "user-2"

# Every module that performs outbound HTTP through the shared client
HTTP_CLIENT_TARGETS = (
    "healthsync.integrations.google",
    "healthsync.integrations.fitbit",
    "healthsync.integrations.token_refresh",
    "healthsync.notifications.forwarder",
)


@pytest.fixture
def db_session() -> Iterator[Session]:
    """Fresh schema per test on the shared in-memory engine."""
    reset_key_cache()
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def client(db_session: Session) -> Iterator[TestClient]:
    """
    API client bound to the test session.

    Used without a context manager so the lifespan (migrations) does not run.
    """
    def _override_session():
        yield db_session

    app.dependency_overrides[get_session] = _override_session
    app.state.provider_apps = None
    yield TestClient(app)
    app.dependency_overrides.clear()
    app.state.provider_apps = None


@pytest.fixture
def current_user() -> AuthenticatedUser:
    return AuthenticatedUser(id=TEST_USER_ID, email="user@example.com")


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    token = create_access_token(TEST_USER_ID, email="user@example.com")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def mock_http_client() -> Iterator[AsyncMock]:
    """One AsyncMock client handed out by every get_http_client import site."""
    client_instance = AsyncMock()
    with ExitStack() as stack:
        for target in HTTP_CLIENT_TARGETS:
            stack.enter_context(
                patch(f"{target}.get_http_client", new_callable=AsyncMock, return_value=client_instance)
            )
        yield client_instance


@pytest.fixture(autouse=True)
def token_endpoint() -> Iterator[FakeTokenEndpoint]:
    """Route every OAuth token request to an in-memory endpoint."""
    endpoint = FakeTokenEndpoint()
    transport = httpx.MockTransport(endpoint.handle)
    with patch(
        "healthsync.integrations.oauth_client.AsyncOAuth2Client",
        partial(AsyncOAuth2Client, transport=transport),
    ):
        yield endpoint
