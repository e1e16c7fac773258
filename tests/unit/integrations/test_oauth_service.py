"""
Unit tests for the OAuth start/callback flow and the connection tester.
"""
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

import pytest
from sqlmodel import select

from healthsync.core.exceptions import ConfigurationError, CredentialNotFoundError, ValidationError
from healthsync.core.signing import decode_state, issue_state
from healthsync.integrations.apps import load_provider_apps
from healthsync.integrations.service import complete_oauth_callback, run_connection_test, start_oauth
from healthsync.models.credential import ApiConfiguration
from healthsync.models.enums import OAuthProvider, ServiceName
from healthsync.services.credential_store import CredentialStore
from tests.lib import make_response

TOKEN_BODY = {"access_token": "fresh-access", "refresh_token": "fresh-refresh", "expires_in": 3600}


@pytest.fixture
def apps():
    return load_provider_apps()


def _rows(session):
    return session.exec(select(ApiConfiguration)).all()


class TestStartOAuth:
    """Building the authorization URL."""

    @pytest.mark.asyncio
    async def test_url_carries_client_id_and_signed_state(self, db_session, current_user, apps):
        response = await start_oauth(db_session, current_user, OAuthProvider.GOOGLE, apps)

        query = parse_qs(urlparse(response.auth_url).query)
        assert query["client_id"] == ["google-client-id"]
        assert query["redirect_uri"] == ["https://healthsync.test/api/v1/oauth/google/callback"]
        assert decode_state(query["state"][0])["user_id"] == current_user.id
        assert response.message == "Redirect to this URL to authorize Google Calendar access"

    @pytest.mark.asyncio
    async def test_unconfigured_provider_raises(self, db_session, current_user, apps):
        with pytest.raises(ConfigurationError, match="Fitbit OAuth is not configured"):
            await start_oauth(db_session, current_user, OAuthProvider.FITBIT, apps)

    @pytest.mark.asyncio
    async def test_user_client_credentials_are_used_as_fallback(self, db_session, current_user, apps):
        CredentialStore(db_session).upsert(
            current_user.id, ServiceName.FITBIT, client_id="my-fitbit-app", client_secret="my-fitbit-secret"
        )

        response = await start_oauth(db_session, current_user, OAuthProvider.FITBIT, apps)

        assert parse_qs(urlparse(response.auth_url).query)["client_id"] == ["my-fitbit-app"]


class TestCompleteOAuthCallback:
    """Callback outcomes, each rendered as a page."""

    @pytest.mark.asyncio
    async def test_provider_error_touches_nothing(self, db_session, apps, token_endpoint):
        page = await complete_oauth_callback(
            db_session, OAuthProvider.GOOGLE, apps, code=None, state=None, error="access_denied"
        )

        assert page.success is False
        assert page.title == "Authorization Failed"
        assert page.detail == "access_denied"
        assert _rows(db_session) == []
        assert token_endpoint.call_count == 0

    @pytest.mark.asyncio
    async def test_missing_code_is_invalid_request(self, db_session, apps, token_endpoint):
        page = await complete_oauth_callback(
            db_session, OAuthProvider.GOOGLE, apps, code=None, state="abc", error=None
        )

        assert page.title == "Invalid Request"
        assert token_endpoint.call_count == 0

    @pytest.mark.asyncio
    async def test_unparseable_state_skips_token_exchange(self, db_session, apps, token_endpoint):
        page = await complete_oauth_callback(
            db_session, OAuthProvider.GOOGLE, apps, code="code", state="%%%not-a-state", error=None
        )

        assert page.title == "Invalid State"
        assert token_endpoint.call_count == 0
        assert _rows(db_session) == []

    @pytest.mark.asyncio
    async def test_state_for_other_provider_is_rejected(self, db_session, apps, token_endpoint):
        state = issue_state("user-1", "alexa")

        page = await complete_oauth_callback(
            db_session, OAuthProvider.GOOGLE, apps, code="code", state=state, error=None
        )

        assert page.title == "Invalid State"
        assert token_endpoint.call_count == 0

    @pytest.mark.asyncio
    async def test_success_persists_encrypted_tokens(self, db_session, apps, token_endpoint):
        token_endpoint.reply(200, json=TOKEN_BODY)

        page = await complete_oauth_callback(
            db_session, OAuthProvider.GOOGLE, apps, code="code", state=issue_state("user-1", "google"), error=None
        )

        assert page.success is True
        assert page.title == "Authorization Successful"
        assert token_endpoint.call_count == 1

        rows = _rows(db_session)
        assert len(rows) == 1
        assert rows[0].user_id == "user-1"
        assert rows[0].service_name == "google"
        assert rows[0].access_token != "fresh-access"

        credential = CredentialStore(db_session).load_secrets("user-1", ServiceName.GOOGLE)
        assert credential.access_token == "fresh-access"
        assert credential.refresh_token == "fresh-refresh"
        assert credential.expires_at is not None

    @pytest.mark.asyncio
    async def test_repeated_callback_keeps_one_row(self, db_session, apps, token_endpoint):
        token_endpoint.reply(200, json=TOKEN_BODY)
        for _ in range(2):
            await complete_oauth_callback(
                db_session, OAuthProvider.ALEXA, apps, code="code", state=issue_state("user-1", "alexa"), error=None
            )

        assert len(_rows(db_session)) == 1

    @pytest.mark.asyncio
    async def test_exchange_without_refresh_token_keeps_stored_one(self, db_session, apps, token_endpoint):
        CredentialStore(db_session).upsert("user-1", ServiceName.GOOGLE, refresh_token="kept-refresh")
        token_endpoint.reply(200, json={"access_token": "only-access", "expires_in": 60})

        await complete_oauth_callback(
            db_session, OAuthProvider.GOOGLE, apps, code="code", state=issue_state("user-1", "google"), error=None
        )

        credential = CredentialStore(db_session).load_secrets("user-1", ServiceName.GOOGLE)
        assert credential.access_token == "only-access"
        assert credential.refresh_token == "kept-refresh"

    @pytest.mark.asyncio
    async def test_rejected_exchange_renders_provider_answer(self, db_session, apps, token_endpoint):
        token_endpoint.reply(400, text="invalid_grant")

        page = await complete_oauth_callback(
            db_session, OAuthProvider.GOOGLE, apps, code="code", state=issue_state("user-1", "google"), error=None
        )

        assert page.title == "Token Exchange Failed"
        assert page.detail == "400 Bad Request"
        assert _rows(db_session) == []

    @pytest.mark.asyncio
    async def test_missing_app_registration_renders_configuration_error(self, db_session, apps, token_endpoint):
        page = await complete_oauth_callback(
            db_session, OAuthProvider.FITBIT, apps, code="code", state=issue_state("user-1", "fitbit"), error=None
        )

        assert page.title == "Configuration Error"
        assert token_endpoint.call_count == 0


class TestRunConnectionTest:
    """Connection tester dispatch and refresh persistence."""

    @pytest.mark.asyncio
    async def test_service_name_is_required(self, db_session, current_user, apps):
        with pytest.raises(ValidationError, match="Service name is required"):
            await run_connection_test(db_session, current_user, "  ", apps)

    @pytest.mark.asyncio
    async def test_unknown_record_raises_not_found(self, db_session, current_user, apps):
        with pytest.raises(CredentialNotFoundError, match="No configuration found for fitbit"):
            await run_connection_test(db_session, current_user, "fitbit", apps)

    @pytest.mark.asyncio
    async def test_non_oauth_service_is_not_testable(self, db_session, current_user, apps):
        CredentialStore(db_session).upsert(current_user.id, ServiceName.N8N, api_key="https://n8n.example/webhook/x")

        result = await run_connection_test(db_session, current_user, "n8n", apps)

        assert result.success is False
        assert result.message == "Testing not implemented for n8n"

    @pytest.mark.asyncio
    async def test_google_success_makes_no_refresh_call(
        self, db_session, current_user, apps, mock_http_client, token_endpoint
    ):
        CredentialStore(db_session).upsert(current_user.id, ServiceName.GOOGLE, access_token="stored-access")
        mock_http_client.get.return_value = make_response(200, {"items": []})

        result = await run_connection_test(db_session, current_user, "google", apps)

        assert result.success is True
        assert token_endpoint.call_count == 0
        assert mock_http_client.get.await_args.kwargs["headers"]["Authorization"] == "Bearer stored-access"

    @pytest.mark.asyncio
    async def test_fitbit_refresh_is_not_persisted_by_default(
        self, db_session, current_user, apps, mock_http_client, token_endpoint
    ):
        store = CredentialStore(db_session)
        store.upsert(
            current_user.id,
            ServiceName.FITBIT,
            client_id="fid",
            client_secret="fsecret",
            access_token="stale-access",
            refresh_token="old-refresh",
        )
        mock_http_client.get.return_value = make_response(401)
        token_endpoint.reply(200, json=TOKEN_BODY)

        result = await run_connection_test(db_session, current_user, "fitbit", apps)

        assert result.success is True
        assert token_endpoint.call_count == 1
        credential = store.load_secrets(current_user.id, ServiceName.FITBIT)
        assert credential.access_token == "stale-access"
        assert credential.refresh_token == "old-refresh"

    @pytest.mark.asyncio
    async def test_fitbit_refresh_is_persisted_when_enabled(
        self, db_session, current_user, apps, mock_http_client, token_endpoint
    ):
        store = CredentialStore(db_session)
        store.upsert(
            current_user.id,
            ServiceName.FITBIT,
            client_id="fid",
            client_secret="fsecret",
            access_token="stale-access",
            refresh_token="old-refresh",
        )
        mock_http_client.get.return_value = make_response(401)
        token_endpoint.reply(200, json=TOKEN_BODY)

        with patch("healthsync.integrations.service.settings.connection_test_persist_refresh", True):
            await run_connection_test(db_session, current_user, "FITBIT", apps)

        credential = store.load_secrets(current_user.id, ServiceName.FITBIT)
        assert credential.access_token == "fresh-access"
        assert credential.refresh_token == "fresh-refresh"
