"""
Unit tests for the shared outbound HTTP client.
"""
import pytest

from healthsync.core import http_client
from healthsync.core.http_client import close_http_client, get_http_client, is_success, user_agent


class TestSharedClient:

    @pytest.mark.asyncio
    async def test_client_is_reused_until_closed(self):
        first = await get_http_client()
        try:
            assert await get_http_client() is first
            assert first.headers["User-Agent"] == user_agent()
            assert first.follow_redirects is False
        finally:
            await close_http_client()

        assert first.is_closed
        assert http_client._client is None

    def test_user_agent_names_the_service(self):
        assert user_agent() == f"HealthSyncService/{http_client.settings.app_version}"

    @pytest.mark.parametrize("status_code,expected", [(200, True), (204, True), (299, True), (301, False), (404, False)])
    def test_is_success(self, status_code, expected):
        assert is_success(status_code) is expected
