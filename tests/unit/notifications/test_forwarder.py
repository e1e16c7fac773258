"""
Unit tests for single-attempt webhook delivery.
"""
import httpx
import pytest

from healthsync.models.enums import WebhookProvider
from healthsync.notifications.forwarder import forward_notification
from healthsync.notifications.payloads import Notification
from tests.lib import make_response, posted_json

TARGET = "https://n8n.example/webhook/routine"


@pytest.fixture
def notification():
    return Notification(title="Walk", body="Ten minute walk", data={"minutes": 10}, user_id="user-1")


class TestForwardNotification:
    """Exactly one POST per forward, outcome reported in the result."""

    @pytest.mark.asyncio
    async def test_2xx_is_success(self, mock_http_client, notification):
        mock_http_client.post.return_value = make_response(202)

        result = await forward_notification(WebhookProvider.N8N, notification, target_url=TARGET)

        assert result.success is True
        assert result.status_code == 202
        assert mock_http_client.post.await_count == 1
        call = mock_http_client.post.await_args
        assert call.args[0] == TARGET
        assert posted_json(call)["title"] == "Walk"
        assert call.kwargs["headers"] == {"Content-Type": "application/json"}

    @pytest.mark.asyncio
    async def test_non_2xx_reports_status_without_retry(self, mock_http_client, notification):
        mock_http_client.post.return_value = make_response(503, text="Service Unavailable")

        result = await forward_notification(WebhookProvider.IFTTT, notification, target_url=TARGET)

        assert result.success is False
        assert "503" in result.message
        assert result.details == "Service Unavailable"
        assert mock_http_client.post.await_count == 1

    @pytest.mark.asyncio
    async def test_json_error_body_is_kept_as_details(self, mock_http_client, notification):
        mock_http_client.post.return_value = make_response(400, {"error": "bad access code"})

        result = await forward_notification(
            WebhookProvider.NOTIFY_ME, notification, target_url=TARGET, access_code="code"
        )

        assert result.details == {"error": "bad access code"}
        assert posted_json(mock_http_client.post.await_args)["accessCode"] == "code"

    @pytest.mark.asyncio
    async def test_network_error_is_reported(self, mock_http_client, notification):
        mock_http_client.post.side_effect = httpx.ConnectTimeout("timed out")

        result = await forward_notification(WebhookProvider.HOME_ASSISTANT, notification, target_url=TARGET)

        assert result.success is False
        assert result.network_error is True
        assert result.status_code is None
        assert mock_http_client.post.await_count == 1
