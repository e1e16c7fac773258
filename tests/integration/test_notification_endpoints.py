"""
API tests for Home Assistant, Notify Me and generic webhook forwarding.
"""
import httpx
import pytest

from healthsync.models.enums import ServiceName
from healthsync.services.credential_store import CredentialStore
from tests.lib import make_response, posted_json


class TestHomeAssistantTest:
    """POST /home-assistant/test"""

    URL = "/api/v1/home-assistant/test"

    def test_not_configured_is_400(self, client, auth_headers, mock_http_client):
        response = client.post(self.URL, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Home Assistant URL not configured"
        mock_http_client.post.assert_not_called()

    def test_success(self, client, auth_headers, db_session, mock_http_client):
        CredentialStore(db_session).upsert("user-1", ServiceName.HOME_ASSISTANT, api_key="https://ha.example:8123/")
        mock_http_client.post.return_value = make_response(200)

        response = client.post(self.URL, headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Test announcement sent successfully! Check your Alexa devices.",
            "status": 200,
        }
        call = mock_http_client.post.await_args
        assert call.args[0] == "https://ha.example:8123/api/webhook/lovable_alexa_announce"
        assert posted_json(call)["message"].startswith("Test announcement from Health Sync")

    def test_rejected_announcement_is_400_with_status(self, client, auth_headers, db_session, mock_http_client):
        CredentialStore(db_session).upsert("user-1", ServiceName.HOME_ASSISTANT, api_key="https://ha.example")
        mock_http_client.post.return_value = make_response(404, text="Not Found")

        response = client.post(self.URL, headers=auth_headers)

        assert response.status_code == 400
        assert "404" in response.json()["error"]
        assert response.json()["details"] == "Not Found"
        assert mock_http_client.post.await_count == 1

    def test_unreachable_instance_is_500(self, client, auth_headers, db_session, mock_http_client):
        CredentialStore(db_session).upsert("user-1", ServiceName.HOME_ASSISTANT, api_key="https://ha.example")
        mock_http_client.post.side_effect = httpx.ConnectError("no route to host")

        response = client.post(self.URL, headers=auth_headers)

        assert response.status_code == 500
        assert response.json()["success"] is False


class TestNotifyMe:
    """POST /notify-me/alexa"""

    URL = "/api/v1/notify-me/alexa"

    def test_missing_fields_are_400(self, client, auth_headers, mock_http_client):
        response = client.post(self.URL, json={"notification": "Stretch"}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Missing notification or access code"
        mock_http_client.post.assert_not_called()

    def test_success(self, client, auth_headers, mock_http_client):
        mock_http_client.post.return_value = make_response(200)

        response = client.post(
            self.URL,
            json={"notification": "Stretch", "title": "Routine", "accessCode": "amzn1.code"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Notification sent successfully"}
        call = mock_http_client.post.await_args
        assert call.args[0] == "https://api.notifymyecho.com/v1/NotifyMe"
        assert posted_json(call) == {"notification": "Stretch", "accessCode": "amzn1.code", "title": "Routine"}

    def test_upstream_status_is_relayed_with_details(self, client, auth_headers, mock_http_client):
        mock_http_client.post.return_value = make_response(401, {"error": "invalid access code"})

        response = client.post(
            self.URL, json={"notification": "Stretch", "accessCode": "bad"}, headers=auth_headers
        )

        assert response.status_code == 401
        body = response.json()
        assert body["error"] == "Failed to send notification"
        assert body["details"] == {"error": "invalid access code"}


class TestWebhookForward:
    """POST /webhooks/{provider}/forward and /test"""

    def test_forward_to_n8n(self, client, auth_headers, db_session, mock_http_client):
        CredentialStore(db_session).upsert("user-1", ServiceName.N8N, api_key="https://n8n.example/webhook/abc")
        mock_http_client.post.return_value = make_response(200)

        response = client.post(
            "/api/v1/webhooks/n8n/forward",
            json={"title": "Meditate", "body": "Five minutes of breathing", "data": {"routine": "calm"}},
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["status"] == 200
        payload = posted_json(mock_http_client.post.await_args)
        assert payload["userId"] == "user-1"
        assert payload["data"] == {"routine": "calm"}

    def test_non_2xx_is_reported_once(self, client, auth_headers, db_session, mock_http_client):
        CredentialStore(db_session).upsert(
            "user-1", ServiceName.IFTTT, api_key="https://maker.ifttt.com/trigger/routine/with/key/k"
        )
        mock_http_client.post.return_value = make_response(500, text="oops")

        response = client.post(
            "/api/v1/webhooks/ifttt/forward",
            json={"title": "Walk", "body": "Go outside"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is False
        assert body["status"] == 500
        assert "500" in body["message"]
        assert mock_http_client.post.await_count == 1

    def test_test_notification_for_unconfigured_provider_is_400(self, client, auth_headers, mock_http_client):
        response = client.post("/api/v1/webhooks/n8n/test", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "n8n URL not configured"

    def test_test_notification_is_sent(self, client, auth_headers, db_session, mock_http_client):
        CredentialStore(db_session).upsert("user-1", ServiceName.N8N, api_key="https://n8n.example/webhook/abc")
        mock_http_client.post.return_value = make_response(204)

        response = client.post("/api/v1/webhooks/n8n/test", headers=auth_headers)

        assert response.json()["success"] is True
        assert posted_json(mock_http_client.post.await_args)["data"] == {"test": True}

    def test_empty_title_is_rejected(self, client, auth_headers):
        response = client.post(
            "/api/v1/webhooks/n8n/forward", json={"title": "", "body": "x"}, headers=auth_headers
        )
        assert response.status_code == 422

    @pytest.mark.parametrize("route", ["forward", "test"])
    def test_notify_me_is_not_a_generic_target(self, client, auth_headers, db_session, mock_http_client, route):
        CredentialStore(db_session).upsert("user-1", ServiceName.NOTIFY_ME, api_key="access-code")

        response = client.post(
            f"/api/v1/webhooks/notify_me/{route}", json={"title": "Walk", "body": "Now"}, headers=auth_headers
        )

        assert response.status_code == 422
        mock_http_client.post.assert_not_called()
