"""
Unit tests for webhook payload builders and target resolution.
"""
import json
from datetime import datetime, timezone

import pytest

from healthsync.models.enums import WebhookProvider
from healthsync.notifications.payloads import (
    PAYLOAD_BUILDERS,
    Notification,
    build_payload,
    home_assistant_webhook_url,
    resolve_target_url,
)

TIMESTAMP = datetime(2026, 3, 2, 8, 15, tzinfo=timezone.utc)


@pytest.fixture
def notification():
    return Notification(
        title="Hydrate",
        body="Time for a glass of water",
        data={"routineId": "r-1", "streak": 4},
        timestamp=TIMESTAMP,
        user_id="user-1",
    )


class TestBuilders:
    """One builder per provider, all reading the same record."""

    def test_every_provider_has_a_builder(self):
        assert set(PAYLOAD_BUILDERS) == set(WebhookProvider)

    def test_ifttt_uses_value_fields(self, notification):
        payload = build_payload(WebhookProvider.IFTTT, notification)

        assert payload["value1"] == "Hydrate"
        assert payload["value2"] == "Time for a glass of water"
        assert json.loads(payload["value3"]) == {"routineId": "r-1", "streak": 4}
        assert payload["timestamp"] == "2026-03-02T08:15:00Z"

    def test_n8n_carries_structured_data(self, notification):
        payload = build_payload(WebhookProvider.N8N, notification)

        assert payload == {
            "title": "Hydrate",
            "body": "Time for a glass of water",
            "data": {"routineId": "r-1", "streak": 4},
            "timestamp": "2026-03-02T08:15:00Z",
            "userId": "user-1",
            "source": "health-sync",
        }

    def test_home_assistant_announces_body(self, notification):
        assert build_payload(WebhookProvider.HOME_ASSISTANT, notification) == {
            "message": "Time for a glass of water",
        }

    def test_notify_me_includes_access_code(self, notification):
        payload = build_payload(WebhookProvider.NOTIFY_ME, notification, access_code="amzn1.code")

        assert payload == {
            "notification": "Time for a glass of water",
            "accessCode": "amzn1.code",
            "title": "Hydrate",
        }

    def test_notify_me_without_title_omits_it(self):
        payload = build_payload(WebhookProvider.NOTIFY_ME, Notification(title="", body="Stretch"), access_code="c")
        assert "title" not in payload

    def test_notify_me_requires_access_code(self, notification):
        with pytest.raises(ValueError, match="access code"):
            build_payload(WebhookProvider.NOTIFY_ME, notification)


class TestTargetResolution:
    """Where each provider's payload is sent."""

    @pytest.mark.parametrize(
        "stored",
        [
            "https://ha.example:8123",
            "https://ha.example:8123/",
            "https://ha.example:8123/api/webhook/something_else",
        ],
    )
    def test_home_assistant_url_uses_configured_webhook_id(self, stored):
        assert home_assistant_webhook_url(stored) == "https://ha.example:8123/api/webhook/lovable_alexa_announce"

    def test_home_assistant_webhook_id_override(self):
        assert home_assistant_webhook_url("http://ha.local", "routine_hook") == "http://ha.local/api/webhook/routine_hook"

    def test_notify_me_always_targets_service_url(self):
        assert resolve_target_url(WebhookProvider.NOTIFY_ME, "amzn1.code") == "https://api.notifymyecho.com/v1/NotifyMe"

    def test_stored_url_is_used_for_ifttt_and_n8n(self):
        url = "https://maker.ifttt.com/trigger/routine/with/key/abc"
        assert resolve_target_url(WebhookProvider.IFTTT, f"  {url} ") == url

    def test_missing_url_raises(self):
        with pytest.raises(ValueError, match="No webhook URL configured for n8n"):
            resolve_target_url(WebhookProvider.N8N, "  ")
