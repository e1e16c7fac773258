"""
Payload builders, one per webhook provider.
"""
import json
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel, Field

from healthsync.core.config import settings
from healthsync.core.time_utils import to_rfc3339, utc_now
from healthsync.models.enums import WebhookProvider


class Notification(BaseModel):
    """Canonical notification record every builder reads from."""
    title: str
    body: str
    data: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=utc_now)
    user_id: Optional[str] = None


def build_ifttt_payload(notification: Notification, **_: Any) -> Dict[str, Any]:
    # Maker webhooks only understand value1..value3
    return {
        "value1": notification.title,
        "value2": notification.body,
        "value3": json.dumps(notification.data),
        "timestamp": to_rfc3339(notification.timestamp),
    }


def build_n8n_payload(notification: Notification, **_: Any) -> Dict[str, Any]:
    return {
        "title": notification.title,
        "body": notification.body,
        "data": notification.data,
        "timestamp": to_rfc3339(notification.timestamp),
        "userId": notification.user_id,
        "source": settings.webhook_source,
    }


def build_home_assistant_payload(notification: Notification, **_: Any) -> Dict[str, Any]:
    # The Home Assistant automation announces ``message`` verbatim
    return {"message": notification.body}


def build_notify_me_payload(notification: Notification, *, access_code: Optional[str] = None, **_: Any) -> Dict[str, Any]:
    if not access_code:
        raise ValueError("Notify Me requires an access code")
    payload: Dict[str, Any] = {
        "notification": notification.body,
        "accessCode": access_code,
    }
    if notification.title:
        payload["title"] = notification.title
    return payload


PAYLOAD_BUILDERS: Dict[WebhookProvider, Callable[..., Dict[str, Any]]] = {
    WebhookProvider.IFTTT: build_ifttt_payload,
    WebhookProvider.N8N: build_n8n_payload,
    WebhookProvider.HOME_ASSISTANT: build_home_assistant_payload,
    WebhookProvider.NOTIFY_ME: build_notify_me_payload,
}


def build_payload(provider: WebhookProvider, notification: Notification, **options: Any) -> Dict[str, Any]:
    return PAYLOAD_BUILDERS[provider](notification, **options)


def home_assistant_webhook_url(stored_url: str, webhook_id: Optional[str] = None) -> str:
    """
    Derive the webhook endpoint from a stored Home Assistant URL.

    Users paste either the instance base URL or a full webhook URL; anything
    from ``/api/webhook/`` on is replaced with the configured webhook id.
    """
    base = stored_url.strip()
    if "/api/webhook/" in base:
        base = base.split("/api/webhook/", 1)[0]
    else:
        base = base.rstrip("/")
    return f"{base}/api/webhook/{webhook_id or settings.home_assistant_webhook_id}"


def resolve_target_url(provider: WebhookProvider, stored_value: Optional[str]) -> str:
    """Where a provider's payload is POSTed, given the user's stored api_key value."""
    if provider == WebhookProvider.NOTIFY_ME:
        return settings.notify_me_url
    if not stored_value or not stored_value.strip():
        raise ValueError(f"No webhook URL configured for {provider.value}")
    if provider == WebhookProvider.HOME_ASSISTANT:
        return home_assistant_webhook_url(stored_value)
    return stored_value.strip()
