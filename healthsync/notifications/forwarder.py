"""
Single-attempt webhook delivery.
"""
from typing import Any, Optional

import httpx
from pydantic import BaseModel

from healthsync.core.http_client import get_http_client, is_success
from healthsync.core.logging_config import log_webhook_delivery
from healthsync.models.enums import WebhookProvider
from healthsync.notifications.payloads import Notification, build_payload


class ForwardResult(BaseModel):
    success: bool
    message: str
    status_code: Optional[int] = None
    details: Any = None
    network_error: bool = False


def _response_details(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


async def forward_notification(
    provider: WebhookProvider,
    notification: Notification,
    *,
    target_url: str,
    access_code: Optional[str] = None,
) -> ForwardResult:
    """
    POST the provider payload for ``notification`` to ``target_url`` once.

    Never raises for delivery problems; the outcome is reported in the result.
    """
    payload = build_payload(provider, notification, access_code=access_code)
    client = await get_http_client()

    try:
        response = await client.post(
            target_url,
            json=payload,
            headers={"Content-Type": "application/json"},
        )
    except httpx.HTTPError as e:
        log_webhook_delivery(provider.value, False, user_id=notification.user_id, error=str(e))
        return ForwardResult(
            success=False,
            message=f"Failed to reach {provider.value}: {e}",
            network_error=True,
        )

    if is_success(response.status_code):
        log_webhook_delivery(provider.value, True, response.status_code, user_id=notification.user_id)
        return ForwardResult(
            success=True,
            message=f"Notification delivered to {provider.value}",
            status_code=response.status_code,
        )

    log_webhook_delivery(provider.value, False, response.status_code, user_id=notification.user_id)
    return ForwardResult(
        success=False,
        message=f"{provider.value} returned status {response.status_code}",
        status_code=response.status_code,
        details=_response_details(response),
    )
