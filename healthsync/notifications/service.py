"""
Notification service: resolves a user's stored webhook target and forwards.
"""
from sqlmodel import Session

from healthsync.core.config import settings
from healthsync.core.exceptions import ConfigurationError
from healthsync.core.logging_config import log_info
from healthsync.models.enums import WebhookProvider
from healthsync.notifications.forwarder import ForwardResult, forward_notification
from healthsync.notifications.payloads import Notification, resolve_target_url
from healthsync.schemas.auth import AuthenticatedUser
from healthsync.services.credential_store import CredentialStore

PROVIDER_LABELS = {
    WebhookProvider.IFTTT: "IFTTT",
    WebhookProvider.N8N: "n8n",
    WebhookProvider.HOME_ASSISTANT: "Home Assistant",
    WebhookProvider.NOTIFY_ME: "Notify Me",
}

HOME_ASSISTANT_TEST_MESSAGE = (
    "Test announcement from Health Sync. "
    "This is a test notification from your routine reminder app."
)


def build_test_notification(provider: WebhookProvider) -> Notification:
    """The fixed notification sent by the configuration screens' test buttons."""
    if provider == WebhookProvider.HOME_ASSISTANT:
        return Notification(title="Test Announcement", body=HOME_ASSISTANT_TEST_MESSAGE)
    return Notification(
        title="Test Notification",
        body="This is a test notification from your health routine app.",
        data={"test": True},
    )


async def forward_for_user(
    session: Session,
    user: AuthenticatedUser,
    provider: WebhookProvider,
    notification: Notification,
) -> ForwardResult:
    """
    Forward ``notification`` to the target stored in the user's record.

    Raises:
        ConfigurationError: If the user has not stored a URL (or Notify Me access code)
    """
    label = PROVIDER_LABELS[provider]
    credential = CredentialStore(session).load_secrets(user.id, provider.service)
    stored_value = credential.api_key if credential else None

    if not stored_value or not stored_value.strip():
        if provider == WebhookProvider.NOTIFY_ME:
            raise ConfigurationError(f"{label} access code not configured")
        raise ConfigurationError(f"{label} URL not configured")

    notification.user_id = user.id
    target_url = resolve_target_url(provider, stored_value)
    log_info(f"Forwarding notification to {label}", user_id=user.id)

    return await forward_notification(
        provider,
        notification,
        target_url=target_url,
        access_code=stored_value if provider == WebhookProvider.NOTIFY_ME else None,
    )


async def send_notify_me(user: AuthenticatedUser, text: str, access_code: str, title: str = None) -> ForwardResult:
    """Relay a one-off announcement through Notify Me with a caller-supplied access code."""
    notification = Notification(title=title or "", body=text, user_id=user.id)
    return await forward_notification(
        WebhookProvider.NOTIFY_ME,
        notification,
        target_url=settings.notify_me_url,
        access_code=access_code,
    )
