"""
Enumerations shared by models, schemas and routers.
"""
from enum import Enum


class ServiceName(str, Enum):
    """Services a user can store a credential record for."""
    GOOGLE = "google"
    FITBIT = "fitbit"
    ALEXA = "alexa"
    HOME_ASSISTANT = "home_assistant"
    IFTTT = "ifttt"
    N8N = "n8n"
    NOTIFY_ME = "notify_me"
    AMAZON = "amazon"


class OAuthProvider(str, Enum):
    """
    Providers that authorize through the three-legged OAuth flow.

    Each value has a client module in healthsync/integrations/{provider}.py
    """
    GOOGLE = "google"
    FITBIT = "fitbit"
    ALEXA = "alexa"

    @property
    def service(self) -> ServiceName:
        return ServiceName(self.value)


class WebhookProvider(str, Enum):
    """Outbound notification targets."""
    IFTTT = "ifttt"
    N8N = "n8n"
    HOME_ASSISTANT = "home_assistant"
    NOTIFY_ME = "notify_me"

    @property
    def service(self) -> ServiceName:
        return ServiceName(self.value)


class ForwardTarget(str, Enum):
    """Webhook providers reachable through the generic forward and test routes."""
    IFTTT = "ifttt"
    N8N = "n8n"
    HOME_ASSISTANT = "home_assistant"

    @property
    def provider(self) -> WebhookProvider:
        return WebhookProvider(self.value)
