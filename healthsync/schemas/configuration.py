"""
Schemas for the per-service configuration endpoints.

Secret values are accepted on write and never echoed back; the status view
only reports whether they are present.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from healthsync.core.exceptions import ValidationError
from healthsync.models.enums import ServiceName

URL_SERVICES = {ServiceName.N8N, ServiceName.HOME_ASSISTANT}
IFTTT_TRIGGER_MARKER = "maker.ifttt.com/trigger/"


class ConfigurationUpdateRequest(BaseModel):
    """
    Fields to write. Omitted fields are left untouched; an empty string clears a value.
    """
    client_id: Optional[str] = Field(default=None, max_length=512)
    client_secret: Optional[str] = Field(default=None, max_length=4096)
    redirect_url: Optional[str] = Field(default=None, max_length=1024)
    api_key: Optional[str] = Field(default=None, max_length=4096)
    is_active: Optional[bool] = None


class ConfigurationStatusResponse(BaseModel):
    service: ServiceName
    configured: bool
    connected: bool
    has_api_key: bool
    has_client_credentials: bool
    expires_at: Optional[datetime] = None
    is_active: bool
    updated_at: Optional[datetime] = None


def _is_http_url(value: str) -> bool:
    return value.startswith(("http://", "https://")) and len(value) > len("https://")


def validate_configuration(service: ServiceName, request: ConfigurationUpdateRequest) -> None:
    """
    Apply the per-service rules of the configuration screens.

    Raises:
        ValidationError: If a value does not fit the service
    """
    api_key = (request.api_key or "").strip()
    if api_key:
        if service == ServiceName.IFTTT and IFTTT_TRIGGER_MARKER not in api_key:
            raise ValidationError(
                "Invalid IFTTT webhook URL. It should look like "
                "https://maker.ifttt.com/trigger/{event}/with/key/{key}"
            )
        if service in URL_SERVICES and not _is_http_url(api_key):
            raise ValidationError(f"{service.value} URL must start with http:// or https://")

    redirect_url = (request.redirect_url or "").strip()
    if redirect_url and not _is_http_url(redirect_url):
        raise ValidationError("redirect_url must start with http:// or https://")
