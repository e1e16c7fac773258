"""
Per-service configuration endpoints.

The configuration screens save webhook URLs, access codes and per-user OAuth
client credentials here.
"""
from fastapi import APIRouter, status

from healthsync.api.dependencies import CredentialStoreDep, CurrentUser
from healthsync.core.logging_config import log_info
from healthsync.models.credential import ApiConfiguration
from healthsync.models.enums import ServiceName
from healthsync.schemas.configuration import (
    ConfigurationStatusResponse,
    ConfigurationUpdateRequest,
    validate_configuration,
)

router = APIRouter(prefix="/configurations", tags=["configurations"])


def _status_view(service: ServiceName, record: ApiConfiguration) -> ConfigurationStatusResponse:
    has_api_key = bool(record.api_key)
    has_client_credentials = bool(record.client_id and record.client_secret)
    connected = bool(record.access_token) or (has_api_key and service not in {ServiceName.GOOGLE, ServiceName.FITBIT, ServiceName.ALEXA})
    return ConfigurationStatusResponse(
        service=service,
        configured=has_api_key or has_client_credentials or bool(record.access_token),
        connected=connected,
        has_api_key=has_api_key,
        has_client_credentials=has_client_credentials,
        expires_at=record.expires_at,
        is_active=record.is_active,
        updated_at=record.updated_at,
    )


@router.get(
    "/{service}",
    response_model=ConfigurationStatusResponse,
    responses={
        401: {"description": "Not authenticated"},
        404: {"description": "Nothing stored for this service"},
    },
)
async def get_configuration(
    service: ServiceName,
    current_user: CurrentUser,
    store: CredentialStoreDep,
) -> ConfigurationStatusResponse:
    return _status_view(service, store.require(current_user.id, service))


@router.put(
    "/{service}",
    response_model=ConfigurationStatusResponse,
    status_code=status.HTTP_200_OK,
    responses={
        400: {"description": "Invalid value for this service"},
        401: {"description": "Not authenticated"},
    },
)
async def save_configuration(
    service: ServiceName,
    request: ConfigurationUpdateRequest,
    current_user: CurrentUser,
    store: CredentialStoreDep,
) -> ConfigurationStatusResponse:
    """
    Create or update the caller's configuration for a service.

    Only fields present in the body are written.
    """
    validate_configuration(service, request)

    fields = request.model_dump(exclude_unset=True)
    for name, value in list(fields.items()):
        if isinstance(value, str):
            fields[name] = value.strip()
    if fields.get("is_active") is None:
        fields.pop("is_active", None)

    record = store.upsert(current_user.id, service, **fields)
    log_info("Configuration saved", user_id=current_user.id, service=service.value)
    return _status_view(service, record)
