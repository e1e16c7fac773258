"""
Shared API dependencies.
"""
import logging
from typing import Annotated, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError
from sqlmodel import Session

from healthsync.core.config import Settings, get_settings
from healthsync.core.database import get_session
from healthsync.core.exceptions import UnauthorizedError
from healthsync.core.security import verify_token
from healthsync.integrations.apps import ProviderApps, load_provider_apps
from healthsync.schemas.auth import AuthenticatedUser
from healthsync.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
) -> AuthenticatedUser:
    """
    Dependency to get the caller from the bearer token.
    Raises UnauthorizedError if the header is missing or the token is invalid.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Authorization header required")

    try:
        payload = verify_token(credentials.credentials)
    except ExpiredSignatureError:
        logger.info("Expired token presented")
        raise UnauthorizedError("Token has expired")
    except JWTError as e:
        logger.warning("JWT error during token validation", extra={"error": str(e)})
        raise UnauthorizedError("Invalid or expired token")

    user_id = payload.get("sub")
    if not isinstance(user_id, str) or not user_id:
        raise UnauthorizedError("Invalid or expired token")

    return AuthenticatedUser(
        id=user_id,
        email=payload.get("email"),
        role=payload.get("role"),
    )


def get_provider_apps(
    request: Request,
    app_settings: Annotated[Settings, Depends(get_settings)],
) -> ProviderApps:
    """
    Provider app registrations loaded at startup.

    Loaded lazily when the lifespan hook did not run (e.g. a bare TestClient).
    """
    apps = getattr(request.app.state, "provider_apps", None)
    if apps is None:
        apps = load_provider_apps(app_settings)
        request.app.state.provider_apps = apps
    return apps


def get_credential_store(session: Annotated[Session, Depends(get_session)]) -> CredentialStore:
    return CredentialStore(session)


CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]
DbSession = Annotated[Session, Depends(get_session)]
ProviderAppsDep = Annotated[ProviderApps, Depends(get_provider_apps)]
CredentialStoreDep = Annotated[CredentialStore, Depends(get_credential_store)]
