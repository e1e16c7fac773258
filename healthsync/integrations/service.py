"""
Integration service layer and provider registry.

This module orchestrates the OAuth credential exchange and the connection
tester across all OAuth providers.

Architecture:
- PROVIDER_REGISTRY: Maps provider enum → provider module
- Service functions: Handle state tokens, app resolution and persistence
- Provider modules: Handle provider-specific URLs, token requests and connection checks

Design Principles:
- Thin service layer → delegate to provider modules
- Credential reads and writes go through CredentialStore (encryption happens there)
- Callbacks never raise; every outcome becomes a CallbackPage
"""
from typing import Optional

from sqlmodel import Session

from healthsync.core.config import settings
from healthsync.core.exceptions import (
    ConfigurationError,
    CredentialNotFoundError,
    InvalidStateError,
    StorageError,
    UpstreamServiceError,
    ValidationError,
)
from healthsync.core.logging_config import log_error, log_info, log_oauth_event, log_warning
from healthsync.core.signing import issue_state, verify_state
from healthsync.core.time_utils import expires_at_from_now
from healthsync.integrations import alexa, fitbit, google
from healthsync.integrations.apps import ProviderApps, resolve_provider_app
from healthsync.integrations.pages import CallbackPage
from healthsync.integrations.schemas import ConnectionTestResult, OAuthStartResponse
from healthsync.models.enums import OAuthProvider, ServiceName
from healthsync.schemas.auth import AuthenticatedUser
from healthsync.services.credential_store import CredentialStore

# ================================================================================
# PROVIDER REGISTRY
# ================================================================================

# Maps OAuthProvider enum → provider module
# Each module must implement: build_authorization_url(), exchange_code(), check_connection()
PROVIDER_REGISTRY = {
    OAuthProvider.GOOGLE: google,
    OAuthProvider.FITBIT: fitbit,
    OAuthProvider.ALEXA: alexa,
}


def get_provider_module(provider: OAuthProvider):
    """
    Get the provider module for a given provider type.
    """
    module = PROVIDER_REGISTRY.get(provider)
    if not module:
        raise ValueError(
            f"Provider '{provider}' is not supported. "
            f"Supported providers: {list(PROVIDER_REGISTRY.keys())}"
        )
    return module


# ================================================================================
# OAUTH START / CALLBACK
# ================================================================================

async def start_oauth(
    session: Session,
    user: AuthenticatedUser,
    provider: OAuthProvider,
    apps: ProviderApps,
) -> OAuthStartResponse:
    """
    Build the provider authorization URL for ``user``.

    Raises:
        ConfigurationError: If no app registration can be resolved
    """
    module = get_provider_module(provider)

    credential = None
    if provider not in apps:
        credential = CredentialStore(session).load_secrets(user.id, provider.service)

    app = resolve_provider_app(provider, apps, credential)
    if app is None:
        raise ConfigurationError(
            f"{module.DISPLAY_NAME} OAuth is not configured. "
            f"Set {provider.value.upper()}_CLIENT_ID and {provider.value.upper()}_CLIENT_SECRET "
            "or save your own client credentials first."
        )

    state = issue_state(user.id, provider.value)
    log_oauth_event(provider.value, "started", user_id=user.id, redirect_uri=app.redirect_uri)

    return OAuthStartResponse(
        auth_url=await module.build_authorization_url(app, state),
        message=f"Redirect to this URL to authorize {module.DISPLAY_NAME} access",
    )


async def complete_oauth_callback(
    session: Session,
    provider: OAuthProvider,
    apps: ProviderApps,
    *,
    code: Optional[str],
    state: Optional[str],
    error: Optional[str],
) -> CallbackPage:
    """
    Finish the authorization-code flow.

    Steps:
        1. Provider reported an error → error page, nothing else touched
        2. Verify the signed state and recover the user id
        3. Resolve the app registration
        4. Exchange the code with one token request
        5. Upsert the credential record
    """
    module = get_provider_module(provider)

    if error:
        log_oauth_event(provider.value, "returned an error", error=error)
        return CallbackPage.failure(
            "Authorization Failed",
            f"{module.DISPLAY_NAME} authorization was not completed.",
            detail=error,
        )

    if not code or not state:
        log_warning(f"{provider.value} callback missing code or state")
        return CallbackPage.failure(
            "Invalid Request",
            "The authorization response is missing the code or state parameter.",
        )

    try:
        oauth_state = verify_state(state, provider.value)
    except InvalidStateError as e:
        log_warning(f"{provider.value} callback rejected state: {e}")
        return CallbackPage.failure(
            "Invalid State",
            "The authorization request could not be verified. Please start the connection again.",
        )

    store = CredentialStore(session)
    credential = None
    if provider not in apps:
        try:
            credential = store.load_secrets(oauth_state.user_id, provider.service)
        except (StorageError, ValueError) as e:
            log_error(e, user_id=oauth_state.user_id, provider=provider.value)
            return CallbackPage.failure("Database Error", "Stored configuration could not be read.")

    app = resolve_provider_app(provider, apps, credential)
    if app is None:
        log_warning(f"{provider.value} callback has no app registration", user_id=oauth_state.user_id)
        return CallbackPage.failure(
            "Configuration Error",
            f"{module.DISPLAY_NAME} OAuth client credentials are not configured.",
        )

    try:
        tokens = await module.exchange_code(app, code)
    except UpstreamServiceError as e:
        log_oauth_event(provider.value, "token exchange failed", user_id=oauth_state.user_id, status_code=e.status_code)
        return CallbackPage.failure(
            "Token Exchange Failed",
            f"{module.DISPLAY_NAME} did not accept the authorization code.",
            detail=str(e),
        )

    try:
        store.save_tokens(
            oauth_state.user_id,
            provider.service,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            expires_at=expires_at_from_now(tokens.expires_in),
        )
    except StorageError as e:
        log_error(e, user_id=oauth_state.user_id, provider=provider.value)
        return CallbackPage.failure("Database Error", "The authorization succeeded but the tokens could not be saved.")

    log_oauth_event(provider.value, "completed", user_id=oauth_state.user_id)
    return CallbackPage(
        success=True,
        title="Authorization Successful",
        message=f"{module.DISPLAY_NAME} has been connected.",
    )


# ================================================================================
# CONNECTION TESTER
# ================================================================================

async def run_connection_test(
    session: Session,
    user: AuthenticatedUser,
    service_name: Optional[str],
    apps: ProviderApps,
) -> ConnectionTestResult:
    """
    Check a provider with the caller's stored credential.

    Raises:
        ValidationError: If no service name was given
        CredentialNotFoundError: If the caller has no record for the service
    """
    if not service_name or not service_name.strip():
        raise ValidationError("Service name is required")

    normalized = service_name.strip().lower()
    try:
        service = ServiceName(normalized)
    except ValueError:
        raise CredentialNotFoundError(normalized)

    store = CredentialStore(session)
    credential = store.secrets(store.require(user.id, service))

    try:
        provider = OAuthProvider(service.value)
    except ValueError:
        return ConnectionTestResult(success=False, message=f"Testing not implemented for {service.value}")

    module = get_provider_module(provider)
    app = resolve_provider_app(provider, apps, credential)
    outcome = await module.check_connection(credential, app)

    if outcome.refreshed_tokens is not None and settings.connection_test_persist_refresh:
        tokens = outcome.refreshed_tokens
        store.save_tokens(
            user.id,
            service,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            expires_at=expires_at_from_now(tokens.expires_in),
        )
        log_info("Persisted token refreshed by connection test", user_id=user.id, service=service.value)

    return outcome.result
