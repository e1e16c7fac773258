"""
Provider app registration.

The client id/secret an OAuth provider issued for this application is a
process-wide value read from settings at startup. When settings carry no
registration for a provider, the calling user's own credential record is
used instead (client id and secret saved through the configuration screen).
"""
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict

from healthsync.core.config import Settings, settings as default_settings
from healthsync.models.enums import OAuthProvider


class ProviderApp(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider: OAuthProvider
    client_id: str
    client_secret: str
    redirect_uri: str
    scopes: str


ProviderApps = Dict[OAuthProvider, ProviderApp]


def default_redirect_uri(provider: OAuthProvider, settings: Optional[Settings] = None) -> str:
    settings = settings or default_settings
    return f"{settings.public_base_url}{settings.api_v1_prefix}/oauth/{provider.value}/callback"


def _setting(settings: Settings, provider: OAuthProvider, name: str) -> Optional[str]:
    value = getattr(settings, f"{provider.value}_{name}", None)
    if isinstance(value, str):
        value = value.strip()
    return value or None


def load_provider_apps(settings: Optional[Settings] = None) -> ProviderApps:
    """Build the registrations for every provider that has a client id and secret configured."""
    settings = settings or default_settings
    apps: ProviderApps = {}
    for provider in OAuthProvider:
        client_id = _setting(settings, provider, "client_id")
        client_secret = _setting(settings, provider, "client_secret")
        if not client_id or not client_secret:
            continue
        apps[provider] = ProviderApp(
            provider=provider,
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=_setting(settings, provider, "redirect_uri") or default_redirect_uri(provider, settings),
            scopes=_setting(settings, provider, "scopes") or "",
        )
    return apps


def resolve_provider_app(
    provider: OAuthProvider,
    apps: ProviderApps,
    credential=None,
    settings: Optional[Settings] = None,
) -> Optional[ProviderApp]:
    """
    Resolve the registration to use for ``provider``.

    Process-wide settings win; otherwise fall back to the user's own
    ``client_id``/``client_secret``. Returns None when neither is complete.
    """
    app = apps.get(provider)
    if app is not None:
        return app

    if credential is None or not credential.client_id or not credential.client_secret:
        return None

    settings = settings or default_settings
    return ProviderApp(
        provider=provider,
        client_id=credential.client_id,
        client_secret=credential.client_secret,
        redirect_uri=credential.redirect_url or default_redirect_uri(provider, settings),
        scopes=_setting(settings, provider, "scopes") or "",
    )
