"""
Integrations with external health and notification providers.

Architecture:
- apps.py: Provider app registration (client id/secret, redirect URI, scopes)
- schemas.py: Pydantic schemas for OAuth and connection-test responses
- oauth_client.py: authlib OAuth 2.0 sessions for authorization URLs, code exchange and refresh
- {provider}.py: Provider-specific authorization URL, code exchange, refresh and connection check
- service.py: OAuth start/callback orchestration, connection tester, provider registry
- pages.py: Self-closing HTML pages returned by OAuth callbacks
- router.py: FastAPI endpoints
- token_refresh.py: Keeps a user's Google access token fresh for Calendar calls

Adding a provider:
- Create a {provider}.py module with build_authorization_url(), exchange_code()
  and check_connection()
- Add the value to OAuthProvider and register it in PROVIDER_REGISTRY
"""

from healthsync.integrations.apps import ProviderApp, load_provider_apps
from healthsync.models.enums import OAuthProvider

__all__ = [
    "OAuthProvider",
    "ProviderApp",
    "load_provider_apps",
]
