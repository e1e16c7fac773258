"""
Alexa (Login with Amazon) OAuth provider.

Client credentials travel in the token request body, as with Google.
"""
from healthsync.integrations.apps import ProviderApp
from healthsync.integrations.oauth_client import create_authorization_url, fetch_token
from healthsync.integrations.schemas import ConnectionTestResult, ConnectionCheck, TokenSet

DISPLAY_NAME = "Alexa"
AUTHORIZE_URL = "https://www.amazon.com/ap/oa"
TOKEN_URL = "https://api.amazon.com/auth/o2/token"


async def build_authorization_url(app: ProviderApp, state: str) -> str:
    return await create_authorization_url(app, AUTHORIZE_URL, state)


async def exchange_code(app: ProviderApp, code: str) -> TokenSet:
    return await fetch_token("alexa", app, TOKEN_URL, code)


async def check_connection(credential, app=None) -> ConnectionCheck:
    # Amazon exposes no cheap read endpoint for the reminders scope
    return ConnectionCheck(result=ConnectionTestResult(
        success=False,
        message="Alexa connection test not implemented yet",
    ))
