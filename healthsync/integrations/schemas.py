"""
Pydantic schemas for OAuth and connection-test endpoints.

Wire names follow the browser client (``authUrl``); attribute names stay
snake_case.
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class TokenSet(BaseModel):
    """Token endpoint response shared by every provider."""
    model_config = ConfigDict(extra="ignore")

    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    token_type: Optional[str] = None
    scope: Optional[str] = None


class OAuthStartResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    auth_url: str = Field(..., alias="authUrl")
    message: str


class ConnectionTestRequest(BaseModel):
    # Optional so a missing value is answered with 400 rather than 422
    service: Optional[str] = None


class ConnectionTestResult(BaseModel):
    success: bool
    message: str
    data: Optional[Dict[str, Any]] = None


class ConnectionCheck(BaseModel):
    """What a connection check observed, including a refreshed token set if one was obtained."""
    result: ConnectionTestResult
    refreshed_tokens: Optional[TokenSet] = None
