"""
Per-user credential record for an external service.

Secret-bearing columns hold Fernet ciphertext (core/encryption.py). Plaintext
values only exist transiently, while an outbound call is being made; see
services/credential_store.py.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, DateTime, String, Text, UniqueConstraint
from sqlmodel import Field

from healthsync.models.base import BaseModel


class ApiConfiguration(BaseModel, table=True):
    """
    A user's stored configuration for one service.

    Fields:
        user_id: Caller id (JWT ``sub``); not a foreign key, users live in the auth provider
        service_name: One of ServiceName
        client_id / client_secret / redirect_url: Per-user provider app registration
        access_token / refresh_token / expires_at: Provider tokens; no access token means not yet authorized
        api_key: Webhook URL or access code for non-OAuth services
        is_active: Whether the integration is enabled
    """
    __tablename__ = "api_configurations"

    user_id: str = Field(sa_column=Column(String(255), nullable=False, index=True))
    service_name: str = Field(sa_column=Column(String(50), nullable=False, index=True))

    client_id: Optional[str] = Field(default=None, sa_column=Column(String(512), nullable=True))
    client_secret: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    redirect_url: Optional[str] = Field(default=None, sa_column=Column(String(1024), nullable=True))

    access_token: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    refresh_token: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    expires_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))

    api_key: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    is_active: bool = Field(default=True)

    __table_args__ = (
        UniqueConstraint("user_id", "service_name", name="uq_api_configurations_user_service"),
    )
