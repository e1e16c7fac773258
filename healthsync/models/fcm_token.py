"""
Registered push notification device tokens.
"""
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column, String
from sqlmodel import Field

from healthsync.models.base import BaseModel


class FcmToken(BaseModel, table=True):
    """An FCM device token; re-registering a token moves it to the calling user."""
    __tablename__ = "fcm_tokens"

    user_id: str = Field(sa_column=Column(String(255), nullable=False, index=True))
    token: str = Field(sa_column=Column(String(4096), nullable=False, unique=True))
    device_info: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
