"""
Push token registration schemas.
"""
import uuid
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class PushRegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Optional so a missing token is answered with 400 rather than 422
    token: Optional[str] = Field(default=None, max_length=4096)
    device_info: Optional[Dict[str, Any]] = Field(default=None, alias="deviceInfo")


class PushRegisterResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    token_id: uuid.UUID = Field(..., alias="tokenId")
