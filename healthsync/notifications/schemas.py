"""
Request and response schemas for notification endpoints.
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class WebhookForwardRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    body: str = Field(..., min_length=1, max_length=5000)
    data: Dict[str, Any] = Field(default_factory=dict)


class WebhookForwardResponse(BaseModel):
    success: bool
    message: str
    status: Optional[int] = None
    details: Optional[Any] = None


class NotifyMeRequest(BaseModel):
    """
    Body of the Notify Me relay endpoint.

    Fields are optional so missing values are answered with 400 rather than 422.
    """
    model_config = ConfigDict(populate_by_name=True)

    notification: Optional[str] = None
    title: Optional[str] = None
    access_code: Optional[str] = Field(default=None, alias="accessCode")
