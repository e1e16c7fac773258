# Import all models for easy access
from .base import BaseModel
from .calendar_event import CalendarEvent
from .credential import ApiConfiguration
from .enums import OAuthProvider, ServiceName, WebhookProvider
from .fcm_token import FcmToken

__all__ = [
    "BaseModel",
    "ApiConfiguration",
    "FcmToken",
    "CalendarEvent",
    "ServiceName",
    "OAuthProvider",
    "WebhookProvider",
]
