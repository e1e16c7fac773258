"""
Calendar event edit schemas.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from healthsync.core.exceptions import ValidationError
from healthsync.core.time_utils import ensure_utc


class CalendarEventUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event_id: Optional[str] = Field(default=None, alias="eventId")
    title: Optional[str] = Field(default=None, max_length=1024)
    description: Optional[str] = None
    start_time: Optional[datetime] = Field(default=None, alias="startTime")
    end_time: Optional[datetime] = Field(default=None, alias="endTime")

    def require_fields(self) -> None:
        missing: List[str] = []
        for name, alias in (("event_id", "eventId"), ("title", "title"), ("start_time", "startTime"), ("end_time", "endTime")):
            value = getattr(self, name)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(alias)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        if ensure_utc(self.end_time) <= ensure_utc(self.start_time):
            raise ValidationError("endTime must be after startTime")


class CalendarEventCreateRequest(BaseModel):
    """New event; all-day events only use the date part of each timestamp."""
    title: Optional[str] = Field(default=None, max_length=1024)
    description: Optional[str] = None
    start_datetime: Optional[datetime] = None
    end_datetime: Optional[datetime] = None
    all_day: bool = False

    def require_fields(self) -> None:
        if not self.title or not self.title.strip():
            raise ValidationError("Event title is required")
        missing = [name for name in ("start_datetime", "end_datetime") if getattr(self, name) is None]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        if self.all_day:
            if self.end_datetime.date() < self.start_datetime.date():
                raise ValidationError("end_datetime must not be before start_datetime")
        elif ensure_utc(self.end_datetime) <= ensure_utc(self.start_datetime):
            raise ValidationError("end_datetime must be after start_datetime")


class CalendarEventDeleteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event_id: Optional[str] = Field(default=None, alias="eventId")


class CalendarEventResponse(BaseModel):
    success: bool = True
    message: str
    event: Optional[Dict[str, Any]] = None


class CalendarEventCreatedResponse(BaseModel):
    success: bool = True
    event_id: Optional[str] = None
    event_link: Optional[str] = None
