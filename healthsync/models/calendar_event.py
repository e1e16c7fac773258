"""
Local mirror of Google Calendar events created for a user's routines.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, DateTime, Index, String, Text
from sqlmodel import Field

from healthsync.models.base import BaseModel


class CalendarEvent(BaseModel, table=True):
    __tablename__ = "calendar_events"

    user_id: str = Field(sa_column=Column(String(255), nullable=False, index=True))
    event_id: str = Field(sa_column=Column(String(255), nullable=False))
    title: str = Field(sa_column=Column(String(1024), nullable=False))
    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    start_time: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    end_time: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    is_health_related: bool = Field(default=False)

    __table_args__ = (
        Index("idx_calendar_events_user_event", "user_id", "event_id"),
    )
