"""
Shared model bases.
"""
import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel

from healthsync.core.time_utils import utc_now


class TimestampMixin(SQLModel):
    """Adds created_at / updated_at columns stored as timezone-aware UTC."""

    created_at: datetime = Field(
        default_factory=utc_now,
        sa_type=DateTime(timezone=True),
        nullable=False,
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_type=DateTime(timezone=True),
        nullable=False,
    )


class BaseModel(TimestampMixin):
    """UUID primary key plus timestamps."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
