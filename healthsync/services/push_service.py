"""
Push token registration.
"""
from typing import Any, Dict, Optional
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from healthsync.core.database import dialect_insert
from healthsync.core.exceptions import StorageError, ValidationError
from healthsync.core.logging_config import log_error, log_info
from healthsync.core.time_utils import utc_now
from healthsync.models.fcm_token import FcmToken


class PushTokenService:
    def __init__(self, session: Session):
        self.session = session

    def register(self, user_id: str, token: Optional[str], device_info: Optional[Dict[str, Any]] = None) -> FcmToken:
        """
        Upsert a device token keyed on the token value.

        Re-registering a token already held by another user moves it to ``user_id``.
        """
        if not token or not token.strip():
            raise ValidationError("FCM token is required")
        token = token.strip()

        now = utc_now()
        table = FcmToken.__table__
        try:
            statement = dialect_insert(self.session, table).values(
                id=uuid.uuid4(),
                user_id=user_id,
                token=token,
                device_info=device_info or {},
                created_at=now,
                updated_at=now,
            )
            statement = statement.on_conflict_do_update(
                index_elements=[table.c.token],
                set_={"user_id": user_id, "device_info": device_info or {}, "updated_at": now},
            )
            self.session.connection().execute(statement)
            self.session.commit()
            record = self.session.exec(select(FcmToken).where(FcmToken.token == token)).one()
        except SQLAlchemyError as e:
            self.session.rollback()
            log_error(e, user_id=user_id, action="fcm_token_upsert")
            raise StorageError("Failed to save FCM token") from e

        log_info("FCM token registered", user_id=user_id, record_id=str(record.id))
        return record
