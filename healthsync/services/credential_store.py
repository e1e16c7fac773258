"""
Credential store: the per-user, per-service record shared by every integration.

Records are keyed by ``(user_id, service_name)`` and written with a dialect
``INSERT ... ON CONFLICT DO UPDATE``, so concurrent OAuth callbacks and
configuration saves for the same key converge on a single row.

Secret-bearing fields are encrypted on the way in and only decrypted through
:meth:`CredentialStore.secrets`.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
import uuid

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from healthsync.core.database import dialect_insert
from healthsync.core.encryption import decrypt_optional, encrypt_optional
from healthsync.core.exceptions import CredentialNotFoundError, StorageError
from healthsync.core.logging_config import log_error, log_info
from healthsync.core.time_utils import ensure_utc, utc_now
from healthsync.models.credential import ApiConfiguration
from healthsync.models.enums import ServiceName

ENCRYPTED_FIELDS = ("client_secret", "access_token", "refresh_token", "api_key")
WRITABLE_FIELDS = (
    "client_id",
    "client_secret",
    "redirect_url",
    "access_token",
    "refresh_token",
    "expires_at",
    "api_key",
    "is_active",
)


class DecryptedCredential(BaseModel):
    """Plaintext view of a credential record. Never serialize this."""
    user_id: str
    service_name: str
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    redirect_url: Optional[str] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None
    api_key: Optional[str] = None
    is_active: bool = True


class CredentialStore:
    """Read and upsert ``api_configurations`` rows for a session."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, user_id: str, service: ServiceName) -> Optional[ApiConfiguration]:
        try:
            return self.session.exec(
                select(ApiConfiguration)
                .where(ApiConfiguration.user_id == user_id)
                .where(ApiConfiguration.service_name == service.value)
            ).first()
        except SQLAlchemyError as e:
            log_error(e, user_id=user_id, service=service.value)
            raise StorageError(f"Failed to load {service.value} configuration") from e

    def require(self, user_id: str, service: ServiceName) -> ApiConfiguration:
        record = self.get(user_id, service)
        if record is None:
            raise CredentialNotFoundError(service.value)
        return record

    def list(self, user_id: Optional[str] = None) -> List[ApiConfiguration]:
        statement = select(ApiConfiguration).order_by(ApiConfiguration.user_id, ApiConfiguration.service_name)
        if user_id:
            statement = statement.where(ApiConfiguration.user_id == user_id)
        return list(self.session.exec(statement).all())

    def secrets(self, record: ApiConfiguration) -> DecryptedCredential:
        """Decrypt a record for an outbound call."""
        return DecryptedCredential(
            user_id=record.user_id,
            service_name=record.service_name,
            client_id=record.client_id,
            client_secret=decrypt_optional(record.client_secret),
            redirect_url=record.redirect_url,
            access_token=decrypt_optional(record.access_token),
            refresh_token=decrypt_optional(record.refresh_token),
            expires_at=ensure_utc(record.expires_at) if record.expires_at else None,
            api_key=decrypt_optional(record.api_key),
            is_active=record.is_active,
        )

    def load_secrets(self, user_id: str, service: ServiceName) -> Optional[DecryptedCredential]:
        record = self.get(user_id, service)
        return self.secrets(record) if record else None

    def upsert(self, user_id: str, service: ServiceName, **fields: Any) -> ApiConfiguration:
        """
        Insert or update the record for ``(user_id, service)``.

        Only the given fields are written on conflict; everything else on an
        existing row is left as it was. Secret fields are encrypted here.
        """
        unknown = set(fields) - set(WRITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown credential fields: {', '.join(sorted(unknown))}")

        values = self._prepare_values(fields)
        now = utc_now()
        table = ApiConfiguration.__table__

        try:
            statement = dialect_insert(self.session, table).values(
                id=uuid.uuid4(),
                user_id=user_id,
                service_name=service.value,
                created_at=now,
                updated_at=now,
                **values,
            )
            statement = statement.on_conflict_do_update(
                index_elements=[table.c.user_id, table.c.service_name],
                set_={**values, "updated_at": now},
            )
            self.session.connection().execute(statement)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            log_error(e, user_id=user_id, service=service.value, action="credential_upsert")
            raise StorageError(f"Failed to save {service.value} configuration") from e

        log_info("Credential record saved", user_id=user_id, service=service.value, fields=sorted(values))
        return self.require(user_id, service)

    def save_tokens(
        self,
        user_id: str,
        service: ServiceName,
        *,
        access_token: str,
        refresh_token: Optional[str],
        expires_at: Optional[datetime],
    ) -> ApiConfiguration:
        """
        Persist a token exchange or refresh result.

        A missing ``refresh_token`` keeps whatever refresh token is already stored.
        """
        fields: Dict[str, Any] = {
            "access_token": access_token,
            "expires_at": expires_at,
            "is_active": True,
        }
        if refresh_token:
            fields["refresh_token"] = refresh_token
        return self.upsert(user_id, service, **fields)

    def clear_access_token(self, user_id: str, service: ServiceName) -> None:
        """Drop the stored access token and mark it expired so the next call refreshes or re-authorizes."""
        record = self.get(user_id, service)
        if record is None:
            return
        record.access_token = None
        record.expires_at = utc_now()
        record.updated_at = utc_now()
        try:
            self.session.add(record)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            log_error(e, user_id=user_id, service=service.value, action="credential_clear")
            raise StorageError(f"Failed to update {service.value} configuration") from e

    @staticmethod
    def _prepare_values(fields: Dict[str, Any]) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        for name, value in fields.items():
            if name in ENCRYPTED_FIELDS:
                values[name] = encrypt_optional(value)
            elif name == "expires_at" and value is not None:
                values[name] = ensure_utc(value)
            else:
                values[name] = value
        return values
