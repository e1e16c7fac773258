"""
Google Calendar event writes, mirrored to the local ``calendar_events`` table.
"""
from datetime import datetime, time, timedelta, timezone
from typing import Any, Dict, Optional
from urllib.parse import quote

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from healthsync.core.exceptions import StorageError, UpstreamServiceError, ValidationError
from healthsync.core.http_client import is_success
from healthsync.core.logging_config import log_error, log_info
from healthsync.core.time_utils import ensure_utc, to_rfc3339, utc_now
from healthsync.integrations import google
from healthsync.integrations.apps import ProviderApps
from healthsync.integrations.token_refresh import GoogleTokenManager
from healthsync.models.calendar_event import CalendarEvent
from healthsync.schemas.auth import AuthenticatedUser
from healthsync.schemas.calendar import CalendarEventCreateRequest, CalendarEventUpdateRequest
from healthsync.services.credential_store import CredentialStore

# Google answers these for events that are already gone
GONE_STATUSES = {404, 410}


def _event_url(event_id: str) -> str:
    return f"{google.PRIMARY_EVENTS_URL}/{quote(event_id, safe='')}"


def _google_error(response) -> UpstreamServiceError:
    return UpstreamServiceError(
        f"Google Calendar API error: {response.status_code} {response.text}",
        status_code=response.status_code,
        details=response.text,
    )


class CalendarService:
    def __init__(self, session: Session, apps: ProviderApps):
        self.session = session
        self.store = CredentialStore(session)
        self.apps = apps

    def _tokens(self, user: AuthenticatedUser) -> GoogleTokenManager:
        return GoogleTokenManager(self.store, user.id, self.apps)

    async def create_event(self, user: AuthenticatedUser, request: CalendarEventCreateRequest) -> Dict[str, Any]:
        """
        Create an event on the primary Google calendar and mirror it locally.

        All-day events are sent as dates. Google treats the end date as
        exclusive, so a single-day event ends on the following day.
        """
        request.require_fields()

        body: Dict[str, Any] = {"summary": request.title.strip(), "description": request.description or ""}
        if request.all_day:
            start_day = request.start_datetime.date()
            end_day = max(request.end_datetime.date(), start_day + timedelta(days=1))
            body["start"] = {"date": start_day.isoformat()}
            body["end"] = {"date": end_day.isoformat()}
            start_time = datetime.combine(start_day, time.min, tzinfo=timezone.utc)
            end_time = datetime.combine(end_day, time.min, tzinfo=timezone.utc)
        else:
            start_time = ensure_utc(request.start_datetime)
            end_time = ensure_utc(request.end_datetime)
            body["start"] = {"dateTime": to_rfc3339(start_time), "timeZone": "UTC"}
            body["end"] = {"dateTime": to_rfc3339(end_time), "timeZone": "UTC"}

        response = await self._tokens(user).request("POST", google.PRIMARY_EVENTS_URL, json=body)
        if not is_success(response.status_code):
            raise _google_error(response)

        event = response.json()
        event_id = event.get("id")
        if event_id:
            self._insert_mirror(
                CalendarEvent(
                    user_id=user.id,
                    event_id=event_id,
                    title=body["summary"],
                    description=request.description,
                    start_time=start_time,
                    end_time=end_time,
                )
            )
        log_info("Calendar event created", user_id=user.id, event_id=event_id)
        return event

    async def update_event(self, user: AuthenticatedUser, request: CalendarEventUpdateRequest) -> Dict[str, Any]:
        """
        Update a Google Calendar event and its local mirror row.

        Raises:
            ValidationError: If a required field is missing
            UpstreamServiceError: If Google rejects the update
        """
        request.require_fields()

        body = {
            "summary": request.title,
            "description": request.description or "",
            "start": {"dateTime": to_rfc3339(request.start_time), "timeZone": "UTC"},
            "end": {"dateTime": to_rfc3339(request.end_time), "timeZone": "UTC"},
        }
        response = await self._tokens(user).request("PUT", _event_url(request.event_id), json=body)
        if not is_success(response.status_code):
            raise _google_error(response)

        event = response.json()
        self._update_mirror(user.id, request)
        log_info("Calendar event updated", user_id=user.id, event_id=request.event_id)
        return event

    async def delete_event(self, user: AuthenticatedUser, event_id: Optional[str]) -> None:
        """
        Delete a Google Calendar event and its local mirror row.

        An event Google no longer knows about counts as deleted.
        """
        if not event_id or not event_id.strip():
            raise ValidationError("Missing required field: eventId")

        response = await self._tokens(user).request("DELETE", _event_url(event_id))
        if response.status_code not in GONE_STATUSES and not is_success(response.status_code):
            raise _google_error(response)

        self._delete_mirror(user.id, event_id)
        log_info("Calendar event deleted", user_id=user.id, event_id=event_id)

    def _find_mirror(self, user_id: str, event_id: str) -> Optional[CalendarEvent]:
        return self.session.exec(
            select(CalendarEvent)
            .where(CalendarEvent.user_id == user_id)
            .where(CalendarEvent.event_id == event_id)
        ).first()

    def _insert_mirror(self, row: CalendarEvent) -> None:
        try:
            self.session.add(row)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            log_error(e, user_id=row.user_id, event_id=row.event_id)
            raise StorageError("Event created in Google Calendar but the local copy could not be saved") from e

    def _update_mirror(self, user_id: str, request: CalendarEventUpdateRequest) -> None:
        try:
            row = self._find_mirror(user_id, request.event_id)
            if row is None:
                return
            row.title = request.title
            row.description = request.description
            row.start_time = ensure_utc(request.start_time)
            row.end_time = ensure_utc(request.end_time)
            row.updated_at = utc_now()
            self.session.add(row)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            log_error(e, user_id=user_id, event_id=request.event_id)
            raise StorageError("Event updated in Google Calendar but the local copy could not be saved") from e

    def _delete_mirror(self, user_id: str, event_id: str) -> None:
        try:
            row = self._find_mirror(user_id, event_id)
            if row is None:
                return
            self.session.delete(row)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            log_error(e, user_id=user_id, event_id=event_id)
            raise StorageError("Event deleted in Google Calendar but the local copy could not be removed") from e
