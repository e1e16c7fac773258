"""
Google Calendar event create and edit endpoints.
"""
from fastapi import APIRouter, HTTPException, status

from healthsync.api.dependencies import CurrentUser, DbSession, ProviderAppsDep
from healthsync.core.exceptions import HealthSyncException
from healthsync.core.logging_config import log_warning
from healthsync.schemas.calendar import (
    CalendarEventCreatedResponse,
    CalendarEventCreateRequest,
    CalendarEventDeleteRequest,
    CalendarEventResponse,
    CalendarEventUpdateRequest,
)
from healthsync.services.calendar_service import CalendarService

router = APIRouter(prefix="/calendar", tags=["calendar"])


@router.post(
    "/events/create",
    response_model=CalendarEventCreatedResponse,
    responses={
        400: {"description": "Missing title or times, Google authorization expired or Google rejected the event"},
        401: {"description": "Not authenticated"},
    },
)
async def create_calendar_event(
    request: CalendarEventCreateRequest,
    current_user: CurrentUser,
    session: DbSession,
    apps: ProviderAppsDep,
) -> CalendarEventCreatedResponse:
    try:
        event = await CalendarService(session, apps).create_event(current_user, request)
    except HealthSyncException as e:
        log_warning(f"Calendar event create failed: {e}", user_id=current_user.id)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return CalendarEventCreatedResponse(event_id=event.get("id"), event_link=event.get("htmlLink"))


@router.post(
    "/events/update",
    response_model=CalendarEventResponse,
    responses={
        400: {"description": "Missing fields, Google authorization expired or Google rejected the change"},
        401: {"description": "Not authenticated"},
    },
)
async def update_calendar_event(
    request: CalendarEventUpdateRequest,
    current_user: CurrentUser,
    session: DbSession,
    apps: ProviderAppsDep,
) -> CalendarEventResponse:
    try:
        event = await CalendarService(session, apps).update_event(current_user, request)
    except HealthSyncException as e:
        log_warning(f"Calendar event update failed: {e}", user_id=current_user.id)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return CalendarEventResponse(message="Event updated successfully", event=event)


@router.post(
    "/events/delete",
    response_model=CalendarEventResponse,
    responses={
        400: {"description": "Missing eventId, Google authorization expired or Google rejected the change"},
        401: {"description": "Not authenticated"},
    },
)
async def delete_calendar_event(
    request: CalendarEventDeleteRequest,
    current_user: CurrentUser,
    session: DbSession,
    apps: ProviderAppsDep,
) -> CalendarEventResponse:
    try:
        await CalendarService(session, apps).delete_event(current_user, request.event_id)
    except HealthSyncException as e:
        log_warning(f"Calendar event delete failed: {e}", user_id=current_user.id)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return CalendarEventResponse(message="Event deleted successfully")
