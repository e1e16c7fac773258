"""
FastAPI router for outbound notifications.

Endpoints:
- POST /home-assistant/test: Send the fixed test announcement to Home Assistant
- POST /notify-me/alexa: Relay an announcement through Notify Me
- POST /webhooks/{provider}/forward: Forward a notification to a stored webhook
- POST /webhooks/{provider}/test: Forward the fixed test notification
"""
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from healthsync.api.dependencies import CurrentUser, DbSession
from healthsync.core.exceptions import ValidationError
from healthsync.middleware.request_logging import request_id_ctx
from healthsync.models.enums import ForwardTarget, WebhookProvider
from healthsync.notifications.payloads import Notification
from healthsync.notifications.schemas import NotifyMeRequest, WebhookForwardRequest, WebhookForwardResponse
from healthsync.notifications.service import (
    build_test_notification,
    forward_for_user,
    send_notify_me,
)

router = APIRouter(tags=["notifications"])


@router.post(
    "/home-assistant/test",
    status_code=status.HTTP_200_OK,
    responses={
        400: {"description": "Home Assistant not configured or rejected the announcement"},
        401: {"description": "Not authenticated"},
        500: {"description": "Home Assistant could not be reached"},
    },
)
async def test_home_assistant(current_user: CurrentUser, session: DbSession):
    """
    Send a test announcement through the user's Home Assistant webhook.
    """
    result = await forward_for_user(
        session,
        current_user,
        WebhookProvider.HOME_ASSISTANT,
        build_test_notification(WebhookProvider.HOME_ASSISTANT),
    )

    if result.success:
        return {
            "success": True,
            "message": "Test announcement sent successfully! Check your Alexa devices.",
            "status": result.status_code,
        }

    if result.network_error:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": result.message, "request_id": request_id_ctx.get()},
        )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "error": f"Home Assistant returned status {result.status_code}. Check your URL and webhook automation.",
            "details": result.details,
            "request_id": request_id_ctx.get(),
        },
    )


@router.post(
    "/notify-me/alexa",
    status_code=status.HTTP_200_OK,
    responses={
        400: {"description": "Missing notification or access code"},
        401: {"description": "Not authenticated"},
    },
)
async def notify_me_alexa(request: NotifyMeRequest, current_user: CurrentUser):
    if not request.notification or not request.access_code:
        raise ValidationError("Missing notification or access code")

    result = await send_notify_me(
        current_user,
        request.notification,
        request.access_code,
        title=request.title,
    )

    if result.success:
        return {"success": True, "message": "Notification sent successfully"}

    return JSONResponse(
        status_code=result.status_code or status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": "Failed to send notification",
            "details": result.details if result.details is not None else result.message,
            "request_id": request_id_ctx.get(),
        },
    )


@router.post(
    "/webhooks/{provider}/forward",
    response_model=WebhookForwardResponse,
    status_code=status.HTTP_200_OK,
    responses={
        400: {"description": "Webhook target not configured"},
        401: {"description": "Not authenticated"},
    },
)
async def forward_webhook(
    provider: ForwardTarget,
    request: WebhookForwardRequest,
    current_user: CurrentUser,
    session: DbSession,
) -> WebhookForwardResponse:
    """
    Forward a notification to the user's stored webhook.

    Delivery is attempted once; ``success`` and ``status`` report the outcome.
    """
    notification = Notification(title=request.title, body=request.body, data=request.data)
    result = await forward_for_user(session, current_user, provider.provider, notification)
    return WebhookForwardResponse(
        success=result.success,
        message=result.message,
        status=result.status_code,
        details=result.details,
    )


@router.post(
    "/webhooks/{provider}/test",
    response_model=WebhookForwardResponse,
    status_code=status.HTTP_200_OK,
)
async def test_webhook(
    provider: ForwardTarget,
    current_user: CurrentUser,
    session: DbSession,
) -> WebhookForwardResponse:
    result = await forward_for_user(
        session, current_user, provider.provider, build_test_notification(provider.provider)
    )
    return WebhookForwardResponse(
        success=result.success,
        message=result.message,
        status=result.status_code,
        details=result.details,
    )
