"""
Push notification device registration.
"""
from fastapi import APIRouter, status

from healthsync.api.dependencies import CurrentUser, DbSession
from healthsync.schemas.push import PushRegisterRequest, PushRegisterResponse
from healthsync.services.push_service import PushTokenService

router = APIRouter(prefix="/push", tags=["push"])


@router.post(
    "/register",
    response_model=PushRegisterResponse,
    status_code=status.HTTP_200_OK,
    responses={
        400: {"description": "FCM token is required"},
        401: {"description": "Not authenticated"},
        500: {"description": "Token could not be stored"},
    },
)
async def register_push_token(
    request: PushRegisterRequest,
    current_user: CurrentUser,
    session: DbSession,
) -> PushRegisterResponse:
    record = PushTokenService(session).register(current_user.id, request.token, request.device_info)
    return PushRegisterResponse(message="FCM token registered successfully", token_id=record.id)
