"""
API v1 router.
"""
from fastapi import APIRouter

from healthsync.api.v1.endpoints import calendar, configurations, health, push
from healthsync.integrations.router import router as integrations_router
from healthsync.notifications.router import router as notifications_router

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(integrations_router)
api_router.include_router(notifications_router)
api_router.include_router(configurations.router)
api_router.include_router(push.router)
api_router.include_router(calendar.router)
api_router.include_router(health.router)
