"""
API v1 router initialization and setup.
"""
from fastapi import APIRouter
from .endpoints import admin, campaigns, submissions, users, webhooks

api_router = APIRouter()

api_router.include_router(
    users.router,
    prefix="/users",
    tags=["users"]
)

api_router.include_router(
    campaigns.router,
    prefix="/campaigns",
    tags=["campaigns"]
)

api_router.include_router(
    submissions.router,
    prefix="/submissions",
    tags=["submissions"]
)

api_router.include_router(
    admin.router,
    prefix="/admin",
    tags=["admin"]
)

api_router.include_router(
    webhooks.router,
    prefix="/webhooks",
    tags=["webhooks"]
)
