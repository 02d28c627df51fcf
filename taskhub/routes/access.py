"""
TaskHub Backend — Role-Gated Probe Routes
===========================================

Two small endpoints that show the role check in isolation:

    GET /admin-only   admin role required
    GET /user-only    any authenticated caller
"""

from fastapi import APIRouter, Depends

from taskhub.dependencies import get_current_identity, require_roles
from taskhub.models.user import Role
from taskhub.schemas.common import ErrorResponse, WelcomeResponse
from taskhub.services.access_control import Identity

router = APIRouter(tags=["Access"])


@router.get(
    "/admin-only",
    response_model=WelcomeResponse,
    responses={
        401: {"description": "Missing, invalid or expired token", "model": ErrorResponse},
        403: {"description": "Caller is not an admin", "model": ErrorResponse},
    },
    summary="Admin-only greeting",
)
async def admin_only(identity: Identity = Depends(require_roles(Role.ADMIN))) -> WelcomeResponse:
    return WelcomeResponse(message=f"Welcome, admin {identity.user_id}!")


@router.get(
    "/user-only",
    response_model=WelcomeResponse,
    responses={401: {"description": "Missing, invalid or expired token", "model": ErrorResponse}},
    summary="Greeting for any authenticated user",
)
async def user_only(identity: Identity = Depends(get_current_identity)) -> WelcomeResponse:
    return WelcomeResponse(message=f"Welcome, user {identity.user_id}!")
