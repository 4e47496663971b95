# =============================================================================
# app/auth/routes.py - Authentication Routes
# =============================================================================
# API endpoints for authentication-related operations.
#
# Note: Actual signup/login is handled by Supabase Auth client-side.
# These routes read the caller's identity and register the member profile
# that follows sign-up.
# =============================================================================

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.auth.dependencies import get_current_user
from app.auth.models import AuthUser
from core.models.user import AppUser, ProfileRegistration
from core.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter()


class MeResponse(BaseModel):
    """Identity from the token plus the member profile, if registered."""
    id: str
    email: str | None = None
    is_admin: bool = False
    profile: AppUser | None = None


@router.get("/me", response_model=MeResponse)
async def get_current_user_info(
    user: AuthUser = Depends(get_current_user)
) -> MeResponse:
    """
    Get the current authenticated user and their member profile.

    profile is null until POST /auth/profile has been called. Clients use
    profile.is_approved to decide whether to show the waiting-for-approval page.

    Raises:
        401: If not authenticated
    """
    return MeResponse(
        id=str(user.id),
        email=user.email,
        is_admin=user.is_admin,
        profile=UserService.find_app_user(user.id),
    )


@router.post("/profile", response_model=AppUser, status_code=201)
async def register_profile(
    request: ProfileRegistration,
    user: AuthUser = Depends(get_current_user),
) -> AppUser:
    """
    Register the member profile right after Supabase sign-up.

    The company is matched by exact name or created. The profile starts
    unapproved; an administrator must approve it before the registry can
    be used.
    """
    return UserService.register_profile(user, request)
