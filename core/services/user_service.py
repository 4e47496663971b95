# =============================================================================
# core/services/user_service.py - Member Profile Business Logic
# =============================================================================
# Sign-up itself happens in Supabase Auth on the client. Afterwards the client
# registers a profile here, which ties the auth user to a company and parks
# them as unapproved until an administrator lets them in.
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from app.config import settings
from app.exceptions import UserNotFoundError
from core.models.user import AppUser, AuthUser, ProfileRegistration, UserRole
from core.services.company_service import CompanyService
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


def _to_app_user(row: dict[str, Any]) -> AppUser:
    """Build an AppUser, flattening an embedded companies(id, name) object."""
    company = row.get(settings.COMPANIES_TABLE) or {}
    data = {key: value for key, value in row.items() if key != settings.COMPANIES_TABLE}
    data.setdefault("company_name", company.get("name"))
    return AppUser.model_validate(data)


class UserService:
    """Service for member profile operations."""

    @staticmethod
    def find_app_user(user_id: str | UUID) -> AppUser | None:
        row = SupabaseClient.fetch_app_user(user_id)
        return _to_app_user(row) if row else None

    @staticmethod
    def get_app_user(user_id: str | UUID) -> AppUser:
        """
        Raises:
            UserNotFoundError: If no profile is registered
        """
        user = UserService.find_app_user(user_id)
        if user is None:
            raise UserNotFoundError(str(user_id))
        return user

    @staticmethod
    def register_profile(user: AuthUser, payload: ProfileRegistration) -> AppUser:
        """
        Create or replace the caller's profile after sign-up.

        The profile always starts as an unapproved viewer; re-registering
        does not bypass approval.
        """
        company = CompanyService.find_or_create(payload.company_name)

        row = SupabaseClient.upsert_app_user({
            "id": str(user.id),
            "display_name": payload.display_name,
            "company_id": str(company.id),
            "role": UserRole.VIEWER.value,
            "is_approved": False,
        })

        logger.info(f"Registered profile for user {user.id} in company {company.id}")
        return _to_app_user(row)

    @staticmethod
    def list_users(approved: bool | None = None) -> list[AppUser]:
        return [_to_app_user(row) for row in SupabaseClient.list_app_users(is_approved=approved)]

    @staticmethod
    def approve_user(user_id: str | UUID) -> AppUser:
        """
        Let a signed-up member into the registry.

        Raises:
            UserNotFoundError: If no profile is registered
        """
        row = SupabaseClient.update_app_user(user_id, {"is_approved": True})
        if row is None:
            raise UserNotFoundError(str(user_id))

        logger.info(f"Approved user {user_id}")
        return _to_app_user(row)
