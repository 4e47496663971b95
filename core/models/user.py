# =============================================================================
# core/models/user.py - Member User Schemas
# =============================================================================
# Member profiles live in app_users, keyed by the Supabase auth user id.
# New sign-ups start unapproved and cannot use the registry until an
# administrator approves them.
#
# Note: the authoritative admin flag is the JWT app_metadata.role claim,
# not AppUser.role, which is kept for display.
# =============================================================================

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class UserRole(str, Enum):
    VIEWER = "viewer"
    ADMIN = "admin"


class AuthUser(BaseModel):
    """
    Authenticated user extracted from a Supabase JWT.

    This is the minimal user info available from the token itself,
    without querying the database. The role comes from app_metadata,
    which only the service role can write, so it is safe to trust.
    """
    id: UUID
    email: str | None = None
    role: str | None = None

    model_config = {"frozen": True}

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


class AppUser(BaseModel):
    """A member profile row."""
    id: UUID
    display_name: str | None = None
    company_id: UUID | None = None
    role: UserRole = UserRole.VIEWER
    is_approved: bool = False
    created_at: datetime | None = None
    company_name: str | None = Field(default=None, description="Embedded from companies when listed")


class ProfileRegistration(BaseModel):
    """
    Schema for registering a member profile right after Supabase sign-up.

    The company is looked up by exact name and created if it doesn't exist.

    Example:
        {"display_name": "山田 太郎", "company_name": "鈴木工務店"}
    """
    display_name: str = Field(..., min_length=1, max_length=100)
    company_name: str = Field(..., min_length=1, max_length=255)

    @field_validator("display_name", "company_name")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class Member(BaseModel):
    """
    An authenticated, approved caller with their company resolved.

    Built once per request by app.auth.get_current_member and passed
    explicitly to the services.
    """
    auth: AuthUser
    company_id: UUID | None = None
    display_name: str | None = None

    model_config = {"frozen": True}

    @property
    def id(self) -> UUID:
        return self.auth.id

    @property
    def is_admin(self) -> bool:
        return self.auth.is_admin
