# =============================================================================
# app/auth/__init__.py - Authentication Module
# =============================================================================
# Provides JWT-based authentication using Supabase Auth, plus member and
# administrator gates built on top of it.
#
# Usage:
#   from app.auth import get_current_member, require_admin, Member
#
#   @router.post("/admin-only")
#   async def admin_only(admin: Member = Depends(require_admin)):
#       return {"user_id": admin.id}
# =============================================================================

from app.auth.models import AuthUser
from app.auth.dependencies import (
    get_current_member,
    get_current_user,
    require_admin,
)
from core.models.user import Member

__all__ = [
    "get_current_user",
    "get_current_member",
    "require_admin",
    "AuthUser",
    "Member",
]
