# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================
# Pydantic models for authentication data.
#
# AuthUser itself lives in core.models.user because services receive it
# explicitly; it is re-exported here for the auth layer.
# =============================================================================

from pydantic import BaseModel
from typing import Optional

from core.models.user import AuthUser

__all__ = ["AuthUser", "TokenPayload"]


class TokenPayload(BaseModel):
    """
    Decoded JWT token payload from Supabase.

    Supabase tokens include standard JWT claims plus custom claims.
    """
    sub: str  # User ID
    email: Optional[str] = None
    aud: str  # Audience (should be "authenticated")
    exp: int  # Expiration timestamp
    iat: Optional[int] = None  # Issued at timestamp
    role: Optional[str] = None  # Postgres role ("authenticated")
    app_metadata: dict = {}

    @property
    def app_role(self) -> Optional[str]:
        """Application role from app_metadata ("admin" for administrators)."""
        return self.app_metadata.get("role")
