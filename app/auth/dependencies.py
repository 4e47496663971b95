# =============================================================================
# app/auth/dependencies.py - FastAPI Auth Dependencies
# =============================================================================
# Provides dependency injection for authentication and authorization.
#
# Token verification supports both:
# - ES256 (new Supabase JWT signing keys) via JWKS
# - HS256 (legacy Supabase JWT secret) as fallback
#
# Three levels of access are offered:
# - get_current_user:   any valid Supabase token
# - get_current_member: a registered, approved member (or an admin)
# - require_admin:      app_metadata.role == "admin"
#
# Identity is resolved once per request and handed to services explicitly.
#
# Usage:
#   from app.auth import get_current_member, Member
#
#   @router.get("/protected")
#   async def protected(member: Member = Depends(get_current_member)):
#       return {"company_id": member.company_id}
# =============================================================================

import logging
import time
from uuid import UUID
import httpx

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError, ExpiredSignatureError

from app.config import settings
from app.auth.models import AuthUser, TokenPayload
from app.exceptions import AdminRequiredError, MembershipPendingError, UserNotFoundError
from core.models.user import Member
from core.services.user_service import UserService

logger = logging.getLogger(__name__)

# HTTP Bearer token extractor
security = HTTPBearer()

# Cache for JWKS keys
_jwks_cache: dict = {}
_jwks_cache_time: float = 0
JWKS_CACHE_TTL = 3600  # 1 hour


def _get_jwks_url() -> str:
    """Get the JWKS URL from Supabase URL."""
    supabase_url = settings.SUPABASE_URL.rstrip('/')
    return f"{supabase_url}/auth/v1/.well-known/jwks.json"


def _fetch_jwks() -> dict:
    """Fetch JWKS from Supabase with caching."""
    global _jwks_cache, _jwks_cache_time

    current_time = time.time()

    # Return cached if valid
    if _jwks_cache and (current_time - _jwks_cache_time) < JWKS_CACHE_TTL:
        return _jwks_cache

    try:
        jwks_url = _get_jwks_url()
        response = httpx.get(jwks_url, timeout=10)
        response.raise_for_status()
        _jwks_cache = response.json()
        _jwks_cache_time = current_time
        logger.debug(f"Fetched JWKS from {jwks_url}")
        return _jwks_cache
    except httpx.HTTPError as e:
        logger.warning(f"Failed to fetch JWKS: {e}")
        # Return cached even if expired, as fallback
        if _jwks_cache:
            return _jwks_cache
        return {"keys": []}


def _get_signing_key(token: str) -> tuple:
    """
    Get the appropriate signing key for a token.

    Returns:
        Tuple of (key, algorithm) to use for verification
    """
    # Decode header without verification to get algorithm and key ID
    try:
        unverified_header = jwt.get_unverified_header(token)
    except JWTError:
        return settings.SUPABASE_JWT_SECRET, "HS256"

    alg = unverified_header.get("alg", "HS256")
    kid = unverified_header.get("kid")

    if alg == "HS256":
        return settings.SUPABASE_JWT_SECRET, "HS256"

    # For ES256 or other algorithms, use JWKS
    if kid:
        for key in _fetch_jwks().get("keys", []):
            if key.get("kid") == kid:
                return key, alg

    logger.warning(f"Could not find key for alg={alg}, kid={kid}, falling back to HS256")
    return settings.SUPABASE_JWT_SECRET, "HS256"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_token(token: str) -> AuthUser:
    """
    Verify a Supabase access token and build the AuthUser it describes.

    Raises:
        HTTPException: 401 if the token is invalid, expired or malformed
    """
    try:
        signing_key, algorithm = _get_signing_key(token)

        payload = TokenPayload(**jwt.decode(
            token,
            signing_key,
            algorithms=[algorithm],
            audience="authenticated"
        ))

    except ExpiredSignatureError:
        logger.warning("JWT token has expired")
        raise _unauthorized("Token has expired")

    except JWTError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise _unauthorized(f"Invalid token: {str(e)}")

    except ValueError as e:
        # pydantic rejected the claims (e.g. missing 'sub')
        logger.warning(f"JWT claims malformed: {e}")
        raise _unauthorized("Invalid token: malformed claims")

    try:
        user_uuid = UUID(payload.sub)
    except ValueError:
        logger.warning(f"Invalid UUID in token: {payload.sub}")
        raise _unauthorized("Invalid token: malformed user ID")

    logger.debug(f"Authenticated user: {payload.sub} (role={payload.app_role})")
    return AuthUser(id=user_uuid, email=payload.email, role=payload.app_role)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> AuthUser:
    """
    Extract and validate user from Supabase JWT token.

    Raises:
        HTTPException: 401 if token is invalid or expired
    """
    return decode_token(credentials.credentials)


async def get_current_member(
    user: AuthUser = Depends(get_current_user),
) -> Member:
    """
    Resolve the caller's member profile.

    Administrators always pass (their profile, if any, supplies a company).
    Everyone else needs a registered, approved app_users row.

    Raises:
        UserNotFoundError: 404 if a non-admin has no profile yet
        MembershipPendingError: 403 if the profile is not approved
    """
    profile = UserService.find_app_user(user.id)

    if not user.is_admin:
        if profile is None:
            raise UserNotFoundError(str(user.id))
        if not profile.is_approved:
            raise MembershipPendingError(str(user.id))

    return Member(
        auth=user,
        company_id=profile.company_id if profile else None,
        display_name=profile.display_name if profile else None,
    )


async def require_admin(
    member: Member = Depends(get_current_member),
) -> Member:
    """
    Require an administrator.

    Raises:
        AdminRequiredError: 403 for non-admin callers
    """
    if not member.is_admin:
        logger.warning(f"Admin access denied for user {member.id}")
        raise AdminRequiredError("administrator endpoint")
    return member
