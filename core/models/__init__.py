# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - case.py: Registry case, its status and its request/response schemas
# - company.py: Member company schemas
# - user.py: Identity (AuthUser, Member) and member profile schemas
#
# These models define the "contract" between API and clients.
# =============================================================================

# -----------------------------------------------------------------------------
# Case Models - The registry entry and its review status
# -----------------------------------------------------------------------------
from .case import (
    Case,
    CaseCreate,
    CaseDetail,
    CaseList,
    CaseStatus,
    CaseUpdate,
    EvidenceFile,
    Gender,
    RejectRequest,
)

# -----------------------------------------------------------------------------
# Company Models
# -----------------------------------------------------------------------------
from .company import (
    Company,
    CompanyCreate,
    CompanyUpdate,
)

# -----------------------------------------------------------------------------
# User Models - Identity and member profiles
# -----------------------------------------------------------------------------
from .user import (
    AppUser,
    AuthUser,
    Member,
    ProfileRegistration,
    UserRole,
)

__all__ = [
    # Case
    "Case",
    "CaseCreate",
    "CaseDetail",
    "CaseList",
    "CaseStatus",
    "CaseUpdate",
    "EvidenceFile",
    "Gender",
    "RejectRequest",
    # Company
    "Company",
    "CompanyCreate",
    "CompanyUpdate",
    # User
    "AppUser",
    "AuthUser",
    "Member",
    "ProfileRegistration",
    "UserRole",
]
