# =============================================================================
# app/routers/admin.py - Administration Endpoints
# =============================================================================
# Dashboard counts, company management and member approval.
# Every endpoint requires an administrator.
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query
from pydantic import BaseModel

from app.auth import Member, require_admin
from core.models.company import Company, CompanyCreate, CompanyUpdate
from core.models.user import AppUser
from core.services.case_service import CaseService
from core.services.company_service import CompanyService
from core.services.user_service import UserService

router = APIRouter()


class DashboardStats(BaseModel):
    """Counts for the admin dashboard tiles."""
    pending_cases: int
    pending_users: int
    companies: int


# =============================================================================
# Dashboard
# =============================================================================

@router.get("/stats", response_model=DashboardStats)
async def get_stats(admin: Member = Depends(require_admin)):
    """
    Pending cases, pending users and total companies.
    """
    return DashboardStats(**CaseService.get_dashboard_stats())


# =============================================================================
# Companies
# =============================================================================

@router.get("/companies", response_model=list[Company])
async def list_companies(admin: Member = Depends(require_admin)):
    """List member companies, newest first."""
    return CompanyService.list_companies()


@router.post("/companies", response_model=Company, status_code=201)
async def create_company(
    request: CompanyCreate,
    admin: Member = Depends(require_admin),
):
    """Register a member company."""
    return CompanyService.create_company(request)


@router.get("/companies/{company_id}", response_model=Company)
async def get_company(
    company_id: Annotated[UUID, Path(description="Company UUID")],
    admin: Member = Depends(require_admin),
):
    """Get a company."""
    return CompanyService.get_company(company_id)


@router.patch("/companies/{company_id}", response_model=Company)
async def update_company(
    request: CompanyUpdate,
    company_id: Annotated[UUID, Path(description="Company UUID")],
    admin: Member = Depends(require_admin),
):
    """Rename a company or change its is_main flag."""
    return CompanyService.update_company(company_id, request)


@router.delete("/companies/{company_id}", status_code=204)
async def delete_company(
    company_id: Annotated[UUID, Path(description="Company UUID")],
    admin: Member = Depends(require_admin),
):
    """
    Delete a company.

    Users and cases that still reference it may block deletion.
    """
    CompanyService.delete_company(company_id)


# =============================================================================
# Members
# =============================================================================

@router.get("/users", response_model=list[AppUser])
async def list_users(
    admin: Member = Depends(require_admin),
    approved: Annotated[bool | None, Query(description="Filter by approval state")] = None,
):
    """
    List member profiles. Use approved=false for the sign-up queue.
    """
    return UserService.list_users(approved=approved)


@router.post("/users/{user_id}/approve", response_model=AppUser)
async def approve_user(
    user_id: Annotated[UUID, Path(description="User UUID")],
    admin: Member = Depends(require_admin),
):
    """Let a signed-up member into the registry."""
    return UserService.approve_user(user_id)
