# =============================================================================
# app/routers/cases.py - Case Endpoints
# =============================================================================
# Submission, listing, search, detail, edit and deletion of registry cases.
# All endpoints require an approved member; deletion requires an admin.
# =============================================================================

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query
from pydantic import BaseModel, Field

from app.auth import Member, get_current_member, require_admin
from app.dependencies import LifecycleDep, ScorerDep
from core.models.case import Case, CaseCreate, CaseDetail, CaseList, CaseStatus, CaseUpdate
from core.services.case_service import CaseService

router = APIRouter()


# =============================================================================
# Response Models
# =============================================================================

class CaseCreateResponse(BaseModel):
    """Response when a case is submitted."""
    case_id: str = Field(..., example="550e8400-e29b-41d4-a716-446655440000")
    status: CaseStatus = Field(..., example="pending")
    risk_score: int = Field(..., example=548125)
    risk_tier: int = Field(..., example=5)
    risk_tier_label: str = Field(..., example="critical")
    message: str = Field(default="Case submitted for review")


class CaseSearchResponse(BaseModel):
    """Search results."""
    cases: list[Case]
    total: int


# =============================================================================
# Endpoints
# =============================================================================

@router.post("", response_model=CaseCreateResponse, status_code=201)
async def create_case(
    request: CaseCreate,
    scorer: ScorerDep,
    member: Member = Depends(get_current_member),
):
    """
    Submit a new case.

    The case starts as pending and is scored from its narrative. Upload
    evidence first with POST /api/v1/evidence and pass the returned paths.
    """
    case = CaseService.create_case(member, request, scorer)
    tier = scorer.tier(case.risk_score)

    return CaseCreateResponse(
        case_id=str(case.id),
        status=case.status,
        risk_score=case.risk_score,
        risk_tier=tier.value,
        risk_tier_label=tier.label,
    )


@router.get("", response_model=CaseList)
async def list_cases(
    member: Member = Depends(get_current_member),
    page: Annotated[int, Query(ge=1, description="Page number")] = 1,
    page_size: Annotated[int, Query(ge=1, le=100, description="Items per page")] = 20,
    status: Annotated[CaseStatus | None, Query(description="Filter by status (admins only)")] = None,
):
    """
    List cases, newest first.

    Members see approved cases only; administrators may filter by status.
    """
    cases, total = CaseService.list_cases(member, status=status, page=page, page_size=page_size)
    return CaseList(cases=cases, total=total, page=page, page_size=page_size)


@router.get("/search", response_model=CaseSearchResponse)
async def search_cases(
    member: Member = Depends(get_current_member),
    name: Annotated[str | None, Query(description="Full name or kana; spaces are ignored")] = None,
    birth_date: Annotated[date | None, Query(description="Exact birth date (YYYY-MM-DD)")] = None,
):
    """
    Search cases by name and/or birth date.

    At least one criterion is required.
    """
    cases = CaseService.search_cases(member, name=name, birth_date=birth_date)
    return CaseSearchResponse(cases=cases, total=len(cases))


@router.get("/{case_id}", response_model=CaseDetail)
async def get_case(
    case_id: Annotated[UUID, Path(description="Case UUID")],
    scorer: ScorerDep,
    member: Member = Depends(get_current_member),
):
    """
    Get case details with risk tier, company name and evidence download URLs.
    """
    return CaseService.get_case_detail(case_id, member, scorer)


@router.patch("/{case_id}", response_model=Case)
async def update_case(
    case_id: Annotated[UUID, Path(description="Case UUID")],
    request: CaseUpdate,
    lifecycle: LifecycleDep,
    member: Member = Depends(get_current_member),
):
    """
    Edit a case.

    Members of the registering company and administrators may edit. The risk
    score keeps its value from submission. Changing status is admin-only and
    follows the review rules (pending -> approved | rejected).
    """
    return CaseService.update_case(case_id, member, request, lifecycle)


@router.delete("/{case_id}", status_code=204)
async def delete_case(
    case_id: Annotated[UUID, Path(description="Case UUID")],
    admin: Member = Depends(require_admin),
):
    """
    Delete a case permanently. Administrators only.
    """
    CaseService.delete_case(case_id)
