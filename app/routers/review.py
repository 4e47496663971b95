# =============================================================================
# app/routers/review.py - Case Review Endpoints
# =============================================================================
# The administrator's review queue and the approve/reject decisions.
# A decision on an already-decided case answers 409 INVALID_TRANSITION.
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query

from app.auth import Member, require_admin
from app.dependencies import LifecycleDep
from core.models.case import Case, CaseList, RejectRequest
from core.services.case_service import CaseService

router = APIRouter()


@router.get("/pending", response_model=CaseList)
async def list_pending_cases(
    admin: Member = Depends(require_admin),
    page: Annotated[int, Query(ge=1, description="Page number")] = 1,
    page_size: Annotated[int, Query(ge=1, le=100, description="Items per page")] = 50,
):
    """
    List cases awaiting review, newest first.
    """
    cases, total = CaseService.list_pending_cases(page=page, page_size=page_size)
    return CaseList(cases=cases, total=total, page=page, page_size=page_size)


@router.post("/{case_id}/approve", response_model=Case)
async def approve_case(
    case_id: Annotated[UUID, Path(description="Case UUID")],
    lifecycle: LifecycleDep,
    admin: Member = Depends(require_admin),
):
    """
    Approve a pending case, making it visible to every member company.
    """
    return lifecycle.approve(case_id, actor_id=admin.id)


@router.post("/{case_id}/reject", response_model=Case)
async def reject_case(
    case_id: Annotated[UUID, Path(description="Case UUID")],
    request: RejectRequest,
    lifecycle: LifecycleDep,
    admin: Member = Depends(require_admin),
):
    """
    Reject a pending case. A non-blank reason is required.
    """
    return lifecycle.reject(case_id, actor_id=admin.id, reason=request.reason)
