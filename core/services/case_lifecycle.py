# =============================================================================
# core/services/case_lifecycle.py - Case Review State Machine
# =============================================================================
# Governs how a case leaves "pending":
#
#   pending --approve(actor)--------> approved   decided_by, decided_at set,
#                                                rejection_reason cleared
#   pending --reject(actor, reason)-> rejected   decided_by, decided_at set,
#                                                rejection_reason = reason
#
# approved and rejected are terminal. Any further approve/reject raises
# InvalidTransitionError, including approving an already approved case: a
# second administrator's decision is a conflict to surface, never a no-op.
#
# The caller must already have checked that the actor is an administrator.
#
# Writes go through CaseRepository.save_case_transition, gated on the case
# still being pending, so two administrators racing on the same case end with
# exactly one decision applied. A transition applies completely or not at all,
# including any field edits submitted alongside it.
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Any, Callable
from uuid import UUID

from app.exceptions import CaseNotFoundError, CaseValidationError, InvalidTransitionError
from core.models.case import Case, CaseStatus
from core.services.case_repository import CaseRepository

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_reason(reason: str | None) -> str:
    """
    Validate and trim a rejection reason.

    Raises:
        CaseValidationError: If the reason is missing or whitespace only
    """
    cleaned = (reason or "").strip()
    if not cleaned:
        raise CaseValidationError("A rejection reason is required", field="reason")
    return cleaned


def plan_transition(
    case: Case,
    target: CaseStatus,
    actor_id: str | UUID,
    reason: str | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Compute the field patch for moving case to target, without any I/O.

    Args:
        case: Current state of the case
        target: APPROVED or REJECTED
        actor_id: Administrator making the decision
        reason: Rejection reason (required for REJECTED, ignored otherwise)
        now: Decision timestamp (defaults to current UTC time)

    Returns:
        JSON-ready dict of the columns to write

    Raises:
        CaseValidationError: If rejecting without a reason
        InvalidTransitionError: If the case is already decided or target is PENDING
    """
    case_id = str(case.id)

    if target is CaseStatus.PENDING or case.status.is_terminal:
        raise InvalidTransitionError(case_id, case.status.value, target.value)

    decided_at = (now or utc_now()).isoformat()
    if target is CaseStatus.APPROVED:
        rejection_reason = None
    else:
        rejection_reason = normalize_reason(reason)

    return {
        "status": target.value,
        "decided_by": str(actor_id),
        "decided_at": decided_at,
        "rejection_reason": rejection_reason,
    }


class CaseLifecycle:
    """
    Applies approve/reject decisions to stored cases.

    Args:
        repository: Persistence collaborator (load + conditional save)
        now: Clock returning an aware UTC datetime; injectable for tests

    Example:
        lifecycle = CaseLifecycle(SupabaseCaseRepository())
        case = lifecycle.approve(case_id, actor_id=admin.id)
    """

    def __init__(
        self,
        repository: CaseRepository,
        now: Callable[[], datetime] = utc_now,
    ):
        self.repository = repository
        self.now = now

    def approve(
        self,
        case_id: str | UUID,
        actor_id: str | UUID,
        changes: dict[str, Any] | None = None,
    ) -> Case:
        """
        Approve a pending case.

        changes are extra column values (descriptive fields) written in the
        same conditional update as the decision.

        Raises:
            CaseNotFoundError: If the case doesn't exist
            InvalidTransitionError: If the case is already decided or was
                decided concurrently
        """
        return self._decide(case_id, CaseStatus.APPROVED, actor_id, changes=changes)

    def reject(
        self,
        case_id: str | UUID,
        actor_id: str | UUID,
        reason: str | None,
        changes: dict[str, Any] | None = None,
    ) -> Case:
        """
        Reject a pending case with a reason.

        The reason is checked before the case is loaded, so a blank reason
        fails without touching storage. changes are written with the decision,
        as for approve.

        Raises:
            CaseValidationError: If reason is empty or whitespace only
            CaseNotFoundError: If the case doesn't exist
            InvalidTransitionError: If the case is already decided or was
                decided concurrently
        """
        reason = normalize_reason(reason)
        return self._decide(case_id, CaseStatus.REJECTED, actor_id, reason, changes)

    def _decide(
        self,
        case_id: str | UUID,
        target: CaseStatus,
        actor_id: str | UUID,
        reason: str | None = None,
        changes: dict[str, Any] | None = None,
    ) -> Case:
        case = self.repository.load_case(case_id)
        if case is None:
            raise CaseNotFoundError(str(case_id))

        patch = plan_transition(case, target, actor_id, reason, now=self.now())
        if changes:
            # Decision columns always win over field edits
            patch = {**changes, **patch}

        updated = self.repository.save_case_transition(case.id, CaseStatus.PENDING, patch)
        if updated is None:
            # Someone else decided it between our load and our write
            raise InvalidTransitionError(str(case.id), None, target.value, conflict=True)

        logger.info(f"Case {case.id} {target.value} by {actor_id}")
        return updated
