# =============================================================================
# core/services/case_service.py - Case Business Logic
# =============================================================================
# Handles case submission, visibility, listing, search, editing and deletion.
# Separates HTTP concerns from database/business logic.
#
# Visibility rules (the service role bypasses RLS, so they live here):
# - administrators see every case
# - members see approved cases, plus every case their own company registered
# =============================================================================

import logging
from datetime import date
from typing import Any
from uuid import UUID

from app.config import settings
from app.exceptions import (
    AdminRequiredError,
    CaseNotFoundError,
    CaseValidationError,
    InvalidTransitionError,
    NoCompanyError,
)
from core.models.case import Case, CaseCreate, CaseDetail, CaseStatus, CaseUpdate
from core.models.user import Member
from core.services.case_lifecycle import CaseLifecycle
from core.services.evidence_service import EvidenceService
from lib.risk_scorer import RiskScorer
from lib.supabase_client import SupabaseClient
from lib.utils import normalize_search_text

logger = logging.getLogger(__name__)

# Columns that may be edited but never cleared
_REQUIRED_COLUMNS = ("full_name", "reason_text", "evidence_urls")


class CaseService:
    """
    Service for registry case operations.

    Provides a clean interface between API routes and database.
    """

    # -------------------------------------------------------------------------
    # Visibility
    # -------------------------------------------------------------------------

    @staticmethod
    def can_view(case: Case, viewer: Member) -> bool:
        if viewer.is_admin or case.status is CaseStatus.APPROVED:
            return True
        return viewer.company_id is not None and case.registered_company_id == viewer.company_id

    @staticmethod
    def can_edit(case: Case, editor: Member) -> bool:
        if editor.is_admin:
            return True
        return editor.company_id is not None and case.registered_company_id == editor.company_id

    # -------------------------------------------------------------------------
    # Create
    # -------------------------------------------------------------------------

    @staticmethod
    def create_case(
        member: Member,
        payload: CaseCreate,
        scorer: RiskScorer,
    ) -> Case:
        """
        Submit a new case for review.

        The risk score is computed here, once, from the narrative.

        Raises:
            NoCompanyError: If the member has no company
        """
        if member.company_id is None:
            raise NoCompanyError(str(member.id))

        risk_score = scorer.score(payload.reason_text)

        data = payload.model_dump(mode="json")
        data.update({
            "registered_company_id": str(member.company_id),
            "registered_by_user_id": str(member.id),
            "risk_score": risk_score,
            "status": CaseStatus.PENDING.value,
            "decided_by": None,
            "decided_at": None,
            "rejection_reason": None,
        })

        row = SupabaseClient.insert_case(data)
        case = Case.model_validate(row)
        logger.info(f"Created case {case.id} for company {member.company_id} (risk_score={risk_score})")
        return case

    # -------------------------------------------------------------------------
    # Read
    # -------------------------------------------------------------------------

    @staticmethod
    def get_case(case_id: str | UUID, viewer: Member) -> Case:
        """
        Get a case the viewer is allowed to see.

        Raises:
            CaseNotFoundError: If it doesn't exist or the viewer can't see it
        """
        row = SupabaseClient.fetch_case(case_id)
        if not row:
            raise CaseNotFoundError(str(case_id))

        case = Case.model_validate(row)
        if not CaseService.can_view(case, viewer):
            # Don't reveal that the case exists
            raise CaseNotFoundError(str(case_id))
        return case

    @staticmethod
    def get_case_detail(case_id: str | UUID, viewer: Member, scorer: RiskScorer) -> CaseDetail:
        """Get a case enriched with tier, company name and signed evidence URLs."""
        case = CaseService.get_case(case_id, viewer)

        company = SupabaseClient.fetch_company(case.registered_company_id)
        tier = scorer.tier(case.risk_score)

        return CaseDetail(
            **case.model_dump(),
            risk_tier=tier.value,
            risk_tier_label=tier.label,
            company_name=company.get("name") if company else None,
            evidence=EvidenceService.signed_files(case.evidence_urls),
        )

    @staticmethod
    def list_cases(
        viewer: Member,
        status: CaseStatus | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Case], int]:
        """
        List cases newest first.

        Non-admins only ever see approved cases, whatever status they ask for.

        Returns:
            Tuple of (cases, total)
        """
        if not viewer.is_admin:
            status = CaseStatus.APPROVED

        rows, total = SupabaseClient.list_cases(
            status=status.value if status else None,
            page=page,
            page_size=page_size,
        )
        return [Case.model_validate(row) for row in rows], total

    @staticmethod
    def list_pending_cases(page: int = 1, page_size: int = 50) -> tuple[list[Case], int]:
        """Admin review queue, newest first."""
        rows, total = SupabaseClient.list_cases(
            status=CaseStatus.PENDING.value,
            page=page,
            page_size=page_size,
        )
        return [Case.model_validate(row) for row in rows], total

    @staticmethod
    def search_cases(
        viewer: Member,
        name: str | None = None,
        birth_date: date | None = None,
    ) -> list[Case]:
        """
        Search cases by name and/or birth date.

        The name matches as a substring of full_name or full_name_kana after
        removing all whitespace and lower-casing both sides. Birth date must
        match exactly. Non-admins search approved cases only.

        Raises:
            CaseValidationError: If neither criterion is given
        """
        query = normalize_search_text(name)
        if not query and birth_date is None:
            raise CaseValidationError("Enter a name or a birth date to search", field="name")

        rows = SupabaseClient.fetch_search_candidates(
            status=None if viewer.is_admin else CaseStatus.APPROVED.value,
            birth_date=birth_date.isoformat() if birth_date else None,
        )

        results = []
        for row in rows:
            if query:
                full_name = normalize_search_text(row.get("full_name"))
                kana = normalize_search_text(row.get("full_name_kana"))
                if query not in full_name and query not in kana:
                    continue
            results.append(Case.model_validate(row))

        logger.debug(f"Search name={name!r} birth_date={birth_date} matched {len(results)} cases")
        return results

    # -------------------------------------------------------------------------
    # Update / Delete
    # -------------------------------------------------------------------------

    @staticmethod
    def update_case(
        case_id: str | UUID,
        editor: Member,
        payload: CaseUpdate,
        lifecycle: CaseLifecycle,
    ) -> Case:
        """
        Edit a case.

        Descriptive fields may be edited by administrators or by members of the
        registering company. The risk score is never recomputed.

        A status different from the current one is an administrator decision.
        It goes through CaseLifecycle, and any field edits in the same payload
        are written by that one conditional update, so a refused or lost
        transition leaves every column untouched.

        Raises:
            CaseNotFoundError: If the case doesn't exist or isn't visible
            AdminRequiredError: If the editor may not edit, or a non-admin changes status
            InvalidTransitionError: If the status change isn't a legal transition
            CaseValidationError: If rejecting without a rejection_reason
        """
        case = CaseService.get_case(case_id, editor)

        if not CaseService.can_edit(case, editor):
            raise AdminRequiredError("edit another company's case")

        changes: dict[str, Any] = {
            column: value
            for column, value in payload.field_changes().items()
            if not (column in _REQUIRED_COLUMNS and value is None)
        }

        target = payload.status
        if target is not None and target is not case.status:
            if not editor.is_admin:
                raise AdminRequiredError("change case status")

            if target is CaseStatus.APPROVED:
                return lifecycle.approve(case.id, editor.id, changes=changes)
            if target is CaseStatus.REJECTED:
                return lifecycle.reject(case.id, editor.id, payload.rejection_reason, changes=changes)
            raise InvalidTransitionError(str(case.id), case.status.value, target.value)

        if not changes:
            return case

        row = SupabaseClient.update_case(case.id, changes)
        if row is None:
            raise CaseNotFoundError(str(case_id))

        logger.info(f"Updated case {case.id} fields {sorted(changes)} by {editor.id}")
        return Case.model_validate(row)

    @staticmethod
    def delete_case(case_id: str | UUID) -> None:
        """
        Delete a case. Authorization is the caller's job.

        Raises:
            CaseNotFoundError: If the case doesn't exist
        """
        if not SupabaseClient.delete_case(case_id):
            raise CaseNotFoundError(str(case_id))
        logger.info(f"Deleted case {case_id}")

    # -------------------------------------------------------------------------
    # Dashboard
    # -------------------------------------------------------------------------

    @staticmethod
    def get_dashboard_stats() -> dict[str, int]:
        """Counts shown on the admin dashboard."""
        return {
            "pending_cases": SupabaseClient.count_rows(
                settings.CASES_TABLE, {"status": CaseStatus.PENDING.value}
            ),
            "pending_users": SupabaseClient.count_rows(
                settings.APP_USERS_TABLE, {"is_approved": False}
            ),
            "companies": SupabaseClient.count_rows(settings.COMPANIES_TABLE),
        }
