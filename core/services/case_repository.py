# =============================================================================
# core/services/case_repository.py - Case Persistence Boundary
# =============================================================================
# The narrow interface CaseLifecycle needs from storage, and its Supabase
# implementation.
#
# save_case_transition is a conditional update: it only applies while the
# case is still in expected_status. Returning None signals a conflict (the
# case was decided by someone else in between), which the lifecycle turns
# into InvalidTransitionError.
# =============================================================================

import logging
from typing import Any, Protocol
from uuid import UUID

from core.models.case import Case, CaseStatus
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


class CaseRepository(Protocol):
    """Persistence collaborator for case status transitions."""

    def load_case(self, case_id: str | UUID) -> Case | None:
        ...

    def save_case_transition(
        self,
        case_id: str | UUID,
        expected_status: CaseStatus,
        patch: dict[str, Any],
    ) -> Case | None:
        ...


class SupabaseCaseRepository:
    """CaseRepository backed by the blacklist_cases table."""

    def load_case(self, case_id: str | UUID) -> Case | None:
        row = SupabaseClient.fetch_case(case_id)
        return Case.model_validate(row) if row else None

    def save_case_transition(
        self,
        case_id: str | UUID,
        expected_status: CaseStatus,
        patch: dict[str, Any],
    ) -> Case | None:
        row = SupabaseClient.update_case_if_status(case_id, expected_status.value, patch)
        if row is None:
            logger.warning(f"Conditional update on case {case_id} matched no row (expected {expected_status.value})")
            return None
        return Case.model_validate(row)
