# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .case_repository import CaseRepository, SupabaseCaseRepository
from .case_lifecycle import CaseLifecycle, plan_transition
from .evidence_service import EvidenceService
from .case_service import CaseService
from .company_service import CompanyService
from .user_service import UserService
from .narrative_service import PrefillResult, prefill_narrative

__all__ = [
    "CaseRepository",
    "SupabaseCaseRepository",
    "CaseLifecycle",
    "plan_transition",
    "EvidenceService",
    "CaseService",
    "CompanyService",
    "UserService",
    "PrefillResult",
    "prefill_narrative",
]
