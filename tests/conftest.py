# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - Provides member identities, case row factories and an in-memory
#   CaseRepository so no test talks to Supabase
# =============================================================================

import os
import threading
from uuid import UUID, uuid4

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-with-enough-length")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

import pytest

from core.models.case import Case, CaseStatus
from core.models.user import AuthUser, Member


COMPANY_ID = UUID("11111111-1111-1111-1111-111111111111")
OTHER_COMPANY_ID = UUID("22222222-2222-2222-2222-222222222222")
MEMBER_ID = UUID("33333333-3333-3333-3333-333333333333")
ADMIN_ID = UUID("44444444-4444-4444-4444-444444444444")


# =============================================================================
# In-memory persistence
# =============================================================================

class InMemoryCaseRepository:
    """
    CaseRepository fake with the same conditional-update semantics as the
    Supabase implementation: a save only applies while the stored status
    still equals expected_status.
    """

    def __init__(self, cases=()):
        self.cases: dict[str, Case] = {str(case.id): case for case in cases}
        self.save_calls = 0
        self._lock = threading.Lock()

    def load_case(self, case_id):
        return self.cases.get(str(case_id))

    def save_case_transition(self, case_id, expected_status, patch):
        with self._lock:
            self.save_calls += 1
            current = self.cases.get(str(case_id))
            if current is None or current.status is not expected_status:
                return None
            updated = Case.model_validate({**current.model_dump(mode="json"), **patch})
            self.cases[str(case_id)] = updated
            return updated


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def case_row_factory():
    """Build a blacklist_cases row as Supabase would return it."""

    def make(**overrides) -> dict:
        row = {
            "id": str(uuid4()),
            "registered_company_id": str(COMPANY_ID),
            "registered_by_user_id": str(MEMBER_ID),
            "full_name": "山田 太郎",
            "full_name_kana": "ヤマダ タロウ",
            "gender": "male",
            "birth_date": "1990-04-01",
            "phone_last4": "1234",
            "occurrence_date": "2024-05-20",
            "reason_text": "遅刻が多い",
            "evidence_urls": [],
            "risk_score": 1555,
            "status": "pending",
            "decided_by": None,
            "decided_at": None,
            "rejection_reason": None,
            "created_at": "2024-05-21T09:00:00+00:00",
        }
        row.update(overrides)
        return row

    return make


@pytest.fixture
def pending_case(case_row_factory) -> Case:
    return Case.model_validate(case_row_factory())


@pytest.fixture
def approved_case(case_row_factory) -> Case:
    return Case.model_validate(case_row_factory(
        status=CaseStatus.APPROVED.value,
        decided_by=str(ADMIN_ID),
        decided_at="2024-05-22T10:00:00+00:00",
    ))


@pytest.fixture
def member() -> Member:
    """Approved member of COMPANY_ID."""
    return Member(
        auth=AuthUser(id=MEMBER_ID, email="member@example.com"),
        company_id=COMPANY_ID,
        display_name="現場 太郎",
    )


@pytest.fixture
def other_member() -> Member:
    """Approved member of a different company."""
    return Member(
        auth=AuthUser(id=uuid4(), email="other@example.com"),
        company_id=OTHER_COMPANY_ID,
    )


@pytest.fixture
def admin() -> Member:
    return Member(
        auth=AuthUser(id=ADMIN_ID, email="admin@example.com", role="admin"),
    )
