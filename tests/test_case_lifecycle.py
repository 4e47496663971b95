# =============================================================================
# tests/test_case_lifecycle.py - Review State Machine Tests
# =============================================================================
# Unit tests for core/services/case_lifecycle.py, run against the in-memory
# repository from conftest.py.
#
# Run with: pytest tests/test_case_lifecycle.py -v
# =============================================================================

import threading
from datetime import datetime, timezone
from unittest.mock import patch
from uuid import uuid4

import pytest

from app.exceptions import CaseNotFoundError, CaseValidationError, InvalidTransitionError
from core.models.case import CaseStatus
from core.services.case_lifecycle import CaseLifecycle, normalize_reason, plan_transition
from core.services.case_repository import SupabaseCaseRepository
from tests.conftest import ADMIN_ID, InMemoryCaseRepository

FIXED_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def repository(pending_case, approved_case):
    return InMemoryCaseRepository([pending_case, approved_case])


@pytest.fixture
def lifecycle(repository):
    return CaseLifecycle(repository, now=lambda: FIXED_NOW)


# =============================================================================
# Approve
# =============================================================================

class TestApprove:
    """Tests for CaseLifecycle.approve."""

    def test_approve_pending_case(self, lifecycle, repository, pending_case):
        result = lifecycle.approve(pending_case.id, ADMIN_ID)

        assert result.status is CaseStatus.APPROVED
        assert result.decided_by == ADMIN_ID
        assert result.decided_at == FIXED_NOW
        assert result.rejection_reason is None
        assert repository.cases[str(pending_case.id)].status is CaseStatus.APPROVED

    def test_approve_keeps_descriptive_fields(self, lifecycle, pending_case):
        result = lifecycle.approve(pending_case.id, ADMIN_ID)

        assert result.full_name == pending_case.full_name
        assert result.reason_text == pending_case.reason_text
        assert result.risk_score == pending_case.risk_score

    def test_approve_already_approved_is_invalid(self, lifecycle, repository, approved_case):
        with pytest.raises(InvalidTransitionError) as exc_info:
            lifecycle.approve(approved_case.id, ADMIN_ID)

        assert exc_info.value.conflict is False
        assert exc_info.value.current_status == "approved"
        assert repository.save_calls == 0

    def test_approve_missing_case(self, lifecycle):
        with pytest.raises(CaseNotFoundError):
            lifecycle.approve(uuid4(), ADMIN_ID)

    def test_field_changes_ride_on_the_decision(self, lifecycle, repository, pending_case):
        result = lifecycle.approve(
            pending_case.id, ADMIN_ID, changes={"full_name": "別人", "status": "rejected"},
        )

        assert result.full_name == "別人"
        assert result.status is CaseStatus.APPROVED
        assert repository.save_calls == 1

    def test_refused_decision_writes_no_fields(self, lifecycle, repository, approved_case):
        with pytest.raises(InvalidTransitionError):
            lifecycle.approve(approved_case.id, ADMIN_ID, changes={"full_name": "別人"})

        assert repository.cases[str(approved_case.id)].full_name == approved_case.full_name


# =============================================================================
# Reject
# =============================================================================

class TestReject:
    """Tests for CaseLifecycle.reject."""

    def test_reject_pending_case(self, lifecycle, pending_case):
        result = lifecycle.reject(pending_case.id, ADMIN_ID, "証拠不十分")

        assert result.status is CaseStatus.REJECTED
        assert result.rejection_reason == "証拠不十分"
        assert result.decided_by == ADMIN_ID
        assert result.decided_at == FIXED_NOW

    def test_reason_is_trimmed(self, lifecycle, pending_case):
        result = lifecycle.reject(pending_case.id, ADMIN_ID, "  duplicate entry \n")
        assert result.rejection_reason == "duplicate entry"

    @pytest.mark.parametrize("reason", ["", "   ", "\n\t", None])
    def test_blank_reason_fails_before_loading(self, lifecycle, repository, pending_case, reason):
        with pytest.raises(CaseValidationError) as exc_info:
            lifecycle.reject(pending_case.id, ADMIN_ID, reason)

        assert exc_info.value.field == "reason"
        assert repository.save_calls == 0
        assert repository.cases[str(pending_case.id)].status is CaseStatus.PENDING

    def test_blank_reason_on_missing_case_is_validation_error(self, lifecycle):
        with pytest.raises(CaseValidationError):
            lifecycle.reject(uuid4(), ADMIN_ID, " ")

    def test_reject_approved_case_is_invalid(self, lifecycle, repository, approved_case):
        with pytest.raises(InvalidTransitionError):
            lifecycle.reject(approved_case.id, ADMIN_ID, "changed my mind")

        stored = repository.cases[str(approved_case.id)]
        assert stored.status is CaseStatus.APPROVED
        assert stored.rejection_reason is None

    def test_reject_then_approve_is_invalid(self, lifecycle, pending_case):
        lifecycle.reject(pending_case.id, ADMIN_ID, "no evidence")

        with pytest.raises(InvalidTransitionError):
            lifecycle.approve(pending_case.id, ADMIN_ID)


# =============================================================================
# Concurrency
# =============================================================================

class TestConcurrentDecisions:
    """Two administrators deciding the same case."""

    def test_stale_read_surfaces_conflict(self, pending_case):
        """The case changed between load and save."""
        repository = InMemoryCaseRepository([pending_case])
        lifecycle = CaseLifecycle(repository)

        class StaleRepository:
            def load_case(self, case_id):
                return pending_case

            def save_case_transition(self, case_id, expected_status, patch):
                return repository.save_case_transition(case_id, expected_status, patch)

        lifecycle.approve(pending_case.id, ADMIN_ID)
        stale = CaseLifecycle(StaleRepository())

        with pytest.raises(InvalidTransitionError) as exc_info:
            stale.reject(pending_case.id, uuid4(), "too late")

        assert exc_info.value.conflict is True
        assert repository.cases[str(pending_case.id)].status is CaseStatus.APPROVED

    def test_racing_approve_and_reject_apply_exactly_one(self, pending_case):
        """Both callers read "pending"; only one conditional write wins."""
        barrier = threading.Barrier(2)

        class RacingRepository(InMemoryCaseRepository):
            def load_case(self, case_id):
                case = super().load_case(case_id)
                barrier.wait(timeout=5)
                return case

        repository = RacingRepository([pending_case])
        lifecycle = CaseLifecycle(repository)
        outcomes = []

        def decide(action):
            try:
                outcomes.append(("ok", action()))
            except InvalidTransitionError as e:
                outcomes.append(("conflict", e))

        threads = [
            threading.Thread(target=decide, args=(lambda: lifecycle.approve(pending_case.id, ADMIN_ID),)),
            threading.Thread(target=decide, args=(lambda: lifecycle.reject(pending_case.id, uuid4(), "no"),)),
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert sorted(kind for kind, _ in outcomes) == ["conflict", "ok"]

        winner = next(value for kind, value in outcomes if kind == "ok")
        loser = next(value for kind, value in outcomes if kind == "conflict")
        assert loser.conflict is True

        stored = repository.cases[str(pending_case.id)]
        assert stored.status is winner.status
        assert stored.decided_by == winner.decided_by


# =============================================================================
# Pure helpers
# =============================================================================

class TestPlanTransition:
    """Tests for plan_transition and normalize_reason."""

    def test_approve_patch(self, pending_case):
        patch = plan_transition(pending_case, CaseStatus.APPROVED, ADMIN_ID, reason="ignored", now=FIXED_NOW)

        assert patch == {
            "status": "approved",
            "decided_by": str(ADMIN_ID),
            "decided_at": FIXED_NOW.isoformat(),
            "rejection_reason": None,
        }

    def test_reject_patch(self, pending_case):
        patch = plan_transition(pending_case, CaseStatus.REJECTED, ADMIN_ID, reason=" fake ", now=FIXED_NOW)

        assert patch["status"] == "rejected"
        assert patch["rejection_reason"] == "fake"

    def test_pending_target_is_invalid(self, pending_case):
        with pytest.raises(InvalidTransitionError):
            plan_transition(pending_case, CaseStatus.PENDING, ADMIN_ID)

    def test_terminal_case_is_invalid(self, approved_case):
        with pytest.raises(InvalidTransitionError) as exc_info:
            plan_transition(approved_case, CaseStatus.REJECTED, ADMIN_ID, reason="x")

        assert exc_info.value.target_status == "rejected"

    def test_normalize_reason(self):
        assert normalize_reason("  ok  ") == "ok"
        with pytest.raises(CaseValidationError):
            normalize_reason(" \t ")


# =============================================================================
# Supabase repository
# =============================================================================

class TestSupabaseCaseRepository:
    """Tests for the conditional update wiring, with SupabaseClient mocked."""

    def test_save_is_gated_on_expected_status(self, case_row_factory):
        row = case_row_factory()
        decided = {**row, "status": "approved", "decided_by": str(ADMIN_ID), "decided_at": FIXED_NOW.isoformat()}

        with patch("core.services.case_repository.SupabaseClient") as client:
            client.update_case_if_status.return_value = decided
            case = SupabaseCaseRepository().save_case_transition(row["id"], CaseStatus.PENDING, {"status": "approved"})

        client.update_case_if_status.assert_called_once_with(row["id"], "pending", {"status": "approved"})
        assert case.status is CaseStatus.APPROVED

    def test_no_matching_row_is_a_conflict(self):
        with patch("core.services.case_repository.SupabaseClient") as client:
            client.update_case_if_status.return_value = None
            assert SupabaseCaseRepository().save_case_transition(uuid4(), CaseStatus.PENDING, {}) is None

    def test_load_missing_case(self):
        with patch("core.services.case_repository.SupabaseClient") as client:
            client.fetch_case.return_value = None
            assert SupabaseCaseRepository().load_case(uuid4()) is None
