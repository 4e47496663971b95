# =============================================================================
# tests/test_case_service.py - Case Service Tests
# =============================================================================
# Unit tests for core/services/case_service.py with SupabaseClient mocked.
#
# Run with: pytest tests/test_case_service.py -v
# =============================================================================

from datetime import date
from unittest.mock import patch
from uuid import uuid4

import pytest

from app.exceptions import (
    AdminRequiredError,
    CaseNotFoundError,
    CaseValidationError,
    InvalidTransitionError,
    NoCompanyError,
)
from core.models.case import Case, CaseCreate, CaseStatus, CaseUpdate, EvidenceFile
from core.models.user import AuthUser, Member
from core.services.case_lifecycle import CaseLifecycle
from core.services.case_service import CaseService
from lib.risk_scorer import RiskScorer
from lib.supabase_client import SupabaseClientError
from tests.conftest import COMPANY_ID, OTHER_COMPANY_ID, InMemoryCaseRepository


@pytest.fixture
def mock_client():
    with patch("core.services.case_service.SupabaseClient") as client:
        yield client


@pytest.fixture
def scorer():
    return RiskScorer()


# =============================================================================
# Create
# =============================================================================

class TestCreateCase:
    """Tests for CaseService.create_case."""

    def test_create_scores_and_queues_for_review(self, mock_client, member, scorer, case_row_factory):
        mock_client.insert_case.side_effect = lambda data: case_row_factory(**data)
        payload = CaseCreate(full_name="山田 太郎", reason_text="着服と無断欠勤があった。")

        case = CaseService.create_case(member, payload, scorer)

        inserted = mock_client.insert_case.call_args.args[0]
        assert inserted["risk_score"] == 548125
        assert inserted["status"] == "pending"
        assert inserted["registered_company_id"] == str(COMPANY_ID)
        assert inserted["registered_by_user_id"] == str(member.id)
        assert inserted["decided_by"] is None
        assert case.status is CaseStatus.PENDING
        assert case.risk_score == 548125

    def test_create_ignores_client_supplied_score(self, mock_client, member, scorer, case_row_factory):
        mock_client.insert_case.side_effect = lambda data: case_row_factory(**data)
        payload = CaseCreate.model_validate({
            "full_name": "佐藤 次郎",
            "reason_text": "遅刻が多い",
            "risk_score": 999999,
        })

        CaseService.create_case(member, payload, scorer)

        assert mock_client.insert_case.call_args.args[0]["risk_score"] == 1555

    def test_create_without_company(self, mock_client, admin, scorer):
        payload = CaseCreate(full_name="x", reason_text="y")

        with pytest.raises(NoCompanyError):
            CaseService.create_case(admin, payload, scorer)

        mock_client.insert_case.assert_not_called()


# =============================================================================
# Visibility
# =============================================================================

class TestVisibility:
    """Tests for get_case and can_view."""

    def test_member_sees_approved_case_of_other_company(self, mock_client, other_member, case_row_factory):
        row = case_row_factory(status="approved", decided_by=str(uuid4()), decided_at="2024-06-01T00:00:00+00:00")
        mock_client.fetch_case.return_value = row

        case = CaseService.get_case(row["id"], other_member)

        assert str(case.id) == row["id"]

    def test_member_does_not_see_pending_case_of_other_company(self, mock_client, other_member, case_row_factory):
        mock_client.fetch_case.return_value = case_row_factory()

        with pytest.raises(CaseNotFoundError):
            CaseService.get_case(uuid4(), other_member)

    def test_member_sees_own_company_pending_case(self, mock_client, member, case_row_factory):
        mock_client.fetch_case.return_value = case_row_factory()

        assert CaseService.get_case(uuid4(), member).status is CaseStatus.PENDING

    def test_admin_sees_everything(self, mock_client, admin, case_row_factory):
        mock_client.fetch_case.return_value = case_row_factory(
            registered_company_id=str(OTHER_COMPANY_ID),
        )

        assert CaseService.get_case(uuid4(), admin) is not None

    def test_missing_case(self, mock_client, admin):
        mock_client.fetch_case.return_value = None

        with pytest.raises(CaseNotFoundError):
            CaseService.get_case(uuid4(), admin)

    def test_list_forces_approved_for_members(self, mock_client, member):
        mock_client.list_cases.return_value = ([], 0)

        CaseService.list_cases(member, status=CaseStatus.PENDING)

        assert mock_client.list_cases.call_args.kwargs["status"] == "approved"

    def test_list_respects_admin_filter(self, mock_client, admin):
        mock_client.list_cases.return_value = ([], 0)

        CaseService.list_cases(admin, status=None)

        assert mock_client.list_cases.call_args.kwargs["status"] is None


class TestCaseDetail:
    """Tests for get_case_detail."""

    def test_detail_adds_tier_company_and_evidence(self, mock_client, member, scorer, case_row_factory):
        mock_client.fetch_case.return_value = case_row_factory(
            risk_score=548125,
            evidence_urls=["u/1-abc.png"],
        )
        mock_client.fetch_company.return_value = {"id": str(COMPANY_ID), "name": "鈴木工務店"}
        signed = [EvidenceFile(path="u/1-abc.png", signed_url="https://x/sig", name="1-abc.png", kind="image")]

        with patch("core.services.case_service.EvidenceService.signed_files", return_value=signed):
            detail = CaseService.get_case_detail(uuid4(), member, scorer)

        assert detail.risk_tier == 5
        assert detail.risk_tier_label == "critical"
        assert detail.company_name == "鈴木工務店"
        assert detail.evidence == signed


# =============================================================================
# Search
# =============================================================================

class TestSearch:
    """Tests for CaseService.search_cases."""

    def test_name_match_ignores_whitespace_and_case(self, mock_client, member, case_row_factory):
        mock_client.fetch_search_candidates.return_value = [
            case_row_factory(full_name="Yamada Taro", full_name_kana=None),
            case_row_factory(full_name="Suzuki Ichiro", full_name_kana=None),
        ]

        results = CaseService.search_cases(member, name=" yamadata ")

        assert [case.full_name for case in results] == ["Yamada Taro"]

    def test_name_matches_kana(self, mock_client, member, case_row_factory):
        mock_client.fetch_search_candidates.return_value = [case_row_factory()]

        results = CaseService.search_cases(member, name="ヤマダ")

        assert len(results) == 1

    def test_members_search_approved_only(self, mock_client, member):
        mock_client.fetch_search_candidates.return_value = []

        CaseService.search_cases(member, birth_date=date(1990, 4, 1))

        kwargs = mock_client.fetch_search_candidates.call_args.kwargs
        assert kwargs["status"] == "approved"
        assert kwargs["birth_date"] == "1990-04-01"

    def test_admin_searches_all_statuses(self, mock_client, admin):
        mock_client.fetch_search_candidates.return_value = []

        CaseService.search_cases(admin, name="山田")

        assert mock_client.fetch_search_candidates.call_args.kwargs["status"] is None

    @pytest.mark.parametrize("name", [None, "", "   "])
    def test_requires_a_criterion(self, mock_client, member, name):
        with pytest.raises(CaseValidationError):
            CaseService.search_cases(member, name=name)

        mock_client.fetch_search_candidates.assert_not_called()


# =============================================================================
# Update
# =============================================================================

class TestUpdateCase:
    """Tests for CaseService.update_case."""

    @pytest.fixture
    def stored(self, case_row_factory):
        return case_row_factory()

    @pytest.fixture
    def repository(self, stored):
        return InMemoryCaseRepository([Case.model_validate(stored)])

    @pytest.fixture
    def lifecycle(self, repository):
        return CaseLifecycle(repository)

    def test_member_edits_fields_without_rescoring(self, mock_client, member, stored, lifecycle):
        mock_client.fetch_case.return_value = stored
        mock_client.update_case.side_effect = lambda case_id, data: {**stored, **data}

        case = CaseService.update_case(
            stored["id"], member, CaseUpdate(reason_text="横領で逮捕された"), lifecycle,
        )

        changes = mock_client.update_case.call_args.args[1]
        assert changes == {"reason_text": "横領で逮捕された"}
        assert case.risk_score == stored["risk_score"]

    def test_other_company_cannot_edit_approved_case(self, mock_client, other_member, case_row_factory, lifecycle):
        mock_client.fetch_case.return_value = case_row_factory(
            status="approved", decided_by=str(uuid4()), decided_at="2024-06-01T00:00:00+00:00",
        )

        with pytest.raises(AdminRequiredError):
            CaseService.update_case(uuid4(), other_member, CaseUpdate(full_name="x"), lifecycle)

        mock_client.update_case.assert_not_called()

    def test_member_cannot_change_status(self, mock_client, member, stored, lifecycle):
        mock_client.fetch_case.return_value = stored

        with pytest.raises(AdminRequiredError):
            CaseService.update_case(stored["id"], member, CaseUpdate(status=CaseStatus.APPROVED), lifecycle)

    def test_admin_status_change_goes_through_lifecycle(self, mock_client, admin, stored, lifecycle):
        mock_client.fetch_case.return_value = stored

        case = CaseService.update_case(
            stored["id"], admin,
            CaseUpdate(status=CaseStatus.REJECTED, rejection_reason=" 重複 "),
            lifecycle,
        )

        assert case.status is CaseStatus.REJECTED
        assert case.rejection_reason == "重複"
        assert case.decided_by == admin.id
        mock_client.update_case.assert_not_called()

    def test_reject_without_reason_changes_nothing(self, mock_client, admin, stored, lifecycle):
        mock_client.fetch_case.return_value = stored

        with pytest.raises(CaseValidationError):
            CaseService.update_case(
                stored["id"], admin,
                CaseUpdate(status=CaseStatus.REJECTED, full_name="changed"),
                lifecycle,
            )

        mock_client.update_case.assert_not_called()

    def test_back_to_pending_is_invalid(self, mock_client, admin, case_row_factory, lifecycle):
        mock_client.fetch_case.return_value = case_row_factory(
            status="approved", decided_by=str(uuid4()), decided_at="2024-06-01T00:00:00+00:00",
        )

        with pytest.raises(InvalidTransitionError):
            CaseService.update_case(uuid4(), admin, CaseUpdate(status=CaseStatus.PENDING), lifecycle)

    def test_same_status_is_not_a_transition(self, mock_client, member, stored, lifecycle):
        mock_client.fetch_case.return_value = stored

        case = CaseService.update_case(stored["id"], member, CaseUpdate(status=CaseStatus.PENDING), lifecycle)

        assert case.status is CaseStatus.PENDING
        mock_client.update_case.assert_not_called()

    def test_null_required_fields_are_not_cleared(self, mock_client, member, stored, lifecycle):
        mock_client.fetch_case.return_value = stored
        mock_client.update_case.side_effect = lambda case_id, data: {**stored, **data}

        CaseService.update_case(
            stored["id"], member,
            CaseUpdate(full_name=None, evidence_urls=None, full_name_kana=None),
            lifecycle,
        )

        assert mock_client.update_case.call_args.args[1] == {"full_name_kana": None}

    def test_decision_and_field_edits_are_one_write(self, mock_client, admin, stored, repository, lifecycle):
        mock_client.fetch_case.return_value = stored
        mock_client.update_case.side_effect = SupabaseClientError("write failed")

        case = CaseService.update_case(
            stored["id"], admin,
            CaseUpdate(status=CaseStatus.APPROVED, full_name="別人"),
            lifecycle,
        )

        assert case.status is CaseStatus.APPROVED
        assert case.full_name == "別人"
        assert repository.save_calls == 1
        assert repository.cases[stored["id"]].full_name == "別人"
        mock_client.update_case.assert_not_called()

    def test_failed_write_leaves_case_pending_and_unedited(self, mock_client, admin, stored):
        class FailingRepository(InMemoryCaseRepository):
            def save_case_transition(self, case_id, expected_status, patch):
                raise SupabaseClientError("connection reset")

        repository = FailingRepository([Case.model_validate(stored)])
        mock_client.fetch_case.return_value = stored

        with pytest.raises(SupabaseClientError):
            CaseService.update_case(
                stored["id"], admin,
                CaseUpdate(status=CaseStatus.REJECTED, rejection_reason="重複", full_name="別人"),
                CaseLifecycle(repository),
            )

        kept = repository.cases[stored["id"]]
        assert kept.status is CaseStatus.PENDING
        assert kept.full_name == stored["full_name"]
        mock_client.update_case.assert_not_called()

    def test_lost_race_writes_no_fields(self, mock_client, admin, stored):
        class LostRaceRepository(InMemoryCaseRepository):
            def save_case_transition(self, case_id, expected_status, patch):
                return None

        repository = LostRaceRepository([Case.model_validate(stored)])
        mock_client.fetch_case.return_value = stored

        with pytest.raises(InvalidTransitionError) as exc_info:
            CaseService.update_case(
                stored["id"], admin,
                CaseUpdate(status=CaseStatus.APPROVED, full_name="別人"),
                CaseLifecycle(repository),
            )

        assert exc_info.value.conflict is True
        assert repository.cases[stored["id"]].full_name == stored["full_name"]
        mock_client.update_case.assert_not_called()


# =============================================================================
# Delete / Dashboard
# =============================================================================

class TestDeleteAndStats:

    def test_delete_missing_case(self, mock_client):
        mock_client.delete_case.return_value = False

        with pytest.raises(CaseNotFoundError):
            CaseService.delete_case(uuid4())

    def test_dashboard_stats(self, mock_client):
        mock_client.count_rows.side_effect = [3, 2, 7]

        stats = CaseService.get_dashboard_stats()

        assert stats == {"pending_cases": 3, "pending_users": 2, "companies": 7}
        first_call = mock_client.count_rows.call_args_list[0]
        assert first_call.args[1] == {"status": "pending"}


class TestMemberModel:

    def test_member_identity(self):
        user_id = uuid4()
        member = Member(auth=AuthUser(id=user_id, role="admin"), company_id=None)

        assert member.id == user_id
        assert member.is_admin is True
