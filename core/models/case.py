# =============================================================================
# core/models/case.py - Case Schemas
# =============================================================================
# These models define the registry's central record and its API contract:
# - CaseStatus: pending -> approved | rejected
# - Case: the full row as stored in blacklist_cases, with invariants checked
# - CaseCreate / CaseUpdate: inputs for submitting and editing a case
# - RejectRequest: input for an administrator's rejection
# - CaseDetail / CaseList: outputs returned to clients
#
# A case describes one person and one incident. It is submitted by a member
# company, reviewed once by an administrator, and after approval becomes
# searchable by every member company.
# =============================================================================

from datetime import date, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from lib.risk_scorer import BASE_SCORE


class CaseStatus(str, Enum):
    """
    Review state of a case.

    - pending: submitted, waiting for an administrator
    - approved: visible to every member company (terminal)
    - rejected: kept for the record with a reason (terminal)

    Flow: pending -> approved | rejected
    """
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not CaseStatus.PENDING


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class Case(BaseModel):
    """
    A registry entry as stored in the database.

    Loading a row that breaks the decision invariants fails validation, so
    code holding a Case can rely on:
    - pending => decided_by, decided_at, rejection_reason are all None
    - approved/rejected => decided_by and decided_at are set
    - rejected => rejection_reason is non-empty
    """

    id: UUID = Field(..., description="Unique case identifier")

    # Ownership - set at creation, never mutated
    registered_company_id: UUID = Field(..., description="Submitting company")
    registered_by_user_id: UUID = Field(..., description="Submitting user")

    # Subject
    full_name: str = Field(..., min_length=1)
    full_name_kana: str | None = None
    gender: Gender | None = None
    birth_date: date | None = None
    phone_last4: str | None = None

    # Incident
    occurrence_date: date | None = None
    reason_text: str = Field(..., description="Narrative description of the incident")
    evidence_urls: list[str] = Field(default_factory=list)

    # Computed once at creation from reason_text
    risk_score: int = Field(..., ge=BASE_SCORE)

    # Review
    status: CaseStatus = CaseStatus.PENDING
    decided_by: UUID | None = None
    decided_at: datetime | None = None
    rejection_reason: str | None = None

    created_at: datetime | None = None

    @field_validator("evidence_urls", mode="before")
    @classmethod
    def _null_evidence_is_empty(cls, value):
        return value or []

    @model_validator(mode="after")
    def _check_decision_fields(self) -> "Case":
        if self.status is CaseStatus.PENDING:
            if self.decided_by or self.decided_at or self.rejection_reason:
                raise ValueError("pending case must not carry decision fields")
        else:
            if self.decided_by is None or self.decided_at is None:
                raise ValueError(f"{self.status.value} case requires decided_by and decided_at")
            if self.status is CaseStatus.REJECTED and not (self.rejection_reason or "").strip():
                raise ValueError("rejected case requires a rejection_reason")
        return self


class CaseCreate(BaseModel):
    """
    Schema for submitting a new case.

    The submitting user and company come from the authenticated member, and
    the risk score is computed server-side, so neither is accepted here.

    Example:
        {
            "full_name": "山田 太郎",
            "full_name_kana": "ヤマダ タロウ",
            "gender": "male",
            "birth_date": "1990-04-01",
            "phone_last4": "1234",
            "occurrence_date": "2024-05-20",
            "reason_text": "着服と無断欠勤があった",
            "evidence_urls": ["<user-id>/1716180000000-ab12cd3.png"]
        }
    """

    full_name: str = Field(..., min_length=1, max_length=255)
    full_name_kana: str | None = Field(default=None, max_length=255)
    gender: Gender | None = None
    birth_date: date | None = None
    phone_last4: str | None = Field(
        default=None,
        pattern=r"^\d{4}$",
        description="Last four digits of the subject's mobile number"
    )
    occurrence_date: date | None = None
    reason_text: str = Field(
        ...,
        min_length=1,
        description="Narrative description; drives the risk score"
    )
    evidence_urls: list[str] = Field(
        default_factory=list,
        description="Storage paths returned by POST /api/v1/evidence"
    )

    @field_validator("full_name", "reason_text")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class CaseUpdate(BaseModel):
    """
    Schema for editing a case. Only provided fields are changed.

    risk_score is deliberately absent: the score reflects the narrative as
    it was when the case was filed.

    A status change is admin-only and follows the review rules; moving to
    "rejected" requires rejection_reason.
    """

    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    full_name_kana: str | None = Field(default=None, max_length=255)
    gender: Gender | None = None
    birth_date: date | None = None
    phone_last4: str | None = Field(default=None, pattern=r"^\d{4}$")
    occurrence_date: date | None = None
    reason_text: str | None = Field(default=None, min_length=1)
    evidence_urls: list[str] | None = None

    status: CaseStatus | None = None
    rejection_reason: str | None = None

    def field_changes(self) -> dict:
        """Descriptive fields that were explicitly set, JSON-ready."""
        return self.model_dump(
            mode="json",
            exclude_unset=True,
            exclude={"status", "rejection_reason"},
        )


class RejectRequest(BaseModel):
    """Schema for rejecting a case."""
    reason: str = Field(..., description="Why the case is rejected; shown to the submitter")


class EvidenceFile(BaseModel):
    """A stored evidence file with a time-limited download URL."""
    path: str
    signed_url: str
    name: str
    kind: str = Field(..., description="'image' or 'other'")


class CaseDetail(Case):
    """
    Case as returned to clients, enriched for display.

    Example:
        {
            "id": "550e8400-...",
            "full_name": "山田 太郎",
            "status": "approved",
            "risk_score": 548125,
            "risk_tier": 5,
            "risk_tier_label": "critical",
            "company_name": "鈴木工務店",
            "evidence": [{"path": "...", "signed_url": "...", "name": "...", "kind": "image"}],
            ...
        }
    """
    risk_tier: int = Field(..., ge=1, le=5)
    risk_tier_label: str
    company_name: str | None = None
    evidence: list[EvidenceFile] = Field(default_factory=list)


class CaseList(BaseModel):
    """Paginated list of cases."""
    cases: list[Case] = Field(default_factory=list)
    total: int = Field(default=0, ge=0)
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)
