# =============================================================================
# core/models/company.py - Company Schemas
# =============================================================================
# Member companies. Every case and every member user belongs to one.
# =============================================================================

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class Company(BaseModel):
    """A member company as stored in the companies table."""
    id: UUID
    name: str
    is_main: bool = Field(default=False, description="True for the registry operator's own company")
    created_at: datetime | None = None


class CompanyCreate(BaseModel):
    """
    Schema for creating a company.

    Example:
        {"name": "株式会社〇〇支店", "is_main": false}
    """
    name: str = Field(..., min_length=1, max_length=255)
    is_main: bool = False

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class CompanyUpdate(BaseModel):
    """
    Schema for editing a company. Only fields that are sent are changed.

    Example:
        {"name": "株式会社〇〇本社"}
    """
    name: str | None = Field(default=None, min_length=1, max_length=255)
    is_main: bool | None = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str | None) -> str:
        if value is None:
            raise ValueError("must not be null")
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("is_main")
    @classmethod
    def _no_null_flag(cls, value: bool | None) -> bool:
        if value is None:
            raise ValueError("must be true or false")
        return value
