# =============================================================================
# core/services/company_service.py - Company Business Logic
# =============================================================================

import logging
from uuid import UUID

from app.exceptions import CompanyNotFoundError
from core.models.company import Company, CompanyCreate, CompanyUpdate
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


class CompanyService:
    """Service for member company management."""

    @staticmethod
    def list_companies() -> list[Company]:
        return [Company.model_validate(row) for row in SupabaseClient.list_companies()]

    @staticmethod
    def get_company(company_id: str | UUID) -> Company:
        """
        Raises:
            CompanyNotFoundError: If the company doesn't exist
        """
        row = SupabaseClient.fetch_company(company_id)
        if not row:
            raise CompanyNotFoundError(str(company_id))
        return Company.model_validate(row)

    @staticmethod
    def create_company(payload: CompanyCreate) -> Company:
        row = SupabaseClient.insert_company(payload.name, is_main=payload.is_main)
        company = Company.model_validate(row)
        logger.info(f"Created company {company.id}: {company.name}")
        return company

    @staticmethod
    def update_company(company_id: str | UUID, payload: CompanyUpdate) -> Company:
        """
        Apply the fields set on payload to a company.

        An empty payload changes nothing and returns the company as stored.

        Raises:
            CompanyNotFoundError: If the company doesn't exist
        """
        changes = payload.model_dump(exclude_unset=True)
        if not changes:
            return CompanyService.get_company(company_id)

        row = SupabaseClient.update_company(company_id, changes)
        if not row:
            raise CompanyNotFoundError(str(company_id))

        logger.info(f"Updated company {company_id} fields {sorted(changes)}")
        return Company.model_validate(row)

    @staticmethod
    def find_or_create(name: str) -> Company:
        """
        Look a company up by exact name, creating it when absent.

        Used at sign-up, where members type their company's name.
        """
        row = SupabaseClient.fetch_company_by_name(name)
        if row:
            return Company.model_validate(row)
        return CompanyService.create_company(CompanyCreate(name=name))

    @staticmethod
    def delete_company(company_id: str | UUID) -> None:
        """
        Raises:
            CompanyNotFoundError: If the company doesn't exist
        """
        if not SupabaseClient.delete_company(company_id):
            raise CompanyNotFoundError(str(company_id))
        logger.info(f"Deleted company {company_id}")
