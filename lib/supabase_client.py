# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper
# =============================================================================
# This module provides a typed wrapper for Supabase database operations.
# It implements the singleton pattern to reuse a single client connection
# and provides specialized methods for:
# - Registry cases (including the conditional status update used for
#   optimistic concurrency between reviewing administrators)
# - Member companies
# - Member user profiles (app_users)
# - Row counts for the admin dashboard
#
# Table names come from settings so staging copies can be targeted.
#
# Usage:
#   from lib.supabase_client import SupabaseClient
#   case = SupabaseClient.fetch_case(case_id)
# =============================================================================

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from supabase import create_client, Client

from app.config import settings
from lib.utils import normalize_uuid

# Set up logging for this module
logger = logging.getLogger(__name__)

# PostgREST code for "no rows returned" on .single()
NO_ROWS_CODE = "PGRST116"


class SupabaseClientError(Exception):
    """
    Error during Supabase operations.

    Provides actionable error messages:
    "Errors should tell HOW to fix, not just WHAT failed."
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


class SupabaseClient:
    """
    Typed wrapper for Supabase database operations.

    Implements singleton pattern - one client instance is shared across
    the application. All methods are class methods for easy access without
    instantiation.

    Example:
        rows, total = SupabaseClient.list_cases(status="approved", page=1, page_size=20)

        updated = SupabaseClient.update_case_if_status(
            case_id, expected_status="pending", data={"status": "approved", ...}
        )
        if updated is None:
            ...  # someone else decided the case first
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton Supabase client.

        Uses service_role key which bypasses Row Level Security (RLS).
        Visibility rules are therefore enforced by the service layer.

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance

    @classmethod
    def _fetch_single(cls, table: str, row_id: str | UUID, columns: str = "*") -> dict[str, Any] | None:
        """Fetch one row by id, returning None when it doesn't exist."""
        client = cls.get_client()
        row_id_str = normalize_uuid(row_id)

        try:
            response = (
                client.table(table)
                .select(columns)
                .eq("id", row_id_str)
                .single()
                .execute()
            )
            return response.data

        except Exception as e:
            if NO_ROWS_CODE in str(e):
                return None
            raise SupabaseClientError(
                message=f"Failed to fetch from {table}: {e}",
                code="FETCH_FAILED",
                suggestion=f"Check that the {table} table is accessible",
                details={"table": table, "id": row_id_str}
            )

    # -------------------------------------------------------------------------
    # Case Operations
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_case(cls, case_id: str | UUID) -> dict[str, Any] | None:
        """
        Fetch a case by ID.

        Returns:
            Case dict with all columns, or None if not found

        Raises:
            SupabaseClientError: If query fails
        """
        return cls._fetch_single(settings.CASES_TABLE, case_id)

    @classmethod
    def list_cases(
        cls,
        status: str | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[dict[str, Any]], int]:
        """
        List cases newest first with pagination.

        Args:
            status: Only return cases in this status (None = all)
            page: 1-indexed page number
            page_size: Rows per page

        Returns:
            Tuple of (rows, total matching rows)

        Raises:
            SupabaseClientError: If query fails
        """
        client = cls.get_client()
        offset = (page - 1) * page_size

        try:
            query = client.table(settings.CASES_TABLE).select("*", count="exact")
            if status:
                query = query.eq("status", status)

            response = (
                query
                .order("created_at", desc=True)
                .range(offset, offset + page_size - 1)
                .execute()
            )

            rows = response.data or []
            total = response.count if response.count is not None else len(rows)
            logger.debug(f"Listed {len(rows)} of {total} cases (status={status}, page={page})")
            return rows, total

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to list cases: {e}",
                code="LIST_CASES_FAILED",
                details={"status": status, "page": page, "page_size": page_size}
            )

    @classmethod
    def fetch_search_candidates(
        cls,
        status: str | None = None,
        birth_date: str | None = None,
    ) -> list[dict[str, Any]]:
        """
        Fetch cases that a name search should be evaluated against.

        Status and birth date are filtered in the database; the name match
        needs whitespace normalization PostgREST can't express, so it runs
        in the service layer.

        Raises:
            SupabaseClientError: If query fails
        """
        client = cls.get_client()

        try:
            query = client.table(settings.CASES_TABLE).select("*")
            if status:
                query = query.eq("status", status)
            if birth_date:
                query = query.eq("birth_date", birth_date)

            response = query.order("created_at", desc=True).execute()
            return response.data or []

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to search cases: {e}",
                code="SEARCH_CASES_FAILED",
                details={"status": status, "birth_date": birth_date}
            )

    @classmethod
    def insert_case(cls, data: dict[str, Any]) -> dict[str, Any]:
        """
        Insert a new case.

        Returns:
            Inserted case dict with generated id and created_at

        Raises:
            SupabaseClientError: If insert fails
        """
        client = cls.get_client()

        try:
            response = (
                client.table(settings.CASES_TABLE)
                .insert(data)
                .execute()
            )

            if response.data:
                return response.data[0]
            raise SupabaseClientError(
                message="Insert returned no data",
                code="INSERT_NO_DATA"
            )

        except SupabaseClientError:
            raise
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to insert case: {e}",
                code="INSERT_CASE_FAILED",
                details={"registered_company_id": data.get("registered_company_id")}
            )

    @classmethod
    def update_case(cls, case_id: str | UUID, data: dict[str, Any]) -> dict[str, Any] | None:
        """
        Update descriptive fields of a case.

        Returns:
            Updated case dict, or None if no row matched

        Raises:
            SupabaseClientError: If update fails
        """
        client = cls.get_client()
        case_id_str = normalize_uuid(case_id)

        try:
            response = (
                client.table(settings.CASES_TABLE)
                .update(data)
                .eq("id", case_id_str)
                .execute()
            )
            return response.data[0] if response.data else None

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to update case: {e}",
                code="UPDATE_CASE_FAILED",
                details={"case_id": case_id_str, "fields": sorted(data)}
            )

    @classmethod
    def update_case_if_status(
        cls,
        case_id: str | UUID,
        expected_status: str,
        data: dict[str, Any],
    ) -> dict[str, Any] | None:
        """
        Conditionally update a case only while it is still in expected_status.

        This is the optimistic-concurrency primitive behind approve/reject:
        PostgREST applies `WHERE id = ? AND status = ?` atomically, so of two
        racing administrators exactly one gets a row back.

        Returns:
            Updated case dict, or None if the case no longer matched

        Raises:
            SupabaseClientError: If update fails
        """
        client = cls.get_client()
        case_id_str = normalize_uuid(case_id)

        try:
            response = (
                client.table(settings.CASES_TABLE)
                .update(data)
                .eq("id", case_id_str)
                .eq("status", expected_status)
                .execute()
            )
            return response.data[0] if response.data else None

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to update case status: {e}",
                code="UPDATE_CASE_STATUS_FAILED",
                details={"case_id": case_id_str, "expected_status": expected_status}
            )

    @classmethod
    def delete_case(cls, case_id: str | UUID) -> bool:
        """
        Delete a case.

        Returns:
            True if a row was deleted

        Raises:
            SupabaseClientError: If delete fails
        """
        client = cls.get_client()
        case_id_str = normalize_uuid(case_id)

        try:
            response = (
                client.table(settings.CASES_TABLE)
                .delete()
                .eq("id", case_id_str)
                .execute()
            )
            return bool(response.data)

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to delete case: {e}",
                code="DELETE_CASE_FAILED",
                details={"case_id": case_id_str}
            )

    # -------------------------------------------------------------------------
    # Company Operations
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_company(cls, company_id: str | UUID) -> dict[str, Any] | None:
        """Fetch a company by ID, or None if not found."""
        return cls._fetch_single(settings.COMPANIES_TABLE, company_id)

    @classmethod
    def fetch_company_by_name(cls, name: str) -> dict[str, Any] | None:
        """
        Fetch a company by exact name.

        Returns:
            First matching company, or None
        """
        client = cls.get_client()

        try:
            response = (
                client.table(settings.COMPANIES_TABLE)
                .select("*")
                .eq("name", name)
                .limit(1)
                .execute()
            )
            return response.data[0] if response.data else None

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to look up company: {e}",
                code="FETCH_COMPANY_FAILED",
                details={"name": name}
            )

    @classmethod
    def list_companies(cls) -> list[dict[str, Any]]:
        """List all companies, newest first."""
        client = cls.get_client()

        try:
            response = (
                client.table(settings.COMPANIES_TABLE)
                .select("*")
                .order("created_at", desc=True)
                .execute()
            )
            return response.data or []

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to list companies: {e}",
                code="LIST_COMPANIES_FAILED"
            )

    @classmethod
    def insert_company(cls, name: str, is_main: bool = False) -> dict[str, Any]:
        """
        Insert a new company.

        Raises:
            SupabaseClientError: If insert fails
        """
        client = cls.get_client()

        try:
            response = (
                client.table(settings.COMPANIES_TABLE)
                .insert({"name": name, "is_main": is_main})
                .execute()
            )

            if response.data:
                return response.data[0]
            raise SupabaseClientError(
                message="Insert returned no data",
                code="INSERT_NO_DATA"
            )

        except SupabaseClientError:
            raise
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to insert company: {e}",
                code="INSERT_COMPANY_FAILED",
                details={"name": name}
            )

    @classmethod
    def update_company(cls, company_id: str | UUID, data: dict[str, Any]) -> dict[str, Any] | None:
        """
        Rename a company or change its is_main flag.

        Returns:
            Updated company dict, or None if no row matched
        """
        client = cls.get_client()
        company_id_str = normalize_uuid(company_id)

        try:
            response = (
                client.table(settings.COMPANIES_TABLE)
                .update(data)
                .eq("id", company_id_str)
                .execute()
            )
            return response.data[0] if response.data else None

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to update company: {e}",
                code="UPDATE_COMPANY_FAILED",
                details={"company_id": company_id_str, "fields": sorted(data)}
            )

    @classmethod
    def delete_company(cls, company_id: str | UUID) -> bool:
        """
        Delete a company.

        Members and cases referencing it are left to the database's
        foreign-key rules.
        """
        client = cls.get_client()
        company_id_str = normalize_uuid(company_id)

        try:
            response = (
                client.table(settings.COMPANIES_TABLE)
                .delete()
                .eq("id", company_id_str)
                .execute()
            )
            return bool(response.data)

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to delete company: {e}",
                code="DELETE_COMPANY_FAILED",
                suggestion="Reassign or remove the company's users and cases first",
                details={"company_id": company_id_str}
            )

    # -------------------------------------------------------------------------
    # App User Operations
    # -------------------------------------------------------------------------

    @classmethod
    def fetch_app_user(cls, user_id: str | UUID) -> dict[str, Any] | None:
        """Fetch a member profile by auth user ID, or None if not registered."""
        return cls._fetch_single(settings.APP_USERS_TABLE, user_id)

    @classmethod
    def list_app_users(cls, is_approved: bool | None = None) -> list[dict[str, Any]]:
        """
        List member profiles with their company embedded.

        Args:
            is_approved: Filter by approval flag (None = all)
        """
        client = cls.get_client()

        try:
            query = (
                client.table(settings.APP_USERS_TABLE)
                .select(f"id, display_name, role, is_approved, company_id, created_at, {settings.COMPANIES_TABLE}(id, name)")
            )
            if is_approved is not None:
                query = query.eq("is_approved", is_approved)

            response = query.order("created_at", desc=True).execute()
            return response.data or []

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to list users: {e}",
                code="LIST_USERS_FAILED",
                details={"is_approved": is_approved}
            )

    @classmethod
    def upsert_app_user(cls, data: dict[str, Any]) -> dict[str, Any]:
        """
        Insert or replace a member profile keyed by id.

        Raises:
            SupabaseClientError: If upsert fails
        """
        client = cls.get_client()

        try:
            response = (
                client.table(settings.APP_USERS_TABLE)
                .upsert(data)
                .execute()
            )

            if response.data:
                return response.data[0]
            raise SupabaseClientError(
                message="Upsert returned no data",
                code="UPSERT_NO_DATA"
            )

        except SupabaseClientError:
            raise
        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to save user profile: {e}",
                code="UPSERT_USER_FAILED",
                details={"user_id": data.get("id")}
            )

    @classmethod
    def update_app_user(cls, user_id: str | UUID, data: dict[str, Any]) -> dict[str, Any] | None:
        """Update a member profile, returning None if no row matched."""
        client = cls.get_client()
        user_id_str = normalize_uuid(user_id)

        try:
            response = (
                client.table(settings.APP_USERS_TABLE)
                .update(data)
                .eq("id", user_id_str)
                .execute()
            )
            return response.data[0] if response.data else None

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to update user profile: {e}",
                code="UPDATE_USER_FAILED",
                details={"user_id": user_id_str}
            )

    # -------------------------------------------------------------------------
    # Counts
    # -------------------------------------------------------------------------

    @classmethod
    def count_rows(cls, table: str, filters: dict[str, Any] | None = None) -> int:
        """
        Count rows in a table without fetching them.

        Args:
            table: Table name
            filters: Column -> value equality filters
        """
        client = cls.get_client()

        try:
            query = client.table(table).select("id", count="exact", head=True)
            for column, value in (filters or {}).items():
                query = query.eq(column, value)

            response = query.execute()
            return response.count or 0

        except Exception as e:
            raise SupabaseClientError(
                message=f"Failed to count rows in {table}: {e}",
                code="COUNT_FAILED",
                details={"table": table, "filters": filters or {}}
            )
