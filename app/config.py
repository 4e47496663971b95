# =============================================================================
# app/config.py - Application Settings
# =============================================================================
# All runtime configuration, read from environment variables (and a .env
# file in development) by pydantic-settings.
#
# Usage:
#   from app.config import settings
#   settings.EVIDENCE_BUCKET  # "case-evidence"
#
# Missing Supabase credentials fail at import time, before the API starts.
# =============================================================================

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Registry settings. Only the Supabase credentials are required; table,
    bucket and limit defaults match the production schema.
    """

    # -------------------------------------------------------------------------
    # Supabase Configuration
    # -------------------------------------------------------------------------

    SUPABASE_URL: str = Field(
        ...,
        description="Supabase project URL (e.g., https://xxx.supabase.co)"
    )

    SUPABASE_ANON_KEY: str = Field(
        ...,
        description="Supabase anon/public API key"
    )

    SUPABASE_SERVICE_KEY: str = Field(
        ...,
        description="Supabase service_role key (bypasses RLS)"
    )

    SUPABASE_JWT_SECRET: str = Field(
        ...,
        description="Legacy HS256 JWT secret used to verify Supabase access tokens"
    )

    # -------------------------------------------------------------------------
    # Tables and Buckets
    # -------------------------------------------------------------------------
    # Names match the Supabase schema; override only for staging copies

    CASES_TABLE: str = Field(
        default="blacklist_cases",
        description="Table holding registry cases"
    )

    COMPANIES_TABLE: str = Field(
        default="companies",
        description="Table holding member companies"
    )

    APP_USERS_TABLE: str = Field(
        default="app_users",
        description="Table holding member user profiles"
    )

    EVIDENCE_BUCKET: str = Field(
        default="case-evidence",
        description="Storage bucket for evidence files"
    )

    SIGNED_URL_TTL_SECONDS: int = Field(
        default=3600,
        ge=60,
        le=86400,
        description="Lifetime of signed evidence download URLs"
    )

    # -------------------------------------------------------------------------
    # Risk Scoring
    # -------------------------------------------------------------------------

    RISK_SCORING_FILE: str | None = Field(
        default=None,
        description="Optional JSON file overriding the keyword table and tier thresholds"
    )

    # -------------------------------------------------------------------------
    # OCR
    # -------------------------------------------------------------------------

    OCR_LANGUAGE: str = Field(
        default="jpn",
        description="Tesseract language pack used for narrative pre-fill"
    )

    # -------------------------------------------------------------------------
    # Application Settings
    # -------------------------------------------------------------------------

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment"
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode (verbose logging, auto-reload)"
    )

    API_HOST: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server to"
    )

    API_PORT: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port for the API server"
    )

    # CORS origins (comma-separated string that gets parsed)
    CORS_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # File Upload Settings
    # -------------------------------------------------------------------------

    MAX_UPLOAD_SIZE_MB: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum evidence file size in MB"
    )

    ALLOWED_EVIDENCE_EXTENSIONS: str = Field(
        default=".jpg,.jpeg,.png,.gif,.webp,.pdf",
        description="Allowed evidence file extensions (comma-separated)"
    )

    # -------------------------------------------------------------------------
    # Pydantic Settings Configuration
    # -------------------------------------------------------------------------

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
    )

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def cors_origins_list(self) -> list[str]:
        """Split the comma-separated CORS_ORIGINS, trimming each entry."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def allowed_evidence_extensions_list(self) -> list[str]:
        """
        Parse ALLOWED_EVIDENCE_EXTENSIONS string into a list.

        Example: ".png, .PDF" -> [".png", ".pdf"]
        """
        return [ext.strip().lower() for ext in self.ALLOWED_EVIDENCE_EXTENSIONS.split(",")]

    @property
    def max_upload_size_bytes(self) -> int:
        """Convert MB to bytes for file size validation."""
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """Build and validate Settings once per process."""
    return Settings()


settings = get_settings()
