# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable utilities:
# - risk_scorer.py: Narrative -> risk score and display tier
# - risk_keywords.py: Default keyword table and tier thresholds
# - supabase_client.py: Typed Supabase wrapper for database operations
# - ocr.py: Tesseract adapter for narrative pre-fill
# - utils.py: Shared utilities (UUID and text normalization)
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.risk_scorer import (
    BASE_SCORE,
    RiskAssessment,
    RiskScorer,
    RiskScoringConfig,
    RiskTier,
    load_scoring_config,
)
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import collapse_whitespace, normalize_search_text, normalize_uuid

__all__ = [
    # Risk scoring
    "BASE_SCORE",
    "RiskAssessment",
    "RiskScorer",
    "RiskScoringConfig",
    "RiskTier",
    "load_scoring_config",
    # Supabase
    "SupabaseClient",
    "SupabaseClientError",
    # Utils
    "collapse_whitespace",
    "normalize_search_text",
    "normalize_uuid",
]
