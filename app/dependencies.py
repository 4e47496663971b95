# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources.
# These are injected into route handlers using Depends(), and replaced in
# tests through app.dependency_overrides.
# =============================================================================

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from app.config import settings
from core.services.case_lifecycle import CaseLifecycle
from core.services.case_repository import SupabaseCaseRepository
from lib.ocr import TesseractTextExtractor, TextExtractor
from lib.risk_scorer import RiskScorer, RiskScoringConfig, load_scoring_config


@lru_cache
def get_risk_scorer() -> RiskScorer:
    """
    Get the shared RiskScorer.

    Uses the JSON table named by RISK_SCORING_FILE when set, otherwise the
    built-in defaults. Built once per process.
    """
    if settings.RISK_SCORING_FILE:
        config = load_scoring_config(settings.RISK_SCORING_FILE)
    else:
        config = RiskScoringConfig()
    return RiskScorer(config)


def get_case_lifecycle() -> CaseLifecycle:
    """Get a CaseLifecycle bound to the Supabase-backed repository."""
    return CaseLifecycle(SupabaseCaseRepository())


def get_text_extractor() -> TextExtractor:
    """Get the OCR adapter used for narrative pre-fill."""
    return TesseractTextExtractor(language=settings.OCR_LANGUAGE)


# Type aliases for dependency injection
ScorerDep = Annotated[RiskScorer, Depends(get_risk_scorer)]
LifecycleDep = Annotated[CaseLifecycle, Depends(get_case_lifecycle)]
ExtractorDep = Annotated[TextExtractor, Depends(get_text_extractor)]
