# =============================================================================
# tests/ - Test Suite
# =============================================================================
# Tests for the Blacklist Registry API:
# - test_risk_scorer.py: Scoring formula, tiers and config loading
# - test_case_lifecycle.py: Review state machine and concurrent decisions
# - test_case_service.py / test_user_service.py: Services with Supabase mocked
# - test_models.py: Pydantic model validation
# - test_evidence.py / test_narrative.py: Storage and OCR pre-fill
# - test_auth.py: Token verification and member gate
# - test_api.py: Endpoints through FastAPI's TestClient
#
# Run tests with: pytest
# =============================================================================
