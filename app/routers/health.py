# =============================================================================
# app/routers/health.py - Health Check Endpoints
# =============================================================================
# /health        process is up, with version and environment
# /health/ready  Supabase table, evidence bucket and scoring table usable
# /health/live   liveness probe, no dependencies touched
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Callable

from fastapi import APIRouter
from pydantic import BaseModel

from app import __version__
from app.config import settings
from app.dependencies import get_risk_scorer
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    environment: str
    version: str


class ReadinessResponse(BaseModel):
    """Overall readiness plus one entry per dependency ("ok" or the error)."""
    status: str
    checks: dict[str, str]
    timestamp: str


class LivenessResponse(BaseModel):
    status: str
    timestamp: str


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _probe(name: str, check: Callable[[], object]) -> str:
    try:
        check()
    except Exception as e:
        logger.warning(f"Readiness check '{name}' failed: {e}")
        return f"error: {str(e)[:80]}"
    return "ok"


def _cases_table():
    SupabaseClient.get_client().table(settings.CASES_TABLE).select("id").limit(1).execute()


def _evidence_bucket():
    SupabaseClient.get_client().storage.get_bucket(settings.EVIDENCE_BUCKET)


@router.get("/health", response_model=HealthResponse)
async def health_check():
    return HealthResponse(
        status="healthy",
        timestamp=_timestamp(),
        environment=settings.ENVIRONMENT,
        version=__version__,
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check():
    """
    Report whether the registry can serve requests.

    status is "ready" only when every check is "ok", otherwise "degraded".
    """
    checks = {
        "database": _probe("database", _cases_table),
        "evidence_storage": _probe("evidence_storage", _evidence_bucket),
        "risk_scoring": _probe("risk_scoring", get_risk_scorer),
    }
    ready = all(result == "ok" for result in checks.values())

    return ReadinessResponse(
        status="ready" if ready else "degraded",
        checks=checks,
        timestamp=_timestamp(),
    )


@router.get("/health/live", response_model=LivenessResponse)
async def liveness_check():
    return LivenessResponse(status="alive", timestamp=_timestamp())
