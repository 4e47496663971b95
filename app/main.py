# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the Blacklist Registry API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
#   python -m app.main          (host/port from API_HOST / API_PORT)
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.config import settings
from app.dependencies import get_risk_scorer
from app.exceptions import RegistryException, registry_exception_handler
from app.routers import health, cases, review, admin, evidence, risk
from app.auth import routes as auth_routes

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup loads the risk scoring table so a broken RISK_SCORING_FILE
    stops the service instead of failing the first submission.
    """
    logger.info(f"Starting Blacklist Registry API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")

    scorer = get_risk_scorer()
    logger.info(f"Risk scorer ready with {len(scorer.config.keyword_scores)} keywords")

    yield

    logger.info("Shutting down Blacklist Registry API")


# Create FastAPI application
app = FastAPI(
    title="Blacklist Registry API",
    description="""
## Shared registry of problem workers for construction companies

Member companies submit cases about individuals who caused trouble on site.
Administrators review each case; approved cases are searchable by every
member company.

### How It Works

1. **Sign up** with Supabase Auth, then register your profile and company
2. **Wait for approval** by an administrator
3. **Submit cases** - the narrative is scored for risk automatically
4. **Search** approved cases by name or birth date

### Risk Tiers

| Tier | Label | Score from |
|------|-------|-----------|
| 5 | critical | 530,000 |
| 4 | dangerous | 100,000 |
| 3 | caution | 10,000 |
| 2 | watch | 1,000 |
| 1 | safe | 5 |
""",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "Auth",
            "description": "Caller identity and member profile registration",
        },
        {
            "name": "Cases",
            "description": "Submit, list, search and edit registry cases",
        },
        {
            "name": "Review",
            "description": "Administrator review queue and decisions",
        },
        {
            "name": "Admin",
            "description": "Dashboard, companies and member approval",
        },
        {
            "name": "Evidence",
            "description": "Evidence uploads and OCR narrative pre-fill",
        },
        {
            "name": "Risk",
            "description": "Risk score preview",
        },
        {
            "name": "Health",
            "description": "API health and readiness checks",
        },
    ],
)


# =============================================================================
# Middleware
# =============================================================================

# CORS middleware - allows cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(RegistryException)
async def handle_registry_exception(request: Request, exc: RegistryException):
    """Handle custom registry exceptions."""
    return await registry_exception_handler(request, exc)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

# Authentication endpoints
app.include_router(
    auth_routes.router,
    prefix="/api/v1/auth",
    tags=["Auth"]
)

# Health check endpoints
app.include_router(
    health.router,
    prefix="/api/v1",
    tags=["Health"]
)

# Case endpoints
app.include_router(
    cases.router,
    prefix="/api/v1/cases",
    tags=["Cases"]
)

# Review endpoints
app.include_router(
    review.router,
    prefix="/api/v1/admin/cases",
    tags=["Review"]
)

# Administration endpoints
app.include_router(
    admin.router,
    prefix="/api/v1/admin",
    tags=["Admin"]
)

# Evidence endpoints
app.include_router(
    evidence.router,
    prefix="/api/v1/evidence",
    tags=["Evidence"]
)

# Risk preview endpoints
app.include_router(
    risk.router,
    prefix="/api/v1/risk",
    tags=["Risk"]
)


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "Blacklist Registry API",
        "version": __version__,
        "docs": "/docs",
        "health": "/api/v1/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.is_development,
    )
