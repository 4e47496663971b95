# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - cases.py: Case submission, listing, search, detail, edit, delete
# - review.py: Admin review queue and approve/reject
# - admin.py: Dashboard counts, companies, member approval
# - evidence.py: Evidence upload and OCR narrative pre-fill
# - risk.py: Risk score preview
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import cases
from . import review
from . import admin
from . import evidence
from . import risk

__all__ = [
    "health",
    "cases",
    "review",
    "admin",
    "evidence",
    "risk",
]
