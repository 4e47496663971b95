# =============================================================================
# app/routers/risk.py - Risk Score Preview
# =============================================================================
# Lets the submission form show the score a narrative will get before the
# case is filed. The stored score is computed again server-side on submit.
# =============================================================================

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from app.auth import Member, get_current_member
from app.dependencies import ScorerDep
from lib.risk_scorer import RiskAssessment

router = APIRouter()


class ScoreRequest(BaseModel):
    """Narrative to score."""
    text: str = Field(default="", example="遅刻が多い")


@router.post("/score", response_model=RiskAssessment)
async def score_narrative(
    request: ScoreRequest,
    scorer: ScorerDep,
    member: Member = Depends(get_current_member),
):
    """
    Score a narrative and classify it into a display tier.

    Example response:
        {"score": 1555, "tier": 2, "tier_label": "watch",
         "matched_keywords": ["遅刻"], "length_bonus": 50}
    """
    return scorer.assess(request.text)
