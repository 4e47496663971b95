# =============================================================================
# lib/risk_scorer.py - Narrative Risk Scoring Engine
# =============================================================================
# Turns the free-text description of a case into a heuristic severity score
# and a coarse display tier. The score is shown next to every case for visual
# triage only; it never gates approval.
#
# Algorithm:
#   score = BASE_SCORE
#         + sum(points for every table keyword found anywhere in the text)
#         + min(len(text) * LENGTH_BONUS_PER_CHAR, MAX_LENGTH_BONUS)
#
# A keyword counts once no matter how often it appears. Matching is plain
# case-sensitive substring search with no word-boundary handling, so a
# keyword embedded in a longer word still matches.
#
# The keyword table and tier thresholds are configuration data
# (RiskScoringConfig), so the algorithm can be tested with synthetic tables
# and localized without code changes.
#
# Usage:
#   from lib.risk_scorer import RiskScorer
#   scorer = RiskScorer()
#   scorer.score("遅刻が多い")        # 1555
#   scorer.tier(1555)                # RiskTier.WATCH
# =============================================================================

from __future__ import annotations

import json
import logging
from enum import IntEnum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from lib.risk_keywords import DEFAULT_KEYWORD_SCORES, DEFAULT_TIER_THRESHOLDS

logger = logging.getLogger(__name__)


# Score of a subject with no known issues; every score is at least this.
BASE_SCORE = 5

LENGTH_BONUS_PER_CHAR = 10
MAX_LENGTH_BONUS = 10000


class RiskTier(IntEnum):
    """
    Five ordered display buckets derived from the risk score.

    Ordering follows severity, so tiers compare naturally:
        RiskTier.CRITICAL > RiskTier.WATCH
    """
    SAFE = 1
    WATCH = 2
    CAUTION = 3
    DANGEROUS = 4
    CRITICAL = 5

    @property
    def label(self) -> str:
        """Lower-case name used by clients to pick a colour."""
        return self.name.lower()


class RiskScoringConfig(BaseModel):
    """
    Keyword table and tier thresholds for RiskScorer.

    Example (JSON):
        {
            "keyword_scores": {"横領": 530000, "遅刻": 1500},
            "tier_thresholds": {"2": 1000, "3": 10000, "4": 100000, "5": 530000}
        }
    """

    keyword_scores: dict[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_KEYWORD_SCORES),
        description="Keyword -> points added when the keyword occurs in the text"
    )

    tier_thresholds: dict[int, int] = Field(
        default_factory=lambda: dict(DEFAULT_TIER_THRESHOLDS),
        description="Tier (2-5) -> minimum score, inclusive. Tier 1 is everything below tier 2"
    )

    model_config = {"frozen": True}

    @field_validator("keyword_scores")
    @classmethod
    def _check_keywords(cls, value: dict[str, int]) -> dict[str, int]:
        for keyword, points in value.items():
            if not keyword:
                raise ValueError("keywords must be non-empty strings")
            if points < 0:
                raise ValueError(f"keyword {keyword!r} has negative points: {points}")
        return value

    @field_validator("tier_thresholds")
    @classmethod
    def _check_thresholds(cls, value: dict[int, int]) -> dict[int, int]:
        expected = {tier.value for tier in RiskTier if tier is not RiskTier.SAFE}
        if set(value) != expected:
            raise ValueError(f"tier_thresholds must define exactly tiers {sorted(expected)}")

        previous = 0
        for tier in sorted(value):
            if value[tier] <= previous:
                raise ValueError("tier thresholds must be positive and strictly increase with tier")
            previous = value[tier]
        return value


class RiskAssessment(BaseModel):
    """Score breakdown returned for previews and case detail views."""
    score: int = Field(..., ge=BASE_SCORE)
    tier: RiskTier
    tier_label: str
    matched_keywords: list[str] = Field(default_factory=list)
    length_bonus: int = Field(default=0, ge=0)


class RiskScorer:
    """
    Deterministic narrative -> score mapping.

    Holds only an immutable config, so a single instance can be shared by
    any number of concurrent callers.
    """

    def __init__(self, config: RiskScoringConfig | None = None):
        self.config = config or RiskScoringConfig()
        # Highest tier first so the first threshold reached wins
        self._tiers = sorted(
            ((RiskTier(tier), minimum) for tier, minimum in self.config.tier_thresholds.items()),
            reverse=True,
        )

    def matched_keywords(self, text: str | None) -> list[str]:
        """Return the table keywords present in text, in table order."""
        if not text:
            return []
        return [keyword for keyword in self.config.keyword_scores if keyword in text]

    @staticmethod
    def length_bonus(text: str | None) -> int:
        if not text:
            return 0
        return min(len(text) * LENGTH_BONUS_PER_CHAR, MAX_LENGTH_BONUS)

    def score(self, text: str | None) -> int:
        """
        Compute the risk score for a narrative.

        Never fails: None and "" both score exactly BASE_SCORE.
        """
        if not text:
            return BASE_SCORE

        keyword_points = sum(
            self.config.keyword_scores[keyword] for keyword in self.matched_keywords(text)
        )
        return BASE_SCORE + keyword_points + self.length_bonus(text)

    def tier(self, score: int) -> RiskTier:
        """Classify a score; boundaries are inclusive from below."""
        for tier, minimum in self._tiers:
            if score >= minimum:
                return tier
        return RiskTier.SAFE

    def assess(self, text: str | None) -> RiskAssessment:
        score = self.score(text)
        tier = self.tier(score)
        return RiskAssessment(
            score=score,
            tier=tier,
            tier_label=tier.label,
            matched_keywords=self.matched_keywords(text),
            length_bonus=self.length_bonus(text),
        )


def load_scoring_config(path: str | Path) -> RiskScoringConfig:
    """
    Load a RiskScoringConfig from a JSON file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        pydantic.ValidationError: If the table or thresholds are malformed
    """
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    config = RiskScoringConfig.model_validate(raw)
    logger.info(f"Loaded risk scoring config from {path} ({len(config.keyword_scores)} keywords)")
    return config
