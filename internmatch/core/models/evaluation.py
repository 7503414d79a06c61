"""Evaluation and ranking output models (Pydantic only)."""

from pydantic import Field

from .base import MatchBaseModel
from .candidate import Candidate


# =============================================================================
# Pydantic Schemas
# =============================================================================


class RuleFailure(MatchBaseModel):
    """A hard rule that excluded the candidate."""

    rule_id: str = Field(..., description="Failed rule identifier")
    reason: str = Field(..., description="Human-readable reason")
    error: str | None = Field(None, description="Evaluation error, if the rule could not be evaluated")


class Explain(MatchBaseModel):
    """How a score was derived."""

    passed_rule_ids: list[str] = Field(
        default_factory=list, description="Hard rules whose guard held and check passed"
    )
    skipped_rule_ids: list[str] = Field(
        default_factory=list, description="Hard rules skipped by their guard"
    )
    soft_score_breakdown: dict[str, float] = Field(
        default_factory=dict, description="Weighted contribution per soft rule"
    )
    soft_score: float = Field(0.0, description="Sum of soft rule contributions")
    fairness_boost: float = Field(0.0, ge=0.0, description="Capped diversity boost")
    tie_breaker_value: float = Field(0.0, description="Summed tie-breaker value, before scaling")


class EvaluationResult(MatchBaseModel):
    """Outcome of evaluating one profile against one candidate."""

    eligible: bool = Field(..., description="Whether every applicable hard rule passed")
    failures: list[RuleFailure] = Field(default_factory=list, description="Failed hard rules")
    score: float | None = Field(None, description="Total score when eligible")
    explain: Explain | None = Field(None, description="Score breakdown when eligible")


class RankedMatch(MatchBaseModel):
    """An eligible candidate with its score."""

    candidate: Candidate = Field(..., description="The ranked candidate record")
    score: float = Field(..., description="Total score")
    explain: Explain = Field(..., description="Score breakdown")
