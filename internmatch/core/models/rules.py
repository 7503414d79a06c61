"""Rule set models mirroring the YAML rule document."""

from typing import Any

from pydantic import ConfigDict, Field, field_validator

from .base import RecordModel


class RuleModel(RecordModel):
    """Rule entries reject unknown keys so typos in the document surface."""

    model_config = ConfigDict(extra="forbid")


class HardRule(RuleModel):
    """Eligibility gate. A failing check excludes the candidate."""

    id: str = Field(..., min_length=1, description="Rule identifier")
    when: str | None = Field(None, description="Optional guard; rule is skipped when falsy")
    check: str = Field(..., min_length=1, description="Boolean expression that must hold")
    fail_reason: str | None = Field(None, description="Reason reported when the check fails")

    @field_validator("when", mode="before")
    @classmethod
    def _blank_guard_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class SoftRule(RuleModel):
    """Weighted scoring heuristic."""

    id: str = Field(..., min_length=1, description="Rule identifier")
    score: str = Field(..., min_length=1, description="Numeric expression")
    weight: float = Field(1.0, description="Multiplier applied to the score")


class DiversityBoost(RuleModel):
    """Additive boosts per equity attribute."""

    women: float | None = Field(None, ge=0.0, description="Boost for gender F")
    pwd: float | None = Field(None, ge=0.0, description="Boost for persons with disability")
    ews: float | None = Field(None, ge=0.0, description="Boost for EWS income band")


class FairnessConfig(RuleModel):
    """Fairness section of the rule document."""

    diversity_boost: DiversityBoost = Field(default_factory=DiversityBoost)
    cap_per_session: float = Field(0.2, ge=0.0, description="Upper bound on the summed boost")


class RuleSet(RuleModel):
    """Loaded rule configuration, shared read-only by every evaluation."""

    model_config = ConfigDict(extra="ignore")

    hard_rules: tuple[HardRule, ...] = Field(default_factory=tuple)
    soft_rules: tuple[SoftRule, ...] = Field(default_factory=tuple)
    fairness: FairnessConfig = Field(default_factory=FairnessConfig)
    tie_breakers: tuple[str, ...] = Field(default_factory=tuple)
