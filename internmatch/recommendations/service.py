"""Recommendation service: pool pre-filtering, ranking and response shaping."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable

from pydantic import BaseModel, Field

from ..core.config.loader import load_config
from ..core.models.base import utc_now
from ..core.models.candidate import Candidate
from ..core.models.evaluation import Explain, RankedMatch
from ..core.models.profile import Profile
from ..core.models.rules import RuleSet
from ..core.rules.engine import RuleEngine
from ..observability.logger import get_logger

logger = get_logger(__name__)

DEFAULT_LIMIT = 10
DEFAULT_MAX_POOL_SIZE = 1000
REMOTE_SUFFIX = " / Remote"


class Recommendation(BaseModel):
    candidate_id: str
    title: str
    org: str
    display_location: str
    stipend: float
    duration_months: int | None = None
    score: float
    explain: Explain


class RecommendationResponse(BaseModel):
    count: int = Field(ge=0)
    items: list[Recommendation] = Field(default_factory=list)


def display_location(candidate: Candidate) -> str:
    if candidate.is_remote:
        return f"{candidate.location}{REMOTE_SUFFIX}" if candidate.location else "Remote"
    return candidate.location


def prefilter_pool(
    candidates: Iterable[Candidate],
    now: datetime,
    max_pool_size: int = DEFAULT_MAX_POOL_SIZE,
) -> list[Candidate]:
    """Keep active, verified postings whose deadline has not passed.

    The rule engine never repeats these checks; a caller that skips this
    step gets expired postings ranked like any other.
    """
    pool: list[Candidate] = []
    for candidate in candidates:
        if len(pool) >= max_pool_size:
            break
        if not candidate.active or not candidate.verified:
            continue
        if candidate.application_deadline is not None and candidate.application_deadline < now:
            continue
        pool.append(candidate)
    return pool


def to_recommendation(match: RankedMatch) -> Recommendation:
    candidate = match.candidate
    return Recommendation(
        candidate_id=candidate.id,
        title=candidate.title,
        org=candidate.org,
        display_location=display_location(candidate),
        stipend=candidate.stipend,
        duration_months=candidate.duration_months,
        score=match.score,
        explain=match.explain,
    )


class RecommendationService:
    def __init__(self, rule_set: RuleSet, config: dict[str, Any] | None = None):
        self.engine = RuleEngine(rule_set)
        settings = (config if config is not None else load_config()).get("recommendations", {})
        self.default_limit = int(settings.get("default_limit", DEFAULT_LIMIT))
        self.max_pool_size = int(settings.get("max_pool_size", DEFAULT_MAX_POOL_SIZE))

    def recommend(
        self,
        profile: Profile,
        candidates: Iterable[Candidate],
        limit: int | None = None,
        now: datetime | None = None,
    ) -> RecommendationResponse:
        """Rank internships for a profile and return the top ``limit``.

        Args:
            profile: Student profile
            candidates: All known postings; inactive, unverified and expired
                ones are dropped before ranking
            limit: Maximum number of items (defaults to config)
            now: Reference instant for deadlines and rule expressions

        Returns:
            RecommendationResponse with at most ``limit`` items, best first
        """
        limit = self.default_limit if limit is None else limit
        if limit < 0:
            raise ValueError(f"limit must be >= 0, got {limit}")

        now = now or utc_now()
        pool = prefilter_pool(candidates, now, self.max_pool_size)
        ranked = self.engine.rank(profile, pool, now=now)
        items = [to_recommendation(match) for match in ranked[:limit]]

        logger.info(
            "recommendations_built",
            profile_id=profile.id,
            pool_size=len(pool),
            ranked=len(ranked),
            returned=len(items),
        )
        return RecommendationResponse(count=len(items), items=items)


def recommend(
    profile: Profile,
    candidates: Iterable[Candidate],
    rule_set: RuleSet,
    limit: int | None = None,
    now: datetime | None = None,
) -> RecommendationResponse:
    """Recommend without keeping a service around (convenience function)."""
    return RecommendationService(rule_set).recommend(profile, candidates, limit=limit, now=now)
