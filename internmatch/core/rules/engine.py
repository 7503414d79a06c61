"""Rule engine - filters, scores and ranks internships for one profile."""

import time
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping

from ..errors import ExpressionError
from ..models.base import utc_now
from ..models.candidate import Candidate
from ..models.enums import Gender, IncomeBand
from ..models.evaluation import EvaluationResult, Explain, RankedMatch, RuleFailure
from ..models.profile import Profile
from ..models.rules import RuleSet
from ...observability.logger import get_logger, log_context
from .expression import compile_expression, to_bool, to_number
from .helpers import build_helpers

logger = get_logger(__name__)

# Tie-breakers only separate candidates whose other components are equal
TIE_BREAKER_SCALE = 1e-3
# Summed tie value is clamped to [0, MAX_TIE_VALUE] so its scaled share stays below 0.001
MAX_TIE_VALUE = 0.999
SCORE_PRECISION = 3

DEFAULT_FAIL_REASON = "Failed"
EVALUATION_ERROR_REASON = "Rule could not be evaluated"


class RuleEngine:
    """Evaluates profiles against internships with a fixed rule set.

    The engine keeps no state between calls besides the rule set and the
    expressions that failed to compile, so one instance can serve any number
    of concurrent requests.

    Evaluation runs in four phases:
    1. Hard rules: every applicable check must pass, all failures are collected
    2. Soft rules: weighted scores are summed
    3. Fairness: diversity boosts are added, capped per session
    4. Tie-breakers: candidate-only values, clamped below 1 and scaled down by 1000
    """

    def __init__(self, rule_set: RuleSet, clock: Callable[[], datetime] = utc_now):
        """Initialize the engine.

        Args:
            rule_set: Loaded rule configuration
            clock: Source of the evaluation instant seen by ``now()`` and
                ``recency_decay()`` in expressions
        """
        self.rule_set = rule_set
        self.clock = clock
        self._invalid = self._compile_rules()

    def _compile_rules(self) -> dict[str, ExpressionError]:
        """Compile every expression once; returns the failures keyed by source."""
        sources: list[tuple[str, str]] = []
        for rule in self.rule_set.hard_rules:
            if rule.when is not None:
                sources.append((rule.id, rule.when))
            sources.append((rule.id, rule.check))
        sources.extend((rule.id, rule.score) for rule in self.rule_set.soft_rules)
        sources.extend(
            (f"tie_breakers[{index}]", source)
            for index, source in enumerate(self.rule_set.tie_breakers)
        )

        invalid: dict[str, ExpressionError] = {}
        for rule_id, source in sources:
            if source in invalid:
                continue
            try:
                compile_expression(source)
            except ExpressionError as exc:
                invalid[source] = exc
                logger.warning("rule_expression_invalid", rule_id=rule_id, error=exc.message)
        return invalid

    def evaluate_one(
        self, profile: Profile, candidate: Candidate, now: datetime | None = None
    ) -> EvaluationResult:
        """Evaluate a single profile/candidate pair.

        Args:
            profile: Student profile
            candidate: Internship posting
            now: Evaluation instant (defaults to the engine clock)

        Returns:
            EvaluationResult with failures when ineligible, score and explain otherwise
        """
        return self._evaluate(profile, candidate, build_helpers(now or self.clock()))

    def rank(
        self,
        profile: Profile,
        pool: Iterable[Candidate],
        now: datetime | None = None,
    ) -> list[RankedMatch]:
        """Rank every eligible candidate in the pool by score, best first.

        Candidates with equal scores keep their pool order.

        Args:
            profile: Student profile
            pool: Candidate internships, already filtered by the caller
            now: Evaluation instant shared by the whole pool

        Returns:
            Ranked matches (ineligible candidates removed)
        """
        start_time = time.time()
        helpers = build_helpers(now or self.clock())

        matches: list[RankedMatch] = []
        evaluated = 0
        with log_context(profile_id=profile.id):
            for candidate in pool:
                evaluated += 1
                result = self._evaluate(profile, candidate, helpers)
                if not result.eligible:
                    continue
                matches.append(
                    RankedMatch(candidate=candidate, score=result.score, explain=result.explain)
                )

            # list.sort is stable, also with reverse=True
            matches.sort(key=_rank_key, reverse=True)

            logger.info(
                "ranking_complete",
                pool_size=evaluated,
                eligible=len(matches),
                duration_ms=int((time.time() - start_time) * 1000),
            )
        return matches

    def fairness_boost(self, profile: Profile) -> float:
        """Summed diversity boost for the profile, clamped to the session cap."""
        fairness = self.rule_set.fairness
        boosts = fairness.diversity_boost
        constraints = profile.constraints

        total = 0.0
        if constraints.gender == Gender.FEMALE and boosts.women:
            total += boosts.women
        if constraints.disability and boosts.pwd:
            total += boosts.pwd
        if constraints.income_band == IncomeBand.EWS and boosts.ews:
            total += boosts.ews

        return round(min(total, fairness.cap_per_session), SCORE_PRECISION)

    # -------------------------------------------------------------------------
    # Phases
    # -------------------------------------------------------------------------

    def _evaluate(
        self, profile: Profile, candidate: Candidate, helpers: Mapping[str, Callable[..., Any]]
    ) -> EvaluationResult:
        bindings = {"profile": profile, "candidate": candidate}

        passed, skipped, failures = self._run_hard_rules(bindings, helpers, candidate.id)
        if failures:
            return EvaluationResult(eligible=False, failures=failures)

        soft_score, breakdown = self._run_soft_rules(bindings, helpers, candidate.id)
        boost = self.fairness_boost(profile)
        tie_value = self._run_tie_breakers({"candidate": candidate}, helpers, candidate.id)

        score = round(soft_score + boost + tie_value * TIE_BREAKER_SCALE, SCORE_PRECISION)

        return EvaluationResult(
            eligible=True,
            score=score,
            explain=Explain(
                passed_rule_ids=passed,
                skipped_rule_ids=skipped,
                soft_score_breakdown=breakdown,
                soft_score=round(soft_score, SCORE_PRECISION),
                fairness_boost=boost,
                tie_breaker_value=tie_value,
            ),
        )

    def _run_hard_rules(
        self,
        bindings: Mapping[str, Any],
        helpers: Mapping[str, Callable[..., Any]],
        candidate_id: str,
    ) -> tuple[list[str], list[str], list[RuleFailure]]:
        passed: list[str] = []
        skipped: list[str] = []
        failures: list[RuleFailure] = []

        for rule in self.rule_set.hard_rules:
            if rule.when is not None:
                try:
                    applies = to_bool(self._run(rule.when, bindings, helpers, rule.id))
                except ExpressionError as exc:
                    self._log_expression_failure(exc, candidate_id, "when")
                    applies = False
                if not applies:
                    skipped.append(rule.id)
                    continue

            try:
                ok = to_bool(self._run(rule.check, bindings, helpers, rule.id))
            except ExpressionError as exc:
                self._log_expression_failure(exc, candidate_id, "check")
                failures.append(
                    RuleFailure(rule_id=rule.id, reason=EVALUATION_ERROR_REASON, error=exc.message)
                )
                continue

            if ok:
                passed.append(rule.id)
            else:
                failures.append(
                    RuleFailure(rule_id=rule.id, reason=rule.fail_reason or DEFAULT_FAIL_REASON)
                )

        return passed, skipped, failures

    def _run_soft_rules(
        self,
        bindings: Mapping[str, Any],
        helpers: Mapping[str, Callable[..., Any]],
        candidate_id: str,
    ) -> tuple[float, dict[str, float]]:
        total = 0.0
        breakdown: dict[str, float] = {}

        for rule in self.rule_set.soft_rules:
            try:
                value = to_number(self._run(rule.score, bindings, helpers, rule.id))
            except ExpressionError as exc:
                self._log_expression_failure(exc, candidate_id, "score")
                value = 0.0

            contribution = value * rule.weight
            total += contribution
            breakdown[rule.id] = round(contribution, SCORE_PRECISION)

        return total, breakdown

    def _run_tie_breakers(
        self,
        bindings: Mapping[str, Any],
        helpers: Mapping[str, Callable[..., Any]],
        candidate_id: str,
    ) -> float:
        total = 0.0
        for index, source in enumerate(self.rule_set.tie_breakers):
            try:
                total += to_number(self._run(source, bindings, helpers, f"tie_breakers[{index}]"))
            except ExpressionError as exc:
                self._log_expression_failure(exc, candidate_id, "tie_breaker")
        return min(max(total, 0.0), MAX_TIE_VALUE)

    def _run(
        self,
        source: str,
        bindings: Mapping[str, Any],
        helpers: Mapping[str, Callable[..., Any]],
        rule_id: str,
    ) -> Any:
        invalid = self._invalid.get(source)
        if invalid is not None:
            raise ExpressionError(invalid.message, source, rule_id)
        try:
            return compile_expression(source).evaluate(bindings, helpers)
        except ExpressionError as exc:
            exc.rule_id = rule_id
            raise

    def _log_expression_failure(self, exc: ExpressionError, candidate_id: str, phase: str) -> None:
        # Compile failures were reported once when the engine was built
        if exc.expression in self._invalid:
            return
        logger.debug(
            "rule_expression_failed",
            rule_id=exc.rule_id,
            candidate_id=candidate_id,
            phase=phase,
            error=exc.message,
            expression=exc.expression,
        )


def _rank_key(match: RankedMatch) -> tuple[float, float]:
    # Tie value only orders matches whose rounded soft+fairness score is equal
    explain = match.explain
    return (
        round(explain.soft_score + explain.fairness_boost, SCORE_PRECISION),
        explain.tie_breaker_value,
    )


# =============================================================================
# Convenience functions
# =============================================================================


def evaluate_one(
    profile: Profile, candidate: Candidate, rule_set: RuleSet, now: datetime | None = None
) -> EvaluationResult:
    """Evaluate one pair without keeping an engine around."""
    return RuleEngine(rule_set).evaluate_one(profile, candidate, now=now)


def rank(
    profile: Profile,
    pool: Iterable[Candidate],
    rule_set: RuleSet,
    now: datetime | None = None,
) -> list[RankedMatch]:
    """Rank a pool without keeping an engine around."""
    return RuleEngine(rule_set).rank(profile, pool, now=now)
