"""Helper functions visible inside rule expressions.

These are the only callables a rule author can reach. Each one is pure and
tolerant of missing data (``None`` behaves like an empty collection).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Iterable

from ..models.base import parse_datetime
from ..utils.text import haversine_distance_km, jaccard_similarity, keyword_match, normalize_skills


def _lowered(items: Iterable[Any] | None) -> set[str]:
    return {str(item).strip().lower() for item in (items or ()) if item is not None}


def subset_of(required: Iterable[Any] | None, have: Iterable[Any] | None) -> bool:
    """True when every required item is present in ``have`` (case-insensitive)."""
    available = _lowered(have)
    return all(item in available for item in _lowered(required))


def array_includes(items: Iterable[Any] | None, value: Any) -> bool:
    return value in (items or ())


def any_overlap(a: Iterable[Any] | None, b: Iterable[Any] | None) -> bool:
    other = set(b or ())
    return any(item in other for item in (a or ()))


def jaccard_ci(a: Iterable[Any] | None, b: Iterable[Any] | None) -> float:
    """Jaccard similarity with both sides lower-cased."""
    return jaccard_similarity(_lowered(a), _lowered(b))


def recency_decay(value: Any, now: datetime) -> float:
    """Freshness weight of a posting date relative to ``now``."""
    posted = parse_datetime(value)
    if posted is None:
        return 0.0
    days = (now - posted).days
    if days <= 7:
        return 1.0
    if days <= 30:
        return 0.7
    if days <= 90:
        return 0.4
    return 0.1


def build_helpers(now: datetime) -> dict[str, Callable[..., Any]]:
    """Helper table for one evaluation instant.

    ``now`` is fixed per ranking call so that every candidate in a pool is
    judged against the same clock.
    """
    return {
        "now": lambda: now,
        "subset_of": subset_of,
        "normalize_skills": normalize_skills,
        "array_includes": array_includes,
        "any_overlap": any_overlap,
        "distance_km": haversine_distance_km,
        "jaccard_similarity": jaccard_ci,
        "keyword_match": keyword_match,
        "recency_decay": lambda value: recency_decay(value, now),
    }


HELPER_NAMES = frozenset(build_helpers(datetime.min).keys())
