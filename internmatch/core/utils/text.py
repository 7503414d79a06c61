"""Text and geo helpers shared by the rule engine.

All functions here are pure: same input, same output, no I/O.
"""

from __future__ import annotations

import math
from typing import Any, Iterable

EARTH_RADIUS_KM = 6371.0

# canonical skill -> alternate spellings that imply it
SKILL_ALIASES: dict[str, tuple[str, ...]] = {
    "ms excel": ("excel", "spreadsheets"),
    "javascript": ("js",),
    "c++": ("cpp", "c plus plus"),
    "python": ("py",),
}


def normalize_skills(skills: Iterable[Any] | None) -> frozenset[str]:
    """Lower-case and trim skills, then fold in canonical alias names.

    Example:
        >>> sorted(normalize_skills([" JS ", "SQL"]))
        ['javascript', 'js', 'sql']
    """
    found = {str(s).strip().lower() for s in (skills or ()) if s is not None}
    found.discard("")
    for canonical, alternates in SKILL_ALIASES.items():
        if any(alt in found for alt in alternates):
            found.add(canonical)
    return frozenset(found)


def jaccard_similarity(a: Iterable[Any] | None, b: Iterable[Any] | None) -> float:
    """Intersection over union of two collections; 0.0 when both are empty."""
    set_a = set(a or ())
    set_b = set(b or ())
    union = len(set_a | set_b)
    if union == 0:
        return 0.0
    return len(set_a & set_b) / union


def keyword_match(
    role_terms: Iterable[Any] | None, title: str | None, description: str | None
) -> int:
    """1 if any role term occurs (case-insensitively) in title or description, else 0."""
    haystack = f"{title or ''} {description or ''}".lower()
    for term in role_terms or ():
        needle = str(term or "").strip().lower()
        if needle and needle in haystack:
            return 1
    return 0


def _coordinates(point: Any) -> tuple[float, float] | None:
    if point is None:
        return None
    if isinstance(point, dict):
        if "coordinates" in point:
            lon, lat = point["coordinates"]
            return float(lon), float(lat)
        if "lon" in point and "lat" in point:
            return float(point["lon"]), float(point["lat"])
        return None
    lon = getattr(point, "lon", None)
    lat = getattr(point, "lat", None)
    if lon is None or lat is None:
        return None
    return float(lon), float(lat)


def haversine_distance_km(a: Any, b: Any) -> float:
    """Great-circle distance in kilometres.

    Points may be GeoPoint records, ``{"lon", "lat"}`` mappings or GeoJSON
    points. Returns ``math.inf`` when either point is missing so distance
    rules fail or rank last instead of erroring.
    """
    first = _coordinates(a)
    second = _coordinates(b)
    if first is None or second is None:
        return math.inf

    lon1, lat1 = first
    lon2, lat2 = second
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
