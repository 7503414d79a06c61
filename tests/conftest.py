"""Shared fixtures: a reference clock, record factories and a small rule set."""

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from internmatch.core.models.candidate import Candidate
from internmatch.core.models.profile import Profile
from internmatch.core.rules.loader import parse_rules

NOW = datetime(2025, 9, 1, 12, 0, tzinfo=timezone.utc)

BENGALURU = {"lon": 77.5946, "lat": 12.9716}


def _merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    result = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _merge(result[key], value)
        else:
            result[key] = value
    return result


PROFILE_DATA: dict[str, Any] = {
    "id": "u_asha",
    "name": "Asha Patel",
    "education": {"degree": "B.Tech", "branch": "CSE", "year": 3, "cgpa": 8.1},
    "skills": ["Java", "SQL", "Excel"],
    "preferences": {
        "roles": ["Software", "Data"],
        "locations": ["Bengaluru", "Remote"],
        "min_stipend": 5000,
        "org_types": ["Private", "Startup"],
    },
    "constraints": {"disability": False, "gender": "M", "income_band": "General"},
    "geo": BENGALURU,
}

CANDIDATE_DATA: dict[str, Any] = {
    "id": "i_backend",
    "title": "Software Development Intern",
    "org": "Acme Labs",
    "org_type": "Private",
    "description": "Build Java services backed by SQL databases.",
    "skills_required": ["java", "sql"],
    "skills_nice_to_have": ["docker"],
    "education_required": {"degrees": ["B.Tech", "B.Sc"], "branches": ["CSE", "IT"], "year_min": 2},
    "location": "Bengaluru",
    "is_remote": False,
    "stipend": 10000,
    "duration_months": 3,
    "application_deadline": (NOW + timedelta(days=30)).isoformat(),
    "posted_at": (NOW - timedelta(days=3)).isoformat(),
    "geo": BENGALURU,
    "verified": True,
    "active": True,
}

RULES_DOCUMENT: dict[str, Any] = {
    "hard_rules": [
        {
            "id": "degree_match",
            "check": "profile.education.degree in candidate.education_required.degrees",
            "fail_reason": "Degree not accepted",
        },
        {
            "id": "year_min",
            "check": "profile.education.year >= candidate.education_required.year_min",
            "fail_reason": "Minimum year not met",
        },
        {
            "id": "required_skills",
            "check": "subset_of(candidate.skills_required, normalize_skills(profile.skills))",
            "fail_reason": "Missing required skills",
        },
        {
            "id": "women_only",
            "when": "candidate.diversity_eligibility.women_only",
            "check": "profile.constraints.gender == 'F'",
            "fail_reason": "Reserved for women",
        },
    ],
    "soft_rules": [
        {
            "id": "role_match",
            "score": "keyword_match(profile.preferences.roles, candidate.title, candidate.description)",
            "weight": 0.5,
        },
        {
            "id": "location_match",
            "score": "1 if candidate.is_remote or candidate.location in profile.preferences.locations else 0",
            "weight": 0.3,
        },
    ],
    "fairness": {
        "diversity_boost": {"women": 0.1, "pwd": 0.1, "ews": 0.1},
        "cap_per_session": 0.2,
    },
    "tie_breakers": ["recency_decay(candidate.posted_at)"],
}


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_profile():
    def _make(**overrides: Any) -> Profile:
        return Profile.model_validate(_merge(PROFILE_DATA, overrides))

    return _make


@pytest.fixture
def make_candidate():
    def _make(**overrides: Any) -> Candidate:
        return Candidate.model_validate(_merge(CANDIDATE_DATA, overrides))

    return _make


@pytest.fixture
def rules_document() -> dict[str, Any]:
    return _merge(RULES_DOCUMENT, {})


@pytest.fixture
def rule_set(rules_document):
    return parse_rules(rules_document)


@pytest.fixture
def profile_data() -> dict[str, Any]:
    return _merge(PROFILE_DATA, {})


@pytest.fixture
def candidate_data() -> dict[str, Any]:
    return _merge(CANDIDATE_DATA, {})
