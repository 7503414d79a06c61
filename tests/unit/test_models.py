"""Tests for the profile, candidate and output models."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from internmatch.core.models import (
    Candidate,
    EvaluationResult,
    Explain,
    GeoPoint,
    Profile,
    RuleFailure,
)
from internmatch.core.models.base import ensure_utc, parse_datetime


def test_geo_point_accepts_geojson_and_pairs():
    assert GeoPoint.model_validate({"type": "Point", "coordinates": [77.2, 28.6]}) == GeoPoint(
        lon=77.2, lat=28.6
    )
    assert GeoPoint.model_validate([72.87, 19.07]).lat == 19.07


@pytest.mark.parametrize(
    "data",
    [
        {"lon": 0, "lat": 91},
        {"lon": -181, "lat": 0},
        {"type": "Point", "coordinates": [1, 2, 3]},
        {"lon": 0},
    ],
)
def test_geo_point_rejects_invalid_coordinates(data):
    with pytest.raises(ValidationError):
        GeoPoint.model_validate(data)


def test_profile_defaults():
    profile = Profile(id="u1")

    assert profile.education is None
    assert profile.skills == frozenset()
    assert profile.preferences.min_stipend == 0
    assert profile.constraints.disability is False
    assert profile.constraints.gender is None


def test_profile_set_fields_become_frozensets(make_profile):
    profile = make_profile(skills=["Java", "SQL", "Java"])

    assert profile.skills == frozenset({"Java", "SQL"})
    assert isinstance(profile.preferences.roles, frozenset)


def test_enum_fields_store_plain_values(make_profile):
    profile = make_profile(constraints={"gender": "F", "income_band": "EWS"})

    assert profile.constraints.gender == "F"
    assert profile.constraints.income_band == "EWS"


def test_unknown_enum_value_rejected(make_profile):
    with pytest.raises(ValidationError):
        make_profile(constraints={"gender": "X"})


def test_education_year_is_bounded(make_profile):
    with pytest.raises(ValidationError):
        make_profile(education={"year": 0})
    with pytest.raises(ValidationError):
        make_profile(education={"cgpa": 11})


def test_records_are_frozen(make_profile, make_candidate):
    profile = make_profile()
    candidate = make_candidate()

    with pytest.raises(ValidationError):
        profile.skills = frozenset()
    with pytest.raises(ValidationError):
        candidate.education_required.year_min = 1


def test_candidate_datetimes_are_utc(make_candidate):
    candidate = make_candidate(
        application_deadline="2025-10-01T00:00:00",
        posted_at="2025-08-30T10:00:00Z",
    )

    assert candidate.application_deadline == datetime(2025, 10, 1, tzinfo=timezone.utc)
    assert candidate.posted_at.tzinfo == timezone.utc


def test_candidate_offset_datetime_is_converted(make_candidate):
    candidate = make_candidate(posted_at="2025-08-30T15:30:00+05:30")

    assert candidate.posted_at == datetime(2025, 8, 30, 10, 0, tzinfo=timezone.utc)
    assert candidate.posted_at.utcoffset() == timedelta(0)


def test_candidate_defaults():
    candidate = Candidate(id="i1", title="Intern", org="Org")

    assert candidate.verified is False
    assert candidate.active is True
    assert candidate.education_required.year_min == 1
    assert candidate.diversity_eligibility.women_only is False
    assert candidate.application_deadline is None


def test_candidate_duration_bounds(make_candidate):
    with pytest.raises(ValidationError):
        make_candidate(duration_months=13)
    with pytest.raises(ValidationError):
        make_candidate(stipend=-1)


def test_ensure_utc():
    naive = datetime(2025, 1, 1, 12)
    ist = timezone(timedelta(hours=5, minutes=30))

    assert ensure_utc(naive).tzinfo == timezone.utc
    assert ensure_utc(datetime(2025, 1, 1, 12, tzinfo=ist)).hour == 6


@pytest.mark.parametrize(
    "value,expected",
    [
        ("2025-01-02T03:04:05Z", datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)),
        ("2025-01-02", datetime(2025, 1, 2, tzinfo=timezone.utc)),
        (datetime(2025, 1, 2), datetime(2025, 1, 2, tzinfo=timezone.utc)),
        ("", None),
        ("yesterday", None),
        (None, None),
        (12345, None),
    ],
)
def test_parse_datetime(value, expected):
    assert parse_datetime(value) == expected


def test_evaluation_result_serializes():
    result = EvaluationResult(
        eligible=False,
        failures=[RuleFailure(rule_id="year_min", reason="Minimum year not met")],
    )

    data = result.model_dump()

    assert data["failures"] == [{"rule_id": "year_min", "reason": "Minimum year not met", "error": None}]
    assert data["score"] is None
    assert data["explain"] is None


def test_explain_rejects_negative_boost():
    with pytest.raises(ValidationError):
        Explain(fairness_boost=-0.1)
