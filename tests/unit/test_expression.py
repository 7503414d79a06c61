"""Tests for the sandboxed rule expression language."""

from datetime import timedelta

import pytest

from internmatch.core.errors import ExpressionError, ProfileIncompleteError
from internmatch.core.rules.expression import compile_expression, to_bool, to_number
from internmatch.core.rules.helpers import build_helpers, recency_decay, subset_of


def _eval(source, now, **bindings):
    return compile_expression(source).evaluate(bindings, build_helpers(now))


def test_field_access_and_membership(make_profile, make_candidate, now):
    profile = make_profile()
    candidate = make_candidate()

    assert _eval(
        "profile.education.degree in candidate.education_required.degrees",
        now,
        profile=profile,
        candidate=candidate,
    ) is True
    assert _eval("candidate.stipend / 1000", now, candidate=candidate) == 10.0


def test_boolean_operators_and_conditional(make_candidate, now):
    candidate = make_candidate(is_remote=True, stipend=0)

    assert _eval("candidate.is_remote and candidate.stipend == 0", now, candidate=candidate) is True
    assert _eval("not candidate.is_remote or candidate.stipend > 5", now, candidate=candidate) is False
    assert _eval("'remote' if candidate.is_remote else 'onsite'", now, candidate=candidate) == "remote"
    assert _eval("0 < candidate.stipend + 1 <= 1", now, candidate=candidate) is True


def test_literal_collections_are_immutable(make_candidate, now):
    candidate = make_candidate()

    assert _eval("candidate.location in ['Pune', 'Bengaluru']", now, candidate=candidate) is True
    assert _eval("{'a', 'b'}", now) == frozenset({"a", "b"})
    assert _eval("[1, 2]", now) == (1, 2)


def test_helpers_are_callable(make_profile, make_candidate, now):
    profile = make_profile(skills=["JS", "Python"])
    candidate = make_candidate(skills_required=["javascript"])

    assert _eval(
        "subset_of(candidate.skills_required, normalize_skills(profile.skills))",
        now,
        profile=profile,
        candidate=candidate,
    ) is True
    assert _eval("distance_km(profile.geo, candidate.geo)", now, profile=profile, candidate=candidate) == 0.0
    assert _eval("array_includes(profile.preferences.roles, 'Data')", now, profile=profile) is True
    assert _eval("any_overlap(profile.preferences.locations, ['Remote'])", now, profile=profile) is True
    assert _eval("now()", now) == now


def test_jaccard_helper_lowercases_both_sides(now):
    assert _eval("jaccard_similarity(['Java', 'SQL'], ['java', 'sql'])", now) == 1.0


def test_recency_decay_tiers(now):
    assert recency_decay(now - timedelta(days=7), now) == 1.0
    assert recency_decay(now - timedelta(days=8), now) == 0.7
    assert recency_decay(now - timedelta(days=30), now) == 0.7
    assert recency_decay(now - timedelta(days=90), now) == 0.4
    assert recency_decay(now - timedelta(days=91), now) == 0.1
    assert recency_decay(None, now) == 0.0
    assert recency_decay("not a date", now) == 0.0


def test_recency_decay_accepts_iso_strings(now):
    posted = (now - timedelta(days=2)).isoformat().replace("+00:00", "Z")
    assert _eval(f"recency_decay('{posted}')", now) == 1.0


def test_subset_of_is_case_insensitive():
    assert subset_of(["Java", "SQL"], {"java", "sql", "excel"})
    assert not subset_of(["java", "docker"], {"java"})
    assert subset_of([], None)


@pytest.mark.parametrize(
    "source",
    [
        "profile.education.degree ==",
        "",
        "   ",
        "lambda: 1",
        "[s for s in profile.skills]",
        "profile.__class__",
        "__import__('os')",
        "open('/etc/passwd')",
        "profile.skills.copy()",
        "subset_of",
        "keyword_match(roles=profile.preferences.roles)",
        "f'{profile.name}'",
        "(x := 1)",
        "b'bytes'",
        "candidate.skills_required[0:1]",
    ],
)
def test_rejected_at_compile_time(source):
    with pytest.raises(ExpressionError):
        compile_expression(source)


def test_overlong_expression_rejected():
    with pytest.raises(ExpressionError, match="longer than"):
        compile_expression(" + ".join(["1"] * 1500))


def test_unknown_field_raises(make_profile, now):
    with pytest.raises(ExpressionError, match="unknown field 'salary'"):
        _eval("profile.salary > 0", now, profile=make_profile())


def test_missing_section_raises_profile_incomplete(make_profile, now):
    profile = make_profile(education=None)

    with pytest.raises(ProfileIncompleteError) as excinfo:
        _eval("profile.education.degree == 'B.Tech'", now, profile=profile)
    assert "profile.education" in excinfo.value.message


def test_unbound_record_raises(make_candidate, now):
    with pytest.raises(ExpressionError, match="not bound"):
        _eval("profile.skills", now, candidate=make_candidate())


def test_runtime_errors_become_expression_errors(make_profile, make_candidate, now):
    profile = make_profile()
    candidate = make_candidate()

    with pytest.raises(ExpressionError):
        _eval("candidate.stipend / 0", now, candidate=candidate)
    with pytest.raises(ExpressionError):
        _eval("profile.name + 1", now, profile=profile)
    with pytest.raises(ExpressionError, match="only applies to numbers"):
        _eval("'a' * 1000000", now)


@pytest.mark.parametrize(
    "source",
    ["'%0*d' % (50000000, 1)", "'%s-%s' % ('a', 'b')", "candidate.title % 1"],
)
def test_string_formatting_is_rejected(make_candidate, now, source):
    with pytest.raises(ExpressionError, match="'%' only applies to numbers"):
        _eval(source, now, candidate=make_candidate())


def test_modulo_on_numbers(make_candidate, now):
    assert _eval("candidate.stipend % 3000", now, candidate=make_candidate(stipend=10000)) == 1000.0


def test_error_carries_source():
    with pytest.raises(ExpressionError) as excinfo:
        compile_expression("profile.education.degree ==")
    assert excinfo.value.expression == "profile.education.degree =="
    assert excinfo.value.rule_id is None


def test_compiled_expressions_are_cached():
    assert compile_expression("1 + 1") is compile_expression("1 + 1")


def test_evaluation_is_repeatable(make_profile, make_candidate, now):
    profile = make_profile()
    candidate = make_candidate()
    source = "jaccard_similarity(candidate.skills_required, profile.skills) + recency_decay(candidate.posted_at)"

    first = _eval(source, now, profile=profile, candidate=candidate)
    second = _eval(source, now, profile=profile, candidate=candidate)
    assert first == second


@pytest.mark.parametrize(
    "value,expected",
    [
        (True, 1.0),
        (False, 0.0),
        (3, 3.0),
        (0.25, 0.25),
        ("2.5", 2.5),
        ("abc", 0.0),
        (None, 0.0),
        (float("nan"), 0.0),
        (float("inf"), 0.0),
        ([1], 0.0),
    ],
)
def test_to_number(value, expected):
    assert to_number(value) == expected


def test_to_bool():
    assert to_bool(1) is True
    assert to_bool("") is False
    assert to_bool(frozenset()) is False
    assert to_bool(None) is False
