"""Student profile models (Pydantic only)."""

from pydantic import Field

from .base import RecordModel
from .enums import Gender, IncomeBand
from .geo import GeoPoint


# =============================================================================
# Pydantic Schemas
# =============================================================================


class Education(RecordModel):
    """Current course of study."""

    degree: str | None = Field(None, description="Degree, e.g. 'B.Tech'")
    branch: str | None = Field(None, description="Branch or major, e.g. 'CSE'")
    year: int | None = Field(None, ge=1, le=5, description="Year of study")
    cgpa: float | None = Field(None, ge=0.0, le=10.0, description="Cumulative GPA on a 10 point scale")


class Preferences(RecordModel):
    """What the student is looking for."""

    roles: frozenset[str] = Field(default_factory=frozenset, description="Preferred role families")
    locations: frozenset[str] = Field(default_factory=frozenset, description="Preferred locations")
    min_stipend: float = Field(0.0, ge=0.0, description="Minimum acceptable monthly stipend")
    org_types: frozenset[str] = Field(default_factory=frozenset, description="Preferred org types")


class Constraints(RecordModel):
    """Equity-relevant attributes used by fairness boosts."""

    disability: bool = Field(False, description="Person with disability")
    gender: Gender | None = Field(None, description="Gender (M, F, O)")
    income_band: IncomeBand | None = Field(None, description="Income / reservation category")


class Profile(RecordModel):
    """A student being matched against internships."""

    id: str = Field(..., description="Profile identifier")
    name: str | None = Field(None, description="Display name")

    education: Education | None = Field(None, description="Current education")
    skills: frozenset[str] = Field(default_factory=frozenset, description="Self-declared skills")
    certifications: frozenset[str] = Field(default_factory=frozenset, description="Certifications")

    preferences: Preferences = Field(default_factory=Preferences, description="Matching preferences")
    constraints: Constraints = Field(default_factory=Constraints, description="Fairness attributes")

    language_pref: frozenset[str] = Field(default_factory=frozenset, description="Language codes")
    geo: GeoPoint | None = Field(None, description="Home location")
