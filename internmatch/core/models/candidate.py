"""Internship posting models (Pydantic only)."""

from datetime import datetime

from pydantic import Field

from .base import RecordModel
from .enums import OrgType
from .geo import GeoPoint


# =============================================================================
# Pydantic Schemas
# =============================================================================


class EducationRequirement(RecordModel):
    """Education an applicant must have."""

    degrees: frozenset[str] = Field(default_factory=frozenset, description="Accepted degrees")
    branches: frozenset[str] = Field(default_factory=frozenset, description="Accepted branches")
    year_min: int = Field(1, ge=1, description="Minimum year of study")


class DiversityEligibility(RecordModel):
    """Diversity flags declared by the posting organisation."""

    women_only: bool = Field(False, description="Open to women only")
    pwd_friendly: bool = Field(False, description="Accessible to persons with disability")
    ews_priority: bool = Field(False, description="Prioritises EWS applicants")


class Candidate(RecordModel):
    """An internship opportunity a profile is ranked against."""

    id: str = Field(..., description="Posting identifier")
    title: str = Field(..., description="Posting title")
    org: str = Field(..., description="Organisation name")
    org_type: OrgType | None = Field(None, description="Organisation type")
    description: str = Field("", description="Free-text description")

    # Requirements
    skills_required: frozenset[str] = Field(default_factory=frozenset, description="Required skills")
    skills_nice_to_have: frozenset[str] = Field(
        default_factory=frozenset, description="Optional skills"
    )
    education_required: EducationRequirement = Field(
        default_factory=EducationRequirement, description="Education requirements"
    )
    language_required: frozenset[str] = Field(default_factory=frozenset, description="Language codes")

    # Terms
    location: str = Field("", description="Office location")
    is_remote: bool = Field(False, description="Remote work allowed")
    stipend: float = Field(0.0, ge=0.0, description="Monthly stipend")
    duration_months: int | None = Field(None, ge=1, le=12, description="Length in months")
    application_deadline: datetime | None = Field(None, description="Last day to apply")
    posted_at: datetime | None = Field(None, description="When the posting went live")

    diversity_eligibility: DiversityEligibility = Field(
        default_factory=DiversityEligibility, description="Diversity flags"
    )
    geo: GeoPoint | None = Field(None, description="Office location coordinates")

    # Moderation
    verified: bool = Field(False, description="Verified by a moderator")
    active: bool = Field(True, description="Accepting applications")
