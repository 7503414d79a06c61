"""internmatch data models for profiles, internships, rules and results."""

from .base import MatchBaseModel, RecordModel, ensure_utc, parse_datetime, utc_now
from .candidate import Candidate, DiversityEligibility, EducationRequirement
from .enums import Gender, IncomeBand, OrgType
from .evaluation import EvaluationResult, Explain, RankedMatch, RuleFailure
from .geo import GeoPoint
from .profile import Constraints, Education, Preferences, Profile
from .rules import DiversityBoost, FairnessConfig, HardRule, RuleSet, SoftRule

__all__ = [
    # Base
    "MatchBaseModel",
    "RecordModel",
    "ensure_utc",
    "parse_datetime",
    "utc_now",
    # Enums
    "Gender",
    "IncomeBand",
    "OrgType",
    # Records
    "GeoPoint",
    "Profile",
    "Education",
    "Preferences",
    "Constraints",
    "Candidate",
    "EducationRequirement",
    "DiversityEligibility",
    # Rules
    "RuleSet",
    "HardRule",
    "SoftRule",
    "FairnessConfig",
    "DiversityBoost",
    # Results
    "EvaluationResult",
    "Explain",
    "RuleFailure",
    "RankedMatch",
]
