"""Enumeration types for internmatch models."""

from enum import Enum


class Gender(str, Enum):
    """Self-reported gender."""

    MALE = "M"
    FEMALE = "F"
    OTHER = "O"


class IncomeBand(str, Enum):
    """Income / reservation category."""

    EWS = "EWS"
    GENERAL = "General"
    OBC = "OBC"
    SC = "SC"
    ST = "ST"


class OrgType(str, Enum):
    """Kind of organisation offering an internship."""

    GOVT_DEPT = "Govt Dept"
    PSU = "PSU"
    PRIVATE = "Private"
    NGO = "NGO"
    STARTUP = "Startup"
    RESEARCH_INSTITUTE = "Research Institute"
