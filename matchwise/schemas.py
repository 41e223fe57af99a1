"""Validated input records shared by the API and the pipelines."""
from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .pipelines.normalization import clean_string, normalize_skills

EMAIL_PATTERN = r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$"


class Urgency(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class AssignmentStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ConsultantType(str, Enum):
    NEW = "new"
    EXISTING = "existing"


class _SkillListMixin(BaseModel):
    """Shared normalizers for list-of-string fields."""

    @field_validator(
        "skills", "roles", "certifications", "languages", "values",
        "personality_traits", "industries", "required_skills", "required_values",
        mode="before", check_fields=False,
    )
    @classmethod
    def normalize_list(cls, v: Any) -> list[str]:
        return normalize_skills(v)


class ConsultantCreate(_SkillListMixin):
    """Consultant profile as created manually, by bulk import or from a CV."""
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    phone: str | None = Field(default=None, max_length=64)
    location: str | None = Field(default=None, max_length=255)
    title: str | None = Field(default=None, max_length=255)
    tagline: str | None = Field(default=None, max_length=500)

    skills: list[str] = Field(default_factory=list)
    roles: list[str] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)
    values: list[str] = Field(default_factory=list)
    personality_traits: list[str] = Field(default_factory=list)
    industries: list[str] = Field(default_factory=list)

    experience: str | None = Field(default=None, max_length=255)
    experience_years: int | None = Field(default=None, ge=0, le=70)
    rate: str | None = Field(default=None, max_length=100)
    hourly_rate: int | None = Field(default=None, ge=0)
    availability: str | None = Field(default="Available", max_length=255)
    rating: float | None = Field(default=None, ge=0, le=5)
    projects_completed: int | None = Field(default=None, ge=0)

    communication_style: str | None = Field(default=None, max_length=255)
    work_style: str | None = Field(default=None, max_length=255)
    team_fit: str | None = Field(default=None, max_length=255)
    cultural_fit: int | None = Field(default=None, ge=1, le=5)
    adaptability: int | None = Field(default=None, ge=1, le=5)
    leadership: int | None = Field(default=None, ge=1, le=5)

    linkedin_url: str | None = Field(default=None, max_length=500)
    cv_file_path: str | None = Field(default=None, max_length=500)
    self_description: str | None = None
    cv_analysis: dict[str, Any] | None = None
    linkedin_analysis: dict[str, Any] | None = None

    type: ConsultantType = ConsultantType.NEW
    is_published: bool = True

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        cleaned = clean_string(v)
        if cleaned is None:
            raise ValueError("name must not be empty")
        return cleaned


class PersonalInfo(BaseModel):
    """Identity fields supplied with a CV upload; they win over the analysis."""
    name: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, pattern=EMAIL_PATTERN, max_length=255)
    phone: str | None = Field(default=None, max_length=64)
    location: str | None = Field(default=None, max_length=255)

    @field_validator("name", "email", "phone", "location", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> str | None:
        return clean_string(v)


class AssignmentCreate(_SkillListMixin):
    """Client assignment."""
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    company: str = Field(min_length=1, max_length=255)
    required_skills: list[str] = Field(default_factory=list)

    budget: str | None = Field(default=None, max_length=100)
    duration: str | None = Field(default=None, max_length=100)
    workload: str | None = Field(default=None, max_length=100)
    location: str | None = Field(default=None, max_length=255)
    remote_type: str | None = Field(default=None, max_length=50)
    urgency: Urgency = Urgency.MEDIUM
    status: AssignmentStatus = AssignmentStatus.OPEN
    industry: str | None = Field(default=None, max_length=255)
    team_size: str | None = Field(default=None, max_length=50)
    start_date: str | None = Field(default=None, max_length=50)

    desired_communication_style: str | None = Field(default=None, max_length=255)
    team_culture: str | None = Field(default=None, max_length=255)
    team_dynamics: str | None = Field(default=None, max_length=255)
    required_values: list[str] = Field(default_factory=list)
    leadership_level: int | None = Field(default=None, ge=1, le=5)

    @field_validator("title", "description", "company")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()


class SkillAlertCreate(_SkillListMixin):
    """Subscription to consultants with any of the given skills."""
    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    skills: list[str] = Field(min_length=1)
