"""Core SQLAlchemy models (2.x style) for consultants, assignments and matches.

Loosely typed AI analysis blobs are stored verbatim in JSON columns.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class Consultant(Base):
    """Consultant profiles."""
    __tablename__ = "consultants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    phone: Mapped[str | None] = mapped_column(String(64))
    location: Mapped[str | None] = mapped_column(String(255), index=True)
    title: Mapped[str | None] = mapped_column(String(255))
    tagline: Mapped[str | None] = mapped_column(String(500))

    skills: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    roles: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    certifications: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    languages: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    values: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    personality_traits: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    industries: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    experience: Mapped[str | None] = mapped_column(String(255))
    experience_years: Mapped[int | None] = mapped_column(Integer, index=True)
    rate: Mapped[str | None] = mapped_column(String(100))
    hourly_rate: Mapped[int | None] = mapped_column(Integer)
    availability: Mapped[str | None] = mapped_column(String(255))
    rating: Mapped[float | None] = mapped_column(Float)
    projects_completed: Mapped[int | None] = mapped_column(Integer)

    communication_style: Mapped[str | None] = mapped_column(String(255))
    work_style: Mapped[str | None] = mapped_column(String(255))
    team_fit: Mapped[str | None] = mapped_column(String(255))
    cultural_fit: Mapped[int | None] = mapped_column(Integer)
    adaptability: Mapped[int | None] = mapped_column(Integer)
    leadership: Mapped[int | None] = mapped_column(Integer)

    linkedin_url: Mapped[str | None] = mapped_column(String(500))
    cv_file_path: Mapped[str | None] = mapped_column(String(500))
    self_description: Mapped[str | None] = mapped_column(Text)
    cv_analysis: Mapped[dict | None] = mapped_column(JSON)
    linkedin_analysis: Mapped[dict | None] = mapped_column(JSON)

    type: Mapped[str] = mapped_column(String(20), default="new", nullable=False)
    visibility_status: Mapped[str] = mapped_column(String(20), default="public", nullable=False)
    is_published: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    # Relationships
    matches: Mapped[list[Match]] = relationship("Match", back_populates="consultant")

    __table_args__ = (
        Index("ix_consultants_created_at", "created_at"),
    )


class Assignment(Base):
    """Client assignments (job requisitions)."""
    __tablename__ = "assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    company: Mapped[str] = mapped_column(String(255), nullable=False)
    required_skills: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    budget: Mapped[str | None] = mapped_column(String(100))
    duration: Mapped[str | None] = mapped_column(String(100))
    workload: Mapped[str | None] = mapped_column(String(100))
    location: Mapped[str | None] = mapped_column(String(255))
    remote_type: Mapped[str | None] = mapped_column(String(50))
    urgency: Mapped[str] = mapped_column(String(20), default="Medium", nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="open", nullable=False, index=True)
    industry: Mapped[str | None] = mapped_column(String(255))
    team_size: Mapped[str | None] = mapped_column(String(50))
    start_date: Mapped[str | None] = mapped_column(String(50))

    desired_communication_style: Mapped[str | None] = mapped_column(String(255))
    team_culture: Mapped[str | None] = mapped_column(String(255))
    team_dynamics: Mapped[str | None] = mapped_column(String(255))
    required_values: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    leadership_level: Mapped[int | None] = mapped_column(Integer)

    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    # Relationships
    matches: Mapped[list[Match]] = relationship("Match", back_populates="assignment")

    __table_args__ = (
        Index("ix_assignments_created_at", "created_at"),
    )


class Match(Base):
    """Scored consultant/assignment pairs with the breakdown behind each score."""
    __tablename__ = "matches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    assignment_id: Mapped[int] = mapped_column(
        ForeignKey("assignments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    consultant_id: Mapped[int] = mapped_column(
        ForeignKey("consultants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    rank: Mapped[int] = mapped_column(Integer, nullable=False)
    match_score: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    variant: Mapped[str] = mapped_column(String(20), nullable=False)
    human_factors_score: Mapped[int | None] = mapped_column(Integer)
    matched_skills: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    matched_values: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    score_breakdown: Mapped[dict] = mapped_column(JSON, nullable=False)
    reasoning: Mapped[str | None] = mapped_column(Text)
    cover_letter: Mapped[str | None] = mapped_column(Text)
    response_time_hours: Mapped[int | None] = mapped_column(Integer)
    estimated_savings: Mapped[int | None] = mapped_column(Integer)
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    is_stale: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)

    # Relationships
    assignment: Mapped[Assignment] = relationship("Assignment", back_populates="matches")
    consultant: Mapped[Consultant] = relationship("Consultant", back_populates="matches")

    __table_args__ = (
        Index("ix_matches_assignment_rank", "assignment_id", "rank"),
        Index("ix_matches_assignment_score", "assignment_id", "match_score"),
    )


class SkillAlert(Base):
    """Subscriptions notified when a consultant with matching skills registers."""
    __tablename__ = "skill_alerts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    skills: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, nullable=False)
