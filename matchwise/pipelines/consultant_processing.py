"""Consultant registration: CV upload → AI analysis → persisted profile.

Combines local text extraction, the hosted parse-cv and analyze-linkedin
functions, the fallback skill extractor and the post-registration
notifications.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from io import BytesIO
from typing import Any

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ai.functions import FunctionInvocationError, FunctionsClient
from ai.skills import SkillExtractor
from matchwise import models
from matchwise.config import settings
from matchwise.parsers import ParseError, extract_cv_text, validate_cv_upload
from matchwise.pipelines.normalization import clean_string, normalize_skills, normalize_text
from matchwise.pipelines.notifications import NotificationReport, notify_new_consultant
from matchwise.schemas import ConsultantCreate, ConsultantType, PersonalInfo

logger = logging.getLogger(__name__)

DEFAULT_EXPERIENCE_YEARS = 5
DEFAULT_COMMUNICATION_STYLE = "Professional"
DEFAULT_SOFT_SCORE = 5
MAX_ROLES = 5

_FIRST_INT = re.compile(r"\d+")


class ConsultantProcessingError(Exception):
    """Raised when consultant registration fails."""
    pass


class ConsultantNotFoundError(Exception):
    """Raised when a consultant id does not exist."""
    pass


@dataclass
class ProcessedConsultant:
    """Result of CV registration."""
    consultant: models.Consultant
    skills_source: str  # "analysis" or "local"
    linkedin_analyzed: bool
    notifications: NotificationReport
    warnings: list[str] = field(default_factory=list)


def extract_analysis_skills(cv_analysis: dict[str, Any] | None, limit: int | None = None) -> list[str]:
    """Technical skills, programming languages and tools from a CV analysis."""
    limit = limit or settings.skills.max_skills_per_doc
    if not cv_analysis:
        return []

    skills_block = cv_analysis.get("skills")
    expertise = cv_analysis.get("technicalExpertise")
    raw: list[Any] = []
    if isinstance(skills_block, dict):
        for key in ("technical", "languages", "tools"):
            raw.extend(skills_block.get(key) or [])
    elif isinstance(skills_block, list):
        raw.extend(skills_block)
    elif isinstance(expertise, dict):
        languages = expertise.get("programmingLanguages") or {}
        if isinstance(languages, dict):
            raw.extend(languages.get("expert") or [])
            raw.extend(languages.get("proficient") or [])
        for key in ("frameworks", "tools", "databases"):
            raw.extend(expertise.get(key) or [])

    return normalize_skills([s for s in raw if isinstance(s, str)], limit=limit)


def extract_experience_years(cv_analysis: dict[str, Any] | None) -> int:
    """First integer in experience.years; defaults to 5 when absent or unparseable."""
    if not cv_analysis:
        return DEFAULT_EXPERIENCE_YEARS

    candidates = [
        (cv_analysis.get("experience") or {}).get("years"),
        (cv_analysis.get("professionalSummary") or {}).get("yearsOfExperience"),
    ]
    for value in candidates:
        if clean_string(value) is None:
            continue
        match = _FIRST_INT.search(str(value))
        if match:
            return int(match.group(0))
    return DEFAULT_EXPERIENCE_YEARS


def extract_roles(cv_analysis: dict[str, Any] | None) -> list[str]:
    if not cv_analysis:
        return ["Consultant"]
    history = cv_analysis.get("workHistory") or []
    roles = normalize_skills(
        [item.get("role") for item in history if isinstance(item, dict)],
        limit=MAX_ROLES,
    )
    if roles:
        return roles
    current = clean_string((cv_analysis.get("experience") or {}).get("currentRole"))
    return [current or "Consultant"]


def hourly_rate_for(experience_years: int) -> int:
    if experience_years >= 10:
        return 1200
    if experience_years >= 7:
        return 1100
    if experience_years >= 5:
        return 1000
    if experience_years >= 3:
        return 900
    return 800


def leadership_for(experience_years: int) -> int:
    return 4 if experience_years >= 5 else 3


def _soft_score(value: Any) -> int:
    try:
        score = int(value)
    except (TypeError, ValueError):
        return DEFAULT_SOFT_SCORE
    return score if 1 <= score <= 5 else DEFAULT_SOFT_SCORE


def build_consultant_from_analysis(
    cv_analysis: dict[str, Any],
    *,
    linkedin_analysis: dict[str, Any] | None = None,
    personal_info: PersonalInfo | None = None,
    linkedin_url: str | None = None,
    cv_file_path: str | None = None,
    self_description: str | None = None,
    tagline: str | None = None,
    is_my_consultant: bool = False,
    fallback_skills: list[str] | None = None,
) -> ConsultantCreate:
    """Map a parse-cv analysis (plus optional LinkedIn analysis) to a consultant.

    Raises:
        ConsultantProcessingError: If no usable name or e-mail is available
    """
    personal_info = personal_info or PersonalInfo()
    linkedin_analysis = linkedin_analysis or {}
    detected = cv_analysis.get("personalInfo") or {}

    name = clean_string(personal_info.name) or clean_string(detected.get("name"))
    email = clean_string(personal_info.email) or clean_string(detected.get("email"))
    if not name or not email:
        raise ConsultantProcessingError("CV analysis did not yield a name and e-mail; provide them explicitly")

    skills = extract_analysis_skills(cv_analysis) or list(fallback_skills or [])
    years = extract_experience_years(cv_analysis)
    soft = cv_analysis.get("softSkills") or {}
    team_fit = (linkedin_analysis.get("teamFitAssessment") or {}).get("workStyle")
    market = (cv_analysis.get("marketAnalysis") or {}).get("hourlyRate") or {}

    try:
        return ConsultantCreate(
            name=name,
            email=email,
            phone=clean_string(personal_info.phone) or clean_string(detected.get("phone")),
            location=clean_string(personal_info.location) or clean_string(detected.get("location")),
            title=clean_string((cv_analysis.get("experience") or {}).get("currentRole")),
            tagline=clean_string(tagline),
            skills=skills,
            roles=extract_roles(cv_analysis),
            values=soft.get("values") or [],
            personality_traits=soft.get("personalityTraits") or [],
            experience=f"{years} years",
            experience_years=years,
            hourly_rate=_positive_int(market.get("current")) or hourly_rate_for(years),
            availability="Available",
            communication_style=(
                clean_string(linkedin_analysis.get("communicationStyle"))
                or clean_string(soft.get("communicationStyle"))
                or DEFAULT_COMMUNICATION_STYLE
            ),
            work_style=clean_string(team_fit) or clean_string(soft.get("workStyle")) or "Collaborative",
            team_fit=clean_string(team_fit) or "Team player",
            cultural_fit=_soft_score(linkedin_analysis.get("culturalFit")),
            adaptability=_soft_score(linkedin_analysis.get("adaptability")),
            leadership=leadership_for(years),
            linkedin_url=clean_string(linkedin_url),
            cv_file_path=cv_file_path,
            self_description=clean_string(self_description),
            cv_analysis=cv_analysis,
            linkedin_analysis=linkedin_analysis or None,
            type=ConsultantType.EXISTING if is_my_consultant else ConsultantType.NEW,
        )
    except ValidationError as e:
        raise ConsultantProcessingError(f"Analysed profile is invalid: {e}") from e


def _positive_int(value: Any) -> int | None:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def consultant_features(consultant: models.Consultant) -> dict[str, Any]:
    """Plain feature dict consumed by the scoring functions."""
    return {
        "consultant_id": consultant.id,
        "name": consultant.name,
        "email": consultant.email,
        "location": consultant.location,
        "skills": list(consultant.skills or []),
        "values": list(consultant.values or []),
        "experience": consultant.experience,
        "experience_years": consultant.experience_years,
        "availability": consultant.availability,
        "rate": consultant.rate,
        "hourly_rate": consultant.hourly_rate,
        "rating": consultant.rating,
        "communication_style": consultant.communication_style,
        "cultural_fit": consultant.cultural_fit,
        "adaptability": consultant.adaptability,
        "leadership": consultant.leadership,
    }


async def create_consultant(session: AsyncSession, data: ConsultantCreate) -> models.Consultant:
    """Insert a consultant and commit."""
    consultant = models.Consultant(**data.model_dump(mode="json"))
    session.add(consultant)
    await session.commit()
    await session.refresh(consultant)
    logger.info(f"Created consultant {consultant.id}: {consultant.name}")
    return consultant


async def get_consultant(session: AsyncSession, consultant_id: int) -> models.Consultant:
    consultant = await session.get(models.Consultant, consultant_id)
    if consultant is None:
        raise ConsultantNotFoundError(f"Consultant {consultant_id} not found")
    return consultant


async def list_consultants(
    session: AsyncSession,
    *,
    skill: str | None = None,
    published_only: bool = False,
    limit: int = 100,
    offset: int = 0,
) -> list[models.Consultant]:
    """Newest first. The skill filter is a case-insensitive substring match."""
    query = select(models.Consultant).order_by(models.Consultant.created_at.desc(), models.Consultant.id.desc())
    if published_only:
        query = query.where(models.Consultant.is_published.is_(True))
    result = await session.execute(query)
    consultants = list(result.scalars().all())

    if skill:
        needle = skill.strip().lower()
        consultants = [
            c for c in consultants
            if any(needle in s.lower() for s in (c.skills or []))
        ]
    return consultants[offset:offset + limit]


async def register_consultant_from_cv(
    session: AsyncSession,
    functions: FunctionsClient,
    *,
    content: bytes,
    filename: str,
    content_type: str | None = None,
    linkedin_url: str | None = None,
    personal_description: str | None = None,
    personal_tagline: str | None = None,
    personal_info: PersonalInfo | None = None,
    is_my_consultant: bool = False,
) -> ProcessedConsultant:
    """Register a consultant from an uploaded CV.

    Steps:
    1. Validate the upload (type, size)
    2. Extract text locally for the fallback skill extractor
    3. Analyse the CV with parse-cv
    4. Analyse LinkedIn if a URL was given (non-critical)
    5. Build and persist the consultant
    6. Send welcome/admin e-mails and skill alerts (non-critical)

    Raises:
        ParseError: If the upload is rejected
        FunctionInvocationError: If parse-cv fails
        ConsultantProcessingError: If the profile cannot be built or saved
    """
    validate_cv_upload(filename, len(content))
    logger.info(f"Processing CV upload: {filename} ({len(content)} bytes)")
    warnings: list[str] = []

    parsed = extract_cv_text(BytesIO(content), filename)
    cv_text = normalize_text(parsed.text)

    result = await functions.parse_cv(
        content,
        filename,
        content_type=content_type,
        linkedin_url=linkedin_url or "",
        personal_description=personal_description or "",
        personal_tagline=personal_tagline or "",
    )
    analysis = result.analysis

    linkedin_analysis: dict[str, Any] | None = None
    if clean_string(linkedin_url):
        try:
            linkedin_analysis = await functions.analyze_linkedin(linkedin_url)
        except FunctionInvocationError as e:
            logger.warning(f"LinkedIn analysis failed, continuing without it: {e}")
            warnings.append("LinkedIn analysis unavailable")

    skills_source = "analysis"
    fallback_skills: list[str] = []
    if not extract_analysis_skills(analysis):
        skills_source = "local"
        fallback_skills = [s.canonical_skill for s in SkillExtractor().extract(cv_text)]
        logger.info(f"Analysis returned no skills; extracted {len(fallback_skills)} locally")

    data = build_consultant_from_analysis(
        analysis,
        linkedin_analysis=linkedin_analysis,
        personal_info=personal_info,
        linkedin_url=linkedin_url,
        cv_file_path=filename,
        self_description=personal_description,
        tagline=personal_tagline,
        is_my_consultant=is_my_consultant,
        fallback_skills=fallback_skills,
    )

    try:
        consultant = await create_consultant(session, data)
    except Exception as e:
        logger.error(f"Saving consultant failed: {e}", exc_info=True)
        await session.rollback()
        raise ConsultantProcessingError(f"Failed to save consultant: {e}") from e

    report = await notify_new_consultant(
        session,
        functions,
        consultant,
        is_my_consultant=is_my_consultant,
    )

    return ProcessedConsultant(
        consultant=consultant,
        skills_source=skills_source,
        linkedin_analyzed=linkedin_analysis is not None,
        notifications=report,
        warnings=warnings,
    )


__all__ = [
    "ConsultantNotFoundError",
    "ConsultantProcessingError",
    "ParseError",
    "PersonalInfo",
    "ProcessedConsultant",
    "build_consultant_from_analysis",
    "consultant_features",
    "create_consultant",
    "get_consultant",
    "list_consultants",
    "register_consultant_from_cv",
]
