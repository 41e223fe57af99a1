"""Match scoring heuristic for consultants against assignments.

A weighted sum of independent components (skills, experience, availability,
location and, in the enhanced variant, cultural fit, communication style and
adaptability). Every component records a trace so stored matches carry the
reasoning behind their score.

All functions here are pure and operate on plain feature dicts. Both
snake_case and camelCase keys are accepted for the fields that the hosted
frontend historically sent in either form.
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping

from .config import ScoringVariant

logger = logging.getLogger(__name__)

MIN_SCORE = 0
MAX_SCORE = 100
SOFT_SCALE_MAX = 5
DEFAULT_MARKET_RATE = 1200
DEFAULT_CONSULTANT_RATE = 800

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class ComponentId(str, Enum):
    """Score components."""
    BASE = "base"
    SKILLS = "skills"
    EXPERIENCE = "experience"
    AVAILABILITY = "availability"
    LOCATION = "location"
    CULTURAL_FIT = "cultural_fit"
    COMMUNICATION = "communication"
    ADAPTABILITY = "adaptability"


@dataclass(frozen=True)
class ScoringWeights:
    """Point budget per component. A zero budget disables the component."""
    base: float
    skills: float
    experience: float
    availability: float
    location: float
    cultural_fit: float = 0.0
    communication: float = 0.0
    adaptability: float = 0.0


STANDARD_WEIGHTS = ScoringWeights(
    base=50.0,
    skills=30.0,
    experience=10.0,
    availability=5.0,
    location=5.0,
)

ENHANCED_WEIGHTS = ScoringWeights(
    base=20.0,
    skills=30.0,
    experience=10.0,
    availability=5.0,
    location=5.0,
    cultural_fit=10.0,
    communication=10.0,
    adaptability=10.0,
)


@dataclass
class ScoreComponent:
    """Audit trace for a single score component."""
    id: ComponentId
    name: str
    points: float
    max_points: float
    reason: str
    evidence: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["id"] = self.id.value
        return data


@dataclass
class ScoreResult:
    """Final score plus the components that produced it."""
    score: int
    variant: ScoringVariant
    components: list[ScoreComponent]
    matched_skills: list[str]

    @property
    def raw_total(self) -> float:
        """Sum of component points before rounding and clamping."""
        return sum(c.points for c in self.components)

    def breakdown(self) -> dict[str, Any]:
        return {
            "variant": self.variant.value,
            "raw_total": round(self.raw_total, 2),
            "components": [c.to_dict() for c in self.components],
        }


def _field(record: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return default


def _string_list(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value if v is not None]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _contains_either_way(a: str, b: str) -> bool:
    a, b = a.strip().lower(), b.strip().lower()
    if not a or not b:
        return False
    return a in b or b in a


def consultant_skills(consultant: Mapping[str, Any]) -> list[str]:
    return _string_list(consultant.get("skills"))


def required_skills(assignment: Mapping[str, Any]) -> list[str]:
    return _string_list(_field(assignment, "required_skills", "requiredSkills"))


def parse_experience_years(value: Any, fallback: Any = 0) -> int:
    """Parse years of experience from free text.

    Takes the leading integer ("7 years" -> 7, "12+" -> 12). Anything else,
    including a zero, falls back to ``fallback``; a malformed fallback is 0.
    Negative values are treated as 0.
    """
    years = _leading_int(value)
    if not years:
        years = _leading_int(fallback) or 0
    return max(0, years)


def _leading_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def find_matched_skills(skills: Iterable[str], required: Iterable[str]) -> list[str]:
    """Skills that case-insensitively contain, or are contained in, a required skill."""
    required = [r for r in required if r and r.strip()]
    return [
        skill
        for skill in skills
        if any(_contains_either_way(skill, req) for req in required)
    ]


def matched_skills(consultant: Mapping[str, Any], assignment: Mapping[str, Any]) -> list[str]:
    return find_matched_skills(consultant_skills(consultant), required_skills(assignment))


def matched_values(consultant: Mapping[str, Any], assignment: Mapping[str, Any]) -> list[str]:
    """Required values the consultant shares (substring match either way)."""
    wanted = _string_list(_field(assignment, "required_values", "requiredValues"))
    held = _string_list(consultant.get("values"))
    return [v for v in wanted if any(_contains_either_way(v, h) for h in held)]


def is_available(consultant: Mapping[str, Any]) -> bool:
    return "available" in str(consultant.get("availability") or "").lower()


def is_remote(assignment: Mapping[str, Any]) -> bool:
    remote = _field(assignment, "remote_type", "remote")
    if isinstance(remote, bool):
        return remote
    return "remote" in str(remote or "").lower()


class MatchScorer:
    """Weighted-sum scorer with per-component traces."""

    def __init__(
        self,
        weights: ScoringWeights = STANDARD_WEIGHTS,
        variant: ScoringVariant = ScoringVariant.STANDARD,
    ) -> None:
        self.weights = weights
        self.variant = variant

    @classmethod
    def for_variant(cls, variant: ScoringVariant | str) -> MatchScorer:
        variant = ScoringVariant(variant)
        if variant == ScoringVariant.ENHANCED:
            return cls(ENHANCED_WEIGHTS, variant)
        return cls(STANDARD_WEIGHTS, variant)

    def evaluate(
        self,
        consultant: Mapping[str, Any],
        assignment: Mapping[str, Any],
    ) -> ScoreResult:
        matched = matched_skills(consultant, assignment)
        components = [
            ScoreComponent(
                id=ComponentId.BASE,
                name="Base score",
                points=self.weights.base,
                max_points=self.weights.base,
                reason="Every consultant starts from the base score",
            ),
            self._skills(consultant, assignment, matched),
            self._experience(consultant),
            self._availability(consultant),
            self._location(consultant, assignment),
        ]
        if self.weights.cultural_fit:
            components.append(
                self._soft_scale(
                    ComponentId.CULTURAL_FIT,
                    "Cultural fit",
                    _field(consultant, "cultural_fit", "culturalFit"),
                    self.weights.cultural_fit,
                )
            )
        if self.weights.communication:
            components.append(self._communication(consultant, assignment))
        if self.weights.adaptability:
            components.append(
                self._soft_scale(
                    ComponentId.ADAPTABILITY,
                    "Adaptability",
                    consultant.get("adaptability"),
                    self.weights.adaptability,
                )
            )

        raw = sum(c.points for c in components)
        final = int(_clamp(_round_half_up(raw), MIN_SCORE, MAX_SCORE))
        return ScoreResult(
            score=final,
            variant=self.variant,
            components=components,
            matched_skills=matched,
        )

    def _skills(
        self,
        consultant: Mapping[str, Any],
        assignment: Mapping[str, Any],
        matched: list[str],
    ) -> ScoreComponent:
        required = required_skills(assignment)
        if not required:
            return ScoreComponent(
                id=ComponentId.SKILLS,
                name="Skill overlap",
                points=0.0,
                max_points=self.weights.skills,
                reason="Assignment lists no required skills",
            )
        points = min(self.weights.skills, len(matched) / len(required) * self.weights.skills)
        return ScoreComponent(
            id=ComponentId.SKILLS,
            name="Skill overlap",
            points=points,
            max_points=self.weights.skills,
            reason=f"{len(matched)} consultant skills match {len(required)} required skills",
            evidence=list(matched),
        )

    def _experience(self, consultant: Mapping[str, Any]) -> ScoreComponent:
        years = parse_experience_years(
            consultant.get("experience"),
            _field(consultant, "experience_years", "experienceYears"),
        )
        points = float(min(self.weights.experience, years))
        return ScoreComponent(
            id=ComponentId.EXPERIENCE,
            name="Experience",
            points=points,
            max_points=self.weights.experience,
            reason=f"{years} years of experience",
        )

    def _availability(self, consultant: Mapping[str, Any]) -> ScoreComponent:
        availability = str(consultant.get("availability") or "")
        available = is_available(consultant)
        return ScoreComponent(
            id=ComponentId.AVAILABILITY,
            name="Availability",
            points=self.weights.availability if available else 0.0,
            max_points=self.weights.availability,
            reason=f"Availability: {availability or 'unknown'}",
        )

    def _location(self, consultant: Mapping[str, Any], assignment: Mapping[str, Any]) -> ScoreComponent:
        here = str(consultant.get("location") or "").strip().lower()
        there = str(assignment.get("location") or "").strip().lower()
        if is_remote(assignment):
            hit, reason = True, "Assignment allows remote work"
        elif here and here == there:
            hit, reason = True, f"Same location: {consultant.get('location')}"
        else:
            hit, reason = False, "Location does not match"
        return ScoreComponent(
            id=ComponentId.LOCATION,
            name="Location",
            points=self.weights.location if hit else 0.0,
            max_points=self.weights.location,
            reason=reason,
        )

    def _communication(self, consultant: Mapping[str, Any], assignment: Mapping[str, Any]) -> ScoreComponent:
        desired = str(_field(assignment, "desired_communication_style", "desiredCommunicationStyle", default=""))
        style = str(_field(consultant, "communication_style", "communicationStyle", default=""))
        hit = _contains_either_way(desired, style)
        return ScoreComponent(
            id=ComponentId.COMMUNICATION,
            name="Communication style",
            points=self.weights.communication if hit else 0.0,
            max_points=self.weights.communication,
            reason=(
                f"'{style}' matches desired '{desired}'"
                if hit
                else "No communication style match"
            ),
        )

    @staticmethod
    def _soft_scale(component_id: ComponentId, name: str, value: Any, budget: float) -> ScoreComponent:
        try:
            rating = _clamp(float(value), 0, SOFT_SCALE_MAX) if value is not None else None
        except (TypeError, ValueError):
            rating = None
        if rating is None:
            return ScoreComponent(
                id=component_id,
                name=name,
                points=0.0,
                max_points=budget,
                reason=f"No {name.lower()} rating",
            )
        return ScoreComponent(
            id=component_id,
            name=name,
            points=rating / SOFT_SCALE_MAX * budget,
            max_points=budget,
            reason=f"{name} rated {rating:g}/{SOFT_SCALE_MAX}",
        )


def score(consultant: Mapping[str, Any], assignment: Mapping[str, Any]) -> int:
    """Standard 0-100 match score."""
    return MatchScorer.for_variant(ScoringVariant.STANDARD).evaluate(consultant, assignment).score


def enhanced_score(consultant: Mapping[str, Any], assignment: Mapping[str, Any]) -> int:
    """0-100 match score including cultural fit, communication and adaptability."""
    return MatchScorer.for_variant(ScoringVariant.ENHANCED).evaluate(consultant, assignment).score


def score_breakdown(
    consultant: Mapping[str, Any],
    assignment: Mapping[str, Any],
    variant: ScoringVariant | str = ScoringVariant.STANDARD,
) -> ScoreResult:
    return MatchScorer.for_variant(variant).evaluate(consultant, assignment)


def human_factors_score(consultant: Mapping[str, Any]) -> int:
    """Mean of cultural fit, adaptability and leadership (1-5 each) scaled to 100."""
    cultural = _field(consultant, "cultural_fit", "culturalFit") or 4
    adaptability = consultant.get("adaptability") or 4
    leadership = consultant.get("leadership") or 3
    return _round_half_up((cultural + adaptability + leadership) / 3 * 20)


def estimate_response_time_hours(consultant: Mapping[str, Any]) -> int:
    availability = str(consultant.get("availability") or "").lower()
    if "available" in availability:
        return 24
    if "busy" in availability:
        return 72
    if "from" in availability:
        return 14 * 24
    return 48


def estimate_savings(consultant: Mapping[str, Any], market_rate: int = DEFAULT_MARKET_RATE) -> int:
    """Hourly saving against the market rate; zero for premium consultants."""
    rate = consultant.get("hourly_rate") or _leading_int(consultant.get("rate")) or DEFAULT_CONSULTANT_RATE
    return max(0, market_rate - int(rate))


def match_reasoning(consultant: Mapping[str, Any], assignment: Mapping[str, Any], match_score: int) -> str:
    required = required_skills(assignment)
    matched = matched_skills(consultant, assignment)
    if match_score >= 80:
        strength = "strong"
    elif match_score >= 60:
        strength = "good"
    else:
        strength = "potential"

    parts = [f"{consultant.get('name', 'This consultant')} is a {strength} match for this assignment."]
    if matched:
        more = " and more" if len(matched) > 3 else ""
        parts.append(
            f"They have {len(matched)} of the {len(required)} required skills "
            f"including {', '.join(matched[:3])}{more}."
        )
    experience = consultant.get("experience") or f"{parse_experience_years(None, consultant.get('experience_years'))} years"
    availability = "immediate availability" if is_available(consultant) else "limited availability"
    parts.append(
        f"With {experience} of experience and {availability}, "
        "they could be a valuable addition to the team."
    )
    return " ".join(parts)


def cover_letter(consultant: Mapping[str, Any], assignment: Mapping[str, Any]) -> str:
    required = required_skills(assignment)
    matched = matched_skills(consultant, assignment)
    style = _field(consultant, "communication_style", "communicationStyle") or "professional"
    culture = _field(assignment, "team_culture", "teamCulture") or "collaborative"
    experience = consultant.get("experience") or f"{parse_experience_years(None, consultant.get('experience_years'))} years"
    availability = str(consultant.get("availability") or "available").lower()
    workload = assignment.get("workload") or "full-time"

    return (
        f"Dear {assignment.get('company') or 'hiring team'},\n\n"
        f"I am writing to express my interest in the {assignment.get('title')} position. "
        f"With {experience} of experience and expertise in {', '.join(matched) or 'related areas'}, "
        "I believe I am well-suited for this role.\n\n"
        f"Throughout my career, I have worked on various projects that required "
        f"{', '.join(required[:3]) or 'a broad range of'} skills. My approach to work is "
        f"{style.lower()}, and I thrive in {culture.lower()} environments.\n\n"
        f"I am currently {availability} and can accommodate the {workload} workload "
        "required for this position.\n\n"
        "Best regards,\n"
        f"{consultant.get('name', '')}"
    )


@dataclass
class RankedConsultant:
    """A consultant and the score it received against one assignment."""
    consultant: Mapping[str, Any]
    result: ScoreResult


def rank_consultants(
    consultants: Iterable[Mapping[str, Any]],
    assignment: Mapping[str, Any],
    *,
    limit: int | None = 10,
    variant: ScoringVariant | str = ScoringVariant.STANDARD,
) -> list[RankedConsultant]:
    """Score every consultant and return the best first.

    The sort is stable, so equal scores keep the input order.
    """
    scorer = MatchScorer.for_variant(variant)
    ranked = [RankedConsultant(c, scorer.evaluate(c, assignment)) for c in consultants]
    ranked.sort(key=lambda r: r.result.score, reverse=True)
    logger.debug(f"Ranked {len(ranked)} consultants ({scorer.variant.value})")
    return ranked[:limit] if limit is not None else ranked
