"""Matching pipeline: Assignment → Consultants with heuristic scoring.

Every published consultant is scored against the assignment, the best
``top_n`` are kept and persisted as matches, and earlier matches for the
same assignment are marked stale.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from matchwise import models
from matchwise.config import ScoringVariant, settings
from matchwise.pipelines.assignment_processing import assignment_features, get_assignment
from matchwise.pipelines.consultant_processing import consultant_features, get_consultant
from matchwise.scoring import (
    ScoreResult,
    cover_letter,
    estimate_response_time_hours,
    estimate_savings,
    human_factors_score,
    match_reasoning,
    matched_values,
    rank_consultants,
    score_breakdown,
)

logger = logging.getLogger(__name__)


@dataclass
class MatchResult:
    """Single consultant match result."""
    consultant_id: int
    consultant_name: str
    rank: int
    match_score: int
    human_factors_score: int
    matched_skills: list[str]
    matched_values: list[str]
    score_breakdown: dict[str, Any]
    reasoning: str
    cover_letter: str
    response_time_hours: int
    estimated_savings: int
    match_id: int | None = None


@dataclass
class AssignmentShortlist:
    """Ranked matches for one assignment."""
    assignment_id: int
    variant: ScoringVariant
    candidates_scored: int
    matches: list[MatchResult]
    computed_at: datetime = field(default_factory=datetime.utcnow)


class MatchingError(Exception):
    """Raised when matching pipeline fails."""
    pass


async def load_consultant_features(
    session: AsyncSession,
    *,
    published_only: bool = True,
) -> list[dict[str, Any]]:
    """Feature dicts for every candidate consultant, in id order."""
    query = select(models.Consultant).order_by(models.Consultant.id)
    if published_only:
        query = query.where(models.Consultant.is_published.is_(True))
    result = await session.execute(query)
    return [consultant_features(c) for c in result.scalars().all()]


def build_match_result(
    consultant: dict[str, Any],
    assignment: dict[str, Any],
    result: ScoreResult,
    rank: int,
) -> MatchResult:
    return MatchResult(
        consultant_id=consultant["consultant_id"],
        consultant_name=consultant["name"],
        rank=rank,
        match_score=result.score,
        human_factors_score=human_factors_score(consultant),
        matched_skills=result.matched_skills,
        matched_values=matched_values(consultant, assignment),
        score_breakdown=result.breakdown(),
        reasoning=match_reasoning(consultant, assignment, result.score),
        cover_letter=cover_letter(consultant, assignment),
        response_time_hours=estimate_response_time_hours(consultant),
        estimated_savings=estimate_savings(consultant, settings.matching.market_rate),
    )


async def match_assignment_to_consultants(
    session: AsyncSession,
    assignment_id: int,
    *,
    top_n: int | None = None,
    variant: ScoringVariant | str | None = None,
) -> AssignmentShortlist:
    """Execute the matching pipeline for a single assignment.

    Workflow:
    1. Load the assignment and candidate consultants
    2. Score each consultant with the selected variant
    3. Sort by score (ties keep load order) and select TopN
    4. Mark previous matches stale and persist the new ones

    Raises:
        AssignmentNotFoundError: If the assignment does not exist
        MatchingError: If scoring or persistence fails
    """
    top_n = top_n or settings.matching.top_n
    variant = ScoringVariant(variant or settings.matching.variant)

    assignment = await get_assignment(session, assignment_id)

    try:
        logger.info(f"Starting matching for assignment {assignment_id} (TopN={top_n}, {variant.value})")

        assignment_data = assignment_features(assignment)
        consultants = await load_consultant_features(
            session,
            published_only=settings.matching.published_only,
        )
        if not consultants:
            logger.warning(f"No consultants to match for assignment {assignment_id}")

        ranked = rank_consultants(consultants, assignment_data, limit=top_n, variant=variant)
        matches = [
            build_match_result(r.consultant, assignment_data, r.result, idx + 1)
            for idx, r in enumerate(ranked)
        ]

        logger.info(f"Scored {len(consultants)} consultants, returning top {len(matches)}")

        shortlist = AssignmentShortlist(
            assignment_id=assignment_id,
            variant=variant,
            candidates_scored=len(consultants),
            matches=matches,
        )
    except Exception as e:
        logger.error(f"Matching failed for assignment {assignment_id}: {e}", exc_info=True)
        raise MatchingError(f"Matching pipeline failed: {e}") from e

    await persist_matches(session, shortlist)
    return shortlist


async def persist_matches(session: AsyncSession, shortlist: AssignmentShortlist) -> None:
    """Mark existing matches for the assignment stale and insert the new ones."""
    try:
        await session.execute(
            update(models.Match)
            .where(
                models.Match.assignment_id == shortlist.assignment_id,
                models.Match.is_stale.is_(False),
            )
            .values(is_stale=True)
        )

        records = []
        for match in shortlist.matches:
            record = models.Match(
                assignment_id=shortlist.assignment_id,
                consultant_id=match.consultant_id,
                rank=match.rank,
                match_score=match.match_score,
                variant=shortlist.variant.value,
                human_factors_score=match.human_factors_score,
                matched_skills=match.matched_skills,
                matched_values=match.matched_values,
                score_breakdown=match.score_breakdown,
                reasoning=match.reasoning,
                cover_letter=match.cover_letter,
                response_time_hours=match.response_time_hours,
                estimated_savings=match.estimated_savings,
                status="pending",
                is_stale=False,
                created_at=shortlist.computed_at,
            )
            session.add(record)
            records.append(record)

        await session.commit()
        for match, record in zip(shortlist.matches, records):
            match.match_id = record.id

        logger.info(f"Persisted {len(records)} matches for assignment {shortlist.assignment_id}")

    except Exception as e:
        await session.rollback()
        logger.error(f"Failed to persist matches: {e}")
        raise MatchingError(f"Match persistence failed: {e}") from e


async def get_stored_matches(
    session: AsyncSession,
    assignment_id: int,
    *,
    include_stale: bool = False,
) -> list[models.Match]:
    """Stored matches for an assignment, best rank first."""
    await get_assignment(session, assignment_id)

    query = (
        select(models.Match)
        .where(models.Match.assignment_id == assignment_id)
        .order_by(models.Match.is_stale, models.Match.rank, models.Match.id)
    )
    if not include_stale:
        query = query.where(models.Match.is_stale.is_(False))
    result = await session.execute(query)
    return list(result.scalars().all())


async def preview_match(
    session: AsyncSession,
    assignment_id: int,
    consultant_id: int,
    *,
    variant: ScoringVariant | str | None = None,
) -> MatchResult:
    """Score one pair without persisting anything."""
    variant = ScoringVariant(variant or settings.matching.variant)
    assignment = assignment_features(await get_assignment(session, assignment_id))
    consultant = consultant_features(await get_consultant(session, consultant_id))

    result = score_breakdown(consultant, assignment, variant)
    return build_match_result(consultant, assignment, result, rank=1)
