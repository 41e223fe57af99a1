"""Assignment creation and lookup."""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from matchwise import models
from matchwise.schemas import AssignmentCreate

logger = logging.getLogger(__name__)


class AssignmentProcessingError(Exception):
    """Raised when an assignment cannot be stored."""
    pass


class AssignmentNotFoundError(Exception):
    """Raised when an assignment id does not exist."""
    pass


async def create_assignment(session: AsyncSession, data: AssignmentCreate) -> models.Assignment:
    """Persist a validated assignment.

    Raises:
        AssignmentProcessingError: If the insert fails
    """
    try:
        assignment = models.Assignment(**data.model_dump(mode="json"))
        session.add(assignment)
        await session.commit()
        await session.refresh(assignment)
    except Exception as e:
        logger.error(f"Assignment creation failed: {e}", exc_info=True)
        await session.rollback()
        raise AssignmentProcessingError(f"Failed to create assignment: {e}") from e

    logger.info(
        f"Created assignment {assignment.id}: {assignment.title} "
        f"({len(assignment.required_skills)} required skills)"
    )
    return assignment


async def get_assignment(session: AsyncSession, assignment_id: int) -> models.Assignment:
    assignment = await session.get(models.Assignment, assignment_id)
    if assignment is None:
        raise AssignmentNotFoundError(f"Assignment {assignment_id} not found")
    return assignment


async def list_assignments(
    session: AsyncSession,
    *,
    status: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[models.Assignment]:
    """Newest first."""
    query = (
        select(models.Assignment)
        .order_by(models.Assignment.created_at.desc(), models.Assignment.id.desc())
        .limit(limit)
        .offset(offset)
    )
    if status:
        query = query.where(models.Assignment.status == status)
    result = await session.execute(query)
    return list(result.scalars().all())


def assignment_features(assignment: models.Assignment) -> dict[str, Any]:
    """Plain feature dict consumed by the scoring functions."""
    return {
        "assignment_id": assignment.id,
        "title": assignment.title,
        "company": assignment.company,
        "required_skills": list(assignment.required_skills or []),
        "required_values": list(assignment.required_values or []),
        "location": assignment.location,
        "remote_type": assignment.remote_type,
        "workload": assignment.workload,
        "desired_communication_style": assignment.desired_communication_style,
        "team_culture": assignment.team_culture,
        "leadership_level": assignment.leadership_level,
    }
