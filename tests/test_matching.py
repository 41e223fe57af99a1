"""Tests for the matching pipeline."""
import pytest

from conftest import add_assignment, add_consultant
from matchwise.config import ScoringVariant
from matchwise.pipelines.assignment_processing import AssignmentNotFoundError
from matchwise.pipelines.consultant_processing import ConsultantNotFoundError
from matchwise.pipelines.matching import (
    get_stored_matches,
    match_assignment_to_consultants,
    preview_match,
)


async def test_matching_ranks_and_persists(session):
    weak = await add_consultant(session, name="Weak", email="w@example.com", skills=["Java"])
    strong = await add_consultant(session, name="Strong", email="s@example.com")
    await add_consultant(session, name="Hidden", email="h@example.com", is_published=False)
    assignment = await add_assignment(session)

    shortlist = await match_assignment_to_consultants(session, assignment.id)

    assert shortlist.candidates_scored == 2
    assert [m.consultant_id for m in shortlist.matches] == [strong.id, weak.id]
    assert [m.rank for m in shortlist.matches] == [1, 2]
    top = shortlist.matches[0]
    # 50 + 30 skills + 5 experience + 5 available + 5 location
    assert top.match_score == 95
    assert top.matched_skills == ["React", "TypeScript"]
    assert top.match_id is not None
    assert top.score_breakdown["variant"] == "standard"
    assert top.reasoning.startswith("Strong is a strong match")
    assert top.response_time_hours == 24

    stored = await get_stored_matches(session, assignment.id)
    assert [m.consultant_id for m in stored] == [strong.id, weak.id]
    assert stored[0].match_score == 95
    assert stored[0].status == "pending"


async def test_rerun_marks_previous_matches_stale(session):
    await add_consultant(session)
    assignment = await add_assignment(session)

    await match_assignment_to_consultants(session, assignment.id)
    second = await match_assignment_to_consultants(session, assignment.id, variant=ScoringVariant.ENHANCED)

    current = await get_stored_matches(session, assignment.id)
    everything = await get_stored_matches(session, assignment.id, include_stale=True)
    assert [m.id for m in current] == [second.matches[0].match_id]
    assert current[0].variant == "enhanced"
    assert len(everything) == 2
    assert everything[1].is_stale


async def test_top_n_limits_matches(session):
    for i in range(4):
        await add_consultant(session, name=f"C{i}", email=f"c{i}@example.com")
    assignment = await add_assignment(session)

    shortlist = await match_assignment_to_consultants(session, assignment.id, top_n=2)

    assert shortlist.candidates_scored == 4
    assert len(shortlist.matches) == 2


async def test_ties_keep_load_order(session):
    first = await add_consultant(session, name="First", email="f@example.com")
    second = await add_consultant(session, name="Second", email="s@example.com")
    assignment = await add_assignment(session)

    shortlist = await match_assignment_to_consultants(session, assignment.id)

    assert [m.consultant_id for m in shortlist.matches] == [first.id, second.id]


async def test_matching_without_consultants(session):
    assignment = await add_assignment(session)
    shortlist = await match_assignment_to_consultants(session, assignment.id)
    assert shortlist.matches == []
    assert await get_stored_matches(session, assignment.id) == []


async def test_matching_unknown_assignment(session):
    with pytest.raises(AssignmentNotFoundError):
        await match_assignment_to_consultants(session, 404)


async def test_preview_does_not_persist(session):
    consultant = await add_consultant(session, cultural_fit=5, adaptability=5)
    assignment = await add_assignment(session)

    result = await preview_match(session, assignment.id, consultant.id, variant="enhanced")

    # 20 + 30 + 5 + 5 + 5 + 10 cultural fit + 0 communication + 10 adaptability
    assert result.match_score == 85
    assert result.match_id is None
    assert await get_stored_matches(session, assignment.id) == []

    with pytest.raises(ConsultantNotFoundError):
        await preview_match(session, assignment.id, 9999)
