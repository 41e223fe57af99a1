"""Tests for the match scoring heuristic."""
import pytest

from matchwise.config import ScoringVariant
from matchwise.scoring import (
    ComponentId,
    cover_letter,
    enhanced_score,
    estimate_response_time_hours,
    estimate_savings,
    human_factors_score,
    is_available,
    is_remote,
    match_reasoning,
    matched_skills,
    matched_values,
    parse_experience_years,
    rank_consultants,
    score,
    score_breakdown,
)

CONSULTANT = {
    "name": "Anna Berg",
    "skills": ["React", "Node.js", "TypeScript"],
    "experience": "7 years",
    "availability": "Available",
    "location": "Stockholm",
}

ASSIGNMENT = {
    "title": "Frontend Lead",
    "company": "Acme AB",
    "required_skills": ["React", "TypeScript", "AWS"],
    "location": "Stockholm",
    "remote_type": "On-site",
}


def test_standard_score_components():
    # 50 base + 20 skills (2 of 3) + 7 experience + 5 available + 5 location
    assert score(CONSULTANT, ASSIGNMENT) == 87


def test_score_is_deterministic():
    assert score(CONSULTANT, ASSIGNMENT) == score(dict(CONSULTANT), dict(ASSIGNMENT))
    assert enhanced_score(CONSULTANT, ASSIGNMENT) == enhanced_score(CONSULTANT, ASSIGNMENT)


def test_empty_records_score_base_only():
    assert score({}, {}) == 50
    assert enhanced_score({}, {}) == 20


def test_no_required_skills_gives_no_skill_points():
    result = score_breakdown(CONSULTANT, {**ASSIGNMENT, "required_skills": []})
    skills = next(c for c in result.components if c.id == ComponentId.SKILLS)
    assert skills.points == 0
    assert result.score == 67


def test_rounds_half_up():
    # 50 + 7.5 (1 of 4 skills) + 1 year = 58.5
    consultant = {"skills": ["React"], "experience": "1 year"}
    assignment = {"required_skills": ["React", "Vue", "Angular", "Svelte"], "location": "Oslo"}
    assert score(consultant, assignment) == 59


def test_adding_matching_skill_never_decreases_score():
    base = {**CONSULTANT, "skills": ["React"]}
    more = {**CONSULTANT, "skills": ["React", "AWS"]}
    assert score(more, ASSIGNMENT) >= score(base, ASSIGNMENT)
    assert enhanced_score(more, ASSIGNMENT) >= enhanced_score(base, ASSIGNMENT)


@pytest.mark.parametrize("consultant", [
    {"skills": ["React", "TypeScript", "AWS", "React Native"], "experience": "40 years",
     "availability": "available", "location": "stockholm", "cultural_fit": 99,
     "adaptability": 42, "communication_style": "direct"},
    {"experience": "-5 years", "cultural_fit": -3, "adaptability": "n/a"},
    {"skills": None, "experience": None, "availability": None},
])
def test_score_always_within_bounds(consultant):
    assignment = {**ASSIGNMENT, "desired_communication_style": "Direct"}
    for variant in ScoringVariant:
        result = score_breakdown(consultant, assignment, variant)
        assert 0 <= result.score <= 100


def test_skill_points_capped_when_many_consultant_skills_match():
    consultant = {**CONSULTANT, "skills": ["React", "React Native", "ReactJS", "TypeScript"]}
    result = score_breakdown(consultant, ASSIGNMENT)
    skills = next(c for c in result.components if c.id == ComponentId.SKILLS)
    assert skills.points == 30


def test_remote_assignment_awards_location_points():
    consultant = {**CONSULTANT, "location": "Malmö"}
    assert score(consultant, ASSIGNMENT) == 82
    assert score(consultant, {**ASSIGNMENT, "remote_type": "Remote"}) == 87
    assert is_remote({"remote": True})
    assert not is_remote({"remote_type": "On-site"})


def test_enhanced_score():
    consultant = {
        **CONSULTANT,
        "cultural_fit": 4,
        "adaptability": 5,
        "communication_style": "Direct and open",
    }
    assignment = {**ASSIGNMENT, "desired_communication_style": "direct"}
    # 20 + 20 + 7 + 5 + 5 + 8 cultural + 10 communication + 10 adaptability
    assert enhanced_score(consultant, assignment) == 85


def test_enhanced_accepts_camel_case_keys():
    consultant = {**CONSULTANT, "culturalFit": 5, "adaptability": 5, "communicationStyle": "Direct"}
    assignment = {
        "requiredSkills": ["React", "TypeScript", "AWS"],
        "location": "Stockholm",
        "desiredCommunicationStyle": "Direct",
    }
    assert enhanced_score(consultant, assignment) == 87


def test_breakdown_lists_components_per_variant():
    standard = score_breakdown(CONSULTANT, ASSIGNMENT)
    enhanced = score_breakdown(CONSULTANT, ASSIGNMENT, "enhanced")
    assert [c.id for c in standard.components] == [
        ComponentId.BASE, ComponentId.SKILLS, ComponentId.EXPERIENCE,
        ComponentId.AVAILABILITY, ComponentId.LOCATION,
    ]
    assert len(enhanced.components) == 8
    assert standard.raw_total == pytest.approx(87)

    data = standard.breakdown()
    assert data["variant"] == "standard"
    assert data["components"][1]["id"] == "skills"
    assert data["components"][1]["evidence"] == ["React", "TypeScript"]


@pytest.mark.parametrize("value,fallback,expected", [
    ("5 years", 0, 5),
    ("12+", 0, 12),
    ("abc", 0, 0),
    ("abc", 4, 4),
    (None, None, 0),
    ("-3 years", 0, 0),
    ("0 years", 6, 6),
    (7, 0, 7),
    ("", "9", 9),
])
def test_parse_experience_years(value, fallback, expected):
    assert parse_experience_years(value, fallback) == expected


def test_matched_skills_substring_either_way():
    consultant = {"skills": ["React Native", "java", " ", "Go"]}
    assignment = {"required_skills": ["react", "JavaScript", ""]}
    assert matched_skills(consultant, assignment) == ["React Native", "java"]


def test_matched_values():
    consultant = {"values": ["Transparency", "Quality"]}
    assignment = {"required_values": ["transparency", "Speed"]}
    assert matched_values(consultant, assignment) == ["transparency"]


def test_availability_is_substring_check():
    assert is_available({"availability": "Available from May"})
    assert not is_available({"availability": "Busy"})
    assert not is_available({})


def test_human_factors_score():
    assert human_factors_score({}) == 73
    assert human_factors_score({"cultural_fit": 5, "adaptability": 5, "leadership": 5}) == 100


@pytest.mark.parametrize("availability,hours", [
    ("Available now", 24),
    ("Busy", 72),
    ("From March", 336),
    ("", 48),
])
def test_estimate_response_time(availability, hours):
    assert estimate_response_time_hours({"availability": availability}) == hours


def test_estimate_savings():
    assert estimate_savings({"hourly_rate": 1000}) == 200
    assert estimate_savings({"rate": "950 SEK/h"}) == 250
    assert estimate_savings({}) == 400
    assert estimate_savings({"hourly_rate": 1500}) == 0
    assert estimate_savings({"hourly_rate": 1000}, market_rate=1400) == 400


def test_reasoning_and_cover_letter():
    text = match_reasoning(CONSULTANT, ASSIGNMENT, 87)
    assert text.startswith("Anna Berg is a strong match")
    assert "2 of the 3 required skills" in text
    assert "potential match" in match_reasoning(CONSULTANT, ASSIGNMENT, 40)

    letter = cover_letter(CONSULTANT, ASSIGNMENT)
    assert letter.startswith("Dear Acme AB,")
    assert "Frontend Lead" in letter
    assert letter.endswith("Anna Berg")


def test_rank_consultants_sorted_and_stable():
    weak = {**CONSULTANT, "name": "Weak", "skills": []}
    twin_a = {**CONSULTANT, "name": "Twin A"}
    twin_b = {**CONSULTANT, "name": "Twin B"}
    ranked = rank_consultants([weak, twin_a, twin_b], ASSIGNMENT)
    assert [r.consultant["name"] for r in ranked] == ["Twin A", "Twin B", "Weak"]

    limited = rank_consultants([weak, twin_b, twin_a], ASSIGNMENT, limit=2)
    assert [r.consultant["name"] for r in limited] == ["Twin B", "Twin A"]


def test_rank_consultants_enhanced_variant():
    ranked = rank_consultants([CONSULTANT], ASSIGNMENT, variant=ScoringVariant.ENHANCED)
    assert ranked[0].result.variant == ScoringVariant.ENHANCED


def test_breakdown_evidence_is_a_separate_list():
    result = score_breakdown(CONSULTANT, ASSIGNMENT)
    skills = next(c for c in result.components if c.id == ComponentId.SKILLS)
    result.matched_skills.append("Extra")
    assert skills.evidence == ["React", "TypeScript"]
