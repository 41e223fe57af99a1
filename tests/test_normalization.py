import pytest

from matchwise.pipelines.normalization import (
    clean_string,
    is_placeholder,
    normalize_skills,
    normalize_text,
)


def test_normalize_text():
    assert normalize_text("  Senior  “Lead”\n\tdeveloper – Java ") == 'Senior "Lead" developer - Java'
    assert normalize_text("Python  Dev", lowercase=True) == "python dev"
    assert normalize_text("   ") == ""


@pytest.mark.parametrize("value", [None, "", "  ", "Not specified", "N/A", "unknown", "-"])
def test_placeholders(value):
    assert is_placeholder(value)
    assert clean_string(value) is None


def test_clean_string_keeps_real_values():
    assert clean_string("  Stockholm   City ") == "Stockholm City"
    assert clean_string(42) == "42"


def test_normalize_skills_dedupes_case_insensitively():
    skills = ["React", " react ", "Node.js", "Not specified", "", None, "TypeScript"]
    assert normalize_skills(skills) == ["React", "Node.js", "TypeScript"]


def test_normalize_skills_splits_strings():
    assert normalize_skills("React, Node.js; AWS | Docker") == ["React", "Node.js", "AWS", "Docker"]


def test_normalize_skills_limit():
    assert normalize_skills(["a", "b", "c"], limit=2) == ["a", "b"]
    assert normalize_skills(None) == []
