"""Text and skill-list normalization utilities."""
from __future__ import annotations

import logging
import re
import unicodedata
from typing import Any, Iterable

logger = logging.getLogger(__name__)

PLACEHOLDER_VALUES = {"not specified", "n/a", "none", "unknown", "-"}

_SKILL_SEPARATORS = re.compile(r"[;,|\n]")


def normalize_whitespace(text: str) -> str:
    """Normalize whitespace: collapse multiple spaces, remove leading/trailing."""
    text = re.sub(r'\s+', ' ', text)
    return text.strip()


def normalize_punctuation(text: str) -> str:
    """Normalize common punctuation variations."""
    # Replace smart quotes
    text = text.replace('“', '"').replace('”', '"')
    text = text.replace('‘', "'").replace('’', "'")

    # Normalize dashes
    text = text.replace('–', '-').replace('—', '-')

    return text


def normalize_text(text: str, *, lowercase: bool = False) -> str:
    """Normalize CV or assignment text for skill extraction.

    Args:
        text: Input text to normalize
        lowercase: Convert to lowercase

    Returns:
        Normalized text
    """
    if not text or not text.strip():
        return ""

    text = unicodedata.normalize('NFC', text)
    text = normalize_punctuation(text)
    if lowercase:
        text = text.lower()
    return normalize_whitespace(text)


def is_placeholder(value: Any) -> bool:
    """True for empty values and AI placeholders such as 'Not specified'."""
    if value is None:
        return True
    text = str(value).strip()
    return not text or text.lower() in PLACEHOLDER_VALUES


def clean_string(value: Any) -> str | None:
    """Whitespace-normalized string, or None for empty/placeholder values."""
    if is_placeholder(value):
        return None
    return normalize_whitespace(str(value))


def normalize_skills(skills: Iterable[Any] | str | None, *, limit: int | None = None) -> list[str]:
    """Trim, drop placeholders and deduplicate case-insensitively.

    A plain string is split on commas, semicolons, pipes and newlines.
    First spelling wins and order is preserved.
    """
    if skills is None:
        return []
    if isinstance(skills, str):
        skills = _SKILL_SEPARATORS.split(skills)

    result: list[str] = []
    seen: set[str] = set()
    for skill in skills:
        cleaned = clean_string(skill)
        if cleaned is None:
            continue
        key = cleaned.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(cleaned)
        if limit is not None and len(result) >= limit:
            break
    return result
