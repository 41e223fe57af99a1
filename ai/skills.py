"""Skill extraction using the taxonomy + rapidfuzz with evidence tracking.

Used as a local fallback when the hosted CV analysis returns no skills.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from rapidfuzz import fuzz, process

from ai.skill_taxonomy import SKILL_TAXONOMY
from matchwise.config import settings

logger = logging.getLogger(__name__)

EVIDENCE_WINDOW = 30
MIN_FUZZY_TOKEN_LENGTH = 5

_TOKEN = re.compile(r"[A-Za-z][A-Za-z0-9.#+/-]*")


@dataclass
class ExtractedSkill:
    """Represents an extracted skill with evidence."""
    canonical_skill: str
    raw_text: str
    confidence: float
    evidence_text: str = ""
    span_start: int = -1
    span_end: int = -1
    method: str = "exact"  # exact, fuzzy


@dataclass
class SkillTaxonomy:
    """Skill taxonomy entry with synonyms."""
    canonical_skill: str
    synonyms: list[str] = field(default_factory=list)
    category: str = ""


def _synonym_pattern(synonym: str) -> re.Pattern:
    # Whole-word match that also respects symbols such as "c#" and ".net"
    return re.compile(r"(?<![\w.#+])" + re.escape(synonym) + r"(?![\w#+])", re.IGNORECASE)


class SkillExtractor:
    """Skill extractor with taxonomy, synonyms, and fuzzy matching.

    Supports:
    - Whole-word synonym matching
    - Fuzzy matching of single words via rapidfuzz (catches typos)
    - Evidence/span extraction
    """

    def __init__(self, taxonomy: list[SkillTaxonomy] | None = None) -> None:
        self.taxonomy = taxonomy or self._load_default_taxonomy()

        self._canonical_skills: list[str] = []
        self._patterns: list[tuple[str, str, re.Pattern]] = []  # (canonical, synonym, pattern)
        self._fuzzy_choices: dict[str, str] = {}  # lower-cased name/synonym -> canonical

        self._build_indices()

        logger.debug(f"Loaded {len(self.taxonomy)} skills with {len(self._patterns)} synonyms")

    @staticmethod
    def _load_default_taxonomy() -> list[SkillTaxonomy]:
        return [
            SkillTaxonomy(
                canonical_skill=entry["canonical_skill"],
                synonyms=list(entry.get("synonyms", [])),
                category=entry.get("category", ""),
            )
            for entry in SKILL_TAXONOMY
        ]

    def _build_indices(self) -> None:
        """Build internal lookup structures."""
        for tax in self.taxonomy:
            canonical = tax.canonical_skill
            self._canonical_skills.append(canonical)

            synonyms = {s.lower() for s in tax.synonyms}
            if len(canonical) >= 3:
                synonyms.add(canonical.lower())
            # Longest first so the most specific spelling becomes raw_text
            for syn in sorted(synonyms, key=len, reverse=True):
                self._patterns.append((canonical, syn, _synonym_pattern(syn)))
                if len(syn) >= MIN_FUZZY_TOKEN_LENGTH and " " not in syn:
                    self._fuzzy_choices[syn] = canonical

    @staticmethod
    def _evidence(text: str, start: int, end: int) -> str:
        return text[max(0, start - EVIDENCE_WINDOW):min(len(text), end + EVIDENCE_WINDOW)].strip()

    def extract(
        self,
        text: str,
        *,
        min_confidence: float | None = None,
        max_results: int | None = None,
    ) -> list[ExtractedSkill]:
        """Extract skills from text with evidence.

        Args:
            text: Input text to extract skills from
            min_confidence: Minimum confidence threshold (uses config default if None)
            max_results: Maximum number of results (uses config default if None)

        Returns:
            List of ExtractedSkill objects sorted by confidence, then by
            first occurrence in the text
        """
        if not text or not text.strip():
            return []

        min_conf = settings.skills.min_confidence if min_confidence is None else min_confidence
        max_res = max_results or settings.skills.max_skills_per_doc

        results: list[ExtractedSkill] = []
        seen_skills: set[str] = set()

        # 1. Whole-word synonym matching (highest confidence)
        for canonical, synonym, pattern in self._patterns:
            if canonical in seen_skills:
                continue
            match = pattern.search(text)
            if not match:
                continue
            span_start, span_end = match.span()
            results.append(ExtractedSkill(
                canonical_skill=canonical,
                raw_text=match.group(0),
                confidence=0.95,
                evidence_text=self._evidence(text, span_start, span_end),
                span_start=span_start,
                span_end=span_end,
                method="exact",
            ))
            seen_skills.add(canonical)

        # 2. Fuzzy matching of individual words against names and synonyms
        threshold = settings.skills.fuzzy_threshold
        choices = list(self._fuzzy_choices)
        for token_match in _TOKEN.finditer(text):
            token = token_match.group(0).lower()
            if len(token) < MIN_FUZZY_TOKEN_LENGTH:
                continue
            best = process.extractOne(token, choices, scorer=fuzz.ratio, score_cutoff=threshold)
            if best is None:
                continue
            choice, fuzzy_score, _ = best
            canonical = self._fuzzy_choices[choice]
            if canonical in seen_skills:
                continue
            span_start, span_end = token_match.span()
            results.append(ExtractedSkill(
                canonical_skill=canonical,
                raw_text=token_match.group(0),
                confidence=round(fuzzy_score / 100.0 * 0.9, 3),
                evidence_text=self._evidence(text, span_start, span_end),
                span_start=span_start,
                span_end=span_end,
                method="fuzzy",
            ))
            seen_skills.add(canonical)

        # Filter by min confidence and sort
        results = [r for r in results if r.confidence >= min_conf]
        results.sort(key=lambda x: (-x.confidence, x.span_start))

        results = results[:max_res]

        logger.debug(f"Extracted {len(results)} skills from text of length {len(text)}")
        return results
