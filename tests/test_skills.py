"""Tests for the local taxonomy skill extractor."""
from ai.skills import SkillExtractor, SkillTaxonomy


def _names(results):
    return [r.canonical_skill for r in results]


def test_extracts_whole_word_synonyms():
    text = "Senior developer with Python, Docker and k8s experience."
    results = SkillExtractor().extract(text)
    assert {"Python", "Docker", "Kubernetes"} <= set(_names(results))

    k8s = next(r for r in results if r.canonical_skill == "Kubernetes")
    assert k8s.method == "exact"
    assert k8s.raw_text == "k8s"
    assert k8s.confidence == 0.95
    assert "k8s" in k8s.evidence_text
    assert text[k8s.span_start:k8s.span_end] == "k8s"


def test_symbols_in_skill_names():
    results = SkillExtractor().extract("Backend work in C# and .NET, some T-SQL.")
    assert {"C#", ".NET", "SQL"} <= set(_names(results))


def test_short_words_do_not_match_inside_text():
    results = SkillExtractor().extract("I like to go hiking and explore new places")
    assert "Go" not in _names(results)


def test_fuzzy_match_catches_typos():
    results = SkillExtractor().extract("Deployed services on Kubernetess clusters")
    kube = next(r for r in results if r.canonical_skill == "Kubernetes")
    assert kube.method == "fuzzy"
    assert 0.6 <= kube.confidence < 0.95


def test_results_sorted_by_confidence_then_position():
    results = SkillExtractor().extract("Terraform, Kubernetess and Django")
    assert _names(results) == ["Terraform", "Django", "Kubernetes"]


def test_max_results_and_min_confidence():
    text = "Python Java Docker Terraform Django"
    assert len(SkillExtractor().extract(text, max_results=2)) == 2
    assert SkillExtractor().extract("Kubernetess", min_confidence=0.9) == []


def test_empty_text():
    assert SkillExtractor().extract("") == []
    assert SkillExtractor().extract("   ") == []


def test_custom_taxonomy():
    extractor = SkillExtractor([SkillTaxonomy("Snowflake", ["snowflake", "snowpark"], "Data")])
    results = extractor.extract("Built pipelines with Snowpark")
    assert _names(results) == ["Snowflake"]
