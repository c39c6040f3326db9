"""Tests for cross-source verification and credibility scoring."""

import itertools

import pytest

from research_agent.research.models import AnalysisScores, AnalyzedResult, ExtractedContent, ResearchContext, Source
from research_agent.research.verification import (
    VerificationEngine,
    calculate_credibility,
    cross_reference,
    flag_fact_checks,
    is_fact_checkable,
    normalize_claim,
    overall_confidence,
    score_credibility,
    split_claims,
    top_level_domain,
    unverified,
    verify_results,
)


def result(title: str, text: str, url: str = "https://example.com", quality: float = 0.8, bias: str = "low", readability: float = 0.5):
    return AnalyzedResult(
        source=Source(title=title, url=url),
        content=ExtractedContent(title=title, content=text, url=url),
        analysis=AnalysisScores(relevance=0.8, quality=quality, bias=bias, readability=readability),
    )


class TestClaims:
    def test_split_drops_short_segments(self):
        assert split_claims("Short. This is a longer sentence! Another claim here? Ok") == [
            "This is a longer sentence",
            "Another claim here",
        ]

    def test_ten_characters_is_kept(self):
        assert split_claims("abcdefghij. abcdefghi.") == ["abcdefghij"]

    def test_normalize_folds_case_whitespace_and_punctuation(self):
        assert normalize_claim("  The  Sky, is BLUE! ") == "the sky is blue"

    def test_paraphrases_are_not_folded(self):
        assert normalize_claim("The sky is blue") != normalize_claim("Blue is the sky")


class TestCrossReference:
    def test_counts_distinct_sources(self):
        results = [
            result("A", "Water boils at one hundred degrees. Unrelated first claim."),
            result("B", "WATER boils, at one hundred degrees! Unrelated second claim."),
            result("C", "Something else entirely here."),
        ]

        refs = cross_reference(results)

        assert len(refs) == 1
        assert refs[0].claim == "water boils at one hundred degrees"
        assert refs[0].count == 2
        assert [o.content for o in refs[0].sources] == ["Water boils at one hundred degrees", "WATER boils, at one hundred degrees"]

    def test_claim_from_single_source_is_never_listed(self):
        text = "The same claim appears twice. The same claim appears twice."
        assert cross_reference([result("A", text)]) == []

    def test_sorted_by_count_then_first_seen(self):
        results = [
            result("A", "Claim seen in two places. Claim seen in all three."),
            result("B", "Claim seen in two places. Claim seen in all three."),
            result("C", "Claim seen in all three. Another pair claim here."),
            result("D", "Another pair claim here."),
        ]

        refs = cross_reference(results)

        assert [(r.claim, r.count) for r in refs] == [
            ("claim seen in all three", 3),
            ("claim seen in two places", 2),
            ("another pair claim here", 2),
        ]
        assert [o.source for o in refs[0].sources] == ["A", "B", "C"]

    def test_same_title_different_sources_count_separately(self):
        results = [
            result("Same title", "A shared claim sentence.", url="https://one.example.com"),
            result("Same title", "A shared claim sentence.", url="https://two.example.com"),
        ]

        assert cross_reference(results)[0].count == 2


class TestFactChecks:
    @pytest.mark.parametrize(
        "claim,expected",
        [
            ("The study shows strong effects", True),
            ("Prices rose 42 percent last year", True),
            ("Researchers FOUND nothing unusual", True),
            ("Plain sentence without markers", False),
        ],
    )
    def test_is_fact_checkable(self, claim, expected):
        assert is_fact_checkable(claim) is expected

    def test_flagged_claims_are_unchecked(self):
        checks = flag_fact_checks([result("A", "In 2021 output doubled. Plain sentence without markers.")])

        assert len(checks) == 1
        assert checks[0].claim == "In 2021 output doubled"
        assert checks[0].status == "unchecked"
        assert checks[0].confidence == 0.5


class TestCredibility:
    @pytest.mark.parametrize(
        "url,tld",
        [
            ("https://sub.example.edu:8080/path", "edu"),
            ("https://notedu.com/page", "com"),
            ("#", None),
            ("not a url", None),
        ],
    )
    def test_top_level_domain(self, url, tld):
        assert top_level_domain(url) == tld

    def test_domain_bonus(self):
        assert score_credibility("https://mit.edu") == pytest.approx(0.7)
        assert score_credibility("https://nasa.gov") == pytest.approx(0.7)
        assert score_credibility("https://example.com") == pytest.approx(0.6)
        assert score_credibility("https://example.io") == pytest.approx(0.5)

    def test_quality_is_averaged(self):
        assert score_credibility("https://mit.edu", quality=0.9) == pytest.approx(0.8)

    def test_bias_and_readability_adjustments(self):
        assert score_credibility("https://example.io", bias="high") == pytest.approx(0.3)
        assert score_credibility("https://example.io", bias="medium") == pytest.approx(0.4)
        assert score_credibility("https://example.io", readability=0.9) == pytest.approx(0.6)
        assert score_credibility("https://example.io", readability=0.1) == pytest.approx(0.4)
        assert score_credibility("https://example.io", readability=0.5) == pytest.approx(0.5)

    def test_always_clamped(self):
        urls = ["https://a.edu", "https://a.com", "https://a.io", "#", ""]
        qualities = [None, -5.0, 0.0, 0.5, 1.0, 7.0]
        biases = [None, "low", "medium", "high"]
        readabilities = [None, -1.0, 0.0, 0.1, 0.9, 3.0]

        for url, quality, bias, readability in itertools.product(urls, qualities, biases, readabilities):
            score = score_credibility(url, quality=quality, bias=bias, readability=readability)
            assert 0.0 <= score <= 1.0

    def test_calculate_credibility_uses_analysis(self):
        scores = calculate_credibility([result("A", "text", url="https://mit.edu", quality=0.9, bias="high")])

        assert scores[0].credibility == pytest.approx(0.6)
        assert scores[0].source == "A"

    def test_calculate_credibility_ignores_search_quality(self):
        analyzed = result("A", "text", url="https://mit.edu", quality=0.9)
        analyzed = analyzed.model_copy(update={"source": analyzed.source.model_copy(update={"quality_score": 0.1})})

        assert calculate_credibility([analyzed])[0].credibility == pytest.approx(0.8)


class TestConfidence:
    def test_documented_example(self):
        assert overall_confidence(3, [0.8]) == pytest.approx(0.86)

    def test_no_evidence(self):
        assert overall_confidence(0, []) == pytest.approx(0.2)

    def test_cross_reference_term_saturates(self):
        assert overall_confidence(10, [1.0]) == pytest.approx(1.0)


class TestVerifyResults:
    def test_empty_results(self):
        verification = verify_results([])

        assert verification.status == "completed"
        assert verification.confidence == pytest.approx(0.2)
        assert verification.cross_references == []

    def test_summary_counts(self):
        results = [
            result("A", "Shared finding about the topic. The study shows growth.", url="https://a.edu", quality=1.0, readability=0.9),
            result("B", "Shared finding about the topic.", url="https://b.io"),
        ]

        verification = verify_results(results)

        assert "Total sources analyzed: 2" in verification.summary
        assert "Claims with cross-references: 1" in verification.summary
        assert "Claims identified for fact-checking: 1" in verification.summary
        assert "1 out of 2 sources are highly credible" in verification.summary

    def test_unverified_placeholder(self):
        placeholder = unverified()
        assert placeholder.status == "not_verified"
        assert placeholder.confidence == 0.5
        assert placeholder.cross_references == []


@pytest.mark.asyncio
async def test_engine_verifies_context():
    context = ResearchContext(
        topic="boiling",
        results=[
            result("A", "Water boils at one hundred degrees."),
            result("B", "Water boils at one hundred degrees."),
        ],
    )

    verification = await VerificationEngine().verify(context)

    assert len(verification.cross_references) == 1
    assert len(verification.credibility_scores) == 2
