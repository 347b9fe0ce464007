"""Content quality and competitive benchmark checks."""
import re
from typing import Optional

from ..models.check import Check, CheckResult, Confidence
from ..models.facts import PageFacts, PerformanceFacts, VisualFacts
from .base import (
    CRITICAL, FAIL, MAJOR, MINOR, PASS, WARNING,
    check_producer, grade_at_least, score_check,
)

_SENTENCE_SPLIT = re.compile(r"[.!?]+")


def _readability_label(ease: int) -> str:
    if ease >= 60:
        return "Easy-to-read"
    if ease >= 30:
        return "Moderate"
    return "Difficult"


@check_producer("content_quality")
def content_quality(
    page: PageFacts,
    performance: Optional[PerformanceFacts] = None,
    visual: Optional[VisualFacts] = None,
) -> CheckResult:
    word_count = page.word_count
    heading_count = sum(len(items) for items in page.headings.values())
    image_count = len(page.images)
    readability = page.readability
    internal = page.links.internal_count

    checks = [
        Check(
            test="Content Volume",
            status=grade_at_least(word_count, 1000, 300),
            severity=MAJOR,
            value=f"{word_count} words",
        ),
        Check(
            test="Content Structure (Headings)",
            status=grade_at_least(heading_count, 5, 2),
            severity=MAJOR,
            value=f"{heading_count} headings",
        ),
        Check(
            test="Visual Content",
            status=grade_at_least(image_count, 3, 1),
            severity=MINOR,
            value=f"{image_count} images/media",
        ),
    ]

    if readability.flesch_ease is not None:
        ease = readability.flesch_ease
        checks.append(Check(
            test="Flesch Reading Ease",
            status=grade_at_least(ease, 60, 30),
            severity=MAJOR,
            value=f"{ease}/100 ({_readability_label(ease)})",
            detail=(
                f"Grade level: {readability.grade_level}, "
                f"Avg sentence: {readability.avg_sentence_length} words"
            ),
        ))
    elif word_count > 30:
        sentences = [s for s in _SENTENCE_SPLIT.split(page.body_text) if len(s.strip()) > 10]
        average = (2 * word_count + max(1, len(sentences))) // (2 * max(1, len(sentences)))
        checks.append(Check(
            test="Readability (estimated)",
            status=PASS if average <= 20 else WARNING,
            severity=MAJOR,
            value=f"~{average} words/sentence avg",
        ))

    checks.append(Check(
        test="Internal Linking",
        status=grade_at_least(internal, 5, 2),
        severity=MINOR,
        value=f"{internal} internal links",
    ))

    return CheckResult(
        checks=checks,
        confidence=Confidence.MEDIUM,
        summary={
            "word_count": word_count,
            "headings": heading_count,
            "images": image_count,
            "flesch_ease": readability.flesch_ease,
        },
    )


@check_producer("competitive_benchmark")
def competitive_benchmark(
    page: PageFacts,
    performance: Optional[PerformanceFacts] = None,
    visual: Optional[VisualFacts] = None,
) -> CheckResult:
    trust = page.trust_signals
    schemas = len(page.structured_data)
    compressed = page.compression != "none"
    hint_total = page.resource_hints.total

    checks = [
        Check(
            test="SSL/HTTPS",
            status=PASS if page.is_https else FAIL,
            severity=CRITICAL,
            value="Active" if page.is_https else "Missing",
        ),
        Check(
            test="Responsive Design",
            status=PASS if page.viewport else FAIL,
            severity=CRITICAL,
            value="Viewport configured" if page.viewport else "No viewport",
        ),
        Check(
            test="Structured Data",
            status=PASS if schemas else WARNING,
            severity=MAJOR,
            value=f"{schemas} schema(s)" if schemas else "Not found",
        ),
        Check(
            test="Open Graph Tags",
            status=PASS if page.meta_tags.get("og:title") else WARNING,
            severity=MAJOR,
            value="Present" if page.meta_tags.get("og:title") else "Missing",
        ),
        Check(
            test="Twitter Cards",
            status=PASS if page.twitter_cards.get("card") else WARNING,
            severity=MINOR,
            value="Present" if page.twitter_cards.get("card") else "Missing",
        ),
        Check(
            test="Privacy/Legal Pages",
            status=PASS if trust.has_privacy_policy and trust.has_terms else WARNING,
            severity=MAJOR,
            value=(
                f"Privacy: {'yes' if trust.has_privacy_policy else 'no'}, "
                f"Terms: {'yes' if trust.has_terms else 'no'}"
            ),
        ),
        Check(
            test="Response Compression",
            status=PASS if compressed else WARNING,
            severity=MAJOR,
            value=page.compression if compressed else "Not enabled",
        ),
        Check(
            test="Resource Hints",
            status=PASS if hint_total > 0 else WARNING,
            severity=MINOR,
            value=f"{hint_total} hints",
        ),
        Check(
            test="Modern Semantic HTML",
            status=PASS if len(page.semantic_html) >= 3 else WARNING,
            severity=MINOR,
            value=f"{len(page.semantic_html)} element types",
        ),
    ]

    if performance is not None and performance.mobile is not None:
        mobile_scores = performance.mobile.scores
        perf = mobile_scores.get("performance")
        a11y = mobile_scores.get("accessibility")
        checks.extend(c for c in (
            score_check(
                "Performance (vs 90+ standard)", perf, CRITICAL, fair=50,
                value=f"Mobile: {perf}/100",
            ),
            score_check(
                "Accessibility (vs 90+ standard)", a11y, MAJOR,
                value=f"Score: {a11y}/100",
            ),
        ) if c)

    return CheckResult(checks=checks, confidence=Confidence.MEDIUM)
