"""Search-engine optimisation checks."""
from typing import Optional

from ..models.check import Check, CheckResult, Confidence
from ..models.facts import PageFacts, PerformanceFacts, VisualFacts
from .base import (
    CRITICAL, FAIL, MAJOR, MINOR, PASS, WARNING,
    check_producer, grade_at_least, score_check, sub_audit_check,
)

PSI_SEO_AUDITS = [
    "seo_is_crawlable",
    "seo_link_text",
    "seo_font_size",
    "seo_meta_description",
    "seo_document_title",
]


def _title_check(title: str) -> Check:
    length = len(title)
    if 30 <= length <= 60:
        status, note = PASS, " (good)"
    elif not title:
        status, note = FAIL, ""
    elif length > 60:
        status, note = WARNING, " (too long)"
    else:
        status, note = WARNING, " (short)"
    return Check(
        test="Page Title",
        status=status,
        severity=CRITICAL,
        value=title or "(missing)",
        detail=f"Length: {length} chars{note}",
    )


def _description_check(description: str) -> Check:
    length = len(description)
    if 70 <= length <= 160:
        status = PASS
    else:
        status = WARNING if description else FAIL
    return Check(
        test="Meta Description",
        status=status,
        severity=CRITICAL,
        value=f"{description[:100]}..." if description else "(missing)",
        detail=f"Length: {length} chars",
    )


def _content_depth(word_count: int) -> str:
    if word_count >= 2500:
        return "Excellent depth"
    if word_count >= 1000:
        return "Good"
    if word_count >= 300:
        return "Thin"
    return "Very thin"


@check_producer("seo_analyzer")
def seo_analyzer(
    page: PageFacts,
    performance: Optional[PerformanceFacts] = None,
    visual: Optional[VisualFacts] = None,
) -> CheckResult:
    meta = page.meta_tags
    title = meta.get("title", "")
    description = meta.get("description", "")
    canonical = page.canonical_link or meta.get("canonical", "")
    og_title = meta.get("og:title", "")
    og_description = meta.get("og:description", "")
    og_image = meta.get("og:image", "")
    h1s, h2s, h3s = page.headings_at(1), page.headings_at(2), page.headings_at(3)
    images = page.images
    missing_alt = sum(1 for img in images if not img.alt)
    word_count = page.word_count
    twitter_card = page.twitter_cards.get("card")

    checks = [
        _title_check(title),
        _description_check(description),
        Check(
            test="Canonical Tag",
            status=PASS if canonical else FAIL,
            severity=MAJOR,
            value=canonical or "(missing)",
        ),
        Check(
            test="H1 Tag",
            status=PASS if len(h1s) == 1 else (FAIL if not h1s else WARNING),
            severity=CRITICAL,
            value=f"{len(h1s)} H1 tag(s)",
            detail=f'"{h1s[0][:80]}"' if h1s else "No H1 found",
        ),
        Check(
            test="Heading Hierarchy",
            status=PASS if len(h2s) >= 2 else WARNING,
            severity=MAJOR,
            value=f"H1:{len(h1s)} H2:{len(h2s)} H3:{len(h3s)}",
        ),
        Check(
            test="Content Length",
            status=grade_at_least(word_count, 1000, 300),
            severity=MAJOR,
            value=f"{word_count} words",
            detail=_content_depth(word_count),
        ),
        Check(
            test="Image Alt Text",
            status=WARNING if missing_alt else PASS,
            severity=MAJOR,
            value=f"{len(images) - missing_alt}/{len(images)} images have alt text",
        ),
        Check(
            test="Internal Links",
            status=PASS if page.links.internal_count >= 3 else WARNING,
            severity=MINOR,
            value=f"{page.links.internal_count} internal links",
        ),
        Check(
            test="External Links",
            status=PASS if page.links.external_count >= 1 else WARNING,
            severity=MINOR,
            value=f"{page.links.external_count} external links",
        ),
        Check(
            test="Open Graph Tags",
            status=PASS if og_title and og_description else FAIL,
            severity=MAJOR,
            value=(
                f"og:title: {'yes' if og_title else 'no'}, "
                f"og:description: {'yes' if og_description else 'no'}, "
                f"og:image: {'yes' if og_image else 'no'}"
            ),
        ),
        Check(
            test="Twitter Card Tags",
            status=PASS if twitter_card else WARNING,
            severity=MINOR,
            value=f"twitter:card={twitter_card}" if twitter_card else "No Twitter Cards found",
        ),
        Check(
            test="Robots.txt",
            status=PASS if page.robots_txt else WARNING,
            severity=MINOR,
            value="Present" if page.robots_txt else "Not found",
        ),
        Check(
            test="XML Sitemap",
            status=PASS if page.sitemap_exists else WARNING,
            severity=MINOR,
            value="Found" if page.sitemap_exists else "Not detected",
        ),
        Check(
            test="HTTPS",
            status=PASS if page.is_https else FAIL,
            severity=CRITICAL,
            value="HTTPS active" if page.is_https else "NOT using HTTPS",
        ),
        Check(
            test="Structured Data (JSON-LD)",
            status=PASS if page.structured_data else WARNING,
            severity=MINOR,
            value=(
                f"{len(page.structured_data)} schema(s)"
                if page.structured_data else "No structured data"
            ),
        ),
    ]

    lighthouse_seo = None
    if performance is not None:
        for key in PSI_SEO_AUDITS:
            check = sub_audit_check(performance.sub_audit(key), MAJOR)
            if check:
                checks.append(check)
        lighthouse_seo = performance.score("seo")
        check = score_check("Lighthouse SEO Score", lighthouse_seo, MAJOR)
        if check:
            checks.append(check)

    return CheckResult(
        checks=checks,
        confidence=Confidence.MEDIUM_HIGH,
        summary={
            "title": title,
            "description": description,
            "word_count": word_count,
            "lighthouse_seo": lighthouse_seo,
        },
    )
