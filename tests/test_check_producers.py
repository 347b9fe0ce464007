"""Tests for the deterministic check producers."""

import pytest

from pinpointer.checks import base, get_producer, registered_keys
from pinpointer.checks.base import check_producer, percent, zoom_disabled
from pinpointer.models.check import CheckResult, CheckStatus, Confidence, Severity
from pinpointer.models.facts import PageFacts
from pinpointer.skills.registry import DEFAULT_SKILLS


def by_test(result: CheckResult, name: str):
    matches = [c for c in result.checks if c.test == name]
    assert matches, f"no check named {name!r} in {[c.test for c in result.checks]}"
    return matches[0]


class TestRegistry:

    def test_every_category_has_a_producer(self):
        keys = set(registered_keys())
        assert {s.key for s in DEFAULT_SKILLS} <= keys

    def test_unknown_key_yields_empty_low_confidence(self, page_facts):
        result = get_producer("does_not_exist")(page_facts, None, None)
        assert result.checks == []
        assert result.confidence == Confidence.LOW

    def test_failing_producer_becomes_data_extraction_warning(self, page_facts):
        @check_producer("exploding_category")
        def exploding(page, performance=None, visual=None):
            raise ValueError("bad data")

        try:
            result = get_producer("exploding_category")(page_facts, None, None)
        finally:
            base._registry.pop("exploding_category", None)

        assert result.confidence == Confidence.LOW
        assert len(result.checks) == 1
        check = result.checks[0]
        assert check.test == "Data Extraction"
        assert check.status == CheckStatus.WARNING
        assert check.severity == Severity.MINOR
        assert check.value == "Extraction error: bad data"

    def test_producers_are_deterministic(self, page_facts, performance_facts, visual_facts):
        for skill in DEFAULT_SKILLS:
            producer = get_producer(skill.key)
            first = producer(page_facts, performance_facts, visual_facts)
            second = producer(page_facts, performance_facts, visual_facts)
            assert first.model_dump() == second.model_dump()

    @pytest.mark.parametrize("skill", DEFAULT_SKILLS, ids=lambda s: s.key)
    def test_empty_facts_never_raise(self, skill):
        result = get_producer(skill.key)(PageFacts(), None, None)
        assert all(c.test != "Data Extraction" for c in result.checks)


class TestGradingHelpers:

    def test_percent_rounds_half_up(self):
        assert percent(12, 40) == 30
        assert percent(1, 8) == 13
        assert percent(1, 3) == 33

    @pytest.mark.parametrize("viewport,expected", [
        ("width=device-width, initial-scale=1", False),
        ("width=device-width, user-scalable=no", True),
        ("width=device-width, maximum-scale=1", True),
        ("width=device-width, maximum-scale=1.0, initial-scale=1", True),
        ("width=device-width, maximum-scale=10", False),
    ])
    def test_zoom_disabled(self, viewport, expected):
        assert zoom_disabled(viewport) is expected


class TestSeoChecks:

    def test_well_formed_page(self, page_facts, performance_facts):
        result = get_producer("seo_analyzer")(page_facts, performance_facts, None)

        assert result.confidence == Confidence.MEDIUM_HIGH
        assert by_test(result, "Page Title").status == CheckStatus.PASS
        assert by_test(result, "HTTPS").status == CheckStatus.PASS
        assert by_test(result, "Canonical Tag").value == "https://acme.example/"
        assert by_test(result, "Structured Data (JSON-LD)").value == "1 schema(s)"
        assert by_test(result, "Lighthouse SEO Score").value == "95/100"
        assert by_test(result, "PSI: Document has a `<title>` element").status == CheckStatus.PASS

    def test_missing_title_and_plain_http(self):
        page = PageFacts(url="http://plain.example/")
        result = get_producer("seo_analyzer")(page, None, None)

        title = by_test(result, "Page Title")
        assert title.status == CheckStatus.FAIL
        assert title.value == "(missing)"
        assert by_test(result, "HTTPS").status == CheckStatus.FAIL
        assert not any(c.test.startswith("PSI:") for c in result.checks)

    def test_long_title_warns(self):
        page = PageFacts(url="https://a.example", meta_tags={"title": "x" * 61})
        result = get_producer("seo_analyzer")(page, None, None)
        assert by_test(result, "Page Title").detail == "Length: 61 chars (too long)"


class TestExperienceChecks:

    def test_ux_confidence_depends_on_visual_data(self, page_facts, visual_facts):
        producer = get_producer("ux_auditor")
        assert producer(page_facts, None, None).confidence == Confidence.LOW
        assert producer(page_facts, None, visual_facts).confidence == Confidence.MEDIUM_HIGH

    def test_ux_visual_checks(self, page_facts, visual_facts):
        result = get_producer("ux_auditor")(page_facts, None, visual_facts)

        assert by_test(result, "Above-Fold CTA (Desktop)").status == CheckStatus.PASS
        assert by_test(result, "Sticky Navigation").status == CheckStatus.PASS
        assert by_test(result, "Content Width").status == CheckStatus.WARNING
        tap = by_test(result, "Mobile Tap Target Size")
        assert tap.status == CheckStatus.FAIL
        assert "(30%)" in tap.value

    def test_ux_without_visual_has_no_rendered_checks(self, page_facts):
        result = get_producer("ux_auditor")(page_facts, None, None)
        assert not any(c.test == "Above-Fold CTA (Desktop)" for c in result.checks)

    def test_cro_confidence(self, page_facts, visual_facts):
        producer = get_producer("cro_analyzer")
        assert producer(page_facts, None, None).confidence == Confidence.MEDIUM
        assert producer(page_facts, None, visual_facts).confidence == Confidence.MEDIUM_HIGH


class TestSecurityChecks:

    def test_missing_csp_fails_and_server_disclosed(self, page_facts):
        result = get_producer("security_auditor")(page_facts, None, None)

        assert result.confidence == Confidence.HIGH
        assert by_test(result, "HSTS").status == CheckStatus.PASS
        assert by_test(result, "Content-Security-Policy").status == CheckStatus.FAIL
        assert by_test(result, "X-Frame-Options").status == CheckStatus.WARNING
        assert by_test(result, "Server Version Disclosure").status == CheckStatus.WARNING
        assert by_test(result, "Cookie Secure Flag").status == CheckStatus.PASS

    def test_insecure_cookie_fails(self):
        page = PageFacts.model_validate({
            "url": "https://a.example",
            "cookies": [{"name": "sid", "secure": False, "httponly": True, "samesite": "lax"}],
        })
        result = get_producer("security_auditor")(page, None, None)
        check = by_test(result, "Cookie Secure Flag")
        assert check.status == CheckStatus.FAIL
        assert check.value == "1 missing Secure: sid"

    def test_cloudflare_server_header_allowed(self):
        page = PageFacts(url="https://a.example", response_headers={"server": "cloudflare"})
        result = get_producer("security_auditor")(page, None, None)
        assert by_test(result, "Server Version Disclosure").status == CheckStatus.PASS


class TestPerformanceChecks:

    def test_core_web_vitals(self, page_facts, performance_facts):
        result = get_producer("performance_analyzer")(page_facts, performance_facts, None)

        lcp = by_test(result, "Core Web Vital: LCP")
        assert lcp.status == CheckStatus.FAIL
        assert lcp.severity == Severity.CRITICAL
        assert lcp.detail == "Good: <2500, Poor: >4000"
        assert by_test(result, "Core Web Vital: CLS").status == CheckStatus.PASS
        assert by_test(result, "Core Web Vital: TBT").status == CheckStatus.WARNING

    def test_scores_and_sub_audits(self, page_facts, performance_facts):
        result = get_producer("performance_analyzer")(page_facts, performance_facts, None)

        assert by_test(result, "Mobile Performance Score").status == CheckStatus.FAIL
        assert by_test(result, "Desktop Performance Score").status == CheckStatus.PASS
        blocking = by_test(result, "PSI: Eliminate render-blocking resources")
        assert blocking.status == CheckStatus.FAIL
        assert blocking.value == "Potential savings of 900 ms"
        assert by_test(result, "Response Compression").value == "brotli active"

    def test_without_pagespeed_only_page_checks(self, page_facts):
        result = get_producer("performance_analyzer")(page_facts, None, None)
        assert [c.test for c in result.checks] == [
            "Response Compression", "Resource Hints", "Image Lazy Loading",
        ]

    def test_mobile_rendered_tap_targets(self, page_facts, performance_facts, visual_facts):
        result = get_producer("mobile_responsiveness")(page_facts, performance_facts, visual_facts)

        rendered = by_test(result, "Tap Target Size (Rendered)")
        assert rendered.status == CheckStatus.FAIL
        assert rendered.value == "30% of targets under 44px"
        psi = by_test(result, "PSI: Tap targets are sized appropriately")
        assert psi.status == CheckStatus.WARNING
        assert psi.detail == "a.footer-link; button.close"
        assert by_test(result, "No Horizontal Scroll").status == CheckStatus.PASS

    def test_zoom_disabled_fails(self):
        page = PageFacts(url="https://a.example", viewport="width=device-width, user-scalable=no")
        result = get_producer("mobile_responsiveness")(page, None, None)
        assert by_test(result, "Pinch-to-Zoom").status == CheckStatus.FAIL
