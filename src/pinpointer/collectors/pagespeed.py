"""
PageSpeed Insights collector.

Runs Lighthouse through the PageSpeed Insights API for the mobile and desktop
strategies and condenses each result into StrategyFacts.
"""
import asyncio
import json
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from ..core.config import settings
from ..core.logging import logger
from ..models.facts import (
    FailedAudit,
    MetricFacts,
    Opportunity,
    PerformanceFacts,
    StrategyFacts,
    SubAudit,
)
from ..utils.retry import CallOutcome, OutcomeKind, RetryPolicy, exponential_backoff, resilient_call

STRATEGIES = ("mobile", "desktop")
CATEGORIES = ("performance", "accessibility", "seo", "best-practices")

METRIC_AUDITS = {
    "first-contentful-paint": "FCP",
    "largest-contentful-paint": "LCP",
    "total-blocking-time": "TBT",
    "cumulative-layout-shift": "CLS",
    "speed-index": "SI",
    "interactive": "TTI",
    "server-response-time": "TTFB",
}

# Lighthouse audit id -> sub-audit key used by the check producers
SUB_AUDIT_MAP = {
    "is-crawlable": "seo_is_crawlable",
    "canonical": "seo_canonical",
    "link-text": "seo_link_text",
    "font-size": "seo_font_size",
    "meta-description": "seo_meta_description",
    "document-title": "seo_document_title",
    "http-status-code": "seo_http_status",
    "hreflang": "seo_hreflang",
    "robots-txt": "seo_robots_txt",
    "crawlable-anchors": "seo_crawlable_anchors",
    "color-contrast": "a11y_color_contrast",
    "heading-order": "a11y_heading_order",
    "image-alt": "a11y_image_alt",
    "label": "a11y_label",
    "button-name": "a11y_button_name",
    "link-name": "a11y_link_name",
    "duplicate-id-active": "a11y_duplicate_id",
    "html-has-lang": "a11y_html_has_lang",
    "html-lang-valid": "a11y_html_lang_valid",
    "meta-viewport": "a11y_meta_viewport",
    "tabindex": "a11y_tabindex",
    "td-headers-attr": "a11y_table_headers",
    "aria-allowed-attr": "a11y_aria_allowed",
    "aria-required-attr": "a11y_aria_required",
    "video-caption": "a11y_video_caption",
    "tap-targets": "a11y_tap_targets",
    "list": "a11y_list",
    "listitem": "a11y_listitem",
    "render-blocking-resources": "perf_render_blocking",
    "unused-css-rules": "perf_unused_css",
    "unused-javascript": "perf_unused_js",
    "total-byte-weight": "perf_total_byte_weight",
    "dom-size": "perf_dom_size",
    "font-display": "perf_font_display",
    "uses-optimized-images": "perf_image_optim",
    "modern-image-formats": "perf_modern_formats",
    "offscreen-images": "perf_offscreen_images",
    "unminified-css": "perf_minified_css",
    "unminified-javascript": "perf_minified_js",
    "uses-text-compression": "perf_text_compression",
    "redirects": "perf_redirects",
    "uses-responsive-images": "perf_responsive_images",
    "uses-rel-preconnect": "perf_preconnect",
    "uses-rel-preload": "perf_preload",
    "efficient-animated-content": "perf_animated_content",
    "third-party-summary": "perf_third_party",
    "bootup-time": "perf_bootup",
    "mainthread-work-breakdown": "perf_mainthread",
    "is-on-https": "bp_https",
    "no-vulnerable-libraries": "bp_no_vulnerable_libs",
    "errors-in-console": "bp_errors_in_console",
    "csp-xss": "bp_csp_xss",
    "geolocation-on-start": "bp_geolocation",
    "notification-on-start": "bp_notification",
    "deprecations": "bp_deprecations",
    "image-aspect-ratio": "bp_image_aspect_ratio",
    "image-size-responsive": "bp_image_size_responsive",
}

PASS_THRESHOLD = 0.9
MAX_OPPORTUNITIES = 10
MAX_FAILED_AUDITS = 30
MAX_FAILING_ITEMS = 5


def _percent(score: float) -> int:
    return int(score * 100 + 0.5)


def _describe_item(item: Dict[str, Any]) -> str:
    node = item.get("node") or {}
    source = item.get("source") or {}
    return (
        node.get("snippet")
        or node.get("explanation")
        or item.get("url")
        or source.get("url")
        or item.get("label")
        or item.get("description")
        or json.dumps(item)[:100]
    )


def parse_pagespeed_result(data: Dict[str, Any]) -> StrategyFacts:
    """
    Condense one PageSpeed Insights response.

    Args:
        data: Decoded runPagespeed response body

    Returns:
        Category scores, metrics, opportunities, failed audits and sub-audits
    """
    lighthouse = data.get("lighthouseResult") or {}
    categories = lighthouse.get("categories") or {}
    audits = lighthouse.get("audits") or {}

    scores = {
        name: _percent(categories[name]["score"])
        for name in CATEGORIES
        if (categories.get(name) or {}).get("score") is not None
    }

    metrics = {
        name: MetricFacts(
            value=audits[audit_id].get("displayValue"),
            numeric_value=audits[audit_id].get("numericValue"),
            score=audits[audit_id].get("score"),
        )
        for audit_id, name in METRIC_AUDITS.items()
        if audit_id in audits
    }

    opportunities = []
    for audit in audits.values():
        details = audit.get("details") or {}
        savings = details.get("overallSavingsMs") or 0
        if details.get("type") == "opportunity" and savings > 0:
            opportunities.append(Opportunity(
                title=audit.get("title", ""),
                savings=f"{savings:g}ms",
                description=(audit.get("description") or "")[:200],
            ))

    failed_audits = [
        FailedAudit(
            id=audit_id,
            title=audit["title"],
            score=audit["score"],
            display_value=audit.get("displayValue") or "",
        )
        for audit_id, audit in audits.items()
        if audit.get("score") is not None and audit["score"] < 1 and audit.get("title")
    ]

    sub_audits = {}
    for audit_id, key in SUB_AUDIT_MAP.items():
        audit = audits.get(audit_id)
        if not audit:
            continue
        score = audit.get("score")
        items = (audit.get("details") or {}).get("items") or []
        sub_audits[key] = SubAudit(
            title=audit.get("title", ""),
            passed=None if score is None else score >= PASS_THRESHOLD,
            score=score,
            display=audit.get("displayValue") or "",
            failing_items=[_describe_item(item) for item in items[:MAX_FAILING_ITEMS]],
        )

    return StrategyFacts(
        scores=scores,
        metrics=metrics,
        opportunities=opportunities[:MAX_OPPORTUNITIES],
        failed_audits=failed_audits[:MAX_FAILED_AUDITS],
        sub_audits=sub_audits,
    )


class PageSpeedCollector:
    """Collects PerformanceFacts from the PageSpeed Insights API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.api_key = api_key if api_key is not None else settings.PSI_KEY
        self.transport = transport
        self.policy = policy or RetryPolicy(
            max_attempts=settings.PSI_MAX_ATTEMPTS,
            backoff=exponential_backoff(2.0, 10.0),
            retry_exceptions=(httpx.TransportError,),
        )
        self.sleep = sleep

    async def _run_strategy(self, client: httpx.AsyncClient, url: str, strategy: str) -> Optional[StrategyFacts]:
        params = [("url", url), ("strategy", strategy), ("key", self.api_key)]
        params.extend(("category", name) for name in CATEGORIES)

        async def attempt() -> CallOutcome:
            response = await client.get(settings.PSI_BASE_URL, params=params)
            if response.status_code == 429:
                return CallOutcome(OutcomeKind.RATE_LIMITED, status_code=429)
            if response.status_code >= 500:
                return CallOutcome(OutcomeKind.UNAVAILABLE, status_code=response.status_code)
            if response.status_code >= 400:
                return CallOutcome(OutcomeKind.FAILED, status_code=response.status_code)
            try:
                return CallOutcome(OutcomeKind.OK, value=response.json())
            except ValueError:
                return CallOutcome(OutcomeKind.MALFORMED, detail="non-JSON body")

        outcome = await resilient_call(attempt, self.policy, label=f"PSI {strategy}", sleep=self.sleep)
        if outcome is None or not outcome.ok:
            status = outcome.status_code if outcome else None
            logger.error(f"PSI {strategy}: no result (status {status})")
            return None

        facts = parse_pagespeed_result(outcome.value)
        logger.info(
            f"PSI {strategy}: perf={facts.scores.get('performance')}, seo={facts.scores.get('seo')}, "
            f"a11y={facts.scores.get('accessibility')}, bp={facts.scores.get('best-practices')}"
        )
        return facts

    async def collect(self, url: str) -> Optional[PerformanceFacts]:
        """
        Run both strategies.

        Returns:
            PerformanceFacts with whichever strategies succeeded, or None when
            there is no API key or neither strategy produced a result
        """
        if not self.api_key:
            logger.info("PSI key not configured, skipping PageSpeed Insights")
            return None

        logger.info(f"Running PageSpeed Insights for {url}")
        results: Dict[str, StrategyFacts] = {}
        async with httpx.AsyncClient(timeout=settings.PSI_TIMEOUT, transport=self.transport) as client:
            for strategy in STRATEGIES:
                try:
                    facts = await self._run_strategy(client, url, strategy)
                except Exception as e:
                    logger.error(f"PSI {strategy} error: {e}")
                    continue
                if facts is not None:
                    results[strategy] = facts

        if not results:
            return None
        return PerformanceFacts(**results)
