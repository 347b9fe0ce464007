"""
Performance and mobile responsiveness checks.

Both categories lean on PageSpeed Insights data. Core Web Vitals are graded
against the published good/poor thresholds; mobile strategy values are
preferred over desktop ones.
"""
from typing import Dict, Optional, Tuple

from ..models.check import Check, CheckResult, Confidence
from ..models.facts import PageFacts, PerformanceFacts, VisualFacts
from .base import (
    CRITICAL, FAIL, MAJOR, MINOR, PASS, WARNING,
    check_producer, grade_at_most, percent, score_check,
    sub_audit_check, zoom_disabled,
)

# metric -> (good, poor)
CORE_WEB_VITALS: Dict[str, Tuple[float, float]] = {
    "LCP": (2500, 4000),
    "FCP": (1800, 3000),
    "TBT": (200, 600),
    "CLS": (0.1, 0.25),
    "SI": (3400, 5800),
    "TTFB": (800, 1800),
}

CRITICAL_VITALS = {"LCP", "CLS", "TBT"}

PERFORMANCE_AUDITS = {
    "perf_render_blocking": CRITICAL,
    "perf_unused_css": MAJOR,
    "perf_unused_js": MAJOR,
    "perf_total_byte_weight": MAJOR,
    "perf_dom_size": MINOR,
    "perf_font_display": MINOR,
    "perf_image_optim": MAJOR,
    "perf_modern_formats": MAJOR,
    "perf_offscreen_images": MAJOR,
    "perf_minified_css": MINOR,
    "perf_minified_js": MINOR,
    "perf_text_compression": MAJOR,
    "perf_redirects": MINOR,
    "perf_responsive_images": MAJOR,
    "perf_preconnect": MINOR,
    "perf_bootup": MAJOR,
    "perf_mainthread": MAJOR,
}


def _format_threshold(value: float) -> str:
    return f"{value:g}"


def _strategy_score(performance: Optional[PerformanceFacts], strategy: str, category: str):
    if performance is None:
        return None
    facts = getattr(performance, strategy)
    return facts.scores.get(category) if facts is not None else None


def _lazy_loading(page: PageFacts) -> Tuple[int, int, bool]:
    lazy = sum(1 for img in page.images if img.loading == "lazy")
    total = len(page.images)
    return lazy, total, lazy > 0 or total <= 3


@check_producer("performance_analyzer")
def performance_analyzer(
    page: PageFacts,
    performance: Optional[PerformanceFacts] = None,
    visual: Optional[VisualFacts] = None,
) -> CheckResult:
    mobile_perf = _strategy_score(performance, "mobile", "performance")
    desktop_perf = _strategy_score(performance, "desktop", "performance")
    checks = [
        c for c in (
            score_check("Mobile Performance Score", mobile_perf, CRITICAL, fair=50),
            score_check("Desktop Performance Score", desktop_perf, CRITICAL, fair=50),
        ) if c
    ]

    if performance is not None:
        for name, (good, poor) in CORE_WEB_VITALS.items():
            metric = performance.metric(name)
            if metric is None or metric.numeric_value is None:
                continue
            checks.append(Check(
                test=f"Core Web Vital: {name}",
                status=grade_at_most(metric.numeric_value, good, poor),
                severity=CRITICAL if name in CRITICAL_VITALS else MAJOR,
                value=metric.value or str(int(metric.numeric_value + 0.5)),
                detail=f"Good: <{_format_threshold(good)}, Poor: >{_format_threshold(poor)}",
            ))
        for key, severity in PERFORMANCE_AUDITS.items():
            check = sub_audit_check(
                performance.sub_audit(key),
                severity,
                failed_status=FAIL if severity == CRITICAL else WARNING,
                failed_value="Needs improvement",
            )
            if check:
                checks.append(check)

    compressed = page.compression != "none"
    hints = page.resource_hints
    lazy, total, lazy_ok = _lazy_loading(page)
    checks.extend([
        Check(
            test="Response Compression",
            status=PASS if compressed else WARNING,
            severity=MAJOR,
            value=f"{page.compression} active" if compressed else "No compression detected",
        ),
        Check(
            test="Resource Hints",
            status=PASS if hints.total > 0 else WARNING,
            severity=MINOR,
            value=(
                f"preload:{hints.preload}, prefetch:{hints.prefetch}, preconnect:{hints.preconnect}"
                if hints.total > 0 else "No resource hints"
            ),
        ),
        Check(
            test="Image Lazy Loading",
            status=PASS if lazy_ok else WARNING,
            severity=MAJOR,
            value=f"{lazy}/{total} images lazy loaded",
        ),
    ])

    return CheckResult(
        checks=checks,
        confidence=Confidence.HIGH,
        summary={"mobile_perf": mobile_perf, "desktop_perf": desktop_perf},
    )


@check_producer("mobile_responsiveness")
def mobile_responsiveness(
    page: PageFacts,
    performance: Optional[PerformanceFacts] = None,
    visual: Optional[VisualFacts] = None,
) -> CheckResult:
    viewport = page.viewport
    checks = [
        Check(
            test="Viewport Meta Tag",
            status=PASS if viewport else FAIL,
            severity=CRITICAL,
            value=viewport or "Not set",
        )
    ]
    if zoom_disabled(viewport):
        checks.append(Check(
            test="Pinch-to-Zoom",
            status=FAIL,
            severity=MAJOR,
            value="Zoom is disabled, bad for accessibility",
        ))

    mobile_perf = _strategy_score(performance, "mobile", "performance")
    checks.extend(c for c in (
        score_check("Mobile Performance", mobile_perf, CRITICAL, fair=50),
        score_check("Mobile SEO", _strategy_score(performance, "mobile", "seo"), MAJOR),
        score_check(
            "Mobile Accessibility",
            _strategy_score(performance, "mobile", "accessibility"),
            MAJOR,
        ),
    ) if c)

    if performance is not None:
        for key in ("a11y_tap_targets", "seo_font_size"):
            check = sub_audit_check(performance.sub_audit(key, mobile_only=True), MAJOR)
            if check:
                checks.append(check)

    lazy, total, lazy_ok = _lazy_loading(page)
    checks.append(Check(
        test="Mobile Image Optimization",
        status=PASS if lazy_ok else WARNING,
        severity=MAJOR,
        value=f"{lazy}/{total} lazy loaded",
    ))

    if visual is not None:
        data = visual.mobile.data
        if data.has_horizontal_overflow is not None:
            checks.append(Check(
                test="No Horizontal Scroll",
                status=FAIL if data.has_horizontal_overflow else PASS,
                severity=CRITICAL,
                value=(
                    "Horizontal scrollbar detected on mobile"
                    if data.has_horizontal_overflow else "No horizontal overflow"
                ),
            ))
        if data.tap_targets_total > 0:
            pct = percent(data.tap_targets_too_small, data.tap_targets_total)
            checks.append(Check(
                test="Tap Target Size (Rendered)",
                status=PASS if pct <= 5 else (WARNING if pct <= 20 else FAIL),
                severity=MAJOR,
                value=f"{pct}% of targets under 44px",
                detail=f"{data.tap_targets_too_small} of {data.tap_targets_total} interactive elements",
            ))

    return CheckResult(
        checks=checks,
        confidence=Confidence.HIGH,
        summary={
            "has_viewport": bool(viewport),
            "mobile_perf": mobile_perf,
            "has_visual_data": visual is not None,
        },
    )
