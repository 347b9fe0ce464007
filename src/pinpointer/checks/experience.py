"""User experience, visual design and conversion checks."""
import re
from typing import List, Optional

from ..models.check import Check, CheckResult, Confidence
from ..models.facts import PageFacts, PerformanceFacts, ViewportData, VisualFacts
from .base import (
    CRITICAL, FAIL, MAJOR, MINOR, PASS, WARNING,
    check_producer, percent, score_check, sub_audit_check,
)

_LEADING_INT = re.compile(r"^\s*(-?\d+)")


def _visible_ctas(data: ViewportData):
    return [cta for cta in data.ctas_above_fold if cta.is_visible]


def _tap_target_check(data: ViewportData) -> Optional[Check]:
    if data.tap_targets_total <= 0:
        return None
    pct = percent(data.tap_targets_too_small, data.tap_targets_total)
    return Check(
        test="Mobile Tap Target Size",
        status=PASS if pct <= 5 else (WARNING if pct <= 20 else FAIL),
        severity=MAJOR,
        value=f"{data.tap_targets_too_small}/{data.tap_targets_total} targets too small ({pct}%)",
        detail="Minimum recommended: 44x44px",
    )


def _ux_visual_checks(visual: VisualFacts) -> List[Check]:
    desktop = visual.desktop.data
    mobile = visual.mobile.data
    visible = _visible_ctas(desktop)

    checks = [
        Check(
            test="Above-Fold CTA (Desktop)",
            status=PASS if visible else FAIL,
            severity=CRITICAL,
            value=f"{len(visible)} visible CTA(s) above fold",
            detail=", ".join(
                f'"{c.text}" ({c.width}x{c.height}px)' for c in visible[:3]
            ) or "None found",
        )
    ]
    if desktop.nav_is_fixed is not None:
        checks.append(Check(
            test="Sticky Navigation",
            status=PASS if desktop.nav_is_fixed else WARNING,
            severity=MINOR,
            value=(
                f"Fixed nav ({desktop.nav_height}px height)"
                if desktop.nav_is_fixed else "Navigation is not fixed/sticky"
            ),
        ))
    tap = _tap_target_check(mobile)
    if tap:
        checks.append(tap)
    if mobile.has_horizontal_overflow is not None:
        checks.append(Check(
            test="Mobile Horizontal Overflow",
            status=FAIL if mobile.has_horizontal_overflow else PASS,
            severity=MAJOR,
            value=(
                "Page has horizontal scroll on mobile"
                if mobile.has_horizontal_overflow else "No horizontal overflow detected"
            ),
        ))
    if desktop.content_max_width_percent and desktop.content_max_width_percent > 0:
        wide = desktop.content_max_width_percent > 80
        checks.append(Check(
            test="Content Width",
            status=WARNING if wide else PASS,
            severity=MINOR,
            value=(
                f"Content area: {desktop.content_width}px "
                f"({desktop.content_max_width_percent}% of viewport)"
            ),
            detail="Very wide, may hurt readability" if wide else "Good readable width",
        ))
    return checks


@check_producer("ux_auditor")
def ux_auditor(
    page: PageFacts,
    performance: Optional[PerformanceFacts] = None,
    visual: Optional[VisualFacts] = None,
) -> CheckResult:
    nav = page.nav_items
    ctas = page.ctas
    h1_count = len(page.headings_at(1))
    h2_count = len(page.headings_at(2))
    semantic = page.semantic_html
    has_main = bool(semantic.get("main") or semantic.get("article"))
    has_header = bool(semantic.get("header"))
    has_footer = bool(semantic.get("footer"))
    trust = page.trust_signals
    forms = page.form_accessibility

    checks = [
        Check(
            test="Navigation Present",
            status=PASS if nav else FAIL,
            severity=CRITICAL,
            value=f"{len(nav)} nav items",
            detail=", ".join(nav[:8]) or None,
        ),
        Check(
            test="Content Hierarchy",
            status=PASS if h1_count >= 1 and h2_count >= 2 else WARNING,
            severity=MAJOR,
            value=f"H1:{h1_count} H2:{h2_count}",
        ),
        Check(
            test="Primary CTA Visible",
            status=PASS if ctas else FAIL,
            severity=CRITICAL,
            value=f"CTAs: {', '.join(ctas[:3])}" if ctas else "No CTAs detected",
        ),
        Check(
            test="Semantic Page Structure",
            status=PASS if has_main and has_header and has_footer else WARNING,
            severity=MAJOR,
            value=(
                f"header:{'yes' if has_header else 'no'}, "
                f"main:{'yes' if has_main else 'no'}, "
                f"footer:{'yes' if has_footer else 'no'}"
            ),
        ),
    ]
    if forms.total_inputs > 0:
        checks.append(Check(
            test="Form Usability",
            status=PASS if forms.all_labeled else WARNING,
            severity=MINOR,
            value=(
                "All inputs labeled" if forms.all_labeled
                else f"{len(forms.unlabeled_inputs)} unlabeled inputs"
            ),
        ))

    signals = [
        label for label, present in (
            ("Testimonials", trust.has_testimonials),
            ("Privacy policy", trust.has_privacy_policy),
        ) if present
    ]
    checks.append(Check(
        test="Trust Signals",
        status=PASS if signals else WARNING,
        severity=MINOR,
        value=", ".join(signals) or "Limited trust signals",
    ))
    checks.append(Check(
        test="Internal Navigation",
        status=PASS if page.links.internal_count >= 5 else WARNING,
        severity=MINOR,
        value=f"{page.links.internal_count} internal links",
    ))

    if visual is not None:
        checks.extend(_ux_visual_checks(visual))

    return CheckResult(
        checks=checks,
        confidence=Confidence.MEDIUM_HIGH if visual is not None else Confidence.LOW,
        summary={
            "nav_items": len(nav),
            "cta_count": len(ctas),
            "has_visual_data": visual is not None,
        },
    )


def _ui_visual_checks(visual: VisualFacts) -> List[Check]:
    desktop = visual.desktop.data
    checks = []

    if desktop.body_font_family:
        checks.append(Check(
            test="Typography (Body)",
            status=PASS,
            severity=MINOR,
            value=f"Font: {desktop.body_font_family[:60]}",
            detail=f"Size: {desktop.body_font_size}",
        ))
    if desktop.h1_font_size:
        match = _LEADING_INT.match(desktop.h1_font_size)
        prominent = bool(match) and int(match.group(1)) >= 28
        checks.append(Check(
            test="H1 Typography",
            status=PASS if prominent else WARNING,
            severity=MINOR,
            value=f"Size: {desktop.h1_font_size}, Weight: {desktop.h1_font_weight}",
            detail=(
                "Good visual prominence" if prominent
                else "H1 may be too small for visual hierarchy"
            ),
        ))
    if desktop.ctas_above_fold:
        primary = desktop.ctas_above_fold[0]
        good_size = primary.width >= 120 and primary.height >= 40
        checks.append(Check(
            test="Primary CTA Button Size",
            status=PASS if good_size else WARNING,
            severity=MAJOR,
            value=f'{primary.width}x{primary.height}px: "{primary.text}"',
            detail=(
                "Good click target size" if good_size
                else "Button may be too small for prominence"
            ),
        ))
    if desktop.oversized_images > 0:
        checks.append(Check(
            test="Image Size Optimization",
            status=WARNING,
            severity=MAJOR,
            value=f"{desktop.oversized_images} images are significantly larger than displayed",
            detail="Serving images 2.5x+ their display size wastes bandwidth",
        ))
    if desktop.high_z_index_elements > 3:
        checks.append(Check(
            test="Z-Index Complexity",
            status=WARNING,
            severity=MINOR,
            value=f"{desktop.high_z_index_elements} elements with z-index > 1000",
            detail="May indicate stacking context issues",
        ))
    return checks


@check_producer("ui_auditor")
def ui_auditor(
    page: PageFacts,
    performance: Optional[PerformanceFacts] = None,
    visual: Optional[VisualFacts] = None,
) -> CheckResult:
    css_count = page.stylesheet_count
    inline_styles = page.inline_styles
    images = page.images
    no_dimensions = sum(1 for img in images if not img.width and not img.height)

    checks = [
        Check(
            test="CSS Stylesheets",
            status=PASS if css_count >= 1 else WARNING,
            severity=MAJOR,
            value=f"{css_count} stylesheets",
        ),
        Check(
            test="Inline Style Usage",
            status=PASS if inline_styles <= 5 else (WARNING if inline_styles <= 20 else FAIL),
            severity=MINOR,
            value=f"{inline_styles} inline style attributes",
            detail="Excessive, hurts maintainability" if inline_styles > 20 else None,
        ),
        Check(
            test="Visual Content",
            status=PASS if len(images) >= 2 else WARNING,
            severity=MINOR,
            value=f"{len(images)} images",
        ),
    ]
    if no_dimensions:
        checks.append(Check(
            test="Image Dimensions Set",
            status=WARNING,
            severity=MINOR,
            value=f"{no_dimensions}/{len(images)} missing width/height",
            detail="Causes layout shift (CLS)",
        ))
    checks.append(Check(
        test="Heading Hierarchy",
        status=PASS if page.headings_at(1) else WARNING,
        severity=MINOR,
        value=f"H1:{len(page.headings_at(1))} H2:{len(page.headings_at(2))}",
    ))
    checks.append(Check(
        test="Semantic HTML Structure",
        status=PASS if len(page.semantic_html) >= 3 else WARNING,
        severity=MINOR,
        value=f"{len(page.semantic_html)} semantic element types",
    ))

    if performance is not None:
        best_practices = score_check(
            "Lighthouse Best Practices", performance.score("best-practices"), MAJOR
        )
        console = sub_audit_check(
            performance.sub_audit("bp_errors_in_console"), MAJOR,
            passed_value="No console errors", failed_value="Console errors detected",
        )
        contrast = sub_audit_check(
            performance.sub_audit("a11y_color_contrast"), MAJOR,
            passed_value="Sufficient contrast", failed_value="Contrast issues detected",
        )
        checks.extend(c for c in (best_practices, console, contrast) if c)

    if visual is not None:
        checks.extend(_ui_visual_checks(visual))

    return CheckResult(
        checks=checks,
        confidence=Confidence.MEDIUM_HIGH if visual is not None else Confidence.LOW,
        summary={
            "css_count": css_count,
            "image_count": len(images),
            "inline_styles": inline_styles,
            "has_visual_data": visual is not None,
        },
    )


@check_producer("cro_analyzer")
def cro_analyzer(
    page: PageFacts,
    performance: Optional[PerformanceFacts] = None,
    visual: Optional[VisualFacts] = None,
) -> CheckResult:
    ctas = page.ctas
    forms = page.forms
    trust = page.trust_signals
    h1s = page.headings_at(1)

    checks = [
        Check(
            test="Call-to-Action Presence",
            status=PASS if ctas else FAIL,
            severity=CRITICAL,
            value=f"{len(ctas)} CTA(s)",
            detail=", ".join(ctas[:5]) or None,
        ),
        Check(
            test="Lead Capture Forms",
            status=PASS if forms else WARNING,
            severity=MAJOR,
            value=f"{len(forms)} form(s)",
        ),
    ]
    for i, form in enumerate(forms[:3], start=1):
        checks.append(Check(
            test=f"Form #{i} Complexity",
            status=PASS if form.fields <= 5 else WARNING,
            severity=MINOR,
            value=f"{form.fields} fields" + (", high friction" if form.fields > 7 else ""),
        ))
    checks.extend([
        Check(
            test="Testimonials/Reviews",
            status=PASS if trust.has_testimonials else WARNING,
            severity=MAJOR,
            value="Detected" if trust.has_testimonials else "Not detected",
        ),
        Check(
            test="Social Proof",
            status=PASS if trust.has_social_proof else WARNING,
            severity=MAJOR,
            value="Present" if trust.has_social_proof else "Not detected",
        ),
        Check(
            test="Privacy Policy",
            status=PASS if trust.has_privacy_policy else WARNING,
            severity=MAJOR,
            value="Linked" if trust.has_privacy_policy else "Not found",
        ),
        Check(
            test="Headline/Value Proposition",
            status=PASS if h1s else FAIL,
            severity=CRITICAL,
            value=f'"{h1s[0][:80]}"' if h1s else "No H1, unclear value proposition",
        ),
    ])

    if visual is not None:
        visible = _visible_ctas(visual.desktop.data)
        checks.append(Check(
            test="Above-Fold CTA Visibility",
            status=PASS if visible else FAIL,
            severity=CRITICAL,
            value=f"{len(visible)} CTA(s) visible above fold",
            detail=", ".join(f'"{c.text}"' for c in visible) or "None visible without scrolling",
        ))

    return CheckResult(
        checks=checks,
        confidence=Confidence.MEDIUM_HIGH if visual is not None else Confidence.MEDIUM,
        summary={
            "cta_count": len(ctas),
            "form_count": len(forms),
            "has_visual_data": visual is not None,
        },
    )
