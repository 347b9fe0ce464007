"""Accessibility checks (WCAG-oriented)."""
from typing import Optional

from ..models.check import Check, CheckResult, Confidence
from ..models.facts import PageFacts, PerformanceFacts, VisualFacts
from .base import (
    CRITICAL, FAIL, MAJOR, MINOR, PASS, WARNING,
    check_producer, score_check, sub_audit_check, zoom_disabled,
)

A11Y_AUDITS = [
    "a11y_color_contrast",
    "a11y_heading_order",
    "a11y_image_alt",
    "a11y_label",
    "a11y_button_name",
    "a11y_link_name",
    "a11y_duplicate_id",
    "a11y_html_has_lang",
    "a11y_html_lang_valid",
    "a11y_meta_viewport",
    "a11y_tap_targets",
]

CRITICAL_A11Y_AUDITS = {
    "a11y_color_contrast",
    "a11y_image_alt",
    "a11y_label",
    "a11y_html_has_lang",
    "a11y_html_lang_valid",
}


@check_producer("accessibility_auditor")
def accessibility_auditor(
    page: PageFacts,
    performance: Optional[PerformanceFacts] = None,
    visual: Optional[VisualFacts] = None,
) -> CheckResult:
    images = page.images
    missing_alt = sum(1 for img in images if not img.alt)
    forms = page.form_accessibility
    landmarks = list(page.aria_landmarks)
    semantic = list(page.semantic_html)

    checks = [
        Check(
            test="HTML lang Attribute",
            status=PASS if page.language else FAIL,
            severity=CRITICAL,
            value=page.language or "Not set",
            detail="WCAG 3.1.1",
        ),
        Check(
            test="Image Alt Text",
            status=FAIL if missing_alt else PASS,
            severity=CRITICAL,
            value=(
                f"{missing_alt}/{len(images)} images missing alt text"
                if missing_alt else f"All {len(images)} images have alt text"
            ),
            detail="WCAG 1.1.1",
        ),
    ]

    if performance is not None:
        for key in A11Y_AUDITS:
            critical = key in CRITICAL_A11Y_AUDITS
            check = sub_audit_check(
                performance.sub_audit(key),
                CRITICAL if critical else MAJOR,
                failed_status=FAIL if critical else WARNING,
            )
            if check:
                checks.append(check)

    if zoom_disabled(page.viewport):
        checks.append(Check(
            test="Zoom Not Disabled",
            status=FAIL,
            severity=MAJOR,
            value="Pinch-to-zoom is disabled",
            detail="WCAG 1.4.4",
        ))
    if forms.total_inputs > 0:
        checks.append(Check(
            test="Form Input Labels (HTML)",
            status=PASS if forms.all_labeled else WARNING,
            severity=MAJOR,
            value=(
                f"All {forms.total_inputs} inputs labeled" if forms.all_labeled
                else f"{len(forms.unlabeled_inputs)} unlabeled"
            ),
        ))
    checks.append(Check(
        test="ARIA Landmarks",
        status=PASS if landmarks else WARNING,
        severity=MINOR,
        value=f"{len(landmarks)} roles: {', '.join(landmarks)}" if landmarks else "None found",
    ))
    checks.append(Check(
        test="Semantic HTML5 Elements",
        status=PASS if len(semantic) >= 3 else WARNING,
        severity=MINOR,
        value=f"{len(semantic)} types: {', '.join(semantic[:6])}",
    ))

    lighthouse_a11y = performance.score("accessibility") if performance else None
    check = score_check("Lighthouse Accessibility Score", lighthouse_a11y, CRITICAL)
    if check:
        checks.append(check)

    return CheckResult(
        checks=checks,
        confidence=Confidence.MEDIUM_HIGH,
        summary={
            "lang": page.language,
            "images_missing_alt": missing_alt,
            "lighthouse_a11y": lighthouse_a11y,
        },
    )
