"""Prompt content builders."""
import json
from typing import Any, Dict, List, Mapping, Optional

from ..models.check import Check
from ..models.facts import PageFacts, PerformanceFacts, VisualFacts

MAX_PROMPT_CHECKS = 25
MAX_CRAWL_CHARS = 20000
MAX_PERFORMANCE_CHARS = 5000
MAX_VISUAL_CHARS = 3000
MAX_FALLBACK_CHECK_CHARS = 12000

SUMMARY_SYSTEM_PROMPT = (
    "You are a senior website consultant. Write a 3-paragraph executive summary "
    "and top 5 priority actions. Return JSON: "
    '{"executive_summary":"...","top_priorities":["..."]}'
)

SIMPLIFIED_PROMPT_TEMPLATE = (
    "You are a website {role}. Based on the automated checks and crawl data, "
    'return JSON with: {{"overall_score": 0-100, "findings": {{"critical": '
    '[{{"issue":"","details":"","fix":""}}], "warnings": [{{"issue":"","details":"","fix":""}}], '
    '"passed": [{{"issue":"","details":""}}]}}, "recommendations": '
    '[{{"priority":"high","action":"","impact":""}}]}}. '
    "Base your score on the actual data. Max 4 items per category."
)


def _dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)


def checks_json(checks: List[Check]) -> str:
    return _dumps([c.model_dump(mode="json", exclude_none=True) for c in checks[:MAX_PROMPT_CHECKS]])


def build_category_content(
    url: str,
    checks: List[Check],
    page: PageFacts,
    performance: Optional[PerformanceFacts],
    visual: Optional[VisualFacts],
    vision: bool = False,
) -> str:
    """
    User content for a category review.

    Args:
        url: Audited URL
        checks: The category's graded checks
        page: Page facts
        performance: PageSpeed facts, if collected
        visual: Rendered-page facts, if captured
        vision: Whether screenshots accompany this prompt
    """
    perf_text = (
        _dumps(performance.condensed())[:MAX_PERFORMANCE_CHARS]
        if performance is not None else "Not available"
    )
    lines = [
        f"Analyze this website: {url}",
        f"\nAutomated Checks (verified data):\n{checks_json(checks)}",
        f"\nCrawl Data:\n{_dumps(page.model_dump(mode='json'))[:MAX_CRAWL_CHARS]}",
        f"\nPageSpeed Insights Scores:\n{perf_text}",
    ]
    if visual is not None:
        desktop = _dumps(visual.desktop.data.model_dump(mode="json"))[:MAX_VISUAL_CHARS]
        mobile = _dumps(visual.mobile.data.model_dump(mode="json"))[:MAX_VISUAL_CHARS]
        lines.append(f"\nVisual Data (rendered page):\nDesktop: {desktop}\nMobile: {mobile}")
    lines.extend([
        "\nIMPORTANT: The automated checks above are VERIFIED data. Your job is to:",
        "1. Interpret these results and explain their impact",
        "2. Identify patterns across multiple checks",
        "3. Provide actionable recommendations with specific fixes",
        "4. Only comment on what you can verify from the data above",
    ])
    if vision and visual is not None:
        lines.append(
            "5. You have been provided with desktop and mobile screenshots. "
            "Use them to assess visual design, layout, and UX"
        )
    else:
        lines.append("5. Do NOT fabricate visual/design assessments unless supported by data")
    return "\n".join(lines)


def simplified_prompt(category_name: str) -> str:
    return SIMPLIFIED_PROMPT_TEMPLATE.format(role=category_name.lower())


def simplified_content(url: str, checks: List[Check]) -> str:
    return f"Website: {url}\nChecks: {checks_json(checks)[:MAX_FALLBACK_CHECK_CHARS]}"


def build_summary_content(
    url: str,
    overall: int,
    scores: Mapping[str, int],
    performance: Optional[PerformanceFacts],
    has_screenshots: bool,
) -> str:
    mobile_scores: Dict[str, int] = {}
    if performance is not None and performance.mobile is not None:
        mobile_scores = performance.mobile.scores
    return "\n".join([
        f"Website: {url}",
        f"Overall: {overall}/100",
        f"Scores: {_dumps(dict(scores))}",
        f"PageSpeed: {_dumps(mobile_scores) if performance is not None else 'N/A'}",
        "Screenshots: "
        + ("Captured (visual analysis performed)" if has_screenshots else "Not available"),
    ])
