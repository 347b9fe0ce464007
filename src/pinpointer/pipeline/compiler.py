"""Final report assembly."""
from typing import Any, Dict, List, Mapping, Optional

from ..ai.prompts import SUMMARY_SYSTEM_PROMPT, build_summary_content
from ..core.logging import job_tag, logger
from ..models.check import CheckStatus
from ..models.facts import PerformanceFacts, VisualFacts
from ..models.report import CategoryResult, Report
from ..scoring import overall_score
from ..skills.registry import SkillRegistry

MAX_TOP_PRIORITIES = 5
SUMMARY_MAX_TOKENS = 2048


def fallback_summary(
    url: str,
    overall: int,
    categories: Mapping[str, CategoryResult],
) -> str:
    """Deterministic summary naming the two strongest and two weakest categories."""
    ranked = sorted(categories.values(), key=lambda c: (-c.score, c.key))
    failing = sum(1 for c in categories.values() for ch in c.checks if ch.status == CheckStatus.FAIL)
    warnings = sum(1 for c in categories.values() for ch in c.checks if ch.status == CheckStatus.WARNING)

    parts = [f"{url} scored {overall}/100."]
    if ranked:
        best = ", ".join(f"{c.name} ({c.score})" for c in ranked[:2])
        worst = ", ".join(f"{c.name} ({c.score})" for c in list(reversed(ranked))[:2])
        parts.append(f"Strongest: {best}. Weakest: {worst}.")
    parts.append(f"{failing} failing and {warnings} warning checks were found.")
    parts.append("Focus on the lowest-scoring areas for maximum impact.")
    return " ".join(parts)


def fallback_priorities(categories: Mapping[str, CategoryResult]) -> List[str]:
    """High-priority recommendation actions first, de-duplicated, at most five."""
    high: List[str] = []
    rest: List[str] = []
    for category in categories.values():
        for rec in category.recommendations:
            if not rec.action:
                continue
            (high if rec.priority == "high" else rest).append(rec.action)
    return list(dict.fromkeys(high + rest))[:MAX_TOP_PRIORITIES]


def _summary_text(result: Optional[Dict[str, Any]]) -> str:
    if not result:
        return ""
    text = result.get("executive_summary")
    return text.strip() if isinstance(text, str) else ""


def _priority_list(result: Optional[Dict[str, Any]]) -> List[str]:
    if not result or not isinstance(result.get("top_priorities"), list):
        return []
    items = []
    for item in result["top_priorities"]:
        if isinstance(item, str) and item.strip():
            items.append(item.strip())
        elif isinstance(item, dict) and item.get("action"):
            items.append(str(item["action"]))
    return items[:MAX_TOP_PRIORITIES]


class ReportCompiler:
    """Builds the immutable Report once every category has been fused."""

    def __init__(self, registry: SkillRegistry):
        self.registry = registry

    def short_scores(self, categories: Mapping[str, CategoryResult]) -> Dict[str, int]:
        scores = {}
        for key, category in categories.items():
            skill = self.registry.get(key)
            scores[skill.short_key if skill else key] = category.score
        return scores

    async def compile(
        self,
        job_id: str,
        url: str,
        categories: Dict[str, CategoryResult],
        performance: Optional[PerformanceFacts],
        visual: Optional[VisualFacts],
        client=None,
    ) -> Report:
        """
        Assemble the report.

        Args:
            job_id: Owning job
            url: Audited URL
            categories: Fused results keyed by category key
            performance: PageSpeed facts, if any
            visual: Visual facts, if any
            client: Optional AI client used for the executive summary

        Returns:
            The final Report
        """
        tag = job_tag(job_id)
        overall = overall_score({k: c.score for k, c in categories.items()}, self.registry.weights)
        scores = self.short_scores(categories)

        summary_result = None
        if client is not None:
            summary_result = await client.call(
                SUMMARY_SYSTEM_PROMPT,
                build_summary_content(url, overall, scores, performance, visual is not None),
                max_tokens=SUMMARY_MAX_TOKENS,
            )

        executive_summary = _summary_text(summary_result)
        if not executive_summary:
            logger.info(f"{tag} Using template executive summary")
            executive_summary = fallback_summary(url, overall, categories)
        top_priorities = _priority_list(summary_result) or fallback_priorities(categories)

        logger.info(f"{tag} Report compiled, overall {overall}/100 (visual: {visual is not None})")
        return Report(
            job_id=job_id,
            url=url,
            overall_score=overall,
            scores=scores,
            categories=categories,
            executive_summary=executive_summary,
            top_priorities=top_priorities,
            lighthouse=performance.condensed() if performance is not None else None,
            has_visual_data=visual is not None,
        )
