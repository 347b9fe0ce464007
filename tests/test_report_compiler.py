"""Tests for report compilation and the template fallbacks."""

from unittest.mock import AsyncMock

import pytest

from conftest import make_check
from pinpointer.ai.prompts import SUMMARY_SYSTEM_PROMPT
from pinpointer.models.check import Confidence
from pinpointer.models.report import CategoryResult, Recommendation
from pinpointer.pipeline.compiler import (
    ReportCompiler,
    fallback_priorities,
    fallback_summary,
)
from pinpointer.skills.registry import DEFAULT_SKILLS, SkillRegistry


def category(key, name, score, checks=(), recommendations=()):
    return CategoryResult(
        key=key,
        name=name,
        auto_score=score,
        confidence=Confidence.MEDIUM,
        score=score,
        checks=list(checks),
        recommendations=[Recommendation(priority=p, action=a) for p, a in recommendations],
    )


@pytest.fixture
def categories():
    return {
        "seo_analyzer": category(
            "seo_analyzer", "SEO Analyzer", 80,
            checks=[make_check("fail"), make_check("pass")],
            recommendations=[("high", "Fix title"), ("low", "Add alt")],
        ),
        "ux_auditor": category("ux_auditor", "UX Auditor", 60),
        "security_auditor": category(
            "security_auditor", "Security Auditor", 40,
            checks=[make_check("fail"), make_check("warning")],
            recommendations=[("high", "Add CSP"), ("medium", "Fix title"), ("high", "")],
        ),
    }


@pytest.fixture
def compiler():
    return ReportCompiler(SkillRegistry(DEFAULT_SKILLS))


class TestFallbacks:

    def test_fallback_summary(self, categories):
        text = fallback_summary("https://a.example", 64, categories)
        assert text == (
            "https://a.example scored 64/100. "
            "Strongest: SEO Analyzer (80), UX Auditor (60). "
            "Weakest: Security Auditor (40), UX Auditor (60). "
            "2 failing and 1 warning checks were found. "
            "Focus on the lowest-scoring areas for maximum impact."
        )

    def test_fallback_summary_without_categories(self):
        text = fallback_summary("https://a.example", 50, {})
        assert text.startswith("https://a.example scored 50/100. 0 failing")

    def test_fallback_priorities_high_first_and_deduplicated(self, categories):
        assert fallback_priorities(categories) == ["Fix title", "Add CSP", "Add alt"]

    def test_fallback_priorities_capped(self):
        many = {
            "seo_analyzer": category(
                "seo_analyzer", "SEO", 50,
                recommendations=[("high", f"Action {i}") for i in range(8)],
            )
        }
        assert len(fallback_priorities(many)) == 5


class TestReportCompiler:

    @pytest.mark.asyncio
    async def test_compile_without_ai(self, compiler, categories):
        report = await compiler.compile("job-1", "https://a.example", categories, None, None)

        assert report.overall_score == 64
        assert report.scores == {"seo": 80, "ux": 60, "security": 40}
        assert report.executive_summary.startswith("https://a.example scored 64/100.")
        assert report.top_priorities == ["Fix title", "Add CSP", "Add alt"]
        assert report.lighthouse is None
        assert report.has_visual_data is False

    @pytest.mark.asyncio
    async def test_compile_uses_ai_summary(self, compiler, categories, performance_facts, visual_facts):
        client = AsyncMock()
        client.call.return_value = {
            "executive_summary": "  A solid site with security gaps.  ",
            "top_priorities": ["Add CSP", {"action": "Fix title"}, "   ", 3],
        }

        report = await compiler.compile(
            "job-1", "https://a.example", categories, performance_facts, visual_facts, client=client
        )

        assert report.executive_summary == "A solid site with security gaps."
        assert report.top_priorities == ["Add CSP", "Fix title"]
        assert report.has_visual_data is True
        assert report.lighthouse["mobile"]["scores"]["performance"] == 42

        system_prompt, content = client.call.await_args.args
        assert system_prompt == SUMMARY_SYSTEM_PROMPT
        assert "Overall: 64/100" in content
        assert "Screenshots: Captured (visual analysis performed)" in content
        assert client.call.await_args.kwargs["max_tokens"] == 2048

    @pytest.mark.asyncio
    async def test_ai_failure_falls_back_to_templates(self, compiler, categories):
        client = AsyncMock()
        client.call.return_value = None

        report = await compiler.compile("job-1", "https://a.example", categories, None, None, client=client)

        assert report.executive_summary.startswith("https://a.example scored 64/100.")
        assert report.top_priorities == ["Fix title", "Add CSP", "Add alt"]

    @pytest.mark.asyncio
    async def test_ai_summary_without_priorities(self, compiler, categories):
        client = AsyncMock()
        client.call.return_value = {"executive_summary": "Summary only."}

        report = await compiler.compile("job-1", "https://a.example", categories, None, None, client=client)

        assert report.executive_summary == "Summary only."
        assert report.top_priorities == ["Fix title", "Add CSP", "Add alt"]
