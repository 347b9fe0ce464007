"""Tests for the two-step prompting strategy and prompt builders."""

from unittest.mock import AsyncMock

import pytest

from pinpointer.ai.prompts import (
    build_category_content,
    build_summary_content,
    checks_json,
    simplified_content,
    simplified_prompt,
)
from pinpointer.ai.strategy import PromptRequest, TwoStepStrategy

from conftest import make_check


@pytest.fixture
def primary():
    return PromptRequest("category prompt", "content", images=("d.jpg", "m.jpg"))


@pytest.fixture
def fallback():
    return PromptRequest("simple prompt", "checks only", max_tokens=4096)


class TestTwoStepStrategy:

    @pytest.mark.asyncio
    async def test_vision_success_stops_there(self, primary, fallback):
        client = AsyncMock()
        client.call.return_value = {"overall_score": 80}

        result = await TwoStepStrategy(primary, fallback).run(client)

        assert result == {"overall_score": 80}
        client.call.assert_awaited_once_with(
            "category prompt", "content", images=["d.jpg", "m.jpg"], max_tokens=None
        )

    @pytest.mark.asyncio
    async def test_vision_failure_retries_text_only(self, primary, fallback):
        client = AsyncMock()
        client.call.side_effect = [None, {"overall_score": 70}]

        result = await TwoStepStrategy(primary, fallback).run(client)

        assert result == {"overall_score": 70}
        second = client.call.await_args_list[1]
        assert second.kwargs["images"] is None
        assert second.args == ("category prompt", "content")

    @pytest.mark.asyncio
    async def test_fallback_after_primary_fails(self, primary, fallback):
        client = AsyncMock()
        client.call.side_effect = [None, None, {"overall_score": 60}]

        result = await TwoStepStrategy(primary, fallback).run(client)

        assert result == {"overall_score": 60}
        last = client.call.await_args_list[-1]
        assert last.args == ("simple prompt", "checks only")
        assert last.kwargs["max_tokens"] == 4096

    @pytest.mark.asyncio
    async def test_text_only_primary_skips_vision_step(self, fallback):
        client = AsyncMock()
        client.call.side_effect = [None, None]

        result = await TwoStepStrategy(PromptRequest("p", "c"), fallback).run(client)

        assert result is None
        assert client.call.await_count == 2

    @pytest.mark.asyncio
    async def test_no_fallback(self):
        client = AsyncMock()
        client.call.return_value = None

        assert await TwoStepStrategy(PromptRequest("p", "c")).run(client) is None
        assert client.call.await_count == 1


class TestPromptBuilders:

    def test_checks_json_limited_and_compact(self):
        checks = [make_check(test=f"C{i}") for i in range(30)]
        text = checks_json(checks)

        assert text.count('"test"') == 25
        assert '"detail"' not in text

    def test_category_content_with_vision(self, page_facts, performance_facts, visual_facts):
        content = build_category_content(
            "https://acme.example/", [make_check()], page_facts, performance_facts, visual_facts, vision=True
        )

        assert content.startswith("Analyze this website: https://acme.example/")
        assert "Visual Data (rendered page)" in content
        assert "screenshots" in content
        assert "Do NOT fabricate" not in content

    def test_category_content_without_data(self, page_facts):
        content = build_category_content("https://acme.example/", [], page_facts, None, None)

        assert "PageSpeed Insights Scores:\nNot available" in content
        assert "Visual Data" not in content
        assert "Do NOT fabricate" in content

    def test_simplified_prompt(self):
        assert simplified_prompt("SEO Analyzer").startswith("You are a website seo analyzer.")
        assert "overall_score" in simplified_prompt("UX Auditor")
        assert simplified_content("https://a.example", []).startswith("Website: https://a.example\nChecks: []")

    def test_summary_content(self, performance_facts):
        content = build_summary_content("https://a.example", 71, {"seo": 80}, performance_facts, True)

        assert "Overall: 71/100" in content
        assert '"performance":42' in content
        assert "Captured (visual analysis performed)" in content
        assert "PageSpeed: N/A" in build_summary_content("https://a.example", 71, {}, None, False)
