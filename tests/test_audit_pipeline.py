"""Tests for the audit pipeline and the audit service."""

import asyncio
from dataclasses import replace
from unittest.mock import AsyncMock, MagicMock

import pytest

from pinpointer.core.errors import PageFetchError
from pinpointer.models.job import JobStatus
from pinpointer.pipeline.runner import AuditPipeline, category_progress
from pinpointer.pipeline.store import JobStore
from pinpointer.services.audit_service import AuditService
from pinpointer.skills.registry import DEFAULT_SKILLS, SkillRegistry

AI_REVIEW = {
    "overall_score": 90,
    "findings": {"critical": [], "warnings": [{"issue": "Thin copy"}], "passed": []},
    "recommendations": [{"priority": "high", "action": "Write more copy"}],
}


class RecordingStore(JobStore):
    """JobStore that records every committed update."""

    def __init__(self):
        super().__init__()
        self.history = []

    def update(self, job_id, mutate):
        job = super().update(job_id, mutate)
        self.history.append((job.status, job.progress, job.current_phase))
        return job


def make_pipeline(page_facts, performance_facts=None, visual_facts=None, registry=None, client=None):
    page_collector = MagicMock()
    page_collector.collect = AsyncMock(return_value=page_facts)
    performance_collector = MagicMock()
    performance_collector.collect = AsyncMock(return_value=performance_facts)
    visual_service = MagicMock()
    visual_service.capture = AsyncMock(return_value=visual_facts)
    factory = MagicMock(return_value=client)
    pipeline = AuditPipeline(
        page_collector=page_collector,
        performance_collector=performance_collector,
        visual_service=visual_service,
        registry=registry or SkillRegistry(DEFAULT_SKILLS),
        ai_client_factory=factory,
    )
    return pipeline, factory


@pytest.fixture
def prompted_registry():
    return SkillRegistry([replace(s, prompt=f"You review {s.name}.") for s in DEFAULT_SKILLS])


class TestCategoryProgress:

    def test_checkpoints(self):
        assert [category_progress(i, 10) for i in range(10)] == [
            20, 27, 34, 41, 48, 55, 62, 69, 76, 83,
        ]
        assert category_progress(1, 3) == 43
        assert category_progress(0, 0) == 20


class TestAuditPipeline:

    @pytest.mark.asyncio
    async def test_data_only_run_completes(self, page_facts, performance_facts):
        store = RecordingStore()
        handle = store.create("https://acme.example/")
        pipeline, factory = make_pipeline(page_facts, performance_facts)

        await pipeline.run(handle)

        job = handle.job
        assert job.status == JobStatus.COMPLETED
        assert job.progress == 100
        assert job.categories_completed == job.categories_total == 10
        factory.assert_not_called()

        report = store.get_report(handle.job_id)
        assert len(report.categories) == 10
        assert all(c.ai_score is None for c in report.categories.values())
        assert all(c.score == c.auto_score for c in report.categories.values())
        assert report.has_visual_data is False
        assert report.lighthouse["mobile"]["scores"]["performance"] == 42
        pipeline.visual_service.cleanup.assert_called_once_with(None)

    @pytest.mark.asyncio
    async def test_progress_and_phases(self, page_facts):
        store = RecordingStore()
        handle = store.create("https://acme.example/")
        pipeline, _ = make_pipeline(page_facts)

        await pipeline.run(handle)

        progress = [p for _, p, _ in store.history]
        assert progress == sorted(progress)
        assert {5, 8, 15, 18, 20, 92} <= set(progress)

        statuses = list(dict.fromkeys(s for s, _, _ in store.history))
        assert statuses == [
            JobStatus.CRAWLING, JobStatus.LIGHTHOUSE, JobStatus.ANALYZING, JobStatus.COMPILING,
        ]
        phases = [phase for _, _, phase in store.history]
        assert phases[0] == "Crawling website"
        assert "Capturing screenshots" in phases
        assert "Competitive Benchmark" in phases
        assert phases[-1] == "Compiling report"

    @pytest.mark.asyncio
    async def test_ai_review_blended(self, page_facts, performance_facts, visual_facts, prompted_registry):
        client = MagicMock()
        client.call = AsyncMock(return_value=AI_REVIEW)
        store = JobStore()
        handle = store.create("https://acme.example/", ai_api_key="key-1")
        pipeline, factory = make_pipeline(
            page_facts, performance_facts, visual_facts, registry=prompted_registry, client=client
        )

        await pipeline.run(handle)

        factory.assert_called_once_with("key-1")
        report = store.get_report(handle.job_id)
        seo = report.categories["seo_analyzer"]
        assert seo.ai_score == 90
        assert seo.score == (90 * 6 + seo.auto_score * 4 + 5) // 10
        assert seo.recommendations[0].action == "Write more copy"
        assert report.has_visual_data is True

        # ten category reviews plus the executive summary
        assert client.call.await_count == 11
        vision_calls = [c for c in client.call.await_args_list if c.kwargs.get("images")]
        assert len(vision_calls) == 2
        assert vision_calls[0].kwargs["images"] == visual_facts.screenshots
        pipeline.visual_service.cleanup.assert_called_once_with(visual_facts)

    @pytest.mark.asyncio
    async def test_failed_review_falls_back_to_simplified_prompt(self, page_facts, prompted_registry):
        client = MagicMock()
        # primary fails, simplified prompt answers, for every category; summary fails
        client.call = AsyncMock(side_effect=[None, {"overall_score": 10}] * 10 + [None])
        store = JobStore()
        handle = store.create("https://acme.example/", ai_api_key="key-1")
        pipeline, _ = make_pipeline(page_facts, registry=prompted_registry, client=client)

        await pipeline.run(handle)

        report = store.get_report(handle.job_id)
        assert all(c.ai_score == 10 for c in report.categories.values())
        fallback_call = client.call.await_args_list[1]
        assert fallback_call.kwargs["max_tokens"] == 4096
        assert "SEO Analyzer".lower() in fallback_call.args[0]
        assert report.executive_summary.startswith("https://acme.example/ scored")

    @pytest.mark.asyncio
    async def test_page_fetch_failure_fails_job(self, page_facts):
        store = JobStore()
        handle = store.create("https://acme.example/")
        pipeline, _ = make_pipeline(page_facts)
        pipeline.page_collector.collect.side_effect = PageFetchError("https://acme.example/", "HTTP 404")

        await pipeline.run(handle)

        job = handle.job
        assert job.status == JobStatus.FAILED
        assert job.error_message == "Failed to fetch https://acme.example/: HTTP 404"
        assert job.completed_at is not None
        assert store.get_report(handle.job_id) is None
        pipeline.performance_collector.collect.assert_not_called()
        pipeline.visual_service.cleanup.assert_called_once_with(None)

    @pytest.mark.asyncio
    async def test_late_failure_still_cleans_up_screenshots(self, page_facts, visual_facts):
        store = JobStore()
        handle = store.create("https://acme.example/")
        pipeline, _ = make_pipeline(page_facts, visual_facts=visual_facts)
        pipeline.compiler.compile = AsyncMock(side_effect=RuntimeError("compile exploded"))

        await pipeline.run(handle)

        job = handle.job
        assert job.status == JobStatus.FAILED
        assert job.error_message == "compile exploded"
        assert store.get_report(handle.job_id) is None
        pipeline.visual_service.cleanup.assert_called_once_with(visual_facts)


class TestAuditService:

    @pytest.mark.asyncio
    async def test_start_audit_runs_pipeline_task(self):
        pipeline = MagicMock()
        pipeline.run = AsyncMock()
        service = AuditService(store=JobStore(), pipeline=pipeline)

        job_id = await service.start_audit("acme.example", "key-1")

        assert service.get_status(job_id).url == "https://acme.example"
        assert service.active_jobs == 1
        await asyncio.gather(*service._tasks.values())
        await asyncio.sleep(0)

        handle = pipeline.run.await_args.args[0]
        assert handle.job_id == job_id
        assert service.active_jobs == 0

    @pytest.mark.asyncio
    async def test_each_job_gets_unique_id(self):
        pipeline = MagicMock()
        pipeline.run = AsyncMock()
        service = AuditService(store=JobStore(), pipeline=pipeline)

        ids = {await service.start_audit("https://a.example", "k") for _ in range(3)}
        await asyncio.gather(*service._tasks.values())

        assert len(ids) == 3

    @pytest.mark.asyncio
    async def test_validate_empty_key(self):
        service = AuditService(store=JobStore(), pipeline=MagicMock())
        assert await service.validate_key("   ") == {"valid": False, "error": "No key provided"}
