"""
Audit pipeline.

Drives one job through crawl, performance scoring, visual capture, per-category
analysis and report compilation. Every failure ends in the ``failed`` state;
nothing propagates to the caller.
"""
from typing import Callable, Dict, Optional

from ..ai.gemini import GeminiClient
from ..ai.prompts import build_category_content, simplified_content, simplified_prompt
from ..ai.strategy import PromptRequest, TwoStepStrategy
from ..checks import get_producer
from ..collectors.browser import get_browser_resource
from ..collectors.page_facts import PageFactCollector
from ..collectors.pagespeed import PageSpeedCollector
from ..collectors.visual import VisualCaptureService
from ..core.logging import job_tag, logger
from ..models.facts import PageFacts, PerformanceFacts, VisualFacts
from ..models.job import JobStatus
from ..models.report import CategoryResult
from ..scoring import fuse_category
from ..scoring.scorer import round_half_up_ratio
from ..skills.registry import SkillDefinition, SkillRegistry, get_skill_registry
from .compiler import ReportCompiler
from .store import JobHandle

CRAWL_DONE = 5
PERFORMANCE_START = 8
PERFORMANCE_DONE = 15
VISUAL_START = 18
VISUAL_DONE = 20
ANALYSIS_SPAN = 70
ANALYSIS_DONE = 92
FALLBACK_MAX_TOKENS = 4096


def category_progress(index: int, total: int) -> int:
    """Progress when category ``index`` of ``total`` starts."""
    if total <= 0:
        return VISUAL_DONE
    return VISUAL_DONE + round_half_up_ratio(index * ANALYSIS_SPAN, total)


class AuditPipeline:
    """Runs audits; collaborators are injectable for tests."""

    def __init__(
        self,
        page_collector: Optional[PageFactCollector] = None,
        performance_collector: Optional[PageSpeedCollector] = None,
        visual_service: Optional[VisualCaptureService] = None,
        registry: Optional[SkillRegistry] = None,
        ai_client_factory: Optional[Callable[[str], object]] = None,
    ):
        self.page_collector = page_collector or PageFactCollector()
        self.performance_collector = performance_collector or PageSpeedCollector()
        self.visual_service = visual_service or VisualCaptureService(get_browser_resource())
        self.registry = registry or get_skill_registry()
        self.ai_client_factory = ai_client_factory or GeminiClient
        self.compiler = ReportCompiler(self.registry)

    async def run(self, handle: JobHandle) -> None:
        job = handle.job
        tag = job_tag(job.job_id)
        visual: Optional[VisualFacts] = None
        try:
            handle.advance(JobStatus.CRAWLING, phase="Crawling website")
            page = await self.page_collector.collect(job.url)
            handle.set_progress(CRAWL_DONE)

            handle.advance(JobStatus.LIGHTHOUSE, phase="PageSpeed Insights", progress=PERFORMANCE_START)
            performance = await self.performance_collector.collect(job.url)
            handle.set_progress(PERFORMANCE_DONE)

            handle.set_progress(VISUAL_START, phase="Capturing screenshots")
            visual = await self.visual_service.capture(job.url, job.job_id)
            if visual is None:
                logger.info(f"{tag} No visual data, continuing with data-only mode")
            handle.set_progress(VISUAL_DONE)

            skills = list(self.registry)
            handle.advance(JobStatus.ANALYZING)
            handle.set_categories_total(len(skills))
            client = self.ai_client_factory(job.ai_api_key) if job.ai_api_key else None

            categories: Dict[str, CategoryResult] = {}
            for index, skill in enumerate(skills):
                handle.start_category(skill.name, index, category_progress(index, len(skills)))
                logger.info(f"{tag} {skill.name} ({index + 1}/{len(skills)})")
                categories[skill.key] = await self.analyze_category(
                    skill, job.url, page, performance, visual, client, tag
                )
            handle.set_progress(ANALYSIS_DONE)

            handle.advance(JobStatus.COMPILING, phase="Compiling report")
            report = await self.compiler.compile(
                job.job_id, job.url, categories, performance, visual, client
            )
            handle.complete(report)
            logger.info(f"{tag} COMPLETE! Overall: {report.overall_score}/100")
        except Exception as e:
            logger.error(f"{tag} Audit failed: {e}", exc_info=True)
            handle.fail(e)
        finally:
            self.visual_service.cleanup(visual)

    async def analyze_category(
        self,
        skill: SkillDefinition,
        url: str,
        page: PageFacts,
        performance: Optional[PerformanceFacts],
        visual: Optional[VisualFacts],
        client,
        tag: str = "",
    ) -> CategoryResult:
        """Produce checks, ask the reviewer, and fuse both into one result."""
        check_result = get_producer(skill.key)(page, performance, visual)

        ai_result = None
        if client is not None and skill.prompt:
            images = tuple(visual.screenshots) if (skill.vision and visual is not None) else ()
            primary = PromptRequest(
                skill.prompt,
                build_category_content(url, check_result.checks, page, performance, visual, vision=bool(images)),
                images,
            )
            fallback = PromptRequest(
                simplified_prompt(skill.name),
                simplified_content(url, check_result.checks),
                max_tokens=FALLBACK_MAX_TOKENS,
            )
            ai_result = await TwoStepStrategy(primary, fallback, label=f"{tag} {skill.name}").run(client)

        result = fuse_category(skill.key, skill.name, check_result, ai_result)
        if result.ai_score is not None:
            logger.info(
                f"{tag} {skill.name}: blended={result.score} "
                f"(AI:{result.ai_score}*0.6 + auto:{result.auto_score}*0.4)"
            )
        else:
            logger.info(f"{tag} {skill.name}: data-only score={result.score}")
        return result
