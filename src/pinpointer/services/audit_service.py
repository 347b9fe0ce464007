"""Audit job service: starts pipeline tasks and serves their state."""
import asyncio
from typing import Any, Dict, Optional

from ..ai.gemini import GeminiClient
from ..core.logging import job_tag, logger
from ..models.job import Job
from ..models.report import Report
from ..pipeline.runner import AuditPipeline
from ..pipeline.store import JobStore
from ..utils.url_utils import ensure_scheme


class AuditService:
    """
    Owns the job store and the background task of every running audit.

    Each job runs as one asyncio task; the task is dropped from the service
    once it finishes.
    """

    def __init__(self, store: Optional[JobStore] = None, pipeline: Optional[AuditPipeline] = None):
        self.store = store or JobStore()
        self._pipeline = pipeline
        self._tasks: Dict[str, asyncio.Task] = {}

    @property
    def pipeline(self) -> AuditPipeline:
        if self._pipeline is None:
            self._pipeline = AuditPipeline()
        return self._pipeline

    @property
    def active_jobs(self) -> int:
        return len(self._tasks)

    async def start_audit(self, url: str, ai_api_key: str) -> str:
        """
        Queue an audit and start its pipeline task.

        Args:
            url: Target URL; ``https://`` is prepended when no scheme is given
            ai_api_key: Gemini key used by the reviewer

        Returns:
            The new job id
        """
        handle = self.store.create(ensure_scheme(url), ai_api_key)
        job_id = handle.job_id
        logger.info(f"{job_tag(job_id)} New job for {handle.job.url}")

        task = asyncio.create_task(self.pipeline.run(handle), name=f"audit-{job_id[:8]}")
        self._tasks[job_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(job_id, None))
        return job_id

    def get_status(self, job_id: str) -> Job:
        return self.store.snapshot(job_id)

    def get_report(self, job_id: str) -> Optional[Report]:
        return self.store.get_report(job_id)

    async def validate_key(self, api_key: str) -> Dict[str, Any]:
        if not api_key.strip():
            return {"valid": False, "error": "No key provided"}
        return await GeminiClient(api_key.strip()).validate_key()


_audit_service_instance: Optional[AuditService] = None


def get_audit_service() -> AuditService:
    """Get or create the process-wide audit service."""
    global _audit_service_instance
    if _audit_service_instance is None:
        _audit_service_instance = AuditService()
    return _audit_service_instance
