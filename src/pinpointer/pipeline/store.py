"""
In-memory job store.

Job records are only ever replaced, never mutated in place: the owning
JobHandle builds a modified copy under the store lock and swaps it in.
Readers get deep copies, so a poller can never observe a half-applied
update or mutate another job's state.
"""
import threading
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from ..core.errors import DuplicateJobError, JobNotFoundError
from ..core.logging import job_tag, logger
from ..models.job import Job, JobStatus
from ..models.report import Report
from .state_machine import ensure_transition


def _clamp_progress(value: int) -> int:
    return max(0, min(100, int(value)))


class JobStore:
    """Lock-guarded keyed store of jobs and their reports."""

    def __init__(self):
        self._lock = threading.Lock()
        self._jobs: Dict[str, Job] = {}
        self._reports: Dict[str, Report] = {}

    def create(self, url: str, ai_api_key: str = "", job_id: Optional[str] = None) -> "JobHandle":
        """
        Register a new queued job.

        Returns:
            The single owner handle for the job

        Raises:
            DuplicateJobError: If ``job_id`` is already registered
        """
        job_id = job_id or str(uuid.uuid4())
        with self._lock:
            if job_id in self._jobs:
                raise DuplicateJobError(job_id)
            self._jobs[job_id] = Job(job_id=job_id, url=url, ai_api_key=ai_api_key)
        logger.info(f"{job_tag(job_id)} Job created for {url}")
        return JobHandle(self, job_id)

    def __contains__(self, job_id: str) -> bool:
        with self._lock:
            return job_id in self._jobs

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def snapshot(self, job_id: str) -> Job:
        """Deep copy of the current job record."""
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                raise JobNotFoundError(job_id)
            return job.model_copy(deep=True)

    def get_report(self, job_id: str) -> Optional[Report]:
        """The job's report, or None while it is not completed."""
        with self._lock:
            if job_id not in self._jobs:
                raise JobNotFoundError(job_id)
            return self._reports.get(job_id)

    def update(self, job_id: str, mutate: Callable[[Job], Optional[Job]]) -> Job:
        """
        Copy-on-write update.

        ``mutate`` receives a private copy and returns it (or None to leave
        the record unchanged). Exceptions raised by ``mutate`` leave the
        stored record untouched.
        """
        with self._lock:
            current = self._jobs.get(job_id)
            if current is None:
                raise JobNotFoundError(job_id)
            updated = mutate(current.model_copy(deep=True))
            if updated is not None:
                self._jobs[job_id] = updated
                current = updated
            return current.model_copy(deep=True)

    def complete_with_report(self, job_id: str, report: Report) -> Job:
        """Store the report and mark the job completed in one step; a no-op once finished."""
        with self._lock:
            current = self._jobs.get(job_id)
            if current is None:
                raise JobNotFoundError(job_id)
            if current.status.is_terminal:
                return current.model_copy(deep=True)
            ensure_transition(current.status, JobStatus.COMPLETED)
            job = current.model_copy(deep=True)
            job.status = JobStatus.COMPLETED
            job.progress = 100
            job.current_phase = "Complete"
            job.categories_completed = job.categories_total
            job.completed_at = datetime.now(timezone.utc)
            self._reports[job_id] = report
            self._jobs[job_id] = job
            return job.model_copy(deep=True)


class JobHandle:
    """Write access to one job, held by the pipeline task that owns it."""

    def __init__(self, store: JobStore, job_id: str):
        self.store = store
        self.job_id = job_id

    @property
    def job(self) -> Job:
        return self.store.snapshot(self.job_id)

    def advance(
        self,
        target: JobStatus,
        phase: Optional[str] = None,
        progress: Optional[int] = None,
    ) -> Job:
        """
        Move to the next phase.

        A terminal job is left unchanged; an out-of-order target raises
        InvalidTransitionError.
        """
        def mutate(job: Job) -> Optional[Job]:
            if job.status.is_terminal:
                return None
            ensure_transition(job.status, target)
            job.status = target
            if phase is not None:
                job.current_phase = phase
            if progress is not None:
                job.progress = max(job.progress, _clamp_progress(progress))
            return job

        return self.store.update(self.job_id, mutate)

    def set_progress(self, progress: int, phase: Optional[str] = None) -> Job:
        """Raise progress (never lowers it) and optionally relabel the phase."""
        def mutate(job: Job) -> Optional[Job]:
            if job.status.is_terminal:
                return None
            job.progress = max(job.progress, _clamp_progress(progress))
            if phase is not None:
                job.current_phase = phase
            return job

        return self.store.update(self.job_id, mutate)

    def set_categories_total(self, total: int) -> Job:
        def mutate(job: Job) -> Optional[Job]:
            if job.status.is_terminal:
                return None
            job.categories_total = total
            return job

        return self.store.update(self.job_id, mutate)

    def start_category(self, label: str, completed: int, progress: int) -> Job:
        """Set phase label, completed count and progress together."""
        def mutate(job: Job) -> Optional[Job]:
            if job.status.is_terminal:
                return None
            job.current_phase = label
            job.categories_completed = completed
            job.progress = max(job.progress, _clamp_progress(progress))
            return job

        return self.store.update(self.job_id, mutate)

    def complete(self, report: Report) -> Job:
        return self.store.complete_with_report(self.job_id, report)

    def fail(self, error: BaseException) -> Job:
        """Mark the job failed; a no-op when it already finished."""
        message = str(error) or error.__class__.__name__

        def mutate(job: Job) -> Optional[Job]:
            if job.status.is_terminal:
                return None
            job.status = JobStatus.FAILED
            job.error_message = message
            job.completed_at = datetime.now(timezone.utc)
            return job

        return self.store.update(self.job_id, mutate)
