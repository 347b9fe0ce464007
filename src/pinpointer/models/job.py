"""Job status models."""
from enum import Enum
from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, Field


class JobStatus(str, Enum):
    """Job lifecycle states, in pipeline order."""
    QUEUED = "queued"
    CRAWLING = "crawling"
    LIGHTHOUSE = "lighthouse"
    ANALYZING = "analyzing"
    COMPILING = "compiling"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class Job(BaseModel):
    """A single audit run for one URL."""
    job_id: str
    url: str
    status: JobStatus = JobStatus.QUEUED
    progress: int = Field(default=0, ge=0, le=100)
    current_phase: Optional[str] = None
    categories_total: int = 0
    categories_completed: int = 0
    error_message: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None
    ai_api_key: str = Field(default="", exclude=True, repr=False)
