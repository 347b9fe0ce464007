"""API response schemas."""
from typing import Optional
from pydantic import BaseModel
from datetime import datetime
from .job import Job, JobStatus


class AnalyzeResponse(BaseModel):
    """Response schema for audit creation."""
    success: bool = True
    job_id: str
    message: str = "Audit started"


class JobStatusResponse(BaseModel):
    """Response schema for job status polling."""
    success: bool = True
    status: JobStatus
    progress: int
    current_phase: Optional[str] = None
    categories_total: int
    categories_completed: int
    error_message: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None

    @classmethod
    def from_job(cls, job: Job) -> "JobStatusResponse":
        return cls(
            status=job.status,
            progress=job.progress,
            current_phase=job.current_phase,
            categories_total=job.categories_total,
            categories_completed=job.categories_completed,
            error_message=job.error_message,
            created_at=job.created_at,
            completed_at=job.completed_at,
        )


class ReportNotReadyResponse(BaseModel):
    success: bool = False
    error: str = "Not ready"
    status: JobStatus


class ErrorResponse(BaseModel):
    success: bool = False
    error: str


class KeyValidationResponse(BaseModel):
    valid: bool
    model: Optional[str] = None
    error: Optional[str] = None
