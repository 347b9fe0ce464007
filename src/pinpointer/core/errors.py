"""Domain exceptions."""
from typing import Any, Dict, Optional


class PinpointerError(Exception):
    """Base exception for audit errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class PageFetchError(PinpointerError):
    """Raised when the base page facts cannot be collected."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to fetch {url}: {reason}", details={"url": url})
        self.url = url
        self.reason = reason


class InvalidTransitionError(PinpointerError):
    """Raised when a job is moved out of the fixed phase order."""

    def __init__(self, current: str, target: str):
        super().__init__(
            f"Illegal job transition {current} -> {target}",
            details={"current": current, "target": target},
        )


class JobNotFoundError(PinpointerError):
    """Raised when a job id is unknown."""

    def __init__(self, job_id: str):
        super().__init__("Job not found", details={"job_id": job_id})
        self.job_id = job_id


class DuplicateJobError(PinpointerError):
    """Raised when a second pipeline is registered for the same job id."""

    def __init__(self, job_id: str):
        super().__init__(f"Job already registered: {job_id}", details={"job_id": job_id})


class ConfigurationError(PinpointerError):
    """Error in system configuration."""
