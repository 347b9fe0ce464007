"""Job lifecycle transitions."""
from typing import Optional

from ..core.errors import InvalidTransitionError
from ..models.job import JobStatus

PHASE_ORDER = (
    JobStatus.QUEUED,
    JobStatus.CRAWLING,
    JobStatus.LIGHTHOUSE,
    JobStatus.ANALYZING,
    JobStatus.COMPILING,
    JobStatus.COMPLETED,
)


def next_status(status: JobStatus) -> Optional[JobStatus]:
    """The status that follows ``status`` in the phase order, if any."""
    if status not in PHASE_ORDER:
        return None
    index = PHASE_ORDER.index(status)
    if index + 1 >= len(PHASE_ORDER):
        return None
    return PHASE_ORDER[index + 1]


def can_transition(current: JobStatus, target: JobStatus) -> bool:
    """Only the immediate next phase, or failed from any non-terminal state."""
    if current.is_terminal:
        return False
    if target == JobStatus.FAILED:
        return True
    return next_status(current) == target


def ensure_transition(current: JobStatus, target: JobStatus) -> None:
    if not can_transition(current, target):
        raise InvalidTransitionError(current.value, target.value)
