"""Job lifecycle, orchestration and report compilation."""

from .compiler import ReportCompiler
from .runner import AuditPipeline
from .state_machine import PHASE_ORDER, can_transition, next_status
from .store import JobHandle, JobStore

__all__ = [
    "AuditPipeline",
    "JobHandle",
    "JobStore",
    "PHASE_ORDER",
    "ReportCompiler",
    "can_transition",
    "next_status",
]
