"""Graded check models."""
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class CheckStatus(str, Enum):
    PASS = "pass"
    WARNING = "warning"
    FAIL = "fail"


class Severity(str, Enum):
    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"


class Confidence(str, Enum):
    """How much corroborating data backed a category's checks."""
    LOW = "low"
    MEDIUM = "medium"
    MEDIUM_HIGH = "medium-high"
    HIGH = "high"


class Check(BaseModel):
    """A single graded fact about the audited page."""
    model_config = ConfigDict(frozen=True)

    test: str
    status: CheckStatus
    severity: Severity
    value: str
    detail: Optional[str] = None


class CheckResult(BaseModel):
    """Output of a check producer for one category."""
    checks: List[Check] = Field(default_factory=list)
    confidence: Confidence = Confidence.LOW
    summary: Dict[str, Any] = Field(default_factory=dict)

    def with_status(self, status: CheckStatus) -> List[Check]:
        return [c for c in self.checks if c.status == status]
