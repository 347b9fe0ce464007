"""Category result and report models."""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from .check import Check, Confidence


class Finding(BaseModel):
    model_config = ConfigDict(extra="ignore")

    issue: str = ""
    details: str = ""
    fix: str = ""


class Findings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    critical: List[Finding] = Field(default_factory=list)
    warnings: List[Finding] = Field(default_factory=list)
    passed: List[Finding] = Field(default_factory=list)


class Recommendation(BaseModel):
    model_config = ConfigDict(extra="ignore")

    priority: str = "medium"
    action: str = ""
    impact: str = ""


class CategoryResult(BaseModel):
    """Fused outcome for one audit category."""
    key: str
    name: str
    auto_score: int = Field(ge=0, le=100)
    ai_score: Optional[int] = Field(default=None, ge=0, le=100)
    ai_partial: bool = False
    confidence: Confidence
    score: int = Field(ge=0, le=100)
    checks: List[Check] = Field(default_factory=list)
    findings: Findings = Field(default_factory=Findings)
    recommendations: List[Recommendation] = Field(default_factory=list)
    ai_category_scores: Dict[str, Any] = Field(default_factory=dict)
    summary: Dict[str, Any] = Field(default_factory=dict)


class Report(BaseModel):
    """Final immutable audit artifact."""
    model_config = ConfigDict(frozen=True)

    job_id: str
    url: str
    overall_score: int = Field(ge=0, le=100)
    scores: Dict[str, int]
    categories: Dict[str, CategoryResult]
    executive_summary: str
    top_priorities: List[str] = Field(default_factory=list)
    lighthouse: Optional[Dict[str, Any]] = None
    has_visual_data: bool = False
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
