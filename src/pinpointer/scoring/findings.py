"""Findings and recommendations derived from checks when the AI gives none."""
from typing import Any, List, Optional

from pydantic import TypeAdapter, ValidationError

from ..core.logging import logger
from ..models.check import Check, CheckStatus
from ..models.report import Finding, Findings, Recommendation

MAX_RECOMMENDATIONS = 5
MAX_WARNING_RECOMMENDATIONS = 3

_recommendations_adapter = TypeAdapter(List[Recommendation])


def _describe(check: Check) -> str:
    return f"{check.value} — {check.detail}" if check.detail else check.value


def findings_from_checks(checks: List[Check]) -> Findings:
    return Findings(
        critical=[
            Finding(issue=c.test, details=_describe(c))
            for c in checks if c.status == CheckStatus.FAIL
        ],
        warnings=[
            Finding(issue=c.test, details=_describe(c))
            for c in checks if c.status == CheckStatus.WARNING
        ],
        passed=[
            Finding(issue=c.test, details=c.value)
            for c in checks if c.status == CheckStatus.PASS
        ],
    )


def recommendations_from_checks(checks: List[Check]) -> List[Recommendation]:
    recs = [
        Recommendation(priority="high", action=f"Fix: {c.test}", impact=c.value)
        for c in checks if c.status == CheckStatus.FAIL
    ]
    warnings = [c for c in checks if c.status == CheckStatus.WARNING]
    recs.extend(
        Recommendation(priority="medium", action=f"Improve: {c.test}", impact=c.value)
        for c in warnings[:MAX_WARNING_RECOMMENDATIONS]
    )
    return recs[:MAX_RECOMMENDATIONS]


def coerce_findings(raw: Any) -> Optional[Findings]:
    """Validate AI-supplied findings; None when absent or unusable."""
    if not isinstance(raw, dict) or not raw:
        return None
    try:
        return Findings.model_validate(raw)
    except ValidationError as e:
        logger.debug(f"Discarding malformed AI findings: {e.error_count()} error(s)")
        return None


def coerce_recommendations(raw: Any) -> Optional[List[Recommendation]]:
    """Validate AI-supplied recommendations; None when absent or unusable."""
    if not isinstance(raw, list) or not raw:
        return None
    try:
        return _recommendations_adapter.validate_python(raw)
    except ValidationError as e:
        logger.debug(f"Discarding malformed AI recommendations: {e.error_count()} error(s)")
        return None
