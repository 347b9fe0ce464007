"""
Check producer registry and grading helpers.

A check producer maps collected facts to graded checks for one category. It is
registered with ``@check_producer(key)``; the decorator guarantees the
producer never raises, turning any failure into a single low-confidence
"Data Extraction" warning.
"""
import functools
import re
from typing import Callable, Dict, Iterable, Optional

from ..core.logging import logger
from ..models.check import Check, CheckResult, CheckStatus, Confidence, Severity
from ..models.facts import PageFacts, PerformanceFacts, SubAudit, VisualFacts

PASS = CheckStatus.PASS
WARNING = CheckStatus.WARNING
FAIL = CheckStatus.FAIL

CRITICAL = Severity.CRITICAL
MAJOR = Severity.MAJOR
MINOR = Severity.MINOR

Producer = Callable[
    [PageFacts, Optional[PerformanceFacts], Optional[VisualFacts]], CheckResult
]

# user-scalable=no or maximum-scale=1 both block pinch-to-zoom
ZOOM_DISABLED_PATTERN = re.compile(r"maximum-scale\s*=\s*1(?:\.0)?(?:\s|,|$)")

_registry: Dict[str, Producer] = {}


def check_producer(key: str):
    """
    Register a producer for a category key.

    Args:
        key: Category key, e.g. ``seo_analyzer``

    Returns:
        Decorator that wraps the producer with error capture and registers it
    """

    def decorator(func: Producer) -> Producer:
        @functools.wraps(func)
        def wrapper(
            page: PageFacts,
            performance: Optional[PerformanceFacts] = None,
            visual: Optional[VisualFacts] = None,
        ) -> CheckResult:
            try:
                return func(page, performance, visual)
            except Exception as e:
                logger.error(f"Check producer '{key}' failed: {e}", exc_info=True)
                return CheckResult(
                    checks=[
                        Check(
                            test="Data Extraction",
                            status=WARNING,
                            severity=MINOR,
                            value=f"Extraction error: {e}",
                        )
                    ],
                    confidence=Confidence.LOW,
                    summary={"error": str(e)},
                )

        _registry[key] = wrapper
        return wrapper

    return decorator


def empty_producer(
    page: PageFacts,
    performance: Optional[PerformanceFacts] = None,
    visual: Optional[VisualFacts] = None,
) -> CheckResult:
    return CheckResult(confidence=Confidence.LOW)


def get_producer(key: str) -> Producer:
    """Registered producer for ``key``, or the empty producer."""
    return _registry.get(key, empty_producer)


def registered_keys() -> Iterable[str]:
    return list(_registry)


# ------------------------------------------------------------------ grading

def grade_at_least(value: float, good: float, fair: float, below_fair=FAIL) -> CheckStatus:
    """Higher is better: pass at ``good``, warning at ``fair``."""
    if value >= good:
        return PASS
    if value >= fair:
        return WARNING
    return below_fair


def grade_at_most(value: float, good: float, poor: float) -> CheckStatus:
    """Lower is better: pass up to ``good``, fail above ``poor``."""
    if value > poor:
        return FAIL
    if value > good:
        return WARNING
    return PASS


def percent(part: int, whole: int) -> int:
    """round(part / whole * 100) with halves rounded up."""
    return (200 * part + whole) // (2 * whole)


def score_check(
    test: str,
    score: Optional[int],
    severity: Severity,
    fair: int = 70,
    good: int = 90,
    value: Optional[str] = None,
) -> Optional[Check]:
    """Grade a 0-100 Lighthouse category score; None when the score is missing."""
    if score is None:
        return None
    return Check(
        test=test,
        status=grade_at_least(score, good, fair),
        severity=severity,
        value=value or f"{score}/100",
    )


def sub_audit_check(
    sub: Optional[SubAudit],
    severity: Severity,
    failed_status: CheckStatus = WARNING,
    passed_value: str = "Passed",
    failed_value: str = "Failed",
) -> Optional[Check]:
    """Grade a PageSpeed sub-audit; None when absent or not scored."""
    if sub is None or sub.passed is None:
        return None
    return Check(
        test=f"PSI: {sub.title}",
        status=PASS if sub.passed else failed_status,
        severity=severity,
        value=sub.display or (passed_value if sub.passed else failed_value),
        detail="; ".join(sub.failing_items[:3]) or None,
    )


def zoom_disabled(viewport: str) -> bool:
    return "user-scalable=no" in viewport or bool(ZOOM_DISABLED_PATTERN.search(viewport))

