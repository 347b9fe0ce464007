"""
Severity-weighted scorer.

Every check contributes its status value (pass=100, warning=50, fail=0)
weighted by severity (critical=3, major=2, minor=1). The auto score is the
weighted mean rounded half up, computed in integers so identical checks
always give the identical score.
"""
from typing import Iterable

from ..models.check import Check, CheckStatus, Severity

NEUTRAL_SCORE = 50

SEVERITY_WEIGHTS = {
    Severity.CRITICAL: 3,
    Severity.MAJOR: 2,
    Severity.MINOR: 1,
}

STATUS_VALUES = {
    CheckStatus.PASS: 100,
    CheckStatus.WARNING: 50,
    CheckStatus.FAIL: 0,
}


def round_half_up_ratio(numerator: int, denominator: int) -> int:
    """round(numerator / denominator), halves rounded up, for non-negative ints."""
    return (2 * numerator + denominator) // (2 * denominator)


def compute_auto_score(checks: Iterable[Check]) -> int:
    """
    Compute the auto score for a list of checks.

    Args:
        checks: Graded checks for one category

    Returns:
        Integer score in [0, 100]; NEUTRAL_SCORE when there are no checks
    """
    total_weight = 0
    total_score = 0
    for check in checks:
        weight = SEVERITY_WEIGHTS[check.severity]
        total_weight += weight
        total_score += STATUS_VALUES[check.status] * weight

    if total_weight == 0:
        return NEUTRAL_SCORE
    return round_half_up_ratio(total_score, total_weight)
