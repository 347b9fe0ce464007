"""
Score fusion.

Blends the AI reviewer's score with the auto score for each category, and
weights category scores into the overall score. Both are exact: blending uses
integer arithmetic and the overall score uses Decimal weights, with halves
rounded up.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Mapping, Optional

from ..models.check import CheckResult
from ..models.report import CategoryResult
from .findings import (
    coerce_findings,
    coerce_recommendations,
    findings_from_checks,
    recommendations_from_checks,
)
from .scorer import NEUTRAL_SCORE, compute_auto_score, round_half_up_ratio

AI_WEIGHT_TENTHS = 6
AUTO_WEIGHT_TENTHS = 4


def clamp_score(value: int) -> int:
    return max(0, min(100, value))


def coerce_ai_score(value: Any) -> Optional[int]:
    """
    Normalise an AI-reported score to an int in [0, 100].

    Accepts ints, floats and numeric strings; anything else (including
    booleans and NaN) counts as no score.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().rstrip("%")
    try:
        number = Decimal(str(value))
    except ArithmeticError:
        return None
    if not number.is_finite():
        return None
    number = max(Decimal(0), min(Decimal(100), number))
    return clamp_score(int(number.quantize(Decimal(1), rounding=ROUND_HALF_UP)))


def blend_score(auto_score: int, ai_score: Optional[int]) -> int:
    """round(ai * 0.6 + auto * 0.4), or the auto score when there is no AI score."""
    if ai_score is None:
        return auto_score
    return round_half_up_ratio(
        ai_score * AI_WEIGHT_TENTHS + auto_score * AUTO_WEIGHT_TENTHS, 10
    )


def overall_score(scores: Mapping[str, int], weights: Mapping[str, float]) -> int:
    """
    Weight-normalised overall score.

    Args:
        scores: Blended score per category key
        weights: Weight per category key

    Returns:
        round(sum(score * weight) / sum(weight)) over categories that have both
        a score and a weight; NEUTRAL_SCORE when the total weight is zero.
    """
    total = Decimal(0)
    total_weight = Decimal(0)
    for key, score in scores.items():
        if key not in weights:
            continue
        weight = Decimal(str(weights[key]))
        total += Decimal(score) * weight
        total_weight += weight

    if total_weight == 0:
        return NEUTRAL_SCORE
    return clamp_score(int((total / total_weight).quantize(Decimal(1), rounding=ROUND_HALF_UP)))


def fuse_category(
    key: str,
    name: str,
    check_result: CheckResult,
    ai_result: Optional[Dict[str, Any]],
) -> CategoryResult:
    """Combine a producer's checks and an optional AI review into one result."""
    auto = compute_auto_score(check_result.checks)
    ai_result = ai_result or {}
    ai_score = coerce_ai_score(ai_result.get("overall_score"))
    sub_scores = ai_result.get("category_scores")

    return CategoryResult(
        key=key,
        name=name,
        auto_score=auto,
        ai_score=ai_score,
        ai_partial=bool(ai_result.get("_partial", False)),
        confidence=check_result.confidence,
        score=blend_score(auto, ai_score),
        checks=list(check_result.checks),
        findings=coerce_findings(ai_result.get("findings")) or findings_from_checks(check_result.checks),
        recommendations=(
            coerce_recommendations(ai_result.get("recommendations"))
            or recommendations_from_checks(check_result.checks)
        ),
        ai_category_scores=sub_scores if isinstance(sub_scores, dict) else {},
        summary=dict(check_result.summary),
    )
