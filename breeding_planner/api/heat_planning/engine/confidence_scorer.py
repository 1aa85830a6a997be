# breeding_planner/api/heat_planning/engine/confidence_scorer.py
"""
주기 추정치의 신뢰도 평가

- high:   사용 가능한 간격 4개 이상, 변동계수 임계값 미만, 데이터 품질 경고 없음
- medium: 간격 2개 이상, 또는 경고 없는 간격 1개
- low:    그 외 (이력 0~1건 포함)
"""

from breeding_planner.models.heat_prediction import Confidence
from .interval_estimator import IntervalEstimate

HIGH_CONFIDENCE_MIN_GAPS = 4
MEDIUM_CONFIDENCE_MIN_GAPS = 2


def score_confidence(estimate: IntervalEstimate, high_confidence_max_cv: float = 0.15) -> Confidence:
    if estimate.entry_count < 2:
        return Confidence.LOW

    gap_count = estimate.usable_gap_count
    cv = estimate.coefficient_of_variation

    if gap_count >= HIGH_CONFIDENCE_MIN_GAPS and cv is not None and cv < high_confidence_max_cv:
        return Confidence.MEDIUM if estimate.has_quality_issues else Confidence.HIGH

    if gap_count >= MEDIUM_CONFIDENCE_MIN_GAPS:
        return Confidence.MEDIUM

    if gap_count == 1 and not estimate.has_quality_issues:
        return Confidence.MEDIUM

    return Confidence.LOW
