# breeding_planner/api/heat_planning/engine/test_confidence_scorer.py
from datetime import date, timedelta

from breeding_planner.api.heat_planning.engine.confidence_scorer import score_confidence
from breeding_planner.api.heat_planning.engine.interval_estimator import estimate_interval
from breeding_planner.models.heat_prediction import Confidence


def _confidence(gaps, start=date(2020, 1, 1), **kwargs):
    dates = [start]
    for gap in gaps:
        dates.append(dates[-1] + timedelta(days=gap))
    return score_confidence(estimate_interval(dates, **kwargs))


def test_no_history_is_low():
    assert score_confidence(estimate_interval([])) == Confidence.LOW


def test_single_entry_is_never_high():
    assert _confidence([]) == Confidence.LOW
    assert _confidence([], override=180) == Confidence.LOW


def test_regular_history_with_four_gaps_is_high():
    assert _confidence([180, 182, 178, 181]) == Confidence.HIGH


def test_irregular_history_is_medium():
    assert _confidence([100, 250, 120, 240]) == Confidence.MEDIUM


def test_two_or_three_gaps_are_medium():
    assert _confidence([180, 180]) == Confidence.MEDIUM
    assert _confidence([180, 180, 180]) == Confidence.MEDIUM


def test_single_clean_gap_is_medium():
    assert _confidence([180]) == Confidence.MEDIUM


def test_single_gap_with_bad_data_is_low():
    # 30일 간격은 버려지고 180일 간격 하나만 남음
    assert _confidence([30, 180]) == Confidence.LOW


def test_data_quality_warning_downgrades_high():
    start = date(2020, 1, 1)
    dates = [start, start]
    for _ in range(4):
        dates.append(dates[-1] + timedelta(days=180))
    assert score_confidence(estimate_interval(dates)) == Confidence.MEDIUM


def test_threshold_is_configurable():
    estimate = estimate_interval([date(2020, 1, 1) + timedelta(days=d) for d in (0, 170, 360, 530, 720)])
    assert score_confidence(estimate, high_confidence_max_cv=0.0001) == Confidence.MEDIUM
    assert score_confidence(estimate, high_confidence_max_cv=0.5) == Confidence.HIGH
