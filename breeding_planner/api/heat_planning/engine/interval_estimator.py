# breeding_planner/api/heat_planning/engine/interval_estimator.py
"""
반려견별 발정 주기(일) 추정

최근 간격에 더 큰 가중치를 주는 가중 평균을 사용합니다.
오래된 이상치보다 최근의 주기 변화를 따라가기 위함입니다.

중간 발정이 기록되지 않은 간격(예: 한 슬롯을 건너뛰고 확정한 경우)은
한 주기로 보이는 간격의 중앙값을 기준으로 여러 주기로 나누어 사용합니다.
"""

import logging
import statistics
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from breeding_planner.core.errors import DataQualityWarning
from .options import BASELINE_INTERVAL_DAYS

logger = logging.getLogger(__name__)

# 기본 주기의 이 배수 이하인 간격만 한 주기로 보고 기준 주기를 계산합니다.
SINGLE_CYCLE_FACTOR = 1.5


class IntervalSource(Enum):
    CALCULATED = "calculated"
    OVERRIDE = "override"
    DEFAULT = "default"


@dataclass(frozen=True)
class IntervalEstimate:
    interval_days: int
    source: IntervalSource
    entry_count: int
    gaps: Tuple[int, ...] = ()
    coefficient_of_variation: Optional[float] = None
    warnings: Tuple[DataQualityWarning, ...] = field(default=(), compare=False)

    @property
    def usable_gap_count(self) -> int:
        return len(self.gaps)

    @property
    def has_quality_issues(self) -> bool:
        return bool(self.warnings)


def consecutive_gaps(dates: Iterable[date]) -> List[int]:
    """정렬된 날짜 목록의 연속 간격(일)."""
    ordered = sorted(dates)
    return [(later - earlier).days for earlier, later in zip(ordered, ordered[1:])]


def weighted_recent_mean(gaps: List[int], window: int) -> float:
    """가장 최근 window 개의 간격에 1, 2, ..., n 의 선형 가중치를 적용한 평균."""
    recent = gaps[-window:] if window > 0 else gaps
    weights = range(1, len(recent) + 1)
    return sum(w * g for w, g in zip(weights, recent)) / sum(weights)


def reference_interval(gaps: List[int], default_interval: int, override: Optional[int] = None) -> float:
    """간격을 나눌 때 기준으로 삼을 한 주기의 길이."""
    if override is not None and override > 0:
        return override
    single_cycle = [gap for gap in gaps if gap <= default_interval * SINGLE_CYCLE_FACTOR]
    return statistics.median(single_cycle) if single_cycle else default_interval


def split_multi_cycle_gap(gap: int, reference: float, min_plausible_gap: int, max_plausible_gap: int) -> List[int]:
    """
    gap 이 기준 주기의 여러 배이면 같은 길이의 주기들로 나눕니다 (합계는 gap 과 같음).
    나눈 길이가 인정 범위를 벗어나면 나누지 않습니다.
    """
    cycles = round(gap / reference)
    if cycles < 2 or not min_plausible_gap <= gap / cycles <= max_plausible_gap:
        return [gap]
    base, extra = divmod(gap, cycles)
    return [base + 1 if i < extra else base for i in range(cycles)]


def estimate_interval(history_dates: Iterable[date],
                      override: Optional[int] = None,
                      default_interval: int = BASELINE_INTERVAL_DAYS,
                      recent_gap_window: int = 6,
                      min_plausible_gap: int = 60,
                      max_plausible_gap: int = 400,
                      animal_id: Optional[str] = None) -> IntervalEstimate:
    """
    발정 이력으로부터 주기를 추정합니다.

    Args:
        history_dates: 발정 시작일 목록 (순서 무관, 내부에서 정렬)
        override: 사용자가 지정한 주기. 있으면 계산값보다 우선합니다.
        default_interval: 이력이 부족할 때 사용할 기본 주기
        recent_gap_window: 가중 평균에 사용할 최근 간격 수
        min_plausible_gap, max_plausible_gap: 주기로 인정할 간격 범위

    Returns:
        IntervalEstimate. interval_days 는 항상 1 이상입니다.
    """
    dates = sorted(history_dates)
    warnings: List[DataQualityWarning] = []

    if default_interval is None or default_interval <= 0:
        warnings.append(DataQualityWarning(
            f"Default interval {default_interval} is not positive; using {BASELINE_INTERVAL_DAYS} days",
            animal_id))
        default_interval = BASELINE_INTERVAL_DAYS

    plausible: List[int] = []
    for gap in consecutive_gaps(dates):
        if gap <= 0:
            warnings.append(DataQualityWarning("Duplicate heat date in history", animal_id))
        elif gap < min_plausible_gap or gap > max_plausible_gap:
            warnings.append(DataQualityWarning(f"Implausible heat gap of {gap} days ignored", animal_id))
        else:
            plausible.append(gap)

    reference = reference_interval(plausible, default_interval, override)
    usable: List[int] = []
    for gap in plausible:
        parts = split_multi_cycle_gap(gap, reference, min_plausible_gap, max_plausible_gap)
        if len(parts) > 1:
            warnings.append(DataQualityWarning(
                f"Heat gap of {gap} days counted as {len(parts)} cycles (unrecorded heat)", animal_id))
        usable.extend(parts)

    cv = None
    if len(usable) >= 2:
        cv = statistics.pstdev(usable) / statistics.mean(usable)

    def _result(interval: int, source: IntervalSource) -> IntervalEstimate:
        for warning in warnings:
            logger.info(f"Data quality warning for animal {animal_id}: {warning.message}")
        return IntervalEstimate(
            interval_days=interval,
            source=source,
            entry_count=len(dates),
            gaps=tuple(usable),
            coefficient_of_variation=cv,
            warnings=tuple(warnings),
        )

    if override is not None:
        if override > 0:
            return _result(int(override), IntervalSource.OVERRIDE)
        warnings.append(DataQualityWarning(f"Ignoring non-positive interval override {override}", animal_id))

    if len(dates) < 2:
        return _result(default_interval, IntervalSource.DEFAULT)

    if not usable:
        warnings.append(DataQualityWarning("No usable gaps in heat history; using default interval", animal_id))
        return _result(default_interval, IntervalSource.DEFAULT)

    interval = round(weighted_recent_mean(usable, recent_gap_window))
    if interval <= 0:
        warnings.append(DataQualityWarning(f"Computed interval {interval} is not positive", animal_id))
        return _result(default_interval, IntervalSource.DEFAULT)

    return _result(interval, IntervalSource.CALCULATED)
