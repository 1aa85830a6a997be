# breeding_planner/api/heat_planning/engine/options.py
"""
발정 예측 엔진 설정값

엔진의 순수 함수들은 Flask config를 직접 읽지 않습니다.
create_app 에서 PlanningOptions.from_config(app.config) 로 한 번 변환해 주입합니다.
"""

from dataclasses import dataclass
from typing import Any, Mapping

BASELINE_INTERVAL_DAYS = 180


@dataclass(frozen=True)
class PlanningOptions:
    horizon_years: int = 3
    default_interval_days: int = BASELINE_INTERVAL_DAYS
    match_tolerance_days: int = 21
    near_term_reminder_days: int = 30
    medium_term_reminder_days: int = 90
    reminder_grace_days: int = 5
    breeding_warning_age_years: float = 6.0
    max_breeding_age_years: float = 8.0
    max_predictions: int = 100
    high_confidence_max_cv: float = 0.15
    recent_gap_window: int = 6
    min_plausible_gap_days: int = 60
    max_plausible_gap_days: int = 400

    def __post_init__(self):
        if self.horizon_years < 0:
            raise ValueError("horizon_years must not be negative")
        if self.max_predictions < 1:
            raise ValueError("max_predictions must be at least 1")
        if self.match_tolerance_days < 0:
            raise ValueError("match_tolerance_days must not be negative")
        if self.min_plausible_gap_days > self.max_plausible_gap_days:
            raise ValueError("min_plausible_gap_days must not exceed max_plausible_gap_days")

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "PlanningOptions":
        """Flask config(또는 dict)에서 엔진 설정을 만듭니다. 없는 키는 기본값을 사용합니다."""
        defaults = cls()
        return cls(
            horizon_years=int(config.get('HEAT_HORIZON_YEARS', defaults.horizon_years)),
            default_interval_days=int(config.get('HEAT_DEFAULT_INTERVAL_DAYS', defaults.default_interval_days)),
            match_tolerance_days=int(config.get('HEAT_MATCH_TOLERANCE_DAYS', defaults.match_tolerance_days)),
            near_term_reminder_days=int(config.get('HEAT_REMINDER_NEAR_TERM_DAYS', defaults.near_term_reminder_days)),
            medium_term_reminder_days=int(config.get('HEAT_REMINDER_MEDIUM_TERM_DAYS', defaults.medium_term_reminder_days)),
            reminder_grace_days=int(config.get('HEAT_REMINDER_GRACE_DAYS', defaults.reminder_grace_days)),
            breeding_warning_age_years=float(config.get('BREEDING_WARNING_AGE_YEARS', defaults.breeding_warning_age_years)),
            max_breeding_age_years=float(config.get('MAX_BREEDING_AGE_YEARS', defaults.max_breeding_age_years)),
            max_predictions=int(config.get('HEAT_MAX_PREDICTIONS', defaults.max_predictions)),
            high_confidence_max_cv=float(config.get('HEAT_HIGH_CONFIDENCE_MAX_CV', defaults.high_confidence_max_cv)),
        )
