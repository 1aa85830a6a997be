# breeding_planner/models/heat_prediction.py
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

class PredictionStatus(Enum):
    """슬롯 상태. predicted -> overdue -> planned -> confirmed 순으로만 진행됩니다."""
    PREDICTED = "predicted"
    OVERDUE = "overdue"
    PLANNED = "planned"
    CONFIRMED = "confirmed"

    @property
    def is_terminal(self) -> bool:
        return self is PredictionStatus.CONFIRMED

    @property
    def can_confirm(self) -> bool:
        return not self.is_terminal

class Confidence(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

@dataclass(frozen=True)
class HeatPrediction:
    """
    계산 결과로만 존재하는 발정 예측 (저장하지 않음).
    prediction_id 는 animal_id 와 순번으로 만들어 같은 스냅샷에서는 항상 같습니다.
    """
    prediction_id: str
    animal_id: str
    animal_name: str
    date: date
    year: int
    status: PredictionStatus
    confidence: Confidence
    interval: int                       # 직전 슬롯으로부터의 일 수
    projected_date: date                # 보정 전 예측일
    age_at_heat: Optional[float] = None
    has_planned_litter: bool = False
    planned_litter_id: Optional[str] = None
    confirmed_cycle_id: Optional[str] = None
    notes: Optional[str] = None

@dataclass(frozen=True)
class FertileDog:
    """교배 가능한 암컷 목록 항목. needs_warning 은 권장 교배 연령 초과 여부."""
    animal_id: str
    name: str
    birthdate: Optional[date]
    age: Optional[float]
    needs_warning: bool = False
