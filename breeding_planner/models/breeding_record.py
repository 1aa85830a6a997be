# breeding_planner/models/breeding_record.py
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional, Dict, Any

from breeding_planner.utils.datetime_utils import DateTimeUtils

@dataclass(frozen=True)
class ConfirmedHeatCycle:
    """
    Firestore 'heat_cycles' 컬렉션 문서 구조.
    사용자가 실제 발정 시작일을 기록한 것 (예측이 아닌 사실).
    """
    cycle_id: str
    animal_id: str
    date: date
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional["ConfirmedHeatCycle"]:
        cycle_date = DateTimeUtils.coerce_date(data.get('date'))
        if cycle_date is None or not data.get('animal_id'):
            return None
        return cls(
            cycle_id=data.get('cycle_id') or f"{data['animal_id']}_{cycle_date.strftime('%Y%m%d')}",
            animal_id=data['animal_id'],
            date=cycle_date,
            notes=data.get('notes'),
        )

class PlannedLitterStatus(Enum):
    PLANNED = "planned"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

@dataclass(frozen=True)
class PlannedLitter:
    """
    Firestore 'planned_litters' 컬렉션 문서 구조.
    특정 암컷의 예상 발정일에 맞춘 교배 계획.
    """
    litter_id: str
    animal_id: str
    expected_heat_date: date
    status: PlannedLitterStatus = PlannedLitterStatus.PLANNED
    notes: Optional[str] = None

    @property
    def is_cancelled(self) -> bool:
        return self.status == PlannedLitterStatus.CANCELLED

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional["PlannedLitter"]:
        expected = DateTimeUtils.coerce_date(data.get('expected_heat_date'))
        if expected is None or not data.get('animal_id') or not data.get('litter_id'):
            return None
        try:
            status = PlannedLitterStatus(data.get('status') or PlannedLitterStatus.PLANNED.value)
        except ValueError:
            status = PlannedLitterStatus.PLANNED
        return cls(
            litter_id=data['litter_id'],
            animal_id=data['animal_id'],
            expected_heat_date=expected,
            status=status,
            notes=data.get('notes'),
        )
