# breeding_planner/models/animal.py
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, List, Dict, Any
from enum import Enum
import logging

from breeding_planner.utils.datetime_utils import DateTimeUtils

class AnimalSex(Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"

class HeatEntrySource(Enum):
    """발정 이력의 출처: 직접 기록 / 예측 확정으로 생성"""
    MANUAL = "MANUAL"
    CONFIRMED_PREDICTION = "CONFIRMED_PREDICTION"

@dataclass(frozen=True)
class HeatHistoryEntry:
    date: date
    notes: Optional[str] = None
    source: HeatEntrySource = HeatEntrySource.MANUAL

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional["HeatHistoryEntry"]:
        """날짜를 해석할 수 없는 항목은 None을 반환합니다."""
        entry_date = DateTimeUtils.coerce_date(data.get('date'))
        if entry_date is None:
            return None

        try:
            source = HeatEntrySource(data.get('source') or HeatEntrySource.MANUAL.value)
        except ValueError:
            source = HeatEntrySource.MANUAL

        return cls(date=entry_date, notes=data.get('notes'), source=source)

    def to_dict(self) -> Dict[str, Any]:
        return {'date': self.date, 'notes': self.notes, 'source': self.source.value}

@dataclass(frozen=True)
class Animal:
    """
    Firestore 'animals' 컬렉션 문서 구조.
    예측 엔진이 읽는 불변 스냅샷이므로 frozen 으로 둡니다.
    """
    animal_id: str
    owner_id: str
    name: str
    sex: AnimalSex
    birthdate: Optional[date] = None
    heat_history: List[HeatHistoryEntry] = field(default_factory=list)
    heat_interval_override: Optional[int] = None
    sterilization_date: Optional[date] = None

    @property
    def is_female(self) -> bool:
        return self.sex == AnimalSex.FEMALE

    def sorted_heat_history(self) -> List[HeatHistoryEntry]:
        return sorted(self.heat_history, key=lambda entry: entry.date)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Animal":
        """
        Firestore에서 받은 딕셔너리로부터 Animal 인스턴스를 생성합니다.
        선택 필드가 잘못된 경우 해당 필드만 None 으로 두고 레코드는 유지합니다.
        """
        processed_data = data.copy()
        animal_id = processed_data.get('animal_id')

        sex_str = processed_data.get('sex')
        try:
            processed_data['sex'] = AnimalSex(str(sex_str).upper())
        except ValueError:
            logging.warning(f"Invalid AnimalSex value '{sex_str}' for animal {animal_id}. Defaulting to MALE.")
            processed_data['sex'] = AnimalSex.MALE

        for date_field in ('birthdate', 'sterilization_date'):
            raw_value = processed_data.get(date_field)
            processed_data[date_field] = DateTimeUtils.coerce_date(raw_value)
            if raw_value and processed_data[date_field] is None:
                logging.warning(f"Invalid {date_field} '{raw_value}' for animal {animal_id}")

        history = []
        for raw_entry in processed_data.get('heat_history') or []:
            entry = HeatHistoryEntry.from_dict(raw_entry) if isinstance(raw_entry, dict) else None
            if entry is None:
                logging.warning(f"Skipping unreadable heat history entry {raw_entry!r} for animal {animal_id}")
                continue
            history.append(entry)
        processed_data['heat_history'] = history

        override = processed_data.get('heat_interval_override')
        try:
            processed_data['heat_interval_override'] = int(override) if override else None
        except (TypeError, ValueError):
            logging.warning(f"Invalid heat_interval_override '{override}' for animal {animal_id}")
            processed_data['heat_interval_override'] = None

        known_fields = cls.__dataclass_fields__.keys()
        return cls(**{k: v for k, v in processed_data.items() if k in known_fields})
