# breeding_planner/models/reminder.py
from dataclasses import dataclass
from datetime import date
from enum import Enum

class ReminderType(Enum):
    """리마인더 유형을 정의하는 Enum 클래스"""
    HEAT = "heat"

class ReminderPriority(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

@dataclass(frozen=True)
class Reminder:
    """
    Firestore 'reminders' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    reminder_id 는 (반려견, 예정일)로부터 결정적으로 만들어지므로
    재계산 시 같은 문서를 덮어씁니다.
    """
    reminder_id: str
    title: str
    description: str
    due_date: date
    priority: ReminderPriority
    related_id: str        # 리마인더의 대상 반려견 ID
    type: ReminderType = ReminderType.HEAT
    is_completed: bool = False
