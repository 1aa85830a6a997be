# breeding_planner/api/heat_planning/engine/reminder_bridge.py
"""
발정 예측 -> 대시보드 리마인더 변환

리마인더 ID 는 heat-<animal_id>-<YYYY-MM-DD> 로 고정되어
같은 예측을 몇 번 다시 계산해도 같은 리마인더가 됩니다.
"""

from datetime import date
from typing import Iterable, List, Tuple

from breeding_planner.models.heat_prediction import HeatPrediction, PredictionStatus
from breeding_planner.models.reminder import Reminder, ReminderPriority, ReminderType

REMINDABLE_STATUSES = frozenset({PredictionStatus.PREDICTED, PredictionStatus.PLANNED, PredictionStatus.OVERDUE})


def reminder_id_for(animal_id: str, due_date: date) -> str:
    return f"heat-{animal_id}-{due_date.isoformat()}"


def reminder_priority(days_until: int, near_term_days: int = 30, medium_term_days: int = 90) -> ReminderPriority:
    if days_until <= near_term_days:
        return ReminderPriority.HIGH
    if days_until <= medium_term_days:
        return ReminderPriority.MEDIUM
    return ReminderPriority.LOW


def _describe(prediction: HeatPrediction, days_until: int) -> Tuple[str, str]:
    name = prediction.animal_name
    if days_until > 0:
        title = f"{name} heat cycle approaching"
        description = f"{name}'s heat cycle is expected in {days_until} days ({prediction.date.isoformat()})."
    elif days_until == 0:
        title = f"{name} heat cycle expected today"
        description = f"{name}'s heat cycle is expected today ({prediction.date.isoformat()})."
    else:
        title = f"{name} heat cycle started"
        description = (f"{name}'s heat cycle was expected {-days_until} days ago "
                       f"({prediction.date.isoformat()}). Confirm it once observed.")
    if prediction.has_planned_litter:
        description += " A litter is planned for this cycle."
    return title, description


def build_heat_reminders(predictions: Iterable[HeatPrediction],
                         as_of: date,
                         near_term_days: int = 30,
                         medium_term_days: int = 90,
                         grace_days: int = 5) -> List[Reminder]:
    """
    확정되지 않았고 (기준일 - grace_days) 이후인 예측만 리마인더로 만듭니다.
    결과는 예정일, 반려견 ID 순으로 정렬됩니다.
    """
    reminders = {}
    for prediction in predictions:
        if prediction.status not in REMINDABLE_STATUSES:
            continue
        days_until = (prediction.date - as_of).days
        if days_until < -grace_days:
            continue

        title, description = _describe(prediction, days_until)
        reminder = Reminder(
            reminder_id=reminder_id_for(prediction.animal_id, prediction.date),
            title=title,
            description=description,
            due_date=prediction.date,
            priority=reminder_priority(days_until, near_term_days, medium_term_days),
            related_id=prediction.animal_id,
            type=ReminderType.HEAT,
        )
        reminders[reminder.reminder_id] = reminder

    return sorted(reminders.values(), key=lambda r: (r.due_date, r.related_id))
