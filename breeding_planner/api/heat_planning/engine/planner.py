# breeding_planner/api/heat_planning/engine/planner.py
"""
스냅샷 하나를 발정 예측 계획으로 변환하는 진입점

    snapshot (반려견 + 확정 기록 + 교배 계획 + 기준일)
        -> 주기 추정 / 신뢰도
        -> 슬롯 투영 (자기 보정)
        -> 상태 결정
        -> 그룹화, 교배 가능 목록, 리마인더

I/O 가 없는 순수 함수이므로 같은 스냅샷에는 항상 같은 결과를 반환합니다.
"""

import logging
from collections import OrderedDict, defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from dateutil.relativedelta import relativedelta

from breeding_planner.core.errors import HeatPlanningError
from breeding_planner.models.animal import Animal
from breeding_planner.models.breeding_record import ConfirmedHeatCycle, PlannedLitter
from breeding_planner.models.heat_prediction import FertileDog, HeatPrediction, PredictionStatus
from breeding_planner.models.reminder import Reminder
from breeding_planner.utils.datetime_utils import DateTimeUtils
from .aggregation import PredictionMap, build_fertile_dogs, group_by_animal
from .confidence_scorer import score_confidence
from .interval_estimator import IntervalEstimate, estimate_interval
from .options import PlanningOptions
from .prediction_generator import ProjectedSlot, generate_slots, projection_anchor
from .reminder_bridge import build_heat_reminders
from .status_resolver import ResolutionContext, StatusResolution, resolve_status

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlanningSnapshot:
    """한 소유자의 불변 입력 묶음."""
    animals: Tuple[Animal, ...]
    confirmed_cycles: Tuple[ConfirmedHeatCycle, ...]
    planned_litters: Tuple[PlannedLitter, ...]
    as_of: date

    def find_animal(self, animal_id: str) -> Optional[Animal]:
        return next((a for a in self.animals if a.animal_id == animal_id), None)


@dataclass(frozen=True)
class PlanningResult:
    as_of: date
    predictions: PredictionMap
    fertile_dogs: List[FertileDog]
    reminders: List[Reminder]
    estimates: Dict[str, IntervalEstimate] = field(default_factory=dict)
    issues: List[HeatPlanningError] = field(default_factory=list)

    def all_predictions(self) -> List[HeatPrediction]:
        return [p for predictions in self.predictions.values() for p in predictions]


def horizon_end(as_of: date, horizon_years: int) -> date:
    return as_of + relativedelta(years=horizon_years)


def _to_prediction(animal: Animal, slot: ProjectedSlot, resolution: StatusResolution,
                   estimate: IntervalEstimate, options: PlanningOptions) -> HeatPrediction:
    age = DateTimeUtils.age_in_years(animal.birthdate, slot.date)
    cycle, litter = resolution.matched_cycle, resolution.matched_litter
    notes = (cycle.notes if cycle else None) or (litter.notes if litter else None)
    return HeatPrediction(
        prediction_id=f"{animal.animal_id}-{slot.sequence}",
        animal_id=animal.animal_id,
        animal_name=animal.name,
        date=slot.date,
        year=slot.year,
        status=resolution.status,
        confidence=score_confidence(estimate, options.high_confidence_max_cv),
        interval=slot.interval,
        projected_date=slot.projected_date,
        age_at_heat=round(age, 1) if age is not None else None,
        has_planned_litter=litter is not None,
        planned_litter_id=litter.litter_id if litter else None,
        confirmed_cycle_id=cycle.cycle_id if cycle else None,
        notes=notes,
    )


def plan_animal(animal: Animal,
                confirmed_cycles: Sequence[ConfirmedHeatCycle],
                planned_litters: Sequence[PlannedLitter],
                as_of: date,
                options: PlanningOptions) -> Tuple[List[HeatPrediction], IntervalEstimate]:
    """한 반려견의 예측 목록과 사용한 주기 추정치를 반환합니다."""
    estimate = estimate_interval(
        [entry.date for entry in animal.heat_history],
        override=animal.heat_interval_override,
        default_interval=options.default_interval_days,
        recent_gap_window=options.recent_gap_window,
        min_plausible_gap=options.min_plausible_gap_days,
        max_plausible_gap=options.max_plausible_gap_days,
        animal_id=animal.animal_id,
    )

    context = ResolutionContext(
        confirmed_cycles=list(confirmed_cycles),
        planned_litters=list(planned_litters),
        as_of=as_of,
        tolerance_days=options.match_tolerance_days,
    )
    slots = generate_slots(
        anchor=projection_anchor(animal, as_of),
        interval_days=estimate.interval_days,
        horizon_end=horizon_end(as_of, options.horizon_years),
        confirmed_cycles=context.confirmed_cycles,
        tolerance_days=options.match_tolerance_days,
        max_predictions=options.max_predictions,
        min_gap_days=options.min_plausible_gap_days,
        claimed_cycle_ids=context.ledger.cycle_ids,
        animal_id=animal.animal_id,
    )

    predictions = [
        _to_prediction(animal, slot, resolve_status(slot, context), estimate, options)
        for slot in slots
    ]
    return predictions, estimate


def build_heat_plan(snapshot: PlanningSnapshot, options: Optional[PlanningOptions] = None) -> PlanningResult:
    options = options or PlanningOptions()
    as_of = snapshot.as_of

    cycles_by_animal: Dict[str, List[ConfirmedHeatCycle]] = defaultdict(list)
    for cycle in snapshot.confirmed_cycles:
        cycles_by_animal[cycle.animal_id].append(cycle)
    litters_by_animal: Dict[str, List[PlannedLitter]] = defaultdict(list)
    for litter in snapshot.planned_litters:
        litters_by_animal[litter.animal_id].append(litter)

    fertile_dogs, missing = build_fertile_dogs(
        snapshot.animals, as_of,
        breeding_warning_age_years=options.breeding_warning_age_years,
        max_breeding_age_years=options.max_breeding_age_years,
    )
    issues: List[HeatPlanningError] = list(missing)

    animals_by_id = {animal.animal_id: animal for animal in snapshot.animals}
    predictions: List[HeatPrediction] = []
    estimates: Dict[str, IntervalEstimate] = OrderedDict()
    for dog in fertile_dogs:
        animal = animals_by_id[dog.animal_id]
        animal_predictions, estimate = plan_animal(
            animal, cycles_by_animal.get(animal.animal_id, ()), litters_by_animal.get(animal.animal_id, ()),
            as_of, options)
        estimates[animal.animal_id] = estimate
        issues.extend(estimate.warnings)
        predictions.extend(animal_predictions)

    prediction_map = group_by_animal(predictions)
    for dog in fertile_dogs:
        prediction_map.setdefault(dog.animal_id, [])

    reminders = build_heat_reminders(
        predictions, as_of,
        near_term_days=options.near_term_reminder_days,
        medium_term_days=options.medium_term_reminder_days,
        grace_days=options.reminder_grace_days,
    )

    # 주기 관련 경고는 estimate_interval 에서 이미 기록합니다.
    for issue in missing:
        logger.warning(f"Missing field '{issue.field_name}' for animal {issue.animal_id}: {issue.message}")

    return PlanningResult(
        as_of=as_of,
        predictions=prediction_map,
        fertile_dogs=fertile_dogs,
        reminders=reminders,
        estimates=estimates,
        issues=issues,
    )


def find_slot_near(predictions: Sequence[HeatPrediction], target: date,
                   tolerance_days: int) -> Optional[HeatPrediction]:
    """target 에 가장 가까운 허용 오차 내 슬롯. 거리가 같으면 이른 슬롯입니다."""
    candidates = [p for p in predictions if abs((p.date - target).days) <= tolerance_days]
    if not candidates:
        return None
    return min(candidates, key=lambda p: (abs((p.date - target).days), p.date))


def is_slot_confirmed(prediction: Optional[HeatPrediction]) -> bool:
    return prediction is not None and prediction.status == PredictionStatus.CONFIRMED
