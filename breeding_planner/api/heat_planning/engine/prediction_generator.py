# breeding_planner/api/heat_planning/engine/prediction_generator.py
"""
발정 예정일 투영 (자기 보정)

기준일에서 주기를 더해 가며 다음 슬롯을 만듭니다.
허용 오차 안에 확정 기록이 있으면 그 날짜로 슬롯을 교체하고,
투영일보다 앞서 기록된 실제 발정(사슬 밖 확정 기록)도 같은 방식으로 슬롯을 교체합니다.
이후 슬롯은 교체된 날짜를 기준으로 다시 계산합니다.
반복은 horizon 과 별개로 max_predictions 개수로 상한이 걸려 있습니다.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List, Optional, Set

from breeding_planner.models.animal import Animal, HeatEntrySource
from breeding_planner.models.breeding_record import ConfirmedHeatCycle
from .matching import match_confirmed_cycle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectedSlot:
    sequence: int
    date: date                      # 보정 후 날짜 (확정 기록이 있으면 실제 날짜)
    projected_date: date            # 보정 전 예측일
    interval: int                   # 직전 슬롯으로부터의 일 수
    matched_cycle: Optional[ConfirmedHeatCycle] = None

    @property
    def year(self) -> int:
        return self.date.year

    @property
    def is_corrected(self) -> bool:
        return self.matched_cycle is not None


def projection_anchor(animal: Animal, as_of: date) -> date:
    """
    투영 시작일.
    직접 기록한(MANUAL) 마지막 발정일을 우선 사용합니다. 확정으로 추가된 이력은
    이미 해석된 슬롯이므로 기준을 옮기지 않습니다.
    """
    history = animal.sorted_heat_history()
    manual = [entry.date for entry in history if entry.source == HeatEntrySource.MANUAL]
    if manual:
        return manual[-1]
    if history:
        return history[-1].date
    return as_of


def generate_slots(anchor: date,
                   interval_days: int,
                   horizon_end: date,
                   confirmed_cycles: Iterable[ConfirmedHeatCycle] = (),
                   tolerance_days: int = 21,
                   max_predictions: int = 100,
                   min_gap_days: Optional[int] = 60,
                   claimed_cycle_ids: Optional[Set[str]] = None,
                   animal_id: Optional[str] = None) -> List[ProjectedSlot]:
    """
    anchor 이후 horizon_end 까지의 슬롯 목록을 반환합니다.

    Args:
        anchor: 마지막으로 알려진 발정일 (이 날짜 자체는 슬롯이 아님)
        interval_days: 주기 (1 이상)
        horizon_end: 이 날짜를 넘는 슬롯은 만들지 않습니다.
        confirmed_cycles: 해당 반려견의 확정 기록
        min_gap_days: 직전 슬롯과 이 일 수 이상 떨어진 기록만 사슬 밖 보정에 사용합니다.
        claimed_cycle_ids: 이미 다른 슬롯에 할당된 확정 기록 ID. 매칭되면 여기에 추가됩니다.

    Returns:
        날짜가 엄격히 증가하는 ProjectedSlot 목록
    """
    if interval_days is None or interval_days <= 0:
        raise ValueError(f"interval_days must be positive, got {interval_days}")

    cycles = list(confirmed_cycles)
    claimed = claimed_cycle_ids if claimed_cycle_ids is not None else set()
    slots: List[ProjectedSlot] = []
    previous = anchor

    for sequence in range(1, max_predictions + 1):
        projected = previous + timedelta(days=interval_days)
        if projected > horizon_end:
            break

        # 직전 슬롯 이후의 기록만 후보로 삼아 날짜 순서를 보장합니다.
        cycle = match_confirmed_cycle(cycles, projected, tolerance_days, claimed,
                                      after=previous, min_gap_days=min_gap_days)
        slot_date = projected
        if cycle is not None:
            claimed.add(cycle.cycle_id)
            slot_date = cycle.date
            if slot_date > horizon_end:
                break

        slots.append(ProjectedSlot(
            sequence=sequence,
            date=slot_date,
            projected_date=projected,
            interval=(slot_date - previous).days,
            matched_cycle=cycle,
        ))
        previous = slot_date
    else:
        logger.warning(f"Prediction cap of {max_predictions} reached for animal {animal_id}; "
                       f"projection truncated at {previous.isoformat()}")

    return slots
