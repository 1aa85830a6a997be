# breeding_planner/api/heat_planning/engine/matching.py
"""
예측 슬롯과 외부 기록(확정 발정, 교배 계획)의 매칭 규칙

하나의 기록은 반려견당 최대 한 슬롯에만 할당됩니다.
허용 오차 안의 후보 중 아직 할당되지 않은 가장 이른 기록이 먼저 선택됩니다.
확정 발정은 허용 오차 밖이라도 투영일보다 앞선 실제 발정이면 슬롯을 보정합니다.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Iterable, Optional, Set, TypeVar

from breeding_planner.models.breeding_record import ConfirmedHeatCycle, PlannedLitter

T = TypeVar('T')


def find_earliest_unclaimed(candidates: Iterable[T],
                            target: date,
                            tolerance_days: int,
                            claimed_ids: Set[str],
                            get_date: Callable[[T], date],
                            get_id: Callable[[T], str]) -> Optional[T]:
    """target ± tolerance_days 범위의 미할당 후보 중 가장 이른 것을 반환합니다."""
    ordered = sorted(candidates, key=lambda c: (get_date(c), get_id(c)))
    for candidate in ordered:
        candidate_date = get_date(candidate)
        if get_id(candidate) in claimed_ids:
            continue
        if abs((candidate_date - target).days) <= tolerance_days:
            return candidate
    return None


def match_confirmed_cycle(cycles: Iterable[ConfirmedHeatCycle],
                          projected: date,
                          tolerance_days: int,
                          claimed_ids: Set[str],
                          after: date,
                          min_gap_days: Optional[int] = None) -> Optional[ConfirmedHeatCycle]:
    """
    슬롯 하나를 보정할 확정 기록을 찾습니다. after(직전 슬롯) 이후의 미할당 기록 중 가장 이른 것.

    - projected ± tolerance_days 안의 기록
    - projected 보다 앞서지만 after 로부터 min_gap_days 이상 지난 기록
      (투영 사슬에서 벗어난 실제 발정. 직전 슬롯과 너무 가까우면 같은 발정으로 봅니다)
    """
    for cycle in sorted(cycles, key=lambda c: (c.date, c.cycle_id)):
        if cycle.cycle_id in claimed_ids or cycle.date <= after:
            continue
        offset = (cycle.date - projected).days
        if abs(offset) <= tolerance_days:
            return cycle
        if offset < 0 and min_gap_days is not None and (cycle.date - after).days >= min_gap_days:
            return cycle
    return None


def match_planned_litter(litters: Iterable[PlannedLitter], target: date, tolerance_days: int,
                         claimed_ids: Set[str]) -> Optional[PlannedLitter]:
    # 취소된 계획은 어떤 슬롯과도 매칭하지 않습니다.
    active = [litter for litter in litters if not litter.is_cancelled]
    return find_earliest_unclaimed(active, target, tolerance_days, claimed_ids,
                                   get_date=lambda l: l.expected_heat_date, get_id=lambda l: l.litter_id)


@dataclass
class ClaimLedger:
    """한 반려견의 슬롯 해석 동안 이미 할당된 기록 ID를 추적합니다."""
    cycle_ids: Set[str] = field(default_factory=set)
    litter_ids: Set[str] = field(default_factory=set)

    def claim_cycle(self, cycle: ConfirmedHeatCycle) -> None:
        if cycle.cycle_id in self.cycle_ids:
            raise ValueError(f"Confirmed cycle {cycle.cycle_id} is already claimed")
        self.cycle_ids.add(cycle.cycle_id)

    def claim_litter(self, litter: PlannedLitter) -> None:
        if litter.litter_id in self.litter_ids:
            raise ValueError(f"Planned litter {litter.litter_id} is already claimed")
        self.litter_ids.add(litter.litter_id)
