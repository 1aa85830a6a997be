# breeding_planner/api/heat_planning/engine/status_resolver.py
"""
슬롯 상태 결정

규칙은 RULES 튜플의 순서대로 평가되고 처음으로 결과를 내는 규칙이 이깁니다.
    1. 확정 기록 매칭     -> confirmed (투영 단계에서 슬롯에 붙은 기록)
    2. 교배 계획 매칭     -> planned
    3. 기준일 이전 날짜   -> overdue
    4. 그 외             -> predicted
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Optional, Sequence, Tuple

from breeding_planner.models.breeding_record import ConfirmedHeatCycle, PlannedLitter
from breeding_planner.models.heat_prediction import PredictionStatus
from .matching import ClaimLedger, match_planned_litter
from .prediction_generator import ProjectedSlot


@dataclass(frozen=True)
class StatusResolution:
    status: PredictionStatus
    matched_cycle: Optional[ConfirmedHeatCycle] = None
    matched_litter: Optional[PlannedLitter] = None


@dataclass
class ResolutionContext:
    """한 반려견의 슬롯들을 해석하는 동안 공유되는 입력. ledger 만 변경됩니다."""
    confirmed_cycles: Sequence[ConfirmedHeatCycle]
    planned_litters: Sequence[PlannedLitter]
    as_of: date
    tolerance_days: int = 21
    ledger: ClaimLedger = field(default_factory=ClaimLedger)


Rule = Callable[[ProjectedSlot, ResolutionContext], Optional[StatusResolution]]


def _claim_litter(slot: ProjectedSlot, context: ResolutionContext) -> Optional[PlannedLitter]:
    litter = match_planned_litter(context.planned_litters, slot.date, context.tolerance_days,
                                  context.ledger.litter_ids)
    if litter is not None:
        context.ledger.claim_litter(litter)
    return litter


def confirmed_rule(slot: ProjectedSlot, context: ResolutionContext) -> Optional[StatusResolution]:
    # 확정 기록은 직전 슬롯 이후라는 조건과 함께 generate_slots 에서만 매칭합니다.
    cycle = slot.matched_cycle
    if cycle is None:
        return None
    if cycle.cycle_id not in context.ledger.cycle_ids:
        context.ledger.claim_cycle(cycle)

    return StatusResolution(PredictionStatus.CONFIRMED, matched_cycle=cycle,
                            matched_litter=_claim_litter(slot, context))


def planned_rule(slot: ProjectedSlot, context: ResolutionContext) -> Optional[StatusResolution]:
    litter = _claim_litter(slot, context)
    if litter is None:
        return None
    return StatusResolution(PredictionStatus.PLANNED, matched_litter=litter)


def overdue_rule(slot: ProjectedSlot, context: ResolutionContext) -> Optional[StatusResolution]:
    if slot.date < context.as_of:
        return StatusResolution(PredictionStatus.OVERDUE)
    return None


def predicted_rule(slot: ProjectedSlot, context: ResolutionContext) -> Optional[StatusResolution]:
    return StatusResolution(PredictionStatus.PREDICTED)


RULES: Tuple[Rule, ...] = (confirmed_rule, planned_rule, overdue_rule, predicted_rule)


def resolve_status(slot: ProjectedSlot, context: ResolutionContext,
                   rules: Sequence[Rule] = RULES) -> StatusResolution:
    for rule in rules:
        resolution = rule(slot, context)
        if resolution is not None:
            return resolution
    # predicted_rule 이 마지막에 항상 결과를 내므로 사용자 정의 규칙 목록에서만 도달합니다.
    return StatusResolution(PredictionStatus.PREDICTED)

