# breeding_planner/api/heat_planning/engine/test_status_resolver.py
from datetime import date

from breeding_planner.api.heat_planning.engine.prediction_generator import ProjectedSlot
from breeding_planner.api.heat_planning.engine.status_resolver import (
    RULES, ResolutionContext, confirmed_rule, overdue_rule, planned_rule, predicted_rule, resolve_status,
)
from breeding_planner.models.breeding_record import ConfirmedHeatCycle, PlannedLitter, PlannedLitterStatus
from breeding_planner.models.heat_prediction import PredictionStatus

AS_OF = date(2025, 6, 1)


def _slot(day, sequence=1, cycle=None):
    return ProjectedSlot(sequence=sequence, date=day, projected_date=day, interval=180, matched_cycle=cycle)


def _cycle(day):
    return ConfirmedHeatCycle(cycle_id=f"dog-1_{day.strftime('%Y%m%d')}", animal_id='dog-1', date=day)


def _litter(litter_id, day, status=PlannedLitterStatus.PLANNED):
    return PlannedLitter(litter_id=litter_id, animal_id='dog-1', expected_heat_date=day, status=status)


def _context(cycles=(), litters=()):
    return ResolutionContext(confirmed_cycles=list(cycles), planned_litters=list(litters), as_of=AS_OF)


def test_rule_order():
    assert RULES == (confirmed_rule, planned_rule, overdue_rule, predicted_rule)


def test_future_slot_without_records_is_predicted():
    assert resolve_status(_slot(date(2025, 12, 21)), _context()).status == PredictionStatus.PREDICTED


def test_past_slot_without_records_is_overdue():
    assert resolve_status(_slot(date(2024, 12, 26)), _context()).status == PredictionStatus.OVERDUE


def test_slot_on_as_of_date_is_not_overdue():
    assert resolve_status(_slot(AS_OF), _context()).status == PredictionStatus.PREDICTED


def test_generator_match_is_confirmed():
    cycle = _cycle(date(2025, 7, 10))
    context = _context(cycles=[cycle])
    context.ledger.cycle_ids.add(cycle.cycle_id)

    resolution = resolve_status(_slot(date(2025, 7, 10), cycle=cycle), context)
    assert resolution.status == PredictionStatus.CONFIRMED
    assert resolution.matched_cycle == cycle


def test_unmatched_slot_is_not_confirmed_by_a_nearby_cycle():
    # 확정 기록은 투영 단계에서만 슬롯에 붙습니다. 붙지 않은 슬롯은 그 기록을 가져가지 않습니다.
    cycle = _cycle(date(2024, 12, 30))
    context = _context(cycles=[cycle])

    resolution = resolve_status(_slot(date(2024, 12, 26)), context)
    assert resolution.status == PredictionStatus.OVERDUE
    assert cycle.cycle_id not in context.ledger.cycle_ids


def test_planned_litter_claims_nearby_slot():
    litter = _litter('litter-1', date(2025, 12, 20))
    resolution = resolve_status(_slot(date(2025, 12, 21)), _context(litters=[litter]))
    assert resolution.status == PredictionStatus.PLANNED
    assert resolution.matched_litter == litter


def test_planned_beats_overdue():
    litter = _litter('litter-1', date(2024, 12, 20))
    assert resolve_status(_slot(date(2024, 12, 26)), _context(litters=[litter])).status == PredictionStatus.PLANNED


def test_cancelled_litter_is_ignored():
    litter = _litter('litter-1', date(2025, 12, 20), status=PlannedLitterStatus.CANCELLED)
    assert resolve_status(_slot(date(2025, 12, 21)), _context(litters=[litter])).status == PredictionStatus.PREDICTED


def test_confirmed_slot_keeps_its_planned_litter_link():
    cycle = _cycle(date(2025, 12, 25))
    litter = _litter('litter-1', date(2025, 12, 20))

    resolution = resolve_status(_slot(date(2025, 12, 25), cycle=cycle), _context(cycles=[cycle], litters=[litter]))
    assert resolution.status == PredictionStatus.CONFIRMED
    assert resolution.matched_litter == litter


def test_a_litter_is_claimed_by_only_one_slot():
    litter = _litter('litter-1', date(2025, 7, 1))
    slots = [_slot(date(2025, 6, 25), 1), _slot(date(2025, 7, 5), 2)]

    context = _context(litters=[litter])
    resolutions = [resolve_status(slot, context) for slot in slots]
    assert [r.status for r in resolutions] == [PredictionStatus.PLANNED, PredictionStatus.PREDICTED]


def test_earliest_unclaimed_litter_goes_first_with_id_tiebreak():
    litters = [_litter('litter-b', date(2025, 12, 18)), _litter('litter-a', date(2025, 12, 18)),
               _litter('litter-c', date(2025, 12, 24))]
    context = _context(litters=litters)

    first = resolve_status(_slot(date(2025, 12, 21), 1), context)
    second = resolve_status(_slot(date(2025, 12, 22), 2), context)
    assert first.matched_litter.litter_id == 'litter-a'
    assert second.matched_litter.litter_id == 'litter-b'


def test_custom_rule_list():
    resolution = resolve_status(_slot(date(2024, 1, 1)), _context(), rules=(predicted_rule,))
    assert resolution.status == PredictionStatus.PREDICTED
