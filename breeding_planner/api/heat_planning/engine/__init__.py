from .options import PlanningOptions, BASELINE_INTERVAL_DAYS
from .interval_estimator import IntervalEstimate, IntervalSource, estimate_interval
from .confidence_scorer import score_confidence
from .matching import ClaimLedger
from .prediction_generator import ProjectedSlot, generate_slots, projection_anchor
from .status_resolver import RULES, ResolutionContext, StatusResolution, resolve_status
from .aggregation import (
    build_fertile_dogs, display_years, filter_by_ids, filter_by_name, group_by_animal, group_by_year,
)
from .reminder_bridge import build_heat_reminders, reminder_id_for, reminder_priority
from .planner import (
    PlanningResult, PlanningSnapshot, build_heat_plan, find_slot_near, horizon_end, is_slot_confirmed,
)

__all__ = [
    'PlanningOptions', 'BASELINE_INTERVAL_DAYS',
    'IntervalEstimate', 'IntervalSource', 'estimate_interval',
    'score_confidence',
    'ClaimLedger',
    'ProjectedSlot', 'generate_slots', 'projection_anchor',
    'RULES', 'ResolutionContext', 'StatusResolution', 'resolve_status',
    'build_fertile_dogs', 'display_years', 'filter_by_ids', 'filter_by_name', 'group_by_animal', 'group_by_year',
    'build_heat_reminders', 'reminder_id_for', 'reminder_priority',
    'PlanningResult', 'PlanningSnapshot', 'build_heat_plan', 'find_slot_near', 'horizon_end', 'is_slot_confirmed',
]
