# breeding_planner/api/heat_planning/services.py
"""
발정 예측/교배 계획 서비스

엔진(순수 함수)을 둘러싼 계층입니다.
- 저장소에서 소유자 단위 스냅샷을 읽고, 요청마다 예측을 새로 계산합니다.
- 조회에 실패하면 마지막으로 성공한 스냅샷을 stale 로 표시해 계속 보여줍니다.
- 확정/계획 저장은 성공이 확인된 뒤에만 스냅샷을 다시 읽어 반영합니다.
"""

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Callable, List, Optional, Tuple

from breeding_planner.core.errors import (
    AnimalNotFoundError, HeatPlanningError, PersistenceError, RepositoryFetchError, SlotAlreadyConfirmedError,
)
from breeding_planner.models.breeding_record import ConfirmedHeatCycle, PlannedLitter
from breeding_planner.models.heat_prediction import HeatPrediction
from breeding_planner.models.reminder import Reminder
from breeding_planner.services.animal_repository import AnimalRepository
from breeding_planner.services.breeding_repositories import (
    ConfirmedCycleRepository, PlannedBreedingRepository, confirmed_cycle_id,
)
from breeding_planner.services.reminder_service import ReminderService
from breeding_planner.utils.datetime_utils import DateTimeUtils
from .engine import PlanningOptions, PlanningResult, PlanningSnapshot, build_heat_plan, find_slot_near
from .engine.planner import is_slot_confirmed

DEFAULT_MAX_CACHED_OWNERS = 1000


@dataclass(frozen=True)
class SnapshotResult:
    """
    계획 조회 결과.
    plan 이 None 이면 보여줄 스냅샷이 전혀 없는 경우이며 error 가 채워집니다.
    """
    plan: Optional[PlanningResult]
    is_stale: bool = False
    fetched_at: Optional[datetime] = None
    error: Optional[RepositoryFetchError] = None

    @property
    def ok(self) -> bool:
        return self.plan is not None


@dataclass(frozen=True)
class ConfirmationResult:
    success: bool
    cycle: Optional[ConfirmedHeatCycle] = None
    prediction: Optional[HeatPrediction] = None
    error: Optional[HeatPlanningError] = None


@dataclass(frozen=True)
class PlanLitterResult:
    success: bool
    litter: Optional[PlannedLitter] = None
    prediction: Optional[HeatPrediction] = None
    error: Optional[HeatPlanningError] = None


class HeatPlanningService:
    """소유자별 발정 예측 계획의 조회와 확정/교배 계획 저장을 담당하는 서비스."""

    def __init__(self,
                 animal_repository: AnimalRepository,
                 cycle_repository: ConfirmedCycleRepository,
                 breeding_repository: PlannedBreedingRepository,
                 reminder_service: Optional[ReminderService] = None,
                 options: Optional[PlanningOptions] = None,
                 today_provider: Callable[[], date] = DateTimeUtils.today,
                 max_cached_owners: int = DEFAULT_MAX_CACHED_OWNERS):
        self.animal_repository = animal_repository
        self.cycle_repository = cycle_repository
        self.breeding_repository = breeding_repository
        self.reminder_service = reminder_service
        self.options = options or PlanningOptions()
        self.today_provider = today_provider
        # owner_id -> (마지막으로 성공한 스냅샷, 조회 시각). 가장 오래 쓰이지 않은 소유자부터 제거합니다.
        self._last_known_good: "OrderedDict[str, Tuple[PlanningSnapshot, datetime]]" = OrderedDict()
        self.max_cached_owners = max(1, max_cached_owners)
        self._lock = threading.Lock()
        logging.info("HeatPlanningService initialized with dependencies.")

    # ------------------------------------------------------------------
    # 스냅샷 조회
    # ------------------------------------------------------------------
    def _fetch_snapshot(self, owner_id: str) -> PlanningSnapshot:
        animals = self.animal_repository.list_animals(owner_id)
        animal_ids = [animal.animal_id for animal in animals if animal.is_female]
        cycles = self.cycle_repository.list_confirmed_cycles(animal_ids) if animal_ids else []
        litters = self.breeding_repository.list_planned_litters(animal_ids) if animal_ids else []
        return PlanningSnapshot(
            animals=tuple(animals),
            confirmed_cycles=tuple(cycles),
            planned_litters=tuple(litters),
            as_of=self.today_provider(),
        )

    def _cached(self, owner_id: str) -> Optional[Tuple[PlanningSnapshot, datetime]]:
        with self._lock:
            cached = self._last_known_good.get(owner_id)
            if cached is not None:
                self._last_known_good.move_to_end(owner_id)
            return cached

    def _store(self, owner_id: str, snapshot: PlanningSnapshot, fetched_at: datetime) -> None:
        with self._lock:
            self._last_known_good[owner_id] = (snapshot, fetched_at)
            self._last_known_good.move_to_end(owner_id)
            while len(self._last_known_good) > self.max_cached_owners:
                evicted, _ = self._last_known_good.popitem(last=False)
                logging.info(f"Evicted cached heat planning snapshot of owner {evicted}")

    def refresh(self, owner_id: str) -> SnapshotResult:
        """저장소에서 새 스냅샷을 읽어 계획을 계산합니다. 실패하면 마지막 스냅샷을 stale 로 사용합니다."""
        try:
            snapshot = self._fetch_snapshot(owner_id)
        except RepositoryFetchError as e:
            cached = self._cached(owner_id)
            if cached is None:
                logging.error(f"Snapshot fetch failed for owner {owner_id} with no fallback: {e.message}")
                return SnapshotResult(plan=None, error=e)
            logging.warning(f"Snapshot fetch failed for owner {owner_id}; serving stale snapshot: {e.message}")
            stale_snapshot, fetched_at = cached
            # 데이터는 예전 것이어도 overdue 판정은 오늘 기준으로 합니다.
            stale_snapshot = replace(stale_snapshot, as_of=self.today_provider())
            return SnapshotResult(plan=build_heat_plan(stale_snapshot, self.options),
                                  is_stale=True, fetched_at=fetched_at, error=e)

        fetched_at = DateTimeUtils.now()
        self._store(owner_id, snapshot, fetched_at)
        return SnapshotResult(plan=build_heat_plan(snapshot, self.options), fetched_at=fetched_at)

    def get_plan(self, owner_id: str, force_refresh: bool = False) -> SnapshotResult:
        """
        마지막 스냅샷으로 계획을 다시 계산합니다. 스냅샷이 없거나 force_refresh 면 새로 읽습니다.
        예측 결과 자체는 캐시하지 않습니다.
        """
        cached = None if force_refresh else self._cached(owner_id)
        if cached is None:
            return self.refresh(owner_id)
        snapshot, fetched_at = cached
        snapshot = replace(snapshot, as_of=self.today_provider())
        return SnapshotResult(plan=build_heat_plan(snapshot, self.options), fetched_at=fetched_at)

    def invalidate(self, owner_id: str) -> None:
        with self._lock:
            self._last_known_good.pop(owner_id, None)

    # ------------------------------------------------------------------
    # 리마인더
    # ------------------------------------------------------------------
    def get_reminders(self, owner_id: str) -> Tuple[SnapshotResult, List[Reminder]]:
        """계획에서 리마인더를 만들고, 최신 스냅샷 기준이면 대시보드 저장소에 동기화합니다."""
        result = self.get_plan(owner_id)
        if not result.ok:
            return result, []
        reminders = result.plan.reminders
        if not result.is_stale:
            self._sync_reminders(owner_id, reminders)
        return result, reminders

    def _sync_reminders(self, owner_id: str, reminders: List[Reminder]) -> bool:
        if self.reminder_service is None:
            return False
        try:
            self.reminder_service.sync_heat_reminders(owner_id, reminders)
            return True
        except (PersistenceError, RepositoryFetchError) as e:
            # 리마인더 동기화 실패는 다음 계산에서 다시 시도됩니다.
            logging.warning(f"Heat reminder sync failed for owner {owner_id}: {e.message}")
            return False

    # ------------------------------------------------------------------
    # 확정 / 교배 계획
    # ------------------------------------------------------------------
    def _fresh_plan_for(self, owner_id: str, animal_id: str) -> PlanningResult:
        """쓰기 전에 최신 스냅샷으로 계획을 계산합니다. stale 스냅샷으로는 쓰지 않습니다."""
        result = self.refresh(owner_id)
        if result.error is not None:
            raise result.error
        if animal_id not in result.plan.predictions:
            raise AnimalNotFoundError(f"Animal {animal_id} is not a breeding-eligible female of this owner",
                                      animal_id)
        return result.plan

    def _prediction_after_write(self, owner_id: str, animal_id: str,
                                matches: Callable[[HeatPrediction], bool]) -> Optional[HeatPrediction]:
        result = self.refresh(owner_id)
        if not result.ok or result.is_stale:
            logging.warning(f"Write for animal {animal_id} succeeded but the snapshot could not be re-read")
            return None
        self._sync_reminders(owner_id, result.plan.reminders)
        return next((p for p in result.plan.predictions.get(animal_id, []) if matches(p)), None)

    def confirm_heat(self, owner_id: str, animal_id: str, cycle_date: date,
                     notes: Optional[str] = None) -> ConfirmationResult:
        """
        실제 발정일을 확정합니다.
        이미 확정된 슬롯이면 SlotAlreadyConfirmedError, 저장 실패면 PersistenceError 를 결과로 반환합니다.
        """
        try:
            plan = self._fresh_plan_for(owner_id, animal_id)
        except (RepositoryFetchError, AnimalNotFoundError) as e:
            return ConfirmationResult(success=False, error=e)

        cycle_id = confirmed_cycle_id(animal_id, cycle_date)
        predictions = plan.predictions[animal_id]
        slot = find_slot_near(predictions, cycle_date, self.options.match_tolerance_days)
        if is_slot_confirmed(slot) or any(p.confirmed_cycle_id == cycle_id for p in predictions):
            logging.info(f"Heat slot near {cycle_date.isoformat()} for animal {animal_id} is already confirmed")
            return ConfirmationResult(success=False, prediction=slot, error=SlotAlreadyConfirmedError(
                f"Heat cycle near {cycle_date.isoformat()} is already confirmed", animal_id))

        try:
            cycle = self.cycle_repository.record_confirmed_heat(animal_id, cycle_date, notes)
        except PersistenceError as e:
            # 저장이 확인되지 않았으므로 캐시된 스냅샷도 그대로 둡니다.
            return ConfirmationResult(success=False, prediction=slot, error=e)

        prediction = self._prediction_after_write(owner_id, animal_id,
                                                  lambda p: p.confirmed_cycle_id == cycle.cycle_id)
        return ConfirmationResult(success=True, cycle=cycle, prediction=prediction)

    def plan_litter(self, owner_id: str, animal_id: str, expected_heat_date: date,
                    notes: Optional[str] = None) -> PlanLitterResult:
        """예상 발정일에 맞춘 교배 계획을 생성합니다."""
        try:
            self._fresh_plan_for(owner_id, animal_id)
        except (RepositoryFetchError, AnimalNotFoundError) as e:
            return PlanLitterResult(success=False, error=e)

        try:
            litter = self.breeding_repository.create_planned_litter(animal_id, expected_heat_date, notes)
        except PersistenceError as e:
            return PlanLitterResult(success=False, error=e)

        prediction = self._prediction_after_write(owner_id, animal_id,
                                                  lambda p: p.planned_litter_id == litter.litter_id)
        return PlanLitterResult(success=True, litter=litter, prediction=prediction)
