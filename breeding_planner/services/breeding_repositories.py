# breeding_planner/services/breeding_repositories.py
"""
교배 관련 기록 저장소

- heat_cycles:     사용자가 확정한 실제 발정일
- planned_litters: 예상 발정일에 맞춘 교배 계획
"""

import logging
import uuid
from dataclasses import asdict
from datetime import date
from typing import Iterable, List, Optional

from firebase_admin import firestore

from breeding_planner.models.animal import HeatEntrySource, HeatHistoryEntry
from breeding_planner.models.breeding_record import ConfirmedHeatCycle, PlannedLitter, PlannedLitterStatus
from breeding_planner.utils.datetime_utils import DateTimeUtils
from .firestore_service import DEFAULT_RETRY_DEADLINE_SECONDS, FirestoreRepository

logger = logging.getLogger(__name__)


def confirmed_cycle_id(animal_id: str, cycle_date: date) -> str:
    return f"{animal_id}_{cycle_date.strftime('%Y%m%d')}"


class ConfirmedCycleRepository(FirestoreRepository):
    collection_name = 'heat_cycles'

    def __init__(self, db=None, retry_deadline_seconds: float = DEFAULT_RETRY_DEADLINE_SECONDS):
        super().__init__(db, retry_deadline_seconds)
        self.animals_ref = self.db.collection('animals')

    def list_confirmed_cycles(self, animal_ids: Iterable[str]) -> List[ConfirmedHeatCycle]:
        cycles = []
        for data in self._stream_where_in('animal_id', animal_ids, "confirmed heat cycles"):
            data.setdefault('cycle_id', data.pop('_doc_id'))
            cycle = ConfirmedHeatCycle.from_dict(data)
            if cycle is None:
                logger.warning(f"Skipping unreadable heat cycle document {data.get('cycle_id')}")
                continue
            cycles.append(cycle)
        return sorted(cycles, key=lambda c: (c.animal_id, c.date))

    def record_confirmed_heat(self, animal_id: str, cycle_date: date, notes: Optional[str] = None) -> ConfirmedHeatCycle:
        """
        [배치] 확정 발정 기록 생성과 반려견 발정 이력 추가를 원자적으로 처리합니다.
        문서 ID 가 (반려견, 날짜)로 고정되어 재시도해도 기록이 중복되지 않습니다.

        Raises:
            PersistenceError: 저장에 실패한 경우. 이때 아무것도 기록되지 않습니다.
        """
        cycle = ConfirmedHeatCycle(
            cycle_id=confirmed_cycle_id(animal_id, cycle_date),
            animal_id=animal_id,
            date=cycle_date,
            notes=notes,
        )
        history_entry = HeatHistoryEntry(date=cycle_date, notes=notes, source=HeatEntrySource.CONFIRMED_PREDICTION)

        cycle_dict = asdict(cycle)
        cycle_dict['created_at'] = DateTimeUtils.now()

        batch = self.db.batch()
        batch.set(self.collection_ref.document(cycle.cycle_id), DateTimeUtils.for_firestore(cycle_dict))
        batch.update(self.animals_ref.document(animal_id), {
            'heat_history': firestore.ArrayUnion([DateTimeUtils.for_firestore(history_entry.to_dict())])
        })
        self._commit(batch, f"confirmed heat {cycle.cycle_id}", animal_id)

        logger.info(f"Confirmed heat recorded for animal {animal_id} on {cycle_date.isoformat()}")
        return cycle


class PlannedBreedingRepository(FirestoreRepository):
    collection_name = 'planned_litters'

    def list_planned_litters(self, animal_ids: Iterable[str]) -> List[PlannedLitter]:
        litters = []
        for data in self._stream_where_in('animal_id', animal_ids, "planned litters"):
            data.setdefault('litter_id', data.pop('_doc_id'))
            litter = PlannedLitter.from_dict(data)
            if litter is None:
                logger.warning(f"Skipping unreadable planned litter document {data.get('litter_id')}")
                continue
            litters.append(litter)
        return sorted(litters, key=lambda l: (l.animal_id, l.expected_heat_date, l.litter_id))

    def create_planned_litter(self, animal_id: str, expected_heat_date: date,
                              notes: Optional[str] = None) -> PlannedLitter:
        litter = PlannedLitter(
            litter_id=str(uuid.uuid4()),
            animal_id=animal_id,
            expected_heat_date=expected_heat_date,
            status=PlannedLitterStatus.PLANNED,
            notes=notes,
        )
        litter_dict = asdict(litter)
        litter_dict['created_at'] = DateTimeUtils.now()

        batch = self.db.batch()
        batch.set(self.collection_ref.document(litter.litter_id), DateTimeUtils.for_firestore(litter_dict))
        self._commit(batch, f"planned litter {litter.litter_id}", animal_id)

        logger.info(f"Planned litter {litter.litter_id} created for animal {animal_id}")
        return litter
