# breeding_planner/services/reminder_service.py
import logging
from dataclasses import asdict
from typing import List, Sequence

from google.cloud.firestore_v1.base_query import FieldFilter

from breeding_planner.models.reminder import Reminder, ReminderPriority, ReminderType
from breeding_planner.utils.datetime_utils import DateTimeUtils
from .firestore_service import BATCH_WRITE_LIMIT, FirestoreRepository

logger = logging.getLogger(__name__)


class ReminderService(FirestoreRepository):
    """
    대시보드 리마인더 저장소('reminders' 컬렉션).
    발정 리마인더는 결정적인 ID 로 upsert 되므로 몇 번을 동기화해도 중복되지 않습니다.
    """
    collection_name = 'reminders'

    def list_heat_reminders(self, owner_id: str) -> List[Reminder]:
        query = (self.collection_ref
                 .where(filter=FieldFilter("owner_id", "==", owner_id))
                 .where(filter=FieldFilter("type", "==", ReminderType.HEAT.value)))

        reminders = []
        for data in self._stream(query, f"heat reminders of owner {owner_id}"):
            due_date = DateTimeUtils.coerce_date(data.get('due_date'))
            if due_date is None:
                continue
            try:
                priority = ReminderPriority(data.get('priority'))
            except ValueError:
                priority = ReminderPriority.LOW
            reminders.append(Reminder(
                reminder_id=data.get('reminder_id') or data['_doc_id'],
                title=data.get('title', ''),
                description=data.get('description', ''),
                due_date=due_date,
                priority=priority,
                related_id=data.get('related_id', ''),
                is_completed=bool(data.get('is_completed', False)),
            ))
        return sorted(reminders, key=lambda r: (r.due_date, r.related_id))

    def sync_heat_reminders(self, owner_id: str, reminders: Sequence[Reminder]) -> int:
        """
        소유자의 발정 리마인더를 계산 결과와 맞춥니다.
        - 새 리마인더는 생성, 기존 리마인더는 내용만 갱신 (완료 여부는 유지)
        - 더 이상 계산되지 않는 발정 리마인더는 삭제

        Returns:
            기록(생성/갱신/삭제)한 문서 수
        """
        wanted = {reminder.reminder_id: reminder for reminder in reminders}
        existing_ids = {r.reminder_id for r in self.list_heat_reminders(owner_id)}

        operations = []
        for reminder_id, reminder in wanted.items():
            reminder_dict = asdict(reminder)
            # 사용자가 완료 처리한 상태를 덮어쓰지 않습니다.
            reminder_dict.pop('is_completed')
            reminder_dict['owner_id'] = owner_id
            reminder_dict['updated_at'] = DateTimeUtils.now()
            if reminder_id not in existing_ids:
                reminder_dict['is_completed'] = False
            operations.append(('set', reminder_id, DateTimeUtils.for_firestore(reminder_dict)))
        for stale_id in sorted(existing_ids - wanted.keys()):
            operations.append(('delete', stale_id, None))

        for start in range(0, len(operations), BATCH_WRITE_LIMIT):
            batch = self.db.batch()
            for action, reminder_id, payload in operations[start:start + BATCH_WRITE_LIMIT]:
                doc_ref = self.collection_ref.document(reminder_id)
                if action == 'set':
                    batch.set(doc_ref, payload, merge=True)
                else:
                    batch.delete(doc_ref)
            self._commit(batch, f"heat reminders of owner {owner_id}")

        logger.info(f"Synced heat reminders for owner {owner_id}: "
                    f"{len(wanted)} upserted, {len(existing_ids - wanted.keys())} removed")
        return len(operations)
