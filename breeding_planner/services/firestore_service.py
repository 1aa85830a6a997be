# breeding_planner/services/firestore_service.py
"""
Firestore 저장소 공통 기능

- 조회/저장 호출에 재시도 정책(google.api_core Retry)을 적용합니다.
  일시적인 오류만 지수 백오프로 재시도하고, 총 허용 시간을 넘기면 포기합니다.
- Google API 오류를 도메인 오류(RepositoryFetchError, PersistenceError)로 변환합니다.
"""

import logging
from typing import Iterable, Iterator, List, Optional, Sequence

from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions
from google.api_core import retry as google_retry
from google.cloud.firestore_v1.base_query import FieldFilter

from breeding_planner.core.errors import PersistenceError, RepositoryFetchError

logger = logging.getLogger(__name__)

# Firestore 'in' 연산자가 한 번에 받을 수 있는 값의 수
IN_QUERY_CHUNK_SIZE = 10
# 한 번의 배치 쓰기에 담을 수 있는 최대 작업 수
BATCH_WRITE_LIMIT = 500

DEFAULT_RETRY_DEADLINE_SECONDS = 30.0


def build_retry(deadline_seconds: float = DEFAULT_RETRY_DEADLINE_SECONDS) -> google_retry.Retry:
    """일시적 오류(503, 429, 내부 오류 등)만 재시도하는 제한된 재시도 정책."""
    return google_retry.Retry(
        predicate=google_retry.if_transient_error,
        initial=0.5,
        maximum=5.0,
        multiplier=2.0,
        timeout=deadline_seconds,
    )


def chunked(values: Sequence[str], size: int = IN_QUERY_CHUNK_SIZE) -> Iterator[List[str]]:
    for start in range(0, len(values), size):
        yield list(values[start:start + size])


class FirestoreRepository:
    """Firestore 컬렉션 하나를 담당하는 저장소의 기반 클래스."""
    collection_name: str = ''

    def __init__(self, db=None, retry_deadline_seconds: float = DEFAULT_RETRY_DEADLINE_SECONDS):
        self.db = db or firestore.client()
        self.collection_ref = self.db.collection(self.collection_name)
        self.retry = build_retry(retry_deadline_seconds)

    def _stream(self, query, description: str, animal_id: Optional[str] = None) -> List[dict]:
        """쿼리 결과를 (문서 ID, 데이터) 딕셔너리 목록으로 읽습니다."""
        try:
            documents = []
            for doc in query.stream(retry=self.retry):
                data = doc.to_dict() or {}
                data.setdefault('_doc_id', doc.id)
                documents.append(data)
            return documents
        except (google_exceptions.GoogleAPICallError, google_exceptions.RetryError) as e:
            logger.error(f"Firestore fetch failed ({self.collection_name}, {description}): {e}", exc_info=True)
            raise RepositoryFetchError(f"Failed to load {description}", animal_id) from e

    def _stream_where_in(self, field: str, values: Iterable[str], description: str) -> List[dict]:
        """'in' 쿼리를 IN_QUERY_CHUNK_SIZE 단위로 나누어 실행합니다."""
        unique_values = sorted(set(values))
        documents: List[dict] = []
        for chunk in chunked(unique_values):
            query = self.collection_ref.where(filter=FieldFilter(field, "in", chunk))
            documents.extend(self._stream(query, description))
        return documents

    def _commit(self, batch, description: str, animal_id: Optional[str] = None) -> None:
        try:
            batch.commit(retry=self.retry)
        except (google_exceptions.GoogleAPICallError, google_exceptions.RetryError) as e:
            logger.error(f"Firestore write failed ({self.collection_name}, {description}): {e}", exc_info=True)
            raise PersistenceError(f"Failed to save {description}", animal_id) from e
