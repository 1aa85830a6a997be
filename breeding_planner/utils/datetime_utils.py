# breeding_planner/utils/datetime_utils.py
"""
프로젝트 전체에서 일관된 날짜 처리를 위한 중앙화된 유틸리티 모듈

이 모듈의 목적:
1. 발정일/생년월일 등 '날짜' 단위 값의 파싱과 직렬화를 표준화
2. Firestore 호환성 보장 (date <-> UTC datetime)
3. 나이 계산 및 기간 연산 통일
"""

import logging
from datetime import datetime, date, timezone, time
from enum import Enum
from typing import Optional, Any
from dateutil import parser as dateutil_parser
from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365


class DateTimeUtils:
    """날짜 처리를 위한 중앙화된 유틸리티 클래스"""

    @staticmethod
    def now() -> datetime:
        """현재 시간을 UTC timezone-aware datetime으로 반환"""
        return datetime.now(timezone.utc)

    @staticmethod
    def today() -> date:
        """오늘 날짜(UTC 기준)를 반환"""
        return datetime.now(timezone.utc).date()

    @staticmethod
    def parse_date_string(date_string: str) -> date:
        """
        날짜 문자열을 date 객체로 파싱

        지원 포맷:
        - 2024-01-15
        - 2024-01-15T10:30:00Z (시간 부분은 버림)
        - 2024/01/15
        """
        try:
            if not date_string:
                raise ValueError("빈 문자열은 파싱할 수 없습니다")

            if 'T' in date_string:
                return dateutil_parser.isoparse(date_string.replace('Z', '+00:00')).date()

            return dateutil_parser.parse(date_string).date()

        except (ValueError, OverflowError) as e:
            logger.error(f"날짜 문자열 파싱 실패: {date_string} - {e}")
            raise ValueError(f"잘못된 날짜 형식입니다: {date_string}")

    @staticmethod
    def coerce_date(value: Any) -> Optional[date]:
        """
        Firestore 문서나 요청 본문에서 읽은 값을 관대하게 date로 변환합니다.
        변환할 수 없으면 예외 대신 None을 반환합니다 (부분 결과 정책).
        """
        if value is None or value == '':
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if hasattr(value, 'timestamp'):  # Firestore Timestamp 객체
            return datetime.fromtimestamp(value.timestamp(), tz=timezone.utc).date()
        if isinstance(value, str):
            try:
                return DateTimeUtils.parse_date_string(value)
            except ValueError:
                return None
        logger.warning(f"날짜로 변환할 수 없는 값: {value!r} ({type(value).__name__})")
        return None

    @staticmethod
    def for_firestore(obj: Any) -> Any:
        """
        Firestore 저장을 위해 객체의 날짜/시간 필드를 변환

        변환 규칙:
        - date -> datetime (00:00:00 UTC)
        - timezone-naive datetime -> timezone-aware datetime (UTC)
        - Enum -> value
        - dict/list 내부 재귀적 변환
        """
        if isinstance(obj, datetime):
            if obj.tzinfo is None:
                return obj.replace(tzinfo=timezone.utc)
            return obj.astimezone(timezone.utc)

        elif isinstance(obj, date):
            return datetime.combine(obj, time.min).replace(tzinfo=timezone.utc)

        elif isinstance(obj, Enum):
            return obj.value

        elif isinstance(obj, dict):
            return {k: DateTimeUtils.for_firestore(v) for k, v in obj.items()}

        elif isinstance(obj, (list, tuple)):
            return [DateTimeUtils.for_firestore(item) for item in obj]

        return obj

    @staticmethod
    def age_in_years(birthdate: Optional[date], reference: date) -> Optional[float]:
        """
        reference 시점의 나이를 소수점 단위(년)로 계산합니다.
        만 나이 + 마지막 생일 이후 경과일 / 365.
        생년월일이 없거나 reference 이후이면 None.
        """
        if birthdate is None or birthdate > reference:
            return None

        years = relativedelta(reference, birthdate).years
        last_birthday = birthdate + relativedelta(years=years)
        return years + (reference - last_birthday).days / DAYS_PER_YEAR

