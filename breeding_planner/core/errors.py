# breeding_planner/core/errors.py
"""
발정 예측/교배 계획 도메인의 오류 분류

- DataQualityWarning, MissingFieldError: 치명적이지 않은 문제.
  엔진은 이 예외를 raise 하지 않고 결과의 issues 목록에 담아 반환합니다.
- PersistenceError, RepositoryFetchError: 저장소 경계에서 발생하는 오류.
  서비스 계층이 받아서 타입이 있는 결과(Result) 객체로 변환합니다.
"""
from typing import Optional


class HeatPlanningError(Exception):
    """모든 도메인 오류의 기반 클래스."""

    def __init__(self, message: str, animal_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.animal_id = animal_id

    def to_dict(self):
        return {
            'type': type(self).__name__,
            'animal_id': self.animal_id,
            'message': self.message,
        }


class DataQualityWarning(HeatPlanningError):
    """불규칙하거나 비정상적인 발정 간격. 신뢰도만 낮춥니다."""


class MissingFieldError(HeatPlanningError):
    """선택 필드가 없거나 잘못되어 None 으로 처리됨. 레코드는 그대로 유지됩니다."""

    def __init__(self, message: str, animal_id: Optional[str] = None, field_name: Optional[str] = None):
        super().__init__(message, animal_id)
        self.field_name = field_name

    def to_dict(self):
        data = super().to_dict()
        data['field'] = self.field_name
        return data


class PersistenceError(HeatPlanningError):
    """확정/계획 기록 저장 실패. 저장이 확인되기 전에는 로컬 상태를 바꾸지 않습니다."""


class RepositoryFetchError(HeatPlanningError):
    """스냅샷 조회 실패. 마지막으로 성공한 스냅샷을 stale 상태로 유지합니다."""


class AnimalNotFoundError(HeatPlanningError):
    """요청한 반려견이 소유자의 스냅샷에 없음."""


class SlotAlreadyConfirmedError(HeatPlanningError):
    """이미 확정된 발정 슬롯을 다시 확정하려는 경우."""
