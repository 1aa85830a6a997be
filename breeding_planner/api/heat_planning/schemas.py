# breeding_planner/api/heat_planning/schemas.py
from marshmallow import Schema, fields, validate, pre_load, validates_schema, ValidationError

from breeding_planner.utils.datetime_utils import DateTimeUtils

MAX_DISPLAY_YEARS = 10


class ConfirmHeatSchema(Schema):
    """POST /api/heat-planning/<animal_id>/confirmations 실제 발정일 확정 요청 스키마."""
    date = fields.Date(required=True, format="%Y-%m-%d",
                       error_messages={"required": "확정할 발정 시작일(date)은 필수입니다."})
    notes = fields.Str(required=False, allow_none=True, validate=validate.Length(max=500))

    @validates_schema
    def validate_not_in_future(self, data, **kwargs):
        """아직 오지 않은 날짜는 확정할 수 없습니다."""
        if data.get('date') and data['date'] > DateTimeUtils.today():
            raise ValidationError('미래 날짜는 확정할 수 없습니다.', 'date')


class PlanLitterSchema(Schema):
    """POST /api/heat-planning/<animal_id>/planned-litters 교배 계획 요청 스키마."""
    expected_heat_date = fields.Date(required=True, format="%Y-%m-%d")
    notes = fields.Str(required=False, allow_none=True, validate=validate.Length(max=500))


class PredictionsQuerySchema(Schema):
    """GET /api/heat-planning/predictions 쿼리 파라미터 스키마."""
    search = fields.Str(required=False, load_default=None)
    animal_ids = fields.List(fields.Str(), required=False, load_default=list)
    years = fields.Int(required=False, load_default=None, validate=validate.Range(min=1, max=MAX_DISPLAY_YEARS))
    refresh = fields.Bool(required=False, load_default=False)

    @pre_load
    def preprocess_data(self, data, **kwargs):
        """쿼리 파라미터 전처리."""
        # ImmutableMultiDict를 수정 가능한 딕셔너리로 변환 (키마다 첫 번째 값)
        processed_data = data.to_dict() if hasattr(data, 'to_dict') else dict(data)

        # animal_ids 문자열을 리스트로 변환 (a,b,c)
        if isinstance(processed_data.get('animal_ids'), str):
            processed_data['animal_ids'] = [i.strip() for i in processed_data['animal_ids'].split(',') if i.strip()]

        # 빈 값은 없는 것으로 취급
        for key in ('search', 'years'):
            if processed_data.get(key) == '':
                processed_data.pop(key)

        return processed_data


class HeatPredictionSchema(Schema):
    """발정 예측 응답 스키마."""
    id = fields.Str(attribute='prediction_id')
    animal_id = fields.Str()
    animal_name = fields.Str()
    date = fields.Date()
    year = fields.Int()
    status = fields.Function(lambda p: p.status.value)
    confidence = fields.Function(lambda p: p.confidence.value)
    interval = fields.Int()
    projected_date = fields.Date()
    age_at_heat = fields.Float(allow_none=True)
    has_planned_litter = fields.Bool()
    planned_litter_id = fields.Str(allow_none=True)
    confirmed_cycle_id = fields.Str(allow_none=True)
    notes = fields.Str(allow_none=True)


class FertileDogSchema(Schema):
    """교배 가능 암컷 응답 스키마."""
    id = fields.Str(attribute='animal_id')
    name = fields.Str()
    birthdate = fields.Date(allow_none=True)
    age = fields.Float(allow_none=True)
    needs_warning = fields.Bool()


class ReminderSchema(Schema):
    """대시보드 리마인더 응답 스키마."""
    id = fields.Str(attribute='reminder_id')
    title = fields.Str()
    description = fields.Str()
    due_date = fields.Date()
    type = fields.Function(lambda r: r.type.value)
    priority = fields.Function(lambda r: r.priority.value)
    related_id = fields.Str()
    is_completed = fields.Bool()


class ConfirmedHeatCycleSchema(Schema):
    id = fields.Str(attribute='cycle_id')
    animal_id = fields.Str()
    date = fields.Date()
    notes = fields.Str(allow_none=True)


class PlannedLitterSchema(Schema):
    id = fields.Str(attribute='litter_id')
    animal_id = fields.Str()
    expected_heat_date = fields.Date()
    status = fields.Function(lambda l: l.status.value)
    notes = fields.Str(allow_none=True)


class PlanningIssueSchema(Schema):
    """엔진이 수집한 비치명적 문제 (데이터 품질 경고, 누락 필드)."""
    type = fields.Function(lambda e: type(e).__name__)
    animal_id = fields.Str(allow_none=True)
    message = fields.Str()
    field = fields.Function(lambda e: getattr(e, 'field_name', None))
