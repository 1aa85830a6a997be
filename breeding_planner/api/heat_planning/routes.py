# breeding_planner/api/heat_planning/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity
from marshmallow import ValidationError

from breeding_planner.core.errors import (
    AnimalNotFoundError, PersistenceError, RepositoryFetchError, SlotAlreadyConfirmedError,
)
from .engine import display_years, filter_by_ids, filter_by_name, group_by_year
from .schemas import (
    ConfirmHeatSchema,
    PlanLitterSchema,
    PredictionsQuerySchema,
    HeatPredictionSchema,
    FertileDogSchema,
    ReminderSchema,
    ConfirmedHeatCycleSchema,
    PlannedLitterSchema,
    PlanningIssueSchema,
)

heat_planning_bp = Blueprint('heat_planning_bp', __name__)

# 도메인 오류 -> (HTTP 상태, error_code)
ERROR_RESPONSES = {
    AnimalNotFoundError: (404, "ANIMAL_NOT_FOUND"),
    SlotAlreadyConfirmedError: (409, "ALREADY_CONFIRMED"),
    PersistenceError: (502, "PERSISTENCE_FAILED"),
    RepositoryFetchError: (503, "FETCH_FAILED"),
}


def _error_response(error):
    status, error_code = ERROR_RESPONSES.get(type(error), (500, "INTERNAL_SERVER_ERROR"))
    return jsonify({"error_code": error_code, "message": error.message, "animal_id": error.animal_id}), status


def _snapshot_meta(result):
    return {
        "as_of": result.plan.as_of.isoformat(),
        "stale": result.is_stale,
        "fetched_at": result.fetched_at.isoformat() if result.fetched_at else None,
    }


def _dump_prediction_map(prediction_map):
    schema = HeatPredictionSchema(many=True)
    return {animal_id: schema.dump(predictions) for animal_id, predictions in prediction_map.items()}


@heat_planning_bp.route('/predictions', methods=['GET'])
@jwt_required()
def get_predictions():
    """
    소유자의 교배 가능 암컷별 발정 예측과 연도별 보기를 조회합니다.
    search(이름), animal_ids(선택 반려견)는 계산된 결과를 거르기만 합니다.
    """
    owner_id = get_jwt_identity()
    service = current_app.services['heat_planning']
    try:
        query = PredictionsQuerySchema().load(request.args)
        result = service.get_plan(owner_id, force_refresh=query['refresh'])
        if not result.ok:
            return _error_response(result.error)

        plan = result.plan
        fertile_dogs, prediction_map = filter_by_name(plan.fertile_dogs, plan.predictions, query['search'])
        prediction_map = filter_by_ids(prediction_map, query['animal_ids'])
        if query['animal_ids']:
            fertile_dogs = [dog for dog in fertile_dogs if dog.animal_id in prediction_map]

        years = display_years(plan.as_of, query['years'] or service.options.horizon_years)
        by_year = group_by_year(prediction_map, years)

        response = {
            **_snapshot_meta(result),
            "fertile_dogs": FertileDogSchema(many=True).dump(fertile_dogs),
            "predictions": _dump_prediction_map(prediction_map),
            "years": years,
            "by_year": {str(year): _dump_prediction_map(year_map) for year, year_map in by_year.items()},
            "issues": PlanningIssueSchema(many=True).dump(plan.issues),
        }
        return jsonify(response), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except Exception as e:
        logging.error(f"Get heat predictions API error (owner: {owner_id}): {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "발정 예측 조회 중 오류가 발생했습니다."}), 500


@heat_planning_bp.route('/fertile-dogs', methods=['GET'])
@jwt_required()
def get_fertile_dogs():
    """교배 가능한 암컷 목록 (이름 검색 지원)."""
    owner_id = get_jwt_identity()
    service = current_app.services['heat_planning']
    result = service.get_plan(owner_id)
    if not result.ok:
        return _error_response(result.error)

    fertile_dogs, _ = filter_by_name(result.plan.fertile_dogs, {}, request.args.get('search'))
    return jsonify({
        **_snapshot_meta(result),
        "fertile_dogs": FertileDogSchema(many=True).dump(fertile_dogs),
    }), 200


@heat_planning_bp.route('/reminders', methods=['GET'])
@jwt_required()
def get_heat_reminders():
    """다가오는 발정 리마인더 목록 (대시보드 저장소에도 동기화됩니다)."""
    owner_id = get_jwt_identity()
    service = current_app.services['heat_planning']
    result, reminders = service.get_reminders(owner_id)
    if not result.ok:
        return _error_response(result.error)
    return jsonify({
        **_snapshot_meta(result),
        "reminders": ReminderSchema(many=True).dump(reminders),
    }), 200


@heat_planning_bp.route('/refresh', methods=['POST'])
@jwt_required()
def refresh_snapshot():
    """저장소에서 최신 데이터를 다시 읽습니다 (화면 재진입 시 호출)."""
    owner_id = get_jwt_identity()
    service = current_app.services['heat_planning']
    result = service.refresh(owner_id)
    if not result.ok:
        return _error_response(result.error)
    return jsonify({
        **_snapshot_meta(result),
        "animal_count": len(result.plan.fertile_dogs),
        "prediction_count": len(result.plan.all_predictions()),
    }), 200


@heat_planning_bp.route('/<string:animal_id>/confirmations', methods=['POST'])
@jwt_required()
def confirm_heat(animal_id: str):
    """예측된 발정을 실제 발생일로 확정합니다."""
    owner_id = get_jwt_identity()
    service = current_app.services['heat_planning']
    try:
        data = ConfirmHeatSchema().load(request.get_json(silent=True) or {})
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400

    result = service.confirm_heat(owner_id, animal_id, data['date'], data.get('notes'))
    if not result.success:
        return _error_response(result.error)

    return jsonify({
        "cycle": ConfirmedHeatCycleSchema().dump(result.cycle),
        "prediction": HeatPredictionSchema().dump(result.prediction) if result.prediction else None,
    }), 201


@heat_planning_bp.route('/<string:animal_id>/planned-litters', methods=['POST'])
@jwt_required()
def plan_litter(animal_id: str):
    """예상 발정일에 맞춘 교배 계획을 등록합니다."""
    owner_id = get_jwt_identity()
    service = current_app.services['heat_planning']
    try:
        data = PlanLitterSchema().load(request.get_json(silent=True) or {})
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400

    result = service.plan_litter(owner_id, animal_id, data['expected_heat_date'], data.get('notes'))
    if not result.success:
        return _error_response(result.error)

    return jsonify({
        "litter": PlannedLitterSchema().dump(result.litter),
        "prediction": HeatPredictionSchema().dump(result.prediction) if result.prediction else None,
    }), 201
