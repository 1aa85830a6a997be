# breeding_planner/__init__.py

# =====================================================================================
# 1. 환경 변수 로드 (가장 먼저 실행)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. 모듈 임포트 (Module Imports)
# =====================================================================================
import os
import logging
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from flask_jwt_extended import JWTManager
import firebase_admin
from firebase_admin import credentials

# - 설정
from breeding_planner.core.config import config_by_name

# - API 블루프린트
from breeding_planner.api.heat_planning.routes import heat_planning_bp

# - 서비스 모듈
from breeding_planner.api.heat_planning.engine import PlanningOptions
from breeding_planner.api.heat_planning.services import HeatPlanningService
from breeding_planner.services.animal_repository import AnimalRepository
from breeding_planner.services.breeding_repositories import ConfirmedCycleRepository, PlannedBreedingRepository
from breeding_planner.services.reminder_service import ReminderService


def _init_firebase(app):
    if not firebase_admin._apps:
        cred_path = app.config.get('FIREBASE_CREDENTIALS_PATH')
        if not cred_path or not os.path.exists(cred_path):
            raise FileNotFoundError(f"Firebase 인증 파일을 찾을 수 없습니다: {cred_path}")
        cred = credentials.Certificate(cred_path)
        firebase_admin.initialize_app(cred, {
            'storageBucket': app.config['FIREBASE_STORAGE_BUCKET']
        })


def create_app(config_name=None, services=None):
    """
    Flask 애플리케이션 팩토리 함수.

    :param config_name: 'development' / 'testing'. 없으면 FLASK_ENV 를 사용합니다.
    :param services: 미리 만든 서비스 딕셔너리. 주어지면 Firebase 초기화를 건너뜁니다 (테스트용).
    """
    # =====================================================================================
    # 3. Flask 앱 생성 및 기본 설정
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.json.ensure_ascii = False

    # =====================================================================================
    # 4. 확장 기능 및 외부 서비스 초기화
    # =====================================================================================
    JWTManager(app)

    # =====================================================================================
    # 5. 서비스 인스턴스 생성 및 'app.services'에 저장 (의존성 주입)
    # =====================================================================================
    if services is not None:
        app.services = dict(services)
    else:
        _init_firebase(app)
        app.services = {}
        retry_deadline = app.config['REPOSITORY_RETRY_DEADLINE_SECONDS']

        # 5-1. 저장소 (Firestore)
        app.services['animals'] = AnimalRepository(retry_deadline_seconds=retry_deadline)
        app.services['heat_cycles'] = ConfirmedCycleRepository(retry_deadline_seconds=retry_deadline)
        app.services['planned_litters'] = PlannedBreedingRepository(retry_deadline_seconds=retry_deadline)
        app.services['reminders'] = ReminderService(retry_deadline_seconds=retry_deadline)

        # 5-2. 저장소를 주입받는 도메인 서비스
        try:
            options = PlanningOptions.from_config(app.config)
        except ValueError as e:
            logging.error(f"Invalid heat planning configuration: {e}")
            raise
        app.services['heat_planning'] = HeatPlanningService(
            animal_repository=app.services['animals'],
            cycle_repository=app.services['heat_cycles'],
            breeding_repository=app.services['planned_litters'],
            reminder_service=app.services['reminders'],
            options=options,
            max_cached_owners=app.config['SNAPSHOT_CACHE_MAX_OWNERS']
        )
        logging.info("Heat planning service initialized successfully")

    # =====================================================================================
    # 6. 블루프린트 등록
    # =====================================================================================
    app.register_blueprint(heat_planning_bp, url_prefix='/api/heat-planning')

    # =====================================================================================
    # 7. 전역 에러 핸들러 설정
    # =====================================================================================
    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        response = {"error_code": "VALIDATION_ERROR", "details": err.messages}
        return jsonify(response), 400

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        # 다른 핸들러에서 처리되지 않은 모든 예외를 여기서 처리
        if isinstance(err, HTTPException):
            return err
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        response = {"error_code": "INTERNAL_SERVER_ERROR", "message": "서버 내부에서 예상치 못한 오류가 발생했습니다."}
        return jsonify(response), 500

    # =====================================================================================
    # 8. 로깅 및 앱 반환
    # =====================================================================================
    if not app.debug:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    logging.info(f"Flask app created for '{config_name}' environment.")

    return app
