# breeding_planner/core/config.py

import os # 'os' 모듈: 환경 변수를 읽기 위해 사용합니다.


def _env_int(key: str, default: int) -> int:
    return int(os.getenv(key, default))


def _env_float(key: str, default: float) -> float:
    return float(os.getenv(key, default))


class Config:
    """모든 환경 설정의 기반이 되는 공통 설정 클래스입니다."""
    # JWT 토큰을 서명하는 데 사용되는 키입니다. 토큰 발급은 외부 인증 서비스가 담당합니다.
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')

    FIREBASE_STORAGE_BUCKET = os.getenv('FIREBASE_STORAGE_BUCKET')

    # ---------------------------------------------------------------
    # 발정(heat) 예측 엔진 설정
    # 엔진의 순수 함수들은 이 값을 직접 읽지 않고 PlanningOptions로 전달받습니다.
    # ---------------------------------------------------------------
    # 예측을 펼칠 기간 (오늘부터 N년)
    HEAT_HORIZON_YEARS = _env_int('HEAT_HORIZON_YEARS', 3)
    # 이력이 부족할 때 사용하는 기본 발정 주기 (일)
    HEAT_DEFAULT_INTERVAL_DAYS = _env_int('HEAT_DEFAULT_INTERVAL_DAYS', 180)
    # 예측 날짜와 확정/계획 기록을 매칭할 때 허용하는 오차 (±일)
    HEAT_MATCH_TOLERANCE_DAYS = _env_int('HEAT_MATCH_TOLERANCE_DAYS', 21)
    # 리마인더 우선순위 구간 (일)
    HEAT_REMINDER_NEAR_TERM_DAYS = _env_int('HEAT_REMINDER_NEAR_TERM_DAYS', 30)
    HEAT_REMINDER_MEDIUM_TERM_DAYS = _env_int('HEAT_REMINDER_MEDIUM_TERM_DAYS', 90)
    # 예정일이 지난 뒤에도 리마인더를 유지하는 기간 (일)
    HEAT_REMINDER_GRACE_DAYS = _env_int('HEAT_REMINDER_GRACE_DAYS', 5)
    # 교배 연령 경고 / 교배 가능 최대 연령 (년)
    BREEDING_WARNING_AGE_YEARS = _env_float('BREEDING_WARNING_AGE_YEARS', 6.0)
    MAX_BREEDING_AGE_YEARS = _env_float('MAX_BREEDING_AGE_YEARS', 8.0)
    # 한 마리당 생성할 수 있는 최대 예측 수 (무한 반복 방지용 상한)
    HEAT_MAX_PREDICTIONS = _env_int('HEAT_MAX_PREDICTIONS', 100)
    # 'high' 신뢰도를 부여할 수 있는 최대 변동계수
    HEAT_HIGH_CONFIDENCE_MAX_CV = _env_float('HEAT_HIGH_CONFIDENCE_MAX_CV', 0.15)

    # Firestore 조회/저장 재시도의 총 허용 시간 (초)
    REPOSITORY_RETRY_DEADLINE_SECONDS = _env_float('REPOSITORY_RETRY_DEADLINE_SECONDS', 30.0)

    # 조회 실패 시 사용할 마지막 스냅샷을 보관할 최대 소유자 수
    SNAPSHOT_CACHE_MAX_OWNERS = _env_int('SNAPSHOT_CACHE_MAX_OWNERS', 1000)


class DevelopmentConfig(Config):
    """개발 환경을 위한 설정 클래스입니다."""
    DEBUG = True
    # 개발용 Firebase 프로젝트의 서비스 계정 키 파일 경로
    FIREBASE_CREDENTIALS_PATH = os.getenv('DEV_FIREBASE_CREDENTIALS_PATH')


class ProductionConfig(Config):
    """운영 환경을 위한 설정 클래스입니다."""
    DEBUG = False
    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')


class TestingConfig(Config):
    """테스트 환경을 위한 설정 클래스입니다."""
    TESTING = True
    DEBUG = False
    FIREBASE_CREDENTIALS_PATH = os.getenv('TEST_FIREBASE_CREDENTIALS_PATH')
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'testing-secret-key-for-heat-planning-api')
    # 테스트에서는 재시도 대기를 짧게 둡니다.
    REPOSITORY_RETRY_DEADLINE_SECONDS = 1.0


# FLASK_ENV 값에 따라 create_app에서 설정 클래스를 선택하는 데 사용됩니다.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig,
    production=ProductionConfig
)
