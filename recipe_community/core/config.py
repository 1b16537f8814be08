# recipe_community/core/config.py

import os # 환경 변수를 읽기 위해 사용합니다.

class Config:
    """모든 환경 설정의 기반이 되는 공통 설정 클래스입니다."""
    # JWT 토큰 서명/검증에 사용되는 키. 토큰 발급은 인증 서버가 담당하고 이 서비스는 검증만 합니다.
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')

    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')
    FIREBASE_STORAGE_BUCKET = os.getenv('FIREBASE_STORAGE_BUCKET')

    # 게시글 저장소 백엔드: 'firestore' 또는 'memory'
    STORE_BACKEND = os.getenv('STORE_BACKEND', 'firestore')
    # 버전 충돌 시 read-modify-write 재시도 횟수
    STORE_MAX_RETRIES = int(os.getenv('STORE_MAX_RETRIES', 5))

    # 피드 / 페이지네이션
    FEED_PAGE_SIZE = int(os.getenv('FEED_PAGE_SIZE', 10))
    FEED_MAX_PAGE_SIZE = int(os.getenv('FEED_MAX_PAGE_SIZE', 50))
    TRENDING_WINDOW_DAYS = int(os.getenv('TRENDING_WINDOW_DAYS', 7))

    # 게시글 / 댓글 제약
    MAX_MEDIA_PER_POST = 5
    COMMENT_MAX_LENGTH = 500

    # 멀티파트 업로드 최대 크기 (기본 50MB)
    MAX_CONTENT_LENGTH = int(os.getenv('MAX_CONTENT_LENGTH', 50 * 1024 * 1024))

class DevelopmentConfig(Config):
    """개발 환경을 위한 설정 클래스입니다."""
    DEBUG = True
    FIREBASE_CREDENTIALS_PATH = os.getenv('DEV_FIREBASE_CREDENTIALS_PATH', Config.FIREBASE_CREDENTIALS_PATH)

class TestingConfig(Config):
    """테스트 환경을 위한 설정 클래스입니다. 외부 서비스 없이 메모리 저장소를 사용합니다."""
    TESTING = True
    DEBUG = False
    JWT_SECRET_KEY = 'testing-secret-key-with-enough-length-for-hs256'
    STORE_BACKEND = 'memory'
    FIREBASE_CREDENTIALS_PATH = os.getenv('TEST_FIREBASE_CREDENTIALS_PATH')
    FIREBASE_STORAGE_BUCKET = None

class ProductionConfig(Config):
    """운영 환경 설정 클래스입니다."""
    DEBUG = False

# create_app에서 FLASK_ENV 값에 따라 설정 클래스를 선택하는 데 사용합니다.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig,
    production=ProductionConfig
)
