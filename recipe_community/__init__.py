# recipe_community/__init__.py

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
from flask import Flask
from flask_jwt_extended import JWTManager
import firebase_admin
from firebase_admin import credentials

# - 설정 / 에러 핸들러
from recipe_community.core.config import config_by_name
from recipe_community.core.errors import register_error_handlers

# - API 블루프린트
from recipe_community.api.posts.routes import posts_bp
from recipe_community.api.comments.routes import comments_bp

# - 서비스 모듈
from recipe_community.services.storage_service import StorageService
from recipe_community.services.post_store import FirestorePostStore
from recipe_community.services.memory_store import InMemoryPostStore
from recipe_community.services.profile_service import ProfileService, InMemoryProfileService
from recipe_community.services.feed_query import FeedQueryEngine
from recipe_community.api.posts.services import PostService
from recipe_community.api.comments.services import CommentService


def _init_firebase(app: Flask):
    if firebase_admin._apps:
        return
    cred_path = app.config['FIREBASE_CREDENTIALS_PATH']
    if not cred_path or not os.path.exists(cred_path):
        raise FileNotFoundError(f"Firebase 인증 파일을 찾을 수 없습니다: {cred_path}")
    cred = credentials.Certificate(cred_path)
    firebase_admin.initialize_app(cred, {
        'storageBucket': app.config['FIREBASE_STORAGE_BUCKET']
    })


def create_app(config_name: str = None):
    """
    Flask 애플리케이션 팩토리 함수.

    :param config_name: 'development' | 'testing' | 'production'. 생략하면 FLASK_ENV 값을 사용합니다.
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

    backend = app.config['STORE_BACKEND']
    if backend not in ('firestore', 'memory'):
        raise ValueError(f"지원하지 않는 STORE_BACKEND 입니다: {backend}")
    if backend == 'firestore' or app.config.get('FIREBASE_STORAGE_BUCKET'):
        _init_firebase(app)

    # =====================================================================================
    # 5. 서비스 인스턴스 생성 및 'app.services'에 저장 (의존성 주입)
    # =====================================================================================
    app.services = {}

    # 5-1. 다른 서비스의 기반이 되는 저장소 / 스토리지 서비스 먼저 생성
    storage_instance = StorageService()
    if app.config.get('FIREBASE_STORAGE_BUCKET'):
        try:
            storage_instance.init_app(app)
            logging.info("Storage service initialized successfully")
        except Exception as e:
            logging.error(f"Failed to initialize storage service: {e}")
            raise
    else:
        logging.warning("FIREBASE_STORAGE_BUCKET이 없어 미디어 업로드를 사용할 수 없습니다.")
    app.services['storage'] = storage_instance

    if backend == 'firestore':
        app.services['post_store'] = FirestorePostStore(max_attempts=app.config['STORE_MAX_RETRIES'])
        app.services['profiles'] = ProfileService()
    else:
        app.services['post_store'] = InMemoryPostStore(max_retries=app.config['STORE_MAX_RETRIES'])
        app.services['profiles'] = InMemoryProfileService()
    logging.info(f"Post store initialized (backend: {backend})")

    # 5-2. 다른 서비스를 주입받아야 하는 도메인 서비스 생성
    app.services['feed_query'] = FeedQueryEngine(
        store=app.services['post_store'],
        trending_window_days=app.config['TRENDING_WINDOW_DAYS']
    )
    app.services['posts'] = PostService(
        store=app.services['post_store'],
        feed_query=app.services['feed_query'],
        profile_service=app.services['profiles'],
        storage_service=app.services['storage'],
        max_media=app.config['MAX_MEDIA_PER_POST']
    )
    app.services['comments'] = CommentService(
        store=app.services['post_store'],
        profile_service=app.services['profiles'],
        max_length=app.config['COMMENT_MAX_LENGTH']
    )

    # =====================================================================================
    # 6. 블루프린트 등록
    # =====================================================================================
    app.register_blueprint(posts_bp, url_prefix='/api/community')
    app.register_blueprint(comments_bp, url_prefix='/api/community')

    # =====================================================================================
    # 7. 전역 에러 핸들러 설정
    # =====================================================================================
    register_error_handlers(app)

    # =====================================================================================
    # 8. 로깅 및 앱 반환
    # =====================================================================================
    if not app.debug:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    logging.info(f"Flask app created for '{config_name}' environment.")

    return app
