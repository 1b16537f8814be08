# conftest.py
import pytest
from flask_jwt_extended import create_access_token

from recipe_community import create_app
from recipe_community.core.errors import UpstreamFailure
from recipe_community.models.post import MediaItem


class FakeStorageService:
    """버킷 없이 업로드/삭제 호출만 기록하는 스토리지 대역."""

    def __init__(self):
        self.uploaded = []
        self.deleted = []
        self.fail_upload = False

    def upload_post_media(self, user_id, files):
        if self.fail_upload:
            raise UpstreamFailure("미디어 업로드에 실패했습니다.")
        items = []
        for i, f in enumerate(files):
            public_id = f"community/{user_id}/{i}-{f.filename}"
            items.append(MediaItem(url=f"https://storage.test/{public_id}", resource_type='image',
                                   format=f.filename.rsplit('.', 1)[-1], public_id=public_id))
        self.uploaded.extend(items)
        return items

    def delete_media(self, media):
        self.deleted.extend(media)


@pytest.fixture
def app():
    app = create_app('testing')
    app.services['storage'] = FakeStorageService()
    app.services['posts'].storage_service = app.services['storage']
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(app):
    """auth_headers('user-1') -> Authorization 헤더 딕셔너리"""
    def _make(user_id: str):
        with app.app_context():
            token = create_access_token(identity=user_id)
        return {"Authorization": f"Bearer {token}"}
    return _make
