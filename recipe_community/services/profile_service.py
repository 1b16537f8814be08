# recipe_community/services/profile_service.py
import logging
from typing import Dict, Optional

from firebase_admin import firestore

from recipe_community.models.user import UserProfile


class ProfileService:
    """Firestore 'users' 컬렉션에서 사용자 표시 정보(이름, 사진)를 조회하는 읽기 전용 서비스."""

    def __init__(self, db=None):
        self.db = db or firestore.client()
        self.users_ref = self.db.collection('users')

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        """프로필이 없으면 None. 조회 중 오류는 호출자에게 그대로 전달합니다."""
        doc = self.users_ref.document(user_id).get()
        if not doc.exists:
            return None
        data = doc.to_dict()
        data.setdefault('user_id', user_id)
        return UserProfile.from_dict(data)


class InMemoryProfileService:
    """메모리 저장소 구성에서 쓰는 프로필 조회 서비스."""

    def __init__(self, profiles: Optional[Dict[str, UserProfile]] = None):
        self.profiles: Dict[str, UserProfile] = dict(profiles or {})

    def add_profile(self, profile: UserProfile):
        self.profiles[profile.user_id] = profile
        logging.info(f"프로필 등록 (user_id: {profile.user_id})")

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        return self.profiles.get(user_id)
