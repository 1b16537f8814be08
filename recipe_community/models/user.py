# recipe_community/models/user.py
from dataclasses import dataclass
from typing import Optional, Dict, Any

@dataclass
class UserProfile:
    """
    Firestore 'users' 컬렉션 문서 중 댓글 작성자 표시에 필요한 부분.
    계정 관리 서비스가 문서를 소유하며, 이 서비스는 읽기만 합니다.
    """
    user_id: str
    display_name: Optional[str] = None
    name: Optional[str] = None
    photo_url: Optional[str] = None
    photo: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserProfile":
        return cls(
            user_id=data.get('user_id') or data.get('uid'),
            display_name=data.get('display_name') or data.get('displayName'),
            name=data.get('name'),
            photo_url=data.get('photo_url') or data.get('photoURL'),
            photo=data.get('photo')
        )

    @property
    def label(self) -> Optional[str]:
        return self.display_name or self.name

    @property
    def image(self) -> Optional[str]:
        return self.photo_url or self.photo
