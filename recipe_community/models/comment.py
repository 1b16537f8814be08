# recipe_community/models/comment.py
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Optional, List, Dict, Any

from recipe_community.models.author import Author
from recipe_community.utils.datetime_utils import DateTimeUtils

@dataclass
class Comment:
    """
    게시글 문서의 'comments' 배열에 내장되는 댓글 구조.
    댓글은 부모 게시글 밖에서 독립적인 생명주기를 갖지 않습니다.
    """
    comment_id: str
    post_id: str
    author: Author
    content: str
    parent_id: Optional[str] = None  # 같은 게시글의 다른 댓글 (답글). 트리로 구성하지 않고 평면 목록으로만 조회
    like_count: int = 0
    liked_by: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=DateTimeUtils.now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Comment":
        """Firestore/메모리 저장소의 딕셔너리로부터 Comment 인스턴스를 생성합니다."""
        return cls(
            comment_id=str(data['comment_id']),
            post_id=str(data['post_id']),
            author=Author.from_dict(data.get('author') or {}),
            content=data.get('content', ''),
            parent_id=data.get('parent_id'),
            like_count=data.get('like_count', 0),
            liked_by=list(data.get('liked_by') or []),
            created_at=DateTimeUtils.ensure_utc(data.get('created_at')) or DateTimeUtils.now()
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
