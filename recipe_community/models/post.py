# recipe_community/models/post.py
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Optional, List, Dict, Any

from recipe_community.models.author import Author
from recipe_community.models.comment import Comment
from recipe_community.utils.datetime_utils import DateTimeUtils

# 클라이언트 응답에 절대 포함되지 않는 내부 필드
PRIVATE_FIELDS = ('liked_by', 'shared_by', 'search_tokens', 'version', 'comments')

@dataclass
class MediaItem:
    """오브젝트 스토리지에 업로드된 미디어 한 건의 메타데이터."""
    url: str
    resource_type: str = "image"  # image | video
    format: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    bytes: Optional[int] = None
    public_id: Optional[str] = None  # 스토리지 blob 경로. 게시글 삭제 시 정리에 사용

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MediaItem":
        return cls(
            url=data['url'],
            resource_type=data.get('resource_type', 'image'),
            format=data.get('format'),
            width=data.get('width'),
            height=data.get('height'),
            bytes=data.get('bytes'),
            public_id=data.get('public_id')
        )

@dataclass
class Post:
    """
    Firestore 'community_posts' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    좋아요/공유/댓글 카운터는 원본 집합과 함께 저장되며, 이 클래스의 변경 메서드만이
    `like_count == len(liked_by)` 같은 불변식을 유지하도록 카운터를 다시 계산합니다.
    """
    post_id: str
    author: Author
    content: str
    media: List[MediaItem] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    recipe: Optional[Dict[str, Any]] = None
    like_count: int = 0
    liked_by: List[str] = field(default_factory=list)
    share_count: int = 0
    shared_by: List[str] = field(default_factory=list)
    comments: List[Comment] = field(default_factory=list)
    comment_count: int = 0
    search_tokens: List[str] = field(default_factory=list)
    version: int = 0
    created_at: datetime = field(default_factory=DateTimeUtils.now)
    updated_at: datetime = field(default_factory=DateTimeUtils.now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Post":
        """
        저장소에서 읽은 딕셔너리로부터 Post 인스턴스를 생성합니다.
        누락된 배열 필드는 빈 리스트로, 카운터는 원본 집합 기준으로 보정합니다.
        """
        post = cls(
            post_id=str(data['post_id']),
            author=Author.from_dict(data.get('author') or {}),
            content=data.get('content', ''),
            media=[MediaItem.from_dict(m) for m in data.get('media') or []],
            tags=list(data.get('tags') or []),
            recipe=data.get('recipe'),
            liked_by=list(data.get('liked_by') or []),
            shared_by=list(data.get('shared_by') or []),
            comments=[Comment.from_dict(c) for c in data.get('comments') or []],
            search_tokens=list(data.get('search_tokens') or []),
            version=data.get('version', 0),
            created_at=DateTimeUtils.ensure_utc(data.get('created_at')) or DateTimeUtils.now(),
            updated_at=DateTimeUtils.ensure_utc(data.get('updated_at')) or DateTimeUtils.now()
        )
        post._sync_counters()
        return post

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_public_dict(self, viewer_id: Optional[str] = None) -> Dict[str, Any]:
        """응답용 딕셔너리. 좋아요/공유 사용자 목록은 제거하고 조회자 기준 is_liked를 채웁니다."""
        data = self.to_dict()
        for key in PRIVATE_FIELDS:
            data.pop(key, None)
        data['is_liked'] = self.is_liked_by(viewer_id)
        return data

    # --- 좋아요 / 공유 ---
    def is_liked_by(self, user_id: Optional[str]) -> bool:
        return bool(user_id) and user_id in self.liked_by

    def toggle_like(self, user_id: str) -> bool:
        """좋아요 상태를 뒤집고, 변경 후 좋아요 여부를 반환합니다."""
        if user_id in self.liked_by:
            self.liked_by = [uid for uid in self.liked_by if uid != user_id]
            is_liked = False
        else:
            self.liked_by.append(user_id)
            is_liked = True
        self._sync_counters()
        return is_liked

    def share(self, user_id: str) -> bool:
        """처음 공유하는 사용자일 때만 기록합니다. 새로 기록되었으면 True."""
        if user_id in self.shared_by:
            return False
        self.shared_by.append(user_id)
        self._sync_counters()
        return True

    # --- 댓글 ---
    def find_comment(self, comment_id: str) -> Optional[Comment]:
        return next((c for c in self.comments if c.comment_id == comment_id), None)

    def add_comment(self, comment: Comment):
        self.comments.append(comment)
        self._sync_counters()

    def remove_comment(self, comment_id: str) -> Optional[Comment]:
        comment = self.find_comment(comment_id)
        if comment is not None:
            self.comments = [c for c in self.comments if c.comment_id != comment_id]
            self._sync_counters()
        return comment

    def _sync_counters(self):
        # 중복 제거 후 카운터를 집합 크기에서 다시 계산
        self.liked_by = list(dict.fromkeys(self.liked_by))
        self.shared_by = list(dict.fromkeys(self.shared_by))
        self.like_count = len(self.liked_by)
        self.share_count = len(self.shared_by)
        self.comment_count = len(self.comments)
