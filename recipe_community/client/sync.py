# recipe_community/client/sync.py
"""
낙관적 업데이트 상태 관리.

사용자 동작(좋아요/공유/저장, 댓글 작성/삭제/좋아요)은 서버 응답 전에 화면 상태에 먼저 반영되고,
응답이 오면 서버 값으로 맞추거나(성공) 동작 직전 상태로 되돌립니다(실패).
같은 동작을 여러 번 빠르게 누르면 요청마다 순번이 매겨지고, 가장 나중에 보낸 요청의 응답만 반영됩니다.
"""
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from recipe_community.client.api_client import ApiError, CommunityApiClient
from recipe_community.utils.datetime_utils import DateTimeUtils

ACTIONS = ('like', 'share', 'save')

# 동작마다 되돌릴 필드. 실패한 동작의 필드만 복원하고 다른 동작의 상태는 건드리지 않습니다.
ACTION_FIELDS = {
    'like': ('likes', 'is_liked'),
    'share': ('shares', 'is_shared'),
    'save': ('is_saved',),
}

ERROR_MESSAGES = {
    'like': "좋아요를 처리하지 못했습니다.",
    'share': "공유하지 못했습니다.",
    'save': "저장하지 못했습니다.",
}


@dataclass
class PendingAction:
    """진행 중인 낙관적 동작 하나. snapshot은 동작 직전 해당 동작 필드의 값입니다."""
    action: str
    seq: int
    snapshot: Dict[str, Any]


@dataclass
class PostSyncState:
    post_id: str
    likes: int = 0
    is_liked: bool = False
    shares: int = 0
    is_shared: bool = False
    is_saved: bool = False
    comment_count: int = 0
    error: Optional[str] = None
    _latest_seq: Dict[str, int] = field(default_factory=lambda: {a: 0 for a in ACTIONS}, repr=False)

    @classmethod
    def from_post(cls, post: Dict[str, Any], is_saved: bool = False) -> "PostSyncState":
        """게시글 응답(JSON)으로부터 초기 상태를 만듭니다."""
        return cls(
            post_id=post['post_id'],
            likes=post.get('like_count', 0),
            is_liked=post.get('is_liked', False),
            shares=post.get('share_count', 0),
            is_saved=is_saved,
            comment_count=post.get('comment_count', 0)
        )

    def _snapshot(self, action: str) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in ACTION_FIELDS[action]}

    def _begin(self, action: str) -> PendingAction:
        self._latest_seq[action] += 1
        return PendingAction(action=action, seq=self._latest_seq[action], snapshot=self._snapshot(action))

    def is_current(self, pending: PendingAction) -> bool:
        return pending.seq == self._latest_seq[pending.action]

    # --- 1단계: 낙관적 반영 ---
    def begin_like(self) -> PendingAction:
        pending = self._begin('like')
        self.is_liked = not self.is_liked
        self.likes = self.likes + 1 if self.is_liked else max(0, self.likes - 1)
        return pending

    def begin_share(self) -> PendingAction:
        pending = self._begin('share')
        if not self.is_shared:
            self.is_shared = True
            self.shares += 1
        return pending

    def begin_save(self) -> PendingAction:
        pending = self._begin('save')
        self.is_saved = not self.is_saved
        return pending

    # --- 2단계: 서버 응답으로 확정 또는 되돌리기 ---
    def confirm(self, pending: PendingAction, response: Optional[Dict[str, Any]] = None) -> bool:
        """
        서버 응답 값으로 상태를 확정합니다. 서버 값이 낙관적 추측보다 우선합니다.
        최신 요청의 응답이 아니면 무시하고 False를 반환합니다.
        """
        if not self.is_current(pending):
            logging.debug(f"오래된 응답을 무시합니다 (action: {pending.action}, seq: {pending.seq})")
            return False
        response = response or {}
        if pending.action == 'like':
            self.likes = response.get('likes', self.likes)
            self.is_liked = response.get('is_liked', self.is_liked)
        elif pending.action == 'share':
            self.shares = response.get('shares', self.shares)
            self.is_shared = True
        elif pending.action == 'save':
            self.is_saved = response.get('is_saved', self.is_saved)
        self.error = None
        return True

    def rollback(self, pending: PendingAction, error: Optional[Exception] = None) -> bool:
        """최신 요청이 실패하면 해당 동작의 필드만 요청 직전 값으로 되돌리고 오류 메시지를 남깁니다."""
        if not self.is_current(pending):
            return False
        for key, value in pending.snapshot.items():
            setattr(self, key, value)
        message = ERROR_MESSAGES[pending.action]
        if isinstance(error, ApiError):
            message = f"{message} ({error.message})"
            logging.warning(f"낙관적 업데이트 되돌림 (post_id: {self.post_id}, action: {pending.action}): {error}")
        else:
            logging.error(f"예기치 못한 오류로 낙관적 업데이트 되돌림 (post_id: {self.post_id}, action: {pending.action}): {error}",
                          exc_info=error is not None)
        self.error = message
        return True

    # --- 동기 호출 편의 메서드 ---
    def toggle_like(self, api: CommunityApiClient) -> bool:
        pending = self.begin_like()
        try:
            response = api.like_post(self.post_id)
        except Exception as e:
            self.rollback(pending, e)
            return False
        return self.confirm(pending, response)

    def share(self, api: CommunityApiClient) -> bool:
        pending = self.begin_share()
        try:
            response = api.share_post(self.post_id)
        except Exception as e:
            self.rollback(pending, e)
            return False
        return self.confirm(pending, response)

    def toggle_save(self, persist: Optional[Callable[[str, bool], Any]] = None) -> bool:
        """
        저장(북마크)은 서버 엔드포인트가 없으므로 호출자가 넘긴 persist(post_id, is_saved)로 기록합니다.
        persist가 예외를 던지면(ApiError 포함) 되돌립니다.
        """
        pending = self.begin_save()
        if persist is None:
            return self.confirm(pending)
        try:
            persist(self.post_id, self.is_saved)
        except Exception as e:
            self.rollback(pending, e)
            return False
        return self.confirm(pending)

    def on_comment_added(self):
        self.comment_count += 1

    def on_comment_removed(self):
        self.comment_count = max(0, self.comment_count - 1)


class CommentListState:
    """
    한 게시글의 댓글 목록 화면 상태.
    - 작성: 임시 댓글을 맨 앞에 넣고, 성공하면 서버 댓글로 교체, 실패하면 제거합니다.
    - 삭제: 목록에서 먼저 빼고, 실패하면 원래 위치에 다시 넣습니다.
    - 좋아요: 이 세션에서 누른 댓글을 liked_comments에 기록해 중복 요청을 막습니다.
    """

    def __init__(self, post_id: str, api: CommunityApiClient, viewer_id: Optional[str] = None,
                 viewer_name: Optional[str] = None, page_size: int = 10,
                 post_state: Optional[PostSyncState] = None):
        self.post_id = post_id
        self.api = api
        self.viewer_id = viewer_id
        self.viewer_name = viewer_name
        self.page_size = page_size
        self.post_state = post_state
        self.comments: List[Dict[str, Any]] = []
        self.page = 0
        self.has_more = False
        self.error: Optional[str] = None
        self.liked_comments: Dict[str, bool] = {}

    def _index_of(self, comment_id: str) -> Optional[int]:
        return next((i for i, c in enumerate(self.comments) if c['comment_id'] == comment_id), None)

    def load_page(self, page: int = 1) -> bool:
        """page 1은 목록을 교체하고, 이후 페이지는 뒤에 이어 붙입니다."""
        try:
            response = self.api.list_comments(self.post_id, page, self.page_size)
        except ApiError as e:
            self.error = f"댓글을 불러오지 못했습니다. ({e.message})"
            logging.warning(f"댓글 목록 조회 실패 (post_id: {self.post_id}, page: {page}): {e}")
            return False

        fetched = response.get('comments', [])
        if page == 1:
            self.comments = list(fetched)
        else:
            known = {c['comment_id'] for c in self.comments}
            self.comments.extend(c for c in fetched if c['comment_id'] not in known)
        self.page = page
        self.has_more = page < response.get('total_pages', 0)
        self.error = None
        return True

    def load_more(self) -> bool:
        if not self.has_more:
            return False
        return self.load_page(self.page + 1)

    def submit(self, content: str, parent_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        self.error = None
        if not self.viewer_id:
            self.error = "댓글을 작성하려면 로그인해야 합니다."
            return None
        content = (content or '').strip()
        if not content:
            return None

        temp = {
            'comment_id': f"tmp-{uuid.uuid4()}",
            'post_id': self.post_id,
            'author': {'user_id': self.viewer_id, 'name': self.viewer_name or self.viewer_id[:8], 'image_url': None},
            'content': content,
            'parent_id': parent_id,
            'like_count': 0,
            'created_at': DateTimeUtils.to_iso_string(DateTimeUtils.now()),
            'pending': True,
        }
        self.comments.insert(0, temp)

        try:
            created = self.api.add_comment(self.post_id, content, parent_id)
        except ApiError as e:
            index = self._index_of(temp['comment_id'])
            if index is not None:
                self.comments.pop(index)
            self.error = f"댓글을 등록하지 못했습니다. ({e.message})"
            logging.warning(f"댓글 등록 실패, 임시 댓글을 제거합니다 (post_id: {self.post_id}): {e}")
            return None

        index = self._index_of(temp['comment_id'])
        if index is not None:
            self.comments[index] = created
        if self.post_state:
            self.post_state.on_comment_added()
        return created

    def delete(self, comment_id: str) -> bool:
        index = self._index_of(comment_id)
        if index is None:
            return False
        removed = self.comments.pop(index)
        try:
            self.api.delete_comment(comment_id)
        except ApiError as e:
            self.comments.insert(min(index, len(self.comments)), removed)
            self.error = f"댓글을 삭제하지 못했습니다. ({e.message})"
            logging.warning(f"댓글 삭제 실패, 목록에 되돌립니다 (comment_id: {comment_id}): {e}")
            return False
        if self.post_state:
            self.post_state.on_comment_removed()
        return True

    def like(self, comment_id: str) -> bool:
        if self.liked_comments.get(comment_id):
            return False
        index = self._index_of(comment_id)
        if index is None:
            return False

        # 서버의 댓글 좋아요는 개수를 저장하지 않으므로 like_count는 건드리지 않습니다.
        self.liked_comments[comment_id] = True
        try:
            self.api.like_comment(comment_id)
        except ApiError as e:
            self.liked_comments.pop(comment_id, None)
            self.error = f"좋아요를 처리하지 못했습니다. ({e.message})"
            return False
        return True
