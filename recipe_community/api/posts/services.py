# recipe_community/api/posts/services.py
import logging
import uuid
from typing import Optional, Dict, Any, List, Iterable, Union

from recipe_community.core.errors import ValidationError, NotAuthorizedError, NotFoundError
from recipe_community.models.author import Author
from recipe_community.models.post import Post, MediaItem
from recipe_community.services import text_search
from recipe_community.services.feed_query import FeedQueryEngine, Page, SearchResult
from recipe_community.services.post_store import PostStore
from recipe_community.utils.datetime_utils import DateTimeUtils

UPDATABLE_FIELDS = ('content', 'media', 'tags')


def normalize_tags(tags: Optional[Iterable[str]]) -> List[str]:
    """공백 제거, 빈 태그 제외, 표시 순서를 유지한 채 중복 제거."""
    cleaned = [str(t).strip() for t in (tags or [])]
    return list(dict.fromkeys(t for t in cleaned if t))


class PostService:
    """
    커뮤니티 게시글 관련 비즈니스 로직을 담당하는 서비스 클래스.
    - 게시글 CRUD(소유자 전용 수정/삭제), 피드/작성자별/검색 조회
    - 좋아요 토글, 공유(사용자당 1회)
    """
    def __init__(self, store: PostStore, feed_query: FeedQueryEngine, profile_service=None,
                 storage_service=None, max_media: int = 5):
        self.store = store
        self.feed_query = feed_query
        self.profile_service = profile_service
        self.storage_service = storage_service
        self.max_media = max_media
        logging.info("PostService initialized with dependencies.")

    # --- 생성 / 조회 / 수정 / 삭제 ---
    def create_post(self, author_id: str, content: str, author_name: Optional[str] = None,
                    media: Optional[List[Union[MediaItem, Dict[str, Any]]]] = None,
                    tags: Optional[Iterable[str]] = None, recipe: Optional[Dict[str, Any]] = None,
                    author_image: Optional[str] = None, expected_media_count: Optional[int] = None) -> Post:
        """
        새 게시글을 검증 후 저장합니다. 모든 검증은 저장소 접근 전에 끝납니다.

        :param expected_media_count: 업로드를 시도한 파일 수. 전달된 미디어가 이보다 적으면
                                     일부 업로드만 반영된 것이므로 게시글을 만들지 않습니다.
        """
        if not author_id:
            raise ValidationError("작성자 ID가 필요합니다.")
        content = (content or '').strip()
        if not content:
            raise ValidationError("게시글 내용을 입력해주세요.")

        media_items = [m if isinstance(m, MediaItem) else MediaItem.from_dict(m) for m in (media or [])]
        if len(media_items) > self.max_media:
            raise ValidationError(f"미디어는 최대 {self.max_media}개까지 업로드할 수 있습니다.")
        if expected_media_count is not None and len(media_items) != expected_media_count:
            raise ValidationError("일부 미디어가 업로드되지 않아 게시글을 생성할 수 없습니다.")

        if not author_name:
            author_name, profile_image = self._profile_display(author_id)
            author_image = author_image or profile_image
        if not author_name or not author_name.strip():
            raise ValidationError("작성자 이름이 필요합니다.")

        post = Post(
            post_id=str(uuid.uuid4()),
            author=Author(user_id=author_id, name=author_name.strip(), image_url=author_image or None),
            content=content,
            media=media_items,
            tags=normalize_tags(tags),
            recipe=recipe or None
        )
        post.search_tokens = text_search.index_tokens(post)
        self.store.insert(post)
        logging.info(f"게시글 생성 (post_id: {post.post_id}, author_id: {author_id}, media: {len(media_items)})")
        return post

    def _profile_display(self, user_id: str):
        if not self.profile_service:
            return None, None
        try:
            profile = self.profile_service.get_profile(user_id)
        except Exception as e:
            logging.warning(f"작성자 프로필 조회 실패 (user_id: {user_id}): {e}")
            return None, None
        if not profile:
            return None, None
        return profile.label, profile.image

    def get_post(self, post_id: str) -> Post:
        post = self.store.get(post_id)
        if post is None:
            raise NotFoundError("게시글을 찾을 수 없습니다.")
        return post

    def get_post_for_viewer(self, post_id: str, viewer_id: Optional[str]) -> Dict[str, Any]:
        return self.get_post(post_id).to_public_dict(viewer_id)

    def update_post(self, post_id: str, user_id: str, patch: Dict[str, Any]) -> Post:
        """[작성자 전용] content / media / tags만 부분 수정하고 updated_at을 갱신합니다."""
        changes = {k: v for k, v in (patch or {}).items() if k in UPDATABLE_FIELDS}
        if not changes:
            raise ValidationError("수정할 데이터가 제공되지 않았습니다.")

        if 'content' in changes:
            changes['content'] = (changes['content'] or '').strip()
            if not changes['content']:
                raise ValidationError("게시글 내용을 입력해주세요.")
        if 'media' in changes:
            changes['media'] = [m if isinstance(m, MediaItem) else MediaItem.from_dict(m) for m in changes['media'] or []]
            if len(changes['media']) > self.max_media:
                raise ValidationError(f"미디어는 최대 {self.max_media}개까지 첨부할 수 있습니다.")
        if 'tags' in changes:
            changes['tags'] = normalize_tags(changes['tags'])

        def _apply(post: Post):
            if post.author.user_id != user_id:
                raise NotAuthorizedError("게시글을 수정할 권한이 없습니다.")
            for key, value in changes.items():
                setattr(post, key, value)
            post.search_tokens = text_search.index_tokens(post)
            post.updated_at = DateTimeUtils.now()

        updated, _ = self.store.mutate(post_id, _apply)
        logging.info(f"게시글 수정 (post_id: {post_id}, fields: {list(changes.keys())})")
        return updated

    def delete_post(self, post_id: str, user_id: str) -> None:
        """[작성자 전용] 게시글과 내장 댓글을 삭제하고, 첨부 미디어를 스토리지에서 정리합니다."""
        post = self.get_post(post_id)
        if post.author.user_id != user_id:
            raise NotAuthorizedError("게시글을 삭제할 권한이 없습니다.")

        deleted = self.store.delete(post_id)
        if deleted is None:
            raise NotFoundError("게시글을 찾을 수 없습니다.")

        if self.storage_service and deleted.media:
            self.storage_service.delete_media(deleted.media)
        logging.info(f"게시글 삭제 (post_id: {post_id}, comments: {deleted.comment_count})")

    # --- 피드 / 검색 ---
    def _personalize(self, page: Page, viewer_id: Optional[str]) -> Page:
        page.items = [post.to_public_dict(viewer_id) for post in page.items]
        return page

    def list_feed(self, feed_filter: str, page: int, page_size: int, viewer_id: Optional[str] = None) -> Page:
        return self._personalize(self.feed_query.list_recent(feed_filter, page, page_size), viewer_id)

    def list_user_posts(self, author_id: str, page: int, page_size: int, viewer_id: Optional[str] = None) -> Page:
        return self._personalize(self.feed_query.list_by_author(author_id, page, page_size), viewer_id)

    def search_posts(self, query: str, page: int, page_size: int, viewer_id: Optional[str] = None) -> SearchResult:
        result = self.feed_query.search(query, page, page_size)
        self._personalize(result.page, viewer_id)
        return result

    # --- 좋아요 / 공유 ---
    def toggle_like(self, post_id: str, user_id: str) -> Dict[str, Any]:
        """좋아요를 누르거나 취소합니다. 호출할 때마다 상태가 뒤집힙니다."""
        post, is_liked = self.store.mutate(post_id, lambda p: p.toggle_like(user_id))
        return {"likes": post.like_count, "is_liked": is_liked}

    def share_post(self, post_id: str, user_id: str) -> Dict[str, Any]:
        """공유는 사용자당 한 번만 집계되며 취소할 수 없습니다."""
        post = self.get_post(post_id)
        if user_id in post.shared_by:
            return {"shares": post.share_count}
        post, _ = self.store.mutate(post_id, lambda p: p.share(user_id))
        return {"shares": post.share_count}
