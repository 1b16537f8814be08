# recipe_community/api/comments/services.py

import logging
import uuid
from typing import Optional, Dict, Any, List

from recipe_community.core.errors import ValidationError, NotAuthorizedError, NotFoundError
from recipe_community.models.author import Author
from recipe_community.models.comment import Comment
from recipe_community.models.post import Post
from recipe_community.services.feed_query import Page, paginate
from recipe_community.services.post_store import PostStore


class CommentService:
    """
    댓글 관련 비즈니스 로직을 담당하는 서비스 클래스.
    - 댓글은 게시글 문서에 내장되며, 모든 변경은 게시글 단위 mutate로 원자적으로 처리됩니다.
    - 작성자 표시 이름은 프로필 서비스에서 조회하고, 실패하면 사용자 ID 앞 8자리로 대체합니다.
    """
    def __init__(self, store: PostStore, profile_service=None, max_length: int = 500):
        self.store = store
        self.profile_service = profile_service
        self.max_length = max_length
        logging.info("CommentService initialized with dependencies.")

    def _resolve_author(self, user_id: str) -> Author:
        """프로필 조회 결과로 작성자 정보를 만듭니다. 조회에 실패해도 댓글 작성은 계속됩니다."""
        profile = None
        if self.profile_service:
            try:
                profile = self.profile_service.get_profile(user_id)
            except Exception as e:
                logging.warning(f"댓글 작성자 프로필 조회 실패, 기본 이름을 사용합니다 (user_id: {user_id}): {e}")
        if profile and profile.label:
            return Author(user_id=user_id, name=profile.label, image_url=profile.image)
        return Author(user_id=user_id, name=user_id[:8], image_url=None)

    def add_comment(self, post_id: str, user_id: str, content: str, parent_id: Optional[str] = None) -> Comment:
        """게시글에 댓글(또는 같은 게시글 댓글에 대한 답글)을 추가합니다."""
        content = (content or '').strip()
        if not content:
            raise ValidationError("댓글 내용을 입력해주세요.")
        if len(content) > self.max_length:
            raise ValidationError(f"댓글은 {self.max_length}자 이하로 작성해주세요.")

        comment = Comment(
            comment_id=str(uuid.uuid4()),
            post_id=post_id,
            author=self._resolve_author(user_id),
            content=content,
            parent_id=parent_id or None
        )

        def _append(post: Post):
            if comment.parent_id and post.find_comment(comment.parent_id) is None:
                raise ValidationError("답글을 달 댓글이 이 게시글에 존재하지 않습니다.")
            post.add_comment(comment)

        post, _ = self.store.mutate(post_id, _append)
        logging.info(f"댓글 생성 (post_id: {post_id}, comment_id: {comment.comment_id}, count: {post.comment_count})")
        return comment

    def delete_comment(self, comment_id: str, user_id: str) -> None:
        """[작성자 전용] 댓글을 삭제하고 게시글의 comment_count를 다시 계산합니다."""
        post_id = self.store.find_post_id_by_comment(comment_id)
        if not post_id:
            raise NotFoundError("댓글을 찾을 수 없습니다.")

        def _remove(post: Post):
            comment = post.find_comment(comment_id)
            if comment is None:
                raise NotFoundError("댓글을 찾을 수 없습니다.")
            if comment.author.user_id != user_id:
                raise NotAuthorizedError("댓글을 삭제할 권한이 없습니다.")
            post.remove_comment(comment_id)

        self.store.mutate(post_id, _remove)
        logging.info(f"댓글 삭제 (post_id: {post_id}, comment_id: {comment_id})")

    def list_comments(self, post_id: str, page: int, page_size: int) -> Page:
        """댓글을 최신순으로 페이지 단위 조회합니다. 같은 시각이면 나중에 달린 댓글이 앞에 옵니다."""
        post = self.store.get(post_id)
        if post is None:
            raise NotFoundError("게시글을 찾을 수 없습니다.")
        ordered = sorted(reversed(post.comments), key=lambda c: c.created_at, reverse=True)
        return paginate([c.to_dict() for c in ordered], page, page_size)

    def like_comment(self, comment_id: str, user_id: str) -> Dict[str, Any]:
        # 댓글 좋아요는 아직 집계하지 않습니다. 존재 여부만 확인합니다.
        if not self.store.find_post_id_by_comment(comment_id):
            raise NotFoundError("댓글을 찾을 수 없습니다.")
        return {"message": "댓글 좋아요가 반영되었습니다.", "comment_id": comment_id}

    def list_replies(self, comment_id: str) -> List[Dict[str, Any]]:
        return []
