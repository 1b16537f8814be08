# recipe_community/services/post_store.py
import logging
from typing import Any, Callable, Iterator, List, Optional, Tuple
from datetime import datetime

from firebase_admin import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from recipe_community.core.errors import CommunityError, InternalError, NotFoundError
from recipe_community.models.post import Post
from recipe_community.utils.datetime_utils import DateTimeUtils

Mutator = Callable[[Post], Any]


class PostStore:
    """
    게시글 영속화 계층의 공통 인터페이스.
    게시글 문서 하나가 원자성의 단위이며, 댓글은 게시글 문서에 내장됩니다.
    """

    def insert(self, post: Post) -> Post:
        raise NotImplementedError

    def get(self, post_id: str) -> Optional[Post]:
        raise NotImplementedError

    def delete(self, post_id: str) -> Optional[Post]:
        """게시글과 내장 댓글, 댓글 인덱스를 함께 삭제하고 삭제된 게시글을 반환합니다."""
        raise NotImplementedError

    def mutate(self, post_id: str, mutator: Mutator) -> Tuple[Post, Any]:
        """
        게시글 하나에 대한 원자적 read-modify-write.
        mutator는 재시도 시 여러 번 호출될 수 있으므로 전달받은 Post 외의 상태를 바꾸면 안 됩니다.
        mutator가 예외를 던지면 아무것도 기록되지 않습니다.
        """
        raise NotImplementedError

    def list_recent(self, since: Optional[datetime] = None, author_id: Optional[str] = None,
                    offset: int = 0, limit: int = 10) -> Tuple[List[Post], int]:
        """created_at 내림차순 목록 한 페이지와 전체 개수."""
        raise NotImplementedError

    def find_by_tokens(self, tokens: List[str]) -> List[Post]:
        """search_tokens에 주어진 토큰 중 하나라도 포함하는 게시글."""
        raise NotImplementedError

    def scan(self) -> Iterator[Post]:
        """모든 게시글을 created_at 내림차순으로 순회합니다."""
        raise NotImplementedError

    def find_post_id_by_comment(self, comment_id: str) -> Optional[str]:
        raise NotImplementedError


class FirestorePostStore(PostStore):
    """Firestore 'community_posts' 컬렉션 기반 게시글 저장소."""

    # array_contains_any 연산자가 한 번에 받을 수 있는 값의 최대 개수
    MAX_ARRAY_QUERY_VALUES = 30

    def __init__(self, db=None, max_attempts: int = 5):
        self.db = db or firestore.client()
        self.posts_ref = self.db.collection('community_posts')
        # comment_id -> post_id 인덱스. 댓글 id만으로 게시글을 찾을 때 전체 스캔을 피하기 위함
        self.comment_index_ref = self.db.collection('comment_index')
        self.max_attempts = max_attempts
        logging.info("FirestorePostStore initialized.")

    @staticmethod
    def _to_document(post: Post) -> dict:
        return DateTimeUtils.for_firestore(post.to_dict())

    @staticmethod
    def _from_snapshot(doc) -> Post:
        return Post.from_dict(DateTimeUtils.from_firestore(doc.to_dict()))

    def insert(self, post: Post) -> Post:
        try:
            batch = self.db.batch()
            batch.set(self.posts_ref.document(post.post_id), self._to_document(post))
            for comment in post.comments:
                batch.set(self.comment_index_ref.document(comment.comment_id), {'post_id': post.post_id})
            batch.commit()
            return post
        except Exception as e:
            logging.error(f"게시글 저장 실패 (post_id: {post.post_id}): {e}", exc_info=True)
            raise InternalError("게시글 저장에 실패했습니다.", details=str(e)) from e

    def get(self, post_id: str) -> Optional[Post]:
        try:
            doc = self.posts_ref.document(post_id).get()
        except Exception as e:
            logging.error(f"게시글 조회 실패 (post_id: {post_id}): {e}", exc_info=True)
            raise InternalError("게시글 조회에 실패했습니다.", details=str(e)) from e
        if not doc.exists:
            return None
        return self._from_snapshot(doc)

    def delete(self, post_id: str) -> Optional[Post]:
        post_ref = self.posts_ref.document(post_id)
        transaction = self.db.transaction(max_attempts=self.max_attempts)

        @firestore.transactional
        def _delete_in_transaction(transaction):
            snapshot = post_ref.get(transaction=transaction)
            if not snapshot.exists:
                return None
            post = self._from_snapshot(snapshot)
            for comment in post.comments:
                transaction.delete(self.comment_index_ref.document(comment.comment_id))
            transaction.delete(post_ref)
            return post

        try:
            return _delete_in_transaction(transaction)
        except Exception as e:
            logging.error(f"게시글 삭제 실패 (post_id: {post_id}): {e}", exc_info=True)
            raise InternalError("게시글 삭제에 실패했습니다.", details=str(e)) from e

    def mutate(self, post_id: str, mutator: Mutator) -> Tuple[Post, Any]:
        """
        트랜잭션 내에서 게시글을 읽고, mutator를 적용한 뒤 다시 씁니다.
        - 다른 트랜잭션과 충돌하면 Firestore가 max_attempts 범위에서 전체를 재시도합니다.
        - 추가/삭제된 댓글에 맞춰 comment_index 문서도 같은 트랜잭션에서 갱신합니다.
        """
        post_ref = self.posts_ref.document(post_id)
        transaction = self.db.transaction(max_attempts=self.max_attempts)

        @firestore.transactional
        def _mutate_in_transaction(transaction):
            snapshot = post_ref.get(transaction=transaction)
            if not snapshot.exists:
                raise NotFoundError("게시글을 찾을 수 없습니다.")

            post = self._from_snapshot(snapshot)
            before = {c.comment_id for c in post.comments}
            result = mutator(post)
            after = {c.comment_id for c in post.comments}
            post.version += 1

            transaction.set(post_ref, self._to_document(post))
            for comment_id in after - before:
                transaction.set(self.comment_index_ref.document(comment_id), {'post_id': post_id})
            for comment_id in before - after:
                transaction.delete(self.comment_index_ref.document(comment_id))
            return post, result

        try:
            return _mutate_in_transaction(transaction)
        except CommunityError:
            raise
        except Exception as e:
            logging.error(f"게시글 갱신 트랜잭션 실패 (post_id: {post_id}): {e}", exc_info=True)
            raise InternalError("게시글을 갱신하지 못했습니다.", details=str(e)) from e

    def list_recent(self, since: Optional[datetime] = None, author_id: Optional[str] = None,
                    offset: int = 0, limit: int = 10) -> Tuple[List[Post], int]:
        query = self.posts_ref
        if author_id:
            query = query.where(filter=FieldFilter('author.user_id', '==', author_id))
        if since:
            query = query.where(filter=FieldFilter('created_at', '>=', since))

        try:
            # count()는 문서를 가져오지 않고 개수만 집계합니다.
            total = query.count().get()[0][0].value
            docs = (query.order_by('created_at', direction=firestore.Query.DESCENDING)
                    .offset(offset).limit(limit).stream())
            return [self._from_snapshot(doc) for doc in docs], total
        except Exception as e:
            logging.error(f"게시글 목록 조회 실패 (author_id: {author_id}, since: {since}): {e}", exc_info=True)
            raise InternalError("게시글 목록을 불러오지 못했습니다.", details=str(e)) from e

    def find_by_tokens(self, tokens: List[str]) -> List[Post]:
        found = {}
        try:
            for i in range(0, len(tokens), self.MAX_ARRAY_QUERY_VALUES):
                chunk = tokens[i:i + self.MAX_ARRAY_QUERY_VALUES]
                docs = self.posts_ref.where(filter=FieldFilter('search_tokens', 'array_contains_any', chunk)).stream()
                for doc in docs:
                    post = self._from_snapshot(doc)
                    found.setdefault(post.post_id, post)
        except Exception as e:
            logging.error(f"토큰 검색 실패 (tokens: {tokens}): {e}", exc_info=True)
            raise InternalError("게시글 검색에 실패했습니다.", details=str(e)) from e
        return list(found.values())

    def scan(self) -> Iterator[Post]:
        try:
            docs = self.posts_ref.order_by('created_at', direction=firestore.Query.DESCENDING).stream()
            for doc in docs:
                yield self._from_snapshot(doc)
        except Exception as e:
            logging.error(f"게시글 전체 순회 실패: {e}", exc_info=True)
            raise InternalError("게시글 검색에 실패했습니다.", details=str(e)) from e

    def find_post_id_by_comment(self, comment_id: str) -> Optional[str]:
        try:
            doc = self.comment_index_ref.document(comment_id).get()
        except Exception as e:
            logging.error(f"댓글 색인 조회 실패 (comment_id: {comment_id}): {e}", exc_info=True)
            raise InternalError("댓글 정보를 조회하지 못했습니다.", details=str(e)) from e
        if not doc.exists:
            return None
        return doc.to_dict().get('post_id')
