# recipe_community/services/memory_store.py
import copy
import logging
import threading
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional, Tuple

from recipe_community.core.errors import ConflictError, NotFoundError
from recipe_community.models.post import Post
from recipe_community.services.post_store import PostStore, Mutator


class InMemoryPostStore(PostStore):
    """
    프로세스 메모리에 게시글 문서를 딕셔너리로 보관하는 저장소.
    테스트와 로컬 개발(STORE_BACKEND=memory)에 사용합니다.

    mutate는 version 필드를 이용한 낙관적 동시성 제어로 동작합니다:
    읽은 시점의 version과 쓰는 시점의 version이 다르면 처음부터 다시 시도합니다.
    """

    def __init__(self, max_retries: int = 5):
        self._docs: Dict[str, Dict[str, Any]] = {}  # 삽입 순서 유지
        self._comment_index: Dict[str, str] = {}
        self._lock = threading.Lock()
        self.max_retries = max_retries

    def _load(self, doc: Dict[str, Any]) -> Post:
        return Post.from_dict(copy.deepcopy(doc))

    def insert(self, post: Post) -> Post:
        with self._lock:
            self._docs[post.post_id] = post.to_dict()
            for comment in post.comments:
                self._comment_index[comment.comment_id] = post.post_id
        return post

    def get(self, post_id: str) -> Optional[Post]:
        with self._lock:
            doc = self._docs.get(post_id)
            return self._load(doc) if doc is not None else None

    def delete(self, post_id: str) -> Optional[Post]:
        with self._lock:
            doc = self._docs.pop(post_id, None)
            if doc is None:
                return None
            for comment in doc.get('comments', []):
                self._comment_index.pop(comment['comment_id'], None)
            return self._load(doc)

    def mutate(self, post_id: str, mutator: Mutator) -> Tuple[Post, Any]:
        for attempt in range(1, self.max_retries + 1):
            with self._lock:
                doc = self._docs.get(post_id)
                if doc is None:
                    raise NotFoundError("게시글을 찾을 수 없습니다.")
                expected_version = doc.get('version', 0)
                post = self._load(doc)

            before = {c.comment_id for c in post.comments}
            result = mutator(post)
            after = {c.comment_id for c in post.comments}
            post.version = expected_version + 1

            with self._lock:
                current = self._docs.get(post_id)
                if current is None:
                    raise NotFoundError("게시글을 찾을 수 없습니다.")
                if current.get('version', 0) != expected_version:
                    logging.info(f"버전 충돌로 재시도합니다 (post_id: {post_id}, attempt: {attempt})")
                    continue
                self._docs[post_id] = post.to_dict()
                for comment_id in after - before:
                    self._comment_index[comment_id] = post_id
                for comment_id in before - after:
                    self._comment_index.pop(comment_id, None)
                return post, result

        logging.error(f"재시도 한도 초과로 게시글 갱신 실패 (post_id: {post_id})")
        raise ConflictError()

    def _snapshot(self) -> List[Post]:
        with self._lock:
            return [self._load(doc) for doc in self._docs.values()]

    def list_recent(self, since: Optional[datetime] = None, author_id: Optional[str] = None,
                    offset: int = 0, limit: int = 10) -> Tuple[List[Post], int]:
        posts = self._snapshot()
        if author_id:
            posts = [p for p in posts if p.author.user_id == author_id]
        if since:
            posts = [p for p in posts if p.created_at >= since]
        # reverse=True에서도 정렬은 안정적이므로 같은 시각이면 먼저 삽입된 게시글이 앞에 옵니다.
        posts.sort(key=lambda p: p.created_at, reverse=True)
        return posts[offset:offset + limit], len(posts)

    def find_by_tokens(self, tokens: List[str]) -> List[Post]:
        wanted = set(tokens)
        return [p for p in self._snapshot() if wanted.intersection(p.search_tokens)]

    def scan(self) -> Iterator[Post]:
        posts = self._snapshot()
        posts.sort(key=lambda p: p.created_at, reverse=True)
        return iter(posts)

    def find_post_id_by_comment(self, comment_id: str) -> Optional[str]:
        with self._lock:
            return self._comment_index.get(comment_id)
