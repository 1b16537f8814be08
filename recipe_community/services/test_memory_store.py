# recipe_community/services/test_memory_store.py
"""
메모리 게시글 저장소 테스트: 버전 기반 재시도, 댓글 인덱스, 정렬

사용법: python -m pytest recipe_community/services/test_memory_store.py -v
"""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from recipe_community.core.errors import ConflictError, NotFoundError, ValidationError
from recipe_community.models.author import Author
from recipe_community.models.comment import Comment
from recipe_community.models.post import Post
from recipe_community.services.memory_store import InMemoryPostStore

BASE = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def make_post(post_id, minutes=0, author_id='u1', **kwargs):
    return Post(post_id=post_id, author=Author(author_id, 'Alice'), content=f'post {post_id}',
                created_at=BASE + timedelta(minutes=minutes), **kwargs)


@pytest.fixture
def store():
    return InMemoryPostStore(max_retries=3)


def test_get_returns_independent_copy(store):
    store.insert(make_post('p1'))
    post = store.get('p1')
    post.toggle_like('u2')
    assert store.get('p1').like_count == 0

def test_mutate_increments_version_and_returns_result(store):
    store.insert(make_post('p1'))
    post, is_liked = store.mutate('p1', lambda p: p.toggle_like('u2'))
    assert is_liked is True
    assert post.version == 1
    assert store.get('p1').like_count == 1

def test_mutate_missing_post_raises_not_found(store):
    with pytest.raises(NotFoundError):
        store.mutate('nope', lambda p: None)

def test_mutator_error_writes_nothing(store):
    store.insert(make_post('p1'))

    def _fail(post):
        post.toggle_like('u2')
        raise ValidationError("bad")

    with pytest.raises(ValidationError):
        store.mutate('p1', _fail)
    saved = store.get('p1')
    assert saved.like_count == 0 and saved.version == 0

def test_mutate_retries_after_concurrent_write(store):
    """mutator 실행 중 다른 쓰기가 끼어들면 최신 문서로 다시 시도해 두 변경이 모두 남는다."""
    store.insert(make_post('p1'))
    calls = []

    def _toggle_with_interference(post):
        calls.append(post.version)
        if len(calls) == 1:
            store.mutate('p1', lambda p: p.toggle_like('other'))
        return post.toggle_like('me')

    post, _ = store.mutate('p1', _toggle_with_interference)
    assert calls == [0, 1]
    assert sorted(post.liked_by) == ['me', 'other']
    assert post.like_count == 2

def test_mutate_gives_up_with_conflict_error(store):
    store.insert(make_post('p1'))

    def _always_interfere(post):
        store.mutate('p1', lambda p: p.share(f'u{p.version}'))

    with pytest.raises(ConflictError):
        store.mutate('p1', _always_interfere)

def test_concurrent_toggles_keep_count_equal_to_set_size(store):
    store.insert(make_post('p1'))
    store.max_retries = 1000

    def _worker(user_id):
        for _ in range(11):
            store.mutate('p1', lambda p: p.toggle_like(user_id))

    threads = [threading.Thread(target=_worker, args=(f'u{i}',)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    post = store.get('p1')
    # 각 사용자가 홀수 번 눌렀으므로 모두 좋아요 상태
    assert post.like_count == len(post.liked_by) == 8

def test_comment_index_follows_mutations_and_delete(store):
    store.insert(make_post('p1'))
    comment = Comment(comment_id='c1', post_id='p1', author=Author('u2', 'Bob'), content='hi')
    store.mutate('p1', lambda p: p.add_comment(comment))
    assert store.find_post_id_by_comment('c1') == 'p1'

    store.mutate('p1', lambda p: p.remove_comment('c1'))
    assert store.find_post_id_by_comment('c1') is None

    store.mutate('p1', lambda p: p.add_comment(comment))
    deleted = store.delete('p1')
    assert deleted.comment_count == 1
    assert store.find_post_id_by_comment('c1') is None
    assert store.delete('p1') is None

def test_list_recent_orders_newest_first_with_insertion_tiebreak(store):
    store.insert(make_post('old', minutes=0))
    store.insert(make_post('tie-a', minutes=5))
    store.insert(make_post('tie-b', minutes=5))
    store.insert(make_post('new', minutes=10, author_id='u2'))

    posts, total = store.list_recent(offset=0, limit=10)
    assert [p.post_id for p in posts] == ['new', 'tie-a', 'tie-b', 'old']
    assert total == 4

    posts, total = store.list_recent(author_id='u2')
    assert [p.post_id for p in posts] == ['new'] and total == 1

    posts, total = store.list_recent(since=BASE + timedelta(minutes=5), offset=1, limit=1)
    assert [p.post_id for p in posts] == ['tie-a']
    assert total == 3

def test_find_by_tokens_and_scan(store):
    store.insert(make_post('p1', minutes=0, search_tokens=['tomato', 'pasta']))
    store.insert(make_post('p2', minutes=1, search_tokens=['kimchi']))
    assert [p.post_id for p in store.find_by_tokens(['pasta', 'rice'])] == ['p1']
    assert [p.post_id for p in store.scan()] == ['p2', 'p1']
