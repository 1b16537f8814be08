# recipe_community/models/test_post_model.py
"""
게시글 모델 불변식 테스트 (카운터 = 집합 크기, 응답에서 내부 필드 제거)

사용법: python -m pytest recipe_community/models/test_post_model.py -v
"""

from datetime import datetime, timezone
from recipe_community.models.author import Author
from recipe_community.models.comment import Comment
from recipe_community.models.post import Post, MediaItem


def make_post(**kwargs) -> Post:
    defaults = dict(post_id='p1', author=Author(user_id='u1', name='Alice'), content='Tomato pasta')
    defaults.update(kwargs)
    return Post(**defaults)


def test_toggle_like_flips_membership_and_count():
    post = make_post()
    assert post.toggle_like('u2') is True
    assert post.like_count == 1 and post.liked_by == ['u2']
    assert post.toggle_like('u2') is False
    assert post.like_count == 0 and post.liked_by == []

def test_like_count_never_negative():
    post = make_post()
    post.toggle_like('u2')
    post.toggle_like('u2')
    post.toggle_like('u3')
    post.toggle_like('u3')
    assert post.like_count == 0

def test_share_is_recorded_once_per_user():
    post = make_post()
    assert post.share('u2') is True
    assert post.share('u2') is False
    assert post.share('u3') is True
    assert post.share_count == 2

def test_from_dict_repairs_counters_and_defaults():
    """저장된 카운터가 어긋나 있거나 배열이 없어도 집합 크기 기준으로 보정된다."""
    post = Post.from_dict({
        'post_id': 'p9',
        'author': {'user_id': 'u1', 'name': 'Alice'},
        'content': 'hello',
        'like_count': 7,
        'liked_by': ['a', 'b', 'a'],
        'share_count': 3,
        'shared_by': None,
        'created_at': '2024-01-15T10:30:00Z',
    })
    assert post.liked_by == ['a', 'b']
    assert post.like_count == 2
    assert post.share_count == 0
    assert post.comments == [] and post.tags == [] and post.media == []
    assert post.created_at == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)

def test_public_dict_hides_private_fields_and_sets_is_liked():
    post = make_post(media=[MediaItem(url='https://x/1.jpg')])
    post.toggle_like('viewer')
    post.share('viewer')

    public = post.to_public_dict('viewer')
    for key in ('liked_by', 'shared_by', 'search_tokens', 'version', 'comments'):
        assert key not in public
    assert public['is_liked'] is True
    assert public['like_count'] == 1
    assert public['media'][0]['url'] == 'https://x/1.jpg'

    assert post.to_public_dict(None)['is_liked'] is False
    assert post.to_public_dict('someone-else')['is_liked'] is False

def test_add_and_remove_comment_keep_comment_count():
    post = make_post()
    c1 = Comment(comment_id='c1', post_id='p1', author=Author('u2', 'Bob'), content='nice')
    c2 = Comment(comment_id='c2', post_id='p1', author=Author('u3', 'Carol'), content='yum', parent_id='c1')
    post.add_comment(c1)
    post.add_comment(c2)
    assert post.comment_count == 2
    assert post.find_comment('c2').parent_id == 'c1'

    removed = post.remove_comment('c1')
    assert removed.comment_id == 'c1'
    assert post.comment_count == 1
    assert post.remove_comment('missing') is None
    assert post.comment_count == 1

def test_round_trip_through_dict_keeps_comments():
    post = make_post(tags=['pasta'])
    post.add_comment(Comment(comment_id='c1', post_id='p1', author=Author('u2', 'Bob'), content='nice'))
    restored = Post.from_dict(post.to_dict())
    assert restored.comments[0].author.name == 'Bob'
    assert restored.comment_count == 1
    assert restored.tags == ['pasta']
